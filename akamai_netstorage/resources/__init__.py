"""Resource storages, publishing targets and the collections that pair them."""

from akamai_netstorage.resources.backends import (
    AkamaiStorage,
    AkamaiTarget,
    FileSystemStorage,
    FileSystemTarget,
    ResourceStorage,
    ResourceTarget,
    StoredResource,
)
from akamai_netstorage.resources.registry import Collection, CollectionRegistry

__all__ = [
    "AkamaiStorage",
    "AkamaiTarget",
    "FileSystemStorage",
    "FileSystemTarget",
    "ResourceStorage",
    "ResourceTarget",
    "StoredResource",
    "Collection",
    "CollectionRegistry",
]
