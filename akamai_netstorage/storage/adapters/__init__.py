# akamai_netstorage/storage/adapters/__init__.py
"""Storage adapter implementations."""

from akamai_netstorage.storage.adapters.local import LocalAdapter
from akamai_netstorage.storage.adapters.netstorage import (
    NetStorageAdapter,
    NetStorageAuth,
    NetStorageClient,
    encode_path,
)

__all__ = [
    "LocalAdapter",
    "NetStorageAdapter",
    "NetStorageAuth",
    "NetStorageClient",
    "encode_path",
]
