# akamai_netstorage/storage/__init__.py
"""Storage adapter package."""

from akamai_netstorage.storage.base import StorageAdapter, FileInfo
from akamai_netstorage.storage.exceptions import (
    StorageError,
    StorageUnavailableError,
    StorageConnectionError,
    StorageAuthError,
    StorageNotFoundError,
    StoragePermissionError,
    ConnectorConfigurationError,
    CollectionNotFoundError,
)

__all__ = [
    "StorageAdapter",
    "FileInfo",
    "StorageError",
    "StorageUnavailableError",
    "StorageConnectionError",
    "StorageAuthError",
    "StorageNotFoundError",
    "StoragePermissionError",
    "ConnectorConfigurationError",
    "CollectionNotFoundError",
]
