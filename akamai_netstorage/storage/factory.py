"""Storage adapter factory."""

from typing import Any

from akamai_netstorage.storage.base import StorageAdapter
from akamai_netstorage.storage.adapters.local import LocalAdapter
from akamai_netstorage.storage.adapters.netstorage import NetStorageAdapter


# Registry of adapter classes by storage type
ADAPTER_REGISTRY: dict[str, type[StorageAdapter]] = {
    "local": LocalAdapter,
    "netstorage": NetStorageAdapter,
}


def get_adapter(storage_type: str, config: dict[str, Any]) -> StorageAdapter:
    """Get a configured storage adapter.

    Args:
        storage_type: Registered adapter type, e.g. "local" or "netstorage".
        config: Adapter configuration.

    Returns:
        Configured StorageAdapter instance.

    Raises:
        ValueError: If storage type is not supported.
    """
    adapter_class = ADAPTER_REGISTRY.get(storage_type)
    if adapter_class is None:
        raise ValueError(f"Unknown storage type: {storage_type}")
    return adapter_class(config)


def register_adapter(storage_type: str, adapter_class: type[StorageAdapter]) -> None:
    """Register an adapter class for a storage type."""
    ADAPTER_REGISTRY[storage_type] = adapter_class
