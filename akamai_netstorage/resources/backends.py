"""Resource storage and publishing target backends.

A storage keeps resource content addressed by its SHA1. A target publishes
resources from a storage to a location with a public URI.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping
from urllib.parse import quote

from akamai_netstorage.connector import Connector
from akamai_netstorage.storage.base import StorageAdapter
from akamai_netstorage.storage.exceptions import StorageError, StorageNotFoundError
from akamai_netstorage.storage.factory import get_adapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredResource:
    """Content stored in a resource storage."""

    sha1: str
    filename: str
    size: int

    @property
    def relative_publication_path(self) -> str:
        return f"{self.sha1}/{self.filename}"


def _join(base: str, path: str) -> str:
    base = base.strip("/")
    return f"{base}/{path}" if base else path


def _local_adapter(name: str, options: Mapping[str, Any]) -> StorageAdapter:
    if not options.get("path"):
        raise ValueError(f'The local backend {name} needs a "path" option')
    return get_adapter("local", {"path": options["path"]})


class ResourceStorage:
    """Storage backend writing resource content through a storage adapter."""

    def __init__(self, name: str, adapter: StorageAdapter | None, base_path: str = ""):
        self.name = name
        self._adapter = adapter
        self.base_path = base_path

    def get_connector(self) -> Connector | None:
        """NetStorage connector behind this storage, if any."""
        return None

    @property
    def adapter(self) -> StorageAdapter:
        return self._adapter

    def _resource_path(self, sha1: str) -> str:
        return _join(self.base_path, sha1)

    async def import_resource(self, data: bytes, filename: str) -> StoredResource:
        """Store content under its SHA1."""
        sha1 = hashlib.sha1(data).hexdigest()
        path = self._resource_path(sha1)
        if not await self.adapter.exists(path):
            await self.adapter.write_file(path, data)
            logger.info(f"Imported {filename} into {self.name} as {sha1}")
        return StoredResource(sha1=sha1, filename=filename, size=len(data))

    async def get_stream_by_resource(
        self, resource: StoredResource, chunk_size: int = 8192
    ) -> AsyncIterator[bytes]:
        async for chunk in self.adapter.stream_file(self._resource_path(resource.sha1), chunk_size):
            yield chunk

    async def read_resource(self, resource: StoredResource) -> bytes:
        return await self.adapter.read_file(self._resource_path(resource.sha1))

    async def delete_resource(self, resource: StoredResource) -> bool:
        """Delete stored content. Returns False if it was already gone."""
        try:
            await self.adapter.delete_file(self._resource_path(resource.sha1))
        except StorageNotFoundError:
            return False
        return True


class FileSystemStorage(ResourceStorage):
    """Storage in a local directory. Options: ``path``."""

    def __init__(self, name: str, options: Mapping[str, Any]):
        super().__init__(name, _local_adapter(name, options))


class AkamaiStorage(ResourceStorage):
    """Storage in the working directory of a NetStorage connector."""

    def __init__(self, name: str, options: Mapping[str, Any], **connector_kwargs: Any):
        self.connector = Connector(options, name, **connector_kwargs)
        super().__init__(name, None, base_path=self.connector.full_directory())

    def get_connector(self) -> Connector:
        return self.connector

    @property
    def adapter(self) -> StorageAdapter:
        # Created on use, so a misconfigured connector fails at its first request
        return self.connector.create_filesystem()


class ResourceTarget:
    """Publishing target copying resources to ``<sha1>/<filename>``."""

    def __init__(self, name: str, adapter: StorageAdapter | None, base_uri: str, base_path: str = ""):
        self.name = name
        self._adapter = adapter
        self.base_uri = base_uri
        self.base_path = base_path

    def get_connector(self) -> Connector | None:
        """NetStorage connector behind this target, if any."""
        return None

    @property
    def adapter(self) -> StorageAdapter:
        return self._adapter

    def _publication_path(self, resource: StoredResource) -> str:
        return _join(self.base_path, resource.relative_publication_path)

    async def publish_resource(self, resource: StoredResource, storage: ResourceStorage) -> None:
        data = await storage.read_resource(resource)
        await self.adapter.write_file(self._publication_path(resource), data)
        logger.info(f"Published {resource.relative_publication_path} to {self.name}")

    async def unpublish_resource(self, resource: StoredResource) -> None:
        try:
            await self.adapter.delete_file(self._publication_path(resource))
        except StorageNotFoundError:
            logger.debug(f"{resource.relative_publication_path} was not published to {self.name}")

    def get_public_resource_uri(self, resource: StoredResource) -> str:
        return f"{self.base_uri.rstrip('/')}/{resource.sha1}/{quote(resource.filename)}"


class FileSystemTarget(ResourceTarget):
    """Target in a local directory. Options: ``path``, ``baseUri``."""

    def __init__(self, name: str, options: Mapping[str, Any]):
        super().__init__(
            name,
            _local_adapter(name, options),
            base_uri=options.get("baseUri", ""),
        )

    async def unpublish_resource(self, resource: StoredResource) -> None:
        await super().unpublish_resource(resource)
        try:
            await self.adapter.delete_directory(resource.sha1)
        except (OSError, StorageNotFoundError) as e:
            logger.debug(f"Kept directory {resource.sha1} in {self.name}: {e}")


class AkamaiTarget(ResourceTarget):
    """Target in the working directory of a NetStorage connector, served by the static host."""

    def __init__(self, name: str, options: Mapping[str, Any], **connector_kwargs: Any):
        self.connector = Connector(options, name, **connector_kwargs)
        super().__init__(
            name,
            None,
            base_uri=self.connector.full_static_path(),
            base_path=self.connector.full_directory(),
        )

    def get_connector(self) -> Connector:
        return self.connector

    @property
    def adapter(self) -> StorageAdapter:
        return self.connector.create_filesystem()

    async def unpublish_resource(self, resource: StoredResource) -> None:
        await super().unpublish_resource(resource)
        try:
            await self.adapter.delete_dir(_join(self.base_path, resource.sha1))
        except StorageError as e:
            logger.debug(f"Kept directory {resource.sha1} in {self.name}: {e}")
