"""Akamai NetStorage connector shared by the Akamai storage and target backends."""

import logging
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, TextIO

import httpx

from akamai_netstorage.core.config import settings
from akamai_netstorage.storage.adapters.netstorage import (
    NetStorageAdapter,
    NetStorageClient,
    encode_path,
    repair_name,
)
from akamai_netstorage.storage.base import FileInfo
from akamai_netstorage.storage.exceptions import ConnectorConfigurationError

logger = logging.getLogger(__name__)

# Configuration option name -> ConnectorConfig field
OPTION_FIELDS = {
    "host": "host",
    "staticHost": "static_host",
    "cpCode": "cp_code",
    "restrictedDirectory": "restricted_directory",
    "workingDirectory": "working_directory",
    "key": "key",
    "keyName": "key_name",
}


@dataclass(frozen=True)
class ConnectorConfig:
    """NetStorage connection settings for one storage or target backend."""

    # API host, e.g. example-nsu.akamaihd.net
    host: str | None = None
    # Host serving the published files, e.g. static.example.com
    static_host: str | None = None
    # CP code of the storage group root directory
    cp_code: str | None = None
    # Sub-directory the key is restricted to
    restricted_directory: str | None = None
    # "storage" or "target"; storage and target must not share one
    working_directory: str | None = None
    key: str | None = None
    # Upload account id
    key_name: str | None = None


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of a single delete attempt."""

    path: str
    kind: str  # "dir" or "file"
    ok: bool
    error: Exception | None = None


def _str(value: Any) -> str:
    return "" if value is None else str(value)


class Connector:
    """Connects a resource backend to a directory on Akamai NetStorage."""

    def __init__(
        self,
        options: Mapping[str, Any] | None,
        name: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        values: dict[str, Any] = {}
        for key, value in (options or {}).items():
            field = OPTION_FIELDS.get(key)
            if field is not None:
                values[field] = value
            elif value is not None:
                raise ConnectorConfigurationError(
                    f'An unknown option "{key}" was specified in the configuration '
                    f"for akamai {name}. Please check your settings."
                )
        self.name = name
        self.config = ConnectorConfig(**values)
        self._transport = transport

    def restricted_directory(self) -> str:
        """Restricted directory, without host and CP code."""
        return _str(self.config.restricted_directory)

    def full_directory(self) -> str:
        """Restricted and working directory, without host and CP code."""
        return f"{self.restricted_directory()}/{_str(self.config.working_directory)}"

    def restricted_path(self) -> str:
        """Full path to the restricted directory."""
        return f"{_str(self.config.host)}/{_str(self.config.cp_code)}/{self.restricted_directory()}"

    def full_path(self) -> str:
        """Full path to the working directory."""
        return f"{_str(self.config.host)}/{_str(self.config.cp_code)}/{self.full_directory()}"

    def full_static_path(self) -> str:
        """Public location of the working directory on the static host."""
        return f"{_str(self.config.static_host)}/{self.full_directory()}"

    def _create_client(self) -> NetStorageClient:
        return NetStorageClient(
            _str(self.config.host),
            _str(self.config.key),
            _str(self.config.key_name),
            use_ssl=settings.USE_SSL,
            transport=self._transport,
        )

    def create_filesystem(self) -> NetStorageAdapter:
        """Filesystem abstraction over the CP code, backed by a signed client."""
        return NetStorageAdapter(
            {"cp_code": _str(self.config.cp_code)},
            client=self._create_client(),
        )

    async def test_connection(self) -> bool:
        await self.create_filesystem().get_metadata(self.restricted_directory())
        return True

    async def get_content_list(self) -> list[FileInfo]:
        """Recursive listing of the working directory."""
        return await self.create_filesystem().list_contents(
            self.full_directory(), recursive=True
        )

    @staticmethod
    def decode_akamai_path(path: str = "") -> str:
        """Repair path segments NetStorage returns double-encoded.

        Names come back as their UTF-8 bytes read as Latin-1 ("cafÃ©" for
        "café"); without the repair those files can't be found again.
        """
        return "/".join(repair_name(segment) for segment in path.split("/"))

    async def collect_all_paths(self) -> list[str]:
        """All paths below the working directory, deepest first.

        The working directory itself is the last entry.
        """
        paths: list[str] = []

        def walk(entries: list[FileInfo]) -> None:
            for entry in entries:
                # Prepending keeps every entry ahead of its ancestors
                paths.insert(0, self.decode_akamai_path(entry.path))
                if entry.children:
                    walk(entry.children)

        walk(await self.get_content_list())
        paths.append(self.full_directory())
        return paths

    async def remove_all_files(self, out: TextIO | None = None) -> list[DeleteResult]:
        """Remove every file and folder of the working directory, and the directory itself.

        Each path is tried as a directory and as a file; failures never stop
        the run. Only failed file deletes are reported to ``out``.
        """
        out = out or sys.stdout
        paths = await self.collect_all_paths()

        if not paths:
            out.write("   nothing to remove\n")
            return []

        results = []
        for current_path in paths:
            out.write(f"   removing-> {current_path}\n")
            filesystem = self.create_filesystem()

            dir_result = await _attempt(
                current_path, "dir", lambda: filesystem.delete_dir(current_path)
            )
            if not dir_result.ok:
                logger.debug(f"{current_path} was not removed as a directory: {dir_result.error}")

            file_result = await _attempt(
                current_path, "file", lambda: filesystem.delete(encode_path(current_path))
            )
            if not file_result.ok:
                logger.warning(f"{current_path} was not removed as a file: {file_result.error}")
                out.write(
                    f"exception when deleting a file for path {current_path}: {file_result.error}\n"
                )

            results.extend([dir_result, file_result])
        return results


async def _attempt(
    path: str, kind: str, operation: Callable[[], Awaitable[None]]
) -> DeleteResult:
    try:
        await operation()
    except Exception as e:
        return DeleteResult(path=path, kind=kind, ok=False, error=e)
    return DeleteResult(path=path, kind=kind, ok=True)
