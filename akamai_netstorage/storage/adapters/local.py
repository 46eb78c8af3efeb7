# akamai_netstorage/storage/adapters/local.py
"""Local filesystem storage adapter, used by non-Akamai resource backends."""

import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from akamai_netstorage.storage.base import StorageAdapter, FileInfo
from akamai_netstorage.storage.exceptions import (
    StorageNotFoundError,
    StoragePermissionError,
    StorageUnavailableError,
)


class LocalAdapter(StorageAdapter):
    """Storage adapter rooted at a local directory."""

    def __init__(self, config: dict[str, Any]):
        """Initialize with config containing 'path'."""
        self.base_path = Path(config["path"])

    def _resolve_path(self, path: str) -> Path:
        """Resolve a relative path below the base path, refusing traversal."""
        if not path:
            return self.base_path
        resolved = (self.base_path / path.lstrip("/")).resolve()
        if not resolved.is_relative_to(self.base_path.resolve()):
            raise StoragePermissionError(f"Path traversal not allowed: {path}")
        return resolved

    def _info(self, item: Path, path: str) -> FileInfo:
        stat = item.stat()
        is_file = item.is_file()
        return FileInfo(
            name=item.name,
            path=path,
            size=stat.st_size if is_file else 0,
            is_directory=item.is_dir(),
            modified_at=datetime.fromtimestamp(stat.st_mtime),
            mime_type=mimetypes.guess_type(str(item))[0] if is_file else None,
        )

    async def test_connection(self) -> bool:
        """Verify the base path is an existing, writable directory."""
        if not self.base_path.is_dir():
            raise StorageUnavailableError(f"Not a directory: {self.base_path}")
        marker = self.base_path / ".write_test"
        try:
            marker.touch()
            marker.unlink()
        except PermissionError:
            raise StoragePermissionError(f"Cannot write to: {self.base_path}")
        return True

    async def list_files(self, path: str = "") -> list[FileInfo]:
        dir_path = self._resolve_path(path)
        if not dir_path.is_dir():
            raise StorageNotFoundError(f"Directory not found: {path}")
        return [
            self._info(item, str(item.relative_to(self.base_path)))
            for item in sorted(dir_path.iterdir())
        ]

    async def read_file(self, path: str) -> bytes:
        file_path = self._resolve_path(path)
        if not file_path.is_file():
            raise StorageNotFoundError(f"File not found: {path}")
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def write_file(self, path: str, data: bytes) -> None:
        file_path = self._resolve_path(path)
        await aiofiles.os.makedirs(file_path.parent, exist_ok=True)
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(data)

    async def delete_file(self, path: str) -> None:
        file_path = self._resolve_path(path)
        if not file_path.is_file():
            raise StorageNotFoundError(f"File not found: {path}")
        await aiofiles.os.remove(file_path)

    async def delete_directory(self, path: str) -> None:
        """Remove an empty directory."""
        dir_path = self._resolve_path(path)
        if not dir_path.is_dir():
            raise StorageNotFoundError(f"Directory not found: {path}")
        await aiofiles.os.rmdir(dir_path)

    async def exists(self, path: str) -> bool:
        return self._resolve_path(path).exists()

    async def get_file_info(self, path: str) -> FileInfo:
        file_path = self._resolve_path(path)
        if not file_path.exists():
            raise StorageNotFoundError(f"File not found: {path}")
        return self._info(file_path, path)

    async def ensure_directory(self, path: str) -> None:
        await aiofiles.os.makedirs(self._resolve_path(path), exist_ok=True)
