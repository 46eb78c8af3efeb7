"""Akamai NetStorage adapter using the NetStorage HTTP API."""

import base64
import hashlib
import hmac
import logging
import random
import time
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Any, Generator
from urllib.parse import quote

import httpx

from akamai_netstorage.storage.base import FileInfo, StorageAdapter
from akamai_netstorage.storage.exceptions import (
    StorageAuthError,
    StorageConnectionError,
    StorageError,
    StorageNotFoundError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

ACTION_HEADER = "X-Akamai-ACS-Action"
AUTH_DATA_HEADER = "X-Akamai-ACS-Auth-Data"
AUTH_SIGN_HEADER = "X-Akamai-ACS-Auth-Sign"

# Signature version 5 is HMAC-SHA256
SIGNATURE_VERSION = 5


def encode_path(path: str) -> str:
    """Percent-encode every ``/``-delimited segment of a path."""
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


def repair_name(segment: str) -> str:
    """Undo the Latin-1 reading of a UTF-8 name ("cafÃ©" -> "café").

    Segments that are not double-encoded are returned unchanged.
    """
    try:
        return segment.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return segment


def _action(name: str, **params: str) -> str:
    parts = [("version", "1"), ("action", name), *params.items()]
    return "&".join(f"{k.replace('_', '-')}={v}" for k, v in parts)


class NetStorageAuth(httpx.Auth):
    """Signs every request with the NetStorage ACS auth headers."""

    def __init__(self, key: str, key_name: str):
        self.key = key or ""
        self.key_name = key_name or ""

    def sign(self, path: str, action: str, timestamp: int, unique_id: int) -> tuple[str, str]:
        """Return the (auth data, signature) header pair for a request."""
        auth_data = (
            f"{SIGNATURE_VERSION}, 0.0.0.0, 0.0.0.0, {timestamp}, {unique_id}, {self.key_name}"
        )
        sign_string = f"{path}\nx-akamai-acs-action:{action}\n"
        digest = hmac.new(
            self.key.encode("utf-8"),
            (auth_data + sign_string).encode("utf-8"),
            hashlib.sha256,
        ).digest()
        return auth_data, base64.b64encode(digest).decode("ascii")

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        action = request.headers.get(ACTION_HEADER, "")
        auth_data, signature = self.sign(
            path, action, int(time.time()), random.getrandbits(32)
        )
        request.headers[AUTH_DATA_HEADER] = auth_data
        request.headers[AUTH_SIGN_HEADER] = signature
        yield request


class NetStorageClient:
    """Signed HTTP client for a NetStorage upload domain.

    Holds no connection state: every request opens its own ``httpx.AsyncClient``
    and is signed independently.
    """

    def __init__(
        self,
        host: str,
        key: str,
        key_name: str,
        use_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        host = (host or "").strip().rstrip("/")
        if not host:
            raise StorageConnectionError("NetStorage host is not configured")
        if "://" not in host:
            host = f"{'https' if use_ssl else 'http'}://{host}"
        self.base_url = host
        self.auth = NetStorageAuth(key, key_name)
        self._transport = transport

    async def request(
        self,
        method: str,
        path: str,
        action: str,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send one signed request. ``path`` must already be URL-encoded."""
        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=self.auth,
            transport=self._transport,
        ) as client:
            try:
                return await client.request(
                    method,
                    path,
                    headers={ACTION_HEADER: action},
                    content=content,
                )
            except httpx.HTTPError as e:
                raise StorageUnavailableError(f"NetStorage request failed: {e}") from e


class NetStorageAdapter(StorageAdapter):
    """Filesystem view of one NetStorage CP code.

    Paths are relative to the CP code root, e.g. ``root/storage/file.txt``.
    """

    def __init__(self, config: dict[str, Any], client: NetStorageClient | None = None):
        """
        Initialize NetStorage adapter.

        Args:
            config: Configuration containing:
                - cp_code: CP code every path is rooted at
                - host, key, key_name: used to build a client when none is given
                - use_ssl: Optional scheme selection for hosts without one
            client: Pre-built signed client.
        """
        self.cp_code = str(config.get("cp_code") or "").strip("/")
        if not self.cp_code:
            raise StorageConnectionError("NetStorage cp_code is not configured")

        if client is None:
            client = NetStorageClient(
                config.get("host", ""),
                config.get("key", ""),
                config.get("key_name", ""),
                use_ssl=config.get("use_ssl", True),
            )
        self.client = client

    def _build_path(self, path: str, encoded: bool = False) -> str:
        """Build the request path below the CP code."""
        path = path.strip("/")
        if path and not encoded:
            path = encode_path(path)
        return f"/{self.cp_code}/{path}" if path else f"/{self.cp_code}"

    def _check(self, response: httpx.Response, path: str, what: str) -> None:
        """Raise the matching storage error for a non-2xx response."""
        if response.is_success:
            return
        status = response.status_code
        if status in (401, 403):
            raise StorageAuthError(f"Failed to {what} {path}: {status} {response.text}")
        if status == 404:
            raise StorageNotFoundError(f"Not found: {path}")
        raise StorageConnectionError(f"Failed to {what} {path}: {status} {response.text}")

    def _parse_entries(self, response: httpx.Response, path: str) -> list[ET.Element]:
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise StorageConnectionError(f"Malformed NetStorage response for {path}: {e}")
        return root.findall("file")

    def _to_file_info(self, entry: ET.Element, path: str) -> FileInfo:
        mtime = entry.get("mtime")
        return FileInfo(
            name=entry.get("name", ""),
            path=path,
            size=int(entry.get("size") or 0),
            is_directory=entry.get("type") == "dir",
            modified_at=datetime.fromtimestamp(int(mtime)) if mtime else None,
        )

    async def _call(
        self,
        method: str,
        path: str,
        action: str,
        what: str,
        content: bytes | None = None,
        encoded: bool = False,
    ) -> httpx.Response:
        try:
            response = await self.client.request(
                method, self._build_path(path, encoded=encoded), action, content=content
            )
            self._check(response, path, what)
            return response
        except StorageNotFoundError:
            raise
        except StorageAuthError as e:
            logger.error(f"NetStorage authentication failed for {path}: {e}")
            raise
        except StorageError as e:
            logger.error(f"NetStorage {what} failed for {path}: {e}")
            raise

    async def test_connection(self) -> bool:
        """Stat the CP code root."""
        await self.get_metadata("")
        return True

    async def get_metadata(self, path: str) -> FileInfo:
        """Stat a file or directory."""
        response = await self._call("GET", path, _action("stat", format="xml"), "stat")
        entries = self._parse_entries(response, path)
        if not entries:
            raise StorageNotFoundError(f"Not found: {path}")
        return self._to_file_info(entries[0], path)

    async def get_file_info(self, path: str) -> FileInfo:
        return await self.get_metadata(path)

    async def list_contents(self, path: str = "", recursive: bool = False) -> list[FileInfo]:
        """List a directory, descending into subdirectories when recursive.

        Entry paths keep names as NetStorage reports them. Descent requests
        use the repaired names, since the double-encoded ones don't exist.
        """
        return await self._list(path, path.strip("/"), recursive)

    async def _list(self, path: str, base: str, recursive: bool) -> list[FileInfo]:
        response = await self._call("GET", path, _action("dir", format="xml"), "list")
        request_base = path.strip("/")
        files = []
        for entry in self._parse_entries(response, path):
            name = entry.get("name", "")
            info = self._to_file_info(entry, f"{base}/{name}" if base else name)
            if recursive and info.is_directory:
                child = repair_name(name)
                info.children = await self._list(
                    f"{request_base}/{child}" if request_base else child, info.path, True
                )
            files.append(info)
        return files

    async def list_files(self, path: str = "") -> list[FileInfo]:
        return await self.list_contents(path)

    async def read_file(self, path: str) -> bytes:
        response = await self._call("GET", path, _action("download"), "download")
        return response.content

    async def write_file(self, path: str, data: bytes) -> None:
        """Upload a file. NetStorage creates missing parent directories."""
        action = _action(
            "upload", upload_type="binary", sha1=hashlib.sha1(data).hexdigest()
        )
        await self._call("PUT", path, action, "upload", content=data)

    async def delete(self, path: str) -> None:
        """Delete a file. ``path`` is expected to be URL-encoded already."""
        await self._call("POST", path, _action("delete"), "delete", encoded=True)

    async def delete_file(self, path: str) -> None:
        await self.delete(encode_path(path))

    async def delete_dir(self, path: str) -> None:
        """Remove an empty directory."""
        await self._call("POST", path, _action("rmdir"), "rmdir")

    async def exists(self, path: str) -> bool:
        try:
            await self.get_metadata(path)
        except StorageNotFoundError:
            return False
        return True

    async def ensure_directory(self, path: str) -> None:
        """Create each missing directory along path."""
        current = ""
        for segment in [s for s in path.strip("/").split("/") if s]:
            current = f"{current}/{segment}" if current else segment
            if not await self.exists(current):
                await self._call("POST", current, _action("mkdir"), "mkdir")
