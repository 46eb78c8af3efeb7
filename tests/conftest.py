"""Pytest configuration and fixtures."""

from urllib.parse import parse_qsl
from xml.sax.saxutils import quoteattr

import httpx
import pytest

from akamai_netstorage.connector import Connector
from akamai_netstorage.storage.adapters.netstorage import (
    ACTION_HEADER,
    AUTH_DATA_HEADER,
    AUTH_SIGN_HEADER,
)

CP_CODE = "123456"


class FakeNetStorage:
    """In-memory NetStorage upload domain served through httpx.MockTransport.

    Paths are kept decoded and rooted at the CP code, e.g. ``/123456/root/a.txt``.
    """

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.dirs: set[str] = {f"/{CP_CODE}"}
        self.requests: list[tuple[str, str, str]] = []
        self.status_override: int | None = None
        # Report names as UTF-8 bytes read as Latin-1, like the live service
        self.garble_names = False

    def add_dir(self, path: str) -> None:
        parts = path.strip("/").split("/")
        for i in range(1, len(parts) + 1):
            self.dirs.add("/" + "/".join(parts[:i]))

    def add_file(self, path: str, data: bytes = b"data") -> None:
        self.add_dir(path.rsplit("/", 1)[0])
        self.files[path] = data

    def _children(self, path: str) -> list[str]:
        prefix = path.rstrip("/") + "/"
        return sorted(
            p for p in [*self.dirs, *self.files]
            if p.startswith(prefix) and "/" not in p[len(prefix):]
        )

    def _entry(self, path: str) -> str:
        name = path.rsplit("/", 1)[-1]
        if self.garble_names:
            name = name.encode("utf-8").decode("latin-1")
        name = quoteattr(name)
        if path in self.dirs:
            return f'<file type="dir" name={name} mtime="1700000000"/>'
        size = len(self.files[path])
        return f'<file type="file" name={name} size="{size}" mtime="1700000000"/>'

    def _xml(self, directory: str, paths: list[str]) -> bytes:
        entries = "".join(self._entry(p) for p in paths)
        return f'<?xml version="1.0" encoding="UTF-8"?><stat directory={quoteattr(directory)}>{entries}</stat>'.encode()

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.rstrip("/")
        params = dict(parse_qsl(request.headers.get(ACTION_HEADER, "")))
        action = params.get("action", "")
        self.requests.append((request.method, action, request.url.raw_path.decode("ascii")))

        if AUTH_DATA_HEADER not in request.headers or AUTH_SIGN_HEADER not in request.headers:
            return httpx.Response(403, text="unsigned")
        if self.status_override is not None:
            return httpx.Response(self.status_override, text="override")

        exists = path in self.dirs or path in self.files
        if action == "stat":
            if not exists:
                return httpx.Response(404)
            return httpx.Response(200, content=self._xml(path.rsplit("/", 1)[0], [path]))
        if action == "dir":
            if path not in self.dirs:
                return httpx.Response(404)
            return httpx.Response(200, content=self._xml(path, self._children(path)))
        if action == "download":
            if path not in self.files:
                return httpx.Response(404)
            return httpx.Response(200, content=self.files[path])
        if action == "upload":
            self.add_file(path, request.content)
            return httpx.Response(200)
        if action == "delete":
            if path not in self.files:
                return httpx.Response(404)
            del self.files[path]
            return httpx.Response(200)
        if action == "rmdir":
            if path not in self.dirs:
                return httpx.Response(404)
            if self._children(path):
                return httpx.Response(409, text="directory not empty")
            self.dirs.discard(path)
            return httpx.Response(200)
        if action == "mkdir":
            self.add_dir(path)
            return httpx.Response(200)
        return httpx.Response(400, text=f"unsupported action {action}")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def fake_netstorage() -> FakeNetStorage:
    """Empty NetStorage CP code."""
    return FakeNetStorage()


@pytest.fixture
def connector_options() -> dict:
    return {
        "host": "example-nsu.akamaihd.net",
        "staticHost": "https://static.example.com",
        "cpCode": CP_CODE,
        "restrictedDirectory": "root",
        "workingDirectory": "storage",
        "key": "secret-key",
        "keyName": "upload-account",
    }


@pytest.fixture
def connector(connector_options, fake_netstorage) -> Connector:
    """Connector talking to the fake NetStorage."""
    return Connector(connector_options, "test", transport=fake_netstorage.transport())
