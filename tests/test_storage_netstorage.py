"""Tests for the NetStorage storage adapter."""

import base64
import hashlib
import hmac
from urllib.parse import parse_qsl

import httpx
import pytest

from akamai_netstorage.storage.adapters.netstorage import (
    ACTION_HEADER,
    AUTH_DATA_HEADER,
    AUTH_SIGN_HEADER,
    NetStorageAdapter,
    NetStorageAuth,
    NetStorageClient,
    encode_path,
    repair_name,
)
from akamai_netstorage.storage.exceptions import (
    StorageAuthError,
    StorageConnectionError,
    StorageNotFoundError,
    StorageUnavailableError,
)


@pytest.fixture
def adapter(fake_netstorage):
    client = NetStorageClient(
        "example-nsu.akamaihd.net", "secret-key", "upload-account",
        transport=fake_netstorage.transport(),
    )
    return NetStorageAdapter({"cp_code": "123456"}, client=client)


def test_encode_path_encodes_segments():
    assert encode_path("root/a b/café.txt") == "root/a%20b/caf%C3%A9.txt"


def test_sign_matches_hmac_sha256():
    auth = NetStorageAuth("secret-key", "upload-account")
    auth_data, signature = auth.sign("/123456/root", "version=1&action=stat&format=xml", 1700000000, 42)

    assert auth_data == "5, 0.0.0.0, 0.0.0.0, 1700000000, 42, upload-account"
    expected = hmac.new(
        b"secret-key",
        (auth_data + "/123456/root\nx-akamai-acs-action:version=1&action=stat&format=xml\n").encode(),
        hashlib.sha256,
    ).digest()
    assert signature == base64.b64encode(expected).decode()


@pytest.mark.asyncio
async def test_requests_are_signed_per_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    client = NetStorageClient("example-nsu.akamaihd.net", "k", "name", transport=httpx.MockTransport(handler))
    await client.request("POST", "/123/a", "version=1&action=delete")
    await client.request("POST", "/123/b", "version=1&action=delete")

    assert str(seen[0].url) == "https://example-nsu.akamaihd.net/123/a"
    for request in seen:
        assert request.headers[ACTION_HEADER] == "version=1&action=delete"
        auth_data = request.headers[AUTH_DATA_HEADER]
        assert auth_data.endswith(", name")
        expected = hmac.new(
            b"k",
            (auth_data + request.url.raw_path.decode() + "\nx-akamai-acs-action:version=1&action=delete\n").encode(),
            hashlib.sha256,
        ).digest()
        assert request.headers[AUTH_SIGN_HEADER] == base64.b64encode(expected).decode()


def test_client_requires_host():
    with pytest.raises(StorageConnectionError):
        NetStorageClient("", "k", "name")


def test_client_keeps_explicit_scheme():
    assert NetStorageClient("http://localhost:8080/", "k", "n").base_url == "http://localhost:8080"
    assert NetStorageClient("host", "k", "n", use_ssl=False).base_url == "http://host"


def test_adapter_requires_cp_code():
    with pytest.raises(StorageConnectionError):
        NetStorageAdapter({"host": "h"})


@pytest.mark.asyncio
async def test_test_connection(adapter, fake_netstorage):
    assert await adapter.test_connection() is True
    assert fake_netstorage.requests[0] == ("GET", "stat", "/123456")


@pytest.mark.asyncio
async def test_write_read_and_metadata(adapter, fake_netstorage):
    await adapter.write_file("root/docs/report.pdf", b"%PDF")

    method, action, path = fake_netstorage.requests[-1]
    assert (method, action, path) == ("PUT", "upload", "/123456/root/docs/report.pdf")
    assert await adapter.read_file("root/docs/report.pdf") == b"%PDF"

    info = await adapter.get_metadata("root/docs/report.pdf")
    assert info.name == "report.pdf"
    assert info.size == 4
    assert info.is_directory is False
    assert info.modified_at is not None


@pytest.mark.asyncio
async def test_upload_action_carries_sha1():
    actions = []

    def handler(request: httpx.Request) -> httpx.Response:
        actions.append(dict(parse_qsl(request.headers[ACTION_HEADER])))
        return httpx.Response(200)

    client = NetStorageClient("h", "k", "n", transport=httpx.MockTransport(handler))
    await NetStorageAdapter({"cp_code": "1"}, client=client).write_file("a.txt", b"abc")

    assert actions == [{
        "version": "1",
        "action": "upload",
        "upload-type": "binary",
        "sha1": hashlib.sha1(b"abc").hexdigest(),
    }]


@pytest.mark.asyncio
async def test_list_files_is_not_recursive(adapter, fake_netstorage):
    fake_netstorage.add_file("/123456/root/a.txt")
    fake_netstorage.add_file("/123456/root/sub/b.txt")

    files = await adapter.list_files("root")

    assert [(f.path, f.is_directory, f.children) for f in files] == [
        ("root/a.txt", False, None),
        ("root/sub", True, None),
    ]


@pytest.mark.asyncio
async def test_missing_paths(adapter):
    assert await adapter.exists("nope") is False
    with pytest.raises(StorageNotFoundError):
        await adapter.read_file("nope.txt")
    with pytest.raises(StorageNotFoundError):
        await adapter.list_contents("nope", recursive=True)


@pytest.mark.asyncio
async def test_delete_and_delete_dir(adapter, fake_netstorage):
    fake_netstorage.add_file("/123456/root/dir/a b.txt")

    with pytest.raises(StorageConnectionError):
        await adapter.delete_dir("root/dir")

    await adapter.delete_file("root/dir/a b.txt")
    await adapter.delete_dir("root/dir")

    assert fake_netstorage.files == {}
    assert "/123456/root/dir" not in fake_netstorage.dirs
    assert ("POST", "delete", "/123456/root/dir/a%20b.txt") in fake_netstorage.requests


@pytest.mark.asyncio
async def test_delete_uses_encoded_path_as_given(adapter, fake_netstorage):
    fake_netstorage.add_file("/123456/root/ü.txt")

    await adapter.delete("root/%C3%BC.txt")

    assert fake_netstorage.files == {}
    assert fake_netstorage.requests[-1] == ("POST", "delete", "/123456/root/%C3%BC.txt")


@pytest.mark.asyncio
async def test_ensure_directory_creates_missing_levels(adapter, fake_netstorage):
    fake_netstorage.add_dir("/123456/root")

    await adapter.ensure_directory("root/a/b")

    assert {"/123456/root/a", "/123456/root/a/b"} <= fake_netstorage.dirs
    assert [r for r in fake_netstorage.requests if r[1] == "mkdir"] == [
        ("POST", "mkdir", "/123456/root/a"),
        ("POST", "mkdir", "/123456/root/a/b"),
    ]


@pytest.mark.asyncio
async def test_stream_file(adapter, fake_netstorage):
    fake_netstorage.add_file("/123456/big.bin", b"x" * 10)

    chunks = [chunk async for chunk in adapter.stream_file("big.bin", chunk_size=4)]

    assert chunks == [b"xxxx", b"xxxx", b"xx"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error",
    [
        (401, StorageAuthError),
        (403, StorageAuthError),
        (404, StorageNotFoundError),
        (500, StorageConnectionError),
    ],
)
async def test_status_mapping(adapter, fake_netstorage, status, error):
    fake_netstorage.status_override = status
    with pytest.raises(error):
        await adapter.get_metadata("root")


@pytest.mark.asyncio
async def test_malformed_listing():
    client = NetStorageClient(
        "h", "k", "n", transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b"<stat"))
    )
    with pytest.raises(StorageConnectionError, match="Malformed"):
        await NetStorageAdapter({"cp_code": "1"}, client=client).list_contents("root")


@pytest.mark.asyncio
async def test_transport_errors_become_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = NetStorageClient("h", "k", "n", transport=httpx.MockTransport(handler))
    with pytest.raises(StorageUnavailableError):
        await NetStorageAdapter({"cp_code": "1"}, client=client).test_connection()


def test_repair_name():
    assert repair_name("cafÃ©") == "café"
    assert repair_name("café") == "café"
    assert repair_name("plain.txt") == "plain.txt"


@pytest.mark.asyncio
async def test_recursive_listing_of_double_encoded_names(adapter, fake_netstorage):
    fake_netstorage.garble_names = True
    fake_netstorage.add_file("/123456/root/ärger/über/a.txt")

    listing = await adapter.list_contents("root", recursive=True)

    assert [f.path for f in listing] == ["root/Ã¤rger"]
    nested = listing[0].children[0]
    assert nested.path == "root/Ã¤rger/Ã¼ber"
    assert [f.path for f in nested.children] == ["root/Ã¤rger/Ã¼ber/a.txt"]
    assert [r[2] for r in fake_netstorage.requests if r[1] == "dir"] == [
        "/123456/root",
        "/123456/root/%C3%A4rger",
        "/123456/root/%C3%A4rger/%C3%BCber",
    ]


@pytest.mark.asyncio
async def test_auth_failures_are_logged(adapter, fake_netstorage, caplog):
    fake_netstorage.status_override = 403
    with pytest.raises(StorageAuthError):
        await adapter.get_metadata("root")

    records = [r for r in caplog.records if r.name.startswith("akamai_netstorage")]
    assert [r.levelname for r in records] == ["ERROR"]
    assert "authentication failed for root" in caplog.text


@pytest.mark.asyncio
async def test_missing_paths_are_not_logged(adapter, caplog):
    with pytest.raises(StorageNotFoundError):
        await adapter.get_metadata("nope")

    assert not [r for r in caplog.records if r.name.startswith("akamai_netstorage")]
