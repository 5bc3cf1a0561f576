"""
Tests for the Cloudinary client, using httpx.MockTransport instead of the network.
"""

import asyncio
import hashlib
from urllib.parse import parse_qs

import httpx
import pytest

from utils.asset_host import UPLOAD_TRANSFORMATION, CloudinaryClient, sign_params
from utils.errors import UploadError

UPLOAD_RESPONSE = {
    "public_id": "gallery/abc123",
    "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/gallery/abc123.jpg",
    "format": "jpg",
    "bytes": 48213,
    "width": 800,
    "height": 533,
}


def run_with(handler, action):
    async def scenario():
        client = CloudinaryClient("demo", "key", "api-secret", transport=httpx.MockTransport(handler))
        try:
            return await action(client)
        finally:
            await client.aclose()

    return asyncio.run(scenario())


def test_sign_params_sorts_and_appends_secret():
    expected = hashlib.sha1(b"folder=gallery&timestamp=1700000000&transformation=c_limit" + b"shh").hexdigest()

    signature = sign_params(
        {"transformation": "c_limit", "timestamp": 1700000000, "folder": "gallery"},
        "shh",
    )

    assert signature == expected


def test_sign_params_skips_empty_values():
    assert sign_params({"public_id": "a", "folder": ""}, "s") == sign_params({"public_id": "a"}, "s")


def test_upload_returns_host_descriptor():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=UPLOAD_RESPONSE)

    descriptor = run_with(handler, lambda client: client.upload(b"\x89PNG...", "a.png", "image/png"))

    assert descriptor.public_id == "gallery/abc123"
    assert descriptor.secure_url == UPLOAD_RESPONSE["secure_url"]
    assert (descriptor.format, descriptor.bytes, descriptor.width, descriptor.height) == ("jpg", 48213, 800, 533)

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1_1/demo/image/upload"
    body = request.read()
    assert UPLOAD_TRANSFORMATION.encode() in body
    assert b'name="signature"' in body
    assert b'name="api_key"' in body
    assert b"api-secret" not in body


def test_upload_host_error_raises_upload_error():
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "Invalid api_key"}})

    with pytest.raises(UploadError):
        run_with(handler, lambda client: client.upload(b"data"))


def test_upload_transport_error_raises_upload_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UploadError):
        run_with(handler, lambda client: client.upload(b"data"))


def test_upload_incomplete_descriptor_raises_upload_error():
    def handler(request):
        return httpx.Response(200, json={"public_id": "gallery/abc123"})

    with pytest.raises(UploadError):
        run_with(handler, lambda client: client.upload(b"data"))


def test_delete_sends_signed_public_id():
    seen = []

    def handler(request):
        seen.append(parse_qs(request.read().decode()))
        return httpx.Response(200, json={"result": "ok"})

    assert run_with(handler, lambda client: client.delete_by_reference("gallery/abc123")) is True

    form = {key: values[0] for key, values in seen[0].items()}
    assert form["public_id"] == "gallery/abc123"
    assert form["api_key"] == "key"
    expected = sign_params({"public_id": "gallery/abc123", "timestamp": form["timestamp"]}, "api-secret")
    assert form["signature"] == expected


def test_delete_of_missing_asset_counts_as_deleted():
    def handler(request):
        return httpx.Response(200, json={"result": "not found"})

    assert run_with(handler, lambda client: client.delete_by_reference("gone")) is True


def test_delete_failure_raises_upload_error():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(UploadError):
        run_with(handler, lambda client: client.delete_by_reference("gallery/abc123"))


def test_ping_reports_reachability():
    def healthy(request):
        assert request.headers["authorization"].startswith("Basic ")
        return httpx.Response(200, json={"status": "ok"})

    def broken(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    assert run_with(healthy, lambda client: client.ping()) is True
    assert run_with(broken, lambda client: client.ping()) is False
