"""Tests for HttpResourceFetcher using httpx.MockTransport."""

from __future__ import annotations

import asyncio
from io import BytesIO

import httpx
import pytest
from PIL import Image

from memefeed.errors import FetchErrorKind, ResourceFetchError
from memefeed.infrastructure.services.http_fetcher import HttpResourceFetcher


def _png_bytes(size=(4, 3), colour=(255, 0, 0)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, colour).save(buffer, format="PNG")
    return buffer.getvalue()


def _fetch(handler, url: str):
    async def scenario():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
        async with client:
            fetcher = HttpResourceFetcher(client)
            return await fetcher.fetch(url)

    return asyncio.run(scenario())


def test_fetch_decodes_png():
    payload = _png_bytes()

    image = _fetch(lambda request: httpx.Response(200, content=payload), "https://memes.example/a.png")

    assert image.size == (4, 3)


def test_fetch_follows_redirects():
    payload = _png_bytes(size=(2, 2))

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old.png":
            return httpx.Response(302, headers={"Location": "https://memes.example/new.png"})
        return httpx.Response(200, content=payload)

    image = _fetch(handler, "https://memes.example/old.png")

    assert image.size == (2, 2)


def test_http_error_maps_to_protocol():
    with pytest.raises(ResourceFetchError) as excinfo:
        _fetch(lambda request: httpx.Response(404), "https://memes.example/missing.png")

    assert excinfo.value.kind is FetchErrorKind.PROTOCOL
    assert "HTTP 404" in str(excinfo.value)
    assert excinfo.value.url == "https://memes.example/missing.png"


def test_transport_error_maps_to_connection():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ResourceFetchError) as excinfo:
        _fetch(handler, "https://memes.example/a.png")

    assert excinfo.value.kind is FetchErrorKind.CONNECTION


def test_empty_body_maps_to_empty_payload():
    with pytest.raises(ResourceFetchError) as excinfo:
        _fetch(lambda request: httpx.Response(200, content=b""), "https://memes.example/a.png")

    assert excinfo.value.kind is FetchErrorKind.EMPTY_PAYLOAD


def test_undecodable_body_maps_to_empty_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not an image</html>", headers={"Content-Type": "text/html"})

    with pytest.raises(ResourceFetchError) as excinfo:
        _fetch(handler, "https://memes.example/a.png")

    assert excinfo.value.kind is FetchErrorKind.EMPTY_PAYLOAD
    assert "text/html" in str(excinfo.value)


def test_owned_client_is_closed_on_exit():
    async def scenario():
        async with HttpResourceFetcher() as fetcher:
            client = fetcher._client
        return client

    client = asyncio.run(scenario())
    assert client.is_closed


def test_borrowed_client_is_left_open():
    async def scenario():
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        async with HttpResourceFetcher(client):
            pass
        still_open = not client.is_closed
        await client.aclose()
        return still_open

    assert asyncio.run(scenario()) is True
