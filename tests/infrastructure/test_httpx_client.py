from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from application.exceptions import DispatchTimeoutError, TransportError
from application.ports.http_client import OutboundRequest
from domain.http_method import HttpMethod
from infrastructure.http.httpx_client import HttpxAsyncClient


def _send(handler, request: OutboundRequest, **kwargs):
    async def scenario():
        client = HttpxAsyncClient(transport=httpx.MockTransport(handler), **kwargs)
        try:
            return await client.send(request)
        finally:
            await client.aclose()

    return asyncio.run(scenario())


def test_send_maps_response_fields() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["headers"] = dict(request.headers)
        seen["body"] = request.content
        return httpx.Response(201, json={"id": 1})

    response = _send(
        handler,
        OutboundRequest(
            method=HttpMethod.POST,
            url="https://api.test/items",
            headers={"Content-Type": "application/json"},
            content='{"a": 1}',
        ),
        base_headers={"User-Agent": "reqflow-test"},
    )

    assert seen["method"] == "POST"
    assert seen["headers"]["user-agent"] == "reqflow-test"
    assert seen["body"] == b'{"a": 1}'
    assert response.status == 201
    assert response.reason == "Created"
    assert response.headers["content-type"] == "application/json"
    assert json.loads(response.text) == {"id": 1}


def test_http_error_status_is_returned() -> None:
    response = _send(
        lambda request: httpx.Response(404, text="nope"),
        OutboundRequest(method=HttpMethod.GET, url="https://api.test/missing"),
    )

    assert response.status == 404
    assert response.content == b"nope"


def test_multipart_parts_are_sent_as_form_data() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.content
        return httpx.Response(200)

    _send(
        handler,
        OutboundRequest(
            method=HttpMethod.POST,
            url="https://api.test/upload",
            files=[("title", (None, "Q1")), ("file", ("a.txt", b"hello"))],
        ),
    )

    assert seen["content_type"].startswith("multipart/form-data; boundary=")
    assert b'name="title"' in seen["body"]
    assert b'filename="a.txt"' in seen["body"]
    assert b"hello" in seen["body"]


def test_connect_error_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError, match="Connection error: refused"):
        _send(handler, OutboundRequest(method=HttpMethod.GET, url="https://down.test"))


def test_transport_timeout_becomes_timeout_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(DispatchTimeoutError):
        _send(handler, OutboundRequest(method=HttpMethod.GET, url="https://slow.test"))
