"""Raw ASGI middleware: request timeout and request id."""

import asyncio

from httpx import ASGITransport, AsyncClient

from tasksearch.middleware import RequestIDMiddleware, TimeoutMiddleware


async def _ok_app(scope, receive, send) -> None:
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"ok"})


async def _slow_app(scope, receive, send) -> None:
    await asyncio.sleep(5)
    await _ok_app(scope, receive, send)


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def test_slow_request_gets_504() -> None:
    async with _client(TimeoutMiddleware(_slow_app, timeout_seconds=0.05)) as client:
        response = await client.get("/slow")
    assert response.status_code == 504
    body = response.json()
    assert body["error"] == "GATEWAY_TIMEOUT"
    assert body["details"] == {"timeout_seconds": 0.05}


async def test_fast_request_passes_through() -> None:
    async with _client(TimeoutMiddleware(_ok_app, timeout_seconds=1)) as client:
        response = await client.get("/")
    assert response.status_code == 200
    assert response.text == "ok"


async def test_request_id_generated_when_missing() -> None:
    async with _client(RequestIDMiddleware(_ok_app)) as client:
        response = await client.get("/")
    assert len(response.headers["x-request-id"]) == 36


async def test_unsafe_request_id_is_replaced() -> None:
    async with _client(RequestIDMiddleware(_ok_app, header_name="X-Trace")) as client:
        response = await client.get("/", headers={"X-Trace": "a" * 100})
    assert response.headers["x-trace"] != "a" * 100
