"""Tests for the HTTP surface."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from aiohttp.test_utils import TestClient, TestServer
from fakes import ScriptedModel, text_reply

from jeff.server import ChatServer, create_web_app

REPLY = json.dumps({"message": "Hi! I'm Jeff.", "link": None})


async def _make_client(app):
    """Create a TestClient for the chat app."""
    server = TestServer(app)
    client = TestClient(server)
    await client.start_server()
    return client


@pytest.fixture
def model() -> ScriptedModel:
    return ScriptedModel(text_reply(REPLY))


@pytest.fixture
async def client(make_pipeline, model: ScriptedModel):
    client = await _make_client(create_web_app(make_pipeline(model)))
    yield client
    await client.close()


async def test_health_check(client) -> None:
    resp = await client.get("/api/health")
    assert resp.status == 200
    data = await resp.json()
    assert data["status"] == "ok"


async def test_chat_success(client) -> None:
    resp = await client.post("/api/chat", json={"message": "hello"})
    assert resp.status == 200
    assert await resp.json() == {"message": "Hi! I'm Jeff.", "link": None}


async def test_chat_invalid_json(client, model: ScriptedModel) -> None:
    resp = await client.post(
        "/api/chat", data="{nope", headers={"Content-Type": "application/json"}
    )
    assert resp.status == 400
    data = await resp.json()
    assert data["link"] is None
    assert data["error"] == "Invalid JSON body"
    assert model.calls == []


async def test_chat_missing_message(client) -> None:
    resp = await client.post("/api/chat", json={"conversationHistory": []})
    assert resp.status == 400
    assert (await resp.json())["error"] == "Message is required"


async def test_cache_stats_endpoint(client, model: ScriptedModel) -> None:
    await client.post("/api/chat", json={"message": "hello"})
    await client.post("/api/chat", json={"message": "hello"})

    resp = await client.get("/api/cache/stats")
    assert resp.status == 200
    stats = await resp.json()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["saves"] == 1
    assert stats["count"] == 1
    assert len(model.calls) == 1


async def test_cache_stats_is_read_only(client) -> None:
    resp = await client.post("/api/cache/stats", json={})
    assert resp.status == 405


async def test_rate_limited_over_http(make_pipeline) -> None:
    pipeline = make_pipeline(ScriptedModel(text_reply(REPLY)), max_requests=1)
    client = await _make_client(create_web_app(pipeline))
    try:
        first = await client.post("/api/chat", json={"message": "a"})
        second = await client.post("/api/chat", json={"message": "b"})
        assert first.status == 200
        assert second.status == 429
        assert (await second.json())["error"] == "Rate limit exceeded"
    finally:
        await client.close()


async def test_server_stop_without_start_is_noop(make_pipeline) -> None:
    server = ChatServer(make_pipeline(ScriptedModel(text_reply(REPLY))), port=0)
    await server.stop()


async def test_failed_bind_starts_no_sweeps(make_pipeline) -> None:
    server = ChatServer(make_pipeline(ScriptedModel(text_reply(REPLY))), port=0)

    with patch("jeff.server.web.TCPSite") as mock_site_cls:
        mock_site_cls.return_value.start = AsyncMock(side_effect=OSError("address in use"))
        with pytest.raises(OSError, match="address in use"):
            await server.start()

    assert server._tasks == []
    await server.stop()
    assert server._runner is None
