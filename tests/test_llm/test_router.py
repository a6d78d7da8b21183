import pytest
from httpx import AsyncClient

from incidentlens.errors import RetryableServiceError
from incidentlens.llm import client as llm


@pytest.fixture
def fake_complete(monkeypatch):
    calls = []

    async def _complete(system_prompt, user_prompt, **kwargs):
        calls.append({"system": system_prompt, "user": user_prompt, **kwargs})
        return f"echo: {user_prompt}"

    monkeypatch.setattr(llm, "complete", _complete)
    return calls


@pytest.mark.asyncio
async def test_query_post(client: AsyncClient, fake_complete):
    response = await client.post(
        "/api/v1/llm/query",
        json={"system": "Be brief", "user": "What is 2+2?", "temperature": 0.5},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["content"] == "echo: What is 2+2?"
    assert fake_complete[0]["system"] == "Be brief"
    assert fake_complete[0]["temperature"] == 0.5


@pytest.mark.asyncio
async def test_query_post_prefers_user_over_query(client: AsyncClient, fake_complete):
    await client.post("/api/v1/llm/query", json={"query": "q", "user": "u"})
    assert fake_complete[0]["user"] == "u"


@pytest.mark.asyncio
async def test_query_post_requires_prompt(client: AsyncClient, fake_complete):
    response = await client.post("/api/v1/llm/query", json={"system": "Be brief"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert fake_complete == []


@pytest.mark.asyncio
async def test_query_get(client: AsyncClient, fake_complete):
    response = await client.get("/api/v1/llm/query", params={"query": "hola"})
    assert response.status_code == 200
    assert response.json()["data"]["content"] == "echo: hola"


@pytest.mark.asyncio
async def test_query_get_requires_prompt(client: AsyncClient, fake_complete):
    response = await client.get("/api/v1/llm/query")
    assert response.status_code == 400
    assert response.json()["error"] == "Either 'query' or 'user' is required"


@pytest.mark.asyncio
async def test_query_upstream_failure(client: AsyncClient, monkeypatch):
    async def _failing(*args, **kwargs):
        raise RetryableServiceError("llm", "overloaded", status_code=529)

    monkeypatch.setattr(llm, "complete", _failing)
    response = await client.post("/api/v1/llm/query", json={"query": "hi"})
    assert response.status_code == 502
    assert response.json()["service"] == "llm"
