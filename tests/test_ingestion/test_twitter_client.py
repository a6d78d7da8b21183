import httpx
import pytest

from incidentlens.errors import FatalServiceError, RetryableServiceError
from incidentlens.ingestion.config import TwitterConfig
from incidentlens.ingestion.twitter_client import TwitterClient

CONFIG = TwitterConfig(
    api_key="test-key",
    query="metro cdmx",
    api_url="https://search.test/advanced_search",
    timeout_seconds=5.0,
    max_attempts=3,
    backoff_seconds=0.0,
)


def make_client(responses: list[httpx.Response]):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responses[min(len(requests), len(responses)) - 1]

    return TwitterClient(CONFIG, transport=httpx.MockTransport(handler)), requests


@pytest.mark.asyncio
async def test_fetch_latest_tweets_sends_query_and_key():
    client, requests = make_client([httpx.Response(200, json={"tweets": [{"text": "hola"}]})])

    tweets = await client.fetch_latest_tweets()

    assert tweets == [{"text": "hola"}]
    assert requests[0].headers["X-API-Key"] == "test-key"
    assert requests[0].url.params["query"] == "metro cdmx"
    assert requests[0].url.params["queryType"] == "Latest"


@pytest.mark.asyncio
async def test_fetch_retries_server_errors():
    client, requests = make_client([
        httpx.Response(503),
        httpx.Response(429),
        httpx.Response(200, json={"tweets": []}),
    ])
    assert await client.fetch_latest_tweets() == []
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_fetch_gives_up_after_max_attempts():
    client, requests = make_client([httpx.Response(500)])
    with pytest.raises(RetryableServiceError):
        await client.fetch_latest_tweets()
    assert len(requests) == CONFIG.max_attempts


@pytest.mark.asyncio
async def test_fetch_does_not_retry_auth_errors():
    client, requests = make_client([httpx.Response(401)])
    with pytest.raises(FatalServiceError) as exc_info:
        await client.fetch_latest_tweets()
    assert exc_info.value.status_code == 401
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_fetch_rejects_malformed_payload():
    client, _ = make_client([httpx.Response(200, json={"tweets": "nope"})])
    with pytest.raises(FatalServiceError):
        await client.fetch_latest_tweets()
