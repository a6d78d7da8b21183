import pytest
from httpx import AsyncClient

from incidentlens.errors import ClassifierContractError, RetryableServiceError
from incidentlens.ingestion.classifier import Classification
from incidentlens.ingestion.dependencies import get_classifier, get_twitter_client

TWEETS = [
    {"text": "Linea 3 detenida otra vez!!", "createdAt": "Tue Dec 10 07:00:30 +0000 2024"},
    {"text": "Metrobus lleno 😩", "createdAt": "Tue Dec 10 09:15:00 +0000 2024"},
    {"text": "Linea 3 detenida otra vez!!", "createdAt": "Tue Dec 10 07:00:30 +0000 2024"},
]


class FakeTwitterClient:
    def __init__(self, tweets=None, error=None):
        self.tweets = tweets if tweets is not None else TWEETS
        self.error = error

    async def fetch_latest_tweets(self):
        if self.error:
            raise self.error
        return list(self.tweets)


class FakeClassifier:
    def __init__(self, results=None, error=None):
        self.results = results
        self.error = error
        self.received: list[str] = []

    async def classify(self, texts):
        self.received = list(texts)
        if self.error:
            raise self.error
        if self.results is not None:
            return self.results
        return [
            Classification(service="metrobus", category="overcrowding", priority=2, sentiment_analysis="negative"),
            Classification(service="metro", subservice="Linea 3", category="delay", priority=4),
        ][: len(texts)]


@pytest.mark.asyncio
async def test_preview_tweets(app, client: AsyncClient):
    app.dependency_overrides[get_twitter_client] = lambda: FakeTwitterClient()

    response = await client.get("/api/v1/ingestion/tweets")
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["data"][0]["text"] == "Metrobus lleno 😩"


@pytest.mark.asyncio
async def test_ingest_tweets_persists_one_incident_per_post(app, client: AsyncClient):
    classifier = FakeClassifier()
    app.dependency_overrides[get_twitter_client] = lambda: FakeTwitterClient()
    app.dependency_overrides[get_classifier] = lambda: classifier

    response = await client.post("/api/v1/ingestion/tweets")
    assert response.status_code == 201
    body = response.json()
    assert body["count"] == 2
    assert classifier.received == ["Metrobus lleno", "Linea 3 detenida otra vez"]
    assert {i["source"] for i in body["data"]} == {"twitter"}
    assert body["data"][0]["original"] == "Metrobus lleno 😩"

    listed = await client.get("/api/v1/incidents")
    assert listed.json()["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_ingest_keeps_unclassified_posts_with_null_fields(app, client: AsyncClient):
    app.dependency_overrides[get_twitter_client] = lambda: FakeTwitterClient()
    app.dependency_overrides[get_classifier] = lambda: FakeClassifier(
        results=[None, Classification(category="delay", priority=3)]
    )

    response = await client.post("/api/v1/ingestion/tweets")
    data = response.json()["data"]
    assert data[0]["category"] is None
    assert data[0]["priority"] is None
    assert data[0]["keywords"] == []
    assert data[1]["category"] == "delay"


@pytest.mark.asyncio
async def test_ingest_count_mismatch_persists_nothing(app, client: AsyncClient):
    app.dependency_overrides[get_twitter_client] = lambda: FakeTwitterClient()
    app.dependency_overrides[get_classifier] = lambda: FakeClassifier(
        error=ClassifierContractError(expected=2, received=1)
    )

    response = await client.post("/api/v1/ingestion/tweets")
    assert response.status_code == 502
    assert response.json()["success"] is False
    assert response.json()["service"] == "classifier"

    listed = await client.get("/api/v1/incidents")
    assert listed.json()["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_search_outage_maps_to_bad_gateway(app, client: AsyncClient):
    app.dependency_overrides[get_twitter_client] = lambda: FakeTwitterClient(
        error=RetryableServiceError("twitter", "HTTP 503", status_code=503)
    )
    response = await client.get("/api/v1/ingestion/tweets")
    assert response.status_code == 502


@pytest.mark.asyncio
async def test_ingestion_without_config_is_reported(app, client: AsyncClient):
    app.state.twitter_config = None
    app.state.twitter_config_error = "TWITTER_API_KEY is not set"

    response = await client.get("/api/v1/ingestion/tweets")
    assert response.status_code == 500
    assert "TWITTER_API_KEY is not set" in response.json()["error"]


@pytest.mark.asyncio
async def test_ingest_empty_search(app, client: AsyncClient):
    app.dependency_overrides[get_twitter_client] = lambda: FakeTwitterClient(tweets=[])
    app.dependency_overrides[get_classifier] = lambda: FakeClassifier()

    response = await client.post("/api/v1/ingestion/tweets")
    assert response.status_code == 201
    assert response.json() == {"success": True, "count": 0, "data": []}
