"""Search client for the twitterapi.io advanced search endpoint."""

import httpx
import structlog

from incidentlens.errors import FatalServiceError, classify_httpx_error
from incidentlens.ingestion.config import TwitterConfig
from incidentlens.retry import call_with_retry

logger = structlog.get_logger()


class TwitterClient:
    def __init__(self, config: TwitterConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    async def _search_once(self) -> dict:
        params = {"queryType": "Latest", "query": self.config.query}
        headers = {"X-API-Key": self.config.api_key, "Accept": "application/json"}

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
            try:
                resp = await client.get(self.config.api_url, params=params, headers=headers)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise classify_httpx_error("twitter", exc) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise FatalServiceError("twitter", "search response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise FatalServiceError("twitter", "search response is not a JSON object")
        return data

    async def fetch_latest_tweets(self) -> list[dict]:
        """Fetch the latest page of posts matching the configured query."""
        data = await call_with_retry(
            self._search_once,
            name="twitter_search",
            max_attempts=self.config.max_attempts,
            backoff_seconds=self.config.backoff_seconds,
        )
        tweets = data.get("tweets")
        if tweets is None:
            tweets = []
        if not isinstance(tweets, list):
            raise FatalServiceError("twitter", "'tweets' is not a list")

        logger.info("tweets_fetched", count=len(tweets), query=self.config.query)
        return tweets
