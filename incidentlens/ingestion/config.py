from dataclasses import dataclass
from urllib.parse import urlparse

from incidentlens.config import Settings
from incidentlens.errors import ConfigurationError


@dataclass(frozen=True)
class TwitterConfig:
    api_key: str
    query: str
    api_url: str
    timeout_seconds: float = 30.0
    max_attempts: int = 3
    backoff_seconds: float = 1.0


def build_twitter_config(settings: Settings) -> TwitterConfig:
    """Validate the search settings up front and freeze them into a ``TwitterConfig``.

    Raises ``ConfigurationError`` naming every problem found.
    """
    problems: list[str] = []
    if not settings.TWITTER_API_KEY.strip():
        problems.append("TWITTER_API_KEY is not set")
    if not settings.TWITTER_QUERY.strip():
        problems.append("TWITTER_QUERY is not set")
    parsed = urlparse(settings.TWITTER_API_URL)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        problems.append(f"TWITTER_API_URL is not an http(s) URL: {settings.TWITTER_API_URL!r}")
    if settings.HTTP_TIMEOUT_SECONDS <= 0:
        problems.append("HTTP_TIMEOUT_SECONDS must be positive")
    if settings.RETRY_MAX_ATTEMPTS < 1:
        problems.append("RETRY_MAX_ATTEMPTS must be at least 1")
    if problems:
        raise ConfigurationError("; ".join(problems))

    return TwitterConfig(
        api_key=settings.TWITTER_API_KEY.strip(),
        query=settings.TWITTER_QUERY.strip(),
        api_url=settings.TWITTER_API_URL,
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        max_attempts=settings.RETRY_MAX_ATTEMPTS,
        backoff_seconds=settings.RETRY_BACKOFF_SECONDS,
    )
