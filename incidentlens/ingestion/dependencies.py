from fastapi import HTTPException, Request, status

from incidentlens.ingestion.classifier import TweetClassifier
from incidentlens.ingestion.twitter_client import TwitterClient


def get_twitter_client(request: Request) -> TwitterClient:
    """Client built from the config validated at startup (see ``main.lifespan``)."""
    config = getattr(request.app.state, "twitter_config", None)
    if config is None:
        reason = getattr(request.app.state, "twitter_config_error", None) or "configuration was not loaded"
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Twitter ingestion not configured: {reason}",
        )
    return TwitterClient(config)


def get_classifier() -> TweetClassifier:
    return TweetClassifier()
