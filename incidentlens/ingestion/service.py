import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.incidents.models import Incident
from incidentlens.ingestion.classifier import Classification, TweetClassifier
from incidentlens.ingestion.tweets import TweetEntity, clean_text, filter_and_sort, map_to_entities
from incidentlens.ingestion.twitter_client import TwitterClient

logger = structlog.get_logger()

TWITTER_SOURCE = "twitter"


async def fetch_tweet_entities(client: TwitterClient) -> list[TweetEntity]:
    """Fetch, normalize, deduplicate and sort posts (newest first)."""
    tweets = await client.fetch_latest_tweets()
    return filter_and_sort(map_to_entities(tweets))


def build_incident(entity: TweetEntity, result: Classification | None) -> Incident:
    """Combine one post with its classification; a missing result leaves the derived fields null."""
    derived = result.model_dump() if result is not None else {}
    return Incident(
        time=entity.parsed_date,
        source=TWITTER_SOURCE,
        original=entity.text,
        service=derived.get("service"),
        subservice=derived.get("subservice"),
        category=derived.get("category"),
        priority=derived.get("priority"),
        sentiment_analysis=derived.get("sentiment_analysis"),
        summary=derived.get("summary"),
        keywords=derived.get("keywords", []),
    )


async def run_tweet_ingestion(
    db: AsyncSession,
    client: TwitterClient,
    classifier: TweetClassifier,
) -> list[Incident]:
    """fetch -> normalize -> clean -> classify -> persist, one incident row per post.

    Nothing is written unless the whole batch was classified.
    """
    entities = await fetch_tweet_entities(client)
    if not entities:
        logger.info("tweet_ingestion_empty")
        return []

    cleaned = [clean_text(entity.text) for entity in entities]
    results = await classifier.classify(cleaned)

    incidents = [build_incident(entity, result) for entity, result in zip(entities, results, strict=True)]
    db.add_all(incidents)
    await db.commit()

    logger.info(
        "tweet_ingestion_completed",
        persisted=len(incidents),
        unclassified=sum(1 for r in results if r is None),
    )
    return incidents
