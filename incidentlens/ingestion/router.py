from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.database import get_db
from incidentlens.incidents.schemas import IncidentResponse
from incidentlens.ingestion.classifier import TweetClassifier
from incidentlens.ingestion.dependencies import get_classifier, get_twitter_client
from incidentlens.ingestion.schemas import TweetEntityResponse, TweetIngestionResponse, TweetPreviewResponse
from incidentlens.ingestion.service import fetch_tweet_entities, run_tweet_ingestion
from incidentlens.ingestion.twitter_client import TwitterClient

router = APIRouter(prefix="/ingestion", tags=["ingestion"])


@router.get("/tweets", response_model=TweetPreviewResponse)
async def preview_tweets(
    client: TwitterClient = Depends(get_twitter_client),
):
    entities = await fetch_tweet_entities(client)
    return TweetPreviewResponse(
        count=len(entities),
        data=[TweetEntityResponse.model_validate(e) for e in entities],
    )


@router.post("/tweets", response_model=TweetIngestionResponse, status_code=status.HTTP_201_CREATED)
async def ingest_tweets(
    client: TwitterClient = Depends(get_twitter_client),
    classifier: TweetClassifier = Depends(get_classifier),
    db: AsyncSession = Depends(get_db),
):
    incidents = await run_tweet_ingestion(db, client, classifier)
    return TweetIngestionResponse(
        count=len(incidents),
        data=[IncidentResponse.model_validate(i) for i in incidents],
    )
