from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from incidentlens.config import settings
from incidentlens.llm import client as llm
from incidentlens.llm.schemas import LLMQueryRequest, LLMQueryResponse
from incidentlens.schemas import Envelope

router = APIRouter(prefix="/llm", tags=["llm"])


async def _run(data: LLMQueryRequest) -> Envelope[LLMQueryResponse]:
    model = data.model or settings.ANTHROPIC_MODEL
    content = await llm.complete(
        data.system,
        data.prompt,
        model=model,
        temperature=data.temperature,
        max_tokens=data.max_tokens,
    )
    return Envelope(data=LLMQueryResponse(model=model, content=content))


def query_params(
    query: str | None = Query(None),
    system: str | None = Query(None),
    user: str | None = Query(None),
    model: str | None = Query(None),
) -> LLMQueryRequest:
    try:
        return LLMQueryRequest(query=query, system=system, user=user, model=model)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either 'query' or 'user' is required",
        )


@router.post("/query", response_model=Envelope[LLMQueryResponse])
async def query_post(data: LLMQueryRequest):
    return await _run(data)


@router.get("/query", response_model=Envelope[LLMQueryResponse])
async def query_get(data: LLMQueryRequest = Depends(query_params)):
    """Quick manual testing: ``GET /llm/query?query=What%20is%202%2B2``."""
    return await _run(data)
