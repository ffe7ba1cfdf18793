"""Lead API: topic search and filing-feed aggregation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ucc_leads.models import ErrorResponse, FeedResponse, SearchResponse
from ucc_leads.pipeline import InvalidTopicError, LeadPipeline
from ucc_leads.web.deps import get_pipeline

logger = logging.getLogger(__name__)
router = APIRouter(tags=["leads"])


@router.get("/search", response_model=SearchResponse)
async def search_leads(
    q: str | None = None,
    pipeline: LeadPipeline = Depends(get_pipeline),
):
    """Find, enrich and rank leads for a free-text topic."""
    try:
        return await pipeline.run(q)
    except InvalidTopicError as e:
        return JSONResponse(status_code=400, content=ErrorResponse(error=str(e)).model_dump(exclude_unset=True))
    except Exception as e:
        logger.exception("Search failed for %r", q)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="search failed", details=str(e)).model_dump(),
        )


@router.get("/leads", response_model=FeedResponse)
async def feed_leads(pipeline: LeadPipeline = Depends(get_pipeline)):
    """Aggregate the configured UCC feeds and enrich each entry."""
    try:
        return await pipeline.run_feeds()
    except Exception as e:
        logger.exception("Feed aggregation failed")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="leads failed", details=str(e)).model_dump(),
        )
