"""FastAPI application for the UCC lead finder."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ucc_leads.web.deps import get_config
from ucc_leads.web.routers.leads import router as leads_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: load configuration once."""
    cfg = get_config()
    logger.info(
        "Starting UCC lead finder (concurrency=%d, feeds=%d)",
        cfg.max_concurrency, len(cfg.feed_urls),
    )
    yield
    logger.info("UCC lead finder shut down.")


app = FastAPI(
    title="UCC Lead Finder",
    description="Lead discovery from UCC filings and web search, with contact enrichment",
    lifespan=lifespan,
)

app.include_router(leads_router, prefix="/api")


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
