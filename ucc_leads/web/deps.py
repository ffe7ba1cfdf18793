"""Dependency injection for FastAPI — shared config, per-request pipeline."""

from __future__ import annotations

from collections.abc import AsyncIterator
from functools import lru_cache

from ucc_leads.config import Config, load_config
from ucc_leads.pipeline import LeadPipeline


@lru_cache
def get_config() -> Config:
    return load_config()


async def get_pipeline() -> AsyncIterator[LeadPipeline]:
    """A fresh pipeline per request so crawl state never leaks across requests."""
    pipeline = LeadPipeline(get_config())
    try:
        yield pipeline
    finally:
        await pipeline.close()
