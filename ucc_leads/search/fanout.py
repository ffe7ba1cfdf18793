"""Run every configured provider for each query and merge the raw hits."""

from __future__ import annotations

import asyncio
import logging

from ucc_leads.models import SearchHit
from ucc_leads.search.providers import SearchProvider

logger = logging.getLogger(__name__)


class ProviderFanOut:
    """Query rounds over a fixed provider list with early termination.

    Rounds run in query order; inside a round all providers run
    concurrently and their hits are appended in provider order.
    """

    def __init__(
        self,
        providers: list[SearchProvider],
        raw_hit_threshold: int = 30,
        round_delay: float = 0.5,
        fallback: SearchProvider | None = None,
    ):
        self.providers = providers
        self.raw_hit_threshold = raw_hit_threshold
        self.round_delay = round_delay
        self.fallback = fallback

    async def run(
        self,
        queries: list[str],
        fallback_query: str | None = None,
        deadline: float | None = None,
    ) -> list[SearchHit]:
        """Collect raw hits for the queries.

        Stops issuing queries once the raw hit count reaches the threshold
        or the loop-time deadline passes. If nothing came back at all, runs
        one query against the fallback provider.
        """
        active = [p for p in self.providers if p.is_configured]
        if not active:
            logger.info("No search providers configured")

        loop = asyncio.get_running_loop()
        hits: list[SearchHit] = []

        for i, query in enumerate(queries if active else []):
            if len(hits) >= self.raw_hit_threshold:
                logger.debug(
                    "Raw hit threshold reached (%d) — skipping %d queries",
                    len(hits), len(queries) - i,
                )
                break
            if deadline is not None and loop.time() >= deadline:
                logger.warning("Search deadline reached after %d queries", i)
                break
            if i > 0 and self.round_delay > 0:
                await asyncio.sleep(self.round_delay)

            round_hits = await self._run_round(query, active, deadline)
            logger.debug("Query '%s' -> %d hits", query[:60], len(round_hits))
            hits.extend(round_hits)

        if not hits and self.fallback is not None and fallback_query:
            logger.info("All providers empty, falling back to %s", self.fallback.name)
            hits = await self._bounded_search(self.fallback, fallback_query, deadline)

        return hits

    async def _run_round(
        self, query: str, providers: list[SearchProvider], deadline: float | None,
    ) -> list[SearchHit]:
        results = await asyncio.gather(
            *[self._bounded_search(p, query, deadline) for p in providers],
            return_exceptions=True,
        )
        merged: list[SearchHit] = []
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                logger.warning("Provider %s failed: %s", provider.name, result)
                continue
            merged.extend(result)
        return merged

    async def _bounded_search(
        self, provider: SearchProvider, query: str, deadline: float | None,
    ) -> list[SearchHit]:
        """_safe_search cut off at the deadline; a late provider yields []."""
        if deadline is None:
            return await self._safe_search(provider, query)
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            return []
        try:
            return await asyncio.wait_for(self._safe_search(provider, query), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning("Provider %s hit the search deadline for '%s'", provider.name, query[:80])
            return []

    async def _safe_search(self, provider: SearchProvider, query: str) -> list[SearchHit]:
        try:
            return await provider.search(query)
        except Exception as e:
            logger.warning("Provider %s error for '%s': %s", provider.name, query[:80], e)
            return []
