"""Async lead discovery pipeline with concurrency control."""

from __future__ import annotations

import asyncio
import logging

import httpx

from ucc_leads.analysis.scoring import rank_candidates, score_candidate
from ucc_leads.config import Config
from ucc_leads.enrich.hunter_client import HunterClient
from ucc_leads.enrich.opencorporates_client import OpenCorporatesClient
from ucc_leads.enrich.waterfall import EnrichmentWaterfall
from ucc_leads.models import (
    ExtractedCandidate,
    FeedResponse,
    LeadItem,
    LeadRecord,
    SearchHit,
    SearchResponse,
)
from ucc_leads.scrape.extractor import find_filing_refs, safe_extract
from ucc_leads.scrape.http_scraper import PageFetcher
from ucc_leads.scrape.robots import RobotsGate
from ucc_leads.search.dedupe import dedupe_feed_entries, dedupe_hits, filter_relevant
from ucc_leads.search.fanout import ProviderFanOut
from ucc_leads.search.providers import (
    BingProvider,
    DuckDuckGoProvider,
    OpenCorporatesProvider,
    SearchProvider,
    SerpApiProvider,
    UccFeedProvider,
)
from ucc_leads.search.strategy import fallback_query, generate_queries

logger = logging.getLogger(__name__)

# Feed URL fragment -> state code
JURISDICTION_HINTS: dict[str, str] = {
    "delaware": "DE",
    "california": "CA",
    "sos.ca.gov": "CA",
    "texas": "TX",
    "florida": "FL",
    "newyork": "NY",
    "dos.ny.gov": "NY",
}


class InvalidTopicError(ValueError):
    """The search topic is missing or blank."""


def validate_topic(topic: str | None) -> str:
    clean = (topic or "").strip()
    if not clean:
        raise InvalidTopicError("Missing q")
    return clean


def jurisdiction_for(feed_url: str) -> str | None:
    """Guess a state code from a feed URL, e.g. the Delaware UCC feed -> DE."""
    lowered = (feed_url or "").lower()
    for fragment, code in JURISDICTION_HINTS.items():
        if fragment in lowered:
            return code
    return None


class LeadPipeline:
    """Topic in, ranked and enriched leads out.

    One instance can serve many runs; robots policies are cached per run.
    """

    def __init__(
        self,
        config: Config,
        client: httpx.AsyncClient | None = None,
        providers: list[SearchProvider] | None = None,
        fallback: SearchProvider | None = None,
    ):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
        )
        self._providers = providers
        self.fallback = fallback or DuckDuckGoProvider(
            num_results=config.results_per_query,
            timeout=config.provider_timeout,
        )

        self.registry = OpenCorporatesClient(
            self.client,
            api_key=config.opencorporates_key,
            user_agent=config.user_agent,
            timeout=config.enrich_timeout,
        )
        self.directory = HunterClient(
            self.client,
            api_key=config.hunter_key,
            user_agent=config.user_agent,
            timeout=config.enrich_timeout,
        )
        self.fetcher = PageFetcher(
            self.client,
            user_agent=config.user_agent,
            timeout=config.page_timeout,
            max_retries=config.fetch_retries,
        )

    async def __aenter__(self) -> LeadPipeline:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client and not self.client.is_closed:
            await self.client.aclose()

    def build_providers(self, topic: str) -> list[SearchProvider]:
        """Providers in fan-out order. Unconfigured ones are skipped later."""
        if self._providers is not None:
            return self._providers
        cfg = self.config
        return [
            BingProvider(
                self.client, cfg.bing_api_key,
                num_results=cfg.results_per_query, timeout=cfg.provider_timeout,
            ),
            SerpApiProvider(
                self.client, cfg.serpapi_key,
                num_results=cfg.results_per_query, timeout=cfg.provider_timeout,
            ),
            OpenCorporatesProvider(self.registry, topic),
            UccFeedProvider(
                self.client, cfg.feed_urls, cfg.user_agent,
                topic=topic, timeout=cfg.provider_timeout,
            ),
        ]

    def _robots_gate(self) -> RobotsGate:
        return RobotsGate(
            self.client,
            user_agent=self.config.user_agent,
            timeout=self.config.robots_timeout,
            allow_on_error=self.config.robots_allow_on_error,
        )

    async def run(self, topic: str | None) -> SearchResponse:
        """Search, extract, enrich and rank leads for one topic.

        Raises InvalidTopicError before any network call if the topic is blank.
        """
        topic = validate_topic(topic)
        cfg = self.config
        deadline = asyncio.get_running_loop().time() + cfg.request_deadline

        fan_out = ProviderFanOut(
            self.build_providers(topic),
            raw_hit_threshold=cfg.raw_hit_threshold,
            round_delay=cfg.query_round_delay,
            fallback=self.fallback,
        )
        raw_hits = await fan_out.run(
            generate_queries(topic),
            fallback_query=fallback_query(topic),
            deadline=deadline,
        )

        hits = dedupe_hits(raw_hits)
        if cfg.relevance_filter:
            hits = filter_relevant(hits)
        logger.info(
            "Topic '%s': %d raw hits, %d unique candidates",
            topic[:60], len(raw_hits), len(hits),
        )

        items = await self._process_hits(hits, deadline)
        ranked = rank_candidates(
            items,
            max_results=cfg.max_results,
            max_filing_refs=cfg.max_filing_refs,
        )
        return SearchResponse(query=topic, items=ranked)

    async def run_feeds(self) -> FeedResponse:
        """Aggregate the configured filing feeds and enrich every entry."""
        cfg = self.config
        deadline = asyncio.get_running_loop().time() + cfg.request_deadline

        feeds = UccFeedProvider(
            self.client, cfg.feed_urls, cfg.user_agent,
            timeout=cfg.provider_timeout,
        )
        raw_hits = await feeds.fetch_all()
        hits = dedupe_feed_entries(raw_hits)
        logger.info("Feeds: %d entries, %d unique", len(raw_hits), len(hits))

        items = await self._process_hits(hits, deadline)
        ranked = rank_candidates(
            items,
            max_results=cfg.max_results,
            max_filing_refs=cfg.max_filing_refs,
        )
        return FeedResponse(items=ranked)

    async def _process_hits(self, hits: list[SearchHit], deadline: float) -> list[LeadItem]:
        """Extract and enrich every hit under the shared concurrency limit.

        Hits whose task fails or is still running at the deadline keep
        their provider-supplied fields only.
        """
        if not hits:
            return []

        loop = asyncio.get_running_loop()
        sem = asyncio.Semaphore(self.config.max_concurrency)
        robots = self._robots_gate()
        waterfall = EnrichmentWaterfall(self.fetcher, robots, self.directory, self.registry)

        tasks = [
            asyncio.create_task(self._process_hit(hit, sem, robots, waterfall))
            for hit in hits
        ]
        done, pending = await asyncio.wait(tasks, timeout=max(0.0, deadline - loop.time()))
        if pending:
            logger.warning("Deadline reached — abandoning %d candidate tasks", len(pending))
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        items: list[LeadItem] = []
        for hit, task in zip(hits, tasks):
            if task in done and task.exception() is None:
                items.append(task.result())
                continue
            if task in done:
                logger.warning("Candidate %s failed: %s", hit.url[:80], task.exception())
            items.append(self._bare_item(hit))
        return items

    async def _process_hit(
        self,
        hit: SearchHit,
        sem: asyncio.Semaphore,
        robots: RobotsGate,
        waterfall: EnrichmentWaterfall,
    ) -> LeadItem:
        cfg = self.config
        async with sem:
            pages: dict[str, str | None] = {}
            candidate = None
            # Linkless feed entries skip fetching and are enriched by name only
            if hit.url and await robots.allowed(hit.url):
                html, error = await self.fetcher.fetch(hit.url)
                pages[hit.url] = html
                if error:
                    logger.info("  [FAIL: %s] %s", error, hit.url[:60])
                candidate = safe_extract(
                    html, hit,
                    max_chars=cfg.excerpt_max_chars,
                    max_refs=cfg.max_filing_refs,
                )
            elif hit.url:
                pages[hit.url] = None

            candidate = candidate or ExtractedCandidate.from_hit(hit)
            lead = await waterfall.enrich(self._lead_for(hit, candidate), known_pages=pages)

        return LeadItem.build(candidate, lead, score_candidate(candidate, cfg.max_filing_refs))

    def _lead_for(self, hit: SearchHit, candidate: ExtractedCandidate) -> LeadRecord:
        title_refs = find_filing_refs(hit.title, limit=1)
        if title_refs:
            filing_id = title_refs[0]
        elif candidate.filing_refs:
            filing_id = candidate.filing_refs[0]
        else:
            filing_id = None

        return LeadRecord(
            title=candidate.title,
            source_url=hit.url,
            feed_origin=hit.origin or hit.source,
            jurisdiction=jurisdiction_for(hit.origin),
            filing_id=filing_id,
            business_name=hit.title or candidate.title,
        )

    def _bare_item(self, hit: SearchHit) -> LeadItem:
        candidate = ExtractedCandidate.from_hit(hit)
        lead = LeadRecord(
            title=candidate.title,
            source_url=hit.url,
            feed_origin=hit.origin or hit.source,
            jurisdiction=jurisdiction_for(hit.origin),
            business_name=candidate.title,
        )
        return LeadItem.build(candidate, lead)
