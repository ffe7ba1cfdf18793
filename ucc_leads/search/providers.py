"""Provider adapters: normalise each data source into SearchHit lists.

Every adapter swallows its own failures and returns [] instead, so one bad
provider never aborts a search round.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from ucc_leads.enrich.opencorporates_client import OpenCorporatesClient
from ucc_leads.models import SearchHit
from ucc_leads.search.bing_client import search_bing
from ucc_leads.search.duckduckgo_client import search_ddg
from ucc_leads.search.serpapi_client import search_google
from ucc_leads.search.strategy import topic_terms
from ucc_leads.search.ucc_feed_client import fetch_feed

logger = logging.getLogger(__name__)


class SearchProvider:
    """Base interface for search and data providers."""

    name: str = "base"

    @property
    def is_configured(self) -> bool:
        return True

    async def search(self, query: str) -> list[SearchHit]:
        raise NotImplementedError


def organic_to_hits(response: dict, source: str) -> list[SearchHit]:
    """Map a normalised {'organic_results': [...]} dict to hits."""
    hits = []
    for r in response.get("organic_results") or []:
        url = r.get("link", "")
        if url and url.startswith("http"):
            hits.append(SearchHit(
                title=r.get("title", "") or "",
                url=url,
                snippet=r.get("snippet", "") or "",
                source=source,
            ))
    return hits


class BingProvider(SearchProvider):
    name = "bing"

    def __init__(self, client: httpx.AsyncClient, api_key: str, num_results: int = 10, timeout: float = 15):
        self.client = client
        self.api_key = api_key
        self.num_results = num_results
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str) -> list[SearchHit]:
        if not self.api_key:
            return []
        response = await search_bing(
            self.client, query, self.api_key,
            num_results=self.num_results, timeout=self.timeout,
        )
        return organic_to_hits(response, self.name)


class SerpApiProvider(SearchProvider):
    name = "serpapi"

    def __init__(self, client: httpx.AsyncClient, api_key: str, num_results: int = 10, timeout: float = 15):
        self.client = client
        self.api_key = api_key
        self.num_results = num_results
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str) -> list[SearchHit]:
        if not self.api_key:
            return []
        response = await search_google(
            self.client, query, self.api_key,
            num_results=self.num_results, timeout=self.timeout,
        )
        return organic_to_hits(response, self.name)


class OpenCorporatesProvider(SearchProvider):
    """Company registry search; each match becomes a hit on its registry page."""

    name = "opencorporates"

    def __init__(self, registry: OpenCorporatesClient, topic: str):
        self.registry = registry
        self.topic = topic
        self._done = False

    @property
    def is_configured(self) -> bool:
        return self.registry.is_configured

    async def search(self, query: str) -> list[SearchHit]:
        # Registry search is by company name, not by the composed query,
        # so it only contributes on the first round.
        if self._done or not self.registry.is_configured:
            return []
        self._done = True
        companies = await self.registry.search_companies(self.topic)
        return [
            SearchHit(
                title=c.name or "Company",
                url=c.url,
                snippet=(
                    f"Company number: {c.company_number or 'N/A'}"
                    f" • Jurisdiction: {c.jurisdiction}"
                ),
                source=self.name,
            )
            for c in companies
            if c.url
        ]


class UccFeedProvider(SearchProvider):
    """Public filing feeds filtered to entries mentioning the topic.

    Feeds do not take a query, so they are fetched once per run and only
    contribute on the first round.
    """

    name = "ucc_feed"

    def __init__(
        self,
        client: httpx.AsyncClient,
        feed_urls: list[str],
        user_agent: str,
        topic: str = "",
        timeout: float = 15,
    ):
        self.client = client
        self.feed_urls = feed_urls
        self.user_agent = user_agent
        self.terms = topic_terms(topic)
        self.timeout = timeout
        self._done = False

    @property
    def is_configured(self) -> bool:
        return bool(self.feed_urls)

    async def fetch_all(self) -> list[SearchHit]:
        """Fetch every configured feed concurrently, in configured order."""
        results = await asyncio.gather(
            *[fetch_feed(self.client, url, self.user_agent, timeout=self.timeout)
              for url in self.feed_urls],
            return_exceptions=True,
        )
        hits: list[SearchHit] = []
        for url, result in zip(self.feed_urls, results):
            if isinstance(result, Exception):
                logger.warning("Feed %s failed: %s", url, result)
                continue
            hits.extend(result)
        return hits

    async def search(self, query: str) -> list[SearchHit]:
        if self._done or not self.feed_urls:
            return []
        self._done = True
        hits = await self.fetch_all()
        if not self.terms:
            return hits
        return [h for h in hits if self._matches(h)]

    def _matches(self, hit: SearchHit) -> bool:
        text = f"{hit.title} {hit.snippet}".lower()
        return any(term in text for term in self.terms)


class DuckDuckGoProvider(SearchProvider):
    """No-credential web search, used as the last-resort fallback."""

    name = "duckduckgo"

    def __init__(self, num_results: int = 10, timeout: float = 15):
        self.num_results = num_results
        self.timeout = timeout

    async def search(self, query: str) -> list[SearchHit]:
        response = await search_ddg(query, num_results=self.num_results, timeout=self.timeout)
        return organic_to_hits(response, self.name)
