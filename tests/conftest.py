"""Shared fixtures: offline config, a fake web behind httpx.MockTransport, fake providers."""

from __future__ import annotations

import httpx
import pytest

from ucc_leads.config import Config
from ucc_leads.models import SearchHit
from ucc_leads.search.providers import SearchProvider


class FakeWeb:
    """Routes requests by scheme://host/path to canned responses.

    A route value may be an httpx.Response, a str (200 text/html body),
    an exception instance (raised), or a callable(request) -> Response.
    Unknown URLs get a 404.
    """

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        if isinstance(route, str):
            return httpx.Response(200, text=route, headers={"content-type": "text/html; charset=utf-8"})
        return route

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def paths_requested(self) -> list[str]:
        return [f"{r.url.scheme}://{r.url.host}{r.url.path}" for r in self.requests]


class FakeProvider(SearchProvider):
    """Returns canned hits per query (or for every query with '*')."""

    def __init__(self, name: str, hits: dict[str, list[SearchHit]] | None = None,
                 configured: bool = True, error: Exception | None = None):
        self.name = name
        self.hits = hits or {}
        self.configured = configured
        self.error = error
        self.queries: list[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def search(self, query: str) -> list[SearchHit]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.hits.get(query, self.hits.get("*", [])))


def hit(url: str, title: str = "", snippet: str = "", source: str = "fake") -> SearchHit:
    return SearchHit(title=title or url, url=url, snippet=snippet, source=source)


@pytest.fixture
def config() -> Config:
    """Offline config: no credentials, no feeds, no delays or retries."""
    return Config(
        feed_urls=[],
        query_round_delay=0,
        fetch_retries=0,
        request_deadline=10,
    )


@pytest.fixture
def fake_web() -> FakeWeb:
    return FakeWeb()
