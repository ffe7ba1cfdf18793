import asyncio

import httpx

from conftest import FakeWeb

from ucc_leads.config import DEFAULT_FEEDS, load_config
from ucc_leads.enrich.opencorporates_client import OpenCorporatesClient
from ucc_leads.search.bing_client import BING_ENDPOINT
from ucc_leads.search.providers import BingProvider, OpenCorporatesProvider, SerpApiProvider, UccFeedProvider
from ucc_leads.search.ucc_feed_client import parse_feed

FEED = "https://feeds.example/ucc.rss"

ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Filings</title>
  <entry>
    <title>UCC-1 2024-0000042 GAMMA FOODS</title>
    <link href="https://gamma.example/"/>
    <summary>Secured party: First Bank</summary>
  </entry>
  <entry>
    <title>Entry without a link</title>
  </entry>
  <entry></entry>
</feed>
"""

RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel>
  <item><title>Acme Trucking lien</title><link>https://acme.example/</link></item>
  <item><title>Beta Farms lien</title><link>https://beta.example/</link></item>
</channel></rss>
"""


def _search(provider, query="q"):
    return asyncio.run(provider.search(query))


def test_parse_atom_feed():
    hits = parse_feed(ATOM, FEED)
    assert [(h.title, h.url) for h in hits] == [
        ("UCC-1 2024-0000042 GAMMA FOODS", "https://gamma.example/"),
        ("Entry without a link", ""),
    ]
    assert hits[0].snippet == "Secured party: First Bank"
    assert hits[0].source == "ucc_feed"
    assert hits[0].origin == FEED


def test_parse_garbage_feed_is_empty():
    assert parse_feed("<html><p>not a feed</p></html>", FEED) == []


def test_feed_provider_filters_by_topic_and_runs_once():
    web = FakeWeb({FEED: httpx.Response(200, text=RSS)})

    async def run():
        async with web.client() as client:
            provider = UccFeedProvider(client, [FEED], "ua", topic="acme trucking")
            return await provider.search("q1"), await provider.search("q2")

    first, second = asyncio.run(run())
    assert [h.url for h in first] == ["https://acme.example/"]
    assert second == []
    assert len(web.requests) == 1


def test_unreachable_feed_is_skipped():
    web = FakeWeb({FEED: httpx.ConnectError("down")})

    async def run():
        async with web.client() as client:
            return await UccFeedProvider(client, [FEED, "https://other.example/x.rss"], "ua").fetch_all()

    assert asyncio.run(run()) == []


def test_bing_results_normalised():
    def bing(request: httpx.Request) -> httpx.Response:
        assert request.headers["Ocp-Apim-Subscription-Key"] == "key"
        return httpx.Response(200, json={"webPages": {"value": [
            {"url": "https://a.example/", "name": "A", "snippet": "seeking funding"},
            {"url": "ftp://b.example/", "name": "B"},
        ]}})

    web = FakeWeb({BING_ENDPOINT: bing})

    async def run():
        async with web.client() as client:
            return await BingProvider(client, "key").search("acme")

    hits = asyncio.run(run())
    assert [(h.title, h.url, h.snippet, h.source) for h in hits] == [
        ("A", "https://a.example/", "seeking funding", "bing"),
    ]
    assert web.requests[0].url.params["q"] == "acme"


def test_bing_error_is_empty():
    web = FakeWeb({BING_ENDPOINT: httpx.Response(401)})

    async def run():
        async with web.client() as client:
            return await BingProvider(client, "key").search("acme")

    assert asyncio.run(run()) == []


def test_keyless_providers_are_unconfigured():
    client = httpx.AsyncClient()
    assert not BingProvider(client, "").is_configured
    assert not SerpApiProvider(client, "").is_configured
    assert not OpenCorporatesProvider(OpenCorporatesClient(client), "acme").is_configured
    assert not UccFeedProvider(client, [], "ua").is_configured


def test_registry_hits_describe_company():
    def companies(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": {"companies": [
            {"company": {"company_name": "ACME TRUCKING INC", "jurisdiction_code": "us_de",
                         "company_number": "7654321",
                         "opencorporates_url": "https://opencorporates.com/companies/us_de/7654321"}},
            {"company": {"company_name": "NO PAGE LLC", "jurisdiction_code": "us_tx"}},
        ]}})

    web = FakeWeb({"https://api.opencorporates.com/v0.4/companies/search": companies})

    async def run():
        async with web.client() as client:
            provider = OpenCorporatesProvider(OpenCorporatesClient(client, api_key="k"), "Acme Trucking")
            return await provider.search("ignored"), await provider.search("ignored again")

    first, second = asyncio.run(run())
    assert len(first) == 1
    assert first[0].title == "ACME TRUCKING INC"
    assert first[0].snippet == "Company number: 7654321 • Jurisdiction: us_de"
    assert second == []
    assert web.requests[0].url.params["q"] == "Acme Trucking"


def test_load_config_from_env(monkeypatch):
    for name in ("BING_API_KEY", "SERPAPI_KEY", "OPENCORPORATES_KEY", "HUNTER_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FEED_URLS", f"{FEED}, https://other.example/x.rss ,")
    monkeypatch.setenv("MAX_CONCURRENCY", "3")
    monkeypatch.setenv("ROBOTS_ALLOW_ON_ERROR", "false")

    cfg = load_config()
    assert cfg.bing_api_key == ""
    assert cfg.feed_urls == [FEED, "https://other.example/x.rss"]
    assert cfg.max_concurrency == 3
    assert cfg.robots_allow_on_error is False
    assert cfg.raw_hit_threshold == 30


def test_default_feeds(monkeypatch):
    monkeypatch.delenv("FEED_URLS", raising=False)
    assert load_config().feed_urls == list(DEFAULT_FEEDS)
