"""Configuration management via environment variables and .env file."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "UCC-Lead-Aggregator/1.0 (+https://yourdomain.example)"

DEFAULT_FEEDS = [
    "https://icis.corp.delaware.gov/Ecorp/UCC/UCC.rss",
]


class Config(BaseModel):
    """Application configuration loaded from environment."""

    # Provider credentials (each optional; absence disables that integration)
    bing_api_key: str = ""
    serpapi_key: str = ""
    opencorporates_key: str = ""
    hunter_key: str = ""

    # Public filing feeds (RSS/Atom)
    feed_urls: list[str] = Field(default_factory=lambda: list(DEFAULT_FEEDS))

    # Sent on every outbound request
    user_agent: str = DEFAULT_USER_AGENT

    # Search settings
    raw_hit_threshold: int = 30  # Stop issuing queries once this many raw hits
    results_per_query: int = 10
    query_round_delay: float = 0.5
    relevance_filter: bool = False

    # Extraction / ranking
    excerpt_max_chars: int = 3000
    max_filing_refs: int = 5
    max_results: int = 50

    # Timeouts (seconds)
    provider_timeout: float = 15
    robots_timeout: float = 8
    page_timeout: float = 12
    enrich_timeout: float = 12
    request_deadline: float = 60
    fetch_retries: int = 1

    # Concurrency (shared by page fetches and enrichment)
    max_concurrency: int = 6

    # Crawl policy when robots.txt cannot be fetched or parsed
    robots_allow_on_error: bool = True

    # Web server
    web_host: str = "0.0.0.0"
    web_port: int = 8000


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


def load_config() -> Config:
    """Load configuration from .env file and environment variables.

    Environment variables override .env values. Every credential is
    optional; a missing one only disables the matching provider.
    """
    load_dotenv()

    keys = {
        "BING_API_KEY": os.getenv("BING_API_KEY", ""),
        "SERPAPI_KEY": os.getenv("SERPAPI_KEY", ""),
        "OPENCORPORATES_KEY": os.getenv("OPENCORPORATES_KEY", ""),
        "HUNTER_KEY": os.getenv("HUNTER_KEY", ""),
    }
    for name, value in keys.items():
        if not value:
            logger.info("%s not set — integration disabled", name)

    feed_env = os.getenv("FEED_URLS")
    if feed_env:
        feed_urls = [f.strip() for f in feed_env.split(",") if f.strip()]
    else:
        feed_urls = list(DEFAULT_FEEDS)

    return Config(
        bing_api_key=keys["BING_API_KEY"],
        serpapi_key=keys["SERPAPI_KEY"],
        opencorporates_key=keys["OPENCORPORATES_KEY"],
        hunter_key=keys["HUNTER_KEY"],
        feed_urls=feed_urls,
        user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
        raw_hit_threshold=int(os.getenv("RAW_HIT_THRESHOLD", "30")),
        results_per_query=int(os.getenv("RESULTS_PER_QUERY", "10")),
        query_round_delay=float(os.getenv("QUERY_ROUND_DELAY", "0.5")),
        relevance_filter=_env_bool("RELEVANCE_FILTER", False),
        excerpt_max_chars=int(os.getenv("EXCERPT_MAX_CHARS", "3000")),
        max_filing_refs=int(os.getenv("MAX_FILING_REFS", "5")),
        max_results=int(os.getenv("MAX_RESULTS", "50")),
        provider_timeout=float(os.getenv("PROVIDER_TIMEOUT", "15")),
        robots_timeout=float(os.getenv("ROBOTS_TIMEOUT", "8")),
        page_timeout=float(os.getenv("PAGE_TIMEOUT", "12")),
        enrich_timeout=float(os.getenv("ENRICH_TIMEOUT", "12")),
        request_deadline=float(os.getenv("REQUEST_DEADLINE", "60")),
        fetch_retries=int(os.getenv("FETCH_RETRIES", "1")),
        max_concurrency=int(os.getenv("MAX_CONCURRENCY", "6")),
        robots_allow_on_error=_env_bool("ROBOTS_ALLOW_ON_ERROR", True),
        web_host=os.getenv("WEB_HOST", "0.0.0.0"),
        web_port=int(os.getenv("WEB_PORT", "8000")),
    )
