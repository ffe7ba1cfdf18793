"""robots.txt gate with a per-origin policy cache."""

from __future__ import annotations

import logging
import urllib.robotparser
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)


def robots_url_for(url: str) -> str | None:
    """Origin robots.txt URL for a page URL, or None if the URL has no host."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}/robots.txt"


class RobotsGate:
    """Decides whether a third-party URL may be crawled.

    Policies are cached per origin for the lifetime of the gate (one
    pipeline run). When robots.txt cannot be fetched or parsed the gate
    answers ``allow_on_error``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        timeout: float = 8,
        allow_on_error: bool = True,
    ):
        self.client = client
        self.user_agent = user_agent
        self.timeout = timeout
        self.allow_on_error = allow_on_error
        # None marks an origin whose robots.txt could not be read
        self._policies: dict[str, urllib.robotparser.RobotFileParser | None] = {}

    async def allowed(self, url: str) -> bool:
        robots_url = robots_url_for(url)
        if robots_url is None:
            return False

        if robots_url not in self._policies:
            # Concurrent loads for one origin may race; the result is the same.
            self._policies[robots_url] = await self._load(robots_url)

        policy = self._policies[robots_url]
        if policy is None:
            return self.allow_on_error
        allowed = policy.can_fetch(self.user_agent, url)
        if not allowed:
            logger.info("robots.txt disallows %s", url[:80])
        return allowed

    async def _load(self, robots_url: str) -> urllib.robotparser.RobotFileParser | None:
        try:
            r = await self.client.get(
                robots_url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
                follow_redirects=True,
            )
        except Exception as e:
            logger.debug("robots.txt fetch failed for %s: %s", robots_url, e)
            return None

        parser = urllib.robotparser.RobotFileParser(robots_url)
        if r.status_code in (404, 410):
            # No robots.txt: everything is allowed
            parser.allow_all = True
            return parser
        if r.status_code >= 400:
            logger.debug("robots.txt HTTP %d for %s", r.status_code, robots_url)
            return None

        try:
            parser.parse(r.text.splitlines())
        except Exception as e:
            logger.debug("robots.txt parse failed for %s: %s", robots_url, e)
            return None
        return parser
