"""DuckDuckGo web search via ddgs. Needs no credential, so it is the fallback."""

from __future__ import annotations

import asyncio
import logging
import time

from ddgs import DDGS

logger = logging.getLogger(__name__)

MIN_INTERVAL = 2.0  # seconds between calls from one process


class DuckDuckGoSearch:
    """Serialised ddgs text search.

    ddgs is synchronous, so each call runs in a worker thread under a
    timeout. Calls share one lock and are spaced by ``min_interval``.
    """

    def __init__(self, min_interval: float = MIN_INTERVAL, retries_on_429: int = 1):
        self.min_interval = min_interval
        self.retries_on_429 = retries_on_429
        self._lock: asyncio.Lock | None = None
        self._last_call = 0.0

    async def search(self, query: str, num_results: int = 10, timeout: float = 15) -> dict:
        """Returns {'organic_results': [{link, title, snippet, position}]} or {'error': ...}."""
        if self._lock is None:
            self._lock = asyncio.Lock()

        attempt = 0
        while True:
            async with self._lock:
                wait = self._last_call + self.min_interval - time.monotonic()
                if wait > 0:
                    await asyncio.sleep(wait)
                try:
                    rows = await asyncio.wait_for(
                        asyncio.to_thread(_text_search, query, num_results),
                        timeout=timeout,
                    )
                    return {"organic_results": _to_organic(rows)}
                except asyncio.TimeoutError:
                    logger.warning("DuckDuckGo timeout for query: %s", query[:80])
                    return {"error": "timeout"}
                except Exception as e:
                    rate_limited = "429" in str(e) or "Too Many" in str(e)
                    if not rate_limited or attempt >= self.retries_on_429:
                        logger.warning("DuckDuckGo error for '%s': %s", query[:80], e)
                        return {"error": str(e)}
                finally:
                    self._last_call = time.monotonic()
            attempt += 1
            logger.debug("DuckDuckGo rate limited, retry %d for '%s'", attempt, query[:40])
            await asyncio.sleep(self.min_interval * attempt)


def _text_search(query: str, num_results: int) -> list[dict]:
    with DDGS() as ddgs:
        return list(ddgs.text(query, max_results=num_results))


def _to_organic(rows: list[dict]) -> list[dict]:
    return [
        {
            "link": row["href"],
            "title": row.get("title", ""),
            "snippet": row.get("body", ""),
            "position": i,
        }
        for i, row in enumerate(rows, start=1)
        if row.get("href")
    ]


_default = DuckDuckGoSearch()


async def search_ddg(query: str, num_results: int = 10, timeout: float = 15) -> dict:
    """Search through the process-wide serialised client."""
    return await _default.search(query, num_results=num_results, timeout=timeout)
