"""Async page fetcher with a declared user agent and retry logic."""

from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPES = ("text/html", "text/plain", "application/xhtml", "xml")


class PageFetcher:
    """Fetches third-party pages over a shared client.

    Never raises: every failure comes back as (None, error_string).
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        timeout: float = 12,
        max_retries: int = 1,
    ):
        self.client = client
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def fetch(self, url: str) -> tuple[str | None, str | None]:
        """Fetch a URL and return (body_text, error_message).

        Returns (content, None) on success or (None, error_string) on failure.
        Retries on 429/503 and connection errors; a timeout is final.
        """
        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.get(
                    url,
                    headers=self._headers(),
                    timeout=self.timeout,
                    follow_redirects=True,
                )

                if response.status_code in (429, 503) and attempt < self.max_retries:
                    last_error = f"HTTP {response.status_code} (retrying)"
                    await asyncio.sleep(2 * (attempt + 1))
                    continue

                if response.status_code >= 400:
                    return None, f"HTTP {response.status_code}"

                content_type = response.headers.get("content-type", "text/html")
                if not any(t in content_type for t in TEXT_CONTENT_TYPES):
                    return None, f"Non-HTML content: {content_type[:50]}"

                return response.text, None

            except httpx.TimeoutException:
                # Final: the page timeout bounds the whole fetch
                logger.debug("Fetch timed out for %s", url[:80])
                return None, "timeout"
            except httpx.TooManyRedirects:
                return None, "too_many_redirects"
            except Exception as e:
                last_error = str(e)[:100]
                if attempt < self.max_retries:
                    await asyncio.sleep(1)
                    continue

        logger.debug("Fetch failed for %s: %s", url[:80], last_error)
        return None, last_error
