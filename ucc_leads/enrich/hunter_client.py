"""Hunter.io domain-search client (contact directory)."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

HUNTER_DOMAIN_SEARCH_URL = "https://api.hunter.io/v2/domain-search"


class HunterClient:
    """Looks up published email addresses for a domain."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = "",
        user_agent: str = "",
        timeout: float = 12,
    ):
        self.client = client
        self.api_key = api_key
        self.user_agent = user_agent
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def email_for_domain(self, domain: str | None) -> str | None:
        """Return the first email Hunter lists for a domain, or None."""
        if not self.api_key or not domain:
            return None
        try:
            r = await self.client.get(
                HUNTER_DOMAIN_SEARCH_URL,
                params={"domain": domain, "api_key": self.api_key, "limit": 5},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json().get("data") or {}
        except httpx.TimeoutException:
            logger.warning("Hunter timeout for %s", domain)
            return None
        except httpx.HTTPStatusError as e:
            logger.warning("Hunter HTTP %d for %s", e.response.status_code, domain)
            return None
        except Exception as e:
            logger.warning("Hunter error for %s: %s", domain, e)
            return None

        emails = [e.get("value") for e in data.get("emails") or [] if e.get("value")]
        return emails[0] if emails else None
