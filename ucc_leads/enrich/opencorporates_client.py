"""OpenCorporates company registry client."""

from __future__ import annotations

import logging

import httpx

from ucc_leads.models import RegistryCompany

logger = logging.getLogger(__name__)

OPENCORPORATES_SEARCH_URL = "https://api.opencorporates.com/v0.4/companies/search"

# Registry pages describe a company but carry the registry's own contacts
REGISTRY_DOMAINS = frozenset({"opencorporates.com"})


class OpenCorporatesClient:
    """Async client for the OpenCorporates company search endpoint."""

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

    async def search_companies(self, name: str, per_page: int = 5) -> list[RegistryCompany]:
        """Search companies by name. Returns [] on any failure."""
        if not self.api_key or not name:
            return []
        try:
            r = await self.client.get(
                OPENCORPORATES_SEARCH_URL,
                params={"q": name, "api_token": self.api_key, "per_page": per_page},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except httpx.TimeoutException:
            logger.warning("OpenCorporates timeout for '%s'", name[:80])
            return []
        except httpx.HTTPStatusError as e:
            logger.warning("OpenCorporates HTTP %d for '%s'", e.response.status_code, name[:80])
            return []
        except Exception as e:
            logger.warning("OpenCorporates error for '%s': %s", name[:80], e)
            return []

        companies = ((data.get("results") or {}).get("companies")) or []
        return [self._parse_company(c.get("company") or {}) for c in companies if c]

    async def lookup(self, name: str) -> RegistryCompany | None:
        """Best registry match for a business name, or None."""
        companies = await self.search_companies(name)
        return companies[0] if companies else None

    def _parse_company(self, c: dict) -> RegistryCompany:
        return RegistryCompany(
            name=c.get("company_name") or "",
            jurisdiction=c.get("jurisdiction_code") or "",
            company_number=c.get("company_number") or "",
            url=c.get("opencorporates_url") or "",
        )
