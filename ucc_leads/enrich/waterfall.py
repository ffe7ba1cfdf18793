"""Contact enrichment waterfall.

Resolvers run in a fixed order over an immutable LeadRecord:

1. registrable domain of the source URL
2. contact directory (Hunter) by domain: email only
3. mailto:/tel: links on the source page, if robots.txt allows
4. company registry (OpenCorporates) by business name: canonical name,
   then steps 2-3 again on the registry URL while email is still missing

Steps 2-3 never run against the registry's own pages (REGISTRY_DOMAINS):
their contacts belong to the registry, not the company.

Each resolver returns the record unchanged or a copy with newly filled
fields. A filled email/phone is never overwritten.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import tldextract

from ucc_leads.enrich.hunter_client import HunterClient
from ucc_leads.enrich.opencorporates_client import REGISTRY_DOMAINS, OpenCorporatesClient
from ucc_leads.models import LeadRecord
from ucc_leads.scrape.extractor import extract_contact_links
from ucc_leads.scrape.http_scraper import PageFetcher
from ucc_leads.scrape.robots import RobotsGate

logger = logging.getLogger(__name__)

# Bundled public suffix snapshot; never fetched at runtime
_extract = tldextract.TLDExtract(suffix_list_urls=())


def domain_from_url(url: str) -> str | None:
    """Registrable domain (eTLD+1) of a URL, or None.

    Hosts under a suffix missing from the public suffix list (.example,
    .internal) keep their last two labels.
    """
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    ext = _extract(host)
    if ext.suffix:
        return ".".join(p for p in (ext.domain, ext.suffix) if p)
    if not ext.subdomain:
        return ext.domain or None
    return f"{ext.subdomain.rsplit('.', 1)[-1]}.{ext.domain}"


class EnrichmentWaterfall:
    """Fills email/phone/business name for one lead at a time."""

    def __init__(
        self,
        fetcher: PageFetcher,
        robots: RobotsGate,
        directory: HunterClient,
        registry: OpenCorporatesClient,
    ):
        self.fetcher = fetcher
        self.robots = robots
        self.directory = directory
        self.registry = registry

    async def enrich(
        self,
        lead: LeadRecord,
        known_pages: dict[str, str | None] | None = None,
    ) -> LeadRecord:
        """Run the waterfall for one lead.

        ``known_pages`` maps URLs already fetched in this run to their body
        (None for a failed or disallowed fetch) so pages are not refetched.
        """
        pages = dict(known_pages or {})
        lead = await self._contacts_for_url(lead, lead.source_url, pages)
        lead = await self._from_registry(lead, pages)
        return lead

    async def _contacts_for_url(
        self, lead: LeadRecord, url: str, pages: dict[str, str | None],
    ) -> LeadRecord:
        domain = domain_from_url(url)
        if domain in REGISTRY_DOMAINS:
            logger.debug("Skipping contact lookup on registry page %s", url[:80])
            return lead
        lead = await self._from_directory(lead, domain)
        lead = await self._from_page(lead, url, pages)
        return lead

    async def _from_directory(self, lead: LeadRecord, domain: str | None) -> LeadRecord:
        if lead.email or not domain or not self.directory.is_configured:
            return lead
        email = await self.directory.email_for_domain(domain)
        if email:
            logger.debug("Directory email for %s: %s", domain, email)
        return lead.with_contact(email=email)

    async def _from_page(
        self, lead: LeadRecord, url: str, pages: dict[str, str | None],
    ) -> LeadRecord:
        if lead.has_contacts or not url:
            return lead

        if url in pages:
            html = pages[url]
        elif not await self.robots.allowed(url):
            pages[url] = html = None
        else:
            html, error = await self.fetcher.fetch(url)
            if error:
                logger.debug("Contact page fetch failed for %s: %s", url[:80], error)
            pages[url] = html

        if not html:
            return lead
        try:
            email, phone = extract_contact_links(html)
        except Exception as e:
            logger.warning("Contact link parse failed for %s: %s", url[:80], e)
            return lead
        return lead.with_contact(email=email, phone=phone)

    async def _from_registry(
        self, lead: LeadRecord, pages: dict[str, str | None],
    ) -> LeadRecord:
        if not self.registry.is_configured or not lead.business_name:
            return lead
        company = await self.registry.lookup(lead.business_name)
        if company is None:
            return lead

        update: dict[str, str] = {}
        if company.name:
            update["business_name"] = company.name
        if company.jurisdiction and not lead.jurisdiction:
            update["jurisdiction"] = company.jurisdiction
        if update:
            lead = lead.model_copy(update=update)

        if not lead.email and company.url:
            lead = await self._contacts_for_url(lead, company.url, pages)
        return lead
