import asyncio

import httpx

from conftest import FakeWeb

from ucc_leads.enrich.hunter_client import HunterClient
from ucc_leads.enrich.opencorporates_client import OpenCorporatesClient
from ucc_leads.enrich.waterfall import EnrichmentWaterfall, domain_from_url
from ucc_leads.models import LeadRecord
from ucc_leads.scrape.http_scraper import PageFetcher
from ucc_leads.scrape.robots import RobotsGate

UA = "UCC-Lead-Aggregator/1.0 (+https://yourdomain.example)"
HUNTER = "https://api.hunter.io/v2/domain-search"
OPENCORP = "https://api.opencorporates.com/v0.4/companies/search"
SOURCE = "https://www.abc-logistics.example/about"
REGISTRY_PAGE = "https://opencorporates.com/companies/us_de/1234567"

CONTACT_PAGE = """
<html><body>
<a href="mailto:info@abc-logistics.example">Email</a>
<a href="tel:3025550100">Call</a>
</body></html>
"""


def _hunter(emails: list[str]):
    def route(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"emails": [{"value": e} for e in emails]}})
    return route


def _opencorporates(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"results": {"companies": [{"company": {
        "company_name": "ABC LOGISTICS LLC",
        "jurisdiction_code": "us_de",
        "company_number": "1234567",
        "opencorporates_url": REGISTRY_PAGE,
    }}]}})


def _enrich(web: FakeWeb, lead: LeadRecord, hunter_key="", oc_key="", known_pages=None) -> LeadRecord:
    async def run():
        async with web.client() as client:
            waterfall = EnrichmentWaterfall(
                PageFetcher(client, UA, max_retries=0),
                RobotsGate(client, UA),
                HunterClient(client, api_key=hunter_key),
                OpenCorporatesClient(client, api_key=oc_key),
            )
            return await waterfall.enrich(lead, known_pages=known_pages)
    return asyncio.run(run())


def _lead(**kw) -> LeadRecord:
    return LeadRecord(source_url=SOURCE, title="ABC", business_name="ABC Logistics", **kw)


def test_domain_from_url_is_registrable_domain():
    assert domain_from_url("https://www.Example.com/a") == "example.com"
    assert domain_from_url("https://shop.example.com") == "example.com"
    assert domain_from_url("https://shop.example.co.uk/x") == "example.co.uk"
    assert domain_from_url("https://contact.abc-logistics.example/about") == "abc-logistics.example"
    assert domain_from_url("nonsense") is None


def test_contacts_from_source_page():
    web = FakeWeb({SOURCE: CONTACT_PAGE})
    lead = _enrich(web, _lead())
    assert lead.email == "info@abc-logistics.example"
    assert lead.phone == "3025550100"


def test_directory_email_wins_over_page_email():
    web = FakeWeb({HUNTER: _hunter(["sales@abc-logistics.example", "x@abc-logistics.example"]),
                   SOURCE: CONTACT_PAGE})
    lead = _enrich(web, _lead(), hunter_key="k")
    assert lead.email == "sales@abc-logistics.example"
    assert lead.phone == "3025550100"
    hunter_req = next(r for r in web.requests if r.url.host == "api.hunter.io")
    assert hunter_req.url.params["domain"] == "abc-logistics.example"


def test_directory_skipped_without_key():
    web = FakeWeb({HUNTER: _hunter(["sales@abc-logistics.example"]), SOURCE: CONTACT_PAGE})
    _enrich(web, _lead())
    assert all(r.url.host != "api.hunter.io" for r in web.requests)


def test_filled_fields_are_never_overwritten():
    web = FakeWeb({HUNTER: _hunter(["sales@abc-logistics.example"]), SOURCE: CONTACT_PAGE})
    lead = _enrich(web, _lead(email="owner@abc.example", phone="555"), hunter_key="k")
    assert lead.email == "owner@abc.example"
    assert lead.phone == "555"
    assert web.requests == []


def test_enrich_is_idempotent():
    web = FakeWeb({SOURCE: CONTACT_PAGE})
    once = _enrich(web, _lead())
    twice = _enrich(web, once)
    assert once == twice


def test_robots_disallow_skips_page():
    web = FakeWeb({
        "https://www.abc-logistics.example/robots.txt": httpx.Response(
            200, text="User-agent: *\nDisallow: /\n"),
        SOURCE: CONTACT_PAGE,
    })
    lead = _enrich(web, _lead())
    assert lead.email is None and lead.phone is None
    assert SOURCE not in web.paths_requested()


def test_known_failed_page_is_not_refetched():
    web = FakeWeb({SOURCE: CONTACT_PAGE})
    lead = _enrich(web, _lead(), known_pages={SOURCE: None})
    assert lead.email is None
    assert web.requests == []


def test_registry_renames_but_registry_page_gives_no_contacts():
    web = FakeWeb({
        HUNTER: _hunter([]),
        OPENCORP: _opencorporates,
        SOURCE: "<p>no contacts</p>",
        REGISTRY_PAGE: '<a href="mailto:support@opencorporates.com">x</a>',
    })
    lead = _enrich(web, _lead(), hunter_key="k", oc_key="k")
    assert lead.business_name == "ABC LOGISTICS LLC"
    assert lead.jurisdiction == "us_de"
    assert lead.email is None
    assert REGISTRY_PAGE not in web.paths_requested()
    hunter_domains = [r.url.params["domain"] for r in web.requests if r.url.host == "api.hunter.io"]
    assert hunter_domains == ["abc-logistics.example"]


def test_registry_source_url_skips_contact_steps():
    web = FakeWeb({
        HUNTER: _hunter(["support@opencorporates.com"]),
        REGISTRY_PAGE: '<a href="mailto:support@opencorporates.com">x</a>',
    })
    lead = LeadRecord(source_url=REGISTRY_PAGE, business_name="ABC LOGISTICS LLC")
    assert _enrich(web, lead, hunter_key="k") == lead
    assert web.requests == []


def test_off_registry_company_url_supplies_contacts():
    def registry(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": {"companies": [{"company": {
            "company_name": "ABC LOGISTICS LLC",
            "opencorporates_url": "https://filings.abc-logistics.example/",
        }}]}})

    web = FakeWeb({
        OPENCORP: registry,
        SOURCE: "<p>no contacts</p>",
        "https://filings.abc-logistics.example/": '<a href="mailto:filings@abc-logistics.example">x</a>',
    })
    lead = _enrich(web, _lead(), oc_key="k")
    assert lead.email == "filings@abc-logistics.example"


def test_directory_queried_with_registrable_domain():
    source = "https://contact.abc-logistics.example/about"
    web = FakeWeb({HUNTER: _hunter(["sales@abc-logistics.example"])})
    lead = _enrich(web, LeadRecord(source_url=source, business_name="ABC"), hunter_key="k")
    assert lead.email == "sales@abc-logistics.example"
    hunter_req = next(r for r in web.requests if r.url.host == "api.hunter.io")
    assert hunter_req.url.params["domain"] == "abc-logistics.example"


def test_registry_page_not_fetched_when_email_known():
    web = FakeWeb({
        OPENCORP: _opencorporates,
        SOURCE: '<a href="mailto:info@abc-logistics.example">x</a>',
        REGISTRY_PAGE: '<a href="mailto:filings@abc-logistics.example">x</a>',
    })
    lead = _enrich(web, _lead(), oc_key="k")
    assert lead.business_name == "ABC LOGISTICS LLC"
    assert lead.email == "info@abc-logistics.example"
    assert REGISTRY_PAGE not in web.paths_requested()


def test_provider_errors_do_not_escape():
    web = FakeWeb({
        HUNTER: httpx.Response(500),
        OPENCORP: httpx.ReadTimeout("slow"),
        SOURCE: httpx.ConnectError("refused"),
    })
    lead = _enrich(web, _lead(), hunter_key="k", oc_key="k")
    assert lead == _lead()
