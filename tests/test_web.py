from fastapi.testclient import TestClient

from ucc_leads.models import ExtractedCandidate, FeedResponse, LeadItem, LeadRecord, SearchResponse, Tag
from ucc_leads.pipeline import validate_topic
from ucc_leads.web.app import app
from ucc_leads.web.deps import get_pipeline


class StubPipeline:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.topics: list = []

    async def run(self, topic):
        self.topics.append(topic)
        topic = validate_topic(topic)
        if self.error:
            raise self.error
        candidate = ExtractedCandidate(url="https://abc.example/", title="ABC", tags=frozenset({Tag.UCC}))
        lead = LeadRecord(source_url=candidate.url, business_name="ABC LLC", email="info@abc.example")
        return SearchResponse(query=topic, items=[LeadItem.build(candidate, lead, 100)])

    async def run_feeds(self):
        if self.error:
            raise self.error
        return FeedResponse()


def _client(stub: StubPipeline) -> TestClient:
    app.dependency_overrides[get_pipeline] = lambda: stub
    return TestClient(app)


def teardown_function():
    app.dependency_overrides.clear()


def test_search_returns_items():
    resp = _client(StubPipeline()).get("/api/search", params={"q": "ABC Logistics"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["query"] == "ABC Logistics"
    assert body["items"][0]["tags"] == ["UCC"]
    assert body["items"][0]["email"] == "info@abc.example"


def test_missing_q_is_400():
    client = _client(StubPipeline())
    for params in ({}, {"q": ""}, {"q": "   "}):
        resp = client.get("/api/search", params=params)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing q"}


def test_pipeline_failure_is_500():
    resp = _client(StubPipeline(error=RuntimeError("boom"))).get("/api/search", params={"q": "x"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "search failed", "details": "boom"}


def test_feed_leads():
    resp = _client(StubPipeline()).get("/api/leads")
    assert resp.status_code == 200
    assert resp.json() == {"items": []}


def test_healthz():
    assert TestClient(app).get("/healthz").json() == {"status": "ok"}
