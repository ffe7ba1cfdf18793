"""Pydantic data models for the lead discovery pipeline."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Tag(str, Enum):
    """Domain signals assigned by the content tagger."""
    UCC = "UCC"
    FUNDING = "FUNDING"
    REVENUE_HINT = "REVENUE_HINT"


TAG_ORDER = [Tag.UCC, Tag.FUNDING, Tag.REVENUE_HINT]


# ---------------------------------------------------------------------------
# Search models
# ---------------------------------------------------------------------------

class SearchHit(BaseModel):
    """A single raw result from a search provider or filing feed."""
    model_config = ConfigDict(frozen=True)

    title: str = ""
    url: str
    snippet: str = ""
    source: str = ""  # Provider name (bing, serpapi, opencorporates, ucc_feed, ...)
    origin: str = ""  # Feed URL for feed items, empty for search engines


class RegistryCompany(BaseModel):
    """A company match from the company registry."""
    name: str = ""
    jurisdiction: str = ""
    company_number: str = ""
    url: str = ""


# ---------------------------------------------------------------------------
# Extraction models
# ---------------------------------------------------------------------------

class ExtractedCandidate(BaseModel):
    """Structured signals parsed from one fetched page."""
    model_config = ConfigDict(frozen=True)

    title: str = ""
    url: str
    snippet: str = ""
    source: str = ""
    tags: frozenset[Tag] = frozenset()
    filing_refs: tuple[str, ...] = ()  # First-seen order, max 5
    body_excerpt: str = ""

    @field_serializer("tags")
    def _serialize_tags(self, tags: frozenset[Tag]) -> list[str]:
        return [t.value for t in TAG_ORDER if t in tags]

    @classmethod
    def from_hit(cls, hit: SearchHit) -> ExtractedCandidate:
        """Candidate carrying only provider-supplied fields (no page content)."""
        return cls(
            title=hit.title or hit.url,
            url=hit.url,
            snippet=hit.snippet,
            source=hit.source,
        )


# ---------------------------------------------------------------------------
# Enrichment models
# ---------------------------------------------------------------------------

class LeadRecord(BaseModel):
    """The enrichment target: one business with its contact fields."""
    model_config = ConfigDict(frozen=True)

    title: str = ""
    source_url: str
    feed_origin: str = ""
    jurisdiction: str | None = None
    filing_id: str | None = None
    business_name: str = ""
    email: str | None = None
    phone: str | None = None

    def with_contact(
        self, email: str | None = None, phone: str | None = None,
    ) -> LeadRecord:
        """Return a copy with empty contact fields filled; never overwrites."""
        update: dict[str, str] = {}
        if email and not self.email:
            update["email"] = email
        if phone and not self.phone:
            update["phone"] = phone
        if not update:
            return self
        return self.model_copy(update=update)

    @property
    def has_contacts(self) -> bool:
        return bool(self.email and self.phone)


# ---------------------------------------------------------------------------
# Output models
# ---------------------------------------------------------------------------

class LeadItem(ExtractedCandidate):
    """An extracted candidate with its enrichment fields and score embedded."""
    business_name: str = ""
    feed_origin: str = ""
    jurisdiction: str | None = None
    filing_id: str | None = None
    email: str | None = None
    phone: str | None = None
    score: int = 0

    @classmethod
    def build(
        cls, candidate: ExtractedCandidate, lead: LeadRecord, score: int = 0,
    ) -> LeadItem:
        return cls(
            **candidate.model_dump(exclude={"tags"}),
            tags=candidate.tags,
            business_name=lead.business_name,
            feed_origin=lead.feed_origin,
            jurisdiction=lead.jurisdiction,
            filing_id=lead.filing_id,
            email=lead.email,
            phone=lead.phone,
            score=score,
        )


class SearchResponse(BaseModel):
    query: str
    items: list[LeadItem] = Field(default_factory=list)


class FeedResponse(BaseModel):
    items: list[LeadItem] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    details: str = ""
