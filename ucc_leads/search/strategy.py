"""Query templates that expand a topic into targeted search queries."""

from __future__ import annotations

import re

# Bump when the template list changes; recall/precision shifts with it.
QUERY_TEMPLATES_VERSION = 2

QUERY_TEMPLATES: list[dict] = [
    {
        "template": '{topic} "UCC-1" OR "financing statement"',
        "purpose": "ucc_filing",
    },
    {
        "template": '{topic} "seeking funding" OR "merchant cash advance"',
        "purpose": "funding_need",
    },
    {
        "template": '{topic} "working capital" OR "business loan" OR "line of credit"',
        "purpose": "lending_vocabulary",
    },
    {
        "template": '{topic} "secured party" OR "security interest" lien',
        "purpose": "lien_vocabulary",
    },
    {
        "template": '{topic} site:opencorporates.com',
        "purpose": "registry_site",
    },
    {
        "template": '{topic} "UCC" filing site:.gov',
        "purpose": "government_site",
    },
]

FALLBACK_TEMPLATE = '{topic} "seeking funding" "merchant cash advance"'


def generate_queries(topic: str, max_queries: int | None = None) -> list[str]:
    """Expand a topic into an ordered list of query strings.

    The topic is caller-validated (non-empty). Always returns at least
    one query.
    """
    clean = _clean_topic(topic)
    queries = [t["template"].format(topic=clean) for t in QUERY_TEMPLATES]
    if max_queries is not None:
        queries = queries[:max(1, max_queries)]
    return queries


def fallback_query(topic: str) -> str:
    """Generic web query used when every provider came back empty."""
    return FALLBACK_TEMPLATE.format(topic=_clean_topic(topic))


def topic_terms(topic: str) -> list[str]:
    """Lower-cased words of a topic useful for matching feed items.

    e.g. "ABC Logistics LLC" -> ["abc", "logistics", "llc"]
    """
    return [w for w in re.findall(r"[a-z0-9]+", topic.lower()) if len(w) >= 3]


def _clean_topic(topic: str) -> str:
    return re.sub(r"\s+", " ", topic).strip()
