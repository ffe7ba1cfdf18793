"""URL normalisation and order-preserving deduplication."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import TypeVar
from urllib.parse import urlparse

from ucc_leads.models import SearchHit

T = TypeVar("T")

# Loose relevance signal for search snippets (optional post-filter)
RELEVANCE_PATTERN = re.compile(r"fund|loan|merchant|advance|mca|ucc|seeking|apply", re.I)


def normalize_url(url: str) -> str:
    """Normalize URL for deduplication.

    Keeps scheme, host and path; drops query string and fragment;
    lower-cases the result.
    """
    parsed = urlparse(url.strip())
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}".lower()


def unique_by(items: Iterable[T], key: Callable[[T], str]) -> list[T]:
    """Stable filter keeping the first item seen for each key."""
    seen: set[str] = set()
    out: list[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out


def dedupe_hits(hits: Iterable[SearchHit]) -> list[SearchHit]:
    """Collapse raw hits to one per normalized URL, first occurrence wins.

    Hits without an http(s) URL are dropped.
    """
    usable = [h for h in hits if _is_http(h.url)]
    return unique_by(usable, lambda h: normalize_url(h.url))


def dedupe_feed_entries(hits: Iterable[SearchHit]) -> list[SearchHit]:
    """Collapse feed entries by normalized link, or by title/snippet when linkless."""
    return unique_by(hits, _feed_key)


def filter_relevant(hits: Iterable[SearchHit]) -> list[SearchHit]:
    """Keep hits whose title or snippet mentions funding vocabulary."""
    return [
        h for h in hits
        if RELEVANCE_PATTERN.search(f"{h.title} {h.snippet}")
    ]


def _feed_key(hit: SearchHit) -> str:
    if hit.url:
        return normalize_url(hit.url)
    return (hit.title or hit.snippet).strip().lower()


def _is_http(url: str) -> bool:
    url = (url or "").strip().lower()
    return url.startswith("http://") or url.startswith("https://")
