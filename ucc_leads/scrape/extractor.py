"""Content extraction: title, body excerpt, contact links, tags, filing refs.

Body text comes from trafilatura when it finds a main-content block, and
from a plain BeautifulSoup visible-text pass otherwise. Tagging and
filing-reference matching are pure functions over text.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import unquote

import trafilatura
from bs4 import BeautifulSoup

from ucc_leads.models import ExtractedCandidate, SearchHit, Tag

logger = logging.getLogger(__name__)

# "UCC", optional "-1"/"1", a separator, then a 5-50 character id token
FILING_REF_PATTERN = re.compile(r"\bUCC(?:-?1)?[\s:#\-]+[A-Za-z0-9\-/]{5,50}(?![A-Za-z0-9\-/])", re.I)

# Matched against lower-cased title + snippet + excerpt
TAG_PATTERNS: dict[Tag, re.Pattern] = {
    Tag.UCC: re.compile(
        r"\bucc(?:-?1)?\b|financing statements?|secured party|security interest"
        r"|\blien (?:filing|search)|\bliens?\b"
    ),
    Tag.FUNDING: re.compile(
        r"seeking (?:funding|financing|capital)|merchant cash advance|\bmca\b"
        r"|working capital|business loans?|\bloans?\b|line of credit"
        r"|bridge (?:loan|financing)|\bfunding\b|\bfinancing needs?\b"
    ),
    Tag.REVENUE_HINT: re.compile(
        r"\$\s?\d[\d,.]*\s?(?:k|m|mm|million|b|billion)\b|\brevenues?\b"
        r"|annual sales|gross sales|\bturnover\b|\barr\b"
    ),
}

MIN_MAIN_CONTENT = 100  # Below this, trafilatura output is discarded


def tag_text(title: str, snippet: str, text: str) -> frozenset[Tag]:
    """Assign domain tags from title, snippet and body text.

    Tags are independent and additive; the result depends on the text only.
    """
    haystack = f"{title} {snippet} {text}".lower()
    return frozenset(tag for tag, pattern in TAG_PATTERNS.items() if pattern.search(haystack))


def find_filing_refs(text: str, limit: int = 5) -> list[str]:
    """Distinct filing references in first-seen order, at most ``limit``.

    Case is preserved; filing codes can be case-sensitive.
    """
    refs: list[str] = []
    for match in FILING_REF_PATTERN.finditer(text or ""):
        ref = match.group(0).strip()
        if ref not in refs:
            refs.append(ref)
            if len(refs) >= limit:
                break
    return refs


def extract_contact_links(html: str) -> tuple[str | None, str | None]:
    """First mailto: email and first tel: phone in document order."""
    soup = BeautifulSoup(html, "lxml")
    email = None
    phone = None
    for a in soup.select("a[href]"):
        href = (a.get("href") or "").strip()
        scheme, _, rest = href.partition(":")
        scheme = scheme.lower()
        if scheme == "mailto" and email is None:
            value = unquote(rest.split("?")[0]).strip()
            if "@" in value:
                email = value
        elif scheme == "tel" and phone is None:
            value = unquote(rest).strip()
            if value:
                phone = value
        if email and phone:
            break
    return email, phone


def extract_candidate(
    html: str,
    hit: SearchHit,
    max_chars: int = 3000,
    max_refs: int = 5,
) -> ExtractedCandidate:
    """Build an ExtractedCandidate from a fetched page and its hit."""
    soup = BeautifulSoup(html, "lxml")

    title = ""
    if soup.title and soup.title.string:
        title = _normalize_ws(soup.title.string)
    title = title or hit.title or hit.url

    excerpt = _body_text(html, soup, hit.url)[:max_chars]

    return ExtractedCandidate(
        title=title,
        url=hit.url,
        snippet=hit.snippet,
        source=hit.source,
        tags=tag_text(title, hit.snippet, excerpt),
        filing_refs=tuple(find_filing_refs(excerpt, limit=max_refs)),
        body_excerpt=excerpt,
    )


def safe_extract(
    html: str | None,
    hit: SearchHit,
    max_chars: int = 3000,
    max_refs: int = 5,
) -> ExtractedCandidate | None:
    """extract_candidate that returns None instead of raising."""
    if not html:
        return None
    try:
        return extract_candidate(html, hit, max_chars=max_chars, max_refs=max_refs)
    except Exception as e:
        logger.warning("Extraction failed for %s: %s", hit.url[:80], e)
        return None


def _body_text(html: str, soup: BeautifulSoup, url: str) -> str:
    content = None
    try:
        content = trafilatura.extract(
            html,
            include_tables=True,
            include_links=False,
            include_comments=False,
            favor_recall=True,
            url=url,
        )
    except Exception as e:
        logger.debug("trafilatura failed for %s: %s", url[:60], e)

    if content and len(content) >= MIN_MAIN_CONTENT:
        return _normalize_ws(content)
    return _visible_text(soup)


def _visible_text(soup: BeautifulSoup) -> str:
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    root = soup.body or soup
    return _normalize_ws(root.get_text(" "))


def _normalize_ws(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
