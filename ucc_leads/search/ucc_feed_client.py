"""Public UCC filing feeds (RSS 2.0 / Atom)."""

from __future__ import annotations

import logging

import httpx
from bs4 import BeautifulSoup

from ucc_leads.models import SearchHit

logger = logging.getLogger(__name__)

FEED_SOURCE = "ucc_feed"


async def fetch_feed(
    client: httpx.AsyncClient,
    feed_url: str,
    user_agent: str,
    timeout: float = 15,
) -> list[SearchHit]:
    """Fetch one feed and map its entries to hits.

    Returns [] if the feed is unreachable or cannot be parsed.
    """
    try:
        response = await client.get(
            feed_url,
            headers={"User-Agent": user_agent},
            timeout=timeout,
        )
        response.raise_for_status()
    except httpx.TimeoutException:
        logger.warning("Feed timeout: %s", feed_url)
        return []
    except httpx.HTTPStatusError as e:
        logger.warning("Feed HTTP %d: %s", e.response.status_code, feed_url)
        return []
    except Exception as e:
        logger.warning("Feed fetch failed %s: %s", feed_url, e)
        return []

    try:
        return parse_feed(response.text, feed_url)
    except Exception as e:
        logger.warning("Feed parse failed %s: %s", feed_url, e)
        return []


def parse_feed(xml: str, feed_url: str) -> list[SearchHit]:
    """Parse RSS <item> or Atom <entry> elements into hits.

    Entries without a link keep an empty url; they can still be enriched
    by name. Entries with no link, title or description are skipped.
    """
    soup = BeautifulSoup(xml, "xml")
    entries = soup.find_all("item") or soup.find_all("entry")

    hits: list[SearchHit] = []
    for entry in entries:
        title = _text(entry, "title")
        link = _link(entry)
        snippet = _text(entry, "description") or _text(entry, "summary")
        if not (link or title or snippet):
            logger.debug("Skipping empty feed entry in %s", feed_url)
            continue
        hits.append(SearchHit(
            title=title,
            url=link,
            snippet=snippet,
            source=FEED_SOURCE,
            origin=feed_url,
        ))
    return hits


def _text(entry, name: str) -> str:
    node = entry.find(name)
    return node.get_text(strip=True) if node else ""


def _link(entry) -> str:
    node = entry.find("link")
    if node is None:
        return ""
    # Atom puts the URL in href, RSS in the element text
    href = node.get("href")
    if href:
        return href.strip()
    return node.get_text(strip=True)
