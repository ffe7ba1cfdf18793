"""Async Bing Web Search client."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

BING_ENDPOINT = "https://api.bing.microsoft.com/v7.0/search"


async def search_bing(
    client: httpx.AsyncClient,
    query: str,
    api_key: str,
    num_results: int = 10,
    timeout: float = 15,
) -> dict:
    """Execute a web search via the Bing Web Search API.

    Returns a normalised dict with:
      - 'organic_results': list of {link, title, snippet, position}
    Returns a dict with an 'error' key on failure.
    """
    try:
        response = await client.get(
            BING_ENDPOINT,
            params={"q": query, "count": num_results},
            headers={"Ocp-Apim-Subscription-Key": api_key},
            timeout=timeout,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.TimeoutException:
        logger.warning("Bing timeout for query: %s", query[:80])
        return {"error": "timeout"}
    except httpx.HTTPStatusError as e:
        logger.warning("Bing HTTP %d for query: %s", e.response.status_code, query[:80])
        return {"error": f"http_{e.response.status_code}"}
    except Exception as e:
        logger.warning("Bing error for query '%s': %s", query[:80], e)
        return {"error": str(e)}

    pages = (data.get("webPages") or {}).get("value") or []
    organic_results = []
    for i, page in enumerate(pages):
        organic_results.append({
            "link": page.get("url", ""),
            "title": page.get("name", ""),
            "snippet": page.get("snippet", ""),
            "position": i + 1,
        })
    return {"organic_results": organic_results}
