"""
OSRS Wiki client.

Implements WikiLookup against two public APIs:
- the MediaWiki API (article search and plain-text extracts)
- the real-time prices API (item id mapping + latest Grand Exchange trades)

Network failures and non-200 responses come back as "... failed: ..." text
rather than exceptions, so the model can tell the user the lookup did not work.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any

import httpx

from runeagent.config.settings import WikiSettings
from runeagent.tools.base import WikiLookup

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_ENTITY_RE = re.compile(r"&[a-z]+;")

TRUNCATION_MARKER = "\n\n[... content truncated for length ...]"


def _clean_snippet(snippet: str) -> str:
    """Strip the search-highlight HTML the wiki wraps around matches."""
    return _ENTITY_RE.sub(" ", _TAG_RE.sub("", snippet))


class WikiClient(WikiLookup):
    """
    Async OSRS Wiki client.

    Args:
        settings: Endpoint URLs, User-Agent, timeout and size limits
        client: Optional pre-built httpx.AsyncClient (tests pass one with a
                MockTransport). If omitted, one is created and owned here.
    """

    def __init__(self, settings: WikiSettings, client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=settings.timeout,
            follow_redirects=True,
        )
        self._headers = {"User-Agent": settings.user_agent}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _article_url(self, title: str) -> str:
        return self._settings.page_url + title.replace(" ", "_")

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        logger.debug(f"GET {url} params={params}")
        return await self._client.get(url, params=params, headers=self._headers)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: str, limit: int = 5) -> str:
        limit = max(1, min(limit, self._settings.max_search_results))
        try:
            response = await self._get(
                self._settings.api_url,
                params={
                    "action": "query",
                    "list": "search",
                    "srsearch": query,
                    "srlimit": limit,
                    "srprop": "snippet|titlesnippet",
                    "format": "json",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Wiki search failed: {e}")
            return f"Wiki search failed: {e}"

        if response.status_code != 200:
            return f"Wiki search failed: HTTP {response.status_code}"

        results = response.json().get("query", {}).get("search", [])
        if not results:
            return f"No wiki results found for: {query}"

        parts = [f"OSRS Wiki search results for '{query}':\n"]
        for result in results:
            title = result["title"]
            parts.append(
                f"## {title}\n"
                f"{_clean_snippet(result.get('snippet', ''))}\n"
                f"URL: {self._article_url(title)}\n"
            )
        return "\n".join(parts)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def get_page(self, title: str) -> str:
        try:
            response = await self._get(
                self._settings.api_url,
                params={
                    "action": "query",
                    "titles": title,
                    "prop": "extracts",
                    "exintro": "false",
                    "explaintext": "true",
                    "format": "json",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Wiki page fetch failed: {e}")
            return f"Wiki page fetch failed: {e}"

        if response.status_code != 200:
            return f"Wiki page fetch failed: HTTP {response.status_code}"

        pages: dict[str, Any] = response.json().get("query", {}).get("pages", {})
        for page_id, page in pages.items():
            # MediaWiki reports missing pages under the id "-1"
            if page_id == "-1" or "missing" in page:
                return f"Wiki page not found: {title}"

            extract = page.get("extract") or "No content available."
            if len(extract) > self._settings.max_page_chars:
                extract = extract[: self._settings.max_page_chars] + TRUNCATION_MARKER
            return f"# {page['title']}\n\n{extract}"

        return "No page data returned."

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    async def get_item_price(self, item_name: str) -> str:
        try:
            item = await self._resolve_item(item_name)
            if isinstance(item, str):
                return item
            item_id, resolved_name = item

            response = await self._get(
                f"{self._settings.prices_url}/latest", params={"id": item_id}
            )
        except httpx.HTTPError as e:
            logger.error(f"Price lookup failed: {e}")
            return f"Price lookup failed: {e}"

        if response.status_code != 200:
            return "Price lookup failed: could not fetch price data."

        data = response.json().get("data", {}).get(str(item_id))
        if not data:
            return f"No price data available for {resolved_name} (ID: {item_id})."

        now = int(time.time())
        lines = [f"Grand Exchange Price for **{resolved_name}** (ID: {item_id})", ""]
        if data.get("high") is not None:
            lines.append(f"Instant buy: {data['high']:,} gp")
        if data.get("low") is not None:
            lines.append(f"Instant sell: {data['low']:,} gp")
        if data.get("highTime") is not None:
            lines.append(f"Last buy: {(now - data['highTime']) // 60} min ago")
        if data.get("lowTime") is not None:
            lines.append(f"Last sell: {(now - data['lowTime']) // 60} min ago")
        lines.append("")
        lines.append(f"Wiki: {self._article_url(resolved_name)}")
        return "\n".join(lines)

    async def _resolve_item(self, item_name: str) -> tuple[int, str] | str:
        """
        Find an item id by name: exact (case-insensitive) match, then substring.

        Returns (id, canonical name), or a message string when not resolvable.
        """
        response = await self._get(f"{self._settings.prices_url}/mapping")
        if response.status_code != 200:
            return "Price lookup failed: could not fetch item mapping."

        items: list[dict[str, Any]] = response.json()
        lower = item_name.lower()
        for item in items:
            if item["name"].lower() == lower:
                return item["id"], item["name"]
        for item in items:
            if lower in item["name"].lower():
                return item["id"], item["name"]
        return f"Item not found: {item_name}. Try a more specific name."
