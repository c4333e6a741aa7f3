"""
Harvester transport backed by a Google-Shopping style JSON search API
(SerpApi's ``google_shopping`` engine).

Results are filtered to a known retailer list, scored for relevance against
the query and flagged when the listing looks promotional.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Any

import httpx

from intelligence.errors import TransientLookupError
from models.competitive import RawPriceRecord

logger = logging.getLogger(__name__)

SERP_BASE_URL = "https://serpapi.com/search.json"
MIN_RELEVANCE = 0.3
PROMO_INDICATORS = ("sale", "offer", "deal", "discount", "save", "% off", "was £", "reduced")
_WORDS = re.compile(r"\s+")


@dataclass(frozen=True)
class Retailer:
    domain: str
    name: str
    priority: int  # lower is preferred

    @property
    def token(self) -> str:
        """Domain stem matched against the result's ``source`` field, e.g. "majestic"."""
        return self.domain.split(".")[0]


UK_RETAILERS = (
    Retailer("majestic.co.uk", "Majestic Wine", 1),
    Retailer("waitrose.com", "Waitrose", 1),
    Retailer("tesco.com", "Tesco", 1),
    Retailer("asda.com", "ASDA", 1),
    Retailer("sainsburys.co.uk", "Sainsbury's", 2),
    Retailer("morrisons.com", "Morrisons", 2),
    Retailer("amazon.co.uk", "Amazon UK", 2),
    Retailer("thedrinkshop.com", "The Drink Shop", 3),
    Retailer("slurp.co.uk", "Slurp Wine", 3),
)


def relevance_score(query: str, title: str) -> float:
    """Share of query words (longer than 2 chars) found in the title; partial matches count half."""
    query_words = [w for w in _WORDS.split(query.lower()) if len(w) > 2]
    if not query_words:
        return 0.0
    title_words = _WORDS.split(title.lower())
    exact = partial = 0
    for word in query_words:
        if word in title_words:
            exact += 1
        elif any(word in tw or (tw and tw in word) for tw in title_words):
            partial += 1
    return min(1.0, (exact + partial * 0.5) / len(query_words))


def is_promotional(title: str, price_text: str | None = None) -> bool:
    text = f"{title} {price_text or ''}".lower()
    return any(indicator in text for indicator in PROMO_INDICATORS)


class SerpShoppingTransport:
    """
    Looks up competitor prices for a query term.

    Args:
        api_key: Search API key; defaults to ``SERP_API_KEY`` from the environment.
        client: Optional shared ``httpx.AsyncClient``; one is created per call otherwise.
        retailers: Retailers to keep, in priority order.
        timeout: Per-request HTTP timeout in seconds.
    """

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        retailers: tuple[Retailer, ...] = UK_RETAILERS,
        base_url: str = SERP_BASE_URL,
        timeout: float = 15.0,
        country: str = "uk",
    ):
        self.api_key = api_key or os.getenv("SERP_API_KEY")
        self.client = client
        self.retailers = retailers
        self.base_url = base_url
        self.timeout = timeout
        self.country = country

    def _params(self, query: str, category: str | None) -> dict[str, str]:
        return {
            "engine": "google_shopping",
            "q": f"{query} {category or ''}".strip(),
            "google_domain": "google.co.uk",
            "gl": self.country,
            "hl": "en",
            "currency": "GBP",
            "api_key": self.api_key or "",
        }

    async def _fetch(self, params: dict[str, str]) -> dict[str, Any]:
        if self.client is not None:
            response = await self.client.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            return response.json()

    def _match_retailer(self, source: str) -> Retailer | None:
        source = source.lower()
        for retailer in self.retailers:
            if retailer.token in source:
                return retailer
        return None

    def parse_results(self, query: str, results: list[dict[str, Any]]) -> list[RawPriceRecord]:
        """Keep priced, relevant results from known retailers, best priority first."""
        matched: list[tuple[int, RawPriceRecord]] = []
        for item in results:
            price = item.get("extracted_price")
            retailer = self._match_retailer(str(item.get("source", "")))
            if retailer is None or not isinstance(price, int | float) or price <= 0:
                continue
            title = str(item.get("title", ""))
            score = relevance_score(query, title)
            if score <= MIN_RELEVANCE:
                continue
            record = RawPriceRecord(
                competitor=retailer.name,
                competitor_price=float(price),
                availability=True,
                promotional=is_promotional(title, item.get("price")),
                product_name=title or None,
                url=item.get("link"),
                relevance_score=round(score, 2),
            )
            matched.append((retailer.priority, record))
        matched.sort(key=lambda pair: pair[0])
        return [record for _, record in matched]

    async def lookup(self, query: str, category: str | None) -> list[RawPriceRecord]:
        if not self.api_key:
            raise TransientLookupError("SERP_API_KEY is not configured")
        params = self._params(query, category)
        try:
            data = await self._fetch(params)
        except httpx.HTTPStatusError as e:
            raise TransientLookupError(f"Search API returned {e.response.status_code} for '{query}'") from e
        except httpx.HTTPError as e:
            raise TransientLookupError(f"Search API request failed for '{query}': {e}") from e
        except ValueError as e:
            raise TransientLookupError(f"Search API returned invalid JSON for '{query}'") from e

        if data.get("error"):
            raise TransientLookupError(f"Search API error: {data['error']}")

        records = self.parse_results(query, data.get("shopping_results") or [])
        logger.debug(f"Search '{params['q']}' returned {len(records)} retailer prices")
        return records
