"""
Module: connectors.dummy_price_transport

Deterministic harvester transport for demos and tests. Prices are derived
from a hash of the query so repeated runs see the same market.
"""

import asyncio
import hashlib

from intelligence.errors import TransientLookupError
from models.competitive import RawPriceRecord

DEFAULT_COMPETITORS = ("Tesco", "Waitrose", "Majestic Wine", "Sainsbury's", "ASDA")


class DummyPriceTransport:
    """
    Args:
        base_prices: Query term -> reference price. Unknown queries return no results.
        competitors: Names used for the generated records.
        failing_queries: Queries that raise TransientLookupError instead.
        latency: Seconds to await per lookup.
    """

    def __init__(
        self,
        base_prices: dict[str, float] | None = None,
        competitors: tuple[str, ...] = DEFAULT_COMPETITORS,
        failing_queries: set[str] | None = None,
        latency: float = 0.0,
    ):
        self.base_prices = {k.lower(): v for k, v in (base_prices or {}).items()}
        self.competitors = competitors
        self.failing_queries = {q.lower() for q in (failing_queries or set())}
        self.latency = latency
        self.calls: list[tuple[str, str | None]] = []

    async def lookup(self, query: str, category: str | None) -> list[RawPriceRecord]:
        self.calls.append((query, category))
        await asyncio.sleep(self.latency)
        key = query.lower()
        if key in self.failing_queries:
            raise TransientLookupError(f"simulated outage for '{query}'")
        base = self.base_prices.get(key)
        if base is None:
            return []
        digest = hashlib.sha256(key.encode()).digest()
        records = []
        for i, competitor in enumerate(self.competitors):
            # +/-12% spread around the base price
            factor = 0.88 + (digest[i] / 255) * 0.24
            records.append(
                RawPriceRecord(
                    competitor=competitor,
                    competitor_price=round(base * factor, 2),
                    promotional=digest[i] % 5 == 0,
                    product_name=query,
                )
            )
        return records
