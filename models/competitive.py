"""
Data models for competitor price data: raw transport records, the immutable
observations built from them, and cache entries.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from .inventory import Product


class RawPriceRecord(BaseModel):
    """A single competitor price as returned by a harvester transport."""

    model_config = ConfigDict(frozen=True)

    competitor: str
    competitor_price: float = Field(gt=0)
    availability: bool = True
    promotional: bool = False
    product_name: str | None = None
    url: str | None = None
    relevance_score: float | None = None


class CompetitorObservation(BaseModel):
    """
    A competitor price tied to one of our SKUs, snapshotting our price at
    harvest time. Created only by the harvester and never mutated.

    ``price_difference`` is ``our_price - competitor_price``; a positive
    ``price_difference_percentage`` means we are the more expensive one.
    """

    model_config = ConfigDict(frozen=True)

    sku: str
    competitor: str
    competitor_price: float
    our_price: float
    price_difference: float
    price_difference_percentage: float
    availability: bool = True
    promotional: bool = False
    source: str = "harvester"
    timestamp: datetime = Field(default_factory=datetime.now)
    product_name: str | None = None
    url: str | None = None

    @classmethod
    def from_raw(
        cls,
        record: RawPriceRecord,
        product: Product,
        source: str,
        timestamp: datetime | None = None,
    ) -> "CompetitorObservation":
        """Annotate a raw record with our price and the price gap."""
        difference = product.price - record.competitor_price
        percentage = (difference / record.competitor_price) * 100
        return cls(
            sku=product.sku,
            competitor=record.competitor,
            competitor_price=record.competitor_price,
            our_price=product.price,
            price_difference=round(difference, 2),
            price_difference_percentage=round(percentage, 2),
            availability=record.availability,
            promotional=record.promotional,
            source=source,
            timestamp=timestamp or datetime.now(),
            product_name=record.product_name,
            url=record.url,
        )


@dataclass
class CacheEntry:
    """Cached transport payload for one normalized query key."""

    key: str
    payload: list[RawPriceRecord]
    fetched_at: datetime
    ttl_seconds: float
    hits: int = field(default=0)

    @property
    def expires_at(self) -> datetime:
        return self.fetched_at + timedelta(seconds=self.ttl_seconds)

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at
