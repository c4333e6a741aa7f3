"""Mock objects and builders shared by the engine tests."""

from datetime import datetime, timedelta

from intelligence.errors import TransientLookupError
from models.competitive import CompetitorObservation, RawPriceRecord
from models.inventory import Product


def make_product(sku: str = "SKU-1", **overrides) -> Product:
    data = {
        "sku": sku,
        "price": 20.0,
        "weekly_sales": 5.0,
        "inventory_level": 40,
        "category": "gin",
        "brand": "Hendricks",
    }
    data.update(overrides)
    return Product(**data)


def make_observation(product: Product, competitor_price: float, competitor: str = "Tesco") -> CompetitorObservation:
    record = RawPriceRecord(competitor=competitor, competitor_price=competitor_price)
    return CompetitorObservation.from_raw(record, product, source="test")


def observation_with_gap(product: Product, gap_pct: float, competitor: str = "Tesco") -> CompetitorObservation:
    """Observation whose price_difference_percentage is exactly ``gap_pct``."""
    competitor_price = product.price / (1 + gap_pct / 100)
    return CompetitorObservation(
        sku=product.sku,
        competitor=competitor,
        competitor_price=round(competitor_price, 2),
        our_price=product.price,
        price_difference=round(product.price - competitor_price, 2),
        price_difference_percentage=gap_pct,
        source="test",
    )


def records(*prices: float, competitor: str = "Tesco") -> list[RawPriceRecord]:
    return [RawPriceRecord(competitor=f"{competitor} {i}", competitor_price=p) for i, p in enumerate(prices)]


class ScriptedTransport:
    """
    Transport returning canned responses per query (case-insensitive).
    A response may be a list of records or an exception instance to raise.
    """

    def __init__(self, responses: dict | None = None, default=None):
        self.responses = {k.lower(): v for k, v in (responses or {}).items()}
        self.default = default if default is not None else []
        self.calls: list[tuple[str, str | None]] = []

    async def lookup(self, query, category):
        self.calls.append((query, category))
        response = self.responses.get(query.lower(), self.default)
        if isinstance(response, Exception):
            raise response
        return list(response)


class AlwaysFailingTransport(ScriptedTransport):
    def __init__(self):
        super().__init__(default=TransientLookupError("search API down"))


class FakeClock:
    """Manually advanced datetime clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingSleep:
    """Async sleep stand-in that records requested delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
