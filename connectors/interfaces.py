"""
Module: connectors.interfaces

Protocols for the external collaborators the engine talks to. The engine is
invoked as a library; stores, transports and insight generators are owned by
other layers and injected.
"""

from collections.abc import Sequence
from typing import Protocol

from models.alerts import Alert
from models.competitive import CompetitorObservation, RawPriceRecord
from models.inventory import Product
from models.portfolio import PortfolioMetrics


class InventoryStore(Protocol):
    async def get_products(self, account_id: str) -> list[Product]: ...

    async def get_observations(self, account_id: str, days: int | None = None) -> list[CompetitorObservation]: ...


class DataStore(Protocol):
    async def save_observations(self, account_id: str, observations: Sequence[CompetitorObservation]) -> None: ...

    async def save_alerts(self, account_id: str, alerts: Sequence[Alert]) -> None: ...


class HarvesterTransport(Protocol):
    """Network boundary for price lookups. Raises TransientLookupError on failure."""

    async def lookup(self, query: str, category: str | None) -> list[RawPriceRecord]: ...


class InsightGenerator(Protocol):
    async def generate(self, metrics: PortfolioMetrics, alerts: Sequence[Alert]) -> str: ...

    async def enrich_alerts(self, alerts: Sequence[Alert]) -> dict[str, str]: ...
