"""
Module: connectors.dummy_stores

In-memory inventory and data stores for demos and tests. One object can play
both roles so saved observations show up in the next run's reads.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any

from models.alerts import Alert
from models.competitive import CompetitorObservation
from models.inventory import Product, parse_products

logger = logging.getLogger(__name__)


class InMemoryStore:
    """
    Dummy store keyed by account id. Implements both the InventoryStore and
    DataStore protocols.
    """

    def __init__(self, clock=datetime.now):
        self._products: dict[str, list[Product]] = {}
        self._observations: dict[str, list[CompetitorObservation]] = defaultdict(list)
        self._alerts: dict[str, list[Alert]] = defaultdict(list)
        self._clock = clock
        self.fail_writes = False

    def load_products(self, account_id: str, rows: Sequence[dict[str, Any] | Product]) -> list[Product]:
        self._products[account_id] = parse_products(rows)
        return self._products[account_id]

    def add_observations(self, account_id: str, observations: Sequence[CompetitorObservation]) -> None:
        self._observations[account_id].extend(observations)

    async def get_products(self, account_id: str) -> list[Product]:
        await asyncio.sleep(0)
        return list(self._products.get(account_id, []))

    async def get_observations(self, account_id: str, days: int | None = None) -> list[CompetitorObservation]:
        await asyncio.sleep(0)
        observations = self._observations.get(account_id, [])
        if days is None:
            return list(observations)
        cutoff = self._clock() - timedelta(days=days)
        return [o for o in observations if o.timestamp >= cutoff]

    async def save_observations(self, account_id: str, observations: Sequence[CompetitorObservation]) -> None:
        await asyncio.sleep(0)
        if self.fail_writes:
            raise ConnectionError("dummy store is rejecting writes")
        self._observations[account_id].extend(observations)
        logger.debug(f"[InMemoryStore] saved {len(observations)} observations for {account_id}")

    async def save_alerts(self, account_id: str, alerts: Sequence[Alert]) -> None:
        await asyncio.sleep(0)
        if self.fail_writes:
            raise ConnectionError("dummy store is rejecting writes")
        self._alerts[account_id].extend(alerts)

    def saved_alerts(self, account_id: str) -> list[Alert]:
        return list(self._alerts.get(account_id, []))
