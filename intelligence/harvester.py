"""
Competitive harvester: fetches competitor prices for selected products through
the price cache, retrying with progressively simpler queries and pacing the
batch so the external source is not hammered.

The loop is sequential: each product's lookups finish before the
next product starts, and the rate limiter decides the gap between products.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from config.config import BATCH_TTL_SECONDS, HarvestConfig
from connectors.interfaces import DataStore, HarvesterTransport
from intelligence.cache import PriceCache, PriceCacheBackend
from intelligence.errors import HarvestingUnavailableError
from intelligence.rate_limiting import AdaptiveDelayLimiter, RateLimiter, SleepFn
from models.competitive import CompetitorObservation, RawPriceRecord
from models.enums import BatchState, ProductHarvestState
from models.harvest import HarvestBatchResult, ProductHarvestResult
from models.inventory import Product

logger = logging.getLogger(__name__)


def build_queries(product: Product) -> list[str]:
    """
    Query terms in the order they are tried: brand + subcategory (or category),
    then brand alone, then category alone. Duplicates and blanks are dropped.
    """
    brand = product.brand if product.has_brand else ""
    primary = f"{brand} {product.subcategory or product.category}".strip()
    candidates = [primary, brand, product.category]
    queries: list[str] = []
    for term in candidates:
        term = term.strip()
        if term and term not in queries:
            queries.append(term)
    return queries or [product.product_name or product.sku]


class CompetitiveHarvester:
    """
    Harvests competitor observations for one product at a time.

    Args:
        transport: Network boundary returning raw competitor prices.
        cache: Price cache consulted before every transport call.
        config: Retry budget, observation cap, timeouts and pacing tiers.
        rate_limiter: Pacing policy; a fresh AdaptiveDelayLimiter per batch if omitted.
        data_store: Optional sink for best-effort observation persistence.
        ttl_seconds: Cache TTL for this call site (24h for batch harvesting).
    """

    def __init__(
        self,
        transport: HarvesterTransport,
        cache: PriceCacheBackend | None = None,
        config: HarvestConfig | None = None,
        rate_limiter: RateLimiter | None = None,
        data_store: DataStore | None = None,
        ttl_seconds: float = BATCH_TTL_SECONDS,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.cache = cache if cache is not None else PriceCache()
        self.config = config or HarvestConfig()
        self.rate_limiter = rate_limiter
        self.data_store = data_store
        self.ttl_seconds = ttl_seconds
        self._sleep = sleep
        self._clock = clock
        self._pending_writes: set[asyncio.Task] = set()

    async def _lookup(self, query: str, category: str | None) -> list[RawPriceRecord]:
        async def fetch() -> list[RawPriceRecord]:
            return await self.transport.lookup(query, category)

        return await asyncio.wait_for(
            self.cache.get_or_fetch(query, category, fetch, self.ttl_seconds),
            timeout=self.config.lookup_timeout_seconds,
        )

    async def harvest_product(self, product: Product, max_lookups: int) -> ProductHarvestResult:
        """
        Harvest one product. Never raises: transport errors and timeouts are
        recorded per attempt and the product is marked FAILED once the retry
        budget is spent without data.
        """
        result = ProductHarvestResult(sku=product.sku)
        queries = build_queries(product)
        total_attempts = 1 + max(0, self.config.retry_budget)

        for attempt in range(total_attempts):
            query = queries[min(attempt, len(queries) - 1)]
            result.state = ProductHarvestState.FETCHING
            result.attempts += 1
            result.queries.append(query)
            try:
                records = await self._lookup(query, product.category)
            except asyncio.TimeoutError:
                records = []
                result.errors.append(f"timeout: {query}")
                logger.warning(f"Lookup for {product.sku} timed out on '{query}' (attempt {attempt + 1})")
            except Exception as e:
                records = []
                result.errors.append(f"{type(e).__name__}: {e}")
                logger.warning(f"Lookup for {product.sku} failed on '{query}' (attempt {attempt + 1}): {e}")

            if records:
                result.observations = [
                    CompetitorObservation.from_raw(record, product, source=self.config.source)
                    for record in records[: max(1, max_lookups)]
                ]
                result.state = ProductHarvestState.SUCCESS
                logger.info(f"Found {len(result.observations)} competitor prices for {product.sku} via '{query}'")
                return result

            if attempt < total_attempts - 1:
                result.state = ProductHarvestState.RETRY_SIMPLIFIED
                next_query = queries[min(attempt + 1, len(queries) - 1)]
                logger.debug(f"Retry {attempt + 1} for {product.sku}: simplified search '{next_query}'")

        result.state = ProductHarvestState.FAILED
        logger.info(f"No competitive data found for {product.sku} after {result.attempts} attempts")
        return result

    async def _persist(self, account_id: str, observations: list[CompetitorObservation]) -> None:
        try:
            await self.data_store.save_observations(account_id, observations)
        except Exception as e:
            logger.error(f"Failed to save {len(observations)} competitor prices for account {account_id}: {e}")

    def _schedule_persist(self, account_id: str | None, observations: list[CompetitorObservation]) -> None:
        if self.data_store is None or account_id is None or not observations:
            return
        task = asyncio.create_task(self._persist(account_id, observations))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _drain_writes(self) -> None:
        """Give pending observation writes a bounded time to finish, then cancel the rest."""
        if not self._pending_writes:
            return
        timeout = self.config.persist_timeout_seconds
        _, pending = await asyncio.wait(set(self._pending_writes), timeout=timeout)
        if pending:
            logger.warning(f"Cancelling {len(pending)} observation writes still pending after {timeout}s")
            for task in pending:
                task.cancel()

    async def harvest_batch(
        self,
        products: Sequence[Product],
        max_per_product: int,
        account_id: str | None = None,
    ) -> HarvestBatchResult:
        """
        Harvest the selected products in order, pacing between them.

        Stops early (EARLY_STOPPED) once the cumulative observation cap is
        reached or the batch deadline passes. If every attempted product
        fails, the batch ends UNAVAILABLE rather than as an empty success.
        """
        batch = HarvestBatchResult(state=BatchState.HARVESTING)
        limiter = self.rate_limiter or AdaptiveDelayLimiter.from_config(self.config, sleep=self._sleep)
        # Pacing is per batch; an injected limiter may carry state from the previous one
        limiter.reset()
        deadline = self._clock() + self.config.batch_timeout_seconds
        logger.info(f"Harvesting competitor prices for {len(products)} products (max {max_per_product} each)")

        for index, product in enumerate(products):
            if self._clock() >= deadline:
                batch.state = BatchState.EARLY_STOPPED
                batch.stop_reason = "batch_timeout"
                logger.warning(f"Batch deadline reached after {index} of {len(products)} products")
                break

            logger.debug(f"[{index + 1}/{len(products)}] Harvesting {product.sku}")
            product_result = await self.harvest_product(product, max_per_product)
            batch.products.append(product_result)
            limiter.record(product_result.succeeded)

            if product_result.succeeded:
                batch.observations.extend(product_result.observations)
                self._schedule_persist(account_id, product_result.observations)

            is_last = index == len(products) - 1
            if len(batch.observations) >= self.config.observation_cap and not is_last:
                batch.state = BatchState.EARLY_STOPPED
                batch.stop_reason = "observation_cap"
                logger.info(f"Sufficient competitive data collected ({len(batch.observations)} prices)")
                break

            if not is_last:
                await limiter.wait()

        await self._drain_writes()

        if batch.products and batch.success_count == 0:
            batch.state = BatchState.UNAVAILABLE
            batch.stop_reason = batch.stop_reason or "all_products_failed"
        elif batch.state == BatchState.HARVESTING:
            batch.state = BatchState.DONE

        logger.info(
            f"Harvest complete ({batch.state.value}): {batch.success_count} succeeded, "
            f"{batch.failure_count} failed, {len(batch.observations)} prices"
        )
        return batch

    async def harvest_or_raise(
        self,
        products: Sequence[Product],
        max_per_product: int,
        account_id: str | None = None,
    ) -> HarvestBatchResult:
        """Like harvest_batch, but raises HarvestingUnavailableError when every product failed."""
        batch = await self.harvest_batch(products, max_per_product, account_id)
        if batch.harvesting_unavailable:
            raise HarvestingUnavailableError(attempted=len(batch.products))
        return batch
