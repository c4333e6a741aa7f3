"""
Orchestration for one competitive intelligence run.

analyze -> plan -> select -> harvest -> merge -> recommend -> alert -> score.
Every stage except harvesting and persistence is synchronous and in-memory.
"""

import dataclasses
import logging
import time
from collections.abc import Sequence

from config.config import EngineConfig
from connectors.interfaces import DataStore, HarvesterTransport, InsightGenerator, InventoryStore
from intelligence.alerts import AlertEngine, summarize_alerts
from intelligence.cache import PriceCache, PriceCacheBackend, RedisPriceCache
from intelligence.harvester import CompetitiveHarvester
from intelligence.health import score_portfolio_health
from intelligence.opportunities import detect_market_opportunities
from intelligence.planner import plan_harvest
from intelligence.portfolio import analyze_portfolio, brand_concentration, pricing_positions
from intelligence.rate_limiting import RateLimiter
from intelligence.recommendations import build_recommendations
from intelligence.selector import select_strategic_products
from models.alerts import Alert
from models.competitive import CompetitorObservation
from models.enums import BatchState, EnrichmentStrategy, HarvestStatus
from models.harvest import HarvestBatchResult
from models.report import IntelligenceReport, IntelligenceRequest
from utils.monitoring import HarvestMonitor

logger = logging.getLogger(__name__)

_STATUS_BY_STATE = {
    BatchState.DONE: HarvestStatus.COMPLETED,
    BatchState.EARLY_STOPPED: HarvestStatus.EARLY_STOPPED,
    BatchState.UNAVAILABLE: HarvestStatus.UNAVAILABLE,
}


def build_price_cache(config: EngineConfig) -> PriceCacheBackend:
    if config.cache.redis_url:
        logger.info("Using Redis price cache")
        return RedisPriceCache.from_url(config.cache.redis_url, key_prefix=config.cache.key_prefix)
    return PriceCache()


class CompetitiveIntelligenceEngine:
    """
    Runs the full pipeline for an account. Collaborators are injected; the
    price cache is shared across runs so repeated queries hit it.
    """

    def __init__(
        self,
        inventory_store: InventoryStore,
        transport: HarvesterTransport,
        data_store: DataStore | None = None,
        config: EngineConfig | None = None,
        cache: PriceCacheBackend | None = None,
        insight_generator: InsightGenerator | None = None,
        rate_limiter: RateLimiter | None = None,
        monitor: HarvestMonitor | None = None,
        harvester: CompetitiveHarvester | None = None,
    ):
        self.inventory_store = inventory_store
        self.transport = transport
        self.data_store = data_store
        self.config = config or EngineConfig()
        self.cache = cache if cache is not None else build_price_cache(self.config)
        self.insight_generator = insight_generator
        self.rate_limiter = rate_limiter
        self.monitor = monitor or HarvestMonitor()
        self._harvester = harvester

    def _harvester_for(self, request: IntelligenceRequest) -> CompetitiveHarvester:
        if self._harvester is not None:
            return self._harvester
        ttl = (
            self.config.cache.interactive_ttl_seconds
            if request.force_refresh
            else self.config.cache.batch_ttl_seconds
        )
        return CompetitiveHarvester(
            transport=self.transport,
            cache=self.cache,
            config=self.config.harvest,
            rate_limiter=self.rate_limiter,
            data_store=self.data_store,
            ttl_seconds=ttl,
        )

    def _alert_engine_for(self, request: IntelligenceRequest, degraded: bool) -> AlertEngine:
        overrides = {
            key: value
            for key, value in (
                ("max_alerts_per_sku", request.max_alerts_per_sku),
                ("min_severity", request.min_severity),
                ("include_opportunities", request.include_opportunities),
            )
            if value is not None
        }
        if degraded:
            overrides["enrichment"] = EnrichmentStrategy.RULE_BASED
        alert_config = dataclasses.replace(self.config.alerts, **overrides)
        return AlertEngine(alert_config, insight_generator=self.insight_generator)

    async def _save_alerts(self, account_id: str, alerts: Sequence[Alert]) -> None:
        if self.data_store is None or not alerts:
            return
        try:
            await self.data_store.save_alerts(account_id, alerts)
        except Exception as e:
            logger.error(f"Failed to save {len(alerts)} alerts for account {account_id}: {e}")

    async def _narrative(self, report: IntelligenceReport) -> str | None:
        if not self.config.generate_insights or self.insight_generator is None:
            return None
        try:
            return await self.insight_generator.generate(report.metrics, report.alerts)
        except Exception as e:
            logger.warning(f"Insight generation failed, continuing without narrative: {e}")
            return None

    async def run(self, account_id: str, request: IntelligenceRequest | None = None) -> IntelligenceReport:
        request = request or IntelligenceRequest()
        products = await self.inventory_store.get_products(account_id)
        if not products:
            logger.info(f"No products for account {account_id}; returning empty report")
            return IntelligenceReport.empty(account_id)

        existing = await self.inventory_store.get_observations(account_id, days=self.config.observation_window_days)
        metrics = analyze_portfolio(products, existing)
        strategy = plan_harvest(metrics, force_refresh=request.force_refresh, requested_depth=request.depth)

        batch: HarvestBatchResult | None = None
        status = HarvestStatus.SKIPPED
        if strategy.should_expand:
            selected = select_strategic_products(products, existing, strategy.target_count, request.depth)
            if selected:
                started = time.monotonic()
                batch = await self._harvester_for(request).harvest_batch(
                    selected, strategy.max_per_product, account_id=account_id
                )
                self.monitor.record_batch(batch, latency_seconds=time.monotonic() - started)
                status = _STATUS_BY_STATE.get(batch.state, HarvestStatus.COMPLETED)
                batch.state = BatchState.SCORING if status == HarvestStatus.COMPLETED else batch.state

        merged: list[CompetitorObservation] = list(existing) + (batch.observations if batch else [])
        if batch and batch.observations:
            metrics = analyze_portfolio(products, merged)

        recommendations = build_recommendations(products, merged)
        alert_engine = self._alert_engine_for(request, degraded=status == HarvestStatus.UNAVAILABLE)
        alerts = await alert_engine.generate_alerts(products, recommendations, merged)
        await self._save_alerts(account_id, alerts)

        positions = pricing_positions(products, merged)
        report = IntelligenceReport(
            account_id=account_id,
            metrics=metrics,
            strategy=strategy,
            harvest=batch,
            harvest_status=status,
            recommendations=recommendations,
            alerts=alerts,
            alert_summary=summarize_alerts(alerts),
            pricing_positions=positions,
            health_score=score_portfolio_health(metrics, alerts, positions, brand_concentration(products)),
            opportunities=detect_market_opportunities(products, merged),
        )
        report.narrative = await self._narrative(report)
        if batch is not None and batch.state == BatchState.SCORING:
            batch.state = BatchState.DONE

        logger.info(
            f"Run for {account_id}: {metrics.total_products} products, "
            f"coverage {metrics.competitive_coverage_percentage}%, harvest {status.value}, "
            f"{len(alerts)} alerts, health {report.health_score}/10"
        )
        return report
