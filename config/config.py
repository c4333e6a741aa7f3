"""
Configuration classes for the competitive intelligence engine.
Defines thresholds and budgets for caching, harvesting, alerting and insight
generation in a type-safe, extensible way.
"""

import os
from dataclasses import dataclass, field

from models.enums import EnrichmentStrategy, Severity
from utils.env import env_flag, load_project_dotenv

INTERACTIVE_TTL_SECONDS = 15 * 60
BATCH_TTL_SECONDS = 24 * 60 * 60


@dataclass
class PriceCacheConfig:
    interactive_ttl_seconds: float = INTERACTIVE_TTL_SECONDS
    batch_ttl_seconds: float = BATCH_TTL_SECONDS
    redis_url: str | None = None  # None keeps the in-memory cache
    key_prefix: str = "ci:prices:"


@dataclass
class HarvestConfig:
    retry_budget: int = 2  # extra attempts after the primary query
    observation_cap: int = 25  # stop the batch once this many are collected
    lookup_timeout_seconds: float = 20.0
    batch_timeout_seconds: float = 180.0
    persist_timeout_seconds: float = 5.0  # how long the batch waits for pending observation writes
    # (success-rate threshold, delay seconds), checked in order; rate must exceed threshold
    delay_tiers: list[tuple[float, float]] = field(
        default_factory=lambda: [(0.7, 1.2), (0.4, 1.8)]
    )
    fallback_delay_seconds: float = 2.5
    source: str = "serp_api"


@dataclass
class AlertEngineConfig:
    max_alerts_per_sku: int = 2
    min_severity: Severity = Severity.MEDIUM
    include_opportunities: bool = True
    enrichment: EnrichmentStrategy = EnrichmentStrategy.RULE_BASED
    stockout_weeks: float = 2.0
    overstock_weeks: float = 12.0
    overstock_min_inventory: int = 20
    competitive_threshold_pct: float = 15.0
    opportunity_min_weekly_sales: float = 3.0
    max_enriched_alerts: int = 10


@dataclass
class InsightConfig:
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 600
    retry_attempts: int = 2
    retry_backoff: float = 1.0
    api_key: str | None = None


@dataclass
class EngineConfig:
    cache: PriceCacheConfig = field(default_factory=PriceCacheConfig)
    harvest: HarvestConfig = field(default_factory=HarvestConfig)
    alerts: AlertEngineConfig = field(default_factory=AlertEngineConfig)
    insights: InsightConfig = field(default_factory=InsightConfig)
    observation_window_days: int = 7
    generate_insights: bool = False

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config, overriding defaults with ``CI_*`` environment variables."""
        load_project_dotenv()
        config = cls()
        config.cache.redis_url = os.getenv("CI_REDIS_URL") or None
        config.harvest.observation_cap = int(os.getenv("CI_OBSERVATION_CAP", config.harvest.observation_cap))
        config.harvest.retry_budget = int(os.getenv("CI_RETRY_BUDGET", config.harvest.retry_budget))
        config.harvest.lookup_timeout_seconds = float(
            os.getenv("CI_LOOKUP_TIMEOUT_SECONDS", config.harvest.lookup_timeout_seconds)
        )
        config.harvest.batch_timeout_seconds = float(
            os.getenv("CI_BATCH_TIMEOUT_SECONDS", config.harvest.batch_timeout_seconds)
        )
        config.alerts.max_alerts_per_sku = int(os.getenv("CI_MAX_ALERTS_PER_SKU", config.alerts.max_alerts_per_sku))
        config.alerts.min_severity = Severity(os.getenv("CI_MIN_SEVERITY", config.alerts.min_severity.value))
        config.alerts.include_opportunities = env_flag("CI_INCLUDE_OPPORTUNITIES", default=True)
        config.alerts.enrichment = EnrichmentStrategy(os.getenv("CI_ENRICHMENT", config.alerts.enrichment.value))
        config.insights.model = os.getenv("CI_INSIGHT_MODEL", config.insights.model)
        config.insights.api_key = os.getenv("OPENAI_API_KEY") or None
        config.generate_insights = env_flag("CI_GENERATE_INSIGHTS")
        return config


# Example usage:
# config = EngineConfig.from_env()
# harvester = CompetitiveHarvester(transport, cache, config=config.harvest)
