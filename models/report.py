"""
Request and report shapes for one competitive intelligence run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .alerts import Alert, PriceRecommendation
from .enums import AnalysisDepth, HarvestStatus, Severity
from .harvest import HarvestBatchResult
from .portfolio import HarvestStrategy, MarketOpportunity, PortfolioMetrics, PricingPositionSummary


class IntelligenceRequest(BaseModel):
    """Caller-supplied options. Unset alert options fall back to the engine config."""

    depth: AnalysisDepth = AnalysisDepth.STANDARD
    force_refresh: bool = False
    max_alerts_per_sku: int | None = Field(default=None, ge=1)
    min_severity: Severity | None = None
    include_opportunities: bool | None = None


@dataclass
class IntelligenceReport:
    """Complete, internally consistent result of a run, possibly with no new observations."""

    account_id: str
    metrics: PortfolioMetrics
    strategy: HarvestStrategy | None = None
    harvest: HarvestBatchResult | None = None
    harvest_status: HarvestStatus = HarvestStatus.SKIPPED
    recommendations: list[PriceRecommendation] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)
    alert_summary: dict[str, Any] = field(default_factory=dict)
    pricing_positions: PricingPositionSummary = field(default_factory=PricingPositionSummary)
    health_score: int | None = None
    opportunities: list[MarketOpportunity] = field(default_factory=list)
    narrative: str | None = None
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def new_observation_count(self) -> int:
        return len(self.harvest.observations) if self.harvest else 0

    @classmethod
    def empty(cls, account_id: str) -> "IntelligenceReport":
        return cls(account_id=account_id, metrics=PortfolioMetrics.empty())
