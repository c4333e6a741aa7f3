"""
Portfolio-level metrics and the harvest strategy derived from them.
Both are recomputed on every run and never persisted.
"""

from dataclasses import dataclass

from .enums import AnalysisDepth, HarvestReason


@dataclass(frozen=True)
class PortfolioMetrics:
    """Coverage and diversity of a product portfolio."""

    total_products: int
    competitive_coverage_percentage: float  # 0-100
    diversity_score: float  # 0-100
    analysis_depth: AnalysisDepth
    recommendation: str = ""

    @classmethod
    def empty(cls) -> "PortfolioMetrics":
        return cls(
            total_products=0,
            competitive_coverage_percentage=0.0,
            diversity_score=0.0,
            analysis_depth=AnalysisDepth.SURFACE,
            recommendation="No products to analyse",
        )


@dataclass(frozen=True)
class HarvestStrategy:
    """Whether and how much to expand competitor harvesting"""

    should_expand: bool
    reason: HarvestReason
    target_count: int
    max_per_product: int

    @property
    def estimated_lookups(self) -> int:
        """Upper bound on transport calls, ignoring retries."""
        return self.target_count * self.max_per_product


@dataclass(frozen=True)
class PricingPositionSummary:
    """Per-SKU pricing position counts over products that have competitor data."""

    overpriced: int = 0
    underpriced: int = 0
    competitive: int = 0

    @property
    def total_priced(self) -> int:
        return self.overpriced + self.underpriced + self.competitive

    @property
    def issue_rate(self) -> float:
        if self.total_priced == 0:
            return 0.0
        return (self.overpriced + self.underpriced) / self.total_priced


@dataclass(frozen=True)
class MarketOpportunity:
    """A coverage gap or pricing opportunity surfaced alongside alerts."""

    type: str  # "competitive_intelligence_gap" or "pricing_opportunity"
    description: str
    value: float  # weekly revenue at stake for gaps, annualised gain for pricing
    recommended_action: str
    category: str | None = None
    sku: str | None = None
    coverage_percentage: float | None = None
    current_price: float | None = None
    market_price: float | None = None
