"""
Centralized Enum definitions for the competitive intelligence engine.
"""

from enum import Enum


class AnalysisDepth(str, Enum):
    """How thoroughly a portfolio should be analysed."""

    SURFACE = "surface"
    STANDARD = "standard"
    DEEP = "deep"


class HarvestReason(str, Enum):
    """Why the strategy planner did (or did not) decide to harvest."""

    FORCE_REFRESH = "force_refresh"
    LOW_COVERAGE = "low_coverage"
    DEEP_ANALYSIS = "deep_analysis"
    LARGE_PORTFOLIO = "large_portfolio"
    SUFFICIENT_COVERAGE = "sufficient_coverage"


class AlertType(str, Enum):
    """Kinds of alert the alert engine can raise"""

    STOCKOUT_RISK = "stockout_risk"
    OVERSTOCK_RISK = "overstock_risk"
    COMPETITIVE_THREAT = "competitive_threat"
    PRICING_OPPORTUNITY = "pricing_opportunity"


class Severity(str, Enum):
    """Alert severity, ordered from least to most severe via ``rank``."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class AlertStatus(str, Enum):
    """Lifecycle of an alert; only the UI/API layer moves it past UNREAD"""

    UNREAD = "unread"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class EnrichmentStrategy(str, Enum):
    """Chosen up front by configuration, never discovered at runtime."""

    RULE_BASED = "rule_based"
    AI_ENHANCED = "ai_enhanced"


class PriceAction(str, Enum):
    """Price-action suggestions produced per product"""

    MAINTAIN_PRICE = "maintain_price"
    REORDER_STOCK = "reorder_stock"
    CLEARANCE_OR_BUNDLE = "clearance_or_bundle"
    OPTIMIZE_PRICE = "optimize_price"
    DECREASE_PRICE = "decrease_price"
    INCREASE_PRICE = "increase_price"


class PricingPosition(str, Enum):
    """Where our price sits relative to the competitor average"""

    OVERPRICED = "overpriced"
    UNDERPRICED = "underpriced"
    COMPETITIVE = "competitive"


class ProductHarvestState(str, Enum):
    """Per-product harvest states"""

    PENDING = "pending"
    FETCHING = "fetching"
    RETRY_SIMPLIFIED = "retry_simplified"
    SUCCESS = "success"
    FAILED = "failed"


class BatchState(str, Enum):
    """Batch-level harvest states. EARLY_STOPPED is terminal, not a failure."""

    PLANNING = "planning"
    SELECTING = "selecting"
    HARVESTING = "harvesting"
    SCORING = "scoring"
    DONE = "done"
    EARLY_STOPPED = "early_stopped"
    UNAVAILABLE = "unavailable"


class HarvestStatus(str, Enum):
    """Outcome of the harvesting step as reported to callers"""

    SKIPPED = "skipped"
    COMPLETED = "completed"
    EARLY_STOPPED = "early_stopped"
    UNAVAILABLE = "unavailable"
