"""
Portfolio analysis: coverage and diversity metrics over the full product set,
plus the concentration and pricing-position aggregates the health scorer and
opportunity detection build on. Everything here is a pure function.
"""

import logging
from collections import Counter, defaultdict
from collections.abc import Sequence

import numpy as np

from models.competitive import CompetitorObservation
from models.enums import AnalysisDepth, PricingPosition
from models.inventory import UNKNOWN_BRAND, Product
from models.portfolio import PortfolioMetrics, PricingPositionSummary

logger = logging.getLogger(__name__)

BUDGET_TIER_MAX = 20.0
PREMIUM_TIER_MIN = 50.0
PRICING_POSITION_BAND_PCT = 10.0


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def price_tier(price: float) -> str:
    if price < BUDGET_TIER_MAX:
        return "budget"
    if price < PREMIUM_TIER_MIN:
        return "mid"
    return "premium"


def covered_skus(products: Sequence[Product], observations: Sequence[CompetitorObservation]) -> set[str]:
    """SKUs from the catalogue that have at least one competitor observation."""
    catalogue = {p.sku for p in products}
    return {o.sku for o in observations if o.sku in catalogue}


def coverage_percentage(products: Sequence[Product], observations: Sequence[CompetitorObservation]) -> float:
    if not products:
        return 0.0
    return _clamp_pct(len(covered_skus(products, observations)) / len(products) * 100)


def diversity_score(products: Sequence[Product]) -> float:
    """min(100, categories*10 + brands*5 + populated price tiers*10)"""
    if not products:
        return 0.0
    categories = {p.category for p in products}
    brands = {p.brand for p in products if p.has_brand}
    tiers = {price_tier(p.price) for p in products}
    return _clamp_pct(min(100, len(categories) * 10 + len(brands) * 5 + len(tiers) * 10))


def recommend_depth(total_products: int, coverage: float) -> tuple[AnalysisDepth, str]:
    if total_products < 50 and coverage > 30:
        return AnalysisDepth.DEEP, "Small portfolio with good coverage - deep analysis recommended"
    if total_products > 200 or coverage < 10:
        return AnalysisDepth.SURFACE, "Large portfolio or low coverage - surface analysis for efficiency"
    return AnalysisDepth.STANDARD, "Balanced portfolio - standard analysis appropriate"


def analyze_portfolio(
    products: Sequence[Product], observations: Sequence[CompetitorObservation]
) -> PortfolioMetrics:
    """Compute coverage, diversity and a recommended analysis depth."""
    if not products:
        return PortfolioMetrics.empty()

    coverage = round(coverage_percentage(products, observations), 1)
    diversity = round(diversity_score(products), 1)
    depth, recommendation = recommend_depth(len(products), coverage)
    metrics = PortfolioMetrics(
        total_products=len(products),
        competitive_coverage_percentage=coverage,
        diversity_score=diversity,
        analysis_depth=depth,
        recommendation=recommendation,
    )
    logger.debug(f"Portfolio metrics: {metrics}")
    return metrics


def brand_concentration(products: Sequence[Product]) -> float:
    """Largest single-brand share of the catalogue, as a percentage."""
    if not products:
        return 0.0
    counts = Counter(p.brand or UNKNOWN_BRAND for p in products)
    return max(counts.values()) / len(products) * 100


def revenue_concentration(products: Sequence[Product]) -> float:
    """Share of weekly revenue earned by the top 20% of products."""
    if not products:
        return 0.0
    revenues = np.sort(np.array([p.revenue for p in products], dtype=float))[::-1]
    total = revenues.sum()
    if total <= 0:
        return 0.0
    top_n = int(np.ceil(len(revenues) * 0.2))
    return float(revenues[:top_n].sum() / total * 100)


def mean_price_gaps(observations: Sequence[CompetitorObservation]) -> dict[str, float]:
    """Mean price_difference_percentage per SKU."""
    grouped: dict[str, list[float]] = defaultdict(list)
    for obs in observations:
        grouped[obs.sku].append(obs.price_difference_percentage)
    return {sku: float(np.mean(values)) for sku, values in grouped.items()}


def classify_position(mean_gap_pct: float) -> PricingPosition:
    if mean_gap_pct > PRICING_POSITION_BAND_PCT:
        return PricingPosition.OVERPRICED
    if mean_gap_pct < -PRICING_POSITION_BAND_PCT:
        return PricingPosition.UNDERPRICED
    return PricingPosition.COMPETITIVE


def pricing_positions(
    products: Sequence[Product], observations: Sequence[CompetitorObservation]
) -> PricingPositionSummary:
    """Count overpriced, underpriced and competitively priced SKUs."""
    catalogue = {p.sku for p in products}
    counts = Counter(
        classify_position(gap) for sku, gap in mean_price_gaps(observations).items() if sku in catalogue
    )
    return PricingPositionSummary(
        overpriced=counts[PricingPosition.OVERPRICED],
        underpriced=counts[PricingPosition.UNDERPRICED],
        competitive=counts[PricingPosition.COMPETITIVE],
    )


def category_coverage(
    products: Sequence[Product], observations: Sequence[CompetitorObservation]
) -> dict[str, dict[str, float]]:
    """Per-category product count, covered count and weekly revenue."""
    covered = covered_skus(products, observations)
    stats: dict[str, dict[str, float]] = {}
    for product in products:
        entry = stats.setdefault(product.category, {"total": 0, "covered": 0, "revenue": 0.0})
        entry["total"] += 1
        entry["revenue"] += product.revenue
        if product.sku in covered:
            entry["covered"] += 1
    return stats
