"""
Market opportunity detection: categories that earn real revenue but are barely
monitored, and SKUs priced well under the market while still selling.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence

from intelligence.portfolio import category_coverage
from models.competitive import CompetitorObservation
from models.inventory import Product
from models.portfolio import MarketOpportunity

logger = logging.getLogger(__name__)

GAP_COVERAGE_PCT = 30.0
GAP_MIN_WEEKLY_REVENUE = 1000.0
UNDERPRICED_PCT = -15.0
TOP_PRICING_OPPORTUNITIES = 5


def category_gaps(
    products: Sequence[Product], observations: Sequence[CompetitorObservation]
) -> list[MarketOpportunity]:
    gaps = []
    for category, stats in category_coverage(products, observations).items():
        coverage = stats["covered"] / stats["total"] * 100
        if coverage < GAP_COVERAGE_PCT and stats["revenue"] > GAP_MIN_WEEKLY_REVENUE:
            gaps.append(
                MarketOpportunity(
                    type="competitive_intelligence_gap",
                    description=f"{category} category under-monitored",
                    value=round(stats["revenue"], 2),
                    recommended_action="Expand competitive monitoring",
                    category=category,
                    coverage_percentage=round(coverage, 1),
                )
            )
    return sorted(gaps, key=lambda g: g.value, reverse=True)


def underpriced_products(
    products: Sequence[Product],
    observations: Sequence[CompetitorObservation],
    limit: int = TOP_PRICING_OPPORTUNITIES,
) -> list[MarketOpportunity]:
    by_sku: dict[str, list[CompetitorObservation]] = defaultdict(list)
    for obs in observations:
        by_sku[obs.sku].append(obs)

    found = []
    for product in products:
        sku_obs = by_sku.get(product.sku)
        if not sku_obs:
            continue
        mean_pct = sum(o.price_difference_percentage for o in sku_obs) / len(sku_obs)
        if mean_pct >= UNDERPRICED_PCT:
            continue
        mean_diff = sum(o.price_difference for o in sku_obs) / len(sku_obs)
        market_price = sum(o.competitor_price for o in sku_obs) / len(sku_obs)
        found.append(
            MarketOpportunity(
                type="pricing_opportunity",
                description=f"{product.sku} priced {abs(mean_pct):.1f}% below market",
                value=round(abs(mean_diff) * product.weekly_sales * 52, 2),
                recommended_action="Consider strategic price increase",
                category=product.category,
                sku=product.sku,
                current_price=product.price,
                market_price=round(market_price, 2),
            )
        )
    found.sort(key=lambda o: o.value, reverse=True)
    return found[:limit]


def detect_market_opportunities(
    products: Sequence[Product], observations: Sequence[CompetitorObservation]
) -> list[MarketOpportunity]:
    if not products:
        return []
    opportunities = category_gaps(products, observations) + underpriced_products(products, observations)
    logger.debug(f"Detected {len(opportunities)} market opportunities")
    return opportunities
