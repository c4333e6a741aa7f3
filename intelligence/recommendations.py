"""
Rule-based price recommendations per product, refined by competitor prices
when observations exist. The alert engine turns these into recommended actions.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence

from models.alerts import PriceRecommendation
from models.competitive import CompetitorObservation
from models.enums import PriceAction
from models.inventory import Product

logger = logging.getLogger(__name__)

MARKET_GAP_PCT = 15.0


def _competitor_prices(observations: Sequence[CompetitorObservation]) -> dict[str, list[float]]:
    prices: dict[str, list[float]] = defaultdict(list)
    for obs in observations:
        prices[obs.sku].append(obs.competitor_price)
    return prices


def recommend_price(product: Product, competitor_prices: Sequence[float] = ()) -> PriceRecommendation:
    """Recommendation for a single product given the competitor prices seen for it."""
    price = product.price
    weekly_sales = product.weekly_sales
    weeks = product.weeks_of_stock

    action = PriceAction.MAINTAIN_PRICE
    recommended = price
    confidence = 0.7
    reason = "Current pricing appears optimal"

    if weeks < 2:
        action = PriceAction.REORDER_STOCK
        reason = f"Critical stock level - only {weeks:.1f} weeks of inventory remaining. Immediate reorder needed."
        confidence = 0.95
        if weekly_sales > 5:
            recommended = price * 1.05
            reason += " Consider a small price increase due to high demand."
    elif weekly_sales < 0.5 and product.inventory_level > 10:
        action = PriceAction.CLEARANCE_OR_BUNDLE
        recommended = price * 0.8
        reason = f"Slow-moving product ({weekly_sales:g} weekly sales) - consider clearance or bundling."
        confidence = 0.8
    elif weekly_sales > 5 and weeks < 8:
        action = PriceAction.OPTIMIZE_PRICE
        recommended = price * 1.08
        reason = f"Strong demand ({weekly_sales:g} weekly sales) with adequate inventory. Opportunity to increase margin."
        confidence = 0.75

    avg_competitor = None
    if competitor_prices:
        avg_competitor = sum(competitor_prices) / len(competitor_prices)
        gap_pct = (price - avg_competitor) / avg_competitor * 100
        count = len(competitor_prices)
        if gap_pct > MARKET_GAP_PCT and action != PriceAction.REORDER_STOCK:
            action = PriceAction.DECREASE_PRICE
            recommended = avg_competitor * 1.05
            reason = (
                f"Price is {gap_pct:.1f}% above market average ({count} competitors). "
                f"Recommend adjusting to maintain competitiveness."
            )
            confidence = 0.85
        elif gap_pct < -MARKET_GAP_PCT and weekly_sales > 3:
            action = PriceAction.INCREASE_PRICE
            recommended = avg_competitor * 0.95
            reason = (
                f"Price is {abs(gap_pct):.1f}% below market with strong sales ({weekly_sales:g}/week). "
                f"Opportunity to increase margin while remaining competitive."
            )
            confidence = 0.8
        elif abs(gap_pct) <= MARKET_GAP_PCT:
            reason += f" Price is within market range ({count} competitors analyzed)."

    return PriceRecommendation(
        sku=product.sku,
        action=action,
        current_price=price,
        recommended_price=round(recommended, 2),
        reason=reason,
        confidence=confidence,
        weekly_sales=weekly_sales,
        weeks_of_stock=round(weeks, 1),
        competitor_count=len(competitor_prices),
        avg_competitor_price=round(avg_competitor, 2) if avg_competitor is not None else None,
    )


def build_recommendations(
    products: Sequence[Product], observations: Sequence[CompetitorObservation]
) -> list[PriceRecommendation]:
    prices = _competitor_prices(observations)
    recommendations = [recommend_price(p, prices.get(p.sku, ())) for p in products]
    changes = sum(1 for r in recommendations if r.action != PriceAction.MAINTAIN_PRICE)
    logger.info(f"Built {len(recommendations)} recommendations ({changes} suggest an action)")
    return recommendations
