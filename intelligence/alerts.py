"""
Alert engine: turns inventory levels, price recommendations and competitor
gaps into a prioritized, capped list of alerts.

Rule-based generation is always the source of truth. With the AI_ENHANCED
strategy the insight generator may add narrative to ``ai_analysis``; it never
adds, removes or reorders alerts.
"""

import logging
from collections import Counter, defaultdict
from collections.abc import Sequence
from typing import Any

from config.config import AlertEngineConfig
from connectors.interfaces import InsightGenerator
from models.alerts import Alert, PriceRecommendation
from models.competitive import CompetitorObservation
from models.enums import AlertType, EnrichmentStrategy, PriceAction, Severity
from models.inventory import Product

logger = logging.getLogger(__name__)

WEEKS_PER_YEAR = 52
STOCKOUT_COVER_WEEKS = 8
COMPETITIVE_REVENUE_SHARE = 0.15
OVERSTOCK_RECOVERY_RATE = 0.2

_DEFAULT_ACTIONS = {
    AlertType.STOCKOUT_RISK: "Reorder stock immediately",
    AlertType.OVERSTOCK_RISK: "Run a promotion or bundle to clear excess stock",
    AlertType.COMPETITIVE_THREAT: "Review pricing against competitors",
    AlertType.PRICING_OPPORTUNITY: "Test a price increase",
}


def _priority_key(alert: Alert) -> tuple:
    return (alert.severity.rank, alert.urgency_score, alert.revenue_at_risk)


def _action_text(alert_type: AlertType, recommendation: PriceRecommendation | None) -> str:
    if recommendation is None or recommendation.action == PriceAction.MAINTAIN_PRICE:
        return _DEFAULT_ACTIONS[alert_type]
    label = recommendation.action.value.replace("_", " ").capitalize()
    if recommendation.recommended_price != recommendation.current_price:
        return f"{label}: £{recommendation.current_price:.2f} -> £{recommendation.recommended_price:.2f}"
    return label


class AlertEngine:
    """
    Generates alerts per product from two rule families (inventory and
    competitive), then filters by severity and caps per SKU.
    """

    def __init__(
        self,
        config: AlertEngineConfig | None = None,
        insight_generator: InsightGenerator | None = None,
    ):
        self.config = config or AlertEngineConfig()
        self.insight_generator = insight_generator

    # --- Rule families --- #

    def _inventory_alerts(self, product: Product) -> list[Alert]:
        cfg = self.config
        weeks = product.weeks_of_stock
        alerts = []
        if weeks < cfg.stockout_weeks:
            revenue_at_risk = product.weekly_sales * product.price * STOCKOUT_COVER_WEEKS
            alerts.append(
                Alert(
                    sku=product.sku,
                    type=AlertType.STOCKOUT_RISK,
                    severity=Severity.CRITICAL,
                    urgency_score=10,
                    title=f"Stockout risk: £{revenue_at_risk:,.0f} revenue at risk",
                    message=(
                        f"{product.sku} has {weeks:.1f} weeks of stock left ({product.inventory_level} units, "
                        f"selling {product.weekly_sales:.1f} per week)."
                    ),
                    revenue_at_risk=round(revenue_at_risk, 2),
                    weeks_of_stock=round(weeks, 1),
                )
            )
        elif weeks > cfg.overstock_weeks and product.inventory_level > cfg.overstock_min_inventory:
            excess_units = max(0.0, product.inventory_level - product.weekly_sales * STOCKOUT_COVER_WEEKS)
            revenue_at_risk = excess_units * product.price * OVERSTOCK_RECOVERY_RATE
            alerts.append(
                Alert(
                    sku=product.sku,
                    type=AlertType.OVERSTOCK_RISK,
                    severity=Severity.HIGH,
                    urgency_score=7 if weeks > 20 else 6,
                    title=f"Overstock: £{product.inventory_level * product.price:,.0f} tied up in excess stock",
                    message=(
                        f"{product.sku} has {weeks:.0f} weeks of stock ({product.inventory_level} units). "
                        f"About {excess_units:.0f} units exceed eight weeks of demand."
                    ),
                    revenue_at_risk=round(revenue_at_risk, 2),
                    weeks_of_stock=round(weeks, 1),
                )
            )
        return alerts

    def _competitive_alerts(self, product: Product, observations: Sequence[CompetitorObservation]) -> list[Alert]:
        if not observations:
            return []
        cfg = self.config
        mean_pct = sum(o.price_difference_percentage for o in observations) / len(observations)
        mean_diff = sum(o.price_difference for o in observations) / len(observations)
        competitors = len({o.competitor for o in observations})

        if mean_pct > cfg.competitive_threshold_pct:
            critical = mean_pct > 30
            return [
                Alert(
                    sku=product.sku,
                    type=AlertType.COMPETITIVE_THREAT,
                    severity=Severity.CRITICAL if critical else Severity.HIGH,
                    urgency_score=9 if critical else 7,
                    title=f"Priced {mean_pct:.1f}% above competitors",
                    message=(
                        f"{product.sku} at £{product.price:.2f} is on average {mean_pct:.1f}% more expensive "
                        f"than {competitors} competitor(s)."
                    ),
                    revenue_at_risk=round(
                        product.price * product.weekly_sales * WEEKS_PER_YEAR * COMPETITIVE_REVENUE_SHARE, 2
                    ),
                    weeks_of_stock=round(product.weeks_of_stock, 1),
                )
            ]

        if (
            self.config.include_opportunities
            and mean_pct < -cfg.competitive_threshold_pct
            and product.weekly_sales > cfg.opportunity_min_weekly_sales
        ):
            high = mean_pct < -30
            return [
                Alert(
                    sku=product.sku,
                    type=AlertType.PRICING_OPPORTUNITY,
                    severity=Severity.HIGH if high else Severity.MEDIUM,
                    urgency_score=6 if high else 5,
                    title=f"Priced {abs(mean_pct):.1f}% below competitors with strong sales",
                    message=(
                        f"{product.sku} sells {product.weekly_sales:.1f} per week at £{product.price:.2f}, "
                        f"£{abs(mean_diff):.2f} below the competitor average."
                    ),
                    revenue_at_risk=round(abs(mean_diff) * product.weekly_sales * WEEKS_PER_YEAR, 2),
                    weeks_of_stock=round(product.weeks_of_stock, 1),
                )
            ]
        return []

    # --- Assembly --- #

    def build_rule_based_alerts(
        self,
        products: Sequence[Product],
        recommendations: Sequence[PriceRecommendation],
        observations: Sequence[CompetitorObservation],
    ) -> list[Alert]:
        """Deterministic alert set: filtered by severity, capped per SKU, sorted by priority."""
        by_sku_obs: dict[str, list[CompetitorObservation]] = defaultdict(list)
        for obs in observations:
            by_sku_obs[obs.sku].append(obs)
        recs = {r.sku: r for r in recommendations}
        min_rank = Severity(self.config.min_severity).rank

        alerts: list[Alert] = []
        for product in products:
            candidates = self._inventory_alerts(product) + self._competitive_alerts(product, by_sku_obs[product.sku])
            candidates = [a for a in candidates if a.severity.rank >= min_rank]
            candidates.sort(key=lambda a: (a.urgency_score, a.revenue_at_risk), reverse=True)
            for alert in candidates[: self.config.max_alerts_per_sku]:
                alert.recommended_action = _action_text(alert.type, recs.get(product.sku))
                alerts.append(alert)

        alerts.sort(key=_priority_key, reverse=True)
        logger.info(f"Generated {len(alerts)} alerts for {len(products)} products")
        return alerts

    async def enrich(self, alerts: list[Alert]) -> list[Alert]:
        """
        Merge insight-generator narrative into ``ai_analysis`` for the top alerts.
        Any failure returns the input list unchanged.
        """
        if self.insight_generator is None or not alerts:
            return alerts
        top = alerts[: self.config.max_enriched_alerts]
        try:
            narratives = await self.insight_generator.enrich_alerts(top)
        except Exception as e:
            logger.warning(f"Alert enrichment failed, keeping rule-based alerts: {e}")
            return alerts
        if not narratives:
            return alerts
        return [
            alert.model_copy(update={"ai_analysis": narratives[alert.alert_id]})
            if alert.alert_id in narratives
            else alert
            for alert in alerts
        ]

    async def generate_alerts(
        self,
        products: Sequence[Product],
        recommendations: Sequence[PriceRecommendation],
        observations: Sequence[CompetitorObservation],
    ) -> list[Alert]:
        alerts = self.build_rule_based_alerts(products, recommendations, observations)
        if self.config.enrichment == EnrichmentStrategy.AI_ENHANCED:
            alerts = await self.enrich(alerts)
        return alerts


def summarize_alerts(alerts: Sequence[Alert]) -> dict[str, Any]:
    """Totals, counts by severity and type, revenue at risk and the most urgent alert."""
    by_severity = Counter(a.severity.value for a in alerts)
    by_type = Counter(a.type.value for a in alerts)
    most_urgent = max(alerts, key=_priority_key) if alerts else None
    return {
        "total": len(alerts),
        "by_severity": {s.value: by_severity.get(s.value, 0) for s in Severity},
        "by_type": {t.value: by_type.get(t.value, 0) for t in AlertType},
        "total_revenue_at_risk": round(sum(a.revenue_at_risk for a in alerts), 2),
        "most_urgent": most_urgent,
    }


def critical_alert_count(alerts: Sequence[Alert]) -> int:
    return sum(1 for a in alerts if a.severity == Severity.CRITICAL)
