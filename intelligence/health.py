"""
Portfolio health score on a 1-10 scale.
"""

import logging
from collections.abc import Sequence

from models.alerts import Alert
from models.enums import Severity
from models.portfolio import PortfolioMetrics, PricingPositionSummary

logger = logging.getLogger(__name__)

MAX_SCORE = 10
MIN_SCORE = 1


def score_portfolio_health(
    metrics: PortfolioMetrics,
    alerts: Sequence[Alert],
    positions: PricingPositionSummary,
    brand_concentration: float,
) -> int:
    """
    Start at 10 and deduct for weak coverage, critical alerts, pricing issues
    and brand concentration. The pricing deduction is skipped when no product
    has competitor data.
    """
    score = MAX_SCORE
    deductions: list[str] = []

    coverage = metrics.competitive_coverage_percentage
    if coverage < 20:
        score -= 3
        deductions.append("coverage<20 (-3)")
    elif coverage < 40:
        score -= 1
        deductions.append("coverage<40 (-1)")

    critical = sum(1 for a in alerts if a.severity == Severity.CRITICAL)
    if critical > 3:
        score -= 2
        deductions.append(f"{critical} critical alerts (-2)")
    elif critical > 1:
        score -= 1
        deductions.append(f"{critical} critical alerts (-1)")

    if positions.total_priced > 0:
        if positions.issue_rate > 0.4:
            score -= 2
            deductions.append(f"pricing issues {positions.issue_rate:.0%} (-2)")
        elif positions.issue_rate > 0.2:
            score -= 1
            deductions.append(f"pricing issues {positions.issue_rate:.0%} (-1)")

    if brand_concentration > 60:
        score -= 1
        deductions.append(f"brand concentration {brand_concentration:.0f}% (-1)")

    score = max(MIN_SCORE, min(MAX_SCORE, score))
    logger.debug(f"Health score {score}: {', '.join(deductions) or 'no deductions'}")
    return score
