"""
Strategy planner: decides whether to expand competitor harvesting and by how
much. The cost of a harvest scales with target_count * max_per_product, so each
rule trades coverage urgency against that cost.
"""

import logging
import math

from models.enums import AnalysisDepth, HarvestReason
from models.portfolio import HarvestStrategy, PortfolioMetrics

logger = logging.getLogger(__name__)


def plan_harvest(
    metrics: PortfolioMetrics,
    force_refresh: bool = False,
    requested_depth: AnalysisDepth | str = AnalysisDepth.STANDARD,
) -> HarvestStrategy:
    """Apply the decision table; the first matching rule wins."""
    depth = AnalysisDepth(requested_depth)
    coverage = metrics.competitive_coverage_percentage
    total = metrics.total_products

    if total <= 0:
        strategy = HarvestStrategy(False, HarvestReason.SUFFICIENT_COVERAGE, 0, 0)
    elif force_refresh:
        strategy = HarvestStrategy(True, HarvestReason.FORCE_REFRESH, min(25, total), 4)
    elif coverage < 15:
        strategy = HarvestStrategy(True, HarvestReason.LOW_COVERAGE, min(20, math.ceil(total * 0.2)), 3)
    elif coverage < 30 and depth == AnalysisDepth.DEEP:
        strategy = HarvestStrategy(True, HarvestReason.DEEP_ANALYSIS, min(15, math.ceil(total * 0.15)), 4)
    elif total > 100 and coverage < 25:
        strategy = HarvestStrategy(True, HarvestReason.LARGE_PORTFOLIO, 30, 2)
    else:
        strategy = HarvestStrategy(False, HarvestReason.SUFFICIENT_COVERAGE, 0, 0)

    if strategy.should_expand:
        logger.info(
            f"Expanding competitive coverage ({strategy.reason.value}): "
            f"{strategy.target_count} products x {strategy.max_per_product} lookups, coverage={coverage}%"
        )
    else:
        logger.info(f"No harvest needed: coverage={coverage}% over {total} products")
    return strategy
