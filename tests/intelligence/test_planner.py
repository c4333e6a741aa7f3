import pytest

from intelligence.planner import plan_harvest
from intelligence.portfolio import analyze_portfolio
from models.enums import AnalysisDepth, HarvestReason
from models.portfolio import PortfolioMetrics
from tests.mocks import make_product


def metrics_for(total: int, coverage: float) -> PortfolioMetrics:
    return PortfolioMetrics(
        total_products=total,
        competitive_coverage_percentage=coverage,
        diversity_score=50.0,
        analysis_depth=AnalysisDepth.STANDARD,
    )


def test_force_refresh_takes_priority():
    strategy = plan_harvest(metrics_for(100, 90.0), force_refresh=True)
    assert strategy.should_expand
    assert strategy.reason == HarvestReason.FORCE_REFRESH
    assert (strategy.target_count, strategy.max_per_product) == (25, 4)


def test_force_refresh_small_portfolio():
    strategy = plan_harvest(metrics_for(10, 0.0), force_refresh=True)
    assert strategy.target_count == 10


def test_low_coverage():
    strategy = plan_harvest(metrics_for(30, 10.0))
    assert strategy.reason == HarvestReason.LOW_COVERAGE
    # ceil(30 * 0.2) = 6
    assert (strategy.target_count, strategy.max_per_product) == (6, 3)


@pytest.mark.parametrize("total,expected_target", [(100, 15), (40, 6), (500, 15)])
def test_deep_analysis(total, expected_target):
    strategy = plan_harvest(metrics_for(total, 20.0), requested_depth=AnalysisDepth.DEEP)
    assert strategy.reason == HarvestReason.DEEP_ANALYSIS
    assert strategy.target_count == expected_target
    assert strategy.max_per_product == 4


def test_moderate_coverage_without_deep_request_is_sufficient():
    strategy = plan_harvest(metrics_for(80, 20.0), requested_depth=AnalysisDepth.STANDARD)
    assert not strategy.should_expand
    assert strategy.reason == HarvestReason.SUFFICIENT_COVERAGE
    assert strategy.estimated_lookups == 0


def test_large_portfolio():
    strategy = plan_harvest(metrics_for(150, 20.0))
    assert strategy.reason == HarvestReason.LARGE_PORTFOLIO
    assert (strategy.target_count, strategy.max_per_product) == (30, 2)


def test_sufficient_coverage():
    assert not plan_harvest(metrics_for(150, 40.0)).should_expand


def test_empty_portfolio_never_expands():
    assert not plan_harvest(metrics_for(0, 0.0), force_refresh=True).should_expand


def test_hundred_uncovered_products_take_low_coverage_branch():
    products = [make_product(f"P{i:03d}", category=f"cat{i % 7}") for i in range(100)]
    metrics = analyze_portfolio(products, [])
    strategy = plan_harvest(metrics, force_refresh=False)

    # --- Verify calculation --- #
    assert metrics.competitive_coverage_percentage == 0.0
    assert strategy.reason == HarvestReason.LOW_COVERAGE
    assert strategy.target_count == 20  # min(20, ceil(100 * 0.2))
    assert strategy.max_per_product == 3
    assert strategy.estimated_lookups == 60
