import pytest

from intelligence.opportunities import detect_market_opportunities, underpriced_products
from tests.mocks import make_observation, make_product, observation_with_gap


def test_high_revenue_unmonitored_category_is_a_gap():
    products = [make_product(f"G{i}", category="gin", price=50.0, weekly_sales=10) for i in range(3)]
    products.append(make_product("W1", category="wine", price=5.0, weekly_sales=10))

    opportunities = detect_market_opportunities(products, [])

    assert len(opportunities) == 1
    gap = opportunities[0]
    assert gap.type == "competitive_intelligence_gap"
    assert gap.category == "gin"
    assert gap.value == 1500.0
    assert gap.coverage_percentage == 0.0


def test_well_covered_category_is_not_a_gap():
    products = [make_product(f"G{i}", category="gin", price=50.0, weekly_sales=10) for i in range(3)]
    observations = [make_observation(products[0], 50.0)]  # 33% coverage

    assert detect_market_opportunities(products, observations) == []


def test_top_five_underpriced_products_ranked_by_value():
    products = [make_product(f"P{i}", price=20.0, weekly_sales=i + 1) for i in range(7)]
    observations = [observation_with_gap(p, -20.0) for p in products]

    found = underpriced_products(products, observations)

    assert len(found) == 5
    assert [o.sku for o in found] == ["P6", "P5", "P4", "P3", "P2"]
    top = found[0]
    # --- Verify calculation --- #
    assert top.value == pytest.approx(abs(observations[6].price_difference) * 7 * 52, abs=0.01)
    assert top.market_price == pytest.approx(25.0)


def test_no_products_no_opportunities():
    assert detect_market_opportunities([], []) == []
