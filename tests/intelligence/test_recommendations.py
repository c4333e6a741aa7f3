import pytest

from intelligence.recommendations import build_recommendations, recommend_price
from models.enums import PriceAction
from tests.mocks import make_observation, make_product


def test_critical_stock_with_high_demand_reorders_and_nudges_price():
    rec = recommend_price(make_product(price=20.0, weekly_sales=10, inventory_level=15))
    assert rec.action == PriceAction.REORDER_STOCK
    assert rec.recommended_price == 21.0
    assert rec.confidence == 0.95


def test_critical_stock_with_normal_demand_keeps_price():
    rec = recommend_price(make_product(price=20.0, weekly_sales=4, inventory_level=4))
    assert rec.action == PriceAction.REORDER_STOCK
    assert rec.recommended_price == 20.0


def test_slow_mover_is_cleared():
    rec = recommend_price(make_product(price=20.0, weekly_sales=0.2, inventory_level=50))
    assert rec.action == PriceAction.CLEARANCE_OR_BUNDLE
    assert rec.recommended_price == 16.0


def test_fast_mover_is_optimized():
    rec = recommend_price(make_product(price=20.0, weekly_sales=8, inventory_level=40))
    assert rec.action == PriceAction.OPTIMIZE_PRICE
    assert rec.recommended_price == 21.6
    # --- Verify calculation --- #
    assert rec.revenue_impact == pytest.approx((21.6 - 20.0) * 8 * 4)
    assert rec.change_percentage == pytest.approx(8.0)


def test_default_is_maintain():
    rec = recommend_price(make_product(price=20.0, weekly_sales=3, inventory_level=30))
    assert rec.action == PriceAction.MAINTAIN_PRICE
    assert rec.recommended_price == 20.0


def test_premium_over_market_decreases_price():
    rec = recommend_price(make_product(price=30.0, weekly_sales=3, inventory_level=30), [22.0, 26.0])
    assert rec.action == PriceAction.DECREASE_PRICE
    assert rec.avg_competitor_price == 24.0
    assert rec.recommended_price == 25.2
    assert rec.competitor_count == 2


def test_reorder_is_not_overridden_by_premium():
    rec = recommend_price(make_product(price=30.0, weekly_sales=10, inventory_level=5), [20.0])
    assert rec.action == PriceAction.REORDER_STOCK


def test_discount_to_market_with_strong_sales_increases_price():
    rec = recommend_price(make_product(price=20.0, weekly_sales=4, inventory_level=30), [25.0])
    assert rec.action == PriceAction.INCREASE_PRICE
    assert rec.recommended_price == 23.75


def test_within_market_range_adds_context():
    rec = recommend_price(make_product(price=20.0, weekly_sales=3, inventory_level=30), [21.0])
    assert rec.action == PriceAction.MAINTAIN_PRICE
    assert "within market range" in rec.reason


def test_build_recommendations_groups_observations_by_sku():
    p1 = make_product("P1", price=30.0, weekly_sales=3, inventory_level=30)
    p2 = make_product("P2", price=20.0, weekly_sales=3, inventory_level=30)
    recs = build_recommendations([p1, p2], [make_observation(p1, 24.0)])

    assert [r.sku for r in recs] == ["P1", "P2"]
    assert recs[0].action == PriceAction.DECREASE_PRICE
    assert recs[1].competitor_count == 0
