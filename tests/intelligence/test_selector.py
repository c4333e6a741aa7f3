from intelligence.selector import select_strategic_products
from models.enums import AnalysisDepth
from tests.mocks import make_observation, make_product


def test_category_pass_covers_every_category_first():
    categories = ["gin", "rum", "vodka", "whisky", "wine"]
    products = []
    for i, category in enumerate(categories):
        products.append(make_product(f"{category}-low", category=category, brand="Shared", weekly_sales=1))
        products.append(make_product(f"{category}-top", category=category, brand="Shared", weekly_sales=10 + i))

    selected = select_strategic_products(products, [], target_count=5)

    assert len(selected) == 5
    assert {p.category for p in selected} == set(categories)
    assert all(p.sku.endswith("-top") for p in selected)


def test_never_exceeds_target_or_returns_covered():
    products = [make_product(f"P{i}", category=f"c{i % 3}", brand=f"b{i % 4}") for i in range(20)]
    covered = products[:5]
    observations = [make_observation(p, 18.0) for p in covered]

    selected = select_strategic_products(products, observations, target_count=8)

    assert len(selected) <= 8
    assert not {p.sku for p in selected} & {p.sku for p in covered}
    assert len({p.sku for p in selected}) == len(selected)


def test_brand_pass_prefers_larger_brands():
    products = [
        make_product("G1", category="gin", brand="Alpha", price=10, weekly_sales=10),
        make_product("G2", category="gin", brand="Beta", price=10, weekly_sales=5),
        make_product("G3", category="gin", brand="Alpha", price=10, weekly_sales=4),
        make_product("R1", category="rum", brand="Gamma", price=10, weekly_sales=1),
    ]

    selected = select_strategic_products(products, [], target_count=3)

    # Category pass picks G1 and R1; Alpha (two products) is the largest brand
    assert [p.sku for p in selected] == ["G1", "R1", "G3"]


def test_unknown_brand_is_skipped_in_brand_pass():
    products = [
        make_product("P1", category="gin", brand="", weekly_sales=10),
        make_product("P2", category="gin", brand="", weekly_sales=1),
        make_product("P3", category="gin", brand="Beta", weekly_sales=2),
    ]
    selected = select_strategic_products(products, [], target_count=2)
    assert [p.sku for p in selected] == ["P1", "P3"]


def test_deep_fill_weights_turnover():
    products = [
        make_product("TOP", category="gin", brand="", price=20, weekly_sales=10, inventory_level=50),
        make_product("SLOW", category="gin", brand="", price=10, weekly_sales=5, inventory_level=100),
        make_product("FAST", category="gin", brand="", price=4, weekly_sales=10, inventory_level=5),
    ]

    standard = select_strategic_products(products, [], 2, AnalysisDepth.STANDARD)
    deep = select_strategic_products(products, [], 2, AnalysisDepth.DEEP)

    assert [p.sku for p in standard] == ["TOP", "SLOW"]
    assert [p.sku for p in deep] == ["TOP", "FAST"]


def test_revenue_ties_keep_catalogue_order():
    products = [make_product(f"P{i}", category="gin", brand="", price=10, weekly_sales=5) for i in range(4)]
    selected = select_strategic_products(products, [], target_count=3)
    assert [p.sku for p in selected] == ["P0", "P1", "P2"]


def test_empty_cases():
    products = [make_product("P1")]
    assert select_strategic_products(products, [], target_count=0) == []
    assert select_strategic_products(products, [make_observation(products[0], 19.0)], target_count=3) == []
    assert select_strategic_products([], [], target_count=3) == []
