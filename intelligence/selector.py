"""
Strategic product selection: pick which uncovered products to harvest so the
batch spans as many categories and brands as possible, then fill the rest of
the budget by revenue.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence

from models.competitive import CompetitorObservation
from models.enums import AnalysisDepth
from models.inventory import Product

logger = logging.getLogger(__name__)

TURNOVER_WEIGHT = 100.0


def _top_by_revenue(products: Sequence[Product]) -> Product:
    # max() keeps the first of equal-revenue products, i.e. catalogue order
    return max(products, key=lambda p: p.revenue)


def _fill_key(product: Product, depth: AnalysisDepth) -> float:
    if depth == AnalysisDepth.DEEP:
        return product.revenue + product.turnover * TURNOVER_WEIGHT
    return product.revenue


def select_strategic_products(
    products: Sequence[Product],
    observations: Sequence[CompetitorObservation],
    target_count: int,
    depth: AnalysisDepth | str = AnalysisDepth.STANDARD,
) -> list[Product]:
    """
    Three-phase greedy selection over products without competitor data.

    1. Category pass: the highest-revenue product of each category.
    2. Brand pass: brands (excluding Unknown) by descending catalogue size,
       each contributing its highest-revenue unselected product.
    3. Revenue fill: remaining products by revenue (plus a turnover term for
       deep analysis) until the target is reached.
    """
    depth = AnalysisDepth(depth)
    if target_count <= 0:
        return []

    covered = {o.sku for o in observations}
    uncovered = [p for p in products if p.sku not in covered]
    if not uncovered:
        logger.info("All products already have competitor data; nothing to select")
        return []

    selected: list[Product] = []
    used: set[str] = set()

    def take(product: Product) -> None:
        selected.append(product)
        used.add(product.sku)

    by_category: dict[str, list[Product]] = defaultdict(list)
    for product in uncovered:
        by_category[product.category].append(product)
    for category_products in by_category.values():
        if len(selected) >= target_count:
            break
        top = _top_by_revenue(category_products)
        if top.sku not in used:
            take(top)
    category_picks = len(selected)

    by_brand: dict[str, list[Product]] = defaultdict(list)
    for product in uncovered:
        if product.has_brand:
            by_brand[product.brand].append(product)
    # sorted() is stable, so equally sized brands keep catalogue order
    for _, brand_products in sorted(by_brand.items(), key=lambda item: len(item[1]), reverse=True):
        if len(selected) >= target_count:
            break
        candidates = [p for p in brand_products if p.sku not in used]
        if candidates:
            take(_top_by_revenue(candidates))
    brand_picks = len(selected) - category_picks

    remaining = sorted(
        (p for p in uncovered if p.sku not in used),
        key=lambda p: _fill_key(p, depth),
        reverse=True,
    )
    for product in remaining:
        if len(selected) >= target_count:
            break
        take(product)

    logger.info(
        f"Selected {len(selected)}/{target_count} products "
        f"(category={category_picks}, brand={brand_picks}, fill={len(selected) - category_picks - brand_picks}); "
        f"categories={len({p.category for p in selected})}, brands={len({p.brand for p in selected})}"
    )
    return selected[:target_count]
