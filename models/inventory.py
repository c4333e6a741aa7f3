"""
Inventory-related data models for the competitive intelligence engine.
Includes the Product record and the ingestion-boundary parser that validates
loosely typed rows once, so nothing downstream has to re-check them.
"""

import logging
import re
from collections.abc import Iterable
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

UNKNOWN_BRAND = "Unknown"
UNKNOWN_CATEGORY = "unknown"
NO_SALES_WEEKS_OF_STOCK = 999.0

_CURRENCY_CHARS = re.compile(r"[£$€,\s]")


def _coerce_non_negative(value: Any) -> float:
    """Parse a numeric field, treating blanks as zero and clamping negatives."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValueError("boolean is not a valid number")
    if isinstance(value, str):
        cleaned = _CURRENCY_CHARS.sub("", value)
        if not cleaned:
            return 0.0
        value = float(cleaned)  # ValueError propagates as a validation error
    number = float(value)
    if number != number:  # NaN
        return 0.0
    return max(0.0, number)


class Product(BaseModel):
    """
    A SKU in the account's catalogue. Owned by the inventory store and
    read-only to the engine.
    """

    model_config = ConfigDict(frozen=True)

    sku: str = Field(validation_alias=AliasChoices("sku", "sku_code"))
    price: float = 0.0
    weekly_sales: float = 0.0
    inventory_level: int = 0
    category: str = UNKNOWN_CATEGORY
    brand: str = UNKNOWN_BRAND
    subcategory: str | None = None
    product_name: str | None = None

    @field_validator("sku", mode="before")
    @classmethod
    def _normalize_sku(cls, value: Any) -> str:
        if value is None or str(value).strip() == "":
            raise ValueError("sku is required")
        return str(value).strip()

    @field_validator("price", "weekly_sales", mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float:
        return _coerce_non_negative(value)

    @field_validator("inventory_level", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int:
        return int(round(_coerce_non_negative(value)))

    @field_validator("brand", mode="before")
    @classmethod
    def _default_brand(cls, value: Any) -> str:
        if value is None or str(value).strip() == "":
            return UNKNOWN_BRAND
        return str(value).strip()

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> str:
        if value is None or str(value).strip() == "":
            return UNKNOWN_CATEGORY
        return str(value).strip()

    @field_validator("subcategory", "product_name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None or str(value).strip() == "":
            return None
        return str(value).strip()

    @property
    def revenue(self) -> float:
        """Weekly revenue, the selector's ranking signal."""
        return self.price * self.weekly_sales

    @property
    def weeks_of_stock(self) -> float:
        if self.weekly_sales <= 0:
            return NO_SALES_WEEKS_OF_STOCK
        return self.inventory_level / self.weekly_sales

    @property
    def turnover(self) -> float:
        return self.weekly_sales / max(self.inventory_level, 1)

    @property
    def has_brand(self) -> bool:
        return self.brand != UNKNOWN_BRAND


def parse_products(rows: Iterable[dict[str, Any] | Product]) -> list[Product]:
    """
    Validate raw inventory rows into Products.

    Rows that cannot be coerced (missing SKU, non-numeric price) are logged
    and skipped rather than aborting the whole load.
    """
    products: list[Product] = []
    skipped = 0
    for row in rows:
        if isinstance(row, Product):
            products.append(row)
            continue
        try:
            products.append(Product.model_validate(row))
        except ValidationError as e:
            skipped += 1
            logger.warning(f"Skipping malformed product row {row!r}: {e.error_count()} error(s)")
    if skipped:
        logger.info(f"Parsed {len(products)} products, skipped {skipped} malformed rows")
    return products
