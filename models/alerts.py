"""
Data models for alerts and the per-product price recommendations that
feed them.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field

from .enums import AlertStatus, AlertType, PriceAction, Severity


class Alert(BaseModel):
    """A prioritized, actionable alert for one SKU."""

    alert_id: str = Field(default_factory=lambda: f"alert-{uuid.uuid4().hex[:12]}")
    sku: str
    type: AlertType
    severity: Severity
    urgency_score: int = Field(ge=1, le=10)
    title: str
    message: str
    revenue_at_risk: float = 0.0
    weeks_of_stock: float | None = None
    recommended_action: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    status: AlertStatus = AlertStatus.UNREAD
    ai_analysis: str | None = None  # narrative only, set by enrichment


@dataclass(frozen=True)
class PriceRecommendation:
    """
    Standardized price-action suggestion for a product.
    """

    sku: str
    action: PriceAction
    current_price: float
    recommended_price: float
    reason: str
    confidence: float
    weekly_sales: float
    weeks_of_stock: float
    competitor_count: int = 0
    avg_competitor_price: float | None = None

    @property
    def change_percentage(self) -> float:
        if self.current_price <= 0:
            return 0.0
        return (self.recommended_price - self.current_price) / self.current_price * 100

    @property
    def revenue_impact(self) -> float:
        """Four-week revenue change if the recommendation is applied."""
        return (self.recommended_price - self.current_price) * self.weekly_sales * 4
