"""
Result records produced by the competitive harvester.
"""

from dataclasses import dataclass, field

from .competitive import CompetitorObservation
from .enums import BatchState, ProductHarvestState


@dataclass
class ProductHarvestResult:
    """Outcome of harvesting one product, including every query attempted."""

    sku: str
    state: ProductHarvestState = ProductHarvestState.PENDING
    attempts: int = 0
    queries: list[str] = field(default_factory=list)
    observations: list[CompetitorObservation] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == ProductHarvestState.SUCCESS


@dataclass
class HarvestBatchResult:
    """Outcome of a harvest batch."""

    state: BatchState = BatchState.PLANNING
    products: list[ProductHarvestResult] = field(default_factory=list)
    observations: list[CompetitorObservation] = field(default_factory=list)
    stop_reason: str | None = None

    @property
    def success_count(self) -> int:
        return sum(1 for p in self.products if p.succeeded)

    @property
    def failure_count(self) -> int:
        return sum(1 for p in self.products if p.state == ProductHarvestState.FAILED)

    @property
    def failed_skus(self) -> list[str]:
        return [p.sku for p in self.products if p.state == ProductHarvestState.FAILED]

    @property
    def total_attempts(self) -> int:
        return sum(p.attempts for p in self.products)

    @property
    def harvesting_unavailable(self) -> bool:
        """True when products were attempted and every one of them failed."""
        return self.state == BatchState.UNAVAILABLE
