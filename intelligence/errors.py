"""
Exception hierarchy for the competitive intelligence engine.
"""


class IntelligenceError(Exception):
    """Base class for engine errors."""


class TransientLookupError(IntelligenceError):
    """A competitor price lookup failed in a way that may succeed on retry."""


class HarvestingUnavailableError(IntelligenceError):
    """Every product in a harvest batch failed; no competitor data was collected."""

    def __init__(self, attempted: int, message: str | None = None):
        self.attempted = attempted
        super().__init__(message or f"Harvesting unavailable: all {attempted} products failed")


class InsightGenerationError(IntelligenceError):
    """The external insight generator could not produce narrative content."""
