"""
Utilities for monitoring harvest batches and detecting drift in their health.
"""

import logging
from collections import defaultdict
from datetime import datetime

import numpy as np  # For drift detection

from models.harvest import HarvestBatchResult

logger = logging.getLogger(__name__)


class HarvestMonitor:
    """Records per-batch harvest metrics and flags when they drift or breach thresholds."""

    def __init__(
        self,
        metric_thresholds: dict[str, tuple[float, float]] | None = None,
        window_size: int = 10,
        change_threshold_percent: float = 20.0,
    ):
        """
        Args:
            metric_thresholds: Dict mapping metric names to (min_value, max_value) tuples.
            window_size: Number of batches compared on each side of the drift check.
            change_threshold_percent: Relative change in the window mean that counts as drift.
        """
        self.metric_thresholds = metric_thresholds or {"success_rate": (0.3, 1.0)}
        self.window_size = window_size
        self.change_threshold_percent = change_threshold_percent
        # metric_name -> [(timestamp, value)]
        self.metrics_history: dict[str, list[tuple[datetime, float]]] = defaultdict(list)
        self.breaches: list[str] = []

    def record_batch(
        self, batch: HarvestBatchResult, latency_seconds: float | None = None, timestamp: datetime | None = None
    ) -> dict[str, float]:
        """Derive metrics from a finished batch and record them."""
        attempted = len(batch.products)
        metrics = {
            "success_rate": batch.success_count / attempted if attempted else 0.0,
            "observations": float(len(batch.observations)),
            "attempts_per_product": batch.total_attempts / attempted if attempted else 0.0,
        }
        if latency_seconds is not None:
            metrics["latency_seconds"] = latency_seconds
        if attempted:
            self.record_metrics(metrics, timestamp)
        return metrics

    def record_metrics(self, metrics_dict: dict[str, float], timestamp: datetime | None = None):
        ts = timestamp or datetime.now()
        for metric, value in metrics_dict.items():
            if not isinstance(value, int | float):
                logger.warning(f"Metric '{metric}' has non-numeric value: {value}. Skipping.")
                continue

            self.metrics_history[metric].append((ts, float(value)))

            if metric in self.metric_thresholds:
                min_val, max_val = self.metric_thresholds[metric]
                if not (min_val <= value <= max_val):
                    message = f"Harvest metric '{metric}' value {value:.2f} outside [{min_val:.2f}, {max_val:.2f}]"
                    self.breaches.append(message)
                    logger.warning(message)

            if self.detect_drift(metric):
                logger.warning(f"Drift detected for harvest metric '{metric}'")

    def detect_drift(self, metric: str) -> bool:
        """Compare the mean of the last window against the window before it."""
        history = self.metrics_history.get(metric, [])
        if len(history) < self.window_size * 2:
            return False

        recent_avg = np.mean([v for _, v in history[-self.window_size :]])
        previous_avg = np.mean([v for _, v in history[-self.window_size * 2 : -self.window_size]])

        if previous_avg == 0:
            return bool(recent_avg != 0)
        percent_change = abs((recent_avg - previous_avg) / previous_avg) * 100
        return bool(percent_change > self.change_threshold_percent)

    def is_decreasing(self, metric: str, window: int = 5) -> bool:
        """Negative linear-regression slope over the last ``window`` values."""
        history = self.metrics_history.get(metric, [])
        if len(history) < window:
            return False
        values = [v for _, v in history[-window:]]
        slope = np.polyfit(np.arange(len(values)), values, 1)[0]
        return bool(slope < 0)
