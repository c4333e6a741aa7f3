"""
Module: connectors.openai_insights

Insight generator backed by the OpenAI chat completions API. Produces a short
strategy narrative for a run and optional per-alert commentary. Narrative is
additive only: alerts and scores are computed before this is called.
"""

import json
import logging
import os
import re
from collections.abc import Sequence

from openai import AsyncOpenAI

from config.config import InsightConfig
from intelligence.errors import InsightGenerationError
from models.alerts import Alert
from models.enums import Severity
from models.portfolio import PortfolioMetrics
from utils.openai_utils import completion_text, safe_chat_completion

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a retail pricing analyst. Given portfolio metrics and prioritized alerts, "
    "write a concise strategy summary (max 120 words) naming the most urgent actions and the revenue at stake."
)
ENRICH_PROMPT = (
    "For each alert, write one or two sentences of practical advice. "
    'Output ONLY a JSON object mapping alert_id to advice text, e.g. {"alert-abc": "..."}.'
)


def fallback_summary(metrics: PortfolioMetrics, alerts: Sequence[Alert]) -> str:
    """Deterministic summary used when no model output is available."""
    urgent = sum(1 for a in alerts if a.severity in (Severity.CRITICAL, Severity.HIGH))
    revenue = round(sum(a.revenue_at_risk for a in alerts))
    return (
        f"Competitive analysis of {metrics.total_products} products "
        f"({metrics.competitive_coverage_percentage}% with competitor data) identified {urgent} urgent "
        f"actions and £{revenue:,} revenue at risk. Address overpriced products first to prevent lost sales, "
        f"then raise prices gradually on underpriced lines with strong demand."
    )


def _alerts_payload(alerts: Sequence[Alert]) -> list[dict]:
    return [
        {
            "alert_id": a.alert_id,
            "sku": a.sku,
            "type": a.type.value,
            "severity": a.severity.value,
            "title": a.title,
            "message": a.message,
            "revenue_at_risk": a.revenue_at_risk,
        }
        for a in alerts
    ]


class OpenAIInsightGenerator:
    """Wraps an ``AsyncOpenAI`` client; the client is created from ``OPENAI_API_KEY`` if not given."""

    def __init__(self, config: InsightConfig | None = None, client: AsyncOpenAI | None = None):
        self.config = config or InsightConfig()
        api_key = self.config.api_key or os.getenv("OPENAI_API_KEY")
        self.client = client or (AsyncOpenAI(api_key=api_key) if api_key else None)
        if self.client is None:
            logger.warning("OPENAI_API_KEY not set; insight generation will use the fallback summary")

    async def _complete(self, system: str, user: str) -> str:
        if self.client is None:
            raise InsightGenerationError("OpenAI client is not configured")
        try:
            completion = await safe_chat_completion(
                self.client,
                model=self.config.model,
                messages=[{"role": "system", "content": system}, {"role": "user", "content": user}],
                logger=logger,
                retry_attempts=self.config.retry_attempts,
                retry_backoff=self.config.retry_backoff,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except Exception as e:
            raise InsightGenerationError(f"OpenAI request failed: {e}") from e
        text = completion_text(completion)
        if not text:
            raise InsightGenerationError("OpenAI returned an empty response")
        return text

    async def generate(self, metrics: PortfolioMetrics, alerts: Sequence[Alert]) -> str:
        """Strategy narrative; falls back to ``fallback_summary`` if the model is unavailable."""
        user = json.dumps(
            {
                "metrics": {
                    "total_products": metrics.total_products,
                    "coverage_percentage": metrics.competitive_coverage_percentage,
                    "diversity_score": metrics.diversity_score,
                    "analysis_depth": metrics.analysis_depth.value,
                },
                "alerts": _alerts_payload(alerts[:10]),
            }
        )
        try:
            return await self._complete(SYSTEM_PROMPT, user)
        except InsightGenerationError as e:
            logger.warning(f"Using fallback summary: {e}")
            return fallback_summary(metrics, alerts)

    async def enrich_alerts(self, alerts: Sequence[Alert]) -> dict[str, str]:
        """Advice text keyed by alert_id. Raises InsightGenerationError on any failure."""
        if not alerts:
            return {}
        text = await self._complete(ENRICH_PROMPT, json.dumps(_alerts_payload(alerts)))
        # Tolerate prose around the JSON object
        match = re.search(r"\{.*\}", text, re.DOTALL)
        try:
            parsed = json.loads(match.group(0) if match else text)
        except json.JSONDecodeError as e:
            raise InsightGenerationError(f"Alert enrichment returned invalid JSON: {text[:80]}") from e
        if not isinstance(parsed, dict):
            raise InsightGenerationError("Alert enrichment did not return an object")
        known = {a.alert_id for a in alerts}
        return {k: str(v) for k, v in parsed.items() if k in known and v}
