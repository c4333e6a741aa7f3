"""
Demo script for the competitive intelligence engine.

Loads a small spirits catalogue into the in-memory store, runs the engine
against the deterministic price transport, and prints alerts and the health
score. Set SERP_API_KEY and pass --live to query the real search API instead.
"""

import argparse
import asyncio

from config.config import EngineConfig
from connectors.dummy_price_transport import DummyPriceTransport
from connectors.dummy_stores import InMemoryStore
from connectors.openai_insights import fallback_summary
from connectors.serp_transport import SerpShoppingTransport
from intelligence.engine import CompetitiveIntelligenceEngine
from models.enums import AnalysisDepth
from models.report import IntelligenceRequest
from utils.logger import get_logger

logger = get_logger("demos.competitive_intelligence")

ACCOUNT_ID = "demo-account"

CATALOGUE = [
    {"sku_code": "GIN-001", "product_name": "Hendrick's Gin 70cl", "brand": "Hendricks", "category": "gin",
     "price": "£34.00", "weekly_sales": 12, "inventory_level": 18},
    {"sku_code": "GIN-002", "product_name": "Bombay Sapphire 70cl", "brand": "Bombay", "category": "gin",
     "price": 22.5, "weekly_sales": 9, "inventory_level": 140},
    {"sku_code": "WHS-001", "product_name": "Macallan 12 Double Cask", "brand": "Macallan", "category": "whisky",
     "subcategory": "single malt", "price": 64.0, "weekly_sales": 4, "inventory_level": 30},
    {"sku_code": "WHS-002", "product_name": "Johnnie Walker Black", "brand": "Johnnie Walker",
     "category": "whisky", "price": 28.0, "weekly_sales": 7, "inventory_level": 9},
    {"sku_code": "VOD-001", "product_name": "Grey Goose 70cl", "brand": "Grey Goose", "category": "vodka",
     "price": 45.0, "weekly_sales": 3.5, "inventory_level": 60},
    {"sku_code": "VOD-002", "product_name": "Absolut Blue 70cl", "brand": "Absolut", "category": "vodka",
     "price": 16.0, "weekly_sales": 15, "inventory_level": 100},
    {"sku_code": "WIN-001", "product_name": "House Red", "brand": "", "category": "wine",
     "price": 8.99, "weekly_sales": 0.2, "inventory_level": 48},
]

# Reference market prices keyed by the query terms the harvester will try
MARKET_PRICES = {
    "Hendricks gin": 31.0,
    "Bombay gin": 19.0,
    "Macallan single malt": 58.0,
    "Johnnie Walker whisky": 30.0,
    "Grey Goose vodka": 36.0,
    "Absolut vodka": 21.0,
}


async def run_competitive_intelligence_demo(live: bool = False, force_refresh: bool = False):
    logger.info("--- Competitive Intelligence Demo ---")
    store = InMemoryStore()
    products = store.load_products(ACCOUNT_ID, CATALOGUE)
    logger.info(f"Loaded {len(products)} products for {ACCOUNT_ID}")

    config = EngineConfig.from_env()
    # Keep the demo quick
    config.harvest.delay_tiers = [(0.7, 0.05), (0.4, 0.1)]
    config.harvest.fallback_delay_seconds = 0.15

    transport = SerpShoppingTransport() if live else DummyPriceTransport(MARKET_PRICES)
    engine = CompetitiveIntelligenceEngine(store, transport, data_store=store, config=config)

    request = IntelligenceRequest(depth=AnalysisDepth.STANDARD, force_refresh=force_refresh)
    report = await engine.run(ACCOUNT_ID, request)

    logger.info(
        f"Coverage {report.metrics.competitive_coverage_percentage}% | diversity {report.metrics.diversity_score} "
        f"| depth {report.metrics.analysis_depth.value} | harvest {report.harvest_status.value}"
    )
    for alert in report.alerts:
        logger.info(
            f"[{alert.severity.value.upper():8}] {alert.sku:8} {alert.title} "
            f"(urgency {alert.urgency_score}, £{alert.revenue_at_risk:,.0f}) -> {alert.recommended_action}"
        )
    for opportunity in report.opportunities:
        logger.info(f"Opportunity: {opportunity.description} (£{opportunity.value:,.0f})")
    logger.info(f"Health score: {report.health_score}/10")
    logger.info(report.narrative or fallback_summary(report.metrics, report.alerts))
    logger.info("--- Competitive Intelligence Demo Finished ---")
    return report


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--live", action="store_true", help="Use the SERP shopping API")
    parser.add_argument("--force-refresh", action="store_true")
    args = parser.parse_args()
    asyncio.run(run_competitive_intelligence_demo(live=args.live, force_refresh=args.force_refresh))
