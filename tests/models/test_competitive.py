from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from models.alerts import Alert
from models.competitive import CacheEntry, CompetitorObservation, RawPriceRecord
from models.enums import AlertStatus, AlertType, BatchState, ProductHarvestState, Severity
from models.harvest import HarvestBatchResult, ProductHarvestResult
from models.inventory import Product


def test_observation_from_raw_annotates_price_gap():
    product = Product(sku="GIN-1", price=27.5)
    record = RawPriceRecord(competitor="Tesco", competitor_price=25.0, promotional=True)
    ts = datetime(2024, 6, 1)

    obs = CompetitorObservation.from_raw(record, product, source="serp_api", timestamp=ts)

    assert obs.our_price == 27.5
    assert obs.price_difference == 2.5
    assert obs.price_difference_percentage == 10.0
    assert obs.promotional
    assert obs.timestamp == ts


def test_raw_record_requires_positive_price():
    with pytest.raises(ValidationError):
        RawPriceRecord(competitor="Tesco", competitor_price=0)


def test_cache_entry_freshness():
    fetched = datetime(2024, 6, 1, 12, 0)
    entry = CacheEntry(key="gin|gin", payload=[], fetched_at=fetched, ttl_seconds=60)
    assert entry.expires_at == fetched + timedelta(seconds=60)
    assert entry.is_fresh(fetched + timedelta(seconds=59))
    assert not entry.is_fresh(fetched + timedelta(seconds=60))


def test_alert_defaults_and_urgency_bounds():
    alert = Alert(sku="P", type=AlertType.STOCKOUT_RISK, severity=Severity.CRITICAL, urgency_score=10, title="t", message="m")
    assert alert.alert_id.startswith("alert-")
    assert alert.status == AlertStatus.UNREAD

    with pytest.raises(ValidationError):
        Alert(sku="P", type=AlertType.STOCKOUT_RISK, severity=Severity.LOW, urgency_score=11, title="t", message="m")


def test_severity_rank_orders_levels():
    assert [s.rank for s in Severity] == [1, 2, 3, 4]


def test_batch_result_counts():
    batch = HarvestBatchResult(
        state=BatchState.DONE,
        products=[
            ProductHarvestResult(sku="A", state=ProductHarvestState.SUCCESS, attempts=1),
            ProductHarvestResult(sku="B", state=ProductHarvestState.FAILED, attempts=3),
        ],
    )
    assert batch.success_count == 1
    assert batch.failed_skus == ["B"]
    assert batch.total_attempts == 4
    assert not batch.harvesting_unavailable
