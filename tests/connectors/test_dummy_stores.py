from datetime import datetime

import pytest

from connectors.dummy_price_transport import DummyPriceTransport
from connectors.dummy_stores import InMemoryStore
from intelligence.errors import TransientLookupError
from models.competitive import CompetitorObservation
from tests.mocks import FakeClock, make_product


def observation_at(ts: datetime) -> CompetitorObservation:
    return CompetitorObservation(
        sku="P1",
        competitor="Tesco",
        competitor_price=10.0,
        our_price=11.0,
        price_difference=1.0,
        price_difference_percentage=10.0,
        timestamp=ts,
    )


@pytest.mark.asyncio
async def test_store_round_trips_products_and_filters_by_day_range():
    clock = FakeClock(datetime(2024, 6, 10))
    store = InMemoryStore(clock=clock)
    store.load_products("acct", [{"sku": "P1", "price": "£11"}, {"sku": ""}])
    store.add_observations("acct", [observation_at(datetime(2024, 6, 9)), observation_at(datetime(2024, 5, 1))])

    assert [p.sku for p in await store.get_products("acct")] == ["P1"]
    assert len(await store.get_observations("acct", days=7)) == 1
    assert len(await store.get_observations("acct")) == 2
    assert await store.get_products("other") == []


@pytest.mark.asyncio
async def test_store_write_failures():
    store = InMemoryStore()
    store.fail_writes = True
    with pytest.raises(ConnectionError):
        await store.save_alerts("acct", [])


@pytest.mark.asyncio
async def test_dummy_transport_is_deterministic():
    transport = DummyPriceTransport({"Hendricks gin": 30.0})

    first = await transport.lookup("Hendricks gin", "gin")
    second = await transport.lookup("hendricks GIN", "gin")

    assert len(first) == 5
    assert [r.competitor_price for r in first] == [r.competitor_price for r in second]
    assert all(26.4 <= r.competitor_price <= 33.6 for r in first)
    assert await transport.lookup("unknown", "gin") == []
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_dummy_transport_failures():
    transport = DummyPriceTransport({"gin": 20.0}, failing_queries={"gin"})
    with pytest.raises(TransientLookupError):
        await transport.lookup("gin", "gin")


def test_products_accept_model_instances():
    store = InMemoryStore()
    assert store.load_products("acct", [make_product("X")])[0].sku == "X"
