import pytest

from config.config import HarvestConfig
from intelligence.rate_limiting import AdaptiveDelayLimiter, TokenBucketLimiter
from tests.mocks import RecordingSleep


@pytest.mark.parametrize(
    "rate,expected",
    [
        (0.8, 1.2),
        (0.71, 1.2),
        (0.7, 1.8),
        (0.5, 1.8),
        (0.41, 1.8),
        (0.4, 2.5),
        (0.2, 2.5),
        (0.0, 2.5),
        (1.0, 1.2),
    ],
)
def test_adaptive_delay_tiers(rate, expected):
    assert AdaptiveDelayLimiter().delay_for(rate) == expected


def test_success_rate_tracks_outcomes():
    limiter = AdaptiveDelayLimiter()
    assert limiter.success_rate == 0.0
    for outcome in (True, True, False, True):
        limiter.record(outcome)
    assert limiter.success_rate == 0.75


@pytest.mark.asyncio
async def test_wait_sleeps_for_current_tier():
    sleep = RecordingSleep()
    limiter = AdaptiveDelayLimiter.from_config(HarvestConfig(), sleep=sleep)

    limiter.record(True)
    await limiter.wait()
    limiter.record(False)  # 1/2
    await limiter.wait()
    limiter.record(False)  # 1/3
    await limiter.wait()

    assert sleep.delays == [1.2, 1.8, 2.5]


@pytest.mark.asyncio
async def test_custom_tiers_from_config():
    sleep = RecordingSleep()
    config = HarvestConfig(delay_tiers=[(0.5, 0.1)], fallback_delay_seconds=0.3)
    limiter = AdaptiveDelayLimiter.from_config(config, sleep=sleep)

    limiter.record(True)
    assert await limiter.wait() == 0.1
    limiter.record(False)
    assert await limiter.wait() == 0.3


@pytest.mark.asyncio
async def test_token_bucket_paces_after_capacity():
    sleep = RecordingSleep()
    now = [100.0]
    limiter = TokenBucketLimiter(rate=2.0, capacity=1, sleep=sleep, monotonic=lambda: now[0])

    assert await limiter.wait() == 0.0
    assert await limiter.wait() == pytest.approx(0.5)

    now[0] += 1.0  # refills to capacity
    assert await limiter.wait() == 0.0
    assert sleep.delays == [pytest.approx(0.5)]


def test_token_bucket_rejects_bad_rate():
    with pytest.raises(ValueError):
        TokenBucketLimiter(rate=0)


def test_adaptive_reset_clears_success_rate():
    limiter = AdaptiveDelayLimiter()
    limiter.record(True)
    limiter.record(True)
    limiter.reset()
    assert (limiter.successes, limiter.attempts) == (0, 0)
    assert limiter.success_rate == 0.0


@pytest.mark.asyncio
async def test_token_bucket_reset_refills():
    sleep = RecordingSleep()
    limiter = TokenBucketLimiter(rate=2.0, capacity=1, sleep=sleep, monotonic=lambda: 100.0)

    assert await limiter.wait() == 0.0
    limiter.reset()
    assert await limiter.wait() == 0.0
    assert sleep.delays == []
