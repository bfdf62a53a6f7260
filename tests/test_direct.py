import asyncio
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from governor.clock import DefaultClock, FakeRelativeClock
from governor.direct import DirectRateLimiter, direct
from governor.errors import InsufficientCapacity
from governor.middleware import RateLimitingMiddleware, StateInformationMiddleware
from governor.nanos import Nanos
from governor.outcomes import NotUntil
from governor.quota import Quota
from governor.store import NotKeyed

MS = Nanos.from_millis(1)


def test_accepts_first_cell():
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(5), clock)
    assert lb.check() is None
    assert isinstance(lb, DirectRateLimiter)


def test_rejects_too_many():
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(2), clock)
    assert lb.check() is None
    clock.advance(MS)
    assert lb.check() is None
    clock.advance(MS)
    with pytest.raises(NotUntil):
        lb.check()
    clock.advance(MS * 1000)
    assert lb.check() is None
    clock.advance(MS)
    assert lb.check() is None
    clock.advance(MS)
    with pytest.raises(NotUntil):
        lb.check()


def test_all_1_identical_to_1():
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(2), clock)
    assert lb.check_n(1) is None
    clock.advance(MS)
    assert lb.check_n(1) is None
    clock.advance(MS)
    with pytest.raises(NotUntil):
        lb.check_n(1)
    clock.advance(MS * 1000)
    assert lb.check_n(1) is None
    clock.advance(MS)
    assert lb.check_n(1) is None
    clock.advance(MS)
    with pytest.raises(NotUntil):
        lb.check_n(1)


def test_never_allows_more_than_capacity_all():
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(4), clock)
    assert lb.check_n(2) is None
    assert lb.check_n(2) is None
    clock.advance(MS)
    with pytest.raises(NotUntil):
        lb.check_n(2)
    clock.advance(MS * 1000)
    assert lb.check_n(2) is None
    clock.advance(MS)
    assert lb.check_n(2) is None
    clock.advance(MS)
    with pytest.raises(NotUntil):
        lb.check_n(2)


def test_rejects_too_many_all():
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(5), clock)
    with pytest.raises(InsufficientCapacity):
        lb.check_n(15)
    clock.advance(MS * 3 * 1000)
    with pytest.raises(InsufficientCapacity):
        lb.check_n(15)


@pytest.mark.parametrize("n", [15, 6, 7])
def test_all_capacity_check_rejects_excess(n):
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(5), clock)
    with pytest.raises(InsufficientCapacity) as excinfo:
        lb.check_n(n)
    assert excinfo.value == InsufficientCapacity(5)


def test_correct_wait_time():
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(5), clock)
    conforming = 0
    for _ in range(20):
        clock.advance(MS)
        try:
            lb.check()
        except NotUntil as wait:
            clock.advance(wait.wait_time_from(clock.now()))
            assert lb.check() is None
        conforming += 1
    assert conforming == 20


def test_actual_threadsafety():
    clock = FakeRelativeClock()
    lim = direct(Quota.per_second(20), clock)
    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(pool.map(lambda _: lim.check(), range(20)))
    assert results == [None] * 20
    clock.advance(MS * 2)
    with pytest.raises(NotUntil):
        lim.check()
    clock.advance(MS * 998)
    assert lim.check() is None


def test_default_direct():
    limiter = direct(Quota.per_second(20), DefaultClock())
    assert limiter.check() is None


def test_check_passes_non_key_to_middleware():
    seen = []

    class Recording(RateLimitingMiddleware):
        def allow(self, key, state):
            seen.append(key)
            return key

        def disallow(self, key, state, start_time):
            return NotUntil(state, start_time)

    lim = direct(Quota.per_second(2), FakeRelativeClock()).with_middleware(Recording)
    assert lim.check() is NotKeyed.NON_KEY
    assert seen == [NotKeyed.NON_KEY]


def test_not_until_display_and_quota():
    clock = FakeRelativeClock()
    quota = Quota.per_second(1)
    lb = direct(quota, clock)
    assert lb.check() is None
    with pytest.raises(NotUntil) as excinfo:
        lb.check()
    assert str(excinfo.value) == "rate-limited until Nanos(1s)"
    assert excinfo.value.quota() == quota


@settings(max_examples=40, deadline=None)
@given(
    capacity=st.integers(min_value=1, max_value=200),
    additional=st.integers(min_value=1, max_value=200),
    fractions=st.integers(min_value=1, max_value=50),
)
def test_accurate_not_until(capacity, additional, fractions):
    clock = FakeRelativeClock()
    lb = direct(Quota.per_second(capacity), clock)
    step = Nanos.from_secs(1) // capacity

    for _ in range(capacity):
        assert lb.check() is None
    for _ in range(additional):
        clock.advance(step)
        assert lb.check() is None

    with pytest.raises(NotUntil) as excinfo:
        lb.check()
    negative = excinfo.value
    remaining = negative.wait_time_from(clock.now())
    wait_time = remaining // (fractions + 1)
    for _ in range(fractions):
        clock.advance(wait_time)
        with pytest.raises(NotUntil):
            lb.check()
    clock.advance(negative.wait_time_from(clock.now()))
    assert lb.check() is None


# Middleware


class Denied(Exception):
    pass


class MyMW(RateLimitingMiddleware):
    def allow(self, key, state):
        return 666

    def disallow(self, key, state, start_time):
        return Denied()


def test_changes_allowed_type():
    clock = FakeRelativeClock()
    lim = direct(Quota.per_hour(1), clock).with_middleware(MyMW())
    assert lim.check() == 666
    with pytest.raises(Denied):
        lim.check()


def test_mymw_repr():
    lim = direct(Quota.per_hour(1), FakeRelativeClock()).with_middleware(MyMW())
    assert repr(lim.middleware) == "MyMW"
    assert repr(StateInformationMiddleware()) == "StateInformationMiddleware"


def test_state_information():
    clock = FakeRelativeClock()
    lim = direct(Quota.per_second(4), clock).with_middleware(StateInformationMiddleware)
    assert [lim.check().remaining_burst_capacity() for _ in range(4)] == [3, 2, 1, 0]
    with pytest.raises(NotUntil):
        lim.check()


def test_state_snapshot_tracks_quota_accurately():
    quota = Quota.with_period(Nanos.from_millis(90)).allow_burst(2)
    clock = FakeRelativeClock()
    lim = direct(quota, clock).with_middleware(StateInformationMiddleware)
    assert lim.check().remaining_burst_capacity() == 1
    assert lim.check().remaining_burst_capacity() == 0
    with pytest.raises(NotUntil):
        lim.check()

    clock.advance(Nanos.from_secs(120))
    assert lim.check().remaining_burst_capacity() == 2
    assert lim.check().remaining_burst_capacity() == 1
    assert lim.check().remaining_burst_capacity() == 0
    with pytest.raises(NotUntil):
        lim.check()


def test_state_snapshot_tracks_quota_accurately_with_real_clock():
    quota = Quota.with_period(Nanos.from_millis(90)).allow_burst(2)
    lim = direct(quota).with_middleware(StateInformationMiddleware)
    assert lim.check().remaining_burst_capacity() == 1
    assert lim.check().remaining_burst_capacity() == 0
    with pytest.raises(NotUntil):
        lim.check()


# Asynchronous waiting

MAX_IMMEDIATE_SECONDS = 0.05


@pytest.mark.asyncio
async def test_pauses():
    started = time.monotonic_ns()
    lim = direct(Quota.per_second(10))
    while True:
        try:
            lim.check()
        except NotUntil:
            break
    assert await lim.until_ready() is None
    assert time.monotonic_ns() - started >= Nanos.from_millis(100)


@pytest.mark.asyncio
async def test_pauses_n():
    started = time.monotonic_ns()
    lim = direct(Quota.per_second(10))
    for _ in range(6):
        assert lim.check() is None
    assert await lim.until_n_ready(5) is None
    assert time.monotonic_ns() - started >= Nanos.from_millis(100)


@pytest.mark.asyncio
async def test_proceeds():
    lim = direct(Quota.per_second(2))
    started = time.perf_counter()
    assert await lim.until_ready() is None
    assert time.perf_counter() - started <= MAX_IMMEDIATE_SECONDS


@pytest.mark.asyncio
async def test_proceeds_n():
    lim = direct(Quota.per_second(3))
    started = time.perf_counter()
    assert await lim.until_n_ready(2) is None
    assert time.perf_counter() - started <= MAX_IMMEDIATE_SECONDS


@pytest.mark.asyncio
async def test_multiple():
    lim = direct(Quota.per_second(10))
    started = time.perf_counter()
    results = await asyncio.gather(*(lim.until_ready() for _ in range(20)))
    assert results == [None] * 20
    assert time.perf_counter() - started >= 0.008


@pytest.mark.asyncio
async def test_errors_on_exceeded_capacity():
    lim = direct(Quota.per_second(10))
    with pytest.raises(InsufficientCapacity) as excinfo:
        await lim.until_n_ready(11)
    assert excinfo.value.capacity == 10