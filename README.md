# governor

A rate limiter based on the Generic Cell Rate Algorithm (GCRA). It has
direct limiters, which keep one state, and keyed limiters, which keep one
state per key (for example one per customer or API token). The state for
each key is a single theoretical arrival time, kept behind a lock, so
limiters are cheap and safe to share between threads.

The package has no dependencies outside the standard library.

## Installing

```
pip install .
```

Tests run with the `test` extra:

```
pip install ".[test]"
pytest
```

## Quotas

A `Quota` (in `governor.quota`) says how many cells (requests, messages,
anything) may pass per unit of time, and how many may pass in one burst.

```python
from datetime import timedelta
from governor.quota import Quota

Quota.per_second(50)                      # 50 per second, bursts of 50
Quota.per_hour(2).allow_burst(90)         # one cell per 30 minutes, bursts of 90
Quota.with_period(timedelta(days=1)).allow_burst(10)
```

`burst_size()`, `replenish_interval()` and `burst_size_replenished_in()`
report a quota's parameters; intervals are `Nanos` values. A burst size
must lie between 1 and 2**32 - 1, and `with_period` raises `ValueError`
for a zero period. `Quota.new(max_burst, replenish_all_per)` still exists
but issues a `DeprecationWarning`.

## Time values

Durations and clock readings are `Nanos` (in `governor.nanos`): a
non-negative integer number of nanoseconds that fits in 64 bits. It can be
built from an `int` or a `timedelta`, or with `Nanos.from_secs`,
`Nanos.from_millis` and `Nanos.from_micros`, and has `saturating_sub`,
`duration_since` and `total_seconds`.

## Direct rate limiters

```python
from governor.direct import direct
from governor.quota import Quota

limiter = direct(Quota.per_second(2))
limiter.check()          # allowed: returns None
limiter.check()          # allowed
limiter.check()          # rate limited: raises NotUntil
```

A refused check raises `NotUntil` (in `governor.outcomes`), which says when
a cell could next get through:

```python
from governor.outcomes import NotUntil

try:
    limiter.check()
except NotUntil as refused:
    wait = refused.wait_time_from(limiter.clock.now())
    refused.quota()      # the quota behind the decision
```

`check_n(n)` lets all `n` cells through or none of them. If `n` is larger
than the burst size it can never succeed, and it raises
`InsufficientCapacity` (in `governor.errors`), whose `capacity` attribute
is the largest batch that could.

`direct()` returns a `DirectRateLimiter`; that class can also be built
directly with a custom `state` or `middleware`.

## Keyed rate limiters

```python
from governor.keyed import keyed
from governor.quota import Quota

limiter = keyed(Quota.per_second(50))
limiter.check_key("customer-1")
limiter.check_key("customer-2")
limiter.check_key_n("customer-1", 5)
```

`keyed()` and `hashmap()` both return a `KeyedRateLimiter` backed by a
`HashMapStateStore` (in `governor.store`). `check_key_at` and
`check_key_n_at` take an explicit clock reading instead of asking the clock.

Keys that have gone unused long enough to look like fresh keys can be
dropped with `retain_recent()`. `len(limiter)` and `is_empty()` report how
many keys are stored, and `into_state_store()` returns the store itself,
which supports `keys()` and `in`.

## Waiting with asyncio

```python
await limiter.until_ready()                # direct
await limiter.until_n_ready(5)             # direct, batch of five
await keyed_limiter.until_key_ready("k")   # keyed
```

These retry the check, sleeping with `asyncio.sleep` for as long as the
refusal advises. Pass a `Jitter` (in `governor.jitter`), for example
`Jitter.up_to(timedelta(milliseconds=10))`, so that many waiting tasks do
not all wake at the same moment. `until_n_ready` raises
`InsufficientCapacity` when the batch can never fit.

## Middleware

What a check returns can be changed with middleware (in
`governor.middleware`). With `StateInformationMiddleware` an allowed check
returns a `StateSnapshot`:

```python
from governor.middleware import StateInformationMiddleware

info = direct(Quota.per_second(4)).with_middleware(StateInformationMiddleware())
info.check().remaining_burst_capacity()   # 3
```

Custom middleware subclasses `RateLimitingMiddleware` and implements
`allow(key, state)`, whose result a check returns, and
`disallow(key, state, start_time)`, which must return an exception that the
check then raises.

## Clocks

Limiters use a `MonotonicClock` by default; `SystemClock` reads the wall
clock. A `FakeRelativeClock` only moves when `advance()` is called, which
makes tests deterministic:

```python
from datetime import timedelta
from governor.clock import FakeRelativeClock

clock = FakeRelativeClock()
limiter = direct(Quota.per_second(2), clock)
clock.advance(timedelta(milliseconds=500))
```

## What it does not do

The package has no helpers that wrap async iterables or sinks in a rate
limit; to limit such a flow, call `until_ready()` before handing on each
item. State lives only in memory: there is no shared or persistent store,
and there is no command-line tool.