import asyncio
import time

from app.core.throttle import FixedIntervalThrottle


async def test_calls_are_spaced_by_interval():
    throttle = FixedIntervalThrottle(0.05)

    start = time.monotonic()
    for _ in range(3):
        await throttle()
    elapsed = time.monotonic() - start

    # First call is immediate, the next two wait one interval each
    assert elapsed >= 0.09


async def test_zero_interval_never_waits():
    throttle = FixedIntervalThrottle(0)

    start = time.monotonic()
    for _ in range(50):
        await throttle.acquire()

    assert time.monotonic() - start < 0.05


async def test_concurrent_callers_are_serialized():
    throttle = FixedIntervalThrottle(0.03)
    stamps = []

    async def call():
        await throttle()
        stamps.append(time.monotonic())

    await asyncio.gather(*(call() for _ in range(3)))

    stamps.sort()
    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert all(gap >= 0.025 for gap in gaps)


def test_negative_interval_is_clamped():
    assert FixedIntervalThrottle(-1).interval == 0.0
