"""
请求节流测试
"""

import asyncio

import pytest

from sommelier.pricing.throttle import RequestThrottle


class FakeMonotonic:
    """sleep 时推进的单调时钟"""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestRequestThrottle:
    """RequestThrottle 测试"""

    @pytest.mark.asyncio
    async def test_first_request_not_delayed(self):
        clock = FakeMonotonic()
        throttle = RequestThrottle(1.2, clock=clock, sleep=clock.sleep)
        async with throttle.slot():
            pass
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_back_to_back_requests_spaced(self):
        clock = FakeMonotonic()
        throttle = RequestThrottle(1.2, clock=clock, sleep=clock.sleep)
        async with throttle.slot():
            pass
        clock.now += 0.2
        async with throttle.slot():
            pass
        assert clock.sleeps == [pytest.approx(1.0)]

    @pytest.mark.asyncio
    async def test_no_delay_after_interval(self):
        clock = FakeMonotonic()
        throttle = RequestThrottle(1.2, clock=clock, sleep=clock.sleep)
        async with throttle.slot():
            pass
        clock.now += 5
        async with throttle.slot():
            pass
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_concurrent_requests_serialised(self):
        clock = FakeMonotonic()
        throttle = RequestThrottle(1.0, clock=clock, sleep=clock.sleep)
        starts = []

        async def request():
            async with throttle.slot():
                starts.append(clock())

        await asyncio.gather(request(), request(), request())

        assert starts == [100.0, 101.0, 102.0]
