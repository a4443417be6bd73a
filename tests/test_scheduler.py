"""Tests for clocks and RepeatingTask, driven by virtual time."""

import asyncio

import pytest

from fatigue_model import ManualClock, RepeatingTask, SystemClock


class TestManualClock:
    def test_advance_and_set(self):
        clock = ManualClock(10)
        assert clock.now() == 10
        assert clock.advance(5) == 15
        clock.set(3)
        assert clock.now() == 3

    def test_sleep_advances_virtual_time(self):
        clock = ManualClock()
        asyncio.run(clock.sleep(30))
        assert clock.now() == 30


class TestSystemClock:
    def test_now_is_wall_clock(self):
        import time

        before = time.time()
        assert before <= SystemClock().now() <= time.time()


class TestRepeatingTask:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            RepeatingTask(0, lambda: None)

    def test_runs_at_fixed_interval_until_cancelled(self):
        clock = ManualClock()
        seen = []

        async def scenario():
            task = None

            def callback():
                seen.append(clock.now())
                if len(seen) == 5:
                    task.cancel()

            task = RepeatingTask(2.0, callback, clock)
            task.start()
            assert task.running
            for _ in range(50):
                await asyncio.sleep(0)
            return task

        task = asyncio.run(scenario())
        assert seen == [2.0, 4.0, 6.0, 8.0, 10.0]
        assert not task.running

    def test_start_is_idempotent(self):
        clock = ManualClock()
        calls = []

        async def scenario():
            task = RepeatingTask(1.0, lambda: calls.append(clock.now()), clock)
            task.start()
            task.start()
            for _ in range(6):
                await asyncio.sleep(0)
            task.cancel()

        asyncio.run(scenario())
        # A second loop would produce duplicate timestamps
        assert len(calls) == len(set(calls))
        assert calls

    def test_callback_errors_do_not_stop_task(self):
        clock = ManualClock()
        calls = []

        def callback():
            calls.append(clock.now())
            raise RuntimeError("tick failed")

        async def scenario():
            task = RepeatingTask(1.0, callback, clock)
            task.start()
            for _ in range(10):
                await asyncio.sleep(0)
            task.cancel()

        asyncio.run(scenario())
        assert len(calls) >= 3

    def test_start_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            RepeatingTask(1.0, lambda: None).start()
