from __future__ import annotations

import asyncio

from wledfan.core import Debouncer, PeriodicTimer


def test_debounce_coalesces_burst_into_last_value():
    sent: list[int] = []
    current = {"value": 0}

    async def _send() -> None:
        sent.append(current["value"])

    async def scenario() -> None:
        debouncer = Debouncer(0.05, _send)
        for value in (10, 20, 30, 40, 50):
            current["value"] = value
            debouncer.trigger()
            await asyncio.sleep(0.01)
        assert sent == []
        await debouncer.wait()

    asyncio.run(scenario())

    assert sent == [50]


def test_debounce_separate_bursts_fire_separately():
    sent: list[str] = []

    async def _send() -> None:
        sent.append("x")

    async def scenario() -> None:
        debouncer = Debouncer(0.02, _send)
        debouncer.trigger()
        await asyncio.sleep(0.08)
        debouncer.trigger()
        debouncer.trigger()
        await debouncer.wait()

    asyncio.run(scenario())

    assert sent == ["x", "x"]


def test_debounce_cancel_and_flush():
    sent: list[str] = []

    async def _send() -> None:
        sent.append("x")

    async def scenario() -> None:
        debouncer = Debouncer(10.0, _send)
        debouncer.trigger()
        debouncer.cancel()
        assert debouncer.pending is False
        debouncer.trigger()
        await debouncer.flush()
        assert debouncer.pending is False

    asyncio.run(scenario())

    assert sent == ["x"]


def test_periodic_timer_runs_until_stopped():
    ticks: list[int] = []

    async def _tick() -> None:
        ticks.append(1)

    async def scenario() -> int:
        timer = PeriodicTimer(0.02, _tick, immediate=True)
        timer.start()
        timer.start()
        await asyncio.sleep(0.09)
        await timer.stop()
        assert timer.running is False
        stopped_at = len(ticks)
        await asyncio.sleep(0.05)
        assert len(ticks) == stopped_at
        return stopped_at

    assert asyncio.run(scenario()) >= 3


def test_periodic_timer_survives_callback_errors():
    calls: list[int] = []

    async def _flaky() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    async def scenario() -> None:
        timer = PeriodicTimer(0.01, _flaky)
        timer.start()
        await asyncio.sleep(0.06)
        await timer.stop()

    asyncio.run(scenario())

    assert len(calls) >= 2
