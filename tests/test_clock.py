"""Tests for the clock and scheduler implementations."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from multiauth.registry.clock import (
    AsyncioScheduler,
    ManualClock,
    ManualScheduler,
    SystemClock,
    ThreadTimerScheduler,
)
from multiauth.registry.store import PasscodeRegistry


def test_system_clock_is_epoch_milliseconds():
    before = time.time() * 1000
    now = SystemClock().now()
    after = time.time() * 1000
    assert before <= now <= after


def test_manual_clock_only_moves_when_advanced():
    clock = ManualClock(start_ms=100)
    assert clock.now() == 100
    clock.advance(50)
    assert clock.now() == 150


# ── ManualScheduler ──────────────────────────────────────

def test_manual_scheduler_fires_in_due_order():
    clock = ManualClock()
    scheduler = ManualScheduler(clock)
    fired: list[tuple[str, float]] = []

    scheduler.schedule_once(300, lambda: fired.append(("c", clock.now())))
    scheduler.schedule_once(100, lambda: fired.append(("a", clock.now())))
    scheduler.schedule_once(200, lambda: fired.append(("b", clock.now())))

    assert scheduler.advance(1000) == 3
    assert fired == [("a", 100), ("b", 200), ("c", 300)]
    assert clock.now() == 1000


def test_manual_scheduler_skips_cancelled():
    clock = ManualClock()
    scheduler = ManualScheduler(clock)
    fired: list[str] = []

    handle = scheduler.schedule_once(100, lambda: fired.append("x"))
    scheduler.schedule_once(100, lambda: fired.append("y"))
    scheduler.cancel(handle)

    assert scheduler.pending == 1
    scheduler.advance(100)
    assert fired == ["y"]
    assert scheduler.pending == 0


def test_manual_scheduler_run_due_after_clock_jump():
    clock = ManualClock()
    scheduler = ManualScheduler(clock)
    fired: list[str] = []
    scheduler.schedule_once(100, lambda: fired.append("late"))

    clock.advance(500)
    assert fired == []

    assert scheduler.run_due() == 1
    assert fired == ["late"]


def test_manual_scheduler_clamps_negative_delay():
    clock = ManualClock(start_ms=10)
    scheduler = ManualScheduler(clock)
    handle = scheduler.schedule_once(-5, lambda: None)
    assert handle.due_ms == 10


def test_manual_scheduler_compacts_cancelled_handles():
    clock = ManualClock()
    scheduler = ManualScheduler(clock)

    handle = scheduler.schedule_once(1000, lambda: None)
    for _ in range(100):
        replacement = scheduler.schedule_once(1000, lambda: None)
        scheduler.cancel(handle)
        handle = replacement

    assert scheduler.pending == 1
    assert scheduler.queued <= 2


def test_manual_scheduler_cancel_is_idempotent():
    clock = ManualClock()
    scheduler = ManualScheduler(clock)
    handle = scheduler.schedule_once(100, lambda: None)
    scheduler.schedule_once(200, lambda: None)
    scheduler.schedule_once(300, lambda: None)

    scheduler.cancel(handle)
    scheduler.cancel(handle)
    assert scheduler.pending == 2

    scheduler.advance(100)
    scheduler.cancel(handle)
    assert scheduler.pending == 2


# ── AsyncioScheduler ─────────────────────────────────────

@pytest.mark.asyncio
async def test_asyncio_scheduler_fires_and_cancels():
    scheduler = AsyncioScheduler()
    fired: list[str] = []

    scheduler.schedule_once(10, lambda: fired.append("kept"))
    handle = scheduler.schedule_once(10, lambda: fired.append("cancelled"))
    scheduler.cancel(handle)

    await asyncio.sleep(0.05)
    assert fired == ["kept"]


@pytest.mark.asyncio
async def test_registry_evicts_on_event_loop():
    registry = PasscodeRegistry(SystemClock(), AsyncioScheduler())

    assert registry.create_or_renew("1234", 20) is False
    assert registry.is_valid("1234") is True

    await asyncio.sleep(0.08)
    assert registry.is_valid("1234") is False
    assert len(registry) == 0


# ── ThreadTimerScheduler ─────────────────────────────────

def test_thread_timer_scheduler_fires_and_cancels():
    scheduler = ThreadTimerScheduler()
    done = threading.Event()
    cancelled_ran = threading.Event()

    scheduler.schedule_once(10, done.set)
    handle = scheduler.schedule_once(10, cancelled_ran.set)
    scheduler.cancel(handle)

    assert done.wait(timeout=2)
    time.sleep(0.05)
    assert not cancelled_ran.is_set()


def test_registry_renewal_under_thread_timers():
    registry = PasscodeRegistry(SystemClock(), ThreadTimerScheduler())

    registry.create_or_renew("42", 100)
    time.sleep(0.05)
    assert registry.create_or_renew("42", 200) is True

    # Past the original expiry, still inside the renewed one
    time.sleep(0.1)
    assert registry.is_valid("42") is True
    assert "42" in registry
