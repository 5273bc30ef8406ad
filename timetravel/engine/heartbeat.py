"""
Heartbeat support for the tick event.

A clock has no timers of its own. To raise tick, something outside the
clock has to poll it. The Heartbeat does the polling: each poll reads the
clock's simulated time, fires tick if it differs from the previous poll,
then asks the scheduler to run the next poll.

Schedulers are interchangeable. AsyncioScheduler polls on an event loop
with a fixed delay. ManualScheduler only runs polls when asked, which suits
step-driven hosts and tests.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from timetravel.engine.event_bus import TICK

if TYPE_CHECKING:
    from timetravel.engine.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1 / 60


class Scheduler(Protocol):
    """Runs a callback once, at some later point chosen by the scheduler."""

    def call_later(self, callback: Callable[[], None]) -> None:
        ...


class AsyncioScheduler:
    """
    Fixed-delay scheduler backed by an asyncio event loop.

    Polls run on the loop thread between other callbacks, so they never
    overlap clock operations made from coroutines on the same loop.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if interval < 0:
            raise ValueError(f"Scheduler interval must be non-negative, got {interval}")

        self.interval = interval
        self._loop = loop

    def call_later(self, callback: Callable[[], None]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_later(self.interval, callback)


class ManualScheduler:
    """
    Scheduler that queues callbacks until run_pending() is called.
    """

    def __init__(self) -> None:
        self._pending: list[Callable[[], None]] = []

    def call_later(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)

    def run_pending(self) -> int:
        """
        Run the callbacks queued so far and return how many ran.

        Callbacks queued while running wait for the next call.
        """
        batch, self._pending = self._pending, []
        for callback in batch:
            callback()
        return len(batch)

    @property
    def pending(self) -> int:
        return len(self._pending)


class Heartbeat:
    """
    Polls a clock and fires tick whenever its simulated time has moved.
    """

    def __init__(self, clock: Clock, scheduler: Scheduler) -> None:
        self.clock = clock
        self.scheduler = scheduler
        self._last_seen: float | None = None
        self._running = False
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """
        Record the current simulated time and arm the first poll.
        """
        if self._running:
            return

        self._running = True
        self._generation += 1
        self._last_seen = self.clock.get_time()
        logger.debug("Heartbeat started at %s", self._last_seen)
        self.scheduler.call_later(functools.partial(self._poll, self._generation))

    def cancel(self) -> None:
        """
        Stop re-arming. A poll already handed to the scheduler runs as a no-op.
        """
        self._running = False
        logger.debug("Heartbeat cancelled")

    def _poll(self, generation: int) -> None:
        # Polls armed before a cancel() never re-arm, even after a restart.
        if not self._running or generation != self._generation:
            return

        try:
            current = self.clock.get_time()
            if current != self._last_seen:
                self._last_seen = current
                self.clock.trigger(TICK)
        finally:
            # A failing tick handler still surfaces, but polling goes on.
            if self._running and generation == self._generation:
                self.scheduler.call_later(functools.partial(self._poll, generation))
