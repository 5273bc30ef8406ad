"""
Simulated clock for the timetravel package.

The clock derives simulated time from wall-clock time. It keeps a single
reference snapshot (the simulated time and the real time of the last
manipulation) and interpolates from it:

    simulated = clamp(sim_ref + speed * (now - real_ref), earliest, latest)

Every mutation that changes the formula re-anchors the snapshot first, so
changing speed, stopping or starting never makes the clock jump. Only an
explicit set_time() moves simulated time discontinuously.

The clock does not sleep and owns no threads. Reads are pure.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from timetravel.engine.event_bus import (
    SPEEDCHANGE,
    START,
    STOP,
    TIMECHANGE,
    EventBus,
    Handler,
)
from timetravel.engine.heartbeat import Heartbeat, Scheduler

if TYPE_CHECKING:
    from timetravel.config import ClockOptions

logger = logging.getLogger(__name__)

DEFAULT_SPEED = 1.0


class InvalidTimeError(ValueError):
    """Raised when a value cannot be interpreted as a timestamp."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Cannot convert {value!r} to a timestamp")
        self.value = value


def wall_clock_ms() -> float:
    """
    Return the current wall-clock time in milliseconds since the Unix epoch.
    """
    return time.time() * 1000.0


def to_timestamp(value: Any) -> float:
    """
    Coerce value to a timestamp in milliseconds.

    Datetimes are converted to milliseconds since the Unix epoch. Anything
    else goes through float(), which covers numbers, numeric strings and
    objects defining __float__. A NaN result is rejected.
    """
    if isinstance(value, datetime):
        return value.timestamp() * 1000.0

    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidTimeError(value) from exc

    if math.isnan(result):
        raise InvalidTimeError(value)

    return result


class Clock:
    """
    A clock whose time runs at an arbitrary, changeable speed.

    A speed of 1 is real time, 10 is ten times real time, -1 runs time
    backwards and 0 stops the clock. Reported time is always clamped to
    [earliest, latest].

    Times are plain numbers in the unit of the wall-clock source,
    milliseconds since the epoch unless a different real_time callable
    is injected.

    Setters return the clock so calls can be chained:

        clock = Clock(time=0, speed=60).on("stop", print).stop()
    """

    def __init__(
        self,
        time: Any = None,
        speed: float = DEFAULT_SPEED,
        earliest: float = -math.inf,
        latest: float = math.inf,
        *,
        real_time: Callable[[], float] | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._real_time = real_time or wall_clock_ms
        self._speed = speed
        self._previous_speed = speed
        self._speed_backup: float | None = None
        self._earliest = earliest
        self._latest = latest
        self._events = EventBus(self.get_time)

        if earliest > latest:
            logger.warning(
                "Clock bounds are inverted (earliest=%s > latest=%s); "
                "time will be pinned to %s",
                earliest,
                latest,
                earliest,
            )

        now = self._real_time()
        initial = now if time is None else to_timestamp(time)

        self._real_time_at_last_manipulation = now
        self._sim_time_at_last_manipulation = self._bounded(initial)

        self.heartbeat: Heartbeat | None = None
        if scheduler is not None:
            self.heartbeat = Heartbeat(self, scheduler)
            self.heartbeat.start()

    @classmethod
    def from_options(cls, options: ClockOptions, **kwargs: Any) -> Clock:
        """
        Build a clock from a ClockOptions instance.

        Keyword arguments (real_time, scheduler) are passed through.
        """
        return cls(
            time=options.time,
            speed=options.speed,
            earliest=options.earliest,
            latest=options.latest,
            **kwargs,
        )

    def __repr__(self) -> str:
        return (
            f"Clock(time={self.get_time()!r}, speed={self._speed!r}, "
            f"earliest={self._earliest!r}, latest={self._latest!r})"
        )

    # Time

    def get_time(self) -> float:
        """
        Return the current simulated time.
        """
        return self._time_at(self._real_time())

    def set_time(self, value: Any) -> Clock:
        """
        Set the simulated time, clamped to the current bounds.

        Accepts numbers, numeric strings, datetimes and anything that
        defines __float__. Fires timechange.
        """
        target = to_timestamp(value)

        self._will_manipulate()
        self._sim_time_at_last_manipulation = self._bounded(target)
        logger.debug("Clock time set to %s", self._sim_time_at_last_manipulation)

        self._events.publish(TIMECHANGE)
        return self

    # Speed

    def get_speed(self) -> float:
        """
        Return the current speed multiplier. 0 means stopped.
        """
        return self._speed

    def set_speed(self, speed: float) -> Clock:
        """
        Set the speed multiplier.

        Fires speedchange unless speed equals the previously set value.
        """
        self._will_manipulate()
        self._speed = speed

        changed = speed != self._previous_speed
        self._previous_speed = speed

        if changed:
            logger.debug("Clock speed changed to %s", speed)
            self._events.publish(SPEEDCHANGE)
        return self

    def start(self) -> Clock:
        """
        Resume a stopped clock at the speed it had before stop().

        A clock that was never stopped through stop(), such as one built
        with speed=0, resumes at the default speed of 1 and fires
        speedchange before start. The JavaScript timetravel library
        instead fires start and leaves such a clock stopped.

        Does nothing if the clock is already running.
        """
        if self.is_running():
            return self

        self._will_manipulate()
        resume_speed = self._speed_backup
        if resume_speed is None:
            resume_speed = DEFAULT_SPEED
        self.set_speed(resume_speed)

        logger.debug("Clock started at speed %s", resume_speed)
        self._events.publish(START)
        return self

    def stop(self) -> Clock:
        """
        Stop the clock, remembering its speed for start().

        Equivalent to set_speed(0) except for the remembered speed.
        Does nothing if the clock is already stopped.
        """
        if self.is_stopped():
            return self

        self._will_manipulate()
        self._speed_backup = self._speed
        self.set_speed(0)

        logger.debug("Clock stopped at %s", self._sim_time_at_last_manipulation)
        self._events.publish(STOP)
        return self

    def is_running(self) -> bool:
        """
        Return True if the speed is non-zero.
        """
        return self._speed != 0

    def is_stopped(self) -> bool:
        """
        Return True if the speed is zero.
        """
        return self._speed == 0

    # Bounds

    def get_earliest(self) -> float:
        """
        Return the lower bound on simulated time.
        """
        return self._earliest

    def set_earliest(self, earliest: float) -> Clock:
        """
        Set the lower bound. Applies to subsequent reads only.
        """
        self._earliest = earliest
        return self

    def get_latest(self) -> float:
        """
        Return the upper bound on simulated time.
        """
        return self._latest

    def set_latest(self, latest: float) -> Clock:
        """
        Set the upper bound. Applies to subsequent reads only.
        """
        self._latest = latest
        return self

    # Events

    def on(self, event_names: str | Iterable[str], callback: Handler) -> Clock:
        """
        Register callback for one or more events.

        event_names is either a list of names or a string of names
        separated by commas and/or whitespace. Callbacks receive the
        simulated time when they are called.
        """
        self._events.subscribe(event_names, callback)
        return self

    def trigger(self, event_name: str) -> None:
        """
        Call the handlers registered for event_name.
        """
        self._events.publish(event_name)

    # Internals

    def _time_at(self, now: float) -> float:
        if self.is_stopped():
            return self._bounded(self._sim_time_at_last_manipulation)

        elapsed = now - self._real_time_at_last_manipulation
        return self._bounded(self._sim_time_at_last_manipulation + self._speed * elapsed)

    def _will_manipulate(self) -> None:
        # Re-anchor before any parameter of the time formula changes.
        now = self._real_time()
        self._sim_time_at_last_manipulation = self._time_at(now)
        self._real_time_at_last_manipulation = now

    def _bounded(self, value: float) -> float:
        return max(self._earliest, min(self._latest, value))
