"""
timetravel: a simulated clock.

A Clock derives its time from the wall clock, scaled by a speed factor
that may be fractional, negative (time runs backwards) or zero (paused),
and clamped to an optional [earliest, latest] range. State changes are
reported through start, stop, speedchange and timechange events; tick is
available when the clock is given a heartbeat scheduler.

The package provides:
- Clock
- EventBus
- Heartbeat and its schedulers
- ClockOptions and the YAML loaders
"""

from timetravel.config import ClockOptions, load_clock, load_options
from timetravel.engine.clock import Clock, InvalidTimeError, to_timestamp, wall_clock_ms
from timetravel.engine.event_bus import (
    CLOCK_EVENTS,
    SPEEDCHANGE,
    START,
    STOP,
    TICK,
    TIMECHANGE,
    EventBus,
    parse_event_names,
)
from timetravel.engine.heartbeat import (
    AsyncioScheduler,
    Heartbeat,
    ManualScheduler,
    Scheduler,
)

__all__ = [
    "AsyncioScheduler",
    "CLOCK_EVENTS",
    "Clock",
    "ClockOptions",
    "EventBus",
    "Heartbeat",
    "InvalidTimeError",
    "ManualScheduler",
    "SPEEDCHANGE",
    "START",
    "STOP",
    "Scheduler",
    "TICK",
    "TIMECHANGE",
    "load_clock",
    "load_options",
    "parse_event_names",
    "to_timestamp",
    "wall_clock_ms",
]
