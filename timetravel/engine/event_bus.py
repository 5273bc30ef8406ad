"""
Event bus for the timetravel simulated clock.

The bus is the only way state changes leave a clock. Handlers are keyed by
event name and receive the clock's simulated time at the moment they are
called.

The set of events a clock raises is closed: start, stop, speedchange,
timechange and tick. The bus itself does not validate names; a handler
registered under an unknown name is simply never called.
"""

import re
from collections.abc import Callable, Iterable

START = "start"
STOP = "stop"
SPEEDCHANGE = "speedchange"
TIMECHANGE = "timechange"
TICK = "tick"

CLOCK_EVENTS = (START, STOP, SPEEDCHANGE, TIMECHANGE, TICK)

Handler = Callable[[float], None]

_SEPARATORS = re.compile(r"[,\s]+")


def parse_event_names(event_names: str | Iterable[str]) -> list[str]:
    """
    Normalise event names given as a string or sequence into a list of names.

    A string is split on runs of commas and/or whitespace, so
    "start,stop speedchange" names three events. Any other iterable is
    taken as a sequence of names. Empty tokens are dropped.
    """
    if isinstance(event_names, str):
        tokens = _SEPARATORS.split(event_names)
    else:
        tokens = list(event_names)

    return [token for token in tokens if token]


class EventBus:
    """
    Named-event publish/subscribe bus.

    Handlers are called synchronously, in the order they were registered.
    If a handler raises an exception, propagation stops and the error is
    surfaced to the caller of publish().
    """

    def __init__(self, value_source: Callable[[], float]) -> None:
        self._value_source = value_source
        self._handlers: dict[str, list[Handler]] = {}

    def subscribe(self, event_names: str | Iterable[str], handler: Handler) -> None:
        """
        Register a handler under every named event.
        """
        for name in parse_event_names(event_names):
            self._handlers.setdefault(name, []).append(handler)

    def publish(self, event_name: str) -> None:
        """
        Call every handler registered for event_name.

        The value passed to each handler is read from the value source
        right before that handler runs.
        """
        handlers = self._handlers.get(event_name)
        if not handlers:
            return

        # Handlers added while dispatching wait for the next publish.
        for handler in list(handlers):
            handler(self._value_source())

    def handlers(self, event_name: str) -> list[Handler]:
        return list(self._handlers.get(event_name, []))

    def has_handlers(self, event_name: str) -> bool:
        return bool(self._handlers.get(event_name))
