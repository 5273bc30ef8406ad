"""
Unit tests for timetravel/engine/event_bus.py
"""

from itertools import count

import pytest

from timetravel.engine.event_bus import (
    CLOCK_EVENTS,
    EventBus,
    parse_event_names,
)


class TestParseEventNames:
    """Test suite for parse_event_names."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("start", ["start"]),
            ("start,stop", ["start", "stop"]),
            ("start stop", ["start", "stop"]),
            ("start, stop\tspeedchange\n timechange", ["start", "stop", "speedchange", "timechange"]),
            (" ,start,, ", ["start"]),
            ("", []),
        ],
    )
    def test_string_names(self, raw, expected):
        """Test splitting on commas and whitespace."""
        assert parse_event_names(raw) == expected

    def test_sequence_names(self):
        """Test that sequences are taken as-is."""
        assert parse_event_names(["start", "stop"]) == ["start", "stop"]
        assert parse_event_names(("tick",)) == ["tick"]

    def test_sequence_drops_empty_names(self):
        """Test that empty names in a sequence are ignored."""
        assert parse_event_names(["", "stop"]) == ["stop"]


class TestEventBus:
    """Test suite for the EventBus class."""

    def test_initialization(self):
        """Test that a new bus has no handlers."""
        bus = EventBus(lambda: 0)
        assert bus._handlers == {}
        assert not bus.has_handlers("start")

    def test_subscribe_registers_under_each_name(self):
        """Test that one handler can listen to several events."""
        bus = EventBus(lambda: 0)

        def handler(_):
            pass

        bus.subscribe("start stop", handler)

        assert bus.handlers("start") == [handler]
        assert bus.handlers("stop") == [handler]
        assert bus.handlers("tick") == []

    def test_handlers_returns_copy(self):
        """Test that callers cannot mutate the registry through handlers()."""
        bus = EventBus(lambda: 0)
        bus.subscribe("start", lambda _: None)

        bus.handlers("start").clear()

        assert bus.has_handlers("start")

    def test_publish_passes_value(self):
        """Test that handlers receive the value source's value."""
        bus = EventBus(lambda: 1234.5)
        received = []
        bus.subscribe("timechange", received.append)

        bus.publish("timechange")

        assert received == [1234.5]

    def test_publish_calls_handlers_in_order(self):
        """Test that handlers run in registration order."""
        bus = EventBus(lambda: 0)
        call_order = []

        def make_handler(name):
            def handler(_):
                call_order.append(name)
            return handler

        for name in "ABC":
            bus.subscribe("start", make_handler(name))

        bus.publish("start")

        assert call_order == ["A", "B", "C"]

    def test_value_is_read_per_handler(self):
        """Test that the value source is evaluated for every handler."""
        bus = EventBus(count().__next__)
        received = []
        bus.subscribe("tick", received.append)
        bus.subscribe("tick", received.append)

        bus.publish("tick")

        assert received == [0, 1]

    def test_publish_without_handlers_skips_value_source(self):
        """Test that publishing an unheard event does not read the value."""
        reads = []
        bus = EventBus(lambda: reads.append(1))

        bus.publish("start")

        assert reads == []

    def test_publish_only_reaches_named_event(self):
        """Test that handlers of other events are not called."""
        bus = EventBus(lambda: 0)
        received = []
        bus.subscribe("start", lambda _: received.append("start"))
        bus.subscribe("stop", lambda _: received.append("stop"))

        bus.publish("stop")

        assert received == ["stop"]

    def test_handler_added_during_publish_waits(self):
        """Test that a handler registered mid-dispatch runs next time."""
        bus = EventBus(lambda: 0)
        received = []

        def late(_):
            received.append("late")

        def registering(_):
            received.append("registering")
            bus.subscribe("start", late)

        bus.subscribe("start", registering)

        bus.publish("start")
        assert received == ["registering"]

        bus.publish("start")
        assert received == ["registering", "registering", "late"]

    def test_exception_stops_propagation(self):
        """Test that a raising handler stops dispatch and surfaces."""
        bus = EventBus(lambda: 0)
        received = []

        def failing(_):
            raise ValueError("handler error")

        bus.subscribe("stop", failing)
        bus.subscribe("stop", received.append)

        with pytest.raises(ValueError, match="handler error"):
            bus.publish("stop")

        assert received == []

    def test_same_handler_twice_is_called_twice(self):
        """Test that duplicate registrations are kept."""
        bus = EventBus(lambda: 0)
        received = []
        bus.subscribe("tick", received.append)
        bus.subscribe(["tick"], received.append)

        bus.publish("tick")

        assert received == [0, 0]


def test_clock_events_are_closed_set():
    """Test the names of the events a clock raises."""
    assert set(CLOCK_EVENTS) == {"start", "stop", "speedchange", "timechange", "tick"}
