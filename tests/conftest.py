"""Test configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from timetravel.engine.clock import Clock  # noqa: E402
from timetravel.engine.heartbeat import ManualScheduler  # noqa: E402


class FakeWallClock:
    """Wall-clock source that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def wall_clock() -> FakeWallClock:
    """Controllable wall-clock source in milliseconds."""
    return FakeWallClock()


@pytest.fixture
def clock(wall_clock) -> Clock:
    """Default clock driven by the fake wall clock."""
    return Clock(real_time=wall_clock)


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    """Scheduler that only runs polls on demand."""
    return ManualScheduler()


@pytest.fixture
def handler() -> Mock:
    """Spy handler for clock events."""
    return Mock()


@pytest.fixture
def clock_yaml(tmp_path) -> Path:
    """Write a clock configuration file and return its path."""
    path = tmp_path / "clock.yaml"
    path.write_text(
        "clock:\n"
        "  time: 1000\n"
        "  speed: 2\n"
        "  earliest: 0\n"
        "  latest: 2000\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def clean_environment(monkeypatch):
    """Remove TIMETRAVEL_* variables for the duration of a test."""
    for variable in (
        "TIMETRAVEL_TIME",
        "TIMETRAVEL_SPEED",
        "TIMETRAVEL_EARLIEST",
        "TIMETRAVEL_LATEST",
    ):
        monkeypatch.delenv(variable, raising=False)
