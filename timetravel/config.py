"""
Clock configuration.

Clock options can come from three places, in increasing precedence:
defaults, a YAML file, and TIMETRAVEL_* environment variables. A YAML
file either holds the options at the top level or under a `clock:` key:

    clock:
      time: 2024-01-01T00:00:00Z
      speed: 60
      earliest: 0
      latest: .inf
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from timetravel.engine.clock import Clock, to_timestamp

logger = logging.getLogger(__name__)


class ClockOptions(BaseSettings):
    """
    Construction options for a Clock.

    Values passed in are overridden by TIMETRAVEL_TIME, TIMETRAVEL_SPEED,
    TIMETRAVEL_EARLIEST and TIMETRAVEL_LATEST. time=None means "start at
    the current wall-clock time".
    """

    model_config = SettingsConfigDict(
        env_prefix="TIMETRAVEL_",
        env_ignore_empty=True,
        extra="forbid",
    )

    time: float | None = None
    speed: float = 1.0
    earliest: float = -math.inf
    latest: float = math.inf

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any) -> float | None:
        if value is None:
            return None
        # YAML turns bare dates into date objects, which have no timestamp.
        if isinstance(value, date) and not isinstance(value, datetime):
            value = datetime.combine(value, datetime.min.time())
        return to_timestamp(value)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats explicit values so deployments can override files.
        return env_settings, init_settings

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> ClockOptions:
        """
        Build options from a mapping, e.g. a parsed YAML section.

        Unknown keys are rejected. A null value keeps the default.
        """
        return cls(**{key: value for key, value in mapping.items() if value is not None})


def load_options(path: Path | str) -> ClockOptions:
    """
    Load clock options from a YAML file, with environment overrides applied.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        document = yaml.safe_load(fh)

    if document is None:
        logger.debug("Clock configuration %s is empty; using defaults", path)
        return ClockOptions()

    if not isinstance(document, dict):
        raise ValueError("Clock configuration must be a YAML mapping (dict)")

    section = document.get("clock", document)
    if not isinstance(section, dict):
        raise ValueError("'clock' must be a mapping of clock options")

    options = ClockOptions.from_mapping(section)
    logger.debug("Loaded clock options from %s: %s", path, options)
    return options


def load_clock(path: Path | str, **clock_kwargs: Any) -> Clock:
    """
    Build a clock from a YAML file plus environment overrides.

    clock_kwargs (real_time, scheduler) are passed to the Clock.
    """
    return Clock.from_options(load_options(path), **clock_kwargs)
