"""Scheduler configuration (args/scheduler.yaml).

Validated with pydantic; a missing or invalid file falls back to defaults
with a warning so a session can always be constructed.
"""

from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from koyomi import ARGS_DIR

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ARGS_DIR / "scheduler.yaml"


class SchedulerConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    timezone: str = Field(default="Asia/Tokyo")
    business_hours_start: int = Field(default=9, ge=0, le=23)
    business_hours_end: int = Field(default=18, ge=1, le=24)

    default_duration_minutes: int = Field(default=60, ge=1)
    max_suggestions: int = Field(default=3, ge=1)

    # Search windows (days)
    flexible_search_days: int = Field(default=7, ge=1)
    reschedule_window_days: int = Field(default=14, ge=1)
    query_window_days: int = Field(default=7, ge=1)

    default_reminder_minutes: int = Field(default=30, ge=0)
    resource_domains: list[str] = Field(default_factory=lambda: ["resource.calendar.google.com"])
    extra_holidays: list[date] = Field(default_factory=list)

    # Conversation
    history_limit: int = Field(default=20, ge=0)
    recent_events_window_days: int = Field(default=30, ge=1)
    recent_events_limit: int = Field(default=10, ge=0)

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @model_validator(mode="after")
    def business_hours_ordered(self) -> "SchedulerConfig":
        if self.business_hours_start >= self.business_hours_end:
            raise ValueError(
                f"business_hours_start ({self.business_hours_start}) must be before "
                f"business_hours_end ({self.business_hours_end})"
            )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_config(path: Optional[Path | str] = None) -> SchedulerConfig:
    """Load scheduler settings.

    Resolution order: explicit ``path``, ``KOYOMI_CONFIG`` env var,
    ``args/scheduler.yaml``. The file may nest settings under a top-level
    ``scheduler:`` key or keep them flat.
    """
    if path is None:
        path = os.environ.get("KOYOMI_CONFIG") or DEFAULT_CONFIG_PATH
    yaml_path = Path(path)

    try:
        if yaml_path.exists():
            with open(yaml_path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        if isinstance(raw.get("scheduler"), dict):
            raw = raw["scheduler"]

        return SchedulerConfig.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        return SchedulerConfig()


__all__ = ["DEFAULT_CONFIG_PATH", "SchedulerConfig", "load_config"]
