"""Tests for scheduler configuration loading."""

from datetime import date

import pytest
from pydantic import ValidationError

from koyomi.config import DEFAULT_CONFIG_PATH, SchedulerConfig, load_config


class TestSchedulerConfig:
    def test_defaults(self):
        config = SchedulerConfig()
        assert config.timezone == "Asia/Tokyo"
        assert (config.business_hours_start, config.business_hours_end) == (9, 18)
        assert config.max_suggestions == 3
        assert config.reschedule_window_days == 14

    def test_reversed_business_hours_rejected(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(business_hours_start=18, business_hours_end=9)

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(timezone="Mars/Olympus_Mons")

    def test_tzinfo(self):
        assert SchedulerConfig(timezone="UTC").tzinfo.key == "UTC"


class TestLoadConfig:
    def test_bundled_file_matches_defaults(self):
        assert DEFAULT_CONFIG_PATH.exists()
        assert load_config(DEFAULT_CONFIG_PATH) == SchedulerConfig()

    def test_nested_scheduler_key(self, tmp_path):
        path = tmp_path / "scheduler.yaml"
        path.write_text("scheduler:\n  business_hours_start: 10\n  max_suggestions: 5\n", encoding="utf-8")
        config = load_config(path)
        assert config.business_hours_start == 10
        assert config.max_suggestions == 5

    def test_flat_file(self, tmp_path):
        path = tmp_path / "scheduler.yaml"
        path.write_text("extra_holidays:\n  - 2026-12-29\n", encoding="utf-8")
        assert load_config(path).extra_holidays == [date(2026, 12, 29)]

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == SchedulerConfig()

    def test_invalid_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "scheduler.yaml"
        path.write_text("business_hours_start: 20\nbusiness_hours_end: 8\n", encoding="utf-8")
        assert load_config(path) == SchedulerConfig()

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("timezone: UTC\n", encoding="utf-8")
        monkeypatch.setenv("KOYOMI_CONFIG", str(path))
        assert load_config().timezone == "UTC"
