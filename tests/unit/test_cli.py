"""Tests for the offline command line interface."""

import json
from unittest.mock import patch

import pytest

from koyomi import cli


@pytest.fixture
def run(tmp_path, monkeypatch):
    """Run ``koyomi`` with defaults config and return (exit_code, stdout)."""
    config_path = tmp_path / "scheduler.yaml"

    def _run(capsys, *argv):
        monkeypatch.setattr("sys.argv", ["koyomi", "--config", str(config_path), *argv])
        with patch.object(cli, "setup_logging"):
            code = cli.main()
        return code, capsys.readouterr()

    return _run


class TestSlots:
    def test_busy_span_splits_day(self, run, capsys):
        code, out = run(capsys, "slots", "2026-03-05", "--duration", "30", "--busy", "10:00-11:00")
        assert code == 0
        assert "2026-03-05 09:00 - 10:00  (60 min)" in out.out
        assert "2026-03-05 11:00 - 18:00  (420 min)" in out.out

    def test_json_output(self, run, capsys):
        code, out = run(capsys, "slots", "2026-03-05", "--json", "--start-hour", "13", "--end-hour", "15")
        assert code == 0
        slots = json.loads(out.out)
        assert slots == [
            {"start": "2026-03-05T13:00:00+09:00", "end": "2026-03-05T15:00:00+09:00", "duration_minutes": 120}
        ]

    def test_weekend_has_no_slots(self, run, capsys):
        code, out = run(capsys, "slots", "2026-03-07")
        assert code == 0
        assert "No free slots." in out.out

    def test_weekend_included_on_request(self, run, capsys):
        code, out = run(capsys, "slots", "2026-03-07", "--include-holidays")
        assert "2026-03-07 09:00 - 18:00" in out.out

    def test_invalid_duration(self, run, capsys):
        code, out = run(capsys, "slots", "2026-03-05", "--duration", "0")
        assert code == 1
        assert "Error:" in out.err

    def test_malformed_busy_span(self, run, capsys):
        with pytest.raises(SystemExit):
            run(capsys, "slots", "2026-03-05", "--busy", "ten-eleven")


class TestWorkday:
    def test_working_day(self, run, capsys):
        code, out = run(capsys, "workday", "2026-03-05")
        assert code == 0
        assert "working day" in out.out

    def test_holiday(self, run, capsys):
        code, out = run(capsys, "workday", "2026-03-20", "--json")
        assert code == 1
        info = json.loads(out.out)
        assert info["is_holiday"] is True
        assert info["is_non_working_day"] is True


def test_version(run, capsys):
    code, out = run(capsys, "--version")
    assert code == 0
    assert out.out.startswith("Koyomi version")
