#!/usr/bin/env python3
"""
Koyomi Command Line Interface

Offline access to the calendar core: free-slot search over explicit busy
spans and working-day lookups. No remote calendar is contacted.

Usage:
    koyomi slots 2026-03-05 --duration 30 --busy 10:00-11:00
    koyomi slots 2026-03-05 --days 7 --json
    koyomi workday 2026-03-20
    koyomi --version
"""

import argparse
import json
import sys
from datetime import date, datetime, time, timedelta

from koyomi.calendar.availability import AvailabilityEngine, SearchOptions
from koyomi.calendar.holidays import HolidayPolicy
from koyomi.calendar.models import BusySpan
from koyomi.config import load_config
from koyomi.errors import InputError
from koyomi.logging_config import setup_logging


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value}")


def _parse_busy(value: str) -> tuple[time, time]:
    """``HH:MM-HH:MM`` on the searched day."""
    try:
        start, end = value.split("-", 1)
        return time.fromisoformat(start), time.fromisoformat(end)
    except ValueError:
        raise argparse.ArgumentTypeError(f"busy span must look like 10:00-11:00: {value}")


def cmd_slots(args):
    """List free slots for one or more days."""
    config = load_config(args.config)
    tz = config.tzinfo

    start = datetime.combine(args.date, time.min, tzinfo=tz)
    end = start + timedelta(days=args.days)
    busy = [
        BusySpan(
            start=datetime.combine(args.date, span_start, tzinfo=tz),
            end=datetime.combine(args.date, span_end, tzinfo=tz),
        )
        for span_start, span_end in args.busy
    ]

    duration = args.duration if args.duration is not None else config.default_duration_minutes

    try:
        options = SearchOptions(
            business_hours_start=args.start_hour if args.start_hour is not None else config.business_hours_start,
            business_hours_end=args.end_hour if args.end_hour is not None else config.business_hours_end,
            exclude_non_working_days=not args.include_holidays,
        )
        engine = AvailabilityEngine(HolidayPolicy(config.extra_holidays))
        slots = engine.find_free_slots(start, end, duration, options, busy)
    except InputError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([slot.to_dict() for slot in slots], indent=2, ensure_ascii=False))
        return 0

    if not slots:
        print("No free slots.")
        return 0

    for slot in slots:
        local_start = slot.start.astimezone(tz)
        local_end = slot.end.astimezone(tz)
        print(f"  {local_start:%Y-%m-%d %H:%M} - {local_end:%H:%M}  ({slot.duration_minutes} min)")
    return 0


def cmd_workday(args):
    """Show whether a date is a working day."""
    config = load_config(args.config)
    info = HolidayPolicy(config.extra_holidays).describe(args.date)

    if args.json:
        print(json.dumps({"date": args.date.isoformat(), **info}, indent=2, ensure_ascii=False))
    else:
        kind = "non-working day" if info["is_non_working_day"] else "working day"
        reasons = [name for name, flag in (("holiday", info["is_holiday"]), ("weekend", info["is_weekend"])) if flag]
        suffix = f" ({', '.join(reasons)})" if reasons else ""
        print(f"{args.date.isoformat()} ({info['day_name']}): {kind}{suffix}")

    return 1 if info["is_non_working_day"] else 0


def cmd_version(args):
    """Show version information."""
    from koyomi import __version__

    print(f"Koyomi version {__version__}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="koyomi",
        description="Koyomi - conversational scheduling assistant core",
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Show version and exit"
    )
    parser.add_argument(
        "--config", default=None, help="Path to scheduler.yaml (default: args/scheduler.yaml)"
    )
    parser.add_argument(
        "--log-level", default=None, help="Log level (default: KOYOMI_LOG_LEVEL or INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Slots subcommand
    slots_parser = subparsers.add_parser(
        "slots", help="Find free slots between explicit busy spans"
    )
    slots_parser.add_argument("date", type=_parse_date, help="First day searched (YYYY-MM-DD)")
    slots_parser.add_argument(
        "--duration", type=int, default=None, help="Slot length in minutes (default from config)"
    )
    slots_parser.add_argument(
        "--days", type=int, default=1, help="Number of days searched (default: 1)"
    )
    slots_parser.add_argument(
        "--busy", type=_parse_busy, action="append", default=[], help="Busy span on the first day, HH:MM-HH:MM"
    )
    slots_parser.add_argument("--start-hour", type=int, default=None, help="Business hours start")
    slots_parser.add_argument("--end-hour", type=int, default=None, help="Business hours end")
    slots_parser.add_argument(
        "--include-holidays", action="store_true", help="Also search weekends and holidays"
    )
    slots_parser.add_argument("--json", action="store_true", help="Print JSON")
    slots_parser.set_defaults(func=cmd_slots)

    # Workday subcommand
    workday_parser = subparsers.add_parser(
        "workday", help="Check whether a date is a working day"
    )
    workday_parser.add_argument("date", type=_parse_date, help="Date (YYYY-MM-DD)")
    workday_parser.add_argument("--json", action="store_true", help="Print JSON")
    workday_parser.set_defaults(func=cmd_workday)

    args = parser.parse_args()

    if args.version:
        cmd_version(args)
        return 0

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(level=args.log_level)
    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
