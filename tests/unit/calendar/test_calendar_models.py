"""Tests for calendar data models and their Google Calendar JSON shape."""

from datetime import date, timedelta

import pytest

from koyomi.calendar.models import (
    Attendee,
    CalendarEvent,
    EventDraft,
    EventPatch,
    EventTime,
    FreeSlot,
    Reminder,
    TimeInterval,
)
from tests.conftest import TOKYO, at


class TestTimeInterval:
    """Half-open interval invariants."""

    def test_rejects_empty_interval(self):
        with pytest.raises(ValueError):
            TimeInterval(at("2026-03-05", "10:00"), at("2026-03-05", "10:00"))

    def test_duration_minutes(self):
        interval = TimeInterval(at("2026-03-05", "09:00"), at("2026-03-05", "10:30"))
        assert interval.duration_minutes == 90

    def test_touching_intervals_do_not_overlap(self):
        a = TimeInterval(at("2026-03-05", "09:00"), at("2026-03-05", "10:00"))
        b = TimeInterval(at("2026-03-05", "10:00"), at("2026-03-05", "11:00"))
        assert not a.overlaps(b)

    def test_free_slot_can_fit(self):
        slot = FreeSlot(at("2026-03-05", "11:00"), at("2026-03-05", "12:00"))
        assert slot.can_fit(at("2026-03-05", "11:30"), 30)
        assert not slot.can_fit(at("2026-03-05", "11:31"), 30)
        assert not slot.can_fit(at("2026-03-05", "10:59"), 30)


class TestEventTime:
    def test_timed_round_trip_keeps_offset(self):
        data = {"dateTime": "2026-03-05T10:00:00+09:00", "timeZone": "Asia/Tokyo"}
        parsed = EventTime.from_dict(data)
        assert parsed.date_time == at("2026-03-05", "10:00")
        assert parsed.to_dict() == data

    def test_utc_z_suffix(self):
        parsed = EventTime.from_dict({"dateTime": "2026-03-05T01:00:00Z"})
        assert parsed.as_datetime(TOKYO) == at("2026-03-05", "10:00")

    def test_all_day_resolves_to_local_midnight(self):
        parsed = EventTime.from_dict({"date": "2026-03-05"})
        assert parsed.is_all_day
        assert parsed.as_datetime(TOKYO) == at("2026-03-05", "00:00")

    def test_unrecognised_shape(self):
        with pytest.raises(ValueError):
            EventTime.from_dict({})


class TestCalendarEvent:
    """Conversion from and to the remote resource shape."""

    @pytest.fixture
    def resource(self) -> dict:
        return {
            "id": "abc",
            "summary": "週次定例",
            "start": {"dateTime": "2026-03-05T10:00:00+09:00"},
            "end": {"dateTime": "2026-03-05T11:00:00+09:00"},
            "attendees": [
                {"email": "me@example.com", "responseStatus": "accepted", "self": True},
                {"email": "room-a@resource.calendar.google.com", "resource": True},
            ],
            "reminders": {"useDefault": False, "overrides": [{"method": "popup", "minutes": 10}]},
        }

    def test_from_dict(self, resource):
        event = CalendarEvent.from_dict(resource)
        assert event.title == "週次定例"
        assert event.duration_minutes == 60
        assert event.attendees[0].is_self
        assert event.attendees[1].resource
        assert event.attendees[1].response_status == "needsAction"
        assert event.reminders == [Reminder(method="popup", minutes=10)]
        assert not event.use_default_reminders

    def test_to_dict_uses_remote_field_names(self, resource):
        d = CalendarEvent.from_dict(resource).to_dict()
        assert d["summary"] == "週次定例"
        assert d["attendees"][0]["self"] is True
        assert d["reminders"]["overrides"] == [{"method": "popup", "minutes": 10}]

    def test_find_attendee(self, resource):
        event = CalendarEvent.from_dict(resource)
        assert event.find_attendee("me@example.com").response_status == "accepted"
        assert event.find_attendee("nobody@example.com") is None

    def test_snapshot_is_detached(self, make_event):
        event = make_event("定例", "2026-03-05", "10:00", "11:00", attendees=["a@example.com"])
        copy = event.snapshot()
        event.attendees.append(Attendee(email="b@example.com"))
        event.title = "変更"
        assert copy.title == "定例"
        assert [a.email for a in copy.attendees] == ["a@example.com"]

    def test_all_day_event(self, make_all_day_event):
        event = make_all_day_event("出張", "2026-03-05")
        assert event.is_all_day
        assert event.duration_minutes == 24 * 60


class TestDraftAndPatch:
    def test_draft_from_event_drops_identity(self, make_event):
        event = make_event("定例", "2026-03-05", "10:00", "11:00", event_id="evt-9", location="会議室A")
        draft = EventDraft.from_event(event)
        d = draft.to_dict()
        assert "id" not in d
        assert d["location"] == "会議室A"
        assert d["start"]["dateTime"].startswith("2026-03-05T10:00")

    def test_patch_sends_only_set_fields(self):
        patch = EventPatch(title="新タイトル")
        assert patch.to_dict() == {"summary": "新タイトル"}
        assert EventPatch().is_empty()

    def test_patch_reminders_disable_defaults(self):
        patch = EventPatch(reminders=[Reminder(minutes=15)])
        assert patch.to_dict()["reminders"] == {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": 15}],
        }

    def test_send_updates_is_not_part_of_body(self):
        patch = EventPatch(attendees=[], send_updates="all")
        assert patch.to_dict() == {"attendees": []}

    def test_patch_times(self):
        start = at("2026-03-06", "15:00")
        patch = EventPatch(start=EventTime.at(start, "Asia/Tokyo"), end=EventTime.at(start + timedelta(hours=1)))
        d = patch.to_dict()
        assert d["start"] == {"dateTime": start.isoformat(), "timeZone": "Asia/Tokyo"}
        assert "timeZone" not in d["end"]
        assert date.fromisoformat(d["end"]["dateTime"][:10]) == date(2026, 3, 6)
