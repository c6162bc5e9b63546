"""Tests for intent validation.

Verifies that raw classifier output is turned into typed intents once,
and that every malformed intent becomes a single user-facing InputError.
"""

from datetime import date, time

import pytest

from koyomi.assistant.intents import (
    BulkRespondIntent,
    CreateIntent,
    CreateRecurringIntent,
    MoveIntent,
    OtherIntent,
    QueryIntent,
    parse_intent,
)
from koyomi.errors import InputError


# =============================================================================
# Valid intents
# =============================================================================


class TestParseValid:
    def test_move_with_camel_case_fields(self):
        intent = parse_intent({
            "action": "move",
            "eventQuery": "定例",
            "date": "2026-03-05",
            "newDate": "2026-03-06",
            "newTime": "14:00",
        })
        assert isinstance(intent, MoveIntent)
        assert intent.event_query == "定例"
        assert intent.date == date(2026, 3, 5)
        assert intent.new_date == date(2026, 3, 6)
        assert intent.new_time == time(14, 0)
        assert intent.include_holidays is False

    def test_nulls_fall_back_to_defaults(self):
        intent = parse_intent({"action": "move", "eventQuery": None, "date": "2026-03-05", "newDate": None})
        assert intent.event_query == ""
        assert intent.new_date is None

    def test_unknown_keys_ignored(self):
        intent = parse_intent({"action": "query", "confidence": 0.9})
        assert isinstance(intent, QueryIntent)

    def test_create_title_falls_back_to_query(self):
        intent = parse_intent({"action": "create", "eventQuery": "歯医者", "date": "2026-03-05"})
        assert isinstance(intent, CreateIntent)
        assert intent.event_title == "歯医者"

    def test_bulk_respond(self):
        intent = parse_intent({
            "action": "bulk_respond",
            "dateRange": {"start": "2026-03-02", "end": "2026-03-06"},
            "responseStatus": "accepted",
            "filterCondition": "未回答のみ",
        })
        assert isinstance(intent, BulkRespondIntent)
        assert intent.date_range.end == date(2026, 3, 6)

    def test_recurrence_normalised(self):
        intent = parse_intent({
            "action": "create_recurring",
            "title": "朝会",
            "date": "2026-03-09",
            "recurrence": {"frequency": "WEEKLY", "byDay": "mo, we", "until": "2026-06-30"},
        })
        assert isinstance(intent, CreateRecurringIntent)
        spec = intent.recurrence.to_spec()
        assert spec.frequency == "weekly"
        assert spec.by_day == ["MO", "WE"]
        assert spec.until == date(2026, 6, 30)

    @pytest.mark.parametrize("raw", [
        {"action": "dance"},
        {"text": "こんにちは"},
        {"action": None},
    ])
    def test_unknown_or_missing_action_is_other(self, raw):
        assert isinstance(parse_intent(raw), OtherIntent)

    def test_typed_intent_passes_through(self):
        intent = QueryIntent()
        assert parse_intent(intent) is intent


# =============================================================================
# Invalid intents
# =============================================================================


class TestParseInvalid:
    """Each failure is one InputError with a message for the user."""

    @pytest.mark.parametrize("raw,message", [
        ({"action": "move", "eventQuery": "定例"}, "日付の解析に失敗しました。"),
        ({"action": "move", "date": "来週"}, "日付の解析に失敗しました。"),
        ({"action": "move", "date": "2026-03-05", "newDate": "2026-02-30"}, "移動先の日付を解析できませんでした。"),
        ({"action": "create", "date": "2026-03-05"}, "作成する予定のタイトルが指定されていません。"),
        ({"action": "bulk_respond", "responseStatus": "accepted"}, "日付範囲の指定が必要です。"),
        ({"action": "respond", "date": "2026-03-05", "responseStatus": "maybe"},
         "回答の種類が不正です（accepted / declined / tentative）。"),
        ({"action": "create_recurring", "title": "朝会", "date": "2026-03-09"}, "繰り返しルールが指定されていません。"),
        ({"action": "update", "date": "2026-03-05", "eventQuery": "定例"},
         "変更内容（タイトル・説明・場所）が指定されていません。"),
        ({"action": "add_attendees", "date": "2026-03-05", "attendees": []},
         "追加する参加者のメールアドレスが指定されていません。"),
    ])
    def test_messages(self, raw, message):
        with pytest.raises(InputError) as exc_info:
            parse_intent(raw)
        assert exc_info.value.message == message

    def test_date_range_order(self):
        with pytest.raises(InputError, match="終了が開始より前"):
            parse_intent({
                "action": "bulk_respond",
                "dateRange": {"start": "2026-03-06", "end": "2026-03-02"},
                "responseStatus": "declined",
            })

    def test_unknown_weekday(self):
        with pytest.raises(InputError, match="XX"):
            parse_intent({
                "action": "create_recurring",
                "title": "朝会",
                "date": "2026-03-09",
                "recurrence": {"frequency": "weekly", "byDay": ["MO", "XX"]},
            })

    def test_not_a_mapping(self):
        with pytest.raises(InputError):
            parse_intent(["move"])
