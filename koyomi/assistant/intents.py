"""
Tool: Intent Models
Purpose: Typed union over the scheduling actions an intent producer can ask for

An external classifier turns an utterance into a JSON object with an
``action`` and action-specific camelCase fields (``eventQuery``,
``newDate``, ``dateRange``, ...). ``parse_intent`` validates that object
once, so handlers receive a fully typed intent and never check for missing
fields themselves. Any validation failure becomes a single InputError with
a message fit for the user.

Usage:
    from koyomi.assistant.intents import parse_intent

    intent = parse_intent({"action": "move", "eventQuery": "定例", "date": "2026-03-05"})
    intent.event_query   # "定例"
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from koyomi.calendar.recurrence import WEEKDAY_CODES, RecurrenceSpec
from koyomi.errors import InputError

ResponseStatus = Literal["accepted", "declined", "tentative"]

RESPONSE_LABELS = {
    "accepted": "参加",
    "declined": "不参加",
    "tentative": "仮承諾",
}

# Bulk respond filters
FILTER_UNANSWERED = "未回答のみ"
FILTER_TENTATIVE = "仮承諾のみ"
FILTER_ALL = "全て"


class _IntentModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # Producers send null for "not specified"; let defaults apply
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


def _required(value: Any, error_type: str, message: str) -> None:
    if value is None or value == "" or value == []:
        raise PydanticCustomError(error_type, message)


# =============================================================================
# Nested values
# =============================================================================


class DateRange(_IntentModel):
    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.end < self.start:
            raise PydanticCustomError("date_range_order", "日付範囲の終了が開始より前になっています。")
        return self


class RecurrenceRule(_IntentModel):
    frequency: Literal["daily", "weekly", "monthly", "yearly"]
    interval: Optional[int] = Field(default=None, ge=1)
    count: Optional[int] = Field(default=None, ge=1)
    until: Optional[dt.date] = None
    by_day: list[str] = Field(default_factory=list)

    @field_validator("frequency", mode="before")
    @classmethod
    def lower_frequency(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("by_day", mode="before")
    @classmethod
    def split_days(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [v for v in value.split(",") if v.strip()]
        return value

    @field_validator("by_day")
    @classmethod
    def known_days(cls, value: list[str]) -> list[str]:
        days = [d.strip().upper() for d in value]
        unknown = [d for d in days if d not in WEEKDAY_CODES]
        if unknown:
            raise PydanticCustomError("by_day", "曜日の指定が不正です: {days}", {"days": ",".join(unknown)})
        return days

    def to_spec(self) -> RecurrenceSpec:
        return RecurrenceSpec(
            frequency=self.frequency,
            interval=self.interval,
            count=self.count,
            until=self.until,
            by_day=list(self.by_day),
        )


# =============================================================================
# Intents
# =============================================================================


class MoveIntent(_IntentModel):
    """Move an existing event; no ``newDate`` means "some other day"."""

    action: Literal["move"] = "move"
    event_query: str = ""
    date: Optional[dt.date] = None
    new_date: Optional[dt.date] = None
    new_time: Optional[dt.time] = None
    include_holidays: bool = False

    @model_validator(mode="after")
    def check_required(self) -> "MoveIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        return self


class CreateIntent(_IntentModel):
    action: Literal["create"] = "create"
    event_query: str = ""
    title: Optional[str] = None
    date: Optional[dt.date] = None
    new_time: Optional[dt.time] = None
    duration: Optional[int] = Field(default=None, gt=0)
    include_holidays: bool = False

    @model_validator(mode="after")
    def check_required(self) -> "CreateIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        _required(self.event_title, "title_required", "作成する予定のタイトルが指定されていません。")
        return self

    @property
    def event_title(self) -> str:
        return self.title or self.event_query


class DeleteIntent(_IntentModel):
    action: Literal["delete"] = "delete"
    event_query: str = ""
    date: Optional[dt.date] = None

    @model_validator(mode="after")
    def check_required(self) -> "DeleteIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        return self


class QueryIntent(_IntentModel):
    """List or search events; both fields optional."""

    action: Literal["query"] = "query"
    event_query: Optional[str] = None
    date: Optional[dt.date] = None


class UpdateIntent(_IntentModel):
    action: Literal["update"] = "update"
    event_query: str = ""
    date: Optional[dt.date] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None

    @model_validator(mode="after")
    def check_required(self) -> "UpdateIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        if not (self.title or self.description or self.location):
            raise PydanticCustomError("changes_required", "変更内容（タイトル・説明・場所）が指定されていません。")
        return self


class RespondIntent(_IntentModel):
    action: Literal["respond"] = "respond"
    event_query: str = ""
    date: Optional[dt.date] = None
    response_status: Optional[ResponseStatus] = None

    @model_validator(mode="after")
    def check_required(self) -> "RespondIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        _required(self.response_status, "status_required", "回答（参加・不参加・仮承諾）が指定されていません。")
        return self


class BulkRespondIntent(_IntentModel):
    action: Literal["bulk_respond"] = "bulk_respond"
    date_range: Optional[DateRange] = None
    response_status: Optional[ResponseStatus] = None
    filter_condition: Optional[str] = None

    @model_validator(mode="after")
    def check_required(self) -> "BulkRespondIntent":
        _required(self.date_range, "date_range_required", "日付範囲の指定が必要です。")
        _required(self.response_status, "status_required", "回答（参加・不参加・仮承諾）が指定されていません。")
        return self


class AddAttendeesIntent(_IntentModel):
    action: Literal["add_attendees"] = "add_attendees"
    event_query: str = ""
    date: Optional[dt.date] = None
    attendees: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_required(self) -> "AddAttendeesIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        _required(self.attendees, "attendees_required", "追加する参加者のメールアドレスが指定されていません。")
        return self


class RemoveAttendeesIntent(_IntentModel):
    action: Literal["remove_attendees"] = "remove_attendees"
    event_query: str = ""
    date: Optional[dt.date] = None
    attendees: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_required(self) -> "RemoveAttendeesIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        _required(self.attendees, "attendees_required", "削除する参加者のメールアドレスが指定されていません。")
        return self


class SetReminderIntent(_IntentModel):
    action: Literal["set_reminder"] = "set_reminder"
    event_query: str = ""
    date: Optional[dt.date] = None
    reminder_minutes: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_required(self) -> "SetReminderIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        return self


class CreateRecurringIntent(_IntentModel):
    action: Literal["create_recurring"] = "create_recurring"
    event_query: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    date: Optional[dt.date] = None
    new_time: Optional[dt.time] = None
    duration: Optional[int] = Field(default=None, gt=0)
    recurrence: Optional[RecurrenceRule] = None
    include_holidays: bool = False

    @model_validator(mode="after")
    def check_required(self) -> "CreateRecurringIntent":
        _required(self.date, "date_required", "日付の解析に失敗しました。")
        _required(self.recurrence, "recurrence_required", "繰り返しルールが指定されていません。")
        _required(self.event_title, "title_required", "作成する予定のタイトルが指定されていません。")
        return self

    @property
    def event_title(self) -> str:
        return self.title or self.event_query


class ConfirmIntent(_IntentModel):
    """Reply to an open proposal, e.g. "2番目でお願い"."""

    action: Literal["confirm"] = "confirm"
    user_response: str = ""


class OtherIntent(_IntentModel):
    """Small talk and anything that is not a calendar operation."""

    action: Literal["other"] = "other"


Intent = Annotated[
    Union[
        MoveIntent,
        CreateIntent,
        DeleteIntent,
        QueryIntent,
        UpdateIntent,
        RespondIntent,
        BulkRespondIntent,
        AddAttendeesIntent,
        RemoveAttendeesIntent,
        SetReminderIntent,
        CreateRecurringIntent,
        ConfirmIntent,
        OtherIntent,
    ],
    Field(discriminator="action"),
]

ACTIONS = (
    "move",
    "create",
    "delete",
    "query",
    "update",
    "respond",
    "bulk_respond",
    "add_attendees",
    "remove_attendees",
    "set_reminder",
    "create_recurring",
    "confirm",
    "other",
)

_intent_adapter: TypeAdapter[Intent] = TypeAdapter(Intent)

# Messages for values that are present but unparseable, keyed by field alias
_FIELD_MESSAGES = {
    "date": "日付の解析に失敗しました。",
    "newDate": "移動先の日付を解析できませんでした。",
    "newTime": "時刻の解析に失敗しました。",
    "dateRange": "日付範囲の解析に失敗しました。",
    "responseStatus": "回答の種類が不正です（accepted / declined / tentative）。",
    "recurrence": "繰り返しルールの形式が不正です。",
    "duration": "所要時間の指定が不正です。",
    "reminderMinutes": "リマインダーの時間指定が不正です。",
    "attendees": "参加者の指定が不正です。",
}


def _error_message(error: ValidationError) -> str:
    first = error.errors()[0]
    if first["type"] in _CUSTOM_TYPES:
        return first["msg"]
    for part in first["loc"]:
        if part in _FIELD_MESSAGES:
            return _FIELD_MESSAGES[part]
    field = ".".join(str(p) for p in first["loc"][1:]) or "intent"
    return f"リクエストの形式が不正です（{field}）。"


_CUSTOM_TYPES = {
    "date_required",
    "title_required",
    "changes_required",
    "status_required",
    "date_range_required",
    "date_range_order",
    "attendees_required",
    "recurrence_required",
    "by_day",
}


def parse_intent(data: dict[str, Any] | BaseModel) -> Intent:
    """
    Validate a raw intent.

    Missing or unknown ``action`` values fall back to ``other``.

    Raises:
        InputError: when a required field is missing or a value does not parse
    """
    if isinstance(data, BaseModel):
        return data  # already typed

    if not isinstance(data, dict):
        raise InputError("リクエストの形式が不正です。")

    payload = dict(data)
    action = payload.get("action")
    if action not in ACTIONS:
        payload["action"] = "other"

    try:
        return _intent_adapter.validate_python(payload)
    except ValidationError as e:
        raise InputError(_error_message(e)) from e


__all__ = [
    "ACTIONS",
    "AddAttendeesIntent",
    "BulkRespondIntent",
    "ConfirmIntent",
    "CreateIntent",
    "CreateRecurringIntent",
    "DateRange",
    "DeleteIntent",
    "FILTER_ALL",
    "FILTER_TENTATIVE",
    "FILTER_UNANSWERED",
    "Intent",
    "MoveIntent",
    "OtherIntent",
    "QueryIntent",
    "RESPONSE_LABELS",
    "RecurrenceRule",
    "RemoveAttendeesIntent",
    "RespondIntent",
    "SetReminderIntent",
    "UpdateIntent",
    "parse_intent",
]
