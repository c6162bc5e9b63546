"""Event lookup by fuzzy title and attendee classification.

Title matching is a substring test on normalised text: full-width forms
folded (NFKC), case folded, Latin accents dropped, whitespace removed. A
search phrase expands into several variants (stop words removed, whole
phrase, individual tokens) and an event matches when any variant is found
in its title.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Sequence

from koyomi.calendar.models import Attendee, CalendarEvent

# Words that describe "an event" rather than name one
STOP_WORDS: tuple[str, ...] = ("の予定", "イベント", "予定", "ミーティング", "会議", "mtg", "meeting")

_WHITESPACE = re.compile(r"\s+")
_STOP_WORD_PATTERN = re.compile("|".join(re.escape(w) for w in STOP_WORDS), re.IGNORECASE)


def _strip_latin_accents(text: str) -> str:
    out = []
    for ch in text:
        decomposed = unicodedata.normalize("NFD", ch)
        # Only Latin letters lose their marks; kana keep dakuten/handakuten
        if decomposed and ord(decomposed[0]) < 0x250:
            out.append("".join(c for c in decomposed if not unicodedata.combining(c)))
        else:
            out.append(ch)
    return "".join(out)


def normalize_text(text: str) -> str:
    text = unicodedata.normalize("NFKC", text or "")
    text = _strip_latin_accents(text).casefold()
    return _WHITESPACE.sub("", text)


def query_variants(query: str) -> list[str]:
    """Expand a search phrase into the normalised forms tried against titles."""
    if not query or not query.strip():
        return []

    stripped = _STOP_WORD_PATTERN.sub(" ", unicodedata.normalize("NFKC", query))
    tokens = [normalize_text(t) for t in stripped.split()]

    variants = [t for t in tokens if t]
    variants.append(normalize_text(stripped))
    variants.append(normalize_text(query))

    return [v for v in dict.fromkeys(variants) if v]


def title_matches(title: str, variants: Sequence[str]) -> bool:
    normalized = normalize_text(title)
    return any(v in normalized for v in variants)


def filter_events_by_query(events: Iterable[CalendarEvent], query: str | None) -> list[CalendarEvent]:
    """Keep events whose title matches ``query``; an empty query keeps everything.

    Order is preserved, so the first element is the first match in calendar order.
    """
    events = list(events)
    variants = query_variants(query or "")
    if not variants:
        return events
    return [e for e in events if title_matches(e.title, variants)]


# =============================================================================
# Attendees
# =============================================================================


def is_resource_attendee(attendee: Attendee, resource_domains: Iterable[str]) -> bool:
    """A room or equipment: flagged as a resource, or addressed on a resource domain."""
    if attendee.resource:
        return True
    email = attendee.email.lower()
    return any(email.endswith("@" + domain.lower()) for domain in resource_domains)


def partition_attendees(
    attendees: Iterable[Attendee],
    resource_domains: Iterable[str],
) -> tuple[list[str], list[str]]:
    """Split attendee emails into (humans, resources), dropping entries without an email."""
    domains = list(resource_domains)
    humans: list[str] = []
    resources: list[str] = []
    for attendee in attendees:
        if not attendee.email:
            continue
        if is_resource_attendee(attendee, domains):
            resources.append(attendee.email)
        else:
            humans.append(attendee.email)
    return humans, resources


__all__ = [
    "STOP_WORDS",
    "filter_events_by_query",
    "is_resource_attendee",
    "normalize_text",
    "partition_attendees",
    "query_variants",
    "title_matches",
]
