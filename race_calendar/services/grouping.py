"""Group filtered events by their date text and order the groups.

The date text itself is the bucket key: "3月", "3月5日" and "待定" each form
their own bucket. Buckets sort by (month, day) with a month-only bucket
before day 1 of that month; the pending bucket always comes last.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable

from race_calendar.config import PEAK_GROUP_SIZE
from race_calendar.services.catalog import PENDING_TOKEN, EventRecord
from race_calendar.services.filters import FilterState, filter_events

_DATE_TEXT = re.compile(r"^(\d{1,2})月(?:(\d{1,2})日)?$")

# Sort ranks: dated buckets, then unparseable text, then pending
_RANK_DATED = 0
_RANK_OTHER = 1
_RANK_PENDING = 2


def date_sort_key(text: str) -> tuple:
    if text == PENDING_TOKEN:
        return (_RANK_PENDING, 0, 0, "")
    match = _DATE_TEXT.match(text)
    if not match:
        return (_RANK_OTHER, 0, 0, text)
    month = int(match.group(1))
    # Month-only sorts ahead of any day of the same month
    day = int(match.group(2)) if match.group(2) else 0
    return (_RANK_DATED, month, day, "")


def compare_dates(a: str, b: str) -> int:
    ka, kb = date_sort_key(a), date_sort_key(b)
    return (ka > kb) - (ka < kb)


def sort_dates(dates: Iterable[str]) -> list[str]:
    return sorted(dates, key=cmp_to_key(compare_dates))


def is_fuzzy_date(text: str) -> bool:
    """Month known, day not yet announced."""
    return "日" not in text and text != PENDING_TOKEN


@dataclass(frozen=True)
class DateGroup:
    date: str
    events: tuple[EventRecord, ...]

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def is_fuzzy(self) -> bool:
        return is_fuzzy_date(self.date)

    @property
    def is_pending(self) -> bool:
        return self.date == PENDING_TOKEN

    @property
    def is_peak(self) -> bool:
        return self.count >= PEAK_GROUP_SIZE


def group_by_date(records: Iterable[EventRecord]) -> list[DateGroup]:
    buckets: dict[str, list[EventRecord]] = {}
    for record in records:
        buckets.setdefault(record.time, []).append(record)
    return [DateGroup(date=d, events=tuple(buckets[d])) for d in sort_dates(buckets)]


@dataclass(frozen=True)
class ListView:
    state: FilterState
    filtered: tuple[EventRecord, ...]
    groups: tuple[DateGroup, ...]

    @property
    def total(self) -> int:
        return len(self.filtered)


def summarize(records: Iterable[EventRecord], state: FilterState) -> ListView:
    """Filter then group; everything the list view needs."""
    filtered = filter_events(records, state)
    return ListView(state=state, filtered=tuple(filtered), groups=tuple(group_by_date(filtered)))
