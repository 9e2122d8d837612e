"""Filter state and the event predicate.

FilterState is an immutable value; every UI action goes through one of the
pure ``with_*`` / ``toggle_*`` / ``reset`` functions below and gets a new
state back. ``filter_events`` evaluates the state against the catalog.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Iterable, Optional

from race_calendar.services.catalog import (
    PENDING_TOKEN,
    Category,
    EventKind,
    EventRecord,
)

ALL_LABEL = "全部"
MONTH_UNIT = "月"
DAY_UNIT = "日"

_ISO_DATE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})\s*$")


@dataclass(frozen=True)
class MonthFilter:
    """One entry of the month bar: all, a specific month, or pending."""
    month: Optional[int] = None
    pending: bool = False

    @classmethod
    def of(cls, month: int) -> "MonthFilter":
        if not isinstance(month, int) or not 1 <= month <= 12:
            raise ValueError(f"Month must be 1-12, got {month!r}")
        return cls(month=month)

    @classmethod
    def parse(cls, label) -> "MonthFilter":
        """Validate a month-bar label ('全部', '3月', '3', 3, '待定')."""
        if isinstance(label, MonthFilter):
            return label
        if isinstance(label, int):
            return cls.of(label)
        text = str(label).strip()
        if text == ALL_LABEL:
            return MonthFilter.ALL
        if text == PENDING_TOKEN:
            return MonthFilter.PENDING
        digits = text[:-1] if text.endswith(MONTH_UNIT) else text
        if digits.isdigit():
            return cls.of(int(digits))
        raise ValueError(f"Unknown month filter {label!r}")

    @property
    def is_all(self) -> bool:
        return self.month is None and not self.pending

    @property
    def label(self) -> str:
        if self.pending:
            return PENDING_TOKEN
        if self.month is None:
            return ALL_LABEL
        return f"{self.month}{MONTH_UNIT}"


MonthFilter.ALL = MonthFilter()
MonthFilter.PENDING = MonthFilter(pending=True)

MONTH_BAR = (MonthFilter.ALL, *(MonthFilter.of(m) for m in range(1, 13)), MonthFilter.PENDING)


def parse_exact_date(value: str) -> tuple[int, int]:
    """'2026-05-20' -> (5, 20). The year is ignored; the catalog is one year."""
    match = _ISO_DATE.match(value or "")
    if not match:
        raise ValueError(f"Expected YYYY-MM-DD, got {value!r}")
    return int(match.group(2)), int(match.group(3))


@dataclass(frozen=True)
class FilterState:
    kind: EventKind = EventKind.ROAD
    search_term: str = ""
    category: Category = Category.ALL
    month: MonthFilter = MonthFilter.ALL
    exact_date: Optional[tuple[int, int]] = None
    region: Optional[str] = None


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------

def with_kind(state: FilterState, kind) -> FilterState:
    return replace(state, kind=EventKind(kind))


def with_search(state: FilterState, term: str) -> FilterState:
    return replace(state, search_term=term or "")


def with_category(state: FilterState, category) -> FilterState:
    return replace(state, category=Category(category))


def with_month(state: FilterState, month) -> FilterState:
    """Pick a month-bar entry; clears any exact date."""
    return replace(state, month=MonthFilter.parse(month), exact_date=None)


def with_exact_date(state: FilterState, exact_date) -> FilterState:
    """Pick a calendar day; resets the month bar to all.

    Accepts '2026-05-20', a (month, day) tuple, or None/'' to clear.
    """
    if not exact_date:
        return replace(state, exact_date=None)
    if isinstance(exact_date, str):
        exact_date = parse_exact_date(exact_date)
    month, day = exact_date
    return replace(state, exact_date=(int(month), int(day)), month=MonthFilter.ALL)


def with_region(state: FilterState, region: Optional[str]) -> FilterState:
    return replace(state, region=region or None)


def toggle_region(state: FilterState, region: str) -> FilterState:
    """Clicking the selected region clears it; any other region replaces it."""
    if state.region == region:
        return replace(state, region=None)
    return replace(state, region=region)


def reset(state: FilterState) -> FilterState:
    """Back to defaults. ``kind`` is the top-level mode and survives."""
    return FilterState(kind=state.kind)


def is_filtered(state: FilterState) -> bool:
    return state != reset(state)


# ---------------------------------------------------------------------------
# Predicate
# ---------------------------------------------------------------------------

@lru_cache(maxsize=16)
def _month_pattern(month: int) -> re.Pattern:
    # The month number must not follow another digit: 2月 never matches 12月
    return re.compile(rf"(?:^|\D){month}{MONTH_UNIT}")


def _is_real_day(month: int, day: int) -> bool:
    if not 1 <= month <= 12:
        return False
    # Leap year so 2月29日 stays selectable
    return 1 <= day <= calendar.monthrange(2024, month)[1]


def _matches_text(record: EventRecord, term: str) -> bool:
    if not term:
        return True
    return term.lower() in record.name.lower() or term in record.province


def _matches_time(record: EventRecord, state: FilterState) -> bool:
    if state.exact_date is not None:
        month, day = state.exact_date
        if not _is_real_day(month, day):
            return False
        return record.time in (f"{month}{MONTH_UNIT}{day}{DAY_UNIT}", f"{month}{MONTH_UNIT}")

    if state.month.pending:
        return record.time == PENDING_TOKEN
    if state.month.month is not None:
        return bool(_month_pattern(state.month.month).search(record.time))
    return True


def matches(record: EventRecord, state: FilterState) -> bool:
    """True if one record passes every clause of the filter."""
    if record.kind != state.kind:
        return False
    if not _matches_text(record, state.search_term):
        return False
    if state.category is not Category.ALL and record.category != state.category:
        return False
    if not _matches_time(record, state):
        return False
    if state.region is not None and record.province != state.region:
        return False
    return True


def filter_events(records: Iterable[EventRecord], state: FilterState) -> list[EventRecord]:
    """Records passing ``state``, in input order."""
    return [r for r in records if matches(r, state)]
