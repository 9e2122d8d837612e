"""Event record store — immutable snapshot of the race catalog.

Road marathons and trail races share a base record and differ by ``kind``.
The catalog JSON is loaded once; records are frozen and the store never
changes after construction.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Iterator, Optional, Union

from race_calendar.config import CATALOG_PATH

logger = logging.getLogger(__name__)

PENDING_TOKEN = "待定"


class CatalogError(Exception):
    """Raised when the catalog file or one of its records is malformed."""


class EventKind(str, Enum):
    ROAD = "road"
    TRAIL = "trail"


class Category(str, Enum):
    ALL = "All"
    A = "A"
    B = "B"
    C = "C"


CATEGORY_LABELS = {
    Category.ALL: "全部级别",
    Category.A: "A类认证",
    Category.B: "B类标准",
    Category.C: "C类地方",
}


@dataclass(frozen=True)
class DistanceOption:
    distance: str
    elevation_gain: Optional[str] = None
    itra_points: Optional[str] = None
    utmb_index: Optional[str] = None
    entry_fee: Optional[str] = None
    participant_limit: Optional[str] = None


@dataclass(frozen=True)
class RoadEvent:
    """A road race (marathon, half marathon, 10K...)."""
    kind: ClassVar[EventKind] = EventKind.ROAD

    id: int
    province: str
    name: str
    time: str  # "3月5日", "3月" or "待定"
    organizer: str
    category: Category
    event_type: str


@dataclass(frozen=True)
class TrailEvent:
    """A trail race with its registration window and distance offerings."""
    kind: ClassVar[EventKind] = EventKind.TRAIL

    id: int
    province: str
    name: str
    time: str
    organizer: str
    category: Category
    event_type: str
    registration_period: str = ""
    participant_limit: str = ""
    distance_options: tuple[DistanceOption, ...] = ()


EventRecord = Union[RoadEvent, TrailEvent]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_REQUIRED = ("id", "province", "name", "time", "organizer", "category")


def _opt_text(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _parse_distance(raw: dict) -> DistanceOption:
    if not isinstance(raw, dict) or not raw.get("distance"):
        raise CatalogError(f"Distance option without distance: {raw!r}")
    return DistanceOption(
        distance=str(raw["distance"]),
        elevation_gain=_opt_text(raw.get("elevationGain")),
        itra_points=_opt_text(raw.get("itraPoints")),
        utmb_index=_opt_text(raw.get("utmbIndex")),
        entry_fee=_opt_text(raw.get("entryFee")),
        participant_limit=_opt_text(raw.get("participantLimit")),
    )


def parse_event(raw: dict) -> EventRecord:
    """Build a typed record from one catalog JSON object.

    Records without a ``kind`` tag are road events; the road list predates
    the trail catalog.
    """
    if not isinstance(raw, dict):
        raise CatalogError(f"Catalog entry is not an object: {raw!r}")

    missing = [k for k in _REQUIRED if k not in raw]
    if missing:
        raise CatalogError(f"Event {raw.get('id', '?')} missing fields: {', '.join(missing)}")

    try:
        kind = EventKind(raw.get("kind", EventKind.ROAD.value))
    except ValueError:
        raise CatalogError(f"Event {raw['id']} has unknown kind {raw.get('kind')!r}") from None

    try:
        category = Category(str(raw["category"]))
    except ValueError:
        category = None
    if category is None or category is Category.ALL:
        raise CatalogError(f"Event {raw['id']} has unknown category {raw['category']!r}")

    try:
        event_id = int(raw["id"])
    except (TypeError, ValueError):
        raise CatalogError(f"Event id is not an integer: {raw['id']!r}") from None

    common = {
        "id": event_id,
        "province": str(raw["province"]),
        "name": str(raw["name"]),
        "time": str(raw["time"]),
        "organizer": str(raw["organizer"]),
        "category": category,
        "event_type": str(raw.get("eventType") or ""),
    }

    if kind is EventKind.ROAD:
        if raw.get("distanceOptions"):
            raise CatalogError(f"Road event {event_id} carries distanceOptions")
        return RoadEvent(**common)

    options = tuple(_parse_distance(o) for o in raw.get("distanceOptions") or [])
    return TrailEvent(
        **common,
        registration_period=str(raw.get("registrationPeriod") or ""),
        participant_limit=str(raw.get("participantLimit") or ""),
        distance_options=options,
    )


def distance_options_of(event: EventRecord) -> tuple[DistanceOption, ...]:
    """Distance offerings of an event; road events have none."""
    if isinstance(event, TrailEvent):
        return event.distance_options
    if isinstance(event, RoadEvent):
        return ()
    raise TypeError(f"Unsupported event type: {type(event).__name__}")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class EventStore:
    """Read-only collection of event records keyed by id."""

    def __init__(self, records) -> None:
        records = tuple(records)
        seen: dict[int, EventRecord] = {}
        for record in records:
            if record.id in seen:
                raise CatalogError(f"Duplicate event id {record.id}")
            seen[record.id] = record
        self._records = records
        self._by_id = seen

    @property
    def records(self) -> tuple[EventRecord, ...]:
        return self._records

    def by_kind(self, kind: EventKind) -> list[EventRecord]:
        return [r for r in self._records if r.kind == kind]

    def get(self, event_id: int) -> Optional[EventRecord]:
        return self._by_id.get(event_id)

    def kind_counts(self) -> dict[str, int]:
        return dict(Counter(r.kind.value for r in self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EventRecord]:
        return iter(self._records)


def load_catalog(path: Path | None = None) -> EventStore:
    """Load the catalog JSON (a list, or an object with an ``events`` list)."""
    path = Path(path or CATALOG_PATH)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise CatalogError(f"Catalog not found at {path}") from None
    except OSError as e:
        raise CatalogError(f"Catalog at {path} is unreadable: {e}") from e
    except UnicodeDecodeError as e:
        raise CatalogError(f"Catalog at {path} is not UTF-8 text: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog at {path} is not valid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("events", [])
    if not isinstance(data, list):
        raise CatalogError(f"Catalog at {path} must be a list of events")

    store = EventStore(parse_event(item) for item in data)
    logger.info("Loaded %d events from %s (%s)", len(store), path, store.kind_counts())
    return store


# Module-level singleton
_store: EventStore | None = None


def get_event_store() -> EventStore:
    """Return the process-wide store, loading the configured catalog once."""
    global _store
    if _store is None:
        _store = load_catalog()
    return _store
