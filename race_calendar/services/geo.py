"""Province bubble map — projection, per-region counts and bubble styling.

Each canonical province has a fixed (lon, lat) anchor. Anchors go through a
spherical Mercator projection tuned for a 1000x750 canvas and are then
expressed as percentages of the canvas, so any viewport can place them.

Counts come from the whole catalog of one kind (not the user's other
filters), after folding region aliases into their parent province.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from race_calendar.config import (
    BUBBLE_SIZE_MAX,
    BUBBLE_SIZE_STEPS,
    DENSITY_THRESHOLDS,
    MAP_CENTER,
    MAP_HEIGHT,
    MAP_SCALE,
    MAP_TRANSLATE,
    MAP_WIDTH,
)
from race_calendar.services.catalog import EventKind, EventRecord

logger = logging.getLogger(__name__)

# Provincial capitals, in map display order
PROVINCE_COORDINATES = (
    ("黑龙江", 126.6433, 45.7567),
    ("吉林", 125.3245, 43.8868),
    ("辽宁", 123.4291, 41.8057),
    ("内蒙古", 111.6708, 40.8183),
    ("北京", 116.4074, 39.9042),
    ("天津", 117.2008, 39.0842),
    ("河北", 114.5024, 38.0457),
    ("山东", 117.0208, 36.6683),
    ("江苏", 118.7969, 32.0603),
    ("上海", 121.4737, 31.2304),
    ("浙江", 120.1536, 30.2875),
    ("福建", 119.2965, 26.1004),
    ("广东", 113.2644, 23.1291),
    ("海南", 110.3312, 20.0311),
    ("广西", 108.3661, 22.8172),
    ("云南", 102.7103, 25.0406),
    ("贵州", 106.7073, 26.5981),
    ("四川", 104.0665, 30.5723),
    ("重庆", 106.5516, 29.5630),
    ("湖南", 112.9388, 28.2282),
    ("湖北", 114.3055, 30.5931),
    ("江西", 115.8581, 28.6832),
    ("安徽", 117.2272, 31.8206),
    ("河南", 113.6254, 34.7466),
    ("山西", 112.5489, 37.8570),
    ("陕西", 108.9540, 34.2656),
    ("宁夏", 106.2586, 38.4681),
    ("甘肃", 103.8236, 36.0581),
    ("青海", 101.7782, 36.6171),
    ("新疆", 87.6278, 43.7928),
    ("西藏", 91.1174, 29.6470),
)

CANONICAL_REGIONS = tuple(name for name, _, _ in PROVINCE_COORDINATES)

# Secondary administrative units whose events count toward a parent province
REGION_ALIASES = {
    "新疆兵团": "新疆",
}


def canonical_region(name: str) -> str:
    return REGION_ALIASES.get(name, name)


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MercatorProjection:
    """Spherical Mercator centred on ``center`` and scaled to a pixel canvas.

    ``center`` lands on ``translate``; ``extent`` is the canvas the scale was
    tuned for and is what percentages are relative to.
    """
    center: tuple[float, float] = MAP_CENTER
    scale: float = MAP_SCALE
    translate: tuple[float, float] = MAP_TRANSLATE
    extent: tuple[float, float] = (MAP_WIDTH, MAP_HEIGHT)

    @staticmethod
    def _raw(lon: float, lat: float) -> tuple[float, float]:
        lam = math.radians(lon)
        phi = math.radians(lat)
        return lam, math.log(math.tan(math.pi / 4 + phi / 2))

    def project(self, lon: float, lat: float) -> tuple[float, float]:
        x, y = self._raw(lon, lat)
        cx, cy = self._raw(*self.center)
        tx, ty = self.translate
        return tx + self.scale * (x - cx), ty - self.scale * (y - cy)

    def to_percent(self, px: float, py: float) -> tuple[float, float]:
        width, height = self.extent
        return px / width * 100, py / height * 100


DEFAULT_PROJECTION = MercatorProjection()


@dataclass(frozen=True)
class RegionPoint:
    province: str
    x: float  # percent of canvas width
    y: float  # percent of canvas height


def project_regions(projection: MercatorProjection | None = None) -> list[RegionPoint]:
    projection = projection or DEFAULT_PROJECTION
    points = []
    for name, lon, lat in PROVINCE_COORDINATES:
        x, y = projection.to_percent(*projection.project(lon, lat))
        points.append(RegionPoint(province=name, x=x, y=y))
    return points


def outline_path(geojson: Optional[dict], projection: MercatorProjection | None = None) -> str:
    """SVG path ``d`` for every polygon ring of a boundary FeatureCollection."""
    if not geojson:
        return ""
    projection = projection or DEFAULT_PROJECTION

    parts = []
    for feature in geojson.get("features") or []:
        geometry = (feature or {}).get("geometry") or {}
        gtype = geometry.get("type")
        coords = geometry.get("coordinates") or []
        if gtype == "Polygon":
            polygons = [coords]
        elif gtype == "MultiPolygon":
            polygons = coords
        else:
            continue
        for polygon in polygons:
            for ring in polygon:
                if len(ring) < 3:
                    continue
                for i, point in enumerate(ring):
                    x, y = projection.project(point[0], point[1])
                    cmd = "M" if i == 0 else "L"
                    parts.append(f"{cmd}{x:.1f},{y:.1f}")
                parts.append("Z")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def count_by_region(records: Iterable[EventRecord], kind) -> dict[str, int]:
    """Events per province for one kind, aliases folded into their parent."""
    kind = EventKind(kind)
    counts = Counter(canonical_region(r.province) for r in records if r.kind == kind)
    return dict(counts)


def unmapped_counts(counts: dict[str, int]) -> dict[str, int]:
    """Regions with events but no map anchor."""
    return {name: n for name, n in counts.items() if name not in CANONICAL_REGIONS}


@dataclass(frozen=True)
class GeoRegion:
    province: str
    x: float
    y: float
    event_count: int


def build_geo_regions(
    records: Iterable[EventRecord],
    kind,
    projection: MercatorProjection | None = None,
) -> list[GeoRegion]:
    counts = count_by_region(records, kind)
    unmapped = unmapped_counts(counts)
    if unmapped:
        logger.info("Regions without map anchors: %s", unmapped)
    return [
        GeoRegion(province=p.province, x=p.x, y=p.y, event_count=counts.get(p.province, 0))
        for p in project_regions(projection)
    ]


# ---------------------------------------------------------------------------
# Bubble styling
# ---------------------------------------------------------------------------

def bubble_size(count: int) -> str:
    if count <= 0:
        return "none"
    for limit, name in BUBBLE_SIZE_STEPS:
        if count < limit:
            return name
    return BUBBLE_SIZE_MAX


def density_class(count: int, kind) -> str:
    if count <= 0:
        return "none"
    mid, high = DENSITY_THRESHOLDS[EventKind(kind).value]
    if count < mid:
        return "low"
    if count < high:
        return "mid"
    return "high"


def toggle_selection(selected: Optional[str], region: str) -> Optional[str]:
    """Clicking the selected region clears it; another region replaces it."""
    return None if selected == region else region


@dataclass(frozen=True)
class Bubble:
    province: str
    x: float
    y: float
    count: int
    size: str
    density: str
    selected: bool = False


def build_bubbles(
    records: Iterable[EventRecord],
    kind,
    selected: Optional[str] = None,
    projection: MercatorProjection | None = None,
) -> list[Bubble]:
    return [
        Bubble(
            province=r.province,
            x=r.x,
            y=r.y,
            count=r.event_count,
            size=bubble_size(r.event_count),
            density=density_class(r.event_count, kind),
            selected=r.province == selected,
        )
        for r in build_geo_regions(records, kind, projection)
    ]


@dataclass(frozen=True)
class LegendEntry:
    density: str
    label: str
    range_text: str


def legend(kind, bubbles: Iterable[Bubble]) -> list[LegendEntry]:
    mid, high = DENSITY_THRESHOLDS[EventKind(kind).value]
    entries = [
        LegendEntry("high", "密集", f"≥{high}场"),
        LegendEntry("mid", "活跃", f"{mid}-{high - 1}场"),
        LegendEntry("low", "常规", f"<{mid}场"),
    ]
    if any(b.count == 0 for b in bubbles):
        entries.append(LegendEntry("none", "暂无", ""))
    return entries


@dataclass(frozen=True)
class MapView:
    kind: EventKind
    bubbles: tuple[Bubble, ...]
    legend: tuple[LegendEntry, ...]
    outline: str = ""  # empty when the boundary resource is unavailable

    @property
    def selected(self) -> Optional[str]:
        for b in self.bubbles:
            if b.selected:
                return b.province
        return None


def build_map_view(
    records: Iterable[EventRecord],
    kind,
    selected: Optional[str] = None,
    boundary: Optional[dict] = None,
    projection: MercatorProjection | None = None,
) -> MapView:
    """Bubbles and legend for one kind; the outline is decoration only."""
    kind = EventKind(kind)
    bubbles = tuple(build_bubbles(records, kind, selected, projection))
    try:
        outline = outline_path(boundary, projection)
    except (AttributeError, KeyError, TypeError, ValueError, IndexError) as e:
        logger.warning("Boundary outline skipped: %s", e)
        outline = ""
    return MapView(kind=kind, bubbles=bubbles, legend=tuple(legend(kind, bubbles)), outline=outline)
