"""Province boundary outlines — optional decoration for the bubble map.

A successful fetch is kept for the life of the process. Any failure (network,
HTTP status, bad JSON, wrong shape) degrades to ``None`` so the map still
renders its bubbles without an outline.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import requests

from race_calendar.config import BOUNDARY_URL, HTTP_TIMEOUT

logger = logging.getLogger(__name__)

_cache: dict[str, dict] = {}


def _is_feature_collection(data) -> bool:
    return (
        isinstance(data, dict)
        and data.get("type") == "FeatureCollection"
        and isinstance(data.get("features"), list)
    )


def _read_file(path: Path) -> Optional[dict]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Boundary file %s unreadable: %s", path, e)
        return None


def _download(url: str) -> Optional[dict]:
    try:
        response = requests.get(url, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Boundary fetch from %s failed: %s", url, e)
        return None


def fetch_boundary(source: str | Path | None = None) -> Optional[dict]:
    """Load boundary GeoJSON from a local path or URL; successes are memoized.

    Returns None when the resource is unavailable; never raises.
    """
    source = str(source or BOUNDARY_URL)
    if source in _cache:
        return _cache[source]

    if source.startswith(("http://", "https://")):
        data = _download(source)
    else:
        data = _read_file(Path(source))

    if data is not None and not _is_feature_collection(data):
        logger.warning("Boundary resource %s is not a FeatureCollection", source)
        data = None

    if data is not None:
        logger.info("Loaded %d boundary features from %s", len(data["features"]), source)
        _cache[source] = data
    return data


def feature_names(geojson: Optional[dict]) -> list[str]:
    if not geojson:
        return []
    return [
        (f.get("properties") or {}).get("name", "")
        for f in geojson.get("features", [])
        if isinstance(f, dict)
    ]


def clear_boundary_cache() -> None:
    _cache.clear()
