"""Race calendar configuration — loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Root of the repo
REPO_ROOT = Path(__file__).resolve().parent.parent

# Static catalog snapshot (road + trail events)
DATA_DIR = Path(__file__).resolve().parent / "data"
CATALOG_PATH = Path(os.environ.get("RACE_CATALOG_PATH", str(DATA_DIR / "events.json")))

# Decorative province outlines (GeoJSON FeatureCollection)
BOUNDARY_URL = os.environ.get(
    "BOUNDARY_URL",
    "https://geo.datav.aliyun.com/areas_v3/bound/100000_full.json",
)
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "10"))

# Venue lookup (optional, text generation)
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
VENUE_MODEL = os.environ.get("VENUE_MODEL", "claude-sonnet-4-20250514")
VENUE_MAX_TOKENS = int(os.environ.get("VENUE_MAX_TOKENS", "600"))
VENUE_SEARCH_URL = os.environ.get("VENUE_SEARCH_URL", "https://map.baidu.com/search/{query}")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Map canvas — Mercator tuned so the whole national extent fits 1000x750
MAP_WIDTH = 1000
MAP_HEIGHT = 750
MAP_CENTER = (105.0, 38.0)  # (lon, lat)
MAP_SCALE = 835.0
MAP_TRANSLATE = (500.0, 375.0)

# Bubble size steps: count below limit -> size name
BUBBLE_SIZE_STEPS = (
    (10, "small"),
    (20, "medium"),
    (30, "large"),
)
BUBBLE_SIZE_MAX = "largest"

# (mid threshold, high threshold) per kind
DENSITY_THRESHOLDS = {
    "road": (10, 20),
    "trail": (5, 15),
}

# A date bucket with this many events is a peak day
PEAK_GROUP_SIZE = 5
