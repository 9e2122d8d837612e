"""Shared fixtures for race calendar tests.

Provides:
- make_road / make_trail: record factories with overridable fields
- sample_store: a small mixed catalog covering every date shape
- bundled_store: the catalog shipped in race_calendar/data
"""

import pytest

from race_calendar.config import CATALOG_PATH
from race_calendar.services.catalog import (
    Category,
    DistanceOption,
    EventStore,
    RoadEvent,
    TrailEvent,
    load_catalog,
)

_next_id = [1000]


def _new_id():
    _next_id[0] += 1
    return _next_id[0]


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------

def make_road(**overrides):
    defaults = {
        "id": _new_id(),
        "province": "江苏",
        "name": "测试马拉松",
        "time": "3月",
        "organizer": "测试体育局",
        "category": Category.B,
        "event_type": "马拉松",
    }
    defaults.update(overrides)
    defaults["category"] = Category(defaults["category"])
    return RoadEvent(**defaults)


def make_trail(**overrides):
    defaults = {
        "id": _new_id(),
        "province": "云南",
        "name": "测试越野赛",
        "time": "4月",
        "organizer": "测试户外协会",
        "category": Category.B,
        "event_type": "越野跑",
        "registration_period": "1月1日-2月1日",
        "participant_limit": "1000人",
        "distance_options": (DistanceOption(distance="50km", elevation_gain="2000m"),),
    }
    defaults.update(overrides)
    defaults["category"] = Category(defaults["category"])
    return TrailEvent(**defaults)


def raw_road(**overrides):
    """Catalog-JSON shaped road event."""
    defaults = {
        "id": 1,
        "kind": "road",
        "province": "北京",
        "name": "北京马拉松",
        "time": "10月",
        "organizer": "北京市体育局",
        "category": "A",
        "eventType": "马拉松",
    }
    defaults.update(overrides)
    return defaults


def raw_trail(**overrides):
    defaults = {
        "id": 2,
        "kind": "trail",
        "province": "云南",
        "name": "大理越野赛",
        "time": "3月",
        "organizer": "大理州体育局",
        "category": "B",
        "eventType": "越野跑",
        "registrationPeriod": "12月1日-1月15日",
        "participantLimit": "3000人",
        "distanceOptions": [
            {"distance": "100km", "elevationGain": "5200m", "itraPoints": "5"},
            {"distance": "25km"},
        ],
    }
    defaults.update(overrides)
    return defaults


@pytest.fixture
def sample_records():
    return [
        make_road(id=1, name="无锡马拉松", province="江苏", time="3月23日", category="A"),
        make_road(id=2, name="深圳马拉松", province="广东", time="12月", category="A"),
        make_road(id=3, name="宁波马拉松", province="浙江", time="2月", category="B"),
        make_road(id=4, name="长沙马拉松", province="湖南", time="待定", category="C"),
        make_road(id=5, name="石河子半程马拉松", province="新疆兵团", time="5月", category="C"),
        make_road(id=6, name="Xiamen Marathon", province="福建", time="1月5日", category="A"),
        make_road(id=7, name="乌鲁木齐马拉松", province="新疆", time="5月20日", category="B"),
        make_road(id=8, name="奇怪日期赛", province="江苏", time="春季", category="B"),
        make_trail(id=9, name="大理越野赛", province="云南", time="3月", category="A"),
        make_trail(id=10, name="天山越野赛", province="新疆兵团", time="12月", category="C"),
        make_trail(id=11, name="梧桐山越野赛", province="广东", time="待定", category="C"),
    ]


@pytest.fixture
def sample_store(sample_records):
    return EventStore(sample_records)


@pytest.fixture
def bundled_store():
    return load_catalog(CATALOG_PATH)
