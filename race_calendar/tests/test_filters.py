"""Tests for FilterState reducers and the event predicate."""

import pytest

from race_calendar.services.catalog import Category, EventKind
from race_calendar.services.filters import (
    MONTH_BAR,
    FilterState,
    MonthFilter,
    filter_events,
    is_filtered,
    matches,
    parse_exact_date,
    reset,
    toggle_region,
    with_category,
    with_exact_date,
    with_kind,
    with_month,
    with_region,
    with_search,
)
from race_calendar.tests.conftest import make_road, make_trail


def ids(records):
    return [r.id for r in records]


class TestMonthFilter:
    def test_bar_order(self):
        assert [m.label for m in MONTH_BAR] == [
            "全部", "1月", "2月", "3月", "4月", "5月", "6月",
            "7月", "8月", "9月", "10月", "11月", "12月", "待定",
        ]

    @pytest.mark.parametrize("label,expected", [
        ("全部", MonthFilter.ALL),
        ("待定", MonthFilter.PENDING),
        ("3月", MonthFilter(month=3)),
        ("12", MonthFilter(month=12)),
        (7, MonthFilter(month=7)),
    ])
    def test_parse(self, label, expected):
        assert MonthFilter.parse(label) == expected

    @pytest.mark.parametrize("label", ["13月", "0", "spring", "", 13])
    def test_parse_rejects_outside_enumeration(self, label):
        with pytest.raises(ValueError):
            MonthFilter.parse(label)

    def test_flags(self):
        assert MonthFilter.ALL.is_all
        assert not MonthFilter.PENDING.is_all
        assert not MonthFilter.of(5).is_all


class TestParseExactDate:
    def test_iso_date(self):
        assert parse_exact_date("2026-05-20") == (5, 20)

    def test_leading_zeros_dropped(self):
        assert parse_exact_date("2026-03-05") == (3, 5)

    @pytest.mark.parametrize("value", ["05-20", "2026/05/20", "", "tomorrow"])
    def test_rejects_other_formats(self, value):
        with pytest.raises(ValueError):
            parse_exact_date(value)


class TestReducers:
    def test_month_clears_exact_date(self):
        state = with_exact_date(FilterState(), "2026-05-20")
        state = with_month(state, "3月")
        assert state.exact_date is None
        assert state.month == MonthFilter.of(3)

    def test_exact_date_resets_month(self):
        state = with_month(FilterState(), "3月")
        state = with_exact_date(state, "2026-05-20")
        assert state.month == MonthFilter.ALL
        assert state.exact_date == (5, 20)

    def test_clearing_exact_date(self):
        state = with_exact_date(FilterState(), (5, 20))
        assert with_exact_date(state, "").exact_date is None

    def test_toggle_region(self):
        state = toggle_region(FilterState(), "广东")
        assert state.region == "广东"
        assert toggle_region(state, "广东").region is None
        assert toggle_region(state, "浙江").region == "浙江"

    def test_reducers_do_not_mutate(self):
        state = FilterState()
        with_search(state, "马拉松")
        with_category(state, "A")
        assert state == FilterState()

    def test_reset_keeps_kind(self):
        state = FilterState(kind=EventKind.TRAIL)
        state = with_search(state, "大理")
        state = with_category(state, "A")
        state = with_exact_date(state, "2026-03-01")
        state = with_region(state, "云南")
        cleared = reset(state)
        assert cleared.kind is EventKind.TRAIL
        assert cleared.search_term == ""
        assert cleared.category is Category.ALL
        assert cleared.month == MonthFilter.ALL
        assert cleared.exact_date is None
        assert cleared.region is None

    def test_reset_is_idempotent(self):
        state = with_month(with_search(FilterState(), "x"), "待定")
        assert reset(reset(state)) == reset(state)

    def test_is_filtered(self):
        assert not is_filtered(FilterState())
        assert not is_filtered(FilterState(kind=EventKind.TRAIL))
        assert is_filtered(with_search(FilterState(), "北京"))
        assert is_filtered(with_region(FilterState(), "北京"))

    def test_with_kind_keeps_other_fields(self):
        state = with_search(FilterState(), "山")
        state = with_kind(state, "trail")
        assert state.kind is EventKind.TRAIL
        assert state.search_term == "山"


class TestKindAndText:
    def test_kind_isolation(self, sample_records):
        for month in MONTH_BAR:
            state = with_month(FilterState(kind=EventKind.TRAIL), month)
            assert all(r.kind is EventKind.TRAIL for r in filter_events(sample_records, state))

    def test_search_name_case_insensitive(self, sample_records):
        state = with_search(FilterState(), "xiamen")
        assert ids(filter_events(sample_records, state)) == [6]

    def test_search_province(self, sample_records):
        state = with_search(FilterState(), "新疆")
        # 新疆兵团 contains 新疆 as text
        assert ids(filter_events(sample_records, state)) == [5, 7]

    def test_empty_search_matches_all_of_kind(self, sample_records):
        assert len(filter_events(sample_records, FilterState())) == 8

    def test_category(self, sample_records):
        state = with_category(FilterState(), "A")
        assert ids(filter_events(sample_records, state)) == [1, 2, 6]


class TestMonthMatching:
    def test_month_two_excludes_december(self):
        records = [make_road(id=1, time="12月"), make_road(id=2, time="12月14日"), make_road(id=3, time="2月")]
        state = with_month(FilterState(), 2)
        assert ids(filter_events(records, state)) == [3]

    def test_month_twelve_includes_december(self):
        records = [make_road(id=1, time="12月"), make_road(id=2, time="12月14日"), make_road(id=3, time="2月")]
        state = with_month(FilterState(), 12)
        assert ids(filter_events(records, state)) == [1, 2]

    def test_month_one_excludes_october_to_december(self):
        records = [make_road(id=i, time=t) for i, t in enumerate(["10月", "11月3日", "12月", "1月5日"])]
        state = with_month(FilterState(), "1月")
        assert ids(filter_events(records, state)) == [3]

    def test_month_after_non_digit_text(self):
        record = make_road(time="约3月")
        assert matches(record, with_month(FilterState(), 3))

    def test_pending(self, sample_records):
        state = with_month(FilterState(), "待定")
        assert ids(filter_events(sample_records, state)) == [4]

    def test_unrecognized_time_only_matches_all(self, sample_records):
        odd = [r for r in sample_records if r.time == "春季"][0]
        assert matches(odd, FilterState())
        for month in MONTH_BAR[1:]:
            assert not matches(odd, with_month(FilterState(), month))


class TestExactDate:
    def test_month_only_matches_any_day(self):
        record = make_road(time="5月")
        assert matches(record, with_exact_date(FilterState(), "2026-05-20"))
        assert matches(record, with_exact_date(FilterState(), "2026-05-01"))

    def test_exact_day_only(self):
        record = make_road(time="5月20日")
        assert matches(record, with_exact_date(FilterState(), "2026-05-20"))
        assert not matches(record, with_exact_date(FilterState(), "2026-05-21"))

    def test_other_month_rejected(self):
        assert not matches(make_road(time="15月"), with_exact_date(FilterState(), "2026-01-05"))
        assert not matches(make_road(time="6月"), with_exact_date(FilterState(), "2026-05-20"))

    def test_pending_never_matches_date(self):
        assert not matches(make_road(time="待定"), with_exact_date(FilterState(), "2026-05-20"))

    def test_invalid_date_matches_nothing(self):
        state = with_exact_date(FilterState(), (13, 40))
        records = [make_road(time="13月"), make_road(time="13月40日"), make_road(time="2月")]
        assert filter_events(records, state) == []

    def test_exact_date_wins_over_month(self):
        # Built directly: the reducers never leave both set
        state = FilterState(month=MonthFilter.of(3), exact_date=(5, 20))
        assert matches(make_road(time="5月20日"), state)
        assert not matches(make_road(time="3月"), state)


class TestRegion:
    def test_exact_province_only(self, sample_records):
        state = with_region(FilterState(), "新疆")
        # No alias folding in the predicate
        assert ids(filter_events(sample_records, state)) == [7]

    def test_trail_region(self, sample_records):
        state = with_region(FilterState(kind=EventKind.TRAIL), "新疆兵团")
        assert ids(filter_events(sample_records, state)) == [10]


class TestFilterEvents:
    def test_preserves_input_order(self, sample_records):
        reversed_records = list(reversed(sample_records))
        result = filter_events(reversed_records, FilterState())
        assert ids(result) == [8, 7, 6, 5, 4, 3, 2, 1]

    def test_does_not_mutate_input(self, sample_records):
        before = list(sample_records)
        filter_events(sample_records, with_category(FilterState(), "A"))
        assert sample_records == before

    def test_zero_result_scenario(self):
        records = [make_road(time="3月", category=c) for c in ("B", "C", "B")]
        state = with_category(FilterState(), "A")
        assert filter_events(records, state) == []

    def test_combined_filters(self, sample_records):
        state = FilterState()
        state = with_category(state, "B")
        state = with_month(state, "5月")
        assert ids(filter_events(sample_records, state)) == [7]

    def test_mixed_kinds(self):
        records = [make_road(id=1), make_trail(id=2), make_road(id=3)]
        assert ids(filter_events(records, FilterState(kind=EventKind.TRAIL))) == [2]
