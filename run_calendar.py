#!/usr/bin/env python3
"""
Race Calendar — list, map and inspect the race catalog from the command line.

Usage:
    python run_calendar.py list --month 3
    python run_calendar.py list --kind trail --search 越野 --category A
    python run_calendar.py list --date 2026-05-20 --region 新疆
    python run_calendar.py map --kind road --out map.svg --boundary china.json
    python run_calendar.py detail 101 --venue
"""

import argparse
import logging
import sys
from pathlib import Path

from race_calendar.config import LOG_LEVEL
from race_calendar.services.boundary import feature_names, fetch_boundary
from race_calendar.services.catalog import CatalogError, EventKind, get_event_store, load_catalog
from race_calendar.services.filters import (
    FilterState,
    with_category,
    with_exact_date,
    with_month,
    with_region,
    with_search,
)
from race_calendar.services.geo import build_map_view, count_by_region, unmapped_counts
from race_calendar.services.grouping import summarize
from race_calendar.services.render import (
    render_event_detail,
    render_group_listing,
    render_map_svg,
    render_venue,
)
from race_calendar.services.venue_lookup import VenueLookupState, get_venue_lookup, request_venue


def build_state(args) -> FilterState:
    """Translate CLI flags into a FilterState through the reducers."""
    state = FilterState(kind=EventKind(args.kind))
    state = with_search(state, args.search)
    state = with_category(state, args.category)
    if args.month:
        state = with_month(state, args.month)
    if args.date:
        state = with_exact_date(state, args.date)
    return with_region(state, args.region)


def cmd_list(store, args) -> int:
    view = summarize(store, build_state(args))
    print(render_group_listing(view), end="")
    return 0


def cmd_map(store, args) -> int:
    boundary = fetch_boundary(args.boundary) if args.boundary else None
    view = build_map_view(store, args.kind, selected=args.select, boundary=boundary)

    out_path = Path(args.out)
    out_path.write_text(render_map_svg(view), encoding="utf-8")
    print(f"✓ Map written to {out_path}")

    unmapped = unmapped_counts(count_by_region(store, args.kind))
    if unmapped:
        print(f"⚠️  Regions without map position: {unmapped}")
    if view.outline:
        print(f"   Outline: {len(feature_names(boundary))} boundary features")
    else:
        print("   (no boundary outline)")
    return 0


def cmd_detail(store, args) -> int:
    event = store.get(args.event_id)
    if event is None:
        print(f"Event {args.event_id} not found")
        return 1

    print(render_event_detail(event), end="")
    if args.venue:
        _, description = request_venue(VenueLookupState(), get_venue_lookup(), event.province, event.name)
        print()
        print(render_venue(description), end="")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Road and trail race calendar")
    parser.add_argument("--catalog", help="Catalog JSON file (default: bundled catalog)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Filtered events grouped by date")
    p_list.add_argument("--kind", choices=[k.value for k in EventKind], default="road")
    p_list.add_argument("--search", default="", help="Match event name or province")
    p_list.add_argument("--category", choices=["All", "A", "B", "C"], default="All")
    p_list.add_argument("--month", help="全部, 1-12 (or 3月), 待定")
    p_list.add_argument("--date", help="Exact day, YYYY-MM-DD")
    p_list.add_argument("--region", help="Province name")

    p_map = sub.add_parser("map", help="Province bubble map as SVG")
    p_map.add_argument("--kind", choices=[k.value for k in EventKind], default="road")
    p_map.add_argument("--select", help="Highlight one province")
    p_map.add_argument("--boundary", help="Boundary GeoJSON file or URL (optional)")
    p_map.add_argument("--out", default="race-map.svg")

    p_detail = sub.add_parser("detail", help="One event's details")
    p_detail.add_argument("event_id", type=int)
    p_detail.add_argument("--venue", action="store_true", help="Look up a venue description")

    args = parser.parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    try:
        store = load_catalog(Path(args.catalog)) if args.catalog else get_event_store()
    except CatalogError as e:
        print(f"FATAL: {e}")
        return 1

    try:
        if args.command == "list":
            return cmd_list(store, args)
        if args.command == "map":
            return cmd_map(store, args)
        return cmd_detail(store, args)
    except ValueError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
