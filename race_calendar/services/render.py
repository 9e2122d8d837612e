"""Text and SVG renderers for the list view, event cards and the bubble map."""

from __future__ import annotations

from race_calendar.config import MAP_HEIGHT, MAP_WIDTH
from race_calendar.services.catalog import (
    CATEGORY_LABELS,
    Category,
    EventKind,
    EventRecord,
    TrailEvent,
    distance_options_of,
)
from race_calendar.services.filters import is_filtered
from race_calendar.services.geo import MapView
from race_calendar.services.grouping import ListView, is_fuzzy_date
from race_calendar.services.venue_lookup import VenueDescription

FUZZY_BADGE = "日期待定"
PEAK_MARK = "★"

CATEGORY_BLURBS = {
    Category.A: "赛事由中国田径协会共同主办或认证，其竞赛组织、赛道测量、裁判员选派和兴奋剂检查均符合田协标准，成绩可计入官方排名。",
}
LOCAL_BLURB = "该赛事为地方性质赛事，旨在推广全民健身和城市文化，具有较高的参与价值。"

BUBBLE_RADIUS = {
    "none": 4,
    "small": 6,
    "medium": 9,
    "large": 13,
    "largest": 18,
}

BUBBLE_COLORS = {
    EventKind.ROAD: {"none": "#475569", "low": "#fb923c", "mid": "#f97316", "high": "#dc2626"},
    EventKind.TRAIL: {"none": "#475569", "low": "#86efac", "mid": "#4ade80", "high": "#22c55e"},
}
SELECTED_RING = {EventKind.ROAD: "#f87171", EventKind.TRAIL: "#86efac"}


def _svg_text_esc(text) -> str:
    """Escape text content for SVG <text>; quotes are left alone."""
    if not text:
        return ""
    s = str(text)
    s = s.replace("&", "&amp;")
    s = s.replace("<", "&lt;")
    s = s.replace(">", "&gt;")
    return s


# ── List view ──────────────────────────────────────────────


def render_event_line(event: EventRecord) -> str:
    label = CATEGORY_LABELS[Category(event.category)]
    line = f"  [{label}] {event.name} · {event.province} · {event.event_type}"
    if event.organizer:
        line += f" · {event.organizer}"
    return line


def render_group_listing(view: ListView) -> str:
    lines = []
    if is_filtered(view.state):
        lines.append(f"筛选出 {view.total} 场赛事")
        lines.append("")

    if not view.groups:
        lines.append("该条件下未找到比赛")
        return "\n".join(lines)

    for group in view.groups:
        heading = group.date
        if group.is_fuzzy:
            heading += f" ({FUZZY_BADGE})"
        if group.is_peak:
            heading += f" {PEAK_MARK}"
        lines.append(f"{heading} — {group.count} 场")
        lines.extend(render_event_line(e) for e in group.events)
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


# ── Event detail ───────────────────────────────────────────


def render_event_detail(event: EventRecord) -> str:
    category = Category(event.category)
    time_text = event.time
    if is_fuzzy_date(event.time):
        time_text += f" ({FUZZY_BADGE})"

    lines = [
        f"{event.province} · 赛事详情",
        event.name,
        "",
        f"赛事级别: {CATEGORY_LABELS[category]}",
        f"举办时间: {time_text}",
        f"项目类型: {event.event_type}",
        f"举办省份: {event.province}",
        f"主办/承办单位: {event.organizer}",
        "",
        f"该赛事属于 {category.value}类赛事。{CATEGORY_BLURBS.get(category, LOCAL_BLURB)}",
    ]

    if isinstance(event, TrailEvent):
        if event.registration_period:
            lines.append(f"报名时间: {event.registration_period}")
        if event.participant_limit:
            lines.append(f"参赛规模: {event.participant_limit}")

    options = distance_options_of(event)
    if options:
        lines.append("")
        lines.append("组别:")
        for opt in options:
            extras = [
                f"爬升 {opt.elevation_gain}" if opt.elevation_gain else "",
                f"ITRA {opt.itra_points}" if opt.itra_points else "",
                f"UTMB {opt.utmb_index}" if opt.utmb_index else "",
                f"报名费 {opt.entry_fee}" if opt.entry_fee else "",
                f"名额 {opt.participant_limit}" if opt.participant_limit else "",
            ]
            extra_text = " · ".join(e for e in extras if e)
            lines.append(f"  - {opt.distance}" + (f" ({extra_text})" if extra_text else ""))
    return "\n".join(lines) + "\n"


def render_venue(description: VenueDescription) -> str:
    lines = [description.title, description.description]
    if description.link:
        lines.append(description.link)
    return "\n".join(lines) + "\n"


# ── Bubble map ─────────────────────────────────────────────


def render_map_svg(view: MapView) -> str:
    colors = BUBBLE_COLORS[view.kind]
    ring = SELECTED_RING[view.kind]

    outline_svg = ""
    if view.outline:
        outline_svg = (
            f'  <path d="{view.outline}" fill="rgba(30, 41, 59, 0.3)" stroke="#94a3b8" '
            f'stroke-width="2" stroke-linejoin="round" opacity="0.35"/>'
        )

    dots = []
    for b in view.bubbles:
        cx = round(b.x / 100 * MAP_WIDTH, 1)
        cy = round(b.y / 100 * MAP_HEIGHT, 1)
        r = BUBBLE_RADIUS[b.size]
        stroke = f' stroke="{ring}" stroke-width="4"' if b.selected else ""
        dots.append(
            f'  <circle cx="{cx}" cy="{cy}" r="{r}" fill="{colors[b.density]}"{stroke}>'
            f'<title>{_svg_text_esc(b.province)} {b.count}场</title></circle>'
        )
        weight = "900" if b.selected else "700"
        dots.append(
            f'  <text x="{cx}" y="{round(cy + r + 12, 1)}" font-size="11" font-weight="{weight}" '
            f'fill="#cbd5e1" text-anchor="middle">{_svg_text_esc(b.province)}</text>'
        )
    dots_svg = "\n".join(dots)

    legend = []
    for i, entry in enumerate(view.legend):
        y = MAP_HEIGHT - 30 - (len(view.legend) - 1 - i) * 22
        legend.append(
            f'  <circle cx="{MAP_WIDTH - 150}" cy="{y}" r="6" fill="{colors[entry.density]}"/>'
            f'<text x="{MAP_WIDTH - 136}" y="{y + 4}" font-size="11" fill="#e2e8f0">'
            f'{_svg_text_esc(entry.label)} {_svg_text_esc(entry.range_text)}</text>'
        )
    legend_svg = "\n".join(legend)

    return f'''<svg viewBox="0 0 {MAP_WIDTH} {MAP_HEIGHT}" width="{MAP_WIDTH}" height="{MAP_HEIGHT}" xmlns="http://www.w3.org/2000/svg" role="img" aria-label="赛事分布热力图">
  <rect x="0" y="0" width="{MAP_WIDTH}" height="{MAP_HEIGHT}" fill="#0f172a"/>
{outline_svg}
{dots_svg}
{legend_svg}
</svg>
'''
