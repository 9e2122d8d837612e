"""Venue descriptions — optional, user-triggered text generation.

The lookup collaborator is injected so the loading / cache / fallback logic
can run without network access. A lookup happens only when the user asks
for it, once per (region, event name); failures are never retried and fall
back to a generic description plus a map-search link.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Optional, Protocol
from urllib.parse import quote

import anthropic

from race_calendar.config import (
    ANTHROPIC_API_KEY,
    VENUE_MAX_TOKENS,
    VENUE_MODEL,
    VENUE_SEARCH_URL,
)

logger = logging.getLogger(__name__)

FALLBACK_DESCRIPTION = "暂无该赛事举办地的详细介绍，可点击链接在地图中查看举办地信息。"

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class VenueLookupError(Exception):
    """Raised by a lookup collaborator when it cannot produce a description."""


@dataclass(frozen=True)
class VenueDescription:
    title: str
    description: str
    link: str = ""
    fallback: bool = False


class VenueLookup(Protocol):
    def lookup(self, region: str, name: str) -> VenueDescription:
        ...


def venue_search_link(region: str, name: str) -> str:
    """Deep link built from the raw region and event name."""
    return VENUE_SEARCH_URL.format(query=quote(f"{region} {name}".strip()))


def fallback_description(region: str, name: str) -> VenueDescription:
    return VenueDescription(
        title=f"{region} · {name}",
        description=FALLBACK_DESCRIPTION,
        link=venue_search_link(region, name),
        fallback=True,
    )


class AnthropicVenueLookup:
    """Asks Claude for a short title and description of an event's venue."""

    def __init__(self, api_key: str, model: str = VENUE_MODEL,
                 max_tokens: int = VENUE_MAX_TOKENS, client=None):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or anthropic.Anthropic(api_key=api_key)

    def _prompt(self, region: str, name: str) -> str:
        return f"""为以下赛事的举办地写一段简短介绍。

省份：{region}
赛事：{name}

只输出一个 JSON 对象，不要输出其他内容：
{{"title": "举办地名称（不超过20字）", "description": "举办地与赛道环境介绍（不超过120字）"}}
"""

    def lookup(self, region: str, name: str) -> VenueDescription:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": self._prompt(region, name)}],
            )
        except anthropic.APIError as e:
            raise VenueLookupError(f"Venue lookup failed: {e}") from e

        text = ""
        for block in response.content:
            if hasattr(block, "text"):
                text += block.text

        return _parse_venue_json(text)


def _parse_venue_json(text: str) -> VenueDescription:
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise VenueLookupError("Venue lookup returned no JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise VenueLookupError(f"Venue lookup returned invalid JSON: {e}") from e

    title = data.get("title") if isinstance(data, dict) else None
    description = data.get("description") if isinstance(data, dict) else None
    if not isinstance(title, str) or not isinstance(description, str) or not description.strip():
        raise VenueLookupError("Venue lookup JSON missing title/description")
    return VenueDescription(title=title.strip(), description=description.strip())


def get_venue_lookup() -> Optional[AnthropicVenueLookup]:
    """The configured collaborator, or None when no API key is set."""
    if not ANTHROPIC_API_KEY:
        return None
    return AnthropicVenueLookup(api_key=ANTHROPIC_API_KEY)


# ---------------------------------------------------------------------------
# Lookup state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VenueLookupState:
    loading: frozenset = frozenset()
    results: dict = field(default_factory=dict)  # (region, name) -> VenueDescription

    def is_loading(self, region: str, name: str) -> bool:
        return (region, name) in self.loading

    def get(self, region: str, name: str) -> Optional[VenueDescription]:
        return self.results.get((region, name))


def begin_lookup(state: VenueLookupState, region: str, name: str) -> VenueLookupState:
    return replace(state, loading=state.loading | {(region, name)})


def finish_lookup(state: VenueLookupState, region: str, name: str,
                  description: VenueDescription) -> VenueLookupState:
    results = dict(state.results)
    results[(region, name)] = description
    return replace(state, loading=state.loading - {(region, name)}, results=results)


def request_venue(
    state: VenueLookupState,
    lookup: Optional[VenueLookup],
    region: str,
    name: str,
) -> tuple[VenueLookupState, VenueDescription]:
    """Run one user-triggered lookup; cached results are returned as-is.

    This is the synchronous path: the returned state is already settled, so
    callers never observe ``loading``. A host that dispatches the lookup in
    the background should call ``begin_lookup`` when it starts and
    ``finish_lookup`` with the result (or ``fallback_description``) when it
    completes, and render ``is_loading`` in between.
    """
    cached = state.get(region, name)
    if cached is not None:
        return state, cached

    state = begin_lookup(state, region, name)
    if lookup is None:
        logger.info("Venue lookup not configured; using fallback for %s %s", region, name)
        description = fallback_description(region, name)
    else:
        try:
            description = lookup.lookup(region, name)
        except Exception as e:
            logger.warning("Venue lookup for %s %s failed: %s", region, name, e)
            description = fallback_description(region, name)

    if not description.link:
        description = replace(description, link=venue_search_link(region, name))
    return finish_lookup(state, region, name, description), description
