"""
Schema-agnostic discovery of rally events inside an exported JSON document.

The exporter wraps its storage as
  { "format": ..., "exportedAt": ..., "keys": { "<storage key>": <value>, ... } }
but older or hand-made files may be the bare key bag, or anything else.
Nothing here raises on unexpected shapes: an unknown document just yields
no keys / no events.
"""
from __future__ import annotations

import logging
from collections import Counter, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from .canonical import resolve_player_id
from .schemas import UNKNOWN_LABEL, EventSummary, Player, Tally

DB_ROOT_KEYS: Tuple[str, ...] = (
    "valleyPwa.db.v2",
    "volleyPwa.db.v2",
    "valleyPwa.db",
    "volleyPwa.db",
)

TYPE_KEYS: Tuple[str, ...] = ("type", "skill", "label")
RESULT_KEYS: Tuple[str, ...] = ("result", "outcome")

LOGGER = logging.getLogger(__name__)

STEP_LIMIT = 50_000
EVENT_THRESHOLD = 0.5
TOP_PLAYERS = 30


def _first_present(obj: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for k in keys:
        v = obj.get(k)
        if v is not None:
            return v
    return None


def is_event_like(x: Any) -> bool:
    if not isinstance(x, dict):
        return False
    return isinstance(_first_present(x, TYPE_KEYS), str) and isinstance(_first_present(x, RESULT_KEYS), str)


def normalize_to_keybag(root: Any) -> Dict[str, Any]:
    if not isinstance(root, dict):
        return {}
    keys = root.get("keys")
    if isinstance(keys, dict):
        return keys
    return root


def pick_db_root(keybag: Dict[str, Any]) -> Any:
    # first match wins; a null value counts as missing
    for k in DB_ROOT_KEYS:
        v = keybag.get(k)
        if v is not None:
            return v
    return keybag


def exported_at(root: Any) -> Optional[str]:
    """Export timestamp from the envelope, if the document carries one."""
    if not isinstance(root, dict):
        return None
    meta = root.get("meta")
    candidates = [root.get("exportedAt"), root.get("exported_at")]
    if isinstance(meta, dict):
        candidates.append(meta.get("exportedAt"))
    for v in candidates:
        if isinstance(v, str) and v:
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
    return None


def find_event_arrays(
    root: Any,
    *,
    step_limit: int = STEP_LIMIT,
    threshold: float = EVENT_THRESHOLD,
) -> List[Dict[str, Any]]:
    """
    Breadth-first search for lists that are mostly event-like records.

    A list qualifies when at least `threshold` of its elements are event-like;
    its event-like elements are emitted and the list is not searched further.
    Dicts and lists are visited once each (by identity), and the walk stops
    after `step_limit` dequeues.
    """
    out: List[Dict[str, Any]] = []
    seen: set[int] = set()
    queue: Deque[Any] = deque([root])

    steps = 0
    while queue and steps < step_limit:
        cur = queue.popleft()
        steps += 1

        if not cur or not isinstance(cur, (dict, list)):
            continue
        if id(cur) in seen:
            continue
        seen.add(id(cur))

        if isinstance(cur, list):
            n_events = sum(1 for v in cur if is_event_like(v))
            if n_events / len(cur) >= threshold:
                out.extend(v for v in cur if is_event_like(v))
                continue
            queue.extend(cur)
            continue

        queue.extend(cur.values())

    if queue:
        LOGGER.warning("event search stopped after %d steps with %d nodes left unvisited", steps, len(queue))
    LOGGER.debug("event search: %d steps, %d event-like records", steps, len(out))
    return out


def _label(value: Any) -> str:
    if value is None:
        return UNKNOWN_LABEL
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _sorted_tally(c: Counter) -> Tally:
    # Counter preserves first-seen order, sorted() is stable on ties
    return sorted(c.items(), key=lambda kv: kv[1], reverse=True)


def summarize_events(events: List[Any], *, top_players: int = TOP_PLAYERS) -> EventSummary:
    by_type: Counter = Counter()
    by_result: Counter = Counter()
    by_player: Counter = Counter()

    for e in events:
        rec = e if isinstance(e, dict) else {}
        by_type[_label(_first_present(rec, TYPE_KEYS))] += 1
        by_result[_label(_first_present(rec, RESULT_KEYS))] += 1
        by_player[_label(resolve_player_id(rec))] += 1

    return EventSummary(
        total=len(events),
        by_type=_sorted_tally(by_type),
        by_result=_sorted_tally(by_result),
        by_player=_sorted_tally(by_player)[:top_players],
    )


def players_from_summary(summary: EventSummary) -> List[Player]:
    return [Player(id=label, name=label) for label, _ in summary.by_player if label != UNKNOWN_LABEL]


def keybag_types(keybag: Dict[str, Any]) -> List[Tuple[str, str]]:
    """(key, JSON type name) for every key, sorted by key. Used by the debug listing."""
    out = []
    for k in sorted(keybag):
        v = keybag[k]
        if v is None:
            t = "null"
        elif isinstance(v, bool):
            t = "boolean"
        elif isinstance(v, (int, float)):
            t = "number"
        elif isinstance(v, str):
            t = "string"
        elif isinstance(v, list):
            t = "array"
        else:
            t = "object"
        out.append((k, t))
    return out
