"""
Raw event records -> canonical RallyEvent / Match.

Every field is found by probing an ordered list of candidate paths (dotted
paths reach into nested objects) and taking the first value the field's
extractor accepts. Skill and result labels then go through synonym tables
that cover the exporter's English abbreviations, Japanese UI terms and the
usual scouting symbols (# + ! - / =). Records whose skill or result cannot
be mapped are dropped.
"""
from __future__ import annotations

import math
import re
import unicodedata
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .schemas import UNNAMED_MATCH, Match, RallyEvent, Result, Skill

Extractor = Callable[[Any], Optional[str]]

SKILL_PATHS = ("type", "skill", "label", "action", "kind", "event.type", "event.skill", "play.type")
RESULT_PATHS = ("result", "outcome", "res", "evaluation", "grade", "event.result", "event.outcome")
MATCH_NAME_PATHS = ("matchName", "match_name", "match.name", "match.title", "gameName", "game_name", "game.name")
MATCH_ID_PATHS = ("matchId", "match_id", "match.id", "gameId", "game_id", "game.id")
MATCH_DATE_PATHS = ("matchDate", "match_date", "match.date", "game.date", "dateISO", "date")
PLAYER_PATHS = ("playerId", "player_id", "player", "player.id", "playerName", "player_name", "player.name")
RECORD_ID_PATHS = ("id", "eventId", "event_id", "uuid")

_SKILL_WORDS: Dict[Skill, Tuple[str, ...]] = {
    "spike": ("spk", "attack", "atk", "att", "a", "hit", "kill attempt", "スパイク", "アタック", "攻撃"),
    "serve": ("serv", "srv", "sv", "s", "service", "サーブ", "サービス"),
    "block": ("blk", "bk", "b", "ブロック"),
    "receive": ("receiving", "reception", "rec", "rcv", "r", "dig", "d", "pass",
                "レシーブ", "サーブレシーブ", "サーブカット", "ディグ"),
    "set": ("setting", "toss", "st", "e", "トス", "セット"),
}

_RESULT_WORDS: Dict[Result, Tuple[str, ...]] = {
    "point": ("pt", "pts", "kill", "ace", "score", "scored", "win", "won", "success", "#",
              "得点", "決定", "ポイント", "成功"),
    "effective": ("eff", "good", "positive", "great", "+", "効果", "効果的", "有効"),
    "continue": ("cont", "inplay", "in play", "rally", "neutral", "keep", "ok", "!", "/", "-",
                 "継続", "つなぎ", "ラリー継続"),
    "miss": ("error", "err", "fault", "out", "lost", "lose", "fail", "failed", "=",
             "ミス", "失点", "失敗", "エラー"),
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize_label(text: str) -> str:
    s = unicodedata.normalize("NFKC", text).strip().casefold()
    # "in-play" / "in_play" / "in play" -> "inplay", but a bare "-" stays a symbol
    return _SEPARATORS.sub("", s) or s


def _synonyms(words: Dict[str, Tuple[str, ...]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for canonical, variants in words.items():
        for w in (canonical,) + variants:
            out[normalize_label(w)] = canonical
    return out


SKILL_SYNONYMS = _synonyms(_SKILL_WORDS)
RESULT_SYNONYMS = _synonyms(_RESULT_WORDS)


# -----------------------------------------------------------------------------
# Field probing
# -----------------------------------------------------------------------------
_MISSING = object()


def get_path(node: Any, path: str) -> Any:
    """Value at a dotted path, or a sentinel when any step is missing."""
    if not isinstance(node, dict):
        return _MISSING
    if path in node:
        return node[path]
    cur: Any = node
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return _MISSING
        cur = cur[part]
    return cur


def probe(node: Any, paths: Sequence[str], accept: Extractor) -> Optional[str]:
    for path in paths:
        v = get_path(node, path)
        if v is _MISSING:
            continue
        got = accept(v)
        if got is not None:
            return got
    return None


def _number_text(v: Any) -> Optional[str]:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    if isinstance(v, int):
        return str(v)
    if not math.isfinite(v):
        return None
    if v.is_integer():
        return str(int(v))
    return str(v)


def as_text(v: Any) -> Optional[str]:
    if isinstance(v, str) and v.strip():
        return v
    return None


def as_identifier(v: Any) -> Optional[str]:
    """Non-empty string, or a finite number rendered as text."""
    return as_text(v) or _number_text(v)


def resolve_skill(record: Any) -> Optional[Skill]:
    label = probe(record, SKILL_PATHS, as_identifier)
    return SKILL_SYNONYMS.get(normalize_label(label)) if label is not None else None


def resolve_result(record: Any) -> Optional[Result]:
    label = probe(record, RESULT_PATHS, as_identifier)
    return RESULT_SYNONYMS.get(normalize_label(label)) if label is not None else None


def resolve_player_id(record: Any) -> Optional[str]:
    return probe(record, PLAYER_PATHS, as_identifier)


PSEUDO_ID_PREFIX = "name:"
_ESCAPED_ID_PREFIX = "id:"


def pseudo_match_id(name: str) -> str:
    return f"{PSEUDO_ID_PREFIX}{name}"


def explicit_match_id(raw_id: str) -> str:
    """Explicit ids pass through unless they could be read as a pseudo-id."""
    if raw_id.startswith((PSEUDO_ID_PREFIX, _ESCAPED_ID_PREFIX)):
        return f"{_ESCAPED_ID_PREFIX}{raw_id}"
    return raw_id


def resolve_match(record: Any) -> Match:
    name = probe(record, MATCH_NAME_PATHS, as_text) or UNNAMED_MATCH
    raw_id = probe(record, MATCH_ID_PATHS, as_identifier)
    match_id = explicit_match_id(raw_id) if raw_id is not None else pseudo_match_id(name)
    return Match(id=match_id, name=name, date_iso=probe(record, MATCH_DATE_PATHS, as_text))


def canonicalize_events(records: Iterable[Any]) -> Tuple[List[Match], List[RallyEvent]]:
    matches: Dict[str, Match] = {}
    events: List[RallyEvent] = []

    for index, rec in enumerate(records):
        skill = resolve_skill(rec)
        if skill is None:
            continue
        result = resolve_result(rec)
        if result is None:
            continue

        match = resolve_match(rec)
        matches.setdefault(match.id, match)

        events.append(
            RallyEvent(
                id=probe(rec, RECORD_ID_PATHS, as_identifier) or f"e{index}",
                match_id=match.id,
                skill=skill,
                result=result,
                player_id=resolve_player_id(rec),
            )
        )

    return list(matches.values()), events
