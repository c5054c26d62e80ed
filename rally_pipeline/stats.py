"""
Per-player, per-match skill statistics.

decision rate = share of attempts that ended in "point"
effect rate   = weighted mean outcome score, weights[skill][result] in [0, 1]
"""
from __future__ import annotations

import locale
import logging
import math
import unicodedata
from collections.abc import Mapping
from typing import Dict, List, Optional, Sequence, Tuple

from .schemas import (
    RESULTS,
    UNNAMED_MATCH,
    Counts,
    Match,
    MatchId,
    PerSkillStat,
    PlayerId,
    PlayerMatchStat,
    RallyEvent,
    Skill,
    Weights,
    empty_counts,
)

LOGGER = logging.getLogger(__name__)


def clamp01(x: float) -> float:
    if math.isnan(x):
        return 0.0
    return max(0.0, min(1.0, x))


def _total(counts: Counts) -> int:
    return sum(counts.get(r, 0) for r in RESULTS)


def _score(counts: Counts, weights_for_skill: Optional[Mapping[str, float]]) -> float:
    w = weights_for_skill or {}
    return sum(counts.get(r, 0) * w.get(r, 0) for r in RESULTS)


def calc_decision_rate(counts: Counts) -> float:
    total = _total(counts)
    if total == 0:
        return 0.0
    return counts.get("point", 0) / total


def calc_effect_rate(counts: Counts, weights_for_skill: Optional[Mapping[str, float]]) -> float:
    total = _total(counts)
    if total == 0:
        return 0.0
    return clamp01(_score(counts, weights_for_skill) / total)


def _tally(events: Sequence[RallyEvent]) -> Dict[MatchId, Dict[Skill, Counts]]:
    acc: Dict[MatchId, Dict[Skill, Counts]] = {}
    for e in events:
        per_skill = acc.setdefault(e.match_id, {})
        counts = per_skill.setdefault(e.skill, empty_counts())
        counts[e.result] += 1
    return acc


def use_system_collation() -> None:
    """Switch LC_COLLATE to the user's locale so match names sort naturally."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        LOGGER.warning("could not set collation locale, names sort by code point: %s", e)


def match_sort_key(name: str) -> Tuple[str, str, str]:
    # strxfrm rejects embedded NULs
    folded = unicodedata.normalize("NFKC", name).casefold().replace("\0", "")
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return locale.strxfrm(base), locale.strxfrm(folded), name


def build_player_match_stats(
    player_id: Optional[PlayerId],
    matches: Sequence[Match],
    events: Sequence[RallyEvent],
    weights: Weights,
) -> List[PlayerMatchStat]:
    """
    One PlayerMatchStat per match in which `player_id` has at least one event.

    player_id=None selects the unassigned events only.
    """
    names = {m.id: m.name for m in matches}
    acc = _tally([e for e in events if e.player_id == player_id])

    out: List[PlayerMatchStat] = []
    for match_id, per_skill in acc.items():
        total_counts = empty_counts()
        total_score = 0.0
        for skill, c in per_skill.items():
            for r in RESULTS:
                total_counts[r] += c[r]
            total_score += _score(c, weights.get(skill))

        total = _total(total_counts)
        by_skill = {
            skill: PerSkillStat(
                total=_total(c),
                counts=dict(c),
                decision_rate=calc_decision_rate(c),
                effect_rate=calc_effect_rate(c, weights.get(skill)),
            )
            for skill, c in per_skill.items()
        }

        out.append(
            PlayerMatchStat(
                match_id=match_id,
                match_name=names.get(match_id, UNNAMED_MATCH),
                total=total,
                decision_rate=0.0 if total == 0 else total_counts["point"] / total,
                effect_rate=0.0 if total == 0 else clamp01(total_score / total),
                by_skill=by_skill,
            )
        )

    out.sort(key=lambda s: (match_sort_key(s.match_name), s.match_id))
    return out


def format_pct(x01: float) -> str:
    # half up, so 0.0625 reads 6.3%
    return f"{math.floor(clamp01(x01) * 1000 + 0.5) / 10:.1f}%"
