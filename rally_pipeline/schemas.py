from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

Skill = str
Result = str
PlayerId = str
MatchId = str

SKILLS: Tuple[Skill, ...] = ("spike", "serve", "block", "receive", "set")
RESULTS: Tuple[Result, ...] = ("point", "effective", "continue", "miss")

Counts = Dict[Result, int]
Weights = Dict[Skill, Dict[Result, float]]
Tally = List[Tuple[str, int]]

UNNAMED_MATCH = "unnamed"
UNKNOWN_LABEL = "unknown"


def empty_counts() -> Counts:
    return {r: 0 for r in RESULTS}


@dataclass(frozen=True)
class RallyEvent:
    """
    One canonical rally event.

    player_id is None when nobody was assigned; that is a distinct value and
    never equal to any id string (including "").
    """

    id: str
    match_id: MatchId
    skill: Skill
    result: Result
    player_id: Optional[PlayerId] = None


@dataclass(frozen=True)
class Match:
    id: MatchId
    name: str
    date_iso: Optional[str] = None


@dataclass(frozen=True)
class Player:
    id: PlayerId
    name: str


@dataclass(frozen=True)
class EventSummary:
    total: int
    by_type: Tally
    by_result: Tally
    by_player: Tally


@dataclass(frozen=True)
class PerSkillStat:
    total: int
    counts: Counts
    decision_rate: float  # 0..1
    effect_rate: float  # 0..1


@dataclass(frozen=True)
class PlayerMatchStat:
    match_id: MatchId
    match_name: str
    total: int
    decision_rate: float  # 0..1
    effect_rate: float  # 0..1
    by_skill: Dict[Skill, PerSkillStat] = field(default_factory=dict)


@dataclass(frozen=True)
class Analysis:
    """Everything derived from one loaded document."""

    keybag: Dict[str, Any]
    exported_at: Optional[str]
    raw_events: List[Dict[str, Any]]
    summary: EventSummary
    matches: List[Match]
    events: List[RallyEvent]
    players: List[Player]
