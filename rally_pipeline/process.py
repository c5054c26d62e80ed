from __future__ import annotations

import logging
from typing import Any, List, Optional

import pandas as pd

from .canonical import canonicalize_events
from .config import CFG, PipelineConfig
from .extract import (
    exported_at,
    find_event_arrays,
    keybag_types,
    normalize_to_keybag,
    pick_db_root,
    players_from_summary,
    summarize_events,
)
from .schemas import SKILLS, Analysis, PlayerId, PlayerMatchStat, Tally, Weights
from .stats import build_player_match_stats

LOGGER = logging.getLogger(__name__)


def analyze_document(raw: Any, cfg: PipelineConfig = CFG) -> Analysis:
    """
    Run discovery + canonicalization over one parsed document.

    Pure function of `raw` and `cfg`; never raises for JSON-valid input.
    """
    keybag = normalize_to_keybag(raw)
    db_root = pick_db_root(keybag)

    raw_events = find_event_arrays(db_root, step_limit=cfg.step_limit, threshold=cfg.event_threshold)
    summary = summarize_events(raw_events, top_players=cfg.top_players)
    matches, events = canonicalize_events(raw_events)

    dropped = len(raw_events) - len(events)
    if dropped:
        LOGGER.debug("dropped %d of %d records with no recognisable skill/result", dropped, len(raw_events))
    LOGGER.info("found %d events (%d canonical) across %d matches", len(raw_events), len(events), len(matches))

    return Analysis(
        keybag=keybag,
        exported_at=exported_at(raw),
        raw_events=raw_events,
        summary=summary,
        matches=matches,
        events=events,
        players=players_from_summary(summary),
    )


def player_match_stats(analysis: Analysis, player_id: Optional[PlayerId], weights: Weights) -> List[PlayerMatchStat]:
    return build_player_match_stats(player_id, analysis.matches, analysis.events, weights)


# -----------------------------------------------------------------------------
# Display tables
# -----------------------------------------------------------------------------
def tally_frame(tally: Tally, *, label: str) -> pd.DataFrame:
    return pd.DataFrame(tally, columns=[label, "count"])


def keybag_frame(analysis: Analysis) -> pd.DataFrame:
    return pd.DataFrame(keybag_types(analysis.keybag), columns=["key", "type"])


def stats_frame(stats: List[PlayerMatchStat]) -> pd.DataFrame:
    """
    Long table, one row per (match, skill) plus a "total" row per match:
      match_id, match_name, skill, total, decision_rate, effect_rate
    Skills appear in SKILLS order; skills with no attempts are left out.
    """
    rows = []
    for m in stats:
        rows.append(
            {
                "match_id": m.match_id,
                "match_name": m.match_name,
                "skill": "total",
                "total": m.total,
                "decision_rate": m.decision_rate,
                "effect_rate": m.effect_rate,
            }
        )
        for skill in SKILLS:
            st = m.by_skill.get(skill)
            if st is None or st.total == 0:
                continue
            rows.append(
                {
                    "match_id": m.match_id,
                    "match_name": m.match_name,
                    "skill": skill,
                    "total": st.total,
                    "decision_rate": st.decision_rate,
                    "effect_rate": st.effect_rate,
                }
            )

    cols = ["match_id", "match_name", "skill", "total", "decision_rate", "effect_rate"]
    out = pd.DataFrame(rows, columns=cols)
    out["total"] = out["total"].astype(int)
    for c in ["decision_rate", "effect_rate"]:
        out[c] = out[c].astype(float)
    return out
