from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from .extract import EVENT_THRESHOLD, STEP_LIMIT, TOP_PLAYERS
from .schemas import Weights

# Score per (skill, result). Callers pass this (or their own table) to the
# stats builder explicitly.
DEFAULT_WEIGHTS: Weights = {
    "spike": {"point": 1.0, "effective": 0.6, "continue": 0.3, "miss": 0.0},
    "serve": {"point": 1.0, "effective": 0.7, "continue": 0.4, "miss": 0.0},
    "block": {"point": 1.0, "effective": 0.7, "continue": 0.4, "miss": 0.0},
    "receive": {"point": 1.0, "effective": 0.8, "continue": 0.5, "miss": 0.0},
    "set": {"point": 1.0, "effective": 0.8, "continue": 0.5, "miss": 0.0},
}


def _env_base_url() -> Optional[str]:
    value = os.environ.get("VOLLEY_VIEWER_BASE_URL", "").strip()
    return value or None


@dataclass(frozen=True)
class PipelineConfig:
    # event discovery
    step_limit: int = STEP_LIMIT
    event_threshold: float = EVENT_THRESHOLD

    # summary
    top_players: int = TOP_PLAYERS

    # latest.json fetch
    latest_name: str = "latest.json"
    http_timeout: int = 30
    latest_base_url: Optional[str] = field(default_factory=_env_base_url)


CFG = PipelineConfig()
