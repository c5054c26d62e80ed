from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from .config import DEFAULT_WEIGHTS
from .schemas import RESULTS, SKILLS, Weights


def validate_weights(weights: Mapping[str, Mapping[str, Any]], *, name: str = "weights") -> None:
    rows = {s: weights.get(s) if isinstance(weights.get(s), Mapping) else {} for s in SKILLS}
    missing = [f"{s}.{r}" for s in SKILLS for r in RESULTS if r not in rows[s]]
    if missing:
        raise ValueError(f"{name}: missing entries: {missing}")

    bad = []
    for s in SKILLS:
        for r in RESULTS:
            v = rows[s][r]
            # NaN fails the range check too
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not 0 <= v <= 1:
                bad.append(f"{s}.{r}={v!r}")
    if bad:
        raise ValueError(f"{name}: values must be numbers in [0, 1]: {bad}")


def complete_weights(overrides: Optional[Mapping[str, Mapping[str, Any]]] = None) -> Weights:
    """DEFAULT_WEIGHTS with any cells from `overrides` replaced, validated."""
    out: Weights = {s: dict(DEFAULT_WEIGHTS[s]) for s in SKILLS}
    if overrides is not None and not isinstance(overrides, Mapping):
        raise ValueError("weights: expected an object of {skill: {result: weight}}")
    for skill, row in (overrides or {}).items():
        if skill not in out:
            raise ValueError(f"weights: unknown skill {skill!r} (expected one of {list(SKILLS)})")
        if not isinstance(row, Mapping):
            raise ValueError(f"weights: row for {skill!r} must be an object")
        for result, v in row.items():
            if result not in RESULTS:
                raise ValueError(f"weights: unknown result {skill}.{result} (expected one of {list(RESULTS)})")
            out[skill][result] = v
    validate_weights(out)
    return out
