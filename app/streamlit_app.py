from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
import streamlit as st

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rally_pipeline.config import CFG, DEFAULT_WEIGHTS  # noqa: E402
from rally_pipeline.io import DocumentLoadError, LoadedDocument, load_latest, parse_document  # noqa: E402
from rally_pipeline.process import analyze_document, keybag_frame, player_match_stats, tally_frame  # noqa: E402
from rally_pipeline.schemas import RESULTS, SKILLS, PlayerMatchStat  # noqa: E402
from rally_pipeline.stats import format_pct, use_system_collation  # noqa: E402
from rally_pipeline.validate import complete_weights  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
use_system_collation()

SKILL_LABELS = {
    "spike": "Spike",
    "serve": "Serve",
    "block": "Block",
    "receive": "Receive",
    "set": "Set",
}

# -----------------------------------------------------------------------------
# Page config + header
# -----------------------------------------------------------------------------
st.set_page_config(page_title="volley-viewer", layout="wide")
st.title("volley-viewer")
st.caption("Read-only viewer for exported scouting data (nothing is edited).")


def _format_date(s: Optional[str]) -> str:
    if not s:
        return "-"
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return s


@st.cache_data(show_spinner=False)
def _parse_upload(raw_bytes: bytes, filename: str) -> LoadedDocument:
    return parse_document(raw_bytes, source="file", filename=filename)


def _render_tally(title: str, tally: list[tuple[str, int]], label: str) -> None:
    st.markdown(f"**{title}**")
    st.dataframe(tally_frame(tally, label=label), hide_index=True, use_container_width=True)


def _render_match(m: PlayerMatchStat) -> None:
    with st.container(border=True):
        c_name, c_line = st.columns([2, 3])
        c_name.markdown(f"**{m.match_name}**")
        c_line.caption(
            f"Attempts {m.total} / decision {format_pct(m.decision_rate)} / effect {format_pct(m.effect_rate)}"
        )

        rows = []
        for skill in SKILLS:
            s = m.by_skill.get(skill)
            if s is None or s.total == 0:
                continue
            rows.append(
                {
                    "Skill": SKILL_LABELS[skill],
                    "Attempts": s.total,
                    "Decision rate": format_pct(s.decision_rate),
                    "Effect rate": format_pct(s.effect_rate),
                }
            )
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)


# -----------------------------------------------------------------------------
# Load
# -----------------------------------------------------------------------------
if "loaded" not in st.session_state:
    st.session_state["loaded"] = None
    st.session_state["load_error"] = None

with st.sidebar:
    st.subheader("Load")
    base_url = st.text_input("Viewer base URL", value=CFG.latest_base_url or "")
    if st.button(f"Read latest ({CFG.latest_name})", type="primary", disabled=not base_url):
        st.session_state["loaded"] = None
        st.session_state["load_error"] = None
        with st.spinner("Loading…"):
            try:
                latest = load_latest(base_url, timeout=CFG.http_timeout)
            except DocumentLoadError as e:
                st.session_state["load_error"] = str(e)
            else:
                st.session_state["loaded"] = latest

    upload = st.file_uploader("Load a JSON file", type=["json"])
    if upload is not None and upload.file_id != st.session_state.get("upload_id"):
        st.session_state["upload_id"] = upload.file_id
        try:
            st.session_state["loaded"] = _parse_upload(upload.getvalue(), upload.name)
            st.session_state["load_error"] = None
        except DocumentLoadError as e:
            st.session_state["loaded"] = None
            st.session_state["load_error"] = str(e)

if st.session_state["load_error"]:
    st.error(st.session_state["load_error"])
    st.stop()

loaded: Optional[LoadedDocument] = st.session_state["loaded"]
if loaded is None:
    st.info(f"Start with “Read latest ({CFG.latest_name})” or “Load a JSON file” in the sidebar.")
    st.stop()

analysis = analyze_document(loaded.raw, CFG)
summary = analysis.summary

# -----------------------------------------------------------------------------
# Overview
# -----------------------------------------------------------------------------
c_src, c_file, c_at = st.columns(3)
c_src.metric("Source", "public/latest.json" if loaded.source == "latest" else "uploaded JSON")
c_file.metric("File", loaded.filename or "-")
c_at.metric("Exported at", _format_date(analysis.exported_at))

c_a, c_b, c_c = st.columns(3)
c_a.metric("Events", f"{summary.total:,}")
c_b.metric("Keys", f"{len(analysis.keybag):,}")
c_c.metric("Types", f"{len(summary.by_type):,}")

if summary.total == 0:
    st.warning(
        "No event-like records were detected.\n\n"
        "The DB layout or field names may differ from what we expect. "
        "Check that latest.json in the viewer repo is not empty."
    )
else:
    t1, t2, t3 = st.columns(3)
    with t1:
        _render_tally("Top types / skills", summary.by_type[:20], "type")
    with t2:
        _render_tally("Top results / outcomes", summary.by_result[:20], "result")
    with t3:
        _render_tally(f"Top players (max {CFG.top_players})", summary.by_player, "player")

with st.expander("Debug: key list", expanded=False):
    st.dataframe(keybag_frame(analysis), hide_index=True, use_container_width=True)

# -----------------------------------------------------------------------------
# Player match stats
# -----------------------------------------------------------------------------
if not analysis.events:
    st.stop()

with st.sidebar:
    st.subheader("Player")
    options: list[Optional[str]] = [None] + [p.id for p in analysis.players]
    names = {p.id: p.name for p in analysis.players}
    player_id = st.selectbox(
        "Player",
        options,
        format_func=lambda pid: "No player (unassigned)" if pid is None else names.get(pid, pid),
    )

    overrides: dict[str, dict[str, float]] = {}
    with st.expander("Weights", expanded=False):
        for skill in SKILLS:
            st.markdown(f"**{SKILL_LABELS[skill]}**")
            row = {}
            for result in RESULTS:
                row[result] = st.slider(
                    result,
                    0.0,
                    1.0,
                    float(DEFAULT_WEIGHTS[skill][result]),
                    0.05,
                    key=f"w_{skill}_{result}",
                )
            overrides[skill] = row

weights = complete_weights(overrides)

st.subheader("Per-match stats")
stats = player_match_stats(analysis, player_id, weights)
if not stats:
    st.caption("No events for this player yet.")
else:
    for m in stats:
        _render_match(m)
