from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from rally_pipeline.config import CFG
from rally_pipeline.io import DocumentLoadError, load_from_path, load_latest
from rally_pipeline.process import analyze_document, player_match_stats, stats_frame, tally_frame
from rally_pipeline.stats import use_system_collation
from rally_pipeline.validate import complete_weights


def main() -> None:
    ap = argparse.ArgumentParser(description="Smoke test: exported JSON -> events -> player match stats.")
    ap.add_argument("--file", default=None, help="Exported JSON file.")
    ap.add_argument(
        "--url",
        default=None,
        help=f"Base URL serving {CFG.latest_name} (defaults to $VOLLEY_VIEWER_BASE_URL when --file is not given).",
    )
    ap.add_argument("--player", default=None, help="Player id to report on.")
    ap.add_argument("--unassigned", action="store_true", help="Report on events with no player.")
    ap.add_argument("--weights", default=None, help="JSON file of {skill: {result: weight}} overrides.")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    use_system_collation()

    url = args.url or (None if args.file else CFG.latest_base_url)
    if bool(args.file) == bool(url):
        raise SystemExit("Provide exactly one of --file or --url")
    if args.player is not None and args.unassigned:
        raise SystemExit("--player and --unassigned are mutually exclusive")

    try:
        doc = load_from_path(args.file) if args.file else load_latest(url)
        overrides = json.loads(Path(args.weights).read_text(encoding="utf-8")) if args.weights else None
        weights = complete_weights(overrides)
    except (DocumentLoadError, ValueError, OSError) as e:
        raise SystemExit(str(e)) from e

    analysis = analyze_document(doc.raw)
    summary = analysis.summary

    print(f"✅ Loaded {doc.filename or '-'} ({doc.source})")
    print(f"exportedAt: {analysis.exported_at or '-'}")
    print(f"keys:       {len(analysis.keybag):,}")
    print(f"events:     {summary.total:,} ({len(analysis.events):,} canonical)")
    print(f"matches:    {len(analysis.matches):,}")
    print(f"players:    {[p.id for p in analysis.players]}")

    if summary.total == 0:
        print("⚠️ No event-like records found. The DB layout or field names may differ from what we expect.")
        return

    for tally, label in [(summary.by_type, "type"), (summary.by_result, "result"), (summary.by_player, "player")]:
        print()
        print(tally_frame(tally[:20], label=label).to_string(index=False))

    if args.player is None and not args.unassigned:
        return

    player_id = None if args.unassigned else args.player
    stats = player_match_stats(analysis, player_id, weights)
    print()
    if not stats:
        print(f"No events for player {player_id if player_id is not None else '(unassigned)'}.")
        return
    print(stats_frame(stats).to_string(index=False, float_format=lambda x: f"{x:.3f}"))


if __name__ == "__main__":
    main()
