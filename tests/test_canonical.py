"""Canonicalization and match resolution tests.

Core question: do loosely-named, multi-vocabulary records map onto the
same canonical skill/result/match/player, and are unmappable ones dropped?
"""

import pytest
from helpers import make_event

from rally_pipeline.canonical import (
    RESULT_SYNONYMS,
    SKILL_SYNONYMS,
    canonicalize_events,
    explicit_match_id,
    get_path,
    normalize_label,
    probe,
    as_identifier,
    pseudo_match_id,
    resolve_player_id,
    resolve_result,
    resolve_skill,
)
from rally_pipeline.schemas import RESULTS, SKILLS


# ─── Synonym tables ───────────────────────────────────────────────

class TestSynonyms:

    def test_every_skill_reachable(self):
        assert set(SKILL_SYNONYMS.values()) == set(SKILLS)

    def test_every_result_reachable(self):
        assert set(RESULT_SYNONYMS.values()) == set(RESULTS)

    @pytest.mark.parametrize("label,skill", [
        ("spike", "spike"), ("ATK", "spike"), ("Attack", "spike"), ("スパイク", "spike"),
        ("serve", "serve"), ("srv", "serve"), ("サーブ", "serve"),
        ("block", "block"), ("blk", "block"), ("ブロック", "block"),
        ("receive", "receive"), ("rec", "receive"), ("dig", "receive"), ("レシーブ", "receive"),
        ("set", "set"), ("toss", "set"), ("トス", "set"),
    ])
    def test_skill_vocabulary(self, label, skill):
        assert resolve_skill({"type": label}) == skill

    @pytest.mark.parametrize("label,result", [
        ("point", "point"), ("kill", "point"), ("ace", "point"), ("#", "point"), ("得点", "point"),
        ("effective", "effective"), ("good", "effective"), ("+", "effective"), ("効果", "effective"),
        ("continue", "continue"), ("inplay", "continue"), ("in play", "continue"),
        ("In-Play", "continue"), ("in_play", "continue"), ("!", "continue"), ("継続", "continue"),
        ("miss", "miss"), ("error", "miss"), ("=", "miss"), ("ミス", "miss"),
    ])
    def test_result_vocabulary(self, label, result):
        assert resolve_result({"result": label}) == result

    def test_full_width_and_padding(self):
        # NFKC folds full-width letters
        assert resolve_skill({"type": "  ＳＰＩＫＥ "}) == "spike"

    def test_bare_dash_is_kept_as_symbol(self):
        assert normalize_label("-") == "-"
        assert normalize_label("in - play") == "inplay"

    def test_unknown_label(self):
        assert resolve_skill({"type": "timeout"}) is None
        assert resolve_result({"result": "maybe"}) is None


# ─── Field probing ────────────────────────────────────────────────

class TestProbe:

    def test_dotted_path(self):
        assert get_path({"match": {"id": "m9"}}, "match.id") == "m9"

    def test_literal_dotted_key_wins(self):
        assert get_path({"match.id": "flat", "match": {"id": "nested"}}, "match.id") == "flat"

    def test_first_accepted_candidate_wins(self):
        rec = {"a": "", "b": None, "c": "yes", "d": "later"}
        assert probe(rec, ["a", "b", "c", "d"], as_identifier) == "yes"

    def test_numbers_stringified(self):
        assert as_identifier(7) == "7"
        assert as_identifier(7.0) == "7"
        assert as_identifier(7.5) == "7.5"

    @pytest.mark.parametrize("v", [True, False, float("nan"), float("inf"), "", "   ", {}, [], None])
    def test_rejected_identifiers(self, v):
        assert as_identifier(v) is None

    def test_non_dict_node(self):
        assert probe(["x"], ["0"], as_identifier) is None

    def test_nested_skill_path(self):
        assert resolve_skill({"event": {"type": "serve"}, "result": "point"}) == "serve"

    def test_first_found_label_decides_even_if_unmapped(self):
        # "type" is found first; "skill" is never consulted
        assert resolve_skill({"type": "rally", "skill": "spike"}) is None


# ─── Player ids ───────────────────────────────────────────────────

class TestPlayerId:

    def test_string(self):
        assert resolve_player_id({"playerId": "A"}) == "A"

    def test_number(self):
        assert resolve_player_id({"player": 12}) == "12"

    def test_nested_object(self):
        assert resolve_player_id({"player": {"id": "p7", "name": "Aoi"}}) == "p7"

    def test_empty_string_is_unassigned(self):
        assert resolve_player_id({"playerId": ""}) is None

    def test_absent_is_unassigned(self):
        assert resolve_player_id({"type": "spike"}) is None


# ─── canonicalize_events ──────────────────────────────────────────

class TestCanonicalizeEvents:

    def test_basic_record(self):
        matches, events = canonicalize_events([make_event()])
        assert [(m.id, m.name) for m in matches] == [("m1", "vs North")]
        e = events[0]
        assert (e.id, e.match_id, e.skill, e.result, e.player_id) == ("ev-1", "m1", "spike", "point", "A")

    def test_synonym_scenario(self):
        _, events = canonicalize_events([make_event(type="atk", result="inplay")])
        assert (events[0].skill, events[0].result) == ("spike", "continue")

    def test_unmappable_records_dropped(self):
        recs = [
            make_event(id="keep"),
            make_event(id="no-result", result=None),
            make_event(id="bad-skill", type="timeout"),
        ]
        _, events = canonicalize_events(recs)
        assert [e.id for e in events] == ["keep"]

    def test_same_id_different_names_fold(self):
        recs = [make_event(matchName="vs North"), make_event(matchName="North (rematch)")]
        matches, events = canonicalize_events(recs)
        assert len(matches) == 1
        assert matches[0].name == "vs North"
        assert {e.match_id for e in events} == {"m1"}

    def test_same_name_without_id_fold(self):
        recs = [make_event(matchId=None, matchName="Cup"), make_event(matchId=None, matchName="Cup")]
        matches, events = canonicalize_events(recs)
        assert len(matches) == 1
        assert matches[0].id == pseudo_match_id("Cup")
        assert events[0].match_id == events[1].match_id == matches[0].id

    def test_explicit_id_never_folds_into_a_name_match(self):
        recs = [make_event(matchId="name:Cup", matchName="Cup"), make_event(matchId=None, matchName="Cup")]
        matches, events = canonicalize_events(recs)
        assert len(matches) == 2
        assert events[0].match_id != events[1].match_id
        assert events[1].match_id == pseudo_match_id("Cup")

    @pytest.mark.parametrize("raw,expected", [("m1", "m1"), ("name:Cup", "id:name:Cup"), ("id:x", "id:id:x")])
    def test_explicit_match_id_escaping(self, raw, expected):
        assert explicit_match_id(raw) == expected

    def test_missing_name_uses_placeholder(self):
        matches, _ = canonicalize_events([make_event(matchId=None, matchName=None)])
        assert matches[0].name == "unnamed"
        assert matches[0].id == pseudo_match_id("unnamed")

    def test_numeric_match_id(self):
        matches, events = canonicalize_events([make_event(matchId=3)])
        assert matches[0].id == "3"
        assert events[0].match_id == "3"

    def test_nested_match_object(self):
        rec = {"type": "serve", "result": "ace", "match": {"id": "x", "name": "Final", "date": "2025-06-01"}}
        matches, _ = canonicalize_events([rec])
        assert (matches[0].id, matches[0].name, matches[0].date_iso) == ("x", "Final", "2025-06-01")

    def test_matches_in_first_seen_order(self):
        recs = [make_event(matchId="b"), make_event(matchId="a"), make_event(matchId="b")]
        matches, _ = canonicalize_events(recs)
        assert [m.id for m in matches] == ["b", "a"]

    def test_record_id_synthesized_from_position(self):
        recs = [make_event(id=None, result="nope"), make_event(id=None)]
        _, events = canonicalize_events(recs)
        # position counts every input record, dropped or not
        assert events[0].id == "e1"

    def test_unassigned_player_is_none(self):
        _, events = canonicalize_events([make_event(playerId=None)])
        assert events[0].player_id is None

    @pytest.mark.parametrize("junk", [None, 1, "x", [], {}, {"type": None, "result": None}])
    def test_junk_records_never_raise(self, junk):
        assert canonicalize_events([junk]) == ([], [])

    def test_order_independent_vocabulary(self):
        a = canonicalize_events([make_event(type="アタック", result="決定")])[1]
        b = canonicalize_events([make_event(type="attack", result="kill")])[1]
        assert a == b
