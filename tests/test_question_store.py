import pytest

from fantasy_cricket.domain.models import MatchBettingConfig, QuestionDocument, QuestionListAdapter
from fantasy_cricket.services.question_store import QuestionStore
from fantasy_cricket.services.templates import apply_side_bets, generate_standard_pack

from conftest import make_library, make_match

EARLY = ["wc_m1"]
SQUADS = {"IND": ["ind_kohli"], "PAK": ["pak_babar"]}


def _standard(mid="wc_m10"):
    return generate_standard_pack(make_match(mid), SQUADS, None, early_match_ids=EARLY)


def _side(mid="wc_m10"):
    return apply_side_bets(mid, make_match(mid), make_library().templates, count=2, early_match_ids=EARLY)


def test_sections_are_independent():
    store = QuestionStore()
    store.save_standard_questions("wc_m10", _standard())
    store.save_side_bet_questions("wc_m10", _side())
    before = [q.model_dump() for q in store.get_standard_questions("wc_m10")]

    # regenerating SIDE leaves STANDARD untouched, and the other way round
    store.save_side_bet_questions("wc_m10", _side()[:1])
    assert [q.model_dump() for q in store.get_standard_questions("wc_m10")] == before
    assert len(store.get_side_bet_questions("wc_m10")) == 1

    store.save_standard_questions("wc_m10", _standard()[:1])
    assert len(store.get_standard_questions("wc_m10")) == 1
    assert len(store.get_side_bet_questions("wc_m10")) == 1


def test_wrong_section_rejected():
    store = QuestionStore()
    with pytest.raises(ValueError):
        store.save_side_bet_questions("wc_m10", _standard())


def test_foreign_match_rejected():
    store = QuestionStore()
    with pytest.raises(ValueError):
        store.save_questions("wc_m11", _standard("wc_m10"))


def test_reads_and_flags():
    store = QuestionStore()
    assert store.get_questions("wc_m10") == []
    assert not store.has_standard_pack("wc_m10")
    store.save_standard_questions("wc_m10", _standard())
    assert store.has_standard_pack("wc_m10")
    assert not store.has_side_bets("wc_m10")
    assert store.get_question("wc_m10", "q_wc_m10_winner").kind == "WINNER"
    assert store.get_question("wc_m10", "nope") is None


def test_config_round_trip_and_snapshot():
    store = QuestionStore()
    store.save_match_config("wc_m10", MatchBettingConfig(player_pick_slots=2))
    store.save_standard_questions("wc_m10", _standard())
    snap = store.snapshot()

    other = QuestionStore(QuestionDocument.model_validate(snap.model_dump(by_alias=True)))
    assert other.get_match_config("wc_m10").player_pick_slots == 2
    assert [q.question_id for q in other.get_questions("wc_m10")] == [q.question_id for q in _standard()]

    store.reset()
    assert store.get_match_config("wc_m10") is None


def test_questions_parse_by_kind():
    raw = [q.model_dump(by_alias=True) for q in _standard() + _side()]
    parsed = QuestionListAdapter.validate_python(raw)
    assert [q.kind for q in parsed] == ["WINNER", "TOTAL_RUNS", "PLAYER_PICK", "SIDE_BET", "SIDE_BET"]
    assert parsed[2].slot.index == 0
