from datetime import timedelta
from threading import Thread

import pytest

from fantasy_cricket.core.errors import (
    EMPTY_SUBMISSION,
    INSUFFICIENT_POINTS,
    INVALID_ANSWER,
    MISSING_FIELD,
    SUBMISSIONS_LOCKED,
    StateConflict,
    ValidationFailed,
)
from fantasy_cricket.domain.models import LongTermConfig, LongTermQuestion, LongTermResults
from fantasy_cricket.services.long_term import (
    AuditLog,
    LongTermLedger,
    PointsLedger,
    score_long_term,
)

from conftest import NOW, FakeClock

PICKS = {"winnerTeam": "IND", "finalistTeams": ["IND", "AUS"]}


@pytest.fixture
def lt_clock():
    return FakeClock()


@pytest.fixture
def ledger(lt_clock):
    cfg = LongTermConfig(long_term_lock_at=NOW + timedelta(hours=1), reopen_cost_points=50)
    return LongTermLedger("t20wc_2026", cfg, clock=lt_clock)


def _lock_and_reopen(ledger, clock):
    clock.advance(hours=2)
    ledger.set_reopen_enabled(True)


def test_open_submissions_are_free(ledger):
    out = ledger.submit("u1", PICKS)
    assert out["success"] and out["pointsDeducted"] == 0 and out["editCount"] == 0
    out = ledger.submit("u1", {"winnerTeam": "AUS"})
    assert out["editCount"] == 1 and out["pointsDeducted"] == 0
    assert ledger.points.balance("u1") == 1000
    assert len(ledger.audit) == 0
    sub = ledger.get_submission("u1")
    assert sub.answers == {"winnerTeam": "AUS"}
    assert sub.original_submitted_at == NOW


def test_lock_status_transitions(ledger, lt_clock):
    st = ledger.lock_status()
    assert not st["isLocked"] and st["canEdit"] and st["editCost"] == 0

    lt_clock.advance(hours=1)
    st = ledger.lock_status()
    assert st["isLocked"] and not st["isReopened"] and not st["canEdit"]

    ledger.set_reopen_enabled(True)
    st = ledger.lock_status()
    assert st["isReopened"] and st["canEdit"] and st["editCost"] == 50


def test_locked_rejects_before_empty_check(ledger, lt_clock):
    lt_clock.advance(hours=2)
    with pytest.raises(StateConflict) as exc:
        ledger.submit("u1", {})
    assert exc.value.reason == SUBMISSIONS_LOCKED


def test_empty_and_missing_user(ledger):
    with pytest.raises(StateConflict) as exc:
        ledger.submit("u1", {})
    assert exc.value.reason == EMPTY_SUBMISSION
    with pytest.raises(ValidationFailed) as exc:
        ledger.submit("", PICKS)
    assert exc.value.reason == MISSING_FIELD


def test_selection_limit_rejects_before_any_change(lt_clock):
    cfg = LongTermConfig(
        long_term_lock_at=NOW + timedelta(hours=1),
        questions=[LongTermQuestion(question_id="finalistTeams", text="Pick the two finalists", max_selections=2)],
    )
    ledger = LongTermLedger("t20wc_2026", cfg, clock=lt_clock)
    ledger.submit("u1", PICKS)
    _lock_and_reopen(ledger, lt_clock)

    with pytest.raises(ValidationFailed) as exc:
        ledger.submit("u1", {"finalistTeams": ["IND", "AUS", "ENG"]})
    assert exc.value.reason == INVALID_ANSWER
    assert exc.value.details["maxSelections"] == 2
    assert ledger.points.balance("u1") == 1000
    assert len(ledger.audit) == 0
    assert ledger.get_submission("u1").answers == PICKS


def test_paid_edit_deducts_and_audits(ledger, lt_clock):
    ledger.submit("u1", PICKS)
    _lock_and_reopen(ledger, lt_clock)

    out = ledger.submit("u1", {"winnerTeam": "ENG"})
    assert out["pointsDeducted"] == 50
    assert ledger.points.balance("u1") == 950
    txs = ledger.points.transactions("u1")
    assert [(t.type, t.amount, t.balance_after) for t in txs] == [("DEDUCT", 50, 950)]

    entries = ledger.audit.entries("u1")
    assert len(entries) == 1
    assert entries[0].cost == 50
    assert entries[0].details["previousAnswers"] == PICKS
    assert entries[0].details["newAnswers"] == {"winnerTeam": "ENG"}
    assert ledger.get_submission("u1").edit_count == 1


def test_first_submission_during_reopen_is_free(ledger, lt_clock):
    _lock_and_reopen(ledger, lt_clock)
    out = ledger.submit("u2", PICKS)
    assert out["pointsDeducted"] == 0
    assert ledger.points.balance("u2") == 1000


def test_insufficient_points_leaves_everything_untouched(ledger, lt_clock):
    ledger.submit("u1", PICKS)
    ledger.points.set_balance("u1", 30)
    _lock_and_reopen(ledger, lt_clock)
    before = ledger.get_submission("u1")

    with pytest.raises(StateConflict) as exc:
        ledger.submit("u1", {"winnerTeam": "ENG"})
    assert exc.value.reason == INSUFFICIENT_POINTS
    assert ledger.points.balance("u1") == 30
    assert ledger.points.transactions("u1") == []
    assert len(ledger.audit) == 0
    assert ledger.get_submission("u1") == before


def test_concurrent_paid_edits_never_overdraw(ledger, lt_clock):
    ledger.submit("u1", PICKS)
    ledger.points.set_balance("u1", 120)
    _lock_and_reopen(ledger, lt_clock)

    errors = []

    def edit():
        try:
            ledger.submit("u1", {"winnerTeam": "PAK"})
        except StateConflict as e:
            errors.append(e.reason)

    threads = [Thread(target=edit) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert ledger.points.balance("u1") == 20
    assert len(ledger.audit) == 2
    assert errors == [INSUFFICIENT_POINTS] * 3


def test_admin_setters(ledger):
    ledger.set_reopen_cost(75)
    assert ledger.config.reopen_cost_points == 75
    with pytest.raises(ValidationFailed):
        ledger.set_reopen_cost(-1)
    ledger.set_lock_at(NOW - timedelta(minutes=1))
    assert ledger.is_locked()


def test_points_ledger():
    points = PointsLedger()
    assert points.balance("u9") == 1000
    assert points.add("u9", 25, "bonus") == 1025
    assert points.deduct("u9", 1025, "spend") == 0
    with pytest.raises(StateConflict):
        points.deduct("u9", 1, "spend")
    assert [t.type for t in points.transactions("u9")] == ["ADD", "DEDUCT"]


def test_audit_reads_are_copies():
    log = AuditLog()
    rows = log.entries()
    rows.append("junk")
    assert len(log) == 0


def test_scoring_and_reset(ledger):
    ledger.submit("u1", {
        "winnerTeam": "IND",
        "finalistTeams": ["IND", "AUS"],
        "finalFourTeams": ["IND", "AUS", "ENG", "SA"],
        "orangeCapPlayers": ["ind_kohli", "aus_head"],
        "purpleCapPlayers": "ind_bumrah",
    })
    ledger.submit("u2", {"winnerTeam": "PAK"})
    results = LongTermResults(
        winner="IND", finalists=["IND", "PAK"], final_four=["IND", "PAK", "AUS", "ENG"],
        orange_cap="aus_head", purple_cap="pak_afridi",
    )
    scores = ledger.score_all(results)
    # 5000 + 2000 + 3 * 1000 + 3000
    assert scores["u1"].score == 13000
    assert scores["u2"].score == 0
    assert ledger.get_submission("u1").score == 13000

    ledger.reset()
    assert ledger.all_submissions() == {}
    assert len(ledger.audit) == 0


def test_score_long_term_counts_each_team_once():
    cfg = LongTermConfig(long_term_lock_at=NOW)
    s = score_long_term("u1", {"finalistTeams": ["IND", "IND"]}, LongTermResults(finalists=["IND", "PAK"]), cfg)
    assert s.finalist_points == 2000
