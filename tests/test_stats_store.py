import pytest

from fantasy_cricket.core.errors import MATCH_SCORED, StateConflict
from fantasy_cricket.domain.models import PlayerMatchStat
from fantasy_cricket.services.stats_store import StatsStore

MID = "wc_m10"


def _stat(pid, **kw):
    return PlayerMatchStat(match_id=MID, player_id=pid, **kw)


def _holders(store):
    return [s.player_id for s in store.stats_for_match(MID) if s.is_man_of_match]


def test_flags_derived_on_save():
    store = StatsStore()
    s = store.save_stat(_stat("ind_kohli", runs=101, wickets=5))
    assert s.has_century and s.has_five_wicket_haul
    s = store.save_stat(_stat("ind_kohli", runs=99, has_century=True))
    assert not s.has_century
    s = store.save_stat(_stat("ind_kohli", runs=99, has_century=True), derive_flags=False)
    assert s.has_century


def test_one_row_per_player():
    store = StatsStore()
    store.save_stat(_stat("ind_kohli", runs=10))
    store.save_stat(_stat("ind_kohli", runs=20))
    assert len(store.stats_for_match(MID)) == 1
    assert store.get_stat(MID, "ind_kohli").runs == 20


def test_mom_is_exclusive():
    store = StatsStore()
    store.save_stats(MID, [_stat("ind_kohli", runs=50), _stat("pak_babar", runs=70)])
    store.toggle_mom(MID, "ind_kohli")
    store.toggle_mom(MID, "pak_babar")
    assert _holders(store) == ["pak_babar"]
    assert store.man_of_match(MID) == "pak_babar"
    # saving a row with the flag moves the award too
    store.save_stat(_stat("ind_kohli", runs=50, is_man_of_match=True))
    assert _holders(store) == ["ind_kohli"]


def test_toggle_holder_clears():
    store = StatsStore()
    store.toggle_mom(MID, "ind_kohli")
    assert store.toggle_mom(MID, "ind_kohli") is None
    assert _holders(store) == []
    assert store.man_of_match(MID) is None


def test_toggle_creates_missing_row():
    store = StatsStore()
    assert store.toggle_mom(MID, "ind_bumrah") == "ind_bumrah"
    row = store.get_stat(MID, "ind_bumrah")
    assert row.is_man_of_match and row.runs == 0
    assert store.fantasy_points(MID) == {"ind_bumrah": 200}


def test_save_stats_rejects_bad_batches():
    store = StatsStore()
    with pytest.raises(ValueError):
        store.save_stats(MID, [PlayerMatchStat(match_id="wc_m11", player_id="x")])
    with pytest.raises(ValueError):
        store.save_stats(MID, [_stat("a", is_man_of_match=True), _stat("b", is_man_of_match=True)])
    assert store.stats_for_match(MID) == []


def test_scored_match_is_frozen():
    store = StatsStore()
    store.save_stat(_stat("ind_kohli", runs=10))
    store.mark_scored(MID)
    assert store.is_scored(MID)
    with pytest.raises(StateConflict) as exc:
        store.save_stat(_stat("ind_kohli", runs=99))
    assert exc.value.reason == MATCH_SCORED
    with pytest.raises(StateConflict):
        store.toggle_mom(MID, "ind_kohli")
    assert store.get_stat(MID, "ind_kohli").runs == 10
