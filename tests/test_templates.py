from fantasy_cricket.domain.models import MatchBettingConfig
from fantasy_cricket.services.templates import (
    all_tags,
    apply_side_bets,
    build_player_options,
    filter_templates_by_tags,
    generate_standard_pack,
    select_templates,
    side_bets_for_config,
    substitute,
)

from conftest import make_library, make_match, make_players

EARLY = ["wc_m1", "wc_m2", "wc_m3"]
SQUADS = {"IND": ["ind_kohli", "ind_sharma", "ind_bumrah"], "PAK": ["pak_babar", "pak_afridi", "pak_rizwan"]}
PLAYERS = {p.player_id: p for p in make_players()}


def test_early_pack_ignores_config():
    cfg = MatchBettingConfig(player_pick_slots=3, runners_enabled=True, winner_points_x=10)
    pack = generate_standard_pack(make_match("wc_m1"), SQUADS, cfg, early_match_ids=EARLY)
    assert [q.kind for q in pack] == ["WINNER", "TOTAL_RUNS"]
    assert all(q.points == 1000 and q.points_wrong == 0 for q in pack)
    superover = pack[0].option("opt_wc_m1_winner_superover")
    assert superover is not None and superover.weight == 5


def test_early_side_bets_exactly_one_at_fixed_points():
    side = apply_side_bets("wc_m1", make_match("wc_m1"), make_library().templates, count=3,
                           override_points={"toss_winner": 7}, early_match_ids=EARLY)
    assert len(side) == 1
    assert side[0].points == 1000 and side[0].points_wrong == 0


def test_full_pack_slots_and_padding():
    cfg = MatchBettingConfig(player_pick_slots=3, multiplier_preset=[2], runners_enabled=True)
    assert cfg.multiplier_preset == [2, 1, 1]
    pack = generate_standard_pack(make_match("wc_m10"), SQUADS, cfg, players=PLAYERS, early_match_ids=EARLY)
    picks = [q for q in pack if q.kind == "PLAYER_PICK"]
    assert len(picks) == 3
    assert [q.slot.multiplier for q in picks] == [2, 1, 1]
    assert [q.question_id for q in picks] == ["q_wc_m10_player_1", "q_wc_m10_player_2", "q_wc_m10_player_3"]
    assert pack[-1].kind == "RUNNER_PICK"
    assert len(picks[0].options) == 6
    assert picks[0].options[0].option_id == "opt_wc_m10_ind_kohli"
    assert picks[0].options[0].label == "Virat Kohli"


def test_regeneration_is_deterministic():
    a = generate_standard_pack(make_match("wc_m10"), SQUADS, None, early_match_ids=EARLY)
    b = generate_standard_pack(make_match("wc_m10"), SQUADS, None, early_match_ids=EARLY)
    assert [q.model_dump() for q in a] == [q.model_dump() for q in b]


def test_missing_squads_do_not_raise():
    pack = generate_standard_pack(make_match("wc_m10"), None, MatchBettingConfig(player_pick_slots=2),
                                  early_match_ids=EARLY)
    picks = [q for q in pack if q.kind == "PLAYER_PICK"]
    assert len(picks) == 2
    assert all(q.options == [] for q in picks)


def test_player_options_dedupe():
    squads = {"IND": ["ind_kohli", "ind_kohli"], "PAK": ["ind_kohli", "pak_babar"]}
    opts = build_player_options(make_match("wc_m10"), squads)
    assert [o.reference_id for o in opts] == ["ind_kohli", "pak_babar"]


def test_placeholders_substituted():
    m = make_match("wc_m10")
    assert substitute("{{teamA}} vs {{teamB}} ({{teamAId}})", m) == "IND vs PAK (IND)"
    side = apply_side_bets("wc_m10", m, make_library().templates[:1], early_match_ids=EARLY)
    assert [o.label for o in side[0].options] == ["IND", "PAK"]
    assert side[0].options[1].reference_id == "PAK"
    assert side[0].question_id == "q_wc_m10_side_toss_winner"


def test_side_bet_points_precedence():
    lib = make_library().templates
    side = apply_side_bets("wc_m10", make_match("wc_m10"), lib, count=3,
                           override_points={"toss_winner": 50}, default_points=20, early_match_ids=EARLY)
    assert [q.points for q in side] == [50, 300, 20]
    assert side[2].points_wrong == -100


def test_side_bet_count_at_least_one():
    side = apply_side_bets("wc_m10", make_match("wc_m10"), make_library().templates, count=0, early_match_ids=EARLY)
    assert len(side) == 1


def test_library_helpers():
    lib = make_library()
    assert all_tags(lib) == ["batting", "bowling", "team", "toss"]
    assert [t.template_id for t in filter_templates_by_tags(lib, ["bowling", "toss"])] == ["toss_winner", "maiden_over"]
    assert len(filter_templates_by_tags(lib, None)) == 3
    assert [t.template_id for t in select_templates(lib, ["maiden_over", "nope"], 1)] == ["maiden_over"]
    assert [t.template_id for t in select_templates(lib, None, 2)] == ["toss_winner", "fifty_scored"]


def test_side_bets_for_config_uses_config():
    cfg = MatchBettingConfig(side_bet_count=2, side_bet_points_default=25, side_bet_template_ids=["maiden_over"])
    side = side_bets_for_config(make_match("wc_m10"), make_library(), cfg, early_match_ids=EARLY)
    assert [q.template_id for q in side] == ["maiden_over"]
    assert side[0].points == 25
