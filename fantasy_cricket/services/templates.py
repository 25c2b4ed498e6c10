# fantasy_cricket/services/templates.py
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Mapping, Optional, Sequence

from ..core.config import (
    EARLY_MATCH_POINTS,
    EARLY_MATCH_POINTS_WRONG,
    SUPER_OVER,
    SUPER_OVER_WEIGHT,
    is_early_match,
)
from ..domain.models import (
    Match,
    MatchBettingConfig,
    Option,
    Player,
    PlayerPickQuestion,
    RunnerPickQuestion,
    SideBetLibrary,
    SideBetQuestion,
    SideBetTemplate,
    Slot,
    TotalRunsQuestion,
    WinnerQuestion,
)

log = logging.getLogger(__name__)

WINNER_TEXT = "Who will win the match?"
TOTAL_RUNS_TEXT = "Predict the total runs scored in the match (both innings combined)"

_PLACEHOLDER = re.compile(r"\{\{(teamA|teamB|teamAId|teamBId)\}\}")


# -------------------------------
# Deterministic ids
# -------------------------------
def question_id(match_id: str, suffix: str) -> str:
    return f"q_{match_id}_{suffix}"


def player_option_id(match_id: str, player_id: str) -> str:
    return f"opt_{match_id}_{player_id}"


def winner_option_id(match_id: str, outcome: str) -> str:
    """outcome: teamA | teamB | superover"""
    return f"opt_{match_id}_winner_{outcome}"


# -------------------------------
# Standard pack
# -------------------------------
def generate_standard_pack(
    match: Match,
    squads: Optional[Mapping[str, Sequence[str]]],
    config: Optional[MatchBettingConfig] = None,
    *,
    players: Optional[Mapping[str, Player]] = None,
    early_match_ids: Optional[List[str]] = None,
) -> list:
    """
    Build the STANDARD section for a match.

    Early fixtures always get two questions (Winner with a 5x Super Over
    option, Total Runs) on the fixed 1000/0 scheme and ignore ``config``.
    Every other match gets Winner, Total Runs, one Player Pick per slot and,
    when enabled, a Runner Pick.

    Missing squads never raise; player-pick questions then carry no options.
    """
    mid = match.match_id
    if is_early_match(mid, early_match_ids):
        log.info("match %s is an early fixture; using the fixed two-question pack", mid)
        return [
            _winner_question(match, EARLY_MATCH_POINTS, EARLY_MATCH_POINTS_WRONG, SUPER_OVER_WEIGHT),
            _total_runs_question(match, EARLY_MATCH_POINTS, EARLY_MATCH_POINTS_WRONG),
        ]

    cfg = (config or MatchBettingConfig()).model_copy(deep=True)
    if len(cfg.multiplier_preset) < cfg.player_pick_slots:
        cfg.multiplier_preset += [1] * (cfg.player_pick_slots - len(cfg.multiplier_preset))

    questions: list = [
        _winner_question(match, cfg.winner_points_x, cfg.winner_points_wrong, cfg.super_over_multiplier),
        _total_runs_question(match, cfg.total_runs_points_x, 0),
    ]

    player_options = build_player_options(match, squads, players)
    for i in range(cfg.player_pick_slots):
        multiplier = cfg.multiplier_preset[i]
        text = (
            "Pick your player of the match"
            if cfg.player_pick_slots == 1
            else f"Player pick slot {i + 1} of {cfg.player_pick_slots}"
        )
        questions.append(PlayerPickQuestion(
            question_id=question_id(mid, f"player_{i + 1}"),
            match_id=mid,
            text=text,
            points=cfg.winner_points_x,     # display base; scoring uses fantasy points x multiplier
            slot=Slot(index=i, multiplier=multiplier),
            options=[o.model_copy() for o in player_options],
        ))

    if cfg.runners_enabled:
        rc = cfg.runner_config
        questions.append(RunnerPickQuestion(
            question_id=question_id(mid, "runners"),
            match_id=mid,
            text=f"Select up to {rc.max_runners} runner(s) - {rc.percent:g}% of points pool",
            points=0,
            runner_config=rc.model_copy(),
            options=[],                     # filled from group membership by the caller
        ))

    log.info("generated %d standard question(s) for %s", len(questions), mid)
    return questions


def _winner_question(match: Match, points: int, points_wrong: int, weight: float) -> WinnerQuestion:
    mid = match.match_id
    options = [
        Option(
            option_id=winner_option_id(mid, "teamA"),
            label=match.team_a.display,
            reference_type="TEAM",
            reference_id=match.team_a.team_id,
            weight=1,
        ),
        Option(
            option_id=winner_option_id(mid, "teamB"),
            label=match.team_b.display,
            reference_type="TEAM",
            reference_id=match.team_b.team_id,
            weight=1,
        ),
        Option(
            option_id=winner_option_id(mid, "superover"),
            label="Super Over",
            reference_type="NONE",
            reference_id=SUPER_OVER,
            weight=weight,
        ),
    ]
    return WinnerQuestion(
        question_id=question_id(mid, "winner"),
        match_id=mid,
        text=WINNER_TEXT,
        points=points,
        points_wrong=points_wrong,
        weight=weight,
        options=options,
    )


def _total_runs_question(match: Match, points: int, points_wrong: int) -> TotalRunsQuestion:
    return TotalRunsQuestion(
        question_id=question_id(match.match_id, "total_runs"),
        match_id=match.match_id,
        text=TOTAL_RUNS_TEXT,
        points=points,
        points_wrong=points_wrong,
        options=[],
    )


def build_player_options(
    match: Match,
    squads: Optional[Mapping[str, Sequence[str]]],
    players: Optional[Mapping[str, Player]] = None,
) -> List[Option]:
    """Union of both rosters, team A first; a player listed twice appears once."""
    squads = squads or {}
    players = players or {}
    seen = set()
    options: List[Option] = []
    for team_id in (match.team_a.team_id, match.team_b.team_id):
        for pid in squads.get(team_id) or []:
            if pid in seen:
                continue
            seen.add(pid)
            p = players.get(pid)
            options.append(Option(
                option_id=player_option_id(match.match_id, pid),
                label=p.name if p else pid,
                reference_type="PLAYER",
                reference_id=pid,
            ))
    if not options:
        log.warning("no squad data for %s; player picks will have no options", match.match_id)
    return options


# -------------------------------
# Side bets
# -------------------------------
def substitute(text: Optional[str], match: Match) -> Optional[str]:
    if not text:
        return text
    values = {
        "teamA": match.team_a.display,
        "teamB": match.team_b.display,
        "teamAId": match.team_a.team_id,
        "teamBId": match.team_b.team_id,
    }
    return _PLACEHOLDER.sub(lambda m: values[m.group(1)], text)


def apply_side_bets(
    match_id: str,
    match: Match,
    templates: Sequence[SideBetTemplate],
    count: int = 1,
    override_points: Optional[Mapping[str, int]] = None,
    *,
    default_points: int = 10,
    early_match_ids: Optional[List[str]] = None,
) -> List[SideBetQuestion]:
    """
    Turn up to ``count`` templates (at least one, exactly one for early
    fixtures) into SIDE questions for ``match``.

    Points come from ``override_points[templateId]``, then the template's
    default, then ``default_points``; early fixtures always use 1000/0.
    """
    override_points = override_points or {}
    early = is_early_match(match_id, early_match_ids)
    n = 1 if early else max(1, count)

    questions: List[SideBetQuestion] = []
    for template in list(templates)[:n]:
        if early:
            points, points_wrong = EARLY_MATCH_POINTS, EARLY_MATCH_POINTS_WRONG
        elif template.template_id in override_points:
            points, points_wrong = override_points[template.template_id], template.points_wrong
        elif template.default_points is not None:
            points, points_wrong = template.default_points, template.points_wrong
        else:
            points, points_wrong = default_points, template.points_wrong

        options = [
            Option(
                option_id=f"opt_{match_id}_{template.template_id}_{i + 1}",
                label=substitute(opt.label, match),
                reference_type=opt.reference_type,
                reference_id=substitute(opt.reference_id, match) or None,
            )
            for i, opt in enumerate(template.options)
        ]
        questions.append(SideBetQuestion(
            question_id=question_id(match_id, f"side_{template.template_id}"),
            match_id=match_id,
            type=template.type,
            text=substitute(template.text, match),
            points=points,
            points_wrong=points_wrong,
            template_id=template.template_id,
            tags=list(template.tags),
            options=options,
        ))

    log.info("applied %d side bet(s) to %s", len(questions), match_id)
    return questions


# -------------------------------
# Library helpers
# -------------------------------
def select_templates(
    library: SideBetLibrary,
    template_ids: Optional[Iterable[str]],
    count: int,
) -> List[SideBetTemplate]:
    """Explicit ids (in the given order, unknown ids dropped), else the first ``count``."""
    ids = list(template_ids or [])
    if ids:
        picked = [library.get(tid) for tid in ids]
        missing = [tid for tid, t in zip(ids, picked) if t is None]
        if missing:
            log.warning("unknown side bet template id(s): %s", ", ".join(missing))
        return [t for t in picked if t is not None]
    return list(library.templates[: max(0, count)])


def all_tags(library: SideBetLibrary) -> List[str]:
    tags = set()
    for t in library.templates:
        tags.update(t.tags)
    return sorted(tags)


def filter_templates_by_tags(library: SideBetLibrary, tags: Optional[Iterable[str]]) -> List[SideBetTemplate]:
    wanted = set(tags or [])
    if not wanted:
        return list(library.templates)
    return [t for t in library.templates if wanted.intersection(t.tags)]


def side_bets_for_config(
    match: Match,
    library: SideBetLibrary,
    config: Optional[MatchBettingConfig] = None,
    override_points: Optional[Mapping[str, int]] = None,
    *,
    early_match_ids: Optional[List[str]] = None,
) -> List[SideBetQuestion]:
    """Admin flow: pick templates from the library per config and apply them."""
    cfg = config or MatchBettingConfig()
    templates = select_templates(library, cfg.side_bet_template_ids, max(1, cfg.side_bet_count))
    return apply_side_bets(
        match.match_id,
        match,
        templates,
        cfg.side_bet_count,
        override_points,
        default_points=cfg.side_bet_points_default,
        early_match_ids=early_match_ids,
    )
