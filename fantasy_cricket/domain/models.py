from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

Section = Literal["STANDARD", "SIDE"]
QuestionKind = Literal["WINNER", "TOTAL_RUNS", "PLAYER_PICK", "RUNNER_PICK", "SIDE_BET"]
ReferenceType = Literal["TEAM", "PLAYER", "NONE"]
SideBetType = Literal["YES_NO", "MULTI_CHOICE"]
MatchStatus = Literal["UPCOMING", "OPEN", "LOCKED", "SCORED"]


class _Camel(BaseModel):
    # JSON documents use camelCase keys; python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Frozen(_Camel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------- tournament ----------
class Team(_Camel):
    team_id: str
    name: str
    short_name: Optional[str] = None

    @property
    def display(self) -> str:
        return self.short_name or self.name


class Player(_Camel):
    player_id: str
    name: str
    team_id: str
    role: Optional[str] = None


class Match(_Camel):
    match_id: str
    event_id: Optional[str] = None
    team_a: Team
    team_b: Team
    start_time: Optional[datetime] = None
    lock_time: Optional[datetime] = None
    status: MatchStatus = "UPCOMING"


# ---------- questions ----------
class Option(_Camel):
    option_id: str
    label: str
    reference_type: ReferenceType = "NONE"
    reference_id: Optional[str] = None
    weight: Optional[float] = None      # e.g. 5 for the Super Over outcome


class Slot(_Camel):
    index: int = Field(..., ge=0)
    multiplier: float = Field(1, ge=0)


class RunnerConfig(_Camel):
    max_runners: int = Field(2, ge=0)
    percent: float = Field(10, ge=0, le=100)


class _QuestionBase(_Camel):
    question_id: str
    match_id: str
    section: Section = "STANDARD"
    text: str
    points: int = 0
    points_wrong: int = 0
    options: List[Option] = Field(default_factory=list)
    disabled: bool = False

    @model_validator(mode="after")
    def _unique_option_ids(self):
        seen = set()
        for opt in self.options:
            if opt.option_id in seen:
                raise ValueError(f"duplicate optionId {opt.option_id!r} in question {self.question_id!r}")
            seen.add(opt.option_id)
        return self

    def option(self, option_id: str) -> Optional[Option]:
        for opt in self.options:
            if opt.option_id == option_id:
                return opt
        return None


class WinnerQuestion(_QuestionBase):
    kind: Literal["WINNER"] = "WINNER"
    type: Literal["TEAM_PICK"] = "TEAM_PICK"
    weight: float = 5
    options: List[Option] = Field(..., min_length=1)


class TotalRunsQuestion(_QuestionBase):
    kind: Literal["TOTAL_RUNS"] = "TOTAL_RUNS"
    type: Literal["NUMERIC_INPUT"] = "NUMERIC_INPUT"


class PlayerPickQuestion(_QuestionBase):
    kind: Literal["PLAYER_PICK"] = "PLAYER_PICK"
    type: Literal["PLAYER_PICK"] = "PLAYER_PICK"
    slot: Slot


class RunnerPickQuestion(_QuestionBase):
    kind: Literal["RUNNER_PICK"] = "RUNNER_PICK"
    type: Literal["RUNNER_PICK"] = "RUNNER_PICK"
    runner_config: RunnerConfig = Field(default_factory=RunnerConfig)


class SideBetQuestion(_QuestionBase):
    kind: Literal["SIDE_BET"] = "SIDE_BET"
    section: Section = "SIDE"
    type: SideBetType = "MULTI_CHOICE"
    template_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    options: List[Option] = Field(..., min_length=1)


Question = Annotated[
    Union[WinnerQuestion, TotalRunsQuestion, PlayerPickQuestion, RunnerPickQuestion, SideBetQuestion],
    Field(discriminator="kind"),
]
QuestionListAdapter: TypeAdapter = TypeAdapter(List[Question])


# ---------- admin configuration ----------
class MatchBettingConfig(_Camel):
    winner_points_x: int = Field(10, ge=0)
    winner_points_wrong: int = 0
    super_over_multiplier: float = Field(5, ge=1)
    total_runs_points_x: int = Field(10, ge=0)
    player_pick_slots: int = Field(1, ge=0)
    multiplier_preset: List[float] = Field(default_factory=lambda: [1])
    runners_enabled: bool = False
    runner_config: RunnerConfig = Field(default_factory=RunnerConfig)
    side_bet_count: int = Field(1, ge=0)
    side_bet_points_default: int = 10
    side_bet_template_ids: Optional[List[str]] = None  # None = auto-pick

    @model_validator(mode="after")
    def _pad_multipliers(self):
        missing = self.player_pick_slots - len(self.multiplier_preset)
        if missing > 0:
            self.multiplier_preset = list(self.multiplier_preset) + [1] * missing
        return self


class SideBetTemplateOption(_Camel):
    label: str
    reference_type: ReferenceType = "NONE"
    reference_id: Optional[str] = None


class SideBetTemplate(_Camel):
    template_id: str
    text: str
    type: SideBetType = "MULTI_CHOICE"
    default_points: Optional[int] = None
    points_wrong: int = 0
    options: List[SideBetTemplateOption] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class SideBetLibrary(_Camel):
    templates: List[SideBetTemplate] = Field(default_factory=list)

    def get(self, template_id: str) -> Optional[SideBetTemplate]:
        return next((t for t in self.templates if t.template_id == template_id), None)


# ---------- results & stats ----------
class PlayerMatchStat(_Camel):
    match_id: str
    player_id: str
    runs: int = Field(0, ge=0)
    balls_faced: int = Field(0, ge=0)
    fours: int = Field(0, ge=0)
    sixes: int = Field(0, ge=0)
    wickets: int = Field(0, ge=0)
    overs_bowled: float = Field(0, ge=0)     # decimal overs (3.3 in cricket notation -> 3.5)
    runs_conceded: int = Field(0, ge=0)
    catches: int = Field(0, ge=0)
    run_outs: int = Field(0, ge=0)
    stumpings: int = Field(0, ge=0)
    has_century: bool = False
    has_five_wicket_haul: bool = False
    has_hat_trick: bool = False
    is_man_of_match: bool = False


class MatchResult(_Camel):
    match_id: str
    winner: Optional[str] = None            # winning optionId, team code or SUPER_OVER
    total_runs: Optional[int] = Field(None, ge=0)
    side_bet_answers: Dict[str, str] = Field(default_factory=dict)
    man_of_match: Optional[str] = None
    runner_pool: int = 0                    # derived externally
    completed_at: Optional[datetime] = None


# ---------- bets ----------
class PlayerPick(_Camel):
    slot: int = Field(..., ge=0)
    player_id: str


class Bet(_Camel):
    bet_id: str
    user_id: str
    match_id: str
    answers: Dict[str, Union[int, str]] = Field(default_factory=dict)
    player_picks: List[PlayerPick] = Field(default_factory=list)
    side_bet_answers: Dict[str, str] = Field(default_factory=dict)
    runner_picks: List[str] = Field(default_factory=list)
    submitted_at: datetime
    is_locked: bool = False
    locked_at: Optional[datetime] = None
    score: Optional[int] = None
    winner_points: Optional[int] = None
    total_runs_points: Optional[int] = None
    player_pick_points: Optional[int] = None
    side_bet_points: Optional[int] = None
    runner_points: Optional[int] = None


class QuestionScore(_Camel):
    question_id: str
    kind: QuestionKind
    answer: Any = None
    points: int = 0
    is_correct: bool = False
    multiplier: Optional[float] = None


class BetScore(_Camel):
    bet_id: str
    user_id: str
    match_id: str
    winner_points: int = 0
    total_runs_points: int = 0
    player_pick_points: int = 0
    side_bet_points: int = 0
    runner_points: int = 0
    breakdown: List[QuestionScore] = Field(default_factory=list)

    @property
    def score(self) -> int:
        return (self.winner_points + self.total_runs_points + self.player_pick_points
                + self.side_bet_points + self.runner_points)


# ---------- long-term ----------
class LongTermQuestion(_Camel):
    question_id: str
    text: str
    type: str = "TEAM_PICK"
    points: int = 0
    max_selections: Optional[int] = None
    options: List[Option] = Field(default_factory=list)


class LongTermConfig(_Camel):
    long_term_lock_at: datetime
    reopen_enabled: bool = False
    reopen_cost_points: int = Field(50, ge=0)
    questions: List[LongTermQuestion] = Field(default_factory=list)
    winner_points: int = 5000
    finalist_points: int = 2000
    final_four_points: int = 1000
    orange_cap_points: int = 3000
    purple_cap_points: int = 3000


class LongTermSubmission(_Camel):
    user_id: str
    event_id: str
    answers: Dict[str, Any]
    submitted_at: datetime
    original_submitted_at: datetime
    is_locked: bool = False
    edit_count: int = 0
    score: Optional[int] = None


class LongTermResults(_Camel):
    winner: Optional[str] = None
    finalists: List[str] = Field(default_factory=list)
    final_four: List[str] = Field(default_factory=list)
    orange_cap: Optional[str] = None
    purple_cap: Optional[str] = None


class LongTermScore(_Camel):
    user_id: str
    winner_points: int = 0
    finalist_points: int = 0
    final_four_points: int = 0
    orange_cap_points: int = 0
    purple_cap_points: int = 0

    @property
    def score(self) -> int:
        return (self.winner_points + self.finalist_points + self.final_four_points
                + self.orange_cap_points + self.purple_cap_points)


class LedgerTransaction(_Frozen):
    ts: datetime
    type: Literal["ADD", "DEDUCT"]
    amount: int = Field(..., ge=0)
    reason: str
    balance_after: int = Field(..., ge=0)


class PointsLedgerEntry(_Camel):
    user_id: str
    balance: int = Field(..., ge=0)
    transactions: List[LedgerTransaction] = Field(default_factory=list)


class AuditEntry(_Frozen):
    user_id: str
    ts: datetime
    action: str
    cost: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)


# ---------- bootstrap documents ----------
class QuestionDocument(_Camel):
    questions_by_match: Dict[str, List[Question]] = Field(default_factory=dict)
    configs_by_match: Dict[str, MatchBettingConfig] = Field(default_factory=dict)


class TournamentDocument(_Camel):
    event_id: str
    name: Optional[str] = None
    teams: List[Team] = Field(default_factory=list)
    players: List[Player] = Field(default_factory=list)
    matches: List[Match] = Field(default_factory=list)
