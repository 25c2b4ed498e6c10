from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..domain.models import MatchStatus, PlayerMatchStat, PlayerPick

class _Strict(BaseModel):
    # camelCase on the wire, unknown fields rejected
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

# ----- bets -----
class BetSubmitRequest(_Strict):
    user_id: Optional[str] = None
    match_id: Optional[str] = None
    answers: Dict[str, Union[int, str]] = Field(default_factory=dict)
    player_picks: List[PlayerPick] = Field(default_factory=list)
    side_bet_answers: Dict[str, str] = Field(default_factory=dict)
    runner_picks: List[str] = Field(default_factory=list)

# ----- admin: matches -----
class StatusUpdate(_Strict):
    status: MatchStatus

class SideBetRequest(_Strict):
    template_ids: Optional[List[str]] = None
    count: Optional[int] = Field(default=None, ge=0)
    override_points: Dict[str, int] = Field(default_factory=dict)

class StatsUpload(_Strict):
    stats: List[PlayerMatchStat]
    derive_flags: bool = True

class MomToggle(_Strict):
    player_id: str

class ResultsRequest(_Strict):
    winner: Optional[str] = None
    total_runs: Optional[int] = Field(default=None, ge=0)
    side_bet_answers: Dict[str, str] = Field(default_factory=dict)
    man_of_match: Optional[str] = None
    runner_pool: int = Field(default=0, ge=0)

# ----- long-term -----
class LongTermSubmitRequest(_Strict):
    user_id: Optional[str] = None
    answers: Optional[Dict[str, Any]] = None

class ReopenUpdate(_Strict):
    reopen_enabled: Optional[bool] = None
    reopen_cost_points: Optional[int] = Field(default=None, ge=0)
    long_term_lock_at: Optional[datetime] = None
