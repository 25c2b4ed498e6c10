from __future__ import annotations
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class _Card(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

class BattingLine(_Card):
    name: str
    runs: int = Field(0, ge=0)
    balls: int = Field(0, ge=0)
    fours: int = Field(0, ge=0)
    sixes: int = Field(0, ge=0)

class BowlingLine(_Card):
    name: str
    overs: float = Field(0, ge=0)       # cricket notation: 3.3 = 3 overs 3 balls
    runs: int = Field(0, ge=0)
    wickets: int = Field(0, ge=0)
    hat_trick: bool = False

class Fielding(_Card):
    catches: Dict[str, int] = Field(default_factory=dict)
    stumpings: Dict[str, int] = Field(default_factory=dict)
    run_outs: Dict[str, int] = Field(default_factory=dict)

class Innings(_Card):
    batting: List[BattingLine] = Field(default_factory=list)
    bowling: List[BowlingLine] = Field(default_factory=list)
    fielding: Optional[Fielding] = None

class Scorecard(_Card):
    innings: List[Innings] = Field(..., min_length=1)
    man_of_match: Optional[str] = None
    # optional result fields; when present a MatchResult is recorded as well
    winner: Optional[str] = None
    total_runs: Optional[int] = Field(None, ge=0)
    side_bet_answers: Dict[str, str] = Field(default_factory=dict)

class UnmatchedName(BaseModel):
    name: str
    suggestions: List[str] = Field(default_factory=list)
