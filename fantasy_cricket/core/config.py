# fantasy_cricket/core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# ----- App settings (env-driven) -----
class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CRICKET_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    event_id: str = "t20wc_2026"
    log_level: str = "INFO"

    # Bootstrap documents: local override -> remote base -> packaged copy
    data_base_url: Optional[str] = None
    tournament_path: Optional[str] = None
    questions_path: Optional[str] = None
    side_bet_library_path: Optional[str] = None
    long_term_config_path: Optional[str] = None
    http_timeout_seconds: float = 20.0

    # First fixtures of the tournament run on the fixed two-question pack
    early_match_ids: List[str] = ["wc_m1", "wc_m2", "wc_m3"]

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

# ----- Static tournament metadata -----
STARTING_BALANCE = 1000

EARLY_MATCH_POINTS = 1000
EARLY_MATCH_POINTS_WRONG = 0
SUPER_OVER_WEIGHT = 5
SUPER_OVER = "SUPER_OVER"          # result value recorded for a tie settled by super over

DOCUMENT_NAMES = {
    "tournament":       "tournament.json",
    "questions":        "questions.json",
    "side_bet_library": "side_bet_library.json",
    "long_term_config": "long_term_config.json",
}

def is_early_match(match_id: str, early_ids: Optional[List[str]] = None) -> bool:
    """Early fixtures ignore admin config and get the fixed pack."""
    ids = early_ids if early_ids is not None else get_settings().early_match_ids
    return match_id in ids
