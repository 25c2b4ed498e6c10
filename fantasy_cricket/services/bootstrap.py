# fantasy_cricket/services/bootstrap.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..core.config import DOCUMENT_NAMES, Settings
from ..core.http import HttpRetryingClient
from ..domain.models import (
    LongTermConfig,
    QuestionDocument,
    SideBetLibrary,
    TournamentDocument,
)

log = logging.getLogger(__name__)

PACKAGED_DATA = Path(__file__).resolve().parent.parent / "data"

M = TypeVar("M", bound=BaseModel)


def _read_local(path: Path) -> Optional[Any]:
    if not path.is_file():
        return None
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


class DocumentLoader:
    """
    Resolves one bootstrap document at a time:
      explicit local path -> ``data_base_url`` over HTTP -> packaged copy.
    A source that is missing or broken is logged and the next one is tried.
    """

    def __init__(self, settings: Settings, client: Optional[HttpRetryingClient] = None,
                 data_dir: Path = PACKAGED_DATA):
        self.settings = settings
        self.data_dir = data_dir
        self._client = client
        if self._client is None and settings.data_base_url:
            self._client = HttpRetryingClient(settings.data_base_url, timeout=settings.http_timeout_seconds)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def raw(self, key: str) -> Optional[Any]:
        name = DOCUMENT_NAMES[key]

        override = getattr(self.settings, f"{key}_path", None)
        if override:
            try:
                data = _read_local(Path(override))
                if data is not None:
                    log.info("loaded %s from %s", name, override)
                    return data
                log.warning("%s not found at %s", name, override)
            except (OSError, json.JSONDecodeError) as e:
                log.warning("could not read %s from %s: %s", name, override, e)

        if self._client is not None:
            try:
                data = self._client.get_json(name)
                log.info("fetched %s from %s", name, self._client.url_for(name))
                return data
            except (httpx.HTTPError, json.JSONDecodeError) as e:
                log.warning("could not fetch %s: %s", name, e)

        try:
            return _read_local(self.data_dir / name)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("packaged %s unreadable: %s", name, e)
            return None

    def load(self, key: str, model: type[M], default: Callable[[], M]) -> M:
        data = self.raw(key)
        if data is None:
            log.warning("no %s document; starting empty", key)
            return default()
        try:
            return model.model_validate(data)
        except ValidationError as e:
            log.warning("%s document is invalid (%d error(s)); starting empty", key, e.error_count())
            return default()


def _first_match_start(tournament: TournamentDocument) -> datetime:
    starts = [m.start_time for m in tournament.matches if m.start_time is not None]
    # no fixtures at all: treat long-term picks as already closed
    return min(starts) if starts else datetime(1970, 1, 1, tzinfo=timezone.utc)


class Bootstrap(BaseModel):
    tournament: TournamentDocument
    questions: QuestionDocument
    library: SideBetLibrary
    long_term: LongTermConfig


def load_documents(settings: Settings, client: Optional[HttpRetryingClient] = None,
                   data_dir: Path = PACKAGED_DATA) -> Bootstrap:
    loader = DocumentLoader(settings, client, data_dir)
    try:
        tournament = loader.load(
            "tournament", TournamentDocument,
            lambda: TournamentDocument(event_id=settings.event_id),
        )
        questions = loader.load("questions", QuestionDocument, QuestionDocument)
        library = loader.load("side_bet_library", SideBetLibrary, SideBetLibrary)
        long_term = loader.load(
            "long_term_config", LongTermConfig,
            lambda: LongTermConfig(long_term_lock_at=_first_match_start(tournament)),
        )
    finally:
        if client is None:
            loader.close()
    return Bootstrap(tournament=tournament, questions=questions, library=library, long_term=long_term)
