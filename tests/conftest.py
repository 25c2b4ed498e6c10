from datetime import datetime, timedelta, timezone

import pytest

from fantasy_cricket.core.config import Settings
from fantasy_cricket.domain.models import (
    LongTermConfig,
    Match,
    Player,
    QuestionDocument,
    SideBetLibrary,
    SideBetTemplate,
    SideBetTemplateOption,
    Team,
    TournamentDocument,
)
from fantasy_cricket.services.bootstrap import Bootstrap
from fantasy_cricket.services.registry import Registry

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

IND = Team(team_id="IND", name="India", short_name="IND")
PAK = Team(team_id="PAK", name="Pakistan", short_name="PAK")


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kw):
        self.now = self.now + timedelta(**kw)


def make_match(match_id, status="OPEN", lock_in_hours=24):
    return Match(
        match_id=match_id,
        event_id="t20wc_2026",
        team_a=IND,
        team_b=PAK,
        start_time=NOW + timedelta(hours=lock_in_hours, minutes=30),
        lock_time=NOW + timedelta(hours=lock_in_hours),
        status=status,
    )


def make_players():
    return [
        Player(player_id="ind_kohli", name="Virat Kohli", team_id="IND"),
        Player(player_id="ind_sharma", name="Rohit Sharma", team_id="IND"),
        Player(player_id="ind_bumrah", name="Jasprit Bumrah", team_id="IND"),
        Player(player_id="pak_babar", name="Babar Azam", team_id="PAK"),
        Player(player_id="pak_afridi", name="Shaheen Shah Afridi", team_id="PAK"),
        Player(player_id="pak_rizwan", name="Mohammad Rizwan", team_id="PAK"),
    ]


def make_library():
    return SideBetLibrary(templates=[
        SideBetTemplate(
            template_id="toss_winner",
            text="Who will win the toss?",
            options=[
                SideBetTemplateOption(label="{{teamA}}", reference_type="TEAM", reference_id="{{teamAId}}"),
                SideBetTemplateOption(label="{{teamB}}", reference_type="TEAM", reference_id="{{teamBId}}"),
            ],
            tags=["toss", "team"],
        ),
        SideBetTemplate(
            template_id="fifty_scored",
            text="Will any batter score a fifty?",
            type="YES_NO",
            default_points=300,
            options=[SideBetTemplateOption(label="Yes"), SideBetTemplateOption(label="No")],
            tags=["batting"],
        ),
        SideBetTemplate(
            template_id="maiden_over",
            text="Will a maiden over be bowled?",
            type="YES_NO",
            points_wrong=-100,
            options=[SideBetTemplateOption(label="Yes"), SideBetTemplateOption(label="No")],
            tags=["bowling"],
        ),
    ])


def make_docs():
    return Bootstrap(
        tournament=TournamentDocument(
            event_id="t20wc_2026",
            teams=[IND, PAK],
            players=make_players(),
            matches=[make_match("wc_m1"), make_match("wc_m10"), make_match("wc_m11", status="UPCOMING")],
        ),
        questions=QuestionDocument(),
        library=make_library(),
        long_term=LongTermConfig(long_term_lock_at=NOW + timedelta(days=1)),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(event_id="t20wc_2026", early_match_ids=["wc_m1", "wc_m2", "wc_m3"])


@pytest.fixture
def registry(settings, clock):
    return Registry(settings, make_docs(), clock)


@pytest.fixture
def app(registry):
    from fantasy_cricket.main import app as fastapi_app
    fastapi_app.state.registry = registry
    yield fastapi_app
    fastapi_app.state.registry = None
