"""Shared fixtures: a small four-team league with two regular weeks and one playoff week."""

import pytest

from lineup_mgmt.config import clear_config_cache
from lineup_mgmt.schemas import (
    LeagueData,
    MatchupEntry,
    Player,
    SeasonData,
    TeamStanding,
    WeeklyScore,
)

# player key -> (position, base points); each team scales the base points
BASE_PLAYERS = {
    'qb': ('QB', 20.0),
    'rb': ('RB', 10.0),
    'wr': ('WR', 8.0),
    'dl': ('DL', 5.0),
    'te': ('TE', 6.0),
    'wr2': ('WR', 4.0),
}
DEFAULT_STARTERS = ['qb', 'rb', 'wr', 'dl', 'te']
TEAMS = {
    1: ('a', 'owner_a', 'Alpha', 1.0),
    2: ('b', 'owner_b', 'Bravo', 0.9),
    3: ('c', 'owner_c', 'Charlie', 1.1),
    4: ('d', 'owner_d', 'Delta', 0.8),
}


def team_points(roster_id: int) -> dict[str, float]:
    prefix, _, _, factor = TEAMS[roster_id]
    return {f'{prefix}_{key}': round(points * factor, 2) for key, (_, points) in BASE_PLAYERS.items()}


def matchup_entry(roster_id: int, matchup_id: int, starter_keys=None) -> MatchupEntry:
    prefix = TEAMS[roster_id][0]
    points = team_points(roster_id)
    starters = [f'{prefix}_{key}' for key in (starter_keys or DEFAULT_STARTERS)]
    return MatchupEntry(
        roster_id=roster_id,
        matchup_id=matchup_id,
        points=round(sum(points[s] for s in starters), 2),
        players_points=points,
        starters=starters,
        players=list(points),
    )


def build_team(roster_id: int) -> TeamStanding:
    prefix, owner_id, name, _ = TEAMS[roster_id]
    roster = [Player(id=f'{prefix}_{key}', position=pos) for key, (pos, _) in BASE_PLAYERS.items()]
    return TeamStanding(
        id=str(roster_id),
        name=name,
        owner_id=owner_id,
        roster=roster,
        league_standing=roster_id,
        waiver_moves=roster_id,
        faab_spent=10.0 * roster_id,
        trades_completed=1,
    )


def build_league(weeks=(1, 2, 3)) -> LeagueData:
    """
    Week 1: Alpha beats Bravo, Charlie beats Delta.
    Week 2: Alpha benches its TE for WR2 and loses to Charlie; Bravo beats Delta.
    Week 3 (final): Alpha beats Bravo; Charlie beats Delta in matchup 2.
    """
    all_weeks = {
        1: [matchup_entry(1, 1), matchup_entry(2, 1), matchup_entry(3, 2), matchup_entry(4, 2)],
        2: [
            matchup_entry(1, 1, ['qb', 'rb', 'wr', 'dl', 'wr2']),
            matchup_entry(3, 1),
            matchup_entry(2, 2),
            matchup_entry(4, 2),
        ],
        3: [matchup_entry(1, 1), matchup_entry(2, 1), matchup_entry(3, 2), matchup_entry(4, 2)],
    }
    season = SeasonData(
        id='2023',
        teams=[build_team(rid) for rid in TEAMS],
        playoff_start_week=3,
        playoff_teams_count=2,
        matchups_by_week={w: all_weeks[w] for w in weeks},
    )
    return LeagueData(
        id='L1',
        name='Test League',
        season='2023',
        seasons=[season],
        starting_lineup=['QB', 'RB', 'WR', 'DL', 'FLEX', 'BN', 'BN'],
    )


@pytest.fixture(autouse=True)
def fresh_config():
    """Reload engine config around every test."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def league():
    return build_league()


@pytest.fixture
def league_factory():
    return build_league


@pytest.fixture
def make_player():
    """Factory for roster players with optional {week: points} scores."""
    def _make(player_id, position, scores=None, alt_positions=None):
        return Player(
            id=player_id,
            position=position,
            alt_positions=alt_positions or [],
            weekly_scores=[WeeklyScore(week=w, points=p) for w, p in (scores or {}).items()],
        )
    return _make
