"""Unit tests for weekly lineup-efficiency calculation."""

import pytest

from lineup_mgmt.calculator import (
    PositionLookup,
    compute_week,
    lineup_slots_for_team,
    roster_search_order,
    team_weeks,
)
from lineup_mgmt.models import (
    InsufficiencyReason,
    InsufficientData,
    OwnerAggregate,
    WeekEfficiencyResult,
    management_percent,
)
from lineup_mgmt.positions import Position
from lineup_mgmt.schemas import (
    CompactPlayer,
    LeagueData,
    MatchupEntry,
    SeasonData,
    TeamHistoricalPlayer,
    TeamStanding,
)
from lineup_mgmt.slots import SlotCategory


def single_team_league(team, entries_by_week, starting_lineup=None, **league_kwargs):
    season = SeasonData(id='2023', teams=[team], matchups_by_week=entries_by_week)
    return LeagueData(
        id='L',
        season='2023',
        seasons=[season],
        starting_lineup=starting_lineup or [],
        **league_kwargs,
    ), season


class TestManagementPercent:
    """Tests for the management percent helper."""

    def test_ratio(self):
        assert management_percent(47.0, 50.0) == pytest.approx(94.0)

    def test_undefined_when_optimal_not_positive(self):
        """Test that a zero or negative optimal has no percent."""
        assert management_percent(5.0, 0.0) is None
        assert management_percent(0.0, -1.0) is None

    def test_result_properties_share_helper(self):
        """Test that model percent properties agree with the helper."""
        result = WeekEfficiencyResult(
            roster_id=1, week=1,
            actual_total=47.0, optimal_total=50.0,
            actual_offense=40.0, optimal_offense=42.0,
            actual_defense=7.0, optimal_defense=0.0,
        )
        assert result.management_percent == pytest.approx(management_percent(47.0, 50.0))
        assert result.offensive_management_percent == pytest.approx(management_percent(40.0, 42.0))
        assert result.defensive_management_percent == 0.0

        agg = OwnerAggregate(owner_id='o', total_points_for=90.0, total_max_points_for=120.0)
        assert agg.management_percent == pytest.approx(75.0)
        assert OwnerAggregate(owner_id='o').management_percent == 0.0


class TestComputeWeekSampleLeague:
    """compute_week against the shared four-team league."""

    def test_full_week(self, league):
        """Test a fully resolved week where the actual lineup was optimal."""
        season = league.seasons[0]
        team = season.team_for_roster(1)
        result = compute_week(team, 1, league, season)

        assert isinstance(result, WeekEfficiencyResult)
        assert result.actual_total == pytest.approx(49.0)
        assert result.optimal_total == pytest.approx(49.0)
        assert result.management_percent == pytest.approx(100.0)
        assert not result.reconciled
        assert not result.low_confidence

    def test_suboptimal_week(self, league):
        """Test week 2, where a TE (6) sat for a WR (4) in the flex."""
        season = league.seasons[0]
        team = season.team_for_roster(1)
        result = compute_week(team, 2, league, season)

        assert result.actual_total == pytest.approx(47.0)
        assert result.optimal_total == pytest.approx(49.0)
        assert result.actual_offense == pytest.approx(42.0)
        assert result.actual_defense == pytest.approx(5.0)
        assert result.optimal_offense == pytest.approx(44.0)
        assert result.optimal_defense == pytest.approx(5.0)
        assert result.actual_position_points['WR'] == pytest.approx(12.0)
        assert result.actual_position_starts['WR'] == 2
        assert 'TE' not in result.actual_position_points
        assert result.assignment.mapping[4] == 'a_te'

    def test_season_looked_up_when_omitted(self, league):
        """Test that the season is found from the team when not passed."""
        team = league.seasons[0].team_for_roster(3)
        result = compute_week(team, 1, league)
        assert result.actual_total == pytest.approx(53.9)

    def test_actual_never_exceeds_optimal(self, league):
        """Test the optimal-bound property for every evaluated team/week."""
        season = league.seasons[0]
        for team in season.teams:
            for week in team_weeks(team, season):
                result = compute_week(team, week, league, season)
                assert isinstance(result, WeekEfficiencyResult)
                assert result.actual_total <= result.optimal_total + 1e-9
                assert result.actual_offense + result.actual_defense == pytest.approx(result.actual_total)

    def test_no_matchup(self, league):
        """Test that a week without an entry or recorded starters is insufficient."""
        season = league.seasons[0]
        team = season.team_for_roster(1)
        result = compute_week(team, 9, league, season)
        assert result == InsufficientData(1, 9, InsufficiencyReason.NO_MATCHUP)

    def test_team_weeks(self, league):
        season = league.seasons[0]
        assert team_weeks(season.team_for_roster(1), season) == [1, 2, 3]


class TestComputeWeekReconciliation:
    """compute_week when per-player data is incomplete."""

    def test_missing_starters_reconcile_to_scalar(self, make_player):
        """Test that a scalar total wins when no starter resolves."""
        team = TeamStanding(
            id='1',
            owner_id='o',
            roster=[
                make_player('p1', 'QB', {1: 25.0}),
                make_player('p2', 'RB', {1: 12.0}),
                make_player('p3', 'WR', {1: 9.0}),
            ],
        )
        entry = MatchupEntry(
            roster_id=1,
            matchup_id=1,
            points=110.4,
            players_points={},
            starters=['s1', 's2', 's3'],
        )
        league, season = single_team_league(team, {1: [entry]}, ['QB', 'RB', 'WR'])

        result = compute_week(team, 1, league, season)

        assert result.actual_total == pytest.approx(110.4)
        assert result.actual_offense == pytest.approx(110.4)
        assert result.actual_defense == 0.0
        assert result.reconciled
        assert not result.split_known
        assert result.low_confidence
        assert result.optimal_total == pytest.approx(46.0)
        assert result.assignment.mapping == {0: 'p1', 1: 'p2', 2: 'p3'}

    def test_unresolved_with_scalar(self):
        """Test that nothing resolved but a scalar total gives an undefined percent."""
        team = TeamStanding(id='1', owner_id='o')
        entry = MatchupEntry(roster_id=1, points=50.0, starters=['ghost'])
        league, season = single_team_league(team, {1: [entry]}, ['QB'])

        result = compute_week(team, 1, league, season)

        assert isinstance(result, WeekEfficiencyResult)
        assert result.actual_total == pytest.approx(50.0)
        assert result.optimal_total == 0
        assert not result.has_management_percent
        assert result.management_percent == 0.0
        assert result.low_confidence

    def test_fully_resolved_ignores_scalar(self, make_player):
        """Test that a mismatched scalar total does not override resolved starters."""
        team = TeamStanding(id='1', owner_id='o', roster=[make_player('p1', 'QB', {1: 25.0})])
        entry = MatchupEntry(roster_id=1, points=999.0, starters=['p1'])
        league, season = single_team_league(team, {1: [entry]}, ['QB'])

        result = compute_week(team, 1, league, season)

        assert result.actual_total == pytest.approx(25.0)
        assert result.actual_offense == pytest.approx(25.0)
        assert not result.reconciled
        assert result.management_percent == pytest.approx(100.0)

    def test_no_scores(self):
        """Test that no scores and no scalar total is insufficient, not a zero week."""
        team = TeamStanding(id='1', owner_id='o')
        entry = MatchupEntry(roster_id=1, starters=['ghost'])
        league, season = single_team_league(team, {1: [entry]}, ['QB'])

        result = compute_week(team, 1, league, season)
        assert result == InsufficientData(1, 1, InsufficiencyReason.NO_SCORES)

    def test_ambiguous_slot_configuration(self, make_player):
        """Test that no lineup, no lineup config and an unusable roster is insufficient."""
        team = TeamStanding(id='1', owner_id='o', roster=[make_player('x', 'DEF', {1: 3.0})])
        entry = MatchupEntry(roster_id=1, points=3.0, starters=['x'])
        league, season = single_team_league(team, {1: [entry]}, ['BN', 'IR'])

        result = compute_week(team, 1, league, season)
        assert result == InsufficientData(1, 1, InsufficiencyReason.AMBIGUOUS_SLOT_CONFIGURATION)

    def test_synthetic_entry_from_recorded_starters(self, make_player):
        """Test that recorded starters stand in for a missing matchup entry."""
        team = TeamStanding(
            id='1',
            owner_id='o',
            roster=[make_player('q', 'QB', {5: 12.0}), make_player('r', 'RB', {4: 30.0})],
            actual_starters_by_week={5: ['q']},
        )
        league, season = single_team_league(team, {}, ['QB', 'RB'])

        result = compute_week(team, 5, league, season)

        assert result.actual_total == pytest.approx(12.0)
        assert result.optimal_total == pytest.approx(12.0)
        assert result.starters == ('q',)


class TestActualCredit:
    """Tests for crediting actual starters to positions."""

    def test_recorded_slot_wins(self, make_player):
        """Test that a recorded flex slot credits by flex preference order."""
        team = TeamStanding(
            id='1',
            owner_id='o',
            roster=[make_player('h', 'WR', alt_positions=['RB'])],
        )
        entry = MatchupEntry(
            roster_id=1,
            starters=['h'],
            players_points={'h': 10.0},
            players_slots={'h': 'FLEX'},
        )
        league, season = single_team_league(team, {1: [entry]}, ['QB', 'FLEX'])

        result = compute_week(team, 1, league, season)
        assert result.actual_position_points == {'RB': 10.0}
        assert result.actual_position_starts == {'RB': 1}

    def test_base_position_without_slot_data(self, make_player):
        """Test that unaligned starters with no slot data credit their base position."""
        team = TeamStanding(
            id='1',
            owner_id='o',
            roster=[make_player('h', 'WR', alt_positions=['RB'])],
        )
        entry = MatchupEntry(roster_id=1, starters=['h'], players_points={'h': 10.0})
        league, season = single_team_league(team, {1: [entry]}, ['QB', 'FLEX'])

        result = compute_week(team, 1, league, season)
        assert result.actual_position_points == {'WR': 10.0}


class TestLineupSlots:
    """Tests for lineup_slots_for_team."""

    def test_league_lineup_first(self, league):
        team = league.seasons[0].team_for_roster(1)
        slots = lineup_slots_for_team(team, league)
        assert [s.token for s in slots] == ['QB', 'RB', 'WR', 'DL', 'FLEX']

    def test_team_lineup_config_fallback(self):
        """Test that the team lineup config is used when the league has none."""
        team = TeamStanding(id='1', owner_id='o', lineup_config={'QB': 1, 'FLEX': 2, 'BN': 5})
        league = LeagueData(id='L')
        slots = lineup_slots_for_team(team, league)
        assert [s.token for s in slots] == ['QB', 'FLEX', 'FLEX']
        assert slots[1].category is SlotCategory.REGULAR_FLEX

    def test_inferred_from_roster(self, make_player):
        """Test inference from roster positions with a per-position cap."""
        roster = [make_player(f'w{i}', 'WR') for i in range(5)] + [make_player('q', 'QB')]
        team = TeamStanding(id='1', owner_id='o', roster=roster)
        slots = lineup_slots_for_team(team, LeagueData(id='L'), cap=2)
        assert [s.token for s in slots] == ['QB', 'WR', 'WR']


class TestLookups:
    """Tests for position lookup and roster search order."""

    def test_position_lookup_order(self, make_player):
        """Test roster, owned, historical, then global cache lookup."""
        team = TeamStanding(id='1', owner_id='o', roster=[make_player('r', 'CB')])
        league = LeagueData(
            id='L',
            owned_players={
                'o1': CompactPlayer(id='o1', position='TE', fantasy_positions=['TE', 'WR']),
                'r': CompactPlayer(id='r', position='QB'),
            },
            team_historical_players={'1': {'h1': TeamHistoricalPlayer(player_id='h1', last_known_position='OLB')}},
        )
        cache = {'g1': CompactPlayer(id='g1', position='K'), 'h1': CompactPlayer(id='h1', position='QB')}
        lookup = PositionLookup(team, league, cache)

        assert lookup.positions('r') == (Position.DB, ())
        assert lookup.positions('o1') == (Position.TE, (Position.TE, Position.WR))
        assert lookup.positions('h1') == (Position.LB, ())
        assert lookup.positions('g1') == (Position.K, ())
        assert lookup.positions('nobody') == (Position.UNKNOWN, ())

    def test_roster_search_order(self, make_player):
        """Test own roster, same-season rosters, then other seasons."""
        own = TeamStanding(id='1', owner_id='a', roster=[make_player('own', 'QB')])
        rival = TeamStanding(id='2', owner_id='b', roster=[make_player('rival', 'QB')])
        past = TeamStanding(id='1', owner_id='a', roster=[make_player('past', 'QB')])
        current = SeasonData(id='2023', teams=[own, rival])
        previous = SeasonData(id='2022', teams=[past])
        league = LeagueData(id='L', seasons=[previous, current])

        rosters = roster_search_order(own, current, league)
        assert [r[0].id for r in rosters] == ['own', 'rival', 'past']
