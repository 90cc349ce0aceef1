"""
Schema migration of persisted team records.

Version history of the calculation rules:
    1 -> 2  offense/defense split of actual and optimal points
    2 -> 3  weekly actual lineup points
    3 -> 4  starter position counts and transaction counters
    4 -> 5  unified flex handling and credited positions

A migration pass brings every team record of every league to the current
version in memory, writes all leagues back in one atomic save, wipes legacy
caches and only then advances the stored version. Any failure leaves the
stored version untouched so the next run starts over.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Mapping, Optional

from .aggregator import playoff_start_week
from .calculator import compute_week, team_weeks
from .config import get_inferred_slot_cap, get_schema_version
from .models import WeekEfficiencyResult
from .schemas import CompactPlayer, LeagueData, SeasonData, TeamStanding
from .slots import infer_lineup_config
from .store import LeagueStore

logger = logging.getLogger('lineup_mgmt.migration')

# Guards the stored-version check-and-set across every engine in the process
_MIGRATION_LOCK = threading.Lock()


class MigrationInterrupted(RuntimeError):
    """A migration pass failed partway; the stored version was not advanced."""


@dataclass(frozen=True, order=True)
class SchemaVersion:
    value: int

    @classmethod
    def current(cls) -> 'SchemaVersion':
        return cls(get_schema_version())

    def is_stale(self, current: 'SchemaVersion') -> bool:
        return self < current


def needs_recompute(team: TeamStanding) -> bool:
    """
    True unless the record already carries populated offense/defense derived fields.

    A record with positive offensive and defensive max points and positive
    offensive and defensive management percents is considered complete.
    """
    return not (
        (team.max_offensive_points_for or 0) > 0
        and (team.max_defensive_points_for or 0) > 0
        and (team.offensive_management_percent or 0) > 0
        and (team.defensive_management_percent or 0) > 0
    )


def default_extended_fields(team: TeamStanding) -> TeamStanding:
    """Copy of the record with any missing extended field set to empty/zero."""
    defaults = {
        'lineup_config': lambda: infer_lineup_config(
            [p.position for p in team.roster], get_inferred_slot_cap()
        ),
        'weekly_actual_lineup_points': dict,
        'actual_starters_by_week': dict,
        'actual_starter_position_counts': dict,
        'actual_starter_weeks': lambda: 0,
        'waiver_moves': lambda: 0,
        'faab_spent': lambda: 0.0,
        'trades_completed': lambda: 0,
    }
    update = {
        name: factory()
        for name, factory in defaults.items()
        if getattr(team, name) is None
    }
    return team.model_copy(update=update) if update else team


def recompute_team(
    team: TeamStanding,
    season: SeasonData,
    league: LeagueData,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
) -> TeamStanding:
    """
    Regenerate every derived field of a team record from its matchup history.

    Regular-season weeks are run through compute_week. Weeks without
    sufficient data are skipped; a record with no usable week keeps its
    stored values and only gets extended-field defaults.
    """
    start = playoff_start_week(season)
    results: list[WeekEfficiencyResult] = []
    points_against = 0.0
    opponents_found = 0

    for week in team_weeks(team, season):
        if week >= start:
            continue
        result = compute_week(team, week, league, season, player_cache)
        if not isinstance(result, WeekEfficiencyResult):
            continue
        results.append(result)

        entry = season.entry_for(team.roster_id, week)
        opponent = season.opponent_entry(entry, week) if entry is not None else None
        if opponent is not None and opponent.points is not None:
            points_against += opponent.points
            opponents_found += 1

    if not results:
        return default_extended_fields(team)

    weeks = len(results)
    pf = sum(r.actual_total for r in results)
    max_pf = sum(r.optimal_total for r in results)
    off = sum(r.actual_offense for r in results)
    max_off = sum(r.optimal_offense for r in results)
    dfn = sum(r.actual_defense for r in results)
    max_dfn = sum(r.optimal_defense for r in results)

    position_points: dict[str, float] = {}
    position_starts: dict[str, int] = {}
    for r in results:
        for pos, pts in r.actual_position_points.items():
            position_points[pos] = position_points.get(pos, 0.0) + pts
        for pos, n in r.actual_position_starts.items():
            position_starts[pos] = position_starts.get(pos, 0) + n

    with_starters = [r for r in results if r.starters]

    migrated = default_extended_fields(team)
    return migrated.model_copy(update={
        'points_for': pf,
        'max_points_for': max_pf,
        'management_percent': pf / max_pf * 100 if max_pf > 0 else 0.0,
        'team_points_per_week': pf / weeks,
        'offensive_points_for': off,
        'max_offensive_points_for': max_off,
        'offensive_management_percent': off / max_off * 100 if max_off > 0 else 0.0,
        'average_offensive_ppw': off / weeks,
        'defensive_points_for': dfn,
        'max_defensive_points_for': max_dfn,
        'defensive_management_percent': dfn / max_dfn * 100 if max_dfn > 0 else 0.0,
        'average_defensive_ppw': dfn / weeks,
        'position_averages': {pos: pts / weeks for pos, pts in position_points.items()},
        'individual_position_averages': {
            pos: pts / position_starts[pos]
            for pos, pts in position_points.items()
            if position_starts.get(pos)
        },
        'points_scored_against': points_against if opponents_found else team.points_scored_against,
        'weekly_actual_lineup_points': {r.week: r.actual_total for r in results},
        'actual_starters_by_week': {r.week: list(r.starters) for r in with_starters},
        'actual_starter_position_counts': position_starts,
        'actual_starter_weeks': len(with_starters),
    })


def migrate_team(
    record: TeamStanding,
    from_version: SchemaVersion,
    season: Optional[SeasonData],
    league: LeagueData,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    to_version: Optional[SchemaVersion] = None,
) -> TeamStanding:
    """
    Bring one team record from ``from_version`` to the current rules.

    Records already at the target version are returned as-is. Complete
    records only get missing extended fields defaulted; everything else is
    recomputed from the season's matchup history.
    """
    target = to_version or SchemaVersion.current()
    if not from_version.is_stale(target):
        return record
    if not needs_recompute(record) or season is None:
        return default_extended_fields(record)
    return recompute_team(record, season, league, player_cache)


def migrate_league(
    league: LeagueData,
    from_version: SchemaVersion,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    to_version: Optional[SchemaVersion] = None,
) -> LeagueData:
    """Copy of the league with every team record migrated."""
    seasons = []
    for season in league.seasons:
        teams = [
            migrate_team(team, from_version, season, league, player_cache, to_version)
            for team in season.teams
        ]
        seasons.append(season.model_copy(update={'teams': teams}))
    return league.model_copy(update={'seasons': seasons})


class MigrationEngine:
    """
    Runs the stale -> current transition for one store.

    The version check and the whole pass run under one process-wide lock,
    so concurrent runs never both observe a stale store.
    """

    def __init__(
        self,
        store: LeagueStore,
        current_version: Optional[int] = None,
        player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    ):
        self.store = store
        self.current = SchemaVersion(current_version if current_version is not None else get_schema_version())
        self.player_cache = player_cache

    def run(self) -> bool:
        """
        Migrate the store if it is stale.

        Returns:
            True when the store is current afterwards, False when the pass failed
        """
        with _MIGRATION_LOCK:
            stored = SchemaVersion(self.store.load_schema_version())
            if not stored.is_stale(self.current):
                logger.debug(f'Data at version {stored.value}, no migration needed')
                return True

            logger.info(f'Migrating data from version {stored.value} to {self.current.value}')
            try:
                self._migrate_all(stored)
            except MigrationInterrupted:
                logger.error(
                    f'Migration to version {self.current.value} interrupted; version left at {stored.value}',
                    exc_info=True,
                )
                return False

            logger.info(f'Completed data migration to version {self.current.value}')
            return True

    def _migrate_all(self, stored: SchemaVersion) -> None:
        try:
            player_cache = self.player_cache
            if player_cache is None:
                player_cache = self.store.load_player_cache()
            leagues = [
                migrate_league(league, stored, player_cache, self.current)
                for league in self.store.load_leagues()
            ]
            self.store.save_leagues(leagues)
            self.store.wipe_legacy_caches()
            self.store.save_schema_version(self.current.value)
        except Exception as e:
            raise MigrationInterrupted(f'Migration pass failed: {e}') from e


def migrate(
    store: LeagueStore,
    current_version: Optional[int] = None,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
) -> bool:
    """
    Migrate a store to the current calculation rules, once per version bump.

    Example:
        from lineup_mgmt.migration import migrate
        from lineup_mgmt.store import JsonLeagueStore
        ok = migrate(JsonLeagueStore('data'))
    """
    return MigrationEngine(store, current_version, player_cache).run()
