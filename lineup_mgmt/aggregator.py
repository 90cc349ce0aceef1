"""
Season and all-time aggregation per owner identity.

Owner aggregates are always rebuilt from scratch from compute_week outputs;
nothing here patches a previously built aggregate.
"""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Mapping, Optional

from .calculator import compute_week, team_weeks
from .config import get_default_playoff_start_week, get_default_playoff_teams, get_max_workers
from .models import (
    H2HMatchDetail,
    H2HStats,
    InsufficientData,
    OwnerAggregate,
    PlayoffStats,
    WeekEfficiencyResult,
)
from .schemas import CompactPlayer, LeagueData, MatchupEntry, SeasonData, TeamStanding

logger = logging.getLogger('lineup_mgmt.aggregator')


def playoff_start_week(season: SeasonData) -> int:
    return season.playoff_start_week or get_default_playoff_start_week()


def playoff_teams_count(season: SeasonData) -> int:
    return season.playoff_teams_count or get_default_playoff_teams()


def bracket_weeks(season: SeasonData) -> list[int]:
    """Main-bracket weeks: one per elimination round from the playoff start."""
    teams = playoff_teams_count(season)
    rounds = math.ceil(math.log2(teams)) if teams > 1 else 0
    start = playoff_start_week(season)
    return list(range(start, start + rounds))


def _entry_points(entry: MatchupEntry, result: Optional[WeekEfficiencyResult]) -> float:
    """Matchup points: the entry's scalar total, else the computed actual total."""
    if entry.points is not None:
        return entry.points
    if result is not None:
        return result.actual_total
    return 0.0


def _matchup_points(
    entry: MatchupEntry,
    week: int,
    league: LeagueData,
    season: SeasonData,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    tolerance: Optional[float] = None,
) -> tuple[float, Optional[WeekEfficiencyResult]]:
    """
    Points for any side of a pairing, with the team's computed week.

    Entries without a scalar total fall back to the computed actual total,
    so a pairing is never decided against a side that only carries a
    per-player points map.
    """
    result = None
    team = season.team_for_roster(entry.roster_id)
    if team is not None:
        outcome = compute_week(team, week, league, season, player_cache, tolerance)
        if isinstance(outcome, WeekEfficiencyResult):
            result = outcome
    return _entry_points(entry, result), result


def _parse_record(record: Optional[str]) -> tuple[int, int, int]:
    """Parse a 'W-L' or 'W-L-T' record string; malformed input counts as 0-0-0."""
    if not record:
        return 0, 0, 0
    parts = record.strip().split('-')
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return 0, 0, 0
    if len(numbers) == 2:
        return numbers[0], numbers[1], 0
    if len(numbers) == 3:
        return numbers[0], numbers[1], numbers[2]
    return 0, 0, 0


# Championships

def compute_season_champion(
    season: SeasonData,
    league: LeagueData,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
) -> tuple[Optional[int], Optional[str]]:
    """
    Determine a season's champion from its final bracket week.

    Pairings of the last bracket week present in the matchups are grouped
    by matchup id and visited in id order; the winner of the first pairing
    with two entries and unequal points is the champion.

    Returns:
        (winning roster id, winning owner id); either may be None
    """
    weeks = set(bracket_weeks(season)) & set((season.matchups_by_week or {}).keys())
    if not weeks:
        logger.debug(f'Season {season.id}: no playoff weeks present')
        return None, None

    final_week = max(weeks)
    groups: dict[int, list[MatchupEntry]] = {}
    synthetic = -1
    for entry in season.entries_for_week(final_week):
        if entry.matchup_id is not None:
            groups.setdefault(entry.matchup_id, []).append(entry)
        else:
            groups[synthetic] = [entry]
            synthetic -= 1

    for _, group in sorted(groups.items()):
        if len(group) != 2:
            continue
        a, b = group
        pts_a, _ = _matchup_points(a, final_week, league, season, player_cache)
        pts_b, _ = _matchup_points(b, final_week, league, season, player_cache)
        if pts_a == pts_b:
            continue
        winner = a.roster_id if pts_a > pts_b else b.roster_id
        team = season.team_for_roster(winner)
        return winner, team.owner_id if team else None

    logger.debug(f'Season {season.id}: no decided final pairing')
    return None, None


def recompute_championships(league: LeagueData) -> tuple[dict[str, Optional[str]], dict[str, int]]:
    """
    Recompute every season's champion.

    Returns:
        (season id -> champion owner id, owner id -> championship count)
    """
    season_champions: dict[str, Optional[str]] = {}
    counts: dict[str, int] = {}
    for season in league.sorted_seasons():
        _, owner_id = compute_season_champion(season, league)
        season_champions[season.id] = owner_id
        if owner_id:
            counts[owner_id] = counts.get(owner_id, 0) + 1
    return season_champions, counts


def apply_championships(league: LeagueData) -> LeagueData:
    """Copy of the league with computed champions filled in."""
    season_champions, counts = recompute_championships(league)
    seasons = [
        s.model_copy(update={'computed_champion_owner_id': season_champions.get(s.id)})
        for s in league.seasons
    ]
    return league.model_copy(update={'seasons': seasons, 'computed_championships': counts})


# Playoffs

def playoff_stats_for_owner(
    owner_id: str,
    league: LeagueData,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    tolerance: Optional[float] = None,
) -> PlayoffStats:
    """
    Playoff sub-record for an owner across all seasons.

    Only seasons where the owner's team was seeded count. Bracket weeks are
    walked in order and included up to and including the first loss.
    """
    stats = PlayoffStats()

    for season in league.sorted_seasons():
        team = season.team_for_owner(owner_id)
        if team is None:
            continue
        if not (0 < team.league_standing <= playoff_teams_count(season)):
            continue

        season_weeks = 0
        season_losses = 0
        for week in bracket_weeks(season):
            entry = season.entry_for(team.roster_id, week)
            if entry is None:
                continue
            result = compute_week(team, week, league, season, player_cache, tolerance)
            ok = result if isinstance(result, WeekEfficiencyResult) else None

            stats.points_for += _entry_points(entry, ok)
            if ok is not None:
                stats.max_points_for += ok.optimal_total
                stats.offensive_points_for += ok.actual_offense
                stats.max_offensive_points_for += ok.optimal_offense
                stats.defensive_points_for += ok.actual_defense
                stats.max_defensive_points_for += ok.optimal_defense
            stats.weeks += 1
            season_weeks += 1

            opponent = season.opponent_entry(entry, week)
            if opponent is None:
                continue
            mine = _entry_points(entry, ok)
            theirs, _ = _matchup_points(opponent, week, league, season, player_cache, tolerance)
            if mine > theirs:
                stats.wins += 1
            elif mine < theirs:
                stats.losses += 1
                season_losses += 1
                break

        if season_weeks > 0 and season_losses == 0:
            stats.is_champion = True

    return stats


# Owner aggregate

def _add_h2h(
    agg: OwnerAggregate,
    season: SeasonData,
    league: LeagueData,
    entry: MatchupEntry,
    result: WeekEfficiencyResult,
    week: int,
    player_cache: Optional[Mapping[str, CompactPlayer]],
    tolerance: Optional[float],
) -> Optional[float]:
    """Record the week's game in wins/losses and head-to-head; return opponent points."""
    opponent = season.opponent_entry(entry, week)
    if opponent is None:
        return None

    opp_team = season.team_for_roster(opponent.roster_id)
    opp_points, opp_result = _matchup_points(opponent, week, league, season, player_cache, tolerance)
    my_points = _entry_points(entry, result)

    if my_points > opp_points:
        agg.wins += 1
    elif my_points < opp_points:
        agg.losses += 1
    else:
        agg.ties += 1

    if opp_team is None or opp_team.owner_id == agg.owner_id:
        return opp_points

    stats = agg.head_to_head.setdefault(opp_team.owner_id, H2HStats())
    opp_mgmt = opp_result.management_percent if opp_result else 0.0
    letter = stats.add_game(my_points, opp_points, result.management_percent, opp_mgmt)
    agg.head_to_head_details.setdefault(opp_team.owner_id, []).append(H2HMatchDetail(
        season_id=season.id,
        week=week,
        matchup_id=entry.matchup_id if entry.matchup_id is not None else -1,
        user_roster_id=entry.roster_id,
        opp_roster_id=opponent.roster_id,
        user_points=my_points,
        opp_points=opp_points,
        user_max=result.optimal_total,
        opp_max=opp_result.optimal_total if opp_result else 0.0,
        user_mgmt_pct=result.management_percent,
        opp_mgmt_pct=opp_mgmt,
        result=letter,
    ))
    return opp_points


def _accumulate_season(
    agg: OwnerAggregate,
    season: SeasonData,
    team: TeamStanding,
    league: LeagueData,
    player_cache: Optional[Mapping[str, CompactPlayer]],
    tolerance: Optional[float],
) -> None:
    start = playoff_start_week(season)
    games_before = agg.wins + agg.losses + agg.ties

    for week in team_weeks(team, season):
        if week >= start:
            continue
        result = compute_week(team, week, league, season, player_cache, tolerance)
        if isinstance(result, InsufficientData):
            agg.insufficient_weeks += 1
            logger.warning(
                f'Skipping {season.id} week {week} for owner {agg.owner_id}: {result.reason.value}'
            )
            continue

        agg.weeks_played += 1
        agg.total_points_for += result.actual_total
        agg.total_max_points_for += result.optimal_total
        agg.total_offensive_points_for += result.actual_offense
        agg.total_max_offensive_points_for += result.optimal_offense
        agg.total_defensive_points_for += result.actual_defense
        agg.total_max_defensive_points_for += result.optimal_defense

        for pos, points in result.actual_position_points.items():
            agg.position_totals[pos] = agg.position_totals.get(pos, 0.0) + points
        for pos, starts in result.actual_position_starts.items():
            agg.position_start_counts[pos] = agg.position_start_counts.get(pos, 0) + starts

        entry = season.entry_for(team.roster_id, week)
        if entry is not None:
            opp_points = _add_h2h(agg, season, league, entry, result, week, player_cache, tolerance)
            if opp_points is not None:
                agg.total_points_against += opp_points

    # No matchup-derived games this season: fall back to the stored record
    if agg.wins + agg.losses + agg.ties == games_before:
        wins, losses, ties = _parse_record(team.win_loss_record)
        agg.wins += wins
        agg.losses += losses
        agg.ties += ties

    agg.waiver_moves += team.waiver_moves or 0
    agg.faab_spent += team.faab_spent or 0.0
    agg.trades_completed += team.trades_completed or 0
    for pos, count in (team.actual_starter_position_counts or {}).items():
        agg.actual_starter_position_totals[pos] = agg.actual_starter_position_totals.get(pos, 0) + count
    agg.actual_starter_weeks += team.actual_starter_weeks or 0


def aggregate_owner(
    owner_id: str,
    league: LeagueData,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    tolerance: Optional[float] = None,
) -> OwnerAggregate:
    """
    Build an owner's all-time aggregate from every season they appear in.

    Regular-season weeks feed the main totals, record and head-to-head;
    bracket weeks feed the separate playoff sub-record. Weeks without
    sufficient data are counted in ``insufficient_weeks`` and skipped.

    Args:
        owner_id: Durable owner identity
        league: League with full season history
        player_cache: Global player metadata snapshot (read-only)
        tolerance: Reconciliation tolerance (config default when omitted)

    Returns:
        Freshly built OwnerAggregate
    """
    agg = OwnerAggregate(owner_id=owner_id)

    for season in league.sorted_seasons():
        team = season.team_for_owner(owner_id)
        if team is None:
            continue
        agg.seasons_included.append(season.id)
        agg.latest_display_name = team.name or agg.latest_display_name
        _accumulate_season(agg, season, team, league, player_cache, tolerance)

    if league.computed_championships is not None:
        agg.championships = league.computed_championships.get(owner_id, 0)
    else:
        agg.championships = sum(
            t.championships or 0
            for s in league.seasons
            for t in s.teams
            if t.owner_id == owner_id
        )

    agg.playoff_stats = playoff_stats_for_owner(owner_id, league, player_cache, tolerance)
    return agg


def build_all_time(
    league: LeagueData,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> dict[str, OwnerAggregate]:
    """
    Aggregate every owner of the league's latest season, in parallel.

    Owners are independent, so each is aggregated on its own worker. Setting
    ``cancel_event`` stops owners that have not started yet; owners already
    finished are still returned.

    Returns:
        Dict of owner id -> OwnerAggregate, in latest-season team order
    """
    latest = league.latest_season()
    if latest is None:
        return {}

    owner_ids = list(dict.fromkeys(t.owner_id for t in latest.teams))

    def run(owner_id: str) -> Optional[OwnerAggregate]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        return aggregate_owner(owner_id, league, player_cache)

    workers = max_workers or get_max_workers()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [(oid, pool.submit(run, oid)) for oid in owner_ids]
        results = {oid: future.result() for oid, future in futures}

    aggregates = {oid: agg for oid, agg in results.items() if agg is not None}
    skipped = len(owner_ids) - len(aggregates)
    if skipped:
        logger.info(f'All-time build for {league.name or league.id} cancelled: {skipped} owners skipped')
    logger.info(f'Built all-time stats for {len(aggregates)} owners in {league.name or league.id}')
    return aggregates
