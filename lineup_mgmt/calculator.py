"""
Weekly lineup-efficiency calculation.

compute_week is the single code path through which every caller (CLI,
aggregator, migration) derives actual and optimal lineup totals for a
team/week. It composes the score resolver, the slot taxonomy and the
greedy optimizer.
"""

import logging
from typing import Mapping, Optional, Sequence

from .config import get_inferred_slot_cap, get_reconciliation_tolerance
from .constants import EMPTY_STARTER_ID
from .models import (
    InsufficiencyReason,
    InsufficientData,
    PlayerCandidate,
    Unresolved,
    WeekEfficiencyResult,
    WeekOutcome,
)
from .optimizer import optimal_assignment
from .positions import Position, normalize_position, normalize_positions
from .resolver import reconcile_actual, resolve_scores, targeted_ids
from .schemas import CompactPlayer, LeagueData, MatchupEntry, Player, SeasonData, TeamStanding
from .slots import (
    Slot,
    build_slots,
    classify_slot,
    credited_position,
    expand_lineup_config,
    infer_lineup_config,
    is_excluded_slot,
    sanitize_slots,
)

logger = logging.getLogger('lineup_mgmt.calculator')


class PositionLookup:
    """
    Position metadata for player ids of one team.

    Lookup order: the team's roster snapshot, the league's owned-player
    cache, the team's historical players, then the global player cache.
    Ids found nowhere are UNKNOWN.
    """

    def __init__(
        self,
        team: TeamStanding,
        league: LeagueData,
        player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    ):
        self.roster = {p.id: p for p in team.roster}
        self.owned = league.owned_players or {}
        self.historical = (league.team_historical_players or {}).get(team.id) or {}
        self.player_cache = player_cache or {}

    def positions(self, player_id: str) -> tuple[Position, tuple[Position, ...]]:
        """Normalized (base position, alternate positions) for a player id."""
        player = self.roster.get(player_id)
        if player is not None:
            return normalize_position(player.position), normalize_positions(player.alt_positions)

        compact = self.owned.get(player_id)
        if compact is not None:
            return normalize_position(compact.position), normalize_positions(compact.fantasy_positions)

        historical = self.historical.get(player_id)
        if historical is not None:
            return normalize_position(historical.last_known_position), ()

        cached = self.player_cache.get(player_id)
        if cached is not None:
            return normalize_position(cached.position), normalize_positions(cached.fantasy_positions)

        return Position.UNKNOWN, ()


def lineup_slots_for_team(
    team: TeamStanding,
    league: LeagueData,
    cap: Optional[int] = None,
) -> list[Slot]:
    """
    Starting slots used to evaluate a team's lineups.

    The league's starting lineup wins; otherwise the team's own lineup
    config; otherwise a config inferred from the team's roster. An empty
    list means no configuration could be determined.
    """
    tokens = sanitize_slots(league.starting_lineup)
    if not tokens and team.lineup_config:
        tokens = expand_lineup_config(team.lineup_config)
    if not tokens:
        cap = cap if cap is not None else get_inferred_slot_cap()
        inferred = infer_lineup_config([p.position for p in team.roster], cap)
        tokens = expand_lineup_config(inferred)
    return build_slots(tokens)


def roster_search_order(
    team: TeamStanding,
    season: Optional[SeasonData],
    league: LeagueData,
) -> list[Sequence[Player]]:
    """Rosters searched for weekly scores: own, same season, then other seasons."""
    rosters: list[Sequence[Player]] = [team.roster]
    if season is not None:
        rosters.extend(t.roster for t in season.teams if t.id != team.id)
    for other in league.seasons:
        if season is not None and other.id == season.id:
            continue
        rosters.extend(t.roster for t in other.teams)
    return rosters


def build_candidates(
    ids: Sequence[str],
    scores: Mapping[str, float],
    lookup: PositionLookup,
) -> list[PlayerCandidate]:
    """Optimizer candidates for the given ids, in the given order."""
    candidates = []
    for pid in ids:
        base, alts = lookup.positions(pid)
        candidates.append(PlayerCandidate(
            player_id=pid,
            base_position=base,
            alt_positions=alts,
            score=scores.get(pid, 0.0),
        ))
    return candidates


def team_weeks(team: TeamStanding, season: SeasonData) -> list[int]:
    """Weeks of the season in which the team has a matchup entry or recorded starters."""
    weeks = {
        week for week, entries in (season.matchups_by_week or {}).items()
        if any(e.roster_id == team.roster_id for e in entries)
    }
    weeks.update((team.actual_starters_by_week or {}).keys())
    return sorted(weeks)


def _synthetic_entry(team: TeamStanding, week: int) -> Optional[MatchupEntry]:
    starters = (team.actual_starters_by_week or {}).get(week)
    if not starters:
        return None
    return MatchupEntry(
        roster_id=team.roster_id,
        starters=list(starters),
        players=[p.id for p in team.roster],
    )


def _actual_split(
    entry: MatchupEntry,
    slots: Sequence[Slot],
    scores: Mapping[str, float],
    lookup: PositionLookup,
) -> tuple[float, float, float, dict[str, float], dict[str, int]]:
    """
    Sum resolved starter scores, credited by position.

    A starter is credited through its recorded slot when the entry carries
    one, else through the slot at the same index when the starters list
    lines up with the slot list, else by its base position.
    """
    starters = list(entry.starters or [])
    aligned = len(starters) == len(slots)
    recorded_slots = entry.players_slots or {}

    total = offense = defense = 0.0
    position_points: dict[str, float] = {}
    position_starts: dict[str, int] = {}

    for idx, pid in enumerate(starters):
        if not pid or pid == EMPTY_STARTER_ID or pid not in scores:
            continue
        score = scores[pid]
        base, alts = lookup.positions(pid)

        token = recorded_slots.get(pid)
        if token and not is_excluded_slot(token):
            slot = classify_slot(token)
        elif aligned:
            slot = slots[idx]
        else:
            slot = None
        credited = credited_position(slot, (base,) + alts) if slot is not None else base

        total += score
        if credited.is_offense:
            offense += score
        elif credited.is_defense:
            defense += score

        if credited is not Position.UNKNOWN:
            position_points[credited.value] = position_points.get(credited.value, 0.0) + score
            position_starts[credited.value] = position_starts.get(credited.value, 0) + 1

    return total, offense, defense, position_points, position_starts


def compute_week(
    team: TeamStanding,
    week: int,
    league: LeagueData,
    season: Optional[SeasonData] = None,
    player_cache: Optional[Mapping[str, CompactPlayer]] = None,
    tolerance: Optional[float] = None,
) -> WeekOutcome:
    """
    Compute actual vs optimal lineup totals for one team/week.

    Args:
        team: Team-season record
        week: Week number
        league: League the team belongs to (lineup config and player caches)
        season: Season containing the team (looked up when omitted)
        player_cache: Global player metadata snapshot (read-only)
        tolerance: Reconciliation tolerance (config default when omitted)

    Returns:
        WeekEfficiencyResult, or InsufficientData when the week cannot be
        evaluated (no matchup, no scores at all, or no lineup configuration)

    Example:
        result = compute_week(team, 3, league, season)
        if isinstance(result, InsufficientData):
            print(f"Week 3 skipped: {result.reason.value}")
        else:
            print(f"{result.management_percent:.1f}%")
    """
    if season is None:
        season = league.season_for_team(team)
    roster_id = team.roster_id

    entry = season.entry_for(roster_id, week) if season is not None else None
    if entry is None:
        entry = _synthetic_entry(team, week)
        if entry is None:
            logger.debug(f'No matchup for roster {roster_id} week {week}')
            return InsufficientData(roster_id, week, InsufficiencyReason.NO_MATCHUP)

    slots = lineup_slots_for_team(team, league)
    if not slots:
        logger.debug(f'No lineup configuration for roster {roster_id}')
        return InsufficientData(roster_id, week, InsufficiencyReason.AMBIGUOUS_SLOT_CONFIGURATION)

    lookup = PositionLookup(team, league, player_cache)
    ids = targeted_ids(
        entry,
        [p.id for p in team.roster],
        owned_ids=lookup.owned.keys(),
        historical_ids=lookup.historical.keys(),
    )
    resolution = resolve_scores(entry, week, ids, roster_search_order(team, season, league))
    if isinstance(resolution, Unresolved) and entry.points is None:
        return InsufficientData(roster_id, week, InsufficiencyReason.NO_SCORES)

    candidates = build_candidates(ids, resolution.scores, lookup)
    assignment = optimal_assignment(candidates, slots)

    total, offense, defense, position_points, position_starts = _actual_split(
        entry, slots, resolution.scores, lookup
    )
    actual = reconcile_actual(
        resolution,
        entry.points,
        total,
        offense,
        defense,
        tolerance if tolerance is not None else get_reconciliation_tolerance(),
    )

    return WeekEfficiencyResult(
        roster_id=roster_id,
        week=week,
        actual_total=actual.total,
        optimal_total=assignment.total,
        actual_offense=actual.offense,
        optimal_offense=assignment.offense,
        actual_defense=actual.defense,
        optimal_defense=assignment.defense,
        starters=tuple(pid for pid in (entry.starters or []) if pid and pid != EMPTY_STARTER_ID),
        assignment=assignment,
        actual_position_points=position_points,
        actual_position_starts=position_starts,
        reconciled=actual.reconciled,
        split_known=actual.split_known,
        low_confidence=actual.reconciled or assignment.total <= 0,
    )
