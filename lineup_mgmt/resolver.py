"""
Per-player score resolution for one team/week.

Scores are resolved through an ordered pipeline, each step only filling the
gaps left by the previous one:

1. the matchup entry's per-player points map;
2. the weekly score recorded on a roster snapshot (own roster first, then
   the other rosters of the season, then rosters of other seasons);
3. reconciliation of the starters' sum against the entry's scalar total.

Steps 1 and 2 produce a ScoreResolution. Step 3 is applied by
reconcile_actual once the calculator has split the starters' points.
"""

import logging
from typing import Collection, Iterable, Optional, Sequence

from .constants import EMPTY_STARTER_ID
from .models import Partial, ReconciledActual, Resolved, ScoreResolution, Unresolved
from .schemas import MatchupEntry, Player

logger = logging.getLogger('lineup_mgmt.resolver')


def _dedupe(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for pid in ids:
        if pid and pid != EMPTY_STARTER_ID and pid not in seen:
            seen.add(pid)
            out.append(pid)
    return out


def starter_ids(entry: MatchupEntry) -> list[str]:
    """Recorded starters, empty-slot placeholders removed."""
    return [pid for pid in (entry.starters or []) if pid and pid != EMPTY_STARTER_ID]


def targeted_ids(
    entry: MatchupEntry,
    roster_ids: Sequence[str],
    owned_ids: Collection[str] = (),
    historical_ids: Collection[str] = (),
) -> list[str]:
    """
    Ids relevant to this team/week, in deterministic order.

    Starters, then the entry's player pool, then the roster snapshot. Keys of
    the entry's points map are only added when they overlap one of those,
    or failing that the league's owned-player cache, or failing that the
    team's historical players. A full-season points map therefore never
    drags unrelated players into the pool.

    Args:
        entry: Matchup entry for the team/week
        roster_ids: Player ids of the team's roster snapshot
        owned_ids: Ids in the league's owned-player cache
        historical_ids: Ids in the team's historical-player cache

    Returns:
        Ordered, de-duplicated list of player ids
    """
    base = _dedupe(list(entry.starters or []) + list(entry.players or []) + list(roster_ids))
    base_set = set(base)

    points_keys = list((entry.players_points or {}).keys())
    extra = [pid for pid in points_keys if pid in base_set]
    if not extra:
        owned = set(owned_ids)
        extra = [pid for pid in points_keys if pid in owned]
        if not extra:
            historical = set(historical_ids)
            extra = [pid for pid in points_keys if pid in historical]

    return _dedupe(base + extra)


def resolve_scores(
    entry: MatchupEntry,
    week: int,
    targeted: Sequence[str],
    rosters: Sequence[Sequence[Player]] = (),
) -> ScoreResolution:
    """
    Resolve per-player points for the targeted ids.

    Args:
        entry: Matchup entry for the team/week
        week: Week number
        targeted: Ids to resolve (see targeted_ids)
        rosters: Roster snapshots to search for weekly scores, in priority order

    Returns:
        Resolved when every starter has a score, Partial when some starters
        are missing, Unresolved when nothing could be resolved at all
    """
    points_map = entry.players_points or {}
    scores: dict[str, float] = {}

    for pid in targeted:
        if pid in points_map:
            scores[pid] = points_map[pid]
    seeded = len(scores)

    missing = {pid for pid in targeted if pid not in scores}
    if missing:
        for roster in rosters:
            for player in roster:
                if player.id not in missing:
                    continue
                points = player.score_for_week(week)
                if points is not None:
                    scores[player.id] = points
                    missing.discard(player.id)
            if not missing:
                break

    # Keep the targeted order for reproducible downstream iteration
    scores = {pid: scores[pid] for pid in targeted if pid in scores}

    logger.debug(
        f'roster {entry.roster_id} week {week}: {seeded} scores from entry, '
        f'{len(scores) - seeded} from rosters, {len(targeted) - len(scores)} unresolved'
    )

    missing_starters = tuple(pid for pid in starter_ids(entry) if pid not in scores)
    if not scores:
        return Unresolved(missing_ids=missing_starters)
    if missing_starters:
        return Partial(scores=scores, missing_ids=missing_starters)
    return Resolved(scores=scores)


def reconcile_actual(
    resolution: ScoreResolution,
    scalar_total: Optional[float],
    resolved_total: float,
    resolved_offense: float,
    resolved_defense: float,
    tolerance: float,
) -> ReconciledActual:
    """
    Reconcile the starters' resolved sum against an authoritative scalar total.

    Applies only when some starter is unresolved (or nothing resolved at all)
    and a scalar total exists that differs from the resolved sum by more
    than ``tolerance``. The scalar then becomes the actual total. A known
    offense/defense split is scaled proportionally; with no known split the
    whole total is credited to offense and ``split_known`` is False.

    Returns:
        ReconciledActual with the totals to report
    """
    unresolved_starters = isinstance(resolution, Unresolved) or (
        isinstance(resolution, Partial) and bool(resolution.missing_ids)
    )
    if not unresolved_starters or scalar_total is None:
        return ReconciledActual(resolved_total, resolved_offense, resolved_defense)

    if abs(scalar_total - resolved_total) <= tolerance:
        return ReconciledActual(resolved_total, resolved_offense, resolved_defense)

    logger.warning(
        f'Reconciliation mismatch: resolved starters sum {resolved_total:.2f} vs '
        f'scalar total {scalar_total:.2f} ({len(resolution.missing_ids)} starters unresolved); '
        f'using scalar total'
    )

    known = resolved_offense + resolved_defense
    if known > 0:
        scale = scalar_total / known
        return ReconciledActual(
            total=scalar_total,
            offense=resolved_offense * scale,
            defense=resolved_defense * scale,
            reconciled=True,
            split_known=True,
        )

    return ReconciledActual(
        total=scalar_total,
        offense=scalar_total,
        defense=0.0,
        reconciled=True,
        split_known=False,
    )
