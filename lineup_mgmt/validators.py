"""Validation functions for lineup slots, weekly results, aggregates and team records."""

from typing import Sequence

from .config import get_management_percent_epsilon
from .models import OwnerAggregate, WeekEfficiencyResult
from .positions import Position
from .schemas import TeamStanding
from .slots import Slot, SlotCategory


def validate_lineup_slots(slots: Sequence[Slot]) -> list[str]:
    """
    Check that a slot list can be used to evaluate lineups.

    Checks:
    - At least one starting slot
    - Strict slots map to a known position

    Args:
        slots: Classified starting slots

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    starting = [s for s in slots if s.category is not SlotCategory.EXCLUDED]
    if not starting:
        errors.append('Lineup has no starting slots')

    for idx, slot in enumerate(starting):
        if slot.is_strict and slot.position in (None, Position.UNKNOWN):
            errors.append(f'Slot {idx} ({slot.token}) does not map to a known position')

    return errors


def validate_week_result(result: WeekEfficiencyResult, epsilon: float | None = None) -> list[str]:
    """
    Check that a weekly result is internally consistent.

    Sanity checks:
    - Management percent not above 100 + epsilon
    - No negative totals
    - Optimal total not below actual unless the actual was reconciled

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []
    if epsilon is None:
        epsilon = get_management_percent_epsilon()
    label = f'Roster {result.roster_id} week {result.week}'

    if result.has_management_percent and result.management_percent > 100 + epsilon:
        warnings.append(
            f'{label} management {result.management_percent:.1f}% exceeds 100% '
            f'(actual {result.actual_total:.2f}, optimal {result.optimal_total:.2f})'
        )

    for name in ('actual_total', 'optimal_total', 'actual_offense', 'optimal_offense',
                 'actual_defense', 'optimal_defense'):
        value = getattr(result, name)
        if value < 0:
            warnings.append(f'{label} has negative {name}: {value:.2f}')

    if not result.reconciled and result.optimal_total + 1e-9 < result.actual_total:
        warnings.append(
            f'{label} optimal {result.optimal_total:.2f} below actual {result.actual_total:.2f}'
        )

    return warnings


def validate_owner_aggregate(agg: OwnerAggregate) -> list[str]:
    """
    Check head-to-head bookkeeping of an owner aggregate.

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    if agg.h2h_games > agg.weeks_played:
        warnings.append(
            f'Owner {agg.owner_id} has {agg.h2h_games} head-to-head games '
            f'but only {agg.weeks_played} weeks played'
        )

    for opponent, stats in agg.head_to_head.items():
        details = agg.head_to_head_details.get(opponent, [])
        if len(details) != stats.games:
            warnings.append(
                f'Owner {agg.owner_id} vs {opponent}: {stats.games} games '
                f'but {len(details)} match details'
            )
        if stats.wins + stats.losses + stats.ties != stats.games:
            warnings.append(f'Owner {agg.owner_id} vs {opponent}: record {stats.record} != {stats.games} games')

    return warnings


def validate_team_record(team: TeamStanding) -> list[str]:
    """
    Check a persisted team record.

    Checks:
    - No duplicate player ids on the roster
    - Transaction counters not negative

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    seen = set()
    duplicates = set()
    for player in team.roster:
        if player.id in seen:
            duplicates.add(player.id)
        seen.add(player.id)
    if duplicates:
        errors.append(f'Team {team.id} has duplicate players: {", ".join(sorted(duplicates))}')

    for name in ('waiver_moves', 'faab_spent', 'trades_completed', 'actual_starter_weeks'):
        value = getattr(team, name)
        if value is not None and value < 0:
            errors.append(f'Team {team.id} has negative {name}: {value}')

    return errors
