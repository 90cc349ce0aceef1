"""Tabular export of weekly results, owner aggregates and head-to-head details."""

import logging
from pathlib import Path
from typing import Iterable, Mapping

import polars as pl

from .models import H2HMatchDetail, InsufficientData, OwnerAggregate, WeekOutcome

logger = logging.getLogger('lineup_mgmt.export')

WEEKLY_SCHEMA = {
    'roster_id': pl.Int64,
    'week': pl.Int64,
    'status': pl.Utf8,
    'actual_total': pl.Float64,
    'optimal_total': pl.Float64,
    'actual_offense': pl.Float64,
    'optimal_offense': pl.Float64,
    'actual_defense': pl.Float64,
    'optimal_defense': pl.Float64,
    'management_percent': pl.Float64,
    'reconciled': pl.Boolean,
    'split_known': pl.Boolean,
    'low_confidence': pl.Boolean,
}

OWNER_SCHEMA = {
    'owner_id': pl.Utf8,
    'display_name': pl.Utf8,
    'seasons': pl.Int64,
    'weeks_played': pl.Int64,
    'insufficient_weeks': pl.Int64,
    'record': pl.Utf8,
    'championships': pl.Int64,
    'points_for': pl.Float64,
    'max_points_for': pl.Float64,
    'management_percent': pl.Float64,
    'offensive_management_percent': pl.Float64,
    'defensive_management_percent': pl.Float64,
    'team_ppw': pl.Float64,
    'points_against': pl.Float64,
    'waiver_moves': pl.Int64,
    'faab_spent': pl.Float64,
    'trades_completed': pl.Int64,
    'playoff_record': pl.Utf8,
}

H2H_SCHEMA = {
    'owner_id': pl.Utf8,
    'opponent_owner_id': pl.Utf8,
    'season_id': pl.Utf8,
    'week': pl.Int64,
    'matchup_id': pl.Int64,
    'user_roster_id': pl.Int64,
    'opp_roster_id': pl.Int64,
    'user_points': pl.Float64,
    'opp_points': pl.Float64,
    'user_max': pl.Float64,
    'opp_max': pl.Float64,
    'user_mgmt_pct': pl.Float64,
    'opp_mgmt_pct': pl.Float64,
    'result': pl.Utf8,
}


def weekly_results_frame(outcomes: Iterable[WeekOutcome]) -> pl.DataFrame:
    """One row per team/week; insufficient weeks keep their reason in ``status``."""
    rows = []
    for outcome in outcomes:
        if isinstance(outcome, InsufficientData):
            rows.append({
                'roster_id': outcome.roster_id,
                'week': outcome.week,
                'status': outcome.reason.value,
            })
            continue
        rows.append({
            'roster_id': outcome.roster_id,
            'week': outcome.week,
            'status': 'ok',
            'actual_total': outcome.actual_total,
            'optimal_total': outcome.optimal_total,
            'actual_offense': outcome.actual_offense,
            'optimal_offense': outcome.optimal_offense,
            'actual_defense': outcome.actual_defense,
            'optimal_defense': outcome.optimal_defense,
            'management_percent': outcome.management_percent if outcome.has_management_percent else None,
            'reconciled': outcome.reconciled,
            'split_known': outcome.split_known,
            'low_confidence': outcome.low_confidence,
        })
    return pl.DataFrame(rows, schema=WEEKLY_SCHEMA)


def owner_aggregates_frame(aggregates: Mapping[str, OwnerAggregate]) -> pl.DataFrame:
    """One row per owner, sorted by management percent (best first)."""
    rows = [
        {
            'owner_id': agg.owner_id,
            'display_name': agg.latest_display_name,
            'seasons': len(agg.seasons_included),
            'weeks_played': agg.weeks_played,
            'insufficient_weeks': agg.insufficient_weeks,
            'record': agg.record,
            'championships': agg.championships,
            'points_for': agg.total_points_for,
            'max_points_for': agg.total_max_points_for,
            'management_percent': agg.management_percent,
            'offensive_management_percent': agg.offensive_management_percent,
            'defensive_management_percent': agg.defensive_management_percent,
            'team_ppw': agg.team_ppw,
            'points_against': agg.total_points_against,
            'waiver_moves': agg.waiver_moves,
            'faab_spent': agg.faab_spent,
            'trades_completed': agg.trades_completed,
            'playoff_record': agg.playoff_stats.record,
        }
        for agg in aggregates.values()
    ]
    frame = pl.DataFrame(rows, schema=OWNER_SCHEMA)
    return frame.sort('management_percent', descending=True)


def h2h_details_frame(aggregates: Mapping[str, OwnerAggregate]) -> pl.DataFrame:
    """Every head-to-head game of every owner, in chronological order per pair."""
    rows = []
    for agg in aggregates.values():
        for opponent, details in agg.head_to_head_details.items():
            rows.extend(_detail_row(agg.owner_id, opponent, d) for d in details)
    frame = pl.DataFrame(rows, schema=H2H_SCHEMA)
    return frame.sort(['owner_id', 'opponent_owner_id', 'season_id', 'week'])


def _detail_row(owner_id: str, opponent: str, detail: H2HMatchDetail) -> dict:
    return {
        'owner_id': owner_id,
        'opponent_owner_id': opponent,
        'season_id': detail.season_id,
        'week': detail.week,
        'matchup_id': detail.matchup_id,
        'user_roster_id': detail.user_roster_id,
        'opp_roster_id': detail.opp_roster_id,
        'user_points': detail.user_points,
        'opp_points': detail.opp_points,
        'user_max': detail.user_max,
        'opp_max': detail.opp_max,
        'user_mgmt_pct': detail.user_mgmt_pct,
        'opp_mgmt_pct': detail.opp_mgmt_pct,
        'result': detail.result,
    }


def write_csv(frame: pl.DataFrame, path: Path | str) -> Path:
    """Write a frame as CSV, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.write_csv(path)
    logger.info(f'Wrote {frame.height} rows to {path}')
    return path
