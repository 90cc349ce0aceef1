#!/usr/bin/env python3
"""
Lineup management CLI

Computes weekly lineup efficiency, owner aggregates and head-to-head
records from a JSON league store, and runs schema migrations.

Usage:
    python mgmt_cli.py --data-dir data week --league MyLeague --season 2024 --roster 3 --week 5
    python mgmt_cli.py --data-dir data owner --league MyLeague --owner 123456
    python mgmt_cli.py --data-dir data all-time --league MyLeague
    python mgmt_cli.py --data-dir data migrate
    python mgmt_cli.py --data-dir data export --league MyLeague --output exports/
"""

import argparse
import logging
import sys
from pathlib import Path

from lineup_mgmt import (
    InsufficientData,
    JsonLeagueStore,
    aggregate_owner,
    build_all_time,
    compute_week,
    migrate,
)
from lineup_mgmt.calculator import team_weeks
from lineup_mgmt.export import (
    h2h_details_frame,
    owner_aggregates_frame,
    weekly_results_frame,
    write_csv,
)
from lineup_mgmt.logging_config import setup_logging
from lineup_mgmt.validators import validate_owner_aggregate, validate_week_result


def load_league(store: JsonLeagueStore, league_id: str):
    league = store.find_league(league_id)
    if league is None:
        print(f"❌ League not found: {league_id}")
        sys.exit(1)
    return league


def cmd_week(args, store: JsonLeagueStore) -> int:
    league = load_league(store, args.league)
    season = next((s for s in league.seasons if s.id == args.season), None)
    if season is None:
        print(f"❌ Season not found: {args.season}")
        return 1
    team = season.team_for_roster(args.roster)
    if team is None:
        print(f"❌ Roster {args.roster} not found in {args.season}")
        return 1

    result = compute_week(team, args.week, league, season, store.load_player_cache())
    if isinstance(result, InsufficientData):
        print(f"⚠️  {team.name or team.id} week {args.week}: insufficient data ({result.reason.value})")
        return 0

    print(f"{team.name or team.id} - {args.season} week {args.week}")
    print(f"  Actual:  {result.actual_total:7.2f}  (OFF {result.actual_offense:.2f} / DEF {result.actual_defense:.2f})")
    print(f"  Optimal: {result.optimal_total:7.2f}  (OFF {result.optimal_offense:.2f} / DEF {result.optimal_defense:.2f})")
    if result.has_management_percent:
        print(f"  Management: {result.management_percent:.1f}%")
    else:
        print("  Management: n/a (no optimal lineup)")
    if result.low_confidence:
        print("  ⚠️  Low confidence" + ("" if result.split_known else " (offense/defense split unknown)"))

    if not args.quiet:
        print("  Optimal lineup:")
        for pick in result.assignment.picks:
            print(f"    {pick.slot.token:<10} {pick.player_id:<12} {pick.score:6.2f}  [{pick.credited_position.value}]")

    for warning in validate_week_result(result):
        print(f"  ⚠️  {warning}")
    return 0


def cmd_owner(args, store: JsonLeagueStore) -> int:
    league = load_league(store, args.league)
    agg = aggregate_owner(args.owner, league, store.load_player_cache())
    if not agg.seasons_included:
        print(f"❌ Owner {args.owner} not found in {league.name or league.id}")
        return 1

    print(f"{agg.latest_display_name or agg.owner_id} ({', '.join(agg.seasons_included)})")
    print(f"  Record: {agg.record}   Championships: {agg.championships}")
    print(f"  Weeks: {agg.weeks_played} ({agg.insufficient_weeks} skipped)")
    print(f"  Points: {agg.total_points_for:.2f} / {agg.total_max_points_for:.2f} optimal")
    print(f"  Management: {agg.management_percent:.1f}% "
          f"(OFF {agg.offensive_management_percent:.1f}% / DEF {agg.defensive_management_percent:.1f}%)")
    print(f"  Playoffs: {agg.playoff_stats.record} in {agg.playoff_stats.weeks} weeks")

    if not args.quiet and agg.head_to_head:
        print("  Head-to-head:")
        for opponent, stats in sorted(agg.head_to_head.items()):
            print(f"    vs {opponent:<20} {stats.record:<8} "
                  f"PF {stats.avg_points_for:6.2f}  PA {stats.avg_points_against:6.2f}  "
                  f"MGMT {stats.avg_mgmt_for:5.1f}%")

    for warning in validate_owner_aggregate(agg):
        print(f"  ⚠️  {warning}")
    return 0


def cmd_all_time(args, store: JsonLeagueStore) -> int:
    league = load_league(store, args.league)
    aggregates = build_all_time(league, store.load_player_cache(), max_workers=args.workers)
    frame = owner_aggregates_frame(aggregates)
    print(frame.select(['display_name', 'record', 'championships', 'management_percent', 'team_ppw']))
    return 0


def cmd_migrate(args, store: JsonLeagueStore) -> int:
    ok = migrate(store, current_version=args.version)
    if ok:
        print(f"✓ Data is at version {store.load_schema_version()}")
        return 0
    print("❌ Migration failed; version not advanced (see log)")
    return 1


def cmd_export(args, store: JsonLeagueStore) -> int:
    league = load_league(store, args.league)
    player_cache = store.load_player_cache()
    output_dir = Path(args.output)

    outcomes = []
    for season in league.sorted_seasons():
        for team in season.teams:
            for week in team_weeks(team, season):
                outcomes.append(compute_week(team, week, league, season, player_cache))
    aggregates = build_all_time(league, player_cache, max_workers=args.workers)

    write_csv(weekly_results_frame(outcomes), output_dir / 'weekly_results.csv')
    write_csv(owner_aggregates_frame(aggregates), output_dir / 'owner_aggregates.csv')
    write_csv(h2h_details_frame(aggregates), output_dir / 'h2h_details.csv')
    print(f"✓ Exported {len(outcomes)} weekly results and {len(aggregates)} owners to {output_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fantasy lineup management calculator")
    parser.add_argument(
        "--data-dir", "-d",
        default="data",
        help="Path to data directory (leagues.json, players.json)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Write a log file to this directory",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress detailed output",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    week = sub.add_parser("week", help="Lineup efficiency for one team/week")
    week.add_argument("--league", "-l", required=True, help="League id or name")
    week.add_argument("--season", "-y", required=True, help="Season id (e.g. 2024)")
    week.add_argument("--roster", "-r", type=int, required=True, help="Roster id")
    week.add_argument("--week", "-w", type=int, required=True, help="Week number")
    week.set_defaults(func=cmd_week)

    owner = sub.add_parser("owner", help="All-time aggregate for one owner")
    owner.add_argument("--league", "-l", required=True, help="League id or name")
    owner.add_argument("--owner", "-o", required=True, help="Owner id")
    owner.set_defaults(func=cmd_owner)

    all_time = sub.add_parser("all-time", help="All-time table for current owners")
    all_time.add_argument("--league", "-l", required=True, help="League id or name")
    all_time.add_argument("--workers", type=int, default=None, help="Parallel owners")
    all_time.set_defaults(func=cmd_all_time)

    mig = sub.add_parser("migrate", help="Migrate stored data to the current rules version")
    mig.add_argument("--version", type=int, default=None, help="Target version (default: config)")
    mig.set_defaults(func=cmd_migrate)

    export = sub.add_parser("export", help="Export results as CSV")
    export.add_argument("--league", "-l", required=True, help="League id or name")
    export.add_argument("--output", "-o", default="exports", help="Output directory")
    export.add_argument("--workers", type=int, default=None, help="Parallel owners")
    export.set_defaults(func=cmd_export)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=logging.DEBUG if args.verbose else logging.WARNING,
        log_to_file=args.log_dir is not None,
    )

    store = JsonLeagueStore(args.data_dir)
    return args.func(args, store)


if __name__ == "__main__":
    sys.exit(main())
