from .positions import Position, normalize_position
from .slots import (
    Slot,
    SlotCategory,
    classify_slot,
    credited_position,
    expand_lineup_config,
    infer_lineup_config,
    sanitize_slots,
)
from .models import (
    Assignment,
    H2HMatchDetail,
    H2HStats,
    InsufficiencyReason,
    InsufficientData,
    OwnerAggregate,
    Partial,
    PlayerCandidate,
    PlayoffStats,
    Resolved,
    Unresolved,
    WeekEfficiencyResult,
    management_percent,
)
from .schemas import (
    CompactPlayer,
    LeagueData,
    MatchupEntry,
    Player,
    SeasonData,
    TeamStanding,
    WeeklyScore,
)
from .optimizer import optimal_assignment
from .resolver import reconcile_actual, resolve_scores
from .calculator import compute_week, lineup_slots_for_team
from .aggregator import (
    aggregate_owner,
    build_all_time,
    compute_season_champion,
    recompute_championships,
)
from .migration import MigrationEngine, MigrationInterrupted, SchemaVersion, migrate, migrate_team
from .store import JsonLeagueStore, LeagueStore

__all__ = [
    # Positions and slots
    'Position',
    'normalize_position',
    'Slot',
    'SlotCategory',
    'classify_slot',
    'credited_position',
    'expand_lineup_config',
    'infer_lineup_config',
    'sanitize_slots',
    # Models
    'Assignment',
    'H2HMatchDetail',
    'H2HStats',
    'InsufficiencyReason',
    'InsufficientData',
    'OwnerAggregate',
    'Partial',
    'PlayerCandidate',
    'PlayoffStats',
    'Resolved',
    'Unresolved',
    'WeekEfficiencyResult',
    # Persisted data
    'CompactPlayer',
    'LeagueData',
    'MatchupEntry',
    'Player',
    'SeasonData',
    'TeamStanding',
    'WeeklyScore',
    # Engine
    'optimal_assignment',
    'resolve_scores',
    'reconcile_actual',
    'compute_week',
    'lineup_slots_for_team',
    'management_percent',
    'aggregate_owner',
    'build_all_time',
    'compute_season_champion',
    'recompute_championships',
    # Migration and storage
    'MigrationEngine',
    'MigrationInterrupted',
    'SchemaVersion',
    'migrate',
    'migrate_team',
    'JsonLeagueStore',
    'LeagueStore',
]
