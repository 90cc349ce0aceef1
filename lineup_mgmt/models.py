"""Data models for derived lineup-management values."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .positions import Position
from .slots import Slot


@dataclass(frozen=True)
class PlayerCandidate:
    """A player the optimizer may place in a slot."""
    player_id: str
    base_position: Position
    alt_positions: Tuple[Position, ...] = ()
    score: float = 0.0

    @property
    def positions(self) -> Tuple[Position, ...]:
        return (self.base_position,) + tuple(self.alt_positions)


@dataclass(frozen=True)
class SlotPick:
    """One filled slot of an assignment."""
    slot_index: int  # index into the slot list given to the optimizer
    slot: Slot
    player_id: str
    score: float
    credited_position: Position


@dataclass(frozen=True)
class Assignment:
    """Optimizer output: totals plus the slot -> player mapping."""
    total: float = 0.0
    offense: float = 0.0
    defense: float = 0.0
    picks: Tuple[SlotPick, ...] = ()

    @property
    def mapping(self) -> Dict[int, str]:
        return {p.slot_index: p.player_id for p in self.picks}

    @property
    def player_ids(self) -> List[str]:
        return [p.player_id for p in self.picks]


# Score resolution results

@dataclass(frozen=True)
class Resolved:
    """Every starter has a score."""
    scores: Dict[str, float]


@dataclass(frozen=True)
class Partial:
    """Some scores resolved; ``missing_ids`` lists starters without one."""
    scores: Dict[str, float]
    missing_ids: Tuple[str, ...]


@dataclass(frozen=True)
class Unresolved:
    """No per-player score could be found."""
    scores: Dict[str, float] = field(default_factory=dict)
    missing_ids: Tuple[str, ...] = ()


ScoreResolution = Union[Resolved, Partial, Unresolved]


class InsufficiencyReason(str, Enum):
    NO_MATCHUP = 'no_matchup'
    NO_SCORES = 'no_scores'
    AMBIGUOUS_SLOT_CONFIGURATION = 'ambiguous_slot_configuration'


@dataclass(frozen=True)
class InsufficientData:
    """A team/week that cannot be evaluated. Never the same thing as a zero week."""
    roster_id: int
    week: int
    reason: InsufficiencyReason


@dataclass(frozen=True)
class ReconciledActual:
    """Actual lineup totals after scalar-total reconciliation."""
    total: float
    offense: float
    defense: float
    reconciled: bool = False
    split_known: bool = True


def management_percent(actual: float, optimal: float) -> Optional[float]:
    """actual / optimal * 100, or None when optimal is not positive."""
    if optimal <= 0:
        return None
    return actual / optimal * 100


@dataclass
class WeekEfficiencyResult:
    """Actual vs optimal lineup totals for one team/week."""
    roster_id: int
    week: int
    actual_total: float
    optimal_total: float
    actual_offense: float
    optimal_offense: float
    actual_defense: float
    optimal_defense: float
    starters: Tuple[str, ...] = ()
    assignment: Assignment = field(default_factory=Assignment)
    # Actual starters credited per position
    actual_position_points: Dict[str, float] = field(default_factory=dict)
    actual_position_starts: Dict[str, int] = field(default_factory=dict)
    reconciled: bool = False
    split_known: bool = True
    low_confidence: bool = False

    @property
    def has_management_percent(self) -> bool:
        return self.optimal_total > 0

    @property
    def management_percent(self) -> float:
        """actual / optimal * 100, or 0.0 when optimal is zero (see low_confidence)."""
        return management_percent(self.actual_total, self.optimal_total) or 0.0

    @property
    def offensive_management_percent(self) -> float:
        return management_percent(self.actual_offense, self.optimal_offense) or 0.0

    @property
    def defensive_management_percent(self) -> float:
        return management_percent(self.actual_defense, self.optimal_defense) or 0.0


WeekOutcome = Union[WeekEfficiencyResult, InsufficientData]


@dataclass
class H2HStats:
    """Running head-to-head totals against one opposing owner."""
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    games: int = 0
    sum_mgmt_for: float = 0.0
    sum_mgmt_against: float = 0.0

    def add_game(self, points_for: float, points_against: float,
                 mgmt_for: float, mgmt_against: float) -> str:
        """Record one game and return its result letter ('W', 'L' or 'T')."""
        self.games += 1
        self.points_for += points_for
        self.points_against += points_against
        self.sum_mgmt_for += mgmt_for
        self.sum_mgmt_against += mgmt_against
        if points_for > points_against:
            self.wins += 1
            return 'W'
        if points_for < points_against:
            self.losses += 1
            return 'L'
        self.ties += 1
        return 'T'

    @property
    def record(self) -> str:
        return f'{self.wins}-{self.losses}' + (f'-{self.ties}' if self.ties else '')

    @property
    def reverse_record(self) -> str:
        return f'{self.losses}-{self.wins}' + (f'-{self.ties}' if self.ties else '')

    @property
    def avg_points_for(self) -> float:
        return self.points_for / self.games if self.games else 0.0

    @property
    def avg_points_against(self) -> float:
        return self.points_against / self.games if self.games else 0.0

    @property
    def avg_mgmt_for(self) -> float:
        return self.sum_mgmt_for / self.games if self.games else 0.0

    @property
    def avg_mgmt_against(self) -> float:
        return self.sum_mgmt_against / self.games if self.games else 0.0


@dataclass(frozen=True)
class H2HMatchDetail:
    """One historical game between two owners, from the first owner's side."""
    season_id: str
    week: int
    matchup_id: int
    user_roster_id: int
    opp_roster_id: int
    user_points: float
    opp_points: float
    user_max: float
    opp_max: float
    user_mgmt_pct: float
    opp_mgmt_pct: float
    result: str  # 'W', 'L' or 'T'


@dataclass
class PlayoffStats:
    """Playoff-only totals for one owner."""
    points_for: float = 0.0
    max_points_for: float = 0.0
    offensive_points_for: float = 0.0
    max_offensive_points_for: float = 0.0
    defensive_points_for: float = 0.0
    max_defensive_points_for: float = 0.0
    weeks: int = 0
    wins: int = 0
    losses: int = 0
    is_champion: bool = False

    @property
    def management_percent(self) -> float:
        return management_percent(self.points_for, self.max_points_for) or 0.0

    @property
    def offensive_management_percent(self) -> float:
        return management_percent(self.offensive_points_for, self.max_offensive_points_for) or 0.0

    @property
    def defensive_management_percent(self) -> float:
        return management_percent(self.defensive_points_for, self.max_defensive_points_for) or 0.0

    @property
    def ppw(self) -> float:
        return self.points_for / self.weeks if self.weeks else 0.0

    @property
    def offensive_ppw(self) -> float:
        return self.offensive_points_for / self.weeks if self.weeks else 0.0

    @property
    def defensive_ppw(self) -> float:
        return self.defensive_points_for / self.weeks if self.weeks else 0.0

    @property
    def record(self) -> str:
        return f'{self.wins}-{self.losses}'


@dataclass
class OwnerAggregate:
    """All-time totals for one owner identity across every included season."""
    owner_id: str
    latest_display_name: str = ''
    seasons_included: List[str] = field(default_factory=list)
    weeks_played: int = 0
    insufficient_weeks: int = 0

    total_points_for: float = 0.0
    total_max_points_for: float = 0.0
    total_offensive_points_for: float = 0.0
    total_max_offensive_points_for: float = 0.0
    total_defensive_points_for: float = 0.0
    total_max_defensive_points_for: float = 0.0
    total_points_against: float = 0.0

    position_totals: Dict[str, float] = field(default_factory=dict)
    position_start_counts: Dict[str, int] = field(default_factory=dict)

    championships: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0

    waiver_moves: int = 0
    faab_spent: float = 0.0
    trades_completed: int = 0
    actual_starter_position_totals: Dict[str, int] = field(default_factory=dict)
    actual_starter_weeks: int = 0

    head_to_head: Dict[str, H2HStats] = field(default_factory=dict)
    head_to_head_details: Dict[str, List[H2HMatchDetail]] = field(default_factory=dict)
    playoff_stats: PlayoffStats = field(default_factory=PlayoffStats)

    @property
    def management_percent(self) -> float:
        return management_percent(self.total_points_for, self.total_max_points_for) or 0.0

    @property
    def offensive_management_percent(self) -> float:
        return management_percent(self.total_offensive_points_for, self.total_max_offensive_points_for) or 0.0

    @property
    def defensive_management_percent(self) -> float:
        return management_percent(self.total_defensive_points_for, self.total_max_defensive_points_for) or 0.0

    @property
    def team_ppw(self) -> float:
        return self.total_points_for / self.weeks_played if self.weeks_played else 0.0

    @property
    def offensive_ppw(self) -> float:
        return self.total_offensive_points_for / self.weeks_played if self.weeks_played else 0.0

    @property
    def defensive_ppw(self) -> float:
        return self.total_defensive_points_for / self.weeks_played if self.weeks_played else 0.0

    @property
    def position_avg_ppw(self) -> Dict[str, float]:
        """Per-position points per week played."""
        if not self.weeks_played:
            return {pos: 0.0 for pos in self.position_totals}
        return {pos: total / self.weeks_played for pos, total in self.position_totals.items()}

    @property
    def individual_position_ppw(self) -> Dict[str, float]:
        """Per-position points per individual start."""
        return {
            pos: total / self.position_start_counts[pos]
            for pos, total in self.position_totals.items()
            if self.position_start_counts.get(pos)
        }

    @property
    def record(self) -> str:
        return f'{self.wins}-{self.losses}' + (f'-{self.ties}' if self.ties else '')

    @property
    def h2h_games(self) -> int:
        return sum(s.games for s in self.head_to_head.values())
