"""Pydantic schemas for persisted league data and engine configuration."""

from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_INFERRED_SLOT_CAP,
    DEFAULT_LEGACY_CACHE_PATTERNS,
    DEFAULT_MANAGEMENT_PERCENT_EPSILON,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PLAYOFF_START_WEEK,
    DEFAULT_PLAYOFF_TEAMS,
    DEFAULT_RECONCILIATION_TOLERANCE,
    DEFAULT_SCHEMA_VERSION,
)


class WeeklyScore(BaseModel):
    """One player's fantasy points for one week."""

    week: int = Field(..., ge=0)
    points: float = 0.0
    points_half_ppr: float | None = None
    points_ppr: float | None = None
    points_standard: float | None = None
    matchup_id: int | None = None

    def best_points(self) -> float:
        """Half-PPR points when recorded, standard points otherwise."""
        if self.points_half_ppr is not None:
            return self.points_half_ppr
        return self.points

    class Config:
        extra = 'ignore'


class Player(BaseModel):
    """Player in a team-season roster snapshot."""

    id: str = Field(..., min_length=1)
    position: str = ''
    alt_positions: list[str] = Field(default_factory=list)
    weekly_scores: list[WeeklyScore] = Field(default_factory=list)

    def score_for_week(self, week: int) -> float | None:
        """Points for the given week, or None when the player has no score that week."""
        for ws in self.weekly_scores:
            if ws.week == week:
                return ws.best_points()
        return None

    class Config:
        extra = 'ignore'


class MatchupEntry(BaseModel):
    """One team's matchup record for one (season, week)."""

    roster_id: int
    matchup_id: int | None = None
    points: float | None = None
    players_points: dict[str, float] | None = None
    starters: list[str] | None = None
    players: list[str] | None = None
    # player id -> slot token, when the import captured it
    players_slots: dict[str, str] | None = None

    class Config:
        extra = 'ignore'


class CompactPlayer(BaseModel):
    """Minimal player metadata kept in league and global caches."""

    id: str
    full_name: str | None = None
    position: str | None = None
    fantasy_positions: list[str] | None = None

    class Config:
        extra = 'ignore'


class TeamHistoricalPlayer(BaseModel):
    """Last known metadata for a player who was ever on a given team."""

    player_id: str
    last_known_position: str | None = None
    last_known_name: str | None = None

    class Config:
        extra = 'ignore'


class TeamStanding(BaseModel):
    """Persisted team-season record, including derived management fields."""

    id: str = Field(..., min_length=1)
    name: str = ''
    owner_id: str = Field(..., min_length=1)
    roster: list[Player] = Field(default_factory=list)
    league_standing: int = 0

    # Basic
    points_for: float = 0.0
    max_points_for: float = 0.0
    management_percent: float = 0.0
    team_points_per_week: float = 0.0

    # Record
    win_loss_record: str | None = None
    playoff_record: str | None = None
    championships: int | None = None

    # Offensive
    offensive_points_for: float | None = None
    max_offensive_points_for: float | None = None
    offensive_management_percent: float | None = None
    average_offensive_ppw: float | None = None
    position_averages: dict[str, float] | None = None
    individual_position_averages: dict[str, float] | None = None

    # Defensive
    defensive_points_for: float | None = None
    max_defensive_points_for: float | None = None
    defensive_management_percent: float | None = None
    average_defensive_ppw: float | None = None

    points_scored_against: float | None = None
    lineup_config: dict[str, int] | None = None

    # Extended fields
    weekly_actual_lineup_points: dict[int, float] | None = None
    actual_starters_by_week: dict[int, list[str]] | None = None
    actual_starter_position_counts: dict[str, int] | None = None
    actual_starter_weeks: int | None = None
    waiver_moves: int | None = None
    faab_spent: float | None = None
    trades_completed: int | None = None

    @property
    def roster_id(self) -> int:
        """Numeric roster id used by matchup entries (-1 when not numeric)."""
        try:
            return int(self.id)
        except ValueError:
            return -1

    def player(self, player_id: str) -> Player | None:
        """Roster player with the given id, if any."""
        for p in self.roster:
            if p.id == player_id:
                return p
        return None

    class Config:
        extra = 'ignore'


class SeasonData(BaseModel):
    """One season of a league: teams, playoff shape and weekly matchups."""

    id: str = Field(..., min_length=1)
    teams: list[TeamStanding] = Field(default_factory=list)
    playoff_start_week: int | None = Field(None, ge=1)
    playoff_teams_count: int | None = Field(None, ge=1)
    matchups_by_week: dict[int, list[MatchupEntry]] | None = None
    computed_champion_owner_id: str | None = None

    def entries_for_week(self, week: int) -> list[MatchupEntry]:
        return list((self.matchups_by_week or {}).get(week, []))

    def entry_for(self, roster_id: int, week: int) -> MatchupEntry | None:
        """Matchup entry of the given roster for the given week."""
        for entry in self.entries_for_week(week):
            if entry.roster_id == roster_id:
                return entry
        return None

    def opponent_entry(self, entry: MatchupEntry, week: int) -> MatchupEntry | None:
        """The other side of ``entry``'s pairing, matched by matchup_id."""
        if entry.matchup_id is None:
            return None
        for other in self.entries_for_week(week):
            if other.matchup_id == entry.matchup_id and other.roster_id != entry.roster_id:
                return other
        return None

    def team_for_roster(self, roster_id: int) -> TeamStanding | None:
        for team in self.teams:
            if team.roster_id == roster_id:
                return team
        return None

    def team_for_owner(self, owner_id: str) -> TeamStanding | None:
        for team in self.teams:
            if team.owner_id == owner_id:
                return team
        return None

    def weeks(self) -> list[int]:
        """Weeks with recorded matchups, ascending."""
        return sorted((self.matchups_by_week or {}).keys())

    class Config:
        extra = 'ignore'


class LeagueData(BaseModel):
    """A league with its full season history and player caches."""

    id: str = Field(..., min_length=1)
    name: str = ''
    season: str = ''
    seasons: list[SeasonData] = Field(default_factory=list)
    starting_lineup: list[str] = Field(default_factory=list)
    owned_players: dict[str, CompactPlayer] | None = None
    team_historical_players: dict[str, dict[str, TeamHistoricalPlayer]] | None = None
    computed_championships: dict[str, int] | None = None

    def sorted_seasons(self) -> list[SeasonData]:
        return sorted(self.seasons, key=lambda s: s.id)

    def latest_season(self) -> SeasonData | None:
        ordered = self.sorted_seasons()
        return ordered[-1] if ordered else None

    def season_for_team(self, team: TeamStanding) -> SeasonData | None:
        """First season whose teams include this exact team record."""
        for season in self.seasons:
            for t in season.teams:
                if t.id == team.id and t.owner_id == team.owner_id:
                    return season
        return None

    class Config:
        extra = 'ignore'


class LeaguesFile(BaseModel):
    """Complete leagues.json file structure."""

    leagues: list[LeagueData] = Field(default_factory=list)

    class Config:
        extra = 'forbid'


class PlayersFile(BaseModel):
    """Global player metadata snapshot (players.json)."""

    players: dict[str, CompactPlayer] = Field(default_factory=dict)

    class Config:
        extra = 'forbid'


class SchemaVersionFile(BaseModel):
    """Persisted calculation-rules version flag (schema_version.json)."""

    version: int = Field(0, ge=0)

    class Config:
        extra = 'forbid'


class EngineConfig(BaseModel):
    """Engine configuration settings (data/engine_config.json)."""

    schema_version: int = Field(DEFAULT_SCHEMA_VERSION, ge=1)
    reconciliation_tolerance: float = Field(DEFAULT_RECONCILIATION_TOLERANCE, ge=0)
    default_playoff_start_week: int = Field(DEFAULT_PLAYOFF_START_WEEK, ge=1, le=25)
    default_playoff_teams: int = Field(DEFAULT_PLAYOFF_TEAMS, ge=1, le=32)
    inferred_slot_cap: int = Field(DEFAULT_INFERRED_SLOT_CAP, ge=1, le=10)
    management_percent_epsilon: float = Field(DEFAULT_MANAGEMENT_PERCENT_EPSILON, ge=0)
    max_workers: int = Field(DEFAULT_MAX_WORKERS, ge=1, le=64)
    legacy_cache_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_LEGACY_CACHE_PATTERNS)
    )

    @field_validator('legacy_cache_patterns')
    @classmethod
    def validate_patterns(cls, v):
        """Reject patterns that could escape the data directory."""
        for pattern in v:
            if not pattern or '/' in pattern or '\\' in pattern or '..' in pattern:
                raise ValueError(f'Invalid cache pattern: {pattern!r}')
        return v

    class Config:
        extra = 'forbid'
