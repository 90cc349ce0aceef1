"""JSON-file persistence for leagues, the schema-version flag and player caches."""

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

from .config import get_legacy_cache_patterns
from .constants import LEAGUES_FILE, PLAYERS_FILE, SCHEMA_VERSION_FILE
from .schemas import CompactPlayer, LeagueData, LeaguesFile, PlayersFile, SchemaVersionFile
from .utils import load_json, save_json

logger = logging.getLogger('lineup_mgmt.store')


class LeagueStore(Protocol):
    """Persistence interface consumed by the migration engine."""

    def load_leagues(self) -> list[LeagueData]: ...

    def save_leagues(self, leagues: Sequence[LeagueData]) -> None: ...

    def load_schema_version(self) -> int: ...

    def save_schema_version(self, version: int) -> None: ...

    def wipe_legacy_caches(self) -> list[Path]: ...

    def load_player_cache(self) -> dict[str, CompactPlayer]: ...


class JsonLeagueStore:
    """
    League store backed by JSON files in one data directory.

    Files:
        leagues.json         all leagues (LeaguesFile)
        schema_version.json  calculation-rules version flag
        players.json         global player metadata snapshot

    Every write replaces its file atomically.
    """

    def __init__(self, data_dir: Path | str, legacy_cache_patterns: Optional[Sequence[str]] = None):
        self.data_dir = Path(data_dir)
        self.legacy_cache_patterns = (
            list(legacy_cache_patterns) if legacy_cache_patterns is not None
            else get_legacy_cache_patterns()
        )

    @property
    def leagues_path(self) -> Path:
        return self.data_dir / LEAGUES_FILE

    @property
    def schema_version_path(self) -> Path:
        return self.data_dir / SCHEMA_VERSION_FILE

    @property
    def players_path(self) -> Path:
        return self.data_dir / PLAYERS_FILE

    def load_leagues(self) -> list[LeagueData]:
        """Load all leagues; an absent file means no leagues."""
        if not self.leagues_path.exists():
            return []
        return load_json(self.leagues_path, schema=LeaguesFile).leagues

    def save_leagues(self, leagues: Sequence[LeagueData]) -> None:
        save_json(self.leagues_path, LeaguesFile(leagues=list(leagues)))

    def find_league(self, league_id: str) -> Optional[LeagueData]:
        """League with the given id or name."""
        for league in self.load_leagues():
            if league.id == league_id or league.name == league_id:
                return league
        return None

    def load_schema_version(self) -> int:
        """Stored schema version, 0 when never written."""
        if not self.schema_version_path.exists():
            return 0
        return load_json(self.schema_version_path, schema=SchemaVersionFile).version

    def save_schema_version(self, version: int) -> None:
        save_json(self.schema_version_path, SchemaVersionFile(version=version))

    def load_player_cache(self) -> dict[str, CompactPlayer]:
        """Global player metadata, empty when not available."""
        if not self.players_path.exists():
            return {}
        return load_json(self.players_path, schema=PlayersFile).players

    def wipe_legacy_caches(self) -> list[Path]:
        """
        Delete cache files that predate the versioned data model.

        Returns:
            Paths that were removed
        """
        if not self.data_dir.exists():
            return []

        keep = {self.leagues_path.name, self.schema_version_path.name, self.players_path.name}
        removed: list[Path] = []
        for pattern in self.legacy_cache_patterns:
            for path in sorted(self.data_dir.glob(pattern)):
                if path.name in keep or not path.is_file() or path in removed:
                    continue
                path.unlink()
                removed.append(path)

        if removed:
            logger.info(f'Wiped {len(removed)} legacy cache files from {self.data_dir}')
        return removed
