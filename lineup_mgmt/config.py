"""Engine configuration management."""

from functools import lru_cache
from pathlib import Path

from .schemas import EngineConfig
from .utils import load_json_safe

CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'engine_config.json'


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    """
    Load engine configuration from data/engine_config.json.

    Configuration is cached after first load. A missing or invalid file
    falls back to the EngineConfig defaults.

    Returns:
        EngineConfig object with validated settings

    Example:
        from lineup_mgmt.config import get_config
        config = get_config()
        print(f"Schema version: {config.schema_version}")
    """
    return load_json_safe(CONFIG_PATH, default=EngineConfig(), schema=EngineConfig)


def get_schema_version() -> int:
    """Get the current calculation-rules version."""
    return get_config().schema_version


def get_reconciliation_tolerance() -> float:
    """Get the scalar-total vs per-player-sum tolerance."""
    return get_config().reconciliation_tolerance


def get_default_playoff_start_week() -> int:
    """Get the playoff start week used when a season omits it."""
    return get_config().default_playoff_start_week


def get_default_playoff_teams() -> int:
    """Get the playoff team count used when a season omits it."""
    return get_config().default_playoff_teams


def get_inferred_slot_cap() -> int:
    """Get the per-position cap for roster-inferred lineups."""
    return get_config().inferred_slot_cap


def get_management_percent_epsilon() -> float:
    """Get the tolerance above 100% before a result is flagged."""
    return get_config().management_percent_epsilon


def get_max_workers() -> int:
    """Get owner-level parallelism for all-time builds."""
    return get_config().max_workers


def get_legacy_cache_patterns() -> list[str]:
    """Get glob patterns of legacy cache files removed on a version bump."""
    return list(get_config().legacy_cache_patterns)


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file is modified during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
