"""Unit tests for engine configuration loading."""

import json
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from lineup_mgmt import config
from lineup_mgmt.schemas import EngineConfig


class TestEngineConfig:
    """Tests for config loading and getters."""

    def test_bundled_defaults(self):
        """Test that the shipped config file matches the built-in defaults."""
        assert config.get_config() == EngineConfig()
        assert config.get_schema_version() == 5
        assert config.get_reconciliation_tolerance() == 0.01
        assert config.get_default_playoff_start_week() == 14
        assert config.get_default_playoff_teams() == 4
        assert config.get_inferred_slot_cap() == 3
        assert config.get_management_percent_epsilon() == 0.5
        assert config.get_max_workers() == 4
        assert 'league_*.json' in config.get_legacy_cache_patterns()

    def test_missing_file_uses_defaults(self, tmp_path):
        with patch.object(config, 'CONFIG_PATH', tmp_path / 'absent.json'):
            config.clear_config_cache()
            assert config.get_config() == EngineConfig()

    def test_custom_file(self, tmp_path):
        path = tmp_path / 'engine_config.json'
        path.write_text(json.dumps({'schema_version': 7, 'max_workers': 2}))
        with patch.object(config, 'CONFIG_PATH', path):
            config.clear_config_cache()
            assert config.get_schema_version() == 7
            assert config.get_max_workers() == 2
            assert config.get_reconciliation_tolerance() == 0.01

    def test_config_is_cached(self, tmp_path):
        """Test that edits are only seen after clearing the cache."""
        path = tmp_path / 'engine_config.json'
        path.write_text(json.dumps({'schema_version': 6}))
        with patch.object(config, 'CONFIG_PATH', path):
            config.clear_config_cache()
            assert config.get_schema_version() == 6
            path.write_text(json.dumps({'schema_version': 8}))
            assert config.get_schema_version() == 6
            config.clear_config_cache()
            assert config.get_schema_version() == 8

    @pytest.mark.parametrize('pattern', ['../leagues.json', 'sub/x.cache', '', 'a\\b'])
    def test_unsafe_cache_patterns_rejected(self, pattern):
        with pytest.raises(ValidationError):
            EngineConfig(legacy_cache_patterns=[pattern])

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(unknown_setting=1)
