"""Tests for configuration management."""

import ast
import os
from pathlib import Path
from unittest.mock import patch

import pytest

import copytrade_analytics.core.config as config_module
from copytrade_analytics.core.config import ConfigError, ConfigLoader, get_config

EXPECTED_HISTORY_SIZE = 1000
EXPECTED_LOOKBACK = 20


def _loader(tmp_path: Path, text: str) -> ConfigLoader:
    (tmp_path / "settings.yaml").write_text(text)
    return ConfigLoader(config_dir=tmp_path)


class TestConfigLoader:
    """Test suite for ConfigLoader."""

    def test_load_default_config(self) -> None:
        """Test the packaged settings file is found and read."""
        loader = ConfigLoader()
        assert loader.get("alerts.history_size") == EXPECTED_HISTORY_SIZE
        assert loader.get("scoring.weights.win_rate") == pytest.approx(0.25)

    def test_get_with_dot_notation(self, tmp_path: Path) -> None:
        """Test getting config values with dot notation."""
        loader = _loader(
            tmp_path,
            """
database:
  url: sqlite:///test.db
advisor:
  removal_win_rate: 0.3
""",
        )
        assert loader.get("database.url") == "sqlite:///test.db"
        assert loader.get("advisor.removal_win_rate") == pytest.approx(0.3)

    def test_get_with_default(self, tmp_path: Path) -> None:
        """Test getting non-existent key returns default."""
        loader = _loader(tmp_path, "database: {}")
        assert loader.get("nonexistent.key", "default_value") == "default_value"

    def test_zero_is_not_missing(self, tmp_path: Path) -> None:
        """Test a configured zero is returned rather than the default."""
        loader = _loader(tmp_path, "advisor:\n  loss_threshold: 0\n")
        assert loader.get("advisor.loss_threshold", 5) == 0

    def test_env_var_substitution(self, tmp_path: Path) -> None:
        """Test environment variable substitution."""
        text = """
database:
  url: ${TEST_COPYTRADE_DB}
  replica: ${TEST_COPYTRADE_REPLICA:sqlite:///replica.db}
"""
        with patch.dict(os.environ, {"TEST_COPYTRADE_DB": "postgresql://db/ledger"}):
            loader = _loader(tmp_path, text)
            assert loader.get("database.url") == "postgresql://db/ledger"
            assert loader.get("database.replica") == "sqlite:///replica.db"

    def test_unresolved_env_var_raises(self, tmp_path: Path) -> None:
        """Raise ConfigError when env var is unset and has no default."""
        with pytest.raises(ConfigError, match="Required environment variable"):
            _loader(tmp_path, "database:\n  url: ${NONEXISTENT_COPYTRADE_VAR}\n")

    def test_embedded_env_var_reference_raises(self, tmp_path: Path) -> None:
        """Raise ConfigError when an env var reference is embedded in a larger string."""
        with pytest.raises(ConfigError, match="Unresolved environment variable reference"):
            _loader(tmp_path, "database:\n  url: sqlite:///${NONEXISTENT_COPYTRADE_DIR}/x.db\n")

    def test_deep_merge(self, tmp_path: Path) -> None:
        """Test local settings are merged over base settings."""
        (tmp_path / "settings.local.yaml").write_text(
            """
alerts:
  dedup_lookback: 20
"""
        )
        loader = _loader(
            tmp_path,
            """
alerts:
  history_size: 1000
  dedup_lookback: 50
""",
        )
        assert loader.get("alerts.history_size") == EXPECTED_HISTORY_SIZE
        assert loader.get("alerts.dedup_lookback") == EXPECTED_LOOKBACK

    def test_get_section_not_mapping(self, tmp_path: Path) -> None:
        """Test a scalar where a section is expected raises."""
        loader = _loader(tmp_path, "backtest: 5\n")
        with pytest.raises(ConfigError, match="must be a dict"):
            loader.get_section("backtest")

    def test_get_section_missing(self, tmp_path: Path) -> None:
        """Test a missing section is empty."""
        assert _loader(tmp_path, "{}").get_section("advisor") == {}


class TestGetConfig:
    """Test suite for the lazy singleton get_config() function."""

    def test_returns_config_loader_instance(self) -> None:
        """Return a ConfigLoader instance on first call."""
        config_module._config = None
        try:
            result = get_config()
            assert isinstance(result, ConfigLoader)
        finally:
            config_module._config = None

    def test_returns_same_instance(self) -> None:
        """Return the same ConfigLoader on subsequent calls."""
        config_module._config = None
        try:
            first = get_config()
            second = get_config()
            assert first is second
        finally:
            config_module._config = None


class TestLayering:
    """Test suite for the dependencies of the config module."""

    def test_imports_nothing_outside_core(self) -> None:
        """Keep the config loader independent of the component packages."""
        tree = ast.parse(Path(config_module.__file__).read_text())
        imported = {
            node.module
            for node in ast.walk(tree)
            if isinstance(node, ast.ImportFrom) and node.module
        }
        package_imports = {m for m in imported if m.startswith("copytrade_analytics.")}
        assert all(m.startswith("copytrade_analytics.core.") for m in package_imports)
