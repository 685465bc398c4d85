"""Tests for building component settings from configuration."""

import os
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from copytrade_analytics.core.config import ConfigError, ConfigLoader
from copytrade_analytics.settings import DEFAULT_DATABASE_URL, AnalyticsSettings, load_settings


def _loader(tmp_path: Path, text: str) -> ConfigLoader:
    (tmp_path / "settings.yaml").write_text(text)
    return ConfigLoader(config_dir=tmp_path)


class TestLoadSettings:
    """Test suite for building component settings."""

    def test_packaged_defaults(self) -> None:
        """Test the packaged settings match the built-in defaults."""
        assert load_settings(ConfigLoader()) == AnalyticsSettings()

    def test_database_url_from_env(self) -> None:
        """Test the database URL can be set through the environment."""
        with patch.dict(os.environ, {"COPYTRADE_DATABASE_URL": "sqlite:///other.db"}):
            settings = load_settings(ConfigLoader())
        assert settings.database_url == "sqlite:///other.db"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test missing sections fall back to built-in defaults."""
        settings = load_settings(_loader(tmp_path, "{}"))
        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.backtest.initial_capital == Decimal(1000)

    def test_overrides(self, tmp_path: Path) -> None:
        """Test configured values reach the component settings."""
        settings = load_settings(
            _loader(
                tmp_path,
                """
backtest:
  initial_capital: 5000
  position_fraction: 0.25
alerts:
  dedup_window_seconds: 600
""",
            )
        )
        assert settings.backtest.initial_capital == Decimal(5000)
        assert settings.backtest.position_fraction == Decimal("0.25")
        assert settings.alerts.dedup_window_seconds == 600  # noqa: PLR2004

    @pytest.mark.parametrize(
        "text",
        [
            "scoring:\n  weights:\n    win_rate: 0.9\n",
            "backtest:\n  initial_capital: -1\n",
            "backtest:\n  leverage: 2\n",
            "alerts:\n  history_size: lots\n",
            "advisor:\n  removal_win_rate: abc\n",
        ],
    )
    def test_invalid_settings(self, tmp_path: Path, text: str) -> None:
        """Test malformed or out-of-range settings raise ConfigError."""
        with pytest.raises(ConfigError):
            load_settings(_loader(tmp_path, text))
