"""Component settings built from the YAML configuration.

Translate the raw ``ConfigLoader`` sections into the validated config
structs of the scoring engine, backtest simulator, alert engine, and
advisor.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from copytrade_analytics.advisor.advisor import AdvisorConfig
from copytrade_analytics.alerts.engine import AlertEngineConfig
from copytrade_analytics.analytics.backtest import BacktestConfig
from copytrade_analytics.analytics.scoring import ScoringWeights
from copytrade_analytics.core.config import ConfigError, ConfigLoader, get_config

DEFAULT_DATABASE_URL = "sqlite:///copytrade.db"


@dataclass(frozen=True)
class AnalyticsSettings:
    """Validated settings for every analytics component."""

    database_url: str = DEFAULT_DATABASE_URL
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    alerts: AlertEngineConfig = field(default_factory=AlertEngineConfig)
    advisor: AdvisorConfig = field(default_factory=AdvisorConfig)


def _decimals(section: dict[str, Any]) -> dict[str, Decimal]:
    """Convert every value of a section to ``Decimal``."""
    try:
        return {k: Decimal(str(v)) for k, v in section.items()}
    except InvalidOperation as exc:
        msg = f"Expected numeric settings, got {section}"
        raise ConfigError(msg) from exc


def _ints(section: dict[str, Any]) -> dict[str, int]:
    """Convert every value of a section to ``int``."""
    try:
        return {k: int(v) for k, v in section.items()}
    except (TypeError, ValueError) as exc:
        msg = f"Expected integer settings, got {section}"
        raise ConfigError(msg) from exc


def load_settings(loader: ConfigLoader | None = None) -> AnalyticsSettings:
    """Build validated component settings from the YAML configuration.

    Args:
        loader: Loader to read from; defaults to the global loader.

    Returns:
        Settings with every section validated by its config struct.

    Raises:
        ConfigError: If a section is malformed or fails validation.

    """
    cfg = loader or get_config()
    try:
        return AnalyticsSettings(
            database_url=str(cfg.get("database.url", DEFAULT_DATABASE_URL)),
            scoring=ScoringWeights(**_decimals(cfg.get_section("scoring.weights"))),
            backtest=BacktestConfig(**_decimals(cfg.get_section("backtest"))),
            alerts=AlertEngineConfig(**_ints(cfg.get_section("alerts"))),
            advisor=AdvisorConfig(**_decimals(cfg.get_section("advisor"))),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc
