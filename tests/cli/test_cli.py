"""Tests for the analytics CLI commands."""

from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from copytrade_analytics.cli import app
from copytrade_analytics.storage.repository import SqlTradeRepository

_DAY = 86400
_BASE_TS = 1700000000
_GOOD_PNLS = (100, 80, -20, 120, 90, 60, -10, 150, 70, 110, 95, 85)
_BAD_PNLS = (-100, 20, -300, -50, 10, -400)


@pytest.fixture
def runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """Create a seeded SQLite ledger and return its connection string.

    Trader ``1`` is a labelled profitable trader, trader ``2`` a losing
    one, and trader ``3`` has no trades.
    """
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    repo = SqlTradeRepository(url)
    repo.init_db()
    for address, label, pnls in (
        ("0xaaa", "whale", _GOOD_PNLS),
        ("0xbbb", None, _BAD_PNLS),
        ("0xccc", None, ()),
    ):
        trader = repo.add_address(address, label)
        for i, pnl in enumerate(pnls):
            repo.add_trade(
                trader,
                f"{address}-{i}",
                timestamp=_BASE_TS + i * _DAY,
                profit_loss=Decimal(pnl),
            )
    repo.close()
    return url


class TestScoreCommands:
    """Tests for the score and top commands."""

    def test_score(self, runner: CliRunner, db_url: str) -> None:
        """Test the score breakdown lists every sub-metric."""
        result = runner.invoke(app, ["score", "1", "--db-url", db_url])
        assert result.exit_code == 0
        assert "/100" in result.output
        assert "win_rate" in result.output
        assert "activity" in result.output

    def test_score_unknown_trader(self, runner: CliRunner, db_url: str) -> None:
        """Test an unknown trader exits with an error."""
        result = runner.invoke(app, ["score", "99", "--db-url", db_url])
        assert result.exit_code == 1
        assert "Unknown trader" in result.output

    def test_score_malformed_id(self, runner: CliRunner, db_url: str) -> None:
        """Test a malformed trader id exits with an error."""
        result = runner.invoke(app, ["score", "abc", "--db-url", db_url])
        assert result.exit_code == 1
        assert "Malformed trader id" in result.output

    def test_top(self, runner: CliRunner, db_url: str) -> None:
        """Test the top list never includes the losing trader."""
        result = runner.invoke(app, ["top", "--db-url", db_url])
        assert result.exit_code == 0
        assert "0xbbb" not in result.output


class TestBacktestCommand:
    """Tests for the backtest command."""

    def test_backtest(self, runner: CliRunner, db_url: str) -> None:
        """Test a backtest prints the run statistics and verdict."""
        result = runner.invoke(app, ["backtest", "1", "--capital", "2000", "--db-url", db_url])
        assert result.exit_code == 0
        assert "Initial capital: $2,000.00" in result.output
        assert "Verdict:" in result.output

    def test_backtest_no_history(self, runner: CliRunner, db_url: str) -> None:
        """Test a trader without trades reports missing history."""
        result = runner.invoke(app, ["backtest", "3", "--db-url", db_url])
        assert result.exit_code == 0
        assert "No trade history" in result.output

    def test_backtest_invalid_capital(self, runner: CliRunner, db_url: str) -> None:
        """Test non-positive capital exits with an error."""
        result = runner.invoke(app, ["backtest", "1", "--capital", "0", "--db-url", db_url])
        assert result.exit_code == 1
        assert "initial_capital" in result.output


class TestAlertCommands:
    """Tests for the alerts and thresholds commands."""

    def test_alerts_none(self, runner: CliRunner, db_url: str) -> None:
        """Test a quiet ledger reports no new alerts."""
        result = runner.invoke(app, ["alerts", "--db-url", db_url])
        assert result.exit_code == 0
        assert "No new alerts" in result.output

    def test_threshold_update_persists(self, runner: CliRunner, db_url: str) -> None:
        """Test a lowered loss limit is stored and then triggers an alert."""
        result = runner.invoke(
            app, ["thresholds", "--rule", "cumulative_loss", "--value", "500", "--db-url", db_url]
        )
        assert result.exit_code == 0
        assert "cumulative_loss" in result.output

        result = runner.invoke(app, ["alerts", "--db-url", db_url])
        assert result.exit_code == 0
        assert "Cumulative loss limit exceeded" in result.output

    def test_threshold_disable(self, runner: CliRunner, db_url: str) -> None:
        """Test a rule can be disabled."""
        result = runner.invoke(
            app, ["thresholds", "--rule", "single_loss", "--disabled", "--db-url", db_url]
        )
        assert result.exit_code == 0
        assert "no" in result.output

    def test_unknown_rule(self, runner: CliRunner, db_url: str) -> None:
        """Test an unknown rule exits with an error."""
        result = runner.invoke(app, ["thresholds", "--rule", "drawdown", "--db-url", db_url])
        assert result.exit_code == 1
        assert "unknown rule" in result.output


class TestReportCommand:
    """Tests for the report command."""

    def test_report(self, runner: CliRunner, db_url: str) -> None:
        """Test the daily report names the best and worst traders."""
        result = runner.invoke(app, ["report", "--db-url", db_url])
        assert result.exit_code == 0
        assert "Tracked traders: 3" in result.output
        assert "Top performer:   whale" in result.output
        assert "Saved" not in result.output

    def test_report_save(self, runner: CliRunner, db_url: str) -> None:
        """Test saving writes the recommendations to the ledger."""
        result = runner.invoke(app, ["report", "--save", "--db-url", db_url])
        assert result.exit_code == 0
        assert "Saved" in result.output
        repo = SqlTradeRepository(db_url)
        try:
            assert repo.get_latest_recommendations()
        finally:
            repo.close()


class TestVerboseOption:
    """Tests for the --verbose flag shared by every command."""

    @pytest.mark.parametrize(
        ("module", "args"),
        [
            ("score_cmd", ["score", "1"]),
            ("score_cmd", ["top"]),
            ("backtest_cmd", ["backtest", "1"]),
            ("alerts_cmd", ["alerts"]),
            ("alerts_cmd", ["thresholds"]),
            ("report_cmd", ["report"]),
        ],
    )
    def test_verbose_enables_logging(
        self, runner: CliRunner, db_url: str, module: str, args: list[str]
    ) -> None:
        """Test --verbose configures INFO logging before the command runs."""
        target = f"copytrade_analytics.cli.{module}.configure_verbose_logging"
        with patch(target) as configure:
            result = runner.invoke(app, [*args, "--verbose", "--db-url", db_url])
        assert result.exit_code == 0
        configure.assert_called_once_with()

    def test_quiet_by_default(self, runner: CliRunner, db_url: str) -> None:
        """Test logging is left alone without the flag."""
        with patch("copytrade_analytics.cli.report_cmd.configure_verbose_logging") as configure:
            result = runner.invoke(app, ["report", "--db-url", db_url])
        assert result.exit_code == 0
        configure.assert_not_called()
