"""Tests for the SQLAlchemy trade repository and config store."""

from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path

import pytest

from copytrade_analytics.analytics.metrics import compute_trader_stats
from copytrade_analytics.core.exceptions import InvalidInputError
from copytrade_analytics.core.models import Side, TrackedTrader
from copytrade_analytics.core.protocols import ConfigStore, RecommendationSink, TradeRepository
from copytrade_analytics.storage.repository import (
    SqlConfigStore,
    SqlTradeRepository,
    parse_trader_id,
)

_ADDRESS_A = "0xaaa"
_ADDRESS_B = "0xbbb"
_BASE_TS = 1700000000
_TRADE_COUNT_3 = 3


@pytest.fixture
def repo(tmp_path: Path) -> Iterator[SqlTradeRepository]:
    """Create an initialised SQLite repository in a temporary file.

    Returns:
        Repository with every table created.

    """
    repository = SqlTradeRepository(f"sqlite:///{tmp_path / 'ledger.db'}")
    repository.init_db()
    yield repository
    repository.close()


def _add_trades(repo: SqlTradeRepository, trader_id: str, *pnls: int | None) -> None:
    for i, pnl in enumerate(pnls):
        repo.add_trade(
            trader_id,
            f"0x{trader_id}{i:04d}",
            timestamp=_BASE_TS + i * 60,
            profit_loss=None if pnl is None else Decimal(pnl),
        )


class TestParseTraderId:
    """Tests for trader id parsing."""

    def test_valid(self) -> None:
        """Test a positive integer string is accepted."""
        assert parse_trader_id("42") == 42  # noqa: PLR2004

    @pytest.mark.parametrize("bad", ["", "0", "-1", "abc", "1.5"])
    def test_malformed(self, bad: str) -> None:
        """Test malformed ids are rejected."""
        with pytest.raises(InvalidInputError):
            parse_trader_id(bad)


class TestSqlTradeRepository:
    """Tests for the SQL trade repository."""

    def test_satisfies_protocols(self, repo: SqlTradeRepository) -> None:
        """Test the repository implements the read and sink protocols."""
        assert isinstance(repo, TradeRepository)
        assert isinstance(repo, RecommendationSink)

    def test_init_db_idempotent(self, repo: SqlTradeRepository) -> None:
        """Test creating tables twice is harmless."""
        repo.init_db()
        assert not repo.has_trader("1")

    def test_add_address_idempotent(self, repo: SqlTradeRepository) -> None:
        """Test re-adding an address returns the existing id."""
        first = repo.add_address(_ADDRESS_A, "whale")
        assert repo.add_address(_ADDRESS_A) == first
        assert repo.has_trader(first)

    def test_add_trade_deduplicates(self, repo: SqlTradeRepository) -> None:
        """Test a repeated transaction hash is ignored."""
        trader = repo.add_address(_ADDRESS_A)
        assert repo.add_trade(trader, "0x01", timestamp=_BASE_TS, profit_loss=Decimal(5))
        assert not repo.add_trade(trader, "0x01", timestamp=_BASE_TS + 1)
        assert len(repo.list_trades(trader)) == 1

    def test_list_trades_ordered(self, repo: SqlTradeRepository) -> None:
        """Test trades come back oldest first with their fields."""
        trader = repo.add_address(_ADDRESS_A)
        repo.add_trade(
            trader,
            "0x02",
            timestamp=_BASE_TS + 10,
            profit_loss=Decimal("-2.5"),
            asset="WETH",
            side=Side.SELL,
            size_usd=Decimal(100),
        )
        repo.add_trade(trader, "0x01", timestamp=_BASE_TS)
        trades = repo.list_trades(trader)
        assert [t.timestamp for t in trades] == [_BASE_TS, _BASE_TS + 10]
        assert trades[0].profit_loss is None
        assert trades[1].profit_loss == Decimal("-2.5")
        assert trades[1].side is Side.SELL
        assert trades[1].asset == "WETH"
        assert trades[1].size_usd == Decimal(100)
        assert trades[1].trader_id == trader

    def test_list_trades_unknown_trader(self, repo: SqlTradeRepository) -> None:
        """Test an unknown trader has no trades."""
        assert repo.list_trades("99") == []

    def test_list_trades_malformed_id(self, repo: SqlTradeRepository) -> None:
        """Test a malformed id raises."""
        with pytest.raises(InvalidInputError):
            repo.list_trades("abc")

    def test_all_trader_stats(self, repo: SqlTradeRepository) -> None:
        """Test per-trader aggregates including a trader with no trades."""
        a = repo.add_address(_ADDRESS_A, "whale")
        b = repo.add_address(_ADDRESS_B)
        _add_trades(repo, a, 30, -10, None)
        stats = repo.list_all_trader_stats()
        assert [s.trader_id for s in stats] == [a, b]
        first = stats[0]
        assert first.trade_count == _TRADE_COUNT_3
        assert (first.win_count, first.loss_count) == (1, 1)
        assert first.total_profit_loss == Decimal(20)
        assert first.avg_profit_loss == Decimal(10)
        assert first.win_rate_pct == Decimal(50)
        assert first.label == "whale"
        assert first.address == _ADDRESS_A
        assert first.last_trade_at == _BASE_TS + 120
        empty = stats[1]
        assert empty.trade_count == 0
        assert empty.win_rate_pct == 0
        assert empty.last_trade_at is None

    def test_stats_match_in_memory_aggregation(self, repo: SqlTradeRepository) -> None:
        """Test fractional P&L aggregates exactly as the in-memory projection does."""
        trader = repo.add_address(_ADDRESS_A, "whale")
        for i, pnl in enumerate(("0.1", "0.2", "-0.07")):
            repo.add_trade(
                trader, f"0xf{i}", timestamp=_BASE_TS + i, profit_loss=Decimal(pnl)
            )
        expected = compute_trader_stats(
            trader, repo.list_trades(trader), address=_ADDRESS_A, label="whale"
        )
        stats = repo.list_all_trader_stats()[0]
        assert stats == expected
        assert stats.total_profit_loss == Decimal("0.23")

    def test_get_trader(self, repo: SqlTradeRepository) -> None:
        """Test a tracked trader is returned with its address and label."""
        trader = repo.add_address(_ADDRESS_A, "whale")
        assert repo.get_trader(trader) == TrackedTrader(trader, _ADDRESS_A, "whale")
        assert repo.get_trader("99") is None

    def test_recent_trades(self, repo: SqlTradeRepository) -> None:
        """Test the large-loss window scan filters and orders newest first."""
        a = repo.add_address(_ADDRESS_A)
        _add_trades(repo, a, -5000, -2000, -50, None, -3000)
        recent = repo.list_recent_trades(_BASE_TS, Decimal(-1000))
        assert [t.timestamp for t in recent] == [_BASE_TS + 240, _BASE_TS + 60]

    def test_recommendations(self, repo: SqlTradeRepository) -> None:
        """Test recommendations are stored and filtered newest first."""
        a = repo.add_address(_ADDRESS_A)
        repo.save_recommendation("remove", a, "win rate low", Decimal("0.3"), created_at=1)
        repo.save_recommendation("increase", a, "on fire", created_at=2)
        repo.save_recommendation("portfolio", None, "diversify", created_at=3)
        latest = repo.get_latest_recommendations()
        assert [r.type for r in latest] == ["portfolio", "increase", "remove"]
        removes = repo.get_latest_recommendations(rec_type="remove")
        assert removes[0].confidence == pytest.approx(0.3)
        assert len(repo.get_latest_recommendations(trader_id=a)) == 2  # noqa: PLR2004
        assert len(repo.get_latest_recommendations(limit=1)) == 1

    def test_recommendation_requires_type(self, repo: SqlTradeRepository) -> None:
        """Test an empty recommendation type is rejected."""
        with pytest.raises(InvalidInputError):
            repo.save_recommendation("", None, "reason")


class TestSqlConfigStore:
    """Tests for the SQL config store."""

    def test_round_trip(self, repo: SqlTradeRepository) -> None:
        """Test a blob can be written, read, and replaced."""
        store = SqlConfigStore(repo.engine)
        assert isinstance(store, ConfigStore)
        assert store.get("alert_thresholds") is None
        store.set("alert_thresholds", b"{}")
        store.set("alert_thresholds", b'{"x": 1}')
        assert store.get("alert_thresholds") == b'{"x": 1}'
