"""Tests for the storage protocols."""

from copytrade_analytics.core.protocols import ConfigStore, RecommendationSink, TradeRepository
from copytrade_analytics.storage.memory import InMemoryConfigStore, InMemoryTradeRepository
from copytrade_analytics.storage.repository import SqlConfigStore, SqlTradeRepository


class TestProtocols:
    """Tests that the bundled adapters satisfy the protocols structurally."""

    def test_memory_adapters(self) -> None:
        """Test the in-memory adapters match their protocols."""
        assert isinstance(InMemoryTradeRepository(), TradeRepository)
        assert isinstance(InMemoryConfigStore(), ConfigStore)

    def test_sql_adapters(self) -> None:
        """Test the SQL adapters match their protocols."""
        repo = SqlTradeRepository("sqlite:///:memory:")
        assert isinstance(repo, TradeRepository)
        assert isinstance(repo, RecommendationSink)
        assert isinstance(SqlConfigStore(repo.engine), ConfigStore)
        repo.close()

    def test_plain_object_rejected(self) -> None:
        """Test an unrelated object does not satisfy the repository protocol."""
        assert not isinstance(object(), TradeRepository)
