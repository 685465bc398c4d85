"""Tests for the analytics exception hierarchy."""

from copytrade_analytics.core.exceptions import (
    AnalyticsError,
    ConfigUnavailableError,
    InvalidInputError,
    TraderNotFoundError,
)


class TestExceptions:
    """Tests for exception messages and inheritance."""

    def test_hierarchy(self) -> None:
        """Test every error derives from AnalyticsError."""
        for exc_type in (InvalidInputError, TraderNotFoundError, ConfigUnavailableError):
            assert issubclass(exc_type, AnalyticsError)

    def test_trader_not_found(self) -> None:
        """Test the missing trader id is kept and shown."""
        exc = TraderNotFoundError("42")
        assert exc.trader_id == "42"
        assert "'42'" in str(exc)

    def test_config_unavailable(self) -> None:
        """Test the key and cause are kept and shown."""
        exc = ConfigUnavailableError("alert_thresholds", "disk full")
        assert exc.key == "alert_thresholds"
        assert exc.cause == "disk full"
        assert "disk full" in str(exc)
