"""Structural protocols for the storage collaborators of the engine.

Define the ``TradeRepository`` and ``ConfigStore`` interfaces that decouple
scoring, alerting, and advising from any concrete storage backend. Any
class whose shape matches these protocols can be used without explicit
inheritance (structural subtyping).
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from copytrade_analytics.core.models import TrackedTrader, Trade, TraderStats


@runtime_checkable
class TradeRepository(Protocol):
    """Read-only view over the persisted, deduplicated trade ledger."""

    def has_trader(self, trader_id: str) -> bool:
        """Return ``True`` when the trader is tracked by the repository."""
        ...

    def get_trader(self, trader_id: str) -> TrackedTrader | None:
        """Return the tracked trader's address and label, or ``None`` if unknown."""
        ...

    def list_trades(self, trader_id: str) -> list[Trade]:
        """Return every trade of a trader, ordered by timestamp ascending."""
        ...

    def list_all_trader_stats(self) -> list[TraderStats]:
        """Return aggregate stats for every tracked trader."""
        ...

    def list_recent_trades(
        self, since_timestamp: int, max_loss_threshold: Decimal
    ) -> list[Trade]:
        """Return trades newer than ``since_timestamp`` losing more than the threshold.

        Args:
            since_timestamp: Exclusive lower bound (epoch seconds).
            max_loss_threshold: Only trades with ``profit_loss`` strictly
                below this (negative) value are returned.

        Returns:
            Matching trades ordered by timestamp descending.

        """
        ...


@runtime_checkable
class ConfigStore(Protocol):
    """Opaque key-value blob store used to persist engine configuration."""

    def get(self, key: str) -> bytes | None:
        """Return the stored blob for ``key`` or ``None`` when absent."""
        ...

    def set(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...


@runtime_checkable
class RecommendationSink(Protocol):
    """Destination for advisor recommendations worth keeping."""

    def save_recommendation(
        self,
        rec_type: str,
        trader_id: str | None,
        reason: str,
        confidence: Decimal | None = None,
        created_at: int | None = None,
    ) -> int:
        """Persist one recommendation and return its identifier."""
        ...
