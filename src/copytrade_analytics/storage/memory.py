"""In-process implementations of the storage protocols.

Useful for tests, notebooks, and hosts that already hold the ledger in
memory. Trade stats are derived with the same aggregation code the
engine uses, so results match the SQL adapter.
"""

from decimal import Decimal

from copytrade_analytics.analytics.metrics import compute_trader_stats
from copytrade_analytics.core.exceptions import InvalidInputError
from copytrade_analytics.core.models import TrackedTrader, Trade, TraderStats


class InMemoryTradeRepository:
    """Trade repository holding every trade in a Python dict.

    Example::

        repo = InMemoryTradeRepository()
        repo.add_trader("t1", label="whale")
        repo.add_trades([Trade(id="1", trader_id="t1", profit_loss=Decimal(5))])

    """

    def __init__(self) -> None:
        """Initialize an empty ledger."""
        self._traders: dict[str, tuple[str | None, str | None]] = {}
        self._trades: dict[str, list[Trade]] = {}

    def add_trader(
        self, trader_id: str, address: str | None = None, label: str | None = None
    ) -> None:
        """Start tracking a trader.

        Raises:
            InvalidInputError: If ``trader_id`` is empty.

        """
        if not trader_id:
            raise InvalidInputError("trader_id must be a non-empty string")
        self._traders[trader_id] = (address, label)
        self._trades.setdefault(trader_id, [])

    def add_trades(self, trades: list[Trade]) -> None:
        """Append trades, tracking any trader not seen before.

        Trades whose id is already stored for the trader are ignored.
        """
        for trade in trades:
            if trade.trader_id not in self._traders:
                self.add_trader(trade.trader_id)
            ledger = self._trades[trade.trader_id]
            if all(t.id != trade.id for t in ledger):
                ledger.append(trade)

    def has_trader(self, trader_id: str) -> bool:
        """Return ``True`` when the trader is tracked."""
        return trader_id in self._traders

    def get_trader(self, trader_id: str) -> TrackedTrader | None:
        """Return the trader's address and label, or ``None`` if not tracked."""
        if trader_id not in self._traders:
            return None
        address, label = self._traders[trader_id]
        return TrackedTrader(trader_id=trader_id, address=address, label=label)

    def list_trades(self, trader_id: str) -> list[Trade]:
        """Return the trader's trades ordered by timestamp ascending."""
        return sorted(self._trades.get(trader_id, []), key=lambda t: t.timestamp)

    def list_all_trader_stats(self) -> list[TraderStats]:
        """Return stats for every tracked trader in insertion order."""
        return [
            compute_trader_stats(
                trader_id, self.list_trades(trader_id), address=address, label=label
            )
            for trader_id, (address, label) in self._traders.items()
        ]

    def list_recent_trades(
        self, since_timestamp: int, max_loss_threshold: Decimal
    ) -> list[Trade]:
        """Return trades after ``since_timestamp`` losing more than the threshold, newest first."""
        matches = [
            t
            for ledger in self._trades.values()
            for t in ledger
            if t.timestamp > since_timestamp
            and t.profit_loss is not None
            and t.profit_loss < max_loss_threshold
        ]
        return sorted(matches, key=lambda t: t.timestamp, reverse=True)


class InMemoryConfigStore:
    """Config store backed by a dict of bytes."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        """Initialize the store, optionally pre-populated."""
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        """Return the blob stored under ``key`` or ``None``."""
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``."""
        self._data[key] = value
