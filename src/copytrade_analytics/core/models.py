"""Core data models shared across the analytics engine.

Define the immutable ``Trade`` ledger record consumed from the trade
repository and the ``TraderStats`` aggregate projected from it. Both are
value objects: nothing in the engine mutates them after construction.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)


class Side(Enum):
    """Direction of a trade: BUY or SELL of an outcome token."""

    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class TrackedTrader:
    """Identity of a trader the repository tracks."""

    trader_id: str
    address: str | None = None
    label: str | None = None


@dataclass(frozen=True)
class Trade:
    """Immutable record of a single trade made by a tracked trader.

    ``profit_loss`` is signed and expressed in currency units. It is
    ``None`` when the venue has not reported a realised result yet; such
    trades count toward ``trade_count`` but never toward wins or losses.

    Args:
        id: Repository identifier of the trade.
        trader_id: Identifier of the tracked trader who made the trade.
        asset: Traded token or market identifier.
        side: Trade direction.
        size_usd: Notional size in USD.
        price_or_amount_in: Execution price or input amount.
        amount_out: Output amount received.
        profit_loss: Realised P&L, or ``None`` when unknown.
        timestamp: Unix epoch seconds.

    Raises:
        ValueError: If ``size_usd`` or ``timestamp`` is negative.

    """

    id: str
    trader_id: str
    asset: str = ""
    side: Side = Side.BUY
    size_usd: Decimal = ZERO
    price_or_amount_in: Decimal = ZERO
    amount_out: Decimal = ZERO
    profit_loss: Decimal | None = None
    timestamp: int = 0

    def __post_init__(self) -> None:
        """Validate size and timestamp are non-negative."""
        if self.size_usd < ZERO:
            msg = f"size_usd must be non-negative, got {self.size_usd}"
            raise ValueError(msg)
        if self.timestamp < 0:
            msg = f"timestamp must be non-negative, got {self.timestamp}"
            raise ValueError(msg)

    @property
    def is_win(self) -> bool:
        """Return ``True`` when the trade closed with a positive P&L."""
        return self.profit_loss is not None and self.profit_loss > ZERO

    @property
    def is_loss(self) -> bool:
        """Return ``True`` when the trade closed with a negative P&L."""
        return self.profit_loss is not None and self.profit_loss < ZERO


@dataclass(frozen=True)
class TraderStats:
    """Aggregate performance snapshot for one trader.

    A pure projection of the trader's trades, recomputed on demand and
    never persisted by the engine. Trades with a null or zero P&L count
    toward ``trade_count`` only, so ``win_count + loss_count`` never
    exceeds it.

    Args:
        trader_id: Identifier of the tracked trader.
        trade_count: Total number of trades.
        win_count: Trades with positive P&L.
        loss_count: Trades with negative P&L.
        total_profit_loss: Sum of all known P&L.
        avg_profit_loss: Mean P&L over trades with a known P&L.
        win_rate_pct: Percentage of trades with a known P&L that won.
        address: Wallet address, when the repository knows it.
        label: Human-readable trader label.
        last_trade_at: Unix epoch seconds of the most recent trade.

    Raises:
        ValueError: If the counts are inconsistent or the win rate is
            outside ``[0, 100]``.

    """

    trader_id: str
    trade_count: int = 0
    win_count: int = 0
    loss_count: int = 0
    total_profit_loss: Decimal = ZERO
    avg_profit_loss: Decimal = ZERO
    win_rate_pct: Decimal = ZERO
    address: str | None = None
    label: str | None = None
    last_trade_at: int | None = None

    def __post_init__(self) -> None:
        """Validate count consistency and win-rate range."""
        if min(self.trade_count, self.win_count, self.loss_count) < 0:
            msg = f"trade counts must be non-negative for trader {self.trader_id}"
            raise ValueError(msg)
        if self.win_count + self.loss_count > self.trade_count:
            msg = (
                f"win_count + loss_count ({self.win_count} + {self.loss_count}) "
                f"exceeds trade_count {self.trade_count}"
            )
            raise ValueError(msg)
        if not (ZERO <= self.win_rate_pct <= HUNDRED):
            msg = f"win_rate_pct must be between 0 and 100, got {self.win_rate_pct}"
            raise ValueError(msg)

    @property
    def display_name(self) -> str:
        """Return the label, address, or id, whichever is known first."""
        return self.label or self.address or self.trader_id
