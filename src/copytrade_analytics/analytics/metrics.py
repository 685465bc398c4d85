"""Trade-ledger statistics used by scoring, alerting, and advising.

Provide standalone functions that each project a trader's trade list into
a single statistic. Every function returns a neutral value (zero, an
empty list, or ``None`` where documented) for empty or sparse input
instead of raising, so downstream aggregation never breaks on traders
with little history.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from copytrade_analytics.core.models import HUNDRED, ZERO, Trade, TraderStats
from copytrade_analytics.core.timestamps import day_index

PROFIT_FACTOR_CAP = Decimal(10)


@dataclass(frozen=True)
class Streaks:
    """Longest consecutive winning and losing runs in timestamp order."""

    max_win_streak: int = 0
    max_loss_streak: int = 0


def closed_trades(trades: Iterable[Trade]) -> list[Trade]:
    """Return the trades with a known P&L, ordered by timestamp ascending."""
    return sorted(
        (t for t in trades if t.profit_loss is not None), key=lambda t: t.timestamp
    )


def win_rate(trades: list[Trade]) -> Decimal:
    """Return the fraction of trades with a known P&L that won (0.0 to 1.0)."""
    known = [t for t in trades if t.profit_loss is not None]
    if not known:
        return ZERO
    winners = sum(1 for t in known if t.is_win)
    return Decimal(winners) / Decimal(len(known))


def profit_factor(trades: list[Trade]) -> Decimal:
    """Return gross profit divided by gross loss.

    Return ``PROFIT_FACTOR_CAP`` instead of infinity when there are
    profits but no losses, and zero when there is neither.
    """
    gross_profit = sum((t.profit_loss for t in trades if t.is_win), ZERO)  # type: ignore[misc]
    gross_loss = abs(sum((t.profit_loss for t in trades if t.is_loss), ZERO))  # type: ignore[misc]
    if gross_loss == ZERO:
        return PROFIT_FACTOR_CAP if gross_profit > ZERO else ZERO
    return gross_profit / gross_loss


def daily_returns(trades: list[Trade]) -> list[Decimal]:
    """Return net P&L per calendar day, one entry per day that had trades.

    Days are UTC buckets of ``timestamp // 86400``. Quiet days are not
    zero-filled.
    """
    buckets: dict[int, Decimal] = {}
    for trade in closed_trades(trades):
        day = day_index(trade.timestamp)
        buckets[day] = buckets.get(day, ZERO) + trade.profit_loss  # type: ignore[operator]
    return [buckets[day] for day in sorted(buckets)]


def streaks(trades: list[Trade]) -> Streaks:
    """Return the longest win and loss streaks in timestamp order.

    A trade with ``profit_loss <= 0`` extends a losing streak. Trades
    without a known P&L are skipped.
    """
    current = 0
    max_win = 0
    max_loss = 0
    for trade in closed_trades(trades):
        if trade.is_win:
            current = current + 1 if current > 0 else 1
            max_win = max(max_win, current)
        else:
            current = current - 1 if current < 0 else -1
            max_loss = max(max_loss, -current)
    return Streaks(max_win_streak=max_win, max_loss_streak=max_loss)


def max_drawdown(trades: list[Trade]) -> Decimal:
    """Return the largest peak-to-trough drop in cumulative P&L, in currency.

    The running peak starts at zero, so a trader who only loses reports
    the full cumulative loss as drawdown.
    """
    running = ZERO
    peak = ZERO
    max_dd = ZERO
    for trade in closed_trades(trades):
        running += trade.profit_loss  # type: ignore[operator]
        peak = max(peak, running)
        max_dd = max(max_dd, peak - running)
    return max_dd


def mean(values: list[Decimal]) -> Decimal:
    """Return the arithmetic mean, or zero for an empty list."""
    if not values:
        return ZERO
    return sum(values, ZERO) / Decimal(len(values))


def population_std(values: list[Decimal]) -> Decimal:
    """Return the population standard deviation, or zero for an empty list."""
    if not values:
        return ZERO
    avg = mean(values)
    variance = sum(((v - avg) ** 2 for v in values), ZERO) / Decimal(len(values))
    return variance.sqrt()


def historical_win_rate(trades: list[Trade], before_timestamp: int) -> Decimal | None:
    """Return the win-rate percentage over trades older than a cutoff.

    Only decided trades (positive or negative P&L) count. Return ``None``
    rather than zero when no such trades exist, so a missing baseline is
    never mistaken for a 0% win rate.
    """
    older = [t for t in trades if t.timestamp < before_timestamp]
    wins = sum(1 for t in older if t.is_win)
    losses = sum(1 for t in older if t.is_loss)
    total = wins + losses
    if total == 0:
        return None
    return Decimal(wins) / Decimal(total) * HUNDRED


def compute_trader_stats(
    trader_id: str,
    trades: list[Trade],
    *,
    address: str | None = None,
    label: str | None = None,
) -> TraderStats:
    """Project a trader's trade list into a ``TraderStats`` snapshot.

    Args:
        trader_id: Identifier of the trader the trades belong to.
        trades: Every trade of the trader, in any order.
        address: Wallet address to carry on the snapshot.
        label: Human-readable label to carry on the snapshot.

    Returns:
        Aggregate counts, P&L totals, and win rate for the trader.

    """
    known = [t.profit_loss for t in trades if t.profit_loss is not None]
    total = sum(known, ZERO)
    return TraderStats(
        trader_id=trader_id,
        trade_count=len(trades),
        win_count=sum(1 for t in trades if t.is_win),
        loss_count=sum(1 for t in trades if t.is_loss),
        total_profit_loss=total,
        avg_profit_loss=total / Decimal(len(known)) if known else ZERO,
        win_rate_pct=win_rate(trades) * HUNDRED,
        address=address,
        label=label,
        last_trade_at=max((t.timestamp for t in trades), default=None),
    )
