"""Fixed-fraction copy-trading backtest.

Replay a trader's historical trades against a synthetic capital account.
Each trade's ``profit_loss`` is read as a percentage return on a position
worth a fixed fraction of current capital, so the simulation measures the
compounding of the trader's signal sequence rather than their absolute
dollar sizes. Positions never overlap: each trade is opened and closed
before the next one.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from copytrade_analytics.analytics.metrics import PROFIT_FACTOR_CAP, mean, population_std
from copytrade_analytics.core.models import HUNDRED, ZERO, Trade

logger = logging.getLogger(__name__)

NO_TRADE_HISTORY = "No trade history"

_STRONG_RETURN_PCT = Decimal(50)
_STRONG_WIN_RATE_PCT = Decimal(60)


@dataclass(frozen=True)
class BacktestConfig:
    """Capital and sizing parameters for a backtest run.

    Args:
        initial_capital: Starting account balance.
        position_fraction: Fraction of current capital committed per trade.

    Raises:
        ValueError: If capital is not positive or the fraction is outside
            ``(0, 1]``.

    """

    initial_capital: Decimal = Decimal(1000)
    position_fraction: Decimal = Decimal("0.1")

    def __post_init__(self) -> None:
        """Validate capital and position fraction."""
        if self.initial_capital <= ZERO:
            msg = f"initial_capital must be positive, got {self.initial_capital}"
            raise ValueError(msg)
        if not (ZERO < self.position_fraction <= 1):
            msg = f"position_fraction must be in (0, 1], got {self.position_fraction}"
            raise ValueError(msg)


@dataclass(frozen=True)
class Verdict:
    """Copy decision derived from a backtest's return and win rate."""

    action: str
    text: str


STRONG_FOLLOW = Verdict("strong_follow", "Strongly recommended to copy")
FOLLOW_WITH_CAUTION = Verdict("follow_with_caution", "Can copy, but control the risk")
AVOID = Verdict("avoid", "Not recommended to copy")


@dataclass(frozen=True)
class BacktestResult:
    """Outcome of one simulated run over a trader's trade sequence.

    Percentages are expressed on the 0-100 scale.

    Args:
        initial_capital: Starting balance.
        final_capital: Balance after the last trade.
        total_return_pct: Net return over the run.
        total_trades: Number of trades replayed.
        wins: Trades with a positive recorded return.
        losses: Trades with a negative recorded return.
        win_rate_pct: Wins as a percentage of every replayed trade.
        max_drawdown_pct: Spread between the highest and lowest balance
            seen, relative to the highest.
        sharpe_ratio: Mean per-trade return over its standard deviation.
        profit_factor: Gross simulated profit over gross simulated loss.
        equity_curve: Balance after each trade, in replay order.

    """

    initial_capital: Decimal
    final_capital: Decimal
    total_return_pct: Decimal
    total_trades: int
    wins: int
    losses: int
    win_rate_pct: Decimal
    max_drawdown_pct: Decimal
    sharpe_ratio: Decimal
    profit_factor: Decimal
    equity_curve: tuple[Decimal, ...] = ()

    @property
    def verdict(self) -> Verdict:
        """Return the copy decision for this run."""
        if (
            self.total_return_pct > _STRONG_RETURN_PCT
            and self.win_rate_pct > _STRONG_WIN_RATE_PCT
        ):
            return STRONG_FOLLOW
        if self.total_return_pct > ZERO:
            return FOLLOW_WITH_CAUTION
        return AVOID


@dataclass(frozen=True)
class NoTradeHistory:
    """Result returned when there was nothing to replay."""

    initial_capital: Decimal
    error: str = NO_TRADE_HISTORY


def run_backtest(
    trades: list[Trade], config: BacktestConfig | None = None
) -> BacktestResult | NoTradeHistory:
    """Simulate copying a trader with fixed-fraction position sizing.

    Each step commits ``capital * position_fraction`` and realises
    ``profit_loss / 100`` of that position. Trades with an unknown P&L
    replay as a flat step.

    Args:
        trades: The trader's trades ordered by timestamp ascending.
        config: Capital and sizing parameters; defaults to 1000 capital
            and 10% per trade.

    Returns:
        Run statistics, or ``NoTradeHistory`` when ``trades`` is empty.

    """
    cfg = config or BacktestConfig()
    if not trades:
        return NoTradeHistory(initial_capital=cfg.initial_capital)

    capital = cfg.initial_capital
    max_capital = capital
    min_capital = capital
    wins = 0
    losses = 0
    gross_profit = ZERO
    gross_loss = ZERO
    step_returns: list[Decimal] = []
    curve: list[Decimal] = []

    for trade in trades:
        pct = trade.profit_loss if trade.profit_loss is not None else ZERO
        position = capital * cfg.position_fraction
        realised = pct / HUNDRED * position
        if capital != ZERO:
            step_returns.append(realised / capital * HUNDRED)
        capital += realised
        curve.append(capital)

        if pct > ZERO:
            wins += 1
            gross_profit += realised
        elif pct < ZERO:
            losses += 1
            gross_loss -= realised

        max_capital = max(max_capital, capital)
        min_capital = min(min_capital, capital)

    std = population_std(step_returns)
    sharpe = mean(step_returns) / std if std > ZERO else ZERO
    if gross_loss > ZERO:
        pf = gross_profit / gross_loss
    else:
        pf = PROFIT_FACTOR_CAP if gross_profit > ZERO else ZERO

    total = len(trades)
    logger.debug(
        "Backtest replayed %d trades: %s -> %s", total, cfg.initial_capital, capital
    )
    return BacktestResult(
        initial_capital=cfg.initial_capital,
        final_capital=capital,
        total_return_pct=(capital - cfg.initial_capital) / cfg.initial_capital * HUNDRED,
        total_trades=total,
        wins=wins,
        losses=losses,
        win_rate_pct=Decimal(wins) / Decimal(total) * HUNDRED,
        max_drawdown_pct=(max_capital - min_capital) / max_capital * HUNDRED,
        sharpe_ratio=sharpe,
        profit_factor=pf,
        equity_curve=tuple(curve),
    )
