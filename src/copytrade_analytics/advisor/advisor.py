"""Portfolio-level recommendations over every tracked trader.

Flag traders to drop or to allocate more to, summarise how spread out
trader results are, and bundle everything into a dated daily report.
The advisor works from raw win rate and total P&L only and is
independent of the composite score.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from copytrade_analytics.core.models import HUNDRED, ZERO, TraderStats
from copytrade_analytics.core.protocols import RecommendationSink, TradeRepository
from copytrade_analytics.core.timestamps import Clock, system_clock, utc_date

logger = logging.getLogger(__name__)

REMOVE = "remove"
INCREASE = "increase"

_HIGH_VARIANCE_TEXT = (
    "Portfolio variance is high; consider diversifying across more consistent traders."
)
_LOW_VARIANCE_TEXT = "Portfolio variance is within the acceptable range."
_NO_DATA_TEXT = "No portfolio data available yet."


@dataclass(frozen=True)
class AdvisorConfig:
    """Thresholds used by the advisor.

    Win rates are fractions (0.4 means 40%); P&L thresholds are in
    currency units.

    Raises:
        ValueError: If a win rate is outside ``[0, 1]`` or any other
            threshold is negative.

    """

    removal_win_rate: Decimal = Decimal("0.4")
    increase_win_rate: Decimal = Decimal("0.7")
    loss_threshold: Decimal = ZERO
    profit_threshold: Decimal = ZERO
    variance_threshold: Decimal = ZERO

    def __post_init__(self) -> None:
        """Validate threshold ranges."""
        for name in ("removal_win_rate", "increase_win_rate"):
            value = getattr(self, name)
            if not (ZERO <= value <= 1):
                msg = f"{name} must be between 0 and 1, got {value}"
                raise ValueError(msg)
        for name in ("loss_threshold", "profit_threshold", "variance_threshold"):
            value = getattr(self, name)
            if value < ZERO:
                msg = f"{name} must be non-negative, got {value}"
                raise ValueError(msg)


@dataclass(frozen=True)
class Candidate:
    """A trader flagged for removal or increased allocation."""

    trader_id: str
    address: str | None
    label: str | None
    trade_count: int
    win_rate: Decimal
    total_profit_loss: Decimal
    reasons: tuple[str, ...]


@dataclass(frozen=True)
class PortfolioSummary:
    """Spread of total P&L across tracked traders."""

    mean: Decimal
    variance: Decimal
    count: int
    recommendation: str


@dataclass(frozen=True)
class Performer:
    """Headline figures of the best or worst trader."""

    trader_id: str
    address: str | None
    label: str | None
    total_profit_loss: Decimal
    trade_count: int


@dataclass(frozen=True)
class DailyReport:
    """Everything the advisor concluded for one UTC calendar day."""

    date: str
    total_tracked: int
    top_performer: Performer | None
    worst_performer: Performer | None
    portfolio: PortfolioSummary
    remove: list[Candidate] = field(default_factory=list)
    increase: list[Candidate] = field(default_factory=list)

    @property
    def total_recommendations(self) -> int:
        """Return the number of removal and increase candidates."""
        return len(self.remove) + len(self.increase)


def trade_win_rate(stats: TraderStats) -> Decimal:
    """Return wins as a fraction of every trade, including unresolved ones."""
    if stats.trade_count == 0:
        return ZERO
    return Decimal(stats.win_count) / Decimal(stats.trade_count)


def _candidate(stats: TraderStats, reasons: list[str]) -> Candidate:
    return Candidate(
        trader_id=stats.trader_id,
        address=stats.address,
        label=stats.label,
        trade_count=stats.trade_count,
        win_rate=trade_win_rate(stats),
        total_profit_loss=stats.total_profit_loss,
        reasons=tuple(reasons),
    )


def _performer(stats: TraderStats) -> Performer:
    return Performer(
        trader_id=stats.trader_id,
        address=stats.address,
        label=stats.label,
        total_profit_loss=stats.total_profit_loss,
        trade_count=stats.trade_count,
    )


class RecommendationAdvisor:
    """Batch advisor over all traders known to a trade repository.

    Each ``analyze_*`` method fetches a fresh stats snapshot unless one
    is passed in, so ``generate_daily_report`` reads the repository once.

    Args:
        repository: Source of per-trader aggregate stats.
        config: Advisor thresholds.
        clock: Source of the current Unix time, used to date reports.

    """

    def __init__(
        self,
        repository: TradeRepository,
        config: AdvisorConfig | None = None,
        clock: Clock = system_clock,
    ) -> None:
        """Initialize the advisor."""
        self._repository = repository
        self._config = config or AdvisorConfig()
        self._clock = clock

    def _snapshot(self, stats: list[TraderStats] | None) -> list[TraderStats]:
        return self._repository.list_all_trader_stats() if stats is None else stats

    def analyze_for_removal(
        self, stats: list[TraderStats] | None = None
    ) -> list[Candidate]:
        """Flag traders with a low win rate or a loss beyond the threshold.

        Either condition is enough; each one that holds adds a reason.
        """
        cfg = self._config
        results: list[Candidate] = []
        for row in self._snapshot(stats):
            rate = trade_win_rate(row)
            reasons: list[str] = []
            if rate < cfg.removal_win_rate:
                reasons.append(
                    f"win rate {rate * HUNDRED:.2f}% < {cfg.removal_win_rate * HUNDRED:.0f}%"
                )
            if row.total_profit_loss < -cfg.loss_threshold:
                reasons.append(
                    f"total loss {row.total_profit_loss:.2f} < -{cfg.loss_threshold:.2f}"
                )
            if reasons:
                results.append(_candidate(row, reasons))
        return results

    def analyze_for_increase(
        self, stats: list[TraderStats] | None = None
    ) -> list[Candidate]:
        """Flag traders with both a high win rate and a profit above the threshold."""
        cfg = self._config
        results: list[Candidate] = []
        for row in self._snapshot(stats):
            rate = trade_win_rate(row)
            reasons: list[str] = []
            if rate > cfg.increase_win_rate:
                reasons.append(
                    f"win rate {rate * HUNDRED:.2f}% > {cfg.increase_win_rate * HUNDRED:.0f}%"
                )
            if row.total_profit_loss > cfg.profit_threshold:
                reasons.append(
                    f"profit {row.total_profit_loss:.2f} > {cfg.profit_threshold:.2f}"
                )
            if len(reasons) == 2:  # noqa: PLR2004
                results.append(_candidate(row, reasons))
        return results

    def analyze_portfolio_optimization(
        self, stats: list[TraderStats] | None = None
    ) -> PortfolioSummary:
        """Return the mean and population variance of total P&L across traders."""
        values = [row.total_profit_loss for row in self._snapshot(stats)]
        if not values:
            return PortfolioSummary(ZERO, ZERO, 0, _NO_DATA_TEXT)
        count = Decimal(len(values))
        avg = sum(values, ZERO) / count
        variance = sum(((v - avg) ** 2 for v in values), ZERO) / count
        text = (
            _HIGH_VARIANCE_TEXT
            if variance > self._config.variance_threshold
            else _LOW_VARIANCE_TEXT
        )
        return PortfolioSummary(mean=avg, variance=variance, count=len(values), recommendation=text)

    def generate_daily_report(self) -> DailyReport:
        """Compose the best/worst performer, candidate lists, and variance summary."""
        stats = self._repository.list_all_trader_stats()
        ranked = sorted(stats, key=lambda s: s.total_profit_loss, reverse=True)
        report = DailyReport(
            date=utc_date(self._clock()),
            total_tracked=len(stats),
            top_performer=_performer(ranked[0]) if ranked else None,
            worst_performer=_performer(ranked[-1]) if ranked else None,
            remove=self.analyze_for_removal(stats),
            increase=self.analyze_for_increase(stats),
            portfolio=self.analyze_portfolio_optimization(stats),
        )
        logger.info(
            "Daily report %s: %d traders, %d recommendations",
            report.date,
            report.total_tracked,
            report.total_recommendations,
        )
        return report

    def record_recommendations(self, report: DailyReport, sink: RecommendationSink) -> int:
        """Persist one row per removal and increase candidate.

        The candidate's reasons are joined into the row's reason text and
        its win rate is stored as the confidence.

        Returns:
            Number of rows written.

        """
        created_at = int(self._clock())
        written = 0
        for rec_type, candidates in ((REMOVE, report.remove), (INCREASE, report.increase)):
            for cand in candidates:
                sink.save_recommendation(
                    rec_type,
                    cand.trader_id,
                    "; ".join(cand.reasons),
                    confidence=cand.win_rate,
                    created_at=created_at,
                )
                written += 1
        return written
