"""Facade exposing every analytics operation over injected storage.

Wire the metrics aggregator, scoring engine, backtest simulator, alert
engine, and recommendation advisor to one trade repository and one
config store. Construct one ``AnalyticsService`` per process and pass it
to whatever presentation layer drives it; nothing here is a singleton.
"""

import logging
from decimal import Decimal

from copytrade_analytics.advisor.advisor import DailyReport, RecommendationAdvisor
from copytrade_analytics.alerts.engine import AlertEngine
from copytrade_analytics.alerts.models import SINGLE_LOSS, Alert
from copytrade_analytics.analytics.backtest import (
    BacktestConfig,
    BacktestResult,
    NoTradeHistory,
    run_backtest,
)
from copytrade_analytics.analytics.metrics import compute_trader_stats
from copytrade_analytics.analytics.scoring import (
    Score,
    ScoredTrader,
    calculate_score,
    top_recommendations,
)
from copytrade_analytics.core.exceptions import InvalidInputError, TraderNotFoundError
from copytrade_analytics.core.models import Trade, TraderStats
from copytrade_analytics.core.protocols import (
    ConfigStore,
    RecommendationSink,
    TradeRepository,
)
from copytrade_analytics.core.timestamps import Clock, system_clock
from copytrade_analytics.settings import AnalyticsSettings

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Entry point for scoring, backtesting, alerting, and advising.

    Args:
        repository: Read access to the trade ledger.
        config_store: Store for persisted alert thresholds.
        settings: Component settings; defaults match the built-in values.
        clock: Source of the current Unix time.
        recommendation_sink: Where advisor recommendations are persisted.

    """

    def __init__(
        self,
        repository: TradeRepository,
        config_store: ConfigStore,
        settings: AnalyticsSettings | None = None,
        clock: Clock = system_clock,
        recommendation_sink: RecommendationSink | None = None,
    ) -> None:
        """Initialize the service and its stateful components."""
        self._repository = repository
        self._sink = recommendation_sink
        self._settings = settings or AnalyticsSettings()
        self._clock = clock
        self.alerts = AlertEngine(
            config_store, repository=repository, config=self._settings.alerts, clock=clock
        )
        self.advisor = RecommendationAdvisor(
            repository, config=self._settings.advisor, clock=clock
        )

    def list_trades(self, trader_id: str) -> list[Trade]:
        """Return a tracked trader's trades ordered by timestamp ascending.

        Raises:
            InvalidInputError: If ``trader_id`` is empty or malformed.
            TraderNotFoundError: If the repository does not know the trader.

        """
        if not isinstance(trader_id, str) or not trader_id:
            msg = f"trader_id must be a non-empty string, got {trader_id!r}"
            raise InvalidInputError(msg)
        if not self._repository.has_trader(trader_id):
            raise TraderNotFoundError(trader_id)
        return self._repository.list_trades(trader_id)

    def compute_trader_stats(self, trader_id: str) -> TraderStats:
        """Project a trader's ledger into a stats snapshot.

        The snapshot carries the tracked address and label, matching the
        entry ``list_all_trader_stats`` returns for the same trader.

        Raises:
            InvalidInputError: If ``trader_id`` is empty or malformed.
            TraderNotFoundError: If the repository does not know the trader.

        """
        trades = self.list_trades(trader_id)
        trader = self._repository.get_trader(trader_id)
        if trader is None:
            raise TraderNotFoundError(trader_id)
        return compute_trader_stats(
            trader_id, trades, address=trader.address, label=trader.label
        )

    def calculate_score(self, stats: TraderStats, trades: list[Trade]) -> Score:
        """Score a trader from a stats snapshot and its trade history."""
        return calculate_score(stats, trades, self._settings.scoring)

    def batch_score_traders(
        self, trader_stats: list[TraderStats] | None = None
    ) -> list[ScoredTrader]:
        """Score every given trader, or every tracked trader when omitted."""
        stats = (
            self._repository.list_all_trader_stats()
            if trader_stats is None
            else trader_stats
        )
        scored = [
            ScoredTrader(stats=s, score=self.calculate_score(s, self.list_trades(s.trader_id)))
            for s in stats
        ]
        logger.debug("Scored %d traders", len(scored))
        return scored

    def get_top_recommendations(self, limit: int = 5) -> list[ScoredTrader]:
        """Return the best-scoring traders with a score of 60+ that are not high risk."""
        return top_recommendations(self.batch_score_traders(), limit=limit)

    def run_backtest(
        self, trades: list[Trade], initial_capital: Decimal | None = None
    ) -> BacktestResult | NoTradeHistory:
        """Replay a trade sequence with the configured position sizing."""
        config = self._settings.backtest
        if initial_capital is not None:
            config = BacktestConfig(
                initial_capital=initial_capital,
                position_fraction=config.position_fraction,
            )
        return run_backtest(sorted(trades, key=lambda t: t.timestamp), config)

    def backtest_trader(
        self, trader_id: str, initial_capital: Decimal | None = None
    ) -> BacktestResult | NoTradeHistory:
        """Load a trader's ledger and replay it.

        Raises:
            TraderNotFoundError: If the repository does not know the trader.

        """
        return self.run_backtest(self.list_trades(trader_id), initial_capital)

    def evaluate_alerts(self) -> list[Alert]:
        """Evaluate alert rules over every tracked trader and the last window of trades."""
        rule = self.alerts.get_thresholds()[SINGLE_LOSS]
        since = int(self._clock()) - self._settings.alerts.single_loss_window_seconds
        recent = self._repository.list_recent_trades(since, -rule.value)
        return self.alerts.evaluate_alerts(self._repository.list_all_trader_stats(), recent)

    def generate_daily_report(self) -> DailyReport:
        """Return the advisor's daily report."""
        return self.advisor.generate_daily_report()

    def record_recommendations(self, report: DailyReport) -> int:
        """Persist a report's removal and increase candidates.

        Raises:
            InvalidInputError: If the service was built without a
                recommendation sink.

        """
        if self._sink is None:
            raise InvalidInputError("No recommendation sink configured")
        return self.advisor.record_recommendations(report, self._sink)
