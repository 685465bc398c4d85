"""Stateful rule-based alert engine.

Evaluate threshold rules against trader stats and recent trades, suppress
alerts that repeat a recent one, keep a bounded history, and push each
batch of new alerts to subscribed listeners. Threshold configuration is
loaded from a ``ConfigStore`` once at construction and written back on
every change.

The history and listener list are plain instance state. Hosts that call
``evaluate_alerts`` from several threads must serialise those calls.
"""

import json
import logging
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from copytrade_analytics.alerts.models import (
    CUMULATIVE_LOSS,
    SINGLE_LOSS,
    WIN_RATE_DROP,
    Alert,
    AlertMetric,
    AlertStats,
    AlertType,
    ThresholdConfig,
    default_thresholds,
)
from copytrade_analytics.analytics.metrics import historical_win_rate
from copytrade_analytics.core.exceptions import ConfigUnavailableError, InvalidInputError
from copytrade_analytics.core.models import Trade, TraderStats
from copytrade_analytics.core.protocols import ConfigStore, TradeRepository
from copytrade_analytics.core.timestamps import (
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    Clock,
    system_clock,
)

logger = logging.getLogger(__name__)

THRESHOLDS_KEY = "alert_thresholds"

_LOW_WIN_RATE_PCT = Decimal(30)
_LOW_WIN_RATE_MIN_TRADES = 20
_HIGH_PERFORMER_PROFIT = Decimal(10000)
_HIGH_PERFORMER_WIN_RATE_PCT = Decimal(60)

AlertListener = Callable[[list[Alert]], None]


@dataclass(frozen=True)
class AlertEngineConfig:
    """Capacity and time-window settings of the alert engine.

    Args:
        history_size: Maximum alerts retained; oldest are evicted first.
        dedup_window_seconds: How far back a matching alert suppresses a
            new one.
        dedup_lookback: Number of most recent history entries checked
            for duplicates.
        active_limit: Maximum alerts returned by ``get_active_alerts``.
        single_loss_window_seconds: Rolling window scanned for large
            single-trade losses.
        single_loss_limit: Maximum large-loss trades considered per pass.
        baseline_age_seconds: Trades older than this form the historical
            win-rate baseline.

    Raises:
        ValueError: If any size or window is not positive.

    """

    history_size: int = 1000
    dedup_window_seconds: int = SECONDS_PER_HOUR
    dedup_lookback: int = 50
    active_limit: int = 50
    single_loss_window_seconds: int = SECONDS_PER_HOUR
    single_loss_limit: int = 50
    baseline_age_seconds: int = 7 * SECONDS_PER_DAY

    def __post_init__(self) -> None:
        """Validate that every size and window is positive."""
        for name, value in vars(self).items():
            if value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise ValueError(msg)


class AlertEngine:
    """Evaluate alert rules and manage alert history and acknowledgement.

    Example::

        engine = AlertEngine(store, repository=repo)
        engine.on_alert(lambda batch: print(len(batch)))
        new_alerts = engine.evaluate_alerts(repo.list_all_trader_stats(), [])

    Args:
        config_store: Store holding the persisted threshold configuration.
        repository: Trade source for historical win-rate baselines. Without
            one the win-rate drop rule never fires.
        config: Capacity and time-window settings.
        clock: Source of the current Unix time.

    """

    def __init__(
        self,
        config_store: ConfigStore,
        repository: TradeRepository | None = None,
        config: AlertEngineConfig | None = None,
        clock: Clock = system_clock,
    ) -> None:
        """Initialize the engine and load thresholds from the config store."""
        self._store = config_store
        self._repository = repository
        self._config = config or AlertEngineConfig()
        self._clock = clock
        self._history: deque[Alert] = deque(maxlen=self._config.history_size)
        self._listeners: list[AlertListener] = []
        self._thresholds = self._load_thresholds()

    def _load_thresholds(self) -> dict[str, ThresholdConfig]:
        """Return defaults overlaid with whatever the store holds.

        A store outage or corrupt blob leaves the defaults in place so
        alerting is never silently disabled.
        """
        thresholds = default_thresholds()
        try:
            raw = self._store.get(THRESHOLDS_KEY)
            if raw is None:
                return thresholds
            saved: dict[str, dict[str, Any]] = json.loads(raw)
            for rule, fields in saved.items():
                if rule in thresholds:
                    thresholds[rule] = thresholds[rule].merged(fields)
        except Exception:
            logger.warning(
                "Could not load alert thresholds; using defaults", exc_info=True
            )
            return default_thresholds()
        return thresholds

    def _save_thresholds(self) -> None:
        blob = json.dumps({k: v.to_dict() for k, v in self._thresholds.items()})
        try:
            self._store.set(THRESHOLDS_KEY, blob.encode())
        except Exception as exc:
            raise ConfigUnavailableError(THRESHOLDS_KEY, str(exc)) from exc

    def get_thresholds(self) -> dict[str, ThresholdConfig]:
        """Return a copy of the current threshold configuration."""
        return {k: v.merged({}) for k, v in self._thresholds.items()}

    def set_threshold(self, rule: str, changes: dict[str, Any]) -> bool:
        """Update one rule's configuration and persist it.

        Args:
            rule: Rule name, e.g. ``"cumulative_loss"``.
            changes: Partial mapping of ``enabled``/``value``/``min_trades``.

        Returns:
            ``True`` when the rule exists and was updated, ``False`` for an
            unknown rule.

        Raises:
            InvalidInputError: If a field is unknown or has the wrong type;
                the configuration is left unchanged.
            ConfigUnavailableError: If the store rejects the write. The new
                value stays in effect in memory.

        """
        if not isinstance(changes, dict):
            msg = f"Threshold changes must be a mapping, got {type(changes).__name__}"
            raise InvalidInputError(msg)
        current = self._thresholds.get(rule)
        if current is None:
            return False
        self._thresholds[rule] = current.merged(changes)
        logger.info("Alert threshold %s updated: %s", rule, changes)
        self._save_thresholds()
        return True

    def on_alert(self, listener: AlertListener) -> Callable[[], None]:
        """Subscribe to batches of new alerts.

        Returns:
            A callable that removes the listener again.

        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def evaluate_alerts(
        self, trader_stats: list[TraderStats], recent_trades: list[Trade]
    ) -> list[Alert]:
        """Run every enabled rule and record the alerts that are new.

        Args:
            trader_stats: Current snapshot of every trader to check.
            recent_trades: Candidate trades for the single-loss rule. Only
                those inside the rolling window and beyond the loss limit
                raise alerts.

        Returns:
            Alerts created by this pass after deduplication, in creation
            order.

        """
        now = self._clock()
        candidates: list[Alert] = []
        for stats in trader_stats:
            candidates.extend(self._trader_alerts(stats, now))
        names = {s.trader_id: s.display_name for s in trader_stats}
        candidates.extend(self._single_loss_alerts(recent_trades, names, now))

        new_alerts = self._deduplicate(candidates)
        self._history.extend(new_alerts)
        logger.debug(
            "Alert pass over %d traders: %d candidates, %d new",
            len(trader_stats),
            len(candidates),
            len(new_alerts),
        )
        if new_alerts:
            self._notify(new_alerts)
        return new_alerts

    def _trader_alerts(self, stats: TraderStats, now: float) -> list[Alert]:
        alerts: list[Alert] = []
        name = stats.display_name
        win_rate = stats.win_rate_pct
        drop = self._thresholds[WIN_RATE_DROP]

        if drop.enabled and stats.trade_count >= (drop.min_trades or 0):
            baseline = self._baseline_win_rate(stats.trader_id, now)
            if baseline is not None and win_rate < baseline - drop.value:
                alerts.append(
                    self._create(
                        now,
                        AlertType.WARNING,
                        "⚠️",
                        "Win rate drop",
                        f"{name} win rate fell from {baseline:.1f}% to {win_rate:.1f}%",
                        stats.trader_id,
                        AlertMetric.WIN_RATE_DROP,
                        win_rate,
                        threshold=baseline - drop.value,
                    )
                )

        loss = self._thresholds[CUMULATIVE_LOSS]
        if loss.enabled and stats.total_profit_loss < -loss.value:
            alerts.append(
                self._create(
                    now,
                    AlertType.DANGER,
                    "🔴",
                    "Cumulative loss limit exceeded",
                    f"{name} cumulative loss ${abs(stats.total_profit_loss):.2f}",
                    stats.trader_id,
                    AlertMetric.CUMULATIVE_LOSS,
                    stats.total_profit_loss,
                    threshold=-loss.value,
                )
            )

        if (
            drop.enabled
            and win_rate < _LOW_WIN_RATE_PCT
            and stats.trade_count >= _LOW_WIN_RATE_MIN_TRADES
        ):
            alerts.append(
                self._create(
                    now,
                    AlertType.WARNING,
                    "📉",
                    "Win rate too low",
                    f"{name} win rate only {win_rate:.1f}%",
                    stats.trader_id,
                    AlertMetric.LOW_WIN_RATE,
                    win_rate,
                    threshold=_LOW_WIN_RATE_PCT,
                )
            )

        if (
            stats.total_profit_loss > _HIGH_PERFORMER_PROFIT
            and win_rate > _HIGH_PERFORMER_WIN_RATE_PCT
        ):
            alerts.append(
                self._create(
                    now,
                    AlertType.SUCCESS,
                    "🚀",
                    "Outstanding performance",
                    f"{name} cumulative profit ${stats.total_profit_loss:.2f}, "
                    f"win rate {win_rate:.1f}%",
                    stats.trader_id,
                    AlertMetric.HIGH_PERFORMER,
                    stats.total_profit_loss,
                )
            )
        return alerts

    def _single_loss_alerts(
        self, trades: list[Trade], names: dict[str, str], now: float
    ) -> list[Alert]:
        rule = self._thresholds[SINGLE_LOSS]
        if not rule.enabled:
            return []
        since = now - self._config.single_loss_window_seconds
        large_losses = sorted(
            (
                t
                for t in trades
                if t.timestamp > since
                and t.profit_loss is not None
                and t.profit_loss < -rule.value
            ),
            key=lambda t: t.timestamp,
            reverse=True,
        )[: self._config.single_loss_limit]
        return [
            self._create(
                now,
                AlertType.DANGER,
                "💸",
                "Large losing trade",
                f"{names.get(t.trader_id, 'Trader')} single-trade loss "
                f"${abs(t.profit_loss):.2f}",  # type: ignore[arg-type]
                t.trader_id,
                AlertMetric.SINGLE_LOSS,
                t.profit_loss,  # type: ignore[arg-type]
                threshold=-rule.value,
                trade_id=t.id,
            )
            for t in large_losses
        ]

    def _baseline_win_rate(self, trader_id: str, now: float) -> Decimal | None:
        """Return the win rate over trades older than the baseline age.

        ``None`` means there is no baseline, which suppresses the rule.
        There is no minimum sample size, so a handful of old trades can
        produce a noisy baseline.
        """
        if self._repository is None:
            return None
        cutoff = int(now - self._config.baseline_age_seconds)
        return historical_win_rate(self._repository.list_trades(trader_id), cutoff)

    def _create(  # noqa: PLR0913
        self,
        now: float,
        alert_type: AlertType,
        icon: str,
        title: str,
        description: str,
        trader_id: str,
        metric: AlertMetric,
        value: Decimal,
        *,
        threshold: Decimal | None = None,
        trade_id: str | None = None,
    ) -> Alert:
        return Alert(
            id=f"alert_{uuid.uuid4().hex}",
            timestamp=now,
            type=alert_type,
            icon=icon,
            title=title,
            description=description,
            trader_id=trader_id,
            metric=metric,
            value=value,
            threshold=threshold,
            trade_id=trade_id,
        )

    def _deduplicate(self, candidates: list[Alert]) -> list[Alert]:
        """Drop candidates that repeat a recent alert for the same condition."""
        recent = list(self._history)[-self._config.dedup_lookback :]
        window = self._config.dedup_window_seconds
        return [
            new
            for new in candidates
            if not any(
                old.dedup_key == new.dedup_key and old.timestamp > new.timestamp - window
                for old in recent
            )
        ]

    def _notify(self, alerts: list[Alert]) -> None:
        for listener in list(self._listeners):
            try:
                listener(list(alerts))
            except Exception:
                logger.exception("Alert listener %r failed", listener)

    def get_active_alerts(self) -> list[Alert]:
        """Return the most recent unacknowledged alerts, oldest first."""
        active = [a for a in self._history if not a.acknowledged]
        return active[-self._config.active_limit :]

    def get_alert_history(self, limit: int = 100) -> list[Alert]:
        """Return up to ``limit`` of the most recent alerts, oldest first."""
        if limit <= 0:
            return []
        return list(self._history)[-limit:]

    def acknowledge_alert(self, alert_id: str) -> bool:
        """Mark an alert as acknowledged.

        Returns:
            ``True`` if the alert was found, ``False`` for an unknown id.

        Raises:
            InvalidInputError: If ``alert_id`` is empty or not a string.

        """
        if not isinstance(alert_id, str) or not alert_id:
            msg = f"alert_id must be a non-empty string, got {alert_id!r}"
            raise InvalidInputError(msg)
        for alert in self._history:
            if alert.id == alert_id:
                alert.acknowledged = True
                return True
        return False

    def clear_alerts(self) -> None:
        """Drop the entire alert history."""
        self._history.clear()

    def get_stats(self) -> AlertStats:
        """Return history size and active counts by severity."""
        active = self.get_active_alerts()
        by_type = {t: sum(1 for a in active if a.type is t) for t in AlertType}
        return AlertStats(total=len(self._history), active=len(active), by_type=by_type)


