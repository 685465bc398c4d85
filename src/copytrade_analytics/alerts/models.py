"""Alert records and threshold configuration for the alert engine."""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from copytrade_analytics.core.exceptions import InvalidInputError


class AlertType(Enum):
    """Severity of an alert."""

    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


class AlertMetric(Enum):
    """Rule that produced an alert."""

    WIN_RATE_DROP = "win_rate_drop"
    CUMULATIVE_LOSS = "cumulative_loss"
    LOW_WIN_RATE = "low_win_rate"
    HIGH_PERFORMER = "high_performer"
    SINGLE_LOSS = "single_loss"


@dataclass
class Alert:
    """A single alert raised during an evaluation pass.

    Only ``acknowledged`` ever changes after creation, and only from
    ``False`` to ``True``.

    Args:
        id: Unique alert identifier.
        timestamp: Unix epoch seconds when the alert was created.
        type: Severity of the alert.
        icon: Short emoji marker for display.
        title: One-line headline.
        description: Human-readable detail.
        trader_id: Trader the alert concerns.
        metric: Rule that raised the alert.
        value: Observed value that crossed the threshold.
        threshold: Threshold the value was compared against, if any.
        trade_id: Triggering trade for per-trade rules.
        acknowledged: Whether a user has acknowledged the alert.

    """

    id: str
    timestamp: float
    type: AlertType
    icon: str
    title: str
    description: str
    trader_id: str
    metric: AlertMetric
    value: Decimal
    threshold: Decimal | None = None
    trade_id: str | None = None
    acknowledged: bool = False

    @property
    def dedup_key(self) -> tuple[str, AlertType, AlertMetric]:
        """Return the identity used to suppress repeated alerts."""
        return (self.trader_id, self.type, self.metric)


@dataclass
class ThresholdConfig:
    """Enablement and limit for one configurable alert rule.

    Args:
        enabled: Whether the rule is evaluated.
        value: Rule limit (percentage points or currency units).
        min_trades: Minimum trade count before the rule applies.

    """

    enabled: bool = True
    value: Decimal = Decimal(0)
    min_trades: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly mapping of the config."""
        data = asdict(self)
        data["value"] = str(self.value)
        return data

    def merged(self, changes: dict[str, Any]) -> "ThresholdConfig":
        """Return a copy with ``changes`` applied after validating them.

        Args:
            changes: Partial mapping of field name to new value.

        Returns:
            A new ``ThresholdConfig`` with the changes applied.

        Raises:
            InvalidInputError: If a field is unknown or has the wrong type.

        """
        current = asdict(self)
        for name, raw in changes.items():
            if name not in current:
                msg = f"Unknown threshold field: {name!r}"
                raise InvalidInputError(msg)
            current[name] = _coerce_field(name, raw)
        return ThresholdConfig(**current)


def _coerce_field(name: str, raw: Any) -> Any:
    """Validate and convert one threshold field value."""
    if name == "enabled":
        if not isinstance(raw, bool):
            msg = f"'enabled' must be a bool, got {type(raw).__name__}"
            raise InvalidInputError(msg)
        return raw
    if name == "value":
        if isinstance(raw, bool) or not isinstance(raw, (int, float, str, Decimal)):
            msg = f"'value' must be numeric, got {type(raw).__name__}"
            raise InvalidInputError(msg)
        try:
            value = Decimal(str(raw))
        except ArithmeticError as exc:
            msg = f"'value' must be numeric, got {raw!r}"
            raise InvalidInputError(msg) from exc
        if not value.is_finite() or value < 0:
            msg = f"'value' must be a non-negative number, got {raw!r}"
            raise InvalidInputError(msg)
        return value
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        msg = f"'min_trades' must be a non-negative int, got {raw!r}"
        raise InvalidInputError(msg)
    return raw


WIN_RATE_DROP = "win_rate_drop"
SINGLE_LOSS = "single_loss"
CUMULATIVE_LOSS = "cumulative_loss"


def default_thresholds() -> dict[str, ThresholdConfig]:
    """Return a fresh copy of the built-in threshold defaults."""
    return {
        WIN_RATE_DROP: ThresholdConfig(enabled=True, value=Decimal(10), min_trades=10),
        SINGLE_LOSS: ThresholdConfig(enabled=True, value=Decimal(1000)),
        CUMULATIVE_LOSS: ThresholdConfig(enabled=True, value=Decimal(5000)),
    }


@dataclass(frozen=True)
class AlertStats:
    """Summary counts over the alert history."""

    total: int
    active: int
    by_type: dict[AlertType, int] = field(default_factory=dict)
