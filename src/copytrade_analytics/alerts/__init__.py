"""Threshold-driven alerting over trader stats and recent trades."""

from copytrade_analytics.alerts.engine import AlertEngine, AlertEngineConfig
from copytrade_analytics.alerts.models import Alert, AlertMetric, AlertType, ThresholdConfig

__all__ = [
    "Alert",
    "AlertEngine",
    "AlertEngineConfig",
    "AlertMetric",
    "AlertType",
    "ThresholdConfig",
]
