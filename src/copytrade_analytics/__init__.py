"""Copy-trading performance analytics for prediction-market traders."""

__version__ = "0.1.0"
