"""Per-trader statistics, composite scoring, and backtest simulation."""
