"""CLI subpackage for copy-trade analytics.

Create the Typer application and register all command modules.
"""

import typer

from copytrade_analytics.cli.alerts_cmd import alerts, thresholds
from copytrade_analytics.cli.backtest_cmd import backtest
from copytrade_analytics.cli.report_cmd import report
from copytrade_analytics.cli.score_cmd import score, top

app = typer.Typer(help="Copy-trade performance analytics")

app.command()(score)
app.command()(top)
app.command()(backtest)
app.command()(alerts)
app.command()(thresholds)
app.command()(report)

__all__ = ["app"]
