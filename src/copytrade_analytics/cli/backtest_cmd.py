"""CLI command for backtesting a trader.

Replay a trader's ledger with fixed-fraction sizing and print the run
statistics and the resulting copy verdict.
"""

from decimal import Decimal
from typing import Annotated

import typer

from copytrade_analytics.analytics.backtest import NoTradeHistory
from copytrade_analytics.cli._helpers import (
    build_service,
    configure_verbose_logging,
    fmt_money,
)
from copytrade_analytics.core.exceptions import AnalyticsError


def backtest(
    trader_id: str,
    capital: Annotated[
        float | None, typer.Option(help="Initial capital (defaults to settings)")
    ] = None,
    db_url: Annotated[str | None, typer.Option(help="Database connection string")] = None,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable engine logging")
    ] = False,
) -> None:
    """Backtest copying a trader."""
    if verbose:
        configure_verbose_logging()
    service = build_service(db_url)
    try:
        result = service.backtest_trader(
            trader_id, None if capital is None else Decimal(str(capital))
        )
    except (AnalyticsError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if isinstance(result, NoTradeHistory):
        typer.echo(result.error)
        return

    typer.echo(f"\nBacktest for trader {trader_id}: {result.total_trades} trades")
    typer.echo(f"Initial capital: {fmt_money(result.initial_capital)}")
    typer.echo(f"Final capital:   {fmt_money(result.final_capital)}")
    typer.echo(f"Total return:    {result.total_return_pct:+.2f}%")
    typer.echo(f"Profit factor:   {result.profit_factor:.2f}")
    typer.echo(f"Win rate:        {result.win_rate_pct:.1f}%")
    typer.echo(f"Max drawdown:    {result.max_drawdown_pct:.2f}%")
    typer.echo(f"Sharpe ratio:    {result.sharpe_ratio:.2f}")
    typer.echo(f"Verdict:         {result.verdict.text}")
