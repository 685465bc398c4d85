"""CLI command for the advisor's daily report."""

from typing import Annotated

import typer

from copytrade_analytics.cli._helpers import (
    build_service,
    configure_verbose_logging,
    fmt_money,
)


def report(
    save: Annotated[bool, typer.Option(help="Persist the recommendations")] = False,
    db_url: Annotated[str | None, typer.Option(help="Database connection string")] = None,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable engine logging")
    ] = False,
) -> None:
    """Print the daily portfolio report."""
    if verbose:
        configure_verbose_logging()
    service = build_service(db_url)
    daily = service.generate_daily_report()

    typer.echo(f"\nDaily report {daily.date}")
    typer.echo(f"Tracked traders: {daily.total_tracked}")
    if daily.top_performer is not None:
        typer.echo(
            f"Top performer:   {daily.top_performer.label or daily.top_performer.trader_id} "
            f"({fmt_money(daily.top_performer.total_profit_loss)})"
        )
    if daily.worst_performer is not None:
        typer.echo(
            f"Worst performer: {daily.worst_performer.label or daily.worst_performer.trader_id} "
            f"({fmt_money(daily.worst_performer.total_profit_loss)})"
        )

    for heading, candidates in (("Remove", daily.remove), ("Increase", daily.increase)):
        typer.echo(f"\n{heading} ({len(candidates)})")
        for cand in candidates:
            typer.echo(f"  {cand.label or cand.trader_id}: {'; '.join(cand.reasons)}")

    typer.echo(f"\nPortfolio: {daily.portfolio.recommendation}")

    if save:
        written = service.record_recommendations(daily)
        typer.echo(f"Saved {written} recommendations")
