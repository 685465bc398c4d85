"""CLI commands for trader scores.

Print the composite score breakdown for one trader, or the ranked list
of traders worth copying.
"""

from typing import Annotated

import typer

from copytrade_analytics.cli._helpers import build_service, configure_verbose_logging
from copytrade_analytics.core.exceptions import AnalyticsError

_DEFAULT_LIMIT = 5


def score(
    trader_id: str,
    db_url: Annotated[str | None, typer.Option(help="Database connection string")] = None,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable engine logging")
    ] = False,
) -> None:
    """Show the composite score of a trader."""
    if verbose:
        configure_verbose_logging()
    service = build_service(db_url)
    try:
        stats = service.compute_trader_stats(trader_id)
        trades = service.list_trades(trader_id)
    except AnalyticsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    result = service.calculate_score(stats, trades)
    typer.echo(f"\nTrader {trader_id}: {result.overall}/100 {'*' * result.rank.stars}")
    typer.echo(f"Risk:           {result.risk_level.label}")
    typer.echo(f"Recommendation: {result.recommendation.text}")
    typer.echo("")
    typer.echo(f"{'Metric':<16} {'Score':>7} {'Grade':>6}  Detail")
    typer.echo("-" * 60)
    for name, metric in result.metrics.items():
        typer.echo(f"{name:<16} {metric.score:>7.1f} {metric.grade:>6}  {metric.description}")


def top(
    limit: Annotated[int, typer.Option(help="Maximum number of traders")] = _DEFAULT_LIMIT,
    db_url: Annotated[str | None, typer.Option(help="Database connection string")] = None,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable engine logging")
    ] = False,
) -> None:
    """List the best traders to copy."""
    if verbose:
        configure_verbose_logging()
    ranked = build_service(db_url).get_top_recommendations(limit)
    if not ranked:
        typer.echo("No traders qualify for a recommendation")
        return

    typer.echo(f"\n{'Trader':<24} {'Score':>6} {'Risk':>8}  Recommendation")
    typer.echo("-" * 64)
    for entry in ranked:
        typer.echo(
            f"{entry.stats.display_name[:24]:<24} {entry.score.overall:>6} "
            f"{entry.score.risk_level.level:>8}  {entry.score.recommendation.text}"
        )
