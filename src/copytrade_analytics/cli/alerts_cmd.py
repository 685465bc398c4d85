"""CLI commands for the alert engine.

Run an alert evaluation pass against the ledger and inspect or change
the persisted alert thresholds.
"""

from typing import Annotated

import typer

from copytrade_analytics.cli._helpers import build_service, configure_verbose_logging
from copytrade_analytics.core.exceptions import AnalyticsError


def alerts(
    db_url: Annotated[str | None, typer.Option(help="Database connection string")] = None,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable engine logging")
    ] = False,
) -> None:
    """Evaluate alert rules and print the new alerts."""
    if verbose:
        configure_verbose_logging()
    new_alerts = build_service(db_url).evaluate_alerts()
    if not new_alerts:
        typer.echo("No new alerts")
        return
    for alert in new_alerts:
        typer.echo(f"{alert.icon} [{alert.type.value}] {alert.title}: {alert.description}")


def thresholds(
    rule: Annotated[str | None, typer.Option(help="Rule to update")] = None,
    value: Annotated[float | None, typer.Option(help="New threshold value")] = None,
    enabled: Annotated[
        bool | None, typer.Option("--enabled/--disabled", help="Enable or disable the rule")
    ] = None,
    db_url: Annotated[str | None, typer.Option(help="Database connection string")] = None,
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable engine logging")
    ] = False,
) -> None:
    """Show alert thresholds, or update one rule with --rule."""
    if verbose:
        configure_verbose_logging()
    engine = build_service(db_url).alerts
    if rule is not None:
        changes: dict[str, object] = {}
        if value is not None:
            changes["value"] = value
        if enabled is not None:
            changes["enabled"] = enabled
        try:
            updated = engine.set_threshold(rule, changes)
        except AnalyticsError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        if not updated:
            typer.echo(f"Error: unknown rule '{rule}'", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"\n{'Rule':<18} {'Enabled':>8} {'Value':>10} {'Min trades':>11}")
    typer.echo("-" * 50)
    for name, cfg in engine.get_thresholds().items():
        min_trades = "-" if cfg.min_trades is None else str(cfg.min_trades)
        typer.echo(f"{name:<18} {'yes' if cfg.enabled else 'no':>8} {cfg.value:>10} {min_trades:>11}")
