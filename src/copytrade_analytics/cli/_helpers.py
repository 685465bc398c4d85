"""Shared helpers for the analytics CLI commands.

Build the analytics service from the configured database and format the
figures that several commands print.
"""

import logging
from decimal import Decimal

import typer

from copytrade_analytics.core.config import ConfigError
from copytrade_analytics.service import AnalyticsService
from copytrade_analytics.settings import load_settings
from copytrade_analytics.storage.repository import SqlConfigStore, SqlTradeRepository


def configure_verbose_logging() -> None:
    """Enable INFO-level logging for engine output."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(message)s",
        datefmt="%H:%M:%S",
    )


def build_service(db_url: str | None) -> AnalyticsService:
    """Build an ``AnalyticsService`` over the SQL ledger.

    Args:
        db_url: Connection string; defaults to ``database.url`` from settings.

    Returns:
        Service wired to an initialised SQL repository and config store.

    """
    try:
        settings = load_settings()
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    repository = SqlTradeRepository(db_url or settings.database_url)
    repository.init_db()
    return AnalyticsService(
        repository,
        SqlConfigStore(repository.engine),
        settings=settings,
        recommendation_sink=repository,
    )


def fmt_money(value: Decimal) -> str:
    """Format a currency amount with sign and thousands separators."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
