"""CLI entry point for copy-trade analytics.

All command logic lives in the cli subpackage.
"""

from copytrade_analytics.cli import app

__all__ = ["app", "main"]


def main() -> None:
    """Run the analytics CLI application."""
    app()


if __name__ == "__main__":
    main()
