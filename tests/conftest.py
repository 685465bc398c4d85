"""Shared test configuration and fixtures."""

import os
from collections.abc import Iterator
from unittest.mock import patch

import pytest

import copytrade_analytics.core.config as config_module

_ISOLATED_ENV_VARS = ("COPYTRADE_DATABASE_URL",)


@pytest.fixture(autouse=True)
def _isolate_config() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    """Load settings from the packaged defaults in every test.

    ``settings.yaml`` reads the database URL from the environment, and the
    global ``ConfigLoader`` caches whatever it saw first. Clear both so a
    developer's shell or an earlier test cannot leak into the next one.
    """
    cleared = {k: v for k, v in os.environ.items() if k not in _ISOLATED_ENV_VARS}
    config_module._config = None
    with patch.dict(os.environ, cleared, clear=True):
        yield
    config_module._config = None
