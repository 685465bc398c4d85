"""Clock and date helpers shared by the stateful components."""

import time
from collections.abc import Callable
from datetime import UTC, datetime

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600

Clock = Callable[[], float]


def system_clock() -> float:
    """Return the current Unix time in seconds."""
    return time.time()


def utc_date(timestamp: float) -> str:
    """Format a Unix timestamp as a UTC calendar date (``YYYY-MM-DD``)."""
    return datetime.fromtimestamp(timestamp, tz=UTC).strftime("%Y-%m-%d")


def day_index(timestamp: int) -> int:
    """Return the integer day bucket a Unix timestamp falls into."""
    return timestamp // SECONDS_PER_DAY
