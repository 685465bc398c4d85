"""Exception hierarchy for the analytics engine.

Numeric edge cases (empty trade lists, division by zero) are never raised;
they resolve to documented neutral values. Only malformed input and
storage availability problems surface as exceptions.
"""


class AnalyticsError(Exception):
    """Base exception for all analytics engine errors."""


class InvalidInputError(AnalyticsError):
    """Reject a malformed identifier, field, or value on a write-path call."""


class TraderNotFoundError(AnalyticsError):
    """Raise when the repository has no trader with the requested id.

    Args:
        trader_id: The identifier that could not be resolved.

    """

    def __init__(self, trader_id: str) -> None:
        """Initialize the error with the missing trader id.

        Args:
            trader_id: The identifier that could not be resolved.

        """
        super().__init__(f"Unknown trader: {trader_id!r}")
        self.trader_id = trader_id


class ConfigUnavailableError(AnalyticsError):
    """Raise when the config store cannot be written.

    Args:
        key: Config store key being accessed.
        cause: Description of the underlying failure.

    """

    def __init__(self, key: str, cause: str) -> None:
        """Initialize the error with the key and underlying cause.

        Args:
            key: Config store key being accessed.
            cause: Description of the underlying failure.

        """
        super().__init__(f"Config store unavailable for {key!r}: {cause}")
        self.key = key
        self.cause = cause
