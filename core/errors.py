# core/errors.py - error taxonomy for trade configuration

from typing import Optional


class ConfigurationError(Exception):
    """Base class for every failure raised by the trade configuration engine."""


class UnknownTrade(ConfigurationError, ValueError):
    """A trade value outside the supported set (boundary deserialization only)."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown trade '{value}'")


class NoTradeStaged(ConfigurationError):
    """Commit/confirm was requested before any trade was staged."""

    def __init__(self, message: str = "No trade has been staged; select a trade before confirming"):
        super().__init__(message)


class SetupAlreadyCompleted(ConfigurationError):
    """Setup is completed; it must be reset before a new trade can be staged."""

    def __init__(self, message: str = "Setup is already completed; reset before selecting a trade"):
        super().__init__(message)


class StagedTradeMismatch(ConfigurationError):
    """The durably staged trade is not the one the caller is confirming."""

    def __init__(self, expected, staged):
        self.expected = expected
        self.staged = staged
        super().__init__(f"Staged trade is '{staged}', caller intended '{expected}'")


class StorageUnavailable(ConfigurationError):
    """
    Durable storage could not be read or written (transient, retryable).
    A failed write leaves the persisted configuration unchanged; a timed-out
    one is settled by the next store operation.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class CorruptConfiguration(ConfigurationError):
    """The persisted record does not have the expected shape."""


class CatalogIncomplete(ConfigurationError):
    """A trade has no descriptor in the catalog (start-up self-check)."""


class PresetTableIncomplete(ConfigurationError):
    """The built-in preset defaults do not cover every trade (start-up self-check)."""
