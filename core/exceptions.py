"""
Exception hierarchy for the AO3 notifier.
Transient kinds are retried where they are raised; everything else
propagates to the runner, which aborts before committing the watermark.
"""
from typing import Optional


class NotifierException(Exception):
    """Base exception for all notifier errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# =============================================================================
# Source Exceptions
# =============================================================================


class SourceException(NotifierException):
    """Base exception for errors talking to the listing source."""

    pass


class FetchError(SourceException):
    """A fetch did not produce a body."""

    def __init__(
        self,
        message: str,
        details: dict = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.status = status


class TransientSourceError(FetchError):
    """Retryable failure of a single attempt (retryable status or timeout)."""

    def __init__(
        self,
        message: str,
        details: dict = None,
        status: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, details, status)
        self.retry_after = retry_after


class FatalSourceError(FetchError):
    """Non-retryable status, or the attempt budget ran out."""

    pass


# =============================================================================
# Channel Exceptions
# =============================================================================


class ChannelException(NotifierException):
    """Base exception for notification delivery errors."""

    pass


class ChannelRateLimited(ChannelException):
    """The channel answered 429; retry after the given number of seconds."""

    def __init__(self, message: str, retry_after: float, details: dict = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class ChannelFatalError(ChannelException):
    """Delivery failed for a reason other than rate limiting."""

    pass


# =============================================================================
# State / Configuration Exceptions
# =============================================================================


class StateException(NotifierException):
    """Exception when the watermark file cannot be written."""

    pass


class ConfigurationException(NotifierException):
    """Exception for invalid configuration."""

    pass
