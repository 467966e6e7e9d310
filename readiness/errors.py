"""Exceptions raised by the readiness stages."""

from __future__ import annotations


class ReadinessError(RuntimeError):
    """Base class for failures reported by a readiness stage."""


class TransportError(ReadinessError):
    """Raised when an endpoint or database cannot be reached."""


class AuthenticationError(TransportError):
    """Raised when the remote side rejects the configured credentials."""


class ResponseError(ReadinessError):
    """Raised when a response body or query result cannot be consumed."""


class EmptyResultError(ResponseError):
    """Raised when the verification query affects no rows."""


class RetryExhaustedError(ReadinessError):
    """Raised when a bounded retry policy runs out of attempts."""

    def __init__(self, stage: str, attempts: int, last_error: BaseException | None = None):
        self.stage = stage
        self.attempts = attempts
        self.last_error = last_error
        message = f"{stage} did not succeed after {attempts} attempts"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)
