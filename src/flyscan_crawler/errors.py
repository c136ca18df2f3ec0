"""Typed errors raised by the flight search core."""

from __future__ import annotations

from typing import Any


class FlightSearchError(Exception):
    """Base class for every error this package raises."""


class FilterValidationError(FlightSearchError, ValueError):
    """Filters are incomplete, inconsistent or reference unknown codes.

    Raised before any network call and never retried.
    """

    def __init__(self, message: str, issues: list[Any] | None = None) -> None:
        super().__init__(message)
        self.issues: list[Any] = issues or []


class TransportError(FlightSearchError):
    """The upstream could not be reached or kept answering with an error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.attempts = attempts


class RequestAbortedError(FlightSearchError):
    """The caller signalled abort before the request completed."""


class DecodeError(FlightSearchError):
    """The upstream response does not have the expected envelope."""
