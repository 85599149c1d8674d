"""Custom exception hierarchy for fpromise."""

from __future__ import annotations

from typing import Any


class FPromiseError(Exception):
    """Base exception for all fpromise errors."""


# --- Configuration ---
class ConfigError(FPromiseError):
    """Invalid or missing configuration."""


# --- Scheduling ---
class SchedulerError(FPromiseError):
    """A callback could not be handed to the host task queue."""


# --- Resolution ---
class SelfResolutionError(FPromiseError, TypeError):
    """A Deferred was resolved with itself, directly or through adoption."""

    def __init__(self, message: str = "cannot fulfill a deferred value with itself") -> None:
        super().__init__(message)


class RejectionError(FPromiseError):
    """Raised when awaiting a Deferred rejected with a non-exception reason."""

    def __init__(self, reason: Any) -> None:
        self.reason = reason
        super().__init__(f"Deferred rejected with {reason!r}")


# --- HTTP boundary ---
class HttpError(FPromiseError):
    """HTTP collaborator failure."""


class ResponseError(HttpError):
    """Standard envelope came back with a non-success business code."""

    def __init__(self, message: str, code: int | None = None, data: Any = None) -> None:
        self.code = code
        self.data = data
        super().__init__(message)


class HttpStatusError(HttpError):
    """Server answered with a non-2xx status, or the transport failed."""

    def __init__(self, message: str, status: int | None = None, data: Any = None) -> None:
        self.status = status
        self.data = data
        super().__init__(message)
