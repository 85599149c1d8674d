"""HTTP boundary: a Deferred-returning client and response classification."""

from fpromise.http.client import HttpClient, RequestOptions
from fpromise.http.status import (
    RECOVERY_ROUTES,
    RecoveryAction,
    ResponseEnvelope,
    get_message,
    recovery_for,
)

__all__ = [
    "HttpClient",
    "RECOVERY_ROUTES",
    "RecoveryAction",
    "RequestOptions",
    "ResponseEnvelope",
    "get_message",
    "recovery_for",
]
