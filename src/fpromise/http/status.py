"""Response classification for the HTTP boundary.

One canonical table maps business codes (and HTTP statuses, which share
the same number space for 403/404/429/503) to a recovery action. The
client hands the action to an injected callback; routing, login
redirects and user-facing warnings stay with the application.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from http import HTTPStatus
from typing import Any

from pydantic import BaseModel

from fpromise.core.enums import CodeStatus, RecoveryKind


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

ERROR_MESSAGES: dict[int, str] = {
    401: "Sorry, you are not logged in",
    403: "Sorry, you do not have permission to access this page",
    404: "The server could not find this address",
    405: "The server does not understand this request method",
    413: "Sorry, the uploaded file is too large",
    500: "The server ran into a problem",
    502: "The gateway returned an invalid response",
    503: "The service is unavailable",
    504: "The server took too long to respond",
}

FALLBACK_MESSAGE = "Uncaught HTTP error"


def _status_phrase(status: int | None) -> str | None:
    if status is None:
        return None
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return None


def get_message(data: Any, status: int | None, status_text: str | None = None) -> str:
    """Pick the most specific message for a failed response.

    A dict body's own ``message`` wins, then the table entry for its
    ``code``. For other bodies the status table, the server's status
    text and finally the standard phrase are tried.
    """
    msg: str | None
    if isinstance(data, dict):
        msg = data.get("message") or None
        if not msg and data.get("code"):
            msg = ERROR_MESSAGES.get(data["code"])
    else:
        msg = ERROR_MESSAGES.get(status) if status is not None else None
        msg = msg or status_text or _status_phrase(status)
    return msg or status_text or FALLBACK_MESSAGE


# ---------------------------------------------------------------------------
# Recovery actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecoveryAction:
    """What the application should do about a failed response."""

    kind: RecoveryKind
    route: str | None = None
    message: str | None = None

    @classmethod
    def redirect_to_login(cls) -> RecoveryAction:
        return cls(RecoveryKind.REDIRECT_TO_LOGIN)

    @classmethod
    def route_to(cls, name: str) -> RecoveryAction:
        return cls(RecoveryKind.ROUTE_TO, route=name)

    @classmethod
    def warn(cls, message: str | None = None) -> RecoveryAction:
        return cls(RecoveryKind.WARN, message=message)

    @classmethod
    def pass_through_data(cls) -> RecoveryAction:
        return cls(RecoveryKind.PASS_THROUGH_DATA)


RECOVERY_ROUTES: dict[int, RecoveryAction] = {
    CodeStatus.UNAUTHORIZED_ACCESS: RecoveryAction.redirect_to_login(),
    CodeStatus.NO_PERMISSION: RecoveryAction.route_to("error401"),
    CodeStatus.NO_DATA_PERMISSION: RecoveryAction.route_to("error401"),
    CodeStatus.NOT_FOUND: RecoveryAction.route_to("error404"),
    CodeStatus.DISABLED_LOGIN: RecoveryAction.route_to("errorNoLogin"),
    CodeStatus.CONCURRENT_ERROR: RecoveryAction.warn(),
    CodeStatus.CONCURRENT_OPERATE_ERROR: RecoveryAction.warn(),
    CodeStatus.SYSTEM_ERROR: RecoveryAction.warn(),
    CodeStatus.VALIDATION_CODE_ERROR: RecoveryAction.pass_through_data(),
}


def recovery_for(code: int | None, message: str | None = None) -> RecoveryAction:
    """Look up the recovery for ``code``; unknown codes warn."""
    if code is None:
        return RecoveryAction.warn(message)
    action = RECOVERY_ROUTES.get(code, RecoveryAction.warn())
    return replace(action, message=message)


# ---------------------------------------------------------------------------
# Standard response body
# ---------------------------------------------------------------------------

_ENVELOPE_KEYS = frozenset({"code", "data", "message", "success"})


class ResponseEnvelope(BaseModel):
    """Standard body: ``{"code": 0, "data": ..., "message": "", "success": true}``."""

    code: int
    data: Any = None
    message: str | None = None
    success: bool = False

    @staticmethod
    def is_standard(body: Any) -> bool:
        return isinstance(body, dict) and _ENVELOPE_KEYS <= body.keys()

    @property
    def is_right(self) -> bool:
        return self.success and self.code == CodeStatus.SUCCESS
