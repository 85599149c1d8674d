"""Enumerations used across fpromise."""

from enum import Enum, IntEnum


class State(str, Enum):
    """Lifecycle of a Deferred. Only PENDING is non-terminal."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class SchedulerKind(str, Enum):
    LOOP = "loop"  # asyncio call_soon
    SIM = "sim"  # deterministic, drained explicitly


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"


class CodeStatus(IntEnum):
    """Business codes carried in the standard response envelope."""

    SUCCESS = 0
    BUSINESS_ERROR = 1
    SYSTEM_ERROR = 99
    VALIDATION_CODE_ERROR = 100
    CONCURRENT_OPERATE_ERROR = 200
    UNAUTHORIZED_ACCESS = 403  # Must log in again
    NOT_FOUND = 404
    CONCURRENT_ERROR = 429
    NO_PERMISSION = 503  # No feature permission
    NO_DATA_PERMISSION = 1403
    DISABLED_LOGIN = 1503


class RecoveryKind(str, Enum):
    REDIRECT_TO_LOGIN = "redirect_to_login"
    ROUTE_TO = "route_to"
    WARN = "warn"
    PASS_THROUGH_DATA = "pass_through_data"
