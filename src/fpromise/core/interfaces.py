"""Protocol interfaces for fpromise.

The scheduler and the thenable contract are the only seams of the core.
Implementations can be swapped (asyncio loop / simulated queue, own
Deferred / foreign thenable) without changing callers.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

@runtime_checkable
class IScheduler(Protocol):
    """Host task queue. Jobs run later, in the order they were scheduled."""

    def schedule(self, job: Callable[[], None]) -> None: ...


# ---------------------------------------------------------------------------
# Thenable
# ---------------------------------------------------------------------------

@runtime_checkable
class Thenable(Protocol):
    """Anything exposing a continuation method.

    ``then`` receives a success and a failure callback and is expected
    to call at most one of them, at most once. Implementations that
    misbehave are tolerated by the resolution procedure.
    """

    def then(
        self,
        on_fulfilled: Callable[[Any], Any] | None = ...,
        on_rejected: Callable[[Any], Any] | None = ...,
    ) -> Any: ...
