"""asyncio interop.

``from_future`` lifts an asyncio Future/Task/coroutine into a Deferred;
``to_future`` goes the other way and backs ``await deferred``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable

from fpromise.core.errors import RejectionError
from fpromise.core.interfaces import IScheduler

from .deferred import Deferred, Reject, Resolve


def from_future(
    awaitable: Awaitable[Any], *, scheduler: IScheduler | None = None
) -> Deferred[Any]:
    """Deferred mirroring an asyncio Future, Task or coroutine.

    Coroutines are scheduled with ``asyncio.ensure_future``, so a running
    loop is required for them. Cancellation rejects with CancelledError.
    """
    future = asyncio.ensure_future(awaitable)

    def setup(resolve: Resolve, reject: Reject) -> None:
        def on_done(fut: asyncio.Future[Any]) -> None:
            if fut.cancelled():
                reject(asyncio.CancelledError())
                return
            exc = fut.exception()
            if exc is not None:
                reject(exc)
            else:
                resolve(fut.result())

        future.add_done_callback(on_done)

    return Deferred(setup, scheduler=scheduler)


def to_future(
    deferred: Deferred[Any], *, loop: asyncio.AbstractEventLoop | None = None
) -> asyncio.Future[Any]:
    """asyncio Future settled with the Deferred's outcome.

    Non-exception rejection reasons are wrapped in RejectionError.
    """
    target_loop = loop if loop is not None else asyncio.get_running_loop()
    future = target_loop.create_future()

    def on_fulfilled(value: Any) -> None:
        if not future.done():
            future.set_result(value)

    def on_rejected(reason: Any) -> None:
        if future.done():
            return
        if isinstance(reason, asyncio.CancelledError):
            future.cancel()
        elif isinstance(reason, BaseException):
            future.set_exception(reason)
        else:
            future.set_exception(RejectionError(reason))

    deferred.then(on_fulfilled, on_rejected)
    return future
