"""Combinators and helpers built on Deferred.

- all_of: fulfil with every result, reject with the first reason
- race: settle like the first item to settle
- when: lift any value into a Deferred, optionally chaining handlers
- delay: fulfil after a wall-clock delay (asyncio ``call_later``)
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable

from fpromise.core.errors import SchedulerError
from fpromise.core.interfaces import IScheduler
from fpromise.core.scheduler import LoopScheduler

from .deferred import Deferred, Reject, Resolve


def _inherit_scheduler(
    items: list[Any], scheduler: IScheduler | None
) -> IScheduler | None:
    """Explicit scheduler wins, then the first Deferred item's scheduler."""
    if scheduler is not None:
        return scheduler
    for item in items:
        if isinstance(item, Deferred):
            return item.scheduler
    return None


def all_of(
    items: Iterable[Any], *, scheduler: IScheduler | None = None
) -> Deferred[list[Any]]:
    """Fulfil with results in input order once every item fulfils.

    Rejects with the first rejection reason. Plain values count as
    already fulfilled; an empty input fulfils with ``[]``.
    """
    pending = list(items)
    scheduler = _inherit_scheduler(pending, scheduler)

    def setup(resolve: Resolve, reject: Reject) -> None:
        if not pending:
            resolve([])
            return

        results: list[Any] = [None] * len(pending)
        remaining = len(pending)

        def collect(index: int) -> Callable[[Any], None]:
            def on_fulfilled(value: Any) -> None:
                nonlocal remaining
                results[index] = value
                remaining -= 1
                if remaining == 0:
                    resolve(results)

            return on_fulfilled

        for index, item in enumerate(pending):
            Deferred.already_fulfilled(item, scheduler=scheduler).then(
                collect(index), reject
            )

    return Deferred(setup, scheduler=scheduler)


def race(
    items: Iterable[Any], *, scheduler: IScheduler | None = None
) -> Deferred[Any]:
    """Settle the same way as the first item to settle.

    An empty input never settles.
    """
    pending = list(items)
    scheduler = _inherit_scheduler(pending, scheduler)

    def setup(resolve: Resolve, reject: Reject) -> None:
        for item in pending:
            Deferred.already_fulfilled(item, scheduler=scheduler).then(resolve, reject)

    return Deferred(setup, scheduler=scheduler)


def when(
    value: Any,
    on_fulfilled: Callable[[Any], Any] | None = None,
    on_rejected: Callable[[Any], Any] | None = None,
    *,
    scheduler: IScheduler | None = None,
) -> Deferred[Any]:
    """Lift ``value`` into a Deferred and chain the handlers, if any."""
    deferred = Deferred.already_fulfilled(value, scheduler=scheduler)
    if on_fulfilled is None and on_rejected is None:
        return deferred
    return deferred.then(on_fulfilled, on_rejected)


def delay(
    seconds: float = 1.0,
    value: Any = None,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
    scheduler: IScheduler | None = None,
) -> Deferred[Any]:
    """Fulfil after ``seconds`` with ``value``, or ``value()`` if callable.

    If ``value()`` raises, the Deferred is rejected with that error.
    """
    if loop is None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SchedulerError("delay() needs a running event loop or an explicit loop") from exc
    if scheduler is None:
        scheduler = LoopScheduler(loop)
    timer_loop = loop

    def setup(resolve: Resolve, reject: Reject) -> None:
        def fire() -> None:
            try:
                result = value() if callable(value) else value
            except Exception as exc:
                reject(exc)
                return
            resolve(result)

        timer_loop.call_later(seconds, fire)

    return Deferred(setup, scheduler=scheduler)
