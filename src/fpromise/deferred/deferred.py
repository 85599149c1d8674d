"""Deferred value: a single-threaded, cooperative future.

A Deferred starts PENDING and settles exactly once, to FULFILLED with a
value or to REJECTED with a reason. Observers registered with ``then``
are notified on a later scheduler turn, in registration order, and
never on the stack that settled or chained the Deferred.

Settling with another Deferred, or with any foreign thenable, adopts
that value's eventual outcome instead of fulfilling with the wrapper.

Usage::

    scheduler = SimScheduler()
    d = Deferred(lambda resolve, reject: resolve(21), scheduler=scheduler)
    doubled = d.then(lambda v: v * 2)
    scheduler.run_until_idle()
    assert doubled.value == 42
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Generator, Generic, Iterable, TypeVar

from fpromise.core.enums import State
from fpromise.core.errors import SchedulerError, SelfResolutionError
from fpromise.core.interfaces import IScheduler
from fpromise.core.scheduler import DEFAULT_SCHEDULER

logger = logging.getLogger(__name__)

T = TypeVar("T")

Resolve = Callable[..., None]
Reject = Callable[..., None]
Setup = Callable[[Resolve, Reject], Any]

# Never probed for a ``then`` member. Classes are plain values too: their
# ``then`` is an unbound function, not a continuation.
_NEVER_PROBED = (type(None), bool, int, float, complex, str, bytes, bytearray, type)

_MISSING = object()


# ---------------------------------------------------------------------------
# Observer records
# ---------------------------------------------------------------------------

@dataclass
class _Observer:
    """Handlers registered by one ``then`` call plus the Deferred it returned."""

    on_fulfilled: Callable[[Any], Any] | None
    on_rejected: Callable[[Any], Any] | None
    downstream: Deferred[Any]


def _lookup_then(value: Any) -> Any:
    """Read ``value.then``; None when the value has no such member.

    An AttributeError raised by a ``then`` that does exist (a property,
    say) propagates like any other lookup failure.
    """
    try:
        return value.then
    except AttributeError:
        if inspect.getattr_static(value, "then", _MISSING) is _MISSING:
            return None
        raise


def _noop_setup(resolve: Resolve, reject: Reject) -> None:
    return None


def _notify(observer: _Observer, state: State, payload: Any) -> None:
    """Run the matching handler and settle the observer's downstream."""
    downstream = observer.downstream
    if state is State.FULFILLED:
        handler = observer.on_fulfilled
    else:
        handler = observer.on_rejected

    if handler is None:
        # Pass-through: same state, same payload.
        downstream._transition(state, payload)
        return

    try:
        result = handler(payload)
    except Exception as exc:
        downstream._transition(State.REJECTED, exc)
        return
    downstream._resolve(result)


def _flush(observers: list[_Observer], state: State, payload: Any) -> None:
    for observer in observers:
        _notify(observer, state, payload)


# ---------------------------------------------------------------------------
# Deferred
# ---------------------------------------------------------------------------

class Deferred(Generic[T]):
    """Future value settled once by its setup routine.

    Args:
        setup: Called synchronously with ``(resolve, reject)``. Either
            capability may be called now or later; only the first call
            has any effect. If ``setup`` raises before settling, the
            Deferred is rejected with the raised exception.
        scheduler: Host task queue for observer invocation. Defaults to
            the running asyncio loop.
    """

    def __init__(self, setup: Setup, *, scheduler: IScheduler | None = None) -> None:
        if not callable(setup):
            raise TypeError(f"Deferred setup {setup!r} is not callable")

        self._state = State.PENDING
        self._payload: Any = None
        self._observers: list[_Observer] = []
        self._following: Deferred[Any] | None = None  # Deferred being adopted
        self._claimed = False  # Shared one-shot flag for resolve/reject
        self._scheduler: IScheduler = (
            scheduler if scheduler is not None else DEFAULT_SCHEDULER
        )

        try:
            setup(self._settle_success, self._settle_failure)
        except SchedulerError:
            raise
        except Exception as exc:
            if self._claimed:
                logger.debug("Setup raised after settlement, ignored: %r", exc)
            else:
                self._settle_failure(exc)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def already_fulfilled(
        cls, value: Any = None, *, scheduler: IScheduler | None = None
    ) -> Deferred[Any]:
        """Deferred resolved with ``value`` at construction.

        Deferreds and thenables are still adopted, so the result may stay
        pending until they settle.
        """
        if scheduler is None and isinstance(value, Deferred):
            scheduler = value._scheduler
        return cls(lambda resolve, _: resolve(value), scheduler=scheduler)

    @classmethod
    def already_rejected(
        cls, reason: Any = None, *, scheduler: IScheduler | None = None
    ) -> Deferred[Any]:
        """Deferred rejected with ``reason`` at construction."""
        return cls(lambda _, reject: reject(reason), scheduler=scheduler)

    @classmethod
    def all(
        cls, items: Iterable[Any], *, scheduler: IScheduler | None = None
    ) -> Deferred[list[Any]]:
        from .combinators import all_of

        return all_of(items, scheduler=scheduler)

    @classmethod
    def race(
        cls, items: Iterable[Any], *, scheduler: IScheduler | None = None
    ) -> Deferred[Any]:
        from .combinators import race

        return race(items, scheduler=scheduler)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state is State.PENDING

    @property
    def is_fulfilled(self) -> bool:
        return self._state is State.FULFILLED

    @property
    def is_rejected(self) -> bool:
        return self._state is State.REJECTED

    @property
    def value(self) -> T | None:
        """Fulfilled value; None while pending or when rejected."""
        return self._payload if self._state is State.FULFILLED else None

    @property
    def reason(self) -> Any:
        """Rejection reason; None while pending or when fulfilled."""
        return self._payload if self._state is State.REJECTED else None

    @property
    def scheduler(self) -> IScheduler:
        return self._scheduler

    def __repr__(self) -> str:
        if self._state is State.PENDING:
            return "<Deferred pending>"
        return f"<Deferred {self._state.value} {self._payload!r}>"

    # ------------------------------------------------------------------
    # Chaining
    # ------------------------------------------------------------------

    def then(
        self,
        on_fulfilled: Callable[[Any], Any] | None = None,
        on_rejected: Callable[[Any], Any] | None = None,
    ) -> Deferred[Any]:
        """Register handlers and return the Deferred they settle.

        A missing (or non-callable) handler passes the outcome through
        unchanged. A handler's return value is resolved into the
        downstream (so returning a Deferred chains); an exception it
        raises rejects the downstream.
        """
        downstream: Deferred[Any] = Deferred(_noop_setup, scheduler=self._scheduler)
        self._subscribe(
            _Observer(
                on_fulfilled if callable(on_fulfilled) else None,
                on_rejected if callable(on_rejected) else None,
                downstream,
            )
        )
        return downstream

    chain = then

    def catch(self, on_rejected: Callable[[Any], Any]) -> Deferred[Any]:
        """Failure-only ``then``."""
        return self.then(None, on_rejected)

    def finally_(self, callback: Callable[[], Any]) -> Deferred[T]:
        """Run ``callback()`` on either outcome, then re-settle the same way.

        If ``callback`` raises, or returns a Deferred/thenable that rejects,
        the downstream is rejected with that error instead.
        """
        if not callable(callback):
            return self.then()
        scheduler = self._scheduler

        def run_callback() -> Deferred[Any]:
            return Deferred.already_fulfilled(callback(), scheduler=scheduler)

        def on_fulfilled(value: Any) -> Deferred[Any]:
            return run_callback().then(lambda _: value)

        def on_rejected(reason: Any) -> Deferred[Any]:
            return run_callback().then(
                lambda _: Deferred.already_rejected(reason, scheduler=scheduler)
            )

        return self.then(on_fulfilled, on_rejected)

    def __await__(self) -> Generator[Any, None, T]:
        from .bridge import to_future

        return to_future(self).__await__()

    # ------------------------------------------------------------------
    # Settlement capabilities (handed to setup)
    # ------------------------------------------------------------------

    def _settle_success(self, value: Any = None) -> None:
        if self._claimed:
            logger.debug("Ignored resolve(%r) on %r", value, self)
            return
        self._claimed = True
        try:
            self._resolve(value)
        except SchedulerError:
            # Nothing was committed; a later call may settle again.
            self._claimed = False
            raise

    def _settle_failure(self, reason: Any = None) -> None:
        if self._claimed:
            logger.debug("Ignored reject(%r) on %r", reason, self)
            return
        self._claimed = True
        try:
            self._transition(State.REJECTED, reason)
        except SchedulerError:
            self._claimed = False
            raise

    # ------------------------------------------------------------------
    # Resolution procedure
    # ------------------------------------------------------------------

    def _resolve(self, value: Any) -> None:
        """Decide the terminal settlement for a candidate success value."""
        # Own Deferreds: walk adoption links to the innermost one, so long
        # adoption chains subscribe once and cycles are caught here.
        target = value
        while isinstance(target, Deferred):
            if target is self:
                logger.debug("Self-adoption detected on %r", self)
                self._transition(State.REJECTED, SelfResolutionError())
                return
            if target._following is None:
                break
            target = target._following

        if isinstance(target, Deferred):
            target._subscribe(_Observer(None, None, self))
            self._following = target
            return

        if not isinstance(value, _NEVER_PROBED):
            try:
                then = _lookup_then(value)
            except Exception as exc:
                self._transition(State.REJECTED, exc)
                return
            if callable(then):
                self._adopt_thenable(value, then)
                return

        self._transition(State.FULFILLED, value)

    def _adopt_thenable(self, thenable: Any, then: Callable[..., Any]) -> None:
        called = False

        def resolve_once(value: Any = None) -> None:
            nonlocal called
            if called:
                return
            called = True
            self._resolve(value)

        def reject_once(reason: Any = None) -> None:
            nonlocal called
            if called:
                return
            called = True
            self._transition(State.REJECTED, reason)

        try:
            then(resolve_once, reject_once)
        except SchedulerError:
            raise
        except Exception as exc:
            if called:
                logger.debug("Thenable %r raised after settling, ignored: %r", thenable, exc)
                return
            called = True
            self._transition(State.REJECTED, exc)

    # ------------------------------------------------------------------
    # State machine & scheduling
    # ------------------------------------------------------------------

    def _transition(self, state: State, payload: Any) -> None:
        if self._state is not State.PENDING:
            return
        observers = self._observers
        if observers:
            # Scheduling can fail (no running loop); commit only once the
            # flush job is queued so no observer is dropped.
            self._scheduler.schedule(partial(_flush, observers, state, payload))
        self._state = state
        self._payload = payload
        self._following = None
        self._observers = []
        logger.debug("Deferred %s with %r (%d observers)", state.value, payload, len(observers))

    def _subscribe(self, observer: _Observer) -> None:
        if self._state is State.PENDING:
            self._observers.append(observer)
        else:
            self._scheduler.schedule(
                partial(_notify, observer, self._state, self._payload)
            )
