"""Shared fixtures for the fpromise test suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from fpromise import Deferred, SimScheduler


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

@pytest.fixture
def scheduler() -> SimScheduler:
    """Return an empty SimScheduler; tests drain it with run_until_idle()."""
    return SimScheduler()


# ---------------------------------------------------------------------------
# Deferred helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_deferred(scheduler):
    """Factory returning ``(deferred, resolve, reject)`` for a pending Deferred."""

    def _make() -> tuple[Deferred[Any], Callable[..., None], Callable[..., None]]:
        caps: dict[str, Callable[..., None]] = {}

        def setup(resolve, reject):
            caps["resolve"] = resolve
            caps["reject"] = reject

        deferred = Deferred(setup, scheduler=scheduler)
        return deferred, caps["resolve"], caps["reject"]

    return _make


@pytest.fixture
def recorder():
    """Return a list plus a factory for handlers that append tagged calls."""
    calls: list[tuple[str, Any]] = []

    def _handler(tag: str, result: Any = None):
        def handle(payload: Any) -> Any:
            calls.append((tag, payload))
            return result

        return handle

    return calls, _handler
