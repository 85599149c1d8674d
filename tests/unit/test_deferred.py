"""Tests for Deferred construction, settlement and inspection."""

from __future__ import annotations

import asyncio

import pytest

from fpromise import Deferred, SchedulerError, SimScheduler, State
from fpromise.core.scheduler import DEFAULT_SCHEDULER


class TestConstruction:
    def test_starts_pending(self, make_deferred):
        d, _, _ = make_deferred()
        assert d.state is State.PENDING
        assert d.is_pending
        assert d.value is None
        assert d.reason is None

    def test_setup_runs_synchronously(self, scheduler):
        calls = []
        Deferred(lambda resolve, reject: calls.append("setup"), scheduler=scheduler)
        assert calls == ["setup"]

    def test_non_callable_setup_raises_type_error(self, scheduler):
        with pytest.raises(TypeError, match="not callable"):
            Deferred(42, scheduler=scheduler)

    def test_setup_raising_rejects(self, scheduler):
        err = RuntimeError("setup failed")

        def setup(resolve, reject):
            raise err

        d = Deferred(setup, scheduler=scheduler)
        assert d.is_rejected
        assert d.reason is err

    def test_setup_raising_after_resolve_is_ignored(self, scheduler):
        def setup(resolve, reject):
            resolve("ok")
            raise RuntimeError("too late")

        d = Deferred(setup, scheduler=scheduler)
        assert d.is_fulfilled
        assert d.value == "ok"

    def test_default_scheduler(self):
        d = Deferred(lambda resolve, reject: None)
        assert d.scheduler is DEFAULT_SCHEDULER

    def test_explicit_scheduler_kept(self, scheduler):
        d = Deferred(lambda resolve, reject: None, scheduler=scheduler)
        assert d.scheduler is scheduler


class TestSettleOnce:
    def test_first_resolve_wins(self, make_deferred):
        d, resolve, reject = make_deferred()
        resolve(1)
        resolve(2)
        reject(ValueError("ignored"))
        assert d.state is State.FULFILLED
        assert d.value == 1

    def test_first_reject_wins(self, make_deferred):
        d, resolve, reject = make_deferred()
        reject("first")
        resolve("second")
        reject("third")
        assert d.is_rejected
        assert d.reason == "first"

    def test_resolve_claims_even_while_adopting(self, make_deferred, scheduler):
        inner, resolve_inner, _ = make_deferred()
        outer, resolve_outer, reject_outer = make_deferred()

        resolve_outer(inner)
        reject_outer("ignored")
        assert outer.is_pending

        resolve_inner("inner value")
        scheduler.run_until_idle()
        assert outer.value == "inner value"

    def test_reject_with_any_reason(self, make_deferred):
        d, _, reject = make_deferred()
        reason = {"code": 1}
        reject(reason)
        assert d.reason is reason

    def test_resolve_without_argument_fulfils_with_none(self, make_deferred):
        d, resolve, _ = make_deferred()
        resolve()
        assert d.is_fulfilled
        assert d.value is None


class TestStaticConstructors:
    def test_already_fulfilled(self, scheduler):
        d = Deferred.already_fulfilled(5, scheduler=scheduler)
        assert d.is_fulfilled
        assert d.value == 5

    def test_already_rejected(self, scheduler):
        err = KeyError("k")
        d = Deferred.already_rejected(err, scheduler=scheduler)
        assert d.is_rejected
        assert d.reason is err

    def test_already_fulfilled_adopts_deferred(self, make_deferred, scheduler):
        inner, resolve, _ = make_deferred()
        d = Deferred.already_fulfilled(inner)
        assert d.is_pending
        assert d.scheduler is scheduler

        resolve("later")
        scheduler.run_until_idle()
        assert d.value == "later"

    def test_already_fulfilled_does_not_notify_synchronously(self, scheduler):
        calls = []
        Deferred.already_fulfilled(1, scheduler=scheduler).then(calls.append)
        assert calls == []
        scheduler.run_until_idle()
        assert calls == [1]


class TestRepr:
    def test_pending(self, make_deferred):
        d, _, _ = make_deferred()
        assert repr(d) == "<Deferred pending>"

    def test_fulfilled(self, scheduler):
        assert repr(Deferred.already_fulfilled("x", scheduler=scheduler)) == "<Deferred fulfilled 'x'>"

    def test_rejected(self, scheduler):
        assert repr(Deferred.already_rejected(3, scheduler=scheduler)) == "<Deferred rejected 3>"


class OfflineScheduler(SimScheduler):
    """SimScheduler that refuses jobs while ``offline`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.offline = True

    def schedule(self, job) -> None:
        if self.offline:
            raise SchedulerError("scheduler offline")
        super().schedule(job)


def _capture(scheduler):
    caps = {}

    def setup(resolve, reject):
        caps["resolve"] = resolve
        caps["reject"] = reject

    return Deferred(setup, scheduler=scheduler), caps


class TestSchedulingFailure:
    def test_resolve_stays_pending_and_keeps_observers(self):
        scheduler = OfflineScheduler()
        d, caps = _capture(scheduler)
        seen = []
        d.then(seen.append)

        with pytest.raises(SchedulerError):
            caps["resolve"](1)
        assert d.is_pending

        scheduler.offline = False
        caps["resolve"](1)
        scheduler.run_until_idle()
        assert d.value == 1
        assert seen == [1]

    def test_reject_stays_pending_and_keeps_observers(self):
        scheduler = OfflineScheduler()
        d, caps = _capture(scheduler)
        seen = []
        d.catch(seen.append)

        with pytest.raises(SchedulerError):
            caps["reject"]("boom")
        assert d.is_pending

        scheduler.offline = False
        caps["reject"]("boom")
        scheduler.run_until_idle()
        assert seen == ["boom"]

    def test_adopting_settled_deferred_stays_pending(self):
        scheduler = OfflineScheduler()
        scheduler.offline = False
        inner = Deferred.already_fulfilled("inner", scheduler=scheduler)
        d, caps = _capture(scheduler)

        scheduler.offline = True
        with pytest.raises(SchedulerError):
            caps["resolve"](inner)
        assert d.is_pending

        scheduler.offline = False
        caps["resolve"](inner)
        scheduler.run_until_idle()
        assert d.value == "inner"

    def test_settling_without_observers_needs_no_scheduler(self):
        d, caps = _capture(OfflineScheduler())
        caps["resolve"]("quiet")
        assert d.value == "quiet"

    def test_settling_after_loop_ended_keeps_observers(self):
        caps = {}
        seen = []

        async def build():
            d = Deferred(lambda resolve, reject: caps.update(resolve=resolve))
            d.then(seen.append)
            return d

        d = asyncio.run(build())
        with pytest.raises(SchedulerError):
            caps["resolve"](1)
        assert d.is_pending

        async def settle():
            caps["resolve"](1)
            await asyncio.sleep(0)

        asyncio.run(settle())
        assert seen == [1]
