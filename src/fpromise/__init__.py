"""fpromise: a single-threaded, cooperative deferred value.

A ``Deferred`` settles exactly once and notifies its observers on a
later scheduler turn, in registration order. Settling with another
Deferred or any object exposing ``then`` adopts its outcome.

Quick start::

    from fpromise import Deferred, SimScheduler

    scheduler = SimScheduler()
    d = Deferred(lambda resolve, reject: resolve(1), scheduler=scheduler)
    d.then(print)
    scheduler.run_until_idle()  # prints 1

Inside asyncio the default ``LoopScheduler`` uses the running loop and
Deferreds can be awaited directly.
"""

from fpromise.core.enums import State
from fpromise.core.errors import (
    FPromiseError,
    RejectionError,
    SchedulerError,
    SelfResolutionError,
)
from fpromise.core.interfaces import IScheduler, Thenable
from fpromise.core.scheduler import (
    LoopScheduler,
    SimScheduler,
    create_scheduler,
    create_scheduler_from_config,
)
from fpromise.deferred import (
    Deferred,
    all_of,
    delay,
    from_future,
    race,
    to_future,
    when,
)

__version__ = "0.1.0"

__all__ = [
    "Deferred",
    "FPromiseError",
    "IScheduler",
    "LoopScheduler",
    "RejectionError",
    "SchedulerError",
    "SelfResolutionError",
    "SimScheduler",
    "State",
    "Thenable",
    "all_of",
    "create_scheduler",
    "create_scheduler_from_config",
    "delay",
    "from_future",
    "race",
    "to_future",
    "when",
]
