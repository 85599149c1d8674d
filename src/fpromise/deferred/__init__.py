"""Deferred value primitive, its combinators and the asyncio bridge."""

from fpromise.deferred.bridge import from_future, to_future
from fpromise.deferred.combinators import all_of, delay, race, when
from fpromise.deferred.deferred import Deferred

__all__ = [
    "Deferred",
    "all_of",
    "delay",
    "from_future",
    "race",
    "to_future",
    "when",
]
