"""Library for running a batch of coroutines with a bounded number in flight.

Both reading stored releases and installing releases fan out over the same
pool so a large snapshot can't overwhelm the backend or the cluster.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
import logging
from typing import TypeVar

_LOGGER = logging.getLogger(__name__)

__all__ = ["BoundedPool"]

_T = TypeVar("_T")
_R = TypeVar("_R")


class BoundedPool:
    """Runs work items concurrently through a fixed-size permit pool."""

    def __init__(self, limit: int) -> None:
        """Initialize BoundedPool."""
        if limit < 1:
            raise ValueError(f"Pool limit must be at least 1, got {limit}")
        self._limit = limit
        self._sem = asyncio.Semaphore(limit)
        self._in_flight = 0
        self._max_in_flight = 0

    @property
    def limit(self) -> int:
        """Maximum number of work items running at once."""
        return self._limit

    @property
    def max_in_flight(self) -> int:
        """Largest number of work items observed running at once."""
        return self._max_in_flight

    async def _run_with_sem(self, func: Callable[[_T], Awaitable[_R]], item: _T) -> _R:
        async with self._sem:
            self._in_flight += 1
            self._max_in_flight = max(self._max_in_flight, self._in_flight)
            try:
                return await func(item)
            finally:
                self._in_flight -= 1

    async def map(
        self, func: Callable[[_T], Awaitable[_R]], items: Iterable[_T]
    ) -> list[_R | BaseException]:
        """Run func over every item and wait for all of them to finish.

        Results are returned in the order of the items. An exception raised
        by one item is returned in its slot and does not cancel the others.
        """
        work = list(items)
        _LOGGER.debug("Running %d items with limit %d", len(work), self._limit)
        return await asyncio.gather(
            *(self._run_with_sem(func, item) for item in work),
            return_exceptions=True,
        )
