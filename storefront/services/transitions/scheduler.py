"""Timer scheduling capability used by cascade transitions."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Schedules callbacks after a delay expressed in milliseconds."""

    @abstractmethod
    def schedule(
        self,
        delay: float,
        callback: Callable[[], None],
        generation: int = 0,
    ) -> None:
        """Run ``callback`` after ``delay`` milliseconds."""

    @abstractmethod
    def cancel_all(self, generation: int) -> None:
        """Drop every pending callback registered under ``generation``."""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running event loop's ``call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: dict[int, set[asyncio.TimerHandle]] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def schedule(
        self,
        delay: float,
        callback: Callable[[], None],
        generation: int = 0,
    ) -> None:
        handles = self._handles.setdefault(generation, set())
        handle: asyncio.TimerHandle | None = None

        def _run() -> None:
            handles.discard(handle)
            if not handles:
                self._handles.pop(generation, None)
            callback()

        handle = self._get_loop().call_later(max(delay, 0) / 1000, _run)
        handles.add(handle)

    def cancel_all(self, generation: int) -> None:
        handles = self._handles.pop(generation, set())
        for handle in handles:
            handle.cancel()
        if handles:
            logger.debug(
                "Cancelled %d pending callbacks of generation %d",
                len(handles),
                generation,
            )

    @property
    def pending(self) -> int:
        return sum(len(handles) for handles in self._handles.values())
