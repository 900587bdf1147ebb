"""
Runs coroutines for a Tk window without blocking its event loop.

The asyncio loop is never run to completion from a UI callback. Instead each
``after`` tick runs a single loop iteration (ready callbacks plus a
non-blocking socket poll) and hands finished tasks to their ``on_done``
callback. The asyncio loop and all session state stay on the Tk thread.

Completion callbacks run outside the loop iteration, so they may open modal
dialogs or submit further coroutines.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, List, Optional, Set, Tuple

from core.logging.logic.logger import logger

_FEATURE = "AsyncPump"

Schedule = Callable[[int, Callable[[], None]], Any]
OnDone = Callable[["asyncio.Task[Any]"], None]


class AsyncPump:
    def __init__(self, loop: asyncio.AbstractEventLoop, schedule: Schedule, *, interval_ms: int = 20) -> None:
        self._loop = loop
        self._schedule = schedule
        self._interval_ms = interval_ms
        self._tasks: Set[asyncio.Task] = set()
        self._finished: List[Tuple[asyncio.Task, Optional[OnDone]]] = []
        self._ticking = False
        self._closed = False

    @property
    def busy(self) -> bool:
        """True while a submitted coroutine has not been handed back yet."""
        return bool(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], on_done: Optional[OnDone] = None) -> "asyncio.Task[Any]":
        if self._closed:
            coro.close()
            raise RuntimeError("AsyncPump is closed")
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished.append((t, on_done)))
        self._arm()
        return task

    def close(self) -> None:
        """Cancel what is still running; later ticks do nothing."""
        if self._closed:
            return
        self._closed = True
        pending = [t for t in self._tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending and not self._loop.is_running():
            self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self._tasks.clear()
        self._finished.clear()

    # -------- Tick --------------------------------------------------------- #
    def _arm(self) -> None:
        if not self._ticking and not self._closed:
            self._ticking = True
            self._schedule(self._interval_ms, self._tick)

    def _tick(self) -> None:
        self._ticking = False
        if self._closed:
            return
        if not self._loop.is_running():
            self._loop.call_soon(self._loop.stop)
            self._loop.run_forever()
        self._hand_back()
        if self._tasks:
            self._arm()

    def _hand_back(self) -> None:
        while self._finished:
            task, on_done = self._finished.pop(0)
            self._tasks.discard(task)
            if on_done is not None:
                on_done(task)
            elif not task.cancelled() and task.exception() is not None:
                exc = task.exception()
                logger.log(_FEATURE, "UnhandledTaskError", level="ERROR",
                           message=f"{type(exc).__name__}: {exc}")
