# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

"""Schedulers for deferred target execution.

Both schedulers are single-threaded: a submitted job never runs inside the
``submit`` call, only on a later turn.

- ``TaskQueue``: explicit FIFO drained by the caller, no event loop needed
- ``EventLoopScheduler``: ``call_soon`` on an asyncio event loop
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from typing import Protocol, TypeVar, runtime_checkable

from .._errors import SchedulerError
from .deferred import DeferredResult

T = TypeVar("T")

__all__ = ("Scheduler", "TaskQueue", "EventLoopScheduler")

logger = logging.getLogger(__name__)


@runtime_checkable
class Scheduler(Protocol):
    def submit(
        self, job: Callable[[], T], *, name: str | None = None
    ) -> DeferredResult[T]: ...


class TaskQueue:
    """Explicit single-threaded task queue.

    Jobs wait until the owner drains the queue, which keeps deferred
    execution deterministic and free of timers.

    Example:
        ```python
        queue = TaskQueue()
        handle = Composer(scheduler=queue).set_async_target(work).execute()
        queue.run_pending()
        handle.result()
        ```
    """

    def __init__(self):
        self._pending: deque[DeferredResult] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def submit(
        self, job: Callable[[], T], *, name: str | None = None
    ) -> DeferredResult[T]:
        handle = DeferredResult(job, name=name)
        self._pending.append(handle)
        logger.debug("queued deferred job %s (%d pending)", name, len(self))
        return handle

    def run_once(self) -> bool:
        """Run the oldest pending job. Returns False when the queue is empty."""
        while self._pending:
            handle = self._pending.popleft()
            if handle.cancelled():
                continue
            handle.run()
            return True
        return False

    def run_pending(self) -> int:
        """Drain the jobs queued so far; jobs they submit wait for the next drain."""
        count = 0
        for _ in range(len(self._pending)):
            handle = self._pending.popleft()
            if handle.cancelled():
                continue
            handle.run()
            count += 1
        return count

    def clear(self) -> int:
        """Cancel and drop every pending job."""
        dropped = 0
        while self._pending:
            if self._pending.popleft().cancel():
                dropped += 1
        return dropped


class EventLoopScheduler:
    """Defers jobs to the next turn of an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @classmethod
    def current(cls) -> EventLoopScheduler:
        """Bind to the running loop now, raising ``SchedulerError`` without one."""
        return cls(cls().loop)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as e:
            raise SchedulerError(
                "Deferred execution needs a running event loop or an "
                "explicit scheduler",
                cause=e,
            ) from e

    def submit(
        self, job: Callable[[], T], *, name: str | None = None
    ) -> DeferredResult[T]:
        loop = self.loop
        if loop.is_closed():
            raise SchedulerError(
                "Event loop is closed", details={"job": name}
            )
        handle = DeferredResult(job, name=name)
        loop.call_soon(handle.run)
        logger.debug("scheduled deferred job %s on %r", name, loop)
        return handle
