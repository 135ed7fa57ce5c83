# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from enum import Enum
from typing import Any, Generic, TypeVar

import anyio

from .._errors import DeferredCancelledError, DeferredNotReadyError
from .._sentinel import Unset, UnsetType

T = TypeVar("T")

__all__ = ("DeferredStatus", "DeferredResult")

logger = logging.getLogger(__name__)


class DeferredStatus(str, Enum):
    """Lifecycle states of a deferred job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DeferredResult(Generic[T]):
    """Handle on a job that runs on a later scheduler turn.

    Schedulers create the handle, keep a reference to it and call ``run()``
    when the job's turn comes. Callers observe the outcome with ``result()``,
    ``exception()``, done callbacks, or by awaiting the handle.

    Example:
        ```python
        handle = Composer().set_async_target(fetch, url).execute()
        value = await handle
        ```
    """

    __slots__ = ("_job", "_status", "_value", "_error", "_callbacks", "name")

    def __init__(self, job: Callable[[], T], *, name: str | None = None):
        self._job = job
        self._status = DeferredStatus.PENDING
        self._value: T | UnsetType = Unset
        self._error: Exception | None = None
        self._callbacks: list[Callable[[DeferredResult[T]], Any]] = []
        self.name = name

    @property
    def status(self) -> DeferredStatus:
        return self._status

    def done(self) -> bool:
        return self._status in (
            DeferredStatus.COMPLETED,
            DeferredStatus.FAILED,
            DeferredStatus.CANCELLED,
        )

    def cancelled(self) -> bool:
        return self._status is DeferredStatus.CANCELLED

    def cancel(self) -> bool:
        """Withdraw the job. Only possible while it has not started."""
        if self._status is not DeferredStatus.PENDING:
            return False
        self._status = DeferredStatus.CANCELLED
        self._job = None
        logger.debug("deferred job %s cancelled", self.name)
        self._fire_callbacks()
        return True

    def result(self) -> T:
        if self._status is DeferredStatus.CANCELLED:
            raise DeferredCancelledError(details={"name": self.name})
        if not self.done():
            raise DeferredNotReadyError(
                details={"name": self.name, "status": self._status.value}
            )
        if self._error is not None:
            raise self._error
        return self._value

    def exception(self) -> Exception | None:
        if self._status is DeferredStatus.CANCELLED:
            raise DeferredCancelledError(details={"name": self.name})
        if not self.done():
            raise DeferredNotReadyError(
                details={"name": self.name, "status": self._status.value}
            )
        return self._error

    def add_done_callback(self, fn: Callable[[DeferredResult[T]], Any]) -> None:
        """Call ``fn(handle)`` once the job settles, or right away if it has."""
        if self.done():
            fn(self)
        else:
            self._callbacks.append(fn)

    def run(self) -> None:
        """Run the job once. Called by the scheduler that owns this handle."""
        if self._status is not DeferredStatus.PENDING:
            return
        self._status = DeferredStatus.RUNNING
        job, self._job = self._job, None
        try:
            self._value = job()
        except Exception as e:
            self._error = e
            self._status = DeferredStatus.FAILED
            logger.debug("deferred job %s failed", self.name, exc_info=e)
        else:
            self._status = DeferredStatus.COMPLETED
        self._fire_callbacks()

    async def wait(self) -> T:
        """Suspend until the job settles, then return its result."""
        if not self.done():
            event = anyio.Event()
            self.add_done_callback(lambda _: event.set())
            await event.wait()
        return self.result()

    def __await__(self) -> Generator[Any, None, T]:
        return self.wait().__await__()

    def _fire_callbacks(self) -> None:
        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            try:
                fn(self)
            except Exception:
                logger.exception("done callback %r of %s failed", fn, self.name)

    def __repr__(self) -> str:
        return f"DeferredResult(name={self.name!r}, status={self._status.value})"
