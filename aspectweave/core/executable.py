# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from typing import Any

import anyio.lowlevel

from ..scheduling import DeferredResult, EventLoopScheduler, Scheduler
from .plan import AspectPlan

__all__ = ("CompiledAspect", "AsyncCompiledAspect")

logger = logging.getLogger(__name__)


class CompiledAspect:
    """Zero-argument callable running an ``AspectPlan``.

    Returns the target's result, or a ``DeferredResult`` when the plan is
    deferred. The before phase always runs inside the call itself.
    """

    __slots__ = ("plan", "_scheduler")

    def __init__(self, plan: AspectPlan, scheduler: Scheduler | None = None):
        self.plan = plan
        self._scheduler = scheduler

    @property
    def scheduler(self) -> Scheduler:
        if self._scheduler is not None:
            return self._scheduler
        return EventLoopScheduler.current()

    def __call__(self) -> Any | DeferredResult:
        if not self.plan.deferred:
            return self.plan.run()

        ensured, normal = self.plan.split_after()
        name = self.plan.target.name if self.plan.target else None
        # resolved up front so a missing loop fails before any side effect
        scheduler = self.scheduler
        self.plan.run_before(ensured)
        handle = scheduler.submit(
            lambda: self.plan.run_target_phase(normal, ensured), name=name
        )
        logger.debug("deferred target phase of %r", self)
        return handle

    def __repr__(self) -> str:
        target = self.plan.target.name if self.plan.target else None
        return f"CompiledAspect(target={target}, calls={len(self.plan)})"


class AsyncCompiledAspect:
    """Awaitable counterpart of ``CompiledAspect``.

    Coroutine functions are awaited and plain functions are called inline, in
    protocol order. A deferred plan yields to the event loop once before its
    target phase and resolves to the target's real result.
    """

    __slots__ = ("plan",)

    def __init__(self, plan: AspectPlan):
        self.plan = plan

    async def __call__(self) -> Any:
        if not self.plan.deferred:
            return await self.plan.arun()

        ensured, normal = self.plan.split_after()
        await self.plan.arun_before(ensured)
        await anyio.lowlevel.checkpoint()
        return await self.plan.arun_target_phase(normal, ensured)

    def __repr__(self) -> str:
        target = self.plan.target.name if self.plan.target else None
        return f"AsyncCompiledAspect(target={target}, calls={len(self.plan)})"
