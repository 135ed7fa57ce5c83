# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .._errors import TargetAlreadySetError, ValidationError
from .._utils import func_name, is_callable
from ..config import BeforeFailurePolicy, settings
from ..scheduling import DeferredResult, Scheduler
from .call import BoundCall, Phase
from .executable import AsyncCompiledAspect, CompiledAspect
from .plan import AspectPlan

__all__ = ("Composer",)

logger = logging.getLogger(__name__)


class Composer:
    """Builder that weaves before, target and after functions into one call.

    Registration methods return the composer so calls chain. Arguments that
    are not callable are ignored. ``compile()`` snapshots the configuration
    into an immutable plan, so later registrations never leak into an
    executable that was already produced.

    Example:
        ```python
        result = (
            Composer()
            .register_before(print, "start")
            .set_target(add, 2, 3)
            .register_after(print, "done")
            .register_after_ensured(release_lock)
            .execute()
        )
        ```

    Args:
        scheduler: Runs the deferred target phase. Defaults to the running
            asyncio event loop at execution time.
        before_failure: 'propagate' re-raises a failing before call at once,
            'ensure' runs the ensured after calls first. Defaults to
            ``settings.ASPECTWEAVE_BEFORE_FAILURE_POLICY``.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler | None = None,
        before_failure: BeforeFailurePolicy | None = None,
    ):
        self._before: list[BoundCall] = []
        self._target: BoundCall | None = None
        self._after: list[BoundCall] = []
        self._deferred = False
        self.scheduler = scheduler
        self.before_failure = (
            before_failure or settings.ASPECTWEAVE_BEFORE_FAILURE_POLICY
        )

    # registration

    def register_before(self, fn: Callable[..., Any], *args, **kwargs) -> Composer:
        if self._accepts(fn, Phase.BEFORE):
            self._before.append(BoundCall(fn, args, kwargs, Phase.BEFORE))
        return self

    def set_target(self, fn: Callable[..., Any], *args, **kwargs) -> Composer:
        """Set the single target function.

        Raises:
            TargetAlreadySetError: a target was set before; it is kept.
        """
        if self._accepts(fn, Phase.TARGET):
            self._check_no_target(fn)
            self._target = BoundCall(fn, args, kwargs, Phase.TARGET)
        return self

    def set_async_target(self, fn: Callable[..., Any], *args, **kwargs) -> Composer:
        """Like ``set_target``, and defer the target phase to a later turn."""
        if self._accepts(fn, Phase.TARGET):
            self._check_no_target(fn)
            self._target = BoundCall(fn, args, kwargs, Phase.TARGET)
            self._deferred = True
        return self

    def register_after(self, fn: Callable[..., Any], *args, **kwargs) -> Composer:
        if self._accepts(fn, Phase.AFTER):
            self._after.append(BoundCall(fn, args, kwargs, Phase.AFTER))
        return self

    def register_after_ensured(
        self, fn: Callable[..., Any], *args, **kwargs
    ) -> Composer:
        """Register an after call that runs even when the target fails."""
        if self._accepts(fn, Phase.AFTER):
            self._after.append(
                BoundCall(fn, args, kwargs, Phase.AFTER, ensured=True)
            )
        return self

    # compilation

    def snapshot(self) -> AspectPlan:
        return AspectPlan(
            before=tuple(self._before),
            target=self._target,
            after=tuple(self._after),
            deferred=self._deferred,
            before_failure=self.before_failure,
        )

    def compile(self) -> CompiledAspect:
        """Return a zero-argument executable bound to the current configuration.

        Raises:
            ValidationError: a registered function is a coroutine function;
                use ``acompile()`` for those.
        """
        plan = self.snapshot()
        if async_calls := [c.name for c in plan if c.is_async]:
            raise ValidationError.from_value(
                async_calls,
                expected="plain functions",
                message="Coroutine functions need acompile()/aexecute()",
            )
        logger.debug("compiled %r", self)
        return CompiledAspect(plan, self.scheduler)

    def execute(self) -> Any | DeferredResult:
        return self.compile()()

    def acompile(self) -> AsyncCompiledAspect:
        logger.debug("compiled %r for async execution", self)
        return AsyncCompiledAspect(self.snapshot())

    async def aexecute(self) -> Any:
        return await self.acompile()()

    # introspection

    @property
    def before_calls(self) -> tuple[BoundCall, ...]:
        return tuple(self._before)

    @property
    def target_call(self) -> BoundCall | None:
        return self._target

    @property
    def after_calls(self) -> tuple[BoundCall, ...]:
        return tuple(self._after)

    @property
    def has_target(self) -> bool:
        return self._target is not None

    @property
    def deferred(self) -> bool:
        return self._deferred

    def __len__(self) -> int:
        return len(self._before) + len(self._after) + self.has_target

    def __repr__(self) -> str:
        target = self._target.name if self._target else None
        return (
            f"Composer(before={len(self._before)}, target={target}, "
            f"after={len(self._after)}, deferred={self._deferred})"
        )

    def _accepts(self, fn: Any, phase: Phase) -> bool:
        if is_callable(fn):
            return True
        logger.debug("ignored non-callable %r for %s phase", fn, phase.value)
        return False

    def _check_no_target(self, fn: Callable[..., Any]) -> None:
        if self._target is not None:
            raise TargetAlreadySetError(
                details={
                    "existing": self._target.name,
                    "rejected": func_name(fn),
                }
            )
