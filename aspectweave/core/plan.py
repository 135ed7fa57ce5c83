# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

"""Immutable execution plan and the before/target/after protocol.

Protocol:
    1. after calls are split into ensured and normal, order kept in each
    2. before calls run in order; a failure propagates (policy 'propagate')
       or first runs the ensured calls (policy 'ensure')
    3. target, then normal after calls; ensured calls always run last
    4. the target's return value is the result

An ensured call that fails while another error is already propagating is
logged and dropped. When nothing else failed, the first ensured failure is
raised once every ensured call has run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, get_args

import anyio

from .._errors import ValidationError
from ..config import BeforeFailurePolicy
from .call import BoundCall, Phase

__all__ = ("AspectPlan",)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True, eq=False)
class AspectPlan:
    """Snapshot of a composer's configuration, safe to run repeatedly."""

    before: tuple[BoundCall, ...] = ()
    target: BoundCall | None = None
    after: tuple[BoundCall, ...] = ()
    deferred: bool = False
    before_failure: BeforeFailurePolicy = "propagate"

    def __post_init__(self) -> None:
        object.__setattr__(self, "before", tuple(self.before))
        object.__setattr__(self, "after", tuple(self.after))
        if self.before_failure not in get_args(BeforeFailurePolicy):
            raise ValidationError.from_value(
                self.before_failure,
                expected=" | ".join(get_args(BeforeFailurePolicy)),
                message="Unknown before-failure policy",
            )
        for phase, calls in (
            (Phase.BEFORE, self.before),
            (Phase.TARGET, () if self.target is None else (self.target,)),
            (Phase.AFTER, self.after),
        ):
            for call in calls:
                if call.phase is not phase:
                    raise ValidationError.from_value(
                        call,
                        expected=phase.value,
                        message=f"{call!r} placed in the {phase.value} phase",
                    )

    def __len__(self) -> int:
        return len(self.before) + len(self.after) + (self.target is not None)

    def __iter__(self) -> Iterator[BoundCall]:
        yield from self.before
        if self.target is not None:
            yield self.target
        yield from self.after

    def split_after(self) -> tuple[tuple[BoundCall, ...], tuple[BoundCall, ...]]:
        """Stable partition of the after phase into (ensured, normal)."""
        ensured = tuple(c for c in self.after if c.ensured)
        normal = tuple(c for c in self.after if not c.ensured)
        return ensured, normal

    def to_dict(self) -> dict[str, Any]:
        return {
            "before": [c.to_dict() for c in self.before],
            "target": None if self.target is None else self.target.to_dict(),
            "after": [c.to_dict() for c in self.after],
            "deferred": self.deferred,
            "before_failure": self.before_failure,
        }

    # sync protocol

    def run(self) -> Any:
        """Run every phase synchronously, ignoring the deferred flag."""
        ensured, normal = self.split_after()
        self.run_before(ensured)
        return self.run_target_phase(normal, ensured)

    def run_before(self, ensured: tuple[BoundCall, ...]) -> None:
        for call in self.before:
            try:
                call()
            except Exception:
                logger.debug("before call %s failed", call.name)
                if self.before_failure == "ensure":
                    _run_ensured(ensured, suppress=True)
                raise

    def run_target_phase(
        self,
        normal: tuple[BoundCall, ...],
        ensured: tuple[BoundCall, ...],
    ) -> Any:
        result = None
        failed = True
        try:
            if self.target is not None:
                result = self.target()
            for call in normal:
                call()
            failed = False
        finally:
            _run_ensured(ensured, suppress=failed)
        return result

    # async protocol

    async def arun(self) -> Any:
        ensured, normal = self.split_after()
        await self.arun_before(ensured)
        return await self.arun_target_phase(normal, ensured)

    async def arun_before(self, ensured: tuple[BoundCall, ...]) -> None:
        for call in self.before:
            try:
                await call.acall()
            except Exception:
                logger.debug("before call %s failed", call.name)
                if self.before_failure == "ensure":
                    await _arun_ensured(ensured, suppress=True)
                raise

    async def arun_target_phase(
        self,
        normal: tuple[BoundCall, ...],
        ensured: tuple[BoundCall, ...],
    ) -> Any:
        result = None
        failed = True
        try:
            if self.target is not None:
                result = await self.target.acall()
            for call in normal:
                await call.acall()
            failed = False
        finally:
            await _arun_ensured(ensured, suppress=failed)
        return result


def _run_ensured(calls: tuple[BoundCall, ...], *, suppress: bool) -> None:
    first_error: Exception | None = None
    for call in calls:
        try:
            call()
        except Exception as e:
            first_error = _note_ensured_failure(call, e, first_error, suppress)
    if first_error is not None:
        raise first_error


async def _arun_ensured(calls: tuple[BoundCall, ...], *, suppress: bool) -> None:
    first_error: Exception | None = None
    # ensured calls finish even when the surrounding scope is cancelled
    with anyio.CancelScope(shield=True):
        for call in calls:
            try:
                await call.acall()
            except Exception as e:
                first_error = _note_ensured_failure(call, e, first_error, suppress)
    if first_error is not None:
        raise first_error


def _note_ensured_failure(
    call: BoundCall,
    error: Exception,
    first_error: Exception | None,
    suppress: bool,
) -> Exception | None:
    if suppress:
        logger.error(
            "ensured call %s failed while another error propagated",
            call.name,
            exc_info=error,
        )
        return None
    if first_error is not None:
        logger.error(
            "ensured call %s failed after an earlier ensured failure",
            call.name,
            exc_info=error,
        )
        return first_error
    return error
