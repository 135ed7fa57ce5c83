# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

"""Bound calls: a function frozen together with the arguments it runs with.

Design: one frozen, slotted dataclass tagged with the phase it belongs to
instead of separate before/target/after classes. The ``ensured`` flag is only
legal on after-phase calls.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .._errors import ValidationError
from .._utils import func_name, is_callable, is_coro_func

__all__ = ("Phase", "BoundCall")


class Phase(str, Enum):
    """Execution phase a bound call is registered under."""

    BEFORE = "before"
    TARGET = "target"
    AFTER = "after"


@dataclass(slots=True, frozen=True, eq=False)
class BoundCall:
    """Immutable function reference plus the arguments applied at call time."""

    func: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    phase: Phase = Phase.BEFORE
    ensured: bool = False
    is_async: bool = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not is_callable(self.func):
            raise ValidationError.from_value(
                self.func, expected="callable", message="BoundCall needs a callable"
            )
        object.__setattr__(self, "phase", Phase(self.phase))
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))
        object.__setattr__(self, "is_async", is_coro_func(self.func))
        if self.ensured and self.phase is not Phase.AFTER:
            raise ValidationError.from_value(
                self.phase.value,
                expected="after",
                message="Only after-phase calls can be ensured",
            )

    @property
    def name(self) -> str:
        return func_name(self.func)

    def __call__(self) -> Any:
        return self.func(*self.args, **self.kwargs)

    async def acall(self) -> Any:
        """Await coroutine functions, call plain functions inline."""
        if self.is_async:
            return await self.func(*self.args, **self.kwargs)
        return self.func(*self.args, **self.kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "func": self.name,
            "args": self.args,
            "kwargs": dict(self.kwargs),
            "phase": self.phase.value,
            "ensured": self.ensured,
        }

    def __repr__(self) -> str:
        flag = ", ensured" if self.ensured else ""
        return f"BoundCall({self.phase.value}: {self.name}{flag})"
