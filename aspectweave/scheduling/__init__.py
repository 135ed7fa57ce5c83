# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from .deferred import DeferredResult, DeferredStatus
from .scheduler import EventLoopScheduler, Scheduler, TaskQueue

__all__ = (
    "DeferredResult",
    "DeferredStatus",
    "EventLoopScheduler",
    "Scheduler",
    "TaskQueue",
)
