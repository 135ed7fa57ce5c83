# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import logging

from ._errors import (
    AspectError,
    ConfigurationError,
    DeferredCancelledError,
    DeferredError,
    DeferredNotReadyError,
    SchedulerError,
    TargetAlreadySetError,
    ValidationError,
)
from ._sentinel import Unset
from .config import AspectSettings, settings
from .core import (
    AspectPlan,
    AsyncCompiledAspect,
    BoundCall,
    CompiledAspect,
    Composer,
    Phase,
)
from .scheduling import (
    DeferredResult,
    DeferredStatus,
    EventLoopScheduler,
    Scheduler,
    TaskQueue,
)
from .version import __version__

logger = logging.getLogger(__name__)
logger.setLevel(settings.ASPECTWEAVE_LOG_LEVEL)

__all__ = (
    "__version__",
    "AspectError",
    "AspectPlan",
    "AspectSettings",
    "AsyncCompiledAspect",
    "BoundCall",
    "CompiledAspect",
    "Composer",
    "ConfigurationError",
    "DeferredCancelledError",
    "DeferredError",
    "DeferredNotReadyError",
    "DeferredResult",
    "DeferredStatus",
    "EventLoopScheduler",
    "Phase",
    "Scheduler",
    "SchedulerError",
    "TargetAlreadySetError",
    "TaskQueue",
    "Unset",
    "ValidationError",
    "logger",
    "settings",
)
