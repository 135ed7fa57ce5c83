# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from .call import BoundCall, Phase
from .composer import Composer
from .executable import AsyncCompiledAspect, CompiledAspect
from .plan import AspectPlan

__all__ = (
    "AspectPlan",
    "AsyncCompiledAspect",
    "BoundCall",
    "CompiledAspect",
    "Composer",
    "Phase",
)
