import inspect
from collections.abc import Callable
from typing import Any

__all__ = ("is_coro_func", "is_callable", "func_name")


def is_coro_func(func: Callable[..., Any]) -> bool:
    """Check if a function, or a callable object's ``__call__``, is a coroutine function."""
    if inspect.iscoroutinefunction(func):
        return True

    # callable objects with an async __call__
    call = getattr(func, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def is_callable(obj: Any) -> bool:
    """Registration guard: only callables are recorded, anything else is ignored."""
    return obj is not None and callable(obj)


def func_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)
