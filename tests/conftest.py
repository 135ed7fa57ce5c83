# tests/conftest.py
import pytest

from aspectweave import TaskQueue


@pytest.fixture
def anyio_backend():
    """EventLoopScheduler is asyncio specific, so async tests run on asyncio."""
    return "asyncio"


@pytest.fixture
def calls():
    """Shared call log the registered functions append to."""
    return []


@pytest.fixture
def record(calls):
    """Factory for functions that log their name (and args) into ``calls``."""

    def _make(name, result=None):
        def _fn(*args, **kwargs):
            calls.append((name, args) if args else name)
            return result

        _fn.__qualname__ = name
        return _fn

    return _make


@pytest.fixture
def raising(calls):
    """Factory for functions that log their name and then raise."""

    def _make(name, exc=None):
        def _fn(*args, **kwargs):
            calls.append(name)
            raise exc or RuntimeError(name)

        _fn.__qualname__ = name
        return _fn

    return _make


@pytest.fixture
def queue():
    return TaskQueue()
