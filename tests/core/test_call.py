"""Tests for BoundCall and Phase."""

import dataclasses
import gc
import weakref

import pytest

from aspectweave import BoundCall, Composer, Phase, ValidationError


def add(a, b=0):
    return a + b


class TestBoundCall:
    def test_applies_captured_args(self):
        call = BoundCall(add, (2,), {"b": 3})
        assert call() == 5

    def test_defaults(self):
        call = BoundCall(add, (1,))
        assert call.phase is Phase.BEFORE
        assert call.ensured is False
        assert dict(call.kwargs) == {}

    def test_phase_accepts_string(self):
        assert BoundCall(add, (1,), phase="target").phase is Phase.TARGET

    def test_is_frozen(self):
        call = BoundCall(add, (1,))
        with pytest.raises(dataclasses.FrozenInstanceError):
            call.args = (2,)

    def test_arguments_are_snapshotted(self):
        args = [1]
        kwargs = {"b": 1}
        call = BoundCall(add, args, kwargs)
        args.append(99)
        kwargs["b"] = 100
        assert call.args == (1,)
        assert call() == 2

    def test_kwargs_are_read_only(self):
        call = BoundCall(add, (1,), {"b": 1})
        with pytest.raises(TypeError):
            call.kwargs["b"] = 2

    def test_rejects_non_callable(self):
        with pytest.raises(ValidationError) as exc_info:
            BoundCall("add", ())
        assert exc_info.value.details["expected"] == "callable"

    @pytest.mark.parametrize("phase", [Phase.BEFORE, Phase.TARGET])
    def test_only_after_calls_can_be_ensured(self, phase):
        with pytest.raises(ValidationError):
            BoundCall(add, (1,), phase=phase, ensured=True)

    def test_ensured_after_call(self):
        call = BoundCall(add, (1,), phase=Phase.AFTER, ensured=True)
        assert call.ensured is True

    def test_to_dict_and_repr(self):
        call = BoundCall(add, (1,), {"b": 2}, Phase.AFTER, ensured=True)
        assert call.to_dict() == {
            "func": "add",
            "args": (1,),
            "kwargs": {"b": 2},
            "phase": "after",
            "ensured": True,
        }
        assert repr(call) == "BoundCall(after: add, ensured)"

    def test_is_async(self):
        async def coro():
            return 1

        assert BoundCall(coro).is_async is True
        assert BoundCall(add, (1,)).is_async is False


class TestBoundCallAsync:
    @pytest.mark.anyio
    async def test_acall_awaits_coroutine_functions(self):
        async def coro(x):
            return x * 2

        assert await BoundCall(coro, (4,)).acall() == 8

    @pytest.mark.anyio
    async def test_acall_runs_plain_functions_inline(self):
        assert await BoundCall(add, (4, 1)).acall() == 5


class TestBoundCallReferences:
    def test_is_async_is_computed_once(self):
        async def coro():
            pass

        call = BoundCall(coro)
        assert call.is_async is True
        with pytest.raises(dataclasses.FrozenInstanceError):
            call.is_async = False

    def test_compiled_handlers_are_released(self):
        class Handler:
            def run(self):
                return 1

        composer = Composer().register_before(print).set_target(Handler().run)
        assert composer.compile()() == 1
        ref = weakref.ref(composer.target_call.func.__self__)
        del composer
        gc.collect()
        assert ref() is None
