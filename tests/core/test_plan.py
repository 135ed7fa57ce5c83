"""Tests for AspectPlan and the execution protocol."""

import dataclasses
import logging

import pytest

from aspectweave import AspectPlan, BoundCall, Phase, ValidationError


def before(fn, *args):
    return BoundCall(fn, args, phase=Phase.BEFORE)


def target(fn, *args):
    return BoundCall(fn, args, phase=Phase.TARGET)


def after(fn, *args, ensured=False):
    return BoundCall(fn, args, phase=Phase.AFTER, ensured=ensured)


class TestPlanStructure:
    def test_rejects_calls_in_the_wrong_phase(self, record):
        with pytest.raises(ValidationError):
            AspectPlan(before=(after(record("a")),))
        with pytest.raises(ValidationError):
            AspectPlan(target=before(record("t")))

    def test_rejects_unknown_policy(self):
        with pytest.raises(ValidationError) as exc_info:
            AspectPlan(before_failure="swallow")
        assert exc_info.value.details["value"] == "swallow"

    def test_is_frozen(self):
        plan = AspectPlan()
        with pytest.raises(dataclasses.FrozenInstanceError):
            plan.deferred = True

    def test_len_and_iteration_order(self, record):
        b, t, a = before(record("b")), target(record("t")), after(record("a"))
        plan = AspectPlan(before=[b], target=t, after=[a])
        assert len(plan) == 3
        assert list(plan) == [b, t, a]
        assert isinstance(plan.before, tuple)

    def test_split_after_is_stable(self, record):
        a1 = after(record("a1"), ensured=True)
        a2 = after(record("a2"))
        a3 = after(record("a3"), ensured=True)
        a4 = after(record("a4"))
        ensured, normal = AspectPlan(after=(a1, a2, a3, a4)).split_after()
        assert ensured == (a1, a3)
        assert normal == (a2, a4)

    def test_to_dict(self, record):
        plan = AspectPlan(target=target(record("t"), 1))
        data = plan.to_dict()
        assert data["target"]["func"] == "t"
        assert data["before"] == []
        assert data["deferred"] is False
        assert data["before_failure"] == "propagate"


class TestRun:
    def test_runs_phases_in_order_and_returns_target_result(self, record, calls):
        plan = AspectPlan(
            before=(before(record("b1")), before(record("b2"))),
            target=target(record("t", result=7)),
            after=(after(record("a1")), after(record("a2"))),
        )
        assert plan.run() == 7
        assert calls == ["b1", "b2", "t", "a1", "a2"]

    def test_normal_after_calls_run_before_ensured_ones(self, record, calls):
        plan = AspectPlan(
            target=target(record("t")),
            after=(
                after(record("a1"), ensured=True),
                after(record("a2")),
                after(record("a3"), ensured=True),
            ),
        )
        plan.run()
        assert calls == ["t", "a2", "a1", "a3"]

    def test_without_target_after_calls_still_run(self, record, calls):
        plan = AspectPlan(
            before=(before(record("b")),),
            after=(after(record("e"), ensured=True), after(record("a"))),
        )
        assert plan.run() is None
        assert calls == ["b", "a", "e"]

    def test_empty_plan_is_a_noop(self):
        assert AspectPlan().run() is None

    def test_target_failure_skips_normal_runs_ensured(self, record, raising, calls):
        plan = AspectPlan(
            target=target(raising("t", ValueError("boom"))),
            after=(after(record("a")), after(record("e"), ensured=True)),
        )
        with pytest.raises(ValueError, match="boom"):
            plan.run()
        assert calls == ["t", "e"]

    def test_normal_after_failure_stops_remaining_normal_calls(
        self, record, raising, calls
    ):
        plan = AspectPlan(
            target=target(record("t")),
            after=(
                after(raising("a1")),
                after(record("a2")),
                after(record("e"), ensured=True),
            ),
        )
        with pytest.raises(RuntimeError, match="a1"):
            plan.run()
        assert calls == ["t", "a1", "e"]

    def test_ensured_failure_does_not_mask_target_error(
        self, raising, record, calls, caplog
    ):
        plan = AspectPlan(
            target=target(raising("t", ValueError("boom"))),
            after=(
                after(raising("e1"), ensured=True),
                after(record("e2"), ensured=True),
            ),
        )
        with caplog.at_level(logging.ERROR, logger="aspectweave"):
            with pytest.raises(ValueError, match="boom"):
                plan.run()
        assert calls == ["t", "e1", "e2"]
        assert "ensured call e1 failed" in caplog.text

    def test_first_ensured_failure_raises_after_all_ensured_ran(
        self, record, raising, calls
    ):
        plan = AspectPlan(
            target=target(record("t", result=1)),
            after=(
                after(raising("e1", KeyError("first")), ensured=True),
                after(raising("e2", KeyError("second")), ensured=True),
                after(record("e3"), ensured=True),
            ),
        )
        with pytest.raises(KeyError, match="first"):
            plan.run()
        assert calls == ["t", "e1", "e2", "e3"]


class TestBeforeFailurePolicy:
    def test_propagate_skips_everything_after(self, record, raising, calls):
        plan = AspectPlan(
            before=(before(raising("b1")), before(record("b2"))),
            target=target(record("t")),
            after=(after(record("a")), after(record("e"), ensured=True)),
        )
        with pytest.raises(RuntimeError, match="b1"):
            plan.run()
        assert calls == ["b1"]

    def test_ensure_runs_ensured_calls_then_raises(self, record, raising, calls):
        plan = AspectPlan(
            before=(before(raising("b1")), before(record("b2"))),
            target=target(record("t")),
            after=(after(record("a")), after(record("e"), ensured=True)),
            before_failure="ensure",
        )
        with pytest.raises(RuntimeError, match="b1"):
            plan.run()
        assert calls == ["b1", "e"]


class TestAsyncRun:
    @pytest.mark.anyio
    async def test_mixes_sync_and_async_calls_in_order(self, record, calls):
        async def slow_target(x):
            calls.append("t")
            return x + 1

        async def async_after():
            calls.append("a-async")

        plan = AspectPlan(
            before=(before(record("b")),),
            target=target(slow_target, 1),
            after=(
                after(record("e"), ensured=True),
                after(async_after),
            ),
        )
        assert await plan.arun() == 2
        assert calls == ["b", "t", "a-async", "e"]

    @pytest.mark.anyio
    async def test_async_target_failure_runs_ensured(self, record, calls):
        async def failing():
            raise ValueError("boom")

        plan = AspectPlan(
            target=target(failing),
            after=(after(record("a")), after(record("e"), ensured=True)),
        )
        with pytest.raises(ValueError, match="boom"):
            await plan.arun()
        assert calls == ["e"]

    @pytest.mark.anyio
    async def test_async_before_failure_with_ensure_policy(
        self, record, raising, calls
    ):
        plan = AspectPlan(
            before=(before(raising("b")),),
            target=target(record("t")),
            after=(after(record("e"), ensured=True),),
            before_failure="ensure",
        )
        with pytest.raises(RuntimeError, match="b"):
            await plan.arun()
        assert calls == ["b", "e"]
