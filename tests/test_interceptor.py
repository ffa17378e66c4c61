"""Tests for demokit.interceptor — the per-call fixture decision."""

import time

import anyio
import pytest

from demokit.config import InterceptorConfig
from demokit.demo_mode import DemoSwitch
from demokit.errors import FixtureNotFound
from demokit.handlers import MethodHandlers
from demokit.interceptor import Interceptor
from demokit.registry import FixtureMatch, FixtureRegistry
from demokit.testing import CallRecorder


def _context(found: FixtureMatch) -> dict:
    return {"params": found.params, "pattern": str(found.pattern)}


async def _real() -> str:
    return "real"


class TestIntercept:
    @pytest.mark.anyio
    async def test_disabled_runs_real(self) -> None:
        registry = FixtureRegistry("path", {"/a": "fixture"})
        interceptor = Interceptor(registry, is_enabled=False)
        assert await interceptor.intercept("/a", _real, _context) == "real"

    @pytest.mark.anyio
    async def test_enabled_serves_fixture(self) -> None:
        registry = FixtureRegistry("path", {"/users/:id": lambda ctx: ctx["params"]["id"]})
        interceptor = Interceptor(registry)
        assert await interceptor.intercept("/users/9", _real, _context) == "9"

    @pytest.mark.anyio
    async def test_miss_reports_and_falls_back(self) -> None:
        recorder = CallRecorder()
        interceptor = Interceptor(
            FixtureRegistry("path"), kind="loader", config=InterceptorConfig(on_missing=recorder)
        )
        assert await interceptor.intercept("/nope", _real, _context) == "real"
        assert recorder.calls == [("loader", "/nope")]

    @pytest.mark.anyio
    async def test_disabled_does_not_report_missing(self) -> None:
        recorder = CallRecorder()
        interceptor = Interceptor(
            FixtureRegistry("path"), is_enabled=False, config=InterceptorConfig(on_missing=recorder)
        )
        await interceptor.intercept("/nope", _real, _context)
        assert not recorder.called

    @pytest.mark.anyio
    async def test_no_real_raises_fixture_not_found(self) -> None:
        interceptor = Interceptor(FixtureRegistry("tuple"))
        with pytest.raises(FixtureNotFound) as info:
            await interceptor.intercept(("users",), None, _context)
        assert info.value.identifier == ("users",)

    @pytest.mark.anyio
    async def test_on_demo_sees_context(self) -> None:
        recorder = CallRecorder()
        registry = FixtureRegistry("path", {"/a/:x": 1})
        interceptor = Interceptor(registry, config=InterceptorConfig(on_demo=recorder))
        await interceptor.intercept("/a/b", _real, _context)
        assert recorder.calls == [({"params": {"x": "b"}, "pattern": "/a/:x"},)]

    @pytest.mark.anyio
    async def test_async_hooks_are_awaited(self) -> None:
        seen: list[str] = []

        async def on_demo(ctx) -> None:
            seen.append("demo")

        interceptor = Interceptor(
            FixtureRegistry("path", {"/a": 1}), config=InterceptorConfig(on_demo=on_demo)
        )
        await interceptor.intercept("/a", _real, _context)
        assert seen == ["demo"]

    @pytest.mark.anyio
    async def test_fixture_error_propagates_without_fallback(self) -> None:
        boom = RuntimeError("fixture failed")
        real = CallRecorder(result="real")

        def failing(ctx):
            raise boom

        interceptor = Interceptor(FixtureRegistry("path", {"/a": failing}))
        with pytest.raises(RuntimeError) as info:
            await interceptor.intercept("/a", real, _context)
        assert info.value is boom
        assert not real.called

    @pytest.mark.anyio
    async def test_registry_changes_apply_to_next_call(self) -> None:
        registry = FixtureRegistry("path")
        interceptor = Interceptor(registry)
        assert await interceptor.intercept("/a", _real, _context) == "real"
        registry.set("/a", "fixture")
        assert await interceptor.intercept("/a", _real, _context) == "fixture"

    @pytest.mark.anyio
    async def test_sync_real_call(self) -> None:
        interceptor = Interceptor(FixtureRegistry("path"), is_enabled=False)
        assert await interceptor.intercept("/a", lambda: "sync-real", _context) == "sync-real"


class TestPredicates:
    @pytest.mark.anyio
    async def test_predicate_receives_args(self) -> None:
        recorder = CallRecorder(result=True)
        interceptor = Interceptor(FixtureRegistry("path", {"/a": 1}), is_enabled=recorder)
        await interceptor.intercept("/a", _real, _context, predicate_args=("request",))
        assert recorder.calls == [("request",)]

    @pytest.mark.anyio
    async def test_async_predicate(self) -> None:
        async def enabled() -> bool:
            return True

        interceptor = Interceptor(FixtureRegistry("path", {"/a": 1}), is_enabled=enabled)
        assert await interceptor.intercept("/a", _real, _context) == 1

    @pytest.mark.anyio
    async def test_switch_toggles_between_calls(self) -> None:
        switch = DemoSwitch()
        interceptor = Interceptor(FixtureRegistry("path", {"/a": "fixture"}), is_enabled=switch)
        assert await interceptor.intercept("/a", _real, _context) == "real"
        switch.toggle()
        assert await interceptor.intercept("/a", _real, _context) == "fixture"
        switch.toggle()
        assert await interceptor.intercept("/a", _real, _context) == "real"


class TestMethods:
    @pytest.mark.anyio
    async def test_missing_verb_falls_back(self) -> None:
        recorder = CallRecorder()
        registry = FixtureRegistry("path", {"/users/:id": MethodHandlers(PUT="updated")})
        interceptor = Interceptor(registry, config=InterceptorConfig(on_missing=recorder))
        assert await interceptor.intercept("/users/1", _real, _context, method="PUT") == "updated"
        assert await interceptor.intercept("/users/1", _real, _context, method="DELETE") == "real"
        assert recorder.call_count == 1


class TestDelay:
    @pytest.mark.anyio
    async def test_delay_applies_to_fixture_only(self) -> None:
        interceptor = Interceptor(
            FixtureRegistry("path", {"/a": 1}), config=InterceptorConfig(delay=0.1)
        )
        start = time.perf_counter()
        await interceptor.intercept("/miss", _real, _context)
        assert time.perf_counter() - start < 0.1

        start = time.perf_counter()
        await interceptor.intercept("/a", _real, _context)
        assert time.perf_counter() - start >= 0.09

    @pytest.mark.anyio
    async def test_concurrent_delays_overlap(self) -> None:
        interceptor = Interceptor(
            FixtureRegistry("path", {"/a": 1}), config=InterceptorConfig(delay=0.15)
        )
        results: list[int] = []

        async def call() -> None:
            results.append(await interceptor.intercept("/a", _real, _context))

        start = time.perf_counter()
        async with anyio.create_task_group() as tg:
            for _ in range(5):
                tg.start_soon(call)
        elapsed = time.perf_counter() - start
        assert results == [1] * 5
        assert elapsed < 0.5

    @pytest.mark.anyio
    async def test_cancellation_interrupts_delay(self) -> None:
        ran = CallRecorder()
        interceptor = Interceptor(
            FixtureRegistry("path", {"/a": ran}), config=InterceptorConfig(delay=5)
        )
        with anyio.move_on_after(0.05) as scope:
            await interceptor.intercept("/a", _real, _context)
        assert scope.cancelled_caught
        assert not ran.called
