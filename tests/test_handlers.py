"""Tests for demokit.handlers — handler variants and execution."""

import functools

import pytest

from demokit.errors import ConfigurationError
from demokit.handlers import Async, MethodHandlers, Static, Sync, as_handler, describe, execute


async def _async_fixture(ctx):
    return {"async": ctx}


class _AsyncCallable:
    async def __call__(self, ctx):
        return ctx


class TestAsHandler:
    def test_plain_value_is_static(self) -> None:
        assert as_handler({"id": 1}) == Static({"id": 1})
        assert as_handler(None) == Static(None)

    def test_function_is_sync(self) -> None:
        fn = lambda ctx: ctx  # noqa: E731
        assert as_handler(fn) == Sync(fn)

    def test_coroutine_function_is_async(self) -> None:
        assert as_handler(_async_fixture) == Async(_async_fixture)

    def test_async_callable_object_is_async(self) -> None:
        obj = _AsyncCallable()
        assert isinstance(as_handler(obj), Async)

    def test_partial_of_coroutine_is_async(self) -> None:
        part = functools.partial(_async_fixture)
        assert isinstance(as_handler(part), Async)

    def test_variants_pass_through(self) -> None:
        handler = Static(len)
        assert as_handler(handler) is handler

    def test_method_handlers_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="set_methods"):
            as_handler(MethodHandlers(POST=1))


class TestExecute:
    @pytest.mark.anyio
    async def test_static(self) -> None:
        assert await execute(Static([1, 2]), "ctx") == [1, 2]

    @pytest.mark.anyio
    async def test_sync_called_with_context(self) -> None:
        assert await execute(Sync(lambda ctx: ctx.upper()), "ctx") == "CTX"

    @pytest.mark.anyio
    async def test_sync_returning_awaitable_is_awaited(self) -> None:
        assert await execute(Sync(_async_fixture), 1) == {"async": 1}

    @pytest.mark.anyio
    async def test_async(self) -> None:
        assert await execute(Async(_async_fixture), 2) == {"async": 2}

    @pytest.mark.anyio
    async def test_errors_propagate_unchanged(self) -> None:
        boom = ValueError("boom")

        def fixture(ctx):
            raise boom

        with pytest.raises(ValueError) as info:
            await execute(Sync(fixture), None)
        assert info.value is boom

    @pytest.mark.anyio
    async def test_unknown_handler(self) -> None:
        with pytest.raises(TypeError, match="not a fixture handler"):
            await execute("nope", None)  # type: ignore[arg-type]


class TestMethodHandlers:
    def test_keywords_and_mapping(self) -> None:
        handlers = MethodHandlers({"post": 1}, PUT=2)
        assert handlers.methods == frozenset({"POST", "PUT"})
        assert handlers.get("post") == Static(1)
        assert "put" in handlers
        assert "DELETE" not in handlers
        assert len(handlers) == 2

    def test_missing_verb(self) -> None:
        assert MethodHandlers(POST=1).get("PATCH") is None

    @pytest.mark.parametrize("verb", ["GET", "HEAD", "OPTIONS", "FETCH"])
    def test_non_mutation_verbs_rejected(self, verb: str) -> None:
        with pytest.raises(ConfigurationError):
            MethodHandlers({verb: 1})

    def test_empty_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="at least one"):
            MethodHandlers()

    def test_equality(self) -> None:
        assert MethodHandlers(POST=1) == MethodHandlers({"post": 1})
        assert MethodHandlers(POST=1) != MethodHandlers(POST=2)

    def test_unhashable(self) -> None:
        with pytest.raises(TypeError):
            hash(MethodHandlers(POST=1))

    def test_repr(self) -> None:
        assert repr(MethodHandlers(PUT=1, DELETE=2)) == "MethodHandlers(DELETE, PUT)"


class TestDescribe:
    def test_labels(self) -> None:
        assert describe(Static(1)) == "static"
        assert describe(Sync(len)) == "sync"
        assert describe(Async(_async_fixture)) == "async"
        assert describe(MethodHandlers(PUT=1, POST=2)) == "methods(POST, PUT)"
