"""Tests for demokit.adapters.rpc — procedure links and fixture maps."""

import pytest

from demokit.adapters.rpc import (
    DemoLink,
    Operation,
    OperationResult,
    compose_links,
    demo_link,
    filter_fixtures,
    fixture_paths,
    merge_fixtures,
    normalize_fixtures,
    should_intercept,
)
from demokit.config import InterceptorConfig
from demokit.context import ProcedureContext
from demokit.errors import CompileError, ConfigurationError
from demokit.handlers import Static
from demokit.registry import FixtureRegistry
from demokit.testing import CallRecorder


async def terminal(op: Operation) -> OperationResult:
    return OperationResult({"server": op.path})


class TestComposeLinks:
    @pytest.mark.anyio
    async def test_order(self) -> None:
        seen: list[str] = []

        def tagging(tag: str):
            async def link(op, next_call):
                seen.append(tag)
                return await next_call(op)

            return link

        call = compose_links([tagging("a"), tagging("b")], terminal)
        result = await call(Operation("user.get"))
        assert seen == ["a", "b"]
        assert result == OperationResult({"server": "user.get"})

    @pytest.mark.anyio
    async def test_no_links(self) -> None:
        call = compose_links([], terminal)
        assert (await call(Operation("x"))).data == {"server": "x"}


class TestDemoLink:
    @pytest.mark.anyio
    async def test_fixture_result_wrapped(self) -> None:
        link = demo_link({"user.get": lambda ctx: {"id": ctx.input["id"]}}, is_enabled=True)
        call = compose_links([link], terminal)
        assert await call(Operation("user.get", {"id": 3})) == OperationResult({"id": 3})

    @pytest.mark.anyio
    async def test_nested_fixtures(self) -> None:
        link = demo_link({"user": {"list": [1, 2], "me": {"id": 1}}}, is_enabled=True)
        call = compose_links([link], terminal)
        assert (await call(Operation("user.list"))).data == [1, 2]
        assert (await call(Operation("user.me"))).data == {"id": 1}

    @pytest.mark.anyio
    async def test_context(self) -> None:
        seen: list[ProcedureContext] = []
        link = demo_link({"post.:id": seen.append}, is_enabled=True)
        await compose_links([link], terminal)(Operation("post.9", {"q": 1}, type="mutation"))
        ctx = seen[0]
        assert ctx.path == "post.9"
        assert ctx.input == {"q": 1}
        assert ctx.type == "mutation"
        assert ctx.params == {"id": "9"}

    @pytest.mark.anyio
    async def test_glob_fixture(self) -> None:
        link = demo_link({"admin.*": "blocked"}, is_enabled=True)
        call = compose_links([link], terminal)
        assert (await call(Operation("admin.users.list"))).data == "blocked"

    @pytest.mark.anyio
    async def test_miss_forwards_and_reports(self) -> None:
        recorder = CallRecorder()
        link = demo_link(
            {"user.get": 1}, is_enabled=True, config=InterceptorConfig(on_missing=recorder)
        )
        result = await compose_links([link], terminal)(Operation("post.list"))
        assert result.data == {"server": "post.list"}
        assert recorder.calls == [("procedure", "post.list")]

    @pytest.mark.anyio
    async def test_excluded_skips_on_missing(self) -> None:
        recorder = CallRecorder()
        link = demo_link(
            {"user.*": 1},
            is_enabled=True,
            exclude=["user.secret"],
            config=InterceptorConfig(on_missing=recorder),
        )
        result = await compose_links([link], terminal)(Operation("user.secret"))
        assert result.data == {"server": "user.secret"}
        assert not recorder.called

    @pytest.mark.anyio
    async def test_include_limits_scope(self) -> None:
        link = demo_link({"*": "fixture"}, is_enabled=True, include=["user.*"])
        call = compose_links([link], terminal)
        assert (await call(Operation("user.get"))).data == "fixture"
        assert (await call(Operation("post.get"))).data == {"server": "post.get"}

    @pytest.mark.anyio
    async def test_disabled(self) -> None:
        link = demo_link({"user.get": 1})
        assert (await compose_links([link], terminal)(Operation("user.get"))).data == {
            "server": "user.get"
        }

    def test_bad_glob_rejected(self) -> None:
        with pytest.raises(CompileError):
            demo_link({}, include=["user..get"])

    def test_wrong_registry_kind(self) -> None:
        with pytest.raises(ConfigurationError, match="'procedure' registry"):
            demo_link(FixtureRegistry("path"))


class TestDemoLinkState:
    @pytest.mark.anyio
    async def test_toggle_and_fixtures(self) -> None:
        demo = DemoLink({"user.get": "demo"})
        call = compose_links([demo.link], terminal)
        assert (await call(Operation("user.get"))).data == {"server": "user.get"}

        assert demo.toggle() is True
        assert (await call(Operation("user.get"))).data == "demo"

        demo.set_fixture("post.list", [])
        assert (await call(Operation("post.list"))).data == []
        assert demo.remove_fixture("post.list") is True
        assert [str(e.pattern) for e in demo.get_fixtures()] == ["user.get"]

        demo.clear_fixtures()
        assert (await call(Operation("user.get"))).data == {"server": "user.get"}
        demo.disable()
        assert not demo.is_enabled()

    def test_repr(self) -> None:
        assert repr(DemoLink(enabled=True)) == "DemoLink(enabled=True, fixtures=0)"


class TestFixtureMaps:
    def test_normalize_nested(self) -> None:
        fn = lambda ctx: 1  # noqa: E731
        flat = normalize_fixtures(
            {
                "user": {"get": fn, "list": [1], "profile": {"settings": {"theme": "dark"}}},
                "health": "ok",
                "post.get": Static(None),
            }
        )
        assert flat == {
            "user.get": fn,
            "user.list": [1],
            "user.profile.settings": {"theme": "dark"},
            "health": "ok",
            "post.get": Static(None),
        }

    def test_scalar_dict_is_payload(self) -> None:
        assert normalize_fixtures({"user": {"id": 1, "name": "Ada"}}) == {"user": {"id": 1, "name": "Ada"}}

    def test_normalize_none(self) -> None:
        assert normalize_fixtures(None) == {}

    def test_should_intercept(self) -> None:
        assert should_intercept("a.b")
        assert should_intercept("a.b", include=["a.*"])
        assert not should_intercept("c.d", include=["a.*"])
        assert not should_intercept("a.b", include=["a.*"], exclude=["*.b"])

    def test_filter(self) -> None:
        fixtures = {"user.get": 1, "user.list": 2, "post.get": 3}
        assert filter_fixtures(fixtures, include=["user.*"], exclude=["*.list"]) == {"user.get": 1}

    def test_merge_later_wins(self) -> None:
        assert merge_fixtures({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_fixture_paths(self) -> None:
        assert fixture_paths({"a.b": 1, "c": 2}) == ["a.b", "c"]
        assert fixture_paths(FixtureRegistry("procedure", {"x.y": 1})) == ["x.y"]
