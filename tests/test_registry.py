"""Tests for demokit.registry — ordered, copy-on-write fixture registry."""

import threading

import pytest

from demokit.errors import CompileError, ConfigurationError
from demokit.handlers import MethodHandlers, Static, Sync
from demokit.registry import FixtureRegistry


class TestRegistration:
    def test_set_returns_pattern(self) -> None:
        registry = FixtureRegistry("path")
        pattern = registry.set("/users/:id", {"id": 1})
        assert pattern.param_names == ("id",)
        assert len(registry) == 1

    def test_initial_fixtures_keep_order(self) -> None:
        registry = FixtureRegistry("path", {"/a": 1, "/b": 2, "/c": 3})
        assert [str(p) for p in registry.patterns] == ["/a", "/b", "/c"]

    def test_pairs_accepted(self) -> None:
        registry = FixtureRegistry("tuple", [(["a"], 1), (["b"], 2)])
        assert len(registry) == 2

    def test_replacing_keeps_position(self) -> None:
        registry = FixtureRegistry("path", {"/a": 1, "/b": 2})
        registry.set("/a/", 10)
        assert [str(p) for p in registry.patterns] == ["/a/", "/b"]
        assert registry.find("/a").handler == Static(10)

    def test_malformed_key_raises_at_set(self) -> None:
        registry = FixtureRegistry("path")
        with pytest.raises(CompileError):
            registry.set("/a/*/b", 1)
        assert len(registry) == 0

    def test_update_is_all_or_nothing(self) -> None:
        registry = FixtureRegistry("path", {"/a": 1})
        with pytest.raises(CompileError):
            registry.update({"/b": 2, "/c/:": 3})
        assert [str(p) for p in registry.patterns] == ["/a"]

    def test_unknown_kind(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown key kind"):
            FixtureRegistry("graphql")  # type: ignore[arg-type]

    def test_remove(self) -> None:
        registry = FixtureRegistry("path", {"/a": 1})
        assert registry.remove("/a/") is True
        assert registry.remove("/a") is False
        assert registry.find("/a") is None

    def test_clear(self) -> None:
        registry = FixtureRegistry("path", {"/a": 1, "/b": 2})
        registry.clear()
        assert len(registry) == 0
        assert list(registry) == []

    def test_contains(self) -> None:
        registry = FixtureRegistry("path", {"/users/:id": 1})
        assert "/users/:id" in registry
        assert "/users/1" not in registry
        assert "/bad/:" not in registry

    def test_bool_and_int_keys_are_separate_entries(self) -> None:
        registry = FixtureRegistry("tuple")
        registry.set(["flag", 1], "one")
        registry.set(["flag", True], "yes")
        assert len(registry) == 2
        assert registry.find(["flag", 1]).handler == Static("one")
        assert registry.find(["flag", True]).handler == Static("yes")

    def test_remove_is_strict_about_literal_types(self) -> None:
        registry = FixtureRegistry("tuple", [(["flag", 1], "one")])
        assert registry.remove(["flag", True]) is False
        assert len(registry) == 1

    def test_remove_is_strict_inside_object_patterns(self) -> None:
        registry = FixtureRegistry("tuple", [(["todos", {"done": 1}], "one")])
        assert registry.remove(["todos", {"done": True}]) is False
        assert registry.remove(["todos", {"done": 1}]) is True
        assert len(registry) == 0

    def test_contains_is_strict_about_literal_types(self) -> None:
        registry = FixtureRegistry("tuple", [(["flag", 0], "zero"), (["todos", {"done": True}], "t")])
        assert ["flag", 0] in registry
        assert ["flag", False] not in registry
        assert ["todos", {"done": True}] in registry
        assert ["todos", {"done": 1}] not in registry

    def test_callable_becomes_sync_handler(self) -> None:
        registry = FixtureRegistry("path")

        def fixture(ctx):
            return ctx

        registry.set("/a", fixture)
        assert registry.find("/a").handler == Sync(fixture)

    def test_repr(self) -> None:
        assert repr(FixtureRegistry("procedure", {"a.b": 1})) == "FixtureRegistry('procedure', 1 fixture(s))"


class TestLookup:
    def test_first_registered_wins(self) -> None:
        registry = FixtureRegistry("path")
        registry.set("/a/:x", "param")
        registry.set("/a/*", "wildcard")
        assert registry.find("/a/fixed").handler == Static("param")

    def test_exact_wins_regardless_of_order(self) -> None:
        registry = FixtureRegistry("path")
        registry.set("/users/:id", "param")
        registry.set("/users/me", "exact")
        assert registry.find("/users/me").handler == Static("exact")
        assert registry.find("/users/42").params == {"id": "42"}

    def test_exact_map_uses_strict_equality(self) -> None:
        registry = FixtureRegistry("tuple")
        registry.set(["flag", 1], "one")
        registry.set(["flag", True], "true")
        assert registry.find(["flag", True]).handler == Static("true")
        assert registry.find(["flag", 1]).handler == Static("one")
        assert registry.find(["flag", 1.0]).handler == Static("one")

    def test_nested_literals_are_distinct(self) -> None:
        registry = FixtureRegistry("tuple", [(["ids", [1]], "int"), (["ids", [True]], "bool")])
        assert registry.find(["ids", [True]]).handler == Static("bool")
        assert registry.find(["ids", [1]]).handler == Static("int")

    def test_miss_returns_none(self) -> None:
        assert FixtureRegistry("path", {"/a": 1}).find("/b") is None

    def test_empty_registry(self) -> None:
        assert FixtureRegistry("path").find("/a") is None

    def test_params_are_fresh_per_lookup(self) -> None:
        registry = FixtureRegistry("path", {"/u/:id": 1})
        first = registry.find("/u/1")
        first.params["id"] = "mutated"
        assert registry.find("/u/1").params == {"id": "1"}


class TestMethodLookup:
    def test_method_keyed_entry(self) -> None:
        registry = FixtureRegistry("path")
        registry.set("/users/:id", MethodHandlers(PUT="updated", DELETE="deleted"))
        assert registry.find_for_method("/users/1", "put").handler == Static("updated")
        assert registry.find_for_method("/users/1", "DELETE").handler == Static("deleted")

    def test_missing_verb_means_no_fixture(self) -> None:
        registry = FixtureRegistry("path")
        registry.set("/users/:id", MethodHandlers(PUT="updated"))
        registry.set("/users/*", "later")
        assert registry.find_for_method("/users/1", "DELETE") is None

    def test_method_keyed_entries_skip_plain_find(self) -> None:
        registry = FixtureRegistry("path")
        registry.set_methods("/users", {"POST": "created"})
        assert registry.find("/users") is None

    def test_method_prefixed_keys(self) -> None:
        registry = FixtureRegistry("path")
        registry.set("GET /users", "list")
        registry.set("POST /users", "created")
        assert registry.find_for_method("/users", "GET").handler == Static("list")
        assert registry.find_for_method("/users", "POST").handler == Static("created")
        assert registry.find_for_method("/users", "PUT") is None
        assert registry.find("/users") is None

    def test_bare_path_answers_any_verb(self) -> None:
        registry = FixtureRegistry("path", {"/users": "any"})
        assert registry.find_for_method("/users", "PATCH").handler == Static("any")

    def test_pinned_exact_duplicates_keep_exact_precedence(self) -> None:
        registry = FixtureRegistry("path")
        registry.set("/users/:id", "param")
        registry.set("GET /users/me", "get-me")
        registry.set("POST /users/me", "post-me")
        assert registry.find_for_method("/users/me", "POST").handler == Static("post-me")
        assert registry.find_for_method("/users/me", "GET").handler == Static("get-me")

    def test_set_methods_validates_verbs(self) -> None:
        registry = FixtureRegistry("path")
        with pytest.raises(ConfigurationError, match="Method-keyed fixtures accept"):
            registry.set_methods("/users", {"GET": "nope"})


class TestConcurrency:
    def test_concurrent_writers_lose_nothing(self) -> None:
        registry = FixtureRegistry("path")

        def writer(offset: int) -> None:
            for i in range(50):
                registry.set(f"/w{offset}/{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(registry) == 200

    def test_reader_snapshot_is_stable(self) -> None:
        registry = FixtureRegistry("path", {"/a": 1})
        entries = registry.entries
        registry.set("/b", 2)
        assert len(entries) == 1
        assert len(registry.entries) == 2
