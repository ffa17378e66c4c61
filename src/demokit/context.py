"""Contexts handed to fixture functions, one per call shape.

Every context carries the captured ``params``; the rest mirrors what the
wrapped call site received::

    LoaderContext     route loaders (params, request, path)
    ActionContext     route actions (+ form_data, method)
    ProcedureContext  RPC procedures (path, input, type)
    QueryContext      query functions (query_key, params, match)
    MutationContext   mutation functions (variables, mutation_key)
    KeyContext        SWR-style fetchers (key, normalized_key, params, match)
    HttpContext       HTTP transport (url, method, params, query, headers, body, session)

Contexts are frozen. ``params`` dicts are fresh per call, so a fixture
may mutate its own copy without affecting other calls.
"""

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from demokit.http.forms import FormData
from demokit.http.headers import Headers
from demokit.http.query import QueryParams
from demokit.http.request import Request
from demokit.patterns.matcher import MatchResult

ProcedureType: TypeAlias = Literal["query", "mutation", "subscription"]


@dataclass(frozen=True, slots=True)
class LoaderContext:
    """Passed to loader fixtures.

    ``path`` is the fixture pattern that matched (``"/users/:id"``). A
    single wrapped loader has no pattern and gets ``request.path`` instead.
    ``route`` is the full path of the wrapped route when it came from a
    route table, ``None`` for a single wrapped loader.
    """

    params: dict[str, Any]
    request: Request
    path: str
    route: str | None = None


@dataclass(frozen=True, slots=True)
class ActionContext:
    """Passed to action fixtures.

    ``form_data`` holds the parsed body for URL-encoded and multipart
    submissions and is ``None`` for any other body.
    """

    params: dict[str, Any]
    request: Request
    path: str
    method: str
    form_data: FormData | None = None
    route: str | None = None


@dataclass(frozen=True, slots=True)
class ProcedureContext:
    """Passed to RPC procedure fixtures."""

    path: str
    input: Any
    type: ProcedureType
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class QueryContext:
    """Passed to query-function fixtures."""

    query_key: tuple[Any, ...]
    params: dict[str, Any]
    match: MatchResult


@dataclass(frozen=True, slots=True)
class MutationContext:
    """Passed to mutation fixtures.

    ``name`` is the fixture name the mutation was wrapped under;
    ``mutation_key`` is the caller's own key, if any.
    """

    variables: Any
    name: str
    mutation_key: tuple[Any, ...] | None = None


@dataclass(frozen=True, slots=True)
class KeyContext:
    """Passed to SWR-style fetcher fixtures.

    ``key`` is the key exactly as the caller supplied it;
    ``normalized_key`` is the tuple the pattern was matched against.
    """

    key: Any
    normalized_key: tuple[Any, ...]
    params: dict[str, Any]
    match: MatchResult


@dataclass(frozen=True, slots=True)
class HttpContext:
    """Passed to HTTP transport fixtures.

    ``body`` is the decoded JSON body when the request carried one, the
    raw text otherwise, or ``None`` when empty.
    """

    url: str
    method: str
    params: dict[str, Any]
    query: QueryParams
    headers: Headers
    body: Any
    session: "SessionState"


class SessionState:
    """In-memory key/value store shared by the fixtures of one transport.

    Lets a ``POST`` fixture record data that a later ``GET`` fixture reads
    back. Nothing is persisted; ``clear()`` starts a fresh session::

        def create_user(ctx: HttpContext) -> dict:
            users = ctx.session.get("users", [])
            user = {"id": len(users) + 1, **ctx.body}
            ctx.session.set("users", [*users, user])
            return user
    """

    __slots__ = ("_data", "_lock")

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)

    def has(self, key: str) -> bool:
        return key in self._data

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __repr__(self) -> str:
        return f"SessionState({sorted(self._data)!r})"
