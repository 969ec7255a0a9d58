"""Shared test fixtures: StubEngine, RecordingSink, request builders.

The StubEngine is a programmable execution engine that returns scripted
responses. It allows testing the dispatch chain and the bridge without
a real GraphQL schema.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from graphql import build_schema
from starlette.datastructures import Headers, QueryParams

from apollo_asgi.engine import GraphQLOptions, HttpQueryResponse, OptionsThunk
from apollo_asgi.errors import ExecutionError
from apollo_asgi.http import IncomingRequest, NormalizedRequest, ResponseSink

SCHEMA_SDL = """
type Query {
  hello(name: String): String
  boom: String
}

type Mutation {
  setGreeting(text: String!): String
}
"""


def make_schema():
    return build_schema(SCHEMA_SDL)


def make_root() -> dict[str, Any]:
    def hello(info: Any, name: str | None = None) -> str:
        return f"Hello, {name or 'world'}!"

    def boom(info: Any) -> str:
        raise RuntimeError("kaboom")

    def set_greeting(info: Any, text: str) -> str:
        return text

    return {"hello": hello, "boom": boom, "setGreeting": set_greeting}


class StubEngine:
    """Programmable engine for testing.

    Takes a list of HttpQueryResponse objects (or exceptions). Each call
    to run_http_query() pops the next one. Raises if the script runs out.

    Usage::

        engine = StubEngine(responses=[
            HttpQueryResponse(body={"data": {"__typename": "Query"}}),
            ExecutionError("Bad Request", status_code=400),
        ])
    """

    def __init__(
        self,
        responses: Sequence[HttpQueryResponse | Exception] | None = None,
        *,
        resolve_options: bool = False,
    ) -> None:
        self._responses: list[HttpQueryResponse | Exception] = list(responses or [])
        self._resolve_options = resolve_options
        self.calls: list[dict[str, Any]] = []
        self.resolved_options: list[GraphQLOptions] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def run_http_query(
        self,
        *,
        method: str,
        options: OptionsThunk,
        query: Any,
        request: NormalizedRequest,
    ) -> HttpQueryResponse:
        self.calls.append({"method": method, "query": query, "request": request})
        if self._resolve_options:
            self.resolved_options.append(await options())

        if not self._responses:
            raise RuntimeError(
                f"StubEngine exhausted: {self.call_count} calls but no more scripted responses"
            )
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def ok(body: Any, headers: Mapping[str, str] | None = None) -> HttpQueryResponse:
    return HttpQueryResponse(body=body, headers=dict(headers or {}))


def fail(message: str, status_code: int | None = None, **headers: str) -> ExecutionError:
    return ExecutionError(message, status_code, headers or None)


# ------------------------------------------------------------------ #
# Requests and responses
# ------------------------------------------------------------------ #


def make_request(
    method: str = "GET",
    url: str = "/graphql",
    *,
    headers: Mapping[str, str] | None = None,
    body: Any = None,
) -> IncomingRequest:
    query = url.split("?", 1)[1] if "?" in url else ""
    return IncomingRequest(
        method=method,
        url=url,
        headers=Headers(headers=dict(headers or {})),
        body=body,
        query_params=QueryParams(query),
    )


class RecordingSink(ResponseSink):
    """ResponseSink that records ASGI messages and counts terminal calls."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []
        self.terminal_calls = 0

        async def receive() -> dict[str, Any]:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: dict[str, Any]) -> None:
            self.messages.append(message)

        super().__init__({"type": "http"}, receive, send)

    async def send(self, status_code: int, body: Any = None) -> None:
        self.terminal_calls += 1
        await super().send(status_code, body)

    async def send_raw(self, status_code: int, body: Any, headers: Any = None) -> None:
        self.terminal_calls += 1
        await super().send_raw(status_code, body, headers)

    @property
    def status(self) -> int | None:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return message["status"]
        return None

    @property
    def response_headers(self) -> dict[str, str]:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return {k.decode("latin-1"): v.decode("latin-1") for k, v in message["headers"]}
        return {}

    @property
    def body(self) -> bytes:
        return b"".join(
            m.get("body", b"") for m in self.messages if m["type"] == "http.response.body"
        )

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.body)


def http_scope(
    method: str = "GET",
    path: str = "/graphql",
    *,
    query_string: bytes = b"",
    headers: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": query_string,
        "headers": [
            (k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()
        ],
    }


def body_receiver(body: bytes):
    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    return receive
