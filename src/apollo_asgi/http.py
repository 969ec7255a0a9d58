"""HTTP primitives the dispatch chain works against.

IncomingRequest is an immutable, already-parsed view of one request.
ResponseSink wraps the ASGI ``send`` callable with a write-once contract:
headers may be set any number of times, then exactly one terminal send.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from starlette.datastructures import Headers, QueryParams
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from apollo_asgi.errors import ResponseAlreadySent

_NO_BODY_METHODS = frozenset({"GET", "HEAD"})


@dataclass(frozen=True)
class MalformedBody:
    """A request body that is not valid UTF-8, or not valid JSON."""

    text: str


@dataclass(frozen=True)
class NormalizedRequest:
    """Transport-neutral request descriptor handed to the execution engine."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class IncomingRequest:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=Headers)
    body: Any = None
    query_params: Mapping[str, str] = field(default_factory=QueryParams)

    @property
    def path(self) -> str:
        """The URL with any query-string suffix removed."""
        return self.url.split("?", 1)[0]

    def normalized(self) -> NormalizedRequest:
        return NormalizedRequest(
            method=self.method,
            url=self.url,
            headers={k.lower(): v for k, v in self.headers.items()},
        )

    @classmethod
    async def from_scope(cls, scope: Scope, receive: Receive) -> IncomingRequest:
        """Read and parse an ASGI HTTP request."""
        request = Request(scope, receive)
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"

        return cls(
            method=request.method,
            url=url,
            headers=request.headers,
            body=await _parse_body(request),
            query_params=request.query_params,
        )


async def _parse_body(request: Request) -> Any:
    if request.method in _NO_BODY_METHODS:
        return None

    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()

    if content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        async with request.form() as form:
            # File parts are dropped: uploads are not supported
            return {k: v for k, v in form.items() if isinstance(v, str)}

    raw = await request.body()
    if not raw:
        return None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        # The engine rejects this with a 400
        return MalformedBody(raw.decode("utf-8", errors="replace"))

    if content_type == "application/json":
        try:
            return json.loads(text)
        except ValueError:
            # The engine rejects this with a 400
            return MalformedBody(text)
    if content_type == "application/graphql":
        return {"query": text}
    return text


class ResponseSink:
    """Write-once response over an ASGI ``send`` callable.

    Usage::

        sink = ResponseSink(scope, receive, send)
        sink.set_header("Cache-Control", "no-store")
        await sink.send(200, {"data": {}})
        await sink.send(200, "again")  # raises ResponseAlreadySent
    """

    def __init__(self, scope: Scope, receive: Receive, send: Send) -> None:
        self._scope = scope
        self._receive = receive
        self._send = send
        self._headers: dict[str, str] = {}
        self._sent = False
        self.status_code: int | None = None

    @property
    def is_sent(self) -> bool:
        return self._sent

    @property
    def headers(self) -> dict[str, str]:
        """Headers assigned so far, keyed by lower-cased name."""
        return dict(self._headers)

    def set_header(self, name: str, value: str | list[str] | tuple[str, ...]) -> None:
        if self._sent:
            raise ResponseAlreadySent(f"Cannot set header {name!r}: response already sent")
        if isinstance(value, (list, tuple)):
            value = ", ".join(value)
        self._headers[name.lower()] = str(value)

    def set_headers(self, headers: Mapping[str, Any] | None) -> None:
        for name, value in (headers or {}).items():
            self.set_header(name, value)

    async def send(self, status_code: int, body: Any = None) -> None:
        """Terminal write. Objects are serialized as compact JSON."""
        self._claim(status_code)
        response: Response
        if body is None:
            response = Response(status_code=status_code, headers=self._headers)
        elif isinstance(body, bytes):
            response = Response(body, status_code=status_code, headers=self._headers)
        elif isinstance(body, str):
            response = Response(
                body,
                status_code=status_code,
                headers=self._headers,
                media_type="text/plain",
            )
        else:
            response = JSONResponse(body, status_code=status_code, headers=self._headers)
        await response(self._scope, self._receive, self._send)

    async def send_raw(
        self,
        status_code: int,
        body: str | bytes,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Terminal write of a pre-rendered body with explicit headers."""
        self.set_headers(headers)
        self._claim(status_code)
        response = Response(body, status_code=status_code, headers=self._headers)
        await response(self._scope, self._receive, self._send)

    def _claim(self, status_code: int) -> None:
        if self._sent:
            raise ResponseAlreadySent(
                f"Response already sent with status {self.status_code}; "
                f"refusing second write with status {status_code}"
            )
        self._sent = True
        self.status_code = status_code
