"""Error taxonomy and the HTTP error mapper.

- ExecutionError -- recoverable failure from the execution engine,
  mapped onto an HTTP status (its own ``status_code`` or 500).
- StartupError -- the readiness gate failed; fatal, never per-request.
- ResponseAlreadySent -- a second terminal write on a response sink.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from apollo_asgi.logging import get_logger

if TYPE_CHECKING:
    from apollo_asgi.http import IncomingRequest, ResponseSink

logger = get_logger(__name__)

DEFAULT_ERROR_STATUS = 500

ErrorCallback = Callable[
    ["IncomingRequest", "ResponseSink", int, "ExecutionError"],
    Awaitable[None] | None,
]


class ApolloError(Exception):
    """Base class for all errors raised by apollo_asgi."""


class ExecutionError(ApolloError):
    """A failure reported by the execution engine.

    Carries an optional HTTP status code and optional response headers
    that must be applied before the error body is sent.
    """

    name = "HttpQueryError"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.headers: dict[str, str] = dict(headers or {})

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, "
            f"status_code={self.status_code!r}, headers={self.headers!r})"
        )


class StartupError(ApolloError):
    """Raised to every waiter when engine warm-up fails."""


class ResponseAlreadySent(ApolloError):
    """Raised when a response sink is written after its terminal send."""


class ErrorMapper:
    """Turn an ExecutionError into exactly one terminal response.

    If an ``on_error`` callback is configured it owns the terminal write.
    A callback that raises, or returns without terminating the response,
    falls back to the plain status + message write.
    """

    def __init__(self, on_error: ErrorCallback | None = None) -> None:
        self._on_error = on_error

    @staticmethod
    def status_for(error: ExecutionError) -> int:
        return error.status_code or DEFAULT_ERROR_STATUS

    async def __call__(
        self,
        request: IncomingRequest,
        sink: ResponseSink,
        error: ExecutionError,
    ) -> None:
        status = self.status_for(error)

        if self._on_error is None:
            await sink.send(status, error.message)
            return

        try:
            result: Any = self._on_error(request, sink, status, error)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("error_callback.failed", path=request.path, status=status)

        if not sink.is_sent:
            logger.warning(
                "error_callback.not_terminated",
                path=request.path,
                status=status,
            )
            await sink.send(status, error.message)
