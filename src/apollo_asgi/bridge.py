"""Bridge between a parsed HTTP request and the execution engine.

The bridge never writes to the response. It hands back either a
GraphQLSuccess or a GraphQLFailure and the dispatcher performs the one
terminal write, so a failure can never be answered twice.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from apollo_asgi.engine import ExecutionEngine, GraphQLOptions
from apollo_asgi.errors import ExecutionError
from apollo_asgi.http import IncomingRequest
from apollo_asgi.logging import get_logger

logger = get_logger(__name__)

OptionsResolver = Callable[[IncomingRequest], Awaitable[GraphQLOptions]]
QueryExtractor = Callable[[IncomingRequest], Any]


@dataclass(frozen=True)
class GraphQLSuccess:
    body: Any
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GraphQLFailure:
    error: ExecutionError


BridgeResult = GraphQLSuccess | GraphQLFailure


def extract_payload(request: IncomingRequest) -> Any:
    """Whole parsed body, or the query-string parameters for GET/HEAD."""
    if request.method in ("GET", "HEAD"):
        return dict(request.query_params) or None
    return request.body


def extract_query_field(request: IncomingRequest) -> Any:
    """Only the ``query`` field of the parsed body."""
    if isinstance(request.body, Mapping):
        return request.body.get("query")
    return None


class GraphQLBridge:
    """Extracts the operation from a request and runs it on the engine."""

    def __init__(
        self,
        engine: ExecutionEngine,
        options_resolver: OptionsResolver,
        *,
        extract_query: QueryExtractor = extract_payload,
    ) -> None:
        self._engine = engine
        self._options_resolver = options_resolver
        self._extract_query = extract_query

    async def execute(self, request: IncomingRequest) -> BridgeResult:
        async def resolve_options() -> GraphQLOptions:
            # Resolved lazily for this request only
            return await self._options_resolver(request)

        try:
            response = await self._engine.run_http_query(
                method=request.method,
                options=resolve_options,
                query=self._extract_query(request),
                request=request.normalized(),
            )
        except ExecutionError as e:
            logger.info(
                "graphql.request_failed",
                path=request.path,
                status=e.status_code,
                error=e.message,
            )
            return GraphQLFailure(e)
        except Exception as e:  # noqa: BLE001
            logger.exception("graphql.engine_crashed", path=request.path)
            return GraphQLFailure(ExecutionError(str(e) or "Internal Server Error", 500))

        return GraphQLSuccess(body=response.body, headers=dict(response.headers))
