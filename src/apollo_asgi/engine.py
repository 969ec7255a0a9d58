"""Execution engine: runs a GraphQL operation received over HTTP.

ExecutionEngine is the seam the bridge calls. GraphQLCoreEngine is the
default implementation on top of graphql-core; it validates the HTTP
shape of the request (method, body, batching, variables) and turns
every rejection into an ExecutionError carrying the HTTP status.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable, Collection, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from graphql import (
    ASTValidationRule,
    GraphQLError,
    GraphQLFieldResolver,
    GraphQLSchema,
    OperationType,
    execute,
    get_operation_ast,
    parse,
    validate,
)
from pydantic import ValidationError

from apollo_asgi.errors import ExecutionError
from apollo_asgi.http import MalformedBody, NormalizedRequest
from apollo_asgi.models import GraphQLRequestPayload

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class GraphQLOptions:
    """Per-request execution options."""

    schema: GraphQLSchema
    root_value: Any = None
    context_value: Any = None
    validation_rules: Collection[type[ASTValidationRule]] | None = None
    field_resolver: GraphQLFieldResolver | None = None
    format_error: Callable[[GraphQLError], dict[str, Any]] | None = None


OptionsThunk = Callable[[], Awaitable[GraphQLOptions]]


@dataclass(frozen=True)
class HttpQueryResponse:
    body: Any
    headers: dict[str, str] = field(default_factory=dict)


class ExecutionEngine(Protocol):
    async def run_http_query(
        self,
        *,
        method: str,
        options: OptionsThunk,
        query: Any,
        request: NormalizedRequest,
    ) -> HttpQueryResponse:
        """Execute ``query``; raise ExecutionError on failure."""
        ...


class _OperationError(Exception):
    """A single operation was rejected before or during validation."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__(errors[0].get("message", "") if errors else "")
        self.errors = errors


class GraphQLCoreEngine:
    """Runs HTTP GraphQL queries with graphql-core.

    Usage::

        engine = GraphQLCoreEngine()
        response = await engine.run_http_query(
            method="POST",
            options=lambda: resolve_options(request),
            query={"query": "{ __typename }"},
            request=request.normalized(),
        )
        response.body  # {"data": {"__typename": "Query"}}
    """

    async def run_http_query(
        self,
        *,
        method: str,
        options: OptionsThunk,
        query: Any,
        request: NormalizedRequest,
    ) -> HttpQueryResponse:
        try:
            graphql_options = await options()
        except ExecutionError:
            raise
        except Exception as e:  # noqa: BLE001
            raise ExecutionError(str(e) or "Failed to resolve GraphQL options", 500) from e

        method = method.upper()
        if method == "POST":
            if query is None:
                raise ExecutionError("POST body missing.", 400)
            if isinstance(query, MalformedBody):
                raise ExecutionError("POST body sent invalid JSON.", 400)
        elif method in ("GET", "HEAD"):
            if not query:
                raise ExecutionError("GET query missing.", 400)
        else:
            raise ExecutionError(
                "Apollo Server supports only GET/POST requests.",
                405,
                {"Allow": "GET, POST"},
            )

        if isinstance(query, list):
            body: Any = [await self._run_batched(item, graphql_options, method) for item in query]
            return HttpQueryResponse(body=body, headers=dict(JSON_HEADERS))

        try:
            body = await self._run_operation(query, graphql_options, method)
        except _OperationError as e:
            raise ExecutionError(json.dumps({"errors": e.errors}), 400, JSON_HEADERS) from e
        return HttpQueryResponse(body=body, headers=dict(JSON_HEADERS))

    async def _run_batched(self, payload: Any, options: GraphQLOptions, method: str) -> Any:
        try:
            return await self._run_operation(payload, options, method)
        except _OperationError as e:
            return {"errors": e.errors}

    async def _run_operation(
        self,
        payload: Any,
        options: GraphQLOptions,
        method: str,
    ) -> dict[str, Any]:
        if isinstance(payload, str):
            payload = {"query": payload}
        if not isinstance(payload, Mapping):
            raise _OperationError([{"message": "GraphQL request must be a JSON object."}])

        try:
            operation = GraphQLRequestPayload.model_validate(dict(payload))
        except ValidationError as e:
            message = f"Invalid GraphQL request: {e.errors()[0]['msg']}"
            raise _OperationError([{"message": message}]) from e

        if not operation.query:
            raise _OperationError([{"message": "Must provide query string."}])

        variables = operation.variables
        if isinstance(variables, str):
            try:
                variables = json.loads(variables) if variables else None
            except ValueError:
                raise _OperationError([{"message": "Variables are invalid JSON."}]) from None
            if variables is not None and not isinstance(variables, dict):
                raise _OperationError([{"message": "Variables must be an object."}])

        try:
            document = parse(operation.query)
        except GraphQLError as e:
            raise _OperationError([self._format(e, options)]) from e

        validation_errors = validate(options.schema, document, options.validation_rules)
        if validation_errors:
            raise _OperationError([self._format(e, options) for e in validation_errors])

        if method in ("GET", "HEAD"):
            definition = get_operation_ast(document, operation.operation_name)
            if definition is not None and definition.operation != OperationType.QUERY:
                raise ExecutionError(
                    "GET supports only query operation",
                    405,
                    {"Allow": "POST"},
                )

        result = execute(
            options.schema,
            document,
            root_value=options.root_value,
            context_value=options.context_value,
            variable_values=variables,
            operation_name=operation.operation_name,
            field_resolver=options.field_resolver,
        )
        if inspect.isawaitable(result):
            result = await result

        body: dict[str, Any] = {"data": result.data}
        if result.errors:
            body["errors"] = [self._format(e, options) for e in result.errors]
        return body

    @staticmethod
    def _format(error: GraphQLError, options: GraphQLOptions) -> dict[str, Any]:
        if options.format_error is not None:
            return options.format_error(error)
        return dict(error.formatted)
