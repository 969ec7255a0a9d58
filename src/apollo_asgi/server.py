"""ApolloServer: owns the schema/options and builds request handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from graphql import GraphQLSchema, assert_valid_schema

from apollo_asgi.bridge import GraphQLBridge, QueryExtractor, extract_payload
from apollo_asgi.concurrency import call_maybe_async
from apollo_asgi.dispatch import GraphQLResponder, RequestDispatcher, build_rules
from apollo_asgi.engine import ExecutionEngine, GraphQLCoreEngine, GraphQLOptions
from apollo_asgi.errors import ErrorCallback, ErrorMapper
from apollo_asgi.health import HealthCheckHandler, HealthProbe
from apollo_asgi.http import IncomingRequest
from apollo_asgi.models import (
    DEFAULT_GRAPHQL_PATH,
    HealthCheckMode,
    MountConfig,
    PlaygroundOptions,
)
from apollo_asgi.playground import PlaygroundNegotiator
from apollo_asgi.readiness import ReadinessGate

OptionsFactory = Callable[[IncomingRequest], GraphQLOptions | Awaitable[GraphQLOptions]]


def _playground_options(
    playground: bool | PlaygroundOptions | Mapping[str, Any] | None,
) -> PlaygroundOptions | None:
    if playground is None or playground is False:
        return None
    if playground is True:
        return PlaygroundOptions()
    if isinstance(playground, PlaygroundOptions):
        return playground
    return PlaygroundOptions.model_validate(dict(playground))


class ApolloServer:
    """GraphQL server that can be mounted on any ASGI host.

    Usage::

        server = ApolloServer(schema=build_schema("type Query { hello: String }"))
        app = server.create_handler(path="/graphql")

    ``options`` may be a static GraphQLOptions or a callable taking the
    IncomingRequest and returning options (optionally async), e.g. to put
    the authenticated user in the context.
    """

    def __init__(
        self,
        *,
        schema: GraphQLSchema | None = None,
        options: GraphQLOptions | OptionsFactory | None = None,
        root_value: Any = None,
        context: Any = None,
        engine: ExecutionEngine | None = None,
        playground: bool | PlaygroundOptions | Mapping[str, Any] | None = True,
        subscriptions_path: str | None = None,
        on_start: Callable[[], Any] | None = None,
    ) -> None:
        if schema is None and options is None:
            raise ValueError("Apollo Server requires options.")

        self.schema = schema
        self._options = options
        self._root_value = root_value
        self._context = context
        self.engine: ExecutionEngine = engine or GraphQLCoreEngine()
        self.playground_options = _playground_options(playground)
        self.subscriptions_path = subscriptions_path
        self.graphql_path = DEFAULT_GRAPHQL_PATH
        self._on_start = on_start
        self._gate: ReadinessGate | None = None

    # This integration does not support file uploads.
    def supports_uploads(self) -> bool:
        return False

    def supports_subscriptions(self) -> bool:
        return True

    @property
    def gate(self) -> ReadinessGate:
        """The server's readiness gate, created (and started) on first use."""
        if self._gate is None:
            self._gate = ReadinessGate(self.will_start)
            # Kick off warm-up right away, so hopefully it finishes
            # before the first request comes in.
            self._gate.start()
        return self._gate

    async def will_start(self) -> None:
        """Warm-up run once through the readiness gate."""
        if self.schema is not None:
            assert_valid_schema(self.schema)
        if self._on_start is not None:
            await call_maybe_async(self._on_start)

    async def create_graphql_server_options(self, request: IncomingRequest) -> GraphQLOptions:
        """Resolve the execution options for one request."""
        if isinstance(self._options, GraphQLOptions):
            return self._options
        if self._options is not None:
            return await call_maybe_async(self._options, request)

        assert self.schema is not None
        context = self._context
        if callable(context):
            context = await call_maybe_async(context, request)
        elif context is None:
            context = {"request": request}
        return GraphQLOptions(
            schema=self.schema,
            root_value=self._root_value,
            context_value=context,
        )

    def mount_config(
        self,
        *,
        path: str | None = None,
        disable_health_check: bool = False,
        on_health_check: HealthProbe | None = None,
        on_error: ErrorCallback | None = None,
        health_check_mode: HealthCheckMode | str = HealthCheckMode.SEPARATE,
    ) -> MountConfig:
        return MountConfig(
            path=path or DEFAULT_GRAPHQL_PATH,
            disable_health_check=disable_health_check,
            on_health_check=on_health_check,
            on_error=on_error,
            playground=self.playground_options,
            subscriptions_path=self.subscriptions_path,
            health_check_mode=HealthCheckMode(health_check_mode),
        )

    def create_handler(
        self,
        config: MountConfig | None = None,
        *,
        extract_query: QueryExtractor = extract_payload,
        **kwargs: Any,
    ) -> RequestDispatcher:
        """Build the ASGI dispatcher for one mount.

        Either pass a MountConfig or the keyword arguments of
        ``mount_config``.
        """
        config = config or self.mount_config(**kwargs)
        self.graphql_path = config.path

        bridge = GraphQLBridge(
            self.engine,
            self.create_graphql_server_options,
            extract_query=extract_query,
        )
        playground = PlaygroundNegotiator(
            config.playground,
            endpoint=config.path,
            subscription_endpoint=config.subscriptions_path,
        )
        rules = build_rules(
            config,
            health=self.create_health_handler(config),
            playground=playground,
            graphql=GraphQLResponder(bridge, ErrorMapper(config.on_error)),
        )
        return RequestDispatcher(rules, gate=self.gate)

    def create_health_handler(self, config: MountConfig | None = None) -> HealthCheckHandler:
        config = config or self.mount_config()
        return HealthCheckHandler(config.on_health_check)
