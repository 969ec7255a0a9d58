"""Per-request dispatch chain.

Each request is classified exactly once by an ordered list of
DispatchRule (predicate, handler) pairs. The first rule that matches
and reports the request as handled wins; if none does, the request
gets a 404 with an empty body.

Default order:
    1. health     -- liveness path (only when folded into the chain)
    2. playground -- mount path, GET, client prefers HTML
    3. graphql    -- mount path
    4. 404
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from starlette.types import Receive, Scope, Send

from apollo_asgi.bridge import GraphQLBridge, GraphQLFailure
from apollo_asgi.errors import ErrorMapper
from apollo_asgi.health import HealthCheckHandler
from apollo_asgi.http import IncomingRequest, ResponseSink
from apollo_asgi.models import HEALTH_CHECK_PATH, HealthCheckMode, MountConfig
from apollo_asgi.playground import PlaygroundNegotiator
from apollo_asgi.readiness import ReadinessGate

Predicate = Callable[[IncomingRequest], bool]
Handler = Callable[[IncomingRequest, ResponseSink], Awaitable[bool]]


@dataclass(frozen=True)
class DispatchRule:
    """One link of the chain: ``handle`` runs only if ``matches`` is true."""

    name: str
    matches: Predicate
    handle: Handler


def path_equals(path: str) -> Predicate:
    def predicate(request: IncomingRequest) -> bool:
        return request.path == path

    return predicate


class GraphQLResponder:
    """Writes the bridge's result: the single owner of the terminal write."""

    def __init__(self, bridge: GraphQLBridge, error_mapper: ErrorMapper) -> None:
        self._bridge = bridge
        self._error_mapper = error_mapper

    async def __call__(self, request: IncomingRequest, sink: ResponseSink) -> bool:
        result = await self._bridge.execute(request)

        if isinstance(result, GraphQLFailure):
            sink.set_headers(result.error.headers)
            await self._error_mapper(request, sink, result.error)
        else:
            sink.set_headers(result.headers)
            await sink.send(200, result.body)
        return True


def build_rules(
    config: MountConfig,
    *,
    health: HealthCheckHandler,
    playground: PlaygroundNegotiator,
    graphql: GraphQLResponder,
) -> list[DispatchRule]:
    """Assemble the default chain for a mount configuration."""
    rules: list[DispatchRule] = []

    if config.health_check_mode == HealthCheckMode.CHAIN and not config.disable_health_check:
        rules.append(DispatchRule("health", path_equals(HEALTH_CHECK_PATH), health.handle))

    on_mount_path = path_equals(config.path)
    if playground.enabled:
        rules.append(
            DispatchRule(
                "playground",
                lambda request: on_mount_path(request) and playground.applies_to(request),
                playground.handle,
            )
        )
    rules.append(DispatchRule("graphql", on_mount_path, graphql))
    return rules


class RequestDispatcher:
    """ASGI app that runs each HTTP request through the rule chain."""

    def __init__(
        self,
        rules: Sequence[DispatchRule],
        *,
        gate: ReadinessGate | None = None,
    ) -> None:
        self._rules = tuple(rules)
        self._gate = gate

    @property
    def rules(self) -> tuple[DispatchRule, ...]:
        return self._rules

    @property
    def gate(self) -> ReadinessGate | None:
        return self._gate

    async def dispatch(self, request: IncomingRequest, sink: ResponseSink) -> str:
        """Route one request; returns the name of the branch that answered."""
        if self._gate is not None:
            await self._gate.wait()
        return await self._route(request, sink)

    async def _route(self, request: IncomingRequest, sink: ResponseSink) -> str:
        for rule in self._rules:
            if rule.matches(request) and await rule.handle(request, sink):
                return rule.name

        await sink.send(404, None)
        return "not_found"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        assert scope["type"] == "http", f"Unsupported scope type {scope['type']!r}"
        if self._gate is not None:
            await self._gate.wait()
        request = await IncomingRequest.from_scope(scope, receive)
        await self._route(request, ResponseSink(scope, receive, send))
