"""Apollo-style GraphQL endpoint for ASGI servers.

Mounts one GraphQL path and classifies every request exactly once:
- GET  /.well-known/apollo/server-health -- liveness ({"status":"pass"|"fail"})
- GET  /graphql with Accept: text/html   -- GraphQL Playground page
- GET/POST /graphql                      -- GraphQL execution
- anything else                          -- 404, empty body
"""

from apollo_asgi.app import create_app
from apollo_asgi.bridge import GraphQLBridge, GraphQLFailure, GraphQLSuccess
from apollo_asgi.dispatch import DispatchRule, RequestDispatcher, build_rules
from apollo_asgi.engine import (
    ExecutionEngine,
    GraphQLCoreEngine,
    GraphQLOptions,
    HttpQueryResponse,
)
from apollo_asgi.errors import (
    ApolloError,
    ErrorMapper,
    ExecutionError,
    ResponseAlreadySent,
    StartupError,
)
from apollo_asgi.health import HealthCheckHandler
from apollo_asgi.http import IncomingRequest, ResponseSink
from apollo_asgi.models import (
    DEFAULT_GRAPHQL_PATH,
    HEALTH_CHECK_PATH,
    HealthCheckMode,
    MountConfig,
    PlaygroundOptions,
)
from apollo_asgi.playground import PlaygroundNegotiator
from apollo_asgi.readiness import ReadinessGate
from apollo_asgi.server import ApolloServer

__all__ = [
    "ApolloError",
    "ApolloServer",
    "DEFAULT_GRAPHQL_PATH",
    "DispatchRule",
    "ErrorMapper",
    "ExecutionEngine",
    "ExecutionError",
    "GraphQLBridge",
    "GraphQLCoreEngine",
    "GraphQLFailure",
    "GraphQLOptions",
    "GraphQLSuccess",
    "HEALTH_CHECK_PATH",
    "HealthCheckHandler",
    "HealthCheckMode",
    "HttpQueryResponse",
    "IncomingRequest",
    "MountConfig",
    "PlaygroundNegotiator",
    "PlaygroundOptions",
    "ReadinessGate",
    "RequestDispatcher",
    "ResponseAlreadySent",
    "ResponseSink",
    "StartupError",
    "build_rules",
    "create_app",
]
