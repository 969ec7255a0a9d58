"""Starlette application hosting one GraphQL mount.

Routes:
- GET  /.well-known/apollo/server-health -- liveness (separate mode only)
- *    /{path}                           -- dispatch chain (playground,
  GraphQL execution, 404 fallback; liveness too in chain mode)
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route

from apollo_asgi.models import HEALTH_CHECK_PATH, HealthCheckMode, MountConfig
from apollo_asgi.server import ApolloServer


def create_app(
    server: ApolloServer,
    config: MountConfig | None = None,
    *,
    cors: bool = False,
) -> Starlette:
    """Create the Starlette application for ``server``.

    Startup waits for the server's readiness gate, so a failed warm-up
    aborts the host process instead of failing each request.
    """
    config = config or server.mount_config()
    dispatcher = server.create_handler(config)

    routes: list[Route] = []
    if config.health_check_mode == HealthCheckMode.SEPARATE and not config.disable_health_check:
        routes.append(
            Route(
                HEALTH_CHECK_PATH,
                server.create_health_handler(config),
                methods=["GET", "HEAD"],
            )
        )
    routes.append(Route("/{path:path}", dispatcher))

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await server.gate.wait()
        yield

    app = Starlette(routes=routes, lifespan=lifespan)
    if cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
    return app
