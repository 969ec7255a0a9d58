"""Liveness responder for the well-known health path.

Response follows https://tools.ietf.org/html/draft-inadarei-api-health-check-01
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from starlette.types import Receive, Scope, Send

from apollo_asgi.concurrency import call_maybe_async
from apollo_asgi.http import IncomingRequest, ResponseSink
from apollo_asgi.logging import get_logger
from apollo_asgi.models import HealthStatus

logger = get_logger(__name__)

HEALTH_CONTENT_TYPE = "application/health+json"

HealthProbe = Callable[[IncomingRequest], Any]


class HealthCheckHandler:
    """Answers 200 ``{"status":"pass"}`` or 503 ``{"status":"fail"}``.

    Works both as a dispatch-chain handler (``handle``) and as a
    standalone ASGI app for mounting on its own route.
    """

    def __init__(self, on_health_check: HealthProbe | None = None) -> None:
        self._on_health_check = on_health_check

    async def handle(self, request: IncomingRequest, sink: ResponseSink) -> bool:
        sink.set_header("Content-Type", HEALTH_CONTENT_TYPE)

        if self._on_health_check is not None:
            try:
                await call_maybe_async(self._on_health_check, request)
            except Exception as e:  # noqa: BLE001
                logger.warning("health.probe_failed", error=str(e))
                await sink.send(503, HealthStatus(status="fail").model_dump())
                return True

        await sink.send(200, HealthStatus(status="pass").model_dump())
        return True

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = await IncomingRequest.from_scope(scope, receive)
        await self.handle(request, ResponseSink(scope, receive, send))
