"""Content negotiation for the GraphQL Playground page.

A browser navigating to the mount path sends ``Accept: text/html,...``
and gets the playground; API clients asking for JSON (or sending no
Accept header at all) fall through to GraphQL execution.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from apollo_asgi.http import IncomingRequest, ResponseSink
from apollo_asgi.models import PlaygroundOptions
from apollo_asgi.render import render_playground_page

HTML = "text/html"
JSON = "application/json"

Renderer = Callable[[dict[str, Any]], str]


def parse_accept(header: str | None) -> list[str]:
    """Return the media types of an Accept header in preference order.

    Ordered by q-value, highest first; equal q-values keep header order.
    Types with ``q=0`` are not acceptable and are dropped. A missing or
    blank header accepts anything.
    """
    if not header or not header.strip():
        return ["*/*"]

    ranked: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        media_type, *params = (p.strip() for p in part.split(";"))
        if not media_type:
            continue
        q = 1.0
        for param in params:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    q = float(value)
                except ValueError:
                    q = 0.0
        if q <= 0:
            continue
        ranked.append((-q, index, media_type.lower()))

    ranked.sort()
    return [media_type for _, _, media_type in ranked]


def prefers_html(headers: Mapping[str, str]) -> bool:
    """True if text/html comes before application/json in the client's order."""
    for media_type in parse_accept(headers.get("accept")):
        if media_type in (HTML, JSON):
            return media_type == HTML
    return False


class PlaygroundNegotiator:
    """Serves the playground page to clients that prefer HTML."""

    def __init__(
        self,
        options: PlaygroundOptions | None,
        *,
        endpoint: str,
        subscription_endpoint: str | None = None,
        renderer: Renderer = render_playground_page,
    ) -> None:
        self._options = options
        self._endpoint = endpoint
        self._subscription_endpoint = subscription_endpoint
        self._renderer = renderer

    @property
    def enabled(self) -> bool:
        return self._options is not None

    def applies_to(self, request: IncomingRequest) -> bool:
        return self.enabled and request.method == "GET"

    def render_options(self) -> dict[str, Any]:
        # Explicitly configured options win over the mount defaults
        options: dict[str, Any] = {"endpoint": self._endpoint}
        if self._subscription_endpoint:
            options["subscriptionEndpoint"] = self._subscription_endpoint
        if self._options is not None:
            options.update(self._options.to_render_options())
        return options

    async def handle(self, request: IncomingRequest, sink: ResponseSink) -> bool:
        if not self.applies_to(request) or not prefers_html(request.headers):
            return False

        page = self._renderer(self.render_options())
        await sink.send_raw(200, page, {"Content-Type": HTML})
        return True
