"""Tests for Accept parsing, HTML preference and the playground negotiator."""

from __future__ import annotations

import pytest
from helpers import RecordingSink, make_request

from apollo_asgi.models import PlaygroundOptions
from apollo_asgi.playground import PlaygroundNegotiator, parse_accept, prefers_html
from apollo_asgi.render import render_playground_page

BROWSER_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# ================================================================== #
# Accept header parsing
# ================================================================== #


class TestParseAccept:
    def test_missing_header_accepts_anything(self):
        assert parse_accept(None) == ["*/*"]
        assert parse_accept("   ") == ["*/*"]

    def test_keeps_header_order_for_equal_q(self):
        assert parse_accept("application/json, text/html") == ["application/json", "text/html"]

    def test_orders_by_q_value(self):
        assert parse_accept("application/json;q=0.5, text/html") == [
            "text/html",
            "application/json",
        ]

    def test_drops_q_zero(self):
        assert parse_accept("text/html;q=0, application/json") == ["application/json"]

    def test_lowercases_media_types(self):
        assert parse_accept("Text/HTML") == ["text/html"]

    def test_browser_header(self):
        assert parse_accept(BROWSER_ACCEPT)[0] == "text/html"


class TestPrefersHtml:
    @pytest.mark.parametrize(
        "accept, expected",
        [
            ("text/html", True),
            (BROWSER_ACCEPT, True),
            ("application/json", False),
            ("application/json, text/html", False),
            ("text/html, application/json", True),
            ("application/json;q=0.1, text/html", True),
            ("*/*", False),
            (None, False),
        ],
    )
    def test_preference(self, accept, expected):
        headers = {"accept": accept} if accept is not None else {}
        assert prefers_html(headers) is expected


# ================================================================== #
# Negotiator
# ================================================================== #


class TestPlaygroundNegotiator:
    def negotiator(self, options=None, **kwargs):
        return PlaygroundNegotiator(
            options if options is not None else PlaygroundOptions(),
            endpoint="/graphql",
            **kwargs,
        )

    @pytest.mark.asyncio
    async def test_renders_for_html_preference(self):
        sink = RecordingSink()
        request = make_request("GET", "/graphql", headers={"Accept": "text/html"})

        handled = await self.negotiator().handle(request, sink)

        assert handled is True
        assert sink.status == 200
        assert sink.response_headers["content-type"] == "text/html"
        assert "/graphql" in sink.text
        assert sink.terminal_calls == 1

    @pytest.mark.asyncio
    async def test_defers_for_json_preference(self):
        sink = RecordingSink()
        request = make_request("GET", "/graphql", headers={"Accept": "application/json"})

        assert await self.negotiator().handle(request, sink) is False
        assert sink.terminal_calls == 0
        assert sink.is_sent is False

    @pytest.mark.asyncio
    async def test_defers_for_post(self):
        sink = RecordingSink()
        request = make_request("POST", "/graphql", headers={"Accept": "text/html"})
        assert await self.negotiator().handle(request, sink) is False
        assert sink.terminal_calls == 0

    @pytest.mark.asyncio
    async def test_disabled_never_handles(self):
        negotiator = PlaygroundNegotiator(None, endpoint="/graphql")
        sink = RecordingSink()
        request = make_request("GET", "/graphql", headers={"Accept": "text/html"})

        assert negotiator.enabled is False
        assert await negotiator.handle(request, sink) is False
        assert sink.terminal_calls == 0

    def test_render_options_include_subscription_endpoint(self):
        negotiator = self.negotiator(subscription_endpoint="/subscriptions")
        options = negotiator.render_options()
        assert options["endpoint"] == "/graphql"
        assert options["subscriptionEndpoint"] == "/subscriptions"

    def test_render_options_omit_missing_subscription_endpoint(self):
        assert "subscriptionEndpoint" not in self.negotiator().render_options()

    def test_explicit_options_override_defaults(self):
        negotiator = self.negotiator(
            PlaygroundOptions(endpoint="/api/graphql", settings={"editor.theme": "light"})
        )
        options = negotiator.render_options()
        assert options["endpoint"] == "/api/graphql"
        assert options["settings"] == {"editor.theme": "light"}

    @pytest.mark.asyncio
    async def test_custom_renderer_receives_options(self):
        received = []

        def renderer(options):
            received.append(options)
            return "<p>custom</p>"

        negotiator = self.negotiator(renderer=renderer)
        sink = RecordingSink()
        await negotiator.handle(
            make_request("GET", "/graphql", headers={"Accept": "text/html"}), sink
        )

        assert sink.text == "<p>custom</p>"
        assert received[0]["endpoint"] == "/graphql"


class TestRenderPlaygroundPage:
    def test_contains_endpoint_and_title(self):
        page = render_playground_page({"endpoint": "/graphql", "title": "My API"})
        assert '"endpoint": "/graphql"' in page
        assert "<title>My API</title>" in page

    def test_uses_version_and_cdn(self):
        page = render_playground_page(
            {"endpoint": "/graphql", "version": "1.2.3", "cdnUrl": "https://cdn.example/npm/"}
        )
        assert "https://cdn.example/npm/@apollographql/graphql-playground-react@1.2.3" in page

    def test_escapes_script_breakout(self):
        page = render_playground_page({"endpoint": "/graphql</script><script>alert(1)"})
        assert "</script><script>alert(1)" not in page
        assert "\\u003c/script\\u003e" in page
