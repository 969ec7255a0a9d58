"""Entry point for serving a GraphQL schema over HTTP.

Usage:
    uv run python -m apollo_asgi
    uv run python -m apollo_asgi --schema schema.graphql --port 4000
    uv run python -m apollo_asgi --health-check-mode chain --no-playground
"""

from __future__ import annotations

import argparse
from pathlib import Path

import uvicorn
from graphql import GraphQLSchema, build_schema

from apollo_asgi.app import create_app
from apollo_asgi.config import ServerSettings
from apollo_asgi.logging import setup_logging
from apollo_asgi.models import HEALTH_CHECK_PATH, HealthCheckMode
from apollo_asgi.server import ApolloServer

DEMO_SDL = """
type Query {
  hello(name: String): String
}
"""


def demo_root() -> dict[str, object]:
    def hello(info: object, name: str | None = None) -> str:
        return f"Hello, {name or 'world'}!"

    return {"hello": hello}


def load_schema(path: str | None) -> GraphQLSchema:
    if path is None:
        return build_schema(DEMO_SDL)
    return build_schema(Path(path).read_text(encoding="utf-8"))


def main() -> None:
    settings = ServerSettings()

    parser = argparse.ArgumentParser(description="Apollo ASGI GraphQL server")
    parser.add_argument("--host", default=settings.host, help="Bind host")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument("--path", default=settings.graphql_path, help="GraphQL mount path")
    parser.add_argument(
        "--schema",
        default=None,
        help="Path to an SDL file (default: built-in demo schema)",
    )
    parser.add_argument(
        "--health-check-mode",
        choices=[m.value for m in HealthCheckMode],
        default=settings.health_check_mode.value,
        help="Serve the health check inside the dispatch chain or on its own route",
    )
    parser.add_argument(
        "--disable-health-check",
        action="store_true",
        default=settings.disable_health_check,
        help="Do not answer the liveness path",
    )
    parser.add_argument(
        "--no-playground",
        action="store_true",
        default=not settings.playground_enabled,
        help="Disable the GraphQL Playground page",
    )
    parser.add_argument(
        "--cors",
        action="store_true",
        default=settings.cors,
        help="Allow cross-origin requests from any origin",
    )
    args = parser.parse_args()

    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        service_name=settings.service_name,
    )

    schema = load_schema(args.schema)
    server = ApolloServer(
        schema=schema,
        root_value=demo_root() if args.schema is None else None,
        playground=not args.no_playground,
        subscriptions_path=settings.subscriptions_path,
    )
    config = server.mount_config(
        path=args.path,
        disable_health_check=args.disable_health_check,
        health_check_mode=args.health_check_mode,
    )
    app = create_app(server, config, cors=args.cors)

    base = f"http://{args.host}:{args.port}"
    print(f"GraphQL server starting on {base}{args.path}")
    print()
    print("Endpoints:")
    print(f"  POST {base}{args.path}")
    print(f"  GET  {base}{args.path}" + ("" if args.no_playground else "  (playground)"))
    if not args.disable_health_check:
        print(f"  GET  {base}{HEALTH_CHECK_PATH}")
    print()

    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
