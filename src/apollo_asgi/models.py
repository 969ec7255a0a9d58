"""Pydantic models for mount configuration, payloads and response bodies."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_GRAPHQL_PATH = "/graphql"
HEALTH_CHECK_PATH = "/.well-known/apollo/server-health"


class HealthCheckMode(StrEnum):
    """Where the liveness check sits relative to the dispatch chain."""

    CHAIN = "chain"  # first rule inside the dispatcher
    SEPARATE = "separate"  # own route, never reached through the chain


# ------------------------------------------------------------------ #
# Configuration models
# ------------------------------------------------------------------ #


class PlaygroundOptions(BaseModel):
    """Options passed through to the exploration-page renderer.

    Unknown keys are kept and forwarded untouched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    endpoint: str | None = None
    subscription_endpoint: str | None = None
    title: str = "Playground"
    version: str = "1.7.33"
    cdn_url: str = "//cdn.jsdelivr.net/npm"
    settings: dict[str, Any] = Field(default_factory=dict)

    def to_render_options(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MountConfig(BaseModel):
    """Construction-time mount settings, read-only per request."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str = Field(DEFAULT_GRAPHQL_PATH, description="GraphQL mount path")
    disable_health_check: bool = False
    on_health_check: Callable[..., Any] | None = None
    on_error: Callable[..., Any] | None = None
    playground: PlaygroundOptions | None = None
    subscriptions_path: str | None = None
    health_check_mode: HealthCheckMode = HealthCheckMode.SEPARATE

    @field_validator("path")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"Mount path must start with '/', got {value!r}")
        return value


# ------------------------------------------------------------------ #
# Request models
# ------------------------------------------------------------------ #


class GraphQLRequestPayload(BaseModel):
    """A single GraphQL operation as sent over HTTP."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: str | None = None
    variables: dict[str, Any] | str | None = None
    operation_name: str | None = Field(None, alias="operationName")
    extensions: dict[str, Any] | str | None = None


# ------------------------------------------------------------------ #
# Response models
# ------------------------------------------------------------------ #


class HealthStatus(BaseModel):
    """Body of the liveness response (draft-inadarei-api-health-check)."""

    status: Literal["pass", "fail"]
