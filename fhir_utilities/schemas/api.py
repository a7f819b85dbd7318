"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Resource build
# ---------------------------------------------------------------------------

class BuildSuccessResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    warnings: list[str] = Field(default_factory=list)


class BuildFailureResponse(BaseModel):
    success: bool = False
    error: str
    details: list[str] | None = None


# ---------------------------------------------------------------------------
# Schema description
# ---------------------------------------------------------------------------

class SchemaResponse(BaseModel):
    success: bool = True
    schema_: dict[str, Any] = Field(..., alias="schema", serialization_alias="schema")

    model_config = {"populate_by_name": True}


class ResourceKindInfo(BaseModel):
    kind: str
    slug: str
    profile: str


class ResourceListResponse(BaseModel):
    resources: list[ResourceKindInfo]


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    strict_constraints: bool = False
