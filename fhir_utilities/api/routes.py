"""
FastAPI routes – a thin adapter over the resource builder.

Demonstrates:
- RESTful endpoint design (one build endpoint per resource kind slug)
- Mapping builder results onto HTTP status codes
- Returning structured responses with Pydantic models

The adapter holds no state and persists nothing.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import JSONResponse

from fhir_utilities.builder import build, describe_schema
from fhir_utilities.config import settings
from fhir_utilities.exceptions import UnknownResourceKindError
from fhir_utilities.resources.registry import KINDS, get_kind
from fhir_utilities.schemas.api import (
    BuildFailureResponse,
    BuildSuccessResponse,
    HealthResponse,
    ResourceKindInfo,
    ResourceListResponse,
    SchemaResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Health check / discovery
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check():
    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        strict_constraints=settings.STRICT_CONSTRAINTS,
    )


@router.get("/resources", response_model=ResourceListResponse)
def list_resources():
    """List the resource kinds this service can build."""
    return ResourceListResponse(
        resources=[
            ResourceKindInfo(kind=kind.name, slug=kind.slug, profile=kind.profile)
            for kind in KINDS.values()
        ]
    )


# ---------------------------------------------------------------------------
# Resource build
# ---------------------------------------------------------------------------

def _resolve(slug: str) -> str:
    try:
        return get_kind(slug).name
    except UnknownResourceKindError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/{slug}/schema", response_model=SchemaResponse)
def get_schema(slug: str):
    """Schema description for client-side form generation."""
    return SchemaResponse(schema=describe_schema(_resolve(slug)))


@router.post(
    "/{slug}",
    response_model=BuildSuccessResponse,
    responses={400: {"model": BuildFailureResponse}},
)
def build_resource(slug: str, document: Any = Body(...)):
    """
    Build a resource of the kind named by ``slug`` from the request body.
    Returns 400 with the validation details when the input is rejected.
    """
    kind = _resolve(slug)
    result = build(kind, document)
    if not result.success:
        logger.info("POST /%s rejected at stage %s", slug, result.stage.value)
        return JSONResponse(status_code=400, content=result.to_dict())
    return BuildSuccessResponse(data=result.data, warnings=result.warnings)
