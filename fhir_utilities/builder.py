"""
Public entry points: ``build`` and ``describe_schema``.

``build`` never raises. Expected failures (schema violations, rejected
constraints, unknown kinds) become a ``Validation failed`` result with
details; anything unexpected is logged with its traceback and reported as a
generic ``<Kind> creation failed`` result.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from fhir_utilities.config import settings
from fhir_utilities.exceptions import (
    ConstraintViolationError,
    InputValidationError,
    UnknownResourceKindError,
)
from fhir_utilities.etl.pipeline import BuildStage, build_resource_pipeline, stage_reached
from fhir_utilities.resources.registry import get_kind

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Validation failed"


@dataclass
class BuildResult:
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    details: list[str] | None = None
    warnings: list[str] = field(default_factory=list)
    stage: BuildStage = BuildStage.RECEIVED

    def to_dict(self) -> dict[str, Any]:
        """Wire shape: ``{success, data, warnings}`` or ``{success, error, details?}``."""
        if self.success:
            return {"success": True, "data": self.data, "warnings": list(self.warnings)}
        result: dict[str, Any] = {"success": False, "error": self.error}
        if self.details:
            result["details"] = list(self.details)
        return result


def build(kind: str, document: Any, strict: bool | None = None) -> BuildResult:
    """
    Build a finished resource of ``kind`` from a loosely-shaped input document.

    ``kind`` is a resource kind name (``"Claim"``) or its URL slug
    (``"claim"``). ``strict`` overrides ``settings.STRICT_CONSTRAINTS`` for
    this call: when true, soft constraint violations reject the build
    instead of being repaired with a warning.
    """
    try:
        resource_kind = get_kind(kind)
    except UnknownResourceKindError as exc:
        return BuildResult(success=False, error=VALIDATION_FAILED, details=[str(exc)])

    if strict is None:
        strict = settings.STRICT_CONSTRAINTS

    warnings: list[str] = []
    dag = build_resource_pipeline(resource_kind)
    run = dag.run(
        initial_context={
            "kind": resource_kind,
            "document": document,
            "strict": strict,
            "warnings": warnings,
        }
    )
    stage = stage_reached(dag)

    if run.completed:
        return BuildResult(
            success=True,
            data=run.context["resource"],
            warnings=warnings,
            stage=stage,
        )

    failed = run.failed
    exc = failed.exception if failed else None
    if isinstance(exc, (InputValidationError, ConstraintViolationError)):
        logger.info(
            "%s build rejected at stage %s: %s",
            resource_kind.name,
            stage.value,
            "; ".join(exc.details),
        )
        return BuildResult(
            success=False,
            error=VALIDATION_FAILED,
            details=exc.details,
            warnings=warnings,
            stage=stage,
        )

    logger.error(
        "%s creation failed in task '%s'",
        resource_kind.name,
        failed.name if failed else "?",
        exc_info=exc,
    )
    return BuildResult(
        success=False,
        error=f"{resource_kind.name} creation failed",
        warnings=warnings,
        stage=stage,
    )


def describe_schema(kind: str) -> dict[str, Any]:
    """
    Serializable description of a kind's input schema for form generation.

    Raises UnknownResourceKindError for an unknown kind.
    """
    resource_kind = get_kind(kind)
    schema = copy.deepcopy(resource_kind.schema)
    return {
        "kind": resource_kind.name,
        "slug": resource_kind.slug,
        "profile": resource_kind.profile,
        "required": list(schema.get("required", [])),
        "schema": schema,
    }
