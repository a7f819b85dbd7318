"""
Resource build pipeline.

Demonstrates:
- A strict Validate -> Transform -> ConstraintCheck -> Prune -> Finalize chain
- Fail-fast validation (nothing downstream runs on rejected input)
- Table-driven datatype transformation shared by every resource kind
- Identity/provenance envelope and narrative synthesis

Every stage receives the merged context dict and returns the keys it adds.
The initial context carries ``kind`` (a ResourceKind), ``document``,
``strict`` and a shared ``warnings`` list.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fhir_utilities.etl.dag import DAG, TaskStatus
from fhir_utilities.exceptions import InputValidationError
from fhir_utilities.resources.mapping import BuildContext, transform_element
from fhir_utilities.resources.registry import ResourceKind
from fhir_utilities.services.constraints import enforce_constraints
from fhir_utilities.services.datatypes import transform_meta
from fhir_utilities.services.identity import generate_resource_id
from fhir_utilities.services.narrative import generate_narrative
from fhir_utilities.services.pruning import prune_empty
from fhir_utilities.services.validation import validate_input

logger = logging.getLogger(__name__)

ENVELOPE_FIELDS = ("resourceType", "id", "meta", "text")


class BuildStage(str, Enum):
    RECEIVED = "Received"
    VALIDATED = "Validated"
    TRANSFORMED = "Transformed"
    CONSTRAINT_CHECKED = "ConstraintChecked"
    PRUNED = "Pruned"
    FINALIZED = "Finalized"


# ---------------------------------------------------------------------------
# Individual pipeline steps (each receives and returns a context dict)
# ---------------------------------------------------------------------------


def validate(context: dict[str, Any]) -> dict[str, Any]:
    """Validate step – reject the document outright on any schema violation."""
    kind: ResourceKind = context["kind"]
    outcome = validate_input(kind.name, context.get("document"))
    if not outcome.valid:
        raise InputValidationError(outcome.violations)

    logger.info("%s input validated", kind.name)
    return {"validated": outcome.value}


def transform(context: dict[str, Any]) -> dict[str, Any]:
    """Transform step – run every field through its datatype transform."""
    kind: ResourceKind = context["kind"]
    build_context = BuildContext(kind=kind.name)
    resource = transform_element(context["validated"], kind.fields, build_context)

    if kind.created_default and not resource.get("created"):
        resource["created"] = datetime.now(timezone.utc).isoformat(timespec="seconds")

    logger.info(
        "%s transformed (%d top-level elements, %d repair(s))",
        kind.name,
        len(resource),
        len(build_context.repairs),
    )
    return {"resource": resource, "repairs": build_context.repairs}


def check_constraints(context: dict[str, Any]) -> dict[str, Any]:
    """Constraint step – repair or reject according to the active policy."""
    kind: ResourceKind = context["kind"]
    resource = enforce_constraints(
        context["resource"],
        checks=kind.checks,
        strict=bool(context.get("strict")),
        warnings=context.setdefault("warnings", []),
        repairs=context.get("repairs", ()),
    )
    logger.info("%s constraints checked", kind.name)
    return {"resource": resource}


def prune(context: dict[str, Any]) -> dict[str, Any]:
    """Prune step – drop null, empty-string and empty-container branches."""
    return {"resource": prune_empty(context["resource"])}


def finalize(context: dict[str, Any]) -> dict[str, Any]:
    """Finalize step – prepend the identity/provenance envelope and the narrative."""
    kind: ResourceKind = context["kind"]
    body = {k: v for k, v in context["resource"].items() if k not in ENVELOPE_FIELDS}
    resource = {
        "resourceType": kind.name,
        "id": generate_resource_id(kind.name),
        "meta": transform_meta({"profile": [kind.profile]}),
        "text": generate_narrative(kind.name, body),
        **body,
    }
    logger.info("%s/%s built", kind.name, resource["id"])
    return {"resource": resource}


# ---------------------------------------------------------------------------
# Pipeline factory
# ---------------------------------------------------------------------------

STAGES: list[tuple[str, Any, BuildStage]] = [
    ("validate", validate, BuildStage.VALIDATED),
    ("transform", transform, BuildStage.TRANSFORMED),
    ("check_constraints", check_constraints, BuildStage.CONSTRAINT_CHECKED),
    ("prune", prune, BuildStage.PRUNED),
    ("finalize", finalize, BuildStage.FINALIZED),
]


def build_resource_pipeline(kind: ResourceKind) -> DAG:
    """Construct the five-stage build DAG for one resource kind."""
    dag = DAG(f"build_{kind.slug}")
    previous: str | None = None
    for name, step, _ in STAGES:
        dag.add_task(name, step, depends_on=[previous] if previous else None)
        previous = name
    return dag


def stage_reached(dag: DAG) -> BuildStage:
    """The last stage that completed successfully in the DAG's latest run."""
    reached = BuildStage.RECEIVED
    for name, _, stage in STAGES:
        if dag.tasks[name].status != TaskStatus.SUCCESS:
            break
        reached = stage
    return reached
