"""
Registry of the buildable resource kinds.

A :class:`ResourceKind` ties together everything the generic builder needs for
one kind: its input schema, its field-mapping table, the kind-specific
constraint checks and its profile URL.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from fhir_utilities.config import settings
from fhir_utilities.exceptions import UnknownResourceKindError
from fhir_utilities.resources.administrative import PATIENT_FIELDS, TASK_FIELDS
from fhir_utilities.resources.coverage import (
    COVERAGE_ELIGIBILITY_REQUEST_FIELDS,
    COVERAGE_ELIGIBILITY_RESPONSE_FIELDS,
    COVERAGE_FIELDS,
    INSURANCE_PLAN_FIELDS,
)
from fhir_utilities.resources.financial import (
    CLAIM_FIELDS,
    CLAIM_RESPONSE_FIELDS,
    PAYMENT_NOTICE_FIELDS,
    PAYMENT_RECONCILIATION_FIELDS,
)
from fhir_utilities.resources.mapping import FieldRule
from fhir_utilities.schemas.fhir import SCHEMAS
from fhir_utilities.services.constraints import (
    Check,
    check_identifier_or_name,
    check_single_cost_value,
    check_task_ordering,
)


@dataclass(frozen=True)
class ResourceKind:
    name: str
    slug: str
    fields: Mapping[str, FieldRule]
    checks: tuple[Check, ...] = ()
    # Kinds whose `created` element defaults to the build timestamp.
    created_default: bool = False

    @property
    def schema(self) -> dict[str, Any]:
        return SCHEMAS[self.name]

    @property
    def profile(self) -> str:
        return f"{settings.PROFILE_BASE_URL.rstrip('/')}/{self.name}"


KINDS: dict[str, ResourceKind] = {
    kind.name: kind
    for kind in (
        ResourceKind("Claim", "claim", CLAIM_FIELDS, created_default=True),
        ResourceKind("ClaimResponse", "claim-response", CLAIM_RESPONSE_FIELDS, created_default=True),
        ResourceKind("Coverage", "coverage", COVERAGE_FIELDS, checks=(check_single_cost_value,)),
        ResourceKind(
            "CoverageEligibilityRequest",
            "coverage-eligibility-request",
            COVERAGE_ELIGIBILITY_REQUEST_FIELDS,
            created_default=True,
        ),
        ResourceKind(
            "CoverageEligibilityResponse",
            "coverage-eligibility-response",
            COVERAGE_ELIGIBILITY_RESPONSE_FIELDS,
            created_default=True,
        ),
        ResourceKind(
            "InsurancePlan",
            "insurance-plan",
            INSURANCE_PLAN_FIELDS,
            checks=(check_identifier_or_name,),
        ),
        ResourceKind("Patient", "patient", PATIENT_FIELDS),
        ResourceKind("PaymentNotice", "payment-notice", PAYMENT_NOTICE_FIELDS, created_default=True),
        ResourceKind(
            "PaymentReconciliation",
            "payment-reconciliation",
            PAYMENT_RECONCILIATION_FIELDS,
            created_default=True,
        ),
        ResourceKind("Task", "task", TASK_FIELDS, checks=(check_task_ordering,)),
    )
}

_BY_SLUG = {kind.slug: kind for kind in KINDS.values()}


def supported_kinds() -> list[str]:
    return list(KINDS)


def get_kind(name_or_slug: Any) -> ResourceKind:
    """Look a kind up by name (``"ClaimResponse"``) or slug (``"claim-response"``)."""
    if isinstance(name_or_slug, ResourceKind):
        return name_or_slug
    if isinstance(name_or_slug, str):
        kind = KINDS.get(name_or_slug) or _BY_SLUG.get(name_or_slug.strip().lower())
        if kind is not None:
            return kind
    raise UnknownResourceKindError(str(name_or_slug), supported_kinds())
