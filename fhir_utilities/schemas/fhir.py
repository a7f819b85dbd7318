"""
Input schemas for Patient and Task, plus the schema lookup for every
resource kind.

Real FHIR schemas are enormous; each schema here declares only the element
set its NRCeS profile needs. Everything else is stripped on validation.
"""

from __future__ import annotations

from typing import Any

from fhir_utilities.schemas.coverage import (
    COVERAGE_ELIGIBILITY_REQUEST_SCHEMA,
    COVERAGE_ELIGIBILITY_RESPONSE_SCHEMA,
    COVERAGE_SCHEMA,
    INSURANCE_PLAN_SCHEMA,
)
from fhir_utilities.schemas.datatypes import (
    ADDRESS,
    ANNOTATION,
    ATTACHMENT,
    BOOLEAN,
    CODEABLE_CONCEPT,
    CONTACT_POINT,
    DATE,
    DATETIME,
    HUMAN_NAME,
    IDENTIFIER,
    INTEGER,
    PERIOD,
    POSITIVE_INT,
    REFERENCE,
    STRING,
    array_of,
    at_least_one,
    at_most_one,
    backbone,
    common_resource_properties,
    enum_of,
    required_as,
    value_slots,
    with_messages,
)
from fhir_utilities.schemas.financial import (
    CLAIM_RESPONSE_SCHEMA,
    CLAIM_SCHEMA,
    PAYMENT_NOTICE_SCHEMA,
    PAYMENT_RECONCILIATION_SCHEMA,
)

REFERENCE_LIST = {"type": "array", "items": REFERENCE}
CONCEPT_LIST = {"type": "array", "items": CODEABLE_CONCEPT}

GENDER = enum_of("male", "female", "other", "unknown")

# ---------------------------------------------------------------------------
# Patient
# ---------------------------------------------------------------------------

PATIENT_CONTACT = backbone(
    {
        "relationship": {"anyOf": [CODEABLE_CONCEPT, CONCEPT_LIST]},
        "name": HUMAN_NAME,
        "telecom": {"type": "array", "items": CONTACT_POINT},
        "address": ADDRESS,
        "gender": GENDER,
        "organization": REFERENCE,
        "period": PERIOD,
    },
    rules=[
        at_least_one(
            "name", "telecom", "address", "organization",
            message=(
                "Contact must contain at least one of: name, telecom, address, "
                "or organization (pat-1 constraint)"
            ),
        )
    ],
)

PATIENT_COMMUNICATION = backbone(
    {
        "language": required_as(CODEABLE_CONCEPT, "Communication language is required"),
        "preferred": {"type": "boolean", "default": False},
    },
    required=["language"],
)

PATIENT_LINK = backbone(
    {
        "other": required_as(REFERENCE, "Link target is required"),
        "type": with_messages(
            enum_of("replaced-by", "replaces", "refer", "seealso"),
            required="Link type is required",
        ),
    },
    required=["other", "type"],
)

PATIENT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Patient",
    "description": "Input accepted for an NRCeS Patient resource.",
    "type": "object",
    "required": ["resourceType", "identifier", "name", "gender", "birthDate"],
    "properties": {
        **common_resource_properties("Patient"),
        "identifier": array_of(
            IDENTIFIER, min_items=1,
            message="At least one identifier is required (NDHM mandatory element)",
        ),
        "active": {"type": "boolean", "default": True},
        "name": array_of(
            HUMAN_NAME, min_items=1,
            message="At least one name is required (NDHM mandatory element)",
        ),
        "telecom": {"type": "array", "items": CONTACT_POINT},
        "gender": with_messages(
            GENDER,
            required="Gender is required (NDHM mandatory element)",
            enum="Gender must be one of: male, female, other, unknown",
        ),
        "birthDate": with_messages(
            DATE,
            required="Birth date is required (NDHM mandatory element)",
            pattern="Birth date must be in ISO format (YYYY-MM-DD)",
        ),
        "deceasedBoolean": BOOLEAN,
        "deceasedDateTime": DATETIME,
        "address": {"type": "array", "items": ADDRESS},
        "maritalStatus": CODEABLE_CONCEPT,
        "multipleBirthBoolean": BOOLEAN,
        "multipleBirthInteger": INTEGER,
        "photo": {"type": "array", "items": ATTACHMENT},
        "contact": {"type": "array", "items": PATIENT_CONTACT},
        "communication": {"type": "array", "items": PATIENT_COMMUNICATION},
        "generalPractitioner": REFERENCE_LIST,
        "managingOrganization": REFERENCE,
        "link": {"type": "array", "items": PATIENT_LINK},
    },
    "allOf": [
        at_most_one(
            "deceasedBoolean", "deceasedDateTime",
            message="Provide either deceasedBoolean or deceasedDateTime, not both",
        ),
        at_most_one(
            "multipleBirthBoolean", "multipleBirthInteger",
            message="Provide either multipleBirthBoolean or multipleBirthInteger, not both",
        ),
    ],
}

# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------

TASK_STATUS = with_messages(
    enum_of(
        "draft", "requested", "received", "accepted", "rejected", "ready",
        "cancelled", "in-progress", "on-hold", "failed", "completed",
        "entered-in-error",
    ),
    required="Status is required",
)

TASK_INTENT = with_messages(
    enum_of(
        "unknown", "proposal", "plan", "order", "original-order", "reflex-order",
        "filler-order", "instance-order", "option",
    ),
    required="Intent is required",
)

TASK_PRIORITY = with_messages(
    enum_of("routine", "urgent", "asap", "stat"),
    enum="Priority must be one of: routine, urgent, asap, stat",
)


def _typed_parameter(label: str) -> dict[str, Any]:
    """Task input/output entry: a type plus exactly one ``value[x]``."""
    slots = value_slots()
    return backbone(
        {
            "type": required_as(CODEABLE_CONCEPT, f"Task {label} type is required"),
            **slots,
        },
        required=["type"],
        rules=[at_least_one(*slots, message=f"Task {label} must carry a value[x]")],
    )


TASK_RESTRICTION = backbone(
    {
        "repetitions": POSITIVE_INT,
        "period": PERIOD,
        "recipient": REFERENCE_LIST,
    }
)

TASK_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Task",
    "description": "Input accepted for an NRCeS Task resource.",
    "type": "object",
    "required": ["resourceType", "status", "intent"],
    "properties": {
        **common_resource_properties("Task"),
        "identifier": {"type": "array", "items": IDENTIFIER},
        "instantiatesCanonical": STRING,
        "instantiatesUri": STRING,
        "basedOn": REFERENCE_LIST,
        "groupIdentifier": IDENTIFIER,
        "partOf": REFERENCE_LIST,
        "status": TASK_STATUS,
        "statusReason": CODEABLE_CONCEPT,
        "businessStatus": CODEABLE_CONCEPT,
        "intent": TASK_INTENT,
        "priority": TASK_PRIORITY,
        "code": CODEABLE_CONCEPT,
        "description": STRING,
        "focus": REFERENCE,
        "for": REFERENCE,
        "encounter": REFERENCE,
        "executionPeriod": PERIOD,
        "authoredOn": DATETIME,
        "lastModified": DATETIME,
        "requester": REFERENCE,
        "performerType": CONCEPT_LIST,
        "owner": REFERENCE,
        "location": REFERENCE,
        "reasonCode": CODEABLE_CONCEPT,
        "reasonReference": REFERENCE,
        "insurance": REFERENCE_LIST,
        "note": {"type": "array", "items": ANNOTATION},
        "relevantHistory": REFERENCE_LIST,
        "restriction": TASK_RESTRICTION,
        "input": {"type": "array", "items": _typed_parameter("input")},
        "output": {"type": "array", "items": _typed_parameter("output")},
    },
}

# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

SCHEMAS: dict[str, dict[str, Any]] = {
    "Claim": CLAIM_SCHEMA,
    "ClaimResponse": CLAIM_RESPONSE_SCHEMA,
    "Coverage": COVERAGE_SCHEMA,
    "CoverageEligibilityRequest": COVERAGE_ELIGIBILITY_REQUEST_SCHEMA,
    "CoverageEligibilityResponse": COVERAGE_ELIGIBILITY_RESPONSE_SCHEMA,
    "InsurancePlan": INSURANCE_PLAN_SCHEMA,
    "Patient": PATIENT_SCHEMA,
    "PaymentNotice": PAYMENT_NOTICE_SCHEMA,
    "PaymentReconciliation": PAYMENT_RECONCILIATION_SCHEMA,
    "Task": TASK_SCHEMA,
}
