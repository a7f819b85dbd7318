"""
Input schemas for coverage and eligibility: Coverage,
CoverageEligibilityRequest, CoverageEligibilityResponse and InsurancePlan.
"""

from __future__ import annotations

from typing import Any

from fhir_utilities.schemas.datatypes import (
    ADDRESS,
    BOOLEAN,
    CODEABLE_CONCEPT,
    CONTACT_POINT,
    DATE,
    ELIGIBILITY_PURPOSE,
    HUMAN_NAME,
    IDENTIFIER,
    MONEY,
    NON_EMPTY_STRING,
    PERIOD,
    POSITIVE_INT,
    PUBLICATION_STATUS,
    QUANTITY,
    REFERENCE,
    STRING,
    STRING_LIST,
    UNSIGNED_INT,
    array_of,
    at_least_one,
    at_most_one,
    backbone,
    common_resource_properties,
    exactly_one,
    required_as,
    with_messages,
)
from fhir_utilities.schemas.financial import (
    CREATED,
    OUTCOME_CODE,
    SEQUENCE,
    SEQUENCE_LIST,
    STATUS,
)

CONCEPT_LIST = {"type": "array", "items": CODEABLE_CONCEPT}
REFERENCE_LIST = {"type": "array", "items": REFERENCE}

PURPOSE = array_of(
    with_messages(
        ELIGIBILITY_PURPOSE,
        enum="Purpose must be one of: auth-requirements, benefits, discovery, validation",
    ),
    min_items=1,
    message="At least one purpose is required",
)

# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------

COVERAGE_CLASS = backbone(
    {
        "type": required_as(CODEABLE_CONCEPT, "Coverage class type is required"),
        "value": required_as(NON_EMPTY_STRING, "Coverage class value is required"),
        "name": STRING,
    },
    required=["type", "value"],
)

COVERAGE_EXCEPTION = backbone(
    {
        "type": required_as(CODEABLE_CONCEPT, "Exception type is required"),
        "period": PERIOD,
    },
    required=["type"],
)

COST_TO_BENEFICIARY = backbone(
    {
        "type": CODEABLE_CONCEPT,
        "valueQuantity": QUANTITY,
        "valueMoney": MONEY,
        "exception": {"type": "array", "items": COVERAGE_EXCEPTION},
    },
    rules=[
        exactly_one(
            "valueQuantity", "valueMoney",
            message="Cost to beneficiary must have exactly one of valueQuantity or valueMoney",
        )
    ],
)

COVERAGE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Coverage",
    "description": "Input accepted for an NRCeS Coverage resource.",
    "type": "object",
    "required": ["resourceType", "status", "beneficiary", "payor"],
    "properties": {
        **common_resource_properties("Coverage"),
        "identifier": {"type": "array", "items": IDENTIFIER},
        "status": STATUS,
        "type": CODEABLE_CONCEPT,
        "policyHolder": REFERENCE,
        "subscriber": REFERENCE,
        "subscriberId": STRING,
        "beneficiary": required_as(REFERENCE, "Beneficiary is required according to NDHM profile"),
        "dependent": STRING,
        "relationship": CODEABLE_CONCEPT,
        "period": PERIOD,
        "payor": array_of(
            REFERENCE, min_items=1,
            message="At least one payor is required according to NDHM profile",
        ),
        "class": {"type": "array", "items": COVERAGE_CLASS},
        "order": POSITIVE_INT,
        "network": STRING,
        "costToBeneficiary": {"type": "array", "items": COST_TO_BENEFICIARY},
        "subrogation": BOOLEAN,
        "contract": REFERENCE_LIST,
    },
}

# ---------------------------------------------------------------------------
# CoverageEligibilityRequest
# ---------------------------------------------------------------------------

ELIGIBILITY_SUPPORTING_INFO = backbone(
    {
        "sequence": with_messages(SEQUENCE, required="Supporting info sequence is required"),
        "information": required_as(REFERENCE, "Supporting info reference is required"),
        "appliesToAll": BOOLEAN,
    },
    required=["sequence", "information"],
)

ELIGIBILITY_REQUEST_INSURANCE = backbone(
    {
        "focal": BOOLEAN,
        "coverage": required_as(REFERENCE, "Insurance coverage reference is required"),
        "businessArrangement": STRING,
    },
    required=["coverage"],
)

ELIGIBILITY_DIAGNOSIS = backbone(
    {"diagnosisCodeableConcept": CODEABLE_CONCEPT, "diagnosisReference": REFERENCE},
    rules=[
        at_most_one(
            "diagnosisCodeableConcept", "diagnosisReference",
            message="Provide either diagnosisCodeableConcept or diagnosisReference, not both",
        )
    ],
)

ELIGIBILITY_REQUEST_ITEM = backbone(
    {
        "supportingInfoSequence": SEQUENCE_LIST,
        "category": CODEABLE_CONCEPT,
        "productOrService": required_as(CODEABLE_CONCEPT, "Product or service is required for item"),
        "modifier": CONCEPT_LIST,
        "provider": REFERENCE,
        "quantity": QUANTITY,
        "unitPrice": MONEY,
        "facility": REFERENCE,
        "diagnosis": {"type": "array", "items": ELIGIBILITY_DIAGNOSIS},
        "detail": REFERENCE_LIST,
    },
    required=["productOrService"],
)

COVERAGE_ELIGIBILITY_REQUEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "CoverageEligibilityRequest",
    "description": "Input accepted for an NRCeS CoverageEligibilityRequest resource.",
    "type": "object",
    "required": [
        "resourceType", "identifier", "status", "priority", "purpose", "patient",
        "enterer", "provider", "insurer", "facility", "insurance",
    ],
    "properties": {
        **common_resource_properties("CoverageEligibilityRequest"),
        "identifier": required_as(IDENTIFIER, "Identifier is required"),
        "status": STATUS,
        "priority": required_as(CODEABLE_CONCEPT, "Priority is required"),
        "purpose": PURPOSE,
        "patient": required_as(REFERENCE, "Patient reference is required"),
        "servicedDate": DATE,
        "servicedPeriod": PERIOD,
        "created": CREATED,
        "enterer": required_as(REFERENCE, "Enterer reference is required"),
        "provider": required_as(REFERENCE, "Provider reference is required"),
        "insurer": required_as(REFERENCE, "Insurer reference is required"),
        "facility": required_as(REFERENCE, "Facility reference is required"),
        "supportingInfo": {"type": "array", "items": ELIGIBILITY_SUPPORTING_INFO},
        "insurance": array_of(
            ELIGIBILITY_REQUEST_INSURANCE, min_items=1,
            message="At least one insurance is required",
        ),
        "item": {"type": "array", "items": ELIGIBILITY_REQUEST_ITEM},
    },
    "allOf": [
        exactly_one(
            "servicedDate", "servicedPeriod",
            message="Provide either servicedDate or servicedPeriod, not both",
        )
    ],
}

# ---------------------------------------------------------------------------
# CoverageEligibilityResponse
# ---------------------------------------------------------------------------

ELIGIBILITY_BENEFIT = backbone(
    {
        "type": required_as(CODEABLE_CONCEPT, "Benefit type is required"),
        "allowedUnsignedInt": UNSIGNED_INT,
        "allowedString": STRING,
        "allowedMoney": MONEY,
        "usedUnsignedInt": UNSIGNED_INT,
        "usedString": STRING,
        "usedMoney": MONEY,
    },
    required=["type"],
    rules=[
        at_most_one(
            "allowedUnsignedInt", "allowedString", "allowedMoney",
            message="Benefit carries at most one allowed[x]",
        ),
        at_most_one(
            "usedUnsignedInt", "usedString", "usedMoney",
            message="Benefit carries at most one used[x]",
        ),
    ],
)

ELIGIBILITY_RESPONSE_ITEM = backbone(
    {
        "category": CODEABLE_CONCEPT,
        "productOrService": required_as(CODEABLE_CONCEPT, "Product or service is required for item"),
        "modifier": CONCEPT_LIST,
        "provider": REFERENCE,
        "excluded": BOOLEAN,
        "name": STRING,
        "description": STRING,
        "network": CODEABLE_CONCEPT,
        "unit": CODEABLE_CONCEPT,
        "term": CODEABLE_CONCEPT,
        "benefit": {"type": "array", "items": ELIGIBILITY_BENEFIT},
        "authorizationRequired": BOOLEAN,
        "authorizationSupporting": CONCEPT_LIST,
        "authorizationUrl": STRING,
    },
    required=["productOrService"],
)

ELIGIBILITY_RESPONSE_INSURANCE = backbone(
    {
        "coverage": required_as(REFERENCE, "Insurance coverage reference is required"),
        "inforce": BOOLEAN,
        "benefitPeriod": PERIOD,
        "item": {"type": "array", "items": ELIGIBILITY_RESPONSE_ITEM},
    },
    required=["coverage"],
)

ELIGIBILITY_ERROR = backbone(
    {"code": required_as(CODEABLE_CONCEPT, "Error code is required")},
    required=["code"],
)

COVERAGE_ELIGIBILITY_RESPONSE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "CoverageEligibilityResponse",
    "description": "Input accepted for an NRCeS CoverageEligibilityResponse resource.",
    "type": "object",
    "required": [
        "resourceType", "status", "purpose", "patient", "requestor", "request",
        "outcome", "insurer",
    ],
    "properties": {
        **common_resource_properties("CoverageEligibilityResponse"),
        "identifier": {"type": "array", "items": IDENTIFIER},
        "status": STATUS,
        "purpose": PURPOSE,
        "patient": required_as(REFERENCE, "Patient reference is required"),
        "servicedDate": DATE,
        "servicedPeriod": PERIOD,
        "created": CREATED,
        "requestor": required_as(REFERENCE, "Requestor reference is required"),
        "request": required_as(REFERENCE, "Request reference is required"),
        "outcome": OUTCOME_CODE,
        "disposition": STRING,
        "insurer": required_as(REFERENCE, "Insurer reference is required"),
        "insurance": {"type": "array", "items": ELIGIBILITY_RESPONSE_INSURANCE},
        "preAuthRef": STRING,
        "form": CODEABLE_CONCEPT,
        "error": {"type": "array", "items": ELIGIBILITY_ERROR},
    },
    "allOf": [
        at_most_one(
            "servicedDate", "servicedPeriod",
            message="Provide either servicedDate or servicedPeriod, not both",
        )
    ],
}

# ---------------------------------------------------------------------------
# InsurancePlan
# ---------------------------------------------------------------------------

PLAN_CONTACT = backbone(
    {
        "purpose": CODEABLE_CONCEPT,
        "name": HUMAN_NAME,
        "telecom": {"type": "array", "items": CONTACT_POINT},
        "address": ADDRESS,
    }
)

PLAN_COVERAGE_BENEFIT = backbone(
    {"type": required_as(CODEABLE_CONCEPT, "Benefit type is required")},
    required=["type"],
)

PLAN_COVERAGE = backbone(
    {
        "type": required_as(CODEABLE_CONCEPT, "Coverage type is required"),
        "network": REFERENCE_LIST,
        "benefit": array_of(
            PLAN_COVERAGE_BENEFIT, min_items=1,
            message="At least one benefit is required for coverage",
        ),
    },
    required=["type", "benefit"],
)

PLAN_GENERAL_COST = backbone(
    {
        "type": CODEABLE_CONCEPT,
        "groupSize": POSITIVE_INT,
        "cost": MONEY,
        "comment": STRING,
    }
)

PLAN_BENEFIT_COST = backbone(
    {
        "type": required_as(CODEABLE_CONCEPT, "Cost type is required"),
        "applicability": CODEABLE_CONCEPT,
        "qualifiers": CONCEPT_LIST,
        "value": QUANTITY,
    },
    required=["type"],
)

PLAN_SPECIFIC_BENEFIT = backbone(
    {
        "type": required_as(CODEABLE_CONCEPT, "Benefit type is required"),
        "cost": {"type": "array", "items": PLAN_BENEFIT_COST},
    },
    required=["type"],
)

PLAN_SPECIFIC_COST = backbone(
    {
        "category": required_as(CODEABLE_CONCEPT, "Specific cost category is required"),
        "benefit": {"type": "array", "items": PLAN_SPECIFIC_BENEFIT},
    },
    required=["category"],
)

PLAN = backbone(
    {
        "identifier": {"type": "array", "items": IDENTIFIER},
        "type": required_as(CODEABLE_CONCEPT, "Plan type is required"),
        "coverageArea": REFERENCE_LIST,
        "network": REFERENCE_LIST,
        "generalCost": {"type": "array", "items": PLAN_GENERAL_COST},
        "specificCost": {"type": "array", "items": PLAN_SPECIFIC_COST},
    },
    required=["type"],
)

IDENTIFIER_OR_NAME = "InsurancePlan must have at least one identifier or name (ipn-1 constraint)"

INSURANCE_PLAN_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "InsurancePlan",
    "description": "Input accepted for an NRCeS InsurancePlan resource.",
    "type": "object",
    "required": ["resourceType", "status", "type", "period", "ownedBy", "coverage"],
    "properties": {
        **common_resource_properties("InsurancePlan"),
        "identifier": {
            "type": "array",
            "items": IDENTIFIER,
            "minItems": 1,
            "maxItems": 1,
            "messages": {
                "minItems": IDENTIFIER_OR_NAME,
                "maxItems": "Only one identifier is allowed according to NDHM profile",
            },
        },
        "status": with_messages(
            PUBLICATION_STATUS,
            required="Status is required according to NDHM profile",
            enum="Status must be one of: draft, active, retired, unknown",
        ),
        "type": with_messages(
            {"anyOf": [CODEABLE_CONCEPT, {"type": "array", "items": CODEABLE_CONCEPT, "minItems": 1}]},
            required="Type is required according to NDHM profile",
            anyOf="Type must be a CodeableConcept or a non-empty list of them",
        ),
        "name": NON_EMPTY_STRING,
        "alias": STRING_LIST,
        "period": required_as(PERIOD, "Period is required according to NDHM profile"),
        "ownedBy": required_as(REFERENCE, "OwnedBy is required according to NDHM profile"),
        "administeredBy": REFERENCE,
        "coverageArea": REFERENCE_LIST,
        "contact": {"type": "array", "items": PLAN_CONTACT},
        "endpoint": REFERENCE_LIST,
        "network": REFERENCE_LIST,
        "coverage": array_of(
            PLAN_COVERAGE, min_items=1,
            message="At least one coverage is required according to NDHM profile",
        ),
        "plan": {"type": "array", "items": PLAN},
    },
    "allOf": [at_least_one("identifier", "name", message=IDENTIFIER_OR_NAME)],
}
