"""
Input schemas for the financial resource kinds: Claim, ClaimResponse,
PaymentNotice and PaymentReconciliation.
"""

from __future__ import annotations

from typing import Any

from fhir_utilities.schemas.datatypes import (
    ADDRESS,
    ATTACHMENT,
    BOOLEAN,
    CLAIM_USE,
    CODEABLE_CONCEPT,
    DATE,
    DATETIME,
    FINANCIAL_STATUS,
    IDENTIFIER,
    LANGUAGE,
    MONEY,
    NUMBER,
    OUTCOME,
    PERIOD,
    POSITIVE_INT,
    QUANTITY,
    REFERENCE,
    STRING,
    STRING_LIST,
    array_of,
    at_most_one,
    backbone,
    common_resource_properties,
    enum_of,
    exactly_one,
    required_as,
    with_messages,
)

STATUS = with_messages(
    FINANCIAL_STATUS,
    required="Status is required",
    enum="Status must be one of: active, cancelled, draft, entered-in-error",
)
USE = with_messages(
    CLAIM_USE,
    required="Use is required",
    enum="Use must be one of: claim, preauthorization, predetermination",
)
OUTCOME_CODE = with_messages(
    OUTCOME,
    required="Outcome is required",
    enum="Outcome must be one of: queued, complete, error, partial",
)
CREATED = with_messages(DATETIME, pattern="Created date must be in ISO format")

SEQUENCE = with_messages(POSITIVE_INT, required="Sequence is required", minimum="Sequence must be a positive integer")
SEQUENCE_LIST = {"type": "array", "items": POSITIVE_INT}
CONCEPT_LIST = {"type": "array", "items": CODEABLE_CONCEPT}
REFERENCE_LIST = {"type": "array", "items": REFERENCE}

NOTE_TYPE = with_messages(
    enum_of("display", "print", "printoper"),
    enum="Note type must be one of: display, print, printoper",
)

# ---------------------------------------------------------------------------
# Claim
# ---------------------------------------------------------------------------

_CLAIM_LINE: dict[str, Any] = {
    "sequence": SEQUENCE,
    "revenue": CODEABLE_CONCEPT,
    "category": CODEABLE_CONCEPT,
    "productOrService": required_as(CODEABLE_CONCEPT, "Product or service is required"),
    "modifier": CONCEPT_LIST,
    "programCode": CONCEPT_LIST,
    "quantity": QUANTITY,
    "unitPrice": MONEY,
    "factor": NUMBER,
    "net": MONEY,
    "udi": REFERENCE_LIST,
}

CLAIM_SUB_DETAIL = backbone(_CLAIM_LINE, required=["sequence", "productOrService"])

CLAIM_DETAIL = backbone(
    {**_CLAIM_LINE, "subDetail": {"type": "array", "items": CLAIM_SUB_DETAIL}},
    required=["sequence", "productOrService"],
)

CLAIM_ITEM = backbone(
    {
        "sequence": SEQUENCE,
        "careTeamSequence": SEQUENCE_LIST,
        "diagnosisSequence": SEQUENCE_LIST,
        "procedureSequence": SEQUENCE_LIST,
        "informationSequence": SEQUENCE_LIST,
        "revenue": CODEABLE_CONCEPT,
        "category": CODEABLE_CONCEPT,
        "productOrService": required_as(CODEABLE_CONCEPT, "Product or service is required"),
        "modifier": CONCEPT_LIST,
        "programCode": CONCEPT_LIST,
        "servicedDate": DATE,
        "servicedPeriod": PERIOD,
        "locationCodeableConcept": CODEABLE_CONCEPT,
        "locationAddress": ADDRESS,
        "locationReference": REFERENCE,
        "quantity": QUANTITY,
        "unitPrice": MONEY,
        "factor": NUMBER,
        "net": MONEY,
        "udi": REFERENCE_LIST,
        "bodySite": CODEABLE_CONCEPT,
        "subSite": CONCEPT_LIST,
        "encounter": REFERENCE_LIST,
        "detail": {"type": "array", "items": CLAIM_DETAIL},
    },
    required=["sequence", "productOrService"],
    rules=[
        at_most_one(
            "servicedDate", "servicedPeriod",
            message="Provide either servicedDate or servicedPeriod, not both",
        ),
        at_most_one(
            "locationCodeableConcept", "locationAddress", "locationReference",
            message="Provide at most one of locationCodeableConcept, locationAddress or locationReference",
        ),
    ],
)

CLAIM_SUPPORTING_INFO = backbone(
    {
        "sequence": SEQUENCE,
        "category": required_as(CODEABLE_CONCEPT, "Supporting info category is required"),
        "code": CODEABLE_CONCEPT,
        "timingDate": DATE,
        "timingPeriod": PERIOD,
        "valueBoolean": BOOLEAN,
        "valueString": STRING,
        "valueQuantity": QUANTITY,
        "valueAttachment": ATTACHMENT,
        "valueReference": REFERENCE,
        "reason": CODEABLE_CONCEPT,
    },
    required=["sequence", "category"],
    rules=[
        at_most_one("timingDate", "timingPeriod", message="Provide either timingDate or timingPeriod, not both"),
        at_most_one(
            "valueBoolean", "valueString", "valueQuantity", "valueAttachment", "valueReference",
            message="Supporting info carries at most one value[x]",
        ),
    ],
)

CLAIM_DIAGNOSIS = backbone(
    {
        "sequence": SEQUENCE,
        "diagnosisCodeableConcept": CODEABLE_CONCEPT,
        "diagnosisReference": REFERENCE,
        "type": array_of(CODEABLE_CONCEPT, min_items=1, message="Diagnosis type is required"),
        "onAdmission": CODEABLE_CONCEPT,
        "packageCode": CODEABLE_CONCEPT,
    },
    required=["sequence", "type"],
    rules=[
        at_most_one(
            "diagnosisCodeableConcept", "diagnosisReference",
            message="Provide either diagnosisCodeableConcept or diagnosisReference, not both",
        )
    ],
)

CLAIM_PROCEDURE = backbone(
    {
        "sequence": SEQUENCE,
        "type": CONCEPT_LIST,
        "date": DATETIME,
        "procedureCodeableConcept": CODEABLE_CONCEPT,
        "procedureReference": REFERENCE,
        "udi": REFERENCE_LIST,
    },
    required=["sequence"],
)

CLAIM_INSURANCE = backbone(
    {
        "sequence": SEQUENCE,
        "focal": required_as(BOOLEAN, "Focal indicator is required"),
        "identifier": IDENTIFIER,
        "coverage": required_as(REFERENCE, "Insurance coverage reference is required"),
        "businessArrangement": STRING,
        "preAuthRef": STRING_LIST,
        "claimResponse": REFERENCE,
    },
    required=["sequence", "focal", "coverage"],
)

CLAIM_ACCIDENT = backbone(
    {
        "date": required_as(DATE, "Accident date is required"),
        "type": CODEABLE_CONCEPT,
        "locationAddress": ADDRESS,
        "locationReference": REFERENCE,
    },
    required=["date"],
)

CLAIM_CARE_TEAM = backbone(
    {
        "sequence": SEQUENCE,
        "provider": required_as(REFERENCE, "Care team provider is required"),
        "responsible": BOOLEAN,
        "role": CODEABLE_CONCEPT,
        "qualification": CODEABLE_CONCEPT,
    },
    required=["sequence", "provider"],
)

CLAIM_PAYEE = backbone(
    {"type": required_as(CODEABLE_CONCEPT, "Payee type is required"), "party": REFERENCE},
    required=["type"],
)

CLAIM_RELATED = backbone(
    {"claim": REFERENCE, "relationship": CODEABLE_CONCEPT, "reference": IDENTIFIER}
)

CLAIM_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Claim",
    "description": "Input accepted for an NRCeS Claim resource.",
    "type": "object",
    "required": [
        "resourceType", "identifier", "status", "type", "use", "patient",
        "insurer", "provider", "priority", "diagnosis", "insurance", "item",
    ],
    "properties": {
        **common_resource_properties("Claim"),
        "identifier": array_of(
            IDENTIFIER, min_items=1,
            message="At least one identifier is required (NDHM mandatory element)",
        ),
        "status": STATUS,
        "type": required_as(CODEABLE_CONCEPT, "Type is required (NDHM mandatory element)"),
        "subType": CODEABLE_CONCEPT,
        "use": USE,
        "patient": required_as(REFERENCE, "Patient is required (NDHM mandatory element)"),
        "billablePeriod": PERIOD,
        "created": CREATED,
        "enterer": REFERENCE,
        "insurer": required_as(REFERENCE, "Insurer is required (NDHM mandatory element)"),
        "provider": required_as(REFERENCE, "Provider is required (NDHM mandatory element)"),
        "priority": required_as(CODEABLE_CONCEPT, "Priority is required (NDHM mandatory element)"),
        "fundsReserve": CODEABLE_CONCEPT,
        "related": {"type": "array", "items": CLAIM_RELATED},
        "prescription": REFERENCE,
        "originalPrescription": REFERENCE,
        "payee": CLAIM_PAYEE,
        "referral": REFERENCE,
        "facility": REFERENCE,
        "careTeam": {"type": "array", "items": CLAIM_CARE_TEAM},
        "supportingInfo": {"type": "array", "items": CLAIM_SUPPORTING_INFO},
        "diagnosis": array_of(
            CLAIM_DIAGNOSIS, min_items=1,
            message="At least one diagnosis is required (NDHM mandatory element)",
        ),
        "procedure": {"type": "array", "items": CLAIM_PROCEDURE},
        "insurance": array_of(
            CLAIM_INSURANCE, min_items=1,
            message="At least one insurance is required (NDHM mandatory element)",
        ),
        "accident": CLAIM_ACCIDENT,
        "item": array_of(
            CLAIM_ITEM, min_items=1,
            message="At least one item is required (NDHM mandatory element)",
        ),
        "total": MONEY,
    },
}

# ---------------------------------------------------------------------------
# ClaimResponse
# ---------------------------------------------------------------------------

ADJUDICATION = backbone(
    {
        "category": required_as(CODEABLE_CONCEPT, "Adjudication category is required"),
        "reason": CODEABLE_CONCEPT,
        "amount": MONEY,
        "value": NUMBER,
    },
    required=["category"],
)


def _adjudications(where: str) -> dict[str, Any]:
    return array_of(
        ADJUDICATION, min_items=1,
        message=f"At least one adjudication is required for {where}",
    )


CLAIM_RESPONSE_SUB_DETAIL = backbone(
    {
        "subDetailSequence": required_as(POSITIVE_INT, "Sub-detail sequence is required"),
        "noteNumber": SEQUENCE_LIST,
        "adjudication": {"type": "array", "items": ADJUDICATION},
    },
    required=["subDetailSequence"],
)

CLAIM_RESPONSE_DETAIL = backbone(
    {
        "detailSequence": required_as(POSITIVE_INT, "Detail sequence is required"),
        "noteNumber": SEQUENCE_LIST,
        "adjudication": _adjudications("detail"),
        "subDetail": {"type": "array", "items": CLAIM_RESPONSE_SUB_DETAIL},
    },
    required=["detailSequence", "adjudication"],
)

CLAIM_RESPONSE_ITEM = backbone(
    {
        "itemSequence": required_as(POSITIVE_INT, "Item sequence is required"),
        "noteNumber": SEQUENCE_LIST,
        "adjudication": _adjudications("item"),
        "detail": {"type": "array", "items": CLAIM_RESPONSE_DETAIL},
    },
    required=["itemSequence", "adjudication"],
)

_ADD_ITEM_LINE: dict[str, Any] = {
    "productOrService": CODEABLE_CONCEPT,
    "modifier": CONCEPT_LIST,
    "quantity": QUANTITY,
    "unitPrice": MONEY,
    "factor": NUMBER,
    "net": MONEY,
    "noteNumber": SEQUENCE_LIST,
}

ADD_ITEM_SUB_DETAIL = backbone(
    {
        **_ADD_ITEM_LINE,
        "productOrService": required_as(
            CODEABLE_CONCEPT, "Product or service is required for add item sub-detail"
        ),
        "adjudication": _adjudications("add item sub-detail"),
    },
    required=["productOrService", "adjudication"],
)

ADD_ITEM_DETAIL = backbone(
    {
        **_ADD_ITEM_LINE,
        "productOrService": required_as(
            CODEABLE_CONCEPT, "Product or service is required for add item detail"
        ),
        "adjudication": _adjudications("add item detail"),
        "subDetail": {"type": "array", "items": ADD_ITEM_SUB_DETAIL},
    },
    required=["productOrService", "adjudication"],
)

ADD_ITEM = backbone(
    {
        "itemSequence": SEQUENCE_LIST,
        "detailSequence": SEQUENCE_LIST,
        "subdetailSequence": SEQUENCE_LIST,
        "provider": REFERENCE_LIST,
        "productOrService": required_as(
            CODEABLE_CONCEPT, "Product or service is required for add item"
        ),
        "modifier": CONCEPT_LIST,
        "programCode": CONCEPT_LIST,
        "servicedDate": DATE,
        "servicedPeriod": PERIOD,
        "locationCodeableConcept": CODEABLE_CONCEPT,
        "locationAddress": ADDRESS,
        "locationReference": REFERENCE,
        "quantity": QUANTITY,
        "unitPrice": MONEY,
        "factor": NUMBER,
        "net": MONEY,
        "bodySite": CODEABLE_CONCEPT,
        "subSite": CONCEPT_LIST,
        "noteNumber": SEQUENCE_LIST,
        "adjudication": _adjudications("add item"),
        "detail": {"type": "array", "items": ADD_ITEM_DETAIL},
    },
    required=["productOrService", "adjudication"],
    rules=[
        exactly_one(
            "servicedDate", "servicedPeriod",
            message="Provide either servicedDate or servicedPeriod, not both",
        ),
        at_most_one(
            "locationCodeableConcept", "locationAddress", "locationReference",
            message="Provide at most one of locationCodeableConcept, locationAddress or locationReference",
        ),
    ],
)

CLAIM_RESPONSE_TOTAL = backbone(
    {
        "category": required_as(CODEABLE_CONCEPT, "Total category is required"),
        "amount": required_as(MONEY, "Total amount is required"),
    },
    required=["category", "amount"],
)

CLAIM_RESPONSE_PAYMENT = backbone(
    {
        "type": required_as(CODEABLE_CONCEPT, "Payment type is required"),
        "adjustment": MONEY,
        "adjustmentReason": CODEABLE_CONCEPT,
        "date": DATE,
        "amount": required_as(MONEY, "Payment amount is required"),
        "identifier": IDENTIFIER,
    },
    required=["type", "amount"],
)

CLAIM_RESPONSE_PROCESS_NOTE = backbone(
    {
        "number": POSITIVE_INT,
        "type": NOTE_TYPE,
        "text": required_as({"type": "string", "minLength": 1}, "Note text is required"),
        "language": {"anyOf": [LANGUAGE, {"type": "object"}]},
    },
    required=["text"],
)

CLAIM_RESPONSE_INSURANCE = backbone(
    {
        "sequence": SEQUENCE,
        "focal": required_as(BOOLEAN, "Focal indicator is required"),
        "coverage": required_as(REFERENCE, "Insurance coverage reference is required"),
        "businessArrangement": STRING,
        "claimResponse": REFERENCE,
    },
    required=["sequence", "focal", "coverage"],
)

CLAIM_RESPONSE_ERROR = backbone(
    {
        "itemSequence": POSITIVE_INT,
        "detailSequence": POSITIVE_INT,
        "subDetailSequence": POSITIVE_INT,
        "code": required_as(CODEABLE_CONCEPT, "Error code is required"),
    },
    required=["code"],
)

CLAIM_RESPONSE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "ClaimResponse",
    "description": "Input accepted for an NRCeS ClaimResponse resource.",
    "type": "object",
    "required": ["resourceType", "status", "type", "use", "patient", "insurer", "outcome"],
    "properties": {
        **common_resource_properties("ClaimResponse"),
        "identifier": {"type": "array", "items": IDENTIFIER},
        "status": STATUS,
        "type": required_as(CODEABLE_CONCEPT, "Type is required"),
        "subType": CODEABLE_CONCEPT,
        "use": USE,
        "patient": required_as(REFERENCE, "Patient reference is required"),
        "created": CREATED,
        "insurer": required_as(REFERENCE, "Insurer reference is required"),
        "requestor": REFERENCE,
        "request": REFERENCE,
        "outcome": OUTCOME_CODE,
        "disposition": STRING,
        "preAuthRef": STRING,
        "preAuthPeriod": PERIOD,
        "payeeType": CODEABLE_CONCEPT,
        "item": {"type": "array", "items": CLAIM_RESPONSE_ITEM},
        "addItem": {"type": "array", "items": ADD_ITEM},
        "adjudication": {"type": "array", "items": ADJUDICATION},
        "total": {"type": "array", "items": CLAIM_RESPONSE_TOTAL},
        "payment": CLAIM_RESPONSE_PAYMENT,
        "fundsReserve": CODEABLE_CONCEPT,
        "formCode": CODEABLE_CONCEPT,
        "form": ATTACHMENT,
        "processNote": {"type": "array", "items": CLAIM_RESPONSE_PROCESS_NOTE},
        "communicationRequest": REFERENCE_LIST,
        "insurance": {"type": "array", "items": CLAIM_RESPONSE_INSURANCE},
        "error": {"type": "array", "items": CLAIM_RESPONSE_ERROR},
    },
}

# ---------------------------------------------------------------------------
# PaymentNotice
# ---------------------------------------------------------------------------

PAYMENT_NOTICE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "PaymentNotice",
    "description": "Input accepted for an NRCeS PaymentNotice resource.",
    "type": "object",
    "required": ["resourceType", "status", "payment", "recipient", "amount"],
    "properties": {
        **common_resource_properties("PaymentNotice"),
        "identifier": {"type": "array", "items": IDENTIFIER},
        "status": STATUS,
        "request": REFERENCE,
        "response": REFERENCE,
        "created": CREATED,
        "provider": REFERENCE,
        "payment": required_as(REFERENCE, "Payment reference is required"),
        "paymentDate": DATE,
        "payee": REFERENCE,
        "recipient": required_as(REFERENCE, "Recipient reference is required"),
        "amount": required_as(MONEY, "Amount is required"),
        "paymentStatus": CODEABLE_CONCEPT,
    },
}

# ---------------------------------------------------------------------------
# PaymentReconciliation
# ---------------------------------------------------------------------------

RECONCILIATION_DETAIL = backbone(
    {
        "identifier": IDENTIFIER,
        "predecessor": IDENTIFIER,
        "type": required_as(CODEABLE_CONCEPT, "Detail type is required"),
        "request": REFERENCE,
        "submitter": REFERENCE,
        "response": REFERENCE,
        "date": DATE,
        "responsible": REFERENCE,
        "payee": REFERENCE,
        "amount": MONEY,
    },
    required=["type"],
)

RECONCILIATION_PROCESS_NOTE = backbone({"type": NOTE_TYPE, "text": STRING})

PAYMENT_RECONCILIATION_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "PaymentReconciliation",
    "description": "Input accepted for an NRCeS PaymentReconciliation resource.",
    "type": "object",
    "required": ["resourceType", "status", "paymentDate", "paymentAmount"],
    "properties": {
        **common_resource_properties("PaymentReconciliation"),
        "identifier": {"type": "array", "items": IDENTIFIER},
        "status": STATUS,
        "period": PERIOD,
        "created": CREATED,
        "paymentIssuer": REFERENCE,
        "request": REFERENCE,
        "requestor": REFERENCE,
        "outcome": with_messages(OUTCOME, enum="Outcome must be one of: queued, complete, error, partial"),
        "disposition": STRING,
        "paymentDate": required_as(DATE, "Payment date is required"),
        "paymentAmount": required_as(MONEY, "Payment amount is required"),
        "paymentIdentifier": IDENTIFIER,
        "detail": {"type": "array", "items": RECONCILIATION_DETAIL},
        "formCode": CODEABLE_CONCEPT,
        "processNote": {"type": "array", "items": RECONCILIATION_PROCESS_NOTE},
    },
}
