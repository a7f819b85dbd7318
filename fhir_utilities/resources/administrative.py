"""Field-mapping tables for Patient and Task."""

from __future__ import annotations

from fhir_utilities.resources.mapping import (
    ADDRESS,
    ANNOTATION,
    ATTACHMENT,
    CONCEPT,
    CONTACT_POINT,
    DATE,
    HUMAN_NAME,
    IDENTIFIER,
    PERIOD,
    REFERENCE,
    FieldRule,
    backbone,
)
from fhir_utilities.services import datatypes as dt

PATIENT_FIELDS = {
    "identifier": IDENTIFIER,
    "name": HUMAN_NAME,
    "telecom": CONTACT_POINT,
    "birthDate": DATE,
    "address": ADDRESS,
    "maritalStatus": CONCEPT,
    "photo": ATTACHMENT,
    "contact": backbone(
        relationship=FieldRule(dt.transform_codeable_concept, as_list=True),
        name=HUMAN_NAME,
        telecom=CONTACT_POINT,
        address=ADDRESS,
        organization=REFERENCE,
        period=PERIOD,
    ),
    "communication": backbone(language=CONCEPT),
    "generalPractitioner": REFERENCE,
    "managingOrganization": REFERENCE,
    "link": backbone(other=REFERENCE),
}

TASK_FIELDS = {
    "identifier": IDENTIFIER,
    "basedOn": REFERENCE,
    "groupIdentifier": IDENTIFIER,
    "partOf": REFERENCE,
    "statusReason": CONCEPT,
    "businessStatus": CONCEPT,
    "code": CONCEPT,
    "focus": REFERENCE,
    "for": REFERENCE,
    "encounter": REFERENCE,
    "executionPeriod": PERIOD,
    "requester": REFERENCE,
    "performerType": CONCEPT,
    "owner": REFERENCE,
    "location": REFERENCE,
    "reasonCode": CONCEPT,
    "reasonReference": REFERENCE,
    "insurance": REFERENCE,
    "note": ANNOTATION,
    "relevantHistory": REFERENCE,
    "restriction": backbone(period=PERIOD, recipient=REFERENCE),
    "input": backbone(typed_value="value", type=CONCEPT),
    "output": backbone(typed_value="value", type=CONCEPT),
}
