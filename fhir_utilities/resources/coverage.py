"""Field-mapping tables for Coverage, eligibility and InsurancePlan."""

from __future__ import annotations

from fhir_utilities.resources.mapping import (
    ADDRESS,
    CONCEPT,
    CONTACT_POINT,
    DATE,
    HUMAN_NAME,
    IDENTIFIER,
    MONEY,
    PERIOD,
    QUANTITY,
    REFERENCE,
    FieldRule,
    backbone,
)
from fhir_utilities.services import datatypes as dt

COVERAGE_FIELDS = {
    "identifier": IDENTIFIER,
    "type": CONCEPT,
    "policyHolder": REFERENCE,
    "subscriber": REFERENCE,
    "beneficiary": REFERENCE,
    "relationship": CONCEPT,
    "period": PERIOD,
    "payor": REFERENCE,
    "class": backbone(type=CONCEPT),
    "costToBeneficiary": backbone(
        type=CONCEPT,
        valueQuantity=QUANTITY,
        valueMoney=MONEY,
        exception=backbone(type=CONCEPT, period=PERIOD),
    ),
    "contract": REFERENCE,
}

COVERAGE_ELIGIBILITY_REQUEST_FIELDS = {
    "identifier": IDENTIFIER,
    "priority": CONCEPT,
    "patient": REFERENCE,
    "servicedDate": DATE,
    "servicedPeriod": PERIOD,
    "enterer": REFERENCE,
    "provider": REFERENCE,
    "insurer": REFERENCE,
    "facility": REFERENCE,
    "supportingInfo": backbone(information=REFERENCE),
    "insurance": backbone(coverage=REFERENCE),
    "item": backbone(
        category=CONCEPT,
        productOrService=CONCEPT,
        modifier=CONCEPT,
        provider=REFERENCE,
        quantity=QUANTITY,
        unitPrice=MONEY,
        facility=REFERENCE,
        diagnosis=backbone(diagnosisCodeableConcept=CONCEPT, diagnosisReference=REFERENCE),
        detail=REFERENCE,
    ),
}

COVERAGE_ELIGIBILITY_RESPONSE_FIELDS = {
    "identifier": IDENTIFIER,
    "patient": REFERENCE,
    "servicedDate": DATE,
    "servicedPeriod": PERIOD,
    "requestor": REFERENCE,
    "request": REFERENCE,
    "insurer": REFERENCE,
    "insurance": backbone(
        coverage=REFERENCE,
        benefitPeriod=PERIOD,
        item=backbone(
            category=CONCEPT,
            productOrService=CONCEPT,
            modifier=CONCEPT,
            provider=REFERENCE,
            network=CONCEPT,
            unit=CONCEPT,
            term=CONCEPT,
            benefit=backbone(type=CONCEPT, allowedMoney=MONEY, usedMoney=MONEY),
            authorizationSupporting=CONCEPT,
        ),
    ),
    "form": CONCEPT,
    "error": backbone(code=CONCEPT),
}

INSURANCE_PLAN_FIELDS = {
    "identifier": IDENTIFIER,
    "type": FieldRule(dt.transform_codeable_concept, as_list=True),
    "period": PERIOD,
    "ownedBy": REFERENCE,
    "administeredBy": REFERENCE,
    "coverageArea": REFERENCE,
    "contact": backbone(
        purpose=CONCEPT, name=HUMAN_NAME, telecom=CONTACT_POINT, address=ADDRESS
    ),
    "endpoint": REFERENCE,
    "network": REFERENCE,
    "coverage": backbone(
        type=CONCEPT,
        network=REFERENCE,
        benefit=backbone(type=CONCEPT),
    ),
    "plan": backbone(
        identifier=IDENTIFIER,
        type=CONCEPT,
        coverageArea=REFERENCE,
        network=REFERENCE,
        generalCost=backbone(type=CONCEPT, cost=MONEY),
        specificCost=backbone(
            category=CONCEPT,
            benefit=backbone(
                type=CONCEPT,
                cost=backbone(
                    type=CONCEPT,
                    applicability=CONCEPT,
                    qualifiers=CONCEPT,
                    value=QUANTITY,
                ),
            ),
        ),
    ),
}
