"""Field-mapping tables for Claim, ClaimResponse, PaymentNotice and PaymentReconciliation."""

from __future__ import annotations

from fhir_utilities.resources.mapping import (
    ADDRESS,
    ATTACHMENT,
    CONCEPT,
    DATE,
    IDENTIFIER,
    MONEY,
    PERIOD,
    QUANTITY,
    REFERENCE,
    backbone,
)

# ---------------------------------------------------------------------------
# Claim
# ---------------------------------------------------------------------------

_CLAIM_LINE = dict(
    revenue=CONCEPT,
    category=CONCEPT,
    productOrService=CONCEPT,
    modifier=CONCEPT,
    programCode=CONCEPT,
    quantity=QUANTITY,
    unitPrice=MONEY,
    net=MONEY,
    udi=REFERENCE,
)

CLAIM_FIELDS = {
    "identifier": IDENTIFIER,
    "type": CONCEPT,
    "subType": CONCEPT,
    "patient": REFERENCE,
    "billablePeriod": PERIOD,
    "enterer": REFERENCE,
    "insurer": REFERENCE,
    "provider": REFERENCE,
    "priority": CONCEPT,
    "fundsReserve": CONCEPT,
    "related": backbone(claim=REFERENCE, relationship=CONCEPT, reference=IDENTIFIER),
    "prescription": REFERENCE,
    "originalPrescription": REFERENCE,
    "payee": backbone(type=CONCEPT, party=REFERENCE),
    "referral": REFERENCE,
    "facility": REFERENCE,
    "careTeam": backbone(provider=REFERENCE, role=CONCEPT, qualification=CONCEPT),
    "supportingInfo": backbone(
        category=CONCEPT,
        code=CONCEPT,
        timingDate=DATE,
        timingPeriod=PERIOD,
        valueQuantity=QUANTITY,
        valueAttachment=ATTACHMENT,
        valueReference=REFERENCE,
        reason=CONCEPT,
    ),
    "diagnosis": backbone(
        diagnosisCodeableConcept=CONCEPT,
        diagnosisReference=REFERENCE,
        type=CONCEPT,
        onAdmission=CONCEPT,
        packageCode=CONCEPT,
    ),
    "procedure": backbone(
        type=CONCEPT,
        procedureCodeableConcept=CONCEPT,
        procedureReference=REFERENCE,
        udi=REFERENCE,
    ),
    "insurance": backbone(identifier=IDENTIFIER, coverage=REFERENCE, claimResponse=REFERENCE),
    "accident": backbone(
        date=DATE, type=CONCEPT, locationAddress=ADDRESS, locationReference=REFERENCE
    ),
    "item": backbone(
        **_CLAIM_LINE,
        servicedDate=DATE,
        servicedPeriod=PERIOD,
        locationCodeableConcept=CONCEPT,
        locationAddress=ADDRESS,
        locationReference=REFERENCE,
        bodySite=CONCEPT,
        subSite=CONCEPT,
        encounter=REFERENCE,
        detail=backbone(**_CLAIM_LINE, subDetail=backbone(**_CLAIM_LINE)),
    ),
    "total": MONEY,
}

# ---------------------------------------------------------------------------
# ClaimResponse
# ---------------------------------------------------------------------------

ADJUDICATION = backbone(category=CONCEPT, reason=CONCEPT, amount=MONEY)

_ADD_ITEM_LINE = dict(
    productOrService=CONCEPT,
    modifier=CONCEPT,
    quantity=QUANTITY,
    unitPrice=MONEY,
    net=MONEY,
    adjudication=ADJUDICATION,
)

CLAIM_RESPONSE_FIELDS = {
    "identifier": IDENTIFIER,
    "type": CONCEPT,
    "subType": CONCEPT,
    "patient": REFERENCE,
    "insurer": REFERENCE,
    "requestor": REFERENCE,
    "request": REFERENCE,
    "preAuthPeriod": PERIOD,
    "payeeType": CONCEPT,
    "item": backbone(
        adjudication=ADJUDICATION,
        detail=backbone(
            adjudication=ADJUDICATION,
            subDetail=backbone(adjudication=ADJUDICATION),
        ),
    ),
    "addItem": backbone(
        **_ADD_ITEM_LINE,
        provider=REFERENCE,
        programCode=CONCEPT,
        servicedDate=DATE,
        servicedPeriod=PERIOD,
        locationCodeableConcept=CONCEPT,
        locationAddress=ADDRESS,
        locationReference=REFERENCE,
        bodySite=CONCEPT,
        subSite=CONCEPT,
        detail=backbone(**_ADD_ITEM_LINE, subDetail=backbone(**_ADD_ITEM_LINE)),
    ),
    "adjudication": ADJUDICATION,
    "total": backbone(category=CONCEPT, amount=MONEY),
    "payment": backbone(
        type=CONCEPT,
        adjustment=MONEY,
        adjustmentReason=CONCEPT,
        date=DATE,
        amount=MONEY,
        identifier=IDENTIFIER,
    ),
    "fundsReserve": CONCEPT,
    "formCode": CONCEPT,
    "form": ATTACHMENT,
    "processNote": backbone(language=CONCEPT),
    "communicationRequest": REFERENCE,
    "insurance": backbone(coverage=REFERENCE, claimResponse=REFERENCE),
    "error": backbone(code=CONCEPT),
}

# ---------------------------------------------------------------------------
# PaymentNotice / PaymentReconciliation
# ---------------------------------------------------------------------------

PAYMENT_NOTICE_FIELDS = {
    "identifier": IDENTIFIER,
    "request": REFERENCE,
    "response": REFERENCE,
    "provider": REFERENCE,
    "payment": REFERENCE,
    "paymentDate": DATE,
    "payee": REFERENCE,
    "recipient": REFERENCE,
    "amount": MONEY,
    "paymentStatus": CONCEPT,
}

PAYMENT_RECONCILIATION_FIELDS = {
    "identifier": IDENTIFIER,
    "period": PERIOD,
    "paymentIssuer": REFERENCE,
    "request": REFERENCE,
    "requestor": REFERENCE,
    "paymentDate": DATE,
    "paymentAmount": MONEY,
    "paymentIdentifier": IDENTIFIER,
    "detail": backbone(
        identifier=IDENTIFIER,
        predecessor=IDENTIFIER,
        type=CONCEPT,
        request=REFERENCE,
        submitter=REFERENCE,
        response=REFERENCE,
        date=DATE,
        responsible=REFERENCE,
        payee=REFERENCE,
        amount=MONEY,
    ),
    "formCode": CONCEPT,
    "processNote": backbone(),
}
