"""End-to-end tests for ``build`` and ``describe_schema`` across every resource kind."""

import copy
import json
import re

import pytest

from fhir_utilities import builder
from fhir_utilities.builder import build, describe_schema
from fhir_utilities.config import settings
from fhir_utilities.etl import pipeline
from fhir_utilities.etl.pipeline import BuildStage
from fhir_utilities.exceptions import UnknownResourceKindError
from fhir_utilities.schemas.fhir import SCHEMAS
from fhir_utilities.services.identity import ELEMENT_ID_PATTERN
from fhir_utilities.services.pruning import find_vacuous


# ---------------------------------------------------------------------------
# Input factories
# ---------------------------------------------------------------------------


def _make_patient(**overrides):
    record = {
        "resourceType": "Patient",
        "identifier": [{"value": "P-1"}],
        "name": [{"family": "Rao", "given": ["Asha"]}],
        "gender": "female",
        "birthDate": "1990-01-01",
    }
    record.update(overrides)
    return record


def _make_claim(**overrides):
    record = {
        "resourceType": "Claim",
        "identifier": [{"system": "https://irdai.gov.in/claim", "value": "CLM-001"}],
        "status": "active",
        "type": {
            "system": "http://terminology.hl7.org/CodeSystem/claim-type",
            "code": "institutional",
            "display": "Institutional",
        },
        "use": "claim",
        "patient": {"reference": "Patient/1", "display": "Asha Rao"},
        "insurer": "Organization/ins-1",
        "provider": "Organization/hosp-1",
        "priority": {"code": "normal"},
        "diagnosis": [
            {
                "sequence": 1,
                "diagnosisCodeableConcept": {"code": "I21", "display": "Acute MI"},
                "type": ["admitting"],
            }
        ],
        "insurance": [{"sequence": 1, "focal": True, "coverage": "Coverage/cov-1"}],
        "item": [
            {
                "sequence": 1,
                "productOrService": "Angioplasty",
                "servicedDate": "2024/03/01",
                "unitPrice": {"value": 150000},
                "net": {"value": 150000},
                "detail": [
                    {
                        "sequence": 1,
                        "productOrService": "Stent",
                        "net": {"value": 90000},
                        "subDetail": [{"sequence": 1, "productOrService": "Balloon"}],
                    }
                ],
            }
        ],
        "total": {"value": 150000},
    }
    record.update(overrides)
    return record


def _make_claim_response(**overrides):
    record = {
        "resourceType": "ClaimResponse",
        "status": "active",
        "type": "institutional",
        "use": "claim",
        "patient": "Patient/1",
        "insurer": "Organization/ins-1",
        "outcome": "complete",
        "item": [
            {"itemSequence": 1, "adjudication": [{"category": "eligible", "amount": {"value": 120000}}]}
        ],
        "addItem": [
            {
                "productOrService": "Room upgrade",
                "servicedDate": "2024-03-02",
                "adjudication": [{"category": "benefit", "amount": {"value": 2000}}],
            }
        ],
        "total": [{"category": "submitted", "amount": {"value": 150000}}],
        "payment": {"type": "complete", "amount": {"value": 120000}, "date": "2024-03-10"},
        "processNote": [{"number": 1, "type": "display", "text": "Approved"}],
    }
    record.update(overrides)
    return record


def _make_coverage(**overrides):
    record = {
        "resourceType": "Coverage",
        "status": "active",
        "type": {"code": "HIP", "display": "health insurance plan policy"},
        "beneficiary": "Patient/1",
        "payor": ["Organization/ins-1"],
        "period": {"start": "2024-01-01", "end": "2024-12-31"},
        "class": [{"type": "plan", "value": "GOLD-01"}],
        "costToBeneficiary": [{"type": "copay", "valueMoney": {"value": 500}}],
    }
    record.update(overrides)
    return record


def _make_eligibility_request(**overrides):
    record = {
        "resourceType": "CoverageEligibilityRequest",
        "identifier": {"value": "CER-1"},
        "status": "active",
        "priority": "normal",
        "purpose": ["benefits"],
        "patient": "Patient/1",
        "servicedDate": "2024-03-01",
        "enterer": "Practitioner/1",
        "provider": "Organization/hosp-1",
        "insurer": "Organization/ins-1",
        "facility": "Location/1",
        "insurance": [{"focal": True, "coverage": "Coverage/cov-1"}],
        "item": [{"productOrService": "Consultation", "diagnosis": [{"diagnosisCodeableConcept": "Fever"}]}],
    }
    record.update(overrides)
    return record


def _make_eligibility_response(**overrides):
    record = {
        "resourceType": "CoverageEligibilityResponse",
        "status": "active",
        "purpose": ["benefits"],
        "patient": "Patient/1",
        "requestor": "Organization/hosp-1",
        "request": "CoverageEligibilityRequest/1",
        "outcome": "complete",
        "insurer": "Organization/ins-1",
        "insurance": [
            {
                "coverage": "Coverage/cov-1",
                "inforce": True,
                "item": [
                    {
                        "productOrService": "Consultation",
                        "benefit": [
                            {"type": "benefit", "allowedMoney": {"value": 5000}, "usedMoney": {"value": 0}}
                        ],
                    }
                ],
            }
        ],
    }
    record.update(overrides)
    return record


def _make_insurance_plan(**overrides):
    record = {
        "resourceType": "InsurancePlan",
        "identifier": [{"value": "PLAN-1"}],
        "name": "Gold Health",
        "status": "active",
        "type": {"code": "01", "display": "Hospitalisation Indemnity Policy"},
        "period": {"start": "2024-01-01"},
        "ownedBy": "Organization/ins-1",
        "coverage": [{"type": "Inpatient", "benefit": [{"type": "Room rent"}]}],
        "plan": [
            {
                "type": "Individual",
                "generalCost": [{"cost": {"value": 12000}}],
                "specificCost": [
                    {
                        "category": "Inpatient",
                        "benefit": [
                            {"type": "Room rent", "cost": [{"type": "copay", "value": {"value": 10, "unit": "%"}}]}
                        ],
                    }
                ],
            }
        ],
    }
    record.update(overrides)
    return record


def _make_payment_notice(**overrides):
    record = {
        "resourceType": "PaymentNotice",
        "status": "active",
        "payment": "PaymentReconciliation/1",
        "recipient": "Organization/hosp-1",
        "amount": {"value": 120000},
        "paymentDate": "2024-03-10",
        "paymentStatus": "paid",
    }
    record.update(overrides)
    return record


def _make_payment_reconciliation(**overrides):
    record = {
        "resourceType": "PaymentReconciliation",
        "status": "active",
        "paymentDate": "2024-03-10",
        "paymentAmount": {"value": 120000},
        "outcome": "complete",
        "detail": [{"type": "payment", "amount": {"value": 120000}}],
        "processNote": [{"type": "display", "text": "Settled"}],
    }
    record.update(overrides)
    return record


def _make_task(**overrides):
    record = {
        "resourceType": "Task",
        "status": "requested",
        "intent": "order",
        "priority": "routine",
        "description": "Pre-authorisation review",
        "for": "Patient/1",
        "authoredOn": "2024-03-01T10:00:00Z",
        "lastModified": "2024-03-01T12:00:00Z",
        "input": [{"type": "claim", "valueReference": "Claim/1"}],
        "output": [{"type": "decision", "valueString": "approved"}],
    }
    record.update(overrides)
    return record


FACTORIES = {
    "Claim": _make_claim,
    "ClaimResponse": _make_claim_response,
    "Coverage": _make_coverage,
    "CoverageEligibilityRequest": _make_eligibility_request,
    "CoverageEligibilityResponse": _make_eligibility_response,
    "InsurancePlan": _make_insurance_plan,
    "Patient": _make_patient,
    "PaymentNotice": _make_payment_notice,
    "PaymentReconciliation": _make_payment_reconciliation,
    "Task": _make_task,
}


def _shape(tree):
    """Structure of a tree with every leaf replaced by its type name."""
    if isinstance(tree, dict):
        return {key: _shape(value) for key, value in tree.items()}
    if isinstance(tree, list):
        return [_shape(value) for value in tree]
    return type(tree).__name__


# ---------------------------------------------------------------------------
# Every kind
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("kind", sorted(FACTORIES))
def test_every_kind_builds(kind):
    result = build(kind, FACTORIES[kind]())

    assert result.success, result.details
    assert result.stage == BuildStage.FINALIZED
    assert result.warnings == []

    data = result.data
    assert list(data)[:4] == ["resourceType", "id", "meta", "text"]
    assert data["resourceType"] == kind
    assert re.match(rf"^{kind[:2].lower()}[a-z0-9]{{8,10}}$", data["id"])
    assert data["meta"]["profile"] == [f"{settings.PROFILE_BASE_URL}/{kind}"]
    assert data["meta"]["versionId"] == "1"
    assert data["text"]["status"] == "generated"
    assert data["text"]["div"].startswith("<div ")


@pytest.mark.parametrize("kind", sorted(FACTORIES))
def test_no_vacuous_elements(kind):
    result = build(kind, FACTORIES[kind]())
    assert find_vacuous(result.data) == []


@pytest.mark.parametrize("kind", sorted(FACTORIES))
def test_rebuild_keeps_shape_but_not_ids(kind):
    first = build(kind, FACTORIES[kind]()).data
    second = build(kind, FACTORIES[kind]()).data

    assert _shape(first) == _shape(second)
    assert first["id"] != second["id"]


@pytest.mark.parametrize("kind", sorted(FACTORIES))
def test_build_accepts_slugs(kind):
    slug = re.sub(r"(?<!^)(?=[A-Z])", "-", kind).lower()
    assert build(slug, FACTORIES[kind]()).success


@pytest.mark.parametrize("kind", sorted(FACTORIES))
def test_build_does_not_mutate_input(kind):
    document = FACTORIES[kind]()
    snapshot = copy.deepcopy(document)
    build(kind, document)
    assert document == snapshot


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def test_patient_scenario():
    result = build("Patient", _make_patient())

    assert result.success
    data = result.data
    assert data["resourceType"] == "Patient"
    assert re.match(r"^pa[a-z0-9]{8,10}$", data["id"])
    assert data["gender"] == "female"
    assert data["birthDate"] == "1990-01-01"
    assert "Asha Rao" in data["text"]["div"]


def test_patient_defaults_are_applied():
    data = build("Patient", _make_patient(communication=[{"language": "en"}])).data
    assert data["active"] is True
    assert data["identifier"][0]["use"] == "official"
    assert data["name"][0]["use"] == "official"
    assert data["name"][0]["text"] == "Asha Rao"
    assert data["communication"][0]["preferred"] is False


def test_birth_date_time_part_is_dropped():
    data = build("Patient", _make_patient(birthDate="1990-01-01 10:00")).data
    assert data["birthDate"] == "1990-01-01"


@pytest.mark.parametrize("raw", ["1990-02-45", "1990-13-01", "1990-01-01 noon"])
def test_unparseable_birth_date_is_rejected(raw):
    result = build("Patient", _make_patient(birthDate=raw))

    assert not result.success
    assert result.details == ["birthDate: Birth date must be in ISO format (YYYY-MM-DD)"]


def test_unparseable_payment_date_is_rejected():
    result = build("PaymentReconciliation", _make_payment_reconciliation(paymentDate="2024-03-45"))
    assert result.details == ["paymentDate: must be a date (YYYY, YYYY-MM or YYYY-MM-DD)"]


def test_caller_resource_id_is_replaced():
    data = build("Patient", _make_patient(id="my-own-id")).data
    assert data["id"] != "my-own-id"


def test_claim_missing_diagnosis_is_rejected():
    result = build("Claim", _make_claim(diagnosis=[]))

    assert not result.success
    assert result.error == "Validation failed"
    assert result.stage == BuildStage.RECEIVED
    assert any("diagnosis" in detail for detail in result.details)
    assert "diagnosis: At least one diagnosis is required (NDHM mandatory element)" in result.details


def test_claim_without_diagnosis_key_is_rejected():
    document = _make_claim()
    del document["diagnosis"]
    result = build("Claim", document)
    assert result.details == ["At least one diagnosis is required (NDHM mandatory element)"]


def test_insurance_plan_without_identifier_or_name_is_rejected():
    document = _make_insurance_plan()
    del document["identifier"]
    del document["name"]

    result = build("InsurancePlan", document)
    assert not result.success
    assert any("identifier or name" in detail for detail in result.details)


def test_insurance_plan_with_name_only_builds():
    document = _make_insurance_plan()
    del document["identifier"]
    result = build("InsurancePlan", document)
    assert result.success
    assert result.data["type"] == [
        {"coding": [{"code": "01", "display": "Hospitalisation Indemnity Policy"}], "text": "Hospitalisation Indemnity Policy"}
    ]


def test_claim_nested_elements_get_ids():
    data = build("Claim", _make_claim()).data
    item = data["item"][0]
    detail = item["detail"][0]
    sub_detail = detail["subDetail"][0]

    for element in (item, detail, sub_detail, data["diagnosis"][0], data["insurance"][0], data["identifier"][0]):
        assert ELEMENT_ID_PATTERN.match(element["id"])
    assert len({item["id"], detail["id"], sub_detail["id"]}) == 3


def test_caller_element_ids_are_kept():
    document = _make_claim()
    document["item"][0]["id"] = "line-1"
    data = build("Claim", document).data
    assert data["item"][0]["id"] == "line-1"


def test_claim_datatypes_are_normalised():
    data = build("Claim", _make_claim()).data
    item = data["item"][0]

    assert item["servicedDate"] == "2024-03-01"
    assert item["productOrService"] == {"text": "Angioplasty"}
    assert item["unitPrice"] == {"value": 150000, "currency": "INR"}
    assert data["insurer"] == {"reference": "Organization/ins-1"}
    assert data["diagnosis"][0]["type"] == [{"text": "admitting"}]
    assert data["created"]
    assert "Claim for Asha Rao (active) - Institutional - claim" in data["text"]["div"]


def test_coverage_cost_value_keeps_currency_default(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", "INR")
    data = build("Coverage", _make_coverage()).data
    assert data["costToBeneficiary"][0]["valueMoney"] == {"value": 500, "currency": "INR"}
    assert "created" not in data


def test_coverage_cost_needs_exactly_one_value():
    document = _make_coverage(
        costToBeneficiary=[{"valueMoney": {"value": 500}, "valueQuantity": {"value": 1}}]
    )
    result = build("Coverage", document)
    assert not result.success
    assert result.details == [
        "costToBeneficiary[0]: Cost to beneficiary must have exactly one of valueQuantity or valueMoney"
    ]


def test_eligibility_request_needs_one_serviced_value():
    document = _make_eligibility_request()
    del document["servicedDate"]
    result = build("CoverageEligibilityRequest", document)
    assert result.details == ["Provide either servicedDate or servicedPeriod, not both"]


def test_eligibility_response_keeps_zero_amounts():
    data = build("CoverageEligibilityResponse", _make_eligibility_response()).data
    benefit = data["insurance"][0]["item"][0]["benefit"][0]
    assert benefit["usedMoney"] == {"value": 0, "currency": "INR"}


def test_task_values_use_the_slot_table():
    data = build("Task", _make_task()).data
    assert data["input"][0]["valueReference"] == {"reference": "Claim/1"}
    assert data["input"][0]["type"] == {"text": "claim"}
    assert data["output"][0]["valueString"] == "approved"


def test_task_value_is_required():
    result = build("Task", _make_task(input=[{"type": "claim"}]))
    assert result.details == ["input[0]: Task input must carry a value[x]"]


def test_task_value_must_match_its_slot_type():
    result = build("Task", _make_task(input=[{"type": "x", "valueQuantity": "abc"}]))

    assert not result.success
    assert result.details == ["input[0].valueQuantity: 'abc' is not of type 'object'"]


def test_extension_value_must_match_its_slot_type():
    result = build("Patient", _make_patient(extension=[{"url": "http://x", "valueBoolean": "yes"}]))

    assert not result.success
    assert result.details == ["extension[0].valueBoolean: 'yes' is not of type 'boolean'"]


# ---------------------------------------------------------------------------
# Constraint policy
# ---------------------------------------------------------------------------


def _conflicting_extension():
    return [
        {
            "url": "https://example.org/ext",
            "valueString": "direct",
            "extension": [{"url": "child", "valueBoolean": True}],
        }
    ]


def test_extension_conflict_is_repaired_when_lenient():
    result = build("Patient", _make_patient(extension=_conflicting_extension()), strict=False)

    assert result.success
    assert result.data["extension"] == [{"url": "https://example.org/ext", "valueString": "direct"}]
    assert len(result.warnings) == 1
    assert "ext-1" in result.warnings[0]


def test_extension_conflict_in_nested_element():
    document = _make_claim()
    document["item"][0]["extension"] = _conflicting_extension()
    result = build("Claim", document, strict=False)

    assert result.success
    assert "extension" not in result.data["item"][0]["extension"][0]
    assert result.warnings


def test_extension_conflict_is_rejected_when_strict():
    result = build("Patient", _make_patient(extension=_conflicting_extension()), strict=True)

    assert not result.success
    assert result.error == "Validation failed"
    assert result.stage == BuildStage.TRANSFORMED
    assert "ext-1" in result.details[0]


def test_strict_policy_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_CONSTRAINTS", True)
    assert not build("Patient", _make_patient(extension=_conflicting_extension())).success
    assert build("Patient", _make_patient(extension=_conflicting_extension()), strict=False).success


def test_task_ordering_policy():
    document = _make_task(authoredOn="2024-03-02T10:00:00Z", lastModified="2024-03-01T10:00:00Z")

    lenient = build("Task", document, strict=False)
    assert lenient.success
    assert any("inv-1" in warning for warning in lenient.warnings)

    strict = build("Task", document, strict=True)
    assert not strict.success
    assert any("inv-1" in detail for detail in strict.details)


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------


def test_unknown_kind_is_a_validation_failure():
    result = build("Observation", {"resourceType": "Observation"})
    assert not result.success
    assert result.error == "Validation failed"
    assert "Claim" in result.details[0]
    assert "Task" in result.details[0]


def test_non_object_input_is_a_validation_failure():
    result = build("Patient", "not a document")
    assert result.to_dict() == {
        "success": False,
        "error": "Validation failed",
        "details": ["Input must be a JSON object"],
    }


def test_unexpected_failure_is_masked(monkeypatch):
    def explode(tree):
        raise RuntimeError("internal detail that must not leak")

    monkeypatch.setattr(pipeline, "prune_empty", explode)
    result = build("Patient", _make_patient())

    assert result.to_dict() == {"success": False, "error": "Patient creation failed"}
    assert result.stage == BuildStage.CONSTRAINT_CHECKED


def test_unexpected_failure_is_logged(monkeypatch, caplog):
    def explode(kind, resource):
        raise RuntimeError("narrative bug")

    monkeypatch.setattr(pipeline, "generate_narrative", explode)
    with caplog.at_level("ERROR", logger=builder.__name__):
        result = build("Claim", _make_claim())

    assert result.error == "Claim creation failed"
    assert "Claim creation failed in task 'finalize'" in caplog.text


def test_success_wire_shape():
    wire = build("Patient", _make_patient()).to_dict()
    assert set(wire) == {"success", "data", "warnings"}
    assert wire["success"] is True
    json.dumps(wire)


# ---------------------------------------------------------------------------
# describe_schema
# ---------------------------------------------------------------------------


def test_describe_schema():
    description = describe_schema("claim")

    assert description["kind"] == "Claim"
    assert description["slug"] == "claim"
    assert description["profile"].endswith("/Claim")
    assert "diagnosis" in description["required"]
    assert description["schema"]["properties"]["diagnosis"]["minItems"] == 1
    json.dumps(description)


def test_describe_schema_returns_a_copy():
    description = describe_schema("Patient")
    description["schema"]["properties"].clear()
    assert SCHEMAS["Patient"]["properties"]


def test_describe_schema_unknown_kind():
    with pytest.raises(UnknownResourceKindError):
        describe_schema("Observation")
