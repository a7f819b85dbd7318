"""Tests for narrative synthesis."""

from fhir_utilities.services.narrative import (
    SUMMARIES,
    div_attributes,
    generate_narrative,
    is_rtl,
)


def test_every_kind_has_a_summary():
    assert len(SUMMARIES) == 10


def test_patient_narrative_names_the_patient():
    text = generate_narrative(
        "Patient",
        {"name": [{"given": ["Asha"], "family": "Rao"}], "gender": "female", "birthDate": "1990-01-01"},
    )
    assert text["status"] == "generated"
    assert "Asha Rao" in text["div"]
    assert "<strong>Gender:</strong> female" in text["div"]
    assert text["div"].startswith('<div xmlns="http://www.w3.org/1999/xhtml">')


def test_claim_summary():
    text = generate_narrative(
        "Claim",
        {
            "status": "active",
            "patient": {"reference": "Patient/1", "display": "Asha Rao"},
            "type": {"text": "Institutional"},
            "use": "claim",
        },
    )
    assert "Claim for Asha Rao (active) - Institutional - claim" in text["div"]


def test_insurance_plan_summary_lists_types():
    text = generate_narrative(
        "InsurancePlan",
        {"name": "Gold", "status": "active", "type": [{"text": "Medical"}, {"coding": [{"code": "dental"}]}]},
    )
    assert "<strong>Gold</strong> (active) - Medical, dental" in text["div"]


def test_values_are_escaped():
    text = generate_narrative("Task", {"status": "draft", "description": "<script>alert(1)</script>"})
    assert "<script>" not in text["div"]
    assert "&lt;script&gt;" in text["div"]


def test_rtl_languages_set_direction():
    assert is_rtl("ar")
    assert is_rtl("he-IL")
    assert is_rtl("ur_PK")
    assert not is_rtl("en-IN")
    assert not is_rtl(None)

    text = generate_narrative("Patient", {"language": "ar", "gender": "male"})
    assert 'dir="rtl"' in text["div"]
    assert 'lang="ar" xml:lang="ar"' in text["div"]


def test_div_attributes_without_language():
    assert div_attributes() == 'xmlns="http://www.w3.org/1999/xhtml"'
