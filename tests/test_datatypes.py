"""Tests for the datatype transform library."""

from datetime import date, datetime, timezone

import pytest

from fhir_utilities.config import settings
from fhir_utilities.services import datatypes as dt


# ---------------------------------------------------------------------------
# CodeableConcept
# ---------------------------------------------------------------------------


def test_concept_from_bare_string():
    """A bare string becomes the concept text and reads back unchanged."""
    assert dt.transform_codeable_concept("Cashless")["text"] == "Cashless"


def test_concept_from_single_coding_shorthand():
    concept = dt.transform_codeable_concept(
        {"system": "http://snomed.info/sct", "code": "22298006", "display": "Myocardial infarction"}
    )
    assert concept == {
        "coding": [
            {"system": "http://snomed.info/sct", "code": "22298006", "display": "Myocardial infarction"}
        ],
        "text": "Myocardial infarction",
    }


def test_concept_preserves_every_coding_triple():
    codings = [
        {"system": "http://snomed.info/sct", "code": "1", "display": "One"},
        {"system": "http://loinc.org", "code": "2", "display": "Two", "junk": "x"},
    ]
    concept = dt.transform_codeable_concept({"coding": codings, "text": "Both"})
    triples = [(c["system"], c["code"], c["display"]) for c in concept["coding"]]
    assert triples == [("http://snomed.info/sct", "1", "One"), ("http://loinc.org", "2", "Two")]
    assert concept["text"] == "Both"


@pytest.mark.parametrize("empty", [None, "", {}, [], 42])
def test_concept_rejects_empty_or_unknown_shapes(empty):
    assert dt.transform_codeable_concept(empty) is None


# ---------------------------------------------------------------------------
# Reference / Identifier
# ---------------------------------------------------------------------------


def test_reference_from_string():
    assert dt.transform_reference("Patient/123") == {"reference": "Patient/123"}


def test_reference_from_object_with_string_identifier():
    reference = dt.transform_reference(
        {"type": "Organization", "identifier": "ORG-1", "display": "Acme", "other": 1}
    )
    assert reference == {"type": "Organization", "identifier": {"value": "ORG-1"}, "display": "Acme"}


def test_identifier_defaults_use_and_drops_unknown_fields():
    identifier = dt.transform_identifier({"system": "urn:x", "value": 7, "foo": "bar"})
    assert identifier == {"use": "usual", "system": "urn:x", "value": "7"}


# ---------------------------------------------------------------------------
# Money / Quantity
# ---------------------------------------------------------------------------


def test_money_defaults_currency(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", "INR")
    assert dt.transform_money({"value": 1500}) == {"value": 1500, "currency": "INR"}
    assert dt.transform_money({"value": 10, "currency": "USD"}) == {"value": 10, "currency": "USD"}
    assert dt.transform_money({"value": 10}, default_currency="EUR")["currency"] == "EUR"


def test_quantity_keeps_zero():
    assert dt.transform_quantity({"value": 0, "unit": "mg"}) == {"value": 0, "unit": "mg"}


def test_range_and_ratio():
    assert dt.transform_range({"low": {"value": 1}, "high": {"value": 5}}) == {
        "low": {"value": 1},
        "high": {"value": 5},
    }
    assert dt.transform_ratio({"numerator": {"value": 1}}) == {"numerator": {"value": 1}}
    assert dt.transform_range({}) is None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1990-01-15", "1990-01-15"),
        ("1990/01/15", "1990-01-15"),
        ("1990-01-15T10:30:00Z", "1990-01-15"),
        ("1990-01-15 10:30", "1990-01-15"),
        ("1990/01/15 10:30", "1990-01-15"),
        ("1990-01", "1990-01"),
        ("1990", "1990"),
        (631152000, "1990-01-01"),
        (1704067200000, "2024-01-01"),
        (date(2020, 2, 29), "2020-02-29"),
        (datetime(2021, 3, 4, 23, 0, tzinfo=timezone.utc), "2021-03-04"),
        ("not a date", None),
        ("1990-13-01", None),
        (None, None),
        (True, None),
    ],
)
def test_normalize_date(raw, expected):
    assert dt.normalize_date(raw) == expected


def test_period_renders_datetimes():
    period = dt.transform_period({"start": datetime(2024, 1, 1, 9, 0)})
    assert period == {"start": "2024-01-01T09:00:00+00:00"}


# ---------------------------------------------------------------------------
# People and places
# ---------------------------------------------------------------------------


def test_human_name_synthesises_text():
    name = dt.transform_human_name({"prefix": "Dr", "given": "Asha", "family": "Rao"})
    assert name == {
        "use": "usual",
        "text": "Dr Asha Rao",
        "family": "Rao",
        "given": ["Asha"],
        "prefix": ["Dr"],
    }


def test_human_name_keeps_caller_text():
    name = dt.transform_human_name({"use": "official", "text": "Asha R.", "given": ["Asha"]})
    assert name["text"] == "Asha R."
    assert name["use"] == "official"


def test_address_drops_unknown_fields_and_listifies_line():
    address = dt.transform_address({"line": "12 MG Road", "city": "Pune", "landmark": "x"})
    assert address == {"line": ["12 MG Road"], "city": "Pune"}


def test_contact_point_defaults_system():
    assert dt.transform_contact_point({"value": "+91-9000000000"}) == {
        "system": "phone",
        "value": "+91-9000000000",
    }


def test_attachment_and_annotation():
    assert dt.transform_attachment({"contentType": "application/pdf", "data": "AAAA"}) == {
        "contentType": "application/pdf",
        "data": "AAAA",
    }
    assert dt.transform_annotation("Follow up in a week") == {"text": "Follow up in a week"}
    assert dt.transform_annotation({"authorReference": "Practitioner/1", "text": "ok"}) == {
        "authorReference": {"reference": "Practitioner/1"},
        "text": "ok",
    }


def test_signature():
    signature = dt.transform_signature(
        {
            "type": [{"system": "urn:iso-astm:E1762-95:2013", "code": "1.2.840.10065.1.12.1.1"}],
            "when": "2024-01-01T00:00:00Z",
            "who": "Practitioner/1",
        }
    )
    assert signature["who"] == {"reference": "Practitioner/1"}
    assert signature["type"][0]["code"] == "1.2.840.10065.1.12.1.1"


# ---------------------------------------------------------------------------
# Timing / Dosage / Meta
# ---------------------------------------------------------------------------


def test_timing_and_dosage():
    dosage = dt.transform_dosage(
        {
            "text": "1 tablet twice daily",
            "timing": {"repeat": {"frequency": 2, "period": 1, "periodUnit": "d"}, "junk": 1},
            "route": "Oral",
            "doseAndRate": [{"doseQuantity": {"value": 1, "unit": "tablet"}}],
        }
    )
    assert dosage == {
        "text": "1 tablet twice daily",
        "timing": {"repeat": {"frequency": 2, "period": 1, "periodUnit": "d"}},
        "route": {"text": "Oral"},
        "doseAndRate": [{"doseQuantity": {"value": 1, "unit": "tablet"}}],
    }


def test_meta_always_has_version_and_timestamp():
    meta = dt.transform_meta({"profile": ["https://example.org/Claim"]})
    assert meta["versionId"] == "1"
    assert meta["profile"] == ["https://example.org/Claim"]
    assert datetime.fromisoformat(meta["lastUpdated"]).tzinfo is not None
