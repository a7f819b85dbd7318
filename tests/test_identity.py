"""Tests for resource and element id generation."""

import re

from fhir_utilities.services.identity import (
    ELEMENT_ID_PATTERN,
    generate_element_id,
    generate_resource_id,
    sanitize_id,
)


def test_element_ids_are_short_lowercase_alphanumerics():
    for _ in range(200):
        assert ELEMENT_ID_PATTERN.match(generate_element_id())


def test_resource_ids_carry_kind_prefix():
    assert re.match(r"^pa[a-z0-9]{8,10}$", generate_resource_id("Patient"))
    assert re.match(r"^cl[a-z0-9]{8,10}$", generate_resource_id("ClaimResponse"))
    assert re.match(r"^in[a-z0-9]{8,10}$", generate_resource_id("InsurancePlan"))


def test_ids_vary_between_calls():
    assert len({generate_element_id() for _ in range(50)}) > 1


def test_sanitize_id():
    assert sanitize_id("item 1/a") == "item-1-a"
    assert sanitize_id("abc.DEF-1") == "abc.DEF-1"
    assert sanitize_id("") is None
    assert sanitize_id(None) is None
    assert sanitize_id(7) == "7"
