"""
Table-driven transform interpreter.

Each resource kind declares a mapping of field name -> :class:`FieldRule`.
The interpreter walks a validated value with that table:

- a field with a rule is passed through its datatype transform, or recursed
  into when the rule describes a backbone element;
- a field without a rule is a primitive and is copied as-is;
- ``extension``/``modifierExtension`` are handled at every level.

Backbone elements, and list entries of datatypes flagged ``element_id``, get
an element id: the caller's when supplied, a generated one otherwise.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from fhir_utilities.services import datatypes as dt
from fhir_utilities.services.extensions import select_value, transform_extensions
from fhir_utilities.services.identity import generate_element_id, sanitize_id

EXTENSION_FIELDS = ("extension", "modifierExtension")


@dataclass
class BuildContext:
    """
    Per-call state threaded through the transform walk.

    ``repairs`` collects soft violations fixed while transforming (ext-1,
    several value[x] slots populated); the constraint stage decides whether
    they are warnings or failures.
    """

    kind: str
    repairs: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FieldRule:
    transform: Callable[[Any], Any] | None = None
    children: Mapping[str, FieldRule] | None = None
    element_id: bool = False
    as_list: bool = False
    # Prefix of a value[x] group resolved through the extension slot table.
    typed_value: str | None = None

    @property
    def is_backbone(self) -> bool:
        return self.children is not None


def backbone(typed_value: str | None = None, **children: FieldRule) -> FieldRule:
    return FieldRule(children=children, element_id=True, typed_value=typed_value)


def _with_element_id(source: Any, transformed: dict[str, Any]) -> dict[str, Any]:
    caller_id = sanitize_id(source.get("id")) if isinstance(source, Mapping) else None
    return {"id": caller_id or generate_element_id(), **transformed}


def _apply_one(rule: FieldRule, raw: Any, context: BuildContext) -> Any:
    if rule.is_backbone:
        if not isinstance(raw, Mapping):
            return None
        transformed = transform_element(raw, rule.children, context, typed_value=rule.typed_value)
        return _with_element_id(raw, transformed) if transformed else None

    transformed = rule.transform(raw) if rule.transform else dt.temporal(raw)
    if not isinstance(transformed, dict) or not transformed:
        return transformed

    if isinstance(raw, Mapping):
        extensions = transform_extensions(raw.get("extension"), context.repairs)
        if extensions:
            transformed["extension"] = extensions
    if rule.element_id:
        transformed = _with_element_id(raw, transformed)
    return transformed


def apply_rule(rule: FieldRule, raw: Any, context: BuildContext) -> Any:
    if rule.as_list and not isinstance(raw, (list, tuple)):
        raw = [raw]
    if isinstance(raw, (list, tuple)):
        items = [_apply_one(rule, item, context) for item in raw]
        return [item for item in items if item is not None]
    return _apply_one(rule, raw, context)


def transform_element(
    source: Mapping[str, Any],
    rules: Mapping[str, FieldRule],
    context: BuildContext,
    typed_value: str | None = None,
) -> dict[str, Any]:
    """Transform one element (a resource body or a backbone) field by field."""
    result: dict[str, Any] = {}
    for key, raw in source.items():
        if raw is None or key == "id":
            continue
        if typed_value and key.startswith(typed_value) and key not in rules:
            continue
        if key in EXTENSION_FIELDS:
            result[key] = transform_extensions(raw, context.repairs)
            continue
        rule = rules.get(key)
        if rule is None:
            result[key] = dt.temporal(raw)
            continue
        result[key] = apply_rule(rule, raw, context)

    if typed_value:
        chosen = select_value(
            source,
            context.repairs,
            prefix=typed_value,
            owner=f"{context.kind} element",
        )
        if chosen is not None:
            result[chosen.slot] = chosen.value
    return result


# ---------------------------------------------------------------------------
# Datatype rules shared by the per-kind tables
# ---------------------------------------------------------------------------

CONCEPT = FieldRule(dt.transform_codeable_concept)
CODING = FieldRule(dt.transform_coding)
REFERENCE = FieldRule(dt.transform_reference)
PERIOD = FieldRule(dt.transform_period)
QUANTITY = FieldRule(dt.transform_quantity)
MONEY = FieldRule(dt.transform_money)
RANGE = FieldRule(dt.transform_range)
RATIO = FieldRule(dt.transform_ratio)
DATE = FieldRule(dt.normalize_date)
IDENTIFIER = FieldRule(dt.transform_identifier, element_id=True)
HUMAN_NAME = FieldRule(dt.transform_human_name, element_id=True)
ADDRESS = FieldRule(dt.transform_address, element_id=True)
CONTACT_POINT = FieldRule(dt.transform_contact_point, element_id=True)
ATTACHMENT = FieldRule(dt.transform_attachment, element_id=True)
ANNOTATION = FieldRule(dt.transform_annotation, element_id=True)
SIGNATURE = FieldRule(dt.transform_signature)
TIMING = FieldRule(dt.transform_timing)
DOSAGE = FieldRule(dt.transform_dosage)
