"""
Extension values as a tagged union.

An extension carries a ``url`` and either exactly one ``value[x]`` slot or a
list of nested extensions. On the wire the slot is picked by which
``value*`` key is populated; internally it is an :class:`ExtensionValue`
holding the slot name and its already-transformed value, so an
:class:`Extension` can never hold more than one.

The same slot table drives Task ``input``/``output`` values.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from fhir_utilities.services import datatypes as dt

logger = logging.getLogger(__name__)


def _passthrough(value: Any) -> Any:
    return dt.temporal(value)


# Slot suffix -> transform. Lookup order is the order below; the first
# populated slot wins.
VALUE_SLOTS: dict[str, Callable[[Any], Any]] = {
    # primitives
    "Base64Binary": _passthrough,
    "Boolean": _passthrough,
    "Canonical": _passthrough,
    "Code": _passthrough,
    "Date": _passthrough,
    "DateTime": _passthrough,
    "Decimal": _passthrough,
    "Id": _passthrough,
    "Instant": _passthrough,
    "Integer": _passthrough,
    "Markdown": _passthrough,
    "Oid": _passthrough,
    "PositiveInt": _passthrough,
    "String": _passthrough,
    "Time": _passthrough,
    "UnsignedInt": _passthrough,
    "Uri": _passthrough,
    "Url": _passthrough,
    "Uuid": _passthrough,
    # general-purpose datatypes
    "Address": dt.transform_address,
    "Age": dt.transform_age,
    "Annotation": dt.transform_annotation,
    "Attachment": dt.transform_attachment,
    "CodeableConcept": dt.transform_codeable_concept,
    "Coding": dt.transform_coding,
    "ContactPoint": dt.transform_contact_point,
    "Count": dt.transform_count,
    "Distance": dt.transform_distance,
    "Duration": dt.transform_duration,
    "HumanName": dt.transform_human_name,
    "Identifier": dt.transform_identifier,
    "Money": dt.transform_money,
    "Period": dt.transform_period,
    "Quantity": dt.transform_quantity,
    "Range": dt.transform_range,
    "Ratio": dt.transform_ratio,
    "Reference": dt.transform_reference,
    "SampledData": dt.transform_sampled_data,
    "Signature": dt.transform_signature,
    "Timing": dt.transform_timing,
    "Dosage": dt.transform_dosage,
    "Meta": dt.transform_meta,
    # metadata types are carried as supplied
    "ContactDetail": _passthrough,
    "Contributor": _passthrough,
    "DataRequirement": _passthrough,
    "Expression": _passthrough,
    "ParameterDefinition": _passthrough,
    "RelatedArtifact": _passthrough,
    "TriggerDefinition": _passthrough,
    "UsageContext": _passthrough,
}


@dataclass(frozen=True)
class ExtensionValue:
    """One populated ``value[x]`` slot, e.g. ``slot="valueMoney"``."""

    slot: str
    value: Any


@dataclass
class Extension:
    url: str | None
    value: ExtensionValue | None = None
    extension: list[Extension] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.value is not None and self.extension:
            raise ValueError(
                f"Extension '{self.url}' cannot carry both a value and nested extensions"
            )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.url is not None:
            result["url"] = self.url
        if self.extension:
            result["extension"] = [child.to_dict() for child in self.extension]
        if self.value is not None:
            result[self.value.slot] = self.value.value
        return result


def populated_slots(raw: Mapping[str, Any], prefix: str = "value") -> list[str]:
    """Names of every known ``<prefix>*`` slot that carries a value, in lookup order."""
    return [
        prefix + suffix
        for suffix in VALUE_SLOTS
        if raw.get(prefix + suffix) is not None
    ]


def select_value(
    raw: Mapping[str, Any],
    warnings: list[str] | None = None,
    prefix: str = "value",
    owner: str = "Extension",
) -> ExtensionValue | None:
    """Pick and transform the first populated ``value[x]`` slot of ``raw``."""
    slots = populated_slots(raw, prefix)
    if not slots:
        return None

    chosen = slots[0]
    if len(slots) > 1 and warnings is not None:
        message = (
            f"{owner} has multiple {prefix}[x] slots populated "
            f"({', '.join(slots)}); keeping {chosen}"
        )
        logger.warning(message)
        warnings.append(message)

    transform = VALUE_SLOTS[chosen[len(prefix):]]
    value = transform(raw[chosen])
    if value is None:
        return None
    return ExtensionValue(slot=chosen, value=value)


def parse_extension(raw: Any, warnings: list[str] | None = None) -> Extension | None:
    """
    Build an :class:`Extension` from an input mapping.

    When both nested extensions and a value are supplied the nested list is
    dropped and a warning recorded (FHIR ext-1).
    """
    if not isinstance(raw, Mapping):
        return None

    url = raw.get("url")
    value = select_value(raw, warnings, owner=f"Extension '{url}'")

    nested: list[Extension] = []
    children = raw.get("extension")
    if isinstance(children, (list, tuple)):
        for child in children:
            parsed = parse_extension(child, warnings)
            if parsed is not None:
                nested.append(parsed)

    if value is not None and nested:
        message = (
            f"Extension '{url}' has both nested extensions and {value.slot}; "
            "nested extensions removed (ext-1)"
        )
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        nested = []

    return Extension(url=url, value=value, extension=nested)


def transform_extension(raw: Any, warnings: list[str] | None = None) -> dict[str, Any] | None:
    extension = parse_extension(raw, warnings)
    if extension is None:
        return None
    return extension.to_dict() or None


def transform_extensions(items: Any, warnings: list[str] | None = None) -> list[dict[str, Any]] | None:
    if not isinstance(items, (list, tuple)):
        return None
    out = [transform_extension(item, warnings) for item in items]
    return [item for item in out if item] or None
