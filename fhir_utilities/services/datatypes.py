"""
Datatype transform library.

One pure function per structured datatype. Each accepts the loose shapes
callers send (string shorthand, single-coding shorthand, full object) and
returns the canonical FHIR shape, or ``None`` when there is nothing to emit.

Rules shared by every transform:
- Keys whose value is absent are omitted, never emitted as ``None``.
- Source fields outside the datatype's canonical field set are dropped.
- Required sub-fields are never invented (the few defaults below are the
  documented ones: identifier/name ``use``, contact point ``system``,
  money ``currency``).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from fhir_utilities.config import settings

_DATE_PART = re.compile(r"^(\d{4})(-(0[1-9]|1[0-2])(-(0[1-9]|[12]\d|3[01]))?)?$")
_EPOCH = re.compile(r"^-?\d{10,}$")


def compact(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is ``None``."""
    return {key: value for key, value in mapping.items() if value is not None}


def _or_none(result: dict[str, Any]) -> dict[str, Any] | None:
    return result or None


def _as_list(value: Any) -> list | None:
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple)):
        return list(value) or None
    return [value]


def _map_list(items: Any, transform) -> list | None:
    if not isinstance(items, (list, tuple)):
        return None
    out = [transform(item) for item in items]
    return [item for item in out if item is not None] or None


def temporal(value: Any) -> Any:
    """Render ``date``/``datetime`` objects as ISO strings; pass anything else through."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


def normalize_date(value: Any) -> str | None:
    """
    Normalise a date-ish value to ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``.

    Accepts date/datetime objects, epoch timestamps (seconds below 1e12,
    milliseconds otherwise), ISO dateTimes (the time part after ``T`` or a
    space is dropped) and slash-separated dates. Anything else yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).date().isoformat() if value.tzinfo else value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (int, float)) or (isinstance(value, str) and _EPOCH.match(value.strip())):
        number = float(value)
        seconds = number if abs(number) < 1e12 else number / 1000
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip().replace("/", "-")
    date_part = re.split(r"[T ]", text, maxsplit=1)[0]
    return date_part if _DATE_PART.match(date_part) else None


def transform_code(code: Any) -> str | None:
    if code is None or code == "":
        return None
    return str(code)


def transform_string(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


# ---------------------------------------------------------------------------
# General-purpose datatypes
# ---------------------------------------------------------------------------


def transform_coding(coding: Any) -> dict[str, Any] | None:
    if not isinstance(coding, Mapping):
        return None
    return _or_none(
        compact(
            {
                "system": coding.get("system"),
                "version": coding.get("version"),
                "code": transform_code(coding.get("code")),
                "display": coding.get("display"),
                "userSelected": coding.get("userSelected"),
            }
        )
    )


def transform_codeable_concept(concept: Any) -> dict[str, Any] | None:
    """
    Three accepted shapes:

    - ``"Cashless"`` -> ``{"text": "Cashless"}``
    - ``{"system", "code", "display"}`` -> one coding, display doubles as text
    - ``{"coding": [...], "text"}`` -> codings normalised, text kept
    """
    if not concept:
        return None
    if isinstance(concept, str):
        return {"text": concept}
    if not isinstance(concept, Mapping):
        return None

    text = concept.get("text") or concept.get("display")

    if concept.get("code") or concept.get("system") or concept.get("display"):
        coding = transform_coding(
            {
                "system": concept.get("system"),
                "code": concept.get("code"),
                "display": concept.get("display"),
            }
        )
        return compact({"coding": [coding] if coding else None, "text": text})

    if isinstance(concept.get("coding"), (list, tuple)):
        return _or_none(
            compact({"coding": _map_list(concept["coding"], transform_coding), "text": text})
        )

    return {"text": text} if text else None


def transform_period(period: Any) -> dict[str, Any] | None:
    if not isinstance(period, Mapping):
        return None
    return _or_none(
        compact({"start": temporal(period.get("start")), "end": temporal(period.get("end"))})
    )


def transform_identifier(identifier: Any) -> dict[str, Any] | None:
    if not isinstance(identifier, Mapping):
        return None
    return compact(
        {
            "use": identifier.get("use") or "usual",
            "type": transform_codeable_concept(identifier.get("type")),
            "system": identifier.get("system"),
            "value": transform_string(identifier.get("value")),
            "period": transform_period(identifier.get("period")),
            "assigner": transform_reference(identifier.get("assigner")),
        }
    )


def transform_reference(reference: Any) -> dict[str, Any] | None:
    """A bare string is the reference path; objects keep type/reference/identifier/display."""
    if not reference:
        return None
    if isinstance(reference, str):
        return {"reference": reference}
    if not isinstance(reference, Mapping):
        return None

    identifier = reference.get("identifier")
    if isinstance(identifier, str):
        identifier = {"value": identifier}
    else:
        identifier = transform_identifier(identifier)

    return _or_none(
        compact(
            {
                "reference": reference.get("reference"),
                "type": reference.get("type"),
                "identifier": identifier,
                "display": reference.get("display"),
            }
        )
    )


def transform_quantity(quantity: Any) -> dict[str, Any] | None:
    if not isinstance(quantity, Mapping):
        return None
    return _or_none(
        compact(
            {
                "value": quantity.get("value"),
                "comparator": quantity.get("comparator"),
                "unit": quantity.get("unit"),
                "system": quantity.get("system"),
                "code": quantity.get("code"),
            }
        )
    )


# Age, Count, Distance and Duration share Quantity's shape.
transform_age = transform_quantity
transform_count = transform_quantity
transform_distance = transform_quantity
transform_duration = transform_quantity


def transform_money(money: Any, default_currency: str | None = None) -> dict[str, Any] | None:
    if not isinstance(money, Mapping):
        return None
    return compact(
        {
            "value": money.get("value"),
            "currency": money.get("currency") or default_currency or settings.DEFAULT_CURRENCY,
        }
    )


def transform_range(range_: Any) -> dict[str, Any] | None:
    if not isinstance(range_, Mapping):
        return None
    return _or_none(
        compact(
            {
                "low": transform_quantity(range_.get("low")),
                "high": transform_quantity(range_.get("high")),
            }
        )
    )


def transform_ratio(ratio: Any) -> dict[str, Any] | None:
    if not isinstance(ratio, Mapping):
        return None
    return _or_none(
        compact(
            {
                "numerator": transform_quantity(ratio.get("numerator")),
                "denominator": transform_quantity(ratio.get("denominator")),
            }
        )
    )


def transform_sampled_data(sampled: Any) -> dict[str, Any] | None:
    if not isinstance(sampled, Mapping):
        return None
    return _or_none(
        compact(
            {
                "origin": transform_quantity(sampled.get("origin")),
                "period": sampled.get("period"),
                "factor": sampled.get("factor"),
                "lowerLimit": sampled.get("lowerLimit"),
                "upperLimit": sampled.get("upperLimit"),
                "dimensions": sampled.get("dimensions"),
                "data": sampled.get("data"),
            }
        )
    )


def transform_attachment(attachment: Any) -> dict[str, Any] | None:
    if not isinstance(attachment, Mapping):
        return None
    return _or_none(
        compact(
            {
                "contentType": attachment.get("contentType"),
                "language": attachment.get("language"),
                "data": attachment.get("data"),
                "url": attachment.get("url"),
                "size": attachment.get("size"),
                "hash": attachment.get("hash"),
                "title": attachment.get("title"),
                "creation": temporal(attachment.get("creation")),
            }
        )
    )


def transform_annotation(annotation: Any) -> dict[str, Any] | None:
    if isinstance(annotation, str):
        return {"text": annotation}
    if not isinstance(annotation, Mapping):
        return None
    return _or_none(
        compact(
            {
                "authorReference": transform_reference(annotation.get("authorReference")),
                "authorString": annotation.get("authorString"),
                "time": temporal(annotation.get("time")),
                "text": annotation.get("text"),
            }
        )
    )


def transform_signature(signature: Any) -> dict[str, Any] | None:
    if not isinstance(signature, Mapping):
        return None
    return _or_none(
        compact(
            {
                "type": _map_list(signature.get("type"), transform_coding),
                "when": temporal(signature.get("when")),
                "who": transform_reference(signature.get("who")),
                "onBehalfOf": transform_reference(signature.get("onBehalfOf")),
                "targetFormat": signature.get("targetFormat"),
                "sigFormat": signature.get("sigFormat"),
                "data": signature.get("data"),
            }
        )
    )


# ---------------------------------------------------------------------------
# People and places
# ---------------------------------------------------------------------------


def transform_human_name(name: Any) -> dict[str, Any] | None:
    """``text`` is synthesised from prefix, given, family and suffix when absent."""
    if not isinstance(name, Mapping):
        return None

    given = _as_list(name.get("given"))
    prefix = _as_list(name.get("prefix"))
    suffix = _as_list(name.get("suffix"))
    family = name.get("family")

    text = name.get("text")
    if not text:
        parts = [" ".join(prefix or []), " ".join(given or []), family or "", " ".join(suffix or [])]
        text = " ".join(part for part in parts if part) or None

    return compact(
        {
            "use": name.get("use") or "usual",
            "text": text,
            "family": family,
            "given": given,
            "prefix": prefix,
            "suffix": suffix,
            "period": transform_period(name.get("period")),
        }
    )


def transform_address(address: Any) -> dict[str, Any] | None:
    if not isinstance(address, Mapping):
        return None
    return _or_none(
        compact(
            {
                "use": address.get("use"),
                "type": address.get("type"),
                "text": address.get("text"),
                "line": _as_list(address.get("line")),
                "city": address.get("city"),
                "district": address.get("district"),
                "state": address.get("state"),
                "postalCode": address.get("postalCode"),
                "country": address.get("country"),
                "period": transform_period(address.get("period")),
            }
        )
    )


def transform_contact_point(contact_point: Any) -> dict[str, Any] | None:
    if not isinstance(contact_point, Mapping):
        return None
    return compact(
        {
            "system": contact_point.get("system") or "phone",
            "value": contact_point.get("value"),
            "use": contact_point.get("use"),
            "rank": contact_point.get("rank"),
            "period": transform_period(contact_point.get("period")),
        }
    )


# ---------------------------------------------------------------------------
# Scheduling and medication
# ---------------------------------------------------------------------------

_REPEAT_SCALARS = (
    "count",
    "countMax",
    "duration",
    "durationMax",
    "durationUnit",
    "frequency",
    "frequencyMax",
    "period",
    "periodMax",
    "periodUnit",
    "offset",
)
_REPEAT_LISTS = ("dayOfWeek", "timeOfDay", "when")


def transform_timing(timing: Any) -> dict[str, Any] | None:
    if not isinstance(timing, Mapping):
        return None

    repeat = None
    source = timing.get("repeat")
    if isinstance(source, Mapping):
        repeat = compact(
            {
                "boundsDuration": transform_duration(source.get("boundsDuration")),
                "boundsRange": transform_range(source.get("boundsRange")),
                "boundsPeriod": transform_period(source.get("boundsPeriod")),
            }
        )
        for key in _REPEAT_SCALARS:
            if source.get(key) is not None:
                repeat[key] = source[key]
        for key in _REPEAT_LISTS:
            if isinstance(source.get(key), (list, tuple)) and source[key]:
                repeat[key] = list(source[key])

    events = timing.get("event")
    return _or_none(
        compact(
            {
                "event": [temporal(e) for e in events] if isinstance(events, (list, tuple)) and events else None,
                "repeat": repeat or None,
                "code": transform_codeable_concept(timing.get("code")),
            }
        )
    )


def _transform_dose_and_rate(entry: Any) -> dict[str, Any] | None:
    if not isinstance(entry, Mapping):
        return None
    return _or_none(
        compact(
            {
                "type": transform_codeable_concept(entry.get("type")),
                "doseRange": transform_range(entry.get("doseRange")),
                "doseQuantity": transform_quantity(entry.get("doseQuantity")),
                "rateRatio": transform_ratio(entry.get("rateRatio")),
                "rateRange": transform_range(entry.get("rateRange")),
                "rateQuantity": transform_quantity(entry.get("rateQuantity")),
            }
        )
    )


def transform_dosage(dosage: Any) -> dict[str, Any] | None:
    if not isinstance(dosage, Mapping):
        return None
    return _or_none(
        compact(
            {
                "sequence": dosage.get("sequence"),
                "text": dosage.get("text"),
                "additionalInstruction": _map_list(
                    dosage.get("additionalInstruction"), transform_codeable_concept
                ),
                "patientInstruction": dosage.get("patientInstruction"),
                "timing": transform_timing(dosage.get("timing")),
                "asNeededBoolean": dosage.get("asNeededBoolean"),
                "asNeededCodeableConcept": transform_codeable_concept(
                    dosage.get("asNeededCodeableConcept")
                ),
                "site": transform_codeable_concept(dosage.get("site")),
                "route": transform_codeable_concept(dosage.get("route")),
                "method": transform_codeable_concept(dosage.get("method")),
                "doseAndRate": _map_list(dosage.get("doseAndRate"), _transform_dose_and_rate),
                "maxDosePerPeriod": transform_ratio(dosage.get("maxDosePerPeriod")),
                "maxDosePerAdministration": transform_quantity(
                    dosage.get("maxDosePerAdministration")
                ),
                "maxDosePerLifetime": transform_quantity(dosage.get("maxDosePerLifetime")),
            }
        )
    )


# ---------------------------------------------------------------------------
# Resource envelope
# ---------------------------------------------------------------------------


def transform_meta(meta: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Meta always carries versionId, lastUpdated and profile."""
    meta = meta or {}
    result: dict[str, Any] = {
        "versionId": str(meta.get("versionId") or "1"),
        "lastUpdated": temporal(meta.get("lastUpdated"))
        or datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "profile": list(meta.get("profile") or []),
    }
    security = _map_list(meta.get("security"), transform_coding)
    if security:
        result["security"] = security
    tag = _map_list(meta.get("tag"), transform_coding)
    if tag:
        result["tag"] = tag
    return result
