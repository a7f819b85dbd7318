"""
Shared JSON Schema fragments for input validation.

Every resource-kind schema is composed from these constants, so a datatype
is declared once and reused everywhere it appears.

Two conventions layer on top of Draft 7 (see ``services/validation.py``):
- ``messages`` maps a keyword to the message reported when it fails; on a
  property schema, ``messages["required"]`` is used when the property is
  missing from its parent.
- ``default`` values are applied to the validated value after validation
  succeeds; keys not declared under ``properties`` are stripped.
"""

from __future__ import annotations

from itertools import combinations
from typing import Any

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def with_messages(schema: dict[str, Any], **messages: str) -> dict[str, Any]:
    """Copy ``schema`` with extra keyword messages merged in."""
    merged = dict(schema.get("messages", {}))
    merged.update(messages)
    return {**schema, "messages": merged}


def required_as(schema: dict[str, Any], message: str) -> dict[str, Any]:
    """Property schema whose absence is reported as ``message``."""
    return with_messages(schema, required=message)


def array_of(
    items: dict[str, Any],
    min_items: int | None = None,
    max_items: int | None = None,
    message: str | None = None,
) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "array", "items": items}
    messages: dict[str, str] = {}
    if min_items is not None:
        schema["minItems"] = min_items
        if message:
            messages["minItems"] = message
            messages["required"] = message
    if max_items is not None:
        schema["maxItems"] = max_items
    if messages:
        schema["messages"] = messages
    return schema


def enum_of(*values: str, default: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "string", "enum": list(values)}
    if default is not None:
        schema["default"] = default
    return schema


def exactly_one(first: str, second: str, message: str) -> dict[str, Any]:
    return {
        "oneOf": [{"required": [first]}, {"required": [second]}],
        "messages": {"oneOf": message},
    }


def at_most_one(*fields: str, message: str) -> dict[str, Any]:
    return {
        "not": {"anyOf": [{"required": list(pair)} for pair in combinations(fields, 2)]},
        "messages": {"not": message},
    }


def at_least_one(*fields: str, message: str) -> dict[str, Any]:
    return {
        "anyOf": [{"required": [name]} for name in fields],
        "messages": {"anyOf": message},
    }


def backbone(
    properties: dict[str, Any],
    required: list[str] | None = None,
    rules: list[dict[str, Any]] | None = None,
    modifiers: bool = True,
) -> dict[str, Any]:
    """Object schema for a backbone element: element id and extensions are implicit."""
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "id": STRING,
            **properties,
            "extension": EXTENSIONS,
        },
    }
    if modifiers:
        schema["properties"]["modifierExtension"] = EXTENSIONS
    if required:
        schema["required"] = list(required)
    if rules:
        schema["allOf"] = list(rules)
    return schema


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

STRING: dict[str, Any] = {"type": "string"}
NON_EMPTY_STRING: dict[str, Any] = {"type": "string", "minLength": 1}
BOOLEAN: dict[str, Any] = {"type": "boolean"}
NUMBER: dict[str, Any] = {"type": "number"}
INTEGER: dict[str, Any] = {"type": "integer"}
POSITIVE_INT: dict[str, Any] = {"type": "integer", "minimum": 1}
UNSIGNED_INT: dict[str, Any] = {"type": "integer", "minimum": 0}
STRING_LIST: dict[str, Any] = {"type": "array", "items": STRING}

DATETIME_PATTERN = (
    r"^\d{4}(-\d{2}(-\d{2}([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?)?)?$"
)
DATE_PATTERN = (
    r"^\d{4}([-/](0[1-9]|1[0-2])([-/](0[1-9]|[12]\d|3[01]))?)?([T ]\d{2}:\d{2}.*)?$"
)

DATETIME: dict[str, Any] = {
    "type": "string",
    "pattern": DATETIME_PATTERN,
    "messages": {"pattern": "must be an ISO 8601 date or dateTime"},
}

# Dates are normalised by the transform stage, so slash-separated dates and
# epoch timestamps are accepted here.
DATE: dict[str, Any] = {
    "type": ["string", "integer"],
    "pattern": DATE_PATTERN,
    "messages": {"pattern": "must be a date (YYYY, YYYY-MM or YYYY-MM-DD)"},
}

COMMON_LANGUAGES = [
    "ar", "bn", "cs", "da", "de", "de-AT", "de-CH", "de-DE", "el", "en",
    "en-AU", "en-CA", "en-GB", "en-IN", "en-NZ", "en-SG", "en-US", "es",
    "es-AR", "es-ES", "es-UY", "fi", "fr", "fr-BE", "fr-CH", "fr-FR", "fy",
    "fy-NL", "hi", "hr", "it", "it-CH", "it-IT", "ja", "ko", "nl", "nl-BE",
    "nl-NL", "no", "no-NO", "pa", "pl", "pt", "pt-BR", "pt-PT", "ru",
    "ru-RU", "sr", "sr-RS", "sv", "sv-SE", "te", "zh", "zh-CN", "zh-HK",
    "zh-SG", "zh-TW",
]

LANGUAGE: dict[str, Any] = {
    "type": "string",
    "enum": COMMON_LANGUAGES,
    "messages": {"enum": "must be a language from the CommonLanguages value set"},
}

# ---------------------------------------------------------------------------
# Extensions
# ---------------------------------------------------------------------------

# Value slots are attached once the datatypes below exist (see VALUE_TYPES).
# Extensions nested deeper than one level are checked shallowly; the transform
# stage walks them.
NESTED_EXTENSION: dict[str, Any] = {
    "type": "object",
    "required": ["url"],
    "properties": {
        "id": STRING,
        "url": required_as(NON_EMPTY_STRING, "Extension url is required"),
        "extension": {"type": "array", "items": {"type": "object", "required": ["url"]}},
    },
    "messages": {"type": "extension must be an object"},
}

EXTENSION: dict[str, Any] = {
    "type": "object",
    "required": ["url"],
    "properties": {
        "id": STRING,
        "url": required_as(NON_EMPTY_STRING, "Extension url is required"),
        "extension": {"type": "array", "items": NESTED_EXTENSION},
    },
}

EXTENSIONS: dict[str, Any] = {"type": "array", "items": EXTENSION}

# ---------------------------------------------------------------------------
# General-purpose datatypes
# ---------------------------------------------------------------------------

CODING: dict[str, Any] = {
    "type": "object",
    "properties": {
        "system": STRING,
        "version": STRING,
        "code": STRING,
        "display": STRING,
        "userSelected": BOOLEAN,
    },
}

CODEABLE_CONCEPT: dict[str, Any] = {
    "anyOf": [
        NON_EMPTY_STRING,
        {"type": "object", "required": ["code"]},
        {
            "type": "object",
            "required": ["coding"],
            "properties": {"coding": {"type": "array", "minItems": 1, "items": CODING}},
        },
        {"type": "object", "required": ["text"]},
    ],
    "messages": {
        "anyOf": "must be text, a {system, code, display} coding or a {coding, text} concept"
    },
}

REFERENCE: dict[str, Any] = {
    "anyOf": [
        NON_EMPTY_STRING,
        {
            "type": "object",
            "anyOf": [
                {"required": ["reference"]},
                {"required": ["identifier"]},
                {"required": ["display"]},
            ],
        },
    ],
    "messages": {"anyOf": "must be a reference string or {reference, type, identifier, display}"},
}

PERIOD: dict[str, Any] = {
    "type": "object",
    "properties": {"start": DATETIME, "end": DATETIME},
}

IDENTIFIER: dict[str, Any] = {
    "type": "object",
    "required": ["value"],
    "properties": {
        "id": STRING,
        "use": enum_of("usual", "official", "temp", "secondary", "old", default="official"),
        "type": CODEABLE_CONCEPT,
        "system": STRING,
        "value": required_as(NON_EMPTY_STRING, "Identifier value is required"),
        "period": PERIOD,
        "assigner": REFERENCE,
        "extension": EXTENSIONS,
    },
}

QUANTITY: dict[str, Any] = {
    "type": "object",
    "required": ["value"],
    "properties": {
        "value": required_as(NUMBER, "Quantity value is required"),
        "comparator": enum_of("<", "<=", ">=", ">"),
        "unit": STRING,
        "system": STRING,
        "code": STRING,
    },
}

MONEY: dict[str, Any] = {
    "type": "object",
    "required": ["value"],
    "properties": {
        "value": required_as(NUMBER, "Money value is required"),
        "currency": {
            "type": "string",
            "pattern": r"^[A-Z]{3}$",
            "messages": {"pattern": "currency must be a 3-letter ISO 4217 code"},
        },
    },
}

RANGE: dict[str, Any] = {
    "type": "object",
    "properties": {"low": QUANTITY, "high": QUANTITY},
}

RATIO: dict[str, Any] = {
    "type": "object",
    "properties": {"numerator": QUANTITY, "denominator": QUANTITY},
}

SAMPLED_DATA: dict[str, Any] = {
    "type": "object",
    "required": ["origin", "period", "dimensions"],
    "properties": {
        "origin": QUANTITY,
        "period": NUMBER,
        "factor": NUMBER,
        "lowerLimit": NUMBER,
        "upperLimit": NUMBER,
        "dimensions": POSITIVE_INT,
        "data": STRING,
    },
}

ATTACHMENT: dict[str, Any] = {
    "type": "object",
    "properties": {
        "contentType": STRING,
        "language": STRING,
        "data": {
            "type": "string",
            "pattern": r"^[A-Za-z0-9+/]*={0,2}$",
            "messages": {"pattern": "Data must be a valid Base64 encoded string"},
        },
        "url": STRING,
        "size": POSITIVE_INT,
        "hash": STRING,
        "title": STRING,
        "creation": DATETIME,
    },
}

ANNOTATION: dict[str, Any] = {
    "type": "object",
    "required": ["text"],
    "properties": {
        "authorReference": REFERENCE,
        "authorString": STRING,
        "time": DATETIME,
        "text": required_as(NON_EMPTY_STRING, "Annotation text is required"),
    },
}

SIGNATURE: dict[str, Any] = {
    "type": "object",
    "required": ["type", "when", "who"],
    "properties": {
        "type": array_of(CODING, min_items=1),
        "when": DATETIME,
        "who": REFERENCE,
        "onBehalfOf": REFERENCE,
        "targetFormat": STRING,
        "sigFormat": STRING,
        "data": STRING,
    },
}

_UNITS_OF_TIME = ("s", "min", "h", "d", "wk", "mo", "a")

TIMING: dict[str, Any] = {
    "type": "object",
    "properties": {
        "event": {"type": "array", "items": DATETIME},
        "repeat": {
            "type": "object",
            "properties": {
                "boundsDuration": QUANTITY,
                "boundsRange": RANGE,
                "boundsPeriod": PERIOD,
                "count": POSITIVE_INT,
                "countMax": POSITIVE_INT,
                "duration": NUMBER,
                "durationMax": NUMBER,
                "durationUnit": enum_of(*_UNITS_OF_TIME),
                "frequency": POSITIVE_INT,
                "frequencyMax": POSITIVE_INT,
                "period": NUMBER,
                "periodMax": NUMBER,
                "periodUnit": enum_of(*_UNITS_OF_TIME),
                "dayOfWeek": {
                    "type": "array",
                    "items": enum_of("mon", "tue", "wed", "thu", "fri", "sat", "sun"),
                },
                "timeOfDay": STRING_LIST,
                "when": STRING_LIST,
                "offset": UNSIGNED_INT,
            },
        },
        "code": CODEABLE_CONCEPT,
    },
}

DOSAGE: dict[str, Any] = {
    "type": "object",
    "properties": {
        "sequence": INTEGER,
        "text": STRING,
        "additionalInstruction": {"type": "array", "items": CODEABLE_CONCEPT},
        "patientInstruction": STRING,
        "timing": TIMING,
        "asNeededBoolean": BOOLEAN,
        "asNeededCodeableConcept": CODEABLE_CONCEPT,
        "site": CODEABLE_CONCEPT,
        "route": CODEABLE_CONCEPT,
        "method": CODEABLE_CONCEPT,
        "doseAndRate": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": CODEABLE_CONCEPT,
                    "doseRange": RANGE,
                    "doseQuantity": QUANTITY,
                    "rateRatio": RATIO,
                    "rateRange": RANGE,
                    "rateQuantity": QUANTITY,
                },
            },
        },
        "maxDosePerPeriod": RATIO,
        "maxDosePerAdministration": QUANTITY,
        "maxDosePerLifetime": QUANTITY,
    },
}

# ---------------------------------------------------------------------------
# People and places
# ---------------------------------------------------------------------------

HUMAN_NAME: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": STRING,
        "use": enum_of(
            "usual", "official", "temp", "nickname", "anonymous", "old", "maiden",
            default="official",
        ),
        "text": NON_EMPTY_STRING,
        "family": NON_EMPTY_STRING,
        "given": {"type": "array", "items": STRING, "minItems": 1},
        "prefix": STRING_LIST,
        "suffix": STRING_LIST,
        "period": PERIOD,
        "extension": EXTENSIONS,
    },
    "allOf": [
        at_least_one(
            "text", "family", "given",
            message="Name must contain at least one of: text, family, or given name",
        )
    ],
}

CONTACT_POINT: dict[str, Any] = {
    "type": "object",
    "required": ["value"],
    "properties": {
        "id": STRING,
        "system": enum_of("phone", "fax", "email", "pager", "url", "sms", "other"),
        "value": required_as(NON_EMPTY_STRING, "Contact point value is required"),
        "use": enum_of("home", "work", "temp", "old", "mobile", default="home"),
        "rank": POSITIVE_INT,
        "period": PERIOD,
        "extension": EXTENSIONS,
    },
}

ADDRESS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": STRING,
        "use": enum_of("home", "work", "temp", "old", "billing", default="home"),
        "type": enum_of("postal", "physical", "both", default="physical"),
        "text": STRING,
        "line": STRING_LIST,
        "city": STRING,
        "district": STRING,
        "state": STRING,
        "postalCode": STRING,
        "country": {"type": "string", "default": "IN"},
        "period": PERIOD,
        "extension": EXTENSIONS,
    },
}

# ---------------------------------------------------------------------------
# value[x] slots
# ---------------------------------------------------------------------------


def _without_extensions(schema: dict[str, Any]) -> dict[str, Any]:
    properties = {key: value for key, value in schema["properties"].items() if key != "extension"}
    return {**schema, "properties": properties}


ANY_OBJECT: dict[str, Any] = {"type": "object"}

TIME: dict[str, Any] = {
    "type": "string",
    "pattern": r"^\d{2}:\d{2}(:\d{2}(\.\d+)?)?$",
    "messages": {"pattern": "must be a time (HH:MM:SS)"},
}

# Slot suffix -> schema; the keys match the transform table in
# ``services/extensions.py``. Datatypes that carry their own extensions are
# used without them so that the extension schemas stay acyclic.
VALUE_TYPES: dict[str, dict[str, Any]] = {
    # primitives
    "Base64Binary": STRING,
    "Boolean": BOOLEAN,
    "Canonical": NON_EMPTY_STRING,
    "Code": NON_EMPTY_STRING,
    "Date": DATETIME,
    "DateTime": DATETIME,
    "Decimal": NUMBER,
    "Id": STRING,
    "Instant": DATETIME,
    "Integer": INTEGER,
    "Markdown": STRING,
    "Oid": STRING,
    "PositiveInt": POSITIVE_INT,
    "String": STRING,
    "Time": TIME,
    "UnsignedInt": UNSIGNED_INT,
    "Uri": NON_EMPTY_STRING,
    "Url": NON_EMPTY_STRING,
    "Uuid": STRING,
    # general-purpose datatypes
    "Address": _without_extensions(ADDRESS),
    "Age": QUANTITY,
    "Annotation": ANNOTATION,
    "Attachment": ATTACHMENT,
    "CodeableConcept": CODEABLE_CONCEPT,
    "Coding": CODING,
    "ContactPoint": _without_extensions(CONTACT_POINT),
    "Count": QUANTITY,
    "Distance": QUANTITY,
    "Duration": QUANTITY,
    "HumanName": _without_extensions(HUMAN_NAME),
    "Identifier": _without_extensions(IDENTIFIER),
    "Money": MONEY,
    "Period": PERIOD,
    "Quantity": QUANTITY,
    "Range": RANGE,
    "Ratio": RATIO,
    "Reference": REFERENCE,
    "SampledData": SAMPLED_DATA,
    "Signature": SIGNATURE,
    "Timing": TIMING,
    "Dosage": DOSAGE,
    "Meta": ANY_OBJECT,
    # metadata types are carried as supplied
    "ContactDetail": ANY_OBJECT,
    "Contributor": ANY_OBJECT,
    "DataRequirement": ANY_OBJECT,
    "Expression": ANY_OBJECT,
    "ParameterDefinition": ANY_OBJECT,
    "RelatedArtifact": ANY_OBJECT,
    "TriggerDefinition": ANY_OBJECT,
    "UsageContext": ANY_OBJECT,
}


def value_slots(prefix: str = "value") -> dict[str, dict[str, Any]]:
    """``{"valueBoolean": BOOLEAN, ...}`` for every supported slot."""
    return {prefix + suffix: schema for suffix, schema in VALUE_TYPES.items()}


EXTENSION["properties"].update(value_slots())
NESTED_EXTENSION["properties"].update(value_slots())

# ---------------------------------------------------------------------------
# Resource-level value sets
# ---------------------------------------------------------------------------

FINANCIAL_STATUS = enum_of("active", "cancelled", "draft", "entered-in-error")
CLAIM_USE = enum_of("claim", "preauthorization", "predetermination")
OUTCOME = enum_of("queued", "complete", "error", "partial")
ELIGIBILITY_PURPOSE = enum_of("auth-requirements", "benefits", "discovery", "validation")
PUBLICATION_STATUS = enum_of("draft", "active", "retired", "unknown")


def resource_type(kind: str) -> dict[str, Any]:
    return {
        "type": "string",
        "const": kind,
        "messages": {
            "const": f"resourceType must be '{kind}'",
            "required": "resourceType is required",
        },
    }


def common_resource_properties(kind: str) -> dict[str, Any]:
    """Properties every resource kind accepts."""
    return {
        "resourceType": resource_type(kind),
        "id": STRING,
        "language": LANGUAGE,
        "implicitRules": STRING,
        "extension": EXTENSIONS,
        "modifierExtension": EXTENSIONS,
    }
