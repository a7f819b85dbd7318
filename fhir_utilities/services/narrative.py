"""
Narrative synthesis.

Every finished resource gets a ``text`` element: ``status="generated"`` and
an XHTML ``div`` summarising its most salient fields. All interpolated values
are HTML-escaped. The div declares ``lang``/``xml:lang`` when the resource has
a language and ``dir="rtl"`` for right-to-left language families.
"""

from __future__ import annotations

import html
import re
from collections.abc import Mapping
from typing import Any, Callable

XHTML_NS = "http://www.w3.org/1999/xhtml"

RTL_LANGUAGE = re.compile(r"^(ar|he|fa|ur|ps|sd|ug|yi|dv|ks|ku|nqo|prs|ckb)(-|$)", re.IGNORECASE)


def normalize_language(language: Any) -> str | None:
    if not language:
        return None
    return str(language).replace("_", "-")


def is_rtl(language: Any) -> bool:
    normalized = normalize_language(language)
    return bool(normalized and RTL_LANGUAGE.match(normalized))


def div_attributes(language: Any = None) -> str:
    attributes = f'xmlns="{XHTML_NS}"'
    normalized = normalize_language(language)
    if normalized:
        escaped = html.escape(normalized, quote=True)
        attributes += f' lang="{escaped}" xml:lang="{escaped}"'
        if is_rtl(normalized):
            attributes += ' dir="rtl"'
    return attributes


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------


def _reference(value: Any) -> str | None:
    if not isinstance(value, Mapping):
        return None
    return value.get("display") or value.get("reference")


def _concept(value: Any) -> str | None:
    if not isinstance(value, Mapping):
        return None
    if value.get("text"):
        return value["text"]
    for coding in value.get("coding") or []:
        label = coding.get("display") or coding.get("code")
        if label:
            return label
    return None


def _concepts(values: Any) -> str | None:
    if not isinstance(values, list):
        return None
    labels = [label for label in (_concept(v) for v in values) if label]
    return ", ".join(labels) or None


def _money(value: Any) -> str | None:
    if not isinstance(value, Mapping) or value.get("value") is None:
        return None
    return f"{value['value']} {value.get('currency', '')}".strip()


def _field(name: str) -> Callable[[Mapping[str, Any]], Any]:
    return lambda resource: resource.get(name)


def _ref_field(name: str) -> Callable[[Mapping[str, Any]], Any]:
    return lambda resource: _reference(resource.get(name))


def _count(name: str, noun: str) -> Callable[[Mapping[str, Any]], Any]:
    def read(resource: Mapping[str, Any]) -> str | None:
        items = resource.get(name)
        if isinstance(items, list) and items:
            return f"{len(items)} {noun}(s)"
        return None

    return read


def _rows(resource: Mapping[str, Any], rows: list[tuple[str, Callable]]) -> str:
    parts = []
    for label, read in rows:
        value = read(resource)
        if value is None or value == "":
            continue
        parts.append(f"<p><strong>{label}:</strong> {html.escape(str(value))}</p>")
    return "".join(parts)


# ---------------------------------------------------------------------------
# Per-kind summaries
# ---------------------------------------------------------------------------


def _patient_name(resource: Mapping[str, Any]) -> str | None:
    names = resource.get("name") or []
    if not names:
        return None
    first = names[0]
    parts = list(first.get("given") or []) + [first.get("family")]
    return " ".join(str(p) for p in parts if p) or first.get("text")


def _patient_identifier(resource: Mapping[str, Any]) -> str | None:
    identifiers = resource.get("identifier") or []
    return identifiers[0].get("value") if identifiers else None


def _patient_contact(resource: Mapping[str, Any]) -> str | None:
    for telecom in resource.get("telecom") or []:
        if telecom.get("system") in ("phone", "email") and telecom.get("value"):
            return telecom["value"]
    return None


PATIENT_ROWS = [
    ("Name", _patient_name),
    ("Gender", _field("gender")),
    ("Birth Date", _field("birthDate")),
    ("Identifier", _patient_identifier),
    ("Contact", _patient_contact),
]

CLAIM_RESPONSE_ROWS = [
    ("Status", _field("status")),
    ("Outcome", _field("outcome")),
    ("Patient", _ref_field("patient")),
    ("Insurer", _ref_field("insurer")),
    ("Created", _field("created")),
]

ELIGIBILITY_REQUEST_ROWS = [
    ("Status", _field("status")),
    ("Purpose", lambda r: ", ".join(r.get("purpose") or []) or None),
    ("Patient", _ref_field("patient")),
    ("Insurer", _ref_field("insurer")),
    ("Provider", _ref_field("provider")),
    ("Created", _field("created")),
]

ELIGIBILITY_RESPONSE_ROWS = [
    ("Status", _field("status")),
    ("Outcome", _field("outcome")),
    ("Purpose", lambda r: ", ".join(r.get("purpose") or []) or None),
    ("Patient", _ref_field("patient")),
    ("Insurer", _ref_field("insurer")),
    ("Request", _ref_field("request")),
    ("Created", _field("created")),
    ("Disposition", _field("disposition")),
]

PAYMENT_NOTICE_ROWS = [
    ("Status", _field("status")),
    ("Created", _field("created")),
    ("Payment Date", _field("paymentDate")),
    ("Amount", lambda r: _money(r.get("amount"))),
    ("Payment Status", lambda r: _concept(r.get("paymentStatus"))),
    ("Payment", _ref_field("payment")),
    ("Recipient", _ref_field("recipient")),
    ("Provider", _ref_field("provider")),
    ("Payee", _ref_field("payee")),
    ("Request", _ref_field("request")),
    ("Response", _ref_field("response")),
]

PAYMENT_RECONCILIATION_ROWS = [
    ("Status", _field("status")),
    ("Created", _field("created")),
    ("Payment Date", _field("paymentDate")),
    ("Payment Amount", lambda r: _money(r.get("paymentAmount"))),
    ("Outcome", _field("outcome")),
    ("Disposition", _field("disposition")),
    ("Payment Issuer", _ref_field("paymentIssuer")),
    ("Requestor", _ref_field("requestor")),
    ("Request", _ref_field("request")),
    ("Details", _count("detail", "detail")),
    ("Process Notes", _count("processNote", "note")),
]

TASK_ROWS = [
    ("Status", _field("status")),
    ("Intent", _field("intent")),
    ("Priority", _field("priority")),
    ("Description", _field("description")),
    ("Focus", _ref_field("focus")),
    ("For", _ref_field("for")),
    ("Requester", _ref_field("requester")),
    ("Owner", _ref_field("owner")),
    ("Authored On", _field("authoredOn")),
    ("Last Modified", _field("lastModified")),
]


def _sentence(subject: str, party: str | None, fallback: str, resource: Mapping[str, Any], tail: list) -> str:
    text = f"{subject} for {party or fallback}"
    if resource.get("status"):
        text += f" ({resource['status']})"
    for part in tail:
        if part:
            text += f" - {part}"
    return html.escape(text)


def claim_summary(resource: Mapping[str, Any]) -> str:
    return _sentence(
        "Claim",
        _reference(resource.get("patient")),
        "patient",
        resource,
        [_concept(resource.get("type")), resource.get("use")],
    )


def coverage_summary(resource: Mapping[str, Any]) -> str:
    return _sentence(
        "Coverage",
        _reference(resource.get("beneficiary")),
        "beneficiary",
        resource,
        [_concept(resource.get("type"))],
    )


def insurance_plan_summary(resource: Mapping[str, Any]) -> str:
    text = ""
    if resource.get("name"):
        text += f"<strong>{html.escape(str(resource['name']))}</strong>"
    if resource.get("status"):
        text += f" ({html.escape(str(resource['status']))})"
    types = _concepts(resource.get("type"))
    if types:
        text += f" - {html.escape(types)}"
    return text.strip()


def _rows_summary(rows: list[tuple[str, Callable]]) -> Callable[[Mapping[str, Any]], str]:
    return lambda resource: _rows(resource, rows)


SUMMARIES: dict[str, Callable[[Mapping[str, Any]], str]] = {
    "Claim": claim_summary,
    "ClaimResponse": _rows_summary(CLAIM_RESPONSE_ROWS),
    "Coverage": coverage_summary,
    "CoverageEligibilityRequest": _rows_summary(ELIGIBILITY_REQUEST_ROWS),
    "CoverageEligibilityResponse": _rows_summary(ELIGIBILITY_RESPONSE_ROWS),
    "InsurancePlan": insurance_plan_summary,
    "Patient": _rows_summary(PATIENT_ROWS),
    "PaymentNotice": _rows_summary(PAYMENT_NOTICE_ROWS),
    "PaymentReconciliation": _rows_summary(PAYMENT_RECONCILIATION_ROWS),
    "Task": _rows_summary(TASK_ROWS),
}


def generate_narrative(kind: str, resource: Mapping[str, Any]) -> dict[str, str]:
    """Return the ``text`` element for a resource of ``kind``."""
    summarize = SUMMARIES.get(kind)
    body = summarize(resource) if summarize else ""
    return {
        "status": "generated",
        "div": f"<div {div_attributes(resource.get('language'))}>{body}</div>",
    }
