"""
Post-transform invariant checks.

Two kinds of rule:
- hard: always rejects the build (e.g. InsurancePlan ipn-1);
- soft: under the lenient policy the offending data is repaired in place
  and a warning recorded; under the strict policy it rejects the build.

The policy defaults to ``settings.STRICT_CONSTRAINTS`` and can be overridden
per build call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from fhir_utilities.exceptions import ConstraintViolationError
from fhir_utilities.services.extensions import populated_slots

logger = logging.getLogger(__name__)


@dataclass
class ConstraintPolicy:
    strict: bool
    warnings: list[str] = field(default_factory=list)
    violations: list[str] = field(default_factory=list)

    def soft(
        self,
        message: str,
        repair: Callable[[], None] | None = None,
        logged: bool = False,
    ) -> None:
        if self.strict:
            self.violations.append(message)
            return
        if not logged:
            logger.warning("Repaired constraint violation: %s", message)
        self.warnings.append(message)
        if repair is not None:
            repair()

    def hard(self, message: str) -> None:
        self.violations.append(message)


Check = Callable[[dict[str, Any], ConstraintPolicy], None]


# ---------------------------------------------------------------------------
# Extensions (apply to every kind)
# ---------------------------------------------------------------------------


def _discard(items: list[Any], extension: Any) -> None:
    items[:] = [item for item in items if item is not extension]


def _check_extension_list(items: list[Any], path: str, policy: ConstraintPolicy) -> None:
    for index, extension in enumerate(list(items)):
        if not isinstance(extension, dict):
            continue
        where = f"{path}[{index}]"
        if not extension.get("url"):
            policy.soft(
                f"{where}: extension without url removed",
                repair=lambda ext=extension: _discard(items, ext),
            )
            continue
        if extension.get("extension") and populated_slots(extension):
            policy.soft(
                f"{where}: extension '{extension['url']}' has both nested extensions "
                "and a value; nested extensions removed (ext-1)",
                repair=lambda ext=extension: ext.pop("extension", None),
            )


def _check_extensions_in(node: Any, path: str, policy: ConstraintPolicy) -> None:
    # Children are read after each repair, so removed subtrees are never visited.
    if isinstance(node, dict):
        for key in list(node):
            child_path = f"{path}.{key}" if path else key
            if key in ("extension", "modifierExtension") and isinstance(node[key], list):
                _check_extension_list(node[key], child_path, policy)
            if key in node:
                _check_extensions_in(node[key], child_path, policy)
    elif isinstance(node, list):
        for index, child in enumerate(list(node)):
            _check_extensions_in(child, f"{path}[{index}]", policy)


def check_extensions(resource: dict[str, Any], policy: ConstraintPolicy) -> None:
    """Every extension has a url and never both nested extensions and a value (ext-1)."""
    _check_extensions_in(resource, "", policy)


# ---------------------------------------------------------------------------
# Kind-specific rules
# ---------------------------------------------------------------------------


def _parse_instant(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else None


def check_task_ordering(resource: dict[str, Any], policy: ConstraintPolicy) -> None:
    """Task inv-1: lastModified must not precede authoredOn."""
    authored = resource.get("authoredOn")
    modified = resource.get("lastModified")
    if not authored or not modified:
        return

    authored_at, modified_at = _parse_instant(authored), _parse_instant(modified)
    if authored_at and modified_at:
        out_of_order = modified_at < authored_at
    else:
        # Without offsets the ISO strings compare chronologically.
        out_of_order = str(modified) < str(authored)

    if out_of_order:
        policy.soft(f"Task lastModified ({modified}) is before authoredOn ({authored}) (inv-1)")


def check_identifier_or_name(resource: dict[str, Any], policy: ConstraintPolicy) -> None:
    """InsurancePlan ipn-1."""
    has_identifier = bool(resource.get("identifier"))
    name = resource.get("name")
    has_name = isinstance(name, str) and bool(name.strip())
    if not has_identifier and not has_name:
        policy.hard("InsurancePlan must have at least one identifier or name (ipn-1 constraint)")


def check_single_cost_value(resource: dict[str, Any], policy: ConstraintPolicy) -> None:
    """Coverage costToBeneficiary carries exactly one of valueQuantity/valueMoney."""
    for index, cost in enumerate(resource.get("costToBeneficiary") or []):
        present = [slot for slot in ("valueQuantity", "valueMoney") if cost.get(slot)]
        if len(present) != 1:
            policy.hard(
                f"costToBeneficiary[{index}]: Cost to beneficiary must have exactly one "
                "of valueQuantity or valueMoney"
            )


COMMON_CHECKS: tuple[Check, ...] = (check_extensions,)


def enforce_constraints(
    resource: dict[str, Any],
    checks: Iterable[Check] = (),
    strict: bool = False,
    warnings: list[str] | None = None,
    repairs: Iterable[str] = (),
) -> dict[str, Any]:
    """
    Run the common and kind-specific checks over ``resource``.

    ``repairs`` are soft violations already repaired during the transform
    stage; they become warnings, or violations under the strict policy.

    Repairs are applied in place. Raises :class:`ConstraintViolationError`
    when any hard rule fails, or any soft rule fails under the strict policy.
    """
    policy = ConstraintPolicy(strict=strict, warnings=warnings if warnings is not None else [])
    for message in repairs:
        policy.soft(message, logged=True)
    for check in (*COMMON_CHECKS, *checks):
        check(resource, policy)

    if policy.violations:
        raise ConstraintViolationError(policy.violations)
    return resource
