"""Errors raised inside the resource build pipeline."""

from __future__ import annotations


class ResourceBuildError(Exception):
    """Base class for expected build failures."""


class InputValidationError(ResourceBuildError):
    """Input did not satisfy the resource kind's schema."""

    def __init__(self, details: list[str]):
        super().__init__("Validation failed")
        self.details = list(details)


class ConstraintViolationError(ResourceBuildError):
    """A structural invariant failed and the active policy does not allow repair."""

    def __init__(self, details: list[str]):
        super().__init__("Constraint violation")
        self.details = list(details)


class UnknownResourceKindError(ResourceBuildError, KeyError):
    def __init__(self, kind: str, supported: list[str]):
        super().__init__(kind)
        self.kind = kind
        self.supported = list(supported)

    def __str__(self) -> str:
        return f"Unknown resource kind '{self.kind}'. Supported: {', '.join(self.supported)}"
