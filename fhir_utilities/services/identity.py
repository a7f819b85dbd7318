"""
Short random identifiers for resources and their elements.

Ids are scoped to a single document, so uniqueness is probabilistic and no
collision detection is done. ``secrets`` is used as the random source
because it is safe to share between concurrent build calls.
"""

from __future__ import annotations

import re
import secrets

ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
MIN_LENGTH = 8
MAX_LENGTH = 10

ELEMENT_ID_PATTERN = re.compile(r"^[a-z0-9]{8,10}$")


def generate_short_id(prefix: str | None = None) -> str:
    """Return 8-10 random lowercase alphanumerics, optionally prefixed."""
    length = MIN_LENGTH + secrets.randbelow(MAX_LENGTH - MIN_LENGTH + 1)
    body = "".join(secrets.choice(ID_ALPHABET) for _ in range(length))
    return f"{prefix}{body}" if prefix else body


def generate_element_id() -> str:
    return generate_short_id()


def generate_resource_id(kind: str) -> str:
    """Resource ids carry the first two letters of the kind, e.g. ``pa`` for Patient."""
    return generate_short_id(kind[:2].lower())


def sanitize_id(value) -> str | None:
    """Coerce a caller-supplied id into the FHIR id alphabet."""
    if value is None or value == "":
        return None
    return re.sub(r"[^A-Za-z0-9\-.]", "-", str(value))
