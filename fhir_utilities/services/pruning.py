"""
Empty-branch pruning for resource trees.

Depth-first: lists keep only their non-empty pruned elements, mappings keep
only their non-empty pruned entries, and a container left with nothing in it
is itself removed. ``0`` and ``False`` are values, not absences, and survive.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MISSING = object()


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value is _MISSING


def _prune(value: Any) -> Any:
    if isinstance(value, Mapping):
        result = {}
        for key, child in value.items():
            pruned = _prune(child)
            if not _is_empty(pruned):
                result[key] = pruned
        return result or _MISSING

    if isinstance(value, (list, tuple)):
        result = [pruned for pruned in (_prune(child) for child in value) if not _is_empty(pruned)]
        return result or _MISSING

    return value


def prune_empty(tree: Any) -> Any:
    """
    Return a copy of ``tree`` with every vacuous branch removed.

    An entirely empty mapping prunes to ``{}`` and an empty list to ``[]`` so
    callers always get back the container type they passed in. Pruning is
    idempotent.
    """
    pruned = _prune(tree)
    if pruned is _MISSING:
        if isinstance(tree, Mapping):
            return {}
        if isinstance(tree, (list, tuple)):
            return []
        return None
    return pruned


def find_vacuous(tree: Any, path: str = "$") -> list[str]:
    """Paths of every empty container or null leaf in ``tree``."""
    found: list[str] = []
    if isinstance(tree, Mapping):
        if not tree and path != "$":
            found.append(path)
        for key, child in tree.items():
            found.extend(find_vacuous(child, f"{path}.{key}"))
    elif isinstance(tree, (list, tuple)):
        if not tree:
            found.append(path)
        for index, child in enumerate(tree):
            found.extend(find_vacuous(child, f"{path}[{index}]"))
    elif tree is None or tree == "":
        found.append(path)
    return found
