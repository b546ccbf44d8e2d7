"""Dotted-key flattening of nested configuration mappings."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from configflow.exceptions import KeyConflictError


def flatten_map(data: Mapping[Any, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten a nested mapping into ``{"a.b.c": leaf}`` form.

    Only mappings are descended into; sequences and scalars are leaves and
    are copied as-is. Flattening an already flat mapping returns an equal
    mapping.

    Args:
        data: Nested mapping, as produced by a JSON or YAML decoder
        prefix: Key prefix prepended to every result key

    Returns:
        Flat dictionary keyed by dot-joined paths
    """
    result: Dict[str, Any] = {}
    for k, v in data.items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, Mapping):
            result.update(flatten_map(v, key))
        else:
            result[key] = v
    return result


def unflatten_map(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """Rebuild a nested mapping from dot-joined keys.

    Raises:
        KeyConflictError: If a key is both a leaf and a parent path,
            e.g. ``"db"`` and ``"db.host"``.
    """
    result: Dict[str, Any] = {}
    for key in sorted(flat):
        *parents, leaf = key.split(".")
        node = result
        for i, part in enumerate(parents):
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise KeyConflictError(
                    f"key {key!r} conflicts with leaf {'.'.join(parents[: i + 1])!r}",
                    details={"key": key},
                )
            node = child
        if leaf in node:
            raise KeyConflictError(
                f"key {key!r} is also a parent of other keys",
                details={"key": key},
            )
        node[leaf] = flat[key]
    return result
