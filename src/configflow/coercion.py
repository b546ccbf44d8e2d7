"""Value coercion between loosely-typed source values and field types.

Two paths exist:

- ``parse_value`` guesses a type for raw text (environment values, default
  text): boolean, then 64-bit integer, then float, then the string itself.
- ``coerce`` converts any value to a declared field kind by rendering it
  with ``stringify`` and re-parsing that text in the target's format.
"""

from __future__ import annotations

import math
import re
import types
import typing
from typing import Any, Optional

from configflow.exceptions import TypeConversionError

SUPPORTED_KINDS: tuple[type, ...] = (str, int, bool, float)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_BOOL_TRUE = frozenset({"t", "T", "true", "True", "TRUE"})
_BOOL_FALSE = frozenset({"f", "F", "false", "False", "FALSE"})

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE | re.ASCII,
)

_ZERO_VALUES: dict[type, Any] = {str: "", int: 0, bool: False, float: 0.0}


def parse_bool(text: str, numeric: bool = False) -> bool:
    """Parse boolean text.

    ``numeric`` also admits ``1``/``0``; the loose guess leaves those to the
    integer parse.
    """
    # 1/0 are booleans only for an explicit bool target
    if text in _BOOL_TRUE or (numeric and text == "1"):
        return True
    if text in _BOOL_FALSE or (numeric and text == "0"):
        return False
    raise ValueError(f"invalid boolean: {text!r}")


def parse_int(text: str) -> int:
    """Parse a signed base-10 integer that fits in 64 bits."""
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def parse_float(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise ValueError(f"invalid float: {text!r}")
    return float(text)


def parse_value(text: str) -> Any:
    """Best-effort typing of raw text: bool, int, float, else the text itself.

    >>> parse_value("true"), parse_value("42"), parse_value("3.14"), parse_value("hi")
    (True, 42, 3.14, 'hi')
    """
    for parser in (parse_bool, parse_int, parse_float):
        try:
            return parser(text)
        except ValueError:
            continue
    return text


def stringify(value: Any) -> str:
    """Render a value as canonical text.

    ``None`` is empty, booleans are lower-case, and integral floats drop the
    fractional part so ``3000.0`` can still bind to an ``int`` field.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def coerce(value: Any, kind: type) -> Any:
    """Convert ``value`` to ``kind`` (one of str, int, bool, float).

    Raises:
        TypeConversionError: If the text form of ``value`` does not parse as ``kind``.
    """
    text = stringify(value)
    if kind is str:
        return text
    try:
        if kind is bool:
            return parse_bool(text, numeric=True)
        if kind is int:
            return parse_int(text)
        if kind is float:
            return parse_float(text)
    except ValueError as exc:
        raise TypeConversionError(
            f"cannot convert {text!r} to {kind.__name__}",
            details={"kind": kind.__name__},
        ) from exc
    raise TypeConversionError(
        f"unsupported target kind: {getattr(kind, '__name__', kind)!r}",
        details={"kind": str(kind)},
    )


def _kind_from_string(annotation: str) -> Optional[type]:
    names = {k.__name__: k for k in SUPPORTED_KINDS}
    text = annotation.replace(" ", "")
    for wrapper in ("Optional[", "typing.Optional["):
        if text.startswith(wrapper) and text.endswith("]"):
            text = text[len(wrapper):-1]
    parts = [p for p in text.split("|") if p != "None"]
    if len(parts) == 1:
        return names.get(parts[0])
    return None


def field_kind(annotation: Any) -> Optional[type]:
    """Map a field annotation to a supported kind, or None when unsupported.

    Accepts plain types, their string forms (postponed annotations) and
    optional wrappers: ``Optional[int]`` and ``int | None`` are ``int``.
    """
    if isinstance(annotation, str):
        return _kind_from_string(annotation)
    if annotation in SUPPORTED_KINDS:
        return annotation

    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1 and args[0] in SUPPORTED_KINDS:
            return args[0]
    return None


def zero_value(kind: Optional[type]) -> Any:
    """Zero value for a kind: "", 0, False, 0.0, or None when unsupported."""
    if kind is None:
        return None
    return _ZERO_VALUES.get(kind)
