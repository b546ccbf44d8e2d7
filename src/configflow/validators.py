"""Declarative validation rules.

A rule expression is a comma-separated list of clauses, each either
``name`` or ``name:param``::

    "required,email"
    "range:1000,9999"        # the ",9999" continues the range parameter
    "min:1,max:65535"

A validator is a callable ``(value, param) -> None`` that raises
``ValueError`` to reject the value. Built-in rules:

- ``required``: value is present and renders to non-empty text
- ``url``: value parses as a URL (scheme and host are not checked)
- ``email``: value looks like ``local@domain.tld``
- ``range:min,max``: integer value within inclusive bounds
- ``min:N`` / ``max:N``: integer value bounded on one side
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from configflow.coercion import parse_int, stringify
from configflow.exceptions import ValidationError
from configflow.logger import Logger

ValidatorFunc = Callable[[Any, str], None]

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_RULE_START_RE = re.compile(r"\s*[A-Za-z_][\w-]*\s*(:|$)")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*")


def _int_param(param: str, rule: str) -> int:
    try:
        return parse_int(param.strip())
    except ValueError:
        raise ValueError(f"{rule} parameter must be an integer") from None


def _int_value(value: Any, rule: str) -> int:
    try:
        return parse_int(stringify(value))
    except ValueError:
        raise ValueError(f"value must be an integer for {rule} validation") from None


def validate_required(value: Any, param: str) -> None:
    if value is None or stringify(value) == "":
        raise ValueError("field is required")


def validate_url(value: Any, param: str) -> None:
    text = stringify(value)
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in text) or _BAD_ESCAPE_RE.search(text):
        raise ValueError("invalid URL format")
    head, colon, _ = text.partition(":")
    if colon and "/" not in head and not _SCHEME_RE.fullmatch(head):
        raise ValueError("invalid URL format")
    try:
        # Port syntax is only checked when the attribute is read
        urlsplit(text).port
    except ValueError:
        raise ValueError("invalid URL format") from None


def validate_email(value: Any, param: str) -> None:
    if not _EMAIL_RE.fullmatch(stringify(value)):
        raise ValueError("invalid email format")


def validate_range(value: Any, param: str) -> None:
    parts = param.split(",")
    if len(parts) != 2:
        raise ValueError("range validator requires min,max parameters")
    try:
        low, high = parse_int(parts[0].strip()), parse_int(parts[1].strip())
    except ValueError:
        raise ValueError("range parameters must be integers") from None

    val = _int_value(value, "range")
    if val < low or val > high:
        raise ValueError(f"value must be between {low} and {high}")


def validate_min(value: Any, param: str) -> None:
    low = _int_param(param, "min")
    if _int_value(value, "min") < low:
        raise ValueError(f"value must be at least {low}")


def validate_max(value: Any, param: str) -> None:
    high = _int_param(param, "max")
    if _int_value(value, "max") > high:
        raise ValueError(f"value must be at most {high}")


BUILTIN_VALIDATORS: Mapping[str, ValidatorFunc] = MappingProxyType(
    {
        "required": validate_required,
        "url": validate_url,
        "email": validate_email,
        "range": validate_range,
        "min": validate_min,
        "max": validate_max,
    }
)


def parse_rules(expression: str) -> List[Tuple[str, str]]:
    """Split a rule expression into ``(name, param)`` clauses.

    Commas separate clauses, except that a segment not starting with a rule
    name continues the parameter of the clause before it.

    >>> parse_rules("required,range:1000,9999")
    [('required', ''), ('range', '1000,9999')]
    """
    clauses: List[List[str]] = []
    for segment in expression.split(","):
        if not segment.strip():
            continue
        if clauses and clauses[-1][1] and not _RULE_START_RE.match(segment):
            clauses[-1][1] += "," + segment
            continue
        name, _, param = segment.partition(":")
        clauses.append([name.strip(), param])
    return [(name, param) for name, param in clauses]


class ValidatorRegistry:
    """Rule name to validator mapping owned by a single loader.

    The registry starts as a private copy of ``defaults`` so registering a
    rule on one loader never affects another.
    """

    def __init__(
        self,
        defaults: Mapping[str, ValidatorFunc] = BUILTIN_VALIDATORS,
        logger: Optional[Logger] = None,
    ) -> None:
        self._validators: Dict[str, ValidatorFunc] = dict(defaults)
        self.logger = logger

    def register(self, name: str, validator: ValidatorFunc) -> None:
        """Register a rule, replacing any rule (built-in included) of that name."""
        if not callable(validator):
            raise TypeError(f"validator for rule {name!r} must be callable")
        self._validators[name] = validator

    def get(self, name: str) -> Optional[ValidatorFunc]:
        return self._validators.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._validators

    def names(self) -> List[str]:
        return sorted(self._validators)

    @property
    def rules(self) -> Mapping[str, ValidatorFunc]:
        """Read-only view of the registered rules."""
        return MappingProxyType(self._validators)

    def validate(self, field: str, value: Any, expression: str) -> None:
        """Run every rule in ``expression`` against ``value``, left to right.

        Unknown rule names are skipped.

        Raises:
            ValidationError: On the first rule that rejects the value.
        """
        for name, param in parse_rules(expression):
            validator = self._validators.get(name)
            if validator is None:
                if self.logger is not None:
                    self.logger.warning("Unknown validation rule skipped", rule=name, field=field)
                continue
            try:
                validator(value, param)
            except ValidationError as exc:
                raise ValidationError(field, value, name, exc.message) from exc
            except ValueError as exc:
                raise ValidationError(field, value, name, str(exc)) from exc


__all__ = [
    "ValidatorFunc",
    "ValidatorRegistry",
    "BUILTIN_VALIDATORS",
    "parse_rules",
    "validate_required",
    "validate_url",
    "validate_email",
    "validate_range",
    "validate_min",
    "validate_max",
]
