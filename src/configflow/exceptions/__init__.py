"""Exceptions raised by configflow.

All exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Usage:
    from configflow.exceptions import ConfigFlowError, ValidationError

    try:
        loader.load(AppConfig)
    except ValidationError as exc:
        print(exc.field, exc.rule)
"""

from configflow.exceptions.base import (
    ConfigFlowError,
    ConfigurationError,
    FieldAssignmentError,
    KeyConflictError,
    ParseError,
    SourceLoadError,
    TypeConversionError,
    UnknownKeyError,
    UnsupportedFormatError,
    ValidationError,
)

__all__ = [
    "ConfigFlowError",
    "ConfigurationError",
    "UnknownKeyError",
    "KeyConflictError",
    "SourceLoadError",
    "ParseError",
    "UnsupportedFormatError",
    "TypeConversionError",
    "FieldAssignmentError",
    "ValidationError",
]
