"""Base exception classes for configflow.

All configflow exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery
"""

from typing import Any, Dict, Iterable, Optional


class ConfigFlowError(Exception):
    """Base exception for all configflow errors.

    Attributes:
        code: Machine-readable error code (e.g., "PARSE_ERROR")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
    """

    default_code = "CONFIGFLOW_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize error with structured information.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (defaults to the class code)
            details: Optional additional context
        """
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error string."""
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
            Dictionary with code, message, and details keys.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ConfigFlowError):
    """Raised when the loader or its target is set up incorrectly."""

    default_code = "CONFIGURATION_ERROR"


class UnknownKeyError(ConfigurationError):
    """Raised in strict mode when merged keys match no declared field."""

    default_code = "UNKNOWN_KEYS"

    def __init__(self, keys: Iterable[str]):
        self.keys = sorted(keys)
        super().__init__(
            f"unknown configuration keys: {', '.join(self.keys)}",
            details={"keys": self.keys},
        )


class KeyConflictError(ConfigurationError):
    """Raised when a dotted key is both a leaf value and a parent path."""

    default_code = "KEY_CONFLICT"


class SourceLoadError(ConfigFlowError):
    """Raised when a source cannot be read."""

    default_code = "SOURCE_LOAD_ERROR"


class ParseError(SourceLoadError):
    """Raised when a file source holds malformed JSON, YAML or dotenv content."""

    default_code = "PARSE_ERROR"


class UnsupportedFormatError(SourceLoadError):
    """Raised when a file source has an extension with no decoder."""

    default_code = "UNSUPPORTED_FORMAT"

    def __init__(self, extension: str, path: Optional[str] = None):
        self.extension = extension
        details = {"extension": extension}
        if path is not None:
            details["path"] = path
        super().__init__(f"unsupported file format: {extension}", details=details)


class TypeConversionError(ConfigFlowError):
    """Raised when a value cannot be converted to a field's declared type."""

    default_code = "TYPE_CONVERSION"


class FieldAssignmentError(ConfigFlowError):
    """Raised when a resolved or default value cannot be bound to a field."""

    default_code = "FIELD_ASSIGNMENT"

    def __init__(self, field: str, reason: str, default: bool = False):
        self.field = field
        what = "default for field" if default else "field"
        super().__init__(
            f"failed to set {what} {field}: {reason}",
            details={"field": field, "default": default},
        )


class ValidationError(ConfigFlowError):
    """A named validation rule rejected a field value.

    Callers can inspect ``field``, ``value``, ``rule`` and ``message`` to
    report which rule failed.
    """

    default_code = "VALIDATION_FAILED"

    def __init__(self, field: str, value: Any, rule: str, message: str):
        self.field = field
        self.value = value
        self.rule = rule
        super().__init__(message, details={"field": field, "rule": rule})

    def __str__(self) -> str:
        return f"validation failed for field '{self.field}': {self.message}"
