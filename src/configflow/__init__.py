"""configflow - layered configuration loading for Python applications.

This package provides:
- loader: Loader merging map, file and environment sources onto dataclasses
- sources: MapSource, FileSource (JSON/YAML/dotenv) and EnvSource
- validators: Declarative rules (required, url, email, range, min, max)
- coercion: Loose type guessing and typed conversion of raw values
- flatten: Dotted-key flattening of nested mappings
- logger: Structured logging with text or JSON output
- exceptions: Structured exception hierarchy
"""

__version__ = "1.0.0"

from configflow.binding import FieldMetadata, FieldSpec, setting
from configflow.exceptions import (
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
from configflow.flatten import flatten_map, unflatten_map
from configflow.loader import Loader
from configflow.logger import Logger, StructuredLogger, create_logger, get_logger
from configflow.settings import LoaderSettings
from configflow.sources import EnvSource, FileSource, MapSource, Source
from configflow.validators import BUILTIN_VALIDATORS, ValidatorFunc, ValidatorRegistry

__all__ = [
    "__version__",
    # Loader
    "Loader",
    "LoaderSettings",
    # Binding
    "setting",
    "FieldSpec",
    "FieldMetadata",
    # Sources
    "Source",
    "MapSource",
    "FileSource",
    "EnvSource",
    # Validation
    "ValidatorFunc",
    "ValidatorRegistry",
    "BUILTIN_VALIDATORS",
    # Flattening
    "flatten_map",
    "unflatten_map",
    # Logger
    "Logger",
    "StructuredLogger",
    "create_logger",
    "get_logger",
    # Exceptions
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
