"""Binding of a merged namespace onto a configuration record.

Fields declare where their value comes from through dataclass field
metadata, most conveniently via ``setting()``:

    @dataclass
    class AppConfig:
        port: int = setting(cfg="port", env="PORT", validate="range:1000,9999")
        debug: bool = setting(cfg="debug", env="DEBUG", default="false")

Targets that are not dataclasses can be bound by passing explicit
``FieldSpec`` descriptors instead.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from configflow.coercion import coerce, field_kind, parse_value, zero_value
from configflow.exceptions import (
    ConfigurationError,
    FieldAssignmentError,
    TypeConversionError,
)
from configflow.logger import Logger
from configflow.validators import ValidatorRegistry

CFG_KEY = "cfg"
ENV_KEY = "env"
VALIDATE_KEY = "validate"
DEFAULT_KEY = "default"

_UNRESOLVED = object()


def setting(
    cfg: Optional[str] = None,
    env: Optional[str] = None,
    validate: Optional[str] = None,
    default: Any = None,
    initial: Any = dataclasses.MISSING,
) -> Any:
    """Declare a configuration field on a dataclass.

    Args:
        cfg: Dotted key looked up in the merged namespace
        env: Environment variable name, matched case-insensitively
        validate: Rule expression, e.g. ``"required,email"``
        default: Default text (loose-parsed) applied when no value resolves
        initial: Dataclass default for the attribute itself. Without it the
            field is keyword-only and ``Loader.load(cls)`` starts it at the
            zero value of its type.
    """
    metadata = {CFG_KEY: cfg, ENV_KEY: env, VALIDATE_KEY: validate, DEFAULT_KEY: default}
    if initial is dataclasses.MISSING:
        return dataclasses.field(kw_only=True, metadata=metadata)
    return dataclasses.field(default=initial, metadata=metadata)


@dataclass(frozen=True)
class FieldMetadata:
    """Lookup, validation and default settings of one field."""

    config_key: Optional[str] = None
    env_key: Optional[str] = None
    validate: Optional[str] = None
    default: Any = None

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "FieldMetadata":
        return cls(
            config_key=metadata.get(CFG_KEY) or None,
            env_key=metadata.get(ENV_KEY) or None,
            validate=metadata.get(VALIDATE_KEY) or None,
            default=metadata.get(DEFAULT_KEY),
        )

    @property
    def has_default(self) -> bool:
        return self.default is not None and self.default != ""

    def lookup_keys(self) -> List[str]:
        """Namespace keys this field can bind from, in lookup order."""
        keys = []
        if self.env_key:
            keys.append(self.env_key.lower())
        if self.config_key:
            keys.append(self.config_key)
        return keys


@dataclass
class FieldSpec:
    """Explicit description of a bindable field.

    Attributes:
        name: Attribute name, used in error messages
        kind: Target type (str, int, bool or float); other kinds are skipped
        config_key: Dotted namespace key
        env_key: Environment variable name
        validate: Rule expression
        default: Default text
        setter: Called with the coerced value; defaults to ``setattr`` on the target
    """

    name: str
    kind: Optional[type] = str
    config_key: Optional[str] = None
    env_key: Optional[str] = None
    validate: Optional[str] = None
    default: Any = None
    setter: Optional[Callable[[Any], None]] = None

    @property
    def metadata(self) -> FieldMetadata:
        return FieldMetadata(
            config_key=self.config_key or None,
            env_key=self.env_key or None,
            validate=self.validate or None,
            default=self.default,
        )


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable postponed annotations fall back to their raw form
        return {}


def dataclass_fields(target: Any) -> List[FieldSpec]:
    """Describe the fields of a dataclass instance or type as ``FieldSpec``s.

    Fields whose name starts with ``_`` are not bindable and are left out.
    """
    cls = target if isinstance(target, type) else type(target)
    hints = _type_hints(cls)
    specs = []
    for f in dataclasses.fields(cls):
        if f.name.startswith("_"):
            continue
        meta = FieldMetadata.from_metadata(f.metadata)
        specs.append(
            FieldSpec(
                name=f.name,
                kind=field_kind(hints.get(f.name, f.type)),
                config_key=meta.config_key,
                env_key=meta.env_key,
                validate=meta.validate,
                default=meta.default,
            )
        )
    return specs


def instantiate(cls: type) -> Any:
    """Create a dataclass instance, starting fields without defaults at zero values."""
    hints = _type_hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = zero_value(field_kind(hints.get(f.name, f.type)))
    return cls(**kwargs)


def known_keys(fields: Iterable[FieldSpec]) -> Set[str]:
    """Every namespace key that some field would bind from."""
    keys: Set[str] = set()
    for spec in fields:
        keys.update(spec.metadata.lookup_keys())
    return keys


class FieldBinder:
    """Applies a merged namespace to a target, one field at a time.

    For each field, in declaration order: the env key is looked up first,
    then the config key. A resolved value is validated (when enabled and the
    field has rules) and coerced onto the field. Otherwise the default text,
    if any, is coerced onto the field without validation. Fields with neither
    are left untouched. The first error stops binding; fields set before it
    keep their new values.
    """

    def __init__(
        self,
        registry: ValidatorRegistry,
        logger: Optional[Logger] = None,
        validation_enabled: bool = True,
    ) -> None:
        self.registry = registry
        self.logger = logger
        self.validation_enabled = validation_enabled

    def resolve_fields(self, target: Any, fields: Optional[Iterable[FieldSpec]] = None) -> List[FieldSpec]:
        if fields is not None:
            return list(fields)
        if not dataclasses.is_dataclass(target) or isinstance(target, type):
            raise ConfigurationError(
                "target must be a dataclass instance, or fields must be given",
                details={"target": type(target).__name__},
            )
        params = getattr(type(target), "__dataclass_params__", None)
        if params is not None and params.frozen:
            raise ConfigurationError(
                f"cannot bind onto frozen dataclass {type(target).__name__}",
                details={"target": type(target).__name__},
            )
        return dataclass_fields(target)

    def find_value(self, namespace: Mapping[str, Any], meta: FieldMetadata) -> Any:
        for key in meta.lookup_keys():
            value = namespace.get(key)
            if value is not None:
                return value
        return _UNRESOLVED

    def bind(
        self,
        target: Any,
        namespace: Mapping[str, Any],
        fields: Optional[Iterable[FieldSpec]] = None,
    ) -> int:
        """Bind ``namespace`` onto ``target``.

        Returns:
            The number of fields assigned (resolved values and defaults).

        Raises:
            ValidationError: A rule rejected a resolved value.
            FieldAssignmentError: A value could not be coerced to the field type.
            ConfigurationError: The target cannot be bound.
        """
        assigned = 0
        for spec in self.resolve_fields(target, fields):
            if spec.name.startswith("_") and spec.setter is None:
                continue
            kind = field_kind(spec.kind) if spec.kind is not None else None
            if kind is None:
                if self.logger is not None:
                    self.logger.debug("Skipping field of unsupported type", field=spec.name)
                continue

            meta = spec.metadata
            value = self.find_value(namespace, meta)

            if value is not _UNRESOLVED:
                if meta.validate and self.validation_enabled:
                    self.registry.validate(spec.name, value, meta.validate)
                self._assign(target, spec, kind, value, default=False)
                assigned += 1
            elif meta.has_default:
                default = meta.default
                if isinstance(default, str):
                    default = parse_value(default)
                self._assign(target, spec, kind, default, default=True)
                assigned += 1
        return assigned

    def _assign(self, target: Any, spec: FieldSpec, kind: type, value: Any, default: bool) -> None:
        try:
            converted = coerce(value, kind)
        except TypeConversionError as exc:
            raise FieldAssignmentError(spec.name, exc.message, default=default) from exc

        if spec.setter is not None:
            spec.setter(converted)
        else:
            setattr(target, spec.name, converted)
