"""Configuration loader: source registration, merging and binding.

Example:
    from dataclasses import dataclass
    from configflow import Loader, setting

    @dataclass
    class AppConfig:
        port: int = setting(cfg="port", env="PORT", validate="range:1000,9999")
        database: str = setting(cfg="database.url", env="DATABASE_URL", validate="required,url")
        debug: bool = setting(cfg="debug", env="DEBUG", default="false")

    config = (
        Loader()
        .add_file("config.yaml")
        .add_env()
        .enable_validation()
        .load(AppConfig)
    )
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from configflow.binding import FieldBinder, FieldSpec, instantiate, known_keys
from configflow.exceptions import (
    ConfigFlowError,
    ConfigurationError,
    SourceLoadError,
    UnknownKeyError,
)
from configflow.flatten import unflatten_map
from configflow.logger import Logger, create_logger
from configflow.settings import LoaderSettings
from configflow.sources import EnvSource, FileSource, MapSource, Source
from configflow.validators import ValidatorFunc, ValidatorRegistry


class Loader:
    """Merges configuration sources and binds them onto a record.

    Sources are merged in registration order, each overwriting keys from the
    ones before it. With ``priority_order`` enabled they are first
    stable-sorted by ``Source.priority`` (map < file < environment) so the
    environment wins regardless of registration order.

    A loader can be reused: sources and validators persist across ``load``
    calls and every call rebuilds the merged namespace from scratch.

    Args:
        strict: Fail when merged keys (outside the environment) match no field
        validation: Run validate rules on resolved values
        priority_order: Merge by source priority instead of registration order
        logger: Optional logger instance. Creates one if not provided.
    """

    def __init__(
        self,
        strict: bool = False,
        validation: bool = True,
        priority_order: bool = False,
        logger: Optional[Logger] = None,
    ) -> None:
        self.logger = logger if logger is not None else create_logger(name="configflow")
        self.strict_mode = strict
        self.validation_enabled = validation
        self.priority_order = priority_order
        self._sources: List[Source] = []
        self._validators = ValidatorRegistry(logger=self.logger)

    @classmethod
    def from_settings(cls, settings: LoaderSettings, logger: Optional[Logger] = None) -> "Loader":
        if logger is None:
            logger = create_logger(
                name=settings.logger_name,
                level=settings.level,
                json_format=settings.log_json,
            )
        return cls(
            strict=settings.strict,
            validation=settings.validation,
            priority_order=settings.priority_order,
            logger=logger,
        )

    @classmethod
    def from_env(
        cls,
        prefix: str = "CONFIGFLOW",
        env_file: Optional[Path | str] = None,
    ) -> "Loader":
        """Build a loader whose switches come from ``{prefix}_*`` variables."""
        return cls.from_settings(LoaderSettings.from_env(prefix=prefix, env_file=env_file))

    @property
    def sources(self) -> Tuple[Source, ...]:
        return tuple(self._sources)

    @property
    def validators(self) -> Mapping[str, ValidatorFunc]:
        return self._validators.rules

    # Builder API

    def add_source(self, source: Source) -> "Loader":
        self._sources.append(source)
        return self

    def add_map(self, data: Mapping[str, Any]) -> "Loader":
        """Add an in-memory mapping (useful for defaults or testing)."""
        return self.add_source(MapSource(data))

    def add_file(self, path: Path | str) -> "Loader":
        """Add a JSON, YAML or dotenv file; a missing file contributes nothing."""
        return self.add_source(FileSource(path))

    def add_env(
        self,
        entries: Optional[Iterable[str]] = None,
        env_file: Optional[Path | str] = None,
    ) -> "Loader":
        """Add environment variables (or explicit ``KEY=value`` entries)."""
        return self.add_source(EnvSource(entries=entries, env_file=env_file))

    def add_validator(self, name: str, validator: ValidatorFunc) -> "Loader":
        self._validators.register(name, validator)
        return self

    def strict(self, enabled: bool = True) -> "Loader":
        self.strict_mode = enabled
        return self

    def enable_validation(self, enabled: bool = True) -> "Loader":
        self.validation_enabled = enabled
        return self

    def order_by_priority(self, enabled: bool = True) -> "Loader":
        self.priority_order = enabled
        return self

    # Merge engine

    def _ordered_sources(self) -> List[Source]:
        if self.priority_order:
            return sorted(self._sources, key=lambda s: s.priority)
        return list(self._sources)

    def _merge(self) -> Tuple[Dict[str, Any], Set[str]]:
        merged: Dict[str, Any] = {}
        owned_keys: Set[str] = set()

        for source in self._ordered_sources():
            try:
                data = source.load()
            except ConfigFlowError:
                raise
            except (OSError, ValueError) as exc:
                raise SourceLoadError(
                    f"failed to load from source {source!r}: {exc}",
                    details={"source": repr(source)},
                ) from exc

            self.logger.debug(
                "Loaded configuration source",
                source=repr(source),
                priority=source.priority,
                keys=len(data),
            )
            merged.update(data)
            if not source.open_namespace:
                owned_keys.update(data)

        return merged, owned_keys

    def merge(self, nested: bool = False) -> Dict[str, Any]:
        """Load every source and return the merged namespace.

        Args:
            nested: Return the namespace unflattened into nested mappings

        Raises:
            SourceLoadError: A source could not be read or decoded.
        """
        merged, _ = self._merge()
        return unflatten_map(merged) if nested else merged

    # Binding

    def load(self, target: Any, fields: Optional[Iterable[FieldSpec]] = None) -> Any:
        """Load configuration into ``target``.

        Args:
            target: Dataclass instance to populate, or a dataclass type to
                instantiate (fields without defaults start at zero values).
                Any other object needs ``fields``.
            fields: Explicit field descriptors, replacing dataclass introspection

        Returns:
            The populated instance.

        Raises:
            SourceLoadError: A source could not be read or decoded.
            UnknownKeyError: Strict mode found keys that match no field.
            ValidationError: A rule rejected a resolved value.
            FieldAssignmentError: A value could not be converted to its field type.
            ConfigurationError: The target cannot be bound.
        """
        if isinstance(target, type):
            if not dataclasses.is_dataclass(target):
                raise ConfigurationError(
                    f"cannot instantiate non-dataclass type {target.__name__}",
                    details={"target": target.__name__},
                )
            target = instantiate(target)

        binder = FieldBinder(
            self._validators,
            logger=self.logger,
            validation_enabled=self.validation_enabled,
        )
        specs = binder.resolve_fields(target, fields)
        namespace, owned_keys = self._merge()

        if self.strict_mode:
            unknown = owned_keys - known_keys(specs)
            if unknown:
                raise UnknownKeyError(unknown)

        assigned = binder.bind(target, namespace, specs)
        self.logger.info(
            "Configuration loaded",
            target=type(target).__name__,
            sources=len(self._sources),
            fields=len(specs),
            assigned=assigned,
        )
        return target
