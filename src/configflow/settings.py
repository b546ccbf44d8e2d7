"""Dataclass settings for the loader itself.

Example:
    from configflow import Loader
    from configflow.settings import LoaderSettings

    settings = LoaderSettings.from_env(prefix="MYAPP_CONFIG")
    loader = Loader.from_settings(settings)

Environment variables:
    {prefix}_STRICT: Reject merged keys that match no field (default: false)
    {prefix}_VALIDATION: Honour validate rules (default: true)
    {prefix}_PRIORITY_ORDER: Merge sources by priority, not registration (default: false)
    {prefix}_LOG_LEVEL: Logging level (default: INFO)
    {prefix}_LOG_JSON: JSON log output (default: false)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from configflow.coercion import parse_bool
from configflow.env_loader import EnvLoader
from configflow.exceptions import ConfigurationError

_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    """Read a boolean variable, raising a clear error when invalid."""
    value = env.get(name)
    if value is None or value == "":
        return default
    try:
        return parse_bool(value.strip(), numeric=True)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be a boolean, got {value!r}",
            details={"variable": name},
        ) from exc


@dataclass
class LoaderSettings:
    """Behaviour switches for ``Loader``

    Attributes:
        strict: Fail when merged keys match no declared field
        validation: Run validate rules on resolved values
        priority_order: Stable-sort sources by priority before merging
        log_level: Logging level name
        log_json: Emit JSON log lines
        prefix: Environment variable prefix used (also names the logger)
    """

    strict: bool = False
    validation: bool = True
    priority_order: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    prefix: str = "CONFIGFLOW"

    def __post_init__(self) -> None:
        self.log_level = self.log_level.upper()
        self.validate()

    @classmethod
    def from_env(
        cls,
        prefix: str = "CONFIGFLOW",
        env_file: Optional[Union[Path, str]] = None,
    ) -> "LoaderSettings":
        """Load settings from environment variables (and an optional .env file)

        Args:
            prefix: Environment variable prefix
            env_file: Optional .env file read beneath the process environment
        """
        env = EnvLoader(env_file).load()
        return cls(
            strict=_parse_flag(env, f"{prefix}_STRICT", False),
            validation=_parse_flag(env, f"{prefix}_VALIDATION", True),
            priority_order=_parse_flag(env, f"{prefix}_PRIORITY_ORDER", False),
            log_level=env.get(f"{prefix}_LOG_LEVEL", "INFO"),
            log_json=_parse_flag(env, f"{prefix}_LOG_JSON", False),
            prefix=prefix,
        )

    @property
    def logger_name(self) -> str:
        return self.prefix.lower().replace("_", "-")

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level)

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If the log level is not a known level name
        """
        if self.log_level not in _ALLOWED_LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level '{self.log_level}'. Expected one of {sorted(_ALLOWED_LOG_LEVELS)}.",
                details={"log_level": self.log_level},
            )
