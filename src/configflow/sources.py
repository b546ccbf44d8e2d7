"""Configuration sources.

Every source produces a flat ``{dotted.key: value}`` mapping and declares a
numeric priority (map 0 < file 1 < environment 2).

Example:
    from configflow.sources import FileSource, MapSource

    defaults = MapSource({"server": {"port": 8080}})
    defaults.load()  # {"server.port": 8080}

    FileSource("config.yaml").load()  # {} when the file does not exist
"""

from __future__ import annotations

import io
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml
from dotenv import dotenv_values

from configflow.coercion import parse_value
from configflow.env_loader import EnvLoader
from configflow.exceptions import ParseError, SourceLoadError, UnsupportedFormatError
from configflow.flatten import flatten_map

MAP_PRIORITY = 0
FILE_PRIORITY = 1
ENV_PRIORITY = 2


class Source(ABC):
    """A named origin of configuration values.

    Subclasses set ``open_namespace`` when their key set is not owned by the
    application (the process environment), which exempts those keys from
    strict-mode checking.
    """

    open_namespace: bool = False

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Return this source's values as a flat mapping."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Precedence of this source; higher wins when ordering by priority."""


class MapSource(Source):
    """Source backed by an in-memory (possibly nested) mapping."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        self.data: Mapping[str, Any] = data if data is not None else {}

    @property
    def priority(self) -> int:
        return MAP_PRIORITY

    def load(self) -> Dict[str, Any]:
        return flatten_map(self.data)

    def __repr__(self) -> str:
        return f"MapSource(keys={len(self.data)})"


class EnvSource(Source):
    """Source backed by environment variables.

    Keys are lower-cased and values are type-guessed with ``parse_value``.

    Args:
        entries: ``KEY=value`` strings to read instead of ``os.environ``
        env_file: Optional .env file read beneath the environment entries
    """

    open_namespace = True

    def __init__(
        self,
        entries: Optional[Iterable[str]] = None,
        env_file: Optional[Path | str] = None,
    ) -> None:
        self.entries = list(entries) if entries is not None else None
        self.env_file = env_file

    @property
    def priority(self) -> int:
        return ENV_PRIORITY

    def load(self) -> Dict[str, Any]:
        env = EnvLoader(self.env_file, self.entries).load()
        return {key.lower(): parse_value(value) for key, value in env.items()}

    def __repr__(self) -> str:
        origin = "entries" if self.entries is not None else "os.environ"
        return f"EnvSource({origin}, env_file={self.env_file!r})"


def _decode_json(text: str) -> Any:
    return json.loads(text)


def _decode_yaml(text: str) -> Any:
    return yaml.safe_load(text)


def _decode_dotenv(text: str) -> Any:
    values = dotenv_values(stream=io.StringIO(text))
    return {k: parse_value(v) for k, v in values.items() if v is not None}


_DECODERS = {
    "json": (_decode_json, (json.JSONDecodeError,)),
    "yaml": (_decode_yaml, (yaml.YAMLError,)),
    "yml": (_decode_yaml, (yaml.YAMLError,)),
    "env": (_decode_dotenv, (ValueError,)),
}


class FileSource(Source):
    """Source backed by a JSON, YAML or dotenv file.

    The decoder is chosen from the lower-cased text after the last ``.`` of
    the file name. A missing file is an empty source, not an error.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @property
    def priority(self) -> int:
        return FILE_PRIORITY

    @property
    def extension(self) -> str:
        _, dot, ext = self.path.name.rpartition(".")
        return ext.lower() if dot else ""

    def load(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise SourceLoadError(
                f"failed to read {self.path}: {exc}",
                details={"path": str(self.path)},
            ) from exc

        ext = self.extension
        if ext not in _DECODERS:
            raise UnsupportedFormatError(ext, path=str(self.path))
        decode, decode_errors = _DECODERS[ext]

        try:
            data = decode(raw.decode("utf-8"))
        except (UnicodeDecodeError, *decode_errors) as exc:
            raise ParseError(
                f"failed to parse {self.path}: {exc}",
                details={"path": str(self.path), "format": ext},
            ) from exc

        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ParseError(
                f"failed to parse {self.path}: top-level value must be a mapping, "
                f"got {type(data).__name__}",
                details={"path": str(self.path), "format": ext},
            )
        try:
            return flatten_map(data)
        except RecursionError as exc:
            # Self-referencing YAML anchors decode to cyclic mappings
            raise ParseError(
                f"failed to parse {self.path}: document is cyclic or nested too deeply",
                details={"path": str(self.path), "format": ext},
            ) from exc

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"


__all__ = [
    "Source",
    "MapSource",
    "EnvSource",
    "FileSource",
    "MAP_PRIORITY",
    "FILE_PRIORITY",
    "ENV_PRIORITY",
]
