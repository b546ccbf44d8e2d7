"""Environment reader with optional .env support.

Loads key/value pairs in deterministic order:
1) .env file (if provided and exists)
2) Environment entries (``KEY=value`` strings, or the process environment)
3) Explicit overrides (highest precedence)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping, MutableMapping, Optional

from dotenv import dotenv_values


def parse_entries(entries: Iterable[str]) -> dict[str, str]:
    """Split ``KEY=value`` strings on the first ``=``; entries without one are ignored."""
    data: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        if sep:
            data[key] = value
    return data


class EnvLoader:
    """Load environment-style key/value pairs with .env support.

    Unlike a plain ``os.environ`` read, the .env file is only consulted when
    one is given explicitly.
    """

    def __init__(
        self,
        env_file: Optional[Path | str] = None,
        entries: Optional[Iterable[str]] = None,
    ) -> None:
        self.env_file = Path(env_file) if env_file else None
        self.entries = list(entries) if entries is not None else None

    def load(self, overrides: Optional[Mapping[str, str]] = None) -> MutableMapping[str, str]:
        """Load environment data with deterministic precedence.

        Precedence (low -> high): .env file, environment entries, overrides
        """
        data: MutableMapping[str, str] = {}

        if self.env_file is not None and self.env_file.exists():
            file_values = dotenv_values(self.env_file)
            data.update({k: v for k, v in file_values.items() if v is not None})

        if self.entries is not None:
            data.update(parse_entries(self.entries))
        else:
            data.update(os.environ)

        if overrides:
            data.update({k: str(v) for k, v in overrides.items()})

        return data


__all__ = ["EnvLoader", "parse_entries"]
