"""Row-limit configuration — ~/.querywarden/config.toml.

    [limits]
    default_rows = 100
    max_rows = 1000

    [limits.validate]
    default_rows = 1000
    max_rows = 10000

Per-command tables override the shared `[limits]` table, which overrides the
built-in defaults.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

STATE_DIR = Path.home() / ".querywarden"
_CONFIG_FILE = STATE_DIR / "config.toml"


class ConfigError(ValueError):
    """Raised when config.toml is unreadable or holds invalid limits."""


@dataclass(frozen=True)
class Limits:
    default_rows: int
    max_rows: int

    def clamp(self, requested: int | None) -> int:
        """Fill in default_rows and clamp the result to [1, max_rows]."""
        value = self.default_rows if requested is None else requested
        return max(1, min(value, self.max_rows))


DEFAULT_LIMITS: dict[str, Limits] = {
    "query": Limits(default_rows=100, max_rows=1000),
    "validate": Limits(default_rows=1000, max_rows=10000),
}


def _load_file() -> dict:
    if not _CONFIG_FILE.exists():
        return {}
    try:
        return tomllib.loads(_CONFIG_FILE.read_text())
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{_CONFIG_FILE}: {e}") from e


def _positive(table: dict, key: str) -> int | None:
    value = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{_CONFIG_FILE}: {key} must be a positive integer, got {value!r}")
    return value


def load_limits(command: str) -> Limits:
    """Resolve the row limits for a CLI command."""
    limits = DEFAULT_LIMITS.get(command, DEFAULT_LIMITS["query"])
    section = _load_file().get("limits", {})
    if not isinstance(section, dict):
        raise ConfigError(f"{_CONFIG_FILE}: [limits] must be a table")

    override = section.get(command, {})
    for table in (section, override if isinstance(override, dict) else {}):
        for key in ("default_rows", "max_rows"):
            value = _positive(table, key)
            if value is not None:
                limits = replace(limits, **{key: value})

    if limits.default_rows > limits.max_rows:
        limits = replace(limits, default_rows=limits.max_rows)
    return limits
