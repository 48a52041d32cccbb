"""Named connection management — ~/.querywarden/connections.toml."""

from __future__ import annotations

import os
import re
import stat
import tomllib
from pathlib import Path

from querywarden.adapters._base import ConnectionConfig, DatabaseType
from querywarden.config import STATE_DIR

_CONNECTIONS_FILE = STATE_DIR / "connections.toml"

# Names become bare TOML table headers.
_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _escape_toml_value(v: str) -> str:
    """Escape a string for safe inclusion in a TOML double-quoted value."""
    return v.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _write_toml(data: dict[str, dict]) -> None:
    """Serialize connections to TOML and write with owner-only permissions."""
    lines: list[str] = []
    for conn_name, entry in data.items():
        lines.append(f"[{conn_name}]")
        for k, v in entry.items():
            lines.append(f'{k} = "{_escape_toml_value(str(v))}"')
        lines.append("")

    _CONNECTIONS_FILE.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    _CONNECTIONS_FILE.write_text("\n".join(lines))
    os.chmod(_CONNECTIONS_FILE, stat.S_IRUSR | stat.S_IWUSR)  # 0600


def _load_file() -> dict:
    if not _CONNECTIONS_FILE.exists():
        return {}
    return tomllib.loads(_CONNECTIONS_FILE.read_text())


def list_connections() -> dict[str, dict]:
    """Return all named connections as {name: {type, ...params}}."""
    return _load_file()


def get_connection(name: str) -> ConnectionConfig | None:
    """Look up a named connection. Returns None if missing or of unknown type."""
    entry = _load_file().get(name)
    if not isinstance(entry, dict):
        return None

    try:
        db_type = DatabaseType(entry.get("type"))
    except ValueError:
        return None

    params = {k: str(v) for k, v in entry.items() if k != "type"}
    return ConnectionConfig(name=name, db_type=db_type, params=params)


def save_connection(name: str, db_type: DatabaseType, params: dict[str, str]) -> Path:
    """Save (or replace) a named connection. Returns the file written."""
    if not _NAME_RE.match(name):
        raise ValueError(
            f"Invalid connection name '{name}': use letters, digits, '-' and '_'"
        )
    for key in params:
        if not _NAME_RE.match(key):
            raise ValueError(f"Invalid parameter name '{key}'")

    data = _load_file()
    data[name] = {"type": db_type.value, **params}
    _write_toml(data)
    return _CONNECTIONS_FILE


def remove_connection(name: str) -> bool:
    """Remove a named connection. Returns True if removed, False if not found."""
    data = _load_file()
    if name not in data:
        return False
    del data[name]
    if data:
        _write_toml(data)
    else:
        _CONNECTIONS_FILE.unlink(missing_ok=True)
    return True
