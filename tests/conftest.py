"""Root conftest — shared fixtures and markers."""

from __future__ import annotations

import os

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "postgres: requires running PostgreSQL container")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("QUERYWARDEN_TEST_POSTGRES"):
        return

    skip_pg = pytest.mark.skip(reason="Postgres not available (set QUERYWARDEN_TEST_POSTGRES=1)")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    """Redirect config, connections and query logs away from the real home directory."""
    from querywarden import config, connections, querylog

    root = tmp_path / ".querywarden"
    monkeypatch.setattr(config, "_CONFIG_FILE", root / "config.toml")
    monkeypatch.setattr(connections, "_CONNECTIONS_FILE", root / "connections.toml")
    monkeypatch.setattr(querylog, "_LOG_ROOT", root / "logs")
    return root
