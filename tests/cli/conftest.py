"""CLI fixtures: every command runs against an isolated state directory."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _isolated_state(state_dir):
    return state_dir
