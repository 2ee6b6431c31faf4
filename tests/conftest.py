"""Pytest fixtures shared by every test package."""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_liberty_config.observability import bind_trace_id
from tests.support import LibertySandbox, create_liberty_sandbox


@pytest.fixture()
def sandbox(tmp_path: Path) -> LibertySandbox:
    """Provide an empty Liberty server layout under ``tmp_path``."""

    return create_liberty_sandbox(tmp_path)


@pytest.fixture(autouse=True)
def _clear_trace_id():
    yield
    bind_trace_id(None)
