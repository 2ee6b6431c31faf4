"""Resolution result type: success and the two failure reasons."""

from __future__ import annotations

import dataclasses

import pytest

from lib_liberty_config.domain.resolution import CIRCULAR, UNDEFINED, Resolved, Unresolved


def test_resolved_exposes_value() -> None:
    outcome = Resolved("apps/demo.war")
    assert outcome.ok is True
    assert outcome.value_or("literal") == "apps/demo.war"


@pytest.mark.parametrize("reason", [CIRCULAR, UNDEFINED])
def test_unresolved_falls_back_to_default(reason: str) -> None:
    outcome = Unresolved(reason, "app.name")
    assert outcome.ok is False
    assert outcome.value_or("${app.name}.war") == "${app.name}.war"
    assert outcome.variable == "app.name"


def test_results_are_immutable() -> None:
    outcome = Resolved("x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        outcome.value = "y"  # type: ignore[misc]
