from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_liberty_config.application.merge import merge_on_conflict

FEATURES = st.frozensets(st.text(alphabet="abcdefghij-.0123456789", min_size=1, max_size=8), max_size=5)
MAYBE_FEATURES = st.one_of(st.none(), FEATURES)
POLICIES = st.sampled_from([None, "", "merge", "MERGE", "replace", "Replace", "ignore", "IGNORE", "bogus"])


@pytest.mark.parametrize(
    ("current", "policy", "child", "expected"),
    [
        ({"orig"}, None, {"extra"}, {"orig", "extra"}),
        ({"orig"}, "merge", {"extra"}, {"orig", "extra"}),
        ({"orig"}, "replace", {"extra"}, {"extra"}),
        ({"orig"}, "ignore", {"extra"}, {"orig"}),
        ({"orig"}, "replace", None, {"orig"}),
        ({"orig"}, "replace", set(), {"orig"}),
        (None, "ignore", {"extra"}, {"extra"}),
        (set(), "ignore", {"extra"}, set()),
        (None, "merge", None, None),
        (None, "merge", set(), set()),
        ({"orig"}, "unknown", {"extra"}, {"orig", "extra"}),
        (None, "replace", None, None),
    ],
)
def test_on_conflict_policies(current, policy, child, expected) -> None:
    assert merge_on_conflict(current, policy, child) == expected


def test_policy_is_trimmed_and_case_insensitive() -> None:
    assert merge_on_conflict({"orig"}, "  RePlAcE ", {"extra"}) == {"extra"}


def test_result_is_a_fresh_set() -> None:
    current = {"orig"}
    child = {"extra"}
    for policy in ("merge", "replace", "ignore"):
        result = merge_on_conflict(current, policy, child)
        assert result is not current
        assert result is not child
    assert current == {"orig"}
    assert child == {"extra"}


@given(MAYBE_FEATURES, POLICIES, MAYBE_FEATURES)
def test_inputs_are_never_mutated(current, policy, child) -> None:
    before = (None if current is None else set(current), None if child is None else set(child))
    merge_on_conflict(None if current is None else set(current), policy, child)
    assert before == (None if current is None else set(current), None if child is None else set(child))


@given(FEATURES, FEATURES)
def test_merge_is_union(current, child) -> None:
    assert merge_on_conflict(set(current), "merge", child) == set(current) | set(child)


@given(MAYBE_FEATURES, FEATURES)
def test_non_empty_replace_wins(current, child) -> None:
    result = merge_on_conflict(None if current is None else set(current), "replace", child)
    assert result == (set(child) if child else (None if current is None else set(current)))


@given(FEATURES, MAYBE_FEATURES)
def test_ignore_keeps_existing_parent(current, child) -> None:
    assert merge_on_conflict(set(current), "ignore", child) == set(current)
