"""Application-layer ``onConflict`` policy for included feature sets.

Purpose
-------
Combine the features declared by an ``<include>`` document with the features
its parent has accumulated so far. The policy is free of I/O so it can be
reused by any scanner that walks include trees.

Contents
    - ``ON_CONFLICT_MERGE`` / ``ON_CONFLICT_REPLACE`` / ``ON_CONFLICT_IGNORE``:
      recognised attribute values (compared case-insensitively).
    - ``merge_on_conflict``: public entry point.

System Role
-----------
Called by :class:`lib_liberty_config.application.features.ServerFeatureScanner`
after each include has been parsed. ``None`` means "no featureManager section
seen" while an empty set means "sections exist but declare nothing"; the
policy depends on that distinction.
"""

from __future__ import annotations

from typing import AbstractSet, Final

ON_CONFLICT_MERGE: Final[str] = "merge"
ON_CONFLICT_REPLACE: Final[str] = "replace"
ON_CONFLICT_IGNORE: Final[str] = "ignore"


def merge_on_conflict(
    current: set[str] | None,
    on_conflict: str | None,
    child: AbstractSet[str] | None,
) -> set[str] | None:
    """Return the feature set after applying *child* to *current*.

    Why
    ----
    Liberty lets an include decide whether its declarations merge with,
    replace, or are ignored in favour of the parent's.

    What
    ----
    * ``replace`` keeps *child* only when it declares at least one feature.
    * ``ignore`` uses *child* only when the parent has no featureManager
      section at all (``current is None``); an existing but empty parent set
      wins.
    * Anything else, including missing or invalid values, merges.

    Returns
    -------
    set[str] | None
        A new set; *current* is never mutated.

    Examples
    --------
    >>> sorted(merge_on_conflict({"orig"}, "merge", {"extra"}))
    ['extra', 'orig']
    >>> merge_on_conflict({"orig"}, "REPLACE", {"extra"})
    {'extra'}
    >>> merge_on_conflict({"orig"}, "replace", set())
    {'orig'}
    >>> merge_on_conflict(set(), "ignore", {"extra"})
    set()
    >>> merge_on_conflict(None, "ignore", {"extra"})
    {'extra'}
    >>> merge_on_conflict(None, "bogus", None) is None
    True
    """

    policy = (on_conflict or "").strip().lower()
    if policy == ON_CONFLICT_REPLACE:
        if child:
            return set(child)
        return _copy(current)
    if policy == ON_CONFLICT_IGNORE:
        if current is None:
            return _copy(child)
        return set(current)
    if child is None:
        return _copy(current)
    if current is None:
        return set(child)
    return set(current) | set(child)


def _copy(features: AbstractSet[str] | None) -> set[str] | None:
    return None if features is None else set(features)
