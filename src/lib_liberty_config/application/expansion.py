"""Environment-style variable expansion with cycle and depth guards.

Purpose
-------
Expand the placeholders that ``server.env`` values may contain. The syntax
follows the host shell: ``!NAME!`` on Windows and ``${NAME}`` elsewhere.
Expansion never fails: anything that cannot be substituted is left verbatim.

Contents
--------
* :data:`MAX_EXPANSION_DEPTH` – maximum chain length followed (5).
* :func:`placeholder_pattern` – regex for the current (or given) platform.
* :func:`expand` – expand one value.
* :func:`expand_layer` – expand selected values of a property layer in place.

System Role
-----------
Runs right after ``server.env`` is loaded. It is a different policy from
:mod:`lib_liberty_config.application.variables`, which aborts the whole value
on any failure. The two policies give different results for cyclic and
undefined references.
"""

from __future__ import annotations

import re
import sys
from typing import Final, Iterable, Mapping

from ..domain.properties import PropertyLayer
from ..observability import log_debug, log_warning

MAX_EXPANSION_DEPTH: Final[int] = 5

_UNIX_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{(.*?)\}")
_WINDOWS_PATTERN: Final[re.Pattern[str]] = re.compile(r"!(.*?)!")


def placeholder_pattern(platform: str | None = None) -> re.Pattern[str]:
    """Return the placeholder regex for *platform* (checked on every call).

    Examples
    --------
    >>> placeholder_pattern("linux").pattern
    '\\\\$\\\\{(.*?)\\\\}'
    >>> placeholder_pattern("win32").pattern
    '!(.*?)!'
    """

    return _WINDOWS_PATTERN if (platform or sys.platform).startswith("win") else _UNIX_PATTERN


def expand(
    value: str,
    properties: Mapping[str, str],
    *,
    current_key: str | None = None,
    in_progress: Iterable[str] = (),
    remaining_depth: int = MAX_EXPANSION_DEPTH,
    platform: str | None = None,
) -> str:
    """Expand every placeholder in *value* in a single left-to-right pass.

    Parameters
    ----------
    value:
        Text to expand.
    properties:
        Lookup source for placeholder names.
    current_key:
        Name of the property being expanded, treated as already in progress.
    in_progress:
        Names currently being expanded further up the chain.
    remaining_depth:
        Levels still allowed. ``<= 0`` returns *value* untouched; ``1`` splices
        raw values without expanding them further.
    platform:
        ``sys.platform`` override selecting the placeholder syntax.

    Examples
    --------
    >>> props = {"A": "${B}/a", "B": "base"}
    >>> expand("${A}", props, platform="linux")
    'base/a'
    >>> expand("${MISSING}-x", props, platform="linux")
    '${MISSING}-x'
    >>> expand("!B!", props, platform="win32")
    'base'
    >>> expand("${A}", props, remaining_depth=1, platform="linux")
    '${B}/a'
    """

    if remaining_depth <= 0:
        log_warning("expansion_depth_exhausted", layer="expansion", path=None, value=value, key=current_key)
        return value

    chain = set(in_progress)
    if current_key is not None:
        chain.add(current_key)
    pattern = placeholder_pattern(platform)

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in chain:
            log_warning("variable_circular_reference", layer="expansion", path=None, variable=name, key=current_key)
            return match.group(0)
        replacement = properties.get(name)
        if replacement is None:
            return match.group(0)
        if remaining_depth == 1:
            return replacement
        return expand(
            replacement,
            properties,
            in_progress=chain | {name},
            remaining_depth=remaining_depth - 1,
            platform=platform,
        )

    expanded = pattern.sub(substitute, value)
    if expanded != value:
        log_debug("variable_expanded", layer="expansion", path=None, key=current_key, value=value, expanded=expanded)
    return expanded


def expand_layer(layer: PropertyLayer, keys: Iterable[str], *, platform: str | None = None) -> None:
    """Expand the values stored under *keys* in place, keeping their provenance.

    Examples
    --------
    >>> layer = PropertyLayer({"home": "/opt", "logs": "${home}/logs"})
    >>> expand_layer(layer, ["logs"], platform="linux")
    >>> layer["logs"]
    '/opt/logs'
    """

    for key in keys:
        if key not in layer:
            continue
        original = layer[key]
        expanded = expand(original, layer, current_key=key, platform=platform)
        if expanded != original:
            origin = layer.origin(key) or {"layer": "expansion", "path": None}
            layer.set(key, expanded, layer=origin["layer"], path=origin["path"])
