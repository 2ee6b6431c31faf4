"""Process environment adapter.

Purpose
-------
Translate process-level inputs into flat property mappings: explicit system
properties (the ``-Dkey=value`` style overrides a build plugin forwards) and
the ``VARIABLE_SOURCE_DIRS`` override list.

Key behaviours
--------------
* Reads from an injected ``environ`` mapping so tests stay deterministic.
* Splits ``VARIABLE_SOURCE_DIRS`` on ``;`` on Windows and ``:`` elsewhere.
* Emits structured logging via :mod:`lib_liberty_config.observability`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping

from ...domain.properties import VARIABLE_SOURCE_DIRS
from ...observability import log_debug


def path_list_delimiter(platform: str | None = None) -> str:
    """Return the delimiter used by ``VARIABLE_SOURCE_DIRS`` on *platform*.

    Examples
    --------
    >>> path_list_delimiter("win32"), path_list_delimiter("linux")
    (';', ':')
    """

    return ";" if (platform or sys.platform).startswith("win") else ":"


def variable_source_dirs(value: str, platform: str | None = None) -> list[Path]:
    """Split a ``VARIABLE_SOURCE_DIRS`` value into directories.

    Examples
    --------
    >>> [p.name for p in variable_source_dirs("/a/vars:/b/more::", platform="linux")]
    ['vars', 'more']
    >>> [p.name for p in variable_source_dirs("vars;more", platform="win32")]
    ['vars', 'more']
    """

    delimiter = path_list_delimiter(platform)
    return [Path(entry.strip()) for entry in value.split(delimiter) if entry.strip()]


class DefaultEnvLoader:
    """Expose process-level property sources."""

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        system_properties: Mapping[str, str] | None = None,
    ) -> None:
        """Initialise the loader.

        Parameters
        ----------
        environ:
            Mapping consulted for ``VARIABLE_SOURCE_DIRS``. Defaults to
            :data:`os.environ`.
        system_properties:
            Explicit system properties to merge after ``bootstrap.properties``.
        """

        self._environ = os.environ if environ is None else environ
        self._system_properties = dict(system_properties or {})

    def system_properties(self) -> dict[str, str]:
        """Return a copy of the configured system properties.

        Examples
        --------
        >>> DefaultEnvLoader(environ={}, system_properties={"a": "1"}).system_properties()
        {'a': '1'}
        """

        collected = dict(self._system_properties)
        log_debug("system_properties_loaded", layer="system", path=None, keys=sorted(collected))
        return collected

    def variable_source_dirs(self, overrides: Mapping[str, str], platform: str | None = None) -> list[Path] | None:
        """Return directories listed in ``VARIABLE_SOURCE_DIRS`` or ``None`` when unset.

        *overrides* (usually the property layer) wins over the environment.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={"VARIABLE_SOURCE_DIRS": "/x:/y"})
        >>> [p.name for p in loader.variable_source_dirs({}, platform="linux")]
        ['x', 'y']
        >>> loader.variable_source_dirs({"VARIABLE_SOURCE_DIRS": "/z"}, platform="linux")[0].name
        'z'
        >>> DefaultEnvLoader(environ={}).variable_source_dirs({}) is None
        True
        """

        raw = overrides.get(VARIABLE_SOURCE_DIRS) or self._environ.get(VARIABLE_SOURCE_DIRS)
        if not raw:
            return None
        return variable_source_dirs(raw, platform)
