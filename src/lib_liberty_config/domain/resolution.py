"""Explicit outcome type for facade-level variable resolution.

Purpose
-------
Replace "``None`` means it failed" with a value object so callers can tell a
fully substituted string apart from a circular or undefined reference without
inspecting sentinel values.

Contents
--------
* :class:`Resolved` – the substitution succeeded.
* :class:`Unresolved` – the whole input could not be resolved; carries the
  offending variable and the reason (``"circular"`` or ``"undefined"``).
* :data:`Resolution` – union alias used in signatures.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal, Union

CIRCULAR: Final[str] = "circular"
UNDEFINED: Final[str] = "undefined"


@dataclass(frozen=True, slots=True)
class Resolved:
    """Successful resolution.

    Examples
    --------
    >>> Resolved("apps/demo.war").value_or("fallback")
    'apps/demo.war'
    """

    value: str

    @property
    def ok(self) -> bool:
        return True

    def value_or(self, default: str) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Unresolved:
    """Failed resolution of the whole input.

    Examples
    --------
    >>> outcome = Unresolved("undefined", "app.name")
    >>> outcome.value_or("${app.name}.war")
    '${app.name}.war'
    >>> outcome.ok
    False
    """

    reason: Literal["circular", "undefined"]
    variable: str

    @property
    def ok(self) -> bool:
        return False

    def value_or(self, default: str) -> str:
        return default


Resolution = Union[Resolved, Unresolved]
