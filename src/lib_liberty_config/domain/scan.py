"""Immutable snapshot of a finished configuration scan.

Purpose
-------
Give downstream packaging and deployment logic a read-only view of what a
:class:`lib_liberty_config.application.scanner.ServerConfigDocument` found,
detached from the mutable state the scanner keeps while walking documents.

Contents
--------
* :class:`ServerConfigScan` – frozen dataclass with locations, names,
  properties and provenance.
* :func:`name_from_location` – derive an application name from a location.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from .properties import SourceInfo


def name_from_location(location: str, locations_and_names: Mapping[str, str]) -> str:
    """Return the declared name for *location*, or the location without its extension.

    Examples
    --------
    >>> name_from_location("apps/demo.war", {})
    'apps/demo'
    >>> name_from_location("apps/demo.war", {"apps/demo.war": "demo"})
    'demo'
    >>> name_from_location("exploded", {})
    'exploded'
    """

    name = locations_and_names.get(location)
    if name:
        return name
    stem, dot, _ = location.rpartition(".")
    return stem if dot else location


@dataclass(frozen=True, slots=True)
class ServerConfigScan:
    """Read-only result of one scan session.

    Examples
    --------
    >>> scan = ServerConfigScan(
    ...     locations=frozenset({"apps/demo.war"}),
    ...     names=frozenset({"demo"}),
    ...     nameless_locations=frozenset(),
    ...     locations_and_names={"apps/demo.war": "demo"},
    ...     properties={"http.port": "9080"},
    ...     default_properties={},
    ...     provenance={},
    ...     spring_boot_location=None,
    ... )
    >>> scan.find_name_for_location("apps/demo.war")
    'demo'
    >>> scan.properties["http.port"]
    '9080'
    """

    locations: frozenset[str]
    names: frozenset[str]
    nameless_locations: frozenset[str]
    locations_and_names: Mapping[str, str]
    properties: Mapping[str, str]
    default_properties: Mapping[str, str]
    provenance: Mapping[str, SourceInfo]
    spring_boot_location: str | None

    def __post_init__(self) -> None:
        object.__setattr__(self, "locations_and_names", MappingProxyType(dict(self.locations_and_names)))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "default_properties", MappingProxyType(dict(self.default_properties)))
        object.__setattr__(self, "provenance", MappingProxyType(dict(self.provenance)))

    def find_name_for_location(self, location: str) -> str:
        return name_from_location(location, self.locations_and_names)

    def as_dict(self, *, provenance: bool = False) -> dict[str, Any]:
        """Return a JSON-friendly ``dict`` with sorted collections."""

        payload: dict[str, Any] = {
            "locations": sorted(self.locations),
            "names": sorted(self.names),
            "nameless_locations": sorted(self.nameless_locations),
            "locations_and_names": dict(sorted(self.locations_and_names.items())),
            "spring_boot_location": self.spring_boot_location,
            "properties": dict(sorted(self.properties.items())),
            "default_properties": dict(sorted(self.default_properties.items())),
        }
        if provenance:
            payload["provenance"] = {key: dict(value) for key, value in sorted(self.provenance.items())}
        return payload

    def to_json(self, *, indent: int | None = None, provenance: bool = False) -> str:
        return json.dumps(self.as_dict(provenance=provenance), indent=indent, ensure_ascii=False)
