"""Domain-level property layers and predefined Liberty directory names.

Purpose
-------
Hold the mutable property sets that a configuration scan accumulates, together
with the provenance of every key, and name the predefined directory properties
that are always available to variable resolution.

Contents
--------
* Directory property names (:data:`WLP_INSTALL_DIR`, :data:`SERVER_CONFIG_DIR`,
  …) and :data:`DIRECTORY_PROPERTY_NAMES`.
* :class:`SourceInfo` – typed provenance record.
* :class:`PropertyLayer` – ``MutableMapping`` with last-write-wins semantics
  and provenance tracking.

System Role
-----------
One ``props`` layer and one ``defaultProps`` layer are created per scan. The
property loaders write into them in precedence order; the resolvers only read
them. Nothing in this module performs I/O.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Final, Iterator, Mapping, TypedDict

WLP_INSTALL_DIR: Final[str] = "wlp.install.dir"
WLP_USER_DIR: Final[str] = "wlp.user.dir"
USR_EXTENSION_DIR: Final[str] = "usr.extension.dir"
SHARED_APP_DIR: Final[str] = "shared.app.dir"
SHARED_CONFIG_DIR: Final[str] = "shared.config.dir"
SHARED_RESOURCES_DIR: Final[str] = "shared.resource.dir"
SHARED_STACKGROUP_DIR: Final[str] = "shared.stackgroup.dir"
SERVER_CONFIG_DIR: Final[str] = "server.config.dir"

DIRECTORY_PROPERTY_NAMES: Final[tuple[str, ...]] = (
    SERVER_CONFIG_DIR,
    WLP_INSTALL_DIR,
    WLP_USER_DIR,
    USR_EXTENSION_DIR,
    SHARED_APP_DIR,
    SHARED_CONFIG_DIR,
    SHARED_RESOURCES_DIR,
    SHARED_STACKGROUP_DIR,
)
"""Every predefined directory property; ``wlp.output.dir`` is deliberately absent."""

VARIABLE_SOURCE_DIRS: Final[str] = "VARIABLE_SOURCE_DIRS"
BOOTSTRAP_INCLUDE: Final[str] = "bootstrap.include"


class SourceInfo(TypedDict):
    """Describe the origin of a property value.

    Attributes
    ----------
    layer:
        Logical source name (``"server.env"``, ``"bootstrap.properties"``,
        ``"system"``, ``"variables"``, ``"server.xml"``, …).
    path:
        File that produced the value, ``None`` for in-memory sources.
    key:
        The property name.
    """

    layer: str
    path: str | None
    key: str


class PropertyLayer(MutableMapping[str, str]):
    """Ordered ``name -> value`` mapping that remembers who wrote each key.

    Later writes overwrite earlier ones for the same key (last write wins),
    and the provenance follows the winning write.

    Examples
    --------
    >>> layer = PropertyLayer()
    >>> layer.set("http.port", "9080", layer="server.env", path="/srv/server.env")
    >>> layer.set("http.port", "9081", layer="bootstrap.properties")
    >>> layer["http.port"]
    '9081'
    >>> layer.origin("http.port")["layer"]
    'bootstrap.properties'
    """

    def __init__(self, initial: Mapping[str, str] | None = None, *, layer: str = "initial") -> None:
        self._data: dict[str, str] = {}
        self._meta: dict[str, SourceInfo] = {}
        for key, value in (initial or {}).items():
            self.set(key, value, layer=layer)

    def set(self, key: str, value: str, *, layer: str, path: str | None = None) -> None:
        """Store *value* under *key* and record where it came from."""

        self._data[key] = value
        self._meta[key] = {"layer": layer, "path": path, "key": key}

    def update_from(self, values: Mapping[str, str], *, layer: str, path: str | None = None) -> None:
        """Apply every entry of *values* in iteration order."""

        for key, value in values.items():
            self.set(key, value, layer=layer, path=path)

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for *key* or ``None`` when it was never set."""

        return self._meta.get(key)

    def provenance(self) -> dict[str, SourceInfo]:
        return {key: dict(info) for key, info in self._meta.items()}  # type: ignore[misc]

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self.set(key, value, layer="direct")

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._meta.pop(key, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PropertyLayer({self._data!r})"
