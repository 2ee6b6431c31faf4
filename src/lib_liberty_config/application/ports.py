"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the scanners depend on so the composition
root can wire concrete adapters (or test doubles) without the application
layer importing them.

Contents
--------
* :class:`PathResolver` – knows the Liberty directory layout.
* :class:`PropertiesLoader` – fills property layers from Liberty sources.
* :class:`DocumentLoader` – parses configuration documents from paths and URLs.
* :class:`FeatureInstaller` – external service that resolves and installs
  features; never implemented in this package.

System Role
-----------
These protocols enforce Dependency Inversion (DIP). Each adapter implements one
protocol so the scanners can request behaviour via abstraction.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..domain.document import XmlDocument
    from ..domain.properties import PropertyLayer


@runtime_checkable
class PathResolver(Protocol):
    """Answer layout questions for one server.

    Attributes
    ----------
    directories:
        Predefined directory properties.
    config_dir / server_xml:
        Anchors for relative lookups; either may be ``None``.
    """

    directories: Mapping[str, Path]
    config_dir: Path | None
    server_xml: Path | None

    def dropin_files(self, folder: str) -> list[Path]:
        """Return ``configDropins/<folder>`` documents in processing order."""

    def include_candidates(self, location: str) -> Iterable[Path]:
        """Yield filesystem candidates for a relative or absolute include."""

    def directory_xml_files(self, directory: Path) -> list[Path]:
        """Return the documents of a directory include in processing order."""


@runtime_checkable
class PropertiesLoader(Protocol):
    """Load Liberty property sources into a layer in precedence order.

    Why
    ----
    Keeps the on-disk layout (``server.env`` locations, ``bootstrap.include``
    chains, ``variables`` trees) out of the scanner.

    Methods
    -------
    :meth:`load_server_env`
        ``etc`` → ``shared`` → config dir; returns the keys written.
    :meth:`load_bootstrap`
        ``bootstrap.properties`` and its include chain.
    :meth:`load_system_properties`
        Process-level overrides.
    :meth:`load_variables_dirs`
        ``variables`` directory or ``VARIABLE_SOURCE_DIRS`` entries.
    """

    def load_server_env(self, layer: PropertyLayer) -> list[str]:
        """Load every ``server.env`` and return the keys it wrote."""

    def load_bootstrap(self, layer: PropertyLayer) -> list[Path]:
        """Load ``bootstrap.properties`` plus includes and return the files read."""

    def load_system_properties(self, layer: PropertyLayer) -> None:
        """Merge system properties into *layer*."""

    def load_variables_dirs(self, layer: PropertyLayer) -> list[Path]:
        """Load variables directories and return those that existed."""


@runtime_checkable
class DocumentLoader(Protocol):
    """Parse a configuration document.

    Why
    ----
    Segregate XML parsing and URL fetching from the precedence logic.
    """

    def load_file(self, path: Path) -> XmlDocument:
        """Read *path* or raise ``NotFound`` / ``InvalidFormat``."""

    def load_url(self, url: str) -> XmlDocument:
        """Fetch *url* or raise ``IncludeError`` / ``InvalidFormat``."""

    def load_location(self, location: str) -> XmlDocument:
        """Dispatch on the location kind (URL, ``file:`` URI, path)."""


@runtime_checkable
class FeatureInstaller(Protocol):
    """Resolve and install features through an external runtime service.

    Why
    ----
    Installation is owned by the Liberty runtime; build plugins call it through
    this interface (an out-of-process call or plugin ABI) instead of loading
    runtime internals.
    """

    def resolve_features(self, features: Iterable[str]) -> list[str]:
        """Return the artifacts needed to install *features*."""

    def install(self, artifacts: Iterable[str]) -> None:
        """Install previously resolved *artifacts*."""
