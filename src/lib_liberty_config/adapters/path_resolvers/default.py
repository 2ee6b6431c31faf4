"""Filesystem path resolution for a Liberty server layout.

Purpose
-------
Encapsulate every convention about where Liberty keeps its configuration:
predefined directory properties, the three ``server.env`` locations,
``configDropins`` and how relative ``<include>`` locations are anchored. The
adapter is the only component that understands the on-disk layout.

Contents
--------
* :func:`liberty_directories` – predefined directory properties from the
  install, user and server directories.
* :func:`liberty_directories_for_server` – the same mapping derived from the
  server directory alone.
* :class:`DefaultPathResolver` – resolves candidate paths for one scan.

System Role
-----------
Feeds deterministic path lists into the property loaders and the document
scanners while emitting observability events about discovered paths.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Mapping

from ...domain.properties import (
    SERVER_CONFIG_DIR,
    SHARED_APP_DIR,
    SHARED_CONFIG_DIR,
    SHARED_RESOURCES_DIR,
    SHARED_STACKGROUP_DIR,
    USR_EXTENSION_DIR,
    WLP_INSTALL_DIR,
    WLP_USER_DIR,
)
from ...observability import log_debug, log_warning

CONFIG_DROPINS = "configDropins"
DROPINS_DEFAULTS = "defaults"
DROPINS_OVERRIDES = "overrides"


def liberty_directories(install_dir: Path, user_dir: Path, server_dir: Path) -> dict[str, Path]:
    """Return the predefined directory properties for an explicit layout.

    An absent *server_dir* yields an empty mapping, mirroring a server that has
    not been created yet.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> server = root / "usr" / "servers" / "demo"
    >>> server.mkdir(parents=True)
    >>> dirs = liberty_directories(root, root / "usr", server)
    >>> len(dirs), dirs["shared.config.dir"].name
    (8, 'config')
    >>> tmp.cleanup()
    """

    if not server_dir.exists():
        log_warning("server_directory_missing", layer="directories", path=str(server_dir))
        return {}
    shared = user_dir / "shared"
    return {
        SERVER_CONFIG_DIR: server_dir.resolve(),
        WLP_INSTALL_DIR: install_dir.resolve(),
        WLP_USER_DIR: user_dir.resolve(),
        USR_EXTENSION_DIR: (user_dir / "extension").resolve(),
        SHARED_APP_DIR: (shared / "app").resolve(),
        SHARED_CONFIG_DIR: (shared / "config").resolve(),
        SHARED_RESOURCES_DIR: (shared / "resources").resolve(),
        SHARED_STACKGROUP_DIR: (shared / "stackGroups").resolve(),
    }


def liberty_directories_for_server(server_dir: Path) -> dict[str, Path]:
    """Derive the layout from ``<install>/usr/servers/<name>``.

    The user directory is two levels above the server directory and the
    install directory one level above that.
    """

    user_dir = server_dir.parent.parent
    return liberty_directories(user_dir.parent, user_dir, server_dir)


class DefaultPathResolver:
    """Resolve candidate paths for one configuration scan.

    Parameters
    ----------
    directories:
        Predefined directory properties (see :func:`liberty_directories`).
        ``server.config.dir`` anchors relative lookups.
    server_xml:
        The primary configuration document. Defaults to
        ``<server.config.dir>/server.xml``.
    platform:
        ``sys.platform`` clone used for OS-specific delimiters.
    """

    def __init__(
        self,
        *,
        directories: Mapping[str, Path],
        server_xml: Path | None = None,
        platform: str | None = None,
    ) -> None:
        self.directories = dict(directories)
        self.config_dir: Path | None = self.directories.get(SERVER_CONFIG_DIR)
        if server_xml is None and self.config_dir is not None:
            server_xml = self.config_dir / "server.xml"
        self.server_xml = server_xml
        self.platform = platform or sys.platform

    @property
    def is_windows(self) -> bool:
        return self.platform.startswith("win")

    @property
    def server_xml_dir(self) -> Path | None:
        return self.server_xml.parent if self.server_xml is not None else None

    def config_file(self, name: str) -> Path | None:
        """Return ``<server.config.dir>/<name>`` when it exists."""

        if self.config_dir is None:
            return None
        candidate = self.config_dir / name
        return candidate if candidate.exists() else None

    def server_env_files(self) -> list[Path]:
        """Return existing ``server.env`` files in ascending precedence.

        Order: ``<install>/etc``, ``<user>/shared``, ``<server.config.dir>``.
        """

        candidates: list[Path] = []
        install = self.directories.get(WLP_INSTALL_DIR)
        user = self.directories.get(WLP_USER_DIR)
        if install is not None:
            candidates.append(install / "etc" / "server.env")
        if user is not None:
            candidates.append(user / "shared" / "server.env")
        if self.config_dir is not None:
            candidates.append(self.config_dir / "server.env")
        found = [path for path in candidates if path.is_file()]
        log_debug("path_candidates", layer="server.env", path=None, count=len(found))
        return found

    def variables_dir(self) -> Path | None:
        return self.config_dir / "variables" if self.config_dir is not None else None

    def config_dropins_dir(self) -> Path | None:
        """Return the active ``configDropins`` directory.

        The copy under ``server.config.dir`` wins when both it and the one next
        to ``server.xml`` exist.
        """

        if self.config_dir is not None:
            candidate = self.config_dir / CONFIG_DROPINS
            if candidate.exists():
                return candidate
        if self.server_xml_dir is not None:
            return self.server_xml_dir / CONFIG_DROPINS
        return None

    def dropin_files(self, folder: str) -> list[Path]:
        """Return ``configDropins/<folder>/*.xml`` sorted case-insensitively."""

        base = self.config_dropins_dir()
        if base is None:
            return []
        directory = base / folder
        if not directory.is_dir():
            return []
        files = sorted_xml_children(directory)
        if files:
            log_debug("path_candidates", layer=f"configDropins/{folder}", path=str(directory), count=len(files))
        return files

    def include_candidates(self, location: str) -> Iterable[Path]:
        """Yield filesystem candidates for a plain include *location*.

        Absolute locations are returned as-is; relative ones are tried against
        ``server.config.dir`` first and then the ``server.xml`` directory.
        """

        path = Path(location)
        if path.is_absolute():
            yield path
            return
        if self.config_dir is not None and self.config_dir.exists():
            yield self.config_dir / location
        if self.server_xml_dir is not None:
            yield self.server_xml_dir / location

    def directory_xml_files(self, directory: Path) -> list[Path]:
        """Return the documents of a directory include, alphabetically."""

        return sorted_xml_children(directory)


def sorted_xml_children(directory: Path) -> list[Path]:
    """Return the ``*.xml`` files directly inside *directory*, alphabetically."""

    return sorted(
        (child for child in directory.iterdir() if child.is_file() and child.suffix.lower() == ".xml"),
        key=_case_insensitive,
    )


def _case_insensitive(path: Path) -> str:
    return str(path).lower()
