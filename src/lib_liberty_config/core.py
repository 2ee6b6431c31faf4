"""Composition root for ``lib_liberty_config``.

Purpose
-------
Provide the entry points that wire path resolution, property loading, XML
loading and the scanners together. Build plugins and the CLI call these
functions and never assemble adapters themselves.

Contents
--------
* :func:`server_directories` – predefined directory properties for a server.
* :func:`scan_server_config` – run a configuration scan and return the
  :class:`ServerConfigDocument`.
* :func:`resolve_expression` – resolve an attribute-style value against a scan.
* :func:`expand_file` – load a ``server.env`` style file and expand its values.
* :func:`server_features` – effective feature set of a server directory.
* :class:`ScanCache` – caller-owned memo returning the same scan per
  ``server.xml`` until marked stale.

System Role
-----------
This module connects adapters (filesystem, environment, XML, HTTP) with the
application layer while emitting structured observability signals. It is the
canonical location for changing how adapters are wired.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import httpx

from .adapters.env.default import DefaultEnvLoader
from .adapters.file_loaders.xml import XmlDocumentLoader
from .adapters.path_resolvers.default import DefaultPathResolver, liberty_directories_for_server
from .adapters.properties.default import DefaultPropertiesLoader, parse_properties
from .application.expansion import expand_layer
from .application.features import ServerFeatureScanner
from .application.scanner import ServerConfigDocument
from .application.variables import resolve_variables
from .domain.errors import ConfigError, DuplicateSpringBootApplication, IncludeError, InvalidFormat, NotFound
from .domain.properties import PropertyLayer
from .domain.resolution import Resolution
from .domain.scan import ServerConfigScan
from .observability import bind_trace_id, log_debug, log_info, make_event


def server_directories(
    *,
    server_dir: str | Path | None = None,
    server_xml: str | Path | None = None,
    directories: Mapping[str, str | Path] | None = None,
) -> dict[str, Path]:
    """Return the predefined directory properties for one server.

    Explicit *directories* win; otherwise the layout is derived from
    *server_dir* (or the directory holding *server_xml*) assuming the usual
    ``<install>/usr/servers/<name>`` structure.

    Raises
    ------
    ValueError
        When none of the three inputs is given.

    Examples
    --------
    >>> server_directories(directories={"server.config.dir": "/srv/demo"})
    {'server.config.dir': PosixPath('/srv/demo')}
    """

    if directories is not None:
        return {name: Path(value) for name, value in directories.items()}
    if server_dir is not None:
        return liberty_directories_for_server(Path(server_dir))
    if server_xml is not None:
        return liberty_directories_for_server(Path(server_xml).parent)
    raise ValueError("server_dir, server_xml or directories is required")


def scan_server_config(
    server_xml: str | Path | None = None,
    *,
    server_dir: str | Path | None = None,
    directories: Mapping[str, str | Path] | None = None,
    environ: Mapping[str, str] | None = None,
    system_properties: Mapping[str, str] | None = None,
    initial_properties: Mapping[str, str] | None = None,
    client: httpx.Client | None = None,
    platform: str | None = None,
) -> ServerConfigDocument:
    """Scan a server configuration and return the finished document.

    Why
    ----
    Consumers need the discovered application locations and the layered
    properties without knowing which adapters produce them.

    Parameters
    ----------
    server_xml:
        Primary document; defaults to ``<server.config.dir>/server.xml``.
    server_dir / directories:
        Layout inputs, see :func:`server_directories`.
    environ:
        Mapping consulted for ``VARIABLE_SOURCE_DIRS`` (defaults to
        :data:`os.environ`).
    system_properties:
        ``-Dkey=value`` style properties loaded after ``bootstrap.properties``.
    initial_properties:
        Lowest-precedence properties known before the scan.
    client:
        ``httpx.Client`` used for URL includes.
    platform:
        ``sys.platform`` override (expansion syntax, path list delimiter).

    Side Effects
    ------------
    Resets the active trace identifier and emits structured log events.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> server = Path(tmp.name) / "usr" / "servers" / "demo"
    >>> server.mkdir(parents=True)
    >>> _ = (server / "bootstrap.properties").write_text("app.name=demo\\n", encoding="utf-8")
    >>> _ = (server / "server.xml").write_text(
    ...     '<server><application location="${app.name}.war"/></server>', encoding="utf-8")
    >>> document = scan_server_config(server_dir=server, environ={})
    >>> sorted(document.locations), document.find_name_for_location("demo.war")
    (['demo.war'], 'demo')
    >>> tmp.cleanup()
    """

    bind_trace_id(None)
    dirs = server_directories(server_dir=server_dir, server_xml=server_xml, directories=directories)
    resolver = DefaultPathResolver(
        directories=dirs,
        server_xml=Path(server_xml) if server_xml is not None else None,
        platform=platform,
    )
    properties_loader = DefaultPropertiesLoader(
        resolver,
        DefaultEnvLoader(environ=environ, system_properties=system_properties),
    )
    log_debug("scan_started", **make_event("server.xml", _as_str(resolver.server_xml), {"directories": len(dirs)}))
    return ServerConfigDocument(
        resolver,
        properties_loader,
        XmlDocumentLoader(client=client),
        initial_properties=initial_properties,
        platform=platform,
    )


def resolve_expression(expression: str, document: ServerConfigDocument) -> Resolution:
    """Resolve *expression* the way ``location`` attributes are resolved.

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> scan = SimpleNamespace(properties={"app": "demo"}, default_properties={}, directories={})
    >>> resolve_expression("apps\\\\${app}.war", scan)
    Resolved(value='apps/demo.war')
    """

    return resolve_variables(
        expression,
        None,
        document.properties,
        document.default_properties,
        document.directories,
    )


def expand_file(path: str | Path, *, platform: str | None = None) -> dict[str, str]:
    """Parse a ``server.env`` style file and expand every value.

    Raises
    ------
    NotFound
        When *path* cannot be read.
    InvalidFormat
        When the file is not valid UTF-8.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> env = Path(tmp.name) / "server.env"
    >>> _ = env.write_text("HOME_DIR=/opt\\nLOG_DIR=${HOME_DIR}/logs\\n", encoding="utf-8")
    >>> expand_file(env, platform="linux")
    {'HOME_DIR': '/opt', 'LOG_DIR': '/opt/logs'}
    >>> tmp.cleanup()
    """

    target = Path(path)
    layer = PropertyLayer()
    layer.update_from(parse_properties(target), layer="file", path=str(target))
    expand_layer(layer, list(layer), platform=platform)
    log_info("file_expanded", layer="file", path=str(target), keys=len(layer))
    return dict(layer)


def server_features(
    server_dir: str | Path,
    *,
    directories: Mapping[str, str | Path] | None = None,
    client: httpx.Client | None = None,
) -> set[str] | None:
    """Return the features a server configuration declares.

    ``None`` means no ``featureManager`` section exists anywhere; an empty set
    means sections exist but list nothing.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> server = Path(tmp.name) / "usr" / "servers" / "demo"
    >>> server.mkdir(parents=True)
    >>> _ = (server / "server.xml").write_text(
    ...     "<server><featureManager><feature> JSP-2.3 </feature></featureManager></server>", encoding="utf-8")
    >>> server_features(server)
    {'jsp-2.3'}
    >>> tmp.cleanup()
    """

    bind_trace_id(None)
    root = Path(server_dir)
    dirs = server_directories(server_dir=root, directories=directories)
    layout = dict(dirs)
    layout.setdefault("server.config.dir", root)
    resolver = DefaultPathResolver(directories=layout, server_xml=root / "server.xml")
    scanner = ServerFeatureScanner(
        resolver,
        DefaultPropertiesLoader(resolver, DefaultEnvLoader(environ={})),
        XmlDocumentLoader(client=client),
    )
    features = scanner.server_features()
    log_info("server_features_collected", layer="features", path=str(root), count=len(features or ()))
    return features


class ScanCache:
    """Caller-owned memo of the most recent scan.

    One cache is created per build or dev-mode session and passed to whoever
    needs the scan. Asking for a different ``server.xml`` (by canonical path)
    replaces the cached scan; :meth:`mark_stale` forces the next call to rescan.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> server = Path(tmp.name) / "usr" / "servers" / "demo"
    >>> server.mkdir(parents=True)
    >>> _ = (server / "server.xml").write_text("<server/>", encoding="utf-8")
    >>> cache = ScanCache()
    >>> first = cache.get(server / "server.xml", environ={})
    >>> cache.get(server / "server.xml", environ={}) is first
    True
    >>> cache.mark_stale()
    >>> cache.get(server / "server.xml", environ={}) is first
    False
    >>> tmp.cleanup()
    """

    def __init__(self) -> None:
        self._key: Path | None = None
        self._document: ServerConfigDocument | None = None

    def get(self, server_xml: str | Path, **options: Any) -> ServerConfigDocument:
        """Return the cached scan for *server_xml*, scanning when needed.

        *options* are forwarded to :func:`scan_server_config`.
        """

        key = Path(server_xml).resolve()
        if self._document is None or key != self._key:
            self._document = scan_server_config(key, **options)
            self._key = key
        return self._document

    def mark_stale(self) -> None:
        self._key = None
        self._document = None


def _as_str(path: Path | None) -> str | None:
    return str(path) if path is not None else None


__all__ = [
    "ConfigError",
    "DuplicateSpringBootApplication",
    "IncludeError",
    "InvalidFormat",
    "NotFound",
    "ScanCache",
    "ServerConfigDocument",
    "ServerConfigScan",
    "expand_file",
    "resolve_expression",
    "scan_server_config",
    "server_directories",
    "server_features",
]
