"""Server configuration document scanner.

Purpose
-------
Discover every application a Liberty server would deploy: walk ``server.xml``,
its transitive includes and the ``configDropins`` folders, resolve every
``location`` and ``name`` attribute against the fully layered property sets,
and collect the results.

Contents
--------
* :data:`APPLICATION_TAGS` – elements that declare deployable applications.
* :class:`ServerConfigDocument` – runs one scan session and exposes the
  discovered locations, names and properties.

System Role
-----------
Sits between the property loaders (which fill the layers) and downstream
packaging logic (which consumes :meth:`ServerConfigDocument.snapshot`). The
precedence order of the scan is fixed::

    1. server.xml <variable defaultValue> (first pass)
    2. server.env        (install -> user -> config, then expanded)
    3. bootstrap.properties and its bootstrap.include chain
    4. system properties
    5. variables directories
    6. include variables -> configDropins/defaults -> server.xml variables
       -> configDropins/overrides
    7. application elements: server.xml -> includes -> defaults -> overrides
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Callable, Final, Iterator, Mapping

from ..domain.document import XmlDocument
from ..domain.errors import DuplicateSpringBootApplication, IncludeError, InvalidFormat, NotFound
from ..domain.locations import file_uri_to_path, is_directory_hint, is_file_uri, is_url
from ..domain.properties import PropertyLayer
from ..domain.resolution import Unresolved
from ..domain.scan import ServerConfigScan, name_from_location
from ..observability import log_debug, log_info, log_warning
from .expansion import expand_layer
from .ports import DocumentLoader, PathResolver, PropertiesLoader
from .variables import resolve_variables

SPRING_BOOT_APPLICATION: Final[str] = "springBootApplication"
APPLICATION_TAGS: Final[tuple[str, ...]] = (
    "application",
    "webApplication",
    "enterpriseApplication",
    SPRING_BOOT_APPLICATION,
)
DROPIN_FOLDERS: Final[tuple[str, ...]] = ("defaults", "overrides")

Visitor = Callable[[XmlDocument], None]


class ServerConfigDocument:
    """One scan of a server configuration, performed on construction.

    Parameters
    ----------
    resolver:
        Liberty layout (directory properties, drop-ins, include anchors).
    properties_loader:
        Fills the ``props`` layer from server.env, bootstrap.properties,
        system properties and variables directories.
    document_loader:
        Parses XML documents from paths and URLs.
    initial_properties:
        Properties known before the scan starts (lowest precedence).
    platform:
        ``sys.platform`` override for the server.env expansion syntax.

    Raises
    ------
    DuplicateSpringBootApplication
        When more than one ``springBootApplication`` is declared.
    InvalidFormat
        When ``server.xml`` itself is not well-formed.
    """

    def __init__(
        self,
        resolver: PathResolver,
        properties_loader: PropertiesLoader,
        document_loader: DocumentLoader,
        *,
        initial_properties: Mapping[str, str] | None = None,
        platform: str | None = None,
    ) -> None:
        self.resolver = resolver
        self.properties_loader = properties_loader
        self.document_loader = document_loader
        self.platform = platform
        self.server_xml = resolver.server_xml
        self.directories: Mapping[str, Path] = MappingProxyType(dict(resolver.directories))

        self.properties = PropertyLayer(initial_properties)
        self.default_properties = PropertyLayer()
        self.locations: set[str] = set()
        self.names: set[str] = set()
        self.nameless_locations: set[str] = set()
        self.locations_and_names: dict[str, str] = {}
        self.spring_boot_location: str | None = None
        self._spring_boot_element: tuple[str, int] | None = None

        self._scan()

    def find_name_for_location(self, location: str) -> str:
        """Return the declared name for *location* or the location minus its extension."""

        return name_from_location(location, self.locations_and_names)

    def snapshot(self) -> ServerConfigScan:
        """Return an immutable copy of everything this scan discovered."""

        return ServerConfigScan(
            locations=frozenset(self.locations),
            names=frozenset(self.names),
            nameless_locations=frozenset(self.nameless_locations),
            locations_and_names=self.locations_and_names,
            properties=self.properties,
            default_properties=self.default_properties,
            provenance=self.properties.provenance(),
            spring_boot_location=self.spring_boot_location,
        )

    def _scan(self) -> None:
        document = self._load_primary()
        if document is not None:
            self._parse_variables(document, defaults_only=True)

        expanded = self.properties_loader.load_server_env(self.properties)
        expand_layer(self.properties, expanded, platform=self.platform)
        self.properties_loader.load_bootstrap(self.properties)
        self.properties_loader.load_system_properties(self.properties)
        self.properties_loader.load_variables_dirs(self.properties)

        if document is None:
            return
        self._process_server_xml(document)
        self._process_applications(document)
        log_info(
            "server_config_scanned",
            layer="server.xml",
            path=document.source,
            locations=len(self.locations),
            names=len(self.names),
        )

    def _load_primary(self) -> XmlDocument | None:
        if self.server_xml is None:
            log_warning("server_xml_missing", layer="server.xml", path=None)
            return None
        try:
            return self.document_loader.load_file(self.server_xml)
        except NotFound:
            log_warning("server_xml_missing", layer="server.xml", path=str(self.server_xml))
            return None

    def _process_server_xml(self, document: XmlDocument) -> None:
        self._walk_includes(document, self._parse_variables)
        self._walk_dropins(DROPIN_FOLDERS[0], self._parse_variables)
        self._parse_variables(document)
        self._walk_dropins(DROPIN_FOLDERS[1], self._parse_variables)

    def _process_applications(self, document: XmlDocument) -> None:
        self._parse_applications(document)
        self._walk_includes(document, self._parse_applications)
        for folder in DROPIN_FOLDERS:
            self._walk_dropins(folder, self._parse_applications)

    def _parse_variables(self, document: XmlDocument, *, defaults_only: bool = False) -> None:
        """Copy ``<variable>`` declarations into the property layers.

        ``value`` lands in ``props`` and ``defaultValue`` in ``defaultProps``;
        empty attributes are ignored.
        """

        for element in document.children("variable"):
            name = element.get("name")
            if not name:
                continue
            value = element.get("value")
            default = element.get("defaultValue")
            if value and not defaults_only:
                self.properties.set(name, value, layer="variable", path=document.source)
            if default:
                self.default_properties.set(name, default, layer="variable.defaultValue", path=document.source)

    def _parse_applications(self, document: XmlDocument) -> None:
        for tag in APPLICATION_TAGS:
            for position, element in enumerate(document.children(tag)):
                if tag == SPRING_BOOT_APPLICATION:
                    self._register_spring_boot(document, position)
                location = element.get("location") or ""
                if not location:
                    log_debug("application_without_location", layer="server.xml", path=document.source, tag=tag)
                    continue
                resolved = self._resolve_attribute(location, document, "location")
                self.locations.add(resolved)
                if tag == SPRING_BOOT_APPLICATION:
                    self.spring_boot_location = resolved

                name = element.get("name") or ""
                if name:
                    resolved_name = self._resolve_attribute(name, document, "name")
                    self.names.add(resolved_name)
                    self.locations_and_names[resolved] = resolved_name
                else:
                    self.nameless_locations.add(resolved)

    def _register_spring_boot(self, document: XmlDocument, position: int) -> None:
        """Remember the single springBootApplication element.

        A document included from several parents is visited once per parent,
        so elements are keyed by source and position rather than counted.
        """

        element = (document.source, position)
        if self._spring_boot_element is None:
            self._spring_boot_element = element
        elif self._spring_boot_element != element:
            raise DuplicateSpringBootApplication(self._spring_boot_element[0], document.source)

    def _resolve_attribute(self, raw: str, document: XmlDocument, attribute: str) -> str:
        outcome = resolve_variables(raw, None, self.properties, self.default_properties, self.directories)
        if isinstance(outcome, Unresolved):
            log_info(
                "attribute_unresolved",
                layer="server.xml",
                path=document.source,
                attribute=attribute,
                value=raw,
                reason=outcome.reason,
                variable=outcome.variable,
            )
        return outcome.value_or(raw)

    def _walk_dropins(self, folder: str, visit: Visitor) -> None:
        for path in self.resolver.dropin_files(folder):
            document = self._load_dropin(path)
            if document is None:
                continue
            visit(document)
            self._walk_includes(document, visit)

    def _load_dropin(self, path: Path) -> XmlDocument | None:
        try:
            return self.document_loader.load_file(path)
        except InvalidFormat as exc:
            log_info(
                "dropin_skipped",
                layer="configDropins",
                path=str(path),
                reason=f"Skipping parsing {path} because it was not recognized as XML.",
                error=str(exc),
            )
        except NotFound as exc:
            log_debug("dropin_skipped", layer="configDropins", path=str(path), error=str(exc))
        return None

    def _walk_includes(
        self,
        document: XmlDocument,
        visit: Visitor,
        ancestors: frozenset[str] | None = None,
    ) -> None:
        """Visit every document included by *document*, depth first.

        *ancestors* holds the chain of documents leading here; an include that
        points back into the chain is skipped.
        """

        chain = (ancestors or frozenset()) | {document.source}
        for element in document.children("include"):
            location = (element.get("location") or "").strip()
            if not location:
                continue
            for child in self._load_include(location, document, chain):
                visit(child)
                self._walk_includes(child, visit, chain)

    def _load_include(self, raw: str, parent: XmlDocument, chain: frozenset[str]) -> Iterator[XmlDocument]:
        location = self._resolve_attribute(raw, parent, "include")
        try:
            for source in self._include_sources(location):
                key = source if isinstance(source, str) else str(source.resolve())
                if key in chain:
                    log_warning("include_cycle_skipped", layer="include", path=key, parent=parent.source)
                    continue
                document = self._load_include_source(source, parent)
                if document is not None:
                    log_debug("include_loaded", layer="include", path=document.source, parent=parent.source)
                    yield document
        except IncludeError as exc:
            log_warning("include_skipped", layer="include", path=location, parent=parent.source, error=str(exc))

    def _include_sources(self, location: str) -> list[str | Path]:
        """Return the URL or files an include location stands for.

        Raises
        ------
        IncludeError
            When the trailing ``/`` directory hint contradicts the filesystem.
        """

        if is_url(location):
            return [location]
        if is_file_uri(location):
            candidates = [file_uri_to_path(location)]
        else:
            candidates = list(self.resolver.include_candidates(location))
        target = next((candidate for candidate in candidates if candidate.exists()), None)
        if target is None:
            log_warning("include_not_found", layer="include", path=location, candidates=[str(c) for c in candidates])
            return []
        wants_directory = is_directory_hint(location)
        if wants_directory and not target.is_dir():
            raise IncludeError(f"Include location {location} ends with a separator but {target} is not a directory")
        if not wants_directory and target.is_dir():
            raise IncludeError(f"Include location {location} is a directory but does not end with a separator")
        if wants_directory:
            return list(self.resolver.directory_xml_files(target))
        return [target]

    def _load_include_source(self, source: str | Path, parent: XmlDocument) -> XmlDocument | None:
        try:
            return self.document_loader.load_location(str(source))
        except (IncludeError, InvalidFormat, NotFound) as exc:
            log_warning("include_skipped", layer="include", path=str(source), parent=parent.source, error=str(exc))
            return None
