"""Effective ``featureManager`` feature set of a server.

Purpose
-------
Compute which features a server configuration asks for, honouring include
``onConflict`` policies and the ``configDropins`` ordering, so build plugins
know what to hand to a :class:`~lib_liberty_config.application.ports.FeatureInstaller`.

Contents
--------
* :class:`ServerFeatureScanner` – walks ``configDropins/defaults``,
  ``server.xml`` and ``configDropins/overrides`` in that order.

System Role
-----------
Independent of :mod:`lib_liberty_config.application.scanner`: include
locations here are evaluated with
:func:`lib_liberty_config.application.variables.evaluate_expression` against
``bootstrap.properties`` only, and relative includes are anchored at the
including document's directory.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from ..domain.document import XmlDocument
from ..domain.errors import IncludeError, InvalidFormat, NotFound
from ..domain.locations import file_uri_to_path, is_file_uri, is_url
from ..domain.properties import PropertyLayer
from ..observability import log_debug, log_info, log_warning
from .merge import merge_on_conflict
from .ports import DocumentLoader, PathResolver, PropertiesLoader
from .variables import evaluate_expression


class ServerFeatureScanner:
    """Collect the features declared for one server directory.

    Parameters
    ----------
    resolver:
        Layout of the server; its ``server.config.dir`` is the server
        directory and its directory properties feed include evaluation.
    properties_loader:
        Reads ``bootstrap.properties`` for include evaluation.
    document_loader:
        Parses documents and fetches URL includes.
    """

    def __init__(
        self,
        resolver: PathResolver,
        properties_loader: PropertiesLoader,
        document_loader: DocumentLoader,
    ) -> None:
        self.resolver = resolver
        self.properties_loader = properties_loader
        self.document_loader = document_loader

    def server_features(self) -> set[str] | None:
        """Return the effective feature set.

        Returns
        -------
        set[str] | None
            ``None`` when no document has a ``featureManager`` section, an empty
            set when sections exist but declare nothing.
        """

        bootstrap = PropertyLayer()
        self.properties_loader.load_bootstrap(bootstrap)
        result = self._dropin_features(None, "defaults", bootstrap)
        if self.resolver.server_xml is not None:
            result = self._file_features(result, self.resolver.server_xml, bootstrap, [])
        # overrides are applied last
        return self._dropin_features(result, "overrides", bootstrap)

    def _dropin_features(self, current: set[str] | None, folder: str, bootstrap: PropertyLayer) -> set[str] | None:
        result = current
        for path in self.resolver.dropin_files(folder):
            features = self._file_features(result, path, bootstrap, [])
            if features is not None:
                result = features
        return result

    def _file_features(
        self,
        current: set[str] | None,
        path: Path,
        bootstrap: PropertyLayer,
        parsed: list[str],
    ) -> set[str] | None:
        canonical = path.resolve()
        parsed.append(str(canonical))
        log_info("feature_document_parsing", layer="features", path=str(canonical))
        if not canonical.exists():
            log_warning("feature_document_missing", layer="features", path=str(canonical))
            return current
        if canonical.stat().st_size == 0:
            log_debug("feature_document_empty", layer="features", path=str(canonical))
            return current
        try:
            document = self.document_loader.load_file(canonical)
        except (NotFound, InvalidFormat) as exc:
            log_warning("feature_document_unparsable", layer="features", path=str(canonical), error=str(exc))
            return current
        return self._document_features(current, document, bootstrap, parsed)

    def _document_features(
        self,
        current: set[str] | None,
        document: XmlDocument,
        bootstrap: PropertyLayer,
        parsed: list[str],
    ) -> set[str] | None:
        result = None if current is None else set(current)
        for child in document.root:
            if child.tag == "featureManager":
                result = (result or set()) | self._feature_manager(child, document)
            elif child.tag == "include":
                result = self._include_features(result, document, child, bootstrap, parsed)
        return result

    @staticmethod
    def _feature_manager(node: ET.Element, document: XmlDocument) -> set[str]:
        """Return trimmed, lower-cased feature names.

        User features (``prefix:name``) are logged and left out; they are not
        installed from the runtime repository.
        """

        features: set[str] = set()
        for element in node.iter("feature"):
            content = "".join(element.itertext()).strip()
            if not content:
                continue
            if ":" in content:
                log_debug("user_feature_skipped", layer="features", path=document.source, feature=content)
                continue
            features.add(content.lower())
        return features

    def _include_features(
        self,
        current: set[str] | None,
        parent: XmlDocument,
        node: ET.Element,
        bootstrap: PropertyLayer,
        parsed: list[str],
    ) -> set[str] | None:
        raw = node.get("location") or ""
        location = evaluate_expression(raw, bootstrap, {}, self.resolver.directories) if raw else None
        if location is None or not location.strip():
            log_warning("feature_include_unparsable", layer="features", path=parent.source, location=raw)
            return current

        on_conflict = node.get("onConflict")
        if is_url(location):
            if location in parsed:
                return current
            parsed.append(location)
            try:
                document = self.document_loader.load_url(location)
            except (IncludeError, InvalidFormat) as exc:
                log_warning(
                    "feature_include_unreachable",
                    layer="features",
                    path=parent.source,
                    location=location,
                    error=str(exc),
                )
                return current
            features = self._document_features(None, document, bootstrap, parsed)
        else:
            target = self._include_path(location, parent)
            if target is None:
                log_warning("feature_include_unanchored", layer="features", path=parent.source, location=location)
                return current
            if str(target.resolve()) in parsed:
                return current
            features = self._file_features(None, target, bootstrap, parsed)

        if features:
            log_info("features_included", layer="features", path=location, count=len(features))
        return merge_on_conflict(current, on_conflict, features)

    @staticmethod
    def _include_path(location: str, parent: XmlDocument) -> Path | None:
        target = file_uri_to_path(location) if is_file_uri(location) else Path(location)
        if target.is_absolute():
            return target
        if parent.parent_dir is None:
            return None
        return parent.parent_dir / target
