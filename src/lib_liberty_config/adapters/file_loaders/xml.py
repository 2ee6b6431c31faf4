"""Server configuration XML loaders.

Purpose
-------
Convert on-disk or remote ``server.xml`` style documents into parsed element
trees. The loader is a small wrapper around :mod:`xml.etree.ElementTree` and
``httpx`` so that error handling and observability live in one place.

Contents
--------
* :class:`XmlDocumentLoader` – loads documents from paths, ``file:`` URIs and
  ``http(s):`` URLs.

System Role
-----------
Invoked by the configuration and feature scanners. Raises
:class:`NotFound`, :class:`InvalidFormat` or :class:`IncludeError`; the
scanners decide which of those are recoverable.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

import httpx

from ...domain.document import XmlDocument
from ...domain.errors import IncludeError, InvalidFormat, NotFound
from ...domain.locations import file_uri_to_path, is_file_uri, is_url
from ...observability import log_debug, log_error

#: Timeout used when fetching ``http(s):`` includes.
DEFAULT_FETCH_TIMEOUT = 30.0


class XmlDocumentLoader:
    """Load configuration documents from files and URLs.

    Parameters
    ----------
    client:
        Optional ``httpx.Client`` used for URL includes (inject a client with a
        mock transport in tests). A short-lived client is created per fetch
        otherwise.
    timeout:
        Seconds allowed for a URL fetch.
    """

    def __init__(self, *, client: httpx.Client | None = None, timeout: float = DEFAULT_FETCH_TIMEOUT) -> None:
        self._client = client
        self._timeout = timeout

    def load_file(self, path: Path) -> XmlDocument:
        """Parse the document at *path*.

        Raises
        ------
        NotFound
            When *path* is not a regular file.
        InvalidFormat
            When the content is not well-formed XML.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> target = Path(tmp.name) / 'server.xml'
        >>> _ = target.write_text('<server><application location="a.war"/></server>', encoding='utf-8')
        >>> doc = XmlDocumentLoader().load_file(target)
        >>> [el.get('location') for el in doc.children('application')]
        ['a.war']
        >>> tmp.cleanup()
        """

        if not path.is_file():
            raise NotFound(f"Configuration document not found: {path}")
        canonical = path.resolve()
        payload = canonical.read_bytes()
        log_debug("config_document_read", layer="xml", path=str(canonical), size=len(payload))
        return self._parse(payload, str(canonical))

    def load_url(self, url: str) -> XmlDocument:
        """Fetch and parse an ``http(s):`` document.

        Raises
        ------
        IncludeError
            When the URL cannot be fetched or answers with an error status.
        InvalidFormat
            When the response body is not well-formed XML.
        """

        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self._timeout, follow_redirects=True)
            else:
                with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
                    response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log_error("config_document_fetch_failed", layer="xml", path=url, error=str(exc))
            raise IncludeError(f"Cannot fetch configuration document {url}: {exc}") from exc
        log_debug("config_document_fetched", layer="xml", path=url, size=len(response.content))
        return self._parse(response.content, url)

    def load_location(self, location: str) -> XmlDocument:
        """Load a URL, ``file:`` URI or plain path (in that order of checks)."""

        if is_url(location):
            return self.load_url(location)
        if is_file_uri(location):
            return self.load_file(file_uri_to_path(location))
        return self.load_file(Path(location))

    @staticmethod
    def _parse(payload: bytes, source: str) -> XmlDocument:
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as exc:
            raise InvalidFormat(f"Invalid XML in {source}: {exc}") from exc
        return XmlDocument(root=root, source=source)
