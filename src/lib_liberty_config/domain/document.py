"""Parsed configuration document value object.

Purpose
-------
Carry a parsed ``server.xml`` style document together with the canonical
location it was read from, so scanners can log, anchor relative includes and
detect include cycles without knowing how the document was loaded.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from .locations import is_url


@dataclass(frozen=True, slots=True)
class XmlDocument:
    """A parsed configuration document.

    Attributes
    ----------
    root:
        The document element (``<server>`` for well-formed configurations).
    source:
        Canonical path or URL, used in log events and error messages.

    Examples
    --------
    >>> doc = XmlDocument(ET.fromstring('<server><variable name="a" value="1"/></server>'), "/srv/server.xml")
    >>> [el.get("name") for el in doc.children("variable")], doc.parent_dir.name
    (['a'], 'srv')
    """

    root: ET.Element
    source: str

    def children(self, tag: str) -> list[ET.Element]:
        """Return direct ``/server/<tag>`` children in document order.

        Documents whose root element is not ``server`` have no children in the
        server configuration sense.
        """

        if self.root.tag != "server":
            return []
        return list(self.root.findall(tag))

    @property
    def parent_dir(self) -> Path | None:
        if is_url(self.source):
            return None
        return Path(self.source).parent
