"""Classification of ``<include>`` location strings.

Locations are plain text until something decides whether they are remote
URLs, ``file:`` URIs or filesystem paths; these helpers make that decision
without touching the filesystem.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname


def is_url(location: str) -> bool:
    """Return ``True`` for ``http:`` and ``https:`` locations.

    Examples
    --------
    >>> is_url("https://example.com/server.xml"), is_url("includes/a.xml")
    (True, False)
    """

    return location.startswith(("http:", "https:"))


def is_file_uri(location: str) -> bool:
    return location.startswith("file:")


def is_directory_hint(location: str) -> bool:
    """Return ``True`` when *location* ends with a path separator.

    Examples
    --------
    >>> is_directory_hint("includes/"), is_directory_hint("includes/a.xml")
    (True, False)
    """

    return location.endswith(("/", "\\"))


def file_uri_to_path(location: str) -> Path:
    """Convert a ``file:`` URI into a filesystem path.

    Examples
    --------
    >>> file_uri_to_path("file:///tmp/server%20one.xml").as_posix()
    '/tmp/server one.xml'
    """

    parsed = urlparse(location)
    raw = parsed.path if parsed.scheme == "file" else location
    if parsed.netloc and parsed.netloc != "localhost":
        raw = f"//{parsed.netloc}{raw}"
    return Path(url2pathname(unquote(raw)))
