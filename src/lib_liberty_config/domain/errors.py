"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the resolvers, the
scanners and consuming build plugins. The hierarchy lives in the domain layer
so outer layers may depend on it without creating import cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`InvalidFormat` – malformed properties files or XML documents.
* :class:`NotFound` – an optional resource (file, directory, URL) is missing.
* :class:`IncludeError` – an ``<include>`` cannot be honoured (type mismatch,
  unreachable URL).
* :class:`ValidationError` – a well-formed configuration violates a server rule.
* :class:`DuplicateSpringBootApplication` – more than one
  ``springBootApplication`` element was declared.

System Role
-----------
Adapters raise these exceptions; the scanners treat :class:`InvalidFormat`,
:class:`NotFound` and :class:`IncludeError` as recoverable (logged, skipped)
while :class:`ValidationError` subclasses propagate to the caller.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_liberty_config``."""


class InvalidFormat(ConfigError):
    """Raised when an input artifact cannot be parsed.

    Typical Sources
    ---------------
    The properties parser (undecodable bytes) and the XML document loader
    (documents rejected by :mod:`xml.etree.ElementTree`).
    """


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, directories, URLs).

    Scanners treat this as a non-fatal condition and log the skipped path.
    """


class IncludeError(ConfigError):
    """Raised when an ``<include>`` location cannot be honoured.

    Examples include a location ending in ``/`` that points at a file, a
    location without the trailing ``/`` that points at a directory, or an
    ``http(s):`` location that cannot be fetched.
    """


class ValidationError(ConfigError):
    """Signifies that a syntactically valid configuration failed semantic checks."""


class DuplicateSpringBootApplication(ValidationError):
    """More than one ``springBootApplication`` was found across all documents.

    Attributes
    ----------
    first / second:
        Locations of the documents declaring the conflicting elements.
    """

    MESSAGE = (
        "Found multiple springBootApplication elements specified in the server configuration. "
        "Only one springBootApplication can be configured per Liberty server."
    )

    def __init__(self, first: str, second: str) -> None:
        super().__init__(f"{self.MESSAGE} Conflicting documents: {first}, {second}")
        self.first = first
        self.second = second
