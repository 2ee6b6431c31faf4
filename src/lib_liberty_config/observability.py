"""Structured log events for property loading and configuration scans.

Purpose
    Every property file read, every include followed or skipped and every
    attribute kept literally becomes one record on the ``lib_liberty_config``
    logger. Build plugins attach their own handlers; the library itself stays
    silent.

Contents
    - ``TRACE_ID``: identifier shared by the events of one scan.
    - ``get_logger``: the package logger (``NullHandler`` only).
    - ``bind_trace_id``: set or clear ``TRACE_ID``.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit one
      event with its fields under the ``context`` extra.
    - ``make_event``: build the ``layer`` / ``path`` fields of an event.

Event fields
    Event names are snake_case (``include_skipped``, ``attribute_unresolved``,
    ``variables_dir_loaded``). ``layer`` names the source being read, for
    example ``server.env``, ``bootstrap.properties``, ``variables``,
    ``server.xml``, ``include``, ``configDropins`` or ``features``; ``path``
    is the file or URL involved. Include events add ``parent``.

System Integration
    Adapters, resolvers and scanners import these helpers directly instead of
    subclassing a logger base class.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_liberty_config_trace_id", default=None)
"""Current trace identifier propagated through logging helpers.

Why
    One scan reads server.env, bootstrap.properties, server.xml, its includes
    and the drop-ins. Their events carry this identifier; the scan entry
    points in :mod:`lib_liberty_config.core` reset it.
"""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_liberty_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers.

    Why
        Leaves the library silent by default while giving host build tools full
        control over handler and formatter configuration.
    """

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Inputs
        trace_id: Identifier string or ``None`` to drop the binding.
    Side Effects
        Mutates the context variable visible to subsequent logging helpers.

    Examples
    --------
    >>> bind_trace_id('scan-1')
    >>> TRACE_ID.get()
    'scan-1'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a warning; used for skipped documents, includes and property files."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit an error; used when a remote configuration document cannot be fetched."""

    _emit(logging.ERROR, message, fields)


def make_event(
    layer: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured logging payload for property and document events.

    Inputs
        layer: Name of the property layer or document kind being observed.
        path: Filesystem path associated with the event, if available.
        payload: Optional mapping with extra diagnostic detail.
    Outputs
        dict[str, Any]: Data safe to unpack into :func:`log_*` helpers.

    Examples
    --------
    >>> make_event('server.env', None, {'keys': 3})
    {'layer': 'server.env', 'path': None, 'keys': 3}
    """

    event = _base_event(layer, path)
    return _merge_payload(event, payload)


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current trace identifier to the provided structured fields."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    return context


def _base_event(layer: str, path: str | None) -> dict[str, Any]:
    return {"layer": layer, "path": path}


def _merge_payload(event: dict[str, Any], payload: Mapping[str, Any] | None) -> dict[str, Any]:
    if payload:
        event |= dict(payload)
    return event
