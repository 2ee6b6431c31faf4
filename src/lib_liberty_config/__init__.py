"""Public package surface for ``lib_liberty_config``.

Re-exports the composition root functions, the scan result types and the
error taxonomy so build plugins can ``import lib_liberty_config`` and stay
clear of the adapter modules.
"""

from __future__ import annotations

from .application.expansion import MAX_EXPANSION_DEPTH, expand
from .application.merge import merge_on_conflict
from .application.variables import evaluate_expression, resolve_variables
from .core import (
    ScanCache,
    ServerConfigDocument,
    expand_file,
    resolve_expression,
    scan_server_config,
    server_directories,
    server_features,
)
from .domain.errors import (
    ConfigError,
    DuplicateSpringBootApplication,
    IncludeError,
    InvalidFormat,
    NotFound,
    ValidationError,
)
from .domain.properties import PropertyLayer
from .domain.resolution import Resolution, Resolved, Unresolved
from .domain.scan import ServerConfigScan
from .observability import bind_trace_id, get_logger

__all__ = [
    "ConfigError",
    "DuplicateSpringBootApplication",
    "IncludeError",
    "InvalidFormat",
    "MAX_EXPANSION_DEPTH",
    "NotFound",
    "PropertyLayer",
    "Resolution",
    "Resolved",
    "ScanCache",
    "ServerConfigDocument",
    "ServerConfigScan",
    "Unresolved",
    "ValidationError",
    "bind_trace_id",
    "evaluate_expression",
    "expand",
    "expand_file",
    "get_logger",
    "merge_on_conflict",
    "resolve_expression",
    "resolve_variables",
    "scan_server_config",
    "server_directories",
    "server_features",
]
