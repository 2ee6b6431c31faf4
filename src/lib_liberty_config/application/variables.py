"""Server configuration variable resolution.

Purpose
-------
Resolve ``${NAME}`` references found in ``server.xml`` attribute values
against the layered property sets of a scan. Unlike
:mod:`lib_liberty_config.application.expansion` this policy is all or
nothing: one circular or undefined reference fails the whole value, and the
caller decides what to do with the literal text.

Contents
--------
* :func:`resolve_variables` – resolve an attribute value, returning a
  :data:`~lib_liberty_config.domain.resolution.Resolution`.
* :func:`get_property_value` – layered lookup of one variable name.
* :func:`evaluate_expression` – include-location evaluator used by the
  feature scanner.

System Role
-----------
Called by the configuration scanner for every ``location``/``name`` attribute
and include location, and by the CLI ``resolve`` command.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Collection, Final, Mapping

from ..domain.resolution import CIRCULAR, UNDEFINED, Resolution, Resolved, Unresolved
from ..observability import log_debug, log_warning

VARIABLE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{(.*?)\}")
_NON_WORD: Final[re.Pattern[str]] = re.compile(r"\W")
_ENV_PREFIX: Final[str] = "env."


def resolve_variables(
    raw: str,
    variable_chain: Collection[str] | None,
    props: Mapping[str, str],
    default_props: Mapping[str, str],
    directory_props: Mapping[str, Path | str],
) -> Resolution:
    """Resolve every ``${NAME}`` in *raw*.

    Backslashes are turned into forward slashes before anything else, so the
    result is safe to use as a path on every platform. Each distinct name is
    resolved once (recursively, with *variable_chain* guarding against
    cycles) and substituted at every occurrence.

    Parameters
    ----------
    raw:
        Attribute text.
    variable_chain:
        Names being resolved further up; ``None`` on the first call.
    props / default_props:
        Property layers; ``props`` wins.
    directory_props:
        Predefined Liberty directory properties, consulted first.

    Returns
    -------
    Resolution
        :class:`Resolved` with the substituted text or :class:`Unresolved`
        naming the first variable that failed.

    Examples
    --------
    >>> props = {"app.dir": "${server.config.dir}/apps", "app.name": "demo"}
    >>> dirs = {"server.config.dir": "/srv/demo"}
    >>> resolve_variables("${app.dir}/${app.name}.war", None, props, {}, dirs)
    Resolved(value='/srv/demo/apps/demo.war')
    >>> resolve_variables("${nope}.war", None, props, {}, dirs)
    Unresolved(reason='undefined', variable='nope')
    >>> resolve_variables("C:\\\\apps\\\\a.war", None, {}, {}, {})
    Resolved(value='C:/apps/a.war')
    """

    chain = set(variable_chain or ())
    resolved = raw.replace("\\", "/")

    to_resolve: list[str] = []
    for match in VARIABLE_PATTERN.finditer(raw):
        name = match.group(1)
        if name in chain:
            log_debug("variable_circular_reference", layer="variables", path=None, variable=name)
            return Unresolved(CIRCULAR, name)
        if name not in to_resolve:
            to_resolve.append(name)

    for name in to_resolve:
        value = get_property_value(name, props, default_props, directory_props)
        if not value:
            log_debug("variable_unresolved", layer="variables", path=None, variable=name)
            return Unresolved(UNDEFINED, name)
        nested = resolve_variables(value, chain | {name}, props, default_props, directory_props)
        if isinstance(nested, Unresolved):
            log_debug("variable_unresolved", layer="variables", path=None, variable=name, cause=nested.variable)
            return nested
        resolved = resolved.replace("${" + name + "}", nested.value.replace("\\", "/"))

    if to_resolve:
        log_debug("variable_resolved", layer="variables", path=None, value=raw, resolved=resolved)
    return Resolved(resolved)


def get_property_value(
    name: str,
    props: Mapping[str, str],
    default_props: Mapping[str, str],
    directory_props: Mapping[str, Path | str],
) -> str | None:
    """Look *name* up through every fallback Liberty supports.

    Order: directory properties, exact name, non-word characters replaced by
    ``_``, that variation upper-cased, and finally the name without an
    ``env.`` prefix.

    Examples
    --------
    >>> get_property_value("this.value", {"this_value": "a"}, {}, {})
    'a'
    >>> get_property_value("that.value", {"THAT_VALUE": "b"}, {}, {})
    'b'
    >>> get_property_value("env.HOST", {"HOST": "localhost"}, {}, {})
    'localhost'
    >>> get_property_value("port", {}, {"port": '"9080"'}, {})
    '9080'
    >>> get_property_value("missing", {}, {}, {}) is None
    True
    """

    if name in directory_props:
        return _strip_quotes(str(directory_props[name]))

    value = _lookup(props, default_props, name)
    if value is not None:
        return value

    variation = _NON_WORD.sub("_", name)
    value = _lookup(props, default_props, variation)
    if value is not None:
        return value

    value = _lookup(props, default_props, variation.upper())
    if value is not None:
        return value

    if name.startswith(_ENV_PREFIX) and len(name) > len(_ENV_PREFIX):
        return _lookup(props, default_props, name[len(_ENV_PREFIX) :])
    return None


def evaluate_expression(
    expression: str,
    props: Mapping[str, str],
    default_props: Mapping[str, str],
    directory_props: Mapping[str, Path | str],
) -> str | None:
    """Evaluate an include location, returning ``None`` when a name is unknown.

    Every ``${NAME}`` must be a predefined directory property or a configured
    property (``env.``-prefixed names fall back to the bare name). Quote
    wrapped results are unwrapped and backslashes become forward slashes.

    Examples
    --------
    >>> evaluate_expression("${shared.config.dir}/extra.xml", {}, {}, {"shared.config.dir": "/usr/shared/config"})
    '/usr/shared/config/extra.xml'
    >>> evaluate_expression("${extras}", {"extras": "extra.xml"}, {}, {})
    'extra.xml'
    >>> evaluate_expression("${unknown}.xml", {}, {}, {}) is None
    True
    """

    def evaluate(text: str, chain: frozenset[str]) -> str | None:
        parts: list[str] = []
        last = 0
        for match in VARIABLE_PATTERN.finditer(text):
            name = match.group(1)
            parts.append(text[last : match.start()])
            last = match.end()
            if name in directory_props:
                parts.append(str(directory_props[name]).replace("\\", "/"))
                continue
            value = props.get(name)
            if value is None:
                value = default_props.get(name)
            if value is None and name.startswith(_ENV_PREFIX) and len(name) > len(_ENV_PREFIX):
                value = props.get(name[len(_ENV_PREFIX) :], default_props.get(name[len(_ENV_PREFIX) :]))
            if value is None or name in chain:
                log_warning(
                    "include_property_unknown",
                    layer="variables",
                    path=None,
                    variable=name,
                    detail=f"The referenced property {name} is not a predefined Liberty directory property "
                    "or a configured bootstrap property.",
                )
                return None
            nested = evaluate(value.replace("\\", "/"), chain | {name})
            if nested is None:
                return None
            parts.append(nested)
        parts.append(text[last:])
        result = "".join(parts)
        if len(result) >= 2 and result[0] == '"' and result[-1] == '"':
            result = result[1:-1]
        return result.replace("\\", "/")

    value = evaluate(expression, frozenset())
    if value is not None:
        log_debug("include_location_evaluated", layer="variables", path=None, expression=expression, value=value)
    return value


def _strip_quotes(value: str) -> str:
    if len(value) > 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def _lookup(props: Mapping[str, str], default_props: Mapping[str, str], name: str) -> str | None:
    if name in props:
        return _strip_quotes(props[name])
    if name in default_props:
        return _strip_quotes(default_props[name])
    return None
