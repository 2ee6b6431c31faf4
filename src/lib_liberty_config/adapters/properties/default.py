"""Properties-file adapter.

Purpose
-------
Implement the :class:`lib_liberty_config.application.ports.PropertiesLoader`
protocol: parse ``server.env``, ``bootstrap.properties`` and the files of a
``variables`` directory into a :class:`PropertyLayer`, in Liberty's precedence
order.

Contents
--------
* :func:`parse_properties` – Java-properties style ``key=value`` parser.
* :class:`DefaultPropertiesLoader` – loads each property source into a layer.
* Helpers (`_logical_lines`, `_split_entry`, `_unescape`) that perform parsing.

System Role
-----------
Called by the configuration scanner between the two ``server.xml`` passes.
Missing directories and unreadable files are logged and skipped; no failure
here aborts a scan.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator

from ...domain.errors import InvalidFormat, NotFound
from ...domain.properties import BOOTSTRAP_INCLUDE, PropertyLayer
from ...observability import log_debug, log_warning
from ..env.default import DefaultEnvLoader
from ..path_resolvers.default import DefaultPathResolver

_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_LITERAL_ESCAPES = set("=: #!\\")


def parse_properties(path: Path) -> dict[str, str]:
    """Parse *path* into a flat ``dict`` preserving file order.

    Why
    ----
    ``server.env`` and ``bootstrap.properties`` share the ``key=value`` line
    format; ``:`` and whitespace are accepted as separators as well.

    Returns
    -------
    dict[str, str]
        Parsed entries; later duplicates overwrite earlier ones.

    Raises
    ------
    NotFound
        When *path* is not a readable file.
    InvalidFormat
        When the file is not valid UTF-8.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / 'bootstrap.properties'
    >>> _ = target.write_text('# comment\\nhttp.port = 9080\\nname:demo\\nlong=a\\\\\\n    b\\n', encoding='utf-8')
    >>> parse_properties(target)
    {'http.port': '9080', 'name': 'demo', 'long': 'ab'}
    >>> tmp.cleanup()
    """

    try:
        text = path.read_bytes().decode("utf-8")
    except FileNotFoundError as exc:
        raise NotFound(f"Properties file not found: {path}") from exc
    except IsADirectoryError as exc:
        raise NotFound(f"Properties path is a directory: {path}") from exc
    except PermissionError as exc:
        raise NotFound(f"Properties file cannot be read: {path}") from exc
    except UnicodeDecodeError as exc:
        raise InvalidFormat(f"Properties file {path} is not valid UTF-8: {exc}") from exc

    result: dict[str, str] = {}
    for line in _logical_lines(text.splitlines()):
        key, value = _split_entry(line)
        result[key] = value
    return result


def _logical_lines(raw_lines: Iterable[str]) -> Iterator[str]:
    """Join continuation lines and drop blanks and comments."""

    pending: str | None = None
    for raw in raw_lines:
        line = raw.lstrip()
        if pending is None:
            if not line or line[0] in "#!":
                continue
            current = line
        else:
            current = pending + line
        if _continues(current):
            pending = current[:-1]
            continue
        pending = None
        yield current
    if pending:
        yield pending


def _continues(line: str) -> bool:
    """Return ``True`` when *line* ends with an odd number of backslashes."""

    count = len(line) - len(line.rstrip("\\"))
    return count % 2 == 1


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into ``(key, value)``.

    Examples
    --------
    >>> _split_entry('a=b=c')
    ('a', 'b=c')
    >>> _split_entry('key   value')
    ('key', 'value')
    >>> _split_entry('flag')
    ('flag', '')
    """

    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in _SEPARATORS or char.isspace():
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip()
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip()
    return _unescape(key), _unescape(rest)


def _unescape(value: str) -> str:
    """Decode properties escapes while keeping unknown ones verbatim.

    Unknown escapes such as ``\\d`` in ``C:\\dir`` stay untouched so that
    Windows paths survive.

    Examples
    --------
    >>> _unescape('a\\\\=b')
    'a=b'
    >>> _unescape('C:\\\\dir\\\\x')
    'C:\\\\dir\\\\x'
    >>> _unescape('\\\\u0041')
    'A'
    """

    if "\\" not in value:
        return value
    out: list[str] = []
    index = 0
    length = len(value)
    while index < length:
        char = value[index]
        if char != "\\" or index + 1 >= length:
            out.append(char)
            index += 1
            continue
        nxt = value[index + 1]
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            index += 2
        elif nxt == "u" and index + 6 <= length and _is_hex(value[index + 2 : index + 6]):
            out.append(chr(int(value[index + 2 : index + 6], 16)))
            index += 6
        elif nxt in _LITERAL_ESCAPES:
            out.append(nxt)
            index += 2
        else:
            out.append(char)
            index += 1
    return "".join(out)


def _is_hex(candidate: str) -> bool:
    return all(c in "0123456789abcdefABCDEF" for c in candidate)


class DefaultPropertiesLoader:
    """Load Liberty property sources into a :class:`PropertyLayer`.

    Parameters
    ----------
    resolver:
        Supplies the Liberty directory layout.
    env_loader:
        Supplies system properties and the ``VARIABLE_SOURCE_DIRS`` override.
    """

    def __init__(self, resolver: DefaultPathResolver, env_loader: DefaultEnvLoader | None = None) -> None:
        self.resolver = resolver
        self.env_loader = env_loader or DefaultEnvLoader()

    def load_server_env(self, layer: PropertyLayer) -> list[str]:
        """Load every existing ``server.env`` (install → user → config).

        Returns
        -------
        list[str]
            Keys written by this step, in load order, so callers can run the
            expansion resolver over exactly these values.
        """

        loaded: list[str] = []
        for path in self.resolver.server_env_files():
            values = self._read(path, "server.env")
            if values is None:
                continue
            layer.update_from(values, layer="server.env", path=str(path))
            loaded.extend(key for key in values if key not in loaded)
            log_debug("server_env_loaded", layer="server.env", path=str(path), keys=sorted(values))
        return loaded

    def load_bootstrap(self, layer: PropertyLayer) -> list[Path]:
        """Load ``bootstrap.properties`` and follow its ``bootstrap.include`` chain.

        Each include is resolved against ``server.config.dir`` unless absolute.
        A file already visited (by canonical path) ends the chain.

        Returns
        -------
        list[Path]
            Canonical paths of the files that were read, in order.
        """

        visited: list[Path] = []
        current = self.resolver.config_file("bootstrap.properties")
        while current is not None:
            canonical = current.resolve()
            if canonical in visited:
                log_debug("bootstrap_include_cycle", layer="bootstrap.properties", path=str(canonical))
                break
            visited.append(canonical)
            values = self._read(canonical, "bootstrap.properties")
            if values is None:
                break
            layer.update_from(values, layer="bootstrap.properties", path=str(canonical))
            log_debug("bootstrap_loaded", layer="bootstrap.properties", path=str(canonical), keys=sorted(values))
            current = self._next_include(values.get(BOOTSTRAP_INCLUDE))
        return visited

    def load_system_properties(self, layer: PropertyLayer) -> None:
        layer.update_from(self.env_loader.system_properties(), layer="system")

    def load_variables_dirs(self, layer: PropertyLayer) -> list[Path]:
        """Load every file of the variables directories into *layer*.

        ``VARIABLE_SOURCE_DIRS`` replaces the default
        ``<server.config.dir>/variables``; later directories win on collisions.
        """

        directories = self.env_loader.variable_source_dirs(layer, self.resolver.platform)
        if directories is None:
            default = self.resolver.variables_dir()
            directories = [default] if default is not None else []
        loaded: list[Path] = []
        for directory in directories:
            if not directory.is_dir():
                log_debug("variables_dir_missing", layer="variables", path=str(directory))
                continue
            self._load_variables_tree(layer, directory)
            loaded.append(directory)
        return loaded

    def _load_variables_tree(self, layer: PropertyLayer, root: Path) -> None:
        for path in sorted(root.rglob("*")):
            relative = path.relative_to(root)
            if not path.is_file() or any(part.startswith(".") for part in relative.parts):
                continue
            if path.suffix == ".properties":
                values = self._read(path, "variables")
                if values is not None:
                    layer.update_from(values, layer="variables", path=str(path))
                continue
            key = os.sep.join(relative.parts)
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                log_warning("variable_file_unreadable", layer="variables", path=str(path), error=str(exc))
                continue
            layer.set(key, _strip_trailing_newline(content), layer="variables", path=str(path))
        log_debug("variables_dir_loaded", layer="variables", path=str(root))

    def _next_include(self, include: str | None) -> Path | None:
        if not include:
            return None
        candidate = Path(include.strip())
        if not candidate.is_absolute() and self.resolver.config_dir is not None:
            candidate = self.resolver.config_dir / candidate
        if not candidate.is_file():
            log_warning("bootstrap_include_missing", layer="bootstrap.properties", path=str(candidate))
            return None
        return candidate

    @staticmethod
    def _read(path: Path, layer: str) -> dict[str, str] | None:
        try:
            return parse_properties(path)
        except NotFound as exc:
            log_debug("properties_file_missing", layer=layer, path=str(path), error=str(exc))
        except InvalidFormat as exc:
            log_warning("properties_file_invalid", layer=layer, path=str(path), error=str(exc))
        return None


def _strip_trailing_newline(content: str) -> str:
    """Remove exactly one trailing line terminator.

    Examples
    --------
    >>> _strip_trailing_newline('9080\\n'), _strip_trailing_newline('a\\nb\\r\\n')
    ('9080', 'a\\nb')
    """

    if content.endswith("\r\n"):
        return content[:-2]
    if content.endswith("\n"):
        return content[:-1]
    return content
