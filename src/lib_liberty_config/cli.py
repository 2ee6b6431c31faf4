"""CLI adapter for ``lib_liberty_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose the configuration scanner and both resolution policies on the command
line so build engineers can inspect what a Liberty server would deploy
without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_scan` – runs :func:`lib_liberty_config.core.scan_server_config`
  and prints the snapshot as JSON (optionally with provenance).
* :func:`cli_resolve` – resolves an attribute-style expression against a scan.
* :func:`cli_expand` – expands a ``server.env`` style file.
* :func:`cli_features` – prints the effective feature set.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer of the Clean Architecture stack. It
invokes the composition root and never reaches into adapter implementation
details directly. ``lib_cli_exit_tools`` centralises the exit code strategy so
all commands behave consistently across shells and CI.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .core import expand_file, resolve_expression, scan_server_config, server_features
from .domain.resolution import Unresolved

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

_DISTRIBUTION: Final[str] = "lib_liberty_config"

_SERVER_DIR = click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True)


def _resolve_version() -> str:
    """Return the installed package version with sensible fallbacks.

    Returns
    -------
    str
        Distribution version if available, otherwise ``"0.0.0"``.
    """

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Liberty server configuration scanner",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_liberty_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    What
        Stores the preference on the Click context and mirrors it into
        :mod:`lib_cli_exit_tools.config`, which :func:`main` reads when
        formatting exceptions.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo("lib_liberty_config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("scan", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("server_dir", type=_SERVER_DIR)
@click.option(
    "--server-xml",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
    default=None,
    help="Primary configuration document (defaults to SERVER_DIR/server.xml)",
)
@click.option(
    "-D",
    "--system-property",
    "system_properties",
    multiple=True,
    help="System property as KEY=VALUE (repeatable)",
)
@click.option("--platform", default=None, help="Override auto-detected platform (e.g. linux, windows)")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the origin of every property in the output",
)
def cli_scan(
    server_dir: Path,
    server_xml: Optional[Path],
    system_properties: Sequence[str],
    platform: Optional[str],
    indent: Optional[int],
    provenance: bool,
) -> None:
    """Scan SERVER_DIR and print discovered applications and properties as JSON."""

    document = scan_server_config(
        server_xml,
        server_dir=server_dir,
        system_properties=_parse_assignments(system_properties, "--system-property"),
        platform=_normalize_platform(platform),
    )
    click.echo(document.snapshot().to_json(indent=indent, provenance=provenance))


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("expression")
@click.option("--server-dir", type=_SERVER_DIR, required=True, help="Server directory to scan for properties")
@click.option(
    "-D",
    "--system-property",
    "system_properties",
    multiple=True,
    help="System property as KEY=VALUE (repeatable)",
)
def cli_resolve(expression: str, server_dir: Path, system_properties: Sequence[str]) -> None:
    """Resolve ${NAME} references in EXPRESSION the way server.xml attributes are resolved.

    Exits with status 1 when a reference is circular or undefined.
    """

    document = scan_server_config(
        server_dir=server_dir,
        system_properties=_parse_assignments(system_properties, "--system-property"),
    )
    outcome = resolve_expression(expression, document)
    if isinstance(outcome, Unresolved):
        raise click.ClickException(f"Cannot resolve {expression!r}: variable {outcome.variable!r} is {outcome.reason}")
    click.echo(outcome.value)


@cli.command("expand", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument(
    "source",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
)
@click.option("--platform", default=None, help="Override placeholder syntax (windows uses !NAME!)")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_expand(source: Path, platform: Optional[str], indent: Optional[int]) -> None:
    """Expand the placeholders of a server.env style SOURCE file and print the values as JSON."""

    values = expand_file(source, platform=_normalize_platform(platform))
    click.echo(json.dumps(values, indent=indent, ensure_ascii=False))


@cli.command("features", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("server_dir", type=_SERVER_DIR)
def cli_features(server_dir: Path) -> None:
    """Print the features SERVER_DIR declares as a JSON array (``null`` when none are configured)."""

    features = server_features(server_dir)
    click.echo(json.dumps(sorted(features) if features is not None else None))


def _parse_assignments(values: Sequence[str], option: str) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a mapping, keeping order.

    Examples
    --------
    >>> _parse_assignments(["a=1", "b=x=y"], "-D")
    {'a': '1', 'b': 'x=y'}
    """

    parsed: dict[str, str] = {}
    for value in values:
        key, sep, rest = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {value!r}", param_hint=option)
        parsed[key] = rest
    return parsed


def _normalize_platform(platform: Optional[str]) -> Optional[str]:
    """Return a ``sys.platform`` style identifier or ``None``."""

    if platform is None:
        return None
    alias = platform.strip().lower()
    if not alias:
        return None
    mapping = {
        "linux": "linux",
        "posix": "linux",
        "darwin": "darwin",
        "mac": "darwin",
        "macos": "darwin",
        "win": "win32",
        "win32": "win32",
        "windows": "win32",
    }
    try:
        return mapping[alias]
    except KeyError as exc:
        raise click.BadParameter(
            "Platform must be one of: linux, posix, darwin, mac, macos, win, win32, windows.",
            param_hint="--platform",
        ) from exc


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
