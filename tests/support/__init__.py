"""Shared fixtures building throw-away Liberty installations for tests.

A sandbox mirrors the on-disk layout the scanner expects::

    <root>/wlp/etc/server.env
    <root>/wlp/usr/shared/server.env
    <root>/wlp/usr/servers/<name>/server.xml
    <root>/wlp/usr/servers/<name>/configDropins/{defaults,overrides}/

so tests can write only the files a scenario needs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from lib_liberty_config.adapters.path_resolvers.default import liberty_directories_for_server
from lib_liberty_config.application.scanner import ServerConfigDocument
from lib_liberty_config.core import scan_server_config, server_features


def server(*elements: str) -> str:
    """Wrap *elements* in a ``<server>`` document."""

    body = "\n    ".join(elements)
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<server>\n    {body}\n</server>\n'


@dataclass
class LibertySandbox:
    """Directory tree of one Liberty server under a temporary root."""

    install_dir: Path
    user_dir: Path
    server_dir: Path
    env: dict[str, str] = field(default_factory=dict)

    @property
    def directories(self) -> dict[str, Path]:
        return liberty_directories_for_server(self.server_dir)

    def write(self, relative: str, content: str, *, base: Path | None = None) -> Path:
        """Write *content* to ``<base or server_dir>/<relative>``, creating parents."""

        target = (base or self.server_dir) / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target

    def server_xml(self, *elements: str, name: str = "server.xml") -> Path:
        return self.write(name, server(*elements))

    def dropin(self, folder: str, name: str, *elements: str) -> Path:
        return self.write(f"configDropins/{folder}/{name}", server(*elements))

    def scan(self, **options: Any) -> ServerConfigDocument:
        options.setdefault("environ", self.env)
        return scan_server_config(server_dir=self.server_dir, **options)

    def features(self, **options: Any) -> set[str] | None:
        return server_features(self.server_dir, **options)


def create_liberty_sandbox(
    tmp_path: Path,
    *,
    name: str = "demo",
    env: Mapping[str, str] | None = None,
) -> LibertySandbox:
    """Create the install, user and server directories for *name* under *tmp_path*."""

    install_dir = tmp_path / "wlp"
    user_dir = install_dir / "usr"
    server_dir = user_dir / "servers" / name
    server_dir.mkdir(parents=True)
    return LibertySandbox(install_dir=install_dir, user_dir=user_dir, server_dir=server_dir, env=dict(env or {}))


__all__ = ["LibertySandbox", "create_liberty_sandbox", "server"]
