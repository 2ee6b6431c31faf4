"""Path resolver tests covering directory properties, dropins and include candidates."""

from __future__ import annotations

from pathlib import Path

from lib_liberty_config.adapters.path_resolvers.default import (
    DefaultPathResolver,
    liberty_directories,
    liberty_directories_for_server,
    sorted_xml_children,
)
from lib_liberty_config.domain.properties import DIRECTORY_PROPERTY_NAMES
from tests.support import LibertySandbox


def test_directories_cover_every_predefined_name(sandbox: LibertySandbox) -> None:
    dirs = liberty_directories_for_server(sandbox.server_dir)
    assert set(dirs) == set(DIRECTORY_PROPERTY_NAMES)
    assert dirs["server.config.dir"] == sandbox.server_dir.resolve()
    assert dirs["wlp.install.dir"] == sandbox.install_dir.resolve()
    assert dirs["wlp.user.dir"] == sandbox.user_dir.resolve()
    assert dirs["shared.app.dir"] == (sandbox.user_dir / "shared" / "app").resolve()
    assert dirs["shared.stackgroup.dir"] == (sandbox.user_dir / "shared" / "stackGroups").resolve()
    assert "wlp.output.dir" not in dirs


def test_missing_server_directory_yields_empty_mapping(tmp_path: Path) -> None:
    assert liberty_directories(tmp_path, tmp_path / "usr", tmp_path / "usr" / "servers" / "ghost") == {}


def test_server_xml_defaults_to_config_dir(sandbox: LibertySandbox) -> None:
    resolver = DefaultPathResolver(directories=sandbox.directories)
    assert resolver.server_xml == sandbox.server_dir.resolve() / "server.xml"
    assert resolver.server_xml_dir == sandbox.server_dir.resolve()


def test_no_directories_means_no_server_xml() -> None:
    resolver = DefaultPathResolver(directories={})
    assert resolver.server_xml is None
    assert resolver.config_file("bootstrap.properties") is None
    assert resolver.dropin_files("defaults") == []
    assert list(resolver.include_candidates("a.xml")) == []


def test_platform_detection() -> None:
    assert DefaultPathResolver(directories={}, platform="win32").is_windows
    assert not DefaultPathResolver(directories={}, platform="linux").is_windows


def test_config_file_only_when_present(sandbox: LibertySandbox) -> None:
    resolver = DefaultPathResolver(directories=sandbox.directories)
    assert resolver.config_file("bootstrap.properties") is None
    sandbox.write("bootstrap.properties", "a=1\n")
    assert resolver.config_file("bootstrap.properties") == sandbox.server_dir.resolve() / "bootstrap.properties"


def test_dropins_are_xml_only_and_sorted_case_insensitively(sandbox: LibertySandbox) -> None:
    sandbox.dropin("defaults", "b.xml")
    sandbox.dropin("defaults", "A.xml")
    sandbox.dropin("defaults", "c.XML")
    sandbox.write("configDropins/defaults/notes.txt", "ignored")
    (sandbox.server_dir / "configDropins" / "defaults" / "folder.xml").mkdir()
    resolver = DefaultPathResolver(directories=sandbox.directories)

    names = [path.name for path in resolver.dropin_files("defaults")]

    assert names == ["A.xml", "b.xml", "c.XML"]
    assert resolver.dropin_files("overrides") == []


def test_dropins_prefer_config_dir_over_server_xml_dir(sandbox: LibertySandbox, tmp_path: Path) -> None:
    elsewhere = tmp_path / "elsewhere"
    sandbox.write("configDropins/overrides/elsewhere.xml", "<server/>", base=elsewhere)
    resolver = DefaultPathResolver(directories=sandbox.directories, server_xml=elsewhere / "server.xml")
    assert resolver.config_dropins_dir() == elsewhere / "configDropins"
    assert [path.name for path in resolver.dropin_files("overrides")] == ["elsewhere.xml"]

    sandbox.dropin("overrides", "local.xml")
    assert [path.name for path in resolver.dropin_files("overrides")] == ["local.xml"]


def test_include_candidates_try_config_dir_then_server_xml_dir(sandbox: LibertySandbox, tmp_path: Path) -> None:
    elsewhere = tmp_path / "elsewhere"
    resolver = DefaultPathResolver(directories=sandbox.directories, server_xml=elsewhere / "server.xml")

    assert list(resolver.include_candidates("inc/a.xml")) == [
        sandbox.server_dir.resolve() / "inc/a.xml",
        elsewhere / "inc/a.xml",
    ]


def test_absolute_include_is_used_as_is(sandbox: LibertySandbox, tmp_path: Path) -> None:
    resolver = DefaultPathResolver(directories=sandbox.directories)
    target = tmp_path / "abs.xml"
    assert list(resolver.include_candidates(str(target))) == [target]


def test_directory_xml_files_match_dropin_rules(tmp_path: Path) -> None:
    (tmp_path / "z.xml").write_text("<server/>", encoding="utf-8")
    (tmp_path / "Y.xml").write_text("<server/>", encoding="utf-8")
    (tmp_path / "readme.md").write_text("x", encoding="utf-8")
    resolver = DefaultPathResolver(directories={})
    assert [path.name for path in resolver.directory_xml_files(tmp_path)] == ["Y.xml", "z.xml"]
    assert sorted_xml_children(tmp_path) == resolver.directory_xml_files(tmp_path)
