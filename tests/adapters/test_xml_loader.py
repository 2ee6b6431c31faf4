"""XML document loader tests for files, ``file:`` URIs and HTTP includes."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from lib_liberty_config.adapters.file_loaders.xml import XmlDocumentLoader
from lib_liberty_config.domain.errors import IncludeError, InvalidFormat, NotFound
from tests.support import server

REMOTE = "https://config.example.com/remote.xml"


def _client(status: int = 200, body: str | None = None) -> httpx.Client:
    payload = body if body is not None else server('<variable name="remote" value="yes"/>')

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) != REMOTE:
            return httpx.Response(404)
        return httpx.Response(status, text=payload)

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_load_file_records_canonical_source(tmp_path: Path) -> None:
    target = tmp_path / "server.xml"
    target.write_text(server('<application location="a.war"/>'), encoding="utf-8")

    document = XmlDocumentLoader().load_file(tmp_path / "." / "server.xml")

    assert document.source == str(target.resolve())
    assert document.parent_dir == tmp_path.resolve()
    assert [element.get("location") for element in document.children("application")] == ["a.war"]


def test_load_missing_file_raises_not_found(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        XmlDocumentLoader().load_file(tmp_path / "absent.xml")


def test_load_directory_raises_not_found(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        XmlDocumentLoader().load_file(tmp_path)


def test_malformed_file_raises_invalid_format(tmp_path: Path) -> None:
    target = tmp_path / "broken.xml"
    target.write_text("<server><application></server>", encoding="utf-8")
    with pytest.raises(InvalidFormat):
        XmlDocumentLoader().load_file(target)


def test_non_server_root_has_no_children(tmp_path: Path) -> None:
    target = tmp_path / "other.xml"
    target.write_text('<client><application location="a.war"/></client>', encoding="utf-8")
    assert XmlDocumentLoader().load_file(target).children("application") == []


def test_load_url_uses_injected_client() -> None:
    document = XmlDocumentLoader(client=_client()).load_url(REMOTE)
    assert document.source == REMOTE
    assert document.parent_dir is None
    assert [element.get("name") for element in document.children("variable")] == ["remote"]


def test_load_url_error_status_raises_include_error() -> None:
    with pytest.raises(IncludeError):
        XmlDocumentLoader(client=_client(status=500)).load_url(REMOTE)


def test_load_url_with_invalid_body_raises_invalid_format() -> None:
    with pytest.raises(InvalidFormat):
        XmlDocumentLoader(client=_client(body="not xml")).load_url(REMOTE)


def test_load_url_transport_failure_raises_include_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    loader = XmlDocumentLoader(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(IncludeError):
        loader.load_url(REMOTE)


def test_load_location_dispatches_on_kind(tmp_path: Path) -> None:
    target = tmp_path / "dir with space" / "inc.xml"
    target.parent.mkdir()
    target.write_text(server('<variable name="local" value="1"/>'), encoding="utf-8")
    loader = XmlDocumentLoader(client=_client())

    assert loader.load_location(REMOTE).source == REMOTE
    assert loader.load_location(target.as_uri()).source == str(target.resolve())
    assert loader.load_location(str(target)).source == str(target.resolve())
