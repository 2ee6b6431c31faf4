"""Effective feature sets, including onConflict handling for included documents."""

from __future__ import annotations

import logging

import httpx
import pytest

from tests.support import LibertySandbox, server

REMOTE = "https://config.example.com/features.xml"


def _features(*names: str) -> str:
    body = "".join(f"<feature>{name}</feature>" for name in names)
    return f"<featureManager>{body}</featureManager>"


def _include(location: str, on_conflict: str | None = None) -> str:
    policy = f' onConflict="{on_conflict}"' if on_conflict else ""
    return f'<include location="{location}"{policy}/>'


def test_server_xml_features(sandbox: LibertySandbox) -> None:
    sandbox.server_xml(_features("orig"))
    assert sandbox.features() == {"orig"}


def test_no_feature_manager_anywhere_yields_none(sandbox: LibertySandbox) -> None:
    sandbox.server_xml('<application location="a.war"/>')
    assert sandbox.features() is None


def test_missing_server_xml_yields_none(sandbox: LibertySandbox) -> None:
    assert sandbox.features() is None


def test_empty_feature_manager_yields_empty_set(sandbox: LibertySandbox) -> None:
    sandbox.server_xml("<featureManager/>")
    assert sandbox.features() == set()


def test_feature_names_are_trimmed_and_lower_cased(sandbox: LibertySandbox) -> None:
    sandbox.server_xml(_features("  JSP-2.3 ", "ServLet-4.0", "   "), _features("jsp-2.3"))
    assert sandbox.features() == {"jsp-2.3", "servlet-4.0"}


def test_user_features_are_left_out(sandbox: LibertySandbox) -> None:
    sandbox.server_xml(_features("jsp-2.3", "usr:MyExt-1.0", " myExt:feature2 ", "JAXRS-2.1"))
    assert sandbox.features() == {"jsp-2.3", "jaxrs-2.1"}


def test_only_user_features_still_yield_an_empty_set(sandbox: LibertySandbox) -> None:
    sandbox.server_xml(_features("usr:MyExt-1.0"))
    assert sandbox.features() == set()


def test_include_merges_by_default(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml(_features("orig"), _include("extra.xml"))
    assert sandbox.features() == {"orig", "extra"}


def test_include_merge_is_explicit_too(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml(_features("orig"), _include("extra.xml", "MERGE"))
    assert sandbox.features() == {"orig", "extra"}


def test_include_replace(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml(_features("orig"), _include("extra.xml", "REPLACE"))
    assert sandbox.features() == {"extra"}


def test_include_ignore(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml(_features("orig"), _include("extra.xml", "IGNORE"))
    assert sandbox.features() == {"orig"}


def test_nested_replace_applies_inside_the_included_document(sandbox: LibertySandbox) -> None:
    sandbox.write("includes/inner.xml", server(_features("inner")))
    sandbox.write("includes/outer.xml", server(_features("outer"), _include("inner.xml", "replace")))
    sandbox.server_xml(_features("orig"), _include("includes/outer.xml"))
    assert sandbox.features() == {"orig", "inner"}


def test_replace_with_document_without_feature_manager_keeps_parent(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server('<application location="a.war"/>'))
    sandbox.server_xml(_features("orig"), _include("extra.xml", "replace"))
    assert sandbox.features() == {"orig"}


def test_replace_with_empty_feature_manager_keeps_parent(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server("<featureManager/>"))
    sandbox.server_xml(_features("orig"), _include("extra.xml", "replace"))
    assert sandbox.features() == {"orig"}


def test_ignore_without_parent_feature_manager_uses_include(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml(_include("extra.xml", "ignore"))
    assert sandbox.features() == {"extra"}


def test_ignore_with_empty_parent_feature_manager_keeps_empty_set(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml("<featureManager/>", _include("extra.xml", "ignore"))
    assert sandbox.features() == set()


def test_defaults_dropins_come_first(sandbox: LibertySandbox) -> None:
    sandbox.dropin("defaults", "defaults.xml", _features("defaults"))
    sandbox.server_xml(_features("orig"))
    assert sandbox.features() == {"defaults", "orig"}


def test_server_xml_replace_include_can_drop_defaults(sandbox: LibertySandbox) -> None:
    sandbox.dropin("defaults", "defaults.xml", _features("defaults"))
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml(_include("extra.xml", "replace"))
    assert sandbox.features() == {"extra"}


def test_overrides_dropins_come_last(sandbox: LibertySandbox) -> None:
    sandbox.dropin("overrides", "overrides.xml", _features("overrides"))
    sandbox.server_xml(_features("orig"))
    assert sandbox.features() == {"orig", "overrides"}


def test_overrides_replace_include_is_anchored_at_the_dropin(sandbox: LibertySandbox) -> None:
    sandbox.write("configDropins/overrides/replacement.xml.inc", server(_features("replacement")))
    sandbox.dropin("overrides", "overrides.xml", _include("replacement.xml.inc", "replace"))
    sandbox.server_xml(_features("orig"))
    assert sandbox.features() == {"replacement"}


def test_include_is_parsed_only_once(sandbox: LibertySandbox) -> None:
    sandbox.write("extra.xml", server(_features("extra")))
    sandbox.server_xml(_features("orig"), _include("extra.xml"), _include("extra.xml", "replace"))
    assert sandbox.features() == {"orig", "extra"}


def test_self_include_terminates(sandbox: LibertySandbox) -> None:
    sandbox.server_xml(_features("orig"), _include("server.xml", "replace"))
    assert sandbox.features() == {"orig"}


def test_include_location_uses_server_config_dir(sandbox: LibertySandbox) -> None:
    sandbox.write("nested/extra.xml", server(_features("extra")))
    sandbox.server_xml(_features("orig"), _include("${server.config.dir}/nested/extra.xml"))
    assert sandbox.features() == {"orig", "extra"}


def test_include_location_uses_bootstrap_properties(sandbox: LibertySandbox) -> None:
    sandbox.write("bootstrap.properties", "extras.dir=nested\n")
    sandbox.write("nested/extra.xml", server(_features("extra")))
    sandbox.server_xml(_features("orig"), _include("${extras.dir}/extra.xml"))
    assert sandbox.features() == {"orig", "extra"}


def test_include_with_unknown_property_is_skipped(sandbox: LibertySandbox, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="lib_liberty_config")
    sandbox.server_xml(_features("orig"), _include("${not.defined}/extra.xml", "replace"))

    assert sandbox.features() == {"orig"}
    messages = [record.getMessage() for record in caplog.records]
    assert "include_property_unknown" in messages
    assert "feature_include_unparsable" in messages


def test_missing_include_is_skipped(sandbox: LibertySandbox) -> None:
    sandbox.server_xml(_features("orig"), _include("absent.xml", "replace"))
    assert sandbox.features() == {"orig"}


def test_empty_and_malformed_documents_are_skipped(sandbox: LibertySandbox) -> None:
    sandbox.write("configDropins/defaults/empty.xml", "")
    sandbox.write("configDropins/defaults/broken.xml", "<server><featureManager>")
    sandbox.server_xml(_features("orig"))
    assert sandbox.features() == {"orig"}


def test_url_include_via_client(sandbox: LibertySandbox) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == REMOTE:
            return httpx.Response(200, text=server(_features("Remote-1.0")))
        return httpx.Response(404)

    sandbox.server_xml(_features("orig"), _include(REMOTE))

    features = sandbox.features(client=httpx.Client(transport=httpx.MockTransport(handler)))

    assert features == {"orig", "remote-1.0"}


def test_unreachable_url_include_is_skipped(sandbox: LibertySandbox) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    sandbox.server_xml(_features("orig"), _include(REMOTE, "replace"))
    assert sandbox.features(client=httpx.Client(transport=transport)) == {"orig"}
