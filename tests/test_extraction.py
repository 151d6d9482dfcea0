import pytest

from keyscope.errors import ScanError
from keyscope.extraction import (
    ExtractedKey,
    build_extracted_keys,
    extract_keys,
    group_by_namespace,
    split_namespace,
)
from keyscope.scanner import KeyCandidate

from conftest import ListScanner, make_config


class TestNamespaceResolution:

    def test_prefix_wins(self):
        config = make_config()
        assert split_namespace("common:button.save", config) == ("common", "button.save")
        assert split_namespace("common:button.save", config, "other") == ("common", "button.save")

    def test_explicit_then_default(self):
        config = make_config()
        assert split_namespace("title", config, "home") == ("home", "title")
        assert split_namespace("title", config) == ("translation", "title")

    def test_custom_default_ns(self):
        assert split_namespace("title", make_config(default_ns="app")) == ("app", "title")

    def test_disabled_default_ns_uses_translation(self):
        assert split_namespace("title", make_config(default_ns=False)) == ("translation", "title")

    def test_disabled_ns_separator(self):
        config = make_config(ns_separator=False)
        assert split_namespace("a:b", config) == ("translation", "a:b")


class TestBuildExtractedKeys:

    def test_plain_key(self):
        keys = build_extracted_keys([{"key": "key.c"}], make_config())
        assert keys == [ExtractedKey(key="key.c", namespace="translation")]

    def test_base_plural_key(self):
        [key] = build_extracted_keys([{"key": "item", "hasCount": True}], make_config())
        assert key.has_count
        assert not key.is_expanded_plural
        assert not key.is_ordinal

    def test_expanded_plural_key(self):
        [key] = build_extracted_keys([{"key": "item_one", "hasCount": True}], make_config())
        assert key.is_expanded_plural
        assert not key.is_ordinal

    def test_expanded_ordinal_key(self):
        [key] = build_extracted_keys([KeyCandidate("place_ordinal_two", has_count=True)],
                                     make_config())
        assert key.is_expanded_plural
        assert key.is_ordinal

    def test_suffix_without_count_is_plain_key(self):
        [key] = build_extracted_keys([{"key": "item_one"}], make_config())
        assert not key.has_count
        assert not key.is_expanded_plural

    def test_custom_plural_separator(self):
        [key] = build_extracted_keys([{"key": "item|few", "hasCount": True}],
                                     make_config(plural_separator="|"))
        assert key.is_expanded_plural

    def test_dedup_merges_flags_and_keeps_first_position(self):
        keys = build_extracted_keys([
            {"key": "a"},
            {"key": "b", "defaultValue": "B"},
            {"key": "a", "hasCount": True, "defaultValue": "A"},
            {"key": "translation:b", "defaultValue": "other"},
        ], make_config())

        assert [k.key for k in keys] == ["a", "b"]
        assert keys[0].has_count
        assert keys[0].default_value == "A"
        assert keys[1].default_value == "B"

    def test_same_key_in_different_namespaces_is_kept(self):
        keys = build_extracted_keys(["title", "common:title"], make_config())
        assert {(k.namespace, k.key) for k in keys} == {
            ("translation", "title"), ("common", "title"),
        }

    def test_missing_key_is_rejected(self):
        with pytest.raises(ScanError):
            build_extracted_keys([{"namespace": "x"}], make_config())


def test_group_by_namespace_drops_ignored_and_keeps_order():
    keys = build_extracted_keys(
        ["b:one", "a:two", "legacy:old", "b:three"], make_config()
    )
    grouped = group_by_namespace(keys, ["legacy"])

    assert list(grouped) == ["b", "a"]
    assert [k.key for k in grouped["b"]] == ["one", "three"]
    assert "legacy" not in grouped


def test_extract_keys_wraps_scanner_failure():
    class BrokenScanner:
        def scan(self):
            raise RuntimeError("parser crashed")

    with pytest.raises(ScanError, match="parser crashed"):
        extract_keys(BrokenScanner(), make_config())


def test_extract_keys_accepts_callable():
    keys = extract_keys(lambda: ["x", "y"], make_config())
    assert [k.key for k in keys] == ["x", "y"]


def test_extract_keys_from_scanner_object():
    keys = extract_keys(ListScanner("ns:a", {"key": "b", "ns": "ns"}), make_config())
    assert [(k.namespace, k.key) for k in keys] == [("ns", "a"), ("ns", "b")]
