from keyscope.extraction import build_extracted_keys, group_by_namespace
from keyscope.store import TranslationWriter
from keyscope.syncer import apply_sync, plan_sync

from conftest import make_config, read_json, write_json


def run_sync(tmp_path, config, engine_for, candidates, sync_primary=False, dry_run=False,
             sync_all=False):
    keys = group_by_namespace(build_extracted_keys(candidates, config),
                              config.extract.ignore_namespaces)
    engine = engine_for(config)
    report = engine.compute(keys)
    intents = plan_sync(config, keys, engine, report, sync_primary=sync_primary,
                        sync_all=sync_all)
    written = apply_sync(intents, TranslationWriter(), dry_run=dry_run)
    return intents, written


def test_inserts_missing_keys(tmp_path, engine_for):
    config = make_config()
    intents, written = run_sync(tmp_path, config, engine_for, [
        {"key": "home.title", "defaultValue": "Home"},
        "home.subtitle",
    ])

    assert written == 2
    assert read_json(tmp_path, "locales/en/translation.json") == {
        "home": {"title": "Home", "subtitle": ""},
    }
    assert read_json(tmp_path, "locales/de/translation.json") == {
        "home": {"title": "", "subtitle": ""},
    }
    assert {i.locale for i in intents} == {"en", "de"}


def test_existing_translations_are_preserved_and_order_kept(tmp_path, engine_for):
    write_json(tmp_path, "locales/de/translation.json", {"z": "Zett", "a": "Ah"})
    config = make_config()
    run_sync(tmp_path, config, engine_for, ["z", "a", "new"])

    data = read_json(tmp_path, "locales/de/translation.json")
    assert data == {"z": "Zett", "a": "Ah", "new": ""}
    assert list(data) == ["z", "a", "new"]


def test_removes_unused_keys_and_prunes(tmp_path, engine_for):
    write_json(tmp_path, "locales/de/translation.json", {
        "keep": "Behalten", "old": {"deep": "Alt"},
    })
    run_sync(tmp_path, make_config(), engine_for, ["keep"])
    assert read_json(tmp_path, "locales/de/translation.json") == {"keep": "Behalten"}


def test_remove_unused_disabled(tmp_path, engine_for):
    write_json(tmp_path, "locales/de/translation.json", {"old": "Alt"})
    run_sync(tmp_path, make_config(remove_unused_keys=False), engine_for, ["new"])
    assert read_json(tmp_path, "locales/de/translation.json") == {"old": "Alt", "new": ""}


def test_second_run_is_noop(tmp_path, engine_for):
    config = make_config(locales=("en", "de", "ru"))
    candidates = ["a", {"key": "items", "hasCount": True}, "common:b"]
    run_sync(tmp_path, config, engine_for, candidates)

    intents, written = run_sync(tmp_path, config, engine_for, candidates)
    assert intents == []
    assert written == 0


def test_plural_keys_follow_each_locale(tmp_path, engine_for):
    config = make_config(locales=("en", "de", "ru"))
    write_json(tmp_path, "locales/de/translation.json", {"items_few": "stale"})
    run_sync(tmp_path, config, engine_for, [{"key": "items", "hasCount": True}])

    assert list(read_json(tmp_path, "locales/de/translation.json")) == ["items_one", "items_other"]
    assert list(read_json(tmp_path, "locales/ru/translation.json")) == [
        "items_one", "items_few", "items_many", "items_other",
    ]


def test_fallback_resolved_keys_are_not_duplicated_or_removed(tmp_path, engine_for):
    write_json(tmp_path, "locales/de/common.json", {"save": "Speichern", "unused": "x"})
    config = make_config(fallback_ns="common")
    run_sync(tmp_path, config, engine_for, ["home:save", "common:cancel"])

    assert not (tmp_path / "locales" / "de" / "home.json").exists()
    assert read_json(tmp_path, "locales/en/home.json") == {"save": ""}
    assert read_json(tmp_path, "locales/de/common.json") == {"save": "Speichern", "cancel": ""}


def test_sync_primary_updates_default_values(tmp_path, engine_for):
    write_json(tmp_path, "locales/en/translation.json", {"title": "Old"})
    write_json(tmp_path, "locales/de/translation.json", {"title": "Alt"})
    candidates = [{"key": "title", "defaultValue": "New"}]

    run_sync(tmp_path, make_config(), engine_for, candidates)
    assert read_json(tmp_path, "locales/en/translation.json") == {"title": "Old"}

    run_sync(tmp_path, make_config(), engine_for, candidates, sync_primary=True)
    assert read_json(tmp_path, "locales/en/translation.json") == {"title": "New"}
    assert read_json(tmp_path, "locales/de/translation.json") == {"title": "Alt"}


def test_merge_namespaces_single_file(tmp_path, engine_for):
    write_json(tmp_path, "locales/de/translation.json", {
        "home": {"title": "Titel", "gone": "weg"},
        "meta": "untouched",
    })
    config = make_config(merge_namespaces=True)
    intents, _ = run_sync(tmp_path, config, engine_for, ["home:title", "common:save"])

    assert len([i for i in intents if i.locale == "de"]) == 1
    assert read_json(tmp_path, "locales/de/translation.json") == {
        "home": {"title": "Titel"},
        "meta": "untouched",
        "common": {"save": ""},
    }


def test_merge_namespaces_legacy_flat_file(tmp_path, engine_for):
    write_json(tmp_path, "locales/de/translation.json", {"title": "Titel", "old": "alt"})
    config = make_config(merge_namespaces=True)
    run_sync(tmp_path, config, engine_for, ["title", "subtitle"])

    assert read_json(tmp_path, "locales/de/translation.json") == {
        "title": "Titel", "old": "alt", "subtitle": "",
    }


def test_dry_run_writes_nothing(tmp_path, engine_for):
    intents, written = run_sync(tmp_path, make_config(), engine_for, ["a"], dry_run=True)
    assert written == len(intents) == 2
    assert not (tmp_path / "locales").exists()


def test_conflicting_structure_is_skipped(tmp_path, engine_for, caplog):
    write_json(tmp_path, "locales/de/translation.json", {"a": "leaf"})
    config = make_config(remove_unused_keys=False)
    run_sync(tmp_path, config, engine_for, ["a.b"])

    assert read_json(tmp_path, "locales/de/translation.json") == {"a": "leaf"}
    assert "конфликт" in caplog.text


class TestSharedFileWithoutNamespacePlaceholder:

    def test_translations_of_all_namespaces_survive(self, tmp_path, engine_for):
        write_json(tmp_path, "locales/de.json", {"title": "Titel", "ok": "OK", "gone": "weg"})
        config = make_config(output="locales/{{language}}.json")

        intents, _ = run_sync(tmp_path, config, engine_for, ["home:title", "common:ok"])

        assert read_json(tmp_path, "locales/de.json") == {"title": "Titel", "ok": "OK"}
        assert len([i for i in intents if i.locale == "de"]) == 1

    def test_second_run_is_noop(self, tmp_path, engine_for):
        config = make_config(output="locales/{{language}}.json")
        candidates = ["home:title", "common:ok", "nav.back"]
        run_sync(tmp_path, config, engine_for, candidates)

        write_json(tmp_path, "locales/de.json", {
            "title": "Titel", "ok": "OK", "nav": {"back": "Zurück"},
        })
        intents, _ = run_sync(tmp_path, config, engine_for, candidates)
        assert intents == []


class TestSyncAll:

    def test_resets_secondary_values_of_updated_keys(self, tmp_path, engine_for):
        write_json(tmp_path, "locales/en/translation.json", {"title": "Old", "same": "Same"})
        write_json(tmp_path, "locales/de/translation.json", {"title": "Alt", "same": "Gleich"})
        candidates = [
            {"key": "title", "defaultValue": "New"},
            {"key": "same", "defaultValue": "Same"},
        ]

        run_sync(tmp_path, make_config(), engine_for, candidates, sync_all=True)

        assert read_json(tmp_path, "locales/en/translation.json") == {"title": "New", "same": "Same"}
        assert read_json(tmp_path, "locales/de/translation.json") == {"title": "", "same": "Gleich"}

    def test_sync_primary_alone_keeps_secondary_values(self, tmp_path, engine_for):
        write_json(tmp_path, "locales/en/translation.json", {"title": "Old"})
        write_json(tmp_path, "locales/de/translation.json", {"title": "Alt"})

        run_sync(tmp_path, make_config(), engine_for,
                 [{"key": "title", "defaultValue": "New"}], sync_primary=True)
        assert read_json(tmp_path, "locales/de/translation.json") == {"title": "Alt"}

    def test_repeated_run_changes_nothing(self, tmp_path, engine_for):
        write_json(tmp_path, "locales/en/translation.json", {"title": "Old"})
        write_json(tmp_path, "locales/de/translation.json", {"title": "Alt"})
        candidates = [{"key": "title", "defaultValue": "New"}]

        run_sync(tmp_path, make_config(), engine_for, candidates, sync_all=True)
        write_json(tmp_path, "locales/de/translation.json", {"title": "Neu"})

        intents, _ = run_sync(tmp_path, make_config(), engine_for, candidates, sync_all=True)
        assert intents == []
        assert read_json(tmp_path, "locales/de/translation.json") == {"title": "Neu"}

    def test_fill_value_follows_config(self, tmp_path, engine_for):
        write_json(tmp_path, "locales/en/translation.json", {"title": "Old"})
        write_json(tmp_path, "locales/de/translation.json", {"title": "Alt"})

        run_sync(tmp_path, make_config(default_value="TODO"), engine_for,
                 [{"key": "title", "defaultValue": "New"}], sync_all=True)
        assert read_json(tmp_path, "locales/de/translation.json") == {"title": "TODO"}
