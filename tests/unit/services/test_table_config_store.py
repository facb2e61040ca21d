import json

import pytest

from catalog_explorer.core.enums import FieldSelection
from catalog_explorer.services.table_config_store import STORAGE_KEY, TableConfigStore


def test_new_table_gets_defaults():
    store = TableConfigStore()

    added = store.register_tables(["products", "raw_a"])

    assert added == ["products", "raw_a"]
    config = store.get("raw_a")
    assert config.enabled is False
    assert config.search_fields == []
    assert config.display_fields == []
    assert config.column_mapping == {}


def test_register_is_idempotent():
    store = TableConfigStore()
    store.register_tables(["products"])
    store.toggle_enabled("products")

    assert store.register_tables(["products"]) == []
    assert store.get("products").enabled is True
    assert len(store.snapshot()) == 1


def test_persisted_under_storage_key(tmp_path):
    path = tmp_path / "tables.json"
    store = TableConfigStore(path)
    store.set_enabled("raw_a", True)
    store.set_column_mapping("raw_a", "brand", "manu_name")

    stored = json.loads(path.read_text())
    assert stored == {
        STORAGE_KEY: [{
            "name": "raw_a",
            "enabled": True,
            "searchFields": [],
            "displayFields": [],
            "columnMapping": {"brand": "manu_name"},
        }]
    }

    reloaded = TableConfigStore(path)
    assert reloaded.get("raw_a").column_mapping == {"brand": "manu_name"}


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "tables.json"
    path.write_text("{not json")

    assert TableConfigStore(path).snapshot() == []


def test_invalid_entry_does_not_discard_the_others(tmp_path):
    path = tmp_path / "tables.json"
    path.write_text(json.dumps({STORAGE_KEY: [
        {"name": "products", "enabled": True, "columnMapping": {"brand": "maker"}},
        {"name": "raw_supplier_a", "enabled": True, "columnMapping": {"colour": "couleur", "ean": "eannr"}},
        {"enabled": True},
    ]}))

    store = TableConfigStore(path)
    store.register_tables(["products", "raw_supplier_a", "raw_supplier_b"])

    assert store.enabled_tables() == ["products", "raw_supplier_a"]
    assert store.get("raw_supplier_a").column_mapping == {"ean": "eannr"}

    stored = {entry["name"]: entry for entry in json.loads(path.read_text())[STORAGE_KEY]}
    assert stored["products"]["enabled"] is True
    assert stored["products"]["columnMapping"] == {"brand": "maker"}
    assert stored["raw_supplier_b"]["enabled"] is False


def test_unwritable_path_keeps_changes_in_memory(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = TableConfigStore(blocker / "tables.json")

    store.set_enabled("products", True)
    store.register_tables(["products", "raw_a"])

    assert store.enabled_tables() == ["products"]
    assert store.get("raw_a") is not None
    assert blocker.read_text() == ""


def test_updater_receives_latest_snapshot():
    store = TableConfigStore()
    store.set_enabled("raw_a", True)
    seen = []

    def updater(configs):
        seen.append([config.enabled for config in configs])
        configs[0].enabled = False
        return configs

    store.apply_config_update(updater)

    assert seen == [[True]]
    assert store.get("raw_a").enabled is False


def test_snapshot_is_a_copy():
    store = TableConfigStore()
    store.set_enabled("raw_a", True)

    store.snapshot()[0].enabled = False

    assert store.get("raw_a").enabled is True


def test_subscribers_are_notified_until_unsubscribed():
    store = TableConfigStore()
    received = []
    unsubscribe = store.subscribe(lambda configs: received.append([config.name for config in configs]))

    store.set_enabled("raw_a", True)
    unsubscribe()
    store.set_enabled("raw_b", True)

    assert received == [["raw_a"]]


def test_toggle_and_bulk_field_selection():
    store = TableConfigStore()

    store.toggle_field("raw_a", "desc", FieldSelection.SEARCH)
    store.toggle_field("raw_a", "price", "display")
    assert store.get("raw_a").search_fields == ["desc"]
    assert store.get("raw_a").display_fields == ["price"]

    store.toggle_field("raw_a", "desc", "search")
    assert store.get("raw_a").search_fields == []

    store.select_all_fields("raw_a", ["id", "desc", "price"], "display")
    assert store.get("raw_a").display_fields == ["id", "desc", "price"]

    store.clear_fields("raw_a", "display")
    assert store.get("raw_a").display_fields == []


def test_set_and_remove_single_mapping():
    store = TableConfigStore()

    store.set_column_mapping("raw_a", "price", "prix_ttc")
    assert store.get("raw_a").column_mapping == {"price": "prix_ttc"}

    store.set_column_mapping("raw_a", "price", None)
    assert store.get("raw_a").column_mapping == {}


def test_unknown_field_rejected():
    store = TableConfigStore()

    with pytest.raises(ValueError):
        store.set_column_mapping("raw_a", "colour", "couleur")


def test_auto_map_never_overwrites_explicit_mapping():
    store = TableConfigStore()
    store.set_column_mapping("raw_a", "brand", "manu_name")

    mapping = store.auto_map_table("raw_a", ["id", "code_article", "desc_fr", "marque_nom", "manu_name"])

    assert mapping["brand"] == "manu_name"
    assert mapping["reference"] == "code_article"
    assert store.get("raw_a").column_mapping == mapping


def test_clear_column_mapping():
    store = TableConfigStore()
    store.auto_map_table("raw_a", ["id", "barcode"])

    store.clear_column_mapping("raw_a")

    assert store.get("raw_a").column_mapping == {}
