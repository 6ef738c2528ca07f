import json

import pytest

from engine.storage import DEFAULT_INPUTS, STORAGE_KEY, InputStore


@pytest.fixture
def store(tmp_path):
    return InputStore(tmp_path / "snapshot.json")


def test_missing_file_loads_defaults(store):
    assert store.load() == DEFAULT_INPUTS


def test_defaults_are_a_copy(store):
    loaded = store.load()
    loaded["total_orders"] = 1
    assert DEFAULT_INPUTS["total_orders"] == 2_500


def test_save_then_load(store):
    record = {"gross_sales_incl_gst": 123, "total_orders": 0, "cash_on_hand": 9}
    store.save(record)
    assert store.load() == record
    assert json.loads(store.path.read_text())[STORAGE_KEY] == record


def test_malformed_json_falls_back(store):
    store.path.write_text("{not json")
    assert store.load() == DEFAULT_INPUTS


def test_non_object_payload_falls_back(store):
    store.path.write_text("[1, 2, 3]")
    assert store.load() == DEFAULT_INPUTS


def test_non_object_record_falls_back(store):
    store.path.write_text(json.dumps({STORAGE_KEY: "oops"}))
    assert store.load() == DEFAULT_INPUTS


def test_other_keys_are_kept(tmp_path):
    path = tmp_path / "snapshot.json"
    InputStore(path, key="brand_a").save({"units_sold": 1})
    InputStore(path, key="brand_b").save({"units_sold": 2})
    assert InputStore(path, key="brand_a").load() == {"units_sold": 1}
    assert InputStore(path, key="brand_b").load() == {"units_sold": 2}


def test_save_creates_parent_dirs(tmp_path):
    store = InputStore(tmp_path / "nested" / "dir" / "snapshot.json")
    store.save({"units_sold": 5})
    assert store.load() == {"units_sold": 5}


def test_reset_drops_saved_record(store):
    store.save({"units_sold": 5})
    assert store.reset() == DEFAULT_INPUTS
    assert store.load() == DEFAULT_INPUTS
