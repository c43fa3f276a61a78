import json

from game.store import JsonFileStore, MemoryStore


def test_memory_store_typed_getters_fall_back_on_wrong_types():
    store = MemoryStore({"coins": "lots", "gems": True, "manga_read": 5})

    assert store.get_int("coins", 100) == 100
    assert store.get_int("gems", 10) == 10
    assert store.get_str("manga_read", "") == ""


def test_memory_store_roundtrip_and_delete():
    store = MemoryStore()
    store.set_int("coins", 42)
    store.set_str("manga_unlocked", "arc1_ch1")

    assert store.has("coins")
    assert store.get_int("coins", 0) == 42
    store.delete("coins")
    store.delete("coins")
    assert not store.has("coins")
    assert store.get_str("manga_unlocked") == "arc1_ch1"


def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "prefs.json"
    store = JsonFileStore(path)
    store.set_int("coins", 7)
    store.save()

    reopened = JsonFileStore(path)

    assert reopened.get_int("coins", 0) == 7
    assert json.loads(path.read_text()) == {"coins": 7}


def test_json_store_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    store = JsonFileStore(path)
    store.set_str("manga_read", "")
    store.save()

    assert path.exists()


def test_json_store_missing_file_starts_empty(tmp_path):
    store = JsonFileStore(tmp_path / "absent.json")

    assert store.to_dict() == {}


def test_json_store_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{{{ not json")

    store = JsonFileStore(path)

    assert store.to_dict() == {}
    assert store.get_int("coins", 100) == 100


def test_json_store_non_object_file_starts_empty(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps([1, 2, 3]))

    assert JsonFileStore(path).to_dict() == {}


def _unwritable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    return blocker / "prefs.json"


def test_commit_applies_updates_and_deletions(tmp_path):
    path = tmp_path / "prefs.json"
    store = JsonFileStore(path)
    store.set_str("manga_read", "arc1_ch1")

    assert store.commit({"coins": 5}, deletions=("manga_read",))

    assert json.loads(path.read_text()) == {"coins": 5}


def test_commit_rolls_back_when_save_fails(tmp_path):
    store = JsonFileStore(tmp_path / "prefs.json")
    store.set_int("coins", 100)
    store.set_str("manga_read", "arc1_ch1")
    store.save()
    store.path = _unwritable(tmp_path)

    assert not store.commit({"coins": 70, "gems": 3}, deletions=("manga_read",))

    assert store.to_dict() == {"coins": 100, "manga_read": "arc1_ch1"}
    assert json.loads((tmp_path / "prefs.json").read_text())["coins"] == 100


def test_memory_store_commit_counts_saves():
    store = MemoryStore()

    assert store.commit({"coins": 1})
    assert store.save_count == 1
