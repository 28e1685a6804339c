import json
from pathlib import Path

import pytest

from darts_sync.engine import apply
from darts_sync.exceptions import StateFormatError
from darts_sync.models import SubtractScore, default_state
from darts_sync.storage import JsonFileStore, load_or_default, load_state, save_state


@pytest.fixture()
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "matches" / "state.json")


def test_save_and_load_roundtrip(tmp_path: Path):
    path = tmp_path / "state.json"
    state = apply(default_state(), SubtractScore(amount=100))

    save_state(path, state)

    assert load_state(path) == state


def test_saved_file_is_readable_json(tmp_path: Path):
    path = tmp_path / "state.json"
    save_state(path, default_state())

    data = json.loads(path.read_text(encoding="utf-8"))

    assert data["players"][0]["flag"] == "🇬🇧"
    assert not (tmp_path / "state.json.tmp").exists()


def test_store_load_missing_returns_none(store: JsonFileStore):
    assert store.load() is None


def test_store_creates_parent_directory(store: JsonFileStore):
    store.save(default_state())

    assert store.path.exists()
    assert store.load() == default_state()


def test_corrupt_file_raises(store: JsonFileStore):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StateFormatError):
        store.load()


def test_load_or_default(store: JsonFileStore):
    assert load_or_default(None) == default_state()
    assert load_or_default(store) == default_state()

    saved = apply(default_state(), SubtractScore(amount=45))
    store.save(saved)

    assert load_or_default(store) == saved
