import json
import sqlite3
import zlib

import pytest

from tapeforge.engine.checkpointing import CheckpointIOFailure, load_checkpoint, save_checkpoint


def test_checkpoint_roundtrip(tmp_path):
    state = {"generation": 5, "population": [[0.1, 0.9], [0.5, 0.25]], "metadata": {"target": "hi"}}
    path = tmp_path / "chk.db"
    save_checkpoint(path, state)
    loaded = load_checkpoint(path)
    assert loaded == state


def test_latest_entry_wins(tmp_path):
    path = tmp_path / "chk.db"
    save_checkpoint(path, {"generation": 1})
    save_checkpoint(path, {"generation": 2})
    assert load_checkpoint(path)["generation"] == 2


def test_unknown_version_is_rejected(tmp_path):
    path = tmp_path / "chk.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE checkpoints(id INTEGER PRIMARY KEY, payload BLOB)")
    conn.execute("INSERT INTO checkpoints(payload) VALUES (?)", (zlib.compress(json.dumps({"version": 99}).encode()),))
    conn.commit()
    conn.close()
    with pytest.raises(CheckpointIOFailure):
        load_checkpoint(path)


def test_unreadable_files_raise_checkpoint_failure(tmp_path):
    garbage = tmp_path / "garbage.db"
    garbage.write_text("not a database")
    with pytest.raises(CheckpointIOFailure):
        load_checkpoint(garbage)
    with pytest.raises(CheckpointIOFailure):
        load_checkpoint(tmp_path / "missing.db")


def test_unwritable_path_raises_checkpoint_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(CheckpointIOFailure):
        save_checkpoint(blocker / "chk.db", {"generation": 1})
