"""Checkpoint utilities using SQLite + compressed blob."""
from __future__ import annotations
import sqlite3
import zlib
import json
from contextlib import closing
from pathlib import Path
from typing import Any, Dict

CHECKPOINT_VERSION = 1


class CheckpointIOFailure(Exception):
    """A checkpoint could not be written or read back."""


def save_checkpoint(path: Path, state: Dict[str, Any]):
    path = Path(path)
    payload = dict(state, version=CHECKPOINT_VERSION)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        blob = zlib.compress(json.dumps(payload).encode("utf-8"))
        with closing(sqlite3.connect(path)) as conn, conn:
            conn.execute("CREATE TABLE IF NOT EXISTS checkpoints(id INTEGER PRIMARY KEY, payload BLOB)")
            conn.execute("INSERT INTO checkpoints(payload) VALUES (?)", (blob,))
    except (OSError, sqlite3.Error, TypeError, ValueError) as exc:
        raise CheckpointIOFailure(f"could not write checkpoint {path}: {exc}") from exc


def load_checkpoint(path: Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise CheckpointIOFailure(f"checkpoint {path} does not exist")
    try:
        with closing(sqlite3.connect(path)) as conn:
            row = conn.execute("SELECT payload FROM checkpoints ORDER BY id DESC LIMIT 1").fetchone()
        if not row:
            raise CheckpointIOFailure(f"checkpoint {path} holds no entries")
        state = json.loads(zlib.decompress(row[0]).decode("utf-8"))
    except (OSError, sqlite3.Error, zlib.error, ValueError) as exc:
        raise CheckpointIOFailure(f"could not read checkpoint {path}: {exc}") from exc
    version = state.pop("version", None)
    if version != CHECKPOINT_VERSION:
        raise CheckpointIOFailure(f"unsupported checkpoint version {version!r} in {path}")
    return state
