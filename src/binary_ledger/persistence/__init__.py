"""Snapshot persistence for the session ledger."""

from .snapshot import STORAGE_KEY, encode_snapshot, decode_snapshot
from .stores import SnapshotStore, MemoryStore, JsonFileStore, SQLiteStore, create_store

__all__ = [
    "STORAGE_KEY",
    "encode_snapshot",
    "decode_snapshot",
    "SnapshotStore",
    "MemoryStore",
    "JsonFileStore",
    "SQLiteStore",
    "create_store",
]
