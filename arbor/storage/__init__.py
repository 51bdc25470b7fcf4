"""
Storage Module - Best-Effort Persistence

Responsible for:
1. Key-value stores (SQLite file or in-memory)
2. Saving and restoring the last session and saved snippets
"""

from arbor.storage.kv_store import InMemoryKVStore, KVStore, SQLiteKVStore
from arbor.storage.session_store import SessionStore

__all__ = [
    # KV stores
    "SQLiteKVStore",
    "InMemoryKVStore",
    "KVStore",
    # Sessions
    "SessionStore",
]
