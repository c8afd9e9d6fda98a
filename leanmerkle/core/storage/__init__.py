"""
Persistent Storage Module.

Provides key-value stores for the tree codec:
- SQLite-backed store for nodes and the CLI
- In-memory store for tests and embedding
"""

from leanmerkle.core.storage.sqlite_adapter import SQLiteStore
from leanmerkle.core.storage.memory import MemoryStore
from leanmerkle.core.storage.storage_manager import TreeStorageManager

__all__ = ["SQLiteStore", "MemoryStore", "TreeStorageManager"]
