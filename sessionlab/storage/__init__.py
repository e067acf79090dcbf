"""Key-value persistence backends."""

from .base import InMemoryKeyValueStore, KeyValueStore
from .sqlite import SQLiteKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SQLiteKeyValueStore",
]
