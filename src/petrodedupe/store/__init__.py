"""Record store clients.

- RecordStore: protocol the engine depends on
- PostgrestRecordStore: hosted Supabase REST API
- InMemoryRecordStore: dict-backed store with JSONL snapshots
"""

from petrodedupe.store.base import RecordStore, StoreError, supports_bulk_delete
from petrodedupe.store.memory import InMemoryRecordStore
from petrodedupe.store.postgrest import PostgrestRecordStore

__all__ = [
    "RecordStore",
    "StoreError",
    "supports_bulk_delete",
    "InMemoryRecordStore",
    "PostgrestRecordStore",
]
