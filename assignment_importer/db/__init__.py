"""Identity / row store implementations."""

from .memory_store import InMemoryStore
from .store import AssignmentStore, StoreError

__all__ = [
    "AssignmentStore",
    "InMemoryStore",
    "StoreError",
]
