"""
The store module provides the resource store client used by the controller to
read InferenceService objects and write their status.

- Uses NamedResource as the key for all objects.
- Stores values as dataclass instances from manifest.py for type safety.
- Hands out independent copies so callers can mutate what they fetched
  without affecting stored state until they write it back.
- Assigns a resource version on every write and rejects status writes based on
  a stale version.

This abstract interface allows for various implementations (in-memory, a real
API server client, etc.).
"""

from .store import Store, StoreEvent, SUPPORTS_STATUS
from .in_memory import InMemoryStore

__all__ = [
    "Store",
    "StoreEvent",
    "SUPPORTS_STATUS",
    "InMemoryStore",
]
