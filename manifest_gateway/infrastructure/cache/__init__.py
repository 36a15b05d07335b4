from .edge_cache import EdgeResponseCache
from .entry_cache import EntryCache
from .memory_backend import MemoryBackend
from .redis_backend import RedisBackend
from .store import KeyValueStore

__all__ = [
    "EdgeResponseCache",
    "EntryCache",
    "KeyValueStore",
    "MemoryBackend",
    "RedisBackend",
]
