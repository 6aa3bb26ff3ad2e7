"""
Claim store package.

Persistence for live claim records: an in-memory implementation and a
Redis-backed one sharing the ClaimStore interface.
"""

from .base import ClaimStore, ClaimStoreError
from .memory import MemoryClaimStore, create_memory_store
from .redis import RedisClaimStore

__all__ = [
    "ClaimStore",
    "ClaimStoreError",
    "MemoryClaimStore",
    "create_memory_store",
    "RedisClaimStore",
]
