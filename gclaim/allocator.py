"""Claim id allocation.

Two schemes are available:

- MonotonicIdAllocator reserves ids from the claim store's counter. Ids are
  never reused, even after every live token is burned.
- EnumerationIdAllocator reproduces the legacy numbering: 0 when no token is
  live, otherwise the id at the ownership ledger's last enumeration index + 1.
  After the highest live token is burned the next id can repeat an id that
  was already consumed, so a stale claim reference may then point at a
  different batch. Use it only where legacy numbering must be matched.
"""

import logging
from typing import Protocol

from .config import IdAllocation
from .errors import IdCollisionError
from .ledger.interfaces import OwnershipLedger
from .store.base import ClaimStore

logger = logging.getLogger(__name__)


class IdAllocator(Protocol):
    async def allocate(self) -> int:
        ...  # pragma: no cover - interface placeholder


class MonotonicIdAllocator:
    def __init__(self, store: ClaimStore):
        self.store = store

    async def allocate(self) -> int:
        return await self.store.next_id()


class EnumerationIdAllocator:
    def __init__(self, ownership: OwnershipLedger):
        self.ownership = ownership

    async def allocate(self) -> int:
        claim_id = await self.ownership.next_candidate_id()
        if await self.ownership.is_live(claim_id):
            # Swap-and-pop enumeration can leave a larger id below the last index.
            raise IdCollisionError(claim_id)
        return claim_id


def create_allocator(scheme: IdAllocation, store: ClaimStore, ownership: OwnershipLedger) -> IdAllocator:
    if scheme == IdAllocation.ENUMERATION:
        logger.warning("Using enumeration id allocation; consumed ids may be reassigned")
        return EnumerationIdAllocator(ownership)
    return MonotonicIdAllocator(store)


__all__ = [
    "IdAllocator",
    "MonotonicIdAllocator",
    "EnumerationIdAllocator",
    "create_allocator",
]
