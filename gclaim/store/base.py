"""
Claim record storage interface.

The store is the lifecycle manager's private state table: one record per
live claim token plus a strictly monotonic id counter.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..types import ClaimRecord


class ClaimStoreError(Exception):
    """Raised when the backing store cannot be read or written."""


class ClaimStore(ABC):
    """Abstract base class for claim record storage."""

    @abstractmethod
    async def put(self, record: ClaimRecord) -> None:
        """Store a record, replacing any record with the same id."""

    @abstractmethod
    async def get(self, claim_id: int) -> Optional[ClaimRecord]:
        """Return the live record or None."""

    @abstractmethod
    async def delete(self, claim_id: int) -> bool:
        """Remove a record; True if it existed."""

    @abstractmethod
    async def next_id(self) -> int:
        """Reserve the next id. Ids start at 0 and are never handed out twice."""

    @abstractmethod
    async def ids_by_debtor(self, debtor: str) -> List[int]:
        """Ids of live records authorized by ``debtor``, ascending."""

    @abstractmethod
    async def count(self) -> int:
        """Number of live records."""

    async def exists(self, claim_id: int) -> bool:
        return await self.get(claim_id) is not None

    async def close(self) -> None:
        """Release connections held by the store."""


__all__ = ["ClaimStore", "ClaimStoreError"]
