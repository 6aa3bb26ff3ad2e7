"""In-memory claim record store."""

import logging
import threading
from typing import Dict, List, Optional

from ..types import ClaimRecord
from .base import ClaimStore

logger = logging.getLogger(__name__)


class MemoryClaimStore(ClaimStore):
    """Dict-backed store for tests and single-process deployments."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[int, ClaimRecord] = {}
        self._counter = 0

    async def put(self, record: ClaimRecord) -> None:
        with self._lock:
            self._records[record.claim_id] = record
        logger.debug("Stored claim %s", record.claim_id)

    async def get(self, claim_id: int) -> Optional[ClaimRecord]:
        return self._records.get(claim_id)

    async def delete(self, claim_id: int) -> bool:
        with self._lock:
            return self._records.pop(claim_id, None) is not None

    async def next_id(self) -> int:
        with self._lock:
            claim_id = self._counter
            self._counter += 1
            return claim_id

    async def ids_by_debtor(self, debtor: str) -> List[int]:
        return sorted(cid for cid, r in self._records.items() if r.debtor == debtor)

    async def count(self) -> int:
        return len(self._records)


def create_memory_store() -> MemoryClaimStore:
    return MemoryClaimStore()


__all__ = ["MemoryClaimStore", "create_memory_store"]
