"""Redis-backed claim record store.

Layout (all keys under ``prefix``):
- ``{prefix}:claim:{id}``: JSON blob of the ClaimRecord
- ``{prefix}:next_id``: INCR counter; the reserved id is the counter value - 1
- ``{prefix}:debtor:{debtor}``: set of live ids authorized by that debtor
- ``{prefix}:all``: set of all live ids (used for counting without SCAN)

Multi-key writes go through a transactional pipeline so a record and its
index entries appear and disappear together.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

import redis.asyncio as redis

from ..types import ClaimRecord
from .base import ClaimStore, ClaimStoreError

logger = logging.getLogger(__name__)


class RedisClaimStore(ClaimStore):
    def __init__(self, url: str = "redis://localhost:6379/0", prefix: str = "gclaim", client=None):
        self.url = url
        self.prefix = prefix.rstrip(":")
        self._client = client

    async def _get_client(self):
        if self._client is None:
            self._client = redis.from_url(self.url, decode_responses=True)
        return self._client

    # Key helpers
    def _claim_key(self, claim_id: int) -> str:
        return f"{self.prefix}:claim:{claim_id}"

    def _debtor_key(self, debtor: str) -> str:
        return f"{self.prefix}:debtor:{debtor}"

    def _counter_key(self) -> str:
        return f"{self.prefix}:next_id"

    def _all_key(self) -> str:
        return f"{self.prefix}:all"

    async def put(self, record: ClaimRecord) -> None:
        client = await self._get_client()
        pipe = client.pipeline(transaction=True)
        pipe.set(self._claim_key(record.claim_id), json.dumps(record.to_dict()))
        pipe.sadd(self._debtor_key(record.debtor), record.claim_id)
        pipe.sadd(self._all_key(), record.claim_id)
        await pipe.execute()
        logger.debug("Stored claim %s", record.claim_id)

    async def get(self, claim_id: int) -> Optional[ClaimRecord]:
        client = await self._get_client()
        raw = await client.get(self._claim_key(claim_id))
        if not raw:
            return None
        try:
            return ClaimRecord.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Decode failure for claim %s: %s", claim_id, e)
            raise ClaimStoreError(f"corrupt record for claim {claim_id}") from e

    async def delete(self, claim_id: int) -> bool:
        client = await self._get_client()
        record = await self.get(claim_id)
        if record is None:
            return False
        pipe = client.pipeline(transaction=True)
        pipe.delete(self._claim_key(claim_id))
        pipe.srem(self._debtor_key(record.debtor), claim_id)
        pipe.srem(self._all_key(), claim_id)
        removed, _, _ = await pipe.execute()
        return removed == 1

    async def exists(self, claim_id: int) -> bool:
        client = await self._get_client()
        return await client.exists(self._claim_key(claim_id)) == 1

    async def next_id(self) -> int:
        client = await self._get_client()
        value = await client.incr(self._counter_key())
        return int(value) - 1

    async def ids_by_debtor(self, debtor: str) -> List[int]:
        client = await self._get_client()
        members = await client.smembers(self._debtor_key(debtor))
        return sorted(int(m) for m in members)

    async def count(self) -> int:
        client = await self._get_client()
        return await client.scard(self._all_key())

    async def clear(self) -> int:
        """Delete every key under the prefix. Test utility."""
        client = await self._get_client()
        deleted = 0
        cursor = 0
        while True:
            cursor, keys = await client.scan(cursor=cursor, match=f"{self.prefix}:*", count=500)
            if keys:
                deleted += await client.delete(*keys)
            if cursor == 0:
                break
        return deleted

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["RedisClaimStore"]
