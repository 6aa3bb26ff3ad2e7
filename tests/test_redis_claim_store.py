import os

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from gclaim import PermissionEntry, TimeWindow
from gclaim.store import RedisClaimStore
from gclaim.types import ClaimRecord

pytestmark = pytest.mark.asyncio

REDIS_URL = os.getenv("REDIS_TEST_URL", "redis://localhost:6379/0")


async def test_redis_claim_store_crud():
    store = RedisClaimStore(url=REDIS_URL, prefix="gclaim-test")
    record = ClaimRecord(
        claim_id=0,
        entries=(PermissionEntry("d", "assetA", 5),),
        window=TimeWindow(1, 2),
    )
    try:
        await store.clear()
        assert await store.next_id() == 0
        assert await store.next_id() == 1

        await store.put(record)
        assert await store.get(0) == record
        assert await store.exists(0)
        assert await store.ids_by_debtor("d") == [0]
        assert await store.count() == 1

        assert await store.delete(0) is True
        assert await store.delete(0) is False
        assert await store.get(0) is None
        assert await store.ids_by_debtor("d") == []
        assert await store.next_id() == 2
    except RedisConnectionError:
        pytest.skip("Redis server not reachable")
    finally:
        try:
            await store.clear()
        except RedisConnectionError:
            pass
        await store.close()
