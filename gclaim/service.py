"""
Claim token service.

This module wires the claim store, the external ledgers, the lifecycle
manager and the query facade into one object exposing the public operations.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .config import ClaimServiceConfig
from .errors import ClaimError
from .events import ClaimEventBus, Subscriber
from .ledger.interfaces import AllowanceLedger, OwnershipLedger
from .lifecycle import ClaimLifecycleManager
from .monitoring.metrics_exporter import MetricsRegistry
from .policy.registry import PolicyRegistry
from .query import AllowanceQueryFacade
from .store.base import ClaimStore
from .store.memory import MemoryClaimStore
from .store.redis import RedisClaimStore
from .types import AllowanceInfo, ClaimRecord, ClaimState, PermissionEntry, TimeWindow

logger = logging.getLogger(__name__)


@dataclass
class ServiceStatus:
    """Service status information."""
    running: bool = False
    start_time: Optional[datetime] = None
    total_requests: int = 0
    error_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "total_requests": self.total_requests,
            "error_count": self.error_count,
        }


class ClaimService:
    """
    Public entry point for claim tokens.

    Every mutating call takes an explicit, already authenticated ``caller``.
    """

    def __init__(
        self,
        config: ClaimServiceConfig,
        ownership: OwnershipLedger,
        allowance: AllowanceLedger,
        store: Optional[ClaimStore] = None,
        events: Optional[ClaimEventBus] = None,
        metrics: Optional[MetricsRegistry] = None,
        policies: Optional[PolicyRegistry] = None,
    ):
        self.config = config
        self.store = store or MemoryClaimStore()
        self.ownership = ownership
        self.allowance = allowance
        self.events = events or ClaimEventBus()
        self.metrics = metrics or MetricsRegistry(enabled=config.metrics_enabled)
        self.status = ServiceStatus()

        self.manager = ClaimLifecycleManager(
            self.store,
            ownership,
            allowance,
            config=config,
            events=self.events,
            metrics=self.metrics,
            policies=policies,
        )
        self.queries = AllowanceQueryFacade(self.manager, allowance, config)

        logger.info(
            "Claim service initialized (store=%s, invalidation=%s, ids=%s)",
            type(self.store).__name__,
            config.invalidation_policy.value,
            config.id_allocation.value,
        )

    async def start(self) -> None:
        self.status.running = True
        self.status.start_time = datetime.now()
        logger.info("Claim service started")

    async def stop(self) -> None:
        self.status.running = False
        await self.store.close()
        logger.info("Claim service stopped")

    # Mutating operations -----------------------------------------------------------

    async def bind(
        self,
        entries: Iterable[PermissionEntry],
        recipient: str,
        caller: str,
        window: Optional[TimeWindow] = None,
    ) -> int:
        self.status.total_requests += 1
        try:
            return await self.manager.bind(entries, recipient, caller, window)
        except ClaimError:
            self.status.error_count += 1
            raise

    async def claim(self, claim_id: int, caller: str) -> ClaimRecord:
        self.status.total_requests += 1
        try:
            return await self.manager.claim(claim_id, caller)
        except ClaimError:
            self.status.error_count += 1
            raise

    async def invalidate(self, claim_id: int, caller: str) -> None:
        self.status.total_requests += 1
        try:
            await self.manager.invalidate(claim_id, caller)
        except ClaimError:
            self.status.error_count += 1
            raise

    # Queries ---------------------------------------------------------------------

    async def record_for(self, claim_id: int) -> ClaimRecord:
        return await self.queries.record_for(claim_id)

    async def outstanding_allowance(self, account: str, asset: str) -> int:
        return await self.queries.outstanding_allowance(account, asset)

    async def allowance_info(self, account: str, asset: str) -> AllowanceInfo:
        return await self.queries.allowance_info(account, asset)

    async def holder_of(self, claim_id: int) -> str:
        return await self.queries.holder_of(claim_id)

    async def claim_state(self, claim_id: int) -> ClaimState:
        return await self.queries.claim_state(claim_id)

    async def claims_by_debtor(self, debtor: str) -> List[int]:
        return await self.queries.claims_by_debtor(debtor)

    async def is_claimable(self, claim_id: int, caller: str) -> bool:
        return await self.queries.is_claimable(claim_id, caller)

    def subscribe(self, callback: Subscriber):
        return self.events.subscribe(callback)

    # Service management ------------------------------------------------------------

    def get_service_status(self) -> Dict[str, Any]:
        return self.status.to_dict()

    async def health_check(self) -> Dict[str, Any]:
        health = {
            "status": "healthy" if self.status.running else "unhealthy",
            "timestamp": datetime.now().isoformat(),
            "uptime_seconds": 0,
            "live_claims": await self.store.count(),
            "rollbacks": self.manager.boundary.rollbacks,
            "components": {
                "store": type(self.store).__name__,
                "metrics": "enabled" if self.metrics.enabled else "disabled",
            },
        }
        if self.status.start_time:
            uptime = datetime.now() - self.status.start_time
            health["uptime_seconds"] = int(uptime.total_seconds())
        return health


def create_service(
    config: ClaimServiceConfig,
    ownership: OwnershipLedger,
    allowance: AllowanceLedger,
    store: Optional[ClaimStore] = None,
    **kwargs,
) -> ClaimService:
    """
    Factory function to create a claim service.

    Uses a RedisClaimStore when ``config.redis_url`` is set and no store is
    passed, otherwise an in-memory store.
    """
    if store is None and config.redis_url:
        store = RedisClaimStore(url=config.redis_url, prefix=config.redis_prefix)
    return ClaimService(config, ownership, allowance, store=store, **kwargs)


__all__ = ["ClaimService", "ServiceStatus", "create_service"]
