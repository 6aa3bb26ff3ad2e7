"""
Claim lifecycle manager.

Owns the claim state table and drives each token through
``ACTIVE -> CLAIMED`` or ``ACTIVE -> INVALIDATED``. Both terminal states
remove the record and burn the token, so a consumed id is indistinguishable
from one that never existed.

Claiming destroys the record and the token *before* calling out to the
allowance ledger. A ledger callback that re-enters ``claim`` for the same id
therefore fails with NotFoundError instead of moving funds twice. If the
ledger rejects the transfer, the boundary restores the record and puts the
token back with the same holder at its old enumeration index. A claim that
runs nested inside another operation and commits is final even if the
enclosing operation later fails.
"""

import logging
from typing import Iterable, Optional

from .allocator import IdAllocator, create_allocator
from .binder import PermissionBinder
from .boundary import AtomicBoundary, BoundaryScope
from .config import ClaimServiceConfig, InvalidationPolicy
from .errors import (
    ClaimError,
    ExpiredError,
    NotFoundError,
    NotStartedError,
    OwnershipError,
    TransferExecutionError,
)
from .events import ClaimEventBus
from .ledger.interfaces import AllowanceLedger, OwnershipLedger
from .monitoring.metrics_exporter import MetricsRegistry
from .policy.registry import PolicyRegistry
from .store.base import ClaimStore
from .types import (
    ClaimInvalidated,
    ClaimMinted,
    ClaimRecord,
    FundsTransferred,
    PermissionEntry,
    TimeWindow,
)

logger = logging.getLogger(__name__)


class ClaimLifecycleManager:
    """Mints, claims and invalidates claim tokens."""

    def __init__(
        self,
        store: ClaimStore,
        ownership: OwnershipLedger,
        allowance: AllowanceLedger,
        config: Optional[ClaimServiceConfig] = None,
        events: Optional[ClaimEventBus] = None,
        metrics: Optional[MetricsRegistry] = None,
        allocator: Optional[IdAllocator] = None,
        policies: Optional[PolicyRegistry] = None,
    ):
        self.config = config or ClaimServiceConfig()
        self.store = store
        self.ownership = ownership
        self.allowance = allowance
        self.events = events or ClaimEventBus()
        self.metrics = metrics or MetricsRegistry(enabled=self.config.metrics_enabled)
        self.boundary = AtomicBoundary(on_unwind=self.metrics.observe_rollback)
        self.binder = PermissionBinder(
            store,
            ownership,
            allowance,
            allocator or create_allocator(self.config.id_allocation, store, ownership),
            config=self.config,
            policies=policies,
        )

    async def bind(
        self,
        entries: Iterable[PermissionEntry],
        recipient: str,
        caller: str,
        window: Optional[TimeWindow] = None,
    ) -> int:
        """Bind ``entries`` to a new claim token held by ``recipient``; return its id."""
        try:
            async with self.boundary.scope("bind") as scope:
                record = await self.binder.bind(scope, entries, recipient, caller, window)
                scope.after_commit(self.events.publish, ClaimMinted(record.claim_id, caller, recipient))
        except ClaimError as e:
            self._rejected("bind", e)
            raise
        self.metrics.observe_bound()
        return record.claim_id

    async def claim(self, claim_id: int, caller: str) -> ClaimRecord:
        """
        Execute the claim's transfers to ``caller`` and destroy the token.

        Returns the executed record, with every destination set to caller.

        Raises:
            NotFoundError: no live claim with this id
            OwnershipError: caller does not hold the token
            NotStartedError: the window has not opened yet
            ExpiredError: the window has closed
            TransferExecutionError: the allowance ledger rejected the transfer
        """
        try:
            async with self.boundary.scope("claim") as scope:
                record = await self.check_claimable(claim_id, caller)
                executed = record.payable_to(caller)

                await self._burn(scope, claim_id, caller)
                await self.store.delete(claim_id)
                scope.on_rollback("restore record", self.store.put, record)

                await self._pull(executed)
                scope.after_commit(
                    self.events.publish, FundsTransferred(claim_id, caller, executed.entries)
                )
        except ClaimError as e:
            self._rejected("claim", e)
            raise
        self.metrics.observe_executed()
        logger.info("Claim %s executed by %s", claim_id, caller)
        return executed

    async def invalidate(self, claim_id: int, caller: str) -> None:
        """Destroy a live claim without transferring anything."""
        try:
            async with self.boundary.scope("invalidate") as scope:
                record = await self._load(claim_id)
                holder = await self.ownership.owner_of(claim_id)
                if not self._may_invalidate(caller, holder, record):
                    raise OwnershipError(caller, claim_id)

                await self._burn(scope, claim_id, holder)
                await self.store.delete(claim_id)
                scope.on_rollback("restore record", self.store.put, record)
                scope.after_commit(self.events.publish, ClaimInvalidated(claim_id, caller))
        except ClaimError as e:
            self._rejected("invalidate", e)
            raise
        self.metrics.observe_invalidated()
        logger.info("Claim %s invalidated by %s", claim_id, caller)

    async def check_claimable(self, claim_id: int, caller: str) -> ClaimRecord:
        """Run the claim preconditions in order without side effects."""
        record = await self._load(claim_id)
        holder = await self.ownership.owner_of(claim_id)
        if holder != caller:
            raise OwnershipError(caller, claim_id)
        if record.window is not None:
            now = self.config.clock()
            if record.window.not_started(now):
                raise NotStartedError(claim_id, record.window.start_time, now)
            if record.window.expired(now):
                raise ExpiredError(claim_id, record.window.expiration_time, now)
        return record

    async def record_for(self, claim_id: int) -> ClaimRecord:
        return await self._load(claim_id)

    async def holder_of(self, claim_id: int) -> str:
        await self._load(claim_id)
        return await self.ownership.owner_of(claim_id)

    async def claims_by_debtor(self, debtor: str):
        return await self.store.ids_by_debtor(debtor)

    # Internal helpers -------------------------------------------------------------

    async def _load(self, claim_id: int) -> ClaimRecord:
        record = await self.store.get(claim_id)
        if record is None:
            raise NotFoundError(claim_id)
        return record

    async def _burn(self, scope: BoundaryScope, claim_id: int, holder: str) -> None:
        index = await self.ownership.burn(claim_id)
        scope.on_rollback("restore token", self.ownership.restore, holder, claim_id, index)

    def _may_invalidate(self, caller: str, holder: str, record: ClaimRecord) -> bool:
        if caller == holder:
            return True
        return (
            self.config.invalidation_policy == InvalidationPolicy.HOLDER_OR_DEBTOR
            and caller == record.debtor
        )

    async def _pull(self, executed: ClaimRecord) -> None:
        try:
            result = await self.allowance.pull_transfer(self.config.spender, list(executed.entries))
        except Exception as e:
            raise TransferExecutionError(executed.claim_id, f"{type(e).__name__}: {e}") from e
        if not result.success:
            raise TransferExecutionError(executed.claim_id, result.reason)

    def _rejected(self, operation: str, error: ClaimError) -> None:
        self.metrics.observe_failure(operation, error.code)
        logger.warning("%s rejected: %s", operation, error)


__all__ = ["ClaimLifecycleManager"]
