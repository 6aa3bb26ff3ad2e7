"""
Permission binder.

Validates a submitted transfer batch, checks that the caller is the source of
every leg, and binds an immutable copy of it to a freshly minted claim token.
"""

import logging
from typing import Dict, Iterable, Optional

from .allocator import IdAllocator
from .boundary import BoundaryScope
from .config import ClaimServiceConfig
from .errors import AuthorizationError, ValidationError
from .ledger.interfaces import AllowanceLedger, OwnershipLedger
from .policy.registry import PolicyContext, PolicyRegistry, default_registry
from .store.base import ClaimStore
from .types import ClaimRecord, PermissionEntry, TimeWindow, freeze_entries

logger = logging.getLogger(__name__)


class PermissionBinder:
    def __init__(
        self,
        store: ClaimStore,
        ownership: OwnershipLedger,
        allowance: AllowanceLedger,
        allocator: IdAllocator,
        config: Optional[ClaimServiceConfig] = None,
        policies: Optional[PolicyRegistry] = None,
    ):
        self.store = store
        self.ownership = ownership
        self.allowance = allowance
        self.allocator = allocator
        self.config = config or ClaimServiceConfig()
        self.policies = policies or default_registry(
            max_entries=self.config.max_entries,
            allow_duplicate_assets=self.config.allow_duplicate_assets,
        )

    async def bind(
        self,
        scope: BoundaryScope,
        entries: Iterable[PermissionEntry],
        recipient: str,
        caller: str,
        window: Optional[TimeWindow] = None,
    ) -> ClaimRecord:
        """
        Bind a batch to a new claim token minted to ``recipient``.

        Must run inside a boundary scope: the stored record and the minted
        token are registered for rollback so neither outlives a failed call.

        Raises:
            ValidationError: empty or malformed batch, or insufficient allowance
            AuthorizationError: a leg is sourced from an account other than caller
        """
        frozen = freeze_entries(entries)
        self.policies.enforce(PolicyContext(entries=frozen, caller=caller, recipient=recipient, window=window))

        for entry in frozen:
            if entry.source_account != caller:
                raise AuthorizationError(entry.source_account, caller)

        if self.config.verify_allowance_on_bind:
            await self._check_allowance(caller, frozen)

        claim_id = await self.allocator.allocate()
        record = ClaimRecord(claim_id=claim_id, entries=frozen, window=window)

        # Record first: a live token must always have a backing record.
        await self.store.put(record)
        scope.on_rollback("delete record", self.store.delete, claim_id)
        await self.ownership.mint(recipient, claim_id)
        scope.on_rollback("burn token", self.ownership.burn, claim_id)

        logger.info("Bound claim %s (%d entries) from %s to %s", claim_id, len(frozen), caller, recipient)
        return record

    async def _check_allowance(self, debtor: str, entries) -> None:
        needed: Dict[str, int] = {}
        for entry in entries:
            needed[entry.asset] = needed.get(entry.asset, 0) + entry.amount
        for asset, amount in needed.items():
            info = await self.allowance.query_allowance(debtor, asset, self.config.spender)
            if info.amount < amount:
                raise ValidationError(
                    f"allowance for {asset} is {info.amount}, batch needs {amount}",
                    asset=asset,
                    allowance=info.amount,
                    required=amount,
                )


__all__ = ["PermissionBinder"]
