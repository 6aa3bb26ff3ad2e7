"""Read-only views over claim records and the allowance ledger."""

from typing import List

from .config import ClaimServiceConfig
from .errors import ClaimError
from .ledger.interfaces import AllowanceLedger
from .lifecycle import ClaimLifecycleManager
from .types import AllowanceInfo, ClaimRecord, ClaimState


class AllowanceQueryFacade:
    """Inspection helpers. None of these mutate state or take the boundary lock."""

    def __init__(self, manager: ClaimLifecycleManager, allowance: AllowanceLedger, config: ClaimServiceConfig):
        self.manager = manager
        self.allowance = allowance
        self.config = config

    async def record_for(self, claim_id: int) -> ClaimRecord:
        """Batch entries and window of a live claim; NotFoundError if absent."""
        return await self.manager.record_for(claim_id)

    async def outstanding_allowance(self, account: str, asset: str) -> int:
        """Amount ``account`` has delegated to this service for ``asset``."""
        info = await self.allowance_info(account, asset)
        return info.amount

    async def allowance_info(self, account: str, asset: str) -> AllowanceInfo:
        return await self.allowance.query_allowance(account, asset, self.config.spender)

    async def holder_of(self, claim_id: int) -> str:
        return await self.manager.holder_of(claim_id)

    async def claim_state(self, claim_id: int) -> ClaimState:
        await self.manager.record_for(claim_id)
        return ClaimState.ACTIVE

    async def claims_by_debtor(self, debtor: str) -> List[int]:
        return await self.manager.claims_by_debtor(debtor)

    async def is_claimable(self, claim_id: int, caller: str) -> bool:
        try:
            await self.manager.check_claimable(claim_id, caller)
        except ClaimError:
            return False
        return True


__all__ = ["AllowanceQueryFacade"]
