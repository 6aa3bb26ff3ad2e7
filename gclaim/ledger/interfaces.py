"""Narrow interfaces to the two external ledgers a claim service consumes.

The ownership ledger tracks which principal holds which claim token. The
allowance ledger holds delegated allowances and executes pull-transfers.
Neither is owned by this package; the lifecycle manager holds a reference to
one of each.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..types import AllowanceGrant, AllowanceInfo, PermissionEntry, TransferResult


class OwnershipLedger(Protocol):
    """Token ownership registry."""

    async def mint(self, owner: str, claim_id: int) -> None:
        ...  # pragma: no cover - interface placeholder

    async def burn(self, claim_id: int) -> int:
        """Remove a live token; return the enumeration index it occupied."""
        ...  # pragma: no cover - interface placeholder

    async def restore(self, owner: str, claim_id: int, index: int) -> None:
        """Reverse a burn, leaving enumeration order as it was before it."""
        ...  # pragma: no cover - interface placeholder

    async def owner_of(self, claim_id: int) -> str:
        """Return the current holder; raise NotFoundError if not live."""
        ...  # pragma: no cover - interface placeholder

    async def is_live(self, claim_id: int) -> bool:
        ...  # pragma: no cover - interface placeholder

    async def next_candidate_id(self) -> int:
        """0 when no token is live, else highest-indexed live id + 1."""
        ...  # pragma: no cover - interface placeholder


class AllowanceLedger(Protocol):
    """Delegated allowance ledger."""

    async def register_allowance(
        self,
        owner: str,
        grants: Sequence[AllowanceGrant],
        spender: str,
        signature: Optional[str] = None,
    ) -> None:
        ...  # pragma: no cover - interface placeholder

    async def query_allowance(self, owner: str, asset: str, spender: str) -> AllowanceInfo:
        ...  # pragma: no cover - interface placeholder

    async def pull_transfer(self, spender: str, batch: Sequence[PermissionEntry]) -> TransferResult:
        """Move every leg or none of them."""
        ...  # pragma: no cover - interface placeholder


__all__ = ["OwnershipLedger", "AllowanceLedger"]
