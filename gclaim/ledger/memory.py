"""
In-process ledger implementations.

Suitable for tests, demos or single-process deployments. For distributed use,
plug in adapters to the real ownership registry and allowance ledger.
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from ..errors import NotFoundError
from ..types import AllowanceGrant, AllowanceInfo, PermissionEntry, TransferResult
from .permit import verify_permit

logger = logging.getLogger(__name__)

TransferHook = Callable[[PermissionEntry], Union[None, Awaitable[None]]]


class InMemoryOwnershipLedger:
    """Enumerable token ownership registry.

    Live ids are kept in an index list with swap-and-pop removal, so
    ``token_by_index(total_supply() - 1)`` is not necessarily the largest id.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._owners: Dict[int, str] = {}
        self._all_tokens: List[int] = []
        self._index: Dict[int, int] = {}

    async def mint(self, owner: str, claim_id: int) -> None:
        with self._lock:
            if claim_id in self._owners:
                raise ValueError(f"token {claim_id} already minted")
            self._owners[claim_id] = owner
            self._index[claim_id] = len(self._all_tokens)
            self._all_tokens.append(claim_id)
        logger.debug("Minted token %s to %s", claim_id, owner)

    async def burn(self, claim_id: int) -> int:
        """Remove a token; return the enumeration index it occupied."""
        with self._lock:
            if claim_id not in self._owners:
                raise NotFoundError(claim_id)
            del self._owners[claim_id]
            idx = self._index.pop(claim_id)
            last = self._all_tokens.pop()
            if last != claim_id:
                self._all_tokens[idx] = last
                self._index[last] = idx
        logger.debug("Burned token %s", claim_id)
        return idx

    async def restore(self, owner: str, claim_id: int, index: int) -> None:
        """Undo ``burn``: put the token back at ``index`` and move the
        displaced token back to the end of the enumeration."""
        with self._lock:
            if claim_id in self._owners:
                raise ValueError(f"token {claim_id} already minted")
            self._owners[claim_id] = owner
            if index >= len(self._all_tokens):
                self._index[claim_id] = len(self._all_tokens)
                self._all_tokens.append(claim_id)
            else:
                displaced = self._all_tokens[index]
                self._all_tokens[index] = claim_id
                self._index[claim_id] = index
                self._index[displaced] = len(self._all_tokens)
                self._all_tokens.append(displaced)
        logger.debug("Restored token %s to %s at index %s", claim_id, owner, index)

    async def transfer(self, claim_id: int, sender: str, recipient: str) -> None:
        """Hand a token to a new holder (resale, gift)."""
        with self._lock:
            owner = self._owners.get(claim_id)
            if owner is None:
                raise NotFoundError(claim_id)
            if owner != sender:
                raise PermissionError(f"'{sender}' does not hold token {claim_id}")
            self._owners[claim_id] = recipient
        logger.debug("Transferred token %s from %s to %s", claim_id, sender, recipient)

    async def owner_of(self, claim_id: int) -> str:
        owner = self._owners.get(claim_id)
        if owner is None:
            raise NotFoundError(claim_id)
        return owner

    async def is_live(self, claim_id: int) -> bool:
        return claim_id in self._owners

    async def total_supply(self) -> int:
        return len(self._all_tokens)

    async def token_by_index(self, index: int) -> int:
        if not 0 <= index < len(self._all_tokens):
            raise IndexError(f"token index {index} out of range")
        return self._all_tokens[index]

    async def tokens_of(self, owner: str) -> List[int]:
        return sorted(cid for cid, o in self._owners.items() if o == owner)

    async def next_candidate_id(self) -> int:
        with self._lock:
            if not self._all_tokens:
                return 0
            return self._all_tokens[-1] + 1


class InMemoryAllowanceLedger:
    """Permit-style allowance ledger holding balances and delegated allowances.

    Allowances are keyed by (owner, asset, spender) and carry an amount, an
    expiration (Unix seconds, inclusive) and a nonce that must match on the
    next registration. ``pull_transfer`` checks every leg before moving any.
    """

    def __init__(self, clock: Callable[[], float] = time.time, require_signatures: bool = False):
        self._lock = threading.Lock()
        self._clock = clock
        self._require_signatures = require_signatures
        self._balances: Dict[Tuple[str, str], int] = {}
        self._allowances: Dict[Tuple[str, str, str], AllowanceInfo] = {}
        self._keys: Dict[str, Ed25519PublicKey] = {}
        self.hooks: Dict[str, TransferHook] = {}
        self.transfers: List[PermissionEntry] = []

    # Account setup ---------------------------------------------------------------

    def register_key(self, owner: str, public_key: Ed25519PublicKey) -> None:
        self._keys[owner] = public_key

    def deposit(self, account: str, asset: str, amount: int) -> None:
        with self._lock:
            key = (account, asset)
            self._balances[key] = self._balances.get(key, 0) + amount

    def balance_of(self, account: str, asset: str) -> int:
        return self._balances.get((account, asset), 0)

    # AllowanceLedger -------------------------------------------------------------

    async def register_allowance(
        self,
        owner: str,
        grants: Sequence[AllowanceGrant],
        spender: str,
        signature: Optional[str] = None,
    ) -> None:
        public_key = self._keys.get(owner)
        if public_key is not None:
            if not signature:
                raise ValueError(f"permit from '{owner}' is unsigned")
            verify_permit(owner, grants, spender, signature, public_key)
        elif self._require_signatures:
            raise ValueError(f"no verification key registered for '{owner}'")

        with self._lock:
            for grant in grants:
                current = self._allowances.get((owner, grant.asset, spender), AllowanceInfo())
                if grant.nonce != current.nonce:
                    raise ValueError(
                        f"invalid nonce {grant.nonce} for {owner}/{grant.asset} (expected {current.nonce})"
                    )
            for grant in grants:
                key = (owner, grant.asset, spender)
                current = self._allowances.get(key, AllowanceInfo())
                self._allowances[key] = AllowanceInfo(
                    amount=grant.amount,
                    expiration=grant.expiration,
                    nonce=current.nonce + 1,
                )
        logger.debug("Registered %d allowance grant(s) from %s to %s", len(grants), owner, spender)

    async def query_allowance(self, owner: str, asset: str, spender: str) -> AllowanceInfo:
        return self._allowances.get((owner, asset, spender), AllowanceInfo())

    async def pull_transfer(self, spender: str, batch: Sequence[PermissionEntry]) -> TransferResult:
        reason = self._check_batch(spender, batch)
        if reason:
            logger.debug("Rejected pull-transfer for %s: %s", spender, reason)
            return TransferResult.failed(reason)

        applied: List[PermissionEntry] = []
        for entry in batch:
            self._move(spender, entry, sign=1)
            applied.append(entry)
            hook = self.hooks.get(entry.asset)
            if hook is None:
                continue
            try:
                outcome = hook(entry)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                for done in reversed(applied):
                    self._move(spender, done, sign=-1)
                logger.debug("Transfer hook for %s failed: %s", entry.asset, e)
                return TransferResult.failed(f"hook for {entry.asset} failed: {e}")

        self.transfers.extend(applied)
        return TransferResult.ok()

    # Internal helpers -------------------------------------------------------------

    def _check_batch(self, spender: str, batch: Sequence[PermissionEntry]) -> str:
        now = self._clock()
        needed_allowance: Dict[Tuple[str, str], int] = {}
        needed_balance: Dict[Tuple[str, str], int] = {}
        for entry in batch:
            if not entry.destination_account:
                return f"missing destination for {entry.asset}"
            key = (entry.source_account, entry.asset)
            needed_allowance[key] = needed_allowance.get(key, 0) + entry.amount
            needed_balance[key] = needed_balance.get(key, 0) + entry.amount

        for (owner, asset), amount in needed_allowance.items():
            info = self._allowances.get((owner, asset, spender))
            if info is None or info.amount == 0:
                return f"no allowance for {owner}/{asset}"
            if now > info.expiration:
                return f"allowance for {owner}/{asset} expired"
            if info.amount < amount:
                return f"insufficient allowance for {owner}/{asset}"
        for (owner, asset), amount in needed_balance.items():
            if self.balance_of(owner, asset) < amount:
                return f"insufficient balance for {owner}/{asset}"
        return ""

    def _move(self, spender: str, entry: PermissionEntry, sign: int) -> None:
        delta = entry.amount * sign
        with self._lock:
            src = (entry.source_account, entry.asset)
            dst = (entry.destination_account, entry.asset)
            self._balances[src] = self._balances.get(src, 0) - delta
            self._balances[dst] = self._balances.get(dst, 0) + delta
            akey = (entry.source_account, entry.asset, spender)
            info = self._allowances[akey]
            self._allowances[akey] = AllowanceInfo(
                amount=info.amount - delta,
                expiration=info.expiration,
                nonce=info.nonce,
            )


__all__ = ["InMemoryOwnershipLedger", "InMemoryAllowanceLedger", "TransferHook"]
