"""
Core data types for claim tokens.

A claim token carries the right to pull a fixed batch of transfers from one
debtor to whoever holds the token. The types here describe that batch
(PermissionEntry), its optional validity interval (TimeWindow) and the record
bound to a live token (ClaimRecord).
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import ValidationError

# Placeholder destination used at authorization time; overwritten on claim.
UNSET_DESTINATION = ""


class ClaimState(Enum):
    """Lifecycle state of a claim token."""
    ACTIVE = "active"
    CLAIMED = "claimed"
    INVALIDATED = "invalidated"


@dataclass(frozen=True)
class PermissionEntry:
    """One leg of a transfer batch."""
    source_account: str
    asset: str
    amount: int
    destination_account: str = UNSET_DESTINATION

    def with_destination(self, account: str) -> "PermissionEntry":
        return replace(self, destination_account=account)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_account": self.source_account,
            "destination_account": self.destination_account,
            "asset": self.asset,
            "amount": self.amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PermissionEntry":
        return cls(
            source_account=data["source_account"],
            destination_account=data.get("destination_account", UNSET_DESTINATION),
            asset=data["asset"],
            amount=int(data["amount"]),
        )


@dataclass(frozen=True)
class TimeWindow:
    """Validity interval in Unix seconds, both bounds inclusive.

    Checks take the unrounded clock value, so a window expiring at T rejects
    T + 0.5.
    """
    start_time: int
    expiration_time: int

    def __post_init__(self):
        if self.start_time > self.expiration_time:
            raise ValidationError(
                "start_time must not be after expiration_time",
                start_time=self.start_time,
                expiration_time=self.expiration_time,
            )

    def not_started(self, now: float) -> bool:
        return now < self.start_time

    def expired(self, now: float) -> bool:
        return now > self.expiration_time

    def contains(self, now: float) -> bool:
        return self.start_time <= now <= self.expiration_time

    def to_dict(self) -> Dict[str, int]:
        return {"start_time": self.start_time, "expiration_time": self.expiration_time}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeWindow":
        return cls(start_time=int(data["start_time"]), expiration_time=int(data["expiration_time"]))


@dataclass(frozen=True)
class ClaimRecord:
    """Permission batch bound to a live claim token.

    The record never stores the current holder; ownership is always read
    from the ownership ledger.
    """
    claim_id: int
    entries: Tuple[PermissionEntry, ...]
    window: Optional[TimeWindow] = None

    @property
    def debtor(self) -> str:
        """Account that authorized the batch (all entries share it)."""
        return self.entries[0].source_account

    def payable_to(self, account: str) -> "ClaimRecord":
        """Copy of this record with every destination rewritten to ``account``."""
        return replace(self, entries=tuple(e.with_destination(account) for e in self.entries))

    def totals_by_asset(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for entry in self.entries:
            totals[entry.asset] = totals.get(entry.asset, 0) + entry.amount
        return totals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "entries": [e.to_dict() for e in self.entries],
            "window": self.window.to_dict() if self.window else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClaimRecord":
        window = data.get("window")
        return cls(
            claim_id=int(data["claim_id"]),
            entries=tuple(PermissionEntry.from_dict(e) for e in data["entries"]),
            window=TimeWindow.from_dict(window) if window else None,
        )


def freeze_entries(entries: Iterable[PermissionEntry]) -> Tuple[PermissionEntry, ...]:
    """Immutable copy of a submitted batch."""
    return tuple(entries)


@dataclass(frozen=True)
class TransferResult:
    """Outcome reported by the allowance ledger for a pull-transfer."""
    success: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> "TransferResult":
        return cls(success=True)

    @classmethod
    def failed(cls, reason: str) -> "TransferResult":
        return cls(success=False, reason=reason)


@dataclass(frozen=True)
class AllowanceInfo:
    """Delegated allowance of (owner, asset, spender)."""
    amount: int = 0
    expiration: int = 0
    nonce: int = 0


@dataclass(frozen=True)
class AllowanceGrant:
    """One asset of an allowance registration (permit)."""
    asset: str
    amount: int
    expiration: int
    nonce: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "amount": self.amount,
            "expiration": self.expiration,
            "nonce": self.nonce,
        }


# --- Events -------------------------------------------------------------------

@dataclass(frozen=True)
class ClaimMinted:
    claim_id: int
    debtor: str
    recipient: str
    name: str = field(default="claim_minted", init=False)


@dataclass(frozen=True)
class FundsTransferred:
    claim_id: int
    claimant: str
    entries: Tuple[PermissionEntry, ...]
    name: str = field(default="funds_transferred", init=False)

    def amounts(self) -> List[Tuple[str, int]]:
        return [(e.asset, e.amount) for e in self.entries]


@dataclass(frozen=True)
class ClaimInvalidated:
    claim_id: int
    caller: str
    name: str = field(default="claim_invalidated", init=False)


__all__ = [
    "UNSET_DESTINATION",
    "ClaimState",
    "PermissionEntry",
    "TimeWindow",
    "ClaimRecord",
    "freeze_entries",
    "TransferResult",
    "AllowanceInfo",
    "AllowanceGrant",
    "ClaimMinted",
    "FundsTransferred",
    "ClaimInvalidated",
]
