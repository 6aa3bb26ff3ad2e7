"""
Ledger package: interfaces to the external ownership and allowance ledgers,
plus in-process reference implementations and permit signing helpers.
"""

from .interfaces import OwnershipLedger, AllowanceLedger
from .memory import InMemoryOwnershipLedger, InMemoryAllowanceLedger, TransferHook
from .permit import (
    KeyPair,
    new_key_pair,
    canonical_permit,
    permit_digest,
    sign_permit,
    verify_permit,
)

__all__ = [
    "OwnershipLedger",
    "AllowanceLedger",
    "InMemoryOwnershipLedger",
    "InMemoryAllowanceLedger",
    "TransferHook",
    "KeyPair",
    "new_key_pair",
    "canonical_permit",
    "permit_digest",
    "sign_permit",
    "verify_permit",
]
