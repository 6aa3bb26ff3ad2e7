"""
Canonical encoding and Ed25519 signing of allowance permits.

A permit is an owner's signed statement delegating a set of per-asset
allowances to a spender. The reference allowance ledger verifies it before
registering the allowance.
"""

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Sequence

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from ..types import AllowanceGrant


@dataclass
class KeyPair:
    """Wraps an ed25519 key pair."""
    public: Ed25519PublicKey
    private: Ed25519PrivateKey
    key_id: str


def new_key_pair() -> KeyPair:
    """Generate a new ed25519 key pair with a simple time-based key ID."""
    private_key = Ed25519PrivateKey.generate()
    public_key = private_key.public_key()
    public_bytes = public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    fingerprint = hashlib.sha256(public_bytes).hexdigest()
    key_id = f"permit-{time.strftime('%Y%m%d')}-{fingerprint[:8]}"
    return KeyPair(public=public_key, private=private_key, key_id=key_id)


def canonical_permit(owner: str, grants: Sequence[AllowanceGrant], spender: str) -> bytes:
    """Deterministic JSON encoding; grants sorted by asset."""
    data = {
        "owner": owner,
        "spender": spender,
        "grants": [g.to_dict() for g in sorted(grants, key=lambda g: (g.asset, g.nonce))],
    }
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")


def permit_digest(owner: str, grants: Sequence[AllowanceGrant], spender: str) -> str:
    return hashlib.sha256(canonical_permit(owner, grants, spender)).hexdigest()


def sign_permit(owner: str, grants: Sequence[AllowanceGrant], spender: str, key_pair: KeyPair) -> str:
    """Return the hex signature over the permit digest."""
    if key_pair is None:
        raise ValueError("nil key pair")
    digest = permit_digest(owner, grants, spender)
    return key_pair.private.sign(digest.encode("utf-8")).hex()


def verify_permit(
    owner: str,
    grants: Sequence[AllowanceGrant],
    spender: str,
    signature: str,
    public_key: Ed25519PublicKey,
) -> None:
    """Raise ValueError unless ``signature`` covers exactly this permit."""
    digest = permit_digest(owner, grants, spender)
    try:
        public_key.verify(bytes.fromhex(signature), digest.encode("utf-8"))
    except Exception as e:
        raise ValueError(f"permit signature verification failed: {e}") from e


__all__ = [
    "KeyPair",
    "new_key_pair",
    "canonical_permit",
    "permit_digest",
    "sign_permit",
    "verify_permit",
]
