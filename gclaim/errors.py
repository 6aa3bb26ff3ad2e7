"""
Error taxonomy for claim token operations.

Every error aborts the whole operation it was raised from; the atomic
boundary unwinds any effect already applied before the error propagates.
"""

from typing import Any, Dict, Optional


class ClaimError(Exception):
    """Base class for all claim token errors."""

    code = "claim_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ClaimError):
    """Malformed bind parameters."""

    code = "validation_failed"


class AuthorizationError(ClaimError):
    """A batch entry is sourced from an account other than the caller."""

    code = "unauthorized_source"

    def __init__(self, account: str, caller: Optional[str] = None):
        super().__init__(
            f"entry source '{account}' is not authorized by caller '{caller}'",
            account=account,
            caller=caller,
        )
        self.account = account
        self.caller = caller


class OwnershipError(ClaimError):
    """Caller is not entitled to act on the claim token."""

    code = "not_token_holder"

    def __init__(self, caller: str, claim_id: int):
        super().__init__(
            f"'{caller}' is not entitled to act on claim {claim_id}",
            caller=caller,
            claim_id=claim_id,
        )
        self.caller = caller
        self.claim_id = claim_id


class NotFoundError(ClaimError):
    """No live claim with this id (never existed or already consumed)."""

    code = "claim_not_found"

    def __init__(self, claim_id: int):
        super().__init__(f"claim {claim_id} not found", claim_id=claim_id)
        self.claim_id = claim_id


class NotStartedError(ClaimError):
    code = "claim_not_started"

    def __init__(self, claim_id: int, start_time: int, now: float):
        super().__init__(
            f"claim {claim_id} not claimable before {start_time} (now {now})",
            claim_id=claim_id,
            start_time=start_time,
            now=now,
        )
        self.claim_id = claim_id
        self.start_time = start_time
        self.now = now


class ExpiredError(ClaimError):
    code = "claim_expired"

    def __init__(self, claim_id: int, expiration_time: int, now: float):
        super().__init__(
            f"claim {claim_id} expired at {expiration_time} (now {now})",
            claim_id=claim_id,
            expiration_time=expiration_time,
            now=now,
        )
        self.claim_id = claim_id
        self.expiration_time = expiration_time
        self.now = now


class TransferExecutionError(ClaimError):
    """The allowance ledger rejected the pull-transfer."""

    code = "transfer_failed"

    def __init__(self, claim_id: int, reason: str = ""):
        super().__init__(
            f"transfer for claim {claim_id} failed: {reason or 'rejected by ledger'}",
            claim_id=claim_id,
            reason=reason,
        )
        self.claim_id = claim_id
        self.reason = reason


class IdCollisionError(ClaimError):
    """Enumeration-based allocation produced an id that is still live."""

    code = "id_collision"

    def __init__(self, claim_id: int):
        super().__init__(f"allocated claim id {claim_id} is still live", claim_id=claim_id)
        self.claim_id = claim_id


__all__ = [
    "ClaimError",
    "ValidationError",
    "AuthorizationError",
    "OwnershipError",
    "NotFoundError",
    "NotStartedError",
    "ExpiredError",
    "TransferExecutionError",
    "IdCollisionError",
]
