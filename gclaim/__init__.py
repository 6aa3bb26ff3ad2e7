"""
gclaim

Transferable single-use claim tokens over pre-authorized fund transfers.
"""

__version__ = "0.1.0"

from .config import ClaimServiceConfig, InvalidationPolicy, IdAllocation
from .errors import (
    ClaimError,
    ValidationError,
    AuthorizationError,
    OwnershipError,
    NotFoundError,
    NotStartedError,
    ExpiredError,
    TransferExecutionError,
    IdCollisionError,
)
from .types import (
    PermissionEntry,
    TimeWindow,
    ClaimRecord,
    ClaimState,
    TransferResult,
    AllowanceInfo,
    AllowanceGrant,
    ClaimMinted,
    FundsTransferred,
    ClaimInvalidated,
)
from .lifecycle import ClaimLifecycleManager
from .query import AllowanceQueryFacade
from .service import ClaimService, create_service

__all__ = [
    "ClaimServiceConfig",
    "InvalidationPolicy",
    "IdAllocation",
    "ClaimError",
    "ValidationError",
    "AuthorizationError",
    "OwnershipError",
    "NotFoundError",
    "NotStartedError",
    "ExpiredError",
    "TransferExecutionError",
    "IdCollisionError",
    "PermissionEntry",
    "TimeWindow",
    "ClaimRecord",
    "ClaimState",
    "TransferResult",
    "AllowanceInfo",
    "AllowanceGrant",
    "ClaimMinted",
    "FundsTransferred",
    "ClaimInvalidated",
    "ClaimLifecycleManager",
    "AllowanceQueryFacade",
    "ClaimService",
    "create_service",
]
