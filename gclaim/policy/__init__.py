from .registry import (
    PolicyContext,
    PolicyResult,
    Policy,
    PolicyViolation,
    PolicyRegistry,
    NonEmptyBatchPolicy,
    MaxEntriesPolicy,
    PositiveAmountPolicy,
    DuplicateAssetPolicy,
    RecipientPolicy,
    default_registry,
)

__all__ = [
    "PolicyContext",
    "PolicyResult",
    "Policy",
    "PolicyViolation",
    "PolicyRegistry",
    "NonEmptyBatchPolicy",
    "MaxEntriesPolicy",
    "PositiveAmountPolicy",
    "DuplicateAssetPolicy",
    "RecipientPolicy",
    "default_registry",
]
