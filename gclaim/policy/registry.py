"""Bind-time validation policies.

Parameter checks on a submitted permission batch are expressed as small
policies collected in a registry. The binder builds a PolicyContext for each
bind request and calls ``enforce``; any failing policy rejects the whole
batch with a PolicyViolation (a ValidationError).

Design goals:
 - Composable: multiple policies aggregate into a single evaluation result
 - Transparent diagnostics: each policy returns a structured outcome with reason
 - Hosts can register extra policies (per-asset caps, deny lists) without
   touching the binder
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from ..errors import ValidationError
from ..types import PermissionEntry, TimeWindow


@dataclass
class PolicyContext:
    """Everything a policy may inspect about a bind request."""
    entries: Sequence[PermissionEntry]
    caller: str
    recipient: str
    window: Optional[TimeWindow] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PolicyResult:
    """Outcome of a single policy evaluation."""
    policy: str
    passed: bool
    reason: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy": self.policy,
            "passed": self.passed,
            "reason": self.reason,
            "details": self.details,
        }


class Policy(Protocol):
    name: str

    def evaluate(self, ctx: PolicyContext) -> PolicyResult:
        ...  # pragma: no cover - interface placeholder


class PolicyViolation(ValidationError):
    """Raised when one or more policies fail."""

    def __init__(self, failed: List[PolicyResult], passed: List[PolicyResult]):
        self.failed = failed
        self.passed = passed
        message = ", ".join(f"{r.policy}: {r.reason}" for r in failed) or "policy violation"
        super().__init__(message, failed=[r.to_dict() for r in failed])


class PolicyRegistry:
    """Registry storing policies and coordinating evaluation."""

    def __init__(self, policies: Iterable[Policy] = ()):
        self._policies: List[Policy] = []
        for policy in policies:
            self.register(policy)

    def register(self, policy: Policy) -> None:
        if any(p.name == policy.name for p in self._policies):
            raise ValueError(f"Policy with name '{policy.name}' already registered")
        self._policies.append(policy)

    def list(self) -> List[Policy]:
        return list(self._policies)

    def evaluate(self, ctx: PolicyContext) -> List[PolicyResult]:
        return [policy.evaluate(ctx) for policy in self._policies]

    def enforce(self, ctx: PolicyContext) -> List[PolicyResult]:
        results = self.evaluate(ctx)
        failed = [r for r in results if not r.passed]
        if failed:
            raise PolicyViolation(failed=failed, passed=[r for r in results if r.passed])
        return results


# --- Baseline policies ---------------------------------------------------------

@dataclass
class NonEmptyBatchPolicy:
    name: str = "non_empty_batch"

    def evaluate(self, ctx: PolicyContext) -> PolicyResult:
        if not ctx.entries:
            return PolicyResult(policy=self.name, passed=False, reason="batch is empty")
        return PolicyResult(policy=self.name, passed=True)


@dataclass
class MaxEntriesPolicy:
    name: str = "max_entries"
    max_entries: int = 64

    def evaluate(self, ctx: PolicyContext) -> PolicyResult:
        if len(ctx.entries) > self.max_entries:
            return PolicyResult(
                policy=self.name,
                passed=False,
                reason=f"{len(ctx.entries)} entries > {self.max_entries}",
            )
        return PolicyResult(policy=self.name, passed=True)


@dataclass
class PositiveAmountPolicy:
    """Every leg must move a positive integer amount."""
    name: str = "positive_amount"

    def evaluate(self, ctx: PolicyContext) -> PolicyResult:
        bad = [
            e.asset for e in ctx.entries
            if isinstance(e.amount, bool) or not isinstance(e.amount, int) or e.amount <= 0
        ]
        if bad:
            return PolicyResult(
                policy=self.name,
                passed=False,
                reason=f"non-positive amount for: {', '.join(bad)}",
                details={"assets": bad},
            )
        return PolicyResult(policy=self.name, passed=True)


@dataclass
class DuplicateAssetPolicy:
    """Rejects batches naming the same asset more than once."""
    name: str = "duplicate_asset"

    def evaluate(self, ctx: PolicyContext) -> PolicyResult:
        seen = set()
        dupes = set()
        for entry in ctx.entries:
            if entry.asset in seen:
                dupes.add(entry.asset)
            seen.add(entry.asset)
        if dupes:
            return PolicyResult(
                policy=self.name,
                passed=False,
                reason=f"duplicate assets: {', '.join(sorted(dupes))}",
                details={"assets": sorted(dupes)},
            )
        return PolicyResult(policy=self.name, passed=True)


@dataclass
class RecipientPolicy:
    name: str = "recipient_present"

    def evaluate(self, ctx: PolicyContext) -> PolicyResult:
        if not ctx.recipient:
            return PolicyResult(policy=self.name, passed=False, reason="missing recipient")
        return PolicyResult(policy=self.name, passed=True)


def default_registry(max_entries: int = 64, allow_duplicate_assets: bool = False) -> PolicyRegistry:
    policies: List[Policy] = [
        NonEmptyBatchPolicy(),
        MaxEntriesPolicy(max_entries=max_entries),
        PositiveAmountPolicy(),
        RecipientPolicy(),
    ]
    if not allow_duplicate_assets:
        policies.append(DuplicateAssetPolicy())
    return PolicyRegistry(policies)


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
