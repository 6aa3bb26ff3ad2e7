"""Prometheus metrics for claim lifecycle operations.

Each MetricsRegistry owns its own CollectorRegistry so several services (or
test cases) can coexist in one process. When disabled every observe call is
a no-op.
"""
from __future__ import annotations

from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, generate_latest


class MetricsRegistry:
    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None):
        self.enabled = enabled
        self.registry = registry or CollectorRegistry()
        if self.enabled:
            self.bound = Counter("gclaim_claims_bound", "Claim tokens minted", registry=self.registry)
            self.executed = Counter("gclaim_claims_executed", "Claims executed with a transfer", registry=self.registry)
            self.invalidated = Counter("gclaim_claims_invalidated", "Claims invalidated", registry=self.registry)
            self.failures = Counter(
                "gclaim_claim_failures", "Rejected claim operations", ["operation", "reason"], registry=self.registry
            )
            self.rollbacks = Counter("gclaim_rollbacks", "Operations rolled back", ["operation"], registry=self.registry)
        else:
            self.bound = None
            self.executed = None
            self.invalidated = None
            self.failures = None
            self.rollbacks = None

    def observe_bound(self) -> None:
        if self.enabled:
            self.bound.inc()  # type: ignore

    def observe_executed(self) -> None:
        if self.enabled:
            self.executed.inc()  # type: ignore

    def observe_invalidated(self) -> None:
        if self.enabled:
            self.invalidated.inc()  # type: ignore

    def observe_failure(self, operation: str, reason: str) -> None:
        if self.enabled:
            self.failures.labels(operation=operation, reason=reason).inc()  # type: ignore

    def observe_rollback(self, operation: str, depth: int = 0) -> None:
        if self.enabled:
            self.rollbacks.labels(operation=operation).inc()  # type: ignore

    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Current value of a counter sample (0.0 when absent)."""
        value = self.registry.get_sample_value(name, labels or {})
        return value or 0.0

    def export(self) -> bytes:
        return generate_latest(self.registry)


__all__ = ["MetricsRegistry"]
