"""
Configuration for the claim token service.
"""

import os
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional


class InvalidationPolicy(Enum):
    """Who may invalidate a live claim."""
    HOLDER_ONLY = "holder_only"
    HOLDER_OR_DEBTOR = "holder_or_debtor"


class IdAllocation(Enum):
    """How new claim ids are assigned."""
    MONOTONIC = "monotonic"      # store-backed counter, ids never reused
    ENUMERATION = "enumeration"  # legacy: highest live token id + 1


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ClaimServiceConfig:
    """Configuration for the claim token service."""
    # Principal this service acts as against the allowance ledger
    spender: str = "gclaim"

    # Lifecycle policies
    invalidation_policy: InvalidationPolicy = InvalidationPolicy.HOLDER_ONLY
    id_allocation: IdAllocation = IdAllocation.MONOTONIC

    # Bind validation
    allow_duplicate_assets: bool = False
    max_entries: int = 64
    verify_allowance_on_bind: bool = False

    # Storage
    redis_url: Optional[str] = None
    redis_prefix: str = "gclaim"

    # Observability
    metrics_enabled: bool = True

    clock: Callable[[], float] = field(default=time.time, repr=False)

    def now(self) -> int:
        """Whole seconds, for timestamps. Window checks read ``clock`` directly."""
        return int(self.clock())

    @classmethod
    def from_env(cls, **overrides) -> "ClaimServiceConfig":
        """Build a config from GCLAIM_* environment variables."""
        defaults = cls()
        config = cls(
            spender=os.getenv("GCLAIM_SPENDER", defaults.spender),
            invalidation_policy=InvalidationPolicy(
                os.getenv("GCLAIM_INVALIDATION_POLICY", defaults.invalidation_policy.value)
            ),
            id_allocation=IdAllocation(
                os.getenv("GCLAIM_ID_ALLOCATION", defaults.id_allocation.value)
            ),
            allow_duplicate_assets=_env_bool("GCLAIM_ALLOW_DUPLICATE_ASSETS", defaults.allow_duplicate_assets),
            max_entries=int(os.getenv("GCLAIM_MAX_ENTRIES", defaults.max_entries)),
            verify_allowance_on_bind=_env_bool("GCLAIM_VERIFY_ALLOWANCE_ON_BIND", defaults.verify_allowance_on_bind),
            redis_url=os.getenv("GCLAIM_REDIS_URL") or None,
            redis_prefix=os.getenv("GCLAIM_REDIS_PREFIX", defaults.redis_prefix),
            metrics_enabled=_env_bool("GCLAIM_METRICS_ENABLED", defaults.metrics_enabled),
        )
        return replace(config, **overrides)


__all__ = ["ClaimServiceConfig", "InvalidationPolicy", "IdAllocation"]
