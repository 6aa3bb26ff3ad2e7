import pytest

from gclaim import ClaimServiceConfig, IdAllocation, InvalidationPolicy


def test_defaults():
    config = ClaimServiceConfig()
    assert config.invalidation_policy is InvalidationPolicy.HOLDER_ONLY
    assert config.id_allocation is IdAllocation.MONOTONIC
    assert config.allow_duplicate_assets is False
    assert config.redis_url is None


def test_from_env(monkeypatch):
    monkeypatch.setenv("GCLAIM_SPENDER", "claims-svc")
    monkeypatch.setenv("GCLAIM_INVALIDATION_POLICY", "holder_or_debtor")
    monkeypatch.setenv("GCLAIM_ID_ALLOCATION", "enumeration")
    monkeypatch.setenv("GCLAIM_ALLOW_DUPLICATE_ASSETS", "yes")
    monkeypatch.setenv("GCLAIM_MAX_ENTRIES", "8")
    monkeypatch.setenv("GCLAIM_METRICS_ENABLED", "0")
    monkeypatch.setenv("GCLAIM_REDIS_URL", "redis://cache:6379/2")

    config = ClaimServiceConfig.from_env(redis_prefix="test")

    assert config.spender == "claims-svc"
    assert config.invalidation_policy is InvalidationPolicy.HOLDER_OR_DEBTOR
    assert config.id_allocation is IdAllocation.ENUMERATION
    assert config.allow_duplicate_assets is True
    assert config.max_entries == 8
    assert config.metrics_enabled is False
    assert config.redis_url == "redis://cache:6379/2"
    assert config.redis_prefix == "test"


def test_clock_is_truncated_to_seconds():
    config = ClaimServiceConfig(clock=lambda: 1234.9)
    assert config.now() == 1234


def test_from_env_rejects_unknown_override():
    with pytest.raises(TypeError):
        ClaimServiceConfig.from_env(max_entires=4)
