import pytest

from gclaim import ClaimServiceConfig, InvalidationPolicy, NotFoundError, OwnershipError, create_service

from conftest import DEBTOR, HOLDER, leg

pytestmark = pytest.mark.asyncio


async def test_holder_invalidates_without_transfer(service, ownership, allowance):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)

    await service.invalidate(claim_id, HOLDER)

    assert not await ownership.is_live(claim_id)
    with pytest.raises(NotFoundError):
        await service.record_for(claim_id)
    assert allowance.balance_of(DEBTOR, "assetA") == 1_000
    assert allowance.transfers == []


async def test_debtor_rejected_under_holder_only_policy(service):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)
    with pytest.raises(OwnershipError):
        await service.invalidate(claim_id, DEBTOR)
    assert await service.record_for(claim_id)


async def test_debtor_allowed_under_holder_or_debtor_policy(clock, ownership, allowance):
    config = ClaimServiceConfig(clock=clock, invalidation_policy=InvalidationPolicy.HOLDER_OR_DEBTOR)
    service = create_service(config, ownership, allowance)
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)

    with pytest.raises(OwnershipError):
        await service.invalidate(claim_id, "stranger")

    await service.invalidate(claim_id, DEBTOR)
    with pytest.raises(NotFoundError):
        await service.claim(claim_id, HOLDER)


async def test_new_holder_may_invalidate_after_transfer(service, ownership):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)
    await ownership.transfer(claim_id, HOLDER, "buyer")

    with pytest.raises(OwnershipError):
        await service.invalidate(claim_id, HOLDER)
    await service.invalidate(claim_id, "buyer")
    assert await service.claims_by_debtor(DEBTOR) == []
