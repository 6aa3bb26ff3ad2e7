import pytest

from gclaim import AllowanceGrant, ClaimState, NotFoundError, TimeWindow

from conftest import DEBTOR, FAR_FUTURE, HOLDER, SPENDER, START, leg

pytestmark = pytest.mark.asyncio


async def test_allowance_views_delegate_to_ledger(service, allowance):
    assert await service.outstanding_allowance(DEBTOR, "assetA") == 500
    info = await service.allowance_info(DEBTOR, "assetA")
    assert (info.amount, info.expiration, info.nonce) == (500, FAR_FUTURE, 1)
    assert await service.outstanding_allowance("nobody", "assetA") == 0

    await allowance.register_allowance(DEBTOR, [AllowanceGrant("assetA", 7, FAR_FUTURE, nonce=1)], SPENDER)
    assert await service.outstanding_allowance(DEBTOR, "assetA") == 7


async def test_claim_state_and_debtor_index(service):
    a = await service.bind([leg("assetA", 1)], recipient=HOLDER, caller=DEBTOR)
    b = await service.bind([leg("assetB", 1)], recipient=HOLDER, caller=DEBTOR)
    assert await service.claim_state(a) is ClaimState.ACTIVE
    assert await service.claims_by_debtor(DEBTOR) == [a, b]

    await service.claim(a, HOLDER)
    with pytest.raises(NotFoundError):
        await service.claim_state(a)
    with pytest.raises(NotFoundError):
        await service.holder_of(a)
    assert await service.claims_by_debtor(DEBTOR) == [b]


async def test_is_claimable_has_no_side_effects(service, clock):
    claim_id = await service.bind(
        [leg("assetA", 1)], recipient=HOLDER, caller=DEBTOR, window=TimeWindow(START + 10, START + 20)
    )
    assert not await service.is_claimable(claim_id, HOLDER)
    clock.advance(10)
    assert not await service.is_claimable(claim_id, "stranger")
    assert await service.is_claimable(claim_id, HOLDER)
    assert await service.record_for(claim_id)
    assert not await service.is_claimable(999, HOLDER)
