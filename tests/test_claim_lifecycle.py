import pytest

from gclaim import (
    AllowanceGrant,
    ExpiredError,
    NotFoundError,
    NotStartedError,
    OwnershipError,
    TimeWindow,
    TransferExecutionError,
    TransferResult,
    create_service,
)

from conftest import DEBTOR, FAR_FUTURE, HOLDER, SPENDER, START, leg

pytestmark = pytest.mark.asyncio


async def test_bind_then_claim_moves_funds_and_destroys_token(service, allowance, ownership):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)
    assert claim_id == 0

    executed = await service.claim(0, HOLDER)

    assert [e.destination_account for e in executed.entries] == [HOLDER]
    assert allowance.balance_of(HOLDER, "assetA") == 100
    assert allowance.balance_of(DEBTOR, "assetA") == 900
    with pytest.raises(NotFoundError):
        await service.record_for(0)
    with pytest.raises(NotFoundError):
        await ownership.owner_of(0)


async def test_bound_record_matches_submission(service, ownership):
    entries = [leg("assetA", 10), leg("assetB", 20)]
    window = TimeWindow(START, START + 60)
    claim_id = await service.bind(entries, recipient=HOLDER, caller=DEBTOR, window=window)

    record = await service.record_for(claim_id)
    assert list(record.entries) == entries
    assert record.window == window
    assert await ownership.owner_of(claim_id) == HOLDER


async def test_second_claim_and_invalidate_fail_not_found(service):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)
    await service.claim(claim_id, HOLDER)

    with pytest.raises(NotFoundError):
        await service.claim(claim_id, HOLDER)
    with pytest.raises(NotFoundError):
        await service.invalidate(claim_id, HOLDER)


async def test_unknown_id_fails_like_consumed_id(service):
    with pytest.raises(NotFoundError) as never_existed:
        await service.claim(42, HOLDER)
    assert never_existed.value.code == "claim_not_found"


async def test_claim_by_non_holder_rejected(service):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)
    with pytest.raises(OwnershipError) as exc:
        await service.claim(claim_id, "stranger")
    assert exc.value.caller == "stranger"
    assert exc.value.claim_id == claim_id
    assert await service.record_for(claim_id)


async def test_original_recipient_cannot_claim_after_resale(service, ownership, allowance):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)
    await ownership.transfer(claim_id, HOLDER, "buyer")

    with pytest.raises(OwnershipError):
        await service.claim(claim_id, HOLDER)

    await service.claim(claim_id, "buyer")
    assert allowance.balance_of("buyer", "assetA") == 100
    assert allowance.balance_of(HOLDER, "assetA") == 0


async def test_window_bounds_are_inclusive(service, clock):
    window = TimeWindow(START + 100, START + 200)
    early = await service.bind([leg("assetA", 10)], recipient=HOLDER, caller=DEBTOR, window=window)
    late = await service.bind([leg("assetB", 10)], recipient=HOLDER, caller=DEBTOR, window=window)

    with pytest.raises(NotStartedError):
        await service.claim(early, HOLDER)

    clock.now = START + 100
    await service.claim(early, HOLDER)

    clock.now = START + 200
    assert await service.is_claimable(late, HOLDER)

    clock.now = START + 201
    with pytest.raises(ExpiredError) as exc:
        await service.claim(late, HOLDER)
    assert exc.value.expiration_time == START + 200


async def test_window_checks_use_fractional_seconds(service, clock):
    window = TimeWindow(START + 100, START + 200)
    claim_id = await service.bind([leg("assetA", 10)], recipient=HOLDER, caller=DEBTOR, window=window)

    clock.now = START + 99.5
    with pytest.raises(NotStartedError):
        await service.claim(claim_id, HOLDER)

    clock.now = START + 200.5
    with pytest.raises(ExpiredError) as exc:
        await service.claim(claim_id, HOLDER)
    assert exc.value.now == START + 200.5
    assert await service.record_for(claim_id)


async def test_ledger_rejection_rolls_back_burn_and_delete(service, ownership, allowance):
    # 600 exceeds the 500 delegated in the fixture
    claim_id = await service.bind([leg("assetA", 600)], recipient=HOLDER, caller=DEBTOR)

    with pytest.raises(TransferExecutionError) as exc:
        await service.claim(claim_id, HOLDER)
    assert "insufficient allowance" in exc.value.reason

    record = await service.record_for(claim_id)
    assert record.entries[0].destination_account == ""
    assert await ownership.owner_of(claim_id) == HOLDER
    assert allowance.balance_of(DEBTOR, "assetA") == 1_000

    # Retry succeeds once the debtor raises the allowance.
    await allowance.register_allowance(DEBTOR, [AllowanceGrant("assetA", 600, FAR_FUTURE, nonce=1)], SPENDER)
    await service.claim(claim_id, HOLDER)
    assert allowance.balance_of(HOLDER, "assetA") == 600


async def test_ledger_exception_is_rewrapped(config, ownership):
    class BrokenLedger:
        async def query_allowance(self, owner, asset, spender):
            raise NotImplementedError

        async def register_allowance(self, owner, grants, spender, signature=None):
            return None

        async def pull_transfer(self, spender, batch):
            raise RuntimeError("ledger offline")

    service = create_service(config, ownership, BrokenLedger())
    claim_id = await service.bind([leg("assetA", 1)], recipient=HOLDER, caller=DEBTOR)

    with pytest.raises(TransferExecutionError) as exc:
        await service.claim(claim_id, HOLDER)
    assert isinstance(exc.value.__cause__, RuntimeError)
    assert await ownership.is_live(claim_id)


async def test_typed_failure_result_is_mapped(config, ownership):
    class RefusingLedger:
        async def pull_transfer(self, spender, batch):
            return TransferResult.failed("frozen account")

    service = create_service(config, ownership, RefusingLedger())
    claim_id = await service.bind([leg("assetA", 1)], recipient=HOLDER, caller=DEBTOR)

    with pytest.raises(TransferExecutionError) as exc:
        await service.claim(claim_id, HOLDER)
    assert exc.value.reason == "frozen account"
    assert exc.value.claim_id == claim_id


async def test_reentrant_claim_observes_not_found(service, allowance):
    claim_id = await service.bind([leg("assetA", 100)], recipient=HOLDER, caller=DEBTOR)
    observed = []

    async def callback(entry):
        try:
            await service.claim(claim_id, HOLDER)
        except NotFoundError as e:
            observed.append(e)

    allowance.hooks["assetA"] = callback
    await service.claim(claim_id, HOLDER)

    assert len(observed) == 1
    assert observed[0].claim_id == claim_id
    assert allowance.balance_of(HOLDER, "assetA") == 100


async def test_nested_claim_stays_final_when_outer_claim_fails(service, allowance):
    outer = await service.bind([leg("assetA", 10)], recipient=HOLDER, caller=DEBTOR)
    inner = await service.bind([leg("assetB", 100)], recipient=HOLDER, caller=DEBTOR)

    async def claim_inner_then_refuse(entry):
        await service.claim(inner, HOLDER)
        raise RuntimeError("receiver refused")

    allowance.hooks["assetA"] = claim_inner_then_refuse
    with pytest.raises(TransferExecutionError):
        await service.claim(outer, HOLDER)
    del allowance.hooks["assetA"]

    assert allowance.balance_of(HOLDER, "assetB") == 100
    with pytest.raises(NotFoundError):
        await service.record_for(inner)
    with pytest.raises(NotFoundError):
        await service.claim(inner, HOLDER)
    assert allowance.balance_of(HOLDER, "assetB") == 100

    # The failed outer claim was rolled back and can still be claimed.
    await service.claim(outer, HOLDER)
    assert allowance.balance_of(HOLDER, "assetA") == 10


async def test_independent_claims_in_any_order(service, allowance):
    first = await service.bind([leg("assetA", 100)], recipient="h1", caller=DEBTOR)
    second = await service.bind([leg("assetA", 50), leg("assetB", 20)], recipient="h2", caller=DEBTOR)
    assert (first, second) == (0, 1)

    await service.claim(second, "h2")
    await service.claim(first, "h1")

    assert allowance.balance_of("h1", "assetA") == 100
    assert allowance.balance_of("h2", "assetA") == 50
    assert allowance.balance_of("h2", "assetB") == 20
    assert allowance.balance_of(DEBTOR, "assetA") == 850
    assert await service.outstanding_allowance(DEBTOR, "assetA") == 350


async def test_service_counts_requests_and_errors(service):
    await service.bind([leg("assetA", 1)], recipient=HOLDER, caller=DEBTOR)
    with pytest.raises(NotFoundError):
        await service.claim(99, HOLDER)
    status = service.get_service_status()
    assert status["total_requests"] == 2
    assert status["error_count"] == 1
