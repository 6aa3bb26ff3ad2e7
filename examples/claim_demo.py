"""Demonstration of the claim token lifecycle.

Steps:
1. A debtor funds an account and registers a signed permit with the allowance ledger.
2. The debtor binds a two-asset claim payable to a creditor.
3. The creditor sells the claim token to a buyer.
4. The buyer claims; funds move from the debtor to the buyer.
5. A replayed claim fails with NotFoundError.
6. A second claim is invalidated by its holder without moving funds.
"""

import asyncio
import logging

from gclaim import (
    AllowanceGrant,
    ClaimServiceConfig,
    NotFoundError,
    PermissionEntry,
    create_service,
)
from gclaim.events import AuditTrail
from gclaim.ledger import InMemoryAllowanceLedger, InMemoryOwnershipLedger, new_key_pair, sign_permit


async def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = ClaimServiceConfig.from_env()
    ownership = InMemoryOwnershipLedger()
    allowance = InMemoryAllowanceLedger(clock=config.clock)

    # 1. Funding and permit
    allowance.deposit("debtor", "usdc", 1_000)
    allowance.deposit("debtor", "eur", 1_000)
    keys = new_key_pair()
    allowance.register_key("debtor", keys.public)
    expires = config.now() + 3600
    grants = [AllowanceGrant("usdc", 500, expires), AllowanceGrant("eur", 500, expires)]
    await allowance.register_allowance(
        "debtor", grants, config.spender, signature=sign_permit("debtor", grants, config.spender, keys)
    )

    service = create_service(config, ownership, allowance)
    trail = AuditTrail()
    service.subscribe(trail)
    await service.start()

    # 2. Bind
    claim_id = await service.bind(
        [PermissionEntry("debtor", "usdc", 200), PermissionEntry("debtor", "eur", 50)],
        recipient="creditor",
        caller="debtor",
    )
    print("Bound claim:", claim_id, "holder:", await service.holder_of(claim_id))

    # 3. Resale
    await ownership.transfer(claim_id, "creditor", "buyer")
    print("Holder after resale:", await service.holder_of(claim_id))

    # 4. Claim
    executed = await service.claim(claim_id, "buyer")
    for entry in executed.entries:
        print(f"  moved {entry.amount} {entry.asset} {entry.source_account} -> {entry.destination_account}")
    print("Remaining usdc allowance:", await service.outstanding_allowance("debtor", "usdc"))

    # 5. Replay
    try:
        await service.claim(claim_id, "buyer")
    except NotFoundError as e:
        print("Replay rejected:", e.to_dict())

    # 6. Invalidate
    other = await service.bind([PermissionEntry("debtor", "usdc", 10)], recipient="creditor", caller="debtor")
    await service.invalidate(other, "creditor")
    print("Invalidated claim:", other)

    print("Audit entries:", len(trail.entries))
    print("Health:", await service.health_check())
    await service.stop()


if __name__ == "__main__":
    asyncio.run(main())
