import pytest

from gclaim import AllowanceGrant, ClaimServiceConfig, PermissionEntry, create_service
from gclaim.ledger import InMemoryAllowanceLedger, InMemoryOwnershipLedger

DEBTOR = "debtor"
HOLDER = "holder"
SPENDER = "gclaim"
START = 1_700_000_000
FAR_FUTURE = START + 10 * 365 * 24 * 3600


class FakeClock:
    def __init__(self, now: int = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def leg(asset: str, amount: int, source: str = DEBTOR) -> PermissionEntry:
    return PermissionEntry(source_account=source, asset=asset, amount=amount)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ownership():
    return InMemoryOwnershipLedger()


@pytest.fixture
def allowance(clock):
    ledger = InMemoryAllowanceLedger(clock=clock)
    ledger.deposit(DEBTOR, "assetA", 1_000)
    ledger.deposit(DEBTOR, "assetB", 1_000)
    return ledger


@pytest.fixture
def config(clock):
    return ClaimServiceConfig(spender=SPENDER, clock=clock)


@pytest.fixture
async def service(config, ownership, allowance):
    await allowance.register_allowance(
        DEBTOR,
        [AllowanceGrant("assetA", 500, FAR_FUTURE), AllowanceGrant("assetB", 500, FAR_FUTURE)],
        SPENDER,
    )
    svc = create_service(config, ownership, allowance)
    await svc.start()
    yield svc
    await svc.stop()
