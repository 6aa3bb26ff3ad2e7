import pytest

from gclaim import ClaimRecord, PermissionEntry, TimeWindow, ValidationError


def make_record():
    return ClaimRecord(
        claim_id=4,
        entries=(
            PermissionEntry("d", "assetA", 5),
            PermissionEntry("d", "assetB", 7),
            PermissionEntry("d", "assetA", 1),
        ),
        window=TimeWindow(10, 20),
    )


def test_payable_to_rewrites_every_destination_without_mutating():
    record = make_record()
    executed = record.payable_to("h")
    assert {e.destination_account for e in executed.entries} == {"h"}
    assert {e.destination_account for e in record.entries} == {""}
    assert executed.claim_id == record.claim_id


def test_debtor_and_totals():
    record = make_record()
    assert record.debtor == "d"
    assert record.totals_by_asset() == {"assetA": 6, "assetB": 7}


def test_dict_form_restores_record():
    record = make_record().payable_to("h")
    assert ClaimRecord.from_dict(record.to_dict()) == record


def test_window_edges():
    window = TimeWindow(10, 20)
    assert window.not_started(9) and not window.not_started(10)
    assert window.contains(10) and window.contains(20)
    assert window.expired(21) and not window.expired(20)
    assert TimeWindow(5, 5).contains(5)
    with pytest.raises(ValidationError):
        TimeWindow(21, 20)
