from __future__ import annotations

import pytest

from event_service.app.exceptions import (
    ConflictError,
    HoldExhaustedError,
    InsufficientCreditsError,
    InvalidRequestError,
    NoActiveHoldError,
)
from event_service.app.models.credit import CreditTransactionType, HoldStatus
from event_service.tests.fakes import ServiceWorld


OWNER = "user-owner"


def _build_fixture(*, initialize: bool = True) -> ServiceWorld:
    world = ServiceWorld()
    if initialize:
        world.ledger.initialize(OWNER)
    return world


def test_balance_returns_zeros_when_account_is_missing() -> None:
    world = _build_fixture(initialize=False)

    balance = world.ledger.balance("nobody")

    assert balance.available_credits == 0
    assert balance.held_credits == 0
    assert balance.total_purchased == 0
    assert balance.total_used == 0


def test_initialize_grants_welcome_bonus_and_logs_transaction() -> None:
    world = _build_fixture(initialize=False)

    granted = world.ledger.initialize(OWNER)

    assert granted == 4
    balance = world.ledger.balance(OWNER)
    assert balance.available_credits == 4
    assert balance.total_purchased == 4
    assert len(world.transactions.created) == 1
    tx = world.transactions.created[0]
    assert tx.type == CreditTransactionType.INITIAL_GRANT
    assert tx.amount == 4
    assert tx.description == "Welcome bonus - 4 free connection credits"


def test_initialize_twice_raises_conflict() -> None:
    world = _build_fixture()

    with pytest.raises(ConflictError, match="User already has credit record"):
        world.ledger.initialize(OWNER)

    assert world.ledger.balance(OWNER).available_credits == 4


def test_sufficient_for_reports_shortfall() -> None:
    world = _build_fixture()

    result = world.ledger.sufficient_for(OWNER, 6)

    assert result.sufficient is False
    assert result.available_credits == 4
    assert result.shortfall == 2


def test_hold_moves_credits_from_available_to_held() -> None:
    world = _build_fixture()

    held = world.ledger.hold(OWNER, "event-1", 3, event_title="Friday Drinks")

    assert held == 3
    assert world.balance(OWNER) == (1, 3)
    hold = world.holds.find_active(OWNER, "event-1")
    assert hold is not None
    assert hold.credits_held == 3
    assert hold.credits_used == 0
    tx = world.transactions.created[-1]
    assert tx.type == CreditTransactionType.HOLD
    assert tx.amount == -3
    assert tx.description == 'Credits held for event "Friday Drinks" (3 credits)'
    assert tx.related_event_id == "event-1"


def test_hold_raises_insufficient_credits_without_changing_balance() -> None:
    world = _build_fixture()

    with pytest.raises(InsufficientCreditsError) as exc_info:
        world.ledger.hold(OWNER, "event-1", 5)

    assert exc_info.value.required == 5
    assert exc_info.value.available == 4
    assert exc_info.value.shortfall == 1
    assert str(exc_info.value) == "Insufficient credits. Required: 5, Available: 4"
    assert world.balance(OWNER) == (4, 0)
    assert world.holds.holds == {}


def test_hold_without_account_raises_insufficient_credits() -> None:
    world = _build_fixture(initialize=False)

    with pytest.raises(InsufficientCreditsError):
        world.ledger.hold("nobody", "event-1", 1)


def test_hold_rejects_non_positive_guest_count() -> None:
    world = _build_fixture()

    with pytest.raises(InvalidRequestError):
        world.ledger.hold(OWNER, "event-1", 0)


def test_second_active_hold_for_same_event_raises_conflict() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 1)

    with pytest.raises(ConflictError, match="Event already has active credit hold"):
        world.ledger.hold(OWNER, "event-1", 1)

    assert world.balance(OWNER) == (3, 1)


def test_deduct_consumes_one_held_credit() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 2)

    deducted = world.ledger.deduct(OWNER, "event-1", "app-1")

    assert deducted == 1
    balance = world.ledger.balance(OWNER)
    assert balance.available_credits == 2
    assert balance.held_credits == 1
    assert balance.total_used == 1
    hold = world.holds.find_active(OWNER, "event-1")
    assert hold is not None
    assert hold.credits_used == 1
    tx = world.transactions.created[-1]
    assert tx.type == CreditTransactionType.DEDUCTION
    assert tx.amount == -1
    assert tx.related_application_id == "app-1"


def test_deduct_without_hold_raises_no_active_hold() -> None:
    world = _build_fixture()

    with pytest.raises(NoActiveHoldError, match="No active credit hold found"):
        world.ledger.deduct(OWNER, "event-1", "app-1")


def test_deduct_beyond_held_credits_raises_hold_exhausted() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 1)
    world.ledger.deduct(OWNER, "event-1", "app-1")

    with pytest.raises(HoldExhaustedError):
        world.ledger.deduct(OWNER, "event-1", "app-2")

    balance = world.ledger.balance(OWNER)
    assert balance.held_credits == 0
    assert balance.total_used == 1


def test_release_returns_unused_credits_and_closes_hold() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 3)
    world.ledger.deduct(OWNER, "event-1", "app-1")

    released = world.ledger.release(OWNER, "event-1", released_from="deleted")

    assert released == 2
    assert world.balance(OWNER) == (3, 0)
    assert world.holds.find_active(OWNER, "event-1") is None
    [hold] = world.holds.for_event("event-1")
    assert hold.status == HoldStatus.RELEASED
    assert hold.released_at is not None
    tx = world.transactions.created[-1]
    assert tx.type == CreditTransactionType.RELEASE
    assert tx.amount == 2
    assert tx.description == "Credits released from deleted event (2 credits)"


def test_release_of_fully_used_hold_logs_nothing() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 1)
    world.ledger.deduct(OWNER, "event-1", "app-1")
    logged = len(world.transactions.created)

    released = world.ledger.release(OWNER, "event-1")

    assert released == 0
    assert len(world.transactions.created) == logged
    assert world.holds.find_active(OWNER, "event-1") is None


def test_release_twice_is_a_no_op_when_not_throwing() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 2)
    world.ledger.release(OWNER, "event-1")

    released = world.ledger.release(OWNER, "event-1", throw_on_missing_hold=False)

    assert released == 0
    assert world.balance(OWNER) == (4, 0)


def test_release_missing_hold_raises_by_default() -> None:
    world = _build_fixture()

    with pytest.raises(NoActiveHoldError):
        world.ledger.release(OWNER, "event-1")


def test_restore_creates_account_when_missing() -> None:
    world = _build_fixture(initialize=False)

    restored = world.ledger.restore("newcomer", 1, event_id="event-1")

    assert restored == 1
    balance = world.ledger.balance("newcomer")
    assert balance.available_credits == 1
    assert balance.total_used == 0
    tx = world.transactions.created[-1]
    assert tx.type == CreditTransactionType.REFUND
    assert tx.description == "Refund for no-show participant (1 credits)"


def test_restore_reduces_total_used() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 1)
    world.ledger.deduct(OWNER, "event-1", "app-1")

    world.ledger.restore(OWNER, 1, event_id="event-1", application_id="app-1")

    balance = world.ledger.balance(OWNER)
    assert balance.available_credits == 4
    assert balance.total_used == 0


def test_purchase_adds_credits_and_formats_description() -> None:
    world = _build_fixture()

    result = world.ledger.purchase(
        OWNER, 5, payment_transaction_id="pay-1", amount_cents=499
    )

    assert result.credits_granted == 5
    assert result.duplicate is False
    balance = world.ledger.balance(OWNER)
    assert balance.available_credits == 9
    assert balance.total_purchased == 9
    assert world.transactions.created[-1].description == "Purchased 5 credits for $4.99"


def test_purchase_with_same_payment_id_is_applied_once() -> None:
    world = _build_fixture()
    first = world.ledger.purchase(OWNER, 5, payment_transaction_id="pay-1")

    second = world.ledger.purchase(OWNER, 5, payment_transaction_id="pay-1")

    assert second.duplicate is True
    assert second.transaction_id == first.transaction_id
    assert world.ledger.balance(OWNER).available_credits == 9


def test_purchase_with_payment_id_of_another_user_raises_conflict() -> None:
    world = _build_fixture()
    world.ledger.purchase(OWNER, 5, payment_transaction_id="pay-1")

    with pytest.raises(ConflictError):
        world.ledger.purchase("someone-else", 5, payment_transaction_id="pay-1")


def test_list_transactions_returns_newest_first() -> None:
    world = _build_fixture()
    world.ledger.hold(OWNER, "event-1", 1)

    history = world.ledger.list_transactions(OWNER)

    assert [tx.type for tx in history] == [
        CreditTransactionType.HOLD,
        CreditTransactionType.INITIAL_GRANT,
    ]
    assert len(world.ledger.list_transactions(OWNER, limit=1)) == 1


def test_balance_is_conserved_across_hold_deduct_release() -> None:
    # available + held + total_used == total_purchased + restored
    world = _build_fixture()
    world.ledger.purchase(OWNER, 3)
    world.ledger.hold(OWNER, "event-1", 3)
    world.ledger.hold(OWNER, "event-2", 2)
    world.ledger.deduct(OWNER, "event-1", "app-1")
    world.ledger.deduct(OWNER, "event-1", "app-2")
    world.ledger.deduct(OWNER, "event-2", "app-3")
    world.ledger.release(OWNER, "event-1")

    balance = world.ledger.balance(OWNER)

    assert balance.total_used == 3
    assert (
        balance.available_credits + balance.held_credits + balance.total_used
        == balance.total_purchased
    )
    assert balance.held_credits == 1
    assert sum(h.remaining for h in world.ledger.list_active_holds(OWNER)) == 1
