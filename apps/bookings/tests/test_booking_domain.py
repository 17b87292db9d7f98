"""Tests for the booking aggregate and the conflict detector."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from apps.bookings.domain.conflicts import (
    ReservationCandidate,
    check_conflict,
    find_conflict,
    validate_and_reserve,
)
from apps.bookings.domain.entities import Booking, BookingSource, BookingStatus
from apps.pricing.domain.normalizer import DepositSpec, TaxMode, normalize
from shared.domain.exceptions import BookingTerminal, InvalidAmount, InvalidTransition, OverPayment, SlotUnavailable
from shared.domain.intents import CreatePaymentLink, NotifyCustomer
from shared.domain.value_objects import CustomerContact, TimeInterval

MONDAY = date(2025, 3, 3)
TUESDAY = date(2025, 3, 4)


def interval(start: str, end: str, day: date = MONDAY) -> TimeInterval:
    return TimeInterval.from_clock(day, start, end)


def booking(start="10:00", end="12:00", *, day=MONDAY, resource_id="hall-1", status=None, **kwargs) -> Booking:
    return Booking(
        owner_id="owner-1",
        resource_id=resource_id,
        interval=interval(start, end, day),
        customer=CustomerContact("Jane Citizen", "jane@example.com"),
        status=status,
        **kwargs,
    )


def priced_booking(deposit_spec: DepositSpec, source=BookingSource.ADMIN) -> Booking:
    normalized = normalize(Decimal("550"), TaxMode.INCLUSIVE, Decimal("0.10"), deposit_spec)
    return Booking.create(
        owner_id="owner-1",
        resource_id="hall-1",
        interval=interval("10:00", "12:00"),
        customer=CustomerContact("Jane Citizen", "jane@example.com"),
        source=source,
        price=normalized.price,
        deposit_spec=deposit_spec,
        deposit_amount=normalized.deposit_amount,
        balance_due=normalized.balance_due,
    )


def candidate(start: str, end: str, day: date = MONDAY, resource_id: str = "hall-1") -> ReservationCandidate:
    return ReservationCandidate("owner-1", resource_id, interval(start, end, day))


# ===== Entry state and lifecycle =====

@pytest.mark.parametrize(
    "source,expected",
    [
        (BookingSource.DIRECT, BookingStatus.PENDING),
        (BookingSource.ADMIN, BookingStatus.CONFIRMED),
        (BookingSource.QUOTATION, BookingStatus.CONFIRMED),
    ],
)
def test_entry_status_depends_on_source(source, expected) -> None:
    assert booking(source=source).status is expected


def test_create_emits_notification_and_deposit_link() -> None:
    created = priced_booking(DepositSpec.percentage(20))

    notify, link = created.events
    assert isinstance(notify, NotifyCustomer)
    assert notify.notification_type == "booking_confirmed"
    assert isinstance(link, CreatePaymentLink)
    assert link.amount == Decimal("110.00")
    assert link.reference == f"booking:{created.id}"
    assert created.confirmed_at is not None


def test_create_without_deposit_only_notifies() -> None:
    created = priced_booking(DepositSpec.none(), source=BookingSource.DIRECT)
    assert [event.notification_type for event in created.events] == ["booking_created"]


def test_confirm_cancel_complete() -> None:
    pending = booking()
    pending.confirm()
    assert pending.status is BookingStatus.CONFIRMED
    pending.complete()
    assert pending.status is BookingStatus.COMPLETED
    assert pending.is_terminal

    cancelled = booking()
    cancelled.cancel("Customer request")
    assert cancelled.status is BookingStatus.CANCELLED
    assert cancelled.cancellation_reason == "Customer request"
    assert cancelled.events[-1].notification_type == "booking_cancelled"


@pytest.mark.parametrize(
    "status,action",
    [
        (BookingStatus.PENDING, "complete"),
        (BookingStatus.CONFIRMED, "confirm"),
        (BookingStatus.CANCELLED, "confirm"),
        (BookingStatus.CANCELLED, "cancel"),
        (BookingStatus.COMPLETED, "cancel"),
    ],
)
def test_invalid_transitions(status, action) -> None:
    subject = booking(status=status)
    with pytest.raises(InvalidTransition):
        getattr(subject, action)()
    assert subject.status is status


@pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
def test_terminal_bookings_cannot_be_rescheduled(status) -> None:
    with pytest.raises(BookingTerminal):
        booking(status=status).reschedule("hall-2", interval("10:00", "12:00"))


# ===== Deposit =====

def test_deposit_payments_accumulate() -> None:
    subject = priced_booking(DepositSpec.percentage(20))
    subject.clear_events()

    subject.record_deposit_payment(Decimal("50"), reference="pay-1")

    assert subject.deposit_paid_amount == Decimal("50.00")
    assert subject.deposit_outstanding == Decimal("60.00")
    assert subject.events[0].notification_type == "deposit_received"


def test_deposit_overpayment_is_rejected() -> None:
    subject = priced_booking(DepositSpec.percentage(20))
    subject.record_deposit_payment(Decimal("50"))

    with pytest.raises(OverPayment):
        subject.record_deposit_payment(Decimal("70"))
    assert subject.deposit_paid_amount == Decimal("50.00")


def test_booking_without_deposit_refuses_payment() -> None:
    subject = priced_booking(DepositSpec.none())

    with pytest.raises(OverPayment):
        subject.record_deposit_payment(Decimal("5000"))
    assert subject.deposit_paid_amount == Decimal("0.00")


@pytest.mark.parametrize("amount", ["0", "-10"])
def test_non_positive_deposit_payment_is_rejected(amount) -> None:
    subject = priced_booking(DepositSpec.percentage(20))
    with pytest.raises(InvalidAmount):
        subject.record_deposit_payment(Decimal(amount))


def test_cancelled_booking_refuses_deposit() -> None:
    subject = priced_booking(DepositSpec.percentage(20))
    subject.cancel()
    with pytest.raises(InvalidTransition):
        subject.record_deposit_payment(Decimal("10"))


# ===== Conflicts =====

def test_overlapping_candidate_conflicts_with_active_booking() -> None:
    existing = booking("10:00", "12:00", status=BookingStatus.CONFIRMED)

    with pytest.raises(SlotUnavailable) as exc_info:
        check_conflict(candidate("11:00", "13:00"), [existing])

    assert exc_info.value.booking_id == existing.id
    assert exc_info.value.interval == existing.interval


@pytest.mark.parametrize(
    "start,end",
    [("12:00", "14:00"), ("08:00", "10:00"), ("13:00", "15:00")],
)
def test_adjacent_and_separate_intervals_do_not_conflict(start, end) -> None:
    existing = booking("10:00", "12:00", status=BookingStatus.CONFIRMED)
    assert find_conflict(candidate(start, end), [existing]) is None


def test_other_days_and_resources_do_not_conflict() -> None:
    existing = booking("10:00", "12:00", status=BookingStatus.CONFIRMED)
    assert find_conflict(candidate("10:00", "12:00", day=TUESDAY), [existing]) is None
    assert find_conflict(candidate("10:00", "12:00", resource_id="hall-2"), [existing]) is None


@pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
def test_terminal_bookings_do_not_block(status) -> None:
    existing = booking("10:00", "12:00", status=status)
    assert find_conflict(candidate("10:00", "12:00"), [existing]) is None


def test_edited_booking_is_excluded_from_its_own_check() -> None:
    existing = booking("10:00", "12:00", status=BookingStatus.CONFIRMED)
    assert find_conflict(candidate("11:00", "13:00"), [existing], exclude_booking_id=existing.id) is None


def test_first_conflict_in_supplied_order_is_reported() -> None:
    first = booking("09:00", "11:00", status=BookingStatus.PENDING)
    second = booking("11:00", "13:00", status=BookingStatus.CONFIRMED)

    conflict = find_conflict(candidate("10:00", "12:00"), [first, second])
    assert conflict.with_booking_id == first.id

    conflict = find_conflict(candidate("10:00", "12:00"), [second, first])
    assert conflict.with_booking_id == second.id


def test_validate_and_reserve_persists_only_free_slots() -> None:
    existing = booking("10:00", "12:00", status=BookingStatus.CONFIRMED)
    reads = []
    saved = []

    def read_active(owner_id, resource_id, day):
        reads.append((owner_id, resource_id, day))
        return [existing]

    new_id = uuid4()
    assert validate_and_reserve(candidate("12:00", "13:00"), read_active, lambda: saved.append(new_id) or new_id) == new_id
    assert saved == [new_id]
    assert reads == [("owner-1", "hall-1", MONDAY)]

    with pytest.raises(SlotUnavailable):
        validate_and_reserve(candidate("11:00", "13:00"), read_active, lambda: saved.append("never"))
    assert saved == [new_id]
