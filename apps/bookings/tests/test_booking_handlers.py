"""Booking use cases run through the orchestrator over the in-memory store."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CompleteBookingCommand,
    CompleteBookingHandler,
    ConfirmBookingCommand,
    ConfirmBookingHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    EditBookingCommand,
    EditBookingHandler,
)
from apps.bookings.domain.entities import Booking, BookingSource, BookingStatus
from apps.pricing.domain.normalizer import DepositSpec
from apps.pricing.domain.rates import BillingMode
from shared.domain.exceptions import BookingTerminal, InvalidTransition, RateNotFound, SlotUnavailable
from shared.domain.value_objects import CustomerContact, TimeInterval
from shared.infrastructure.memory import InMemoryBookingRepository

MONDAY = date(2025, 3, 3)
SATURDAY = date(2025, 3, 1)


def test_direct_booking_starts_pending(create_booking, store, notifier) -> None:
    created = create_booking()

    assert created.status is BookingStatus.PENDING
    assert created.source is BookingSource.DIRECT
    assert store.bookings[created.id].status is BookingStatus.PENDING
    assert notifier.kinds() == ["booking_created"]


def test_admin_booking_starts_confirmed_and_requests_deposit(confirmed_booking, gateway, notifier) -> None:
    assert confirmed_booking.status is BookingStatus.CONFIRMED
    assert confirmed_booking.price.gross == Decimal("550.00")
    assert confirmed_booking.deposit_amount == Decimal("110.00")
    assert confirmed_booking.balance_due == Decimal("440.00")
    assert notifier.kinds() == ["booking_confirmed"]
    assert gateway.links == [
        {
            "amount": Decimal("110.00"),
            "reference": f"booking:{confirmed_booking.id}",
            "metadata": {
                "booking_number": confirmed_booking.booking_number,
                "kind": "deposit",
                "customer_email": "jane@example.com",
            },
        }
    ]


def test_rate_card_takes_precedence_over_estimate(create_booking, add_rate) -> None:
    add_rate(billing_mode=BillingMode.HOURLY, weekday="50", weekend="75")

    weekday = create_booking("10:00", "14:00")
    weekend = create_booking("10:00", "14:00", day=SATURDAY)

    assert weekday.price.gross == Decimal("200.00")
    assert weekday.price.net == Decimal("181.82")
    assert weekend.price.gross == Decimal("300.00")


def test_missing_rate_without_estimate_fails(create_booking, store) -> None:
    with pytest.raises(RateNotFound):
        create_booking(estimated_price=None)
    assert store.bookings == {}


def test_quotation_source_is_rejected(orchestrator, venue_settings) -> None:
    command = CreateBookingCommand(
        owner_id="owner-1",
        resource_id="hall-1",
        day=MONDAY,
        start_time="10:00",
        end_time="12:00",
        customer_name="Jane Citizen",
        customer_email="jane@example.com",
        source=BookingSource.QUOTATION,
        estimated_price=Decimal("100"),
    )
    with pytest.raises(ValueError):
        CreateBookingHandler(orchestrator, venue_settings).handle(command)


def test_overlap_is_rejected_and_adjacent_slot_accepted(create_booking, store) -> None:
    first = create_booking("10:00", "12:00")

    with pytest.raises(SlotUnavailable) as exc_info:
        create_booking("11:00", "13:00")
    assert exc_info.value.booking_id == first.id

    second = create_booking("12:00", "14:00")
    assert set(store.bookings) == {first.id, second.id}


def test_other_resource_is_independent(create_booking) -> None:
    create_booking("10:00", "12:00")
    other = create_booking("10:00", "12:00", resource_id="hall-2")
    assert other.resource_id == "hall-2"


def test_confirm_rechecks_conflicts(create_booking, orchestrator, store) -> None:
    pending = create_booking("10:00", "12:00")
    # A booking that reached the store without passing through the handler
    intruder = Booking(
        owner_id="owner-1",
        resource_id="hall-1",
        interval=TimeInterval.from_clock(MONDAY, "11:00", "13:00"),
        customer=CustomerContact("John Smith", "john@example.com"),
        source=BookingSource.ADMIN,
    )
    InMemoryBookingRepository(store).save(intruder)

    with pytest.raises(SlotUnavailable) as exc_info:
        ConfirmBookingHandler(orchestrator).handle(ConfirmBookingCommand(booking_id=pending.id))

    assert exc_info.value.booking_id == intruder.id
    assert store.bookings[pending.id].status is BookingStatus.PENDING


def test_confirm_pending_booking(create_booking, orchestrator, notifier, audit_log) -> None:
    pending = create_booking()

    result = ConfirmBookingHandler(orchestrator).handle(ConfirmBookingCommand(booking_id=pending.id))

    assert result.document.status is BookingStatus.CONFIRMED
    assert notifier.kinds() == ["booking_created", "booking_confirmed"]
    confirm_entry = audit_log.entries[-1]
    assert confirm_entry["action"] == "booking.confirm"
    assert confirm_entry["before"]["status"] == "pending"
    assert confirm_entry["after"]["status"] == "confirmed"


def test_cancel_frees_the_slot(create_booking, orchestrator, store) -> None:
    first = create_booking("10:00", "12:00")

    CancelBookingHandler(orchestrator).handle(CancelBookingCommand(booking_id=first.id, reason="Rain"))
    replacement = create_booking("10:00", "12:00")

    assert store.bookings[first.id].status is BookingStatus.CANCELLED
    assert store.bookings[first.id].cancellation_reason == "Rain"
    assert replacement.status is BookingStatus.PENDING


def test_complete_requires_confirmation(create_booking, confirmed_booking, orchestrator) -> None:
    pending = create_booking("14:00", "16:00")
    handler = CompleteBookingHandler(orchestrator)

    with pytest.raises(InvalidTransition):
        handler.handle(CompleteBookingCommand(booking_id=pending.id))

    result = handler.handle(CompleteBookingCommand(booking_id=confirmed_booking.id))
    assert result.document.status is BookingStatus.COMPLETED


def test_edit_moves_and_reprices(create_booking, orchestrator, add_rate, store) -> None:
    add_rate(billing_mode=BillingMode.HOURLY, weekday="50", weekend="75")
    created = create_booking("10:00", "12:00", deposit_spec=DepositSpec.percentage(50))
    assert created.price.gross == Decimal("100.00")

    result = EditBookingHandler(orchestrator).handle(
        EditBookingCommand(booking_id=created.id, end_time="14:00")
    )

    edited = result.document
    assert edited.interval == TimeInterval.from_clock(MONDAY, "10:00", "14:00")
    assert edited.price.gross == Decimal("200.00")
    assert edited.deposit_amount == Decimal("100.00")
    assert edited.balance_due == Decimal("100.00")
    assert store.bookings[created.id].price.gross == Decimal("200.00")


def test_edit_keeps_estimate_when_no_rate_card(create_booking, orchestrator) -> None:
    created = create_booking("10:00", "12:00", estimated_price=Decimal("330"))

    edited = EditBookingHandler(orchestrator).handle(
        EditBookingCommand(booking_id=created.id, start_time="09:00")
    ).document

    assert edited.interval.start_clock == "09:00"
    assert edited.price.gross == Decimal("330.00")


def test_edit_into_occupied_slot_is_rejected(create_booking, orchestrator, store) -> None:
    moving = create_booking("10:00", "12:00")
    blocker = create_booking("13:00", "15:00")

    with pytest.raises(SlotUnavailable) as exc_info:
        EditBookingHandler(orchestrator).handle(
            EditBookingCommand(booking_id=moving.id, start_time="12:00", end_time="14:00")
        )

    assert exc_info.value.booking_id == blocker.id
    assert store.bookings[moving.id].interval.start_clock == "10:00"


def test_edit_overlapping_only_itself_is_allowed(create_booking, orchestrator) -> None:
    moving = create_booking("10:00", "12:00")

    edited = EditBookingHandler(orchestrator).handle(
        EditBookingCommand(booking_id=moving.id, start_time="11:00", end_time="13:00")
    ).document

    assert edited.interval.start_clock == "11:00"


@pytest.mark.parametrize("terminal_action", ["cancel", "complete"])
def test_terminal_bookings_cannot_be_edited(confirmed_booking, orchestrator, terminal_action) -> None:
    if terminal_action == "cancel":
        CancelBookingHandler(orchestrator).handle(CancelBookingCommand(booking_id=confirmed_booking.id))
    else:
        CompleteBookingHandler(orchestrator).handle(CompleteBookingCommand(booking_id=confirmed_booking.id))

    with pytest.raises(BookingTerminal):
        EditBookingHandler(orchestrator).handle(
            EditBookingCommand(booking_id=confirmed_booking.id, start_time="09:00")
        )
