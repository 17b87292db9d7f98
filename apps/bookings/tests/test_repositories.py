from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest
from django.db import transaction

from apps.bookings.domain.entities import Booking, BookingSource, BookingStatus
from apps.bookings.models import ReservationSlot
from apps.bookings.repositories import DjangoBookingRepository
from apps.pricing.domain.normalizer import DepositSpec, TaxMode, normalize
from shared.domain.value_objects import CustomerContact, TimeInterval

pytestmark = pytest.mark.django_db

MONDAY = date(2025, 3, 3)


def booking(start: str, end: str, **kwargs) -> Booking:
    return Booking(
        owner_id="owner-1",
        resource_id="hall-1",
        interval=TimeInterval.from_clock(MONDAY, start, end),
        customer=CustomerContact("Jane Citizen", "jane@example.com", "0400 000 000"),
        **kwargs,
    )


def test_round_trip_keeps_pricing_and_status() -> None:
    normalized = normalize(Decimal("550"), TaxMode.INCLUSIVE, Decimal("0.10"), DepositSpec.percentage(20))
    original = booking(
        "10:00",
        "14:00",
        source=BookingSource.ADMIN,
        price=normalized.price,
        deposit_spec=DepositSpec.percentage(20),
        deposit_amount=normalized.deposit_amount,
        balance_due=normalized.balance_due,
    )
    repository = DjangoBookingRepository()

    repository.save(original)
    loaded = repository.get(original.id)

    assert loaded.id == original.id
    assert loaded.booking_number == original.booking_number
    assert loaded.status is BookingStatus.CONFIRMED
    assert loaded.interval == original.interval
    assert loaded.price.gross == Decimal("550.00")
    assert loaded.deposit_spec == DepositSpec.percentage(20)
    assert loaded.deposit_amount == Decimal("110.00")
    assert loaded.customer.phone == "0400 000 000"
    assert repository.get(booking("10:00", "11:00").id) is None


def test_list_active_filters_and_orders() -> None:
    repository = DjangoBookingRepository()
    second = booking("08:00", "09:00", created_at=datetime(2025, 2, 2, 9, 0))
    first = booking("12:00", "13:00", status=BookingStatus.CONFIRMED, created_at=datetime(2025, 2, 1, 9, 0))
    cancelled = booking("10:00", "11:00", status=BookingStatus.CANCELLED)
    for item in (first, second, cancelled):
        repository.save(item)

    with transaction.atomic():
        active = repository.list_active("owner-1", "hall-1", MONDAY)

    assert [item.id for item in active] == [first.id, second.id]
    assert ReservationSlot.objects.filter(owner_id="owner-1", resource_id="hall-1", day=MONDAY).count() == 1
    assert repository.list_active("owner-1", "hall-2", MONDAY) == []


def test_saving_again_updates_in_place() -> None:
    repository = DjangoBookingRepository()
    item = booking("10:00", "12:00")
    repository.save(item)

    item.cancel("Duplicate")
    repository.save(item)

    loaded = repository.get(item.id)
    assert loaded.status is BookingStatus.CANCELLED
    assert loaded.cancellation_reason == "Duplicate"
