"""ORM-backed booking repository."""

from __future__ import annotations

from apps.bookings.domain.entities import ACTIVE_STATUSES, Booking
from apps.bookings.models import Booking as BookingModel
from apps.bookings.services import lock_queryset_if_possible, lock_reservation_slot
from apps.pricing.domain.normalizer import DepositSpec, PriceBreakdown
from shared.application.ports import BookingRepository
from shared.domain.value_objects import CustomerContact, TimeInterval


def booking_to_domain(record: BookingModel) -> Booking:
    price = None
    if record.gross_amount is not None:
        price = PriceBreakdown(net=record.net_amount, tax=record.tax_amount, gross=record.gross_amount)

    return Booking(
        id=record.id,
        booking_number=record.booking_number,
        owner_id=record.owner_id,
        resource_id=record.resource_id,
        interval=TimeInterval(record.day, record.start_minute, record.end_minute),
        customer=CustomerContact(record.customer_name, record.customer_email, record.customer_phone),
        source=record.source,
        status=record.status,
        price=price,
        tax_rate=record.tax_rate,
        deposit_spec=DepositSpec.from_legacy(record.deposit_type, record.deposit_value),
        deposit_amount=record.deposit_amount,
        balance_due=record.balance_due,
        deposit_paid_amount=record.deposit_paid_amount,
        quotation_id=record.quotation_id,
        notes=record.notes,
        cancellation_reason=record.cancellation_reason,
        confirmed_at=record.confirmed_at,
        cancelled_at=record.cancelled_at,
        completed_at=record.completed_at,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class DjangoBookingRepository(BookingRepository):
    def get(self, booking_id, lock: bool = False):
        queryset = BookingModel.objects.filter(pk=booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        record = queryset.first()
        return booking_to_domain(record) if record else None

    def list_active(self, owner_id, resource_id, day, lock: bool = True):
        if lock:
            lock_reservation_slot(owner_id, resource_id, day)

        queryset = BookingModel.objects.filter(
            owner_id=owner_id,
            resource_id=resource_id,
            day=day,
            status__in=[status.value for status in ACTIVE_STATUSES],
        ).order_by("created_at", "id")
        return [booking_to_domain(record) for record in queryset]

    def save(self, booking: Booking):
        price = booking.price
        BookingModel.objects.update_or_create(
            pk=booking.id,
            defaults={
                "booking_number": booking.booking_number,
                "owner_id": booking.owner_id,
                "resource_id": booking.resource_id,
                "day": booking.interval.day,
                "start_minute": booking.interval.start,
                "end_minute": booking.interval.end,
                "source": booking.source.value,
                "status": booking.status.value,
                "customer_name": booking.customer.name,
                "customer_email": booking.customer.email,
                "customer_phone": booking.customer.phone,
                "net_amount": price.net if price else None,
                "tax_amount": price.tax if price else None,
                "gross_amount": price.gross if price else None,
                "tax_rate": booking.tax_rate,
                "deposit_type": booking.deposit_spec.type.value,
                "deposit_value": booking.deposit_spec.value,
                "deposit_amount": booking.deposit_amount,
                "balance_due": booking.balance_due,
                "deposit_paid_amount": booking.deposit_paid_amount,
                "quotation_id": booking.quotation_id,
                "notes": booking.notes,
                "cancellation_reason": booking.cancellation_reason,
                "confirmed_at": booking.confirmed_at,
                "cancelled_at": booking.cancelled_at,
                "completed_at": booking.completed_at,
                "created_at": booking.created_at,
                "updated_at": booking.updated_at,
            },
        )
        return booking.id
