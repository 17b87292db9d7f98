"""
Booking Command Handlers

These are the use cases for the booking domain.
Each one runs through the TransitionOrchestrator, so guards, persistence
and side-effect dispatch happen in the same order everywhere.

Commands:
- CreateBookingCommand: Create a booking (direct or admin)
- ConfirmBookingCommand: Confirm a pending booking
- CancelBookingCommand: Cancel a booking
- CompleteBookingCommand: Complete a confirmed booking
- EditBookingCommand: Move a booking to another resource/day/time
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID
import logging

from apps.bookings.domain.conflicts import ReservationCandidate, check_conflict, validate_and_reserve
from apps.bookings.domain.entities import Booking, BookingSource
from apps.pricing.domain.normalizer import (
    DepositSpec,
    TaxMode,
    calculate_base_price,
    ensure_tax_rate,
    normalize,
)
from apps.pricing.domain.rates import RateResolver
from shared.application.orchestrator import TransitionOrchestrator, TransitionResult, require
from shared.application.settings import VenueSettings
from shared.domain.exceptions import RateNotFound
from shared.domain.value_objects import CustomerContact, TimeInterval

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    Direct bookings start pending; admin bookings start confirmed.
    estimated_price is used only when the resource has no rate card.
    """
    owner_id: str
    resource_id: str
    day: date
    start_time: str
    end_time: str
    customer_name: str
    customer_email: str
    customer_phone: str = ''
    source: BookingSource = BookingSource.DIRECT
    deposit_spec: Optional[DepositSpec] = None
    tax_rate: Optional[Decimal] = None
    estimated_price: Optional[Decimal] = None
    notes: str = ''
    actor_id: str = 'system'


@dataclass
class ConfirmBookingCommand:
    booking_id: UUID
    actor_id: str = 'system'


@dataclass
class CancelBookingCommand:
    booking_id: UUID
    reason: str = ''
    actor_id: str = 'system'


@dataclass
class CompleteBookingCommand:
    booking_id: UUID
    actor_id: str = 'system'


@dataclass
class EditBookingCommand:
    """Change resource, day or time; omitted fields keep their value"""
    booking_id: UUID
    resource_id: Optional[str] = None
    day: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    estimated_price: Optional[Decimal] = None
    actor_id: str = 'system'


# ===== Pricing =====

def price_interval(uow, owner_id, resource_id, interval, *, tax_rate, deposit_spec, estimated_price=None):
    """
    Price an interval from the resource's rate card

    Falls back to the caller's estimate when no rate card exists; without
    an estimate RateNotFound propagates. Amounts are tax-inclusive.
    """
    try:
        applied = RateResolver(uow.rates).resolve(owner_id, resource_id, interval.day)
        amount = calculate_base_price(applied, interval)
    except RateNotFound:
        if estimated_price is None:
            raise
        logger.warning(
            f"No rate card for resource {resource_id}, using estimated price {estimated_price}"
        )
        amount = estimated_price
    return normalize(amount, TaxMode.INCLUSIVE, tax_rate, deposit_spec)


def _load_booking(booking_id):
    def load(uow):
        return require(uow.bookings.get(booking_id, lock=True), 'Booking', booking_id)
    return load


def _save_booking(uow, booking):
    uow.bookings.save(booking)


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Strategy:
    1. Build the interval and price it (rate card or estimate)
    2. Inside the unit of work, read the active bookings for
       (resource, day) with a lock and check for conflicts
    3. Persist the booking in the same transaction
    4. Dispatch notification and deposit-link intents after commit
    """

    def __init__(self, orchestrator: TransitionOrchestrator, settings: VenueSettings):
        self.orchestrator = orchestrator
        self.settings = settings

    def handle(self, command: CreateBookingCommand) -> TransitionResult:
        logger.info(
            f"Creating booking for resource {command.resource_id} on {command.day} "
            f"{command.start_time}-{command.end_time}"
        )
        interval = TimeInterval.from_clock(command.day, command.start_time, command.end_time)
        customer = CustomerContact(command.customer_name, command.customer_email, command.customer_phone)
        deposit_spec = command.deposit_spec or DepositSpec.none()
        tax_rate = ensure_tax_rate(
            command.tax_rate if command.tax_rate is not None else self.settings.tax_rate
        )
        source = BookingSource(command.source)
        if source is BookingSource.QUOTATION:
            raise ValueError("Quotation bookings are created by accepting the quotation")

        def build(uow):
            normalized = price_interval(
                uow,
                command.owner_id,
                command.resource_id,
                interval,
                tax_rate=tax_rate,
                deposit_spec=deposit_spec,
                estimated_price=command.estimated_price,
            )
            booking = Booking.create(
                owner_id=command.owner_id,
                resource_id=command.resource_id,
                interval=interval,
                customer=customer,
                source=source,
                price=normalized.price,
                tax_rate=tax_rate,
                deposit_spec=deposit_spec,
                deposit_amount=normalized.deposit_amount,
                balance_due=normalized.balance_due,
                notes=command.notes,
            )
            validate_and_reserve(
                ReservationCandidate(command.owner_id, command.resource_id, interval),
                uow.bookings.list_active,
                lambda: uow.bookings.save(booking),
            )
            return booking

        result = self.orchestrator.create('booking.create', actor_id=command.actor_id, build=build)
        logger.info(
            f"Booking created successfully: {result.document.booking_number} "
            f"(ID: {result.document.id})"
        )
        return result


class ConfirmBookingHandler:
    """Confirm a pending booking after re-checking its slot"""

    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: ConfirmBookingCommand) -> TransitionResult:
        logger.info(f"Confirming booking {command.booking_id}")

        def apply(booking, uow):
            active = uow.bookings.list_active(booking.owner_id, booking.resource_id, booking.interval.day)
            check_conflict(
                ReservationCandidate(booking.owner_id, booking.resource_id, booking.interval),
                active,
                exclude_booking_id=booking.id,
            )
            booking.confirm()

        result = self.orchestrator.execute(
            'booking.confirm',
            actor_id=command.actor_id,
            load=_load_booking(command.booking_id),
            apply=apply,
            save=_save_booking,
        )
        logger.info(f"Booking {result.document.booking_number} confirmed successfully")
        return result


class CancelBookingHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: CancelBookingCommand) -> TransitionResult:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")
        result = self.orchestrator.execute(
            'booking.cancel',
            actor_id=command.actor_id,
            load=_load_booking(command.booking_id),
            apply=lambda booking, uow: booking.cancel(command.reason),
            save=_save_booking,
        )
        logger.info(f"Booking {result.document.booking_number} cancelled successfully")
        return result


class CompleteBookingHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: CompleteBookingCommand) -> TransitionResult:
        logger.info(f"Completing booking {command.booking_id}")
        result = self.orchestrator.execute(
            'booking.complete',
            actor_id=command.actor_id,
            load=_load_booking(command.booking_id),
            apply=lambda booking, uow: booking.complete(),
            save=_save_booking,
        )
        logger.info(f"Booking {result.document.booking_number} completed successfully")
        return result


class EditBookingHandler:
    """
    Handler for editing core fields of a booking

    Re-runs the conflict check (excluding the booking itself) and
    recomputes the price for the new resource/interval. Terminal
    bookings are rejected with BookingTerminal.
    """

    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: EditBookingCommand) -> TransitionResult:
        logger.info(f"Editing booking {command.booking_id}")

        def apply(booking, uow):
            booking.ensure_editable()
            resource_id = command.resource_id or booking.resource_id
            interval = TimeInterval.from_clock(
                command.day or booking.interval.day,
                command.start_time or booking.interval.start_clock,
                command.end_time or booking.interval.end_clock,
            )
            active = uow.bookings.list_active(booking.owner_id, resource_id, interval.day)
            check_conflict(
                ReservationCandidate(booking.owner_id, resource_id, interval),
                active,
                exclude_booking_id=booking.id,
            )
            estimate = command.estimated_price
            if estimate is None and booking.price is not None:
                estimate = booking.price.gross
            normalized = price_interval(
                uow,
                booking.owner_id,
                resource_id,
                interval,
                tax_rate=booking.tax_rate,
                deposit_spec=booking.deposit_spec,
                estimated_price=estimate,
            )
            booking.reschedule(resource_id, interval)
            booking.apply_pricing(normalized, booking.deposit_spec, booking.tax_rate)

        result = self.orchestrator.execute(
            'booking.edit',
            actor_id=command.actor_id,
            load=_load_booking(command.booking_id),
            apply=apply,
            save=_save_booking,
        )
        logger.info(f"Booking {result.document.booking_number} updated successfully")
        return result
