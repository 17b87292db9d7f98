"""
Quotation Command Handlers

Commands:
- CreateQuotationCommand: Create a draft quotation
- ReviseQuotationCommand: Change a draft's inputs
- SendQuotationCommand / ResendQuotationCommand: Email the quotation PDF
- AcceptQuotationCommand: Accept and create a confirmed booking
- DeclineQuotationCommand: Decline a sent quotation
- ExpireQuotationCommand: Expire a quotation whose validity has ended
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from apps.bookings.domain.conflicts import ReservationCandidate, validate_and_reserve
from apps.bookings.domain.entities import Booking, BookingSource
from apps.pricing.domain.normalizer import DepositSpec, TaxMode
from apps.quotations.domain.entities import Quotation
from shared.application.orchestrator import TransitionOrchestrator, TransitionResult, require
from shared.application.settings import VenueSettings
from shared.domain.value_objects import CustomerContact, TimeInterval

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateQuotationCommand:
    owner_id: str
    resource_id: str
    day: date
    start_time: str
    end_time: str
    customer_name: str
    customer_email: str
    quoted_amount: Decimal
    customer_phone: str = ''
    tax_mode: TaxMode = TaxMode.INCLUSIVE
    tax_rate: Optional[Decimal] = None
    deposit_spec: Optional[DepositSpec] = None
    valid_until: Optional[date] = None
    notes: str = ''
    actor_id: str = 'system'


@dataclass
class ReviseQuotationCommand:
    """
    Revise a draft

    changes may hold quoted_amount, tax_mode, tax_rate, deposit_spec,
    resource_id, valid_until, notes, and day/start_time/end_time.
    """
    quotation_id: UUID
    changes: Dict[str, Any] = field(default_factory=dict)
    actor_id: str = 'system'


@dataclass
class SendQuotationCommand:
    quotation_id: UUID
    actor_id: str = 'system'


@dataclass
class ResendQuotationCommand:
    quotation_id: UUID
    actor_id: str = 'system'


@dataclass
class AcceptQuotationCommand:
    quotation_id: UUID
    today: Optional[date] = None
    actor_id: str = 'system'


@dataclass
class DeclineQuotationCommand:
    quotation_id: UUID
    actor_id: str = 'system'


@dataclass
class ExpireQuotationCommand:
    quotation_id: UUID
    actor_id: str = 'system'


def _load_quotation(quotation_id):
    def load(uow):
        return require(uow.quotations.get(quotation_id, lock=True), 'Quotation', quotation_id)
    return load


def _save_quotation(uow, quotation):
    uow.quotations.save(quotation)


# ===== Command Handlers =====

class CreateQuotationHandler:
    def __init__(self, orchestrator: TransitionOrchestrator, settings: VenueSettings):
        self.orchestrator = orchestrator
        self.settings = settings

    def handle(self, command: CreateQuotationCommand) -> TransitionResult:
        logger.info(
            f"Creating quotation for resource {command.resource_id} on {command.day}, "
            f"amount {command.quoted_amount} ({command.tax_mode})"
        )
        interval = TimeInterval.from_clock(command.day, command.start_time, command.end_time)
        customer = CustomerContact(command.customer_name, command.customer_email, command.customer_phone)
        valid_until = command.valid_until or (
            date.today() + timedelta(days=self.settings.quotation_validity_days)
        )

        def build(uow):
            return Quotation(
                owner_id=command.owner_id,
                resource_id=command.resource_id,
                interval=interval,
                customer=customer,
                quoted_amount=command.quoted_amount,
                tax_mode=command.tax_mode,
                tax_rate=command.tax_rate if command.tax_rate is not None else self.settings.tax_rate,
                deposit_spec=command.deposit_spec or DepositSpec.none(),
                valid_until=valid_until,
                notes=command.notes,
            )

        result = self.orchestrator.create(
            'quotation.create',
            actor_id=command.actor_id,
            build=build,
            save=_save_quotation,
        )
        logger.info(f"Quotation created: {result.document.quotation_number} (ID: {result.document.id})")
        return result


class ReviseQuotationHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: ReviseQuotationCommand) -> TransitionResult:
        logger.info(f"Revising quotation {command.quotation_id}: {sorted(command.changes)}")

        def apply(quotation, uow):
            changes = dict(command.changes)
            day = changes.pop('day', None)
            start_time = changes.pop('start_time', None)
            end_time = changes.pop('end_time', None)
            if day or start_time or end_time:
                changes['interval'] = TimeInterval.from_clock(
                    day or quotation.interval.day,
                    start_time or quotation.interval.start_clock,
                    end_time or quotation.interval.end_clock,
                )
            quotation.revise(**changes)

        return self.orchestrator.execute(
            'quotation.revise',
            actor_id=command.actor_id,
            load=_load_quotation(command.quotation_id),
            apply=apply,
            save=_save_quotation,
        )


class SendQuotationHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: SendQuotationCommand) -> TransitionResult:
        logger.info(f"Sending quotation {command.quotation_id}")
        return self.orchestrator.execute(
            'quotation.send',
            actor_id=command.actor_id,
            load=_load_quotation(command.quotation_id),
            apply=lambda quotation, uow: quotation.send(),
            save=_save_quotation,
        )


class ResendQuotationHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: ResendQuotationCommand) -> TransitionResult:
        logger.info(f"Resending quotation {command.quotation_id}")
        return self.orchestrator.execute(
            'quotation.resend',
            actor_id=command.actor_id,
            load=_load_quotation(command.quotation_id),
            apply=lambda quotation, uow: quotation.resend(),
        )


class AcceptQuotationHandler:
    """
    Handler for accepting a quotation

    Strategy:
    1. Check the quotation is Sent and still valid
    2. Recompute the amounts from the stored inputs
    3. Read active bookings for (resource, day) with a lock and check conflicts
    4. Create a confirmed booking carrying the recomputed breakdown
    5. Mark the quotation Accepted and link the booking

    A conflict raises SlotUnavailable and the quotation stays Sent.
    """

    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: AcceptQuotationCommand) -> TransitionResult:
        logger.info(f"Accepting quotation {command.quotation_id}")
        today = command.today or date.today()

        def apply(quotation, uow):
            quotation.ensure_can_accept(today)
            normalized = quotation.recalculate()
            booking = Booking.create(
                owner_id=quotation.owner_id,
                resource_id=quotation.resource_id,
                interval=quotation.interval,
                customer=quotation.customer,
                source=BookingSource.QUOTATION,
                price=normalized.price,
                tax_rate=quotation.tax_rate,
                deposit_spec=quotation.deposit_spec,
                deposit_amount=normalized.deposit_amount,
                balance_due=normalized.balance_due,
                quotation_id=quotation.id,
                notes=quotation.notes,
            )
            validate_and_reserve(
                ReservationCandidate(quotation.owner_id, quotation.resource_id, quotation.interval),
                uow.bookings.list_active,
                lambda: uow.bookings.save(booking),
            )
            uow.collect_events(booking)
            quotation.accept(booking.id, today)
            logger.info(
                f"Quotation {quotation.quotation_number} converted to booking {booking.booking_number}"
            )

        return self.orchestrator.execute(
            'quotation.accept',
            actor_id=command.actor_id,
            load=_load_quotation(command.quotation_id),
            apply=apply,
            save=_save_quotation,
        )


class DeclineQuotationHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: DeclineQuotationCommand) -> TransitionResult:
        logger.info(f"Declining quotation {command.quotation_id}")
        return self.orchestrator.execute(
            'quotation.decline',
            actor_id=command.actor_id,
            load=_load_quotation(command.quotation_id),
            apply=lambda quotation, uow: quotation.decline(),
            save=_save_quotation,
        )


class ExpireQuotationHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: ExpireQuotationCommand) -> TransitionResult:
        logger.info(f"Expiring quotation {command.quotation_id}")
        return self.orchestrator.execute(
            'quotation.expire',
            actor_id=command.actor_id,
            load=_load_quotation(command.quotation_id),
            apply=lambda quotation, uow: quotation.expire(),
            save=_save_quotation,
        )
