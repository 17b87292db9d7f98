"""
Booking Domain Entities

Core business entities for the booking domain:
- Booking: Aggregate representing a reservation of one resource
- BookingStatus: FSM states for the booking lifecycle
- BookingSource: Where the booking came from (decides the entry state)
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from apps.pricing.domain.normalizer import (
    DEFAULT_TAX_RATE,
    ZERO,
    DepositSpec,
    NormalizedPrice,
    PriceBreakdown,
    ensure_amount,
    round_money,
)
from shared.domain.base import Aggregate
from shared.domain.exceptions import BookingTerminal, InvalidAmount, InvalidTransition, OverPayment
from shared.domain.intents import CreatePaymentLink, NotifyCustomer
from shared.domain.value_objects import CustomerContact, TimeInterval


class BookingStatus(str, Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (operator confirmed a direct booking)
    - PENDING -> CANCELLED
    - CONFIRMED -> CANCELLED
    - CONFIRMED -> COMPLETED (event took place)
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


class BookingSource(str, Enum):
    DIRECT = 'direct'
    ADMIN = 'admin'
    QUOTATION = 'quotation'


class BookingEvent(str, Enum):
    CONFIRM = 'confirm'
    CANCEL = 'cancel'
    COMPLETE = 'complete'


TRANSITIONS = {
    (BookingStatus.PENDING, BookingEvent.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING, BookingEvent.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.COMPLETE): BookingStatus.COMPLETED,
}

ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


def generate_booking_number() -> str:
    """Generate unique booking number: BK{timestamp}{random}"""
    timestamp = datetime.now().strftime('%Y%m%d%H%M%S')
    random_part = uuid4().hex[:6].upper()
    return f"BK{timestamp}{random_part}"


def entry_status(source: BookingSource) -> BookingStatus:
    """Direct bookings wait for the operator; admin and quotation bookings start confirmed"""
    if BookingSource(source) is BookingSource.DIRECT:
        return BookingStatus.PENDING
    return BookingStatus.CONFIRMED


@dataclass(eq=False, kw_only=True)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    A reservation of one resource for an interval on one day.

    Key invariants:
    - Only pending/confirmed bookings block their interval
    - deposit_amount + balance_due == price.gross when priced
    - Cancelled and completed bookings are never modified again
    - Bookings are never deleted; cancellation is a status
    """

    owner_id: str
    resource_id: str
    interval: TimeInterval
    customer: CustomerContact
    source: BookingSource = BookingSource.DIRECT
    status: Optional[BookingStatus] = None
    booking_number: str = field(default_factory=generate_booking_number)

    # Pricing (tax-inclusive amounts)
    price: Optional[PriceBreakdown] = None
    tax_rate: Decimal = DEFAULT_TAX_RATE
    deposit_spec: DepositSpec = field(default_factory=DepositSpec.none)
    deposit_amount: Decimal = ZERO
    balance_due: Decimal = ZERO
    deposit_paid_amount: Decimal = ZERO

    quotation_id: Optional[UUID] = None
    notes: str = ''
    cancellation_reason: str = ''

    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        self.source = BookingSource(self.source)
        if self.status is None:
            self.status = entry_status(self.source)
        else:
            self.status = BookingStatus(self.status)

    @classmethod
    def create(cls, **kwargs) -> 'Booking':
        """
        Create a new booking and emit its creation intents

        Events: NotifyCustomer, CreatePaymentLink (when a deposit is due)
        """
        booking = cls(**kwargs)
        if booking.status is BookingStatus.CONFIRMED:
            booking.confirmed_at = datetime.now()
        booking._notify('booking_confirmed' if booking.status is BookingStatus.CONFIRMED else 'booking_created')
        booking._request_deposit_link()
        return booking

    # ===== State machine =====

    def _transition(self, event: BookingEvent) -> BookingStatus:
        target = TRANSITIONS.get((self.status, event))
        if target is None:
            raise InvalidTransition('Booking', self.status.value, event.value)
        self.status = target
        self.touch()
        return target

    def confirm(self):
        """
        Confirm booking (PENDING -> CONFIRMED)

        The caller re-runs the conflict check before confirming.
        Events: NotifyCustomer
        """
        self._transition(BookingEvent.CONFIRM)
        self.confirmed_at = datetime.now()
        self._notify('booking_confirmed')

    def cancel(self, reason: str = ''):
        """
        Cancel booking (PENDING|CONFIRMED -> CANCELLED)

        Frees the interval; the record is kept.
        Events: NotifyCustomer
        """
        self._transition(BookingEvent.CANCEL)
        self.cancellation_reason = reason
        self.cancelled_at = datetime.now()
        self._notify('booking_cancelled', reason=reason)

    def complete(self):
        """Complete booking (CONFIRMED -> COMPLETED)"""
        self._transition(BookingEvent.COMPLETE)
        self.completed_at = datetime.now()

    # ===== Edits =====

    def ensure_editable(self):
        if self.is_terminal:
            raise BookingTerminal(self.status.value)

    def reschedule(self, resource_id: str, interval: TimeInterval):
        """Move to another resource or interval; conflicts are checked by the caller"""
        self.ensure_editable()
        self.resource_id = resource_id
        self.interval = interval
        self.touch()

    def apply_pricing(self, normalized: NormalizedPrice, deposit_spec: DepositSpec, tax_rate: Decimal):
        self.ensure_editable()
        self.price = normalized.price
        self.tax_rate = tax_rate
        self.deposit_spec = deposit_spec
        self.deposit_amount = normalized.deposit_amount
        self.balance_due = normalized.balance_due
        self.touch()

    def record_deposit_payment(self, amount, reference: str = ''):
        """
        Record money received against the deposit

        Events: NotifyCustomer (deduplicated per payment reference)
        """
        if self.status is BookingStatus.CANCELLED:
            raise InvalidTransition('Booking', self.status.value, 'record_deposit_payment')
        amount = round_money(ensure_amount(amount))
        if amount <= 0:
            raise InvalidAmount("Payment amount must be greater than zero", amount=amount)
        outstanding = self.deposit_outstanding
        if amount > outstanding:
            raise OverPayment(amount, outstanding)

        self.deposit_paid_amount = round_money(self.deposit_paid_amount + amount)
        self.touch()
        self._notify(
            'deposit_received',
            amount=str(amount),
            dedupe_key=f"{self.customer.email}:deposit_received:{self.id}:{reference or self.deposit_paid_amount}",
        )

    # ===== Queries =====

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def gross(self) -> Optional[Decimal]:
        return self.price.gross if self.price else None

    @property
    def deposit_outstanding(self) -> Decimal:
        return max(ZERO, round_money(self.deposit_amount - self.deposit_paid_amount))

    @property
    def payment_reference(self) -> str:
        return f"booking:{self.id}"

    def snapshot(self) -> Dict[str, Any]:
        return {
            'type': 'booking',
            'id': str(self.id),
            'number': self.booking_number,
            'owner_id': self.owner_id,
            'resource_id': self.resource_id,
            'date': self.interval.day.isoformat(),
            'start': self.interval.start_clock,
            'end': self.interval.end_clock,
            'status': self.status.value,
            'source': self.source.value,
            'customer': {
                'name': self.customer.name,
                'email': self.customer.email,
                'phone': self.customer.phone,
            },
            'price': self.price.to_dict() if self.price else None,
            'tax_rate': str(self.tax_rate),
            'deposit_spec': self.deposit_spec.to_dict(),
            'deposit_amount': str(self.deposit_amount),
            'balance_due': str(self.balance_due),
            'deposit_paid_amount': str(self.deposit_paid_amount),
            'quotation_id': str(self.quotation_id) if self.quotation_id else None,
        }

    # ===== Intents =====

    def _notify(self, notification_type: str, dedupe_key: str = '', **extra):
        payload = self.snapshot()
        payload.update(extra)
        self.add_event(NotifyCustomer(
            aggregate_id=self.id,
            document_type='booking',
            document_id=self.id,
            notification_type=notification_type,
            recipient=self.customer.email,
            payload=payload,
            dedupe_key=dedupe_key,
        ))

    def _request_deposit_link(self):
        if self.deposit_outstanding <= 0:
            return
        self.add_event(CreatePaymentLink(
            aggregate_id=self.id,
            document_type='booking',
            document_id=self.id,
            amount=self.deposit_outstanding,
            reference=self.payment_reference,
            metadata={
                'booking_number': self.booking_number,
                'kind': 'deposit',
                'customer_email': self.customer.email,
            },
        ))

    def __str__(self):
        return f"Booking {self.booking_number} ({self.status.value})"
