"""
Quotation Domain Entities

- Quotation: Aggregate for a priced offer on a resource and interval
- QuotationStatus: FSM states (Draft, Sent, Accepted, Declined, Expired)
"""

from dataclasses import dataclass, field
from datetime import date, datetime
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
    TaxMode,
    ensure_amount,
    ensure_tax_rate,
    normalize,
)
from shared.domain.base import Aggregate
from shared.domain.exceptions import InvalidTransition
from shared.domain.intents import GeneratePDFAndEmail
from shared.domain.value_objects import CustomerContact, TimeInterval


class QuotationStatus(str, Enum):
    """
    Quotation Status Finite State Machine

    State transitions:
    - Draft -> Sent (operator sends it to the customer)
    - Sent -> Accepted (creates a confirmed booking)
    - Sent -> Declined
    - Draft|Sent -> Expired (validity ended)
    """
    DRAFT = 'Draft'
    SENT = 'Sent'
    ACCEPTED = 'Accepted'
    DECLINED = 'Declined'
    EXPIRED = 'Expired'


class QuotationEvent(str, Enum):
    SEND = 'send'
    ACCEPT = 'accept'
    DECLINE = 'decline'
    EXPIRE = 'expire'


TRANSITIONS = {
    (QuotationStatus.DRAFT, QuotationEvent.SEND): QuotationStatus.SENT,
    (QuotationStatus.SENT, QuotationEvent.ACCEPT): QuotationStatus.ACCEPTED,
    (QuotationStatus.SENT, QuotationEvent.DECLINE): QuotationStatus.DECLINED,
    (QuotationStatus.DRAFT, QuotationEvent.EXPIRE): QuotationStatus.EXPIRED,
    (QuotationStatus.SENT, QuotationEvent.EXPIRE): QuotationStatus.EXPIRED,
}

TERMINAL_STATUSES = frozenset({
    QuotationStatus.ACCEPTED,
    QuotationStatus.DECLINED,
    QuotationStatus.EXPIRED,
})

REVISABLE_FIELDS = frozenset({
    'resource_id',
    'interval',
    'customer',
    'quoted_amount',
    'tax_mode',
    'tax_rate',
    'deposit_spec',
    'valid_until',
    'notes',
})


def generate_quotation_number() -> str:
    return f"QUO-{datetime.now():%Y%m%d}-{uuid4().hex[:6].upper()}"


@dataclass(eq=False, kw_only=True)
class Quotation(Aggregate):
    """
    Quotation Aggregate Root

    Stores the operator's inputs (quoted amount, tax mode and rate, deposit
    spec) plus a cached breakdown. The breakdown is recomputed from the
    inputs whenever they change and again on acceptance.
    """

    owner_id: str
    resource_id: str
    interval: TimeInterval
    customer: CustomerContact
    quoted_amount: Decimal
    tax_mode: TaxMode = TaxMode.INCLUSIVE
    tax_rate: Decimal = DEFAULT_TAX_RATE
    deposit_spec: DepositSpec = field(default_factory=DepositSpec.none)
    status: QuotationStatus = QuotationStatus.DRAFT
    quotation_number: str = field(default_factory=generate_quotation_number)

    # Cached breakdown
    price: Optional[PriceBreakdown] = None
    deposit_amount: Decimal = ZERO
    final_amount: Decimal = ZERO

    valid_until: Optional[date] = None
    booking_id: Optional[UUID] = None
    notes: str = ''

    sent_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = QuotationStatus(self.status)
        self.tax_mode = TaxMode(self.tax_mode)
        self.quoted_amount = ensure_amount(self.quoted_amount, field='quoted_amount')
        self.tax_rate = ensure_tax_rate(self.tax_rate)
        if self.price is None:
            self.recalculate()

    def recalculate(self) -> NormalizedPrice:
        """Recompute the cached breakdown from the stored inputs"""
        normalized = normalize(self.quoted_amount, self.tax_mode, self.tax_rate, self.deposit_spec)
        self.price = normalized.price
        self.deposit_amount = normalized.deposit_amount
        self.final_amount = normalized.balance_due
        return normalized

    @property
    def gross_amount(self) -> Decimal:
        return self.price.gross

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_expired_on(self, today: date) -> bool:
        return self.valid_until is not None and today > self.valid_until

    # ===== State machine =====

    def _transition(self, event: QuotationEvent, reason: str = '') -> QuotationStatus:
        target = TRANSITIONS.get((self.status, event))
        if target is None:
            raise InvalidTransition('Quotation', self.status.value, event.value, reason)
        self.status = target
        self.touch()
        return target

    def revise(self, **changes):
        """Change inputs of a draft quotation and recompute its amounts"""
        if self.status is not QuotationStatus.DRAFT:
            raise InvalidTransition('Quotation', self.status.value, 'revise', 'only drafts can be revised')
        unknown = set(changes) - REVISABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot revise fields: {', '.join(sorted(unknown))}")

        if 'quoted_amount' in changes:
            changes['quoted_amount'] = ensure_amount(changes['quoted_amount'], field='quoted_amount')
        if 'tax_mode' in changes:
            changes['tax_mode'] = TaxMode(changes['tax_mode'])
        if 'tax_rate' in changes:
            changes['tax_rate'] = ensure_tax_rate(changes['tax_rate'])

        for name, value in changes.items():
            setattr(self, name, value)
        self.recalculate()
        self.touch()

    def send(self):
        """
        Send quotation (Draft -> Sent)

        Events: GeneratePDFAndEmail
        """
        self._transition(QuotationEvent.SEND)
        self.sent_at = datetime.now()
        self._request_document()

    def resend(self):
        """Re-emit the document email for a sent quotation; no state change"""
        if self.status is not QuotationStatus.SENT:
            raise InvalidTransition('Quotation', self.status.value, 'resend')
        self._request_document()

    def ensure_can_accept(self, today: date):
        if self.status is not QuotationStatus.SENT:
            raise InvalidTransition('Quotation', self.status.value, QuotationEvent.ACCEPT.value)
        if self.is_expired_on(today):
            raise InvalidTransition(
                'Quotation',
                self.status.value,
                QuotationEvent.ACCEPT.value,
                f"quotation expired on {self.valid_until.isoformat()}",
            )

    def accept(self, booking_id: UUID, today: date):
        """
        Accept quotation (Sent -> Accepted)

        The caller has already created the booking after a conflict check.
        """
        self.ensure_can_accept(today)
        self._transition(QuotationEvent.ACCEPT)
        self.booking_id = booking_id
        self.accepted_at = datetime.now()

    def decline(self):
        self._transition(QuotationEvent.DECLINE)
        self.declined_at = datetime.now()

    def expire(self):
        self._transition(QuotationEvent.EXPIRE)
        self.expired_at = datetime.now()

    def snapshot(self) -> Dict[str, Any]:
        return {
            'type': 'quotation',
            'id': str(self.id),
            'number': self.quotation_number,
            'owner_id': self.owner_id,
            'resource_id': self.resource_id,
            'date': self.interval.day.isoformat(),
            'start': self.interval.start_clock,
            'end': self.interval.end_clock,
            'status': self.status.value,
            'customer': {
                'name': self.customer.name,
                'email': self.customer.email,
                'phone': self.customer.phone,
            },
            'quoted_amount': str(self.quoted_amount),
            'tax_mode': self.tax_mode.value,
            'tax_rate': str(self.tax_rate),
            'price': self.price.to_dict(),
            'deposit_spec': self.deposit_spec.to_dict(),
            'deposit_amount': str(self.deposit_amount),
            'final_amount': str(self.final_amount),
            'valid_until': self.valid_until.isoformat() if self.valid_until else None,
            'booking_id': str(self.booking_id) if self.booking_id else None,
            'notes': self.notes,
        }

    def _request_document(self):
        self.add_event(GeneratePDFAndEmail(
            aggregate_id=self.id,
            document_type='quotation',
            document_id=self.id,
            template='quotation',
            recipient=self.customer.email,
            snapshot=self.snapshot(),
        ))

    def __str__(self):
        return f"Quotation {self.quotation_number} ({self.status.value})"
