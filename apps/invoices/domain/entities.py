"""
Invoice Domain Entities

- Invoice: Aggregate billing a booking (deposit, final, bond, add-ons)
- InvoiceStatus: FSM states; payment states are derived from the ledger
- Payment: Append-only ledger entry
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from apps.pricing.domain.normalizer import (
    ZERO,
    TaxMode,
    ensure_amount,
    round_money,
    split_tax,
)
from shared.domain.base import Aggregate, ValueObject
from shared.domain.exceptions import InvalidAmount, InvalidTransition, OverPayment
from shared.domain.intents import CreatePaymentLink, GeneratePDFAndEmail, NotifyCustomer
from shared.domain.value_objects import CustomerContact


class InvoiceKind(str, Enum):
    DEPOSIT = 'DEPOSIT'
    FINAL = 'FINAL'
    BOND = 'BOND'
    ADD_ONS = 'ADD-ONS'


class InvoiceStatus(str, Enum):
    """
    Invoice Status Finite State Machine

    State transitions:
    - DRAFT -> SENT
    - SENT|PARTIAL|OVERDUE -> PARTIAL|PAID (derived from paid amount)
    - SENT -> OVERDUE (due date passed, nothing paid)
    - DRAFT|SENT|PARTIAL|OVERDUE -> VOID
    - PAID -> REFUNDED
    """
    DRAFT = 'DRAFT'
    SENT = 'SENT'
    PARTIAL = 'PARTIAL'
    PAID = 'PAID'
    OVERDUE = 'OVERDUE'
    VOID = 'VOID'
    REFUNDED = 'REFUNDED'


class InvoiceEvent(str, Enum):
    SEND = 'send'
    MARK_OVERDUE = 'mark_overdue'
    VOID = 'void'
    REFUND = 'refund'
    SETTLE = 'settle'


TRANSITIONS = {
    (InvoiceStatus.DRAFT, InvoiceEvent.SEND): InvoiceStatus.SENT,
    (InvoiceStatus.SENT, InvoiceEvent.MARK_OVERDUE): InvoiceStatus.OVERDUE,
    (InvoiceStatus.DRAFT, InvoiceEvent.VOID): InvoiceStatus.VOID,
    (InvoiceStatus.SENT, InvoiceEvent.VOID): InvoiceStatus.VOID,
    (InvoiceStatus.PARTIAL, InvoiceEvent.VOID): InvoiceStatus.VOID,
    (InvoiceStatus.OVERDUE, InvoiceEvent.VOID): InvoiceStatus.VOID,
    (InvoiceStatus.PAID, InvoiceEvent.REFUND): InvoiceStatus.REFUNDED,
    (InvoiceStatus.SENT, InvoiceEvent.SETTLE): InvoiceStatus.PAID,
}

PAYABLE_STATUSES = frozenset({InvoiceStatus.SENT, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE})
TERMINAL_STATUSES = frozenset({InvoiceStatus.VOID, InvoiceStatus.REFUNDED})


def derive_invoice_status(current: InvoiceStatus, paid_amount: Decimal, payable_total: Decimal) -> InvoiceStatus:
    """
    Status as a pure function of the ledger

    Nothing paid keeps the current status; VOID and REFUNDED are only
    reached by explicit operator action.
    """
    if current in TERMINAL_STATUSES or paid_amount <= 0:
        return current
    if paid_amount >= payable_total:
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIAL


def generate_invoice_number() -> str:
    return f"INV-{datetime.now():%Y%m%d}-{uuid4().hex[:6].upper()}"


@dataclass(frozen=True)
class Payment(ValueObject):
    """Ledger entry; invoice_id is None for deposits paid straight on a booking"""
    booking_id: UUID
    amount: Decimal
    method: str
    invoice_id: Optional[UUID] = None
    reference: str = ''
    recorded_at: datetime = field(default_factory=datetime.now)
    id: UUID = field(default_factory=uuid4)


@dataclass(eq=False, kw_only=True)
class Invoice(Aggregate):
    """
    Invoice Aggregate Root

    gross_total is what the booking item is worth; amount_due is what the
    customer still owes on this invoice after any deposit already paid.
    Payment states are derived from paid_amount against amount_due.
    """

    booking_id: UUID
    owner_id: str
    kind: InvoiceKind
    customer: CustomerContact
    subtotal: Decimal
    tax: Decimal
    gross_total: Decimal
    amount_due: Decimal
    deposit_already_paid: Decimal = ZERO
    paid_amount: Decimal = ZERO
    status: InvoiceStatus = InvoiceStatus.DRAFT
    invoice_number: str = field(default_factory=generate_invoice_number)
    issue_date: date = field(default_factory=date.today)
    due_date: Optional[date] = None
    description: str = ''

    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    voided_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    def __post_init__(self):
        self.kind = InvoiceKind(self.kind)
        self.status = InvoiceStatus(self.status)

    @classmethod
    def for_booking(
        cls,
        booking,
        kind: InvoiceKind,
        *,
        amount=None,
        fallback_price=None,
        fallback_deposit=None,
        due_date: Optional[date] = None,
        description: str = '',
    ) -> 'Invoice':
        """
        Build an invoice from the booking's stored figures

        FINAL invoices deduct the booking's deposit whenever the booking
        carries a deposit spec; DEPOSIT invoices bill the deposit itself;
        BOND and ADD-ONS bill the caller's amount. Caller-supplied price
        and deposit are used only for bookings without a stored price.
        """
        kind = InvoiceKind(kind)
        deposit_paid = ZERO

        if kind in (InvoiceKind.BOND, InvoiceKind.ADD_ONS):
            if amount is None:
                raise InvalidAmount(f"{kind.value} invoices need an amount", kind=kind.value)
            price = split_tax(amount, TaxMode.INCLUSIVE, booking.tax_rate)
            amount_due = price.gross
        elif kind is InvoiceKind.DEPOSIT:
            deposit = booking.deposit_amount if booking.price is not None else fallback_deposit
            deposit = round_money(ensure_amount(deposit or ZERO, field='deposit'))
            if deposit <= 0:
                raise InvalidAmount("Booking has no deposit to invoice", booking_id=booking.id)
            price = split_tax(deposit, TaxMode.INCLUSIVE, booking.tax_rate)
            amount_due = price.gross
        else:
            if booking.price is not None:
                price = booking.price
                if not booking.deposit_spec.is_none:
                    deposit_paid = booking.deposit_amount
            else:
                if fallback_price is None:
                    raise InvalidAmount("Booking has no stored price; a price is required", booking_id=booking.id)
                price = split_tax(fallback_price, TaxMode.INCLUSIVE, booking.tax_rate)
                deposit_paid = round_money(ensure_amount(fallback_deposit or ZERO, field='deposit'))
            amount_due = max(ZERO, round_money(price.gross - deposit_paid))

        return cls(
            booking_id=booking.id,
            owner_id=booking.owner_id,
            kind=kind,
            customer=booking.customer,
            subtotal=price.net,
            tax=price.tax,
            gross_total=price.gross,
            deposit_already_paid=deposit_paid,
            amount_due=amount_due,
            due_date=due_date,
            description=description,
        )

    # ===== State machine =====

    def _transition(self, event: InvoiceEvent, reason: str = '') -> InvoiceStatus:
        target = TRANSITIONS.get((self.status, event))
        if target is None:
            raise InvalidTransition('Invoice', self.status.value, event.value, reason)
        self.status = target
        self.touch()
        return target

    def send(self):
        """
        Send invoice (DRAFT -> SENT)

        An invoice with nothing due (deposit already covers the gross) is
        settled straight to PAID.

        Events: GeneratePDFAndEmail, CreatePaymentLink
        """
        self._transition(InvoiceEvent.SEND)
        self.sent_at = datetime.now()
        if self.amount_due <= 0:
            self._transition(InvoiceEvent.SETTLE)
            self.paid_at = self.sent_at
        self._request_document()

    def resend(self):
        """Re-emit the invoice email and a fresh payment link; no state change"""
        if self.status not in PAYABLE_STATUSES:
            raise InvalidTransition('Invoice', self.status.value, 'resend')
        self._request_document()

    def record_payment(self, amount, method: str = 'manual', reference: str = '',
                       tolerance: Decimal = ZERO, recorded_at: Optional[datetime] = None) -> Payment:
        """
        Record a payment and derive the new status

        Over-payment beyond the tolerance is rejected, never clipped.
        Events: NotifyCustomer
        """
        if self.status not in PAYABLE_STATUSES:
            raise InvalidTransition('Invoice', self.status.value, 'record_payment')
        amount = round_money(ensure_amount(amount))
        if amount <= 0:
            raise InvalidAmount("Payment amount must be greater than zero", amount=amount)
        if self.paid_amount + amount > self.amount_due + tolerance:
            raise OverPayment(amount, self.outstanding)

        self.paid_amount = round_money(self.paid_amount + amount)
        self.status = derive_invoice_status(self.status, self.paid_amount, self.amount_due)
        if self.status is InvoiceStatus.PAID:
            self.paid_at = datetime.now()
        self.touch()

        payment = Payment(
            booking_id=self.booking_id,
            invoice_id=self.id,
            amount=amount,
            method=method,
            reference=reference,
            recorded_at=recorded_at or datetime.now(),
        )
        self._notify(
            'payment_received',
            dedupe_key=f"{self.customer.email}:payment_received:{payment.id}",
            amount=str(amount),
        )
        return payment

    def mark_overdue(self, today: date):
        """SENT -> OVERDUE once the due date has passed with nothing paid"""
        if (self.status, InvoiceEvent.MARK_OVERDUE) not in TRANSITIONS:
            raise InvalidTransition('Invoice', self.status.value, InvoiceEvent.MARK_OVERDUE.value)
        if self.paid_amount > 0 or self.outstanding <= 0 or self.due_date is None or today <= self.due_date:
            raise InvalidTransition('Invoice', self.status.value, InvoiceEvent.MARK_OVERDUE.value, 'not past due')
        self._transition(InvoiceEvent.MARK_OVERDUE)
        self._notify('invoice_overdue')

    def void(self):
        self._transition(InvoiceEvent.VOID)
        self.voided_at = datetime.now()

    def refund(self):
        self._transition(InvoiceEvent.REFUND)
        self.refunded_at = datetime.now()

    # ===== Queries =====

    @property
    def outstanding(self) -> Decimal:
        return max(ZERO, round_money(self.amount_due - self.paid_amount))

    @property
    def is_open(self) -> bool:
        return self.status not in TERMINAL_STATUSES

    @property
    def payment_reference(self) -> str:
        return f"invoice:{self.id}"

    def snapshot(self) -> Dict[str, Any]:
        return {
            'type': 'invoice',
            'id': str(self.id),
            'number': self.invoice_number,
            'booking_id': str(self.booking_id),
            'owner_id': self.owner_id,
            'kind': self.kind.value,
            'status': self.status.value,
            'customer': {
                'name': self.customer.name,
                'email': self.customer.email,
                'phone': self.customer.phone,
            },
            'subtotal': str(self.subtotal),
            'tax': str(self.tax),
            'gross_total': str(self.gross_total),
            'deposit_already_paid': str(self.deposit_already_paid),
            'amount_due': str(self.amount_due),
            'paid_amount': str(self.paid_amount),
            'issue_date': self.issue_date.isoformat(),
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'description': self.description,
        }

    # ===== Intents =====

    def _request_document(self):
        self.add_event(GeneratePDFAndEmail(
            aggregate_id=self.id,
            document_type='invoice',
            document_id=self.id,
            template='invoice',
            recipient=self.customer.email,
            snapshot=self.snapshot(),
        ))
        if self.outstanding > 0:
            self.add_event(CreatePaymentLink(
                aggregate_id=self.id,
                document_type='invoice',
                document_id=self.id,
                amount=self.outstanding,
                reference=self.payment_reference,
                metadata={
                    'invoice_number': self.invoice_number,
                    'kind': self.kind.value,
                    'customer_email': self.customer.email,
                },
            ))

    def _notify(self, notification_type: str, dedupe_key: str = '', **extra):
        payload = self.snapshot()
        payload.update(extra)
        self.add_event(NotifyCustomer(
            aggregate_id=self.id,
            document_type='invoice',
            document_id=self.id,
            notification_type=notification_type,
            recipient=self.customer.email,
            payload=payload,
            dedupe_key=dedupe_key,
        ))

    def __str__(self):
        return f"Invoice {self.invoice_number} ({self.kind.value}, {self.status.value})"
