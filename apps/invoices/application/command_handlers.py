"""
Invoice Command Handlers

Commands:
- CreateInvoiceCommand: Raise an invoice against a booking
- SendInvoiceCommand / ResendInvoiceCommand: Email the invoice with a payment link
- RecordPaymentCommand: Append a payment to the ledger
- MarkInvoiceOverdueCommand: Flag a SENT invoice past its due date
- VoidInvoiceCommand / RefundInvoiceCommand: Operator actions
- PaymentConfirmedCommand: Gateway webhook callback
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID
import logging

from apps.bookings.domain.entities import BookingStatus
from apps.invoices.domain.entities import Invoice, InvoiceKind, InvoiceStatus, Payment
from apps.pricing.domain.normalizer import ensure_amount, round_money
from shared.application.orchestrator import TransitionOrchestrator, TransitionResult, require
from shared.application.settings import VenueSettings
from shared.domain.exceptions import DocumentNotFound, DuplicateDocument

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateInvoiceCommand:
    """
    Command to create an invoice

    amount is required for BOND and ADD-ONS. fallback_price and
    fallback_deposit only apply to bookings without a stored price.
    """
    booking_id: UUID
    kind: InvoiceKind
    amount: Optional[Decimal] = None
    fallback_price: Optional[Decimal] = None
    fallback_deposit: Optional[Decimal] = None
    due_date: Optional[date] = None
    description: str = ''
    actor_id: str = 'system'


@dataclass
class SendInvoiceCommand:
    invoice_id: UUID
    actor_id: str = 'system'


@dataclass
class ResendInvoiceCommand:
    invoice_id: UUID
    actor_id: str = 'system'


@dataclass
class RecordPaymentCommand:
    invoice_id: UUID
    amount: Decimal
    method: str = 'manual'
    reference: str = ''
    actor_id: str = 'system'


@dataclass
class MarkInvoiceOverdueCommand:
    invoice_id: UUID
    today: Optional[date] = None
    actor_id: str = 'system'


@dataclass
class VoidInvoiceCommand:
    invoice_id: UUID
    actor_id: str = 'system'


@dataclass
class RefundInvoiceCommand:
    invoice_id: UUID
    actor_id: str = 'system'


@dataclass
class PaymentConfirmedCommand:
    """
    Gateway confirmation of a checkout

    reference is what the payment link was created with:
    'invoice:<id>' or 'booking:<id>'. external_id is the gateway's
    payment id and makes the callback idempotent.
    """
    reference: str
    amount: Decimal
    external_id: str
    method: str = 'card'
    actor_id: str = 'payment-gateway'


def _load_invoice(invoice_id):
    def load(uow):
        return require(uow.invoices.get(invoice_id, lock=True), 'Invoice', invoice_id)
    return load


def _save_invoice(uow, invoice):
    uow.invoices.save(invoice)


def parse_payment_reference(reference: str):
    """Split 'invoice:<id>' / 'booking:<id>' into (kind, UUID)"""
    kind, _, raw_id = (reference or '').partition(':')
    if kind not in ('invoice', 'booking'):
        raise DocumentNotFound('Payment target', reference)
    try:
        return kind, UUID(raw_id)
    except ValueError:
        raise DocumentNotFound('Payment target', reference)


def _credit_booking_deposit(uow, invoice: Invoice, payment: Payment):
    """A fully paid DEPOSIT invoice counts toward the booking's deposit"""
    if invoice.kind is not InvoiceKind.DEPOSIT or invoice.status is not InvoiceStatus.PAID:
        return
    booking = uow.bookings.get(invoice.booking_id, lock=True)
    if booking is None or booking.status is BookingStatus.CANCELLED:
        return
    credit = min(invoice.paid_amount, booking.deposit_outstanding)
    if credit <= 0:
        return
    booking.record_deposit_payment(credit, reference=str(payment.id))
    uow.bookings.save(booking)
    uow.collect_events(booking)


# ===== Command Handlers =====

class CreateInvoiceHandler:
    """
    Handler for invoice creation

    Only one invoice per (booking, kind) may be open at a time; any
    invoice that is not VOID or REFUNDED blocks a new one.
    """

    def __init__(self, orchestrator: TransitionOrchestrator, settings: VenueSettings):
        self.orchestrator = orchestrator
        self.settings = settings

    def handle(self, command: CreateInvoiceCommand) -> TransitionResult:
        kind = InvoiceKind(command.kind)
        logger.info(f"Creating {kind.value} invoice for booking {command.booking_id}")
        due_date = command.due_date or (date.today() + timedelta(days=self.settings.invoice_due_days))

        def build(uow):
            booking = require(uow.bookings.get(command.booking_id), 'Booking', command.booking_id)
            existing = uow.invoices.find_open(booking.id, kind)
            if existing is not None:
                raise DuplicateDocument('Invoice', existing.id, existing.status.value)
            return Invoice.for_booking(
                booking,
                kind,
                amount=command.amount,
                fallback_price=command.fallback_price,
                fallback_deposit=command.fallback_deposit,
                due_date=due_date,
                description=command.description,
            )

        result = self.orchestrator.create(
            'invoice.create',
            actor_id=command.actor_id,
            build=build,
            save=_save_invoice,
        )
        logger.info(
            f"Invoice created: {result.document.invoice_number} "
            f"(due {result.document.amount_due})"
        )
        return result


class SendInvoiceHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: SendInvoiceCommand) -> TransitionResult:
        logger.info(f"Sending invoice {command.invoice_id}")
        return self.orchestrator.execute(
            'invoice.send',
            actor_id=command.actor_id,
            load=_load_invoice(command.invoice_id),
            apply=lambda invoice, uow: invoice.send(),
            save=_save_invoice,
        )


class ResendInvoiceHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: ResendInvoiceCommand) -> TransitionResult:
        logger.info(f"Resending invoice {command.invoice_id}")
        return self.orchestrator.execute(
            'invoice.resend',
            actor_id=command.actor_id,
            load=_load_invoice(command.invoice_id),
            apply=lambda invoice, uow: invoice.resend(),
        )


class RecordPaymentHandler:
    """Append a payment to the ledger and derive the invoice status"""

    def __init__(self, orchestrator: TransitionOrchestrator, settings: VenueSettings):
        self.orchestrator = orchestrator
        self.settings = settings

    def handle(self, command: RecordPaymentCommand) -> TransitionResult:
        logger.info(f"Recording payment of {command.amount} on invoice {command.invoice_id}")

        def apply(invoice, uow):
            payment = invoice.record_payment(
                command.amount,
                method=command.method,
                reference=command.reference,
                tolerance=self.settings.overpayment_tolerance,
            )
            uow.payments.add(payment)
            _credit_booking_deposit(uow, invoice, payment)

        result = self.orchestrator.execute(
            'invoice.record_payment',
            actor_id=command.actor_id,
            load=_load_invoice(command.invoice_id),
            apply=apply,
            save=_save_invoice,
        )
        logger.info(
            f"Invoice {result.document.invoice_number} is {result.document.status.value} "
            f"({result.document.paid_amount}/{result.document.amount_due})"
        )
        return result


class MarkInvoiceOverdueHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: MarkInvoiceOverdueCommand) -> TransitionResult:
        today = command.today or date.today()
        logger.info(f"Marking invoice {command.invoice_id} overdue")
        return self.orchestrator.execute(
            'invoice.mark_overdue',
            actor_id=command.actor_id,
            load=_load_invoice(command.invoice_id),
            apply=lambda invoice, uow: invoice.mark_overdue(today),
            save=_save_invoice,
        )


class VoidInvoiceHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: VoidInvoiceCommand) -> TransitionResult:
        logger.info(f"Voiding invoice {command.invoice_id}")
        return self.orchestrator.execute(
            'invoice.void',
            actor_id=command.actor_id,
            load=_load_invoice(command.invoice_id),
            apply=lambda invoice, uow: invoice.void(),
            save=_save_invoice,
        )


class RefundInvoiceHandler:
    def __init__(self, orchestrator: TransitionOrchestrator):
        self.orchestrator = orchestrator

    def handle(self, command: RefundInvoiceCommand) -> TransitionResult:
        logger.info(f"Refunding invoice {command.invoice_id}")
        return self.orchestrator.execute(
            'invoice.refund',
            actor_id=command.actor_id,
            load=_load_invoice(command.invoice_id),
            apply=lambda invoice, uow: invoice.refund(),
            save=_save_invoice,
        )


class PaymentConfirmedHandler:
    """
    Handler for the payment gateway webhook

    Routing:
    - invoice:<id> -> record the payment on that invoice
    - booking:<id> -> the booking's open DEPOSIT invoice when it can take
      payments, otherwise the booking's deposit directly

    A repeated external_id is a no-op and returns None.
    """

    def __init__(self, orchestrator: TransitionOrchestrator, settings: VenueSettings):
        self.orchestrator = orchestrator
        self.settings = settings

    def handle(self, command: PaymentConfirmedCommand) -> Optional[TransitionResult]:
        logger.info(f"Payment confirmed by gateway: {command.reference} ({command.external_id})")

        with self.orchestrator.uow_factory() as uow:
            if uow.payments.exists_with_reference(command.external_id):
                logger.info(f"Payment {command.external_id} already recorded, skipping")
                return None
            target, target_id = parse_payment_reference(command.reference)
            if target == 'booking':
                deposit_invoice = uow.invoices.find_open(target_id, InvoiceKind.DEPOSIT)
                if deposit_invoice is not None and deposit_invoice.outstanding > 0 and \
                        deposit_invoice.status is not InvoiceStatus.DRAFT:
                    target, target_id = 'invoice', deposit_invoice.id

        if target == 'invoice':
            return RecordPaymentHandler(self.orchestrator, self.settings).handle(RecordPaymentCommand(
                invoice_id=target_id,
                amount=command.amount,
                method=command.method,
                reference=command.external_id,
                actor_id=command.actor_id,
            ))

        amount = round_money(ensure_amount(command.amount))

        def apply(booking, uow):
            booking.record_deposit_payment(amount, reference=command.external_id)
            uow.payments.add(Payment(
                booking_id=booking.id,
                amount=amount,
                method=command.method,
                reference=command.external_id,
            ))

        return self.orchestrator.execute(
            'booking.record_deposit_payment',
            actor_id=command.actor_id,
            load=lambda uow: require(uow.bookings.get(target_id, lock=True), 'Booking', target_id),
            apply=apply,
            save=lambda uow, booking: uow.bookings.save(booking),
        )
