"""
In-Memory Infrastructure

Repository, unit of work and collaborator implementations that keep
everything in process memory. Documents are copied on the way in and out,
so callers only ever see persisted state, and a rolled-back unit of work
restores the store as it was on entry.
"""

from copy import deepcopy
from typing import Any, Dict, List, Optional
from uuid import uuid4

from shared.application.ports import (
    AuditLog,
    BookingRepository,
    InvoiceRepository,
    Notifier,
    PaymentRepository,
    QuotationRepository,
    RateRepository,
)
from shared.application.uow import AbstractUnitOfWork


def _stored(document):
    copy = deepcopy(document)
    if hasattr(copy, 'clear_events'):
        copy.clear_events()
    return copy


class InMemoryStore:
    """Shared state behind every in-memory unit of work"""

    def __init__(self):
        self.rates: Dict[tuple, Any] = {}
        self.bookings: Dict[Any, Any] = {}
        self.quotations: Dict[Any, Any] = {}
        self.invoices: Dict[Any, Any] = {}
        self.payments: List[Any] = []

    def dump(self) -> dict:
        return deepcopy(self.__dict__)

    def restore(self, state: dict):
        self.__dict__.update(state)


class InMemoryRateRepository(RateRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def add(self, rate):
        self.store.rates[(rate.owner_id, rate.resource_id)] = rate

    def get_for_resource(self, owner_id, resource_id):
        return self.store.rates.get((owner_id, resource_id))


class InMemoryBookingRepository(BookingRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get(self, booking_id, lock=False):
        booking = self.store.bookings.get(booking_id)
        return deepcopy(booking) if booking else None

    def list_active(self, owner_id, resource_id, day, lock=True):
        active = [
            booking for booking in self.store.bookings.values()
            if booking.owner_id == owner_id
            and booking.resource_id == resource_id
            and booking.interval.day == day
            and booking.is_active
        ]
        active.sort(key=lambda booking: booking.created_at)
        return [deepcopy(booking) for booking in active]

    def save(self, booking):
        self.store.bookings[booking.id] = _stored(booking)
        return booking.id


class InMemoryQuotationRepository(QuotationRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get(self, quotation_id, lock=False):
        quotation = self.store.quotations.get(quotation_id)
        return deepcopy(quotation) if quotation else None

    def save(self, quotation):
        self.store.quotations[quotation.id] = _stored(quotation)
        return quotation.id

    def list_expirable(self, today):
        return [
            quotation.id for quotation in self.store.quotations.values()
            if not quotation.is_terminal and quotation.is_expired_on(today)
        ]


class InMemoryInvoiceRepository(InvoiceRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get(self, invoice_id, lock=False):
        invoice = self.store.invoices.get(invoice_id)
        return deepcopy(invoice) if invoice else None

    def find_open(self, booking_id, kind):
        for invoice in self.store.invoices.values():
            if invoice.booking_id == booking_id and invoice.kind == kind and invoice.is_open:
                return deepcopy(invoice)
        return None

    def save(self, invoice):
        self.store.invoices[invoice.id] = _stored(invoice)
        return invoice.id

    def list_overdue_candidates(self, today):
        from apps.invoices.domain.entities import InvoiceStatus

        return [
            invoice.id for invoice in self.store.invoices.values()
            if invoice.status is InvoiceStatus.SENT
            and invoice.paid_amount == 0
            and invoice.amount_due > 0
            and invoice.due_date is not None
            and invoice.due_date < today
        ]


class InMemoryPaymentRepository(PaymentRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def add(self, payment):
        self.store.payments.append(payment)

    def list_for_invoice(self, invoice_id):
        return [payment for payment in self.store.payments if payment.invoice_id == invoice_id]

    def exists_with_reference(self, reference):
        return bool(reference) and any(payment.reference == reference for payment in self.store.payments)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Unit of work over an InMemoryStore

    Usage:
        store = InMemoryStore()
        orchestrator = TransitionOrchestrator(lambda: InMemoryUnitOfWork(store), bus)
    """

    def __init__(self, store: InMemoryStore):
        super().__init__()
        self.store = store
        self.rates = InMemoryRateRepository(store)
        self.bookings = InMemoryBookingRepository(store)
        self.quotations = InMemoryQuotationRepository(store)
        self.invoices = InMemoryInvoiceRepository(store)
        self.payments = InMemoryPaymentRepository(store)
        self._snapshot: Optional[dict] = None
        self.committed = False

    def __enter__(self):
        super().__enter__()
        self._snapshot = self.store.dump()
        self.committed = False
        return self

    def _commit(self):
        self._snapshot = None
        self.committed = True

    def _rollback(self):
        if self._snapshot is not None:
            self.store.restore(self._snapshot)
            self._snapshot = None


class InMemoryAuditLog(AuditLog):
    def __init__(self):
        self.entries: List[dict] = []

    def record(self, actor_id, action, before, after) -> None:
        self.entries.append({
            'actor_id': actor_id,
            'action': action,
            'before': before,
            'after': after,
        })

    def actions(self) -> List[str]:
        return [entry['action'] for entry in self.entries]


class InMemoryNotifier(Notifier):
    """Keeps sent messages in a list; honours dedupe keys"""

    def __init__(self):
        self.sent: List[dict] = []
        self._by_key: Dict[str, str] = {}

    def send(self, kind, recipient, payload, *, dedupe_key=None, attachments=()):
        if dedupe_key and dedupe_key in self._by_key:
            return self._by_key[dedupe_key]
        message_id = str(uuid4())
        self.sent.append({
            'id': message_id,
            'kind': kind,
            'recipient': recipient,
            'payload': dict(payload),
            'attachments': list(attachments),
        })
        if dedupe_key:
            self._by_key[dedupe_key] = message_id
        return message_id

    def kinds(self) -> List[str]:
        return [message['kind'] for message in self.sent]
