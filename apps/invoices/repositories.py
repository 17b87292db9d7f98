"""ORM-backed invoice and payment repositories."""

from __future__ import annotations

from apps.bookings.services import lock_queryset_if_possible
from apps.invoices.domain.entities import TERMINAL_STATUSES, Invoice, InvoiceKind, InvoiceStatus, Payment
from apps.invoices.models import Invoice as InvoiceModel
from apps.invoices.models import Payment as PaymentModel
from shared.application.ports import InvoiceRepository, PaymentRepository
from shared.domain.value_objects import CustomerContact


def invoice_to_domain(record: InvoiceModel) -> Invoice:
    return Invoice(
        id=record.id,
        invoice_number=record.invoice_number,
        booking_id=record.booking_id,
        owner_id=record.owner_id,
        kind=record.kind,
        status=record.status,
        customer=CustomerContact(record.customer_name, record.customer_email, record.customer_phone),
        subtotal=record.subtotal,
        tax=record.tax,
        gross_total=record.gross_total,
        deposit_already_paid=record.deposit_already_paid,
        amount_due=record.amount_due,
        paid_amount=record.paid_amount,
        issue_date=record.issue_date,
        due_date=record.due_date,
        description=record.description,
        sent_at=record.sent_at,
        paid_at=record.paid_at,
        voided_at=record.voided_at,
        refunded_at=record.refunded_at,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class DjangoInvoiceRepository(InvoiceRepository):
    def get(self, invoice_id, lock: bool = False):
        queryset = InvoiceModel.objects.filter(pk=invoice_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        record = queryset.first()
        return invoice_to_domain(record) if record else None

    def find_open(self, booking_id, kind):
        record = (
            InvoiceModel.objects.filter(booking_id=booking_id, kind=InvoiceKind(kind).value)
            .exclude(status__in=[status.value for status in TERMINAL_STATUSES])
            .first()
        )
        return invoice_to_domain(record) if record else None

    def list_overdue_candidates(self, today):
        return list(
            InvoiceModel.objects.filter(
                status=InvoiceStatus.SENT.value,
                paid_amount=0,
                amount_due__gt=0,
                due_date__lt=today,
            )
            .order_by("due_date")
            .values_list("id", flat=True)
        )

    def save(self, invoice: Invoice):
        InvoiceModel.objects.update_or_create(
            pk=invoice.id,
            defaults={
                "invoice_number": invoice.invoice_number,
                "booking_id": invoice.booking_id,
                "owner_id": invoice.owner_id,
                "kind": invoice.kind.value,
                "status": invoice.status.value,
                "customer_name": invoice.customer.name,
                "customer_email": invoice.customer.email,
                "customer_phone": invoice.customer.phone,
                "subtotal": invoice.subtotal,
                "tax": invoice.tax,
                "gross_total": invoice.gross_total,
                "deposit_already_paid": invoice.deposit_already_paid,
                "amount_due": invoice.amount_due,
                "paid_amount": invoice.paid_amount,
                "issue_date": invoice.issue_date,
                "due_date": invoice.due_date,
                "description": invoice.description,
                "sent_at": invoice.sent_at,
                "paid_at": invoice.paid_at,
                "voided_at": invoice.voided_at,
                "refunded_at": invoice.refunded_at,
                "created_at": invoice.created_at,
                "updated_at": invoice.updated_at,
            },
        )
        return invoice.id


class DjangoPaymentRepository(PaymentRepository):
    def add(self, payment: Payment) -> None:
        PaymentModel.objects.create(
            id=payment.id,
            invoice_id=payment.invoice_id,
            booking_id=payment.booking_id,
            amount=payment.amount,
            method=payment.method,
            reference=payment.reference,
            recorded_at=payment.recorded_at,
        )

    def list_for_invoice(self, invoice_id):
        return [
            Payment(
                id=record.id,
                invoice_id=record.invoice_id,
                booking_id=record.booking_id,
                amount=record.amount,
                method=record.method,
                reference=record.reference,
                recorded_at=record.recorded_at,
            )
            for record in PaymentModel.objects.filter(invoice_id=invoice_id)
        ]

    def exists_with_reference(self, reference: str) -> bool:
        if not reference:
            return False
        return PaymentModel.objects.filter(reference=reference).exists()
