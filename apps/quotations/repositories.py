"""ORM-backed quotation repository."""

from __future__ import annotations

from apps.bookings.services import lock_queryset_if_possible
from apps.pricing.domain.normalizer import DepositSpec, PriceBreakdown
from apps.quotations.domain.entities import TERMINAL_STATUSES, Quotation
from apps.quotations.models import Quotation as QuotationModel
from shared.application.ports import QuotationRepository
from shared.domain.value_objects import CustomerContact, TimeInterval


def quotation_to_domain(record: QuotationModel) -> Quotation:
    return Quotation(
        id=record.id,
        quotation_number=record.quotation_number,
        owner_id=record.owner_id,
        resource_id=record.resource_id,
        interval=TimeInterval(record.day, record.start_minute, record.end_minute),
        customer=CustomerContact(record.customer_name, record.customer_email, record.customer_phone),
        quoted_amount=record.quoted_amount,
        tax_mode=record.tax_mode,
        tax_rate=record.tax_rate,
        deposit_spec=DepositSpec.from_legacy(record.deposit_type, record.deposit_value),
        status=record.status,
        price=PriceBreakdown(net=record.net_amount, tax=record.tax_amount, gross=record.gross_amount),
        deposit_amount=record.deposit_amount,
        final_amount=record.final_amount,
        valid_until=record.valid_until,
        booking_id=record.booking_id,
        notes=record.notes,
        sent_at=record.sent_at,
        accepted_at=record.accepted_at,
        declined_at=record.declined_at,
        expired_at=record.expired_at,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class DjangoQuotationRepository(QuotationRepository):
    def get(self, quotation_id, lock: bool = False):
        queryset = QuotationModel.objects.filter(pk=quotation_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        record = queryset.first()
        return quotation_to_domain(record) if record else None

    def list_expirable(self, today):
        return list(
            QuotationModel.objects.filter(valid_until__lt=today)
            .exclude(status__in=[status.value for status in TERMINAL_STATUSES])
            .order_by("valid_until", "created_at")
            .values_list("id", flat=True)
        )

    def save(self, quotation: Quotation):
        QuotationModel.objects.update_or_create(
            pk=quotation.id,
            defaults={
                "quotation_number": quotation.quotation_number,
                "owner_id": quotation.owner_id,
                "resource_id": quotation.resource_id,
                "day": quotation.interval.day,
                "start_minute": quotation.interval.start,
                "end_minute": quotation.interval.end,
                "status": quotation.status.value,
                "customer_name": quotation.customer.name,
                "customer_email": quotation.customer.email,
                "customer_phone": quotation.customer.phone,
                "quoted_amount": quotation.quoted_amount,
                "tax_mode": quotation.tax_mode.value,
                "tax_rate": quotation.tax_rate,
                "deposit_type": quotation.deposit_spec.type.value,
                "deposit_value": quotation.deposit_spec.value,
                "net_amount": quotation.price.net,
                "tax_amount": quotation.price.tax,
                "gross_amount": quotation.price.gross,
                "deposit_amount": quotation.deposit_amount,
                "final_amount": quotation.final_amount,
                "valid_until": quotation.valid_until,
                "booking_id": quotation.booking_id,
                "notes": quotation.notes,
                "sent_at": quotation.sent_at,
                "accepted_at": quotation.accepted_at,
                "declined_at": quotation.declined_at,
                "expired_at": quotation.expired_at,
                "created_at": quotation.created_at,
                "updated_at": quotation.updated_at,
            },
        )
        return quotation.id
