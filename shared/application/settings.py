"""Immutable venue settings handed to command handlers."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class VenueSettings:
    tax_rate: Decimal = Decimal('0.10')
    overpayment_tolerance: Decimal = Decimal('0.00')
    quotation_validity_days: int = 14
    invoice_due_days: int = 7
    currency: str = 'AUD'

    @classmethod
    def from_django_settings(cls) -> 'VenueSettings':
        from django.conf import settings

        return cls(
            tax_rate=Decimal(str(getattr(settings, 'VENUE_DEFAULT_TAX_RATE', '0.10'))),
            overpayment_tolerance=Decimal(str(getattr(settings, 'VENUE_OVERPAYMENT_TOLERANCE', '0.00'))),
            quotation_validity_days=int(getattr(settings, 'VENUE_QUOTATION_VALIDITY_DAYS', 14)),
            invoice_due_days=int(getattr(settings, 'VENUE_INVOICE_DUE_DAYS', 7)),
            currency=getattr(settings, 'VENUE_CURRENCY', 'AUD'),
        )
