"""Quotation persistence models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Quotation(models.Model):
    """Priced offer for a resource and interval."""

    class Status(models.TextChoices):
        DRAFT = "Draft", _("Draft")
        SENT = "Sent", _("Sent")
        ACCEPTED = "Accepted", _("Accepted")
        DECLINED = "Declined", _("Declined")
        EXPIRED = "Expired", _("Expired")

    class TaxMode(models.TextChoices):
        INCLUSIVE = "inclusive", _("Tax inclusive")
        EXCLUSIVE = "exclusive", _("Tax exclusive")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quotation_number = models.CharField(max_length=32, unique=True, editable=False)
    owner_id = models.CharField(max_length=64, db_index=True)
    resource_id = models.CharField(max_length=64)
    day = models.DateField()
    start_minute = models.PositiveSmallIntegerField()
    end_minute = models.PositiveSmallIntegerField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)

    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=32, blank=True)

    quoted_amount = models.DecimalField(max_digits=12, decimal_places=2)
    tax_mode = models.CharField(max_length=10, choices=TaxMode.choices, default=TaxMode.INCLUSIVE)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal("0.1000"))
    deposit_type = models.CharField(max_length=20, default="None")
    deposit_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    net_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    deposit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    final_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    valid_until = models.DateField(null=True, blank=True)
    booking_id = models.UUIDField(null=True, blank=True)
    notes = models.TextField(blank=True)

    sent_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    declined_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ("-created_at",)
        verbose_name = _("Quotation")
        verbose_name_plural = _("Quotations")
        indexes = [
            models.Index(fields=["status", "valid_until"]),
        ]

    def __str__(self) -> str:
        return f"Quotation {self.quotation_number}"
