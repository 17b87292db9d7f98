"""Booking persistence models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """Reservation of a resource for an interval on one day."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class Source(models.TextChoices):
        DIRECT = "direct", _("Direct")
        ADMIN = "admin", _("Admin")
        QUOTATION = "quotation", _("Quotation")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=32, unique=True, editable=False)
    owner_id = models.CharField(max_length=64)
    resource_id = models.CharField(max_length=64)
    day = models.DateField()
    start_minute = models.PositiveSmallIntegerField(help_text=_("Minutes from midnight."))
    end_minute = models.PositiveSmallIntegerField(help_text=_("Minutes from midnight, exclusive."))
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.DIRECT)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=32, blank=True)

    net_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal("0.1000"))
    deposit_type = models.CharField(max_length=20, default="None")
    deposit_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    deposit_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    balance_due = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    deposit_paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    quotation_id = models.UUIDField(null=True, blank=True)
    notes = models.TextField(blank=True)
    cancellation_reason = models.TextField(blank=True)

    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ("created_at",)
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        indexes = [
            models.Index(fields=["owner_id", "resource_id", "day", "status"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.booking_number}"


class ReservationSlot(models.Model):
    """
    Lock row for one (owner, resource, day)

    Reading active bookings locks this row first, so concurrent
    check-then-write sequences for the same day run one after another.
    """

    owner_id = models.CharField(max_length=64)
    resource_id = models.CharField(max_length=64)
    day = models.DateField()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["owner_id", "resource_id", "day"],
                name="unique_reservation_slot",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.resource_id} @ {self.day}"
