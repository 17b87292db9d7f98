"""Rate card models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ResourceRateCard(models.Model):
    """Weekday/weekend rate of a bookable resource."""

    class BillingMode(models.TextChoices):
        HOURLY = "hourly", _("Hourly")
        DAILY = "daily", _("Daily")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=64, db_index=True)
    resource_id = models.CharField(max_length=64)
    billing_mode = models.CharField(
        max_length=10,
        choices=BillingMode.choices,
        default=BillingMode.HOURLY,
    )
    weekday_rate = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    weekend_rate = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Rate card")
        verbose_name_plural = _("Rate cards")
        constraints = [
            models.UniqueConstraint(
                fields=["owner_id", "resource_id"],
                name="unique_rate_card_per_resource",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.resource_id} ({self.billing_mode})"
