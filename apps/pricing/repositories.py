"""ORM-backed rate card lookup."""

from __future__ import annotations

from apps.pricing.domain.rates import ResourceRate
from apps.pricing.models import ResourceRateCard
from shared.application.ports import RateRepository


class DjangoRateRepository(RateRepository):
    def get_for_resource(self, owner_id: str, resource_id: str):
        card = ResourceRateCard.objects.filter(
            owner_id=owner_id,
            resource_id=resource_id,
        ).first()
        if card is None:
            return None
        return ResourceRate(
            owner_id=card.owner_id,
            resource_id=card.resource_id,
            billing_mode=card.billing_mode,
            weekday_rate=card.weekday_rate,
            weekend_rate=card.weekend_rate,
        )
