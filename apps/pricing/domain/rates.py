"""
Rate Resolver

Resolves the applicable rate for a resource on a date. Rate cards are read
fresh on every calculation; nothing is cached between calls.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from shared.domain.base import ValueObject
from shared.domain.exceptions import RateNotFound
from apps.pricing.domain.normalizer import ensure_amount


class BillingMode(str, Enum):
    HOURLY = 'hourly'
    DAILY = 'daily'


@dataclass(frozen=True)
class ResourceRate(ValueObject):
    """Owner-scoped rate card for one resource"""
    owner_id: str
    resource_id: str
    billing_mode: BillingMode
    weekday_rate: Decimal
    weekend_rate: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'billing_mode', BillingMode(self.billing_mode))
        object.__setattr__(self, 'weekday_rate', ensure_amount(self.weekday_rate, field='weekday_rate'))
        object.__setattr__(self, 'weekend_rate', ensure_amount(self.weekend_rate, field='weekend_rate'))


@dataclass(frozen=True)
class AppliedRate(ValueObject):
    billing_mode: BillingMode
    applied_rate: Decimal
    is_weekend: bool = False


def is_weekend(day: date) -> bool:
    """Saturday and Sunday"""
    return day.weekday() >= 5


def resolve_rate(card: ResourceRate, day: date) -> AppliedRate:
    weekend = is_weekend(day)
    return AppliedRate(
        billing_mode=card.billing_mode,
        applied_rate=card.weekend_rate if weekend else card.weekday_rate,
        is_weekend=weekend,
    )


class RateResolver:
    """Looks up the rate card through the rate repository"""

    def __init__(self, rates):
        self.rates = rates

    def resolve(self, owner_id: str, resource_id: str, day: date) -> AppliedRate:
        card = self.rates.get_for_resource(owner_id, resource_id)
        if card is None:
            raise RateNotFound(owner_id, resource_id)
        return resolve_rate(card, day)
