"""
Monetary Normalizer

Pure functions that reconcile every figure shown to staff, customers and
the payment processor:
- split_tax: amount + tax mode + rate -> {net, tax, gross}
- calculate_deposit: gross + deposit spec -> {deposit_amount, balance_due}
- calculate_base_price: applied rate + interval -> raw amount

Every named output is rounded to cents (ROUND_HALF_UP) on its own; no
unrounded intermediate is carried into the next figure.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidAmount, InvalidDepositSpec
from shared.domain.value_objects import TimeInterval

CENT = Decimal('0.01')
DEFAULT_TAX_RATE = Decimal('0.10')
FULL_DAY_HOURS = Decimal(8)
HALF_DAY_FACTOR = Decimal('0.5')
ZERO = Decimal('0.00')


def round_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_amount(value, field: str = 'amount') -> Decimal:
    """Coerce to Decimal, rejecting negative and non-finite values"""
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"{field} is not a number: {value!r}", field=field, value=value)
    if not amount.is_finite():
        raise InvalidAmount(f"{field} must be finite", field=field, value=value)
    if amount < 0:
        raise InvalidAmount(f"{field} cannot be negative", field=field, value=value)
    return amount


def ensure_tax_rate(value) -> Decimal:
    """Tax rates are fractions: 0.10 means 10%"""
    if value is None:
        return DEFAULT_TAX_RATE
    rate = ensure_amount(value, field='tax_rate')
    if rate >= 1:
        raise InvalidAmount(f"Tax rate {rate} must be below 1", field='tax_rate', value=value)
    return rate


class TaxMode(str, Enum):
    INCLUSIVE = 'inclusive'
    EXCLUSIVE = 'exclusive'


@dataclass(frozen=True)
class PriceBreakdown(ValueObject):
    net: Decimal
    tax: Decimal
    gross: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {'net': str(self.net), 'tax': str(self.tax), 'gross': str(self.gross)}


def split_tax(amount, mode: TaxMode = TaxMode.INCLUSIVE, rate=None) -> PriceBreakdown:
    """
    Derive {net, tax, gross} from an amount

    Inclusive: the amount already contains tax.
    Exclusive: the amount is the net base and tax is added on top.
    """
    amount = round_money(ensure_amount(amount))
    rate = ensure_tax_rate(rate)
    mode = TaxMode(mode)

    if mode is TaxMode.INCLUSIVE:
        net = round_money(amount / (1 + rate))
        tax = round_money(amount - net)
        return PriceBreakdown(net=net, tax=tax, gross=amount)

    tax = round_money(amount * rate)
    return PriceBreakdown(net=amount, tax=tax, gross=round_money(amount + tax))


# ===== Deposits =====

class DepositType(str, Enum):
    NONE = 'None'
    FIXED = 'Fixed'
    PERCENTAGE = 'Percentage'


@dataclass(frozen=True)
class DepositSpec(ValueObject):
    """
    How much of the gross total is due up front

    Fixed values are gross-inclusive amounts; percentages apply to gross.
    """
    type: DepositType = DepositType.NONE
    value: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, 'type', DepositType(self.type))
        try:
            value = ensure_amount(self.value, field='deposit_value')
        except InvalidAmount as e:
            raise InvalidDepositSpec(e.message, type=self.type.value, value=self.value)
        object.__setattr__(self, 'value', value)

        if self.type is DepositType.FIXED and value <= 0:
            raise InvalidDepositSpec(
                "Fixed deposit must be greater than zero", type=self.type.value, value=value
            )
        if self.type is DepositType.PERCENTAGE and value > 100:
            raise InvalidDepositSpec(
                "Deposit percentage must be between 0 and 100", type=self.type.value, value=value
            )

    @classmethod
    def none(cls) -> 'DepositSpec':
        return cls(DepositType.NONE, ZERO)

    @classmethod
    def fixed(cls, value) -> 'DepositSpec':
        return cls(DepositType.FIXED, value)

    @classmethod
    def percentage(cls, value) -> 'DepositSpec':
        return cls(DepositType.PERCENTAGE, value)

    @classmethod
    def from_legacy(cls, deposit_type, value=None) -> 'DepositSpec':
        """Build from stored (type, value) pairs; a missing type means none"""
        if not deposit_type or deposit_type == DepositType.NONE.value:
            return cls.none()
        return cls(DepositType(deposit_type), ZERO if value is None else value)

    @property
    def is_none(self) -> bool:
        return self.type is DepositType.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type.value, 'value': str(self.value)}


@dataclass(frozen=True)
class DepositBreakdown(ValueObject):
    deposit_amount: Decimal
    balance_due: Decimal


def calculate_deposit(gross, spec: DepositSpec) -> DepositBreakdown:
    """Split gross into deposit and balance; the two always sum to gross"""
    gross = round_money(ensure_amount(gross, field='gross'))

    if spec.type is DepositType.FIXED:
        deposit = round_money(spec.value)
        if deposit > gross:
            raise InvalidDepositSpec(
                f"Fixed deposit {deposit} exceeds total {gross}",
                type=spec.type.value,
                value=spec.value,
                gross=gross,
            )
    elif spec.type is DepositType.PERCENTAGE:
        deposit = round_money(gross * spec.value / 100)
    else:
        deposit = ZERO

    balance = max(ZERO, round_money(gross - deposit))
    return DepositBreakdown(deposit_amount=deposit, balance_due=balance)


@dataclass(frozen=True)
class NormalizedPrice(ValueObject):
    price: PriceBreakdown
    deposit: DepositBreakdown

    @property
    def deposit_amount(self) -> Decimal:
        return self.deposit.deposit_amount

    @property
    def balance_due(self) -> Decimal:
        return self.deposit.balance_due


def normalize(amount, mode: TaxMode, rate, deposit_spec: DepositSpec) -> NormalizedPrice:
    """Tax split followed by the deposit split of the resulting gross"""
    price = split_tax(amount, mode, rate)
    return NormalizedPrice(price=price, deposit=calculate_deposit(price.gross, deposit_spec))


# ===== Base price =====

def calculate_base_price(applied_rate, interval: TimeInterval) -> Decimal:
    """
    Raw price for an interval at an applied rate

    Hourly rates are charged per minute of the interval. Daily rates charge
    the full rate from 8 hours up and half the rate below.
    """
    from apps.pricing.domain.rates import BillingMode

    rate = ensure_amount(applied_rate.applied_rate, field='rate')

    if applied_rate.billing_mode is BillingMode.HOURLY:
        return round_money(rate * interval.duration_minutes / 60)

    if interval.duration_hours >= FULL_DAY_HOURS:
        return round_money(rate)
    return round_money(rate * HALF_DAY_FACTOR)
