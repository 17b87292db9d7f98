"""Tests for tax splitting, deposits and base prices."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from apps.pricing.domain.normalizer import (
    DepositSpec,
    DepositType,
    TaxMode,
    calculate_base_price,
    calculate_deposit,
    normalize,
    split_tax,
)
from apps.pricing.domain.rates import AppliedRate, BillingMode
from shared.domain.exceptions import InvalidAmount, InvalidDepositSpec
from shared.domain.value_objects import TimeInterval

D = Decimal


def test_quotation_amounts_for_inclusive_tax_and_percentage_deposit() -> None:
    result = normalize(D("550"), TaxMode.INCLUSIVE, D("0.10"), DepositSpec.percentage(20))

    assert result.price.net == D("500.00")
    assert result.price.tax == D("50.00")
    assert result.price.gross == D("550.00")
    assert result.deposit_amount == D("110.00")
    assert result.balance_due == D("440.00")


def test_exclusive_tax_is_added_on_top() -> None:
    price = split_tax(D("500"), TaxMode.EXCLUSIVE, D("0.10"))
    assert (price.net, price.tax, price.gross) == (D("500.00"), D("50.00"), D("550.00"))


def test_default_tax_rate_is_ten_percent() -> None:
    assert split_tax(D("110")).tax == D("10.00")


def test_inclusive_split_rounds_each_figure() -> None:
    price = split_tax(D("100"), TaxMode.INCLUSIVE, D("0.10"))
    assert price.net == D("90.91")
    assert price.tax == D("9.09")
    assert price.net + price.tax == price.gross


AMOUNTS = ["0.01", "0.05", "1", "9.99", "33.33", "100", "123.45", "550", "999.99", "12345.67"]
RATES = ["0", "0.05", "0.10", "0.15", "0.19", "0.5", "0.99"]


@pytest.mark.parametrize("amount", AMOUNTS)
@pytest.mark.parametrize("rate", RATES)
def test_inclusive_then_exclusive_reproduces_gross(amount, rate) -> None:
    inclusive = split_tax(D(amount), TaxMode.INCLUSIVE, D(rate))
    exclusive = split_tax(inclusive.net, TaxMode.EXCLUSIVE, D(rate))

    assert inclusive.net + inclusive.tax == inclusive.gross
    assert abs(exclusive.gross - inclusive.gross) <= D("0.01")


DEPOSIT_SPECS = [
    DepositSpec.none(),
    DepositSpec.fixed("0.01"),
    DepositSpec.fixed("50"),
    DepositSpec.fixed("99.995"),
    DepositSpec.percentage(0),
    DepositSpec.percentage("12.5"),
    DepositSpec.percentage(20),
    DepositSpec.percentage("33.333"),
    DepositSpec.percentage(100),
]


@pytest.mark.parametrize("gross", ["100", "123.45", "550", "1000.01"])
@pytest.mark.parametrize("spec", DEPOSIT_SPECS, ids=lambda spec: f"{spec.type.value}-{spec.value}")
def test_deposit_and_balance_sum_to_gross(gross, spec) -> None:
    breakdown = calculate_deposit(D(gross), spec)
    assert breakdown.deposit_amount + breakdown.balance_due == D(gross)
    assert breakdown.balance_due >= 0


def test_no_deposit() -> None:
    breakdown = calculate_deposit(D("550"), DepositSpec.none())
    assert breakdown.deposit_amount == D("0.00")
    assert breakdown.balance_due == D("550.00")


def test_fixed_deposit_larger_than_total_is_rejected() -> None:
    with pytest.raises(InvalidDepositSpec):
        calculate_deposit(D("100"), DepositSpec.fixed("150"))


@pytest.mark.parametrize(
    "factory,value",
    [
        (DepositSpec.percentage, "-1"),
        (DepositSpec.percentage, "100.01"),
        (DepositSpec.fixed, "0"),
        (DepositSpec.fixed, "-5"),
    ],
)
def test_invalid_deposit_specs(factory, value) -> None:
    with pytest.raises(InvalidDepositSpec):
        factory(value)


def test_legacy_deposit_spec() -> None:
    assert DepositSpec.from_legacy(None).is_none
    assert DepositSpec.from_legacy("None", "10").is_none
    spec = DepositSpec.from_legacy("Percentage", "20")
    assert spec.type is DepositType.PERCENTAGE
    assert spec.value == D("20")


@pytest.mark.parametrize("amount", ["-1", "NaN", "Infinity", "abc"])
def test_invalid_amounts(amount) -> None:
    with pytest.raises(InvalidAmount):
        split_tax(amount)


@pytest.mark.parametrize("rate", ["1", "1.5", "-0.1"])
def test_invalid_tax_rates(rate) -> None:
    with pytest.raises(InvalidAmount):
        split_tax(D("100"), TaxMode.INCLUSIVE, D(rate))


def test_hourly_price_is_charged_per_minute() -> None:
    rate = AppliedRate(BillingMode.HOURLY, D("50"))
    interval = TimeInterval.from_clock(date(2025, 3, 3), "10:00", "11:30")
    assert calculate_base_price(rate, interval) == D("75.00")


def test_hourly_price_rounds_to_cents() -> None:
    rate = AppliedRate(BillingMode.HOURLY, D("10"))
    interval = TimeInterval.from_clock(date(2025, 3, 3), "10:00", "10:01")
    assert calculate_base_price(rate, interval) == D("0.17")
