from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from shared.domain.exceptions import InvalidInterval
from shared.domain.value_objects import CustomerContact, TimeInterval, overlaps, parse_clock

DAY = date(2025, 3, 1)


def interval(start: str, end: str, day: date = DAY) -> TimeInterval:
    return TimeInterval.from_clock(day, start, end)


SAMPLES = [
    ("08:00", "09:00"),
    ("08:30", "10:00"),
    ("09:00", "12:00"),
    ("10:00", "12:00"),
    ("11:59", "12:01"),
    ("12:00", "14:00"),
    ("13:00", "13:30"),
    ("00:00", "24:00"),
]


@pytest.mark.parametrize("a", SAMPLES)
@pytest.mark.parametrize("b", SAMPLES)
def test_overlap_is_symmetric(a, b) -> None:
    first, second = interval(*a), interval(*b)
    assert overlaps(first, second) == overlaps(second, first)


def test_touching_intervals_do_not_overlap() -> None:
    assert not overlaps(interval("10:00", "12:00"), interval("12:00", "14:00"))
    assert not overlaps(interval("12:00", "14:00"), interval("10:00", "12:00"))


def test_one_minute_of_overlap_conflicts() -> None:
    assert overlaps(interval("10:00", "12:01"), interval("12:00", "14:00"))


def test_contained_interval_overlaps() -> None:
    assert overlaps(interval("09:00", "17:00"), interval("12:00", "13:00"))


def test_different_days_never_overlap() -> None:
    other_day = date(2025, 3, 2)
    assert not overlaps(interval("10:00", "12:00"), interval("10:00", "12:00", other_day))


@pytest.mark.parametrize(
    "start,end",
    [("12:00", "12:00"), ("14:00", "12:00")],
)
def test_end_must_be_after_start(start, end) -> None:
    with pytest.raises(InvalidInterval):
        interval(start, end)


@pytest.mark.parametrize("value", ["25:00", "10:60", "24:30", "noon", "10", None])
def test_parse_clock_rejects_garbage(value) -> None:
    with pytest.raises(InvalidInterval):
        parse_clock(value)


def test_bounds_must_fit_in_the_day() -> None:
    with pytest.raises(InvalidInterval):
        TimeInterval(DAY, -10, 60)
    with pytest.raises(InvalidInterval):
        TimeInterval(DAY, 60, 24 * 60 + 1)


def test_duration_hours() -> None:
    assert interval("10:00", "14:00").duration_hours == Decimal(4)
    assert interval("10:00", "10:30").duration_hours == Decimal("0.5")
    assert interval("10:00", "14:00").duration_minutes == 240


def test_interval_renders_as_clock_times() -> None:
    value = interval("09:05", "17:45")
    assert value.start_clock == "09:05"
    assert value.end_clock == "17:45"
    assert str(value) == "2025-03-01 09:05-17:45"


def test_invalid_interval_error_payload() -> None:
    with pytest.raises(InvalidInterval) as exc_info:
        interval("14:00", "12:00")
    assert exc_info.value.to_dict()["error"]["code"] == "invalid_interval"


def test_customer_contact_is_normalized() -> None:
    contact = CustomerContact("  Jane Citizen ", " Jane@Example.COM ", " 0400 000 000 ")
    assert contact.name == "Jane Citizen"
    assert contact.email == "jane@example.com"
    assert contact.phone == "0400 000 000"


@pytest.mark.parametrize("name,email", [("", "a@b.c"), ("Jane", "not-an-email")])
def test_customer_contact_validation(name, email) -> None:
    with pytest.raises(ValueError):
        CustomerContact(name, email)
