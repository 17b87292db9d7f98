"""
Common Value Objects

Value objects used across the quotation, booking and invoice domains:
- TimeInterval: A half-open wall-clock interval on one calendar day
- CustomerContact: Who documents are addressed to
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidInterval

MINUTES_PER_DAY = 24 * 60


def parse_clock(value: str) -> int:
    """Convert 'HH:MM' into minutes of the day."""
    try:
        hours, minutes = value.split(':')
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise InvalidInterval(f"Invalid time format {value!r}. Use HH:MM format", value=value)
    if not (0 <= minutes < 60) or not (0 <= hours <= 24) or (hours == 24 and minutes):
        raise InvalidInterval(f"Invalid time {value!r}", value=value)
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeInterval(ValueObject):
    """
    Time interval value object

    Represents [start, end) on a single calendar day, in minutes of the day.
    Times are naive wall-clock values for the venue.
    """
    day: date
    start: int
    end: int

    def __post_init__(self):
        if not isinstance(self.start, int) or not isinstance(self.end, int):
            raise InvalidInterval("Interval bounds must be whole minutes")
        if self.start < 0 or self.end > MINUTES_PER_DAY:
            raise InvalidInterval(
                f"Interval {self.start}-{self.end} is outside the day",
                start=self.start,
                end=self.end,
            )
        if self.end <= self.start:
            raise InvalidInterval(
                f"End time ({format_clock(self.end)}) must be after start time "
                f"({format_clock(self.start)})",
                start=self.start,
                end=self.end,
            )

    @classmethod
    def from_clock(cls, day: date, start: str, end: str) -> 'TimeInterval':
        return cls(day, parse_clock(start), parse_clock(end))

    def overlaps_with(self, other: 'TimeInterval') -> bool:
        """
        Check if this interval overlaps with another

        Intervals on different days never overlap. The end is exclusive, so
        a booking ending at 14:00 does not overlap one starting at 14:00.
        """
        if not isinstance(other, TimeInterval):
            raise TypeError("Can only check overlap with another TimeInterval")

        return (self.day == other.day and
                self.start < other.end and
                other.start < self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    @property
    def duration_hours(self) -> Decimal:
        return Decimal(self.duration_minutes) / Decimal(60)

    @property
    def start_clock(self) -> str:
        return format_clock(self.start)

    @property
    def end_clock(self) -> str:
        return format_clock(self.end)

    def __str__(self):
        return f"{self.day.isoformat()} {self.start_clock}-{self.end_clock}"

    def __repr__(self):
        return f"TimeInterval({self.day}, {self.start_clock}, {self.end_clock})"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    return a.overlaps_with(b)


@dataclass(frozen=True)
class CustomerContact(ValueObject):
    """Customer details copied onto every document addressed to them."""
    name: str
    email: str
    phone: str = ''

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Customer name is required")
        if not self.email or '@' not in self.email:
            raise ValueError(f"Invalid email format: {self.email!r}")
        object.__setattr__(self, 'name', self.name.strip())
        object.__setattr__(self, 'email', self.email.strip().lower())
        object.__setattr__(self, 'phone', (self.phone or '').strip())
