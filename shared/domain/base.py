"""
Base Domain Classes

Quotations, bookings and invoices are aggregates: each one owns its status
and money fields and queues the side effects a transition needs (emails and
payment links) until the unit of work commits.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from uuid import UUID, uuid4


@dataclass(kw_only=True)
class Entity(ABC):
    """Identity-compared record; updated_at moves on every mutation"""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def touch(self):
        self.updated_at = datetime.now()


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable and compared field by field"""


@dataclass(eq=False, kw_only=True)
class Aggregate(Entity):
    """
    Document root that a transition loads, mutates and saves as one unit

    Queued events are moved into the unit of work after save and only reach
    the message bus on commit.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        return list(self._events)


@dataclass(kw_only=True)
class DomainEvent:
    """Something an aggregate asks for after a transition; aggregate_id names the document"""
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: UUID | None = None
