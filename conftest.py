"""Shared pytest fixtures: in-memory unit of work and fake collaborators."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from apps.bookings.application.command_handlers import CreateBookingCommand, CreateBookingHandler
from apps.bookings.domain.entities import BookingSource
from apps.pricing.domain.normalizer import DepositSpec
from apps.pricing.domain.rates import BillingMode, ResourceRate
from shared.application.orchestrator import TransitionOrchestrator
from shared.application.settings import VenueSettings
from shared.application.side_effects import build_message_bus
from shared.infrastructure.memory import (
    InMemoryAuditLog,
    InMemoryNotifier,
    InMemoryRateRepository,
    InMemoryStore,
    InMemoryUnitOfWork,
)
from shared.tests.fakes import FakeGateway, FakeRenderer

OWNER = "owner-1"
HALL = "hall-1"
MONDAY = date(2025, 3, 3)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def notifier():
    return InMemoryNotifier()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def audit_log():
    return InMemoryAuditLog()


@pytest.fixture
def venue_settings():
    return VenueSettings()


@pytest.fixture
def uow_factory(store):
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def orchestrator(uow_factory, notifier, renderer, gateway, audit_log):
    bus = build_message_bus(notifier, renderer=renderer, gateway=gateway)
    return TransitionOrchestrator(uow_factory, bus, audit_log)


@pytest.fixture
def add_rate(store):
    def _add(resource_id=HALL, billing_mode=BillingMode.HOURLY, weekday="50", weekend="75", owner_id=OWNER):
        rate = ResourceRate(
            owner_id=owner_id,
            resource_id=resource_id,
            billing_mode=billing_mode,
            weekday_rate=Decimal(weekday),
            weekend_rate=Decimal(weekend),
        )
        InMemoryRateRepository(store).add(rate)
        return rate
    return _add


@pytest.fixture
def create_booking(orchestrator, venue_settings):
    """Create a booking through the handler; returns the Booking"""

    def _create(start="10:00", end="12:00", day=MONDAY, resource_id=HALL, **kwargs):
        kwargs.setdefault("estimated_price", Decimal("550.00"))
        command = CreateBookingCommand(
            owner_id=OWNER,
            resource_id=resource_id,
            day=day,
            start_time=start,
            end_time=end,
            customer_name="Jane Citizen",
            customer_email="jane@example.com",
            **kwargs,
        )
        return CreateBookingHandler(orchestrator, venue_settings).handle(command).document

    return _create


@pytest.fixture
def confirmed_booking(create_booking):
    """Admin booking worth $550 inc. tax with a 20% deposit"""
    return create_booking(
        source=BookingSource.ADMIN,
        deposit_spec=DepositSpec.percentage(20),
    )
