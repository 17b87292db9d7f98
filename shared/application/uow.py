"""
Unit of Work Pattern

Manages database transactions and ensures that side-effect intents
are handed out only after a successful transaction commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """
    Abstract Unit of Work pattern

    Exposes the repositories for one transaction:
    rates, bookings, quotations, invoices, payments.
    """

    rates = None
    bookings = None
    quotations = None
    invoices = None
    payments = None

    def __init__(self):
        self._events: List[DomainEvent] = []
        self.committed_events: List[DomainEvent] = []

    def __enter__(self):
        self._events = []
        self.committed_events = []
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    def commit(self):
        """
        Commit changes and release the collected events

        Events become available in committed_events for the caller
        to dispatch once the transaction is closed.
        """
        logger.debug(f"Committing transaction with {len(self._events)} events")
        self._commit()
        self.committed_events = self._events.copy()
        self._events.clear()

    def rollback(self):
        """Rollback changes and discard events"""
        logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()
        self._rollback()

    def collect_events(self, aggregate):
        """
        Collect events from aggregate root

        Extracts all events from the aggregate and clears them from it.
        """
        if hasattr(aggregate, 'events'):
            new_events = aggregate.events
            if new_events:
                self._events.extend(new_events)
                aggregate.clear_events()
                logger.debug(
                    f"Collected {len(new_events)} events from "
                    f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
                )

    @abstractmethod
    def _commit(self):
        pass

    @abstractmethod
    def _rollback(self):
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps the transition in transaction.atomic(). Repositories lock rows
    with SELECT FOR UPDATE, so the conflict check and the booking write
    happen inside one serialized scope per (resource, day).

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = uow.bookings.get(booking_id, lock=True)
            booking.confirm()
            uow.collect_events(booking)
            uow.bookings.save(booking)
            # Transaction commits here
        # uow.committed_events are ready for dispatch
    """

    def __init__(self):
        super().__init__()
        from apps.bookings.repositories import DjangoBookingRepository
        from apps.invoices.repositories import DjangoInvoiceRepository, DjangoPaymentRepository
        from apps.pricing.repositories import DjangoRateRepository
        from apps.quotations.repositories import DjangoQuotationRepository

        self.rates = DjangoRateRepository()
        self.bookings = DjangoBookingRepository()
        self.quotations = DjangoQuotationRepository()
        self.invoices = DjangoInvoiceRepository()
        self.payments = DjangoPaymentRepository()
        self._transaction = None

    def __enter__(self):
        """Start database transaction"""
        from django.db import transaction

        super().__enter__()
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        try:
            super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)
                self._transaction = None

    def _commit(self):
        # transaction.atomic commits on clean exit
        pass

    def _rollback(self):
        # transaction.atomic rolls back when the block raised
        pass
