"""Celery tasks for the invoice domain."""

from __future__ import annotations

import logging
from datetime import date

from celery import shared_task  # type: ignore

from shared.domain.exceptions import DomainError

from .application.command_handlers import MarkInvoiceOverdueCommand, MarkInvoiceOverdueHandler

logger = logging.getLogger(__name__)


def mark_overdue(orchestrator, today: date) -> int:
    """Move SENT invoices with nothing paid past their due date to OVERDUE."""

    with orchestrator.uow_factory() as uow:
        invoice_ids = uow.invoices.list_overdue_candidates(today)

    handler = MarkInvoiceOverdueHandler(orchestrator)
    overdue_count = 0
    for invoice_id in invoice_ids:
        try:
            handler.handle(MarkInvoiceOverdueCommand(invoice_id=invoice_id, today=today))
        except DomainError as e:
            # Paid or voided since the listing
            logger.warning(f"Skipping invoice {invoice_id}: {e}")
            continue
        overdue_count += 1
    return overdue_count


@shared_task(name="invoices.mark_overdue_invoices")
def mark_overdue_invoices() -> dict[str, int]:
    """
    Flag unpaid invoices past their due date.

    Runs daily through Celery Beat.

    Returns:
        dict: {"overdue": number of invoices marked overdue}
    """
    from config.wiring import build_orchestrator

    overdue_count = mark_overdue(build_orchestrator(), date.today())
    logger.info(f"Marked {overdue_count} invoices overdue")
    return {"overdue": overdue_count}
