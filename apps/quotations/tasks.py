"""Celery tasks for the quotation domain."""

from __future__ import annotations

import logging
from datetime import date

from celery import shared_task  # type: ignore

from shared.domain.exceptions import DomainError

from .application.command_handlers import ExpireQuotationCommand, ExpireQuotationHandler

logger = logging.getLogger(__name__)


def expire_quotations(orchestrator, today: date) -> int:
    """Expire every non-terminal quotation whose validity ended before today."""

    with orchestrator.uow_factory() as uow:
        quotation_ids = uow.quotations.list_expirable(today)

    handler = ExpireQuotationHandler(orchestrator)
    expired_count = 0
    for quotation_id in quotation_ids:
        try:
            handler.handle(ExpireQuotationCommand(quotation_id=quotation_id))
        except DomainError as e:
            # Accepted or declined since the listing
            logger.warning(f"Skipping quotation {quotation_id}: {e}")
            continue
        expired_count += 1
    return expired_count


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="quotations.expire_stale_quotations")
def expire_stale_quotations() -> dict[str, int]:
    """
    Expire quotations past their valid_until date.

    Runs daily through Celery Beat.

    Returns:
        dict: {"expired": number of expired quotations}
    """
    from config.wiring import build_orchestrator

    expired_count = expire_quotations(build_orchestrator(), date.today())
    logger.info(f"Expired {expired_count} stale quotations")
    return {"expired": expired_count}
