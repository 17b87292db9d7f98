from __future__ import annotations

import pytest

from apps.audit.models import AuditEntry
from apps.audit.services import DjangoAuditLog


@pytest.mark.django_db
def test_records_before_and_after_snapshots() -> None:
    DjangoAuditLog().record(
        "staff-7",
        "booking.confirm",
        {"type": "booking", "id": "b-1", "status": "pending"},
        {"type": "booking", "id": "b-1", "status": "confirmed"},
    )

    entry = AuditEntry.objects.get()
    assert entry.actor_id == "staff-7"
    assert entry.action == "booking.confirm"
    assert entry.document_type == "booking"
    assert entry.document_id == "b-1"
    assert entry.before["status"] == "pending"
    assert entry.after["status"] == "confirmed"


@pytest.mark.django_db
def test_side_effect_failure_entry() -> None:
    DjangoAuditLog().record(
        "system",
        "side_effect_failed",
        None,
        {"action": "invoice.send", "intent": "CreatePaymentLink", "document_id": "i-1", "error": "down"},
    )

    entry = AuditEntry.objects.get()
    assert entry.before is None
    assert entry.document_id == "i-1"
    assert entry.document_type == ""
