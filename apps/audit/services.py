"""Audit log backed by the database."""

from __future__ import annotations

import logging

from shared.application.ports import AuditLog

from .models import AuditEntry

logger = logging.getLogger(__name__)


class DjangoAuditLog(AuditLog):
    def record(self, actor_id, action, before, after) -> None:
        document = after or before or {}
        AuditEntry.objects.create(
            actor_id=actor_id,
            action=action,
            document_type=document.get("type", ""),
            document_id=document.get("id") or document.get("document_id") or "",
            before=before,
            after=after,
        )
        logger.debug(f"Audit: {actor_id} {action} {document.get('id', '')}")
