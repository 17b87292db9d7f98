"""Notification delivery log.

Every message sent by the notifier is recorded here. Messages sent with
a dedupe key are delivered at most once per key; repeats return the
stored entry instead of sending again.
"""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore


class NotificationLog(models.Model):
    """A message delivered to a customer."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kind = models.CharField(max_length=64)
    recipient = models.EmailField()
    subject = models.CharField(max_length=255)
    dedupe_key = models.CharField(max_length=255, unique=True, null=True, blank=True)
    document_number = models.CharField(max_length=32, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"{self.kind} to {self.recipient}"
