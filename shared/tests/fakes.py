"""Fake collaborators for tests."""

from __future__ import annotations

from shared.application.ports import DocumentRenderer, Notifier, PaymentGateway
from shared.infrastructure.memory import InMemoryAuditLog


class FakeRenderer(DocumentRenderer):
    def __init__(self):
        self.rendered = []

    def render_pdf(self, snapshot):
        self.rendered.append(snapshot)
        return f"%PDF {snapshot.get('number', '')}".encode()


class FakeGateway(PaymentGateway):
    def __init__(self):
        self.links = []

    def create_checkout_link(self, amount, reference, metadata):
        self.links.append({"amount": amount, "reference": reference, "metadata": dict(metadata)})
        return f"https://pay.example.com/{reference}"


class FailingNotifier(Notifier):
    def send(self, kind, recipient, payload, *, dedupe_key=None, attachments=()):
        raise ConnectionError("SMTP unavailable")


class FailingAuditLog(InMemoryAuditLog):
    def record(self, actor_id, action, before, after):
        raise RuntimeError("audit store down")
