from __future__ import annotations

import pytest

from apps.notifications.models import NotificationLog
from apps.notifications.services import EmailNotifier, build_html, build_subject

pytestmark = pytest.mark.django_db

PAYLOAD = {
    "number": "QUO-20250303-ABC123",
    "customer": {"name": "Jane Citizen", "email": "jane@example.com"},
    "date": "2025-03-03",
    "start": "10:00",
    "end": "14:00",
    "price": {"net": "500.00", "tax": "50.00", "gross": "550.00"},
    "deposit_amount": "110.00",
}


def test_sends_html_email_with_attachment(mailoutbox) -> None:
    message_id = EmailNotifier().send(
        "quotation",
        "jane@example.com",
        PAYLOAD,
        attachments=[("quotation-QUO-20250303-ABC123.pdf", b"%PDF", "application/pdf")],
    )

    (message,) = mailoutbox
    assert message.to == ["jane@example.com"]
    assert message.subject == "Quotation QUO-20250303-ABC123"
    assert "Jane Citizen" in message.body
    assert message.alternatives[0][1] == "text/html"
    assert message.attachments == [("quotation-QUO-20250303-ABC123.pdf", b"%PDF", "application/pdf")]
    log = NotificationLog.objects.get(pk=message_id)
    assert log.kind == "quotation"
    assert log.document_number == "QUO-20250303-ABC123"
    assert log.dedupe_key is None


def test_dedupe_key_sends_once(mailoutbox) -> None:
    notifier = EmailNotifier()

    first = notifier.send("booking_confirmed", "jane@example.com", PAYLOAD, dedupe_key="jane:booking_confirmed:1")
    second = notifier.send("booking_confirmed", "jane@example.com", PAYLOAD, dedupe_key="jane:booking_confirmed:1")

    assert first == second
    assert len(mailoutbox) == 1
    assert NotificationLog.objects.count() == 1


def test_unkeyed_messages_are_always_sent(mailoutbox) -> None:
    notifier = EmailNotifier()
    notifier.send("invoice", "jane@example.com", PAYLOAD)
    notifier.send("invoice", "jane@example.com", PAYLOAD)
    assert len(mailoutbox) == 2


def test_subject_and_body_rendering() -> None:
    assert build_subject("invoice_overdue", {"number": "INV-1"}) == "Invoice INV-1 is overdue"
    assert build_subject("custom_notice", {}) == "Custom notice"

    html = build_html("booking_cancelled", {**PAYLOAD, "reason": "Venue closed"})
    assert "Your booking has been cancelled." in html
    assert "Venue closed" in html
    assert "$550.00" in html
    assert "$110.00" in html
