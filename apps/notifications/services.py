"""Email delivery of customer notifications and documents."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from django.conf import settings  # type: ignore
from django.core.mail import EmailMultiAlternatives  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from shared.application.ports import Attachment, Notifier

from .models import NotificationLog

logger = logging.getLogger(__name__)


SUBJECTS = {
    "quotation": "Quotation {number}",
    "invoice": "Invoice {number}",
    "booking_created": "Booking request {number} received",
    "booking_confirmed": "Booking {number} confirmed",
    "booking_cancelled": "Booking {number} cancelled",
    "deposit_received": "Deposit received for booking {number}",
    "payment_received": "Payment received for invoice {number}",
    "invoice_overdue": "Invoice {number} is overdue",
}

INTROS = {
    "quotation": "Please find your quotation attached.",
    "invoice": "Please find your invoice attached.",
    "booking_created": "We have received your booking request and will confirm it shortly.",
    "booking_confirmed": "Your booking is confirmed.",
    "booking_cancelled": "Your booking has been cancelled.",
    "deposit_received": "Thank you, we have received your deposit.",
    "payment_received": "Thank you, we have received your payment.",
    "invoice_overdue": "This invoice is now past its due date.",
}


def build_subject(kind: str, payload: Mapping[str, Any]) -> str:
    template = SUBJECTS.get(kind, kind.replace("_", " ").capitalize())
    return template.format(number=payload.get("number", ""))


def build_html(kind: str, payload: Mapping[str, Any]) -> str:
    customer = payload.get("customer") or {}
    details = []
    if payload.get("date"):
        details.append(f"<li><strong>Date:</strong> {payload['date']} {payload.get('start', '')}-{payload.get('end', '')}</li>")
    price = payload.get("price") or {}
    if price.get("gross"):
        details.append(f"<li><strong>Total (incl. tax):</strong> ${price['gross']}</li>")
    if payload.get("amount_due"):
        details.append(f"<li><strong>Amount due:</strong> ${payload['amount_due']}</li>")
    if payload.get("deposit_amount") and payload.get("deposit_amount") != "0.00":
        details.append(f"<li><strong>Deposit:</strong> ${payload['deposit_amount']}</li>")
    if payload.get("amount"):
        details.append(f"<li><strong>Amount received:</strong> ${payload['amount']}</li>")
    if payload.get("reason"):
        details.append(f"<li><strong>Reason:</strong> {payload['reason']}</li>")

    return f"""
    <html>
    <body>
        <h2>Hello, {customer.get('name', '')}!</h2>
        <p>{INTROS.get(kind, '')}</p>

        <h3>Reference {payload.get('number', '')}</h3>
        <ul>
            {''.join(details)}
        </ul>
    </body>
    </html>
    """


class EmailNotifier(Notifier):
    """
    Sends notifications through Django's email backend

    With a dedupe key the first delivery is stored in NotificationLog and
    repeats return the stored message id without sending again. Delivery
    errors propagate to the caller.
    """

    def send(
        self,
        kind: str,
        recipient: str,
        payload: Mapping[str, Any],
        *,
        dedupe_key: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        if dedupe_key:
            existing = NotificationLog.objects.filter(dedupe_key=dedupe_key).first()
            if existing is not None:
                logger.info(f"Notification {dedupe_key} already sent, skipping")
                return str(existing.id)

        subject = build_subject(kind, payload)
        html_message = build_html(kind, payload)
        message = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[recipient],
        )
        message.attach_alternative(html_message, "text/html")
        for filename, content, mimetype in attachments:
            message.attach(filename, content, mimetype)
        message.send(fail_silently=False)

        try:
            with transaction.atomic():
                log = NotificationLog.objects.create(
                    kind=kind,
                    recipient=recipient,
                    subject=subject,
                    dedupe_key=dedupe_key or None,
                    document_number=str(payload.get("number", "")),
                )
        except IntegrityError:
            # Sent concurrently under the same key
            log = NotificationLog.objects.get(dedupe_key=dedupe_key)

        logger.info(f"Email sent successfully to {recipient}: {subject}")
        return str(log.id)
