"""
Side-Effect Handlers

Bridges intents to the injected collaborators. Each handler performs a
single external call and lets exceptions reach the message bus, which
turns them into warnings.
"""

from __future__ import annotations

import logging
from typing import Optional

from shared.application.message_bus import MessageBus
from shared.application.ports import DocumentRenderer, Notifier, PaymentGateway
from shared.domain.intents import CreatePaymentLink, GeneratePDFAndEmail, NotifyCustomer

logger = logging.getLogger(__name__)


class PaymentGatewayNotConfigured(RuntimeError):
    pass


def build_message_bus(
    notifier: Notifier,
    renderer: Optional[DocumentRenderer] = None,
    gateway: Optional[PaymentGateway] = None,
) -> MessageBus:
    """Create a bus with one handler per intent type."""
    bus = MessageBus()

    def generate_pdf_and_email(intent: GeneratePDFAndEmail) -> str:
        attachments = ()
        if renderer is not None:
            pdf = renderer.render_pdf(intent.snapshot)
            number = intent.snapshot.get('number') or intent.document_id
            attachments = ((f"{intent.template}-{number}.pdf", pdf, 'application/pdf'),)
        else:
            logger.warning(f"No document renderer configured, emailing {intent.template} without PDF")
        return notifier.send(intent.template, intent.recipient, intent.snapshot, attachments=attachments)

    def create_payment_link(intent: CreatePaymentLink) -> str:
        if gateway is None:
            raise PaymentGatewayNotConfigured(
                f"Cannot create payment link for {intent.reference}: no payment gateway configured"
            )
        url = gateway.create_checkout_link(intent.amount, intent.reference, intent.metadata)
        logger.info(f"Checkout link created for {intent.reference}: {url}")
        return url

    def notify_customer(intent: NotifyCustomer) -> str:
        return notifier.send(
            intent.notification_type,
            intent.recipient,
            intent.payload,
            dedupe_key=intent.dedupe_key,
        )

    bus.register_event_handler(GeneratePDFAndEmail, generate_pdf_and_email)
    bus.register_event_handler(CreatePaymentLink, create_payment_link)
    bus.register_event_handler(NotifyCustomer, notify_customer)
    return bus
