"""
Side-Effect Intents

Requests emitted by aggregates during a state transition for an external
collaborator to perform after the transition is committed. Each one may fail
independently of the transition that produced it.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class SideEffectIntent(DomainEvent):
    """Base class for requests addressed to collaborators"""
    document_type: str
    document_id: UUID


@dataclass(kw_only=True)
class GeneratePDFAndEmail(SideEffectIntent):
    """
    Render the document and email it to the customer

    Triggers:
    - Quotation sent / resent
    - Invoice sent / reminded
    """
    template: str
    recipient: str
    snapshot: Dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class CreatePaymentLink(SideEffectIntent):
    """
    Ask the payment gateway for a checkout link

    The reference is echoed back by the gateway webhook so the payment can
    be matched to an invoice or booking.
    """
    amount: Decimal
    reference: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(kw_only=True)
class NotifyCustomer(SideEffectIntent):
    """
    Send a notification to the customer

    The dedupe key makes delivery idempotent at the notifier boundary.
    Defaults to (recipient, type, document id).
    """
    notification_type: str
    recipient: str
    payload: Dict[str, Any] = field(default_factory=dict)
    dedupe_key: str = ''

    def __post_init__(self):
        if not self.dedupe_key:
            self.dedupe_key = f"{self.recipient}:{self.notification_type}:{self.document_id}"
