"""
Domain Errors

Every decision function and state machine raises one of these. They derive
from ValueError so callers that only know about validation errors keep
working, and each carries a stable code plus structured details for the
surrounding application to render.
"""

from __future__ import annotations

from typing import Any, Dict


class DomainError(ValueError):
    """Base class for all venue core errors."""

    code = "domain_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": {key: _plain(value) for key, value in self.details.items()},
            }
        }


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return str(value)


class InvalidInterval(DomainError):
    code = "invalid_interval"


class InvalidAmount(DomainError):
    code = "invalid_amount"


class InvalidDepositSpec(DomainError):
    code = "invalid_deposit_spec"


class RateNotFound(DomainError):
    code = "rate_not_found"

    def __init__(self, owner_id: str, resource_id: str):
        super().__init__(
            f"No rate card for resource {resource_id} (owner {owner_id})",
            owner_id=owner_id,
            resource_id=resource_id,
        )


class SlotUnavailable(DomainError):
    """The requested interval overlaps an active booking."""

    code = "slot_unavailable"

    def __init__(self, booking_id, interval):
        super().__init__(
            f"Time slot is already booked: {interval} (booking {booking_id})",
            booking_id=booking_id,
            interval={
                "date": interval.day.isoformat(),
                "start": interval.start_clock,
                "end": interval.end_clock,
            },
        )
        self.booking_id = booking_id
        self.interval = interval


class DocumentNotFound(DomainError):
    code = "document_not_found"

    def __init__(self, document_type: str, document_id):
        super().__init__(
            f"{document_type} {document_id} not found",
            document_type=document_type,
            document_id=document_id,
        )


class InvalidTransition(DomainError):
    code = "invalid_transition"

    def __init__(self, document_type: str, status: str, event: str, reason: str = ""):
        message = f"Cannot {event} {document_type} in status {status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, document_type=document_type, status=status, event=event)


class BookingTerminal(InvalidTransition):
    code = "booking_terminal"

    def __init__(self, status: str, event: str = "edit"):
        super().__init__("Booking", status, event, "booking is terminal")


class DuplicateDocument(DomainError):
    code = "duplicate_document"

    def __init__(self, document_type: str, existing_id, existing_status: str):
        super().__init__(
            f"{document_type} {existing_id} already exists with status {existing_status}",
            document_type=document_type,
            existing_id=existing_id,
            existing_status=existing_status,
        )
        self.existing_id = existing_id
        self.existing_status = existing_status


class OverPayment(DomainError):
    code = "over_payment"

    def __init__(self, amount, outstanding):
        super().__init__(
            f"Payment of {amount} exceeds outstanding balance {outstanding}",
            amount=amount,
            outstanding=outstanding,
        )
