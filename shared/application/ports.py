"""
Collaborator Ports

Narrow interfaces the core consumes. Implementations are injected into the
orchestrator and unit of work; the core never reaches for a global client.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

Attachment = Tuple[str, bytes, str]  # (filename, content, mimetype)


class Notifier(ABC):
    """Fire-and-report message delivery (email, in-app, ...)"""

    @abstractmethod
    def send(
        self,
        kind: str,
        recipient: str,
        payload: Mapping[str, Any],
        *,
        dedupe_key: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        """Deliver a message and return its id"""


class DocumentRenderer(ABC):
    @abstractmethod
    def render_pdf(self, snapshot: Mapping[str, Any]) -> bytes:
        """Render a document snapshot; pure given the snapshot"""


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_link(
        self,
        amount: Decimal,
        reference: str,
        metadata: Mapping[str, str],
    ) -> str:
        """Create a hosted checkout and return its URL"""


class AuditLog(ABC):
    @abstractmethod
    def record(
        self,
        actor_id: str,
        action: str,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
    ) -> None:
        """Best-effort audit trail entry"""


# ===== Persistence =====

class RateRepository(ABC):
    @abstractmethod
    def get_for_resource(self, owner_id: str, resource_id: str):
        """Return the ResourceRate for the resource or None"""


class BookingRepository(ABC):
    @abstractmethod
    def get(self, booking_id: UUID, lock: bool = False):
        """Return the Booking or None"""

    @abstractmethod
    def list_active(self, owner_id: str, resource_id: str, day: date, lock: bool = True) -> List:
        """
        Return pending/confirmed bookings for the resource and day,
        oldest first. With lock=True the call is the serialization point
        for the (resource, day) pair until the transaction ends.
        """

    @abstractmethod
    def save(self, booking) -> UUID:
        pass


class QuotationRepository(ABC):
    @abstractmethod
    def get(self, quotation_id: UUID, lock: bool = False):
        pass

    @abstractmethod
    def save(self, quotation) -> UUID:
        pass

    @abstractmethod
    def list_expirable(self, today: date) -> List[UUID]:
        """Ids of non-terminal quotations whose validity ended before today"""


class InvoiceRepository(ABC):
    @abstractmethod
    def get(self, invoice_id: UUID, lock: bool = False):
        pass

    @abstractmethod
    def find_open(self, booking_id: UUID, kind) -> Optional[Any]:
        """The non-void, non-refunded invoice of this kind for the booking"""

    @abstractmethod
    def save(self, invoice) -> UUID:
        pass

    @abstractmethod
    def list_overdue_candidates(self, today: date) -> List[UUID]:
        """Ids of SENT invoices past their due date"""


class PaymentRepository(ABC):
    @abstractmethod
    def add(self, payment) -> None:
        pass

    @abstractmethod
    def list_for_invoice(self, invoice_id: UUID) -> Iterable:
        pass

    @abstractmethod
    def exists_with_reference(self, reference: str) -> bool:
        pass
