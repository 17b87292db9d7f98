"""Row locking helpers for reservation workflows."""

from __future__ import annotations

from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def lock_reservation_slot(owner_id: str, resource_id: str, day) -> None:
    """Serialize writers for a resource and day until the transaction ends."""

    from .models import ReservationSlot  # Local import to prevent circular dependency

    slot, _ = ReservationSlot.objects.get_or_create(
        owner_id=owner_id,
        resource_id=resource_id,
        day=day,
    )
    lock_queryset_if_possible(ReservationSlot.objects.filter(pk=slot.pk)).first()
