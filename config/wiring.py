"""Builds the orchestrator from Django settings.

Collaborators are configured as dotted paths (``VENUE_NOTIFIER``,
``VENUE_DOCUMENT_RENDERER``, ``VENUE_PAYMENT_GATEWAY``, ``VENUE_AUDIT_LOG``)
and instantiated without arguments. Renderer and gateway are optional.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

from shared.application.orchestrator import TransitionOrchestrator
from shared.application.settings import VenueSettings
from shared.application.side_effects import build_message_bus
from shared.application.uow import DjangoUnitOfWork


def _collaborator(setting_name: str):
    path = getattr(settings, setting_name, None)
    if not path:
        return None
    return import_string(path)()


def build_orchestrator() -> TransitionOrchestrator:
    bus = build_message_bus(
        notifier=_collaborator("VENUE_NOTIFIER"),
        renderer=_collaborator("VENUE_DOCUMENT_RENDERER"),
        gateway=_collaborator("VENUE_PAYMENT_GATEWAY"),
    )
    return TransitionOrchestrator(
        uow_factory=DjangoUnitOfWork,
        message_bus=bus,
        audit_log=_collaborator("VENUE_AUDIT_LOG"),
    )


def venue_settings() -> VenueSettings:
    return VenueSettings.from_django_settings()
