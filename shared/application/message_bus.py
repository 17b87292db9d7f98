"""
Message Bus

Routes side-effect intents to the collaborators that carry them out.
Dispatch is sequential, in emission order; a failing handler is logged
and reported, never raised.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

import structlog

from shared.domain.base import DomainEvent

logger = structlog.get_logger(__name__)


@dataclass
class DispatchOutcome:
    """Result of handing one intent to one handler"""
    event: DomainEvent
    handler: str
    ok: bool
    result: Any = None
    error: Optional[str] = None


class MessageBus:
    """
    Message bus for intents

    Multiple handlers can be registered per intent type (1:N).
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], Any]
    ):
        """
        Register an event handler

        Multiple handlers can be registered for the same event type.
        """
        self._event_handlers.setdefault(event_type, []).append(handler)
        logger.debug("bus.handler_registered", event_type=event_type.__name__)

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[Callable]:
        return list(self._event_handlers.get(event_type, []))

    def publish_events(self, events: List[DomainEvent]) -> List[DispatchOutcome]:
        """
        Publish events

        All registered handlers for each event type are called.
        Errors in handlers are logged but don't stop other handlers.
        """
        outcomes: List[DispatchOutcome] = []

        for event in events:
            event_type = type(event)
            handlers = self._event_handlers.get(event_type, [])

            if not handlers:
                logger.warning("bus.no_handlers", event_type=event_type.__name__)
                outcomes.append(DispatchOutcome(
                    event=event,
                    handler='',
                    ok=False,
                    error=f"No handler registered for {event_type.__name__}",
                ))
                continue

            logger.info("bus.publish", event_type=event_type.__name__, event_id=str(event.event_id))

            for handler in handlers:
                name = getattr(handler, '__name__', handler.__class__.__name__)
                try:
                    result = handler(event)
                except Exception as e:
                    logger.error(
                        "bus.handler_failed",
                        handler=name,
                        event_type=event_type.__name__,
                        error=str(e),
                        exc_info=True,
                    )
                    # Don't raise - other handlers should still run
                    outcomes.append(DispatchOutcome(event=event, handler=name, ok=False, error=str(e)))
                else:
                    logger.debug("bus.handled", handler=name, event_type=event_type.__name__)
                    outcomes.append(DispatchOutcome(event=event, handler=name, ok=True, result=result))

        return outcomes
