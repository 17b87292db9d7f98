"""
Transition Orchestrator

Sequences every document transition the same way:

1. load the current document inside a unit of work
2. evaluate the guard and apply the transition (aggregate method)
3. persist the new state; the unit of work commits
4. take the side-effect intents the aggregates emitted
5. dispatch them one by one through the message bus

Guard failures roll the unit of work back and propagate unchanged.
Side-effect failures are logged, audited and returned as warnings next to
the successful result; the persisted state is the source of truth and is
never reverted. Side effects are not retried here: callers re-run them
through explicit resend actions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Type

import structlog

from shared.application.message_bus import DispatchOutcome, MessageBus
from shared.application.ports import AuditLog
from shared.domain.exceptions import DocumentNotFound

logger = structlog.get_logger(__name__)


@dataclass
class SideEffectWarning:
    intent: str
    document_id: str
    error: str


@dataclass
class TransitionResult:
    """Outcome of a committed transition"""
    action: str
    document: Any
    outcomes: List[DispatchOutcome] = field(default_factory=list)

    @property
    def intents(self) -> List[Any]:
        seen = []
        for outcome in self.outcomes:
            if not any(outcome.event is event for event in seen):
                seen.append(outcome.event)
        return seen

    @property
    def warnings(self) -> List[SideEffectWarning]:
        return [
            SideEffectWarning(
                intent=type(outcome.event).__name__,
                document_id=str(getattr(outcome.event, 'document_id', '')),
                error=outcome.error or '',
            )
            for outcome in self.outcomes
            if not outcome.ok
        ]

    @property
    def ok(self) -> bool:
        return not self.warnings

    def results_for(self, intent_type: Type) -> List[Any]:
        return [
            outcome.result
            for outcome in self.outcomes
            if outcome.ok and isinstance(outcome.event, intent_type)
        ]


def require(document, document_type: str, document_id):
    """Raise DocumentNotFound for a missing document, else return it"""
    if document is None:
        raise DocumentNotFound(document_type, document_id)
    return document


def _snapshot(document) -> Optional[dict]:
    if document is None:
        return None
    snapshot = getattr(document, 'snapshot', None)
    return snapshot() if callable(snapshot) else None


class TransitionOrchestrator:
    """
    Runs transitions against injected collaborators

    Args:
        uow_factory: Callable returning a fresh unit of work
        message_bus: Bus with handlers for every intent type
        audit_log: Best-effort audit collaborator (optional)
    """

    def __init__(self, uow_factory: Callable, message_bus: MessageBus, audit_log: Optional[AuditLog] = None):
        self.uow_factory = uow_factory
        self.message_bus = message_bus
        self.audit_log = audit_log

    def execute(
        self,
        action: str,
        *,
        actor_id: str,
        load: Callable,
        apply: Callable,
        save: Optional[Callable] = None,
    ) -> TransitionResult:
        """
        Transition an existing document

        load(uow) -> document; apply(document, uow) evaluates the guard and
        mutates; save(uow, document) persists it.
        """
        return self._run(action, actor_id, load, apply, save)

    def create(
        self,
        action: str,
        *,
        actor_id: str,
        build: Callable,
        save: Optional[Callable] = None,
    ) -> TransitionResult:
        """Create a document; build(uow) runs guards and returns it"""
        return self._run(action, actor_id, None, build, save)

    def _run(self, action, actor_id, load, apply, save) -> TransitionResult:
        logger.info("transition.start", action=action, actor_id=actor_id)

        with self.uow_factory() as uow:
            if load is not None:
                document = load(uow)
                before = _snapshot(document)
                apply(document, uow)
            else:
                before = None
                document = apply(uow)
            if save is not None:
                save(uow, document)
            uow.collect_events(document)
        intents = list(uow.committed_events)

        logger.info(
            "transition.committed",
            action=action,
            document_id=str(getattr(document, 'id', '')),
            intents=len(intents),
        )
        self._audit(actor_id, action, before, _snapshot(document))

        outcomes = self.message_bus.publish_events(intents)
        result = TransitionResult(action=action, document=document, outcomes=outcomes)

        for warning in result.warnings:
            logger.warning(
                "transition.side_effect_failed",
                action=action,
                intent=warning.intent,
                error=warning.error,
            )
            self._audit(actor_id, 'side_effect_failed', None, {
                'action': action,
                'intent': warning.intent,
                'document_id': warning.document_id,
                'error': warning.error,
            })

        return result

    def _audit(self, actor_id, action, before, after):
        if self.audit_log is None:
            return
        try:
            self.audit_log.record(actor_id, action, before, after)
        except Exception as e:
            # The transition is already committed
            logger.error("audit.failed", action=action, error=str(e), exc_info=True)
