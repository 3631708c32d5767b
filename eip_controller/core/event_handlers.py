# eip_controller/core/event_handlers.py
"""
Event Handlers - React to address lifecycle events
"""

import logging

from .events import Event, EventBus, EventPriority, EventSeverity, event_bus

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("eip_controller.audit")


def audit_log_event(event: Event) -> None:
    """Write every event to the audit logger"""
    level = logging.WARNING if event.severity == EventSeverity.WARNING else logging.INFO
    audit_logger.log(
        level,
        f"[{event.event_type}] {event.message} "
        f"source={event.source} payload={event.payload}"
    )


def register_event_handlers(bus: EventBus = event_bus) -> None:
    """Subscribe default handlers. Called once on application startup."""
    bus.subscribe(EventBus.WILDCARD, audit_log_event, priority=EventPriority.LOW)
    logger.info("Event handlers registered")
