# eip_controller/core/events.py
"""
Event Bus - Internal Pub/Sub for operational events

Address services record warnings and lifecycle events here without
knowing who consumes them. Publishing is fire-and-forget: a failing
handler is logged and never propagates to the publisher.
"""

import logging
import time
import traceback
import uuid
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


class EventPriority(Enum):
    """Event handler priority levels"""
    HIGH = 1
    NORMAL = 5
    LOW = 10


class EventSeverity(str, Enum):
    NORMAL = "Normal"
    WARNING = "Warning"


@dataclass
class Event:
    """Base event class"""
    event_type: str
    payload: Dict[str, Any]
    severity: EventSeverity = EventSeverity.NORMAL
    message: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: Optional[str] = None
    source: Optional[str] = None

    def __post_init__(self):
        if self.event_id is None:
            self.event_id = str(uuid.uuid4())

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "severity": self.severity.value,
            "message": self.message,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


@dataclass
class HandlerRegistration:
    """Registration info for an event handler"""
    handler: Callable
    priority: EventPriority
    retry_count: int = 0
    retry_delay: float = 0.5


class EventBus:
    """
    In-process Event Bus with pub/sub pattern

    Features:
    - Priority-based execution order
    - Optional retry on handler failure
    - Wildcard ("*") subscriptions
    - Bounded event history for debugging
    """

    WILDCARD = "*"

    _instance: Optional['EventBus'] = None

    def __new__(cls):
        """Singleton pattern"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._handlers: Dict[str, List[HandlerRegistration]] = {}
        self._event_history: List[Event] = []
        self._max_history_size: int = 1000
        self._initialized = True
        logger.debug("EventBus initialized")

    def subscribe(
        self,
        event_type: str,
        handler: Callable,
        priority: EventPriority = EventPriority.NORMAL,
        retry_count: int = 0,
        retry_delay: float = 0.5
    ) -> None:
        """
        Subscribe a handler to an event type

        Args:
            event_type: Event type to subscribe to (e.g., "FailedReleaseEIP"), or "*"
            handler: Callable that receives Event object
            priority: Execution priority (HIGH runs first)
            retry_count: Number of retries on failure
            retry_delay: Seconds between retries
        """
        registration = HandlerRegistration(
            handler=handler,
            priority=priority,
            retry_count=retry_count,
            retry_delay=retry_delay
        )

        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(registration)
        handlers.sort(key=lambda r: r.priority.value)

        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type} with priority {priority.name}")

    def publish(self, event: Event) -> None:
        """
        Publish an event synchronously

        All handlers are executed in priority order.
        Failures are logged but don't stop other handlers.
        """
        self._add_to_history(event)
        handlers = self._handlers.get(event.event_type, []) + self._handlers.get(self.WILDCARD, [])
        handlers.sort(key=lambda r: r.priority.value)

        if not handlers:
            logger.debug(f"No handlers for event: {event.event_type}")
            return

        for registration in handlers:
            self._execute_handler(registration, event)

    def _execute_handler(self, registration: HandlerRegistration, event: Event) -> None:
        """Execute a handler with retry logic"""
        handler = registration.handler
        name = getattr(handler, "__name__", repr(handler))

        for attempt in range(registration.retry_count + 1):
            try:
                handler(event)
                return
            except Exception as e:
                if attempt < registration.retry_count:
                    logger.warning(f"Handler {name} failed (attempt {attempt + 1}), retrying: {e}")
                    time.sleep(registration.retry_delay)
                else:
                    logger.error(
                        f"Handler {name} failed after {registration.retry_count + 1} attempts: {e}\n"
                        f"{traceback.format_exc()}"
                    )

    def _add_to_history(self, event: Event) -> None:
        """Add event to history, maintaining max size"""
        self._event_history.append(event)
        if len(self._event_history) > self._max_history_size:
            self._event_history = self._event_history[-self._max_history_size:]

    def get_history(self, event_type: Optional[str] = None, limit: int = 100) -> List[Event]:
        """Get recent events, optionally filtered by type"""
        history = self._event_history
        if event_type:
            history = [e for e in history if e.event_type == event_type]
        return history[-limit:]

    def clear(self) -> None:
        """Clear all subscriptions and history (for testing)"""
        self._handlers.clear()
        self._event_history.clear()


event_bus = EventBus()


def record_event(reason: str, message: str, source: Optional[str] = None, **payload: Any) -> None:
    """Publish a Normal event keyed by reason"""
    _record(EventSeverity.NORMAL, reason, message, source, payload)


def record_warning(reason: str, message: str, source: Optional[str] = None, **payload: Any) -> None:
    """Publish a Warning event keyed by reason"""
    _record(EventSeverity.WARNING, reason, message, source, payload)


def _record(
    severity: EventSeverity,
    reason: str,
    message: str,
    source: Optional[str],
    payload: Dict[str, Any],
) -> None:
    try:
        event_bus.publish(Event(
            event_type=reason,
            payload=payload,
            severity=severity,
            message=message,
            source=source,
        ))
    except Exception as e:
        logger.error(f"Failed to record event {reason}: {e}")
