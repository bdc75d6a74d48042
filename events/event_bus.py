"""
Event Bus for the rollup record stream
"""

import logging
import threading
from typing import Dict, List, Callable, Any, Optional
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """Event data structure"""
    type: str
    data: Dict[str, Any]
    timestamp: float
    sequence: int = 0
    source: str = "system"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Event":
        return cls(
            type=raw["type"],
            data=raw["data"],
            timestamp=raw["timestamp"],
            sequence=raw.get("sequence", 0),
            source=raw.get("source", "system"),
        )


class EventBus:
    """
    Synchronous event bus. Every emitted event gets the next sequence number,
    is appended to ``history`` and is dispatched to listeners in subscription
    order before ``emit`` returns.

    Listener errors are logged and do not stop dispatch. A listener subscribed
    with ``critical=True`` (the journal) also records its first error in
    ``fault``; writers check it before committing anything new.
    """

    WILDCARD = "*"

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = defaultdict(list)
        self.history: List[Event] = []
        self.fault: Optional[Exception] = None
        self._critical: List[Callable] = []
        self._lock = threading.RLock()
        logger.info("EventBus initialized")

    def _dispatch_event(self, event: Event):
        """Dispatch event to all registered listeners"""
        listeners = self.listeners.get(event.type, []) + self.listeners.get(self.WILDCARD, [])

        if not listeners:
            logger.debug(f"No listeners for event type: {event.type}")
            return

        logger.debug(f"Dispatching {event.type} to {len(listeners)} listeners")

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                # The change that produced the event is already committed
                name = getattr(listener, '__name__', listener)
                if listener in self._critical:
                    logger.critical(f"Critical listener {name} failed on event #{event.sequence}: {e}")
                    if self.fault is None:
                        self.fault = e
                else:
                    logger.error(f"Error in listener {name}: {e}")

    def subscribe(self, event_type: str, listener: Callable, critical: bool = False):
        """Subscribe to an event type, or to every type with ``EventBus.WILDCARD``"""
        self.listeners[event_type].append(listener)
        if critical and listener not in self._critical:
            self._critical.append(listener)
        logger.info(f"Subscribed {getattr(listener, '__name__', listener)} to {event_type}")

    def unsubscribe(self, event_type: str, listener: Callable):
        """Unsubscribe from an event type"""
        if listener in self.listeners[event_type]:
            self.listeners[event_type].remove(listener)
            if listener in self._critical and not any(listener in ls for ls in self.listeners.values()):
                self._critical.remove(listener)
            logger.info(f"Unsubscribed {getattr(listener, '__name__', listener)} from {event_type}")

    @property
    def healthy(self) -> bool:
        return self.fault is None

    def emit(self, event_type: str, data: Dict[str, Any], source: str = "system",
             timestamp: Optional[float] = None) -> Event:
        """Emit an event"""
        with self._lock:
            event = Event(
                type=event_type,
                data=data,
                timestamp=timestamp if timestamp is not None else datetime.now().timestamp(),
                sequence=len(self.history),
                source=source
            )
            self.history.append(event)
            self._dispatch_event(event)

        logger.debug(f"Emitted event: {event_type} #{event.sequence} from {source}")
        return event

    def events_of(self, event_type: str) -> List[Event]:
        return [e for e in self.history if e.type == event_type]


# Event types
class EventTypes:
    """Standard event types"""
    # Batch events
    BATCH_ACCEPTED = "batch_accepted"
    STATE_ADVANCED = "state_advanced"

    # Submission events
    SUBMISSION_ACCEPTED = "submission_accepted"
    SUBMISSION_REGISTERED = "submission_registered"

    # Admin events
    VERIFIER_UPDATED = "verifier_updated"

    ALL = (
        BATCH_ACCEPTED,
        SUBMISSION_ACCEPTED,
        STATE_ADVANCED,
        SUBMISSION_REGISTERED,
        VERIFIER_UPDATED,
    )
