"""
Event System Module

Publish/subscribe dispatcher for the notifications emitted by the ledger,
the credential registry and the treasury workflow. Every published event is
also kept in an append-only history so callers can observe what an
operation emitted.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, List, Optional


class EventType(str, Enum):
    # Ledger
    TRANSFER = "Transfer"
    APPROVAL = "Approval"

    # Credentials
    ISSUER_ADDED = "IssuerAdded"
    CREDENTIAL_ISSUED = "CredentialIssued"
    CREDENTIAL_REVOKED = "CredentialRevoked"

    # Treasury
    TREASURY_FUNDED = "TreasuryFunded"
    REQUEST_CREATED = "RequestCreated"
    REQUEST_APPROVED = "RequestApproved"
    REQUEST_FULLY_APPROVED = "RequestFullyApproved"
    FUNDS_RELEASED = "FundsReleased"


@dataclass
class EventPayload:
    """Payload for an emitted notification"""
    event_type: EventType
    source: str
    data: Dict[str, Any]
    timestamp: int
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    sequence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "source": self.source,
            "data": self.data,
            "timestamp": self.timestamp,
            "event_id": self.event_id,
            "sequence": self.sequence,
        }


Handler = Callable[[EventPayload], None]


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__name__", repr(handler))


class EventDispatcher:
    """Central event dispatcher, publish/subscribe pattern"""

    def __init__(self):
        self._handlers: Dict[EventType, List[Handler]] = {}
        self._global_handlers: List[Handler] = []
        self._history: List[EventPayload] = []
        self._lock = RLock()
        self.logger = logging.getLogger("medtreasury.events")

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self.logger.debug(f"Subscribed handler {_handler_name(handler)} to {event_type.value}")

    def subscribe_all(self, handler: Handler) -> None:
        with self._lock:
            self._global_handlers.append(handler)
            self.logger.debug(f"Subscribed global handler {_handler_name(handler)}")

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        with self._lock:
            try:
                self._handlers.get(event_type, []).remove(handler)
            except ValueError:
                self.logger.warning(f"Handler {_handler_name(handler)} was not subscribed to {event_type.value}")

    def publish(self, event: EventPayload) -> EventPayload:
        """Record the event and deliver it to all subscribers"""
        with self._lock:
            event.sequence = len(self._history) + 1
            self._history.append(event)
            self.logger.debug(f"Publishing {event.event_type.value} #{event.sequence} from {event.source}")

            for handler in self._handlers.get(event.event_type, []) + self._global_handlers:
                try:
                    handler(event)
                except Exception as e:
                    # Handlers observe; they cannot undo the committed operation
                    self.logger.error(
                        f"Error in event handler {_handler_name(handler)} for {event.event_type.value}: {e}"
                    )
            return event

    def emit(self, event_type: EventType, source: str, timestamp: int, **data: Any) -> EventPayload:
        return self.publish(EventPayload(event_type=event_type, source=source, data=data, timestamp=timestamp))

    def history(self, event_type: Optional[EventType] = None) -> List[EventPayload]:
        with self._lock:
            if event_type is None:
                return list(self._history)
            return [e for e in self._history if e.event_type == event_type]

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()
            self._global_handlers.clear()
            self._history.clear()
