"""Recording of events about objects handled by the controller.

Events are the user visible record of what happened during reconciliation,
attached to the object they are about. Recording an event is fire and forget:
callers do not wait on or handle failures of the recorder.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Protocol

from .manifest import NamedResource, now_timestamp

__all__ = [
    "EventType",
    "Event",
    "EventRecorder",
    "LoggingEventRecorder",
    "InMemoryEventRecorder",
]

_LOGGER = logging.getLogger(__name__)

REASON_INTERNAL_ERROR = "InternalError"
REASON_UPDATE_FAILED = "UpdateFailed"
REASON_READY = "InferenceServiceReady"
REASON_NOT_READY = "InferenceServiceNotReady"


class EventType(StrEnum):
    """Severity of an event."""

    NORMAL = "Normal"
    WARNING = "Warning"


class EventObject(Protocol):
    """An object that events can be recorded against."""

    @property
    def resource_id(self) -> NamedResource:
        """The identity of the object."""


@dataclass(frozen=True)
class Event:
    """A single recorded event."""

    resource_id: NamedResource
    type: EventType
    reason: str
    message: str
    timestamp: str = field(default_factory=now_timestamp, compare=False)

    def __str__(self) -> str:
        return f"{self.type} {self.reason} {self.resource_id}: {self.message}"


class EventRecorder(ABC):
    """Sink for events about objects."""

    @abstractmethod
    def event(
        self, obj: EventObject, event_type: EventType, reason: str, message: str
    ) -> None:
        """Record an event about the object."""


class LoggingEventRecorder(EventRecorder):
    """Event recorder that writes events to the log."""

    def event(
        self, obj: EventObject, event_type: EventType, reason: str, message: str
    ) -> None:
        """Record an event about the object."""
        level = logging.WARNING if event_type == EventType.WARNING else logging.INFO
        _LOGGER.log(
            level,
            "Event(%s) %s %s: %s",
            obj.resource_id,
            event_type,
            reason,
            message,
        )


class InMemoryEventRecorder(LoggingEventRecorder):
    """Event recorder that keeps all events in memory, in the order recorded."""

    def __init__(self) -> None:
        """Initialize InMemoryEventRecorder."""
        self.events: list[Event] = []

    def event(
        self, obj: EventObject, event_type: EventType, reason: str, message: str
    ) -> None:
        """Record an event about the object."""
        super().event(obj, event_type, reason, message)
        self.events.append(
            Event(
                resource_id=obj.resource_id,
                type=event_type,
                reason=reason,
                message=message,
            )
        )

    def events_for(self, resource_id: NamedResource) -> list[Event]:
        """Return the events recorded for a single object."""
        return [event for event in self.events if event.resource_id == resource_id]
