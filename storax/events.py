"""
Event Sink interface.

The lifecycle manager reports what happened (uploads, state transitions,
downloads, deletes) through a sink. Recording is fire-and-forget: a sink
that raises never rolls back the operation that produced the event.
"""

import logging
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger("storax.events")


class EventType(Enum):
    """Activity event kinds."""
    UPLOAD = "upload"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    FAILED = "failed"
    DOWNLOAD = "download"
    DELETE = "delete"


@dataclass
class ActivityEvent:
    """One entry for the activity log."""
    type: EventType
    description: str
    object_id: str | None = None
    file_name: str | None = None
    metadata: dict = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: secrets.token_hex(16))

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "type": self.type.value,
            "description": self.description,
            "timestamp": self.timestamp,
        }
        if self.object_id is not None:
            data["object_id"] = self.object_id
        if self.file_name is not None:
            data["file_name"] = self.file_name
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


class EventSink(ABC):
    """Receives activity events. Implemented by the activity log."""

    @abstractmethod
    def record(self, event: ActivityEvent) -> None:
        """Record one event."""


class LoggingEventSink(EventSink):
    """Default sink: writes each event to the "storax.activity" logger."""

    def __init__(self, log: logging.Logger = None):
        self.log = log or logging.getLogger("storax.activity")

    def record(self, event: ActivityEvent) -> None:
        self.log.info("[%s] %s", event.type.value, event.description)


def emit(sink: EventSink, event: ActivityEvent) -> None:
    """Hand an event to a sink. Sink errors are logged, never raised."""
    try:
        sink.record(event)
    except Exception:
        logger.exception("Event sink failed to record %s event", event.type.value)
