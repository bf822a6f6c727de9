"""
Event types and EventBus protocol.

The engine publishes events after state has been persisted. Subscribers
(tree views, web pages) may use them, or ignore them and re-read the store.
"""

from typing import Any, Protocol

from pydantic import BaseModel


class Event(BaseModel):
    """Domain event that can be published to subscribers."""

    type: str
    properties: dict[str, Any]


class EventBus(Protocol):
    """Abstract interface for publishing events."""

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers."""
        ...


class NullEventBus:
    """No-op EventBus implementation."""

    def publish(self, event: Event) -> None:
        """Discard the event."""
        pass


class CollectingEventBus:
    """EventBus that keeps every published event in memory."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def publish(self, event: Event) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [event.type for event in self.events]
