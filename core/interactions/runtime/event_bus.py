"""
Event Bus - Delivers interaction events to the game host.

The bridge publishes two families of events:
- client instructions (show a dialogue line, close the dialogue window)
- flow observations (choice taken, memory changed, traversal failed)

A host subscribes to the instructions and forwards them to the player's UI.
Tests and tooling subscribe to everything, or read the bounded history.
"""

import asyncio
import itertools
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    INTERACTION_STARTED = "interaction_started"
    INTERACTION_CANCELLED = "interaction_cancelled"

    # Instructions for the client
    SHOW_DIALOGUE = "show_dialogue"
    CLOSE_DIALOGUE = "close_dialogue"

    CHOICE_SELECTED = "choice_selected"
    MEMORY_CHANGED = "memory_changed"
    TRAVERSAL_FAILED = "traversal_failed"


@dataclass
class InteractionEvent:
    """Something that happened in one interaction session."""

    type: EventType
    project_id: str
    node_id: str | None = None
    session_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.type),
            "project_id": self.project_id,
            "node_id": self.node_id,
            "session_id": self.session_id,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


EventHandler = Callable[[InteractionEvent], Awaitable[None]]


@dataclass
class Subscription:
    id: str
    event_types: frozenset[EventType]
    handler: EventHandler
    project_id: str | None = None
    node_id: str | None = None

    def accepts(self, event: InteractionEvent) -> bool:
        if event.type not in self.event_types:
            return False
        if self.project_id and event.project_id != self.project_id:
            return False
        if self.node_id and event.node_id != self.node_id:
            return False
        return True


class EventBus:
    """
    Async pub/sub for interaction events.

    Handlers of one event run concurrently. A handler that raises is logged
    and does not stop delivery to the others.

    Example:
        bus = EventBus()

        async def forward(event: InteractionEvent) -> None:
            await client.emit("rc:showDialogue", event.data)

        bus.subscribe([EventType.SHOW_DIALOGUE], forward, filter_project="proj_1")
    """

    def __init__(self, max_history: int = 1000):
        self._subscriptions: dict[str, Subscription] = {}
        self._history: deque[InteractionEvent] = deque(maxlen=max_history)
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    def subscribe(
        self,
        event_types: Iterable[EventType],
        handler: EventHandler,
        filter_project: str | None = None,
        filter_node: str | None = None,
    ) -> str:
        """
        Register a handler.

        Args:
            event_types: Event types the handler wants
            handler: Coroutine function called with each matching event
            filter_project: Only events of this project
            filter_node: Only events about this node

        Returns:
            Subscription id for unsubscribe()
        """
        sub = Subscription(
            id=f"sub_{next(self._ids)}",
            event_types=frozenset(event_types),
            handler=handler,
            project_id=filter_project,
            node_id=filter_node,
        )
        self._subscriptions[sub.id] = sub
        logger.debug(f"{sub.id} listening for {sorted(sub.event_types)}")
        return sub.id

    def unsubscribe(self, subscription_id: str) -> bool:
        return self._subscriptions.pop(subscription_id, None) is not None

    async def publish(self, event: InteractionEvent) -> None:
        async with self._lock:
            self._history.append(event)

        targets = [s for s in self._subscriptions.values() if s.accepts(event)]
        if not targets:
            return

        results = await asyncio.gather(
            *(s.handler(event) for s in targets), return_exceptions=True
        )
        for sub, outcome in zip(targets, results, strict=True):
            if isinstance(outcome, Exception):
                logger.error(f"{sub.id} failed handling {event.type}: {outcome}")

    def get_history(
        self,
        event_type: EventType | None = None,
        project_id: str | None = None,
        limit: int = 100,
    ) -> list[InteractionEvent]:
        """Recent events, newest first, optionally filtered by type and project."""
        matches = (
            e
            for e in reversed(self._history)
            if (event_type is None or e.type == event_type)
            and (project_id is None or e.project_id == project_id)
        )
        return list(itertools.islice(matches, limit))

    def clear_history(self) -> None:
        self._history.clear()
