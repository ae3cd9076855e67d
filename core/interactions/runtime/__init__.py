"""Runtime: editor simulator and game host bridge."""

from interactions.runtime.bridge import (
    InteractionBridge,
    InteractionSession,
    RuntimeChoice,
    RuntimeDialogue,
)
from interactions.runtime.event_bus import EventBus, EventType, InteractionEvent
from interactions.runtime.simulator import GameSimulator, SimulationError, TranscriptEntry

__all__ = [
    "EventBus",
    "EventType",
    "InteractionEvent",
    "GameSimulator",
    "SimulationError",
    "TranscriptEntry",
    "InteractionBridge",
    "InteractionSession",
    "RuntimeDialogue",
    "RuntimeChoice",
]
