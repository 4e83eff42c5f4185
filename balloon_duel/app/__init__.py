"""Couche application : bus d'évènements et évènements du groupe d'agents."""

from .event_bus import EventBus
from .events import (
    AgentEliminated,
    EpisodeEnded,
    EpisodeStarted,
    RewardEvent,
    TokenConsumed,
    TokenRestored,
)

__all__ = [
    "EventBus",
    "AgentEliminated",
    "EpisodeEnded",
    "EpisodeStarted",
    "RewardEvent",
    "TokenConsumed",
    "TokenRestored",
]
