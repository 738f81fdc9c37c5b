"""
Event system: priority-tiered async publish/subscribe.
"""

from clicker.core.event.bus import EventBus
from clicker.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "EventBus",
    "EventListener",
    "EventPayload",
    "CallbackType",
    "ListenerPriority",
]
