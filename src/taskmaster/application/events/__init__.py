"""
Event-driven ticket synchronization.
"""

from .bus import MAX_HISTORY, EventBus, Subscriber, Unsubscribe
from .handlers import TicketingEventHandlers
from .registrar import register_ticketing_subscribers
from .system import EventSystem


__all__ = [
    "MAX_HISTORY",
    "EventBus",
    "EventSystem",
    "Subscriber",
    "TicketingEventHandlers",
    "Unsubscribe",
    "register_ticketing_subscribers",
]
