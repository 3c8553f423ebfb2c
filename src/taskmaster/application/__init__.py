"""
Application layer - event bus, ticketing handlers, synchronization and task mutations.
"""

from .events import EventBus, EventSystem, TicketingEventHandlers, register_ticketing_subscribers
from .sync import ReconcileOutcome, StatusReconciler, SyncStats, SyncTicketsResult, TicketSynchronizer
from .tasks import TaskService


__all__ = [
    "EventBus",
    "EventSystem",
    "ReconcileOutcome",
    "StatusReconciler",
    "SyncStats",
    "SyncTicketsResult",
    "TaskService",
    "TicketSynchronizer",
    "TicketingEventHandlers",
    "register_ticketing_subscribers",
]
