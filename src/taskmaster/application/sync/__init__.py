"""
Ticket synchronization: status reconciliation and full-file sync.
"""

from .reconciler import ReconcileOutcome, StatusReconciler, SyncStats
from .tickets import SyncTicketsResult, TicketSynchronizer, summary_message


__all__ = [
    "ReconcileOutcome",
    "StatusReconciler",
    "SyncStats",
    "SyncTicketsResult",
    "TicketSynchronizer",
    "summary_message",
]
