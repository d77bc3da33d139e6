"""
Watcher - Polling, reconciliation et diffusion des transitions live
"""

from watcher.message_bus import MessageBus
from watcher.poll_scheduler import PollScheduler, PollState
from watcher.reconciler import Reconciler, reconcile

__all__ = ["MessageBus", "PollScheduler", "PollState", "Reconciler", "reconcile"]
