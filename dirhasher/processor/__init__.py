"""Concurrent digest scheduling and outcome reconciliation."""

from dirhasher.processor.reconciler import Reconciler, ReconciliationError
from dirhasher.processor.scheduler import BoundedScheduler, clamp_workers, resolve_entry_path

__all__ = [
    "BoundedScheduler",
    "Reconciler",
    "ReconciliationError",
    "clamp_workers",
    "resolve_entry_path",
]
