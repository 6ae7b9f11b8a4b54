"""
Graph snapshot persistence and periodic reconciliation.
"""

from meshgraph.snapshots.base import SnapshotStore, now_ms
from meshgraph.snapshots.memory import InMemorySnapshotStore
from meshgraph.snapshots.reconciler import (
    PeriodicReconciler,
    ReconcileOutcome,
    is_same_edges,
    is_same_model,
    is_same_nodes,
)
from meshgraph.snapshots.sql import SqlSnapshotStore

__all__ = [
    # Stores
    "SnapshotStore",
    "InMemorySnapshotStore",
    "SqlSnapshotStore",
    "now_ms",
    # Reconciliation
    "PeriodicReconciler",
    "ReconcileOutcome",
    "is_same_nodes",
    "is_same_edges",
    "is_same_model",
]
