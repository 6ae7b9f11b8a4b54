"""
meshgraph - live service dependency graph for a microservice mesh.

Keeps the dependency network discovered from tracing telemetry in memory,
persists snapshots when it changes and resolves dependency queries over
live or historical topology.
"""

from meshgraph.graph import DependencyGraphStore, Edge, Model, Node
from meshgraph.query import DependencyQueryService, build_graph_store
from meshgraph.snapshots import PeriodicReconciler, ReconcileOutcome, SnapshotStore

__version__ = "0.1.0"

__all__ = [
    "Node",
    "Edge",
    "Model",
    "DependencyGraphStore",
    "DependencyQueryService",
    "build_graph_store",
    "PeriodicReconciler",
    "ReconcileOutcome",
    "SnapshotStore",
]
