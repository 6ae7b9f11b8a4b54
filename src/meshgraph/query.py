"""
Dependency queries over live or historical topology.

A time range of ``(0, 0)`` means the live graph. Any other range is answered
from stored snapshots merged into one model, with ``to_ms == 0`` meaning
"up to now".
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from meshgraph.core.errors import ConstructionError
from meshgraph.graph.models import Model, merge_models
from meshgraph.graph.resolver import service_dependency_model, transitive_dependency_model
from meshgraph.graph.store import DependencyGraphStore
from meshgraph.snapshots.base import SnapshotStore, now_ms

logger = structlog.get_logger()


async def build_graph_store(snapshot_store: SnapshotStore) -> DependencyGraphStore:
    """
    Build the live graph store from the last persisted snapshot.

    A store without snapshots yields an empty graph.

    Raises:
        StorageError: If the last snapshot cannot be loaded
        ConstructionError: If the last snapshot is inconsistent
    """
    model = await snapshot_store.load_last_model()
    return DependencyGraphStore.from_model(model)


class DependencyQueryService:
    """Answer graph and dependency queries for the query API."""

    def __init__(
        self,
        graph_store: DependencyGraphStore,
        snapshot_store: SnapshotStore,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._graph_store = graph_store
        self._snapshot_store = snapshot_store
        self._clock = clock

    async def get_graph(self, from_ms: int = 0, to_ms: int = 0) -> Model:
        """
        Get the dependency graph for a time range.

        Raises:
            StorageError: If stored snapshots cannot be loaded
        """
        if from_ms == 0 and to_ms == 0:
            return self._graph_store.snapshot()

        if to_ms == 0:
            to_ms = self._clock()
        models = await self._snapshot_store.load_models(from_ms, to_ms)
        return merge_snapshots(models)

    async def get_dependency_model(self, from_ms: int, to_ms: int, node_id: str) -> Model:
        """Get everything ``node_id`` depends on, transitively."""
        graph = await self.get_graph(from_ms, to_ms)
        return transitive_dependency_model(graph, node_id)

    async def get_service_dependency_model(
        self,
        from_ms: int,
        to_ms: int,
        node_id: str,
        service: str,
    ) -> Model:
        """Get the service-level dependencies of ``service`` on ``node_id``."""
        graph = await self.get_graph(from_ms, to_ms)
        return service_dependency_model(graph, node_id, service)


def merge_snapshots(models: Iterable[Model]) -> Model:
    """
    Merge time-bucketed snapshots into one model.

    Snapshots whose edges reference missing nodes are left out of the merge
    and logged; the remaining snapshots still answer the query.
    """
    usable: list[Model] = []
    for model in models:
        try:
            usable.append(model.validate())
        except ConstructionError as exc:
            logger.warning("snapshot_excluded", error=exc.message, details=exc.details)
    return merge_models(usable)
