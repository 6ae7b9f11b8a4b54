"""
Periodic reconciliation of the live graph against persisted snapshots.

Each tick compares the live topology with the last persisted snapshot and
writes a new snapshot only when something changed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from enum import Enum

from meshgraph.config import get_settings
from meshgraph.core.errors import StorageError
from meshgraph.graph.models import Model, Node
from meshgraph.graph.store import DependencyGraphStore
from meshgraph.logging import bind_context
from meshgraph.snapshots.base import SnapshotStore


class ReconcileOutcome(Enum):
    """What a reconciliation tick decided."""

    PERSISTED = "persisted"  # New snapshot written
    UNCHANGED = "unchanged"  # Live graph matches the last snapshot
    EMPTY = "empty"  # Nothing persisted yet and nothing to persist
    FAILED = "failed"  # Storage error, cached snapshot left as it was


def is_same_nodes(current: Iterable[Node], last: Iterable[Node]) -> bool:
    """True if every current node has a same-id last node with equal components."""
    last_by_id = {node.id: node for node in last}
    for node in current:
        previous = last_by_id.get(node.id)
        if previous is None:
            return False
        if len(previous.components) != len(node.components):
            return False
        if not previous.components >= node.components:
            return False
    return True


def is_same_edges(current: Iterable[str], last: Iterable[str]) -> bool:
    """True if every current edge label is among the last labels."""
    return set(current) <= set(last)


def is_same_model(current: Model, last: Model) -> bool:
    """Cheap size check first, then node and edge comparison."""
    if len(current.nodes) != len(last.nodes) or len(current.edges) != len(last.edges):
        return False
    return is_same_nodes(current.nodes, last.nodes) and is_same_edges(
        current.edge_labels, last.edge_labels
    )


class PeriodicReconciler:
    """
    Decide on every tick whether the live graph warrants a new snapshot.

    Ticks are serialized: a tick holds the reconciler lock until it ends,
    so a slow persist delays the next tick instead of interleaving with it.
    """

    def __init__(self, graph_store: DependencyGraphStore, snapshot_store: SnapshotStore) -> None:
        self._graph_store = graph_store
        self._snapshot_store = snapshot_store
        self._last_model: Model | None = None
        self._lock = asyncio.Lock()
        self._log = bind_context(component="reconciler", store=snapshot_store.name)

    @property
    def last_model(self) -> Model | None:
        return self._last_model

    @property
    def is_reconciling(self) -> bool:
        return self._lock.locked()

    async def tick(self) -> ReconcileOutcome:
        """Run one reconciliation tick."""
        async with self._lock:
            try:
                outcome = await self._reconcile()
            except StorageError as exc:
                self._log.error(
                    "reconcile_failed",
                    error=exc.message,
                    details=exc.details,
                )
                return ReconcileOutcome.FAILED

        self._log.debug("reconcile_finished", outcome=outcome.value)
        return outcome

    async def run(self, stop: asyncio.Event, interval_seconds: float | None = None) -> None:
        """Tick every ``interval_seconds`` until ``stop`` is set.

        The interval defaults to ``reconcile_interval_seconds`` from settings.
        """
        if interval_seconds is None:
            interval_seconds = get_settings().reconcile_interval_seconds
        while not stop.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                continue

    async def _reconcile(self) -> ReconcileOutcome:
        current = self._graph_store.snapshot()

        if self._last_model is None:
            self._last_model = await self._snapshot_store.load_last_model()

        if self._last_model is None:
            if current.is_empty():
                return ReconcileOutcome.EMPTY
            await self._persist(current)
            return ReconcileOutcome.PERSISTED

        if is_same_model(current, self._last_model):
            return ReconcileOutcome.UNCHANGED

        await self._persist(current)
        return ReconcileOutcome.PERSISTED

    async def _persist(self, current: Model) -> None:
        self._last_model = await self._snapshot_store.persist_model(current)
        self._log.info(
            "snapshot_persisted",
            nodes=len(current.nodes),
            edges=len(current.edges),
        )
