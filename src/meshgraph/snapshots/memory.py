"""In-process snapshot store with a bounded history."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable

import structlog

from meshgraph.config import get_settings
from meshgraph.graph.models import Model
from meshgraph.snapshots.base import SnapshotStore, now_ms

logger = structlog.get_logger()


class InMemorySnapshotStore(SnapshotStore):
    """Keeps the newest ``max_snapshots`` snapshots in memory, oldest pruned first."""

    def __init__(
        self,
        max_snapshots: int | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._clock = clock
        if max_snapshots is None:
            max_snapshots = get_settings().snapshot_history_limit
        self._snapshots: deque[tuple[int, Model]] = deque(maxlen=max_snapshots)

    @property
    def name(self) -> str:
        return "memory"

    def __len__(self) -> int:
        return len(self._snapshots)

    async def load_last_model(self) -> Model | None:
        if not self._snapshots:
            return None
        return _detach(self._snapshots[-1][1])

    async def persist_model(self, snapshot: Model) -> Model:
        created_at = self._clock()
        stored = _detach(snapshot)
        self._snapshots.append((created_at, stored))
        logger.debug(
            "snapshot_stored",
            store=self.name,
            created_at=created_at,
            nodes=len(stored.nodes),
            edges=len(stored.edges),
        )
        return _detach(stored)

    async def load_models(self, from_ms: int, to_ms: int) -> list[Model]:
        previous: Model | None = None
        in_range: list[Model] = []
        for created_at, model in self._snapshots:
            if created_at < from_ms:
                previous = model
            elif created_at <= to_ms:
                in_range.append(model)

        if previous is not None:
            in_range.insert(0, previous)
        return [_detach(model) for model in in_range]


def _detach(model: Model) -> Model:
    return Model.from_dict(model.to_dict())
