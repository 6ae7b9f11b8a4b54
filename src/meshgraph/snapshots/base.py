"""
Base class for graph snapshot stores.

All snapshot stores must implement load_last_model(), persist_model()
and load_models().
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

from meshgraph.graph.models import Model


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class SnapshotStore(ABC):
    """
    Abstract base class for durable graph snapshot storage.

    Stores should:
    - Key every snapshot by its creation time in epoch milliseconds
    - Return detached Models that later graph mutations cannot affect
    - Raise StorageError for any I/O failure
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name for identification."""

    @abstractmethod
    async def load_last_model(self) -> Model | None:
        """
        Load the most recently persisted snapshot.

        Returns:
            The latest Model, or None if nothing was persisted yet
        """

    @abstractmethod
    async def persist_model(self, snapshot: Model) -> Model:
        """
        Persist a snapshot keyed by the current time.

        Returns:
            The persisted representation of the snapshot
        """

    @abstractmethod
    async def load_models(self, from_ms: int, to_ms: int) -> list[Model]:
        """
        Load every snapshot that was in effect during ``[from_ms, to_ms]``.

        That is each snapshot created inside the range plus the last one
        created before ``from_ms``. Order is unspecified.
        """
