"""
SQL snapshot store.

Persists graph snapshots as JSON rows in the ``graph_snapshots`` table
through an async SQLAlchemy session factory.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meshgraph.core.errors import StorageError
from meshgraph.db.models import GraphSnapshot
from meshgraph.graph.models import Model
from meshgraph.snapshots.base import SnapshotStore, now_ms

logger = structlog.get_logger()


class SqlSnapshotStore(SnapshotStore):
    """Repository for graph snapshot database operations."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    @property
    def name(self) -> str:
        return "sql"

    async def load_last_model(self) -> Model | None:
        stmt = (
            select(GraphSnapshot)
            .order_by(GraphSnapshot.created_at.desc(), GraphSnapshot.id.desc())
            .limit(1)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(
                "Unable to load the last graph snapshot", details={"error": str(exc)}
            ) from exc

        if row is None:
            return None
        return self._row_to_model(row)

    async def persist_model(self, snapshot: Model) -> Model:
        data = snapshot.to_dict()
        created_at = self._clock()
        node_count = len(data["nodes"])
        edge_count = len(data["edges"])

        # The row expires on commit, so nothing reads it after the session closes
        try:
            async with self._session_factory() as session:
                session.add(
                    GraphSnapshot(
                        created_at=created_at,
                        node_count=node_count,
                        edge_count=edge_count,
                        nodes=data["nodes"],
                        edges=data["edges"],
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(
                "Unable to persist graph snapshot",
                details={"error": str(exc), "nodes": node_count, "edges": edge_count},
            ) from exc

        logger.debug(
            "snapshot_stored",
            store=self.name,
            created_at=created_at,
            nodes=node_count,
            edges=edge_count,
        )
        return Model.from_dict(data)

    async def load_models(self, from_ms: int, to_ms: int) -> list[Model]:
        previous_stmt = (
            select(GraphSnapshot)
            .where(GraphSnapshot.created_at < from_ms)
            .order_by(GraphSnapshot.created_at.desc(), GraphSnapshot.id.desc())
            .limit(1)
        )
        range_stmt = (
            select(GraphSnapshot)
            .where(
                GraphSnapshot.created_at >= from_ms,
                GraphSnapshot.created_at <= to_ms,
            )
            .order_by(GraphSnapshot.created_at)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(previous_stmt)
                previous = result.scalar_one_or_none()
                result = await session.execute(range_stmt)
                rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError(
                "Unable to load graph snapshots",
                details={"from_ms": from_ms, "to_ms": to_ms, "error": str(exc)},
            ) from exc

        if previous is not None:
            rows.insert(0, previous)
        return [self._row_to_model(row) for row in rows]

    def _row_to_model(self, row: GraphSnapshot) -> Model:
        return Model.from_dict({"nodes": row.nodes or [], "edges": row.edges or []})
