from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, BigInteger, Index, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class GraphSnapshot(Base):
    __tablename__ = "graph_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Epoch milliseconds; the key range queries run against
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    node_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    edge_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nodes: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    edges: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    __table_args__ = (Index("idx_graph_snapshots_created", "created_at"),)
