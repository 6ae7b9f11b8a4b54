"""
Live dependency graph store.

Wraps a networkx MultiDiGraph keyed by node id, with the Node instance held
as node data and the edge label as edge key. A node cache (id -> Node)
speeds up repeated lookups; the graph stays authoritative.
"""

from __future__ import annotations

import threading
from typing import Any

import networkx as nx
import structlog

from meshgraph.core.errors import ConstructionError, EdgeNameError
from meshgraph.graph.models import Edge, Model, Node
from meshgraph.graph.naming import decode_edge_name, encode_edge_name

logger = structlog.get_logger()


class DependencyGraphStore:
    """
    In-memory dependency network shared by ingestion, reconciliation and queries.

    Every public method takes the store lock, so node insertion, cache
    population and edge insertion are each atomic from the caller's side.
    Nodes are never removed.
    """

    def __init__(self) -> None:
        self._graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._node_cache: dict[str, Node] = {}
        self._lock = threading.RLock()
        self._dropped_links = 0

    @classmethod
    def from_model(cls, model: Model | None) -> DependencyGraphStore:
        """
        Build a store from a persisted snapshot, or an empty one if absent.

        Raises:
            ConstructionError: If a snapshot edge references a missing node
        """
        store = cls()
        if model is not None:
            store._load(model)
            logger.info(
                "graph_store_loaded",
                nodes=store.node_count,
                edges=store.edge_count,
            )
        return store

    def _load(self, model: Model) -> None:
        with self._lock:
            for node in model.nodes:
                if node.id not in self._graph:
                    self._graph.add_node(node.id, node=node.copy())
                self._node_cache.setdefault(node.id, self._graph.nodes[node.id]["node"])

            for label in sorted(model.edge_labels):
                try:
                    source_id, target_id, _ = decode_edge_name(label)
                except EdgeNameError as exc:
                    raise ConstructionError(
                        "Persisted snapshot holds a malformed edge name",
                        details={"edge": label},
                    ) from exc

                parent = self._lookup(source_id)
                child = self._lookup(target_id)
                if parent is None or child is None:
                    missing = []
                    if parent is None:
                        missing.append("parent")
                    if child is None:
                        missing.append("child")
                    raise ConstructionError(
                        "Edge endpoint does not exist in the graph",
                        details={"edge": label, "missing": ",".join(missing)},
                    )
                self._graph.add_edge(parent.id, child.id, key=label)

    @property
    def node_count(self) -> int:
        with self._lock:
            return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        with self._lock:
            return self._graph.number_of_edges()

    @property
    def dropped_links(self) -> int:
        """Number of links discarded by add_link because their name was invalid."""
        with self._lock:
            return self._dropped_links

    def get_node(self, node_id: str) -> Node | None:
        """Look up a node by id, case-insensitively on a cache miss."""
        with self._lock:
            return self._lookup(node_id)

    def get_or_create_transient(self, node_id: str) -> Node:
        """
        Look up a node, or return a new detached Node for an unknown id.

        The detached node is neither cached nor added to the graph.
        """
        with self._lock:
            node = self._lookup(node_id)
        return node if node is not None else Node(node_id)

    def ensure_node(self, node_id: str) -> Node:
        """Return the node for ``node_id``, adding a new one if it is unknown."""
        with self._lock:
            node = self._lookup(node_id)
            if node is None:
                node = Node(node_id)
                self._insert(node)
            return node

    def add_node(self, node: Node) -> None:
        """Insert a node; the cache slot for its id is overwritten."""
        with self._lock:
            self._insert(node)

    def add_component(self, node: Node, component: str) -> None:
        with self._lock:
            node.add_component(component)

    def add_link(self, parent: Node, child: Node, service: str) -> None:
        """
        Record a call from ``parent`` to ``child`` carrying ``service``.

        A call within one node is stored as a self-edge on that node instead
        of a graph edge. Links whose name cannot be built are dropped and
        counted rather than raised, so one bad observation never stops
        ingestion.
        """
        with self._lock:
            try:
                if parent.id != child.id:
                    label = encode_edge_name(parent.id, child.id, service)
                    for node in (parent, child):
                        if node.id not in self._graph:
                            self._graph.add_node(node.id, node=node)
                            self._node_cache.setdefault(node.id, node)
                    self._graph.add_edge(parent.id, child.id, key=label)
                else:
                    if not isinstance(service, str) or not service:
                        raise EdgeNameError(
                            "Self edge needs a service link", details={"node": parent.id}
                        )
                    parent.add_self_edge(service)
            except (EdgeNameError, TypeError, AttributeError) as exc:
                self._dropped_links += 1
                logger.warning(
                    "link_dropped",
                    parent=getattr(parent, "id", None),
                    child=getattr(child, "id", None),
                    service=service,
                    error=str(exc),
                    dropped_links=self._dropped_links,
                )

    def nodes(self) -> list[Node]:
        """Live node instances; mutating them mutates the graph."""
        with self._lock:
            return [node for _, node in self._graph.nodes(data="node")]

    def edges(self) -> list[str]:
        with self._lock:
            return [key for _, _, key in self._graph.edges(keys=True)]

    def snapshot(self) -> Model:
        """Copy the current topology into a Model detached from the live graph."""
        with self._lock:
            nodes = [node.copy() for _, node in self._graph.nodes(data="node")]
            edges = [Edge(key) for _, _, key in self._graph.edges(keys=True)]
        return Model.of(nodes, edges)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "node_count": self._graph.number_of_nodes(),
                "edge_count": self._graph.number_of_edges(),
                "cached_nodes": len(self._node_cache),
                "dropped_links": self._dropped_links,
            }

    def _insert(self, node: Node) -> None:
        self._graph.add_node(node.id, node=node)
        self._node_cache[node.id] = node

    def _lookup(self, node_id: str) -> Node | None:
        cached = self._node_cache.get(node_id)
        if cached is not None:
            return cached

        folded = node_id.casefold()
        for candidate_id, node in self._graph.nodes(data="node"):
            if candidate_id.casefold() == folded:
                self._node_cache[candidate_id] = node
                return node
        return None
