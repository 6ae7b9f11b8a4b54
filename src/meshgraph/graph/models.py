"""
Dependency graph entity models.

Nodes are mesh instances (cells), edges are labeled calls between two
distinct instances, and a Model is a point-in-time set of both.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from meshgraph.core.errors import ConstructionError, EdgeNameError
from meshgraph.graph.naming import decode_edge_name, encode_edge_name, split_service_link


@dataclass(eq=False)
class Node:
    """A mesh instance hosting one or more services.

    Identity is the exact ``id``; two nodes with the same id are equal even
    when their components differ.
    """

    id: str
    components: set[str] = field(default_factory=set)
    self_edges: set[str] = field(default_factory=set)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def add_component(self, component: str) -> None:
        self.components.add(component)

    def add_self_edge(self, link: str) -> None:
        """Record an intra-instance call, ``"source->target"``."""
        self.self_edges.add(link)

    def absorb(self, other: Node) -> None:
        """Union another node's components and self-edges into this one."""
        self.components |= other.components
        self.self_edges |= other.self_edges

    def copy(self) -> Node:
        return Node(self.id, set(self.components), set(self.self_edges))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "components": sorted(self.components),
            "self_edges": sorted(self.self_edges),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        return cls(
            id=data["id"],
            components=set(data.get("components", [])),
            self_edges=set(data.get("self_edges", [])),
        )


@dataclass(frozen=True)
class Edge:
    """A directed call between two nodes, identified by its label."""

    label: str

    @classmethod
    def between(cls, source_id: str, target_id: str, service: str = "") -> Edge:
        return cls(encode_edge_name(source_id, target_id, service))

    @property
    def source(self) -> str:
        return decode_edge_name(self.label)[0]

    @property
    def target(self) -> str:
        return decode_edge_name(self.label)[1]

    @property
    def service(self) -> str:
        return decode_edge_name(self.label)[2]

    @property
    def services(self) -> tuple[str, str]:
        """Source and target service of the call carried by this edge."""
        return split_service_link(self.service)


@dataclass(frozen=True)
class Model:
    """Snapshot of a dependency network: a set of nodes and a set of edges."""

    nodes: frozenset[Node] = frozenset()
    edges: frozenset[Edge] = frozenset()
    _by_id: dict[str, Node] = field(default_factory=dict, init=False, repr=False, compare=False)
    _by_folded_id: dict[str, Node] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", frozenset(self.nodes))
        object.__setattr__(self, "edges", frozenset(self.edges))
        for node in self.nodes:
            self._by_id[node.id] = node
            self._by_folded_id.setdefault(node.id.casefold(), node)

    @classmethod
    def of(cls, nodes: Iterable[Node] = (), edges: Iterable[Edge] = ()) -> Model:
        return cls(frozenset(nodes), frozenset(edges))

    @property
    def edge_labels(self) -> frozenset[str]:
        return frozenset(edge.label for edge in self.edges)

    def is_empty(self) -> bool:
        return not self.nodes

    def get_node(self, node_id: str) -> Node | None:
        """Find a node by id, falling back to a case-insensitive match."""
        node = self._by_id.get(node_id)
        if node is None:
            node = self._by_folded_id.get(node_id.casefold())
        return node

    def validate(self) -> Model:
        """
        Check that every edge endpoint is a node of this model.

        Raises:
            ConstructionError: If an edge references a missing node
        """
        for edge in self.edges:
            try:
                source, target, _ = decode_edge_name(edge.label)
            except EdgeNameError as exc:
                raise ConstructionError(
                    "Model holds a malformed edge name", details={"edge": edge.label}
                ) from exc
            missing = [end for end in (source, target) if self.get_node(end) is None]
            if missing:
                raise ConstructionError(
                    "Edge references nodes missing from the model",
                    details={"edge": edge.label, "missing": ",".join(missing)},
                )
        return self

    def merge(self, other: Model, connecting_edge: Edge | None = None) -> Model:
        """
        Union two models into a new one.

        Nodes sharing an id are combined into a fresh node holding the union
        of both components and self-edges; neither input is modified.
        """
        merged = merge_models((self, other))
        if connecting_edge is None:
            return merged
        return Model(merged.nodes, merged.edges | {connecting_edge})

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "nodes": [n.to_dict() for n in sorted(self.nodes, key=lambda n: n.id)],
            "edges": sorted(self.edge_labels),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Model:
        return cls.of(
            (Node.from_dict(n) for n in data.get("nodes", [])),
            (Edge(label) for label in data.get("edges", [])),
        )


def merge_models(models: Iterable[Model]) -> Model:
    """
    Merge any number of models into one.

    Same result as folding them pairwise with ``Model.merge``, in one pass.
    """
    nodes: dict[str, Node] = {}
    edges: set[Edge] = set()
    for model in models:
        for node in model.nodes:
            existing = nodes.get(node.id)
            if existing is None:
                nodes[node.id] = node.copy()
            else:
                existing.absorb(node)
        edges |= model.edges
    return Model(frozenset(nodes.values()), frozenset(edges))
