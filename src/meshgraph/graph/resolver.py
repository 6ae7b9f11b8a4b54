"""
Dependency resolution over Model snapshots.

Pure functions that answer "what does X depend on" at node granularity
(direct and transitive) and at service granularity. None of them touch the
live graph store; callers pass a snapshot.
"""

from __future__ import annotations

from collections.abc import Iterator

import structlog

from meshgraph.core.errors import EdgeNameError
from meshgraph.graph.models import Edge, Model, Node, merge_models
from meshgraph.graph.naming import (
    decode_edge_name,
    qualified_service_name,
    split_service_link,
)

logger = structlog.get_logger()

# node id (casefolded) -> [(edge, target id, service link)]
OutgoingIndex = dict[str, list[tuple[Edge, str, str]]]


def direct_dependency_model(model: Model, node_id: str) -> Model:
    """
    One-hop dependencies of a node.

    Returns the node itself, every edge leaving it and each edge's target.
    An unknown node with no edges yields an empty model.

    Raises:
        ConstructionError: If the model has edges to missing nodes
    """
    model.validate()
    return _direct(model, node_id, _index_outgoing(model))


def transitive_dependency_model(model: Model, start_id: str) -> Model:
    """
    Everything ``start_id`` depends on, directly or through other nodes.

    Each node is expanded at most once, so cycles terminate. A node with no
    outgoing edges only contributes on its own when nothing else has been
    collected, which keeps an isolated start node in the answer.

    Raises:
        ConstructionError: If the model has edges to missing nodes
    """
    model.validate()
    outgoing = _index_outgoing(model)

    processed: set[str] = set()
    collected: list[Model] = []
    worklist = [start_id]

    while worklist:
        node_id = worklist.pop()
        key = node_id.casefold()
        if key in processed:
            continue
        processed.add(key)

        direct = _direct(model, node_id, outgoing)
        if len(direct.nodes) > 1:
            collected.append(direct)
            worklist.extend(
                node.id
                for node in sorted(direct.nodes, key=lambda n: n.id, reverse=True)
                if node.id.casefold() not in processed
            )
        elif not collected:
            collected.append(direct)

    return merge_models(collected)


def service_dependency_model(model: Model, node_id: str, service: str) -> Model:
    """
    Service-level dependencies of ``service`` hosted on ``node_id``.

    Nodes of the result are qualified service names (``nodeId.service``) and
    edges connect them. Calls inside the node come from its self-edges;
    calls to other nodes come from graph edges whose source service matches
    and whose target service differs. A call back into a service already on
    the current chain is a cycle and is left out; a second path into an
    already resolved service still gets its edge.

    The cycle rule holds inside a node too: with self-edges ``fe->be`` and
    ``be->fe``, resolving ``fe`` yields ``fe -> be`` only, and the call back
    into ``fe`` is dropped like any cross-node back edge.

    Raises:
        ConstructionError: If the model has edges to missing nodes
    """
    model.validate()
    start = model.get_node(node_id)
    if start is None:
        return Model()

    outgoing = _index_outgoing(model)
    start_name = qualified_service_name(start.id, service)

    # Traversed services, keyed by casefolded qualified name
    traversed: dict[str, str] = {start_name.casefold(): start_name}
    on_path: set[str] = {start_name.casefold()}
    edges: set[Edge] = set()
    stack: list[tuple[str, Iterator[tuple[Node, str]]]] = [
        (start_name, _service_calls(model, start, service, outgoing))
    ]

    while stack:
        name, calls = stack[-1]
        for target_node, target_service in calls:
            target_name = qualified_service_name(target_node.id, target_service)
            key = target_name.casefold()
            if key in on_path:
                continue
            if key in traversed:
                edges.add(Edge.between(name, traversed[key]))
                continue
            traversed[key] = target_name
            on_path.add(key)
            edges.add(Edge.between(name, target_name))
            stack.append(
                (target_name, _service_calls(model, target_node, target_service, outgoing))
            )
            break
        else:
            stack.pop()
            on_path.discard(name.casefold())

    return Model.of((Node(n) for n in traversed.values()), edges)


def _index_outgoing(model: Model) -> OutgoingIndex:
    outgoing: OutgoingIndex = {}
    for edge in sorted(model.edges, key=lambda e: e.label):
        source, target, link = decode_edge_name(edge.label)
        outgoing.setdefault(source.casefold(), []).append((edge, target, link))
    return outgoing


def _direct(model: Model, node_id: str, outgoing: OutgoingIndex) -> Model:
    nodes: set[Node] = set()
    edges: set[Edge] = set()
    for edge, target, _ in outgoing.get(node_id.casefold(), []):
        edges.add(edge)
        target_node = model.get_node(target)
        if target_node is not None:
            nodes.add(target_node)

    node = model.get_node(node_id)
    if node is not None:
        nodes.add(node)
    return Model.of(nodes, edges)


def _service_calls(
    model: Model,
    node: Node,
    service: str,
    outgoing: OutgoingIndex,
) -> Iterator[tuple[Node, str]]:
    """Yield ``(node, service)`` pairs called by ``service`` on ``node``."""
    wanted = service.casefold()

    for link in sorted(node.self_edges):
        try:
            source, target = split_service_link(link)
        except EdgeNameError:
            logger.debug("self_edge_skipped", node=node.id, link=link)
            continue
        if source.casefold() == wanted and source.casefold() != target.casefold():
            yield node, target

    for _, target_id, link in outgoing.get(node.id.casefold(), []):
        try:
            source, target = split_service_link(link)
        except EdgeNameError:
            logger.debug("edge_service_skipped", node=node.id, link=link)
            continue
        if (
            source.casefold() == wanted
            and target.casefold() != wanted
            and target_id.casefold() != node.id.casefold()
        ):
            target_node = model.get_node(target_id)
            if target_node is not None:
                yield target_node, target
