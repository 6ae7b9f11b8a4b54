"""
Edge label and service name encoding.

An edge label packs ``(source_id, target_id, service)`` into one string so
that parallel edges between the same node pair stay distinct. ``service``
is the call link between the two services, written ``"source->target"``.
"""

from __future__ import annotations

from meshgraph.core.errors import EdgeNameError

EDGE_SEPARATOR = "$$"
LINK_SEPARATOR = "->"
QUALIFIER = "."


def encode_edge_name(source_id: str, target_id: str, service: str) -> str:
    """
    Build the label for an edge between two nodes.

    Args:
        source_id: Id of the calling node
        target_id: Id of the called node
        service: Service link string, may be empty

    Raises:
        EdgeNameError: If an id is empty or any part contains the separator
    """
    if not source_id or not target_id:
        raise EdgeNameError(
            "Edge endpoints must be non-empty",
            details={"source": source_id, "target": target_id},
        )
    for part in (source_id, target_id, service):
        if part is None or EDGE_SEPARATOR in part:
            raise EdgeNameError(
                "Edge name part is missing or contains the edge separator",
                details={"part": part},
            )
    return EDGE_SEPARATOR.join((source_id, target_id, service))


def decode_edge_name(label: str) -> tuple[str, str, str]:
    """Split an edge label back into ``(source_id, target_id, service)``."""
    if not isinstance(label, str):
        raise EdgeNameError("Edge name must be a string", details={"label": repr(label)})
    parts = label.split(EDGE_SEPARATOR)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise EdgeNameError("Malformed edge name", details={"label": label})
    return parts[0], parts[1], parts[2]


def split_service_link(link: str) -> tuple[str, str]:
    """Split ``"source->target"`` into its two trimmed service names."""
    source, sep, target = link.partition(LINK_SEPARATOR)
    if not sep:
        raise EdgeNameError("Service link is missing '->'", details={"link": link})
    return source.strip(), target.strip()


def service_link(source_service: str, target_service: str) -> str:
    return f"{source_service}{LINK_SEPARATOR}{target_service}"


def qualified_service_name(node_id: str, service: str) -> str:
    """Disambiguate a service by the node that hosts it: ``nodeId.service``."""
    return f"{node_id}{QUALIFIER}{service}"
