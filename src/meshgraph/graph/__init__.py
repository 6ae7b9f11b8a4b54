"""
Service dependency graph: entity models, live store and resolution.

The store holds the live mesh topology fed by ingestion; the resolver
answers dependency questions over Model snapshots of it.
"""

from meshgraph.graph.models import Edge, Model, Node, merge_models
from meshgraph.graph.naming import (
    decode_edge_name,
    encode_edge_name,
    qualified_service_name,
    service_link,
    split_service_link,
)
from meshgraph.graph.resolver import (
    direct_dependency_model,
    service_dependency_model,
    transitive_dependency_model,
)
from meshgraph.graph.store import DependencyGraphStore

__all__ = [
    # Models
    "Node",
    "Edge",
    "Model",
    "merge_models",
    # Naming
    "encode_edge_name",
    "decode_edge_name",
    "qualified_service_name",
    "service_link",
    "split_service_link",
    # Store
    "DependencyGraphStore",
    # Resolution
    "direct_dependency_model",
    "transitive_dependency_model",
    "service_dependency_model",
]
