"""Core modules for meshgraph - centralized error definitions."""

from meshgraph.core.errors import (
    ConfigurationError,
    ConstructionError,
    EdgeNameError,
    ExitCode,
    MeshGraphError,
    StorageError,
    format_error_message,
)

__all__ = [
    "ExitCode",
    "MeshGraphError",
    "ConfigurationError",
    "ConstructionError",
    "EdgeNameError",
    "StorageError",
    "format_error_message",
]
