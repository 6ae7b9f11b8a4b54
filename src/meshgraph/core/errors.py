"""
Error taxonomy for meshgraph.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Storage error (snapshot store failure)
- 12: Construction error (inconsistent snapshot)
- 13: Edge name error (malformed edge label)
- 127: Unknown/internal error
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Standardized exit codes for meshgraph entry points."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    STORAGE_ERROR = 11
    CONSTRUCTION_ERROR = 12
    EDGE_NAME_ERROR = 13
    UNKNOWN_ERROR = 127


class MeshGraphError(Exception):
    """Base exception for meshgraph errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(MeshGraphError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class StorageError(MeshGraphError):
    """Raised when the snapshot store fails to load or persist."""

    exit_code = ExitCode.STORAGE_ERROR


class ConstructionError(MeshGraphError):
    """Raised when a snapshot references an edge endpoint that is not a node."""

    exit_code = ExitCode.CONSTRUCTION_ERROR


class EdgeNameError(MeshGraphError):
    """Raised when an edge label cannot be encoded or decoded."""

    exit_code = ExitCode.EDGE_NAME_ERROR


def format_error_message(error: MeshGraphError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
