"""Domain port definitions for adapters."""

from __future__ import annotations

from .backend import (
    Backend,
    BackendError,
    EdgeFunctions,
    Filters,
    ObjectStore,
    RemoteProcedures,
    Row,
    RowGateway,
)

__all__ = [
    "Backend",
    "BackendError",
    "EdgeFunctions",
    "Filters",
    "ObjectStore",
    "RemoteProcedures",
    "Row",
    "RowGateway",
]
