"""Public interface for the hosted backend adapter."""

from __future__ import annotations

from .client import NETWORK_ERROR_CODE, SupabaseBackend
from .schema import FunctionError, PostgrestError, StorageError, StorageUploadResponse

__all__ = [
    "NETWORK_ERROR_CODE",
    "FunctionError",
    "PostgrestError",
    "StorageError",
    "StorageUploadResponse",
    "SupabaseBackend",
]
