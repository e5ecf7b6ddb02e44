"""Pydantic models describing backend error envelopes and storage payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _stringify(value: object) -> object:
    if value is None or isinstance(value, str):
        return value
    return str(value)


class BackendBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PostgrestError(BackendBaseModel):
    """Error body returned by the REST and RPC endpoints."""

    message: str
    code: str | None = None
    details: str | None = None
    hint: str | None = None

    _normalize_code = field_validator("code", "details", "hint", mode="before")(_stringify)


class StorageError(BackendBaseModel):
    """Error body returned by the object storage endpoint."""

    message: str
    error: str | None = None
    status_code: str | None = Field(default=None, alias="statusCode")

    _normalize_status = field_validator("status_code", mode="before")(_stringify)


class StorageUploadResponse(BackendBaseModel):
    key: str = Field(alias="Key")


class FunctionError(BackendBaseModel):
    """Error body returned by server functions; only ``error`` is conventional."""

    error: str | None = None
    message: str | None = None

    @property
    def text(self) -> str | None:
        return self.error or self.message
