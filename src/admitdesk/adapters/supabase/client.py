"""HTTP client for the hosted backend: REST rows, RPC, object storage and functions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Literal, cast

import httpx
from pydantic import ValidationError

from admitdesk.adapters.http_resilience import ResilientClient
from admitdesk.config import get_backend_config
from admitdesk.domain.ports import BackendError

from .schema import FunctionError, PostgrestError, StorageError, StorageUploadResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from admitdesk.config import BackendConfig, ResilienceConfig
    from admitdesk.domain.ports import Backend, Filters, Row

log = getLogger(__name__)

NETWORK_ERROR_CODE = "NETWORK_ERROR"

type _Surface = Literal["rest", "storage", "function"]


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _filter_value(value: object) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"is.{str(value).lower()}"
    return f"eq.{value}"


def _filter_params(filters: Filters) -> dict[str, str]:
    return {column: _filter_value(value) for column, value in filters.items()}


def _json_or_none(response: httpx.Response) -> object:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _rows(response: httpx.Response) -> list[Row]:
    payload = _json_or_none(response)
    if isinstance(payload, Mapping):
        return [dict(cast("Mapping[str, object]", payload))]
    if isinstance(payload, list):
        items = cast("list[object]", payload)
        return [
            dict(cast("Mapping[str, object]", item)) for item in items if isinstance(item, Mapping)
        ]
    return []


def _fallback_error(response: httpx.Response) -> BackendError:
    text = response.text.strip() if response.content else ""
    return BackendError(
        text or response.reason_phrase or "Request failed",
        code=str(response.status_code),
    )


def _error_from_response(response: httpx.Response, surface: _Surface) -> BackendError:
    payload = _json_or_none(response)
    if not isinstance(payload, Mapping):
        return _fallback_error(response)
    try:
        if surface == "rest":
            rest = PostgrestError.model_validate(payload)
            return BackendError(
                rest.message,
                code=rest.code or str(response.status_code),
                details=rest.details,
                hint=rest.hint,
            )
        if surface == "storage":
            storage = StorageError.model_validate(payload)
            return BackendError(
                storage.message,
                code=storage.error or storage.status_code or str(response.status_code),
            )
        function = FunctionError.model_validate(payload)
    except ValidationError:
        return _fallback_error(response)
    if function.text is None:
        return _fallback_error(response)
    return BackendError(function.text, code=str(response.status_code))


@dataclass(slots=True)
class SupabaseBackend:
    """Implements every backend port over one pooled HTTP client.

    Use as an async context manager; every transport or HTTP failure is raised
    as ``BackendError`` so callers only ever handle one error type.
    """

    config: BackendConfig = field(default_factory=get_backend_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> SupabaseBackend:
        self._client = self.client_factory(self.config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def rpc(self, name: str, params: Mapping[str, object]) -> object:
        response = await self._request(
            "POST", f"{self.config.rest_url}/rpc/{name}", surface="rest", json=dict(params)
        )
        return _json_or_none(response)

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters,
        limit: int | None = None,
    ) -> list[Row]:
        params = {"select": columns, **_filter_params(filters)}
        if limit is not None:
            params["limit"] = str(limit)
        response = await self._request(
            "GET", f"{self.config.rest_url}/{table}", surface="rest", params=params
        )
        return _rows(response)

    async def update(
        self,
        table: str,
        values: Mapping[str, object],
        *,
        filters: Filters,
        returning: str | None = None,
    ) -> list[Row]:
        params = _filter_params(filters)
        if returning is not None:
            params["select"] = returning
        response = await self._request(
            "PATCH",
            f"{self.config.rest_url}/{table}",
            surface="rest",
            params=params,
            json=dict(values),
            prefer="return=representation" if returning is not None else "return=minimal",
        )
        return _rows(response)

    async def insert(
        self,
        table: str,
        rows: Sequence[Mapping[str, object]],
        *,
        returning: str | None = None,
    ) -> list[Row]:
        params = {"select": returning} if returning is not None else None
        response = await self._request(
            "POST",
            f"{self.config.rest_url}/{table}",
            surface="rest",
            params=params,
            json=[dict(row) for row in rows],
            prefer="return=representation" if returning is not None else "return=minimal",
        )
        return _rows(response)

    async def upsert(
        self,
        table: str,
        row: Mapping[str, object],
        *,
        on_conflict: str,
    ) -> None:
        await self._request(
            "POST",
            f"{self.config.rest_url}/{table}",
            surface="rest",
            params={"on_conflict": on_conflict},
            json=[dict(row)],
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        *,
        content_type: str,
    ) -> str:
        response = await self._request(
            "POST",
            f"{self.config.storage_url}/object/{bucket}/{path}",
            surface="storage",
            content=content,
            extra_headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        payload = _json_or_none(response)
        if isinstance(payload, Mapping) and "Key" in payload:
            return StorageUploadResponse.model_validate(payload).key
        return f"{bucket}/{path}"

    async def invoke(self, name: str, body: Mapping[str, object]) -> object:
        response = await self._request(
            "POST", f"{self.config.functions_url}/{name}", surface="function", json=dict(body)
        )
        return _json_or_none(response)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        surface: _Surface,
        params: Mapping[str, str] | None = None,
        json: object = None,
        content: bytes | None = None,
        prefer: str | None = None,
        extra_headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("SupabaseBackend must be used as an async context manager")

        headers = self.config.auth_headers()
        if prefer is not None:
            headers["Prefer"] = prefer
        if extra_headers:
            headers.update(extra_headers)

        log.debug("%s %s", method, url)
        try:
            if content is not None:
                response = await self._client.request(
                    method, url, params=params, headers=headers, content=content
                )
            else:
                response = await self._client.request(
                    method, url, params=params, headers=headers, json=json
                )
        except httpx.HTTPError as exc:
            log.error("%s %s failed: %s", method, url, exc)
            raise BackendError(
                f"Could not reach the server: {exc}", code=NETWORK_ERROR_CODE
            ) from exc

        if response.is_error:
            error = _error_from_response(response, surface)
            log.debug("%s %s returned %s: %s", method, url, response.status_code, error.describe())
            raise error
        return response


if TYPE_CHECKING:
    _backend_check: Backend = SupabaseBackend()
