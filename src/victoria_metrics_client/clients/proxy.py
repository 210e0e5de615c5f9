"""Forwarding of caller query parameters to the Prometheus API.

Endpoints are either scoped (tenant parameters injected, caller copies of
them dropped) or unscoped (caller parameters forwarded untouched). Storage
failures never raise here; they come back as an error envelope. Invalid
scoping arguments still raise StorageValidationError.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

import httpx

from ..connection import ClusterNodeType, create_http_client, require_options, resolve_connection
from ..envelope import decode_envelope, send
from ..errors import StorageError
from ..logging import get_logger
from ..models import BaseResponseModel
from ..scoping import METRIC_NAME_LABEL, FormParams, RequestQuery, TenantScope, unscoped
from ..settings import VictoriaOptions

LOGGER = get_logger(__name__)

SCOPED_ENDPOINTS = frozenset({"series", "query", "query_range", "query_exemplars"})
UNSCOPED_ENDPOINTS = frozenset({"status/buildinfo", "metadata", "rules"})


class VictoriaProxyClient:
    """Proxies Prometheus API calls on behalf of a userspace."""

    def __init__(
        self,
        options: VictoriaOptions | None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        options = require_options(options)
        resolve_connection(options, ClusterNodeType.READ)
        self._scope = TenantScope.from_options(options)
        self._client = client or create_http_client(options, ClusterNodeType.READ)
        self._owns_client = client is None

    async def labels(
        self,
        request_query: RequestQuery | None,
        userspace_id: int | None = None,
        stream_ids: Iterable[int] | None = None,
    ) -> BaseResponseModel:
        """Label names; scoped unless both `userspace_id` and `stream_ids` are omitted."""

        if userspace_id is None and stream_ids is None:
            return await self._all_granted_request("labels", request_query)
        return await self._default_request("labels", request_query, userspace_id, stream_ids)

    async def label_values(
        self,
        label: str,
        request_query: RequestQuery | None,
        userspace_id: int,
        stream_ids: Iterable[int],
        allow_skip_extra_content: bool = True,
    ) -> BaseResponseModel:
        """Values of `label`; metric names may be listed without scoping."""

        path = f"label/{quote(label, safe='')}/values"
        if allow_skip_extra_content and label == METRIC_NAME_LABEL:
            return await self._all_granted_request(path, request_query)
        return await self._default_request(path, request_query, userspace_id, stream_ids)

    async def series(
        self, request_query: RequestQuery | None, userspace_id: int, stream_ids: Iterable[int]
    ) -> BaseResponseModel:
        return await self.forward("series", request_query, userspace_id, stream_ids)

    async def query(
        self, request_query: RequestQuery | None, userspace_id: int, stream_ids: Iterable[int]
    ) -> BaseResponseModel:
        return await self.forward("query", request_query, userspace_id, stream_ids)

    async def query_range(
        self, request_query: RequestQuery | None, userspace_id: int, stream_ids: Iterable[int]
    ) -> BaseResponseModel:
        return await self.forward("query_range", request_query, userspace_id, stream_ids)

    async def query_exemplars(
        self, request_query: RequestQuery | None, userspace_id: int, stream_ids: Iterable[int]
    ) -> BaseResponseModel:
        return await self.forward("query_exemplars", request_query, userspace_id, stream_ids)

    async def build_info(self, request_query: RequestQuery | None = None) -> BaseResponseModel:
        return await self.forward("status/buildinfo", request_query)

    async def metadata(self, request_query: RequestQuery | None = None) -> BaseResponseModel:
        return await self.forward("metadata", request_query)

    async def rules(self, request_query: RequestQuery | None = None) -> BaseResponseModel:
        return await self.forward("rules", request_query)

    async def forward(
        self,
        endpoint: str,
        request_query: RequestQuery | None,
        userspace_id: int | None = None,
        stream_ids: Iterable[int] | None = None,
    ) -> BaseResponseModel:
        """Route a fixed endpoint through the scoped or unscoped builder."""

        if endpoint in SCOPED_ENDPOINTS:
            return await self._default_request(endpoint, request_query, userspace_id, stream_ids)
        if endpoint in UNSCOPED_ENDPOINTS:
            return await self._all_granted_request(endpoint, request_query)
        raise ValueError(f"Unsupported proxy endpoint: {endpoint}")

    async def _default_request(
        self,
        path: str,
        request_query: RequestQuery | None,
        userspace_id: int | None,
        stream_ids: Iterable[int] | None,
    ) -> BaseResponseModel:
        params = self._scope.scoped(request_query, userspace_id, stream_ids)  # type: ignore[arg-type]
        return await self._post(path, params)

    async def _all_granted_request(
        self, path: str, request_query: RequestQuery | None
    ) -> BaseResponseModel:
        return await self._post(path, unscoped(request_query))

    async def _post(self, path: str, params: FormParams) -> BaseResponseModel:
        operation = "label_values" if path.startswith("label/") else path
        try:
            response = await send(self._client, path, operation=operation, data=params)
            return decode_envelope(response, raise_for_error=False)
        except StorageError as exc:
            LOGGER.error("Proxy request to %s failed: %s", path, exc, exc_info=exc.__cause__)
            return BaseResponseModel.failure(str(exc))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "VictoriaProxyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["SCOPED_ENDPOINTS", "UNSCOPED_ENDPOINTS", "VictoriaProxyClient"]
