"""Typed, tenant-scoped read operations."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

import httpx

from ..connection import ClusterNodeType, create_http_client, require_options, resolve_connection
from ..envelope import decode_envelope, parse_query_data, send
from ..logging import get_logger
from ..models import BaseQueryDataResponse, MatrixDataResult, TimeInterval, VectorDataResult
from ..scoping import TenantScope, validate_query
from ..settings import VictoriaOptions

LOGGER = get_logger(__name__)


class VictoriaReadClient:
    """Runs `query` and `query_range` restricted to one userspace and its streams.

    Every failure raises: StorageValidationError for bad arguments before any
    request is sent, StorageError for transport and response failures.
    """

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

    async def query(
        self,
        query: str,
        step: str,
        stream_ids: Iterable[int],
        userspace_id: int,
    ) -> BaseQueryDataResponse:
        """Evaluate an instant query."""

        validate_query(query)
        params: dict[str, Any] = {"query": query}
        params.update(self._scope.scoping_params(userspace_id, stream_ids))
        params["step"] = step
        return await self._query_data("query", params)

    async def query_range(
        self,
        query: str,
        start: datetime,
        end: datetime,
        step: TimeInterval,
        stream_ids: Iterable[int],
        userspace_id: int,
    ) -> BaseQueryDataResponse:
        """Evaluate a range query; `start`/`end` are sent as Unix seconds."""

        validate_query(query)
        params: dict[str, Any] = {"query": query}
        params.update(self._scope.scoping_params(userspace_id, stream_ids))
        params.update(
            {
                "start": str(int(start.timestamp())),
                "end": str(int(end.timestamp())),
                "step": step.to_promql_interval(),
            }
        )
        return await self._query_data("query_range", params)

    async def query_matrix_range(
        self,
        query: str,
        start: datetime,
        end: datetime,
        step: TimeInterval,
        stream_ids: Iterable[int],
        userspace_id: int,
    ) -> list[MatrixDataResult]:
        response = await self.query_range(query, start, end, step, stream_ids, userspace_id)
        return response.as_matrix()

    async def query_vector(
        self,
        query: str,
        step: str,
        stream_ids: Iterable[int],
        userspace_id: int,
    ) -> list[VectorDataResult]:
        response = await self.query(query, step, stream_ids, userspace_id)
        return response.as_vector()

    async def _query_data(self, path: str, params: dict[str, Any]) -> BaseQueryDataResponse:
        response = await send(self._client, path, operation=path, data=params)
        envelope = decode_envelope(response)
        if envelope.warnings:
            LOGGER.warning("Storage returned warnings for %s: %s", path, envelope.warnings)
        return parse_query_data(envelope)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "VictoriaReadClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["VictoriaReadClient"]
