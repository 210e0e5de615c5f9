"""Remote write ingestion."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..connection import (
    PROTOBUF_CONTENT_TYPE,
    ClusterNodeType,
    create_http_client,
    require_options,
    resolve_connection,
)
from ..envelope import ensure_success_status, send
from ..logging import get_logger, log_structured
from ..remote_write import WriteRequest, compress_write_request
from ..settings import VictoriaOptions

LOGGER = get_logger(__name__)


class VictoriaWriteClient:
    """Sends remote write requests to the insert (or single-node) endpoint."""

    def __init__(
        self,
        options: VictoriaOptions | None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        options = require_options(options)
        resolve_connection(options, ClusterNodeType.WRITE)
        self._client = client or create_http_client(options, ClusterNodeType.WRITE)
        self._owns_client = client is None

    async def write(self, request: WriteRequest) -> None:
        body = compress_write_request(request)
        response = await send(
            self._client,
            "write",
            operation="write",
            content=body,
            headers={"Content-Type": PROTOBUF_CONTENT_TYPE},
        )
        ensure_success_status(response, action="store")
        log_structured(
            LOGGER,
            "remote write accepted",
            level=logging.DEBUG,
            series=len(request.timeseries),
            bytes=len(body),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "VictoriaWriteClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["VictoriaWriteClient"]
