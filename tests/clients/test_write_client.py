"""Tests for the remote write client."""

from __future__ import annotations

import httpx
import pytest
import snappy

from victoria_metrics_client.clients.write import VictoriaWriteClient
from victoria_metrics_client.connection import ClusterNodeType, create_http_client
from victoria_metrics_client.errors import StorageError
from victoria_metrics_client.remote_write import Sample, TimeSeries, WriteRequest
from victoria_metrics_client.settings import VictoriaOptions


def _request() -> WriteRequest:
    return WriteRequest(
        timeseries=[TimeSeries.from_metric("up", {"job": "node"}, [Sample(1.0, 1_700_000_000_000)])]
    )


def _client(options: VictoriaOptions, handler: object) -> VictoriaWriteClient:
    http_client = create_http_client(
        options, ClusterNodeType.WRITE, transport=httpx.MockTransport(handler)  # type: ignore[arg-type]
    )
    return VictoriaWriteClient(options, client=http_client)


@pytest.mark.asyncio
async def test_write_posts_compressed_protobuf(options: VictoriaOptions) -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(204)

    client = _client(options, handler)
    request = _request()

    await client.write(request)

    sent = captured[0]
    assert str(sent.url) == "http://victoria:8428/prometheus/api/v1/write"
    assert sent.headers["content-type"] == "application/x-protobuf"
    assert sent.headers["x-prometheus-remote-write-version"] == "0.1.0"
    assert snappy.uncompress(sent.content) == request.encode()


@pytest.mark.asyncio
async def test_write_raises_on_error_status(options: VictoriaOptions) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="cannot parse WriteRequest")

    client = _client(options, handler)

    with pytest.raises(StorageError) as excinfo:
        await client.write(_request())

    assert "400" in str(excinfo.value)
    assert "cannot parse WriteRequest" in str(excinfo.value)
    assert "Cannot store message" in str(excinfo.value)


@pytest.mark.asyncio
async def test_write_wraps_transport_errors(options: VictoriaOptions) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    async with _client(options, handler) as client:
        with pytest.raises(StorageError, match="Connection refused"):
            await client.write(_request())
