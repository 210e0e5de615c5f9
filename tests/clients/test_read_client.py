"""Tests for the typed read client."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from victoria_metrics_client.clients.read import VictoriaReadClient
from victoria_metrics_client.errors import (
    StorageConfigurationError,
    StorageError,
    StorageValidationError,
)
from victoria_metrics_client.models import QueryResultType, TimeInterval, TimeIntervalUnits
from victoria_metrics_client.settings import VictoriaOptions


class RecordingHandler:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def build_client(
    options: VictoriaOptions, http_client_factory: Callable[..., httpx.AsyncClient]
) -> Callable[[RecordingHandler], VictoriaReadClient]:
    def build(handler: RecordingHandler) -> VictoriaReadClient:
        return VictoriaReadClient(options, client=http_client_factory(handler))

    return build


@pytest.mark.asyncio
async def test_query_returns_matrix_data(
    build_client: Callable, matrix_envelope: dict, form_params: Callable
) -> None:
    handler = RecordingHandler(httpx.Response(200, json=matrix_envelope))
    client = build_client(handler)

    result = await client.query("up", "5m", [1, 2], 10)

    assert result.result_type is QueryResultType.MATRIX
    assert len(result.result) == 1
    values = result.result[0]["values"]
    assert len(values) == 2
    assert values[0] == [1565133785.061, "1"]
    assert values[1] == [1565133845.061, "1"]

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/prometheus/api/v1/query"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert form_params(request) == {
        "query": ["up"],
        "extra_filters[]": ['{monq_stream_id=~"1|2"}'],
        "extra_label": ["monq_userspace_id=10"],
        "step": ["5m"],
    }


@pytest.mark.asyncio
async def test_query_range_encodes_times_and_step(
    build_client: Callable, matrix_envelope: dict, form_params: Callable
) -> None:
    handler = RecordingHandler(httpx.Response(200, json=matrix_envelope))
    client = build_client(handler)

    await client.query_range(
        "rate(http_requests_total[5m])",
        datetime(2024, 1, 1, tzinfo=UTC),
        datetime(2024, 1, 1, 1, tzinfo=UTC),
        TimeInterval(30, TimeIntervalUnits.SECONDS),
        [3],
        4,
    )

    params = form_params(handler.requests[0])
    assert handler.requests[0].url.path.endswith("/query_range")
    assert params["start"] == ["1704067200"]
    assert params["end"] == ["1704070800"]
    assert params["step"] == ["30s"]
    assert params["extra_label"] == ["monq_userspace_id=4"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("query", "stream_ids", "userspace_id", "message"),
    [
        ("", [1], 1, "query is null or empty"),
        (None, [1], 1, "query is null or empty"),
        ("up", [], 1, "stream_ids is empty"),
        ("up", [1], 0, "userspace_id must be greater than zero"),
        ("up", [1], -1, "userspace_id must be greater than zero"),
    ],
)
async def test_validation_happens_before_any_request(
    build_client: Callable,
    query: Any,
    stream_ids: list[int],
    userspace_id: int,
    message: str,
) -> None:
    handler = RecordingHandler(httpx.Response(200, json={"status": "success"}))
    client = build_client(handler)

    with pytest.raises(StorageValidationError, match=message):
        await client.query(query, "1m", stream_ids, userspace_id)
    with pytest.raises(StorageValidationError, match=message):
        await client.query_range(
            query,
            datetime(2024, 1, 1, tzinfo=UTC),
            datetime(2024, 1, 2, tzinfo=UTC),
            TimeInterval(1, TimeIntervalUnits.HOURS),
            stream_ids,
            userspace_id,
        )

    assert handler.requests == []


@pytest.mark.asyncio
async def test_error_envelope_raises_with_backend_message(build_client: Callable) -> None:
    payload = {"status": "error", "errorType": "bad_data", "error": "Invalid query"}
    client = build_client(RecordingHandler(httpx.Response(200, json=payload)))

    with pytest.raises(StorageError, match="Invalid query"):
        await client.query("up{", "1m", [1], 1)


@pytest.mark.asyncio
async def test_non_success_status_raises_with_code_and_body(build_client: Callable) -> None:
    client = build_client(RecordingHandler(httpx.Response(500, text="Internal Server Error")))

    with pytest.raises(StorageError) as excinfo:
        await client.query("up", "1m", [1], 1)

    assert "500" in str(excinfo.value)
    assert "Internal Server Error" in str(excinfo.value)


@pytest.mark.asyncio
async def test_transport_failure_raises_storage_error(build_client: Callable) -> None:
    client = build_client(RecordingHandler(httpx.ReadTimeout("timed out")))

    with pytest.raises(StorageError, match="timed out") as excinfo:
        await client.query("up", "1m", [1], 1)

    assert isinstance(excinfo.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_empty_body_raises(build_client: Callable) -> None:
    client = build_client(RecordingHandler(httpx.Response(200, content=b"")))

    with pytest.raises(StorageError, match="empty message"):
        await client.query("up", "1m", [1], 1)


@pytest.mark.asyncio
async def test_missing_data_raises(build_client: Callable) -> None:
    client = build_client(RecordingHandler(httpx.Response(200, json={"status": "success"})))

    with pytest.raises(StorageError, match='empty "data" message'):
        await client.query("up", "1m", [1], 1)


@pytest.mark.asyncio
async def test_query_vector_rejects_matrix_result(
    build_client: Callable, matrix_envelope: dict
) -> None:
    client = build_client(RecordingHandler(httpx.Response(200, json=matrix_envelope)))

    with pytest.raises(StorageError, match='does not return "vector" result'):
        await client.query_vector("up", "1m", [1], 1)


@pytest.mark.asyncio
async def test_query_matrix_range_returns_typed_rows(
    build_client: Callable, matrix_envelope: dict
) -> None:
    client = build_client(RecordingHandler(httpx.Response(200, json=matrix_envelope)))

    rows = await client.query_matrix_range(
        "up",
        datetime(2024, 1, 1, tzinfo=UTC),
        datetime(2024, 1, 2, tzinfo=UTC),
        TimeInterval(1, TimeIntervalUnits.MINUTES),
        [1],
        1,
    )

    assert rows[0].metric["job"] == "prometheus"
    assert rows[0].values[1] == (1565133845.061, "1")


def test_client_requires_options() -> None:
    with pytest.raises(StorageConfigurationError):
        VictoriaReadClient(None)


@pytest.mark.asyncio
async def test_deeply_nested_body_raises_storage_error(build_client: Callable) -> None:
    client = build_client(RecordingHandler(httpx.Response(200, text="[" * 200_000)))

    with pytest.raises(StorageError, match="invalid JSON"):
        await client.query("up", "1m", [1], 1)
