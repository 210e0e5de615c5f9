"""Transport step and response envelope parsing.

A response is processed in order and stops at the first failure:
transport, HTTP status, body presence, envelope decoding, envelope status
and, for query endpoints, decoding of the inner `data` payload.
"""

from __future__ import annotations

import json
import time
from typing import Any

import httpx
from pydantic import ValidationError

from .errors import StorageError
from .logging import get_logger
from .metrics import STORAGE_REQUEST_LATENCY, STORAGE_REQUESTS
from .models import BaseQueryDataResponse, BaseResponseModel, PrometheusResponseStatus

LOGGER = get_logger(__name__)

EMPTY_MESSAGE = "Storage responded with empty message."
EMPTY_DATA_MESSAGE = 'Storage responded with empty "data" message.'


async def send(
    client: httpx.AsyncClient,
    path: str,
    *,
    operation: str,
    data: dict[str, Any] | None = None,
    content: bytes | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """POST to `path` relative to the client's base address.

    Network failures become StorageError; the response is returned whatever
    its status code.
    """

    LOGGER.debug("Storage request", extra={"path": path, "params": data})
    start = time.perf_counter()
    try:
        response = await client.post(path, data=data, content=content, headers=headers)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        STORAGE_REQUESTS.labels(operation=operation, outcome="transport_error").inc()
        detail = str(exc) or exc.__class__.__name__
        raise StorageError(f"Storage threw exception on request. Details: {detail}") from exc
    finally:
        STORAGE_REQUEST_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)

    outcome = "success" if response.is_success else "http_error"
    STORAGE_REQUESTS.labels(operation=operation, outcome=outcome).inc()
    return response


def status_error_message(response: httpx.Response, action: str = "read") -> str:
    return (
        f"Storage responded with status code: {response.status_code}.\n"
        f"Cannot {action} message due to an error.\n"
        f"Details: {response.text}"
    )


def ensure_success_status(response: httpx.Response, action: str = "read") -> None:
    if not response.is_success:
        raise StorageError(status_error_message(response, action))


def parse_envelope(body: str) -> BaseResponseModel:
    """Decode a response body into the outer envelope."""

    if not body or not body.strip():
        raise StorageError(EMPTY_MESSAGE)
    try:
        payload = json.loads(body)
    except (ValueError, RecursionError) as exc:
        raise StorageError(f"Storage responded with invalid JSON. Details: {exc}") from exc
    if payload is None:
        raise StorageError(EMPTY_MESSAGE)
    try:
        return BaseResponseModel.model_validate(payload)
    except ValidationError as exc:
        raise StorageError(f"Storage responded with invalid JSON. Details: {exc}") from exc


def decode_envelope(response: httpx.Response, *, raise_for_error: bool = True) -> BaseResponseModel:
    """Validate a response and return its envelope.

    With `raise_for_error` a non-2xx status or an `error` envelope raises.
    Without it an error envelope sent by the backend is returned as-is, and
    only responses that carry no usable envelope raise.
    """

    if raise_for_error:
        ensure_success_status(response)

    try:
        envelope = parse_envelope(response.text)
    except StorageError:
        if response.is_success:
            raise
        raise StorageError(status_error_message(response)) from None

    if not response.is_success and envelope.status is PrometheusResponseStatus.SUCCESS:
        raise StorageError(status_error_message(response))
    if raise_for_error and envelope.status is PrometheusResponseStatus.ERROR:
        raise StorageError(f"Storage responded with status Error. Details: {envelope.error}")
    return envelope


def parse_query_data(envelope: BaseResponseModel) -> BaseQueryDataResponse:
    """Decode the `data` payload of a successful query envelope."""

    if envelope.data is None:
        raise StorageError(EMPTY_DATA_MESSAGE)
    try:
        return BaseQueryDataResponse.model_validate(envelope.data)
    except ValidationError as exc:
        raise StorageError(
            f"Storage \"data\" field cannot be deserialized. Message: '{exc}'"
        ) from exc


__all__ = [
    "EMPTY_DATA_MESSAGE",
    "EMPTY_MESSAGE",
    "decode_envelope",
    "ensure_success_status",
    "parse_envelope",
    "parse_query_data",
    "send",
    "status_error_message",
]
