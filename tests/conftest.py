"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from victoria_metrics_client.settings import VictoriaOptions

BASE_URL = "http://victoria:8428/prometheus/api/v1/"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("VICTORIA_"):
            monkeypatch.delenv(key)


@pytest.fixture
def options() -> VictoriaOptions:
    return VictoriaOptions(
        uri="http://victoria:8428",
        authentication_type="None",
        use_http_v2=False,
    )


@pytest.fixture
def http_client_factory() -> Callable[[Handler], httpx.AsyncClient]:
    def factory(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)

    return factory


@pytest.fixture
def form_params() -> Callable[[httpx.Request], dict[str, list[str]]]:
    """Decode the form-encoded body of a captured request."""

    def decode(request: httpx.Request) -> dict[str, list[str]]:
        return parse_qs(request.content.decode(), keep_blank_values=True)

    return decode


@pytest.fixture
def matrix_envelope() -> dict[str, Any]:
    return {
        "status": "success",
        "data": {
            "resultType": "matrix",
            "result": [
                {
                    "metric": {"__name__": "up", "job": "prometheus"},
                    "values": [[1565133785.061, "1"], [1565133845.061, "1"]],
                }
            ],
        },
    }
