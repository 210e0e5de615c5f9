"""Tenant-scoped client and proxy for VictoriaMetrics' Prometheus API."""

from importlib import metadata

from .clients import VictoriaProxyClient, VictoriaReadClient, VictoriaWriteClient
from .connection import (
    ClusterNodeType,
    ConnectionSettings,
    create_http_client,
    resolve_connection,
)
from .errors import StorageConfigurationError, StorageError, StorageValidationError
from .models import (
    BaseQueryDataResponse,
    BaseResponseModel,
    MatrixDataResult,
    PrometheusResponseStatus,
    QueryResultType,
    TimeInterval,
    TimeIntervalUnits,
    VectorDataResult,
)
from .remote_write import Label, Sample, TimeSeries, WriteRequest
from .settings import AuthenticationType, VictoriaOptions, load_options

__all__ = [
    "__version__",
    "AuthenticationType",
    "BaseQueryDataResponse",
    "BaseResponseModel",
    "ClusterNodeType",
    "ConnectionSettings",
    "Label",
    "MatrixDataResult",
    "PrometheusResponseStatus",
    "QueryResultType",
    "Sample",
    "StorageConfigurationError",
    "StorageError",
    "StorageValidationError",
    "TimeInterval",
    "TimeIntervalUnits",
    "TimeSeries",
    "VectorDataResult",
    "VictoriaOptions",
    "VictoriaProxyClient",
    "VictoriaReadClient",
    "VictoriaWriteClient",
    "WriteRequest",
    "create_http_client",
    "load_options",
    "resolve_connection",
]


try:
    __version__ = metadata.version("victoria-metrics-client")
except metadata.PackageNotFoundError:  # pragma: no cover - during local dev without install
    __version__ = "0.1.0"
