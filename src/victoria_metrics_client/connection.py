"""Resolve VictoriaMetrics base addresses and headers from connection options."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum

import httpx

from .errors import StorageConfigurationError
from .logging import get_logger
from .settings import AuthenticationType, VictoriaOptions

LOGGER = get_logger(__name__)

MULTITENANT_ACCOUNT = "multitenant"
API_PATH = "prometheus/api/v1/"
REMOTE_WRITE_VERSION_HEADER = "X-Prometheus-Remote-Write-Version"
REMOTE_WRITE_VERSION = "0.1.0"
PROTOBUF_CONTENT_TYPE = "application/x-protobuf"


class ClusterNodeType(str, Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    """Read-only connection parameters shared by every request of a client."""

    base_url: str
    headers: dict[str, str] = field(default_factory=dict)
    http2: bool = False
    timeout_seconds: float = 10.0
    verify_ssl: bool = True


def require_options(options: VictoriaOptions | None) -> VictoriaOptions:
    if options is None:
        raise StorageConfigurationError("There is no configuration found for VictoriaMetrics.")
    return options


def resolve_connection(
    options: VictoriaOptions | None, node_type: ClusterNodeType
) -> ConnectionSettings:
    """Derive the API base address and default headers for a node role.

    Single-node deployments read and write through `{uri}/prometheus/api/v1/`.
    Clusters read through `{select}/select/{account}/prometheus/api/v1/` and
    write through `{insert}/insert/{account}/prometheus/api/v1/`.
    """

    options = require_options(options)
    if options.is_cluster:
        base_url = _cluster_base_url(options, node_type)
    else:
        base_url = _single_base_url(options)

    headers: dict[str, str] = {}
    if options.authentication_type is AuthenticationType.BASIC_AUTH:
        headers["Authorization"] = _basic_auth_header(options)

    if node_type is ClusterNodeType.WRITE:
        headers[REMOTE_WRITE_VERSION_HEADER] = REMOTE_WRITE_VERSION
        headers["Accept"] = PROTOBUF_CONTENT_TYPE

    return ConnectionSettings(
        base_url=base_url,
        headers=headers,
        http2=options.use_http_v2,
        timeout_seconds=options.timeout_seconds,
        verify_ssl=options.verify_ssl,
    )


def create_http_client(
    options: VictoriaOptions | None,
    node_type: ClusterNodeType,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build an AsyncClient bound to the resolved base address."""

    settings = resolve_connection(options, node_type)
    LOGGER.debug(
        "VictoriaMetrics client configured",
        extra={"base_url": settings.base_url, "node_type": node_type.value},
    )
    return httpx.AsyncClient(
        base_url=settings.base_url,
        headers=settings.headers,
        http2=settings.http2,
        timeout=settings.timeout_seconds,
        verify=settings.verify_ssl,
        transport=transport,
    )


def _join(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path}"


def _single_base_url(options: VictoriaOptions) -> str:
    if not options.uri:
        raise StorageConfigurationError('You must specify the "uri" configuration property.')
    return _join(options.uri, API_PATH)


def _cluster_base_url(options: VictoriaOptions, node_type: ClusterNodeType) -> str:
    if not options.cluster_insert_uri:
        raise StorageConfigurationError(
            'You must specify the "clusterInsertUri" configuration property.'
        )
    if not options.cluster_select_uri:
        raise StorageConfigurationError(
            'You must specify the "clusterSelectUri" configuration property.'
        )

    if options.cluster_account_id == MULTITENANT_ACCOUNT:
        account_id = MULTITENANT_ACCOUNT
    else:
        account_id = options.cluster_account_id or "0"

    if node_type is ClusterNodeType.READ:
        return _join(options.cluster_select_uri, f"select/{account_id}/{API_PATH}")
    return _join(options.cluster_insert_uri, f"insert/{account_id}/{API_PATH}")


def _basic_auth_header(options: VictoriaOptions) -> str:
    if not options.basic_auth_username:
        raise StorageConfigurationError(
            'You must specify the "basicAuthUsername" configuration property.'
        )
    password = options.basic_auth_password
    if password is None or not password.get_secret_value():
        raise StorageConfigurationError(
            'You must specify the "basicAuthPassword" configuration property.'
        )
    credentials = f"{options.basic_auth_username}:{password.get_secret_value()}"
    return "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")


__all__ = [
    "ClusterNodeType",
    "ConnectionSettings",
    "MULTITENANT_ACCOUNT",
    "PROTOBUF_CONTENT_TYPE",
    "REMOTE_WRITE_VERSION",
    "REMOTE_WRITE_VERSION_HEADER",
    "create_http_client",
    "require_options",
    "resolve_connection",
]
