"""Application-wide configuration helpers."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, PositiveFloat, SecretStr, field_validator
from pydantic_settings import BaseSettings

from .errors import StorageConfigurationError

DEFAULT_SYSTEM_LABEL_PREFIX = "monq_"

# Configuration keys as they appear in shared (camelCase) config files.
CAMEL_CASE_KEYS = {
    "uri": "uri",
    "isCluster": "is_cluster",
    "clusterSelectUri": "cluster_select_uri",
    "clusterInsertUri": "cluster_insert_uri",
    "clusterAccountId": "cluster_account_id",
    "authenticationType": "authentication_type",
    "basicAuthUsername": "basic_auth_username",
    "basicAuthPassword": "basic_auth_password",
    "useHttpV2": "use_http_v2",
    "systemLabelPrefix": "system_label_prefix",
    "timeoutSeconds": "timeout_seconds",
    "verifySsl": "verify_ssl",
}


class AuthenticationType(str, Enum):
    NONE = "None"
    BASIC_AUTH = "BasicAuth"

    @classmethod
    def _missing_(cls, value: object) -> "AuthenticationType | None":
        if isinstance(value, str):
            normalized = value.replace("_", "").lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return None


class Settings(BaseSettings):
    """Typed settings leveraging environment variables for overrides."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_prefix": "VICTORIA_",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


class VictoriaOptions(BaseSettings):
    """VictoriaMetrics connection options.

    Single-node deployments set `uri`. Cluster deployments set `is_cluster`
    together with both `cluster_select_uri` and `cluster_insert_uri`; the
    `cluster_account_id` tenant segment may be `multitenant`.
    """

    uri: str | None = Field(default=None, description="Single-node instance URI.")
    is_cluster: bool = Field(default=False)
    cluster_select_uri: str | None = Field(default=None, description="vmselect URI.")
    cluster_insert_uri: str | None = Field(default=None, description="vminsert URI.")
    cluster_account_id: str | None = Field(
        default="0",
        description="Tenant segment: accountID[:projectID] or `multitenant`.",
    )
    authentication_type: AuthenticationType = Field(default=AuthenticationType.BASIC_AUTH)
    basic_auth_username: str | None = Field(default=None)
    basic_auth_password: SecretStr | None = Field(default=None)
    use_http_v2: bool = Field(default=True)
    system_label_prefix: str = Field(default=DEFAULT_SYSTEM_LABEL_PREFIX)
    timeout_seconds: PositiveFloat = Field(default=10.0)
    verify_ssl: bool = Field(default=True)

    model_config = {
        "env_file": ".env",
        "env_prefix": "VICTORIA_",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("cluster_account_id", mode="before")
    @classmethod
    def _account_to_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("system_label_prefix", mode="before")
    @classmethod
    def _prefix_default(cls, value: Any) -> Any:
        return DEFAULT_SYSTEM_LABEL_PREFIX if value is None else value


def load_options(path: Path) -> VictoriaOptions:
    """Load a YAML file with camelCase or snake_case keys into VictoriaOptions."""

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        raise StorageConfigurationError(f"VictoriaMetrics config is empty: {path}")
    if not isinstance(data, dict):
        raise StorageConfigurationError(f"VictoriaMetrics config must be a mapping: {path}")
    values = {CAMEL_CASE_KEYS.get(key, key): value for key, value in data.items()}
    return VictoriaOptions(**values)


@lru_cache
def get_settings() -> Settings:
    """Cache Settings to avoid re-parsing env on every logger lookup."""

    return Settings()


@lru_cache
def get_options() -> VictoriaOptions:
    """Options resolved from the environment only."""

    return VictoriaOptions()


__all__ = [
    "AuthenticationType",
    "CAMEL_CASE_KEYS",
    "DEFAULT_SYSTEM_LABEL_PREFIX",
    "Settings",
    "VictoriaOptions",
    "get_options",
    "get_settings",
    "load_options",
]
