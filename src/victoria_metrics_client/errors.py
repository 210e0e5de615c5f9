"""Exceptions raised by the VictoriaMetrics clients."""

from __future__ import annotations


class StorageError(RuntimeError):
    """Raised when the storage is unreachable or responds with an error."""


class StorageConfigurationError(StorageError):
    """Raised when the connection options are missing or incomplete."""


class StorageValidationError(StorageError, ValueError):
    """Raised before any request when a caller argument is invalid."""

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(message)
        self.parameter = parameter


__all__ = ["StorageConfigurationError", "StorageError", "StorageValidationError"]
