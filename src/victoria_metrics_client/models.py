"""Request and response models for the Prometheus HTTP API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_serializer

from .errors import StorageError


class TimeIntervalUnits(IntEnum):
    MINUTES = 0
    SECONDS = 1
    HOURS = 2
    DAYS = 3


_SECONDS_PER_UNIT = {
    TimeIntervalUnits.SECONDS: 1,
    TimeIntervalUnits.MINUTES: 60,
    TimeIntervalUnits.HOURS: 60 * 60,
    TimeIntervalUnits.DAYS: 60 * 60 * 24,
}
_PROMQL_SUFFIXES = {
    TimeIntervalUnits.SECONDS: "s",
    TimeIntervalUnits.MINUTES: "m",
    TimeIntervalUnits.HOURS: "h",
    TimeIntervalUnits.DAYS: "d",
}


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """Amount of time expressed as a value and a unit.

    `units` may hold a raw integer that matches no known unit (for example
    when it comes from deserialized configuration). Conversions then fall
    back to seconds for `to_seconds` and to minutes for `to_promql_interval`.
    """

    value: int
    units: TimeIntervalUnits | int

    def to_seconds(self) -> int:
        return self.value * _SECONDS_PER_UNIT.get(self.units, 1)

    def to_promql_interval(self) -> str:
        """Format as a PromQL duration, e.g. `5m`."""

        return f"{self.value}{_PROMQL_SUFFIXES.get(self.units, 'm')}"


class QueryResultType(str, Enum):
    MATRIX = "matrix"
    VECTOR = "vector"
    SCALAR = "scalar"
    STRING = "string"


class PrometheusResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


_OMIT_WHEN_ABSENT = ("errorType", "error_type", "error", "warnings")


class BaseResponseModel(BaseModel):
    """Outer response envelope shared by every Prometheus API endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    status: PrometheusResponseStatus
    data: Any = None
    error_type: str | None = Field(default=None, alias="errorType")
    error: str | None = None
    warnings: list[str] | None = None

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler: Any) -> dict[str, Any]:
        payload = handler(self)
        for key in _OMIT_WHEN_ABSENT:
            if key in payload and payload[key] is None:
                del payload[key]
        return payload

    @classmethod
    def failure(cls, message: str) -> "BaseResponseModel":
        return cls(status=PrometheusResponseStatus.ERROR, error=message)

    @property
    def is_success(self) -> bool:
        return self.status is PrometheusResponseStatus.SUCCESS

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with the backend's camelCase keys."""

        return self.model_dump(mode="json", by_alias=True)


class MatrixDataResult(BaseModel):
    """Single series of a `matrix` result."""

    metric: dict[str, str] = Field(default_factory=dict)
    values: list[tuple[float, str]] = Field(default_factory=list)

    def points(self) -> list[tuple[float, float]]:
        return [(timestamp, float(value)) for timestamp, value in self.values]


class VectorDataResult(BaseModel):
    """Single sample of a `vector` result."""

    metric: dict[str, str] = Field(default_factory=dict)
    value: tuple[float, str] = (0.0, "0")

    def sample(self) -> tuple[float, float]:
        timestamp, value = self.value
        return timestamp, float(value)


_MATRIX_ADAPTER = TypeAdapter(list[MatrixDataResult])
_VECTOR_ADAPTER = TypeAdapter(list[VectorDataResult])


class BaseQueryDataResponse(BaseModel):
    """The `data` payload of query endpoints.

    `result` is kept as raw JSON; its element shape depends on
    `result_type` and is decoded on demand by `as_matrix` / `as_vector`.
    """

    model_config = ConfigDict(populate_by_name=True)

    result_type: QueryResultType = Field(alias="resultType")
    result: list[Any]

    def as_matrix(self) -> list[MatrixDataResult]:
        return self._project(QueryResultType.MATRIX, _MATRIX_ADAPTER)

    def as_vector(self) -> list[VectorDataResult]:
        return self._project(QueryResultType.VECTOR, _VECTOR_ADAPTER)

    def _project(self, expected: QueryResultType, adapter: TypeAdapter[Any]) -> Any:
        if self.result_type is not expected:
            raise StorageError(f'Query does not return "{expected.value}" result.')
        try:
            return adapter.validate_python(self.result)
        except ValidationError as exc:
            raise StorageError(
                f"Storage \"{expected.value}\" result cannot be deserialized. Message: '{exc}'"
            ) from exc


__all__ = [
    "BaseQueryDataResponse",
    "BaseResponseModel",
    "MatrixDataResult",
    "PrometheusResponseStatus",
    "QueryResultType",
    "TimeInterval",
    "TimeIntervalUnits",
    "VectorDataResult",
]
