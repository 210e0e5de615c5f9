"""Tenant scoping of storage requests.

Every scoped request carries two parameters computed here: an
`extra_filters[]` matcher restricting series to the permitted streams and an
`extra_label` pinning the userspace. Callers can never supply these two
parameters themselves.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import StorageValidationError
from .settings import DEFAULT_SYSTEM_LABEL_PREFIX, VictoriaOptions

USERSPACE_ID_LABEL = "userspace_id"
STREAM_ID_LABEL = "stream_id"
EXTRA_FILTERS_PARAM = "extra_filters[]"
EXTRA_LABEL_PARAM = "extra_label"
RESERVED_PARAMS = frozenset({EXTRA_FILTERS_PARAM, EXTRA_LABEL_PARAM})
METRIC_NAME_LABEL = "__name__"


class MultiItems(Protocol):
    def multi_items(self) -> list[tuple[str, str]]:
        """Query-string pairs with repeated keys kept (httpx, Starlette)."""


RequestQuery = Mapping[str, str | Sequence[str]] | MultiItems
FormParams = dict[str, str | list[str]]


def validate_query(query: str | None) -> str:
    if not query:
        raise StorageValidationError("query", "query is null or empty.")
    return query


def _integral(value: Any) -> int:
    """Accept ints and integral strings; bools and floats are rejected."""

    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise TypeError(f"{value!r} is not an integer")

def validate_scope(userspace_id: Any, stream_ids: Iterable[Any] | None) -> tuple[int, list[int]]:
    """Check scoping arguments and return them as integers."""

    ids = list(stream_ids) if stream_ids is not None else []
    if not ids:
        raise StorageValidationError("stream_ids", "stream_ids is empty.")
    try:
        normalized = [_integral(stream_id) for stream_id in ids]
    except TypeError as exc:
        raise StorageValidationError(
            "stream_ids", "stream_ids must contain only integers."
        ) from exc
    try:
        userspace = _integral(userspace_id)
    except TypeError as exc:
        raise StorageValidationError("userspace_id", "userspace_id must be an integer.") from exc
    if userspace <= 0:
        raise StorageValidationError(
            "userspace_id", "userspace_id must be greater than zero."
        )
    return userspace, normalized


def normalize_request_query(request_query: RequestQuery | None) -> FormParams:
    """Flatten caller query parameters into form fields, keeping repeated keys."""

    params: FormParams = {}
    if request_query is None:
        return params

    if hasattr(request_query, "multi_items"):
        pairs: Iterable[tuple[str, Any]] = request_query.multi_items()
    else:
        pairs = _mapping_pairs(request_query)

    for key, value in pairs:
        existing = params.get(key)
        if existing is None:
            params[key] = str(value)
        elif isinstance(existing, list):
            existing.append(str(value))
        else:
            params[key] = [existing, str(value)]
    return params


def _mapping_pairs(request_query: Mapping[str, Any]) -> Iterable[tuple[str, Any]]:
    for key, value in request_query.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                yield key, item
        else:
            yield key, value


@dataclass(frozen=True, slots=True)
class TenantScope:
    """Scoping label names derived from the configured system label prefix."""

    label_prefix: str = DEFAULT_SYSTEM_LABEL_PREFIX

    @classmethod
    def from_options(cls, options: VictoriaOptions) -> "TenantScope":
        return cls(label_prefix=options.system_label_prefix)

    @property
    def userspace_id_label(self) -> str:
        return self.label_prefix + USERSPACE_ID_LABEL

    @property
    def stream_id_label(self) -> str:
        return self.label_prefix + STREAM_ID_LABEL

    def stream_filter(self, stream_ids: Iterable[int]) -> str:
        joined = "|".join(str(stream_id) for stream_id in stream_ids)
        return f'{{{self.stream_id_label}=~"{joined}"}}'

    def userspace_label(self, userspace_id: int) -> str:
        return f"{self.userspace_id_label}={userspace_id}"

    def scoping_params(self, userspace_id: int, stream_ids: Iterable[Any]) -> FormParams:
        """Validate and build the two mandatory scoping parameters."""

        userspace, ids = validate_scope(userspace_id, stream_ids)
        return {
            EXTRA_FILTERS_PARAM: self.stream_filter(ids),
            EXTRA_LABEL_PARAM: self.userspace_label(userspace),
        }

    def scoped(
        self,
        request_query: RequestQuery | None,
        userspace_id: int,
        stream_ids: Iterable[Any],
    ) -> FormParams:
        """Scoping parameters first, then caller parameters minus the reserved ones."""

        params = self.scoping_params(userspace_id, stream_ids)
        for key, value in normalize_request_query(request_query).items():
            if key in RESERVED_PARAMS:
                continue
            params[key] = value
        return params


def unscoped(request_query: RequestQuery | None) -> FormParams:
    """Forward every caller parameter as-is."""

    return normalize_request_query(request_query)


__all__ = [
    "EXTRA_FILTERS_PARAM",
    "EXTRA_LABEL_PARAM",
    "FormParams",
    "METRIC_NAME_LABEL",
    "RESERVED_PARAMS",
    "RequestQuery",
    "STREAM_ID_LABEL",
    "TenantScope",
    "USERSPACE_ID_LABEL",
    "normalize_request_query",
    "unscoped",
    "validate_query",
    "validate_scope",
]
