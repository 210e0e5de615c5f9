"""Prometheus remote write messages and their wire encoding.

Messages are encoded as protobuf by hand and compressed with Snappy block
format, as required by the remote write protocol:

    message WriteRequest { repeated TimeSeries timeseries = 1; }
    message TimeSeries   { repeated Label labels = 1; repeated Sample samples = 2; }
    message Label        { string name = 1; string value = 2; }
    message Sample       { double value = 1; int64 timestamp = 2; }
"""

from __future__ import annotations

import struct
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

import snappy

METRIC_NAME_LABEL = "__name__"

# Protobuf wire types
WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2

_UINT64_MASK = (1 << 64) - 1


def _encode_varint(value: int) -> bytes:
    value &= _UINT64_MASK
    result = bytearray()
    while value > 0x7F:
        result.append((value & 0x7F) | 0x80)
        value >>= 7
    result.append(value)
    return bytes(result)


def _encode_tag(field_number: int, wire_type: int) -> bytes:
    return _encode_varint((field_number << 3) | wire_type)


def _encode_bytes(field_number: int, data: bytes) -> bytes:
    return _encode_tag(field_number, WIRE_LENGTH_DELIMITED) + _encode_varint(len(data)) + data


def _encode_string(field_number: int, value: str) -> bytes:
    return _encode_bytes(field_number, value.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class Label:
    name: str
    value: str

    def encode(self) -> bytes:
        return _encode_string(1, self.name) + _encode_string(2, self.value)


@dataclass(frozen=True, slots=True)
class Sample:
    """A value with a timestamp in milliseconds since the epoch."""

    value: float
    timestamp: int

    @classmethod
    def at(cls, moment: datetime, value: float) -> "Sample":
        return cls(value=value, timestamp=int(moment.timestamp() * 1000))

    def encode(self) -> bytes:
        return (
            _encode_tag(1, WIRE_FIXED64)
            + struct.pack("<d", float(self.value))
            + _encode_tag(2, WIRE_VARINT)
            + _encode_varint(self.timestamp)
        )


@dataclass(slots=True)
class TimeSeries:
    labels: list[Label] = field(default_factory=list)
    samples: list[Sample] = field(default_factory=list)

    @classmethod
    def from_metric(
        cls, name: str, labels: Mapping[str, str], samples: list[Sample]
    ) -> "TimeSeries":
        """Series with `__name__` first and the remaining labels sorted by name."""

        pairs = [Label(METRIC_NAME_LABEL, name)]
        pairs.extend(Label(key, value) for key, value in sorted(labels.items()))
        return cls(labels=pairs, samples=list(samples))

    def encode(self) -> bytes:
        chunks = [_encode_bytes(1, label.encode()) for label in self.labels]
        chunks.extend(_encode_bytes(2, sample.encode()) for sample in self.samples)
        return b"".join(chunks)


@dataclass(slots=True)
class WriteRequest:
    timeseries: list[TimeSeries] = field(default_factory=list)

    def encode(self) -> bytes:
        return b"".join(_encode_bytes(1, series.encode()) for series in self.timeseries)


def compress_write_request(request: WriteRequest) -> bytes:
    """Snappy-compressed protobuf body ready for the `write` endpoint."""

    return snappy.compress(request.encode())


__all__ = [
    "Label",
    "Sample",
    "TimeSeries",
    "WriteRequest",
    "compress_write_request",
]
