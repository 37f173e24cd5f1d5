"""
Flow Records (Data Model)
=========================
Immutable records of observed data transfers and the dataset helpers that
operate on them.

The wire format produced by the traffic collector uses camel-cased geo keys
(``geoSrc``/``geoDst``), ``PID`` as identity and ``nbytes_size`` for the size.
``FlowRecord.from_dict`` converts one such object; everything downstream
works with the typed records only.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Hashable, Iterable, Mapping, Sequence

from flowmap.model.errors import EmptyDataset, InvalidRecord
from flowmap.utils import parse_timestamp


@dataclass(frozen=True)
class GeoPoint:
    longitude: float
    latitude: float

    @property
    def lonlat(self) -> tuple[float, float]:
        return self.longitude, self.latitude


@dataclass(frozen=True)
class GeoLocation(GeoPoint):
    """A geographic point with descriptive details about the host found there."""
    ip_address: str = ""
    hostname: str = ""
    organization: str = ""
    region: str = ""

    @classmethod
    def from_dict(cls, data: Any, record_id: Hashable = None) -> GeoLocation:
        if not isinstance(data, Mapping):
            raise InvalidRecord("geo location must be an object", record_id)
        try:
            longitude = float(data["longitude"])
            latitude = float(data["latitude"])
        except KeyError as e:
            raise InvalidRecord(f"geo location is missing {e.args[0]!r}", record_id) from e
        except (TypeError, ValueError) as e:
            raise InvalidRecord(f"geo coordinates are not numbers: {e}", record_id) from e

        return cls(
            longitude=longitude,
            latitude=latitude,
            ip_address=str(data.get("ip_address") or ""),
            hostname=str(data.get("hostname") or ""),
            organization=str(data.get("organization") or ""),
            region=str(data.get("region") or ""),
        )


@dataclass(frozen=True)
class FlowRecord:
    """One transfer between two locations. Timestamps are epoch milliseconds (UTC)."""
    id: Hashable
    src_geo: GeoLocation
    dst_geo: GeoLocation
    start_timestamp: int
    end_timestamp: int
    byte_size: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> FlowRecord:
        """
        Build a record from a collector transfer object.

        Raises:
            InvalidRecord: If required fields are missing or malformed.
        """
        if not isinstance(data, Mapping):
            raise InvalidRecord(f"expected an object, got {type(data).__name__}")

        record_id = data.get("PID", data.get("id"))
        if record_id is None:
            raise InvalidRecord("missing identity 'PID'")

        for key in ("geoSrc", "geoDst", "start_timestamp", "end_timestamp", "nbytes_size"):
            if data.get(key) is None:
                raise InvalidRecord(f"missing field {key!r}", record_id)

        try:
            start = parse_timestamp(data["start_timestamp"])
            end = parse_timestamp(data["end_timestamp"])
        except ValueError as e:
            raise InvalidRecord(str(e), record_id) from e

        try:
            byte_size = int(data["nbytes_size"])
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidRecord(f"invalid nbytes_size: {e}", record_id) from e

        record = cls(
            id=record_id,
            src_geo=GeoLocation.from_dict(data["geoSrc"], record_id),
            dst_geo=GeoLocation.from_dict(data["geoDst"], record_id),
            start_timestamp=start,
            end_timestamp=end,
            byte_size=byte_size,
        )
        validate_record(record)
        return record

    @property
    def duration_ms(self) -> int:
        return self.end_timestamp - self.start_timestamp

    def is_active_at(self, timestamp: int) -> bool:
        return self.start_timestamp <= timestamp <= self.end_timestamp

    def route_geometry(self) -> dict:
        """GeoJSON LineString from source to destination."""
        return {
            "type": "LineString",
            "coordinates": [list(self.src_geo.lonlat), list(self.dst_geo.lonlat)],
        }


def _check_point(point: Any, label: str, record_id: Hashable) -> None:
    if point is None:
        raise InvalidRecord(f"missing {label}", record_id)
    lon = getattr(point, "longitude", None)
    lat = getattr(point, "latitude", None)
    if not isinstance(lon, (int, float)) or not isinstance(lat, (int, float)):
        raise InvalidRecord(f"{label} has no numeric longitude/latitude", record_id)
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise InvalidRecord(f"{label} coordinates are not finite", record_id)
    if not -90.0 <= lat <= 90.0:
        raise InvalidRecord(f"{label} latitude {lat} is out of range", record_id)


def validate_record(record: Any) -> None:
    """
    Check that a record carries everything needed to draw it.

    Raises:
        InvalidRecord: On the first violated requirement.
    """
    record_id = getattr(record, "id", None)
    if record_id is None:
        raise InvalidRecord("missing identity")

    _check_point(getattr(record, "src_geo", None), "source location", record_id)
    _check_point(getattr(record, "dst_geo", None), "destination location", record_id)

    start = getattr(record, "start_timestamp", None)
    end = getattr(record, "end_timestamp", None)
    if not isinstance(start, int) or not isinstance(end, int):
        raise InvalidRecord("start/end timestamps must be epoch milliseconds", record_id)
    if start > end:
        raise InvalidRecord(f"start {start} is after end {end}", record_id)

    size = getattr(record, "byte_size", None)
    if not isinstance(size, int) or size < 0:
        raise InvalidRecord(f"byte size must be a non-negative integer, got {size!r}", record_id)


def validate_records(records: Iterable[Any]) -> dict[Hashable, FlowRecord]:
    """
    Validate a snapshot and index it by identity, preserving order.

    Raises:
        InvalidRecord: If any record is invalid or an identity repeats.
    """
    indexed: dict[Hashable, FlowRecord] = {}
    for record in records:
        validate_record(record)
        if record.id in indexed:
            raise InvalidRecord("duplicate identity in snapshot", record.id)
        indexed[record.id] = record
    return indexed


def time_bounds(records: Sequence[FlowRecord]) -> tuple[int, int]:
    """
    Earliest start and latest end of the dataset.

    Raises:
        EmptyDataset: If there are no records.
    """
    if not records:
        raise EmptyDataset()
    min_time = min(r.start_timestamp for r in records)
    max_time = max(r.end_timestamp for r in records)
    return min_time, max_time


def visible_at(records: Iterable[FlowRecord], cursor_time: int) -> list[FlowRecord]:
    """Records whose time span contains the cursor (both ends inclusive)."""
    return [r for r in records if r.is_active_at(cursor_time)]


def max_byte_size(records: Iterable[FlowRecord]) -> int:
    return max((r.byte_size for r in records), default=0)

