"""Turn data-layer course records into GeoPoint snapshots for the engine."""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from src.modules.map.models import AccessType, CourseStatus, GeoPoint
from src.utils.logger import get_logger

logger = get_logger(__name__)

_LATITUDE_KEYS = ("latitude", "lat")
_LONGITUDE_KEYS = ("longitude", "lng", "lon")
_CATEGORY_KEYS = ("category", "accessType", "access_type")
_STATUS_KEYS = ("status_tag", "statusTag", "status")


@dataclass(frozen=True)
class PointSnapshot:
    """Parsed points for one render pass.

    ``outliers`` have parseable but out-of-range coordinates and are never
    clustered. ``dropped`` counts records that could not be used at all.
    """

    points: tuple[GeoPoint, ...] = ()
    outliers: tuple[GeoPoint, ...] = ()
    dropped: int = 0
    drop_reasons: dict[str, int] = field(default_factory=dict)

    @property
    def outlier_count(self) -> int:
        return len(self.outliers)


def _first(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def parse_coordinate(value: Any) -> float | None:
    """Parse a coordinate that may arrive as a stored decimal string."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def parse_access_type(value: Any) -> AccessType:
    try:
        return AccessType(value)
    except ValueError:
        return AccessType.PUBLIC


def parse_status(value: Any) -> CourseStatus:
    try:
        return CourseStatus(value)
    except ValueError:
        return CourseStatus.NOT_PLAYED


def in_range(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def _to_point(record: Mapping[str, Any] | GeoPoint) -> tuple[GeoPoint | None, str | None]:
    if isinstance(record, GeoPoint):
        return record, None
    if not isinstance(record, Mapping):
        return None, "not_a_record"

    raw_id = record.get("id")
    if raw_id is None or str(raw_id).strip() == "":
        return None, "missing_id"

    latitude = parse_coordinate(_first(record, _LATITUDE_KEYS))
    longitude = parse_coordinate(_first(record, _LONGITUDE_KEYS))
    if latitude is None or longitude is None:
        return None, "unparseable_coordinates"

    return (
        GeoPoint(
            id=str(raw_id),
            latitude=latitude,
            longitude=longitude,
            category=parse_access_type(_first(record, _CATEGORY_KEYS)),
            status_tag=parse_status(_first(record, _STATUS_KEYS)),
        ),
        None,
    )


def parse_points(records: Iterable[Mapping[str, Any] | GeoPoint]) -> PointSnapshot:
    """Parse raw records, counting what had to be dropped instead of raising."""
    points: list[GeoPoint] = []
    outliers: list[GeoPoint] = []
    reasons: Counter[str] = Counter()
    seen: set[str] = set()

    for record in records:
        point, reason = _to_point(record)
        if point is None:
            reasons[reason or "invalid"] += 1
            continue
        if point.id in seen:
            reasons["duplicate_id"] += 1
            continue
        seen.add(point.id)

        if in_range(point.latitude, point.longitude):
            points.append(point)
        else:
            outliers.append(point)

    dropped = sum(reasons.values())
    if dropped:
        logger.warning(
            "Dropped unusable course records",
            dropped=dropped,
            reasons=dict(reasons),
        )

    return PointSnapshot(
        points=tuple(points),
        outliers=tuple(outliers),
        dropped=dropped,
        drop_reasons=dict(reasons),
    )


def filter_points(
    points: Iterable[GeoPoint],
    status: CourseStatus | str = "all",
    access: AccessType | str = "all",
) -> tuple[GeoPoint, ...]:
    """Apply the map's status and access-type filters ("all" disables one)."""
    status_filter = None if status == "all" else CourseStatus(status)
    access_filter = None if access == "all" else AccessType(access)
    return tuple(
        p
        for p in points
        if (status_filter is None or p.status_tag == status_filter)
        and (access_filter is None or p.category == access_filter)
    )


def status_counts(points: Iterable[GeoPoint]) -> dict[str, int]:
    """Counts per status plus "all", as shown next to the filter buttons."""
    counts = {status.value: 0 for status in CourseStatus}
    total = 0
    for point in points:
        counts[point.status_tag.value] += 1
        total += 1
    counts["all"] = total
    return counts
