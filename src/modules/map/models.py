"""Domain types shared by the map engine."""

from dataclasses import dataclass
from enum import Enum


class AccessType(str, Enum):
    """Course access type, drives the pin glyph."""

    PUBLIC = "public"
    PRIVATE = "private"
    RESORT = "resort"


class CourseStatus(str, Enum):
    """Per-user status tag, drives the pin color."""

    PLAYED = "played"
    WANT_TO_PLAY = "want-to-play"
    NOT_PLAYED = "not-played"


@dataclass(frozen=True)
class LatLng:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeoPoint:
    id: str
    latitude: float
    longitude: float
    category: AccessType = AccessType.PUBLIC
    status_tag: CourseStatus = CourseStatus.NOT_PLAYED

    @property
    def position(self) -> LatLng:
        return LatLng(self.latitude, self.longitude)


@dataclass(frozen=True)
class Viewport:
    """Visible bounding box. ``west > east`` means it crosses the antimeridian."""

    south: float
    west: float
    north: float
    east: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def padded(self, ratio: float) -> "Viewport":
        lat_pad = (self.north - self.south) * ratio
        lng_span = (self.east - self.west) % 360.0 or 360.0
        lng_pad = lng_span * ratio
        if lng_span + 2 * lng_pad >= 360.0:
            west, east = -180.0, 180.0
        else:
            west = _wrap_longitude(self.west - lng_pad)
            east = _wrap_longitude(self.east + lng_pad)
        return Viewport(
            south=max(-90.0, self.south - lat_pad),
            west=west,
            north=min(90.0, self.north + lat_pad),
            east=east,
        )

    def contains(self, latitude: float, longitude: float) -> bool:
        if not self.south <= latitude <= self.north:
            return False
        if self.crosses_antimeridian:
            return longitude >= self.west or longitude <= self.east
        return self.west <= longitude <= self.east


def _wrap_longitude(longitude: float) -> float:
    wrapped = (longitude + 180.0) % 360.0 - 180.0
    # keep +180 reachable for an eastern edge
    if wrapped == -180.0 and longitude > 0:
        return 180.0
    return wrapped


@dataclass(frozen=True)
class Cluster:
    id: str
    members: tuple[GeoPoint, ...]
    center: LatLng

    @property
    def is_singleton(self) -> bool:
        return len(self.members) == 1

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class Displacement:
    marker_id: str
    original_position: LatLng
    new_position: LatLng


@dataclass(frozen=True)
class ConnectorLine:
    key: str
    start: LatLng
    end: LatLng
