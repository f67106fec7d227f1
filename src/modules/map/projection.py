"""Web Mercator pixel math used to reason about on-screen marker overlap.

Pixel coordinates follow the slippy-map convention: world size is
``TILE_SIZE_PX * 2**zoom``, x grows east and y grows south.
"""

import math

from src.modules.map.constants import TILE_SIZE_PX
from src.modules.map.models import LatLng

MAX_MERCATOR_LATITUDE = 85.0511287798


def clamp_latitude(latitude: float) -> float:
    return max(-MAX_MERCATOR_LATITUDE, min(MAX_MERCATOR_LATITUDE, latitude))


def clamp_position(latitude: float, longitude: float) -> LatLng:
    """Clamp an out-of-range coordinate onto the renderable world."""
    return LatLng(
        clamp_latitude(max(-90.0, min(90.0, latitude))),
        max(-180.0, min(180.0, longitude)),
    )


def world_size(zoom: float) -> float:
    return TILE_SIZE_PX * (2.0**zoom)


def to_pixel(latitude: float, longitude: float, zoom: float) -> tuple[float, float]:
    size = world_size(zoom)
    lat_r = math.radians(clamp_latitude(latitude))
    x = (longitude + 180.0) / 360.0 * size
    y = (1.0 - math.log(math.tan(lat_r) + 1.0 / math.cos(lat_r)) / math.pi) / 2.0 * size
    return x, y


def from_pixel(x: float, y: float, zoom: float) -> LatLng:
    size = world_size(zoom)
    longitude = x / size * 360.0 - 180.0
    n = math.pi * (1.0 - 2.0 * y / size)
    latitude = math.degrees(math.atan(math.sinh(n)))
    return LatLng(latitude, longitude)


def pixel_distance(a: LatLng, b: LatLng, zoom: float) -> float:
    """On-screen distance in pixels between two positions at ``zoom``."""
    ax, ay = to_pixel(a.latitude, a.longitude, zoom)
    bx, by = to_pixel(b.latitude, b.longitude, zoom)
    return math.hypot(bx - ax, by - ay)


def offset_position(
    origin: LatLng, dx: float, dy: float, zoom: float
) -> LatLng:
    """Move ``origin`` by a pixel offset (dy positive = south) at ``zoom``."""
    x, y = to_pixel(origin.latitude, origin.longitude, zoom)
    return from_pixel(x + dx, y + dy, zoom)
