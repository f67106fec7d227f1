"""Tuning constants for the map clustering and interaction engine."""

from dataclasses import dataclass, field

# Zoom -> maximum intra-cluster distance (meters). Each step applies up to and
# including its zoom level; above the last step nothing is clustered.
ZOOM_THRESHOLD_STEPS: tuple[tuple[int, float], ...] = (
    (3, 400_000.0),
    (5, 200_000.0),
    (7, 50_000.0),
    (9, 20_000.0),
    (11, 5_000.0),
    (13, 1_000.0),
    (15, 250.0),
)
MAX_CLUSTER_ZOOM = 16

# Center validation
CENTER_RADIUS_RATIO = 0.5  # members must sit within half the threshold
LOCALITY_RATIO = 0.4  # of the half threshold, for at least one other member

# (south, west, north, east) of the area the service covers
SUPPORTED_BOUNDS: tuple[float, float, float, float] = (15.0, -170.0, 72.0, -50.0)


@dataclass(frozen=True)
class WaterZone:
    name: str
    south: float
    west: float
    north: float
    east: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.south <= latitude <= self.north
            and self.west <= longitude <= self.east
        )


WATER_ZONES: tuple[WaterZone, ...] = (
    WaterZone("Gulf of Mexico", 23.0, -96.0, 27.5, -84.0),
    WaterZone("Western Atlantic", 28.0, -73.0, 38.0, -66.0),
    WaterZone("Eastern Pacific", 23.0, -155.0, 47.0, -126.0),
    WaterZone("Hudson Bay", 56.0, -94.0, 63.0, -80.0),
)

# Only points inside the viewport grown by this share of its span are clustered
VIEWPORT_PADDING_RATIO = 0.2

# Icons
ICON_BASE_SIZE_PX = 32.0
ICON_SCALE_STEPS: tuple[tuple[int, float], ...] = (
    (5, 0.75),
    (9, 1.0),
)
ICON_MAX_SCALE = 1.25

# Collision correction
COLLISION_MIN_ZOOM = 12
COLLISION_CONFLICT_FACTOR = 1.5
COLLISION_SEPARATION_FACTOR = 2.0

# Spiderfy
SPIDERFY_MIN_ZOOM = 13
SPIDER_RADIUS_PX = 48.0

# Interaction
HOVER_DELAY_MS = 175

# Web Mercator tile size
TILE_SIZE_PX = 256.0


@dataclass(frozen=True)
class EngineConfig:
    """All engine knobs in one place so callers and tests can override them."""

    zoom_threshold_steps: tuple[tuple[int, float], ...] = ZOOM_THRESHOLD_STEPS
    max_cluster_zoom: int = MAX_CLUSTER_ZOOM
    center_radius_ratio: float = CENTER_RADIUS_RATIO
    locality_ratio: float = LOCALITY_RATIO
    supported_bounds: tuple[float, float, float, float] = SUPPORTED_BOUNDS
    water_zones: tuple[WaterZone, ...] = field(default=WATER_ZONES)
    viewport_padding_ratio: float = VIEWPORT_PADDING_RATIO
    icon_base_size_px: float = ICON_BASE_SIZE_PX
    icon_scale_steps: tuple[tuple[int, float], ...] = ICON_SCALE_STEPS
    icon_max_scale: float = ICON_MAX_SCALE
    collision_min_zoom: int = COLLISION_MIN_ZOOM
    collision_conflict_factor: float = COLLISION_CONFLICT_FACTOR
    collision_separation_factor: float = COLLISION_SEPARATION_FACTOR
    spiderfy_min_zoom: int = SPIDERFY_MIN_ZOOM
    spider_radius_px: float = SPIDER_RADIUS_PX
    hover_delay_ms: int = HOVER_DELAY_MS

    def cluster_threshold(self, zoom: float) -> float:
        """Maximum intra-cluster distance in meters at ``zoom``."""
        if zoom >= self.max_cluster_zoom:
            return 0.0
        for max_zoom, threshold in self.zoom_threshold_steps:
            if zoom <= max_zoom:
                return threshold
        return 0.0

    def icon_scale(self, zoom: float) -> float:
        for max_zoom, scale in self.icon_scale_steps:
            if zoom <= max_zoom:
                return scale
        return self.icon_max_scale

    def icon_diameter(self, zoom: float) -> float:
        return self.icon_base_size_px * self.icon_scale(zoom)


DEFAULT_CONFIG = EngineConfig()
