"""Zoom-dependent geographic clustering of course points.

Grouping is greedy and seeded by iteration order: the next unclustered point
pulls in every other unclustered point within the zoom threshold and the
group is closed. This is not a connected-components pass, so the same set in
a different order can cluster differently. Callers keep input order stable.

Each group is represented by its most central member. A group whose center
fails validation is broken back into singletons so no point is ever lost.
"""

import itertools
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Sequence

from src.modules.map.constants import DEFAULT_CONFIG, EngineConfig
from src.modules.map.geometry import (
    EARTH_RADIUS_M,
    distance,
    max_distance_from,
    most_central,
)
from src.modules.map.models import Cluster, GeoPoint, LatLng, Viewport
from src.utils.logger import get_logger

logger = get_logger(__name__)

CLUSTER_ID_PREFIX = "cluster:"

_NEIGHBOUR_OFFSETS = tuple(itertools.product((-1, 0, 1), repeat=3))


@dataclass(frozen=True)
class CenterCheck:
    valid: bool
    reason: str = ""


def cluster_threshold(zoom: float, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Maximum distance (meters) from a seed for a point to join its group."""
    return config.cluster_threshold(zoom)


def cluster_id_for(members: Sequence[GeoPoint]) -> str:
    if len(members) == 1:
        return members[0].id
    return f"{CLUSTER_ID_PREFIX}{members[0].id}"


def singleton(point: GeoPoint) -> Cluster:
    return Cluster(id=point.id, members=(point,), center=point.position)


def in_supported_area(position: LatLng, config: EngineConfig = DEFAULT_CONFIG) -> bool:
    south, west, north, east = config.supported_bounds
    return (
        south <= position.latitude <= north and west <= position.longitude <= east
    )


def water_zone_at(position: LatLng, config: EngineConfig = DEFAULT_CONFIG) -> str | None:
    for zone in config.water_zones:
        if zone.contains(position.latitude, position.longitude):
            return zone.name
    return None


def validate_center(
    center: GeoPoint,
    members: Sequence[GeoPoint],
    threshold: float,
    config: EngineConfig = DEFAULT_CONFIG,
) -> CenterCheck:
    """Check that ``center`` is a sensible representative for ``members``."""
    position = center.position
    if not in_supported_area(position, config):
        return CenterCheck(False, "outside_supported_area")

    zone = water_zone_at(position, config)
    if zone is not None:
        return CenterCheck(False, f"over_water:{zone}")

    max_radius = threshold * config.center_radius_ratio
    locality_radius = max_radius * config.locality_ratio
    others = [m for m in members if m is not center]
    if max_distance_from(center, others) > max_radius:
        return CenterCheck(False, "member_too_far")
    if not any(distance(center, m) <= locality_radius for m in others):
        return CenterCheck(False, "sparse_members")
    return CenterCheck(True)


def _cell_size(threshold: float) -> float:
    """Grid edge (unit sphere chord) that bounds any pair within ``threshold``."""
    half_angle = min(threshold / (2 * EARTH_RADIUS_M), math.pi / 2)
    # widened a touch so pairs exactly at the threshold never straddle two cells
    return 2 * math.sin(half_angle) * (1 + 1e-9) + 1e-12


def _cell_of(point: GeoPoint, size: float) -> tuple[int, int, int]:
    lat, lon = math.radians(point.latitude), math.radians(point.longitude)
    return (
        math.floor(math.cos(lat) * math.cos(lon) / size),
        math.floor(math.cos(lat) * math.sin(lon) / size),
        math.floor(math.sin(lat) / size),
    )


def group_points(points: Sequence[GeoPoint], threshold: float) -> list[list[GeoPoint]]:
    """Greedy seeded grouping: each seed claims every free point within reach.

    Points are bucketed on a 3D grid over the unit sphere whose cells are as
    wide as the chord of ``threshold``, so a seed only measures candidates in
    the 27 surrounding cells. Candidates are visited in input order, which
    keeps the result identical to a full pairwise scan.
    """
    if threshold <= 0:
        return [[p] for p in points]

    size = _cell_size(threshold)
    cells: dict[tuple[int, int, int], list[int]] = defaultdict(list)
    keys = []
    for index, point in enumerate(points):
        key = _cell_of(point, size)
        keys.append(key)
        cells[key].append(index)

    claimed = [False] * len(points)
    groups: list[list[GeoPoint]] = []
    for i, seed in enumerate(points):
        if claimed[i]:
            continue
        claimed[i] = True
        group = [seed]
        x, y, z = keys[i]
        candidates = sorted(
            j
            for dx, dy, dz in _NEIGHBOUR_OFFSETS
            for j in cells.get((x + dx, y + dy, z + dz), ())
            if j > i and not claimed[j]
        )
        for j in candidates:
            if distance(seed, points[j]) <= threshold:
                claimed[j] = True
                group.append(points[j])
        groups.append(group)
    return groups


def build_clusters(
    points: Sequence[GeoPoint],
    zoom: float,
    viewport: Viewport | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> list[Cluster]:
    """Cluster ``points`` for ``zoom``; only points near ``viewport`` take part."""
    if viewport is not None:
        visible = viewport.padded(config.viewport_padding_ratio)
        points = [p for p in points if visible.contains(p.latitude, p.longitude)]

    if not points:
        return []

    threshold = cluster_threshold(zoom, config)
    clusters: list[Cluster] = []
    fallbacks = 0

    for group in group_points(points, threshold):
        if len(group) == 1:
            clusters.append(singleton(group[0]))
            continue

        center = most_central(group)
        check = validate_center(center, group, threshold, config)
        if not check.valid:
            fallbacks += 1
            logger.debug(
                "Cluster center rejected, falling back to singletons",
                seed=group[0].id,
                size=len(group),
                reason=check.reason,
            )
            clusters.extend(singleton(member) for member in group)
            continue

        clusters.append(
            Cluster(
                id=cluster_id_for(group),
                members=tuple(group),
                center=center.position,
            )
        )

    logger.debug(
        "clusters_built",
        zoom=zoom,
        threshold_m=threshold,
        points=len(points),
        clusters=len(clusters),
        fallbacks=fallbacks,
    )
    return clusters
