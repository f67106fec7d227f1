"""Radial displacement of individually rendered markers that would overlap.

Only singleton markers are ever moved; cluster badges stay put. Results are
recomputed from scratch for every zoom or data change and carry no memory of
earlier passes.
"""

import math
from collections import defaultdict, deque
from typing import Sequence

from src.modules.map.constants import DEFAULT_CONFIG, EngineConfig
from src.modules.map.models import ConnectorLine, Displacement, GeoPoint
from src.modules.map.projection import from_pixel, to_pixel
from src.utils.logger import get_logger

logger = get_logger(__name__)

DISPLACEMENT_CONNECTOR_PREFIX = "displacement:"


def conflict_distance_px(zoom: float, config: EngineConfig = DEFAULT_CONFIG) -> float:
    return config.icon_diameter(zoom) * config.collision_conflict_factor


def separation_radius_px(zoom: float, config: EngineConfig = DEFAULT_CONFIG) -> float:
    return config.icon_diameter(zoom) * config.collision_separation_factor


def _conflict_sets(
    pixels: Sequence[tuple[float, float]], limit: float
) -> list[list[int]]:
    """Connected groups (size >= 2) of markers closer than ``limit`` pixels.

    Uses a grid of ``limit``-sized cells so only neighbouring cells are
    compared. Groups and their members come out in input order.
    """
    cells: dict[tuple[int, int], list[int]] = defaultdict(list)
    for index, (x, y) in enumerate(pixels):
        cells[(int(x // limit), int(y // limit))].append(index)

    neighbours: list[list[int]] = [[] for _ in pixels]
    for index, (x, y) in enumerate(pixels):
        cx, cy = int(x // limit), int(y // limit)
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for other in cells.get((cx + dx, cy + dy), ()):
                    if other == index:
                        continue
                    ox, oy = pixels[other]
                    if math.hypot(ox - x, oy - y) < limit:
                        neighbours[index].append(other)

    seen = [False] * len(pixels)
    groups: list[list[int]] = []
    for start in range(len(pixels)):
        if seen[start] or not neighbours[start]:
            continue
        seen[start] = True
        group = []
        queue = deque([start])
        while queue:
            current = queue.popleft()
            group.append(current)
            for other in neighbours[current]:
                if not seen[other]:
                    seen[other] = True
                    queue.append(other)
        groups.append(sorted(group))
    return groups


def resolve_collisions(
    markers: Sequence[GeoPoint],
    zoom: float,
    config: EngineConfig = DEFAULT_CONFIG,
) -> list[Displacement]:
    """Spread overlapping markers evenly around their shared position.

    Members of a conflict set are placed on a circle of the separation radius
    (twice the icon diameter) around the set's mean screen position. The
    circle grows when a large set would otherwise leave neighbours closer
    than the conflict distance. Angles are indexed by order in the set,
    starting from the direction of its first member.

    The circle is not a fixed 2x radius around each marker's own position:
    markers of one set that merely touch would then be fanned around
    different points and could land on top of each other again. Sharing the
    mean as the pivot and growing the radius to
    ``conflict / (2 sin(pi / k))`` for a set of ``k`` keeps every pair of
    displaced neighbours at least the conflict distance apart.
    """
    if zoom < config.collision_min_zoom or len(markers) < 2:
        return []

    limit = conflict_distance_px(zoom, config)
    base_radius = separation_radius_px(zoom, config)
    pixels = [to_pixel(m.latitude, m.longitude, zoom) for m in markers]

    displacements: list[Displacement] = []
    for group in _conflict_sets(pixels, limit):
        count = len(group)
        cx = sum(pixels[i][0] for i in group) / count
        cy = sum(pixels[i][1] for i in group) / count
        first_x, first_y = pixels[group[0]]
        start_angle = math.atan2(first_y - cy, first_x - cx)
        radius = max(base_radius, limit / (2 * math.sin(math.pi / count)))

        for order, index in enumerate(group):
            angle = start_angle + 2 * math.pi * order / count
            marker = markers[index]
            displacements.append(
                Displacement(
                    marker_id=marker.id,
                    original_position=marker.position,
                    new_position=from_pixel(
                        cx + radius * math.cos(angle),
                        cy + radius * math.sin(angle),
                        zoom,
                    ),
                )
            )

    if displacements:
        logger.debug(
            "Resolved marker collisions",
            zoom=zoom,
            displaced=len(displacements),
        )
    return displacements


def connector_for(displacement: Displacement) -> ConnectorLine:
    """Thin line leading from a displaced marker back to its true location."""
    return ConnectorLine(
        key=f"{DISPLACEMENT_CONNECTOR_PREFIX}{displacement.marker_id}",
        start=displacement.original_position,
        end=displacement.new_position,
    )
