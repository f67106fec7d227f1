"""Expand a cluster into a radial fan of individually clickable markers."""

import math
from dataclasses import dataclass

from src.modules.map.constants import DEFAULT_CONFIG, EngineConfig
from src.modules.map.models import Cluster, ConnectorLine, GeoPoint, LatLng
from src.modules.map.projection import offset_position

SPIDER_KEY_PREFIX = "spider:"


@dataclass(frozen=True)
class SpiderMarker:
    point: GeoPoint
    angle: float  # degrees, counter-clockwise from east
    position: LatLng

    @property
    def marker_id(self) -> str:
        return self.point.id


@dataclass(frozen=True)
class SpiderfiedGroup:
    cluster_id: str
    cluster: Cluster
    spider_markers: tuple[SpiderMarker, ...]
    connector_lines: tuple[ConnectorLine, ...]

    def contains(self, marker_id: str) -> bool:
        return any(m.marker_id == marker_id for m in self.spider_markers)

    @property
    def marker_ids(self) -> tuple[str, ...]:
        return tuple(m.marker_id for m in self.spider_markers)


@dataclass(frozen=True)
class ZoomTarget:
    """Where to send the viewport when a cluster is activated from afar."""

    center: LatLng
    zoom: int


@dataclass(frozen=True)
class Unspiderfied:
    """What collapsing a fan takes off the map and what it puts back."""

    cluster_id: str
    removed_marker_ids: tuple[str, ...]
    removed_connector_keys: tuple[str, ...]


def should_spiderfy(
    cluster: Cluster, zoom: float, config: EngineConfig = DEFAULT_CONFIG
) -> bool:
    return cluster.size > 1 and zoom >= config.spiderfy_min_zoom


def spider_connector_key(cluster_id: str, marker_id: str) -> str:
    return f"{SPIDER_KEY_PREFIX}{cluster_id}:{marker_id}"


def spiderfy(
    cluster: Cluster, zoom: float, config: EngineConfig = DEFAULT_CONFIG
) -> SpiderfiedGroup:
    """Fan the members out at equal angular spacing, in member order."""
    if cluster.size < 2:
        raise ValueError(f"Cannot spiderfy singleton cluster {cluster.id}")

    step = 360.0 / cluster.size
    radius = config.spider_radius_px
    markers: list[SpiderMarker] = []
    lines: list[ConnectorLine] = []

    for index, point in enumerate(cluster.members):
        angle = step * index
        rad = math.radians(angle)
        # screen y grows southwards
        position = offset_position(
            cluster.center, radius * math.cos(rad), -radius * math.sin(rad), zoom
        )
        markers.append(SpiderMarker(point=point, angle=angle, position=position))
        lines.append(
            ConnectorLine(
                key=spider_connector_key(cluster.id, point.id),
                start=cluster.center,
                end=position,
            )
        )

    return SpiderfiedGroup(
        cluster_id=cluster.id,
        cluster=cluster,
        spider_markers=tuple(markers),
        connector_lines=tuple(lines),
    )


def unspiderfy(group: SpiderfiedGroup) -> Unspiderfied:
    return Unspiderfied(
        cluster_id=group.cluster_id,
        removed_marker_ids=group.marker_ids,
        removed_connector_keys=tuple(line.key for line in group.connector_lines),
    )


def zoom_target(
    cluster: Cluster, zoom: float, config: EngineConfig = DEFAULT_CONFIG
) -> ZoomTarget:
    """Next zoom tier that tightens the threshold, capped at the spiderfy tier."""
    current = config.cluster_threshold(zoom)
    target = config.spiderfy_min_zoom
    for candidate in range(math.floor(zoom) + 1, config.spiderfy_min_zoom + 1):
        if config.cluster_threshold(candidate) < current:
            target = candidate
            break
    return ZoomTarget(center=cluster.center, zoom=max(target, math.floor(zoom)))
