"""Declarative render plans and the diff handed to the map widget.

The engine rebuilds the whole plan on every pass; ``diff_render_plans``
turns two consecutive plans into the add/remove/update set a render adapter
applies to its surface.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Protocol, Sequence

from src.modules.map.collision import connector_for
from src.modules.map.constants import DEFAULT_CONFIG, EngineConfig
from src.modules.map.icons import IconDescriptor, cluster_icon, icon_for
from src.modules.map.models import (
    Cluster,
    ConnectorLine,
    Displacement,
    GeoPoint,
    LatLng,
)
from src.modules.map.projection import clamp_position
from src.modules.map.spiderfy import SpiderfiedGroup


class MarkerKind(str, Enum):
    CLUSTER = "cluster"
    MARKER = "marker"
    OUTLIER = "outlier"
    SPIDER = "spider"


@dataclass(frozen=True)
class MarkerPlacement:
    key: str
    kind: MarkerKind
    position: LatLng
    icon: IconDescriptor
    point_ids: tuple[str, ...]
    badge_count: int | None = None
    displaced: bool = False


@dataclass(frozen=True)
class RenderPlan:
    markers: tuple[MarkerPlacement, ...] = ()
    connectors: tuple[ConnectorLine, ...] = ()

    def marker(self, key: str) -> MarkerPlacement | None:
        return next((m for m in self.markers if m.key == key), None)

    @property
    def marker_keys(self) -> tuple[str, ...]:
        return tuple(m.key for m in self.markers)


@dataclass(frozen=True)
class RenderDiff:
    added: tuple[MarkerPlacement, ...] = ()
    removed: tuple[str, ...] = ()
    updated: tuple[MarkerPlacement, ...] = ()
    added_connectors: tuple[ConnectorLine, ...] = ()
    removed_connectors: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (
            self.added
            or self.removed
            or self.updated
            or self.added_connectors
            or self.removed_connectors
        )


class RenderAdapter(Protocol):
    """The mapping widget that actually draws markers and lines."""

    def apply(self, diff: RenderDiff) -> None: ...


@dataclass
class RecordingRenderAdapter:
    """Keeps the applied state in memory; handy for headless use and tests."""

    markers: dict[str, MarkerPlacement] = field(default_factory=dict)
    connectors: dict[str, ConnectorLine] = field(default_factory=dict)
    applied: list[RenderDiff] = field(default_factory=list)

    def apply(self, diff: RenderDiff) -> None:
        for key in diff.removed:
            self.markers.pop(key, None)
        for placement in (*diff.added, *diff.updated):
            self.markers[placement.key] = placement
        for key in diff.removed_connectors:
            self.connectors.pop(key, None)
        for line in diff.added_connectors:
            self.connectors[line.key] = line
        self.applied.append(diff)


def _point_placement(
    point: GeoPoint,
    kind: MarkerKind,
    position: LatLng,
    scale: float,
    displaced: bool = False,
) -> MarkerPlacement:
    return MarkerPlacement(
        key=point.id,
        kind=kind,
        position=position,
        icon=icon_for(point.category, point.status_tag, scale),
        point_ids=(point.id,),
        displaced=displaced,
    )


def build_render_plan(
    clusters: Sequence[Cluster],
    zoom: float,
    displacements: Iterable[Displacement] = (),
    outliers: Iterable[GeoPoint] = (),
    spider: SpiderfiedGroup | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RenderPlan:
    """Assemble marker placements and connector lines for one pass."""
    scale = config.icon_scale(zoom)
    moved = {d.marker_id: d for d in displacements}
    markers: list[MarkerPlacement] = []
    connectors: list[ConnectorLine] = []

    for cluster in clusters:
        if spider is not None and cluster.id == spider.cluster_id:
            for spider_marker in spider.spider_markers:
                markers.append(
                    _point_placement(
                        spider_marker.point,
                        MarkerKind.SPIDER,
                        spider_marker.position,
                        scale,
                    )
                )
            connectors.extend(spider.connector_lines)
            continue

        if cluster.is_singleton:
            point = cluster.members[0]
            displacement = moved.get(point.id)
            if displacement is not None:
                markers.append(
                    _point_placement(
                        point,
                        MarkerKind.MARKER,
                        displacement.new_position,
                        scale,
                        displaced=True,
                    )
                )
                connectors.append(connector_for(displacement))
            else:
                markers.append(
                    _point_placement(point, MarkerKind.MARKER, cluster.center, scale)
                )
            continue

        markers.append(
            MarkerPlacement(
                key=cluster.id,
                kind=MarkerKind.CLUSTER,
                position=cluster.center,
                icon=cluster_icon(cluster.size, scale),
                point_ids=tuple(p.id for p in cluster.members),
                badge_count=cluster.size,
            )
        )

    for point in outliers:
        markers.append(
            _point_placement(
                point,
                MarkerKind.OUTLIER,
                clamp_position(point.latitude, point.longitude),
                scale,
            )
        )

    return RenderPlan(markers=tuple(markers), connectors=tuple(connectors))


def diff_render_plans(previous: RenderPlan | None, current: RenderPlan) -> RenderDiff:
    """Changes that turn ``previous`` into ``current`` on the render surface."""
    if previous is None:
        return RenderDiff(added=current.markers, added_connectors=current.connectors)

    old_markers = {m.key: m for m in previous.markers}
    new_markers = {m.key: m for m in current.markers}
    added = tuple(m for key, m in new_markers.items() if key not in old_markers)
    updated = tuple(
        m
        for key, m in new_markers.items()
        if key in old_markers and old_markers[key] != m
    )
    removed = tuple(key for key in old_markers if key not in new_markers)

    old_lines = {line.key: line for line in previous.connectors}
    new_lines = {line.key: line for line in current.connectors}
    # a moved line is removed and re-added
    removed_connectors = tuple(
        key
        for key, line in old_lines.items()
        if key not in new_lines or new_lines[key] != line
    )
    added_connectors = tuple(
        line
        for key, line in new_lines.items()
        if key not in old_lines or old_lines[key] != line
    )

    return RenderDiff(
        added=added,
        removed=removed,
        updated=updated,
        added_connectors=added_connectors,
        removed_connectors=removed_connectors,
    )
