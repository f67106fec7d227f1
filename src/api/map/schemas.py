"""Map API schemas (requests and responses)."""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from src.api.core.constants import DEFAULT_MAP_ZOOM, MAX_REQUEST_ZOOM, MIN_REQUEST_ZOOM
from src.modules.map.constants import EngineConfig
from src.modules.map.icons import IconDescriptor
from src.modules.map.models import (
    AccessType,
    Cluster,
    ConnectorLine,
    CourseStatus,
    LatLng,
    Viewport,
)
from src.modules.map.render import MarkerKind, MarkerPlacement
from src.modules.map.spiderfy import SpiderfiedGroup, ZoomTarget
from src.modules.map.use_cases import MapRenderResult


class Coordinates(BaseModel):

    latitude: float
    longitude: float

    @classmethod
    def from_domain(cls, position: LatLng) -> "Coordinates":
        return cls(latitude=position.latitude, longitude=position.longitude)


class ViewportIn(BaseModel):
    """Visible bounds; ``west > east`` crosses the antimeridian."""

    south: float = Field(ge=-90, le=90)
    west: float = Field(ge=-180, le=180)
    north: float = Field(ge=-90, le=90)
    east: float = Field(ge=-180, le=180)

    @model_validator(mode="after")
    def check_latitude_order(self) -> "ViewportIn":
        if self.south > self.north:
            raise ValueError("south must not be greater than north")
        return self

    def to_domain(self) -> Viewport:
        return Viewport(
            south=self.south, west=self.west, north=self.north, east=self.east
        )


class MapRenderRequest(BaseModel):
    # Raw course records; malformed ones are counted, not rejected
    points: list[dict[str, Any]] = Field(default_factory=list)
    zoom: float = Field(default=DEFAULT_MAP_ZOOM, ge=MIN_REQUEST_ZOOM, le=MAX_REQUEST_ZOOM)
    viewport: ViewportIn | None = None
    status_filter: CourseStatus | Literal["all"] = "all"
    access_filter: AccessType | Literal["all"] = "all"
    expanded_cluster_id: str | None = None


class IconOut(BaseModel):
    key: str
    glyph: str
    color: str
    width: float
    height: float
    anchor: tuple[float, float]
    popup_anchor: tuple[float, float]

    @classmethod
    def from_domain(cls, icon: IconDescriptor) -> "IconOut":
        return cls(
            key=icon.key,
            glyph=icon.glyph,
            color=icon.color,
            width=icon.width,
            height=icon.height,
            anchor=icon.anchor,
            popup_anchor=icon.popup_anchor,
        )


class MarkerOut(BaseModel):
    key: str
    kind: MarkerKind
    position: Coordinates
    icon: IconOut
    point_ids: list[str]
    badge_count: int | None = None
    displaced: bool = False

    @classmethod
    def from_domain(cls, placement: MarkerPlacement) -> "MarkerOut":
        return cls(
            key=placement.key,
            kind=placement.kind,
            position=Coordinates.from_domain(placement.position),
            icon=IconOut.from_domain(placement.icon),
            point_ids=list(placement.point_ids),
            badge_count=placement.badge_count,
            displaced=placement.displaced,
        )


class ConnectorOut(BaseModel):
    key: str
    start: Coordinates
    end: Coordinates

    @classmethod
    def from_domain(cls, line: ConnectorLine) -> "ConnectorOut":
        return cls(
            key=line.key,
            start=Coordinates.from_domain(line.start),
            end=Coordinates.from_domain(line.end),
        )


class ClusterOut(BaseModel):
    id: str
    size: int
    center: Coordinates
    member_ids: list[str]

    @classmethod
    def from_domain(cls, cluster: Cluster) -> "ClusterOut":
        return cls(
            id=cluster.id,
            size=cluster.size,
            center=Coordinates.from_domain(cluster.center),
            member_ids=[p.id for p in cluster.members],
        )


class SpiderMarkerOut(BaseModel):
    id: str
    angle: float
    position: Coordinates


class SpiderOut(BaseModel):
    cluster_id: str
    markers: list[SpiderMarkerOut]
    connectors: list[ConnectorOut]

    @classmethod
    def from_domain(cls, group: SpiderfiedGroup) -> "SpiderOut":
        return cls(
            cluster_id=group.cluster_id,
            markers=[
                SpiderMarkerOut(
                    id=m.marker_id,
                    angle=m.angle,
                    position=Coordinates.from_domain(m.position),
                )
                for m in group.spider_markers
            ],
            connectors=[ConnectorOut.from_domain(c) for c in group.connector_lines],
        )


class ZoomTargetOut(BaseModel):
    center: Coordinates
    zoom: int

    @classmethod
    def from_domain(cls, target: ZoomTarget) -> "ZoomTargetOut":
        return cls(center=Coordinates.from_domain(target.center), zoom=target.zoom)


class MapRenderResponse(BaseModel):
    zoom: float
    threshold_m: float
    markers: list[MarkerOut]
    connectors: list[ConnectorOut]
    clusters: list[ClusterOut]
    spider: SpiderOut | None = None
    zoom_target: ZoomTargetOut | None = None
    dropped: int
    drop_reasons: dict[str, int]
    outliers: int
    status_counts: dict[str, int]
    processing_time_ms: int

    @classmethod
    def from_result(cls, result: MapRenderResult) -> "MapRenderResponse":
        return cls(
            zoom=result.zoom,
            threshold_m=result.threshold_m,
            markers=[MarkerOut.from_domain(m) for m in result.plan.markers],
            connectors=[ConnectorOut.from_domain(c) for c in result.plan.connectors],
            clusters=[ClusterOut.from_domain(c) for c in result.clusters],
            spider=SpiderOut.from_domain(result.spider) if result.spider else None,
            zoom_target=(
                ZoomTargetOut.from_domain(result.zoom_target)
                if result.zoom_target
                else None
            ),
            dropped=result.snapshot.dropped,
            drop_reasons=result.snapshot.drop_reasons,
            outliers=result.snapshot.outlier_count,
            status_counts=result.status_counts,
            processing_time_ms=result.processing_time_ms,
        )


class ThresholdStep(BaseModel):
    max_zoom: int
    threshold_m: float


class MapConfigResponse(BaseModel):
    threshold_steps: list[ThresholdStep]
    max_cluster_zoom: int
    icon_base_size_px: float
    hover_delay_ms: int
    collision_min_zoom: int
    collision_conflict_factor: float
    collision_separation_factor: float
    spiderfy_min_zoom: int
    spider_radius_px: float
    default_zoom: int
    default_center: Coordinates

    @classmethod
    def from_config(
        cls, config: EngineConfig, default_zoom: int, default_center: tuple[float, float]
    ) -> "MapConfigResponse":
        return cls(
            threshold_steps=[
                ThresholdStep(max_zoom=z, threshold_m=t)
                for z, t in config.zoom_threshold_steps
            ],
            max_cluster_zoom=config.max_cluster_zoom,
            icon_base_size_px=config.icon_base_size_px,
            hover_delay_ms=config.hover_delay_ms,
            collision_min_zoom=config.collision_min_zoom,
            collision_conflict_factor=config.collision_conflict_factor,
            collision_separation_factor=config.collision_separation_factor,
            spiderfy_min_zoom=config.spiderfy_min_zoom,
            spider_radius_px=config.spider_radius_px,
            default_zoom=default_zoom,
            default_center=Coordinates(
                latitude=default_center[0], longitude=default_center[1]
            ),
        )
