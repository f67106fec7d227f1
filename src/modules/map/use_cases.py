"""One-shot map rendering for stateless callers such as the HTTP API."""

import time
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from src.modules.map.constants import DEFAULT_CONFIG, EngineConfig
from src.modules.map.models import (
    AccessType,
    Cluster,
    CourseStatus,
    Displacement,
    Viewport,
)
from src.modules.map.points import PointSnapshot, status_counts
from src.modules.map.render import RecordingRenderAdapter, RenderPlan
from src.modules.map.spiderfy import SpiderfiedGroup, ZoomTarget
from src.modules.map.view import MapView
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MapRenderResult:
    zoom: float
    threshold_m: float
    snapshot: PointSnapshot
    clusters: tuple[Cluster, ...]
    displacements: tuple[Displacement, ...]
    plan: RenderPlan
    status_counts: dict[str, int]
    spider: SpiderfiedGroup | None = None
    zoom_target: ZoomTarget | None = None
    processing_time_ms: int = 0


def render_snapshot(
    records: Iterable[Mapping[str, Any]],
    zoom: float,
    viewport: Viewport | None = None,
    status_filter: CourseStatus | str = "all",
    access_filter: AccessType | str = "all",
    expanded_cluster_id: str | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> MapRenderResult:
    """Cluster, de-collide and optionally expand one cluster for a snapshot.

    Raises:
        CourseMapException: ``expanded_cluster_id`` is not a cluster at this
            zoom and viewport.
    """
    start_time = time.time()

    view = MapView(RecordingRenderAdapter(), config=config, zoom=zoom, viewport=viewport)
    view.set_filters(status_filter, access_filter)
    snapshot = view.set_points(records)

    spider: SpiderfiedGroup | None = None
    target: ZoomTarget | None = None
    if expanded_cluster_id is not None:
        outcome = view.activate_cluster(expanded_cluster_id)
        if isinstance(outcome, SpiderfiedGroup):
            spider = outcome
        elif isinstance(outcome, ZoomTarget):
            target = outcome

    processing_time_ms = int((time.time() - start_time) * 1000)
    logger.info(
        "Map snapshot rendered",
        zoom=zoom,
        points=len(snapshot.points),
        outliers=snapshot.outlier_count,
        dropped=snapshot.dropped,
        clusters=len(view.clusters),
        displaced=len(view.displacements),
        spiderfied=spider is not None,
        processing_time_ms=processing_time_ms,
    )

    return MapRenderResult(
        zoom=zoom,
        threshold_m=config.cluster_threshold(zoom),
        snapshot=snapshot,
        clusters=view.clusters,
        displacements=view.displacements,
        plan=view.plan or RenderPlan(),
        status_counts=status_counts((*snapshot.points, *snapshot.outliers)),
        spider=spider,
        zoom_target=target,
        processing_time_ms=processing_time_ms,
    )
