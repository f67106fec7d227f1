"""Per-map-instance controller tying the engine stages together.

``MapView`` owns the only mutable state of a map: the current point
snapshot, the viewport, the last cluster set and render plan, the expanded
fan and the interaction machine. Every data or viewport change rebuilds the
clusters from scratch, drops the fan and displacements, and pushes a diff to
the render adapter.
"""

from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping

from fastapi import status

from src.api.core.exceptions.base import CourseMapException
from src.api.core.messages import MessageCode
from src.modules.map.clustering import build_clusters
from src.modules.map.collision import resolve_collisions
from src.modules.map.constants import DEFAULT_CONFIG, EngineConfig
from src.modules.map.interaction import (
    AsyncioScheduler,
    InteractionMachine,
    InteractionState,
    Scheduler,
)
from src.modules.map.models import (
    AccessType,
    Cluster,
    CourseStatus,
    Displacement,
    GeoPoint,
    Viewport,
)
from src.modules.map.points import PointSnapshot, filter_points, parse_points
from src.modules.map.render import (
    RenderAdapter,
    RenderPlan,
    build_render_plan,
    diff_render_plans,
)
from src.modules.map.spiderfy import (
    SpiderfiedGroup,
    ZoomTarget,
    should_spiderfy,
    spiderfy,
    unspiderfy,
    zoom_target,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

StatusChangeCallback = Callable[[str, CourseStatus], None]

DEFAULT_ZOOM = 4


class MapView:
    """Stateful adapter between the pure engine and a map widget."""

    def __init__(
        self,
        adapter: RenderAdapter,
        scheduler: Scheduler | None = None,
        on_status_change: StatusChangeCallback | None = None,
        config: EngineConfig = DEFAULT_CONFIG,
        zoom: float = DEFAULT_ZOOM,
        viewport: Viewport | None = None,
    ):
        self._adapter = adapter
        self._config = config
        self._on_status_change = on_status_change
        self.interaction = InteractionMachine(
            scheduler or AsyncioScheduler(), config.hover_delay_ms
        )

        self._zoom = zoom
        self._viewport = viewport
        self._snapshot = PointSnapshot()
        self._status_filter: CourseStatus | str = "all"
        self._access_filter: AccessType | str = "all"

        self._clusters: tuple[Cluster, ...] = ()
        self._displacements: tuple[Displacement, ...] = ()
        self._spider: SpiderfiedGroup | None = None
        self._plan: RenderPlan | None = None

    # Read-only views

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def viewport(self) -> Viewport | None:
        return self._viewport

    @property
    def snapshot(self) -> PointSnapshot:
        return self._snapshot

    @property
    def clusters(self) -> tuple[Cluster, ...]:
        return self._clusters

    @property
    def displacements(self) -> tuple[Displacement, ...]:
        return self._displacements

    @property
    def spider(self) -> SpiderfiedGroup | None:
        return self._spider

    @property
    def plan(self) -> RenderPlan | None:
        return self._plan

    @property
    def state(self) -> InteractionState:
        return self.interaction.state

    @property
    def selected_point(self) -> GeoPoint | None:
        marker_id = self.interaction.selected_marker_id
        if marker_id is None:
            return None
        return self._find_point(marker_id)

    # Data and viewport changes

    def set_points(self, records: Iterable[Mapping[str, Any] | GeoPoint]) -> PointSnapshot:
        """Replace the point snapshot and re-cluster."""
        self._snapshot = parse_points(records)
        self.refresh()
        return self._snapshot

    def set_viewport(self, zoom: float, viewport: Viewport | None = None) -> None:
        self._zoom = zoom
        self._viewport = viewport
        self.refresh()

    def set_filters(
        self,
        status_filter: CourseStatus | str = "all",
        access_filter: AccessType | str = "all",
    ) -> None:
        self._status_filter = status_filter
        self._access_filter = access_filter
        self.refresh()

    def refresh(self) -> None:
        """Recompute clusters and displacements from scratch and re-render."""
        visible = filter_points(
            self._snapshot.points, self._status_filter, self._access_filter
        )
        self._clusters = tuple(
            build_clusters(visible, self._zoom, self._viewport, self._config)
        )
        singles = [c.members[0] for c in self._clusters if c.is_singleton]
        self._displacements = tuple(
            resolve_collisions(singles, self._zoom, self._config)
        )
        if self._spider is not None:
            logger.debug("Collapsing spider fan on re-cluster", cluster_id=self._spider.cluster_id)
        self._spider = None
        self._release_missing_marker(visible)
        self._render()

    # Cluster activation

    def activate_cluster(self, cluster_id: str) -> SpiderfiedGroup | ZoomTarget | None:
        """Handle a click on a cluster badge.

        At close zoom the cluster fans out; further away the caller gets a
        zoom target to move the viewport to. A singleton just gets selected.
        """
        cluster = self._find_cluster(cluster_id)
        if cluster is None:
            raise CourseMapException(
                MessageCode.CLUSTER_NOT_FOUND,
                status.HTTP_404_NOT_FOUND,
                details={"cluster_id": cluster_id, "zoom": self._zoom},
            )

        if cluster.is_singleton:
            self.click_marker(cluster.members[0].id)
            return None

        if not should_spiderfy(cluster, self._zoom, self._config):
            return zoom_target(cluster, self._zoom, self._config)

        if self._spider is not None and self._spider.cluster_id == cluster.id:
            return self._spider

        self._spider = spiderfy(cluster, self._zoom, self._config)
        self._render()
        return self._spider

    def collapse(self) -> bool:
        """Fold an open fan back into its cluster marker."""
        if self._spider is None:
            return False
        collapsed = unspiderfy(self._spider)
        self._spider = None
        self._render()
        logger.debug(
            "Spider fan collapsed",
            cluster_id=collapsed.cluster_id,
            markers=len(collapsed.removed_marker_ids),
        )
        return True

    # Pointer events

    def click_marker(self, marker_id: str) -> None:
        if self._find_point(marker_id) is None:
            raise CourseMapException(
                MessageCode.MARKER_NOT_FOUND,
                status.HTTP_404_NOT_FOUND,
                details={"marker_id": marker_id},
            )
        if self._spider is not None and self._spider.contains(marker_id):
            # selection wins, the fan still folds away
            self.collapse()
        self.interaction.click(marker_id)

    def click_map(self) -> None:
        """Click anywhere outside markers and the detail panel."""
        self.collapse()
        self.interaction.click_outside()

    def pointer_enter(self, marker_id: str) -> None:
        self.interaction.pointer_enter(marker_id)

    def pointer_leave(self, marker_id: str) -> None:
        self.interaction.pointer_leave(marker_id)

    def close_panel(self) -> None:
        self.interaction.close_panel()

    def change_status(self, new_status: CourseStatus | str) -> GeoPoint:
        """Report a new status for the selected point to the data layer.

        The local snapshot is updated right away so the pin recolours before
        the data layer answers.
        """
        point = self.selected_point
        if point is None:
            raise CourseMapException(
                MessageCode.NO_MARKER_SELECTED, status.HTTP_400_BAD_REQUEST
            )
        new_status = CourseStatus(new_status)
        if self._on_status_change is not None:
            self._on_status_change(point.id, new_status)

        updated = replace(point, status_tag=new_status)
        self._snapshot = replace(
            self._snapshot,
            points=tuple(
                updated if p.id == point.id else p for p in self._snapshot.points
            ),
            outliers=tuple(
                updated if p.id == point.id else p for p in self._snapshot.outliers
            ),
        )
        self.refresh()
        return updated

    # Internals

    def _release_missing_marker(self, visible: tuple[GeoPoint, ...]) -> None:
        """Close the detail panel when its marker is no longer on the map."""
        marker_id = self.interaction.selected_marker_id
        if marker_id is None:
            return
        outliers = filter_points(
            self._snapshot.outliers, self._status_filter, self._access_filter
        )
        if any(p.id == marker_id for p in (*visible, *outliers)):
            return
        logger.debug("Selected marker left the map", marker_id=marker_id)
        self.interaction.reset()

    def _find_cluster(self, cluster_id: str) -> Cluster | None:
        return next((c for c in self._clusters if c.id == cluster_id), None)

    def _find_point(self, point_id: str) -> GeoPoint | None:
        for point in (*self._snapshot.points, *self._snapshot.outliers):
            if point.id == point_id:
                return point
        return None

    def _render(self) -> None:
        plan = build_render_plan(
            self._clusters,
            self._zoom,
            displacements=self._displacements,
            outliers=filter_points(
                self._snapshot.outliers, self._status_filter, self._access_filter
            ),
            spider=self._spider,
            config=self._config,
        )
        diff = diff_render_plans(self._plan, plan)
        self._plan = plan
        if not diff.is_empty:
            self._adapter.apply(diff)
