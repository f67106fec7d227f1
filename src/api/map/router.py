import asyncio
from functools import partial

from fastapi import APIRouter

from src.api.core.constants import DEFAULT_MAP_CENTER, DEFAULT_MAP_ZOOM
from src.api.core.messages import APIResponse, MessageCode
from src.api.map.schemas import (
    MapConfigResponse,
    MapRenderRequest,
    MapRenderResponse,
)
from src.api.map.validators import validate_point_count
from src.modules.map.constants import DEFAULT_CONFIG
from src.modules.map.use_cases import render_snapshot
from src.utils.settings.app import AppSettings

router = APIRouter(prefix="/map", tags=["map"])


@router.post("/render")
async def render_map(payload: MapRenderRequest) -> APIResponse[MapRenderResponse]:
    """Cluster a snapshot of course points into a declarative render plan.

    When ``expanded_cluster_id`` names a cluster, the response carries its
    spider fan at close zoom, or the zoom target to fly to otherwise.
    """
    validate_point_count(payload.points, AppSettings().MAX_POINTS_PER_REQUEST)

    # Clustering is CPU bound, keep it off the event loop
    loop = asyncio.get_event_loop()
    result = await loop.run_in_executor(
        None,
        partial(
            render_snapshot,
            payload.points,
            payload.zoom,
            viewport=payload.viewport.to_domain() if payload.viewport else None,
            status_filter=payload.status_filter,
            access_filter=payload.access_filter,
            expanded_cluster_id=payload.expanded_cluster_id,
        ),
    )

    if result.spider is not None:
        message_code = MessageCode.CLUSTER_SPIDERFIED
    elif result.zoom_target is not None:
        message_code = MessageCode.CLUSTER_ZOOM_REQUIRED
    else:
        message_code = MessageCode.MAP_RENDERED

    return APIResponse.success(
        message_code=message_code, data=MapRenderResponse.from_result(result)
    )


@router.get("/config")
async def get_map_config() -> APIResponse[MapConfigResponse]:
    """Engine constants the map client mirrors (hover delay, tiers, sizes)."""
    return APIResponse.success(
        data=MapConfigResponse.from_config(
            DEFAULT_CONFIG, DEFAULT_MAP_ZOOM, DEFAULT_MAP_CENTER
        )
    )
