from typing import Any

from fastapi import status

from src.api.core.exceptions.base import CourseMapException
from src.api.core.messages import MessageCode


def validate_point_count(points: list[dict[str, Any]], max_points: int) -> None:
    """Reject snapshots larger than one render pass is allowed to handle."""
    if len(points) > max_points:
        raise CourseMapException(
            MessageCode.TOO_MANY_POINTS,
            status.HTTP_400_BAD_REQUEST,
            details={"received": len(points), "max_points": max_points},
        )
