"""Icon descriptors for course pins and cluster badges.

The client owns the actual vector markup; the engine only says which pin to
draw and how big.
"""

from dataclasses import dataclass
from functools import lru_cache

from src.modules.map.models import AccessType, CourseStatus

STATUS_COLORS: dict[CourseStatus, str] = {
    CourseStatus.PLAYED: "#1a5f3f",
    CourseStatus.WANT_TO_PLAY: "#ca8a04",
    CourseStatus.NOT_PLAYED: "#6b7280",
}

ACCESS_GLYPHS: dict[AccessType, str] = {
    AccessType.PUBLIC: "flag",
    AccessType.PRIVATE: "key",
    AccessType.RESORT: "building",
}

PIN_WIDTH = 32.0
PIN_HEIGHT = 40.0
CLUSTER_COLOR = "#1f2937"


@dataclass(frozen=True)
class IconDescriptor:
    key: str
    glyph: str
    color: str
    width: float
    height: float
    anchor: tuple[float, float]
    popup_anchor: tuple[float, float]


@lru_cache(maxsize=64)
def icon_for(category: AccessType, status: CourseStatus, scale: float = 1.0) -> IconDescriptor:
    """Pin for a course of ``category`` tagged with ``status`` at ``scale``."""
    width = PIN_WIDTH * scale
    height = PIN_HEIGHT * scale
    return IconDescriptor(
        key=f"pin:{category.value}:{status.value}:{scale:g}",
        glyph=ACCESS_GLYPHS[category],
        color=STATUS_COLORS[status],
        width=width,
        height=height,
        anchor=(width / 2, height),
        popup_anchor=(0.0, -height),
    )


def cluster_icon(count: int, scale: float = 1.0) -> IconDescriptor:
    """Round badge for a cluster; grows a little with its member count."""
    if count < 10:
        size_class, base = "small", 36.0
    elif count < 100:
        size_class, base = "medium", 42.0
    else:
        size_class, base = "large", 50.0
    size = base * scale
    return IconDescriptor(
        key=f"cluster:{size_class}:{scale:g}",
        glyph="badge",
        color=CLUSTER_COLOR,
        width=size,
        height=size,
        anchor=(size / 2, size / 2),
        popup_anchor=(0.0, -size / 2),
    )
