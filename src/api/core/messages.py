"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"
    MAP_RENDERED = "MAP_RENDERED"
    CLUSTER_SPIDERFIED = "CLUSTER_SPIDERFIED"
    CLUSTER_ZOOM_REQUIRED = "CLUSTER_ZOOM_REQUIRED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TOO_MANY_POINTS = "TOO_MANY_POINTS"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # Map engine
    CLUSTER_NOT_FOUND = "CLUSTER_NOT_FOUND"
    MARKER_NOT_FOUND = "MARKER_NOT_FOUND"
    NO_MARKER_SELECTED = "NO_MARKER_SELECTED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.MAP_RENDERED: "Map render plan computed",
    MessageCode.CLUSTER_SPIDERFIED: "Cluster expanded into individual markers",
    MessageCode.CLUSTER_ZOOM_REQUIRED: "Zoom in to separate this cluster",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.TOO_MANY_POINTS: "Too many points in a single request",
    MessageCode.PAYLOAD_TOO_LARGE: "Request payload too large",
    # Map engine
    MessageCode.CLUSTER_NOT_FOUND: "Cluster not found at the current zoom",
    MessageCode.MARKER_NOT_FOUND: "Marker not found",
    MessageCode.NO_MARKER_SELECTED: "No marker is selected",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
