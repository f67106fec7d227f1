"""Test utilities for asserting API responses and message codes."""

from typing import Any
from httpx import Response
from src.api.core.messages import MessageCode
from src.api.core.exceptions.base import CourseMapException


def assert_success_response(
    response: Response,
    expected_message_code: MessageCode = MessageCode.SUCCESS,
    expected_status: int = 200,
    data_assertions: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Assert that response is successful with expected message code.

    Args:
        response: HTTP response to check
        expected_message_code: Expected message code
        expected_status: Expected HTTP status code
        data_assertions: Optional dict of assertions to run on response data

    Returns:
        Response data for further assertions
    """
    assert response.status_code == expected_status, (
        f"Expected status {expected_status}, got {response.status_code}. "
        f"Response: {response.text}"
    )

    json_data = response.json()

    assert json_data.get("message_code") == expected_message_code.value, (
        f"Expected message_code {expected_message_code.value}, "
        f"got {json_data.get('message_code')}"
    )
    assert "message" in json_data, "Success response should have message"

    if data_assertions:
        data = json_data.get("data")
        for field, expected_value in data_assertions.items():
            current = data
            # nested access like "default_center.latitude"
            for part in field.split("."):
                current = current[part]
            assert (
                current == expected_value
            ), f"Expected {field} to be {expected_value}, got {current}"

    return json_data.get("data")


def assert_error_response(
    response: Response,
    expected_message_code: MessageCode,
    expected_status: int,
    expected_message: str | None = None,
) -> dict[str, Any]:
    """Assert that response is an error with expected message code.

    Returns:
        The full JSON body for further assertions
    """
    assert response.status_code == expected_status, (
        f"Expected status {expected_status}, got {response.status_code}. "
        f"Response: {response.text}"
    )

    json_data = response.json()

    assert json_data.get("message_code") == expected_message_code.value, (
        f"Expected message_code {expected_message_code.value}, "
        f"got {json_data.get('message_code')}"
    )

    if expected_message:
        assert json_data.get("message") == expected_message, (
            f"Expected message '{expected_message}', "
            f"got '{json_data.get('message')}'"
        )

    return json_data


def assert_validation_error(
    response: Response, field_locations: list[tuple] | None = None
) -> dict[str, Any]:
    """Assert a 422 validation error, optionally naming offending locations."""
    json_data = assert_error_response(response, MessageCode.VALIDATION_ERROR, 422)

    if field_locations:
        errors = json_data["details"]["validation_errors"]
        locations = [tuple(err.get("loc", ())) for err in errors]
        for location in field_locations:
            assert any(
                loc[: len(location)] == location for loc in locations
            ), f"Expected validation error at {location}, got {locations}"

    return json_data


def assert_coursemap_exception(
    exception: CourseMapException,
    expected_message_code: MessageCode,
    expected_status: int | None = None,
) -> None:
    """Assert that a CourseMapException has expected properties."""
    assert exception.message_code == expected_message_code, (
        f"Expected message_code {expected_message_code}, "
        f"got {exception.message_code}"
    )

    if expected_status:
        assert exception.status_code == expected_status, (
            f"Expected status_code {expected_status}, " f"got {exception.status_code}"
        )


class ResponseHelper:
    """Helper class for common response assertions and data extraction."""

    @staticmethod
    def get_data(response: Response) -> Any:
        assert response.status_code < 400, f"Response failed: {response.text}"
        return response.json().get("data")

    @staticmethod
    def get_message_code(response: Response) -> MessageCode:
        return MessageCode(response.json().get("message_code"))

    @staticmethod
    def markers_by_key(response: Response) -> dict[str, dict[str, Any]]:
        """Index the render plan markers of a map response by key."""
        data = ResponseHelper.get_data(response)
        return {marker["key"]: marker for marker in data["markers"]}
