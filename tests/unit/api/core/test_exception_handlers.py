"""Exception handler message code mapping."""

import pytest
from fastapi import FastAPI, HTTPException, status
from httpx import ASGITransport, AsyncClient

from src.api.core.exceptions.base import register_exception_handlers
from src.api.core.messages import DEFAULT_MESSAGES, MessageCode
from tests.utils.assertions import assert_error_response


@pytest.fixture
def bare_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/forbidden")
    async def forbidden():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="nope")

    @app.get("/gone")
    async def gone():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="gone")

    return app


@pytest.mark.asyncio
async def test_http_exception_uses_internal_error_code(bare_app):
    async with AsyncClient(
        transport=ASGITransport(app=bare_app), base_url="http://test"
    ) as client:
        response = await client.get("/forbidden")

    body = assert_error_response(
        response, MessageCode.INTERNAL_ERROR, status.HTTP_403_FORBIDDEN
    )
    assert body["message"] == "nope"


@pytest.mark.asyncio
async def test_http_not_found_keeps_not_found_code(bare_app):
    async with AsyncClient(
        transport=ASGITransport(app=bare_app), base_url="http://test"
    ) as client:
        response = await client.get("/gone")

    assert_error_response(response, MessageCode.NOT_FOUND, status.HTTP_404_NOT_FOUND)


def test_message_codes_have_default_messages():
    assert set(DEFAULT_MESSAGES) == set(MessageCode)
    assert "INTERNAL_SERVER_ERROR" not in MessageCode.__members__
