"""Tests for standardized error handling."""

import psycopg
from fastapi import FastAPI
from fastapi.testclient import TestClient
from psycopg_pool import PoolTimeout


class TestAPIErrors:

    def test_not_found_error_defaults(self):
        from forum.errors import NotFoundError

        error = NotFoundError()
        assert error.status_code == 404
        assert error.error == "not_found"
        assert error.detail == "Resource not found"

    def test_not_found_error_with_context(self):
        from forum.errors import NotFoundError

        error = NotFoundError(detail="Event not found", resource_type="event", resource_id="12")
        assert error.detail == "Event not found"
        assert error.context == {"resource_type": "event", "resource_id": "12"}

    def test_status_codes(self):
        from forum.errors import (
            BadRequestError,
            ConflictError,
            DatabaseError,
            ServiceUnavailableError,
            TooManyRequestsError,
            UnauthorizedError,
        )

        assert BadRequestError().status_code == 400
        assert UnauthorizedError().status_code == 401
        assert ConflictError().status_code == 409
        assert TooManyRequestsError().status_code == 429
        assert DatabaseError().status_code == 500
        assert ServiceUnavailableError().status_code == 503


class TestErrorResponse:

    def test_error_response_minimal(self):
        from forum.errors import ErrorResponse

        data = ErrorResponse(error="internal_error").model_dump(exclude_none=True)
        assert data == {"error": "internal_error"}

    def test_api_error_to_response(self):
        from forum.errors import ConflictError

        response = ConflictError(detail="Already registered", registration_id=3).to_response()
        assert response.error == "conflict"
        assert response.detail == "Already registered"
        assert response.context == {"registration_id": 3}


def _app_raising(exc: Exception) -> TestClient:
    from forum.errors import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


class TestExceptionHandlers:

    def test_api_error_handler(self):
        from forum.errors import BadRequestError

        response = _app_raising(BadRequestError(detail="End time must be after start time")).get("/boom")
        assert response.status_code == 400
        assert response.json() == {"error": "bad_request", "detail": "End time must be after start time"}

    def test_operational_error_maps_to_503(self):
        response = _app_raising(psycopg.OperationalError("connection refused")).get("/boom")
        assert response.status_code == 503
        assert response.json()["error"] == "service_unavailable"

    def test_pool_timeout_maps_to_503(self):
        response = _app_raising(PoolTimeout("no connection")).get("/boom")
        assert response.status_code == 503

    def test_other_driver_error_maps_to_500(self):
        response = _app_raising(psycopg.DataError("bad value")).get("/boom")
        assert response.status_code == 500
        assert response.json()["error"] == "database_error"
