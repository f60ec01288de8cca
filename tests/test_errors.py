"""Tests for the JSON error handlers and request rollback."""

from typing import Any

import pytest
from pydantic import BaseModel

from parish.exceptions import (
    BusinessLogicException,
    ExportFailedException,
    ImportFailedException,
    InvalidOperationException,
    RecordNotFoundException,
    ResourceConflictException,
    ValidationException,
)
from parish.models.member import Member
from parish.utils.flask_error_handlers import _BUSINESS_STATUS_CODES


class TestBusinessErrorHandlers:
    """Domain exceptions map to status codes and error codes."""

    @pytest.mark.parametrize(
        ("exception", "status", "code"),
        [
            (RecordNotFoundException("Member", 7), 404, "RECORD_NOT_FOUND"),
            (ResourceConflictException("Member", "email a@b.co"), 409, "RESOURCE_CONFLICT"),
            (InvalidOperationException("add member", "it is taken"), 409, "INVALID_OPERATION"),
            (ValidationException("Bad value"), 400, "VALIDATION_FAILED"),
            (ImportFailedException("broken file"), 422, "IMPORT_FAILED"),
            (ExportFailedException("disk full"), 500, "EXPORT_FAILED"),
        ],
    )
    def test_exception_mapping(self, app: Any, exception: Exception, status: int, code: str) -> None:
        """Test each domain exception produces its status and code."""

        @app.route("/test-business-error")
        def failing_route() -> None:
            raise exception

        response = app.test_client().get("/test-business-error")

        assert response.status_code == status
        data = response.get_json()
        assert data["code"] == code
        assert data["error"] == exception.message
        assert "correlationId" in data

    def test_messages_are_user_ready(self) -> None:
        """Test exception messages read as sentences."""
        assert RecordNotFoundException("Member", 7).message == "Member 7 was not found"
        assert (
            ResourceConflictException("Family", "family code FAM001").message
            == "A family with family code FAM001 already exists"
        )
        assert ImportFailedException("bad").message == "Import failed: bad"

    def test_every_domain_exception_has_a_status(self) -> None:
        assert set(BusinessLogicException.__subclasses__()) == set(_BUSINESS_STATUS_CODES)


class TestCoreErrorHandlers:
    """HTTP, validation and unexpected errors."""

    def test_unknown_route_returns_json_404(self, client: Any) -> None:
        """Test unknown URLs produce a JSON 404."""
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.get_json()["code"] == "NOT_FOUND"

    def test_wrong_method_returns_405(self, client: Any) -> None:
        """Test unsupported methods produce a JSON 405."""
        response = client.patch("/api/members")

        assert response.status_code == 405
        assert response.get_json()["code"] == "METHOD_NOT_ALLOWED"

    def test_pydantic_validation_error_returns_400(self, app: Any) -> None:
        """Test pydantic errors list the failing fields."""

        class Payload(BaseModel):
            count: int

        @app.route("/test-pydantic-error")
        def failing_route() -> None:
            Payload(count="many")  # type: ignore[arg-type]

        response = app.test_client().get("/test-pydantic-error")

        assert response.status_code == 400
        data = response.get_json()
        assert data["code"] == "VALIDATION_FAILED"
        assert data["details"][0]["field"] == "count"

    def test_unexpected_error_returns_500(self, app: Any) -> None:
        """Test unhandled exceptions are hidden behind a generic message."""

        @app.route("/test-unexpected-error")
        def failing_route() -> None:
            raise RuntimeError("boom")

        response = app.test_client().get("/test-unexpected-error")

        assert response.status_code == 500
        data = response.get_json()
        assert data["code"] == "INTERNAL_ERROR"
        assert "boom" not in data["error"]


class TestRequestRollback:
    """Handled errors roll back the request session."""

    def test_failed_request_does_not_persist_changes(self, app: Any) -> None:
        """Test rows added before a domain error are rolled back."""

        @app.route("/test-rollback", methods=["POST"])
        def failing_route() -> None:
            db_session = app.container.db_session()
            db_session.add(
                Member(
                    first_name="Ghost",
                    last_name="Writer",
                    gender="Male",
                    local_church="St James Kangemi",
                    church_group="Youth",
                    membership_status="active",
                )
            )
            db_session.flush()
            raise ValidationException("Rejected")

        response = app.test_client().post("/test-rollback")
        assert response.status_code == 400

        with app.app_context():
            db_session = app.container.db_session()
            try:
                assert db_session.query(Member).filter_by(first_name="Ghost").count() == 0
            finally:
                db_session.close()
                app.container.db_session.reset()

    def test_successful_request_commits(self, client: Any, app: Any) -> None:
        """Test a successful write is visible to later requests."""
        response = client.post(
            "/api/members",
            json={
                "first_name": "Grace",
                "last_name": "Akinyi",
                "gender": "Female",
                "local_church": "St James Kangemi",
                "church_group": "Youth",
            },
        )
        assert response.status_code == 201

        member_id = response.get_json()["id"]
        assert client.get(f"/api/members/{member_id}").status_code == 200
