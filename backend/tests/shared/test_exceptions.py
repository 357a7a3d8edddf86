"""Tests for shared/exceptions.py."""

import pytest

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ConvoError,
    ExternalServiceError,
    IntegrityError,
    NotFoundError,
    UnsupportedMediaTypeError,
    ValidationError,
)


class TestConvoError:
    def test_convo_error_message(self):
        """ConvoError should store message."""
        error = ConvoError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"

    def test_convo_error_default_code(self):
        """ConvoError should default code to class name."""
        error = ConvoError("Test error")
        assert error.code == "ConvoError"

    def test_convo_error_custom_code(self):
        error = ConvoError("Test error", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_convo_error_defaults(self):
        """Details and user messages should default to empty dicts."""
        error = ConvoError("Test error")
        assert error.details == {}
        assert error.messages == {}
        assert error.status_code == 500

    def test_status_code_override(self):
        error = ValidationError("Bad", status_code=401)
        assert error.status_code == 401
        assert ValidationError("Bad").status_code == 400

    def test_with_op_builds_trail_outermost_first(self):
        """Operations added on the way up should read outermost first."""
        error = ConvoError("boom").with_op("UserStore.commit(email=a@x.com)").with_op("UserService.create")
        assert error.ops == ["UserService.create", "UserStore.commit(email=a@x.com)"]
        assert error.op_trail == "UserService.create: UserStore.commit(email=a@x.com)"

    def test_convo_error_to_dict(self):
        error = ConvoError("Test error", code="TEST_ERROR", details={"key": "value"}).with_op("op")
        result = error.to_dict()

        assert result["error"] == "TEST_ERROR"
        assert result["message"] == "Test error"
        assert result["details"]["key"] == "value"
        assert result["ops"] == ["op"]


class TestStatusCodes:
    @pytest.mark.parametrize(
        "error_class,status",
        [
            (ValidationError, 400),
            (ConflictError, 400),
            (AuthenticationError, 401),
            (AuthorizationError, 404),
            (NotFoundError, 404),
            (UnsupportedMediaTypeError, 415),
            (IntegrityError, 500),
        ],
    )
    def test_status_by_kind(self, error_class, status):
        error = error_class("message")
        assert isinstance(error, ConvoError)
        assert error.status_code == status


class TestExternalServiceError:
    def test_external_service_error_stores_service(self):
        error = ExternalServiceError("Connection failed", service="sigstrip")
        assert error.service == "sigstrip"
        assert error.status_code == 500

    def test_external_service_error_preserves_other_details(self):
        """ExternalServiceError should keep other details next to the service."""
        error = ExternalServiceError(
            "Connection failed",
            service="stream",
            details={"status_code": 503},
        )
        result = error.to_dict()

        assert result["details"]["service"] == "stream"
        assert result["details"]["status_code"] == 503
