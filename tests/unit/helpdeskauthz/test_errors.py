# -*- coding: utf-8 -*-
"""Location: ./tests/unit/helpdeskauthz/test_errors.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tests for the typed authorization errors.
"""

# Third-Party
from fastapi import HTTPException
import pytest

# First-Party
from helpdeskauthz.errors import (
    ArticleCreationDeniedError,
    AuthorizationError,
    handle_permission_error,
    InsufficientPermissionsError,
    InvalidScopeError,
    InvalidStatusTransitionError,
    PermissionErrorCode,
    ResourceNotFoundError,
    RoleAssignmentDeniedError,
    SessionExpiredError,
    TeamAccessDeniedError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
)

ALL_ERRORS = [
    (InsufficientPermissionsError("assign", "tickets", "t1"), PermissionErrorCode.INSUFFICIENT_PERMISSIONS, 403),
    (InvalidScopeError("galaxy", ["own", "team"]), PermissionErrorCode.INVALID_SCOPE, 403),
    (TeamAccessDeniedError("t2", "lead"), PermissionErrorCode.TEAM_ACCESS_DENIED, 403),
    (RoleAssignmentDeniedError("ADMIN_MANAGER", "emp"), PermissionErrorCode.ROLE_ASSIGNMENT_DENIED, 403),
    (ArticleCreationDeniedError("Team ID required for restricted articles"), PermissionErrorCode.ARTICLE_CREATION_DENIED, 403),
    (ResourceNotFoundError("tickets", "t9"), PermissionErrorCode.RESOURCE_NOT_FOUND, 404),
    (UserNotFoundError("nobody"), PermissionErrorCode.USER_NOT_FOUND, 404),
    (ValidationError("Ticket id must not be empty", field="ticket_id"), PermissionErrorCode.VALIDATION_ERROR, 400),
    (InvalidStatusTransitionError("OPEN", "CLOSED", ["IN_PROGRESS"]), PermissionErrorCode.INVALID_STATUS_TRANSITION, 400),
    (UnauthenticatedError(), PermissionErrorCode.UNAUTHENTICATED, 401),
    (SessionExpiredError(), PermissionErrorCode.SESSION_EXPIRED, 401),
]


class TestAuthorizationErrors:
    @pytest.mark.parametrize("error,code,status_code", ALL_ERRORS)
    def test_codes_and_status(self, error, code, status_code):
        """Test every error carries its code and status."""
        assert isinstance(error, AuthorizationError)
        assert error.code == code
        assert error.status_code == status_code

        body = error.to_error_response()
        assert body["error"] == type(error).__name__
        assert body["code"] == code.value
        assert body["message"] == error.message == str(error)
        assert body["status_code"] == status_code

    def test_every_code_is_covered(self):
        """Test each non-internal code has an error class."""
        covered = {code for _, code, _ in ALL_ERRORS}

        assert covered == set(PermissionErrorCode) - {PermissionErrorCode.INTERNAL_SERVER_ERROR}

    def test_insufficient_permissions_body(self):
        """Test the denial body names the missing permission."""
        body = InsufficientPermissionsError("assign", "tickets", "t1", reason="Assignee is outside the team").to_error_response()

        assert body["message"] == "Insufficient permissions to assign tickets"
        assert body["required_permission"] == "tickets:assign"
        assert body["action"] == "assign"
        assert body["resource_type"] == "tickets"
        assert body["resource_id"] == "t1"
        assert body["reason"] == "Assignee is outside the team"

    def test_unset_fields_are_omitted(self):
        """Test optional fields only appear when set."""
        body = UnauthenticatedError().to_error_response()

        assert set(body) == {"error", "code", "message", "status_code"}

    def test_validation_error_field(self):
        """Test validation errors report the offending field."""
        assert ValidationError("bad", field="team_id").to_error_response()["field"] == "team_id"
        assert "field" not in ValidationError("bad").to_error_response()

    def test_invalid_scope_lists_allowed(self):
        """Test the scope error names the allowed scopes."""
        error = InvalidScopeError("galaxy", ["own", "team"])

        assert error.allowed_scopes == ["own", "team"]
        assert error.message == "Invalid access scope 'galaxy'. Allowed scopes: own, team"

    def test_team_access_permission_override(self):
        """Test the team error can name a different permission."""
        assert TeamAccessDeniedError("t2", "lead").required_permission == "teams:read"
        assert TeamAccessDeniedError("t2", "lead", "analytics:view").required_permission == "analytics:view"

    def test_to_http_exception(self):
        """Test conversion to a FastAPI HTTP exception."""
        exc = ResourceNotFoundError("tickets", "t9").to_http_exception()

        assert isinstance(exc, HTTPException)
        assert exc.status_code == 404
        assert exc.detail["code"] == "RESOURCE_NOT_FOUND"


class TestHandlePermissionError:
    def test_authorization_error(self):
        """Test authorization errors map to their own body."""
        error = SessionExpiredError()

        assert handle_permission_error(error) == error.to_error_response()

    def test_other_exception(self):
        """Test other exceptions map to an internal error body."""
        body = handle_permission_error(KeyError())

        assert body["code"] == "INTERNAL_SERVER_ERROR"
        assert body["status_code"] == 500
        assert body["message"] == "An unknown error occurred"
