# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/errors.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Authorization Errors.
Typed denial errors raised by the resource guards. Each error carries a
closed ``code``, an HTTP-equivalent status and, where one applies, the
``resource:action`` permission that was missing, so callers can map every
denial to a response the same way.
"""

# Standard
from enum import Enum
from typing import Any, Dict, List, Optional

# Third-Party
from fastapi import HTTPException, status


class PermissionErrorCode(str, Enum):
    """Closed set of error codes reported to callers."""

    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    INVALID_SCOPE = "INVALID_SCOPE"
    TEAM_ACCESS_DENIED = "TEAM_ACCESS_DENIED"
    ROLE_ASSIGNMENT_DENIED = "ROLE_ASSIGNMENT_DENIED"
    ARTICLE_CREATION_DENIED = "ARTICLE_CREATION_DENIED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class AuthorizationError(Exception):
    """Base class for every access-control error.

    Attributes:
        message: Human-readable description
        code: Error code
        required_permission: Missing permission such as ``tickets:assign``
        status_code: HTTP-equivalent status
        action: Action that was attempted
        resource_type: Resource type the action targeted
        resource_id: Resource the action targeted
        reason: Specific denial reason, when one exists

    Examples:
        >>> err = AuthorizationError("nope", PermissionErrorCode.INSUFFICIENT_PERMISSIONS)
        >>> err.status_code
        403
        >>> str(err)
        'nope'
    """

    def __init__(
        self,
        message: str,
        code: PermissionErrorCode,
        required_permission: Optional[str] = None,
        status_code: int = status.HTTP_403_FORBIDDEN,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.required_permission = required_permission
        self.status_code = status_code
        self.action = action
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.reason = reason

    def to_error_response(self) -> Dict[str, Any]:
        """Build the error body returned to API callers.

        Returns:
            Dict[str, Any]: ``error``, ``code``, ``message``, ``status_code`` and
            any of ``required_permission``, ``action``, ``resource_type``,
            ``resource_id``, ``reason`` that are set

        Examples:
            >>> body = InsufficientPermissionsError("assign", "tickets", "t1").to_error_response()
            >>> body["error"], body["code"], body["required_permission"]
            ('InsufficientPermissionsError', 'INSUFFICIENT_PERMISSIONS', 'tickets:assign')
        """
        body: Dict[str, Any] = {
            "error": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "status_code": self.status_code,
        }
        optional = {
            "required_permission": self.required_permission,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "reason": self.reason,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        return body

    def to_http_exception(self) -> HTTPException:
        """Convert to a FastAPI ``HTTPException`` carrying the error body.

        Returns:
            HTTPException: Exception with ``status_code`` and ``detail`` set
        """
        return HTTPException(status_code=self.status_code, detail=self.to_error_response())


class InsufficientPermissionsError(AuthorizationError):
    """The user may see the resource but not perform the action."""

    def __init__(self, action: str, resource_type: str, resource_id: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(
            f"Insufficient permissions to {action} {resource_type}",
            PermissionErrorCode.INSUFFICIENT_PERMISSIONS,
            required_permission=f"{resource_type}:{action}",
            status_code=status.HTTP_403_FORBIDDEN,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            reason=reason,
        )


class InvalidScopeError(AuthorizationError):
    """An access scope value outside the allowed set was requested."""

    def __init__(self, scope: str, allowed_scopes: List[str]):
        super().__init__(
            f"Invalid access scope '{scope}'. Allowed scopes: {', '.join(allowed_scopes)}",
            PermissionErrorCode.INVALID_SCOPE,
            status_code=status.HTTP_403_FORBIDDEN,
        )
        self.allowed_scopes = list(allowed_scopes)


class TeamAccessDeniedError(AuthorizationError):
    """The requested team is outside the user's standing teams.

    Examples:
        >>> err = TeamAccessDeniedError("t2", "lead")
        >>> err.status_code, err.resource_id, err.required_permission
        (403, 't2', 'teams:read')
    """

    def __init__(self, team_id: str, user_id: str, required_permission: str = "teams:read"):
        super().__init__(
            f"Access denied to team '{team_id}' for user '{user_id}'",
            PermissionErrorCode.TEAM_ACCESS_DENIED,
            required_permission=required_permission,
            status_code=status.HTTP_403_FORBIDDEN,
            resource_type="teams",
            resource_id=team_id,
        )


class RoleAssignmentDeniedError(AuthorizationError):
    """The user may not grant this role to the target user."""

    def __init__(self, role_id: str, target_user_id: str):
        super().__init__(
            f"Permission denied to assign role '{role_id}' to user '{target_user_id}'",
            PermissionErrorCode.ROLE_ASSIGNMENT_DENIED,
            required_permission="roles:assign",
            status_code=status.HTTP_403_FORBIDDEN,
            action="assign",
            resource_type="roles",
            resource_id=role_id,
        )


class ArticleCreationDeniedError(AuthorizationError):
    """Article creation rejected, with the specific reason."""

    def __init__(self, reason: str, team_id: Optional[str] = None):
        super().__init__(
            f"Article creation denied: {reason}",
            PermissionErrorCode.ARTICLE_CREATION_DENIED,
            required_permission="knowledge_base:create",
            status_code=status.HTTP_403_FORBIDDEN,
            action="create",
            resource_type="knowledge_base",
            resource_id=team_id,
            reason=reason,
        )


class ResourceNotFoundError(AuthorizationError):
    """The resource does not exist or is invisible to the requester."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            PermissionErrorCode.RESOURCE_NOT_FOUND,
            status_code=status.HTTP_404_NOT_FOUND,
            resource_type=resource_type,
            resource_id=resource_id,
        )


class UserNotFoundError(AuthorizationError):
    """The referenced user does not exist."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User with ID '{user_id}' not found",
            PermissionErrorCode.USER_NOT_FOUND,
            status_code=status.HTTP_404_NOT_FOUND,
            resource_type="users",
            resource_id=user_id,
        )


class ValidationError(AuthorizationError):
    """Malformed input such as an empty id."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, PermissionErrorCode.VALIDATION_ERROR, status_code=status.HTTP_400_BAD_REQUEST)
        self.field = field

    def to_error_response(self) -> Dict[str, Any]:
        """Build the error body, adding ``field`` when set.

        Returns:
            Dict[str, Any]: Error body
        """
        body = super().to_error_response()
        if self.field:
            body["field"] = self.field
        return body


class InvalidStatusTransitionError(AuthorizationError):
    """A ticket status change outside the lifecycle state machine.

    Examples:
        >>> err = InvalidStatusTransitionError("CLOSED", "OPEN", [])
        >>> err.status_code, err.allowed_transitions
        (400, [])
        >>> err.message
        "Cannot transition ticket from 'CLOSED' to 'OPEN'. Allowed: none"
    """

    def __init__(self, from_status: str, to_status: str, allowed_transitions: List[str], ticket_id: Optional[str] = None):
        allowed = ", ".join(allowed_transitions) or "none"
        super().__init__(
            f"Cannot transition ticket from '{from_status}' to '{to_status}'. Allowed: {allowed}",
            PermissionErrorCode.INVALID_STATUS_TRANSITION,
            status_code=status.HTTP_400_BAD_REQUEST,
            action="update",
            resource_type="tickets",
            resource_id=ticket_id,
        )
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_transitions = list(allowed_transitions)

    def to_error_response(self) -> Dict[str, Any]:
        """Build the error body, adding the legal next states.

        Returns:
            Dict[str, Any]: Error body with ``allowed_transitions``
        """
        body = super().to_error_response()
        body["allowed_transitions"] = self.allowed_transitions
        return body


class UnauthenticatedError(AuthorizationError):
    """No user identity accompanied the request."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, PermissionErrorCode.UNAUTHENTICATED, status_code=status.HTTP_401_UNAUTHORIZED)


class SessionExpiredError(AuthorizationError):
    """The user's session is no longer valid."""

    def __init__(self):
        super().__init__("Session has expired. Please log in again.", PermissionErrorCode.SESSION_EXPIRED, status_code=status.HTTP_401_UNAUTHORIZED)


def handle_permission_error(exc: BaseException) -> Dict[str, Any]:
    """Map any exception to an error body.

    Args:
        exc: Exception raised while serving a request

    Returns:
        Dict[str, Any]: The authorization error body, or a 500 body for any
        other exception

    Examples:
        >>> handle_permission_error(SessionExpiredError())["status_code"]
        401
        >>> handle_permission_error(RuntimeError("boom"))["code"]
        'INTERNAL_SERVER_ERROR'
    """
    if isinstance(exc, AuthorizationError):
        return exc.to_error_response()
    return {
        "error": "InternalServerError",
        "code": PermissionErrorCode.INTERNAL_SERVER_ERROR.value,
        "message": str(exc) or "An unknown error occurred",
        "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
