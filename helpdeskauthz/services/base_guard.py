# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/base_guard.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Base Guard.
Shared plumbing for the resource guards: loading user and resource snapshots
through the provider, a short-lived per-guard user cache, decision logging,
and the not-found versus forbidden reporting policy.
"""

# Standard
from datetime import datetime
import logging
from typing import Dict, Optional, Tuple

# First-Party
from helpdeskauthz.config import settings
from helpdeskauthz.db import utc_now
from helpdeskauthz.errors import InsufficientPermissionsError, ResourceNotFoundError, UnauthenticatedError, UserNotFoundError, ValidationError
from helpdeskauthz.permissions_manager import required_permission
from helpdeskauthz.schemas import AccessSubject, Action, ResourceType, UserSnapshot
from helpdeskauthz.services.permission_service import PermissionEngine
from helpdeskauthz.services.snapshot_provider import SnapshotProvider

logger = logging.getLogger(__name__)


class BaseGuard:
    """Common base for resource guards.

    Attributes:
        engine: Access decision engine
        provider: Snapshot provider
        audit_enabled: Log grants at INFO as well as denials
        cache_ttl: User snapshot cache TTL in seconds, 0 disables caching

    Examples:
        >>> from helpdeskauthz.services.snapshot_provider import InMemorySnapshotProvider
        >>> guard = BaseGuard(PermissionEngine(), InMemorySnapshotProvider(), cache_ttl=0)
        >>> guard.cache_ttl
        0
        >>> import asyncio
        >>> asyncio.iscoroutinefunction(guard._get_user)
        True
    """

    def __init__(self, engine: PermissionEngine, provider: SnapshotProvider, cache_ttl: Optional[float] = None, audit_enabled: Optional[bool] = None):
        """Initialize the guard.

        Args:
            engine: Access decision engine shared by all guards
            provider: Snapshot provider for users and resources
            cache_ttl: Override for ``settings.snapshot_cache_ttl``
            audit_enabled: Override for ``settings.audit_decisions``
        """
        self.engine = engine
        self.provider = provider
        self.cache_ttl = settings.snapshot_cache_ttl if cache_ttl is None else cache_ttl
        self.audit_enabled = settings.audit_decisions if audit_enabled is None else audit_enabled
        self._user_cache: Dict[str, UserSnapshot] = {}
        self._cache_timestamps: Dict[str, datetime] = {}

    async def _get_user(self, user_id: Optional[str]) -> Optional[UserSnapshot]:
        """Load a user snapshot, reusing a fresh cached copy.

        Args:
            user_id: User to load

        Returns:
            Optional[UserSnapshot]: Snapshot or None when unknown or empty id
        """
        if not user_id:
            return None
        if self._is_cache_valid(user_id):
            return self._user_cache[user_id]

        user = await self.provider.get_user_snapshot(user_id)
        if user is not None and self.cache_ttl > 0:
            self._user_cache[user_id] = user
            self._cache_timestamps[user_id] = utc_now()
        return user

    async def _require_user(self, user_id: Optional[str]) -> UserSnapshot:
        """Load a user or raise.

        Args:
            user_id: User to load

        Returns:
            UserSnapshot: The user

        Raises:
            UnauthenticatedError: If no user id was given
            UserNotFoundError: If the user does not exist
        """
        if not user_id:
            raise UnauthenticatedError()
        user = await self._get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    @staticmethod
    def _require_id(value: Optional[str], field: str) -> str:
        """Reject an empty identifier.

        Args:
            value: Identifier from the request
            field: Name reported in the error body

        Returns:
            str: The identifier

        Raises:
            ValidationError: If the identifier is empty

        Examples:
            >>> BaseGuard._require_id("t1", "ticket_id")
            't1'
            >>> BaseGuard._require_id("", "ticket_id")
            Traceback (most recent call last):
            ...
            helpdeskauthz.errors.ValidationError: ticket_id is required
        """
        if not value:
            raise ValidationError(f"{field} is required", field=field)
        return value

    async def _get_resource(self, resource_type: ResourceType, resource_id: Optional[str]) -> Optional[AccessSubject]:
        if not resource_id:
            return None
        return await self.provider.get_resource_snapshot(resource_type, resource_id)

    async def _authorize(self, user_id: Optional[str], resource_type: ResourceType, resource_id: str, action: Action) -> Tuple[UserSnapshot, AccessSubject]:
        """Load user and resource and enforce ``action``, or raise.

        A resource that is missing or that the user cannot read is reported as
        not found; a readable resource with the action denied is reported as
        forbidden.

        Args:
            user_id: Requesting user
            resource_type: Type of the resource
            resource_id: Resource identifier
            action: Action to enforce

        Returns:
            Tuple[UserSnapshot, AccessSubject]: The loaded user and resource

        Raises:
            ValidationError: If ``resource_id`` is empty
            ResourceNotFoundError: If the resource is missing or unreadable
            InsufficientPermissionsError: If the action is denied
        """
        user = await self._require_user(user_id)
        self._require_id(resource_id, "resource_id")
        subject = await self._get_resource(resource_type, resource_id)
        if subject is None or not self.engine.can_perform(user, resource_type, Action.READ, subject):
            self._record(user, resource_type, Action.READ, resource_id, False)
            raise ResourceNotFoundError(resource_type.value, resource_id)
        if action != Action.READ and not self.engine.can_perform(user, resource_type, action, subject):
            self._record(user, resource_type, action, resource_id, False)
            raise InsufficientPermissionsError(action.value, resource_type.value, resource_id)
        self._record(user, resource_type, action, resource_id, True)
        return user, subject

    def _record(self, user: Optional[UserSnapshot], resource_type: ResourceType, action: Action, resource_id: Optional[str], granted: bool) -> None:
        """Log one guard decision.

        Args:
            user: Requesting user, if known
            resource_type: Type of the resource
            action: Action decided
            resource_id: Resource identifier
            granted: Outcome
        """
        who = user.id if user is not None else "anonymous"
        permission = required_permission(resource_type, action)
        if not granted:
            logger.warning(f"Access denied: user={who}, permission={permission}, resource={resource_id}")
        elif self.audit_enabled:
            logger.info(f"Access granted: user={who}, permission={permission}, resource={resource_id}")
        else:
            logger.debug(f"Access granted: user={who}, permission={permission}, resource={resource_id}")

    def clear_user_cache(self, user_id: str) -> None:
        """Drop a cached user snapshot.

        Should be called when the user's role or teams change.

        Args:
            user_id: User to evict

        Examples:
            >>> from helpdeskauthz.schemas import Role
            >>> from helpdeskauthz.services.snapshot_provider import InMemorySnapshotProvider
            >>> guard = BaseGuard(PermissionEngine(), InMemorySnapshotProvider())
            >>> guard._user_cache = {"u1": UserSnapshot(id="u1", role=Role.USER_EMPLOYEE)}
            >>> guard._cache_timestamps = {"u1": utc_now()}
            >>> guard.clear_user_cache("u1")
            >>> "u1" in guard._user_cache
            False
        """
        self._user_cache.pop(user_id, None)
        self._cache_timestamps.pop(user_id, None)
        logger.debug(f"Cleared snapshot cache for user: {user_id}")

    def clear_cache(self) -> None:
        """Drop every cached user snapshot."""
        self._user_cache.clear()
        self._cache_timestamps.clear()
        logger.debug("Cleared all snapshot cache")

    def _is_cache_valid(self, user_id: str) -> bool:
        if user_id not in self._user_cache or user_id not in self._cache_timestamps:
            return False
        age = utc_now() - self._cache_timestamps[user_id]
        return age.total_seconds() < self.cache_ttl
