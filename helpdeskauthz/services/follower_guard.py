# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/follower_guard.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Follower Guard.
Decides who may add or remove followers on a ticket. Follower changes are
ordinary ``followers`` permissions evaluated against the ticket's team, with
one extra rule: an employee may only ever remove themself.
"""

# Standard
import logging
from typing import Optional, Tuple

# First-Party
from helpdeskauthz.errors import InsufficientPermissionsError, UserNotFoundError
from helpdeskauthz.schemas import Action, FollowerSubject, ResourceType, Role, TicketSubject, UserSnapshot
from helpdeskauthz.services.base_guard import BaseGuard

logger = logging.getLogger(__name__)


class FollowerGuard(BaseGuard):
    """Access guard for ticket followers.

    Examples:
        >>> from helpdeskauthz.services.permission_service import PermissionEngine
        >>> from helpdeskauthz.services.snapshot_provider import InMemorySnapshotProvider
        >>> guard = FollowerGuard(PermissionEngine(), InMemorySnapshotProvider())
        >>> import asyncio
        >>> asyncio.run(guard.can_add_follower("nobody", "t1", "u2"))
        False
    """

    async def _load(self, user_id: Optional[str], ticket_id: str) -> Tuple[Optional[UserSnapshot], Optional[TicketSubject]]:
        user = await self._get_user(user_id)
        ticket = await self._get_resource(ResourceType.TICKETS, ticket_id)
        if user is None or ticket is None:
            return user, None
        if not self.engine.can_perform(user, ResourceType.TICKETS, Action.READ, ticket):
            return user, None
        return user, ticket

    @staticmethod
    def _subject(ticket: TicketSubject, follower_id: Optional[str]) -> FollowerSubject:
        return FollowerSubject(ticket_id=ticket.id, owner_id=follower_id, team_id=ticket.team_id)

    async def can_add_follower(self, user_id: Optional[str], ticket_id: str, follower_id: Optional[str]) -> bool:
        """Check whether a user may add a follower to a ticket.

        Args:
            user_id: Requesting user
            ticket_id: Ticket to follow
            follower_id: User to add as follower

        Returns:
            bool: True if allowed; False if the ticket is missing or unreadable
            or the follower is unknown or inactive
        """
        user, ticket = await self._load(user_id, ticket_id)
        if ticket is None:
            return False
        follower = await self._get_user(follower_id)
        if follower is None or not follower.is_active:
            return False
        granted = self.engine.can_perform(user, ResourceType.FOLLOWERS, Action.ADD, self._subject(ticket, follower_id))
        self._record(user, ResourceType.FOLLOWERS, Action.ADD, ticket_id, granted)
        return granted

    async def can_remove_follower(self, user_id: Optional[str], ticket_id: str, follower_id: Optional[str]) -> bool:
        """Check whether a user may remove a follower from a ticket.

        Args:
            user_id: Requesting user
            ticket_id: Ticket being unfollowed
            follower_id: Follower to remove

        Returns:
            bool: True if allowed
        """
        user, ticket = await self._load(user_id, ticket_id)
        if ticket is None:
            return False
        if user.role == Role.USER_EMPLOYEE and follower_id != user.id:
            self._record(user, ResourceType.FOLLOWERS, Action.REMOVE, ticket_id, False)
            return False
        granted = self.engine.can_perform(user, ResourceType.FOLLOWERS, Action.REMOVE, self._subject(ticket, follower_id))
        self._record(user, ResourceType.FOLLOWERS, Action.REMOVE, ticket_id, granted)
        return granted

    async def require_add_follower(self, user_id: Optional[str], ticket_id: str, follower_id: str) -> None:
        """Raise unless ``can_add_follower`` would allow the change.

        Args:
            user_id: Requesting user
            ticket_id: Ticket to follow
            follower_id: User to add as follower

        Raises:
            ValidationError: If an id is empty
            ResourceNotFoundError: If the ticket is missing or unreadable
            UserNotFoundError: If the follower does not exist
            InsufficientPermissionsError: If adding followers is denied
        """
        await self._authorize(user_id, ResourceType.TICKETS, ticket_id, Action.READ)
        self._require_id(follower_id, "follower_id")
        follower = await self._get_user(follower_id)
        if follower is None:
            raise UserNotFoundError(follower_id)
        if not await self.can_add_follower(user_id, ticket_id, follower_id):
            raise InsufficientPermissionsError(Action.ADD.value, ResourceType.FOLLOWERS.value, ticket_id)

    async def require_remove_follower(self, user_id: Optional[str], ticket_id: str, follower_id: str) -> None:
        """Raise unless ``can_remove_follower`` would allow the change.

        Args:
            user_id: Requesting user
            ticket_id: Ticket being unfollowed
            follower_id: Follower to remove

        Raises:
            ValidationError: If an id is empty
            ResourceNotFoundError: If the ticket is missing or unreadable
            InsufficientPermissionsError: If the removal is denied
        """
        user, _ = await self._authorize(user_id, ResourceType.TICKETS, ticket_id, Action.READ)
        self._require_id(follower_id, "follower_id")
        if not await self.can_remove_follower(user_id, ticket_id, follower_id):
            reason = "Employees may only remove themselves as followers" if user.role == Role.USER_EMPLOYEE else None
            raise InsufficientPermissionsError(Action.REMOVE.value, ResourceType.FOLLOWERS.value, ticket_id, reason=reason)

