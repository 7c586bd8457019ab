# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/ticket_guard.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Ticket Guard.
Ticket-level access checks on top of the decision engine, plus the ticket
status state machine. For tickets ``own`` means any participant: the
creator, the assignee or a follower. Update and delete under ``own`` are
limited to the creator.
"""

# Standard
from enum import Enum
import logging
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

# First-Party
from helpdeskauthz.errors import InsufficientPermissionsError, InvalidStatusTransitionError, UserNotFoundError
from helpdeskauthz.filters import NEVER, Predicate
from helpdeskauthz.schemas import Action, ResourceType, Scope, TicketStatus, TicketSubject, UserSnapshot
from helpdeskauthz.services.base_guard import BaseGuard
from helpdeskauthz.services.follower_guard import FollowerGuard
from helpdeskauthz.services.permission_service import PermissionEngine
from helpdeskauthz.services.snapshot_provider import SnapshotProvider

logger = logging.getLogger(__name__)


class TicketAction(str, Enum):
    """Actions a caller can ask about on a single ticket."""

    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ASSIGN = "assign"
    CLOSE = "close"
    COMMENT = "comment"
    ADD_FOLLOWER = "add_follower"
    REMOVE_FOLLOWER = "remove_follower"


# CLOSED is terminal
STATUS_TRANSITIONS: Mapping[TicketStatus, Tuple[TicketStatus, ...]] = MappingProxyType(
    {
        TicketStatus.OPEN: (TicketStatus.IN_PROGRESS,),
        TicketStatus.IN_PROGRESS: (TicketStatus.WAITING_FOR_CUSTOMER, TicketStatus.RESOLVED),
        TicketStatus.WAITING_FOR_CUSTOMER: (TicketStatus.IN_PROGRESS,),
        TicketStatus.RESOLVED: (TicketStatus.CLOSED, TicketStatus.IN_PROGRESS),
        TicketStatus.CLOSED: (),
    }
)


def get_valid_status_transitions(current_status) -> List[TicketStatus]:
    """List the statuses a ticket may move to next.

    Args:
        current_status: TicketStatus or its value

    Returns:
        List[TicketStatus]: Legal next states; empty for terminal or unknown
        statuses

    Examples:
        >>> [s.value for s in get_valid_status_transitions("IN_PROGRESS")]
        ['WAITING_FOR_CUSTOMER', 'RESOLVED']
        >>> get_valid_status_transitions(TicketStatus.CLOSED)
        []
        >>> get_valid_status_transitions("ARCHIVED")
        []
    """
    try:
        return list(STATUS_TRANSITIONS[TicketStatus(current_status)])
    except ValueError:
        return []


def validate_status_transition(current_status, new_status) -> bool:
    """Check a status change against the state machine.

    Args:
        current_status: TicketStatus or its value
        new_status: TicketStatus or its value

    Returns:
        bool: True if the edge exists

    Examples:
        >>> validate_status_transition("OPEN", "IN_PROGRESS")
        True
        >>> validate_status_transition("OPEN", "RESOLVED")
        False
        >>> validate_status_transition(TicketStatus.CLOSED, TicketStatus.OPEN)
        False
    """
    try:
        target = TicketStatus(new_status)
    except ValueError:
        return False
    return target in get_valid_status_transitions(current_status)


def require_status_transition(current_status, new_status, ticket_id: Optional[str] = None) -> None:
    """Raise unless the status change is legal.

    Args:
        current_status: TicketStatus or its value
        new_status: TicketStatus or its value
        ticket_id: Ticket being changed, for the error body

    Raises:
        InvalidStatusTransitionError: Listing the legal next states
    """
    if not validate_status_transition(current_status, new_status):
        allowed = [status.value for status in get_valid_status_transitions(current_status)]
        raise InvalidStatusTransitionError(getattr(current_status, "value", str(current_status)), getattr(new_status, "value", str(new_status)), allowed, ticket_id)


class TicketGuard(BaseGuard):
    """Access guard for tickets.

    Attributes:
        follower_guard: Guard the follower actions delegate to

    Examples:
        >>> from helpdeskauthz.services.snapshot_provider import InMemorySnapshotProvider
        >>> guard = TicketGuard(PermissionEngine(), InMemorySnapshotProvider())
        >>> isinstance(guard.follower_guard, FollowerGuard)
        True
        >>> import asyncio
        >>> asyncio.run(guard.can_access_ticket("nobody", "t1"))
        False
    """

    def __init__(self, engine: PermissionEngine, provider: SnapshotProvider, follower_guard: Optional[FollowerGuard] = None, **kwargs):
        """Initialize the ticket guard.

        Args:
            engine: Access decision engine
            provider: Snapshot provider
            follower_guard: Follower guard to delegate to; built from the same
                engine and provider when omitted
            **kwargs: ``cache_ttl`` / ``audit_enabled`` overrides
        """
        super().__init__(engine, provider, **kwargs)
        self.follower_guard = follower_guard or FollowerGuard(engine, provider, **kwargs)

    async def can_access_ticket(self, user_id: Optional[str], ticket_id: str) -> bool:
        """Check whether a user can read a ticket.

        Args:
            user_id: Requesting user
            ticket_id: Ticket to read

        Returns:
            bool: True for participants, team members and leaders of the
            ticket's team as the role allows, and admins
        """
        user = await self._get_user(user_id)
        ticket = await self._get_resource(ResourceType.TICKETS, ticket_id)
        return self._decide(user, ticket, ticket_id, TicketAction.READ)

    async def can_perform_action(self, user_id: Optional[str], ticket_id: str, action, target_user_id: Optional[str] = None) -> bool:
        """Check whether a user can perform an action on a ticket.

        Every action requires read access first. Follower actions go to the
        follower guard; ``target_user_id`` is the follower and defaults to
        the requesting user.

        Args:
            user_id: Requesting user
            ticket_id: Ticket to act on
            action: TicketAction or its value
            target_user_id: Follower for follower actions

        Returns:
            bool: True if allowed

        Raises:
            ValueError: If ``action`` is not a TicketAction
        """
        action = TicketAction(action)
        if action == TicketAction.ADD_FOLLOWER:
            return await self.follower_guard.can_add_follower(user_id, ticket_id, target_user_id or user_id)
        if action == TicketAction.REMOVE_FOLLOWER:
            return await self.follower_guard.can_remove_follower(user_id, ticket_id, target_user_id or user_id)

        user = await self._get_user(user_id)
        ticket = await self._get_resource(ResourceType.TICKETS, ticket_id)
        return self._decide(user, ticket, ticket_id, action)

    def _decide(self, user: Optional[UserSnapshot], ticket: Optional[TicketSubject], ticket_id: Optional[str], action: TicketAction) -> bool:
        if user is None or ticket is None:
            return False
        readable = self.engine.can_perform(user, ResourceType.TICKETS, Action.READ, ticket)
        if not readable or action == TicketAction.READ:
            self._record(user, ResourceType.TICKETS, Action.READ, ticket_id, readable)
            return readable
        granted = self.engine.can_perform(user, ResourceType.TICKETS, Action(action.value), ticket)
        self._record(user, ResourceType.TICKETS, Action(action.value), ticket_id, granted)
        return granted

    async def can_assign_to_user(self, user_id: Optional[str], ticket_id: str, assignee_id: Optional[str]) -> bool:
        """Check whether a user can assign a ticket to a specific assignee.

        Assigners below organization scope may only pick assignees whose home
        team is the ticket's team.

        Args:
            user_id: Requesting user
            ticket_id: Ticket to assign
            assignee_id: Proposed assignee

        Returns:
            bool: True if allowed; False for unknown or inactive assignees
        """
        user = await self._get_user(user_id)
        ticket = await self._get_resource(ResourceType.TICKETS, ticket_id)
        if not self._decide(user, ticket, ticket_id, TicketAction.ASSIGN):
            return False

        assignee = await self._get_user(assignee_id)
        if assignee is None or not assignee.is_active:
            return False

        if self.engine.lookup(user.role, ResourceType.TICKETS, Action.ASSIGN).scope == Scope.ORGANIZATION:
            return True
        granted = bool(ticket.team_id) and assignee.team_id == ticket.team_id
        if not granted:
            logger.warning(f"Assignment denied: user={user.id}, ticket={ticket_id}, assignee={assignee_id} is outside team {ticket.team_id}")
        return granted

    async def can_create_ticket(self, user_id: Optional[str], team_id: Optional[str] = None) -> bool:
        """Check whether a user can create a ticket, optionally for a team.

        Args:
            user_id: Requesting user
            team_id: Team the ticket will belong to

        Returns:
            bool: True if allowed
        """
        user = await self._get_user(user_id)
        if user is None:
            return False
        draft = TicketSubject(id="", owner_id=user.id, team_id=team_id)
        granted = self.engine.can_perform(user, ResourceType.TICKETS, Action.CREATE, draft)
        self._record(user, ResourceType.TICKETS, Action.CREATE, team_id, granted)
        return granted

    async def get_ticket_filter(self, user_id: Optional[str]) -> Predicate:
        """Filter selecting the tickets a user may read.

        Args:
            user_id: Requesting user

        Returns:
            Predicate: Filter for the caller's ticket query; ``NEVER`` for
            unknown users
        """
        user = await self._get_user(user_id)
        if user is None:
            return NEVER
        return self.engine.build_list_filter(user, ResourceType.TICKETS, Action.READ)

    async def require_action(self, user_id: Optional[str], ticket_id: str, action, target_user_id: Optional[str] = None) -> TicketSubject:
        """Raise unless the action is allowed; return the ticket otherwise.

        Args:
            user_id: Requesting user
            ticket_id: Ticket to act on
            action: TicketAction or its value
            target_user_id: Follower for follower actions

        Returns:
            TicketSubject: The ticket snapshot

        Raises:
            ValidationError: If ``ticket_id`` is empty
            ResourceNotFoundError: If the ticket is missing or unreadable
            InsufficientPermissionsError: If the action is denied
        """
        action = TicketAction(action)
        if action == TicketAction.ADD_FOLLOWER:
            await self.follower_guard.require_add_follower(user_id, ticket_id, target_user_id or user_id)
            return await self._get_resource(ResourceType.TICKETS, ticket_id)
        if action == TicketAction.REMOVE_FOLLOWER:
            await self.follower_guard.require_remove_follower(user_id, ticket_id, target_user_id or user_id)
            return await self._get_resource(ResourceType.TICKETS, ticket_id)

        _, ticket = await self._authorize(user_id, ResourceType.TICKETS, ticket_id, Action(action.value))
        return ticket

    async def require_assign_to_user(self, user_id: Optional[str], ticket_id: str, assignee_id: str) -> None:
        """Raise unless ``can_assign_to_user`` would allow the assignment.

        Args:
            user_id: Requesting user
            ticket_id: Ticket to assign
            assignee_id: Proposed assignee

        Raises:
            ValidationError: If an id is empty
            ResourceNotFoundError: If the ticket is missing or unreadable
            UserNotFoundError: If the assignee does not exist
            InsufficientPermissionsError: If the assignment is denied
        """
        await self._authorize(user_id, ResourceType.TICKETS, ticket_id, Action.ASSIGN)
        self._require_id(assignee_id, "assignee_id")
        if await self._get_user(assignee_id) is None:
            raise UserNotFoundError(assignee_id)
        if not await self.can_assign_to_user(user_id, ticket_id, assignee_id):
            raise InsufficientPermissionsError(Action.ASSIGN.value, ResourceType.TICKETS.value, ticket_id, reason="Assignee is inactive or outside the ticket's team")

    def require_status_transition(self, current_status, new_status, ticket_id: Optional[str] = None) -> None:
        """Raise unless the status change is legal.

        Args:
            current_status: TicketStatus or its value
            new_status: TicketStatus or its value
            ticket_id: Ticket being changed

        Raises:
            InvalidStatusTransitionError: Listing the legal next states
        """
        require_status_transition(current_status, new_status, ticket_id)
