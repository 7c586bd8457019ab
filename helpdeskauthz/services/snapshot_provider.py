# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/snapshot_provider.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Snapshot Providers.
The guards read users and resources through the ``SnapshotProvider``
protocol. Reads are plain point-in-time reads: nothing here locks, so a
resource may change between the guard's read and the caller's write.

Two providers ship with the package: an in-memory provider for tests and
embedding, and one over the reference SQLAlchemy models in
``helpdeskauthz.db``.
"""

# Standard
import logging
from typing import Dict, Iterable, Optional, Protocol, runtime_checkable, Tuple

# Third-Party
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

# First-Party
from helpdeskauthz.db import KnowledgeBaseArticle, Team, TeamLeader, Ticket, TicketFollower, User
from helpdeskauthz.schemas import AccessSubject, ArticleSubject, ResourceType, TeamSubject, TicketSubject, UserSnapshot, UserSubject

logger = logging.getLogger(__name__)


@runtime_checkable
class SnapshotProvider(Protocol):
    """Read interface the guards need from storage."""

    async def get_user_snapshot(self, user_id: str) -> Optional[UserSnapshot]:
        """Return the user, or None if unknown."""

    async def get_resource_snapshot(self, resource_type: ResourceType, resource_id: str) -> Optional[AccessSubject]:
        """Return the resource subject, or None if unknown."""


class InMemorySnapshotProvider:
    """Snapshot provider backed by dictionaries.

    Examples:
        >>> import asyncio
        >>> from helpdeskauthz.schemas import Role
        >>> provider = InMemorySnapshotProvider(users=[UserSnapshot(id="u1", role=Role.USER_EMPLOYEE)])
        >>> asyncio.run(provider.get_user_snapshot("u1")).role
        <Role.USER_EMPLOYEE: 'USER_EMPLOYEE'>
        >>> asyncio.run(provider.get_user_snapshot("nobody")) is None
        True
    """

    def __init__(self, users: Iterable[UserSnapshot] = (), resources: Iterable[Tuple[ResourceType, str, AccessSubject]] = ()):
        """Initialize the provider.

        Args:
            users: Initial user snapshots
            resources: Initial ``(resource_type, resource_id, subject)`` entries
        """
        self._users: Dict[str, UserSnapshot] = {}
        self._resources: Dict[Tuple[ResourceType, str], AccessSubject] = {}
        for user in users:
            self.add_user(user)
        for resource_type, resource_id, subject in resources:
            self.add_resource(resource_type, resource_id, subject)

    def add_user(self, user: UserSnapshot) -> None:
        """Add or replace a user snapshot.

        Args:
            user: Snapshot keyed by its id
        """
        self._users[user.id] = user

    def add_resource(self, resource_type: ResourceType, resource_id: str, subject: AccessSubject) -> None:
        """Add or replace a resource subject.

        Args:
            resource_type: ResourceType or its value
            resource_id: Resource identifier
            subject: Subject returned for the resource
        """
        self._resources[(ResourceType(resource_type), resource_id)] = subject

    async def get_user_snapshot(self, user_id: str) -> Optional[UserSnapshot]:
        """Return the stored user, or None.

        Args:
            user_id: User to look up

        Returns:
            Optional[UserSnapshot]: Stored snapshot
        """
        return self._users.get(user_id)

    async def get_resource_snapshot(self, resource_type: ResourceType, resource_id: str) -> Optional[AccessSubject]:
        """Return the stored resource subject, or None.

        Args:
            resource_type: ResourceType or its value
            resource_id: Resource identifier

        Returns:
            Optional[AccessSubject]: Stored subject
        """
        return self._resources.get((ResourceType(resource_type), resource_id))


class SqlAlchemySnapshotProvider:
    """Snapshot provider over the reference ORM models.

    Attributes:
        db: Database session
    """

    def __init__(self, db: Session):
        """Initialize the provider.

        Args:
            db: Database session
        """
        self.db = db

    async def get_user_snapshot(self, user_id: str) -> Optional[UserSnapshot]:
        """Load a user and the teams they lead.

        Args:
            user_id: User to load

        Returns:
            Optional[UserSnapshot]: Snapshot, or None when the user is missing
            or stored with a role outside the closed set
        """
        user = self.db.get(User, user_id)
        if user is None:
            return None

        led_team_ids = self.db.execute(select(TeamLeader.team_id).where(TeamLeader.user_id == user_id)).scalars().all()
        try:
            return UserSnapshot(
                id=user.id,
                role=user.role,
                team_id=user.team_id,
                led_team_ids=frozenset(led_team_ids),
                is_active=user.is_active,
            )
        except PydanticValidationError:
            logger.warning(f"User {user_id} has unrecognized role {user.role!r}; treating as unknown")
            return None

    async def get_resource_snapshot(self, resource_type: ResourceType, resource_id: str) -> Optional[AccessSubject]:
        """Load the subject for a resource.

        Args:
            resource_type: Type of the resource
            resource_id: Resource identifier

        Returns:
            Optional[AccessSubject]: Subject, or None if missing or the type has
            no per-row storage here
        """
        resource_type = ResourceType(resource_type)

        if resource_type == ResourceType.TICKETS:
            ticket = self.db.get(Ticket, resource_id)
            if ticket is None:
                return None
            follower_ids = self.db.execute(select(TicketFollower.user_id).where(TicketFollower.ticket_id == resource_id)).scalars().all()
            return TicketSubject(
                id=ticket.id,
                owner_id=ticket.created_by,
                assignee_id=ticket.assigned_to,
                team_id=ticket.team_id,
                follower_ids=frozenset(follower_ids),
                status=ticket.status,
            )

        if resource_type == ResourceType.KNOWLEDGE_BASE:
            article = self.db.get(KnowledgeBaseArticle, resource_id)
            if article is None:
                return None
            return ArticleSubject(
                id=article.id,
                owner_id=article.author_id,
                team_id=article.team_id,
                access_level=article.access_level,
                is_published=article.is_published,
            )

        if resource_type == ResourceType.USERS:
            user = self.db.get(User, resource_id)
            return None if user is None else UserSubject(id=user.id, team_id=user.team_id)

        if resource_type == ResourceType.TEAMS:
            team = self.db.get(Team, resource_id)
            return None if team is None else TeamSubject(id=team.id)

        logger.debug(f"No stored snapshot for resource type {resource_type.value}")
        return None
