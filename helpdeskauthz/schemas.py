# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/schemas.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Value objects for the helpdesk access-control core.

Everything in this module is an immutable snapshot handed to the decision
engine by its callers. Nothing here talks to storage. The access subjects form
a small tagged union (one model per resource type) carrying exactly the fields
the engine reads: ``owner_id``, ``team_id``, ``participant_ids``,
``access_level`` and ``is_published``.
"""

# Standard
from enum import Enum
from typing import Any, ClassVar, FrozenSet, Literal, Mapping, Optional, Tuple, Type, Union

# Third-Party
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError


class Role(str, Enum):
    """Closed set of access-control roles.

    Decisions key on the enum value only; ``label`` exists for display.

    Examples:
        >>> Role("TEAM_LEADER") is Role.TEAM_LEADER
        True
        >>> Role.ADMIN_MANAGER.label
        'Admin/Manager'
    """

    ADMIN_MANAGER = "ADMIN_MANAGER"
    TEAM_LEADER = "TEAM_LEADER"
    USER_EMPLOYEE = "USER_EMPLOYEE"

    @property
    def label(self) -> str:
        """Human-readable role name.

        Returns:
            str: Display label, never used for authorization
        """
        return _ROLE_LABELS[self]


_ROLE_LABELS = {
    Role.ADMIN_MANAGER: "Admin/Manager",
    Role.TEAM_LEADER: "Team Leader",
    Role.USER_EMPLOYEE: "User/Employee",
}


class ResourceType(str, Enum):
    """Resource types known to the permission table."""

    TICKETS = "tickets"
    KNOWLEDGE_BASE = "knowledge_base"
    FOLLOWERS = "followers"
    ANALYTICS = "analytics"
    USERS = "users"
    TEAMS = "teams"
    ROLES = "roles"
    SLA = "sla"
    ESCALATION = "escalation"


class Action(str, Enum):
    """Actions that can be requested on a resource type."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ASSIGN = "assign"
    CLOSE = "close"
    COMMENT = "comment"
    MANAGE = "manage"
    PUBLISH = "publish"
    READ_RESTRICTED = "read_restricted"
    READ_UNPUBLISHED = "read_unpublished"
    ADD = "add"
    REMOVE = "remove"
    VIEW = "view"
    EXPORT = "export"
    VIEW_COMPARATIVE = "view_comparative"


class Scope(str, Enum):
    """Breadth of a permission grant."""

    DENIED = "denied"
    OWN = "own"
    TEAM = "team"
    OWN_OR_TEAM = "own_or_team"
    ORGANIZATION = "organization"


class AccessLevel(str, Enum):
    """Knowledge-base article visibility tag."""

    PUBLIC = "PUBLIC"
    INTERNAL = "INTERNAL"
    RESTRICTED = "RESTRICTED"


class TicketStatus(str, Enum):
    """Ticket lifecycle states."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_FOR_CUSTOMER = "WAITING_FOR_CUSTOMER"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class ReportType(str, Enum):
    """Analytics report families."""

    ORGANIZATION = "organization"
    TEAM = "team"
    AGENT = "agent"
    CUSTOMER = "customer"
    SLA = "sla"
    QUALITY = "quality"


class AnalyticsLevel(str, Enum):
    """How much analytics data a user may see."""

    ORGANIZATION = "organization"
    TEAM = "team"
    NONE = "none"


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class UserSnapshot(_Snapshot):
    """The requesting user as seen by the access-control core.

    Attributes:
        id: User identifier
        role: Access-control role
        team_id: Home team, if any
        led_team_ids: Teams this user leads
        is_active: Deactivated users resolve to an empty scope
    """

    id: str = Field(min_length=1)
    role: Role
    team_id: Optional[str] = None
    led_team_ids: FrozenSet[str] = frozenset()
    is_active: bool = True


class TicketSubject(_Snapshot):
    """Ticket attributes needed for access decisions.

    ``owner_id`` is the ticket creator. Tickets are followable, so ``own``
    grants cover every participant (creator, assignee, followers).

    Examples:
        >>> t = TicketSubject(id="t1", owner_id="u1", assignee_id="u2", follower_ids={"u3"})
        >>> sorted(t.participant_ids)
        ['u1', 'u2', 'u3']
    """

    followable: ClassVar[bool] = True

    kind: Literal["ticket"] = "ticket"
    id: str
    owner_id: Optional[str] = None
    assignee_id: Optional[str] = None
    team_id: Optional[str] = None
    follower_ids: FrozenSet[str] = frozenset()
    status: TicketStatus = TicketStatus.OPEN

    @property
    def participant_ids(self) -> FrozenSet[str]:
        """Creator, assignee and followers, without empty ids.

        Returns:
            FrozenSet[str]: Participant user ids
        """
        ids = {self.owner_id, self.assignee_id, *self.follower_ids}
        return frozenset(i for i in ids if i)


class ArticleSubject(_Snapshot):
    """Knowledge-base article attributes. ``owner_id`` is the author."""

    followable: ClassVar[bool] = False

    kind: Literal["article"] = "article"
    id: Optional[str] = None
    owner_id: Optional[str] = None
    team_id: Optional[str] = None
    access_level: AccessLevel = AccessLevel.PUBLIC
    is_published: bool = False


class FollowerSubject(_Snapshot):
    """A follower relation on a ticket.

    ``owner_id`` is the user being added or removed as follower, ``team_id``
    is the ticket's team.
    """

    followable: ClassVar[bool] = False

    kind: Literal["follower"] = "follower"
    ticket_id: str
    owner_id: Optional[str] = None
    team_id: Optional[str] = None


class ScopedSubject(_Snapshot):
    """Generic owner/team subject for analytics, SLA, escalation and role data.

    A missing ``team_id`` means organization-wide data.
    """

    followable: ClassVar[bool] = False

    kind: Literal["scoped"] = "scoped"
    owner_id: Optional[str] = None
    team_id: Optional[str] = None


class UserSubject(_Snapshot):
    """Another user's record; the user owns it."""

    followable: ClassVar[bool] = False

    kind: Literal["user"] = "user"
    id: str
    team_id: Optional[str] = None

    @property
    def owner_id(self) -> str:
        return self.id


class TeamSubject(_Snapshot):
    """A team record; its team is itself."""

    followable: ClassVar[bool] = False

    kind: Literal["team"] = "team"
    id: str
    owner_id: Optional[str] = None

    @property
    def team_id(self) -> str:
        return self.id


AccessSubject = Union[TicketSubject, ArticleSubject, FollowerSubject, ScopedSubject, UserSubject, TeamSubject]

SUBJECT_TYPES: Mapping[ResourceType, Type[_Snapshot]] = {
    ResourceType.TICKETS: TicketSubject,
    ResourceType.KNOWLEDGE_BASE: ArticleSubject,
    ResourceType.FOLLOWERS: FollowerSubject,
    ResourceType.ANALYTICS: ScopedSubject,
    ResourceType.USERS: UserSubject,
    ResourceType.TEAMS: TeamSubject,
    ResourceType.ROLES: ScopedSubject,
    ResourceType.SLA: ScopedSubject,
    ResourceType.ESCALATION: ScopedSubject,
}


class PermissionEntry(_Snapshot):
    """One cell of the role-permission table."""

    scope: Scope = Scope.DENIED

    @property
    def denied(self) -> bool:
        return self.scope == Scope.DENIED


class AccessScope(_Snapshot):
    """Precomputed capability flags for one user.

    Examples:
        >>> AccessScope().organization_wide
        False
        >>> AccessScope().team_ids
        ()
    """

    can_view_users: bool = False
    can_edit_users: bool = False
    can_create_users: bool = False
    can_delete_users: bool = False
    can_manage_roles: bool = False
    can_manage_teams: bool = False
    can_create_tickets: bool = False
    can_delete_tickets: bool = False
    can_assign_tickets: bool = False
    can_view_analytics: bool = False
    can_export_analytics: bool = False
    organization_wide: bool = False
    team_ids: Tuple[str, ...] = ()

    @property
    def flags(self) -> Mapping[str, bool]:
        """All boolean flags by name.

        Returns:
            Mapping[str, bool]: Flag name to value
        """
        return {name: value for name, value in self.model_dump().items() if isinstance(value, bool)}


class AnalyticsScope(_Snapshot):
    """Analytics visibility for one user."""

    level: AnalyticsLevel = AnalyticsLevel.NONE
    team_ids: Tuple[str, ...] = ()
    can_export: bool = False
    can_view_comparative: bool = False


class AccessDecision(_Snapshot):
    """A decision that carries a human-readable reason when denied."""

    valid: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def coerce_user(value: Any) -> Optional[UserSnapshot]:
    """Turn caller input into a ``UserSnapshot`` or ``None``.

    Never raises: anything that does not validate (unknown role, display-name
    role, missing id, wrong type) yields ``None``.

    Args:
        value: A ``UserSnapshot``, a mapping of its fields, or anything else

    Returns:
        Optional[UserSnapshot]: The snapshot, or None when malformed

    Examples:
        >>> coerce_user({"id": "u1", "role": "USER_EMPLOYEE"}).role
        <Role.USER_EMPLOYEE: 'USER_EMPLOYEE'>
        >>> coerce_user({"id": "u1", "role": "Admin/Manager"}) is None
        True
        >>> coerce_user(None) is None
        True
    """
    if isinstance(value, UserSnapshot):
        return value
    if isinstance(value, Mapping):
        try:
            return UserSnapshot.model_validate(value)
        except PydanticValidationError:
            return None
    return None


def coerce_subject(resource_type: ResourceType, value: Any) -> Optional[AccessSubject]:
    """Turn caller input into the subject model for ``resource_type``.

    Args:
        resource_type: Resource type the subject must belong to
        value: A subject model instance or a mapping of its fields

    Returns:
        Optional[AccessSubject]: The subject, or None when it does not match
    """
    subject_type = SUBJECT_TYPES.get(resource_type)
    if subject_type is None:
        return None
    if isinstance(value, subject_type):
        return value
    if isinstance(value, Mapping):
        try:
            return subject_type.model_validate(value)
        except PydanticValidationError:
            return None
    return None
