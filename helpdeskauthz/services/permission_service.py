# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/permission_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Permission Service for the helpdesk RBAC core.

This module provides the access decision engine: given a user snapshot, a
resource type, an action and a resource snapshot it answers allow/deny from
the role-permission table, and for bulk listing it returns a declarative
filter predicate with exactly the same selectivity.

The engine holds no mutable state. It never raises on missing or malformed
user/resource input; those resolve to the most restrictive outcome. Only
resource types or actions outside the closed enums raise ``ValueError``.
"""

# Standard
import logging
from typing import Any, Optional

# First-Party
from helpdeskauthz.filters import ALWAYS, Contains, Eq, In, NEVER, Predicate, all_of, any_of
from helpdeskauthz.permissions_manager import ACTION_GATES, CREATOR_ONLY_ACTIONS, lookup, PermissionTable, ROLE_PERMISSIONS
from helpdeskauthz.schemas import (
    AccessScope,
    Action,
    AnalyticsLevel,
    AnalyticsScope,
    coerce_subject,
    coerce_user,
    PermissionEntry,
    ResourceType,
    Role,
    Scope,
    SUBJECT_TYPES,
    UserSnapshot,
)
from helpdeskauthz.services.scope_resolver import standing_teams

logger = logging.getLogger(__name__)

_BEYOND_OWN = frozenset({Scope.TEAM, Scope.OWN_OR_TEAM, Scope.ORGANIZATION})


class PermissionEngine:
    """Access decision engine.

    Construct once at process start and pass to every guard.

    Attributes:
        table: Role-permission table consulted for every decision

    Examples:
        >>> from helpdeskauthz.schemas import TicketSubject, UserSnapshot
        >>> engine = PermissionEngine()
        >>> employee = UserSnapshot(id="u1", role=Role.USER_EMPLOYEE, team_id="t1")
        >>> engine.can_perform(employee, "tickets", "read", TicketSubject(id="t", owner_id="u1"))
        True
        >>> engine.can_perform(employee, "tickets", "read", TicketSubject(id="t", owner_id="u2", team_id="t1"))
        False
        >>> engine.build_list_filter(employee, "tickets", "read")
        Contains(field='participant_ids', value='u1')
    """

    def __init__(self, table: PermissionTable = ROLE_PERMISSIONS):
        """Initialize the engine.

        Args:
            table: Role-permission table, defaults to the built-in policy
        """
        self.table = table

    def lookup(self, role: Any, resource_type: Any, action: Any) -> PermissionEntry:
        """Return the permission entry for a role, resource type and action.

        Args:
            role: Role or its identifier
            resource_type: ResourceType or its value
            action: Action or its value

        Returns:
            PermissionEntry: Entry from the table, denied when unlisted
        """
        return lookup(role, resource_type, action, self.table)

    def can_perform(self, user: Any, resource_type: Any, action: Any, resource: Any) -> bool:
        """Decide whether ``user`` may perform ``action`` on ``resource``.

        Args:
            user: ``UserSnapshot`` or mapping of its fields
            resource_type: ResourceType or its value
            action: Action or its value
            resource: Subject model (or mapping) matching ``resource_type``

        Returns:
            bool: True if allowed

        Raises:
            ValueError: If ``resource_type`` or ``action`` is not a known value

        Examples:
            >>> from helpdeskauthz.schemas import ScopedSubject
            >>> engine = PermissionEngine()
            >>> leader = {"id": "l1", "role": "TEAM_LEADER", "led_team_ids": ["t1"]}
            >>> engine.can_perform(leader, "analytics", "view", ScopedSubject(team_id="t1"))
            True
            >>> engine.can_perform(leader, "analytics", "view", ScopedSubject(team_id="t2"))
            False
            >>> engine.can_perform(leader, "analytics", "view", ScopedSubject())
            False
            >>> engine.can_perform(None, "analytics", "view", ScopedSubject())
            False
        """
        resource_type = ResourceType(resource_type)
        action = Action(action)

        snapshot = self._active_user(user)
        if snapshot is None:
            return False

        subject = coerce_subject(resource_type, resource)
        if subject is None:
            logger.debug(f"Denied {resource_type.value}:{action.value} for {snapshot.id}: resource does not match type")
            return False

        creator_only = (resource_type, action) in CREATOR_ONLY_ACTIONS
        if not self._scope_allows(snapshot, self.lookup(snapshot.role, resource_type, action), subject, creator_only):
            return False

        for gate_action, exempt in ACTION_GATES.get((resource_type, action), ()):
            if exempt.matches(subject):
                continue
            if not self._scope_allows(snapshot, self.lookup(snapshot.role, resource_type, gate_action), subject, creator_only):
                return False

        return True

    def build_list_filter(self, user: Any, resource_type: Any, action: Any) -> Predicate:
        """Build a predicate admitting exactly the rows ``can_perform`` allows.

        Args:
            user: ``UserSnapshot`` or mapping of its fields
            resource_type: ResourceType or its value
            action: Action or its value

        Returns:
            Predicate: Filter to attach to the caller's bulk query

        Raises:
            ValueError: If ``resource_type`` or ``action`` is not a known value

        Examples:
            >>> engine = PermissionEngine()
            >>> engine.build_list_filter({"id": "a1", "role": "ADMIN_MANAGER"}, "tickets", "read")
            Always()
            >>> engine.build_list_filter({"id": "l1", "role": "TEAM_LEADER", "team_id": "t1"}, "tickets", "delete")
            Never()
            >>> engine.build_list_filter(None, "tickets", "read")
            Never()
        """
        resource_type = ResourceType(resource_type)
        action = Action(action)

        snapshot = self._active_user(user)
        if snapshot is None:
            return NEVER

        followable = SUBJECT_TYPES[resource_type].followable and (resource_type, action) not in CREATOR_ONLY_ACTIONS
        clauses = [self._scope_filter(snapshot, self.lookup(snapshot.role, resource_type, action), followable)]
        for gate_action, exempt in ACTION_GATES.get((resource_type, action), ()):
            gate = self._scope_filter(snapshot, self.lookup(snapshot.role, resource_type, gate_action), followable)
            clauses.append(any_of(exempt, gate))
        return all_of(*clauses)

    def has_capability(self, user: Any, resource_type: Any, action: Any) -> bool:
        """Check whether the user's role holds any grant for an action.

        Used for resource-less questions such as "may this user publish at
        all"; per-resource checks go through ``can_perform``.

        Args:
            user: ``UserSnapshot`` or mapping of its fields
            resource_type: ResourceType or its value
            action: Action or its value

        Returns:
            bool: True if the entry is not denied for an active user
        """
        snapshot = self._active_user(user)
        if snapshot is None:
            return False
        return not self.lookup(snapshot.role, resource_type, action).denied

    def get_access_scope(self, user: Any) -> AccessScope:
        """Summarize a user's capabilities as boolean flags.

        Args:
            user: ``UserSnapshot`` or mapping of its fields

        Returns:
            AccessScope: All-false, empty scope for missing, inactive or
            malformed users

        Examples:
            >>> engine = PermissionEngine()
            >>> scope = engine.get_access_scope({"id": "a1", "role": "ADMIN_MANAGER"})
            >>> scope.organization_wide, scope.can_create_users, scope.can_delete_users
            (True, True, True)
            >>> engine.get_access_scope(None) == AccessScope()
            True
        """
        snapshot = self._active_user(user)
        if snapshot is None:
            return AccessScope()

        def scope_of(resource_type: ResourceType, action: Action) -> Scope:
            return self.lookup(snapshot.role, resource_type, action).scope

        def granted(resource_type: ResourceType, action: Action) -> bool:
            return scope_of(resource_type, action) != Scope.DENIED

        return AccessScope(
            can_view_users=scope_of(ResourceType.USERS, Action.READ) in _BEYOND_OWN,
            can_edit_users=scope_of(ResourceType.USERS, Action.UPDATE) in _BEYOND_OWN,
            can_create_users=granted(ResourceType.USERS, Action.CREATE),
            can_delete_users=granted(ResourceType.USERS, Action.DELETE),
            can_manage_roles=granted(ResourceType.ROLES, Action.ASSIGN),
            can_manage_teams=granted(ResourceType.TEAMS, Action.MANAGE),
            can_create_tickets=granted(ResourceType.TICKETS, Action.CREATE),
            can_delete_tickets=granted(ResourceType.TICKETS, Action.DELETE),
            can_assign_tickets=granted(ResourceType.TICKETS, Action.ASSIGN),
            can_view_analytics=granted(ResourceType.ANALYTICS, Action.VIEW),
            can_export_analytics=granted(ResourceType.ANALYTICS, Action.VIEW) and granted(ResourceType.ANALYTICS, Action.EXPORT),
            organization_wide=scope_of(ResourceType.TICKETS, Action.READ) == Scope.ORGANIZATION,
            team_ids=tuple(sorted(standing_teams(snapshot))),
        )

    def get_analytics_scope(self, user: Any) -> AnalyticsScope:
        """Summarize a user's analytics visibility.

        Args:
            user: ``UserSnapshot`` or mapping of its fields

        Returns:
            AnalyticsScope: Level, visible teams and export/comparative flags
        """
        snapshot = self._active_user(user)
        if snapshot is None:
            return AnalyticsScope()

        view = self.lookup(snapshot.role, ResourceType.ANALYTICS, Action.VIEW).scope
        if view == Scope.ORGANIZATION:
            level = AnalyticsLevel.ORGANIZATION
        elif view in (Scope.TEAM, Scope.OWN_OR_TEAM):
            level = AnalyticsLevel.TEAM
        else:
            return AnalyticsScope()

        return AnalyticsScope(
            level=level,
            team_ids=tuple(sorted(standing_teams(snapshot))) if level == AnalyticsLevel.TEAM else (),
            can_export=not self.lookup(snapshot.role, ResourceType.ANALYTICS, Action.EXPORT).denied,
            can_view_comparative=not self.lookup(snapshot.role, ResourceType.ANALYTICS, Action.VIEW_COMPARATIVE).denied,
        )

    def validate_scope_access(self, user: Any, scope: Any, target_user_id: Optional[str] = None, team_id: Optional[str] = None) -> bool:
        """Check a bare scope against a target user or team.

        Args:
            user: ``UserSnapshot`` or mapping of its fields
            scope: Scope or its value (``own``, ``team``, ``organization``)
            target_user_id: User the request targets
            team_id: Team the request targets

        Returns:
            bool: True if the scope covers the target; False for unknown
            scopes or missing targets

        Examples:
            >>> engine = PermissionEngine()
            >>> leader = {"id": "l1", "role": "TEAM_LEADER", "led_team_ids": ["team-1"]}
            >>> engine.validate_scope_access(leader, "team", None, "team-1")
            True
            >>> engine.validate_scope_access(leader, "team", None, "team-2")
            False
            >>> employee = {"id": "user-1", "role": "USER_EMPLOYEE"}
            >>> engine.validate_scope_access(employee, "own", "user-1")
            True
            >>> engine.validate_scope_access(employee, "own", "other-user-id")
            False
        """
        snapshot = self._active_user(user)
        if snapshot is None:
            return False
        try:
            scope = Scope(scope)
        except ValueError:
            logger.debug(f"Unknown scope {scope!r} requested for {snapshot.id}")
            return False

        if scope == Scope.ORGANIZATION:
            return self.get_access_scope(snapshot).organization_wide
        if scope == Scope.TEAM:
            return bool(team_id) and team_id in standing_teams(snapshot)
        if scope == Scope.OWN:
            if target_user_id:
                return target_user_id == snapshot.id
            if team_id:
                return team_id == snapshot.team_id
            return False
        if scope == Scope.OWN_OR_TEAM:
            return self.validate_scope_access(snapshot, Scope.OWN, target_user_id, team_id) or self.validate_scope_access(snapshot, Scope.TEAM, target_user_id, team_id)
        return False

    @staticmethod
    def _active_user(user: Any) -> Optional[UserSnapshot]:
        snapshot = coerce_user(user)
        if snapshot is None or not snapshot.is_active:
            return None
        return snapshot

    @staticmethod
    def _owns(user: UserSnapshot, subject: Any, creator_only: bool = False) -> bool:
        if not creator_only and getattr(subject, "followable", False):
            return user.id in subject.participant_ids
        owner_id = getattr(subject, "owner_id", None)
        return bool(owner_id) and owner_id == user.id

    @staticmethod
    def _in_team(user: UserSnapshot, subject: Any) -> bool:
        team_id = getattr(subject, "team_id", None)
        return bool(team_id) and team_id in standing_teams(user)

    def _scope_allows(self, user: UserSnapshot, entry: PermissionEntry, subject: Any, creator_only: bool = False) -> bool:
        """Apply one permission entry to one subject.

        Args:
            user: Active user snapshot
            entry: Permission entry to apply
            subject: Resource subject
            creator_only: Whether ``own`` is limited to the creator

        Returns:
            bool: True if the entry's scope covers the subject
        """
        if entry.scope == Scope.ORGANIZATION:
            return True
        if entry.scope == Scope.OWN:
            return self._owns(user, subject, creator_only)
        if entry.scope == Scope.TEAM:
            return self._in_team(user, subject)
        if entry.scope == Scope.OWN_OR_TEAM:
            return self._owns(user, subject, creator_only) or self._in_team(user, subject)
        return False

    @staticmethod
    def _scope_filter(user: UserSnapshot, entry: PermissionEntry, followable: bool) -> Predicate:
        """Predicate form of ``_scope_allows``.

        Args:
            user: Active user snapshot
            entry: Permission entry to express
            followable: Whether ``own`` covers all participants

        Returns:
            Predicate: Equivalent filter
        """
        own = Contains("participant_ids", user.id) if followable else Eq("owner_id", user.id)
        teams = standing_teams(user)
        team = In("team_id", teams) if teams else NEVER

        if entry.scope == Scope.ORGANIZATION:
            return ALWAYS
        if entry.scope == Scope.OWN:
            return own
        if entry.scope == Scope.TEAM:
            return team
        if entry.scope == Scope.OWN_OR_TEAM:
            return any_of(own, team)
        return NEVER
