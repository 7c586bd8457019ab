# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/permissions_manager.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Permissions Manager.
Defines the system roles and the scope each role holds for every
(resource type, action) pair. The table is plain data, built once at import
and exposed read-only; anything it does not list is denied.
"""

# Standard
from itertools import product
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Tuple

# First-Party
from helpdeskauthz.filters import Eq, In, Predicate
from helpdeskauthz.schemas import AccessLevel, Action, PermissionEntry, ResourceType, Role, Scope

DEFAULT_ROLES: List[Dict[str, Any]] = [
    {
        "role": Role.ADMIN_MANAGER,
        "description": "Administrator with organization-wide access",
        "permissions": {
            ResourceType.USERS: {
                Action.CREATE: Scope.ORGANIZATION,
                Action.READ: Scope.ORGANIZATION,
                Action.UPDATE: Scope.ORGANIZATION,
                Action.DELETE: Scope.ORGANIZATION,
                Action.ASSIGN: Scope.ORGANIZATION,
            },
            ResourceType.TEAMS: {
                Action.CREATE: Scope.ORGANIZATION,
                Action.READ: Scope.ORGANIZATION,
                Action.UPDATE: Scope.ORGANIZATION,
                Action.DELETE: Scope.ORGANIZATION,
                Action.MANAGE: Scope.ORGANIZATION,
            },
            ResourceType.ROLES: {
                Action.CREATE: Scope.ORGANIZATION,
                Action.READ: Scope.ORGANIZATION,
                Action.UPDATE: Scope.ORGANIZATION,
                Action.DELETE: Scope.ORGANIZATION,
                Action.ASSIGN: Scope.ORGANIZATION,
            },
            ResourceType.TICKETS: {
                Action.CREATE: Scope.ORGANIZATION,
                Action.READ: Scope.ORGANIZATION,
                Action.UPDATE: Scope.ORGANIZATION,
                Action.DELETE: Scope.ORGANIZATION,
                Action.ASSIGN: Scope.ORGANIZATION,
                Action.CLOSE: Scope.ORGANIZATION,
                Action.COMMENT: Scope.ORGANIZATION,
            },
            ResourceType.KNOWLEDGE_BASE: {
                Action.CREATE: Scope.ORGANIZATION,
                Action.READ: Scope.ORGANIZATION,
                Action.READ_RESTRICTED: Scope.ORGANIZATION,
                Action.READ_UNPUBLISHED: Scope.ORGANIZATION,
                Action.UPDATE: Scope.ORGANIZATION,
                Action.DELETE: Scope.ORGANIZATION,
                Action.PUBLISH: Scope.ORGANIZATION,
            },
            ResourceType.FOLLOWERS: {
                Action.ADD: Scope.ORGANIZATION,
                Action.REMOVE: Scope.ORGANIZATION,
            },
            ResourceType.ANALYTICS: {
                Action.VIEW: Scope.ORGANIZATION,
                Action.EXPORT: Scope.ORGANIZATION,
                Action.VIEW_COMPARATIVE: Scope.ORGANIZATION,
            },
            ResourceType.SLA: {
                Action.VIEW: Scope.ORGANIZATION,
                Action.MANAGE: Scope.ORGANIZATION,
            },
            ResourceType.ESCALATION: {
                Action.VIEW: Scope.ORGANIZATION,
                Action.MANAGE: Scope.ORGANIZATION,
            },
        },
    },
    {
        "role": Role.TEAM_LEADER,
        "description": "Team leader with access to the teams they stand in",
        "permissions": {
            # No user or role management
            ResourceType.TEAMS: {
                Action.READ: Scope.TEAM,
            },
            ResourceType.TICKETS: {
                Action.CREATE: Scope.OWN,
                Action.READ: Scope.TEAM,
                Action.UPDATE: Scope.TEAM,
                Action.ASSIGN: Scope.TEAM,
                Action.CLOSE: Scope.TEAM,
                Action.COMMENT: Scope.TEAM,
            },
            ResourceType.KNOWLEDGE_BASE: {
                Action.CREATE: Scope.OWN_OR_TEAM,
                Action.READ: Scope.ORGANIZATION,
                Action.READ_RESTRICTED: Scope.TEAM,
                Action.UPDATE: Scope.OWN,
            },
            ResourceType.FOLLOWERS: {
                Action.ADD: Scope.TEAM,
                Action.REMOVE: Scope.TEAM,
            },
            ResourceType.ANALYTICS: {
                Action.VIEW: Scope.TEAM,
                Action.EXPORT: Scope.TEAM,
            },
            ResourceType.SLA: {
                Action.VIEW: Scope.TEAM,
            },
            ResourceType.ESCALATION: {
                Action.VIEW: Scope.TEAM,
            },
        },
    },
    {
        "role": Role.USER_EMPLOYEE,
        "description": "Employee with access to tickets they take part in",
        "permissions": {
            ResourceType.USERS: {
                Action.READ: Scope.OWN,
                Action.UPDATE: Scope.OWN,
            },
            ResourceType.TEAMS: {
                Action.READ: Scope.TEAM,
            },
            ResourceType.TICKETS: {
                Action.CREATE: Scope.OWN,
                Action.READ: Scope.OWN,
                Action.UPDATE: Scope.OWN,
                Action.COMMENT: Scope.OWN,
            },
            ResourceType.KNOWLEDGE_BASE: {
                Action.READ: Scope.ORGANIZATION,
                Action.READ_RESTRICTED: Scope.TEAM,
            },
            ResourceType.FOLLOWERS: {
                # Self-removal only: the subject owner is the follower
                Action.REMOVE: Scope.OWN,
            },
        },
    },
]

# Extra actions that must also pass for some (resource type, action) pairs.
# Each gate is skipped for rows matching its exemption predicate.
ACTION_GATES: Mapping[Tuple[ResourceType, Action], Tuple[Tuple[Action, Predicate], ...]] = MappingProxyType(
    {
        (ResourceType.KNOWLEDGE_BASE, Action.READ): (
            (Action.READ_UNPUBLISHED, Eq("is_published", True)),
            (Action.READ_RESTRICTED, In("access_level", {AccessLevel.PUBLIC, AccessLevel.INTERNAL})),
        ),
    }
)

# Actions whose ``own`` scope means the creator only, even on followable
# subjects where ``own`` otherwise covers every participant.
CREATOR_ONLY_ACTIONS: FrozenSet[Tuple[ResourceType, Action]] = frozenset(
    {
        (ResourceType.TICKETS, Action.UPDATE),
        (ResourceType.TICKETS, Action.DELETE),
    }
)

DENIED_ENTRY = PermissionEntry(scope=Scope.DENIED)

PermissionTable = Mapping[Role, Mapping[Tuple[ResourceType, Action], PermissionEntry]]


def build_permission_table(roles: List[Dict[str, Any]]) -> PermissionTable:
    """Flatten role definitions into a read-only lookup table.

    Args:
        roles: Role definitions shaped like ``DEFAULT_ROLES``

    Returns:
        PermissionTable: ``{role: {(resource_type, action): PermissionEntry}}``

    Examples:
        >>> table = build_permission_table([{"role": Role.TEAM_LEADER, "permissions": {ResourceType.TEAMS: {Action.READ: Scope.TEAM}}}])
        >>> table[Role.TEAM_LEADER][(ResourceType.TEAMS, Action.READ)].scope
        <Scope.TEAM: 'team'>
        >>> table[Role.TEAM_LEADER][(ResourceType.TEAMS, Action.READ)] = DENIED_ENTRY
        Traceback (most recent call last):
        ...
        TypeError: 'mappingproxy' object does not support item assignment
    """
    table = {}
    for definition in roles:
        grants = {}
        for resource_type, actions in definition["permissions"].items():
            for action, scope in actions.items():
                grants[(ResourceType(resource_type), Action(action))] = PermissionEntry(scope=Scope(scope))
        table[Role(definition["role"])] = MappingProxyType(grants)
    return MappingProxyType(table)


ROLE_PERMISSIONS: PermissionTable = build_permission_table(DEFAULT_ROLES)


def lookup(role: Any, resource_type: Any, action: Any, table: PermissionTable = ROLE_PERMISSIONS) -> PermissionEntry:
    """Return the permission entry for a role, resource type and action.

    Total over its inputs: unlisted combinations and values that are not
    members of the closed enums resolve to the denied entry.

    Args:
        role: Role or its identifier
        resource_type: ResourceType or its value
        action: Action or its value
        table: Permission table to consult

    Returns:
        PermissionEntry: The entry, ``DENIED_ENTRY`` when unlisted

    Examples:
        >>> lookup(Role.ADMIN_MANAGER, ResourceType.TICKETS, Action.DELETE).scope
        <Scope.ORGANIZATION: 'organization'>
        >>> lookup("TEAM_LEADER", "tickets", "delete").scope
        <Scope.DENIED: 'denied'>
        >>> lookup("Admin/Manager", "tickets", "read").scope
        <Scope.DENIED: 'denied'>
        >>> lookup(None, [], {}).scope
        <Scope.DENIED: 'denied'>
    """
    try:
        key = (ResourceType(resource_type), Action(action))
        grants = table.get(Role(role))
    except (ValueError, TypeError):
        return DENIED_ENTRY
    if grants is None:
        return DENIED_ENTRY
    return grants.get(key, DENIED_ENTRY)


def iter_entries(table: PermissionTable = ROLE_PERMISSIONS) -> Iterator[Tuple[Role, ResourceType, Action, PermissionEntry]]:
    """Enumerate every role x resource type x action with its entry.

    Args:
        table: Permission table to enumerate

    Yields:
        Tuple[Role, ResourceType, Action, PermissionEntry]: One row per combination
    """
    for role, resource_type, action in product(Role, ResourceType, Action):
        yield role, resource_type, action, lookup(role, resource_type, action, table)


def required_permission(resource_type: Any, action: Any) -> str:
    """Permission string reported in denials, e.g. ``tickets:assign``.

    Args:
        resource_type: ResourceType or its value
        action: Action or its value

    Returns:
        str: ``"<resource>:<action>"``

    Examples:
        >>> required_permission(ResourceType.TICKETS, Action.ASSIGN)
        'tickets:assign'
    """
    resource = getattr(resource_type, "value", resource_type)
    verb = getattr(action, "value", action)
    return f"{resource}:{verb}"
