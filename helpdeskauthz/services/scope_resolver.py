# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/scope_resolver.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Scope Resolver.
Single source of truth for the teams a user has standing in: their home team
plus every team they lead. All team-scoped decisions route through here.
"""

# Standard
from typing import Any, FrozenSet

# First-Party
from helpdeskauthz.schemas import coerce_user


def standing_teams(user: Any) -> FrozenSet[str]:
    """Return the deduplicated set of teams a user stands in.

    Args:
        user: ``UserSnapshot`` or mapping of its fields

    Returns:
        FrozenSet[str]: Home team and led teams; empty for missing, inactive
        or malformed users

    Examples:
        >>> from helpdeskauthz.schemas import Role, UserSnapshot
        >>> leader = UserSnapshot(id="l1", role=Role.TEAM_LEADER, team_id="t1", led_team_ids={"t1", "t2"})
        >>> sorted(standing_teams(leader))
        ['t1', 't2']
        >>> standing_teams(None)
        frozenset()
        >>> standing_teams({"id": "u1", "role": "USER_EMPLOYEE", "team_id": "t1", "is_active": False})
        frozenset()
    """
    snapshot = coerce_user(user)
    if snapshot is None or not snapshot.is_active:
        return frozenset()
    teams = set(snapshot.led_team_ids)
    if snapshot.team_id:
        teams.add(snapshot.team_id)
    return frozenset(team for team in teams if team)
