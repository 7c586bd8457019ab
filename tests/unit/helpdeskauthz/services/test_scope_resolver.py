# -*- coding: utf-8 -*-
"""Location: ./tests/unit/helpdeskauthz/services/test_scope_resolver.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tests for standing-team resolution.
"""

# Third-Party
import pytest

# First-Party
from helpdeskauthz.schemas import Role, UserSnapshot
from helpdeskauthz.services.scope_resolver import standing_teams


class TestStandingTeams:
    def test_home_team_and_led_teams_are_merged(self, leader):
        """Test home and led teams are combined."""
        assert standing_teams(leader) == frozenset({"t1", "t3"})

    def test_duplicates_collapse(self):
        """Test leading one's own home team counts once."""
        user = UserSnapshot(id="u", role=Role.TEAM_LEADER, team_id="t1", led_team_ids={"t1"})

        assert standing_teams(user) == frozenset({"t1"})

    def test_user_without_team(self):
        """Test a user with no team stands nowhere."""
        assert standing_teams(UserSnapshot(id="u", role=Role.USER_EMPLOYEE)) == frozenset()

    def test_empty_ids_are_dropped(self):
        """Test blank team ids never enter the set."""
        user = UserSnapshot(id="u", role=Role.TEAM_LEADER, team_id="", led_team_ids={"", "t2"})

        assert standing_teams(user) == frozenset({"t2"})

    @pytest.mark.parametrize("value", [None, {}, "lead", {"id": "u", "role": "Team Leader", "team_id": "t1"}])
    def test_missing_or_malformed_user(self, value):
        """Test malformed input resolves to the empty set."""
        assert standing_teams(value) == frozenset()

    def test_inactive_user(self):
        """Test a deactivated leader has no standing."""
        user = UserSnapshot(id="u", role=Role.TEAM_LEADER, team_id="t1", led_team_ids={"t2"}, is_active=False)

        assert standing_teams(user) == frozenset()

    def test_mapping_input(self):
        """Test mappings are accepted."""
        assert standing_teams({"id": "u", "role": "USER_EMPLOYEE", "team_id": "t9"}) == frozenset({"t9"})
