# -*- coding: utf-8 -*-
"""Location: ./tests/unit/helpdeskauthz/services/test_analytics_guard.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Unit tests for the analytics guard.
"""

# Third-Party
import pytest

# First-Party
from helpdeskauthz.errors import InsufficientPermissionsError, TeamAccessDeniedError, ValidationError
from helpdeskauthz.filters import ALWAYS, NEVER
from helpdeskauthz.schemas import AnalyticsLevel, ReportType
from helpdeskauthz.services.analytics_guard import AnalyticsGuard

ROWS = [
    {"team_id": "t1", "tickets": 4},
    {"team_id": "t2", "tickets": 7},
    {"team_id": None, "tickets": 1},
    {"team_id": "t3", "tickets": 2},
]


@pytest.fixture
def guard(engine, provider):
    """Create an analytics guard without snapshot caching."""
    return AnalyticsGuard(engine, provider, cache_ttl=0)


class TestAnalyticsScope:
    @pytest.mark.asyncio
    async def test_scope_by_role(self, guard):
        """Test the analytics level of each role."""
        assert (await guard.get_analytics_scope("admin")).level == AnalyticsLevel.ORGANIZATION
        leader_scope = await guard.get_analytics_scope("lead")
        assert leader_scope.level == AnalyticsLevel.TEAM
        assert leader_scope.team_ids == ("t1", "t3")
        assert (await guard.get_analytics_scope("emp")).level == AnalyticsLevel.NONE
        assert (await guard.get_analytics_scope("nobody")).level == AnalyticsLevel.NONE

    @pytest.mark.asyncio
    async def test_can_view_analytics(self, guard):
        """Test analytics access by role."""
        assert await guard.can_view_analytics("admin")
        assert await guard.can_view_analytics("lead")
        assert not await guard.can_view_analytics("emp")
        assert not await guard.can_view_analytics("gone")


class TestViewChecks:
    @pytest.mark.asyncio
    async def test_organization_analytics(self, guard):
        """Test only organization-level viewers see organization analytics."""
        assert await guard.can_view_organization_analytics("admin")
        assert not await guard.can_view_organization_analytics("lead")
        assert not await guard.can_view_organization_analytics("emp")

    @pytest.mark.asyncio
    async def test_team_analytics(self, guard):
        """Test leaders see analytics of the teams they stand in only."""
        assert await guard.can_view_team_analytics("lead", "t1")
        assert await guard.can_view_team_analytics("lead", "t3")
        assert not await guard.can_view_team_analytics("lead", "t2")
        assert not await guard.can_view_team_analytics("lead", None)
        assert not await guard.can_view_team_analytics("emp", "t1")
        assert await guard.can_view_team_analytics("admin", "t2")

    @pytest.mark.asyncio
    async def test_agent_analytics(self, guard):
        """Test agent analytics follow the agent's home team."""
        assert await guard.can_view_agent_analytics("lead", "emp")
        assert not await guard.can_view_agent_analytics("lead", "emp2")
        assert not await guard.can_view_agent_analytics("lead", "nobody")
        assert await guard.can_view_agent_analytics("admin", "emp2")
        assert not await guard.can_view_agent_analytics("emp", "emp")

    @pytest.mark.asyncio
    async def test_export_and_comparative(self, guard):
        """Test export and comparative flags by role."""
        assert await guard.can_export_reports("admin")
        assert await guard.can_export_reports("lead")
        assert not await guard.can_export_reports("emp")
        assert await guard.can_view_comparative_analysis("admin")
        assert not await guard.can_view_comparative_analysis("lead")


class TestReportTypes:
    @pytest.mark.asyncio
    async def test_report_type_access(self, guard):
        """Test organization reports need organization level and others need any level."""
        assert await guard.can_access_report_type("admin", ReportType.ORGANIZATION)
        assert not await guard.can_access_report_type("lead", ReportType.ORGANIZATION)
        for report_type in ("team", "agent", "customer", "sla", "quality"):
            assert await guard.can_access_report_type("lead", report_type), report_type
            assert not await guard.can_access_report_type("emp", report_type), report_type

    @pytest.mark.asyncio
    async def test_unknown_report_type(self, guard):
        """Test unknown report types are refused."""
        assert not await guard.can_access_report_type("admin", "revenue")


class TestExport:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "user_id,report_type,team_id,reason",
        [
            ("emp", "team", None, "User does not have export permissions"),
            ("lead", "organization", None, "User cannot access organization reports"),
            ("lead", ReportType.ORGANIZATION, None, "User cannot access organization reports"),
            ("lead", "team", "t2", "User cannot access analytics for the specified team"),
        ],
    )
    async def test_refused_exports(self, guard, user_id, report_type, team_id, reason):
        """Test each refusal carries its reason."""
        decision = await guard.validate_export_request(user_id, report_type, team_id)

        assert decision.valid is False
        assert decision.reason == reason

    @pytest.mark.asyncio
    async def test_allowed_exports(self, guard):
        """Test permitted exports."""
        assert (await guard.validate_export_request("lead", "team", "t1")).valid
        assert (await guard.validate_export_request("lead", "sla")).valid
        assert (await guard.validate_export_request("admin", "organization", "t2")).valid

    @pytest.mark.asyncio
    async def test_require_export(self, guard):
        """Test the raising variant."""
        await guard.require_export("admin", ReportType.ORGANIZATION)

        with pytest.raises(InsufficientPermissionsError) as exc_info:
            await guard.require_export("emp", "team")
        assert exc_info.value.required_permission == "analytics:export"
        assert exc_info.value.reason == "User does not have export permissions"


class TestTeamFilter:
    @pytest.mark.asyncio
    async def test_filters_by_role(self, guard):
        """Test the team filter for each kind of viewer."""
        assert await guard.get_team_filter("admin") is ALWAYS
        assert await guard.get_team_filter("emp") is NEVER
        assert await guard.get_team_filter("nobody") is NEVER
        assert (await guard.get_team_filter("lead")).values == frozenset({"t1", "t3"})

    @pytest.mark.asyncio
    async def test_filter_analytics_data(self, guard):
        """Test rows are kept in order when visible."""
        assert await guard.filter_analytics_data("admin", ROWS) == ROWS
        assert await guard.filter_analytics_data("lead", ROWS) == [ROWS[0], ROWS[3]]
        assert await guard.filter_analytics_data("emp", ROWS) == []

    @pytest.mark.asyncio
    async def test_require_team_analytics(self, guard):
        """Test refused team analytics raise a team access error."""
        await guard.require_team_analytics("lead", "t1")

        with pytest.raises(TeamAccessDeniedError) as exc_info:
            await guard.require_team_analytics("lead", "t2")
        body = exc_info.value.to_error_response()
        assert body["required_permission"] == "analytics:view"
        assert body["resource_id"] == "t2"
        assert body["status_code"] == 403

    @pytest.mark.asyncio
    async def test_require_team_analytics_needs_team_id(self, guard):
        """Test an empty team id is a 400 error."""
        with pytest.raises(ValidationError) as exc_info:
            await guard.require_team_analytics("admin", "")
        assert exc_info.value.status_code == 400
        assert exc_info.value.field == "team_id"
