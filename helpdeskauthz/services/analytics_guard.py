# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/analytics_guard.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Analytics Guard.
Analytics visibility follows the ``analytics:view`` scope exactly: nothing,
the user's standing teams, or the whole organization. Exporting is a
separate ``analytics:export`` grant checked on top of view access.
"""

# Standard
import logging
from typing import Any, Iterable, List, Optional

# First-Party
from helpdeskauthz.errors import InsufficientPermissionsError, TeamAccessDeniedError
from helpdeskauthz.filters import NEVER, Predicate
from helpdeskauthz.schemas import AccessDecision, Action, AnalyticsLevel, AnalyticsScope, ReportType, ResourceType, ScopedSubject
from helpdeskauthz.services.base_guard import BaseGuard

logger = logging.getLogger(__name__)


class AnalyticsGuard(BaseGuard):
    """Access guard for analytics and reports.

    Examples:
        >>> from helpdeskauthz.schemas import Role, UserSnapshot
        >>> from helpdeskauthz.services.permission_service import PermissionEngine
        >>> from helpdeskauthz.services.snapshot_provider import InMemorySnapshotProvider
        >>> leader = UserSnapshot(id="l1", role=Role.TEAM_LEADER, led_team_ids={"t1"})
        >>> guard = AnalyticsGuard(PermissionEngine(), InMemorySnapshotProvider(users=[leader]))
        >>> import asyncio
        >>> asyncio.run(guard.can_view_team_analytics("l1", "t1"))
        True
        >>> asyncio.run(guard.can_view_organization_analytics("l1"))
        False
    """

    async def get_analytics_scope(self, user_id: Optional[str]) -> AnalyticsScope:
        """Return the analytics scope of a user.

        Args:
            user_id: Requesting user

        Returns:
            AnalyticsScope: ``none`` level for unknown or inactive users
        """
        return self.engine.get_analytics_scope(await self._get_user(user_id))

    async def can_view_analytics(self, user_id: Optional[str]) -> bool:
        """Check whether a user has any analytics access.

        Args:
            user_id: Requesting user

        Returns:
            bool: True for team or organization level viewers
        """
        return (await self.get_analytics_scope(user_id)).level != AnalyticsLevel.NONE

    async def can_view_organization_analytics(self, user_id: Optional[str]) -> bool:
        """Check whether a user can see organization-wide analytics.

        Args:
            user_id: Requesting user

        Returns:
            bool: True only for organization-scoped viewers
        """
        return await self._can_view(user_id, ScopedSubject())

    async def can_view_team_analytics(self, user_id: Optional[str], team_id: Optional[str]) -> bool:
        """Check whether a user can see one team's analytics.

        Args:
            user_id: Requesting user
            team_id: Team whose analytics are requested

        Returns:
            bool: True if the team is within the user's analytics scope;
            False for an empty team id
        """
        return await self._can_view(user_id, ScopedSubject(team_id=team_id))

    async def can_view_agent_analytics(self, user_id: Optional[str], agent_id: Optional[str]) -> bool:
        """Check whether a user can see one agent's analytics.

        Team-scoped viewers see agents whose home team they stand in.

        Args:
            user_id: Requesting user
            agent_id: Agent whose analytics are requested

        Returns:
            bool: True if allowed
        """
        agent = await self._get_user(agent_id)
        return await self._can_view(user_id, ScopedSubject(owner_id=agent_id, team_id=agent.team_id if agent else None))

    async def _can_view(self, user_id: Optional[str], subject: ScopedSubject) -> bool:
        user = await self._get_user(user_id)
        if user is None:
            return False
        granted = self.engine.can_perform(user, ResourceType.ANALYTICS, Action.VIEW, subject)
        self._record(user, ResourceType.ANALYTICS, Action.VIEW, subject.team_id, granted)
        return granted

    async def can_export_reports(self, user_id: Optional[str]) -> bool:
        """Check whether a user holds the export grant.

        Args:
            user_id: Requesting user

        Returns:
            bool: True if the user may view and export analytics
        """
        return (await self.get_analytics_scope(user_id)).can_export

    async def can_view_comparative_analysis(self, user_id: Optional[str]) -> bool:
        """Check whether a user can compare teams side by side.

        Args:
            user_id: Requesting user

        Returns:
            bool: True if allowed
        """
        return (await self.get_analytics_scope(user_id)).can_view_comparative

    async def can_access_report_type(self, user_id: Optional[str], report_type) -> bool:
        """Check whether a user can open a report family.

        Organization reports need organization-level analytics; every other
        report type needs any analytics access.

        Args:
            user_id: Requesting user
            report_type: ReportType or its value

        Returns:
            bool: True if allowed; False for unknown report types
        """
        try:
            report_type = ReportType(report_type)
        except ValueError:
            return False
        level = (await self.get_analytics_scope(user_id)).level
        if report_type == ReportType.ORGANIZATION:
            return level == AnalyticsLevel.ORGANIZATION
        return level != AnalyticsLevel.NONE

    async def validate_export_request(self, user_id: Optional[str], report_type, team_id: Optional[str] = None) -> AccessDecision:
        """Validate an export request.

        Args:
            user_id: Requesting user
            report_type: ReportType or its value
            team_id: Team the export is limited to

        Returns:
            AccessDecision: ``valid`` plus the denial reason
        """
        if not await self.can_export_reports(user_id):
            return AccessDecision(valid=False, reason="User does not have export permissions")
        if not await self.can_access_report_type(user_id, report_type):
            return AccessDecision(valid=False, reason=f"User cannot access {getattr(report_type, 'value', report_type)} reports")
        if team_id and not await self.can_view_team_analytics(user_id, team_id):
            return AccessDecision(valid=False, reason="User cannot access analytics for the specified team")
        return AccessDecision(valid=True)

    async def get_team_filter(self, user_id: Optional[str]) -> Predicate:
        """Filter selecting analytics rows by team.

        Args:
            user_id: Requesting user

        Returns:
            Predicate: ``Always`` for organization viewers, ``team_id`` membership
            for team viewers, ``Never`` otherwise
        """
        user = await self._get_user(user_id)
        if user is None:
            return NEVER
        return self.engine.build_list_filter(user, ResourceType.ANALYTICS, Action.VIEW)

    async def filter_analytics_data(self, user_id: Optional[str], rows: Iterable[Any]) -> List[Any]:
        """Keep the rows the user may see.

        Args:
            user_id: Requesting user
            rows: Mappings or objects with a ``team_id``

        Returns:
            List[Any]: Visible rows, in input order
        """
        predicate = await self.get_team_filter(user_id)
        return [row for row in rows if predicate.matches(row)]

    async def require_team_analytics(self, user_id: Optional[str], team_id: str) -> None:
        """Raise unless the user may view the team's analytics.

        Args:
            user_id: Requesting user
            team_id: Team whose analytics are requested

        Raises:
            ValidationError: If ``team_id`` is empty
            TeamAccessDeniedError: If the team is outside the user's scope
        """
        self._require_id(team_id, "team_id")
        if not await self.can_view_team_analytics(user_id, team_id):
            raise TeamAccessDeniedError(team_id, user_id or "anonymous", required_permission="analytics:view")

    async def require_export(self, user_id: Optional[str], report_type, team_id: Optional[str] = None) -> None:
        """Raise unless ``validate_export_request`` passes.

        Args:
            user_id: Requesting user
            report_type: ReportType or its value
            team_id: Team the export is limited to

        Raises:
            InsufficientPermissionsError: Carrying the denial reason
        """
        decision = await self.validate_export_request(user_id, report_type, team_id)
        if not decision.valid:
            raise InsufficientPermissionsError(Action.EXPORT.value, ResourceType.ANALYTICS.value, team_id, reason=decision.reason)
