# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/services/knowledge_base_guard.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Knowledge Base Guard.
Article visibility and authoring checks. Published PUBLIC articles are open
to everyone including anonymous readers; everything else goes through the
decision engine, where unpublished and RESTRICTED articles need the extra
``read_unpublished`` and ``read_restricted`` grants.
"""

# Standard
import logging
from typing import Optional

# First-Party
from helpdeskauthz.errors import ArticleCreationDeniedError, ResourceNotFoundError
from helpdeskauthz.filters import Eq, Predicate, all_of
from helpdeskauthz.schemas import AccessDecision, AccessLevel, Action, ArticleSubject, ResourceType, Scope
from helpdeskauthz.services.base_guard import BaseGuard

logger = logging.getLogger(__name__)

ANONYMOUS_ARTICLE_FILTER: Predicate = all_of(Eq("is_published", True), Eq("access_level", AccessLevel.PUBLIC))

USER_ROLE_NOT_FOUND = "User role not found"
CREATE_DENIED = "Insufficient permissions to create articles"
TEAM_REQUIRED = "Team ID required for restricted articles"
TEAM_NOT_LED = "Cannot create restricted articles for teams you do not lead"


class KnowledgeBaseGuard(BaseGuard):
    """Access guard for knowledge-base articles."""

    async def can_access_article(self, user_id: Optional[str], article_id: str) -> bool:
        """Check whether a user, or an anonymous reader, can read an article.

        Args:
            user_id: Requesting user, None for anonymous readers
            article_id: Article to read

        Returns:
            bool: True if readable
        """
        article = await self._get_resource(ResourceType.KNOWLEDGE_BASE, article_id)
        if article is None:
            return False
        if user_id is None:
            return ANONYMOUS_ARTICLE_FILTER.matches(article)

        user = await self._get_user(user_id)
        granted = self.engine.can_perform(user, ResourceType.KNOWLEDGE_BASE, Action.READ, article)
        self._record(user, ResourceType.KNOWLEDGE_BASE, Action.READ, article_id, granted)
        return granted

    async def _can_act(self, user_id: Optional[str], article_id: str, action: Action) -> bool:
        user = await self._get_user(user_id)
        article = await self._get_resource(ResourceType.KNOWLEDGE_BASE, article_id)
        if user is None or article is None:
            return False
        if not self.engine.can_perform(user, ResourceType.KNOWLEDGE_BASE, Action.READ, article):
            return False
        granted = self.engine.can_perform(user, ResourceType.KNOWLEDGE_BASE, action, article)
        self._record(user, ResourceType.KNOWLEDGE_BASE, action, article_id, granted)
        return granted

    async def can_modify_article(self, user_id: Optional[str], article_id: str) -> bool:
        """Check whether a user can update an article they can read."""
        return await self._can_act(user_id, article_id, Action.UPDATE)

    async def can_delete_article(self, user_id: Optional[str], article_id: str) -> bool:
        """Check whether a user can delete an article they can read."""
        return await self._can_act(user_id, article_id, Action.DELETE)

    async def can_publish_article(self, user_id: Optional[str], article_id: Optional[str] = None) -> bool:
        """Check whether a user can publish or unpublish articles.

        Args:
            user_id: Requesting user
            article_id: Specific article, or None for the general capability

        Returns:
            bool: True if allowed
        """
        if article_id is None:
            return self.engine.has_capability(await self._get_user(user_id), ResourceType.KNOWLEDGE_BASE, Action.PUBLISH)
        return await self._can_act(user_id, article_id, Action.PUBLISH)

    async def can_create_article(self, user_id: Optional[str], team_id: Optional[str] = None) -> bool:
        """Check whether a user can author an article, optionally for a team.

        Args:
            user_id: Requesting user
            team_id: Team the article will belong to

        Returns:
            bool: True if allowed
        """
        user = await self._get_user(user_id)
        if user is None:
            return False
        draft = ArticleSubject(owner_id=user.id, team_id=team_id)
        granted = self.engine.can_perform(user, ResourceType.KNOWLEDGE_BASE, Action.CREATE, draft)
        self._record(user, ResourceType.KNOWLEDGE_BASE, Action.CREATE, team_id, granted)
        return granted

    async def validate_access_level_assignment(self, user_id: Optional[str], access_level, team_id: Optional[str] = None) -> AccessDecision:
        """Validate the access level a user picks for a new article.

        Users below organization scope may only create RESTRICTED articles
        for a team they stand in.

        Args:
            user_id: Requesting user
            access_level: AccessLevel or its value
            team_id: Team the article is restricted to

        Returns:
            AccessDecision: ``valid`` plus the denial reason

        Examples:
            >>> from helpdeskauthz.schemas import Role, UserSnapshot
            >>> from helpdeskauthz.services.permission_service import PermissionEngine
            >>> from helpdeskauthz.services.snapshot_provider import InMemorySnapshotProvider
            >>> leader = UserSnapshot(id="l1", role=Role.TEAM_LEADER, led_team_ids={"team-1"})
            >>> guard = KnowledgeBaseGuard(PermissionEngine(), InMemorySnapshotProvider(users=[leader]))
            >>> import asyncio
            >>> asyncio.run(guard.validate_access_level_assignment("l1", "RESTRICTED", "team-2")).reason
            'Cannot create restricted articles for teams you do not lead'
            >>> asyncio.run(guard.validate_access_level_assignment("l1", "RESTRICTED", "team-1")).valid
            True
        """
        user = await self._get_user(user_id)
        if user is None or not user.is_active:
            return AccessDecision(valid=False, reason=USER_ROLE_NOT_FOUND)

        entry = self.engine.lookup(user.role, ResourceType.KNOWLEDGE_BASE, Action.CREATE)
        if entry.denied:
            return AccessDecision(valid=False, reason=CREATE_DENIED)
        try:
            access_level = AccessLevel(access_level)
        except ValueError:
            return AccessDecision(valid=False, reason=f"Unknown access level '{access_level}'")

        if entry.scope == Scope.ORGANIZATION:
            return AccessDecision(valid=True)

        if access_level == AccessLevel.RESTRICTED:
            if not team_id:
                return AccessDecision(valid=False, reason=TEAM_REQUIRED)
            if not self.engine.validate_scope_access(user, Scope.TEAM, None, team_id):
                logger.warning(f"Restricted article for team {team_id} refused for user {user.id}")
                return AccessDecision(valid=False, reason=TEAM_NOT_LED)
        return AccessDecision(valid=True)

    async def get_article_filter(self, user_id: Optional[str]) -> Predicate:
        """Filter selecting the articles a reader may see.

        Args:
            user_id: Requesting user, None for anonymous readers

        Returns:
            Predicate: Filter for the caller's article query
        """
        if user_id is None:
            return ANONYMOUS_ARTICLE_FILTER
        user = await self._get_user(user_id)
        return self.engine.build_list_filter(user, ResourceType.KNOWLEDGE_BASE, Action.READ)

    async def require_article_action(self, user_id: Optional[str], article_id: str, action=Action.READ) -> ArticleSubject:
        """Raise unless the action on the article is allowed.

        Args:
            user_id: Requesting user, None for anonymous readers
            article_id: Article to act on
            action: Action or its value

        Returns:
            ArticleSubject: The article snapshot

        Raises:
            ValidationError: If ``article_id`` is empty
            ResourceNotFoundError: If the article is missing or unreadable
            InsufficientPermissionsError: If the action is denied
            UnauthenticatedError: If an anonymous reader asks for more than read
        """
        action = Action(action)
        if user_id is None and action == Action.READ:
            self._require_id(article_id, "resource_id")
            if not await self.can_access_article(None, article_id):
                raise ResourceNotFoundError(ResourceType.KNOWLEDGE_BASE.value, article_id)
            return await self._get_resource(ResourceType.KNOWLEDGE_BASE, article_id)
        _, article = await self._authorize(user_id, ResourceType.KNOWLEDGE_BASE, article_id, action)
        return article

    async def require_access_level_assignment(self, user_id: Optional[str], access_level, team_id: Optional[str] = None) -> None:
        """Raise unless ``validate_access_level_assignment`` passes.

        Args:
            user_id: Requesting user
            access_level: AccessLevel or its value
            team_id: Team the article is restricted to

        Raises:
            ArticleCreationDeniedError: Carrying the denial reason
        """
        decision = await self.validate_access_level_assignment(user_id, access_level, team_id)
        if not decision.valid:
            raise ArticleCreationDeniedError(decision.reason, team_id)
