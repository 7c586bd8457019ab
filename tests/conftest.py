# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared fixtures: a small organization of users across three teams, the
decision engine and an in-memory snapshot provider.
"""

# Third-Party
import pytest

# First-Party
from helpdeskauthz.schemas import ArticleSubject, AccessLevel, ResourceType, Role, TicketStatus, TicketSubject, UserSnapshot
from helpdeskauthz.services.permission_service import PermissionEngine
from helpdeskauthz.services.snapshot_provider import InMemorySnapshotProvider

ADMIN = UserSnapshot(id="admin", role=Role.ADMIN_MANAGER)
LEADER = UserSnapshot(id="lead", role=Role.TEAM_LEADER, team_id="t1", led_team_ids={"t1", "t3"})
OTHER_LEADER = UserSnapshot(id="lead2", role=Role.TEAM_LEADER, team_id="t2", led_team_ids={"t2"})
EMPLOYEE = UserSnapshot(id="emp", role=Role.USER_EMPLOYEE, team_id="t1")
OTHER_EMPLOYEE = UserSnapshot(id="emp2", role=Role.USER_EMPLOYEE, team_id="t2")
LONER = UserSnapshot(id="loner", role=Role.USER_EMPLOYEE)
INACTIVE_ADMIN = UserSnapshot(id="gone", role=Role.ADMIN_MANAGER, is_active=False)

ALL_USERS = [ADMIN, LEADER, OTHER_LEADER, EMPLOYEE, OTHER_EMPLOYEE, LONER, INACTIVE_ADMIN]

TICKETS = {
    "t1-by-emp": TicketSubject(id="t1-by-emp", owner_id="emp", team_id="t1", status=TicketStatus.IN_PROGRESS),
    "t2-by-emp2": TicketSubject(id="t2-by-emp2", owner_id="emp2", team_id="t2"),
    "t2-followed-by-emp": TicketSubject(id="t2-followed-by-emp", owner_id="emp2", team_id="t2", follower_ids={"emp"}),
    "t2-assigned-to-emp": TicketSubject(id="t2-assigned-to-emp", owner_id="emp2", assignee_id="emp", team_id="t2"),
    "t3-by-emp2": TicketSubject(id="t3-by-emp2", owner_id="emp2", team_id="t3"),
    "no-team": TicketSubject(id="no-team", owner_id="emp2"),
}

ARTICLES = {
    "public": ArticleSubject(id="public", owner_id="admin", access_level=AccessLevel.PUBLIC, is_published=True),
    "internal": ArticleSubject(id="internal", owner_id="admin", access_level=AccessLevel.INTERNAL, is_published=True),
    "restricted-t1": ArticleSubject(id="restricted-t1", owner_id="lead", team_id="t1", access_level=AccessLevel.RESTRICTED, is_published=True),
    "restricted-t2": ArticleSubject(id="restricted-t2", owner_id="lead2", team_id="t2", access_level=AccessLevel.RESTRICTED, is_published=True),
    "draft": ArticleSubject(id="draft", owner_id="lead", team_id="t1", access_level=AccessLevel.PUBLIC, is_published=False),
}


@pytest.fixture
def engine():
    """Create the decision engine."""
    return PermissionEngine()


@pytest.fixture
def provider():
    """Create an in-memory provider holding the shared users, tickets and articles."""
    resources = [(ResourceType.TICKETS, key, ticket) for key, ticket in TICKETS.items()]
    resources += [(ResourceType.KNOWLEDGE_BASE, key, article) for key, article in ARTICLES.items()]
    return InMemorySnapshotProvider(users=ALL_USERS, resources=resources)


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def leader():
    """Leader of t1 (home team) and t3."""
    return LEADER


@pytest.fixture
def other_leader():
    """Leader of t2."""
    return OTHER_LEADER


@pytest.fixture
def employee():
    """Employee in t1."""
    return EMPLOYEE


@pytest.fixture
def other_employee():
    """Employee in t2."""
    return OTHER_EMPLOYEE


@pytest.fixture
def all_users():
    return list(ALL_USERS)


@pytest.fixture
def tickets():
    return dict(TICKETS)


@pytest.fixture
def articles():
    return dict(ARTICLES)
