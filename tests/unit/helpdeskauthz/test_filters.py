# -*- coding: utf-8 -*-
"""Location: ./tests/unit/helpdeskauthz/test_filters.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tests for list-filter predicates and their SQLAlchemy translation.
"""

# Standard
from types import SimpleNamespace

# Third-Party
import pytest
from sqlalchemy import select

# First-Party
from helpdeskauthz.db import ARTICLE_FILTER_COLUMNS, create_session_factory, KnowledgeBaseArticle, Team, Ticket, TICKET_FILTER_COLUMNS, TicketFollower, User
from helpdeskauthz.filters import ALWAYS, all_of, And, any_of, Contains, Eq, In, NEVER, Or, to_sqlalchemy
from helpdeskauthz.schemas import AccessLevel, Action, ResourceType, Role, UserSnapshot
from helpdeskauthz.services.permission_service import PermissionEngine


class TestPredicates:
    """In-memory evaluation and constant folding."""

    def test_eq_on_mapping_and_object(self):
        """Test Eq reads mappings and attributes alike."""
        predicate = Eq("owner_id", "u1")

        assert predicate.matches({"owner_id": "u1"})
        assert predicate.matches(SimpleNamespace(owner_id="u1"))
        assert not predicate.matches({"owner_id": "u2"})
        assert not predicate.matches({})

    def test_in_never_matches_missing_value(self):
        """Test In rejects rows without the field."""
        predicate = In("team_id", ["t1", "t2"])

        assert predicate.values == frozenset({"t1", "t2"})
        assert predicate.matches({"team_id": "t2"})
        assert not predicate.matches({"team_id": None})

    def test_contains_on_set_field(self):
        """Test Contains looks inside set-valued fields."""
        predicate = Contains("participant_ids", "u1")

        assert predicate.matches({"participant_ids": {"u1", "u2"}})
        assert not predicate.matches({"participant_ids": set()})
        assert not predicate.matches({})

    def test_folding(self):
        """Test constants fold away and nested nodes flatten."""
        eq = Eq("a", 1)
        ne = Eq("b", 2)

        assert all_of() is ALWAYS
        assert any_of() is NEVER
        assert all_of(eq, ALWAYS) == eq
        assert all_of(eq, NEVER) is NEVER
        assert any_of(eq, ALWAYS) is ALWAYS
        assert any_of(eq, NEVER) == eq
        assert all_of(all_of(eq, ne), eq) == And((eq, ne, eq))
        assert any_of(any_of(eq, ne), eq) == Or((eq, ne, eq))

    def test_operators(self):
        """Test & and | build the same nodes as all_of/any_of."""
        eq = Eq("a", 1)
        ne = Eq("b", 2)

        assert (eq & ne) == all_of(eq, ne)
        assert (eq | ne) == any_of(eq, ne)
        assert (eq | ne).matches({"b": 2})
        assert not (eq & ne).matches({"b": 2})


class TestToSqlAlchemy:
    """Translation against a real in-memory SQLite database."""

    @pytest.fixture
    def session(self):
        """Create a populated in-memory database session."""
        factory = create_session_factory("sqlite://")
        db = factory()
        db.add_all(
            [
                Team(id="t1", name="Support"),
                Team(id="t2", name="Billing"),
                User(id="emp", email="emp@example.com", role=Role.USER_EMPLOYEE.value, team_id="t1"),
                User(id="emp2", email="emp2@example.com", role=Role.USER_EMPLOYEE.value, team_id="t2"),
                User(id="lead", email="lead@example.com", role=Role.TEAM_LEADER.value, team_id="t1"),
            ]
        )
        db.flush()
        db.add_all(
            [
                Ticket(id="a", created_by="emp", team_id="t1"),
                Ticket(id="b", created_by="emp2", team_id="t2"),
                Ticket(id="c", created_by="emp2", assigned_to="emp", team_id="t2"),
                Ticket(id="d", created_by="emp2", team_id="t2"),
                Ticket(id="e", created_by="emp2"),
                KnowledgeBaseArticle(id="pub", author_id="lead", access_level=AccessLevel.PUBLIC.value, is_published=True),
                KnowledgeBaseArticle(id="int", author_id="lead", access_level=AccessLevel.INTERNAL.value, is_published=True),
                KnowledgeBaseArticle(id="res1", author_id="lead", team_id="t1", access_level=AccessLevel.RESTRICTED.value, is_published=True),
                KnowledgeBaseArticle(id="res2", author_id="emp2", team_id="t2", access_level=AccessLevel.RESTRICTED.value, is_published=True),
                KnowledgeBaseArticle(id="draft", author_id="lead", team_id="t1", access_level=AccessLevel.PUBLIC.value, is_published=False),
            ]
        )
        db.flush()
        db.add(TicketFollower(ticket_id="d", user_id="emp"))
        db.commit()
        yield db
        db.close()

    def _ticket_ids(self, session, predicate):
        query = select(Ticket.id).where(to_sqlalchemy(predicate, TICKET_FILTER_COLUMNS))
        return sorted(session.execute(query).scalars().all())

    def _article_ids(self, session, predicate):
        query = select(KnowledgeBaseArticle.id).where(to_sqlalchemy(predicate, ARTICLE_FILTER_COLUMNS))
        return sorted(session.execute(query).scalars().all())

    def test_constants(self, session):
        """Test ALWAYS and NEVER select everything and nothing."""
        assert self._ticket_ids(session, ALWAYS) == ["a", "b", "c", "d", "e"]
        assert self._ticket_ids(session, NEVER) == []

    def test_empty_in_selects_nothing(self, session):
        """Test an empty In clause renders as false."""
        assert self._ticket_ids(session, In("team_id", [])) == []

    def test_employee_participant_filter(self, session):
        """Test own tickets include created, assigned and followed tickets."""
        employee = UserSnapshot(id="emp", role=Role.USER_EMPLOYEE, team_id="t1")
        predicate = PermissionEngine().build_list_filter(employee, ResourceType.TICKETS, Action.READ)

        assert self._ticket_ids(session, predicate) == ["a", "c", "d"]

    def test_employee_update_filter(self, session):
        """Test only created tickets are updatable by an employee."""
        employee = UserSnapshot(id="emp", role=Role.USER_EMPLOYEE, team_id="t1")
        predicate = PermissionEngine().build_list_filter(employee, ResourceType.TICKETS, Action.UPDATE)

        assert self._ticket_ids(session, predicate) == ["a"]

    def test_leader_team_filter(self, session):
        """Test team tickets exclude tickets without a team."""
        leader = UserSnapshot(id="lead", role=Role.TEAM_LEADER, team_id="t1", led_team_ids={"t2"})
        predicate = PermissionEngine().build_list_filter(leader, ResourceType.TICKETS, Action.READ)

        assert self._ticket_ids(session, predicate) == ["a", "b", "c", "d"]

    def test_article_filters_by_role(self, session):
        """Test article visibility per role, with enum values bound as strings."""
        engine = PermissionEngine()
        admin = UserSnapshot(id="admin", role=Role.ADMIN_MANAGER)
        leader = UserSnapshot(id="lead", role=Role.TEAM_LEADER, team_id="t1")
        employee = UserSnapshot(id="emp", role=Role.USER_EMPLOYEE, team_id="t1")

        assert self._article_ids(session, engine.build_list_filter(admin, ResourceType.KNOWLEDGE_BASE, Action.READ)) == ["draft", "int", "pub", "res1", "res2"]
        assert self._article_ids(session, engine.build_list_filter(leader, ResourceType.KNOWLEDGE_BASE, Action.READ)) == ["int", "pub", "res1"]
        assert self._article_ids(session, engine.build_list_filter(employee, ResourceType.KNOWLEDGE_BASE, Action.READ)) == ["int", "pub", "res1"]

    def test_unmapped_field_raises(self):
        """Test a field without a column is a programmer error."""
        with pytest.raises(ValueError, match="No column mapped"):
            to_sqlalchemy(Eq("status", "OPEN"), TICKET_FILTER_COLUMNS)
