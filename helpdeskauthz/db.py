# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/db.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Reference ORM models.
The helpdesk owns its schema; these SQLAlchemy models describe only the
columns the access-control core reads, so the snapshot provider and the list
filters have something concrete to run against. Column maps at the bottom
translate filter predicate fields into columns for ``to_sqlalchemy``.
"""

# Standard
from datetime import datetime, timezone
from typing import List, Optional
import uuid

# Third-Party
from sqlalchemy import Boolean, create_engine, DateTime, ForeignKey, or_, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, Session, sessionmaker

# First-Party
from helpdeskauthz.config import settings
from helpdeskauthz.schemas import AccessLevel, TicketStatus


def utc_now() -> datetime:
    """Current time as an aware UTC datetime.

    Returns:
        datetime: Now, in UTC
    """
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Declarative base for the reference models."""


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    members: Mapped[List["User"]] = relationship("User", back_populates="team")
    leaders: Mapped[List["TeamLeader"]] = relationship("TeamLeader", back_populates="team", cascade="all, delete-orphan")


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    # Stable role identifier, never a display label
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    team_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    team: Mapped[Optional[Team]] = relationship("Team", back_populates="members")
    led_teams: Mapped[List["TeamLeader"]] = relationship("TeamLeader", back_populates="user", cascade="all, delete-orphan")


class TeamLeader(Base):
    """Leadership of a team by a user."""

    __tablename__ = "team_leaders"

    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    team_id: Mapped[str] = mapped_column(String(36), ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)

    user: Mapped[User] = relationship("User", back_populates="led_teams")
    team: Mapped[Team] = relationship("Team", back_populates="leaders")


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=TicketStatus.OPEN.value)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    team_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    followers: Mapped[List["TicketFollower"]] = relationship("TicketFollower", back_populates="ticket", cascade="all, delete-orphan")


class TicketFollower(Base):
    __tablename__ = "ticket_followers"

    ticket_id: Mapped[str] = mapped_column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    ticket: Mapped[Ticket] = relationship("Ticket", back_populates="followers")


class KnowledgeBaseArticle(Base):
    __tablename__ = "knowledge_base_articles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    author_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    team_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    access_level: Mapped[str] = mapped_column(String(16), nullable=False, default=AccessLevel.PUBLIC.value)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# Filter field -> column (or clause factory for set-valued fields)
TICKET_FILTER_COLUMNS = {
    "owner_id": Ticket.created_by,
    "team_id": Ticket.team_id,
    "participant_ids": lambda user_id: or_(
        Ticket.created_by == user_id,
        Ticket.assigned_to == user_id,
        Ticket.followers.any(TicketFollower.user_id == user_id),
    ),
}

ARTICLE_FILTER_COLUMNS = {
    "owner_id": KnowledgeBaseArticle.author_id,
    "team_id": KnowledgeBaseArticle.team_id,
    "access_level": KnowledgeBaseArticle.access_level,
    "is_published": KnowledgeBaseArticle.is_published,
}


def create_session_factory(database_url: Optional[str] = None, **engine_kwargs) -> sessionmaker:
    """Create the engine, ensure tables exist and return a session factory.

    Args:
        database_url: SQLAlchemy database URL, defaults to ``settings.database_url``
        **engine_kwargs: Extra arguments for ``create_engine``

    Returns:
        sessionmaker: Factory producing ``Session`` objects
    """
    engine = create_engine(database_url or settings.database_url, **engine_kwargs)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)
