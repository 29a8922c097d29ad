from __future__ import annotations

"""SQLAlchemy ORM models for FounderOS persistence.

These ORM models define the SQL schema used by the SQL repository
implementation in ``founderos_ai.agent_core.repos.sql``.

Two groups of tables live here:

- Audit and messaging: ``agent_executions`` (one row per agent invocation)
  and ``proactive_messages`` (surfaced proactive events, also used as the
  dedup seen-set).
- Founder workspace data read and written by agents through the user-scoped
  data store: ``users``, ``roadmap_items``, ``contacts``, ``documents``,
  ``skills``, ``team_members``, ``funding_rounds``, ``investors`` and
  ``marketing_platforms``. Every workspace table except ``users`` carries a ``user_id``
  owner column.

JSON columns are stored as ``JSONB`` on PostgreSQL and as plain ``JSON``
elsewhere (SQLite in tests).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JsonType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class AgentExecutionRow(Base):
    """Row model for ``agent_executions``.

    Append-once, finish-once audit record of an agent invocation.

    Key fields:

    - ``status``: pending/running/completed/failed.
    - ``output`` / ``error_message``: populated on the terminal write.
    - ``duration_ms``: wall time between start and finish.
    """

    __tablename__ = "agent_executions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    agent_id: Mapped[str] = mapped_column(String(100), index=True)
    agent_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20))
    input: Mapped[Dict[str, Any]] = mapped_column(JsonType, default=dict)
    output: Mapped[Optional[Dict[str, Any]]] = mapped_column(JsonType, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tokens_used: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ProactiveMessageRow(Base):
    """Row model for ``proactive_messages``.

    ``fingerprint`` identifies the underlying event; rows created within the
    dedup window act as the per-user seen-set.
    """

    __tablename__ = "proactive_messages"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    fingerprint: Mapped[str] = mapped_column(String(255), index=True)

    event_type: Mapped[str] = mapped_column(String(64))
    priority: Mapped[str] = mapped_column(String(16))
    message: Mapped[str] = mapped_column(Text)

    suggested_agent_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    suggested_input: Mapped[Dict[str, Any]] = mapped_column(JsonType, default=dict)
    payload: Mapped[Dict[str, Any]] = mapped_column(JsonType, default=dict)

    status: Mapped[str] = mapped_column(String(16), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class UserRow(Base):
    """Row model for ``users``: the founder profile. Owner column is ``id``."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    stage: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    current_goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    building_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_market: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    value_proposition: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    hours_per_week: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    funds_available: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    budget: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    monthly_burn: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    onboarding_complete: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now, onupdate=_utc_now)


class RoadmapItemRow(Base):
    """Row model for ``roadmap_items``. ``status`` is todo/in_progress/done."""

    __tablename__ = "roadmap_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="todo")
    priority: Mapped[int] = mapped_column(Integer, default=0)

    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now, onupdate=_utc_now)


class ContactRow(Base):
    """Row model for ``contacts``: the founder's network."""

    __tablename__ = "contacts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    relationship_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    investor_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    investor_category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JsonType, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    last_contacted: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)


class DocumentRow(Base):
    """Row model for ``documents``: generated or uploaded founder documents."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    name: Mapped[str] = mapped_column(String(500))
    type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now, onupdate=_utc_now)


class SkillRow(Base):
    """Row model for ``skills``."""

    __tablename__ = "skills"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    proficiency: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)


class TeamMemberRow(Base):
    """Row model for ``team_members``. Founders carry ``role == "Founder"``."""

    __tablename__ = "team_members"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    equity_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)


class FundingRoundRow(Base):
    """Row model for ``funding_rounds``. ``status`` is planned/raising/closed."""

    __tablename__ = "funding_rounds"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    round_name: Mapped[str] = mapped_column(String(128))
    status: Mapped[str] = mapped_column(String(32), default="planned")
    target_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    amount_raised: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    valuation: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lead_investor: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)


class InvestorRow(Base):
    """Row model for ``investors``: committed or closed investors."""

    __tablename__ = "investors"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    name: Mapped[str] = mapped_column(String(255))
    firm: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    investor_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    commitment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    investment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)


class MarketingPlatformRow(Base):
    """Row model for ``marketing_platforms``: audience reach per channel."""

    __tablename__ = "marketing_platforms"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    platform: Mapped[str] = mapped_column(String(64))
    reach: Mapped[int] = mapped_column(Integer, default=0)
    engagement_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
