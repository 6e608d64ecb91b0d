"""
SQLAlchemy ORM models -- deal-tracking schema.

Tables
------
startups            -- startups in the deal pipeline, with score and derived rank
threshold_issues    -- risk items (deal breakers / red flags) owned by a startup
user_shortlists     -- per-user bookmarks against startups
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Startups
# ---------------------------------------------------------------------------

class Startup(Base):
    __tablename__ = "startups"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(512), nullable=False, index=True)
    sector = Column(String(128), default="", index=True)
    stage = Column(String(128), default="")
    country = Column(String(128), default="")
    description = Column(Text, default="")
    team = Column(Text, default="")
    metrics = Column(Text, default="")
    pipeline_stage = Column(String(64), default="Deal Flow", index=True)

    score = Column(Float, nullable=False, default=0, index=True)
    # Derived: only written by the rank recalculation
    rank = Column(Integer, nullable=True, index=True)

    ai_scores = Column(JSON, nullable=True)
    rationale = Column(JSON, nullable=True)
    detailed_metrics = Column(JSON, nullable=True)
    feedback = Column(JSON, nullable=True)
    initial_assessment = Column(JSON, nullable=True)

    # Research sections
    company_info = Column(JSON, nullable=True)
    market_info = Column(JSON, nullable=True)
    product_info = Column(JSON, nullable=True)
    business_model_info = Column(JSON, nullable=True)
    sales_info = Column(JSON, nullable=True)
    team_info = Column(JSON, nullable=True)
    competitive_info = Column(JSON, nullable=True)
    risk_info = Column(JSON, nullable=True)
    opportunity_info = Column(JSON, nullable=True)

    investment_scorecard = Column(JSON, nullable=True)
    investment_decision = Column(JSON, nullable=True)
    documents = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    threshold_issues = relationship(
        "ThresholdIssue",
        back_populates="startup",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ThresholdIssue.created_at",
    )
    shortlists = relationship(
        "UserShortlist",
        back_populates="startup",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_startups_score_name", "score", "name"),
    )
    __mapper_args__ = {"eager_defaults": True}


class ThresholdIssue(Base):
    __tablename__ = "threshold_issues"

    id = Column(String(64), primary_key=True, default=_new_id)
    startup_id = Column(
        String(64),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category = Column(String(64), nullable=False)
    issue = Column(Text, nullable=False)
    risk_rating = Column(String(16), nullable=False)
    mitigation = Column(Text, nullable=False)
    status = Column(String(32), default="Open")
    source = Column(String(32), default="Manual")  # Manual, AI
    identified_date = Column(String(10), nullable=True)  # YYYY-MM-DD

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    startup = relationship("Startup", back_populates="threshold_issues")

    __mapper_args__ = {"eager_defaults": True}


# ---------------------------------------------------------------------------
# Shortlists
# ---------------------------------------------------------------------------

class UserShortlist(Base):
    __tablename__ = "user_shortlists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Identity lives with the external provider, so no users table here
    user_id = Column(String(128), nullable=False, index=True)
    startup_id = Column(
        String(64),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=func.now())

    startup = relationship("Startup", back_populates="shortlists")

    __table_args__ = (
        UniqueConstraint("user_id", "startup_id", name="uq_shortlist_user_startup"),
    )
    __mapper_args__ = {"eager_defaults": True}
