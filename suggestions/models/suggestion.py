import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON, Index, ForeignKey

from .base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Suggestion(Base):
    __tablename__ = "suggestions"
    __table_args__ = (
        Index("ix_suggestions_athlete_rule", "athlete_id", "rule_type"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    athlete_id = Column(String(64), nullable=False, index=True)

    # Origin
    rule_type = Column(String(64), nullable=False)
    urgency = Column(String(16), nullable=False, default="medium")
    message = Column(Text, nullable=False)
    action_type = Column(String(32))
    related_school_id = Column(String(64))
    related_task_id = Column(String(64))

    # Lifecycle
    dismissed = Column(Boolean, nullable=False, default=False)
    dismissed_at = Column(DateTime(timezone=True))
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True))
    pending_surface = Column(Boolean, nullable=False, default=True)
    surfaced_at = Column(DateTime(timezone=True))

    # Reappearance
    condition_snapshot = Column(JSON)
    reappeared = Column(Boolean, nullable=False, default=False)
    previous_suggestion_id = Column(String(36), ForeignKey("suggestions.id"))

    # Meta
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
