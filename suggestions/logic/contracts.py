"""
Data Contracts for the Suggestion Engine

Defines Pydantic models for the per-athlete RuleContext (input), the transient
SuggestionData candidates rules produce, and the persisted SuggestionRecord
view the lifecycle logic works on.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_GRADE_LEVEL, Urgency


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# CONTEXT RECORDS
# =============================================================================
# Source rows arrive from an external data layer with arbitrary extra columns.
# Every field is optional; dates are kept raw and parsed tolerantly by rules.

class _Record(BaseModel):
    class Config:
        frozen = True
        extra = "allow"


class SchoolRecord(_Record):
    id: Optional[str] = None
    name: Optional[str] = None
    priority: Optional[str] = None
    priority_tier: Optional[str] = None
    status: Optional[str] = None
    division: Optional[str] = None
    fit_score: Optional[float] = None


class InteractionRecord(_Record):
    id: Optional[str] = None
    school_id: Optional[str] = None
    interaction_type: Optional[str] = None
    interaction_date: Any = None
    related_event_id: Optional[str] = None


class TaskRecord(_Record):
    id: Optional[str] = None
    title: Optional[str] = None
    grade_level: Optional[int] = None


class AthleteTaskRecord(_Record):
    task_id: Optional[str] = None
    athlete_id: Optional[str] = None
    status: Optional[str] = None


class VideoRecord(_Record):
    id: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    health_status: Optional[str] = None


class EventRecord(_Record):
    id: Optional[str] = None
    name: Optional[str] = None
    event_date: Any = None
    attended: bool = False
    school_id: Optional[str] = None


class AthleteAttributes(_Record):
    grade_level: Optional[int] = None
    graduation_year: Optional[int] = None


# =============================================================================
# INPUT CONTRACT
# =============================================================================

class RuleContext(BaseModel):
    """
    Read-only snapshot of one athlete's recruiting data.

    Built once per evaluation pass. Missing collections are empty, never
    errors. `now` pins the evaluation instant so that evaluating the same
    context twice always gives the same suggestions.
    """
    athlete_id: str
    athlete: AthleteAttributes = Field(default_factory=AthleteAttributes)
    schools: Tuple[SchoolRecord, ...] = ()
    interactions: Tuple[InteractionRecord, ...] = ()
    tasks: Tuple[TaskRecord, ...] = ()
    athlete_tasks: Tuple[AthleteTaskRecord, ...] = ()
    videos: Tuple[VideoRecord, ...] = ()
    events: Tuple[EventRecord, ...] = ()
    now: datetime = Field(default_factory=_utcnow)

    class Config:
        frozen = True

    @field_validator(
        "schools", "interactions", "tasks", "athlete_tasks", "videos", "events",
        mode="before",
    )
    @classmethod
    def _none_is_empty(cls, value):
        return () if value is None else value

    @field_validator("athlete", mode="before")
    @classmethod
    def _none_is_blank_athlete(cls, value):
        return {} if value is None else value

    @field_validator("now")
    @classmethod
    def _aware_now(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def grade_level(self) -> int:
        if self.athlete.grade_level is None:
            return DEFAULT_GRADE_LEVEL
        return self.athlete.grade_level


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class SuggestionData(BaseModel):
    """A transient candidate suggestion produced by a rule."""
    rule_type: str
    urgency: Urgency
    message: str
    action_type: Optional[str] = None
    related_school_id: Optional[str] = None
    related_task_id: Optional[str] = None
    condition_snapshot: Optional[Dict[str, Any]] = None
    reappeared: bool = False
    previous_suggestion_id: Optional[str] = None

    class Config:
        use_enum_values = True


class SuggestionRecord(BaseModel):
    """Persisted suggestion row, as seen by the lifecycle logic."""
    id: str
    athlete_id: str
    rule_type: str
    urgency: str
    message: str
    action_type: Optional[str] = None
    related_school_id: Optional[str] = None
    related_task_id: Optional[str] = None
    dismissed: bool = False
    dismissed_at: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    pending_surface: bool = True
    surfaced_at: Optional[datetime] = None
    condition_snapshot: Optional[Dict[str, Any]] = None
    reappeared: bool = False
    previous_suggestion_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_active(self) -> bool:
        return not self.dismissed and not self.completed

    @property
    def state(self) -> str:
        if self.completed:
            return "completed"
        if self.dismissed:
            return "dismissed"
        if self.reappeared:
            return "reappeared-active"
        return "active"


class GenerateResult(BaseModel):
    """Rows actually inserted by one generate_suggestions pass."""
    count: int = 0
    ids: List[str] = Field(default_factory=list)


class TriggerUpdateResult(BaseModel):
    generated: int = 0
    surfaced: int = 0
    reason: str
    ids: List[str] = Field(default_factory=list)
