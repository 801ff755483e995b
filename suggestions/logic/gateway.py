"""
Suggestion Persistence Gateway

The engine talks to storage only through SuggestionGateway.
SqlAlchemySuggestionGateway is the database-backed implementation; it works
inside a session owned by the caller (see db.get_db), flushing so new rows get
their ids but leaving commit and rollback to the session owner.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from suggestions.models import Suggestion
from .constants import ActionType
from .contracts import SuggestionData, SuggestionRecord
from .errors import PersistenceError

logger = logging.getLogger(__name__)


class SuggestionGateway(ABC):
    """Storage operations the suggestion engine needs."""

    @abstractmethod
    def list_for_athlete(self, athlete_id: str) -> List[SuggestionRecord]:
        ...

    @abstractmethod
    def insert(self, athlete_id: str, data: SuggestionData) -> SuggestionRecord:
        ...

    @abstractmethod
    def get(self, suggestion_id: str) -> Optional[SuggestionRecord]:
        ...

    @abstractmethod
    def mark_dismissed(self, suggestion_id: str, when: datetime) -> SuggestionRecord:
        ...

    @abstractmethod
    def mark_completed(self, suggestion_id: str, when: datetime) -> SuggestionRecord:
        ...

    @abstractmethod
    def complete_matching(
        self,
        athlete_id: str,
        action_type: str,
        school_id: Optional[str],
        when: datetime,
    ) -> List[str]:
        """Complete active suggestions with this action type for the school."""

    @abstractmethod
    def list_pending(self, athlete_id: str) -> List[SuggestionRecord]:
        ...

    @abstractmethod
    def count_surfaced_active(self, athlete_id: str) -> int:
        ...

    @abstractmethod
    def mark_surfaced(self, suggestion_ids: List[str], when: datetime) -> None:
        ...


def _to_record(row: Suggestion) -> SuggestionRecord:
    return SuggestionRecord.model_validate(row)


class SqlAlchemySuggestionGateway(SuggestionGateway):
    """SuggestionGateway on the `suggestions` table."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_athlete(self, athlete_id: str) -> List[SuggestionRecord]:
        try:
            rows = self.db.execute(
                select(Suggestion)
                .where(Suggestion.athlete_id == athlete_id)
                .order_by(Suggestion.created_at)
            ).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load suggestions for athlete {athlete_id}") from e
        return [_to_record(r) for r in rows]

    def insert(self, athlete_id: str, data: SuggestionData) -> SuggestionRecord:
        row = Suggestion(
            athlete_id=athlete_id,
            rule_type=data.rule_type,
            urgency=data.urgency,
            message=data.message,
            action_type=data.action_type,
            related_school_id=data.related_school_id,
            related_task_id=data.related_task_id,
            condition_snapshot=data.condition_snapshot,
            reappeared=data.reappeared,
            previous_suggestion_id=data.previous_suggestion_id,
            dismissed=False,
            completed=False,
            pending_surface=True,
        )
        try:
            self.db.add(row)
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to insert {data.rule_type} suggestion for athlete {athlete_id}"
            ) from e
        return _to_record(row)

    def get(self, suggestion_id: str) -> Optional[SuggestionRecord]:
        row = self._get_row(suggestion_id)
        return _to_record(row) if row is not None else None

    def mark_dismissed(self, suggestion_id: str, when: datetime) -> SuggestionRecord:
        return self._update(suggestion_id, dismissed=True, dismissed_at=when)

    def mark_completed(self, suggestion_id: str, when: datetime) -> SuggestionRecord:
        return self._update(suggestion_id, completed=True, completed_at=when)

    def complete_matching(
        self,
        athlete_id: str,
        action_type: str = ActionType.LOG_INTERACTION.value,
        school_id: Optional[str] = None,
        when: Optional[datetime] = None,
    ) -> List[str]:
        query = select(Suggestion).where(
            Suggestion.athlete_id == athlete_id,
            Suggestion.action_type == action_type,
            Suggestion.dismissed.is_(False),
            Suggestion.completed.is_(False),
        )
        if school_id is not None:
            # Athlete-wide suggestions (no school) are resolved by any interaction
            query = query.where(
                (Suggestion.related_school_id == school_id)
                | (Suggestion.related_school_id.is_(None))
            )
        try:
            rows = self.db.execute(query).scalars().all()
            for row in rows:
                row.completed = True
                row.completed_at = when
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to complete suggestions for athlete {athlete_id}") from e
        return [r.id for r in rows]

    def list_pending(self, athlete_id: str) -> List[SuggestionRecord]:
        try:
            rows = self.db.execute(
                select(Suggestion).where(
                    Suggestion.athlete_id == athlete_id,
                    Suggestion.pending_surface.is_(True),
                    Suggestion.dismissed.is_(False),
                    Suggestion.completed.is_(False),
                )
            ).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load pending suggestions for athlete {athlete_id}") from e
        return [_to_record(r) for r in rows]

    def count_surfaced_active(self, athlete_id: str) -> int:
        try:
            return self.db.execute(
                select(func.count()).select_from(Suggestion).where(
                    Suggestion.athlete_id == athlete_id,
                    Suggestion.pending_surface.is_(False),
                    Suggestion.dismissed.is_(False),
                    Suggestion.completed.is_(False),
                )
            ).scalar_one()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count visible suggestions for athlete {athlete_id}") from e

    def mark_surfaced(self, suggestion_ids: List[str], when: datetime) -> None:
        if not suggestion_ids:
            return
        try:
            rows = self.db.execute(
                select(Suggestion).where(Suggestion.id.in_(suggestion_ids))
            ).scalars().all()
            for row in rows:
                row.pending_surface = False
                row.surfaced_at = when
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to mark suggestions surfaced") from e

    # -------------------------------------------------------------------------

    def _get_row(self, suggestion_id: str) -> Optional[Suggestion]:
        try:
            return self.db.execute(
                select(Suggestion).where(Suggestion.id == suggestion_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load suggestion {suggestion_id}") from e

    def _update(self, suggestion_id: str, **fields) -> SuggestionRecord:
        row = self._get_row(suggestion_id)
        if row is None:
            raise PersistenceError(f"Suggestion {suggestion_id} does not exist")
        try:
            for key, value in fields.items():
                setattr(row, key, value)
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update suggestion {suggestion_id}") from e
        return _to_record(row)
