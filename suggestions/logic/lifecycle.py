"""
Suggestion Lifecycle

States: active, dismissed, completed, reappeared-active.

    active     -> dismissed   (user action)
    active     -> completed   (condition resolved)
    dismissed  -> new linked reappeared row (cooldown elapsed and rule re-fires)

Completed is terminal. A dismissed row is never reactivated in place; its
history is kept through `previous_suggestion_id` on the new row.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from .constants import (
    REAPPEARANCE_COOLDOWN_DAYS,
    URGENCY_ESCALATION,
    URGENCY_RANK,
    Urgency,
)
from .contracts import SuggestionData, SuggestionRecord
from .errors import SuggestionStateError
from .rules.base import days_between, parse_timestamp

logger = logging.getLogger(__name__)


def should_re_evaluate_dismissed_suggestion(
    suggestion: SuggestionRecord,
    now: Optional[datetime] = None,
) -> bool:
    """
    Generic cooldown gate for a dismissed suggestion.

    Args:
        suggestion: Persisted suggestion to check
        now: Evaluation instant (defaults to the current UTC time)

    Returns:
        True only for a dismissed, uncompleted, not-yet-reappeared suggestion
        dismissed at least 14 days ago.
    """
    if not suggestion.dismissed or suggestion.completed:
        return False
    # One reappearance per dismissal
    if suggestion.reappeared:
        return False

    dismissed_at = parse_timestamp(suggestion.dismissed_at)
    if dismissed_at is None:
        return False

    now = parse_timestamp(now) or datetime.now(timezone.utc)
    return days_between(dismissed_at, now) >= REAPPEARANCE_COOLDOWN_DAYS


def escalate_urgency(current: Optional[str]) -> str:
    """One step up: low -> medium -> high. Unknown values go straight to high."""
    if isinstance(current, Urgency):
        current = current.value
    return URGENCY_ESCALATION.get(current, Urgency.HIGH.value)


def build_reappeared_suggestion(
    candidate: SuggestionData,
    dismissed: SuggestionRecord,
) -> SuggestionData:
    """
    Turn a re-fired candidate into the linked successor of a dismissed row.

    Urgency is escalated from the dismissed row's urgency and never ends up
    below what the rule asked for this time.
    """
    escalated = escalate_urgency(dismissed.urgency)
    if URGENCY_RANK.get(candidate.urgency, 0) > URGENCY_RANK[escalated]:
        escalated = candidate.urgency

    return candidate.model_copy(update={
        "urgency": escalated,
        "reappeared": True,
        "previous_suggestion_id": dismissed.id,
    })


# =============================================================================
# USER ACTIONS
# =============================================================================

def dismiss_suggestion(gateway, suggestion_id: str, now: Optional[datetime] = None) -> SuggestionRecord:
    """
    Dismiss an active suggestion. Dismissing an already dismissed row is a
    no-op; a completed row cannot be dismissed.
    """
    record = _require(gateway, suggestion_id)
    if record.completed:
        raise SuggestionStateError(f"Suggestion {suggestion_id} is completed and cannot be dismissed")
    if record.dismissed:
        return record

    now = now or datetime.now(timezone.utc)
    logger.info(f"Dismissing suggestion {suggestion_id} ({record.rule_type})")
    return gateway.mark_dismissed(suggestion_id, now)


def complete_suggestion(gateway, suggestion_id: str, now: Optional[datetime] = None) -> SuggestionRecord:
    """Mark a suggestion completed. Completed is terminal."""
    record = _require(gateway, suggestion_id)
    if record.completed:
        raise SuggestionStateError(f"Suggestion {suggestion_id} is already completed")

    now = now or datetime.now(timezone.utc)
    logger.info(f"Completing suggestion {suggestion_id} ({record.rule_type})")
    return gateway.mark_completed(suggestion_id, now)


def _require(gateway, suggestion_id: str) -> SuggestionRecord:
    record = gateway.get(suggestion_id)
    if record is None:
        raise SuggestionStateError(f"Suggestion {suggestion_id} not found")
    return record
