"""
Duplicate Filter

Decides what to do with one candidate given the athlete's already persisted
suggestions. The existing rows are always passed in explicitly; nothing here
caches state between calls.
"""

import inspect
import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel

from .constants import COMPLETED_DUPLICATE_WINDOW_DAYS
from .contracts import RuleContext, SuggestionData, SuggestionRecord
from .lifecycle import build_reappeared_suggestion, should_re_evaluate_dismissed_suggestion
from .rules.base import Rule, days_between, parse_timestamp

logger = logging.getLogger(__name__)

INSERT = "insert"
REAPPEAR = "reappear"
SKIP = "skip"


class FilterDecision(BaseModel):
    action: str
    suggestion: Optional[SuggestionData] = None
    reason: str = ""


def matching_records(
    candidate: SuggestionData,
    existing: Sequence[SuggestionRecord],
) -> List[SuggestionRecord]:
    """Rows for the same rule and the same related school/task."""
    return [
        r for r in existing
        if r.rule_type == candidate.rule_type
        and r.related_school_id == candidate.related_school_id
        and r.related_task_id == candidate.related_task_id
    ]


def _latest_dismissed(matches: Sequence[SuggestionRecord]) -> Optional[SuggestionRecord]:
    latest = None
    latest_at = None
    for record in matches:
        if not record.dismissed or record.completed:
            continue
        dismissed_at = parse_timestamp(record.dismissed_at)
        if latest is None or (
            dismissed_at is not None and (latest_at is None or dismissed_at > latest_at)
        ):
            latest, latest_at = record, dismissed_at
    return latest


async def filter_candidate(
    candidate: SuggestionData,
    rule: Optional[Rule],
    context: RuleContext,
    existing: Sequence[SuggestionRecord],
) -> FilterDecision:
    """
    Decide whether a candidate is inserted, reappears or is skipped.

    Args:
        candidate: Suggestion produced by a rule this pass
        rule: The rule that produced it (for its optional re-evaluation hook)
        context: Context the candidate was produced from
        existing: Every persisted suggestion for the athlete

    Returns:
        FilterDecision with the suggestion to insert, if any
    """
    matches = matching_records(candidate, existing)

    if any(r.is_active for r in matches):
        return FilterDecision(action=SKIP, reason="active duplicate")

    dismissed = _latest_dismissed(matches)
    successor = None
    if dismissed is not None:
        successor = next((r for r in existing if r.previous_suggestion_id == dismissed.id), None)
        # A completed successor closes the chain; the completion window below decides
        if successor is not None and not successor.completed:
            return FilterDecision(action=SKIP, reason=f"already reappeared from {dismissed.id}")

    if dismissed is not None and successor is None:
        if not should_re_evaluate_dismissed_suggestion(dismissed, context.now):
            return FilterDecision(action=SKIP, reason=f"dismissed {dismissed.id} still cooling down")

        rule_gate = getattr(rule, "should_re_evaluate", None)
        if rule_gate is not None:
            allowed = rule_gate(dismissed, context)
            if inspect.isawaitable(allowed):
                allowed = await allowed
            if not allowed:
                return FilterDecision(action=SKIP, reason=f"rule declined to re-evaluate {dismissed.id}")

        return FilterDecision(
            action=REAPPEAR,
            suggestion=build_reappeared_suggestion(candidate, dismissed),
            reason=f"reappearing from {dismissed.id}",
        )

    for record in matches:
        completed_at = parse_timestamp(record.completed_at)
        if record.completed and completed_at is not None:
            if days_between(completed_at, context.now) < COMPLETED_DUPLICATE_WINDOW_DAYS:
                return FilterDecision(action=SKIP, reason=f"completed {record.id} recently")

    return FilterDecision(action=INSERT, suggestion=candidate)
