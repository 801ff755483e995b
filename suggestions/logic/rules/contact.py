"""
Contact Rules

Rules that watch for missing follow-through with schools: stale contact with
priority schools, events without a follow-up, and neglected top choices.
"""

from typing import Any, Dict, List, Optional

from ..constants import (
    ACTIVE_PURSUIT_STATUSES,
    ActionType,
    EVENT_FOLLOW_UP_WINDOW_DAYS,
    INTERACTION_GAP_DAYS,
    INTERACTION_GAP_HIGH_DAYS,
    INTERACTION_GAP_REFIRE_GROWTH_DAYS,
    PRIORITY_REMINDER_DAYS,
    PRIORITY_SCHOOL_TIERS,
    REAPPEARANCE_COOLDOWN_DAYS,
    RuleType,
    TOP_PRIORITY_TIER,
    Urgency,
)
from ..contracts import RuleContext, SchoolRecord, SuggestionData, SuggestionRecord
from .base import (
    Rule,
    days_between,
    latest_interaction_at,
    parse_timestamp,
    school_label,
    school_priority,
    whole_days_between,
)


def days_since_contact(context: RuleContext, school_id: Optional[str]) -> Optional[int]:
    """Whole days since the last dated interaction with a school, None if never."""
    last = latest_interaction_at(context.interactions, school_id)
    if last is None:
        return None
    return whole_days_between(last, context.now)


def _find_school(context: RuleContext, school_id: Optional[str]) -> Optional[SchoolRecord]:
    for school in context.schools:
        if school.id == school_id:
            return school
    return None


class InteractionGapRule(Rule):
    """
    Flags every priority A/B school in active pursuit that has gone three
    weeks without contact. Emits one suggestion per school.
    """

    id = RuleType.INTERACTION_GAP.value
    name = "Interaction Gap Detected"
    description = f"Priority school has not been contacted in {INTERACTION_GAP_DAYS}+ days"

    def evaluate(self, context: RuleContext) -> Optional[List[SuggestionData]]:
        suggestions = []
        for school in context.schools:
            if school_priority(school) not in PRIORITY_SCHOOL_TIERS:
                continue
            if school.status not in ACTIVE_PURSUIT_STATUSES:
                continue

            days = days_since_contact(context, school.id)
            if days is not None and days < INTERACTION_GAP_DAYS:
                continue

            if days is None:
                urgency = Urgency.HIGH
                message = (
                    f"You haven't contacted {school_label(school)} yet. "
                    "Reach out to their coaches to get on their radar!"
                )
            else:
                urgency = Urgency.HIGH if days >= INTERACTION_GAP_HIGH_DAYS else Urgency.MEDIUM
                message = (
                    f"It's been {days} days since you contacted {school_label(school)}. "
                    "Stay on their radar!"
                )

            suggestions.append(SuggestionData(
                rule_type=self.id,
                urgency=urgency,
                message=message,
                action_type=ActionType.LOG_INTERACTION.value,
                related_school_id=school.id,
                condition_snapshot=self.create_condition_snapshot(context, school.id),
            ))

        return suggestions or None

    def create_condition_snapshot(
        self,
        context: RuleContext,
        related_school_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        school = _find_school(context, related_school_id)
        return {
            "days_since_contact": days_since_contact(context, related_school_id),
            "school_priority": school_priority(school) if school else None,
            "school_status": school.status if school else None,
        }

    def should_re_evaluate(self, dismissed: SuggestionRecord, context: RuleContext) -> bool:
        """
        A dismissed gap comes back only when something material changed:
        the school's priority moved, or the gap grew by two more weeks.

        Also checks the dismissal cooldown itself so the hook gives the same
        answer when called on its own, outside the duplicate filter.
        """
        dismissed_at = parse_timestamp(dismissed.dismissed_at)
        if dismissed_at is None:
            return False
        if days_between(dismissed_at, context.now) < REAPPEARANCE_COOLDOWN_DAYS:
            return False

        school = _find_school(context, dismissed.related_school_id)
        if school is None:
            return False

        snapshot = dismissed.condition_snapshot or {}
        if school_priority(school) != snapshot.get("school_priority"):
            return True

        previous = snapshot.get("days_since_contact")
        current = days_since_contact(context, school.id)
        if current is None:
            # Still never contacted; the gap has kept growing since dismissal
            return True
        if previous is None:
            return False
        return current - previous >= INTERACTION_GAP_REFIRE_GROWTH_DAYS


class EventFollowUpRule(Rule):
    """An attended event in the last week with nothing logged after it."""

    id = RuleType.EVENT_FOLLOW_UP.value
    name = "Event Follow-Up Needed"
    description = "Attended event but no follow-up interaction logged"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        for event in context.events:
            if not event.attended:
                continue
            event_at = parse_timestamp(event.event_date)
            if event_at is None or event_at > context.now:
                continue
            if whole_days_between(event_at, context.now) > EVENT_FOLLOW_UP_WINDOW_DAYS:
                continue

            followed_up = False
            for interaction in context.interactions:
                if event.id is not None and interaction.related_event_id == event.id:
                    followed_up = True
                    break
                interaction_at = parse_timestamp(interaction.interaction_date)
                if interaction_at is not None and interaction_at > event_at:
                    followed_up = True
                    break

            if not followed_up:
                return SuggestionData(
                    rule_type=self.id,
                    urgency=Urgency.MEDIUM,
                    message=(
                        f"Follow up on {event.name or 'your recent event'} with a "
                        "thank-you email to coaches you met"
                    ),
                    action_type=ActionType.LOG_INTERACTION.value,
                    related_school_id=event.school_id,
                )
        return None


class PrioritySchoolReminderRule(Rule):
    id = RuleType.PRIORITY_SCHOOL_REMINDER.value
    name = "Priority School Check-In"
    description = "Top priority school needs attention"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        for school in context.schools:
            if school_priority(school) != TOP_PRIORITY_TIER:
                continue
            days = days_since_contact(context, school.id)
            if days is not None and days < PRIORITY_REMINDER_DAYS:
                continue
            return SuggestionData(
                rule_type=self.id,
                urgency=Urgency.HIGH,
                message=f"{school_label(school)} is your top priority. Check in with coaches this week.",
                action_type=ActionType.LOG_INTERACTION.value,
                related_school_id=school.id,
            )
        return None
