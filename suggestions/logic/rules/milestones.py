"""
Recruiting Timeline Rules

Grade-gated rules tied to where the athlete should be in the recruiting
calendar: NCAA registration, school list size, official visits, formal
outreach and showcase attendance.
"""

from typing import Any, Dict, Optional

from ..constants import (
    ActionType,
    FORMAL_OUTREACH_GRADES,
    FORMAL_OUTREACH_MAX_GAP_DAYS,
    NCAA_REGISTRATION_DIVISIONS,
    NCAA_REGISTRATION_GRADE,
    NCAA_REGISTRATION_TASK_ID,
    OFFICIAL_VISIT_GRADES,
    OFFICIAL_VISIT_KEYWORDS,
    OFFICIAL_VISIT_TARGET,
    PRIORITY_SCHOOL_TIERS,
    RuleType,
    SCHOOL_LIST_GRADES,
    SCHOOL_LIST_TARGET,
    SCHOOL_LIST_URGENCY_BY_GRADE,
    SHOWCASE_GRADES,
    SHOWCASE_WINDOW_MONTHS,
    UPPERCLASS_URGENCY_BY_GRADE,
    Urgency,
)
from ..contracts import RuleContext, SuggestionData
from .base import (
    Rule,
    last_contact_by_school,
    latest_timestamp,
    normalize_division,
    school_priority,
    subtract_months,
    whole_days_between,
)


def _in_grades(grade: int, grades) -> bool:
    low, high = grades
    return low <= grade <= high


class NcaaRegistrationRule(Rule):
    """Juniors targeting DI/DII programs must register with the Eligibility Center."""

    id = RuleType.NCAA_REGISTRATION.value
    name = "NCAA Eligibility Registration"
    description = "Junior with DI or DII schools who has not completed NCAA registration"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        if context.grade_level != NCAA_REGISTRATION_GRADE:
            return None

        has_ncaa_school = any(
            normalize_division(s.division) in NCAA_REGISTRATION_DIVISIONS
            for s in context.schools
        )
        if not has_ncaa_school:
            return None

        registered = any(
            t.task_id == NCAA_REGISTRATION_TASK_ID and t.status == "completed"
            for t in context.athlete_tasks
        )
        if registered:
            return None

        return SuggestionData(
            rule_type=self.id,
            urgency=Urgency.HIGH,
            message=(
                "You have Division I or II schools on your list. "
                "Register with the NCAA Eligibility Center now."
            ),
            action_type=ActionType.LOG_INTERACTION.value,
            related_task_id=NCAA_REGISTRATION_TASK_ID,
        )


class SchoolListRule(Rule):
    """Sophomores and juniors should be tracking a broad list of schools."""

    id = RuleType.SCHOOL_LIST.value
    name = "Build Your School List"
    description = f"Fewer than {SCHOOL_LIST_TARGET} schools tracked in grades 10-11"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        grade = context.grade_level
        if not _in_grades(grade, SCHOOL_LIST_GRADES):
            return None

        count = len(context.schools)
        if count >= SCHOOL_LIST_TARGET:
            return None

        return SuggestionData(
            rule_type=self.id,
            urgency=SCHOOL_LIST_URGENCY_BY_GRADE[grade],
            message=(
                f"You're tracking {count} schools. Aim for at least "
                f"{SCHOOL_LIST_TARGET} to keep your options open."
            ),
            action_type=ActionType.ADD_SCHOOL.value,
            condition_snapshot=self.create_condition_snapshot(context),
        )

    def create_condition_snapshot(self, context: RuleContext, related_school_id=None) -> Dict[str, Any]:
        return {
            "school_count": len(context.schools),
            "grade_level": context.grade_level,
        }


class OfficialVisitRule(Rule):
    """Upperclassmen with priority schools should be scheduling official visits."""

    id = RuleType.OFFICIAL_VISIT.value
    name = "Schedule Official Visits"
    description = f"Fewer than {OFFICIAL_VISIT_TARGET} visits logged with priority schools"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        grade = context.grade_level
        if not _in_grades(grade, OFFICIAL_VISIT_GRADES):
            return None

        if not any(school_priority(s) in PRIORITY_SCHOOL_TIERS for s in context.schools):
            return None

        visits = sum(
            1 for i in context.interactions
            if i.interaction_type
            and any(k in i.interaction_type.lower() for k in OFFICIAL_VISIT_KEYWORDS)
        )
        if visits >= OFFICIAL_VISIT_TARGET:
            return None

        return SuggestionData(
            rule_type=self.id,
            urgency=UPPERCLASS_URGENCY_BY_GRADE[grade],
            message=(
                f"You've logged {visits} campus visit{'s' if visits != 1 else ''}. "
                "Plan official visits to your top schools."
            ),
            action_type=ActionType.LOG_INTERACTION.value,
        )


class FormalOutreachRule(Rule):
    """Juniors and seniors should keep regular contact with every priority school."""

    id = RuleType.FORMAL_OUTREACH.value
    name = "Formal Outreach Needed"
    description = (
        f"A priority school has gone more than {FORMAL_OUTREACH_MAX_GAP_DAYS} days without contact"
    )

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        grade = context.grade_level
        if not _in_grades(grade, FORMAL_OUTREACH_GRADES):
            return None

        priority_schools = [
            s for s in context.schools if school_priority(s) in PRIORITY_SCHOOL_TIERS
        ]
        if not priority_schools:
            return None

        last_contact = last_contact_by_school(context)
        overdue = 0
        for school in priority_schools:
            contacted_at = last_contact.get(school.id)
            if contacted_at is None:
                overdue += 1
            elif whole_days_between(contacted_at, context.now) > FORMAL_OUTREACH_MAX_GAP_DAYS:
                overdue += 1

        if not overdue:
            return None

        return SuggestionData(
            rule_type=self.id,
            urgency=UPPERCLASS_URGENCY_BY_GRADE[grade],
            message=(
                f"{overdue} of your priority schools haven't heard from you in over "
                f"{FORMAL_OUTREACH_MAX_GAP_DAYS} days. Send a formal update to their coaches."
            ),
            action_type=ActionType.LOG_INTERACTION.value,
        )


class ShowcaseAttendanceRule(Rule):
    """Sophomores and juniors should attend a showcase or camp at least every six months."""

    id = RuleType.SHOWCASE_ATTENDANCE.value
    name = "Attend a Showcase"
    description = f"No event attended in the last {SHOWCASE_WINDOW_MONTHS} months"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        if not _in_grades(context.grade_level, SHOWCASE_GRADES):
            return None

        latest = latest_timestamp(e.event_date for e in context.events)
        if latest is not None:
            cutoff = subtract_months(context.now, SHOWCASE_WINDOW_MONTHS)
            # Exactly at the cutoff still counts as recent
            if latest >= cutoff:
                return None

        return SuggestionData(
            rule_type=self.id,
            urgency=Urgency.MEDIUM,
            message=(
                "You haven't been to a showcase or camp in over "
                f"{SHOWCASE_WINDOW_MONTHS} months. Find one where coaches can see you play."
            ),
            action_type=ActionType.LOG_INTERACTION.value,
            condition_snapshot=self.create_condition_snapshot(context),
        )

    def create_condition_snapshot(self, context: RuleContext, related_school_id=None) -> Dict[str, Any]:
        latest = latest_timestamp(e.event_date for e in context.events)
        return {
            "event_count": len(context.events),
            "last_event_date": latest.isoformat() if latest else None,
        }
