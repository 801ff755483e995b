"""
Test the contact follow-through rules, including the interaction gap
re-evaluation hook.
"""

from datetime import timedelta

from suggestions.logic import SuggestionRecord
from suggestions.logic.rules import (
    EventFollowUpRule,
    InteractionGapRule,
    PrioritySchoolReminderRule,
)
from suggestions.tests.factories import NOW, days_ago, make_context


def _school(school_id="school-1", name="School 1", priority="A", status="interested", **extra):
    return dict(id=school_id, name=name, priority=priority, status=status, **extra)


def _contact(school_id, days):
    return {"id": f"int-{school_id}-{days}", "school_id": school_id, "interaction_date": days_ago(days)}


# =============================================================================
# INTERACTION GAP
# =============================================================================

class TestInteractionGap:
    rule = InteractionGapRule()

    def test_only_priority_a_and_b(self):
        context = make_context(
            schools=[
                _school("s1", priority="A"),
                _school("s2", priority="B"),
                _school("s3", priority="C"),
            ],
            interactions=[_contact("s1", 25), _contact("s2", 25), _contact("s3", 25)],
        )
        result = self.rule.evaluate(context)
        assert isinstance(result, list)
        assert [s.related_school_id for s in result] == ["s1", "s2"]

    def test_only_active_pursuit_statuses(self):
        context = make_context(
            schools=[
                _school("s1", status="interested"),
                _school("s2", status="committed"),
                _school("s3", status="not_interested"),
            ],
            interactions=[_contact("s1", 25), _contact("s2", 25), _contact("s3", 25)],
        )
        result = self.rule.evaluate(context)
        assert len(result) == 1

    def test_under_21_days_is_quiet(self):
        context = make_context(schools=[_school()], interactions=[_contact("school-1", 20)])
        assert self.rule.evaluate(context) is None

    def test_never_contacted_fires(self):
        result = self.rule.evaluate(make_context(schools=[_school()]))
        assert len(result) == 1
        assert result[0].urgency == "high"

    def test_one_suggestion_per_school(self):
        context = make_context(
            schools=[_school("s1"), _school("s2", status="contacted"), _school("s3", status="visited")],
            interactions=[_contact("s1", 22), _contact("s2", 40)],
        )
        assert len(self.rule.evaluate(context)) == 3

    def test_urgency_by_gap(self):
        medium = self.rule.evaluate(make_context(schools=[_school()], interactions=[_contact("school-1", 25)]))
        high = self.rule.evaluate(make_context(schools=[_school()], interactions=[_contact("school-1", 30)]))
        assert medium[0].urgency == "medium"
        assert high[0].urgency == "high"

    def test_message_names_school_and_days(self):
        context = make_context(
            schools=[_school(name="Harvard")],
            interactions=[_contact("school-1", 35)],
        )
        message = self.rule.evaluate(context)[0].message
        assert "Harvard" in message
        assert "35" in message

    def test_uses_latest_interaction(self):
        context = make_context(
            schools=[_school()],
            interactions=[_contact("school-1", 50), _contact("school-1", 5), _contact("school-1", 30)],
        )
        assert self.rule.evaluate(context) is None

    def test_snapshot_fields(self):
        context = make_context(schools=[_school()], interactions=[_contact("school-1", 20)])
        snapshot = self.rule.create_condition_snapshot(context, "school-1")
        assert snapshot == {"days_since_contact": 20, "school_priority": "A", "school_status": "interested"}

    def test_snapshot_reads_priority_tier(self):
        school = dict(id="school-1", name="School 1", priority_tier="A", status="interested")
        context = make_context(schools=[school], interactions=[_contact("school-1", 30)])
        assert self.rule.create_condition_snapshot(context, "school-1")["school_priority"] == "A"

    def test_suggestions_carry_snapshot(self):
        context = make_context(schools=[_school()], interactions=[_contact("school-1", 25)])
        assert self.rule.evaluate(context)[0].condition_snapshot["days_since_contact"] == 25


class TestInteractionGapReEvaluation:
    rule = InteractionGapRule()

    def _dismissed(self, dismissed_days_ago, snapshot=None):
        return SuggestionRecord(
            id="sug-1",
            athlete_id="athlete-123",
            rule_type="interaction-gap",
            urgency="medium",
            message="Test",
            related_school_id="school-1",
            dismissed=True,
            dismissed_at=NOW - timedelta(days=dismissed_days_ago),
            condition_snapshot=snapshot or {"days_since_contact": 21, "school_priority": "A"},
        )

    def test_false_when_dismissed_under_14_days(self):
        context = make_context(schools=[_school()], interactions=[_contact("school-1", 30)])
        assert self.rule.should_re_evaluate(self._dismissed(7), context) is False

    def test_true_when_gap_grew_14_days(self):
        context = make_context(schools=[_school()], interactions=[_contact("school-1", 35)])
        assert self.rule.should_re_evaluate(self._dismissed(21), context) is True

    def test_true_when_priority_changed(self):
        context = make_context(schools=[_school(priority="B")], interactions=[_contact("school-1", 30)])
        assert self.rule.should_re_evaluate(self._dismissed(21), context) is True

    def test_false_when_gap_grew_under_14_days(self):
        context = make_context(schools=[_school()], interactions=[_contact("school-1", 30)])
        assert self.rule.should_re_evaluate(self._dismissed(21), context) is False

    def test_false_when_school_removed(self):
        context = make_context(schools=[], interactions=[_contact("school-1", 60)])
        assert self.rule.should_re_evaluate(self._dismissed(21), context) is False


# =============================================================================
# EVENT FOLLOW-UP
# =============================================================================

class TestEventFollowUp:
    rule = EventFollowUpRule()

    def _event(self, days, attended=True, **extra):
        return dict(id="event-1", name="Summer Showcase", event_date=days_ago(days),
                    attended=attended, school_id="school-1", **extra)

    def test_recent_attended_event_without_follow_up(self):
        suggestion = self.rule.evaluate(make_context(events=[self._event(3)]))
        assert suggestion.urgency == "medium"
        assert suggestion.related_school_id == "school-1"
        assert "Summer Showcase" in suggestion.message

    def test_not_attended_is_ignored(self):
        assert self.rule.evaluate(make_context(events=[self._event(3, attended=False)])) is None

    def test_older_than_a_week_is_ignored(self):
        assert self.rule.evaluate(make_context(events=[self._event(9)])) is None

    def test_future_event_is_ignored(self):
        assert self.rule.evaluate(make_context(events=[self._event(-2)])) is None

    def test_later_interaction_counts_as_follow_up(self):
        context = make_context(events=[self._event(3)], interactions=[_contact("school-9", 1)])
        assert self.rule.evaluate(context) is None

    def test_linked_interaction_counts_as_follow_up(self):
        context = make_context(
            events=[self._event(3)],
            interactions=[{"id": "i1", "related_event_id": "event-1", "interaction_date": days_ago(10)}],
        )
        assert self.rule.evaluate(context) is None

    def test_earlier_interaction_is_not_a_follow_up(self):
        context = make_context(events=[self._event(3)], interactions=[_contact("school-1", 6)])
        assert self.rule.evaluate(context) is not None


# =============================================================================
# PRIORITY SCHOOL REMINDER
# =============================================================================

class TestPrioritySchoolReminder:
    rule = PrioritySchoolReminderRule()

    def test_priority_a_uncontacted_for_two_weeks(self):
        context = make_context(schools=[_school(name="Stanford")], interactions=[_contact("school-1", 14)])
        suggestion = self.rule.evaluate(context)
        assert suggestion.urgency == "high"
        assert suggestion.related_school_id == "school-1"
        assert "Stanford" in suggestion.message

    def test_recent_contact_is_quiet(self):
        context = make_context(schools=[_school()], interactions=[_contact("school-1", 13)])
        assert self.rule.evaluate(context) is None

    def test_priority_b_is_ignored(self):
        assert self.rule.evaluate(make_context(schools=[_school(priority="B")])) is None

    def test_never_contacted_priority_a_fires(self):
        assert self.rule.evaluate(make_context(schools=[_school()])) is not None
