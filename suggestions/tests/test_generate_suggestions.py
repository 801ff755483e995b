"""
Test suggestion generation against the database: duplicate suppression,
reappearance, persistence failures and notification.
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from suggestions.logic import (
    PersistenceError,
    RuleEngine,
    SuggestionData,
    SuggestionNotifier,
)
from suggestions.logic.rules import InteractionGapRule, Rule
from suggestions.tests.factories import NOW, days_ago, make_context


class FixedRule(Rule):
    def __init__(self, rule_id, urgency="medium", school_id=None, snapshot=None):
        self.id = rule_id
        self.urgency = urgency
        self.school_id = school_id
        self.snapshot = snapshot

    def evaluate(self, context):
        return SuggestionData(
            rule_type=self.id,
            urgency=self.urgency,
            message=f"{self.id} fired",
            action_type="log_interaction",
            related_school_id=self.school_id,
        )


class SnapshotRule(FixedRule):
    def create_condition_snapshot(self, context, related_school_id=None):
        return {"school_count": len(context.schools)}


class RecordingNotifier(SuggestionNotifier):
    def __init__(self):
        self.calls = []

    def notify(self, athlete_id, suggestions):
        self.calls.append((athlete_id, [s.id for s in suggestions]))


class ExplodingNotifier(SuggestionNotifier):
    def notify(self, athlete_id, suggestions):
        raise RuntimeError("smtp down")


async def test_inserts_new_suggestions_as_pending(gateway):
    engine = RuleEngine([FixedRule("rule-a"), FixedRule("rule-b")])

    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert result.count == 2
    rows = gateway.list_for_athlete("athlete-123")
    assert {r.id for r in rows} == set(result.ids)
    assert all(r.pending_surface and r.state == "active" for r in rows)


async def test_active_duplicate_is_not_inserted_again(gateway):
    engine = RuleEngine([FixedRule("rule-a")])
    await engine.generate_suggestions(gateway, "athlete-123", make_context())

    second = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert second.count == 0
    assert len(gateway.list_for_athlete("athlete-123")) == 1


async def test_same_rule_different_school_is_not_a_duplicate(gateway):
    engine = RuleEngine([FixedRule("rule-a", school_id="s1")])
    await engine.generate_suggestions(gateway, "athlete-123", make_context())

    other = RuleEngine([FixedRule("rule-a", school_id="s2")])
    result = await other.generate_suggestions(gateway, "athlete-123", make_context())

    assert result.count == 1


async def test_two_identical_candidates_in_one_pass_insert_once(gateway):
    engine = RuleEngine([FixedRule("rule-a"), FixedRule("rule-a")])
    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    assert result.count == 1


async def test_other_athletes_rows_do_not_suppress(gateway):
    engine = RuleEngine([FixedRule("rule-a")])
    await engine.generate_suggestions(gateway, "athlete-999", make_context())
    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    assert result.count == 1


async def test_recent_dismissal_suppresses_candidate(gateway):
    engine = RuleEngine([FixedRule("rule-a")])
    first = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    gateway.mark_dismissed(first.ids[0], NOW - timedelta(days=5))

    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert result.count == 0


async def test_eligible_dismissal_reappears_linked_and_escalated(gateway):
    engine = RuleEngine([FixedRule("rule-a", urgency="low")])
    first = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    original_id = first.ids[0]
    gateway.mark_dismissed(original_id, NOW - timedelta(days=14))

    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert result.count == 1
    new_row = gateway.get(result.ids[0])
    assert new_row.reappeared is True
    assert new_row.previous_suggestion_id == original_id
    assert new_row.urgency == "medium"
    assert new_row.state == "reappeared-active"

    original = gateway.get(original_id)
    assert original.dismissed is True
    assert original.urgency == "low"

    again = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    assert again.count == 0


async def test_dismissed_reappearance_does_not_chain(gateway):
    engine = RuleEngine([FixedRule("rule-a", urgency="low")])
    first = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    gateway.mark_dismissed(first.ids[0], NOW - timedelta(days=40))
    second = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    gateway.mark_dismissed(second.ids[0], NOW - timedelta(days=20))

    third = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert third.count == 0


async def test_rule_gate_can_veto_reappearance(gateway):
    rule = InteractionGapRule()
    context = make_context(
        schools=[{"id": "school-1", "name": "School 1", "priority": "A", "status": "interested"}],
        interactions=[{"id": "i1", "school_id": "school-1", "interaction_date": days_ago(25)}],
    )
    engine = RuleEngine([rule])
    first = await engine.generate_suggestions(gateway, "athlete-123", context)
    gateway.mark_dismissed(first.ids[0], NOW - timedelta(days=15))

    # Gap grew by less than two weeks since the snapshot
    later = make_context(
        schools=[{"id": "school-1", "name": "School 1", "priority": "A", "status": "interested"}],
        interactions=[{"id": "i1", "school_id": "school-1", "interaction_date": days_ago(30)}],
    )
    assert (await engine.generate_suggestions(gateway, "athlete-123", later)).count == 0

    grown = make_context(
        schools=[{"id": "school-1", "name": "School 1", "priority": "A", "status": "interested"}],
        interactions=[{"id": "i1", "school_id": "school-1", "interaction_date": days_ago(40)}],
    )
    result = await engine.generate_suggestions(gateway, "athlete-123", grown)
    assert result.count == 1
    assert gateway.get(result.ids[0]).urgency == "high"


async def test_recently_completed_suppresses_candidate(gateway):
    engine = RuleEngine([FixedRule("rule-a")])
    first = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    gateway.mark_completed(first.ids[0], NOW - timedelta(days=2))

    assert (await engine.generate_suggestions(gateway, "athlete-123", make_context())).count == 0


async def test_completed_long_ago_allows_new_suggestion(gateway):
    engine = RuleEngine([FixedRule("rule-a")])
    first = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    gateway.mark_completed(first.ids[0], NOW - timedelta(days=30))

    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert result.count == 1
    assert gateway.get(result.ids[0]).reappeared is False


async def test_snapshot_hook_fills_missing_snapshot(gateway):
    engine = RuleEngine([SnapshotRule("rule-a")])
    context = make_context(schools=[{"id": "s1"}, {"id": "s2"}])

    result = await engine.generate_suggestions(gateway, "athlete-123", context)

    assert gateway.get(result.ids[0]).condition_snapshot == {"school_count": 2}


async def test_unregistered_rule_type_is_skipped(gateway):
    class Mislabelled(FixedRule):
        def evaluate(self, context):
            return SuggestionData(rule_type="something-else", urgency="low", message="x")

    result = await RuleEngine([Mislabelled("rule-a")]).generate_suggestions(
        gateway, "athlete-123", make_context()
    )
    assert result.count == 0


async def test_notifier_receives_inserted_rows(gateway):
    notifier = RecordingNotifier()
    engine = RuleEngine([FixedRule("rule-a")], notifier=notifier)

    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())
    await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert notifier.calls == [("athlete-123", result.ids)]


async def test_notifier_failure_does_not_fail_the_pass(gateway, caplog):
    engine = RuleEngine([FixedRule("rule-a")], notifier=ExplodingNotifier())

    result = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert result.count == 1
    assert "smtp down" in caplog.text


async def test_persistence_error_reaches_the_caller(gateway, session, monkeypatch):
    def broken_flush(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "flush", broken_flush)
    notifier = RecordingNotifier()
    engine = RuleEngine([FixedRule("rule-a")], notifier=notifier)

    with pytest.raises(PersistenceError):
        await engine.generate_suggestions(gateway, "athlete-123", make_context())
    assert notifier.calls == []


async def test_completed_reappearance_lets_the_rule_fire_again(gateway):
    engine = RuleEngine([FixedRule("rule-a", urgency="low")])
    first = await engine.generate_suggestions(gateway, "athlete-123", make_context(now=NOW - timedelta(days=200)))
    gateway.mark_dismissed(first.ids[0], NOW - timedelta(days=190))
    second = await engine.generate_suggestions(gateway, "athlete-123", make_context(now=NOW - timedelta(days=170)))
    assert second.count == 1
    gateway.mark_completed(second.ids[0], NOW - timedelta(days=100))

    third = await engine.generate_suggestions(gateway, "athlete-123", make_context())

    assert third.count == 1
    new_row = gateway.get(third.ids[0])
    assert new_row.reappeared is False
    assert new_row.previous_suggestion_id is None
    assert new_row.urgency == "low"


async def test_recently_completed_reappearance_still_suppresses(gateway):
    engine = RuleEngine([FixedRule("rule-a")])
    first = await engine.generate_suggestions(gateway, "athlete-123", make_context(now=NOW - timedelta(days=60)))
    gateway.mark_dismissed(first.ids[0], NOW - timedelta(days=50))
    second = await engine.generate_suggestions(gateway, "athlete-123", make_context(now=NOW - timedelta(days=30)))
    gateway.mark_completed(second.ids[0], NOW - timedelta(days=3))

    assert (await engine.generate_suggestions(gateway, "athlete-123", make_context())).count == 0
