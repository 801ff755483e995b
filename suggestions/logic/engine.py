"""
Suggestion Rule Engine

Runs every registered rule against one athlete's context and turns the
candidates into persisted suggestions. This is the primary entry point for
generating suggestions.
"""

import inspect
import logging
from typing import Iterable, List, Mapping, Optional, Tuple

from .contracts import GenerateResult, RuleContext, SuggestionData, SuggestionRecord
from .duplicate_filter import SKIP, REAPPEAR, filter_candidate
from .errors import RuleEvaluationError
from .notifier import LoggingNotifier, SuggestionNotifier
from .rules.base import Rule

logger = logging.getLogger(__name__)


def normalize_result(result) -> List[SuggestionData]:
    """None -> [], single suggestion -> [it], list -> as-is."""
    if result is None:
        return []
    if isinstance(result, (SuggestionData, Mapping)):
        result = [result]
    return [
        item if isinstance(item, SuggestionData) else SuggestionData.model_validate(item)
        for item in result
    ]


class RuleEngine:
    """
    Ordered collection of rules evaluated one after another.

    Pipeline flow for generate_suggestions:
    1. Evaluation - Every rule in registration order, failures isolated
    2. Snapshot - Fill condition_snapshot from the rule's hook when missing
    3. Duplicate filtering - Against the athlete's persisted suggestions
    4. Persistence - Insert new and reappeared rows through the gateway
    5. Notification - Hand inserted rows to the notifier
    """

    def __init__(
        self,
        rules: Optional[Iterable[Rule]] = None,
        notifier: Optional[SuggestionNotifier] = None,
    ):
        self.rules: List[Rule] = list(rules or [])
        self.notifier = notifier or LoggingNotifier()

    def add_rule(self, rule: Rule) -> None:
        """Register a rule. Ids are not checked for uniqueness."""
        self.rules.append(rule)

    async def _evaluate_pairs(self, context: RuleContext) -> List[Tuple[Rule, SuggestionData]]:
        pairs = []
        for rule in self.rules:
            try:
                result = rule.evaluate(context)
                if inspect.isawaitable(result):
                    result = await result
                suggestions = normalize_result(result)
            except Exception as e:
                error = RuleEvaluationError(rule.id, e)
                logger.error(f"❌ {error}", exc_info=e)
                continue
            pairs.extend((rule, s) for s in suggestions)
        return pairs

    async def evaluate_all(self, context: RuleContext) -> List[SuggestionData]:
        """
        Evaluate every rule against the context.

        Args:
            context: Athlete snapshot shared by all rules

        Returns:
            Flat list of candidates in rule registration order. A rule that
            raises contributes nothing; the failure is only logged.
        """
        return [s for _, s in await self._evaluate_pairs(context)]

    async def generate_suggestions(
        self,
        gateway,
        athlete_id: str,
        context: RuleContext,
    ) -> GenerateResult:
        """
        Evaluate rules and persist whatever is genuinely new.

        Args:
            gateway: SuggestionGateway for the athlete's suggestions
            athlete_id: Athlete being evaluated
            context: Athlete snapshot

        Returns:
            GenerateResult with the ids of rows actually inserted

        Raises:
            PersistenceError: if the gateway fails to read or write
        """
        pairs = await self._evaluate_pairs(context)
        registered = {r.id for r in self.rules}

        existing: List[SuggestionRecord] = list(gateway.list_for_athlete(athlete_id))
        inserted: List[SuggestionRecord] = []

        for rule, candidate in pairs:
            if candidate.rule_type not in registered:
                logger.warning(
                    f"⚠️ Rule {rule.id} produced unregistered rule_type {candidate.rule_type!r}, skipping"
                )
                continue

            candidate = self._with_snapshot(rule, candidate, context)
            decision = await filter_candidate(candidate, rule, context, existing)
            if decision.action == SKIP:
                logger.debug(f"Skipping {candidate.rule_type} for {athlete_id}: {decision.reason}")
                continue

            record = gateway.insert(athlete_id, decision.suggestion)
            if decision.action == REAPPEAR:
                logger.info(
                    f"🔁 {record.rule_type} reappeared for {athlete_id} "
                    f"as {record.urgency} ({decision.reason})"
                )
            existing.append(record)
            inserted.append(record)

        logger.info(
            f"✅ Generated {len(inserted)} suggestion(s) for athlete {athlete_id} "
            f"from {len(pairs)} candidate(s)"
        )

        if inserted:
            await self._notify(athlete_id, inserted)

        return GenerateResult(count=len(inserted), ids=[r.id for r in inserted])

    def _with_snapshot(self, rule: Rule, candidate: SuggestionData, context: RuleContext) -> SuggestionData:
        hook = getattr(rule, "create_condition_snapshot", None)
        if candidate.condition_snapshot is not None or hook is None:
            return candidate
        try:
            snapshot = hook(context, candidate.related_school_id)
        except Exception as e:
            logger.warning(f"⚠️ Snapshot for {rule.id} failed, storing none: {e}")
            return candidate
        return candidate.model_copy(update={"condition_snapshot": snapshot})

    async def _notify(self, athlete_id: str, inserted: List[SuggestionRecord]) -> None:
        try:
            outcome = self.notifier.notify(athlete_id, list(inserted))
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"❌ Notifier failed for athlete {athlete_id}: {e}", exc_info=e)
