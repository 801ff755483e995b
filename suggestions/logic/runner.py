"""
Suggestion Update Runner

Orchestrates one suggestion refresh for an athlete:
1. Assembles the RuleContext from the context source
2. On a logged interaction, completes the log_interaction suggestions it resolves
3. Runs the rule engine and persists new suggestions
4. Surfaces pending suggestions into free visible slots

Called when profile data changes, when an interaction is logged, and from
the daily refresh. This is a pure orchestration layer - NO rules, NO SQL.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from suggestions.settings import SUGGESTION_SURFACE_LIMIT
from .constants import ActionType, TriggerReason
from .context_builder import ContextSource, assemble_context
from .contracts import TriggerUpdateResult
from .engine import RuleEngine
from .rules import default_rules
from .surfacing import surface_pending_suggestions

logger = logging.getLogger(__name__)


def build_default_engine(notifier=None) -> RuleEngine:
    """RuleEngine loaded with the production rule set."""
    return RuleEngine(default_rules(), notifier=notifier)


async def trigger_suggestion_update(
    gateway,
    source: ContextSource,
    athlete_id: str,
    reason,
    *,
    interaction_school_id: Optional[str] = None,
    interaction_coach_id: Optional[str] = None,
    engine: Optional[RuleEngine] = None,
    surface_limit: int = SUGGESTION_SURFACE_LIMIT,
    now: Optional[datetime] = None,
) -> TriggerUpdateResult:
    """
    Re-evaluate suggestions for one athlete.

    Args:
        gateway: SuggestionGateway bound to the caller's session
        source: ContextSource for the athlete's recruiting data
        athlete_id: Athlete to refresh
        reason: TriggerReason (or its string value)
        interaction_school_id: School of the interaction just logged, if any
        interaction_coach_id: Coach of the interaction just logged, if any
        engine: RuleEngine to use (defaults to the production rule set)
        surface_limit: Maximum visible open suggestions
        now: Evaluation instant

    Returns:
        TriggerUpdateResult with generated and surfaced counts
    """
    reason = TriggerReason(reason)
    now = now or datetime.now(timezone.utc)
    engine = engine or build_default_engine()

    try:
        context = await assemble_context(source, athlete_id, now=now)

        if reason == TriggerReason.INTERACTION_LOGGED and (interaction_school_id or interaction_coach_id):
            completed = gateway.complete_matching(
                athlete_id,
                ActionType.LOG_INTERACTION.value,
                interaction_school_id,
                now,
            )
            if completed:
                logger.info(f"Completed {len(completed)} log_interaction suggestion(s) for {athlete_id}")

        generated = await engine.generate_suggestions(gateway, athlete_id, context)
        surfaced = surface_pending_suggestions(gateway, athlete_id, surface_limit, now=now)

    except Exception as e:
        logger.error(f"❌ Failed to trigger suggestion update for athlete {athlete_id}: {e}")
        raise

    logger.info(
        f"Suggestion update triggered for athlete {athlete_id} (reason: {reason.value}): "
        f"{generated.count} generated, {surfaced} surfaced"
    )
    return TriggerUpdateResult(
        generated=generated.count,
        surfaced=surfaced,
        reason=reason.value,
        ids=generated.ids,
    )


# =============================================================================
# VALIDATION
# =============================================================================

def validate_runner():
    """
    Developer sanity check - runs a full refresh against the configured DB.
    """
    import asyncio
    from db import get_db, init_db
    from suggestions.settings import configure_logging
    from .context_builder import StaticContextSource
    from .gateway import SqlAlchemySuggestionGateway

    configure_logging()
    init_db()

    source = StaticContextSource(
        athlete={"graduation_year": datetime.now(timezone.utc).year + 2},
        schools=[
            {"id": "school-1", "name": "State University", "priority": "A",
             "status": "interested", "division": "DI", "fit_score": 42},
            {"id": "school-2", "name": "Lakeside College", "priority": "B",
             "status": "contacted", "division": "DIII", "fit_score": 38},
        ],
    )

    with get_db() as db:
        result = asyncio.run(trigger_suggestion_update(
            SqlAlchemySuggestionGateway(db),
            source,
            "validate_runner_001",
            TriggerReason.DAILY_REFRESH,
        ))

    print("=" * 60)
    print("RUNNER VALIDATION")
    print("=" * 60)
    print(f"Generated: {result.generated}")
    print(f"Surfaced: {result.surfaced}")
    for sid in result.ids:
        print(f"  - {sid}")
    print("=" * 60)
    return result


if __name__ == "__main__":
    validate_runner()
