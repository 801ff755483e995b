"""
Suggestion Surfacing

New suggestions are persisted as pending and revealed a few at a time so the
athlete is never shown more than `limit` open suggestions at once.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from .constants import DEFAULT_SURFACE_LIMIT, URGENCY_RANK
from .contracts import SuggestionRecord
from .rules.base import parse_timestamp

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def order_for_surfacing(pending: List[SuggestionRecord]) -> List[SuggestionRecord]:
    """Highest urgency first, then oldest first."""
    return sorted(
        pending,
        key=lambda s: (
            -URGENCY_RANK.get(s.urgency, URGENCY_RANK["high"]),
            parse_timestamp(s.created_at) or _EPOCH,
        ),
    )


def surface_pending_suggestions(
    gateway,
    athlete_id: str,
    limit: int = DEFAULT_SURFACE_LIMIT,
    now: Optional[datetime] = None,
) -> int:
    """
    Fill the athlete's free visible slots with pending suggestions.

    Args:
        gateway: SuggestionGateway
        athlete_id: Athlete whose suggestions to surface
        limit: Maximum visible open suggestions
        now: Surfacing time recorded on each row

    Returns:
        Number of suggestions surfaced
    """
    open_slots = limit - gateway.count_surfaced_active(athlete_id)
    if open_slots <= 0:
        return 0

    pending = order_for_surfacing(gateway.list_pending(athlete_id))
    chosen = [s.id for s in pending[:open_slots]]
    if not chosen:
        return 0

    gateway.mark_surfaced(chosen, now or datetime.now(timezone.utc))
    logger.info(f"Surfaced {len(chosen)} suggestion(s) for athlete {athlete_id}")
    return len(chosen)
