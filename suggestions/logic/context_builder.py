"""
Context Builder

Assembles one athlete's RuleContext from a ContextSource. All collection
fetches are issued concurrently; blocking (sync) fetches run in worker
threads. A source failure becomes ContextAssemblyError and is left to the
caller, the rule engine never sees it.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

from .constants import (
    DEFAULT_GRADE_LEVEL,
    MAX_GRADE_LEVEL,
    MIN_GRADE_LEVEL,
    SCHOOL_YEAR_START_MONTH,
)
from .contracts import RuleContext
from .errors import ContextAssemblyError

logger = logging.getLogger(__name__)

# RuleContext field -> ContextSource method
COLLECTION_FETCHERS = {
    "schools": "fetch_schools",
    "interactions": "fetch_interactions",
    "tasks": "fetch_tasks",
    "athlete_tasks": "fetch_athlete_tasks",
    "videos": "fetch_videos",
    "events": "fetch_events",
}


class ContextSource(ABC):
    """
    Per-athlete data access used to build a RuleContext.

    Methods may be plain functions or coroutines. Any of them may return
    None, which is read as an empty collection (or blank athlete).
    """

    @abstractmethod
    def fetch_athlete(self, athlete_id: str) -> Optional[Mapping[str, Any]]:
        ...

    @abstractmethod
    def fetch_schools(self, athlete_id: str) -> Optional[Iterable[Mapping[str, Any]]]:
        ...

    @abstractmethod
    def fetch_interactions(self, athlete_id: str) -> Optional[Iterable[Mapping[str, Any]]]:
        ...

    @abstractmethod
    def fetch_tasks(self, athlete_id: str) -> Optional[Iterable[Mapping[str, Any]]]:
        ...

    @abstractmethod
    def fetch_athlete_tasks(self, athlete_id: str) -> Optional[Iterable[Mapping[str, Any]]]:
        ...

    @abstractmethod
    def fetch_videos(self, athlete_id: str) -> Optional[Iterable[Mapping[str, Any]]]:
        ...

    @abstractmethod
    def fetch_events(self, athlete_id: str) -> Optional[Iterable[Mapping[str, Any]]]:
        ...


class StaticContextSource(ContextSource):
    """ContextSource over in-memory data, keyed by collection name."""

    def __init__(self, athlete: Optional[Mapping[str, Any]] = None, **collections):
        self.athlete = athlete
        self.collections = collections

    def fetch_athlete(self, athlete_id):
        return self.athlete

    def fetch_schools(self, athlete_id):
        return self.collections.get("schools")

    def fetch_interactions(self, athlete_id):
        return self.collections.get("interactions")

    def fetch_tasks(self, athlete_id):
        return self.collections.get("tasks")

    def fetch_athlete_tasks(self, athlete_id):
        return self.collections.get("athlete_tasks")

    def fetch_videos(self, athlete_id):
        return self.collections.get("videos")

    def fetch_events(self, athlete_id):
        return self.collections.get("events")


def calculate_current_grade(graduation_year: Optional[int], now: Optional[datetime] = None) -> int:
    """
    Grade level (9-12) from a graduation year.

    The school year rolls over in August: in October 2025 the class of 2026
    are seniors, in March 2026 they still are.
    """
    if not graduation_year:
        return DEFAULT_GRADE_LEVEL
    now = now or datetime.now(timezone.utc)
    school_year_end = now.year + 1 if now.month >= SCHOOL_YEAR_START_MONTH else now.year
    grade = MAX_GRADE_LEVEL - (int(graduation_year) - school_year_end)
    return max(MIN_GRADE_LEVEL, min(MAX_GRADE_LEVEL, grade))


async def _call(fetch, athlete_id: str):
    if inspect.iscoroutinefunction(fetch):
        return await fetch(athlete_id)
    result = await asyncio.to_thread(fetch, athlete_id)
    if inspect.isawaitable(result):
        result = await result
    return result


async def assemble_context(
    source: ContextSource,
    athlete_id: str,
    now: Optional[datetime] = None,
) -> RuleContext:
    """
    Fetch everything the rules need for one athlete, concurrently.

    Args:
        source: Data access for athlete records
        athlete_id: Athlete to evaluate
        now: Evaluation instant pinned into the context

    Returns:
        RuleContext ready for RuleEngine.evaluate_all

    Raises:
        ContextAssemblyError: if any fetch fails
    """
    now = now or datetime.now(timezone.utc)
    names = list(COLLECTION_FETCHERS)

    try:
        results = await asyncio.gather(
            _call(source.fetch_athlete, athlete_id),
            *(_call(getattr(source, COLLECTION_FETCHERS[n]), athlete_id) for n in names),
        )
    except Exception as e:
        logger.error(f"❌ Context fetch failed for athlete {athlete_id}: {e}")
        raise ContextAssemblyError(athlete_id, str(e)) from e

    athlete: Dict[str, Any] = dict(results[0] or {})
    if not athlete.get("grade_level"):
        athlete["grade_level"] = calculate_current_grade(athlete.get("graduation_year"), now)

    collections = {n: list(r) if r is not None else () for n, r in zip(names, results[1:])}

    try:
        context = RuleContext(athlete_id=athlete_id, athlete=athlete, now=now, **collections)
    except ValueError as e:
        raise ContextAssemblyError(athlete_id, f"invalid source data: {e}") from e

    logger.debug(
        f"Context for {athlete_id}: grade {context.grade_level}, "
        f"{len(context.schools)} schools, {len(context.interactions)} interactions, "
        f"{len(context.events)} events"
    )
    return context
