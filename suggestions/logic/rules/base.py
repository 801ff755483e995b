"""
Rule Interface

Every rule is an implementation of the same small capability interface:
`evaluate` is required; `should_re_evaluate` and `create_condition_snapshot`
are optional and detected by presence. Also holds the date and school helpers
the concrete rules share.
"""

import calendar
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from ..constants import DIVISION_ALIASES
from ..contracts import (
    InteractionRecord,
    RuleContext,
    SchoolRecord,
    SuggestionData,
)

RuleResult = Union[SuggestionData, List[SuggestionData], None]

SECONDS_PER_DAY = 86400


class Rule(ABC):
    """
    A stateless predicate plus generator over one athlete's context.

    Subclasses set `id`, `name` and `description` and implement `evaluate`.
    `evaluate` must not perform I/O or read anything but the context; it may
    return a coroutine, which the engine awaits.

    Optional hooks (define them on the subclass to opt in):
        should_re_evaluate(dismissed_suggestion, context) -> bool
        create_condition_snapshot(context, related_school_id=None) -> dict
    """

    id: str = ""
    name: str = ""
    description: str = ""

    @abstractmethod
    def evaluate(self, context: RuleContext) -> RuleResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"


# =============================================================================
# DATE HELPERS
# =============================================================================

def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a raw date value into an aware UTC datetime.

    Accepts datetimes, dates and ISO-8601 strings (a trailing 'Z' is allowed).
    Anything missing or unparseable returns None so callers treat the record
    as undated rather than as "now".
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def days_between(earlier: datetime, later: datetime) -> float:
    """Fractional days from `earlier` to `later` (negative if reversed)."""
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def whole_days_between(earlier: datetime, later: datetime) -> int:
    return int(days_between(earlier, later) // 1)


def subtract_months(moment: datetime, months: int) -> datetime:
    """
    Calendar month subtraction; the day is clamped to the target month's
    length (31 March minus one month is 28/29 February).
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def latest_timestamp(values: Iterable[Any]) -> Optional[datetime]:
    """Most recent parseable timestamp in `values`; input order is irrelevant."""
    latest = None
    for value in values:
        parsed = parse_timestamp(value)
        if parsed is not None and (latest is None or parsed > latest):
            latest = parsed
    return latest


# =============================================================================
# SCHOOL HELPERS
# =============================================================================

def latest_interaction_at(
    interactions: Iterable[InteractionRecord],
    school_id: Optional[str],
) -> Optional[datetime]:
    return latest_timestamp(
        i.interaction_date for i in interactions if i.school_id == school_id
    )


def last_contact_by_school(context: RuleContext) -> Dict[str, datetime]:
    """Map of school id to the most recent dated interaction with it."""
    latest: Dict[str, datetime] = {}
    for interaction in context.interactions:
        if interaction.school_id is None:
            continue
        when = parse_timestamp(interaction.interaction_date)
        if when is None:
            continue
        current = latest.get(interaction.school_id)
        if current is None or when > current:
            latest[interaction.school_id] = when
    return latest


def school_priority(school: SchoolRecord) -> Optional[str]:
    """Priority tier, reading `priority` first and `priority_tier` second."""
    value = school.priority or school.priority_tier
    if value is None:
        return None
    return str(value).strip().upper() or None


def normalize_division(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    key = str(value).strip().upper()
    return DIVISION_ALIASES.get(key, key)


def school_label(school: SchoolRecord) -> str:
    return school.name or "this school"
