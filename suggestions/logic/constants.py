"""
Suggestion Engine Constants

Defines urgency levels, action types, rule identifiers and every threshold
used by the rules and the suggestion lifecycle.
"""

from enum import Enum
from typing import Dict, FrozenSet

# =============================================================================
# URGENCY
# =============================================================================

class Urgency(str, Enum):
    """Ordered severity of a suggestion (low < medium < high)."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


URGENCY_RANK: Dict[str, int] = {
    Urgency.LOW.value: 0,
    Urgency.MEDIUM.value: 1,
    Urgency.HIGH.value: 2,
}

# One step up the ladder; high is the ceiling
URGENCY_ESCALATION: Dict[str, str] = {
    Urgency.LOW.value: Urgency.MEDIUM.value,
    Urgency.MEDIUM.value: Urgency.HIGH.value,
    Urgency.HIGH.value: Urgency.HIGH.value,
}

# =============================================================================
# ACTION TYPES
# =============================================================================

class ActionType(str, Enum):
    """Remediating action a suggestion points the athlete to."""
    ADD_SCHOOL = "add_school"
    LOG_INTERACTION = "log_interaction"
    ADD_VIDEO = "add_video"
    UPDATE_VIDEO = "update_video"

# =============================================================================
# RULE IDENTIFIERS
# =============================================================================

class RuleType(str, Enum):
    """Registered rule ids. A suggestion's rule_type is always one of these."""
    NCAA_REGISTRATION = "ncaa-registration"
    SCHOOL_LIST = "school-list-building"
    OFFICIAL_VISIT = "official-visit"
    FORMAL_OUTREACH = "formal-outreach"
    SHOWCASE_ATTENDANCE = "showcase-attendance"
    INTERACTION_GAP = "interaction-gap"
    MISSING_VIDEO = "missing-video"
    EVENT_FOLLOW_UP = "event-follow-up"
    VIDEO_LINK_HEALTH = "video-link-health"
    PORTFOLIO_HEALTH = "portfolio-health"
    PRIORITY_SCHOOL_REMINDER = "priority-school-reminder"

# =============================================================================
# TRIGGERS
# =============================================================================

class TriggerReason(str, Enum):
    """Why a suggestion update pass was started."""
    PROFILE_CHANGE = "profile_change"
    INTERACTION_LOGGED = "interaction_logged"
    DAILY_REFRESH = "daily_refresh"

# =============================================================================
# LIFECYCLE
# =============================================================================

# Minimum age of a dismissal before its rule may fire again (inclusive)
REAPPEARANCE_COOLDOWN_DAYS = 14

# A suggestion completed this recently still suppresses a fresh duplicate
COMPLETED_DUPLICATE_WINDOW_DAYS = 7

# Maximum number of suggestions visible at once
DEFAULT_SURFACE_LIMIT = 3

# =============================================================================
# ATHLETE / SCHOOL ATTRIBUTES
# =============================================================================

DEFAULT_GRADE_LEVEL = 9
MIN_GRADE_LEVEL = 9
MAX_GRADE_LEVEL = 12

# School year rolls over on this month (August)
SCHOOL_YEAR_START_MONTH = 8

PRIORITY_SCHOOL_TIERS: FrozenSet[str] = frozenset({"A", "B"})
TOP_PRIORITY_TIER = "A"

ACTIVE_PURSUIT_STATUSES: FrozenSet[str] = frozenset({"interested", "contacted", "visited"})

# Divisions requiring NCAA Eligibility Center registration
NCAA_REGISTRATION_DIVISIONS: FrozenSet[str] = frozenset({"DI", "DII"})

DIVISION_ALIASES: Dict[str, str] = {
    "D1": "DI",
    "DIVISION I": "DI",
    "DIVISION 1": "DI",
    "D2": "DII",
    "DIVISION II": "DII",
    "DIVISION 2": "DII",
    "D3": "DIII",
    "DIVISION III": "DIII",
    "DIVISION 3": "DIII",
}

# =============================================================================
# RULE THRESHOLDS
# =============================================================================

NCAA_REGISTRATION_TASK_ID = "task-11-a3"
NCAA_REGISTRATION_GRADE = 11

SCHOOL_LIST_TARGET = 20
SCHOOL_LIST_GRADES = (10, 11)
SCHOOL_LIST_URGENCY_BY_GRADE: Dict[int, str] = {
    10: Urgency.MEDIUM.value,
    11: Urgency.HIGH.value,
}

OFFICIAL_VISIT_TARGET = 2
OFFICIAL_VISIT_GRADES = (11, 12)
OFFICIAL_VISIT_KEYWORDS = ("visit", "official")

FORMAL_OUTREACH_GRADES = (11, 12)
FORMAL_OUTREACH_MAX_GAP_DAYS = 30

# Urgency for the junior/senior rules above
UPPERCLASS_URGENCY_BY_GRADE: Dict[int, str] = {
    11: Urgency.MEDIUM.value,
    12: Urgency.HIGH.value,
}

SHOWCASE_GRADES = (10, 11)
SHOWCASE_WINDOW_MONTHS = 6

INTERACTION_GAP_DAYS = 21
INTERACTION_GAP_HIGH_DAYS = 30
INTERACTION_GAP_REFIRE_GROWTH_DAYS = 14

MISSING_VIDEO_MIN_GRADE = 10

EVENT_FOLLOW_UP_WINDOW_DAYS = 7

BROKEN_VIDEO_STATUS = "broken"

PORTFOLIO_MIN_FIT_SCORE = 50

PRIORITY_REMINDER_DAYS = 14
