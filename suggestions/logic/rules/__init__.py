"""
Suggestion Rules

`default_rules()` returns the production rule set in evaluation order:
recruiting timeline rules first, then contact and portfolio checks.
"""

from typing import List

from .base import Rule, RuleResult
from .contact import EventFollowUpRule, InteractionGapRule, PrioritySchoolReminderRule
from .milestones import (
    FormalOutreachRule,
    NcaaRegistrationRule,
    OfficialVisitRule,
    SchoolListRule,
    ShowcaseAttendanceRule,
)
from .portfolio import MissingVideoRule, PortfolioHealthRule, VideoLinkHealthRule


def default_rules() -> List[Rule]:
    return [
        NcaaRegistrationRule(),
        SchoolListRule(),
        OfficialVisitRule(),
        FormalOutreachRule(),
        ShowcaseAttendanceRule(),
        InteractionGapRule(),
        MissingVideoRule(),
        EventFollowUpRule(),
        VideoLinkHealthRule(),
        PortfolioHealthRule(),
        PrioritySchoolReminderRule(),
    ]


__all__ = [
    "Rule",
    "RuleResult",
    "default_rules",
    "NcaaRegistrationRule",
    "SchoolListRule",
    "OfficialVisitRule",
    "FormalOutreachRule",
    "ShowcaseAttendanceRule",
    "InteractionGapRule",
    "MissingVideoRule",
    "EventFollowUpRule",
    "VideoLinkHealthRule",
    "PortfolioHealthRule",
    "PrioritySchoolReminderRule",
]
