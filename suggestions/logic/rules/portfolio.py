"""
Portfolio Rules

Checks on the athlete's recruiting materials and school list quality:
highlight videos and overall fit of the tracked schools.
"""

from typing import Optional

from ..constants import (
    ActionType,
    BROKEN_VIDEO_STATUS,
    MISSING_VIDEO_MIN_GRADE,
    PORTFOLIO_MIN_FIT_SCORE,
    RuleType,
    Urgency,
)
from ..contracts import RuleContext, SuggestionData
from .base import Rule


class MissingVideoRule(Rule):
    id = RuleType.MISSING_VIDEO.value
    name = "Missing Highlight Video"
    description = "Athlete is sophomore or beyond without highlight video"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        if context.grade_level < MISSING_VIDEO_MIN_GRADE or context.videos:
            return None
        return SuggestionData(
            rule_type=self.id,
            urgency=Urgency.MEDIUM,
            message="Create a highlight video to showcase your skills to coaches",
            action_type=ActionType.ADD_VIDEO.value,
        )


class VideoLinkHealthRule(Rule):
    """A video is marked broken, or was saved without a link at all."""

    id = RuleType.VIDEO_LINK_HEALTH.value
    name = "Broken Video Link"
    description = "Video URL is not accessible"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        for video in context.videos:
            broken = video.health_status == BROKEN_VIDEO_STATUS
            missing = not (video.url or "").strip()
            if broken or missing:
                title = video.title or "highlight video"
                return SuggestionData(
                    rule_type=self.id,
                    urgency=Urgency.HIGH,
                    message=f'Your video "{title}" link is broken. Update it immediately.',
                    action_type=ActionType.UPDATE_VIDEO.value,
                )
        return None


class PortfolioHealthRule(Rule):
    id = RuleType.PORTFOLIO_HEALTH.value
    name = "Portfolio Health Issue"
    description = "All schools are unlikely fits"

    def evaluate(self, context: RuleContext) -> Optional[SuggestionData]:
        if not context.schools:
            return None
        # Unscored schools count as unlikely fits
        if any((s.fit_score or 0) >= PORTFOLIO_MIN_FIT_SCORE for s in context.schools):
            return None
        return SuggestionData(
            rule_type=self.id,
            urgency=Urgency.HIGH,
            message=(
                "Your school list has no strong matches. "
                "Add schools that align better with your profile."
            ),
            action_type=ActionType.ADD_SCHOOL.value,
        )
