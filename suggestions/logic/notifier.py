"""
Suggestion Notifier

Hand-off point for "new suggestions were created" side effects. Delivery
(email, push) lives outside this package; the engine only calls `notify`
after every insert of a pass has succeeded.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from .contracts import SuggestionRecord

logger = logging.getLogger(__name__)


class SuggestionNotifier(ABC):
    @abstractmethod
    def notify(self, athlete_id: str, suggestions: List[SuggestionRecord]) -> None:
        """Receive the rows persisted in one pass. May be a coroutine."""


class LoggingNotifier(SuggestionNotifier):
    """Default notifier: records each new suggestion in the log."""

    def notify(self, athlete_id: str, suggestions: List[SuggestionRecord]) -> None:
        for s in suggestions:
            tag = " (reappeared)" if s.reappeared else ""
            logger.info(f"🔔 New {s.urgency} suggestion for {athlete_id}: {s.rule_type}{tag}")
