"""
Suggestion Logic Module

Contains the rule engine, the rules, suggestion lifecycle handling and the
orchestration for refreshing an athlete's suggestions.
"""

from .constants import ActionType, RuleType, TriggerReason, Urgency
from .contracts import (
    GenerateResult,
    RuleContext,
    SuggestionData,
    SuggestionRecord,
    TriggerUpdateResult,
)
from .context_builder import ContextSource, StaticContextSource, assemble_context
from .engine import RuleEngine
from .errors import (
    ContextAssemblyError,
    PersistenceError,
    RuleEvaluationError,
    SuggestionEngineError,
    SuggestionStateError,
)
from .gateway import SqlAlchemySuggestionGateway, SuggestionGateway
from .lifecycle import (
    complete_suggestion,
    dismiss_suggestion,
    escalate_urgency,
    should_re_evaluate_dismissed_suggestion,
)
from .notifier import LoggingNotifier, SuggestionNotifier
from .rules import Rule, default_rules
from .runner import trigger_suggestion_update
from .surfacing import surface_pending_suggestions

__all__ = [
    "ActionType",
    "RuleType",
    "TriggerReason",
    "Urgency",
    "GenerateResult",
    "RuleContext",
    "SuggestionData",
    "SuggestionRecord",
    "TriggerUpdateResult",
    "ContextSource",
    "StaticContextSource",
    "assemble_context",
    "RuleEngine",
    "ContextAssemblyError",
    "PersistenceError",
    "RuleEvaluationError",
    "SuggestionEngineError",
    "SuggestionStateError",
    "SqlAlchemySuggestionGateway",
    "SuggestionGateway",
    "complete_suggestion",
    "dismiss_suggestion",
    "escalate_urgency",
    "should_re_evaluate_dismissed_suggestion",
    "LoggingNotifier",
    "SuggestionNotifier",
    "Rule",
    "default_rules",
    "trigger_suggestion_update",
    "surface_pending_suggestions",
]
