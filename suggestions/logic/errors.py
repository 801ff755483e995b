"""
Suggestion Engine Errors

RuleEvaluationError is only ever logged; the other errors reach callers.
"""


class SuggestionEngineError(Exception):
    """Base class for suggestion engine failures."""


class RuleEvaluationError(SuggestionEngineError):
    """A single rule's evaluate() raised. Recovered inside the engine."""

    def __init__(self, rule_id: str, cause: BaseException):
        self.rule_id = rule_id
        self.cause = cause
        super().__init__(f"Rule {rule_id} failed: {cause!r}")


class ContextAssemblyError(SuggestionEngineError):
    """The context source could not produce data for an athlete."""

    def __init__(self, athlete_id: str, message: str):
        self.athlete_id = athlete_id
        super().__init__(f"Context assembly failed for athlete {athlete_id}: {message}")


class PersistenceError(SuggestionEngineError):
    """The suggestion store failed to read or write."""


class SuggestionStateError(SuggestionEngineError):
    """A user action tried an illegal lifecycle transition."""
