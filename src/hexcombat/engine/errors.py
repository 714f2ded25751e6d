"""Engine exceptions.

Sub-reducers raise these; ``GameEngine.reduce`` catches them and turns
them into narrative log entries so a dispatch never fails.
"""

from __future__ import annotations

from hexcombat.models.state import LogType


class EngineError(Exception):
    """Base class for a refused action.

    Attributes:
        message: Narrative text for the game log.
        log_type: Log entry type used when the error is folded into state.
    """

    log_type: LogType = LogType.ERROR

    def __init__(self, message: str, log_type: LogType | None = None):
        super().__init__(message)
        self.message = message
        if log_type is not None:
            self.log_type = log_type


class InvalidActionError(EngineError):
    """A selection or id in the action does not resolve, or a target is illegal."""


class RuleRejected(EngineError):
    """The action is well-formed but the rules refuse it."""


class NoChange(Exception):
    """The action is a silent no-op; the input state is returned as is."""
