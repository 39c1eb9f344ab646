"""Decision engine errors

The engine favours total functions: bad numbers are clamped or skipped with a
reason string. The only legitimate failure is a configuration precondition
(e.g. no active pricing rules), which callers surface as "system not
configured".
"""

from __future__ import annotations

from typing import Any


class DecisionEngineError(Exception):
    """Base error for the decision engine"""

    code = "DECISION_ENGINE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationPreconditionError(DecisionEngineError):
    """Required deployment configuration is missing (not a data problem)"""

    code = "PRECONDITION_FAILED"
