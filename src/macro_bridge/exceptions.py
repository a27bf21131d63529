"""Exception hierarchy for dual-syntax expression resolution.

Two disjoint error regimes exist:

Exception Hierarchy:
    ExpressionError (base, propagated to callers)
    ├── ExpressionParseError (template expression rejected at construction)
    └── ExpressionEvaluationError (template expression failed at evaluation)

    MacroError (base, expected primary-path misses, never propagated)
    ├── MacroSyntaxError (text is not a parameter macro)
    ├── UnresolvedParameterError (no value and no default)
    └── MacroCoercionError (value cannot become the requested type)

MacroError subclasses are absorbed by the macro evaluator and turned into a
"no result" outcome, which triggers the template fallback. Anything else
raised on the macro path is a genuine fault and propagates.
"""

from __future__ import annotations

from typing import Any


class ExpressionError(Exception):
    """Base exception for template expression failures.

    Attributes:
        expression: Expression text that failed
        reason: Human-readable description of the failure
    """

    stage = "expression"

    def __init__(self, expression: str, reason: str) -> None:
        self.expression = expression
        self.reason = reason
        super().__init__(f"Failed to {self.stage} expression '{expression}': {reason}")

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"{type(self).__name__}(expression={self.expression!r}, reason={self.reason!r})"


class ExpressionParseError(ExpressionError):
    """Raised when the template form of an expression cannot be parsed.

    Surfaces at expression construction time, never during evaluation.
    """

    stage = "parse"


class ExpressionEvaluationError(ExpressionError):
    """Raised when the template form of an expression fails during evaluation."""

    stage = "evaluate"


class MacroError(Exception):
    """Base exception for expected parameter macro misses."""

    pass


class MacroSyntaxError(MacroError):
    """Raised when text is not accepted by the parameter macro grammar."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"Not a parameter macro '{text}': {reason}")


class UnresolvedParameterError(MacroError):
    """Raised when a macro parameter has no value and no default."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Parameter '{name}' could not be resolved")


class MacroCoercionError(MacroError):
    """Raised when a resolved macro value cannot be coerced to the target type."""

    def __init__(self, value: Any, target_type: Any, reason: str = "") -> None:
        self.value = value
        self.target_type = target_type
        type_name = getattr(target_type, "__name__", repr(target_type))
        message = f"Cannot coerce {type(value).__name__} to {type_name}: {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


__all__ = [
    "ExpressionError",
    "ExpressionParseError",
    "ExpressionEvaluationError",
    "MacroError",
    "MacroSyntaxError",
    "UnresolvedParameterError",
    "MacroCoercionError",
]
