"""
Parameter macro syntax (the primary resolution path).

Public API:
    - MacroParser: Parses "name" / "name default" / "{name default}" text
    - ParameterMacro: One parsed macro
    - MacroEvaluator: Evaluates text against a resolver into a MacroResult
    - MacroResult: Resolved value or "no result"
    - PrimaryEvaluator: Base class for value-or-no-result evaluators
"""

from .evaluator import MacroEvaluator, MacroResult, PrimaryEvaluator
from .parser import MacroParser, ParameterMacro

__all__ = [
    "MacroEvaluator",
    "MacroResult",
    "PrimaryEvaluator",
    "MacroParser",
    "ParameterMacro",
]
