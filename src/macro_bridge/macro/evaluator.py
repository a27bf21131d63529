"""
Primary (parameter macro) expression evaluation.

The macro syntax is a strict subset of the inputs a configuration string may
contain, so a miss is routine: it is reported as MacroResult.no_result() and
the caller falls back to the template syntax. Only MacroError subclasses are
treated as misses; any other exception is a genuine fault and propagates.

Text is re-parsed on every evaluation. Parsing is cheap and the result
depends on the resolver active at call time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..exceptions import MacroError
from ..parameters import ParameterResolver
from .parser import MacroParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MacroResult:
    """
    Outcome of one primary evaluation attempt.

    Attributes:
        found: True when a value was produced
        value: The produced value (None when not found)
        reason: Why no value was produced (empty when found)
    """

    found: bool
    value: Any = None
    reason: str = ""

    @classmethod
    def resolved(cls, value: Any) -> MacroResult:
        return cls(found=True, value=value)

    @classmethod
    def no_result(cls, reason: str) -> MacroResult:
        return cls(found=False, reason=reason)

    def __bool__(self) -> bool:
        return self.found


class PrimaryEvaluator(ABC):
    """Evaluate text against a resolver, yielding a value or no result."""

    @abstractmethod
    def evaluate(
        self, text: str, target_type: Any, resolver: ParameterResolver
    ) -> MacroResult:
        """
        Evaluate text under this evaluator's grammar.

        Args:
            text: Trimmed raw expression text
            target_type: Requested result type
            resolver: Resolver active for this evaluation

        Returns:
            MacroResult, never None
        """
        pass

    def accepts(self, text: str) -> bool:
        """Whether text is syntactically valid for this evaluator."""
        return False


class MacroEvaluator(PrimaryEvaluator):
    """
    Evaluate parameter macros.

    Example:
        evaluator = MacroEvaluator()
        resolver = MappingParameterResolver({"cache-name": "orders"})
        evaluator.evaluate("cache-name", str, resolver)   # resolved("orders")
        evaluator.evaluate("1 + 1", object, resolver)     # no_result(...)
    """

    def __init__(self, parser: MacroParser | None = None):
        self.parser = parser or MacroParser()

    def evaluate(
        self, text: str, target_type: Any, resolver: ParameterResolver
    ) -> MacroResult:
        try:
            macro = self.parser.parse(text)
            value = macro.evaluate(resolver, target_type)
        except MacroError as e:
            logger.debug(f"Macro miss for '{text}': {e}")
            return MacroResult.no_result(str(e))

        if value is None:
            return MacroResult.no_result(f"Parameter '{macro.name}' resolved to None")

        return MacroResult.resolved(value)

    def accepts(self, text: str) -> bool:
        try:
            self.parser.parse(text)
        except MacroError:
            return False
        return True


__all__ = ["MacroEvaluator", "MacroResult", "PrimaryEvaluator"]
