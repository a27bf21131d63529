"""
Rule system for template expression preparation.

Rules run in priority order over the raw text before it is handed to Jinja2.
They can reject text (security) or rewrite it (syntax).

Rule Types:
    - SECURITY: Reject text that must never reach the template engine
    - SYNTAX: Rewrite text into a form the template engine accepts

Example:
    class UpperCaseRule(TransformRule):
        rule_type = RuleType.SYNTAX
        priority = 30

        def applies_to(self, context: RuleContext) -> bool:
            return context.expression.startswith("UPPER:")

        def transform(self, context: RuleContext) -> RuleContext:
            context.expression = f"({context.expression[6:]}) | upper"
            return context

        @property
        def description(self) -> str:
            return "Upper-case a prefixed expression"
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class RuleType(Enum):
    """Types of preparation rules."""

    SECURITY = "security"  # Reject forbidden text
    SYNTAX = "syntax"  # Rewrite text


@dataclass
class RuleContext:
    """
    Context passed to rules for processing.

    Attributes:
        expression: Expression text to transform
    """

    expression: str


class TransformRule(ABC):
    """
    Base class for preparation rules.

    Security rules run first (priority 1-9), syntax rules after (10+).
    Lower priority numbers run earlier.
    """

    rule_type: RuleType
    priority: int = 0

    @abstractmethod
    def applies_to(self, context: RuleContext) -> bool:
        """Check if rule applies to this context."""
        pass

    @abstractmethod
    def transform(self, context: RuleContext) -> RuleContext:
        """
        Apply the rule.

        Returns:
            Transformed rule context

        Raises:
            SecurityError: If a security rule rejects the text
        """
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this rule does."""
        pass


def apply_rules(rules: Iterable[TransformRule], expression: str) -> RuleContext:
    """Run rules in priority order and return the final rule context."""
    context = RuleContext(expression=expression)
    for rule in sorted(rules, key=lambda r: r.priority):
        if rule.applies_to(context):
            context = rule.transform(context)
    return context


__all__ = ["RuleType", "RuleContext", "TransformRule", "apply_rules"]
