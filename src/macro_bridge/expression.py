"""
Delegating expression: one configuration string, two syntaxes.

Every evaluation runs the same state machine:

    START          resolve the active ParameterResolver (context binding,
                   then resolver published in the evaluation context)
      ↓
    TRY_PRIMARY    evaluate the text as a parameter macro
      ↓ no result
    TRY_SECONDARY  evaluate the pre-parsed template expression; its value
                   or error is final

Nothing is cached between calls: the resolver, and therefore the result, may
differ from one call to the next.
"""

from __future__ import annotations

import logging
from typing import Any

from .context_vars import ResolverRegistry, default_registry
from .evaluation_context import EvaluationContext
from .exceptions import ExpressionEvaluationError
from .macro import MacroEvaluator, PrimaryEvaluator
from .template import TemplateExpression

logger = logging.getLogger(__name__)


class DelegatingExpression:
    """
    Immutable, reentrant expression combining macro and template evaluation.

    Entry points (all run the full fallback state machine):
        expr.get_value()
        expr.get_value(expected_type=int)
        expr.get_value(root)
        expr.get_value(root, expected_type=int)
        expr.get_value(context=ctx)
        expr.get_value(root, context=ctx, expected_type=int)

    Example:
        registry = ResolverRegistry()
        expr = DelegatingExpression("cache-name", parser.parse("cache-name"), registry)
        with registry.bound(MappingParameterResolver({"cache-name": "orders"})):
            expr.get_value()  # "orders"
    """

    __slots__ = ("_text", "_template", "_registry", "_primary")

    def __init__(
        self,
        text: str | None,
        template_expression: TemplateExpression,
        registry: ResolverRegistry | None = None,
        primary: PrimaryEvaluator | None = None,
    ):
        """
        Initialize delegating expression.

        Args:
            text: Raw configuration text (trimmed here)
            template_expression: Template form parsed from the same text
            registry: Registry supplying the per-context resolver
            primary: Macro evaluator (default: MacroEvaluator)
        """
        self._text = (text or "").strip()
        self._template = template_expression
        self._registry = registry or default_registry
        self._primary = primary or MacroEvaluator()

    @property
    def text(self) -> str:
        """Trimmed raw text."""
        return self._text

    @property
    def expression_string(self) -> str:
        """The text in parameter macro form."""
        return f"{{{self._text}}}"

    @property
    def template_expression(self) -> TemplateExpression:
        return self._template

    def get_value(
        self,
        root: Any = None,
        *,
        context: EvaluationContext | None = None,
        expected_type: Any = object,
    ) -> Any:
        """
        Evaluate the expression.

        Args:
            root: Optional root object for the template form
            context: Optional evaluation context; may publish a fallback resolver
            expected_type: Requested result type (object = no coercion)

        Returns:
            Macro value when the macro form resolves, otherwise the template value

        Raises:
            ExpressionEvaluationError: If the template form fails
        """
        resolver = self._registry.resolve_for(context)

        result = self._primary.evaluate(self._text, expected_type, resolver)
        if result.found:
            return result.value

        logger.debug(f"Falling back to template evaluation for '{self._text}': {result.reason}")
        return self._template.evaluate(
            context=context,
            root=root,
            expected_type=expected_type,
            resolver=resolver,
        )

    def get_value_type(self, root: Any = None, *, context: EvaluationContext | None = None) -> type:
        """The declared value type; results are not known before evaluation."""
        return object

    def is_writable(self, root: Any = None, *, context: EvaluationContext | None = None) -> bool:
        return False

    def set_value(
        self, value: Any, root: Any = None, *, context: EvaluationContext | None = None
    ) -> None:
        """
        Raises:
            ExpressionEvaluationError: Always; delegating expressions are read-only
        """
        raise ExpressionEvaluationError(self._text, "expression is not writable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DelegatingExpression):
            return NotImplemented
        return self._text == other._text

    def __hash__(self) -> int:
        return hash((DelegatingExpression, self._text))

    def __repr__(self) -> str:
        return f"DelegatingExpression({self._text!r})"


__all__ = ["DelegatingExpression"]
