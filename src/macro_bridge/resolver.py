"""
Host-facing expression resolver.

MacroExpressionResolver is the single object a host framework talks to. It
owns:
1. The ResolverRegistry where the host binds the context-specific resolver
2. The template parser (Jinja2) and macro evaluator
3. A cache of DelegatingExpression instances, one per distinct string

Host integration:
    bridge = MacroExpressionResolver()

    # While processing one configuration element
    with bridge.using(MappingParameterResolver({"cache-name": "orders"})):
        bridge.evaluate("cache-name")            # "orders"
        bridge.evaluate("1 + 1")                 # 2
        bridge.evaluate({"size": "size 10"}, expected_type=int)  # {"size": 10}

    # A host engine evaluating on its own discovers the resolver through
    # the "resolver" variable of contexts built here
    ctx = bridge.create_evaluation_context()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import Token
from typing import Any

from .config import BridgeConfig
from .context_vars import ResolverRegistry, parameter_resolver
from .evaluation_context import EvaluationContext
from .exceptions import ExpressionParseError
from .expression import DelegatingExpression
from .macro import MacroEvaluator, PrimaryEvaluator
from .parameters import ParameterResolver
from .template import TemplateExpression, TemplateExpressionParser, TransformRule

logger = logging.getLogger(__name__)


class MacroExpressionResolver:
    """
    Parse and evaluate configuration strings written in either syntax.

    Design:
    - Parsing happens once per distinct string (cached when enabled)
    - Evaluation always runs the full fallback state machine
    - The per-context resolver is never part of the evaluation signature
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        registry: ResolverRegistry | None = None,
        macro_evaluator: PrimaryEvaluator | None = None,
        rules: list[TransformRule] | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            config: Bridge configuration (default: read from environment)
            registry: Resolver registry (default: shared context variable)
            macro_evaluator: Primary evaluator (default: MacroEvaluator)
            rules: Extra preparation rules for template expressions
        """
        self.config = config or BridgeConfig.from_env()
        self.registry = registry or ResolverRegistry(
            parameter_resolver, resolver_variable=self.config.resolver_variable
        )
        self.macro_evaluator = macro_evaluator or MacroEvaluator()
        self.template_parser = TemplateExpressionParser(self.config, rules)

        self._cache: dict[str, DelegatingExpression] = {}
        self._cache_lock = threading.Lock()

    def set_parameter_resolver(
        self, resolver: ParameterResolver | None
    ) -> Token[ParameterResolver | None]:
        """Bind resolver to the calling execution context."""
        return self.registry.bind(resolver)

    def get_resolver(self) -> ParameterResolver:
        """Return the resolver bound to the calling execution context."""
        return self.registry.current()

    @contextmanager
    def using(self, resolver: ParameterResolver) -> Iterator[ParameterResolver]:
        """Bind resolver for the duration of a with block."""
        with self.registry.bound(resolver) as bound:
            yield bound

    def create_evaluation_context(
        self, variables: dict[str, Any] | None = None, root: Any = None
    ) -> EvaluationContext:
        """Create an evaluation context customized for this bridge."""
        context = EvaluationContext(variables, root)
        self.customize_evaluation_context(context)
        return context

    def customize_evaluation_context(self, context: EvaluationContext) -> None:
        """
        Publish the calling context's resolver under the resolver variable.

        Nothing is published when no resolver is bound, so that a resolver the
        host published earlier stays visible.
        """
        if self.registry.is_bound():
            context.set_variable(self.registry.resolver_variable, self.registry.current())

    def parse_expression(self, text: str | None) -> DelegatingExpression:
        """
        Parse a configuration string into a DelegatingExpression.

        Args:
            text: Raw configuration string; None is treated as ""

        Returns:
            DelegatingExpression (shared instance when caching is enabled)

        Raises:
            ExpressionParseError: If the text is neither a parameter macro nor
                a valid template expression
        """
        key = (text or "").strip()

        if self.config.cache_expressions:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        try:
            template = self.template_parser.parse(key)
        except ExpressionParseError as e:
            # "partition-count 257" is a valid macro but not a valid template
            # expression; its template error only matters if the macro misses.
            # Security violations are deferred the same way and keep their cause.
            if not self.macro_evaluator.accepts(key):
                raise
            logger.debug(f"Deferring template parse error for macro text '{key}': {e.reason}")
            template = TemplateExpression.deferred(e)

        expression = DelegatingExpression(
            key,
            template,
            registry=self.registry,
            primary=self.macro_evaluator,
        )

        if self.config.cache_expressions:
            with self._cache_lock:
                existing = self._cache.get(key)
                if existing is not None:
                    return existing
                while len(self._cache) >= self.config.max_cache_size:
                    self._cache.pop(next(iter(self._cache)))
                self._cache[key] = expression
            logger.debug(f"Cached expression '{key}' ({len(self._cache)} cached)")

        return expression

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def evaluate(
        self,
        value: Any,
        root: Any = None,
        *,
        context: EvaluationContext | None = None,
        expected_type: Any = object,
    ) -> Any:
        """
        Evaluate a configuration value.

        Strings are parsed and evaluated; dicts and lists are resolved
        recursively; anything else passes through unchanged.

        Args:
            value: Value to resolve (str, dict, list, or primitive)
            root: Optional root object for template expressions
            context: Evaluation context (default: created and customized here)
            expected_type: Requested type for each evaluated string

        Returns:
            Resolved value

        Raises:
            ExpressionParseError: If a string cannot be parsed
            ExpressionEvaluationError: If a template expression fails
        """
        if isinstance(value, dict):
            return {
                key: self.evaluate(val, root, context=context, expected_type=expected_type)
                for key, val in value.items()
            }
        if isinstance(value, list):
            return [
                self.evaluate(item, root, context=context, expected_type=expected_type)
                for item in value
            ]
        if not isinstance(value, str):
            return value

        if context is None:
            context = self.create_evaluation_context(root=root)

        return self.parse_expression(value).get_value(
            root, context=context, expected_type=expected_type
        )


__all__ = ["MacroExpressionResolver"]
