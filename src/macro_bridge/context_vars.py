"""Context-local parameter resolver bindings.

Uses Python's contextvars module to provide thread-safe and async-safe
storage for the ParameterResolver that macro evaluation needs, without
passing it through the public evaluation API.

Set by: the host operation that knows which parameters apply (e.g. while
processing one configuration element), via ResolverRegistry.bind() or the
scoped ResolverRegistry.bound() context manager.
Read by: DelegatingExpression at every evaluation.

Each thread and each asyncio task sees its own binding, so the same
expression instance can be evaluated concurrently with different resolvers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

from .evaluation_context import RESOLVER_VARIABLE, EvaluationContext
from .parameters import NULL_RESOLVER, ParameterResolver

logger = logging.getLogger(__name__)

# Default binding shared by registries that are not given their own variable.
# None means "no explicit binding"; callers never see it (current() maps it
# to NULL_RESOLVER).
parameter_resolver: ContextVar[ParameterResolver | None] = ContextVar(
    "parameter_resolver", default=None
)


class ResolverRegistry:
    """
    Per-execution-context store for the active ParameterResolver.

    Precedence when resolving for an evaluation:
    1. Resolver bound to the calling context (set deliberately by the
       enclosing operation)
    2. Resolver published in the EvaluationContext under resolver_variable
       (set once by the host, may be stale)
    3. NULL_RESOLVER

    Example:
        registry = ResolverRegistry()
        with registry.bound(MappingParameterResolver({"cache-name": "orders"})):
            expression.get_value()  # "orders"
    """

    def __init__(
        self,
        var: ContextVar[ParameterResolver | None] | None = None,
        resolver_variable: str = RESOLVER_VARIABLE,
    ):
        self._var = var if var is not None else parameter_resolver
        self.resolver_variable = resolver_variable

    def bind(self, resolver: ParameterResolver | None) -> Token[ParameterResolver | None]:
        """
        Bind resolver to the calling context, replacing any prior binding.

        Args:
            resolver: Resolver to bind; None clears the binding

        Returns:
            Token that restores the previous binding via reset()
        """
        return self._var.set(resolver)

    def reset(self, token: Token[ParameterResolver | None]) -> None:
        """Restore the binding that was active before bind() returned token."""
        self._var.reset(token)

    def unbind(self) -> None:
        """Clear the binding for the calling context."""
        self._var.set(None)

    def is_bound(self) -> bool:
        """Whether the calling context has an explicit binding."""
        return self._var.get() is not None

    def current(self) -> ParameterResolver:
        """Return the bound resolver, or NULL_RESOLVER when none is bound."""
        resolver = self._var.get()
        return resolver if resolver is not None else NULL_RESOLVER

    def lookup_fallback(self, context: EvaluationContext | None) -> ParameterResolver | None:
        """
        Find a resolver published in an evaluation context.

        Args:
            context: Evaluation context supplied by the host, if any

        Returns:
            The published ParameterResolver, or None if absent or not a resolver
        """
        if context is None:
            return None
        candidate = context.lookup_variable(self.resolver_variable)
        if candidate is None:
            return None
        if not isinstance(candidate, ParameterResolver):
            logger.warning(
                f"Ignoring '{self.resolver_variable}' variable of type "
                f"{type(candidate).__name__}: not a ParameterResolver"
            )
            return None
        return candidate

    def resolve_for(self, context: EvaluationContext | None = None) -> ParameterResolver:
        """
        Determine the resolver for one evaluation.

        The context binding wins; the published fallback is only consulted
        when the calling context has no binding.
        """
        resolver = self._var.get()
        if resolver is not None:
            return resolver
        fallback = self.lookup_fallback(context)
        if fallback is not None:
            return fallback
        return NULL_RESOLVER

    @contextmanager
    def bound(self, resolver: ParameterResolver) -> Iterator[ParameterResolver]:
        """
        Bind resolver for the duration of a with block.

        The previous binding is restored on exit, including on error.
        """
        token = self._var.set(resolver)
        try:
            yield resolver
        finally:
            self._var.reset(token)


# Module-level registry used when no registry is supplied explicitly
default_registry = ResolverRegistry()


__all__ = ["ResolverRegistry", "default_registry", "parameter_resolver"]
