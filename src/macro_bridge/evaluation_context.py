"""
Evaluation context for template expressions.

An EvaluationContext carries the variables and the optional root object that
a template expression is evaluated against. Hosts may also publish a
ParameterResolver here under a well-known variable name ("resolver" by
default) so that the bridge can discover it when no resolver is bound to the
calling execution context.

Example:
    ctx = EvaluationContext({"region": "eu-west-1"}, root={"tier": "gold"})
    ctx.set_variable("resolver", MappingParameterResolver({"cache-name": "orders"}))
    ctx.lookup_variable("region")  # "eu-west-1"
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

RESOLVER_VARIABLE = "resolver"


class EvaluationContext:
    """
    Variables and root object for template evaluation.

    Design:
    - Variables are copied on construction; set_variable() mutates this
      instance only
    - The root object is optional; a mapping root exposes its keys as names
    """

    def __init__(self, variables: Mapping[str, Any] | None = None, root: Any = None):
        self._variables: dict[str, Any] = dict(variables or {})
        self.root = root

    def lookup_variable(self, name: str) -> Any:
        """Return the variable value, or None when it is not defined."""
        return self._variables.get(name)

    def set_variable(self, name: str, value: Any) -> None:
        """Define or replace a variable. None removes it."""
        if value is None:
            self._variables.pop(name, None)
        else:
            self._variables[name] = value

    def has_variable(self, name: str) -> bool:
        return name in self._variables

    @property
    def variables(self) -> dict[str, Any]:
        """A copy of the defined variables."""
        return dict(self._variables)

    def __repr__(self) -> str:
        return f"EvaluationContext(variables={sorted(self._variables)!r}, root={self.root!r})"


__all__ = ["EvaluationContext", "RESOLVER_VARIABLE"]
