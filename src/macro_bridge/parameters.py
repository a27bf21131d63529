"""
Parameters and parameter resolvers.

A ParameterResolver maps parameter names to Parameter instances for one
evaluation. Resolvers are owned by whichever operation binds them to an
execution context (see context_vars) and are never shared mutably between
contexts.

Resolvers:
    - NullParameterResolver: resolves nothing (the default)
    - MappingParameterResolver: resolves from a name -> value mapping
    - ChainedParameterResolver: first resolver that knows the name wins

Example:
    resolver = ChainedParameterResolver(
        MappingParameterResolver({"cache-name": "orders"}),
        MappingParameterResolver({"partition-count": 257}),
    )
    resolver.resolve("cache-name").evaluate(str)  # "orders"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .coercion import coerce_value


@dataclass(frozen=True)
class Parameter:
    """
    A named value produced by a ParameterResolver.

    Attributes:
        name: Parameter name as referenced by a macro
        value: Raw parameter value
        explicit_type: Optional declared type; used when evaluate() is asked
            for object so that declared parameters keep their type
    """

    name: str
    value: Any
    explicit_type: Any = None

    def evaluate(self, target_type: Any = object) -> Any:
        """
        Return the parameter value coerced to target_type.

        Raises:
            ValueError: If the value cannot be coerced
        """
        if target_type is object and self.explicit_type is not None:
            target_type = self.explicit_type
        return coerce_value(self.value, target_type)


class ParameterResolver(ABC):
    """Capability mapping parameter names to values for one evaluation."""

    @abstractmethod
    def resolve(self, name: str) -> Parameter | None:
        """
        Resolve a parameter by name.

        Args:
            name: Parameter name

        Returns:
            The Parameter, or None when this resolver does not know the name
        """
        pass


class NullParameterResolver(ParameterResolver):
    """Resolver that never resolves anything."""

    def resolve(self, name: str) -> Parameter | None:
        return None

    def __repr__(self) -> str:
        return "NullParameterResolver()"


class MappingParameterResolver(ParameterResolver):
    """
    Resolver backed by a mapping of names to values.

    Values that are already Parameter instances are returned as-is; anything
    else is wrapped. The mapping is copied on construction.
    """

    def __init__(self, parameters: Mapping[str, Any] | None = None, **kwargs: Any):
        data = dict(parameters or {})
        data.update(kwargs)
        self._parameters: dict[str, Any] = data

    def resolve(self, name: str) -> Parameter | None:
        if name not in self._parameters:
            return None
        value = self._parameters[name]
        if isinstance(value, Parameter):
            return value
        return Parameter(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._parameters

    def __len__(self) -> int:
        return len(self._parameters)

    def __repr__(self) -> str:
        return f"MappingParameterResolver({sorted(self._parameters)!r})"


class ChainedParameterResolver(ParameterResolver):
    """Consult several resolvers in order; the first match wins."""

    def __init__(self, *resolvers: ParameterResolver):
        self._resolvers: tuple[ParameterResolver, ...] = resolvers

    @classmethod
    def of(cls, resolvers: Iterable[ParameterResolver]) -> ChainedParameterResolver:
        return cls(*resolvers)

    def resolve(self, name: str) -> Parameter | None:
        for resolver in self._resolvers:
            parameter = resolver.resolve(name)
            if parameter is not None:
                return parameter
        return None

    def __repr__(self) -> str:
        return f"ChainedParameterResolver({', '.join(map(repr, self._resolvers))})"


# Shared default; safe to share because it holds no state
NULL_RESOLVER: ParameterResolver = NullParameterResolver()


__all__ = [
    "Parameter",
    "ParameterResolver",
    "NullParameterResolver",
    "MappingParameterResolver",
    "ChainedParameterResolver",
    "NULL_RESOLVER",
]
