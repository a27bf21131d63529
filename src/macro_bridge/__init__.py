"""Dual-syntax expression resolution for configuration strings.

A configuration string may be written as a parameter macro ("cache-name",
"partition-count 257") or as a Jinja2 template expression ("1 + 1",
"region | upper"). The macro form is tried first against the parameter
resolver bound to the calling execution context; the template form is the
fallback when the macro yields no result.

Key Components:

- MacroExpressionResolver: Host-facing parser/evaluator with expression cache
- DelegatingExpression: Immutable expression running the fallback state machine
- ResolverRegistry: Context-local (thread / asyncio task) resolver bindings
- ParameterResolver: Name -> Parameter capability (Null, Mapping, Chained)
- MacroEvaluator / MacroResult: Primary path, misses reported as values
- TemplateExpressionParser / TemplateExpression: Secondary path (Jinja2)
- EvaluationContext: Variables and root object; may publish a resolver
- BridgeConfig: Pydantic settings (environment or YAML)
"""

from .config import BridgeConfig
from .context_vars import ResolverRegistry, default_registry
from .evaluation_context import RESOLVER_VARIABLE, EvaluationContext
from .exceptions import (
    ExpressionError,
    ExpressionEvaluationError,
    ExpressionParseError,
    MacroCoercionError,
    MacroError,
    MacroSyntaxError,
    UnresolvedParameterError,
)
from .expression import DelegatingExpression
from .macro import MacroEvaluator, MacroParser, MacroResult, ParameterMacro, PrimaryEvaluator
from .parameters import (
    NULL_RESOLVER,
    ChainedParameterResolver,
    MappingParameterResolver,
    NullParameterResolver,
    Parameter,
    ParameterResolver,
)
from .resolver import MacroExpressionResolver
from .template import TemplateExpression, TemplateExpressionParser

__version__ = "0.1.0"

__all__ = [
    "MacroExpressionResolver",
    "DelegatingExpression",
    "ResolverRegistry",
    "default_registry",
    "EvaluationContext",
    "RESOLVER_VARIABLE",
    "BridgeConfig",
    "Parameter",
    "ParameterResolver",
    "NullParameterResolver",
    "MappingParameterResolver",
    "ChainedParameterResolver",
    "NULL_RESOLVER",
    "MacroEvaluator",
    "MacroParser",
    "MacroResult",
    "ParameterMacro",
    "PrimaryEvaluator",
    "TemplateExpression",
    "TemplateExpressionParser",
    "ExpressionError",
    "ExpressionParseError",
    "ExpressionEvaluationError",
    "MacroError",
    "MacroSyntaxError",
    "UnresolvedParameterError",
    "MacroCoercionError",
    "__version__",
]
