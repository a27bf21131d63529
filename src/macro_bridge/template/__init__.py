"""
Template expression syntax (the secondary resolution path).

Raw text is evaluated as one Jinja2 expression. A small rule pipeline
prepares the text first:
1. Security rules reject interpreter internals
2. Syntax rules unwrap text already written as {{ expr }} or #{expr}

Public API:
    - TemplateExpressionParser: Parses text once into a TemplateExpression
    - TemplateExpression: Evaluates against a context, root object and resolver
    - TransformRule: Base class for custom preparation rules
"""

from .evaluator import ParameterLookup, TemplateExpression, TemplateExpressionParser
from .rules import RuleContext, RuleType, TransformRule
from .security_rules import ForbiddenNamespaceRule, SecurityError
from .syntax_rules import TemplateMarkerRule

__all__ = [
    "TemplateExpressionParser",
    "TemplateExpression",
    "ParameterLookup",
    "TransformRule",
    "RuleType",
    "RuleContext",
    "ForbiddenNamespaceRule",
    "TemplateMarkerRule",
    "SecurityError",
]
