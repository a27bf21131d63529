"""
Syntax rules for template expressions.

Raw text is always evaluated as one template expression. These rules remove
markers that would otherwise wrap it a second time.

Rules:
    - TemplateMarkerRule: Unwrap text already written as {{ expr }} or #{expr}
"""

import re

from .rules import RuleContext, RuleType, TransformRule


class TemplateMarkerRule(TransformRule):
    """
    Strip an outer template marker.

    Transforms: {{ 1 + 1 }} -> 1 + 1
    Transforms: #{1 + 1}    -> 1 + 1
    Reason: the parser adds the expression marker itself
    """

    rule_type = RuleType.SYNTAX
    priority = 10

    MARKER_PATTERN = re.compile(r"^(?:\{\{(?P<jinja>.*)\}\}|#\{(?P<hash>.*)\})$", re.DOTALL)

    def applies_to(self, context: RuleContext) -> bool:
        match = self.MARKER_PATTERN.match(context.expression)
        if match is None:
            return False
        inner = match.group("jinja") if match.group("jinja") is not None else match.group("hash")
        # "{{ a }} and {{ b }}" is two expressions, not one wrapped expression
        return "{{" not in inner and "}}" not in inner

    def transform(self, context: RuleContext) -> RuleContext:
        match = self.MARKER_PATTERN.match(context.expression)
        assert match is not None
        inner = match.group("jinja") if match.group("jinja") is not None else match.group("hash")
        context.expression = inner.strip()
        return context

    @property
    def description(self) -> str:
        return "Unwrap text already written with a template expression marker"


__all__ = ["TemplateMarkerRule"]
