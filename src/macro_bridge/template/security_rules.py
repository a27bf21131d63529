"""
Security rules for template expressions.

Rules:
    - ForbiddenNamespaceRule: Block access to interpreter internals
"""

import re

from .rules import RuleContext, RuleType, TransformRule


class SecurityError(Exception):
    """Raised when a security rule is violated."""

    pass


class ForbiddenNamespaceRule(TransformRule):
    """
    Block access to forbidden names before the text reaches Jinja2.

    The sandboxed environment already refuses unsafe attribute access at
    evaluation time; this rule rejects the obvious cases at parse time so that
    configuration errors surface early.

    Names are matched as whole identifiers, so parameter names and defaults
    that merely contain a forbidden word ("reopen(file)", "evaluate") pass.
    Text that is still a valid parameter macro is handled by the caller, which
    defers the violation until the macro misses.
    """

    rule_type = RuleType.SECURITY
    priority = 1

    FORBIDDEN_DUNDERS = [
        "__builtins__",
        "__import__",
        "__subclasses__",
        "__globals__",
        "__class__",
        "__mro__",
        "__base__",
        "__bases__",
        "__code__",
    ]
    FORBIDDEN_CALLS = ["exec", "eval", "compile", "open"]

    FORBIDDEN_PATTERN = re.compile(
        "|".join(
            [re.escape(name) for name in FORBIDDEN_DUNDERS]
            + [rf"(?<!\w){name}\s*\(" for name in FORBIDDEN_CALLS]
        )
    )

    def applies_to(self, context: RuleContext) -> bool:
        return self.FORBIDDEN_PATTERN.search(context.expression) is not None

    def transform(self, context: RuleContext) -> RuleContext:
        match = self.FORBIDDEN_PATTERN.search(context.expression)
        if match is not None:
            forbidden = re.sub(r"\s+", "", match.group(0))
            raise SecurityError(f"Access to '{forbidden}' is forbidden in expressions")
        return context

    @property
    def description(self) -> str:
        return "Prevent access to interpreter internals and dangerous functions"


__all__ = ["SecurityError", "ForbiddenNamespaceRule"]
