"""
Template (Jinja2) expression parsing and evaluation.

This is the secondary resolution path: raw text is treated as a single Jinja2
expression, as if written "{{ text }}". Unlike the macro path, failures here
are real errors:

    - ExpressionParseError at parse time (syntax, forbidden names)
    - ExpressionEvaluationError at evaluation time (undefined names, runtime
      errors, sandbox violations, coercion failures)

Architecture:
    Raw Text
        ↓
    Preparation Rules (security, marker unwrapping)
        ↓
    Jinja2 compile_expression (once, at parse time)
        ↓
    Namespace (root object, context variables, param() helper)
        ↓
    Evaluation + coercion (every call)

Example:
    parser = TemplateExpressionParser()
    expression = parser.parse("1 + 1")
    expression.evaluate()  # 2
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, Undefined
from jinja2.exceptions import SecurityError as SandboxSecurityError
from jinja2.sandbox import SandboxedEnvironment

from ..coercion import coerce_value
from ..config import BridgeConfig
from ..evaluation_context import EvaluationContext
from ..exceptions import ExpressionEvaluationError, ExpressionParseError
from ..parameters import NULL_RESOLVER, ParameterResolver
from .rules import TransformRule, apply_rules
from .security_rules import ForbiddenNamespaceRule, SecurityError
from .syntax_rules import TemplateMarkerRule

logger = logging.getLogger(__name__)


class ParameterLookup:
    """
    The param() helper exposed to template expressions.

    Examples:
        {{ param('cache-name') }}
        {{ param('partition-count', 257) * 2 }}
    """

    def __init__(self, resolver: ParameterResolver):
        self._resolver = resolver

    def __call__(self, name: str, default: Any = None) -> Any:
        parameter = self._resolver.resolve(name)
        if parameter is None:
            return default
        return parameter.evaluate(object)


class TemplateExpression:
    """
    A parsed template expression, evaluated many times.

    Design:
    - Immutable after creation; the compiled Jinja2 expression holds no
      per-evaluation state
    - Empty source is a literal evaluating to ""
    - A deferred expression carries the parse error of text that is only
      meaningful as a parameter macro; the error is raised if it is evaluated
    """

    def __init__(
        self,
        text: str,
        source: str,
        compiled: Any,
        strict_undefined: bool = True,
        parse_error: ExpressionParseError | None = None,
    ):
        self.text = text
        self.source = source
        self._compiled = compiled
        self._strict_undefined = strict_undefined
        self._parse_error = parse_error

    @classmethod
    def deferred(cls, error: ExpressionParseError) -> TemplateExpression:
        """Create an expression that raises error when evaluated."""
        return cls(error.expression, error.expression, None, parse_error=error)

    @property
    def is_deferred(self) -> bool:
        return self._parse_error is not None

    @property
    def expression_string(self) -> str:
        """The text as the template engine sees it."""
        return f"{{{{ {self.source} }}}}" if self.source else ""

    def evaluate(
        self,
        context: EvaluationContext | None = None,
        root: Any = None,
        expected_type: Any = object,
        resolver: ParameterResolver | None = None,
    ) -> Any:
        """
        Evaluate the expression.

        Args:
            context: Evaluation context supplying variables (and a default root)
            root: Root object; overrides context.root when given
            expected_type: Requested result type
            resolver: Resolver backing the param() helper

        Returns:
            Evaluated value coerced to expected_type

        Raises:
            ExpressionParseError: If this is a deferred expression
            ExpressionEvaluationError: If evaluation or coercion fails
        """
        if self._parse_error is not None:
            raise ExpressionParseError(
                self._parse_error.expression, self._parse_error.reason
            ) from self._parse_error.__cause__

        if self._compiled is None:
            result: Any = ""
        else:
            namespace = build_namespace(context, root, resolver)
            try:
                result = self._compiled(namespace)
            except Exception as e:
                raise ExpressionEvaluationError(self.text, str(e)) from e

            if isinstance(result, Undefined):
                # The sandbox reports refused access as an undefined value
                if issubclass(result._undefined_exception, SandboxSecurityError):
                    raise ExpressionEvaluationError(self.text, result._undefined_message)
                if self._strict_undefined:
                    raise ExpressionEvaluationError(
                        self.text, f"'{self.source}' evaluated to an undefined value"
                    )
                result = None

        try:
            return coerce_value(result, expected_type)
        except ValueError as e:
            raise ExpressionEvaluationError(self.text, str(e)) from e

    def __repr__(self) -> str:
        return f"TemplateExpression({self.text!r})"


def build_namespace(
    context: EvaluationContext | None,
    root: Any = None,
    resolver: ParameterResolver | None = None,
) -> dict[str, Any]:
    """
    Build the names visible to a template expression.

    Priority (later wins):
    1. param() helper
    2. Keys of a mapping root object
    3. Evaluation context variables
    The root object itself is available as "root" unless a variable of that
    name already exists.
    """
    if root is None and context is not None:
        root = context.root

    namespace: dict[str, Any] = {"param": ParameterLookup(resolver or NULL_RESOLVER)}

    if isinstance(root, Mapping):
        namespace.update({k: v for k, v in root.items() if isinstance(k, str)})

    if context is not None:
        namespace.update(context.variables)

    if root is not None:
        namespace.setdefault("root", root)

    return namespace


class TemplateExpressionParser:
    """
    Parse raw text into TemplateExpression instances using Jinja2.

    Example:
        parser = TemplateExpressionParser(BridgeConfig(sandboxed=True))
        parser.parse("region | upper").evaluate(EvaluationContext({"region": "eu"}))
        # "EU"
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        rules: list[TransformRule] | None = None,
    ):
        """
        Initialize the parser.

        Args:
            config: Bridge configuration (sandboxing, undefined handling)
            rules: Optional custom preparation rules, merged with the defaults
        """
        self.config = config or BridgeConfig()
        self.rules = self._initialize_rules(rules)

        undefined = StrictUndefined if self.config.strict_undefined else Undefined
        self.env: Environment
        if self.config.sandboxed:
            self.env = SandboxedEnvironment(undefined=undefined, autoescape=False)
        else:
            self.env = Environment(undefined=undefined, autoescape=False)

        self._register_extensions()

    def _initialize_rules(self, custom_rules: list[TransformRule] | None) -> list[TransformRule]:
        default_rules: list[TransformRule] = [
            ForbiddenNamespaceRule(),
            TemplateMarkerRule(),
        ]
        return sorted(default_rules + (custom_rules or []), key=lambda r: r.priority)

    def _register_extensions(self) -> None:
        """Register custom filters in the Jinja2 environment."""
        self.env.filters.update(
            {
                "tojson": json.dumps,
                "keys": lambda x: list(x.keys()) if isinstance(x, dict) else [],
                "values": lambda x: list(x.values()) if isinstance(x, dict) else [],
            }
        )

    def parse(self, text: str | None) -> TemplateExpression:
        """
        Parse text as a single template expression.

        Args:
            text: Raw text; None is treated as ""

        Returns:
            TemplateExpression ready for evaluation

        Raises:
            ExpressionParseError: If the text is rejected by a rule or by Jinja2
        """
        text = (text or "").strip()

        try:
            prepared = apply_rules(self.rules, text)
        except SecurityError as e:
            raise ExpressionParseError(text, f"Security violation: {e}") from e

        source = prepared.expression
        if not source:
            return TemplateExpression(text, "", None, self.config.strict_undefined)

        try:
            compiled = self.env.compile_expression(source, undefined_to_none=False)
        except TemplateSyntaxError as e:
            raise ExpressionParseError(text, e.message or str(e)) from e

        logger.debug(f"Parsed template expression '{source}'")
        return TemplateExpression(text, source, compiled, self.config.strict_undefined)


__all__ = [
    "TemplateExpression",
    "TemplateExpressionParser",
    "ParameterLookup",
    "build_namespace",
]
