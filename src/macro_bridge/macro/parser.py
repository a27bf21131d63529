"""
Parameter macro grammar.

A parameter macro references one parameter by name, optionally followed by a
default used when the parameter cannot be resolved:

    cache-name                 -> value of parameter "cache-name"
    {cache-name}               -> same, with macro braces
    partition-count 257        -> "partition-count", default "257"
    service-name 'Distributed' -> quoted default

Grammar:
    macro   := "{"? name (whitespace default)? "}"?
    name    := [A-Za-z_] ([A-Za-z0-9_.-]* [A-Za-z0-9_])?   (not a keyword)
    default := quoted string | single bare token

Anything else (operators, calls, several tokens, nested braces) is rejected
with MacroSyntaxError so that it can be handled by the template syntax.
"""

import re
from dataclasses import dataclass
from typing import Any

from ..coercion import coerce_value
from ..exceptions import MacroCoercionError, MacroSyntaxError, UnresolvedParameterError
from ..parameters import ParameterResolver

NAME_PATTERN = r"[A-Za-z_](?:[A-Za-z0-9_.\-]*[A-Za-z0-9_])?"
QUOTED_PATTERN = r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""
BARE_PATTERN = r"-?\d[\w.\-:/@+]*|[A-Za-z_][\w.\-:/@+]*"

MACRO_PATTERN = re.compile(
    rf"^(?P<name>{NAME_PATTERN})(?:\s+(?P<default>{QUOTED_PATTERN}|{BARE_PATTERN}))?$",
    re.DOTALL,
)
ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)

# Words that start template expressions rather than name parameters
RESERVED_NAMES = frozenset({"not", "and", "or", "in", "is", "if", "else"})


@dataclass(frozen=True)
class ParameterMacro:
    """
    One parsed parameter macro.

    Attributes:
        name: Referenced parameter name
        default: Default text, or None when no default was given
    """

    name: str
    default: str | None = None

    def evaluate(self, resolver: ParameterResolver, target_type: Any = object) -> Any:
        """
        Resolve the macro against resolver and coerce to target_type.

        Raises:
            UnresolvedParameterError: If the parameter is unknown and has no default
            MacroCoercionError: If the value cannot be coerced
        """
        parameter = resolver.resolve(self.name)

        if parameter is None:
            if self.default is None:
                raise UnresolvedParameterError(self.name)
            try:
                return coerce_value(self.default, target_type)
            except ValueError as e:
                raise MacroCoercionError(self.default, target_type, str(e)) from e

        try:
            return parameter.evaluate(target_type)
        except ValueError as e:
            raise MacroCoercionError(parameter.value, target_type, str(e)) from e

    def __str__(self) -> str:
        if self.default is None:
            return f"{{{self.name}}}"
        return f"{{{self.name} {self.default}}}"


class MacroParser:
    """
    Parse text under the parameter macro grammar.

    Example:
        parser = MacroParser()
        macro = parser.parse("{partition-count 257}")
        # ParameterMacro(name="partition-count", default="257")
    """

    def parse(self, text: str) -> ParameterMacro:
        """
        Parse text into a ParameterMacro.

        Args:
            text: Raw text, with or without macro braces

        Returns:
            Parsed macro

        Raises:
            MacroSyntaxError: If text is outside the macro grammar
        """
        body = self._strip_braces(text.strip(), text)

        if not body:
            raise MacroSyntaxError(text, "empty macro")
        if "{" in body or "}" in body:
            raise MacroSyntaxError(text, "nested braces are not supported")

        match = MACRO_PATTERN.match(body)
        if match is None:
            raise MacroSyntaxError(text, "expected a parameter name and optional default")

        name = match.group("name")
        if name in RESERVED_NAMES:
            raise MacroSyntaxError(text, f"'{name}' is a reserved word")

        return ParameterMacro(name=name, default=self._unquote(match.group("default")))

    @staticmethod
    def _strip_braces(body: str, text: str) -> str:
        if body.startswith("{") and body.endswith("}"):
            if body.startswith("{{"):
                raise MacroSyntaxError(text, "template markers are not macro braces")
            return body[1:-1].strip()
        return body

    @staticmethod
    def _unquote(default: str | None) -> str | None:
        if default is None:
            return None
        if len(default) >= 2 and default[0] == default[-1] and default[0] in "'\"":
            return ESCAPE_PATTERN.sub(r"\1", default[1:-1])
        return default


__all__ = ["MacroParser", "ParameterMacro", "RESERVED_NAMES"]
