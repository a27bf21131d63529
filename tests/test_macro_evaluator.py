"""Tests for the parameter macro grammar and evaluator."""

from __future__ import annotations

import pytest

from macro_bridge import (
    NULL_RESOLVER,
    MacroEvaluator,
    MacroParser,
    MacroResult,
    MacroSyntaxError,
    MappingParameterResolver,
    Parameter,
    ParameterMacro,
    ParameterResolver,
    UnresolvedParameterError,
)
from macro_bridge.exceptions import MacroCoercionError


class ExplodingResolver(ParameterResolver):
    """Resolver with a bug: raises instead of returning None."""

    def resolve(self, name: str) -> Parameter | None:
        raise RuntimeError(f"resolver failure for {name}")


class TestMacroParser:
    """Tests for MacroParser grammar."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("cache-name", ParameterMacro("cache-name")),
            ("  cache-name  ", ParameterMacro("cache-name")),
            ("{cache-name}", ParameterMacro("cache-name")),
            ("{ cache-name }", ParameterMacro("cache-name")),
            ("partition-count 257", ParameterMacro("partition-count", "257")),
            ("{partition-count 257}", ParameterMacro("partition-count", "257")),
            ("service-name 'Distributed Cache'", ParameterMacro("service-name", "Distributed Cache")),
            ('service-name "it\\"s"', ParameterMacro("service-name", 'it"s')),
            ("timeout -1", ParameterMacro("timeout", "-1")),
            ("endpoint http://localhost:8080/x", ParameterMacro("endpoint", "http://localhost:8080/x")),
            ("coherence.cluster", ParameterMacro("coherence.cluster")),
            ("_private", ParameterMacro("_private")),
        ],
    )
    def test_accepted(self, text: str, expected: ParameterMacro) -> None:
        assert MacroParser().parse(text) == expected

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "{}",
            "1 + 1",
            "a - b",
            "a and b",
            "not enabled",
            "x if y else z",
            "name a b",
            "upper(name)",
            "items[0]",
            "region | upper",
            "'literal'",
            "{{ cache-name }}",
            "{outer {inner}}",
            "trailing-",
        ],
    )
    def test_rejected(self, text: str) -> None:
        with pytest.raises(MacroSyntaxError):
            MacroParser().parse(text)

    def test_str_renders_macro_form(self) -> None:
        assert str(ParameterMacro("size")) == "{size}"
        assert str(ParameterMacro("size", "10")) == "{size 10}"


class TestParameterMacro:
    """Tests for ParameterMacro.evaluate()."""

    def test_resolves_parameter(self) -> None:
        resolver = MappingParameterResolver({"cache-name": "orders"})
        assert ParameterMacro("cache-name").evaluate(resolver) == "orders"

    def test_parameter_wins_over_default(self) -> None:
        resolver = MappingParameterResolver({"size": 5})
        assert ParameterMacro("size", "10").evaluate(resolver, int) == 5

    def test_default_used_when_unresolved(self) -> None:
        assert ParameterMacro("size", "10").evaluate(NULL_RESOLVER, int) == 10

    def test_unresolved_without_default(self) -> None:
        with pytest.raises(UnresolvedParameterError, match="'size'"):
            ParameterMacro("size").evaluate(NULL_RESOLVER)

    def test_coercion_failure(self) -> None:
        resolver = MappingParameterResolver({"size": "large"})
        with pytest.raises(MacroCoercionError):
            ParameterMacro("size").evaluate(resolver, int)

    def test_default_coercion_failure(self) -> None:
        with pytest.raises(MacroCoercionError):
            ParameterMacro("size", "large").evaluate(NULL_RESOLVER, int)


class TestMacroEvaluator:
    """Tests for MacroEvaluator results."""

    def test_resolved_result(self, orders_resolver: MappingParameterResolver) -> None:
        result = MacroEvaluator().evaluate("cache-name", object, orders_resolver)
        assert result == MacroResult.resolved("orders")
        assert result

    def test_typed_result(self, orders_resolver: MappingParameterResolver) -> None:
        result = MacroEvaluator().evaluate("{partition-count}", int, orders_resolver)
        assert result.value == 257

    def test_syntax_miss(self, orders_resolver: MappingParameterResolver) -> None:
        result = MacroEvaluator().evaluate("1 + 1", object, orders_resolver)
        assert not result
        assert result.found is False
        assert result.value is None
        assert "Not a parameter macro" in result.reason

    def test_unresolved_miss(self) -> None:
        result = MacroEvaluator().evaluate("cache-name", object, NULL_RESOLVER)
        assert result.found is False
        assert "could not be resolved" in result.reason

    def test_coercion_miss(self, orders_resolver: MappingParameterResolver) -> None:
        result = MacroEvaluator().evaluate("cache-name", int, orders_resolver)
        assert result.found is False
        assert "Cannot coerce" in result.reason

    def test_none_value_is_a_miss(self) -> None:
        resolver = MappingParameterResolver({"cache-name": None})
        result = MacroEvaluator().evaluate("cache-name", object, resolver)
        assert result.found is False
        assert "resolved to None" in result.reason

    def test_unexpected_faults_propagate(self) -> None:
        with pytest.raises(RuntimeError, match="resolver failure"):
            MacroEvaluator().evaluate("cache-name", object, ExplodingResolver())

    def test_unexpected_faults_propagate_only_for_macro_text(self) -> None:
        # Text outside the grammar never reaches the resolver
        result = MacroEvaluator().evaluate("1 + 1", object, ExplodingResolver())
        assert result.found is False

    def test_accepts(self) -> None:
        evaluator = MacroEvaluator()
        assert evaluator.accepts("partition-count 257")
        assert not evaluator.accepts("1 + 1")

    def test_reparses_every_call(self) -> None:
        evaluator = MacroEvaluator()
        first = evaluator.evaluate("cache-name", object, MappingParameterResolver({"cache-name": "a"}))
        second = evaluator.evaluate("cache-name", object, MappingParameterResolver({"cache-name": "b"}))
        assert (first.value, second.value) == ("a", "b")
