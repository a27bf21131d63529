"""Tests for context-local resolver bindings."""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from macro_bridge import (
    NULL_RESOLVER,
    EvaluationContext,
    MappingParameterResolver,
    ResolverRegistry,
)


class TestBinding:
    """Tests for bind(), current() and bound()."""

    def test_current_defaults_to_null_resolver(self, registry: ResolverRegistry) -> None:
        assert registry.current() is NULL_RESOLVER
        assert registry.is_bound() is False

    def test_bind_replaces_previous_binding(self, registry: ResolverRegistry) -> None:
        first = MappingParameterResolver(a=1)
        second = MappingParameterResolver(a=2)
        registry.bind(first)
        registry.bind(second)
        assert registry.current() is second

    def test_bind_none_clears_binding(self, registry: ResolverRegistry) -> None:
        registry.bind(MappingParameterResolver(a=1))
        registry.bind(None)
        assert registry.current() is NULL_RESOLVER

    def test_unbind(self, registry: ResolverRegistry) -> None:
        registry.bind(MappingParameterResolver(a=1))
        registry.unbind()
        assert registry.is_bound() is False

    def test_reset_restores_previous_binding(self, registry: ResolverRegistry) -> None:
        outer = MappingParameterResolver(a=1)
        registry.bind(outer)
        token = registry.bind(MappingParameterResolver(a=2))
        registry.reset(token)
        assert registry.current() is outer

    def test_bound_restores_on_exit(self, registry: ResolverRegistry) -> None:
        resolver = MappingParameterResolver(a=1)
        with registry.bound(resolver) as active:
            assert active is resolver
            assert registry.current() is resolver
        assert registry.current() is NULL_RESOLVER

    def test_bound_restores_on_error(self, registry: ResolverRegistry) -> None:
        with pytest.raises(RuntimeError):
            with registry.bound(MappingParameterResolver(a=1)):
                raise RuntimeError("boom")
        assert registry.is_bound() is False

    def test_nested_bound(self, registry: ResolverRegistry) -> None:
        outer = MappingParameterResolver(a=1)
        inner = MappingParameterResolver(a=2)
        with registry.bound(outer):
            with registry.bound(inner):
                assert registry.current() is inner
            assert registry.current() is outer


class TestFallbackLookup:
    """Tests for lookup_fallback() and resolve_for() precedence."""

    def test_lookup_fallback_without_context(self, registry: ResolverRegistry) -> None:
        assert registry.lookup_fallback(None) is None

    def test_lookup_fallback_finds_published_resolver(self, registry: ResolverRegistry) -> None:
        published = MappingParameterResolver(a=1)
        context = EvaluationContext({"resolver": published})
        assert registry.lookup_fallback(context) is published

    def test_lookup_fallback_ignores_non_resolvers(
        self, registry: ResolverRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        context = EvaluationContext({"resolver": {"a": 1}})
        with caplog.at_level(logging.WARNING, logger="macro_bridge.context_vars"):
            assert registry.lookup_fallback(context) is None
        assert "not a ParameterResolver" in caplog.text

    def test_custom_resolver_variable(self) -> None:
        from contextvars import ContextVar

        registry = ResolverRegistry(ContextVar("custom", default=None), resolver_variable="params")
        published = MappingParameterResolver(a=1)
        assert registry.lookup_fallback(EvaluationContext({"params": published})) is published
        assert registry.lookup_fallback(EvaluationContext({"resolver": published})) is None

    def test_resolve_for_uses_fallback_when_unbound(self, registry: ResolverRegistry) -> None:
        published = MappingParameterResolver(a=1)
        assert registry.resolve_for(EvaluationContext({"resolver": published})) is published

    def test_binding_takes_precedence_over_fallback(self, registry: ResolverRegistry) -> None:
        bound = MappingParameterResolver(a=1)
        published = MappingParameterResolver(a=2)
        registry.bind(bound)
        assert registry.resolve_for(EvaluationContext({"resolver": published})) is bound

    def test_resolve_for_defaults_to_null_resolver(self, registry: ResolverRegistry) -> None:
        assert registry.resolve_for(EvaluationContext()) is NULL_RESOLVER
        assert registry.resolve_for(None) is NULL_RESOLVER


class TestIsolation:
    """Bindings never cross thread or task boundaries."""

    def test_threads_do_not_see_each_other(self, registry: ResolverRegistry) -> None:
        barrier = threading.Barrier(2)
        resolvers = {
            "orders": MappingParameterResolver({"cache-name": "orders"}),
            "trades": MappingParameterResolver({"cache-name": "trades"}),
        }

        def worker(name: str) -> list[bool]:
            registry.bind(resolvers[name])
            barrier.wait(timeout=5)
            seen = [registry.current() is resolvers[name] for _ in range(100)]
            registry.unbind()
            return seen

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(worker, name) for name in resolvers]
            results = [future.result(timeout=10) for future in futures]

        assert all(all(seen) for seen in results)
        assert registry.is_bound() is False

    @pytest.mark.asyncio
    async def test_tasks_do_not_see_each_other(self, registry: ResolverRegistry) -> None:
        async def task(name: str) -> tuple[str, str]:
            registry.bind(MappingParameterResolver({"cache-name": name}))
            await asyncio.sleep(0)
            first = registry.current().resolve("cache-name").value
            await asyncio.sleep(0)
            second = registry.current().resolve("cache-name").value
            return first, second

        results = await asyncio.gather(task("orders"), task("trades"))

        assert results == [("orders", "orders"), ("trades", "trades")]
        assert registry.is_bound() is False
