"""Shared test configuration for macro-bridge tests.

Provides:
- An isolated ResolverRegistry per test (its own ContextVar, so bindings made
  in one test never leak into another)
- A MacroExpressionResolver wired to that registry with default settings
- Common resolvers used across test modules
"""

from contextvars import ContextVar

import pytest

from macro_bridge import (
    BridgeConfig,
    MacroExpressionResolver,
    MappingParameterResolver,
    ResolverRegistry,
    TemplateExpressionParser,
)


@pytest.fixture
def registry() -> ResolverRegistry:
    """Registry backed by a fresh context variable."""
    return ResolverRegistry(ContextVar("test_parameter_resolver", default=None))


@pytest.fixture
def config() -> BridgeConfig:
    """Default configuration, independent of MACRO_BRIDGE_* environment variables."""
    return BridgeConfig()


@pytest.fixture
def template_parser(config: BridgeConfig) -> TemplateExpressionParser:
    return TemplateExpressionParser(config)


@pytest.fixture
def bridge(config: BridgeConfig, registry: ResolverRegistry) -> MacroExpressionResolver:
    """Host-facing resolver using the isolated registry."""
    return MacroExpressionResolver(config, registry=registry)


@pytest.fixture
def orders_resolver() -> MappingParameterResolver:
    return MappingParameterResolver(
        {"cache-name": "orders", "partition-count": "257", "backup-count": 1}
    )
